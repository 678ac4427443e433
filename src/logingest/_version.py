"""
Fallback version module.

Kept in sync with ``pyproject.toml``; editable checkouts import it directly.
"""

__version__ = "0.1.0"
