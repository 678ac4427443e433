"""HTTP front for the ingestion pipeline."""

from .app import PipelineRuntime, build_runtime, create_app

__all__ = ["PipelineRuntime", "build_runtime", "create_app"]
