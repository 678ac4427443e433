"""
Core ingestion pipeline: envelopes, acceptor, queue and store contracts,
batch worker, and the queue consumer.
"""

from .acceptor import IngestAcceptor
from .consumer import QueueConsumer
from .envelope import Envelope, LogSource, build_json_envelope, build_text_envelope
from .errors import (
    BatchFailedError,
    ClientInputError,
    DependencyError,
    ErrorCategory,
    ErrorSeverity,
    IngestError,
    InjectedFault,
    SerializationError,
    UnexpectedFault,
    UnsupportedMediaTypeError,
)
from .processing import Processor, SimulatedCostProcessor
from .queue import InMemoryDurableQueue, QueueClient, QueueMessage, build_queue_pair
from .records import PersistedRecord, derive_record, log_key, tenant_key
from .settings import FailurePolicy, Settings, load_settings
from .store import InMemoryLogStore, StoreClient
from .worker import BatchResult, BatchWorker, FaultInjection

__all__ = [
    "BatchFailedError",
    "BatchResult",
    "BatchWorker",
    "ClientInputError",
    "DependencyError",
    "Envelope",
    "ErrorCategory",
    "ErrorSeverity",
    "FailurePolicy",
    "FaultInjection",
    "InMemoryDurableQueue",
    "InMemoryLogStore",
    "IngestAcceptor",
    "IngestError",
    "InjectedFault",
    "LogSource",
    "PersistedRecord",
    "Processor",
    "QueueClient",
    "QueueConsumer",
    "QueueMessage",
    "SerializationError",
    "Settings",
    "SimulatedCostProcessor",
    "StoreClient",
    "UnexpectedFault",
    "UnsupportedMediaTypeError",
    "build_json_envelope",
    "build_queue_pair",
    "build_text_envelope",
    "derive_record",
    "load_settings",
    "log_key",
    "tenant_key",
]
