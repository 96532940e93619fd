"""Idempotent import of user data into destination storage services"""

from .http_client import AuthenticatedHttpClient
from .idempotent_executor import ErrorDetail, IdempotentImportExecutor, InMemoryIdempotentImportExecutor
from .pipeline import (
    ChildTask,
    ImportReport,
    ImportResult,
    ItemOutcome,
    ParentTask,
    PipelineState,
    ResourceImportPipeline,
)
from .storage_client import StorageClient, StorageClientFactory
from .extension import (
    ExtensionContext,
    ExtensionState,
    ImportJob,
    TransferExtension,
    get_extension,
)

__all__ = [
    "AuthenticatedHttpClient",
    "ErrorDetail",
    "IdempotentImportExecutor",
    "InMemoryIdempotentImportExecutor",
    "ChildTask",
    "ImportReport",
    "ImportResult",
    "ItemOutcome",
    "ParentTask",
    "PipelineState",
    "ResourceImportPipeline",
    "StorageClient",
    "StorageClientFactory",
    "ExtensionContext",
    "ExtensionState",
    "ImportJob",
    "TransferExtension",
    "get_extension",
]
