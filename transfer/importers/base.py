"""
Base importer interface.
Defines the contract that all resource importers must follow.
"""
import hashlib
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from pydantic import BaseModel

from oauth.models import AuthData
from ..idempotent_executor import IdempotentImportExecutor
from ..pipeline import ChildTask, ImportReport, ParentTask, ResourceImportPipeline
from ..storage_client import StorageClient, StorageClientFactory

logger = logging.getLogger(__name__)


def stable_digest(model: BaseModel, length: int = 16) -> str:
    """Deterministic id for items the source gives no id"""
    return hashlib.sha256(model.model_dump_json().encode("utf-8")).hexdigest()[:length]


def first_line(text: Optional[str]) -> str:
    if not text:
        return ""
    return text.split("\n", 1)[0]


def parent_key(kind: str, parent_id: str) -> str:
    return f"{kind}:{parent_id}"


def item_key(kind: str, parent_id: Optional[str], item_id: str) -> str:
    """Executor key of a child, kept apart from parent keys by its kind prefix"""
    if not parent_id:
        return f"{kind}:{item_id}"
    return f"{kind}:{parent_id}-{item_id}"


class Importer(ABC):
    """Imports one resource kind to a destination"""

    resource_kind: str = ""

    def __init__(self, client_factory: StorageClientFactory):
        """
        Initialize importer with the destination client factory

        Args:
            client_factory: Builds an authenticated storage client per invocation
        """
        self.client_factory = client_factory

    def import_item(
        self,
        job_id: str,
        executor: IdempotentImportExecutor,
        auth_data: AuthData,
        resource: BaseModel,
    ) -> ImportReport:
        """Import a container

        Args:
            job_id: Job identifier
            executor: Job-scoped idempotent executor
            auth_data: Tokens of the destination account
            resource: Container of this importer's resource kind

        Returns:
            Report with per-item outcomes

        Raises:
            QuotaExceededError: If the destination is full
            AuthRefreshError: If the session can no longer be authenticated
        """
        client = self.client_factory.create(auth_data)
        try:
            parents, children = self.plan(job_id, client, executor, resource)
            logger.debug(
                f"{job_id}: Importing {len(parents)} {self.resource_kind} parent(s) "
                f"and {len(children)} item(s)"
            )
            pipeline = ResourceImportPipeline(job_id, self.resource_kind, executor)
            return pipeline.run(parents, children)
        finally:
            client.close()

    @abstractmethod
    def plan(
        self,
        job_id: str,
        client: StorageClient,
        executor: IdempotentImportExecutor,
        resource: BaseModel,
    ) -> Tuple[List[ParentTask], List[ChildTask]]:
        """Turn a container into parent and child tasks in source order"""
        pass
