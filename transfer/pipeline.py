"""Dependency-ordered import of one resource kind for one job

Parents (albums, folders, lists) are created and cached before any child is
attempted; children read their parent's cached destination identifier.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional

from errors import MissingParentError
from .idempotent_executor import ErrorDetail, IdempotentImportExecutor

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    PARENTS_PENDING = "ParentsPending"
    PARENTS_DONE = "ParentsDone"
    ITEMS_PENDING = "ItemsPending"
    COMPLETE = "Complete"
    PARTIAL_FAILURE = "PartialFailure"
    FAILED = "Failed"


class ImportResult(str, Enum):
    OK = "OK"


@dataclass(frozen=True)
class ParentTask:
    """Creates one parent resource; returns its destination identifier"""
    key: str
    display_name: str
    producer: Callable[[], Any]


@dataclass(frozen=True)
class ChildTask:
    """Imports one item

    The producer receives the parent's cached destination identifier, or
    None when the item has no parent.
    """
    key: str
    display_name: str
    parent_key: Optional[str]
    producer: Callable[[Optional[Any]], Any]


@dataclass(frozen=True)
class ItemOutcome:
    key: str
    display_name: str
    destination: Optional[Any] = None
    error: Optional[ErrorDetail] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ImportReport:
    """Per-item results of one pipeline run"""
    job_id: str
    resource_kind: str
    state: PipelineState
    result: ImportResult = ImportResult.OK
    parents: List[ItemOutcome] = field(default_factory=list)
    items: List[ItemOutcome] = field(default_factory=list)

    @property
    def outcomes(self) -> List[ItemOutcome]:
        return self.parents + self.items

    @property
    def failures(self) -> List[ItemOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def succeeded(self) -> List[ItemOutcome]:
        return [o for o in self.outcomes if o.ok]


class ResourceImportPipeline:
    """Runs one import pass over a container's parents then children

    Item-level failures are recorded by the executor and the pass continues.
    Job-level failures (QuotaExceededError, AuthRefreshError) propagate and
    no further items are attempted.
    """

    def __init__(self, job_id: str, resource_kind: str, executor: IdempotentImportExecutor):
        self.job_id = job_id
        self.resource_kind = resource_kind
        self.executor = executor
        self.state = PipelineState.PARENTS_PENDING
        self._report: Optional[ImportReport] = None

    @property
    def report(self) -> Optional[ImportReport]:
        """Report of the latest run, including a run that ended in a job-level error"""
        return self._report

    def run(self, parents: Iterable[ParentTask], children: Iterable[ChildTask]) -> ImportReport:
        self.state = PipelineState.PARENTS_PENDING
        report = ImportReport(job_id=self.job_id, resource_kind=self.resource_kind, state=self.state)
        self._report = report

        try:
            for parent in parents:
                report.parents.append(self._run_parent(parent))
            self._transition(report, PipelineState.PARENTS_DONE)

            self._transition(report, PipelineState.ITEMS_PENDING)
            for child in children:
                report.items.append(self._run_child(child))
        except Exception:
            self._transition(report, PipelineState.FAILED)
            logger.error(f"[{self.job_id}] {self.resource_kind} import aborted after {len(report.succeeded)} item(s)")
            raise

        final = PipelineState.PARTIAL_FAILURE if report.failures else PipelineState.COMPLETE
        self._transition(report, final)
        logger.info(
            f"[{self.job_id}] {self.resource_kind} import finished: "
            f"{len(report.succeeded)} ok, {len(report.failures)} failed"
        )
        return report

    def _transition(self, report: ImportReport, state: PipelineState) -> None:
        logger.debug(f"[{self.job_id}] {self.resource_kind}: {self.state.value} -> {state.value}")
        self.state = state
        report.state = state

    def _run_parent(self, task: ParentTask) -> ItemOutcome:
        self.executor.execute_and_swallow(task.key, task.display_name, task.producer)
        return self._outcome(task.key, task.display_name)

    def _run_child(self, task: ChildTask) -> ItemOutcome:
        def produce():
            return task.producer(self._resolve_parent(task))

        self.executor.execute_and_swallow(task.key, task.display_name, produce)
        return self._outcome(task.key, task.display_name)

    def _resolve_parent(self, task: ChildTask) -> Optional[Any]:
        if task.parent_key is None:
            return None
        if not self.executor.is_key_cached(task.parent_key):
            raise MissingParentError(task.parent_key, task.key)
        return self.executor.get_cached_value(task.parent_key)

    def _outcome(self, key: str, display_name: str) -> ItemOutcome:
        if self.executor.is_key_cached(key):
            return ItemOutcome(key, display_name, destination=self.executor.get_cached_value(key))
        error = self.executor.get_error(key) or ErrorDetail(
            key=key,
            display_name=display_name,
            error_type="Unknown",
            message="No value cached and no error recorded",
        )
        return ItemOutcome(key, display_name, error=error)
