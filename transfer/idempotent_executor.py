"""Idempotent import executor: run each keyed producer at most once per job"""

import datetime
import logging
import threading
import traceback
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from errors import TransferItemError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors recorded against an item and swallowed; everything else propagates
SWALLOWED_ERRORS = (TransferItemError, httpx.TransportError, OSError)


@dataclass(frozen=True)
class ErrorDetail:
    """One failed producer invocation"""
    key: str
    display_name: str
    error_type: str
    message: str
    stack: str = ""
    status_code: Optional[int] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    @classmethod
    def from_exception(cls, key: str, display_name: str, error: BaseException) -> "ErrorDetail":
        return cls(
            key=key,
            display_name=display_name,
            error_type=type(error).__name__,
            message=str(error),
            stack="".join(traceback.format_exception(type(error), error, error.__traceback__)),
            status_code=getattr(error, "status_code", None),
        )


class IdempotentImportExecutor(ABC):
    """Runs producers keyed by a stable import key and caches their results

    A key whose producer succeeded is never run again within the job. A key
    whose producer failed is recorded in the error log and may be attempted
    again on a later pass.
    """

    @abstractmethod
    def execute_and_swallow(self, key: str, display_name: str, producer: Callable[[], T]) -> Optional[T]:
        """Run the producer unless key is cached; record item errors instead of raising"""

    @abstractmethod
    def execute_or_raise(self, key: str, display_name: str, producer: Callable[[], T]) -> T:
        """Run the producer unless key is cached; record and re-raise any error"""

    @abstractmethod
    def get_cached_value(self, key: str) -> Any:
        """Destination identifier produced for key

        Raises:
            KeyError: If key has not been imported successfully
        """

    @abstractmethod
    def is_key_cached(self, key: str) -> bool:
        """Whether key has been imported successfully"""

    @abstractmethod
    def get_errors(self) -> List[ErrorDetail]:
        """Errors of keys that have not (yet) succeeded"""

    def get_error(self, key: str) -> Optional[ErrorDetail]:
        for detail in self.get_errors():
            if detail.key == key:
                return detail
        return None


class InMemoryIdempotentImportExecutor(IdempotentImportExecutor):
    """Job-scoped executor backed by in-process maps

    Producers for distinct keys may run concurrently; invocations for the same
    key are serialized by a per-key lock.
    """

    def __init__(self, job_id: Optional[str] = None):
        self.job_id = job_id
        self._known_values: Dict[str, Any] = {}
        self._errors: Dict[str, ErrorDetail] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def execute_and_swallow(self, key: str, display_name: str, producer: Callable[[], T]) -> Optional[T]:
        try:
            return self.execute_or_raise(key, display_name, producer)
        except SWALLOWED_ERRORS as e:
            logger.warning(f"[{self.job_id}] Problem importing {display_name} ({key}): {e}")
            return None

    def execute_or_raise(self, key: str, display_name: str, producer: Callable[[], T]) -> T:
        with self._lock_for(key):
            with self._lock:
                if key in self._known_values:
                    logger.debug(f"[{self.job_id}] Using cached value for {display_name} ({key})")
                    return self._known_values[key]

            try:
                value = producer()
            except Exception as e:
                with self._lock:
                    self._errors[key] = ErrorDetail.from_exception(key, display_name, e)
                raise

            with self._lock:
                self._known_values[key] = value
                self._errors.pop(key, None)
            logger.debug(f"[{self.job_id}] Stored value for {display_name} ({key})")
            return value

    def get_cached_value(self, key: str) -> Any:
        with self._lock:
            if key not in self._known_values:
                raise KeyError(f"No cached value for key {key!r}")
            return self._known_values[key]

    def is_key_cached(self, key: str) -> bool:
        with self._lock:
            return key in self._known_values

    def get_errors(self) -> List[ErrorDetail]:
        with self._lock:
            return list(self._errors.values())

    def _lock_for(self, key: str) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock
