"""
Generic sync store: a local-first value container over a storage backend.

Every ``save()`` updates the in-memory value before anything else happens and
then makes a best-effort durable write. Failed writes are logged and reported
through a ``SyncResult`` but never rolled back or retried, so the in-memory
and durable values can drift apart after a failure. Writes are neither
coalesced nor sequenced; the durable value after rapid saves follows the
order in which the writes complete.
"""

import asyncio
import concurrent.futures
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Set, TypeVar, Union

from ..core.enums import StoreStatus, SyncResultStatus
from ..core.interfaces import StorageBackend
from ..core.session import SessionContext

logger = logging.getLogger(__name__)

T = TypeVar('T')

LOAD_ERROR_MESSAGE = "Unable to load data. Check the endpoint URL or your internet connection."

SaveFuture = Union["asyncio.Future[SyncResult]", "concurrent.futures.Future[SyncResult]"]


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


@dataclass
class SyncResult:
    """Result of a load or save operation."""
    success: bool
    status: SyncResultStatus
    message: str
    error: Optional[BaseException] = None
    metadata: Dict[str, Any] = None

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}


class SyncStore(Generic[T]):
    """Holds one value of type T and keeps it in sync with a backend.

    ``encode``/``decode`` convert between T and the JSON-compatible payload the
    backend stores; both default to identity.
    """

    def __init__(self, backend: StorageBackend, session: Optional[SessionContext], initial_value: T,
                 encode: Optional[Callable[[T], Any]] = None,
                 decode: Optional[Callable[[Any], T]] = None,
                 saving_indicator_hold: Optional[float] = None):
        self._backend = backend
        self._session = session
        self._initial_value = initial_value
        self._value = initial_value
        self._encode = encode or (lambda value: value)
        self._decode = decode or (lambda payload: payload)
        self._saving_indicator_hold = (
            backend.saving_indicator_hold if saving_indicator_hold is None else saving_indicator_hold
        )
        self._status = StoreStatus.UNINITIALIZED
        self._error: Optional[str] = None
        self._first_load = True
        self._saving_count = 0
        self._pending: Set[asyncio.Future] = set()
        self._last_save_result: Optional[SyncResult] = None

    # === properties ===

    @property
    def value(self) -> T:
        """Current in-memory value, visible before any durable write settles."""
        return self._value

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def session(self) -> Optional[SessionContext]:
        return self._session

    @property
    def status(self) -> StoreStatus:
        return self._status

    @property
    def is_loading(self) -> bool:
        return self._status is StoreStatus.LOADING

    @property
    def is_saving(self) -> bool:
        return self._saving_count > 0

    @property
    def error(self) -> Optional[str]:
        """Human-readable load error for display, or None."""
        return self._error

    @property
    def has_loaded(self) -> bool:
        """Whether a load has been attempted, releasing durable writes."""
        return not self._first_load

    @property
    def last_save_result(self) -> Optional[SyncResult]:
        return self._last_save_result

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    def _key(self) -> Optional[str]:
        if self._session is None:
            return None
        return self._session.key

    def _is_configured(self) -> bool:
        return bool(self._key()) and self._backend.is_configured

    # === operations ===

    async def load(self) -> SyncResult:
        """Fetch the durable value, keeping the current value on failure."""
        if not self._is_configured():
            return SyncResult(False, SyncResultStatus.SKIPPED_UNCONFIGURED,
                              "No key or destination configured; load skipped")

        key = self._key()
        self._status = StoreStatus.LOADING
        self._error = None
        try:
            result = await self._backend.load(key)
            if result.found:
                self._value = self._decode(result.value)
                outcome = SyncResult(True, SyncResultStatus.LOADED, "Data loaded")
            else:
                if self._backend.persists_initial_on_absent:
                    await self._backend.save(key, self._encode(self._initial_value))
                    self._value = self._initial_value
                    logger.info("No record for this key yet; stored the initial value")
                else:
                    logger.info("No record for this key yet; using the initial value until the first save")
                outcome = SyncResult(True, SyncResultStatus.NOT_FOUND, "No existing record")
            self._status = StoreStatus.LOADED
        except Exception as e:
            logger.error("Error loading data from %s backend: %s", self._backend.backend_type.value, e)
            self._status = StoreStatus.LOAD_ERROR
            self._error = LOAD_ERROR_MESSAGE
            outcome = SyncResult(False, SyncResultStatus.FAILED, LOAD_ERROR_MESSAGE, error=e)
        finally:
            self._first_load = False
        return outcome

    def save(self, new_value: T) -> SaveFuture:
        """Replace the value now and start a best-effort durable write.

        The value is updated before this method returns; the returned future
        resolves with the write outcome and never raises. On the event loop
        the write runs as a task. Without a running loop the write completes
        before returning and a settled ``concurrent.futures.Future`` comes
        back instead.
        """
        self._value = new_value

        if not self._is_configured():
            return self._settled(SyncResult(False, SyncResultStatus.SKIPPED_UNCONFIGURED,
                                            "No key or destination configured; kept locally"))
        if self._first_load:
            return self._settled(SyncResult(False, SyncResultStatus.SKIPPED_NOT_LOADED,
                                            "Durable record not fetched yet; kept locally"))

        try:
            payload = self._encode(new_value)
        except Exception as e:
            logger.error("Error encoding data for save: %s", e)
            return self._settled(SyncResult(False, SyncResultStatus.FAILED,
                                            "Value could not be encoded", error=e))

        self._saving_count += 1
        loop = _running_loop()
        if loop is None:
            # No loop to hold the indicator on; release it with the write.
            return self._settled(asyncio.run(self._write(self._key(), payload, hold=0)))

        task = loop.create_task(self._write(self._key(), payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def wait_for_pending(self) -> List[SyncResult]:
        """Wait until every in-flight write has settled."""
        if not self._pending:
            return []
        return list(await asyncio.gather(*list(self._pending)))

    def describe(self) -> Dict[str, Any]:
        """Snapshot of the store flags for display."""
        return {
            "backend": self._backend.backend_type.value,
            "status": self._status.value,
            "loading": self.is_loading,
            "saving": self.is_saving,
            "error": self._error,
            "pending_writes": self.pending_writes,
        }

    # === internals ===

    def _settled(self, result: SyncResult) -> SaveFuture:
        self._last_save_result = result
        loop = _running_loop()
        future = loop.create_future() if loop is not None else concurrent.futures.Future()
        future.set_result(result)
        return future

    async def _write(self, key: str, payload: Any, hold: Optional[float] = None) -> SyncResult:
        try:
            await self._backend.save(key, payload)
            result = SyncResult(True, SyncResultStatus.WRITTEN, "Data saved")
        except Exception as e:
            logger.error("Error saving data to %s backend: %s", self._backend.backend_type.value, e)
            result = SyncResult(False, SyncResultStatus.FAILED, "Durable write failed", error=e)
        finally:
            self._schedule_saving_release(self._saving_indicator_hold if hold is None else hold)
        self._last_save_result = result
        return result

    def _schedule_saving_release(self, hold: float) -> None:
        if hold <= 0:
            self._release_saving()
        else:
            asyncio.get_running_loop().call_later(hold, self._release_saving)

    def _release_saving(self) -> None:
        self._saving_count = max(0, self._saving_count - 1)
