# tem_client/Sync/snapshot_engine.py
"""
Snapshot Sync Engine.

Drives one synchronization run through

    Idle -> Bootstrapping -> OpeningSnapshot -> FetchingBatch* -> Completed

with Errored reachable from any network phase and Cancelled from any
non-terminal state. The engine owns a SyncSession; every remote call goes
through the RetryPolicy and every suspension point re-checks that the run
is still the current one and has not been cancelled.

Batches are fetched strictly one after another at increasing offsets. The
cursor is advanced after each page lands in the store, so a failed run can
be resumed from the first unfetched record instead of starting over.
"""
#
# Imports
import time
from typing import Any, Callable, List, Optional, Sequence, Type, TypeVar
#
# 3rd-Party Imports
from loguru import logger
from pydantic import BaseModel, ValidationError
#
# Local Imports
from ..notifications import NotificationCenter, Severity
from ..tem_api.exceptions import RemoteRejectedError
from ..tem_api.gateway import RemoteCallGateway
from ..tem_api.schemas import BatchResponse, BootstrapResponse, Record, RemoteOperation, SnapshotResponse
from ..tem_api.utils import records_from_remote
from .error_classifier import ErrorKind, classify
from .exceptions import SyncCancelledError, SyncProtocolError, SyncSupersededError
from .record_store import RecordStore
from .retry_policy import RetryPolicy
from .sync_session import SyncSession, SyncState, TERMINAL_STATES, format_eta
#
########################################################################################################################
#
# Functions:

DEFAULT_BATCH_SIZE = 500

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class SnapshotSyncEngine:

    def __init__(self,
                 gateway: RemoteCallGateway,
                 store: RecordStore,
                 session: Optional[SyncSession] = None,
                 retry_policy: Optional[RetryPolicy] = None,
                 batch_size: int = DEFAULT_BATCH_SIZE,
                 notifier: Optional[NotificationCenter] = None,
                 clock: Callable[[], float] = time.monotonic):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.gateway = gateway
        self.store = store
        self.session = session or SyncSession()
        self.retry_policy = retry_policy or RetryPolicy()
        self.batch_size = batch_size
        self.notifier = notifier
        self._clock = clock

    # --- Commands ---

    async def start(self) -> SyncSession:
        """Full sync from bootstrap. Supersedes any run still in flight."""
        run_id = self.session.begin(self._clock())
        logger.info(f"Sync run {run_id} starting from bootstrap")
        await self._run(run_id, resume=False)
        return self.session

    async def retry(self) -> SyncSession:
        """Resumes from the stored cursor when it holds a snapshot token, otherwise restarts."""
        if not self.session.cursor.resumable:
            logger.info("No resumable cursor; restarting sync from bootstrap")
            return await self.start()
        run_id = self.session.resume(self._clock())
        logger.info(f"Sync run {run_id} resuming at offset {self.session.cursor.offset} "
                    f"of {self.session.cursor.total}")
        await self._run(run_id, resume=True)
        return self.session

    def cancel(self) -> bool:
        """
        Cooperative cancel: the flag is observed at the next check point.
        A call already on the wire is not aborted; its result is ignored.
        """
        if self.session.state in TERMINAL_STATES or self.session.state == SyncState.IDLE:
            logger.debug(f"Cancel ignored in state {self.session.state.value}")
            return False
        self.session.cancel()
        logger.info(f"Sync run {self.session.run_id} cancelled at offset {self.session.cursor.offset}")
        self._notify("Sync cancelled", "information")
        return True

    # --- Run ---

    async def _run(self, run_id: int, resume: bool) -> None:
        try:
            if resume:
                await self._fetch_batches(run_id, has_more=True)
            else:
                await self._bootstrap(run_id)
                has_more = await self._open_snapshot(run_id)
                await self._fetch_batches(run_id, has_more)
            self._ensure_active(run_id)
            self.session.complete()
            logger.info(f"Sync run {run_id} completed: {len(self.store)} records in store")
            self._notify(f"Synced {self.session.loaded:,} records", "success")
        except SyncSupersededError:
            logger.debug(f"Sync run {run_id} superseded by run {self.session.run_id}; stopping quietly")
        except SyncCancelledError:
            if self.session.is_current(run_id) and self.session.state != SyncState.CANCELLED:
                self.session.cancel()
            logger.info(f"Sync run {run_id} stopped after cancellation")
        except Exception as e:
            if not self.session.is_current(run_id):
                logger.debug(f"Ignoring failure from superseded run {run_id}: {e}")
                return
            classified = classify(e)
            if self.session.cancelled or classified.kind == ErrorKind.CANCELLED:
                if self.session.state != SyncState.CANCELLED:
                    self.session.cancel()
                logger.info(f"Sync run {run_id} stopped after cancellation ({e})")
                return
            phase = self.session.state.value
            self.session.fail(classified)
            logger.opt(exception=e).error(
                f"Sync run {run_id} failed while {phase} at offset {self.session.cursor.offset}: {classified}")
            self._notify(f"{classified.title}: {classified.description}", "error")

    async def _bootstrap(self, run_id: int) -> None:
        self.session.state = SyncState.BOOTSTRAPPING
        self.session.status = "Connecting to backend..."
        await self._call(run_id, RemoteOperation.BOOTSTRAP, [], BootstrapResponse)

    async def _open_snapshot(self, run_id: int) -> bool:
        self.session.state = SyncState.OPENING_SNAPSHOT
        self.session.status = "Opening snapshot..."
        response = await self._call(run_id, RemoteOperation.OPEN_SNAPSHOT, [], SnapshotResponse)
        if response.has_more and not response.snapshot_token:
            raise SyncProtocolError("Snapshot has more pages but no snapshot token was issued")
        records = records_from_remote(response.records)
        next_offset = self._next_offset(0, response.offset, len(response.records), response.has_more)
        self._apply_page(records, len(response.records), next_offset, response.total, response.snapshot_token)
        return response.has_more

    async def _fetch_batches(self, run_id: int, has_more: bool) -> None:
        while has_more:
            self._ensure_active(run_id)
            cursor = self.session.cursor
            requested = cursor.offset
            self.session.state = SyncState.FETCHING_BATCH
            self.session.status = self._progress_status()
            logger.debug(f"Run {run_id}: fetching {self.batch_size} records at offset {requested}")
            response = await self._call(run_id, RemoteOperation.FETCH_BATCH,
                                        [cursor.token, requested, self.batch_size], BatchResponse)
            records = records_from_remote(response.records)
            next_offset = self._next_offset(requested, response.offset, len(response.records), response.has_more)
            self._apply_page(records, len(response.records), next_offset, cursor.total)
            has_more = response.has_more

    # --- Helpers ---

    def _apply_page(self, records: List[Record], received: int, next_offset: int, total: int,
                    token: Optional[str] = None) -> None:
        # Store, progress and cursor move together before the next call is made
        self.store.merge_batch(records)
        self.session.record_progress(received, max(total, 0))
        self.session.cursor.advance(next_offset, max(total, 0), token=token)
        self.session.status = self._progress_status()

    @staticmethod
    def _next_offset(requested: int, reported: int, received: int, has_more: bool) -> int:
        next_offset = reported if reported > requested else requested + received
        if has_more and next_offset <= requested:
            raise SyncProtocolError(f"Page at offset {requested} made no progress but reports more data")
        return next_offset

    def _progress_status(self) -> str:
        eta = format_eta(self.session.eta_seconds(self._clock()))
        return f"Loading {self.session.loaded:,} / {self.session.total:,} records (ETA {eta})"

    def _ensure_active(self, run_id: int) -> None:
        if not self.session.is_current(run_id):
            raise SyncSupersededError(f"Run {run_id} superseded")
        if self.session.cancelled:
            raise SyncCancelledError()

    async def _call(self, run_id: int, operation: RemoteOperation, args: Sequence[Any],
                    response_model: Type[ResponseT]) -> ResponseT:
        async def attempt() -> ResponseT:
            # Checked before the network call so a cancelled or replaced run never issues one
            self._ensure_active(run_id)
            try:
                raw = await self.gateway.invoke(operation, args)
            except Exception:
                # A cancel or supersede that landed mid-call wins over the call's own failure
                self._ensure_active(run_id)
                raise
            self._ensure_active(run_id)
            try:
                response = response_model.model_validate(raw if raw is not None else {})
            except ValidationError as e:
                raise SyncProtocolError(f"Malformed '{operation.value}' response: {e}") from e
            if not response.ok:
                raise RemoteRejectedError(operation.value, response.message,
                                          response_data=response.model_dump(exclude={'records'}))
            return response

        return await self.retry_policy.run(attempt, description=operation.value)

    def _notify(self, message: str, severity: Severity) -> None:
        if self.notifier is not None:
            self.notifier.notify(message, severity=severity)

#
# End of tem_client/Sync/snapshot_engine.py
########################################################################################################################
