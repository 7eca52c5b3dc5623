# tem_client/Sync/sync_session.py
# Description: State of one synchronization run: phase, cursor, progress, error and cancellation.
#
# Imports
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
#
# Local Imports
from .error_classifier import ClassifiedError
from .exceptions import SyncProtocolError
#
########################################################################################################################
#
# Functions:

class SyncState(str, Enum):
    IDLE = "idle"
    BOOTSTRAPPING = "bootstrapping"
    OPENING_SNAPSHOT = "opening_snapshot"
    FETCHING_BATCH = "fetching_batch"
    COMPLETED = "completed"
    ERRORED = "errored"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({SyncState.COMPLETED, SyncState.CANCELLED})


@dataclass
class SyncCursor:
    """Resumable position inside a snapshot: token + next offset + reported total."""
    token: Optional[str] = None
    offset: int = 0
    total: int = 0

    @property
    def resumable(self) -> bool:
        return self.token is not None

    def reset(self) -> None:
        self.token = None
        self.offset = 0
        self.total = 0

    def advance(self, offset: int, total: int, token: Optional[str] = None) -> None:
        if offset < self.offset:
            raise SyncProtocolError(f"Cursor cannot move backwards ({self.offset} -> {offset})")
        if token is not None:
            self.token = token
        self.offset = offset
        self.total = total


@dataclass
class SyncSession:
    state: SyncState = SyncState.IDLE
    loading: bool = False
    status: str = ""
    loaded: int = 0
    total: int = 0
    started_at: Optional[float] = None
    error: Optional[ClassifiedError] = None
    cancelled: bool = False
    cursor: SyncCursor = field(default_factory=SyncCursor)
    run_id: int = 0
    # Records already loaded when the current timing window began (resume)
    rate_baseline: int = field(default=0, repr=False)

    # --- Lifecycle ---

    def begin(self, now: float) -> int:
        """Fresh run from bootstrap. Returns the new run token."""
        self.run_id += 1
        self.cursor.reset()
        self.loaded = 0
        self.total = 0
        self.rate_baseline = 0
        self.started_at = now
        self.error = None
        self.cancelled = False
        self.loading = True
        self.state = SyncState.BOOTSTRAPPING
        self.status = "Connecting to backend..."
        return self.run_id

    def resume(self, now: float) -> int:
        """Continue fetching from the stored cursor. Returns the new run token."""
        self.run_id += 1
        self.rate_baseline = self.loaded
        self.started_at = now
        self.error = None
        self.cancelled = False
        self.loading = True
        self.state = SyncState.FETCHING_BATCH
        self.status = f"Resuming at record {self.cursor.offset:,}..."
        return self.run_id

    def is_current(self, run_id: int) -> bool:
        return run_id == self.run_id

    def record_progress(self, received: int, total: int) -> None:
        self.loaded += received
        self.total = total

    def fail(self, classified: ClassifiedError) -> None:
        # loading stays set: the error is shown in place with retry / cancel choices
        self.state = SyncState.ERRORED
        self.error = classified
        self.status = f"{classified.title}: {classified.description}"

    def cancel(self) -> None:
        self.cancelled = True
        self.loading = False
        self.error = None
        self.state = SyncState.CANCELLED
        self.status = "Sync cancelled"

    def complete(self) -> None:
        self.state = SyncState.COMPLETED
        self.loading = False
        self.error = None
        self.status = f"Loaded {self.loaded:,} records"

    def set_busy(self, status: str) -> None:
        self.loading = True
        self.status = status

    def set_idle(self, status: str = "") -> None:
        self.loading = False
        self.status = status

    # --- Progress ---

    @property
    def progress(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(self.loaded / self.total, 1.0)

    def throughput(self, now: float) -> float:
        """Records per second since the current timing window began."""
        if self.started_at is None:
            return 0.0
        elapsed = now - self.started_at
        if elapsed <= 0:
            return 0.0
        return (self.loaded - self.rate_baseline) / elapsed

    def eta_seconds(self, now: float) -> Optional[float]:
        rate = self.throughput(now)
        if rate <= 0 or self.total <= 0:
            return None
        return max(self.total - self.loaded, 0) / rate


def format_eta(seconds: Optional[float]) -> str:
    if seconds is None:
        return "unknown"
    seconds = int(round(seconds))
    if seconds < 60:
        return f"{seconds}s"
    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {seconds:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m"

#
# End of tem_client/Sync/sync_session.py
########################################################################################################################
