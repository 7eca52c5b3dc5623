# tem_client/Sync/mutation_engine.py
# Description: Optimistic create/update, delete and favorite toggling against the local RecordStore.
#
# Imports
import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Set, Type, TypeVar
#
# 3rd-Party Imports
from loguru import logger
from pydantic import BaseModel, ValidationError
#
# Local Imports
from ..config import MutationSettings, RecordLimits
from ..notifications import NotificationCenter, Severity
from ..tem_api.exceptions import RemoteRejectedError
from ..tem_api.gateway import RemoteCallGateway
from ..tem_api.schemas import FavoriteResponse, MutationResponse, Record, RemoteOperation
from ..tem_api.utils import record_to_payload
from .error_classifier import classify
from .exceptions import MutationRevertedError, RecordNotFoundError, RecordValidationError, SyncProtocolError
from .record_store import RecordStore
from .retry_policy import RetryPolicy
#
########################################################################################################################
#
# Functions:

ResponseT = TypeVar("ResponseT", bound=BaseModel)

ConfirmDelete = Callable[[Record], Awaitable[bool]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_record(record: Record, limits: RecordLimits) -> List[str]:
    """Returns every violated constraint; an empty list means the record may be sent."""
    problems = []
    if not record.key.strip():
        problems.append("Key is required")
    elif len(record.key) > limits.key_max:
        problems.append(f"Key exceeds {limits.key_max} characters")
    if not record.body.strip():
        problems.append("Expansion is required")
    elif len(record.body) > limits.body_max:
        problems.append(f"Expansion exceeds {limits.body_max} characters")

    optional_limits = (
        ("Tags", record.tags, limits.tags_max),
        ("Description", record.description, limits.description_max),
        ("Application", record.application, limits.application_max),
        ("Language", record.language, limits.language_max),
    )
    for label, value, maximum in optional_limits:
        if value is not None and len(value) > maximum:
            problems.append(f"{label} exceeds {maximum} characters")
    return problems


class MutationEngine:
    """
    Every mutation edits the local store first and then talks to the backend.

    Upsert and delete capture the store snapshot synchronously before the
    optimistic write; a remote failure puts that exact snapshot back.
    Favorite toggles are fire-and-forget: the flipped record is returned at
    once and the remote call runs as a background task.
    """

    def __init__(self,
                 gateway: RemoteCallGateway,
                 store: RecordStore,
                 settings: Optional[MutationSettings] = None,
                 limits: Optional[RecordLimits] = None,
                 retry_policy: Optional[RetryPolicy] = None,
                 notifier: Optional[NotificationCenter] = None,
                 confirm_delete: Optional[ConfirmDelete] = None,
                 clock: Callable[[], datetime] = _utcnow):
        self.gateway = gateway
        self.store = store
        self.settings = settings or MutationSettings()
        self.limits = limits or RecordLimits()
        self.retry_policy = retry_policy or RetryPolicy()
        self.notifier = notifier
        self.confirm_delete = confirm_delete
        self._clock = clock
        self._pending: Set[asyncio.Task] = set()

    # --- Upsert ---

    async def upsert(self, record: Record) -> Record:
        problems = validate_record(record, self.limits)
        if problems:
            logger.warning(f"Rejected local edit of '{record.key}': {problems}")
            self._notify(f"Invalid shortcut: {'; '.join(problems)}", "warning")
            raise RecordValidationError(problems)

        stamped = record.model_copy(update={'updated_at': self._clock()})
        snapshot = self.store.snapshot()
        is_new = self.store.upsert_front(stamped)
        logger.info(f"{'Creating' if is_new else 'Updating'} shortcut '{stamped.key}'")

        try:
            await self._call(RemoteOperation.UPSERT, [record_to_payload(stamped)], MutationResponse)
        except Exception as e:
            self._revert(RemoteOperation.UPSERT, stamped.key, snapshot, self.settings.rollback_upsert, e)

        self._notify(f"{'Created' if is_new else 'Saved'} '{stamped.key}'", "success")
        return stamped

    # --- Delete ---

    async def delete(self, key: str) -> bool:
        """Returns False when the confirmation was declined; nothing is touched then."""
        record = self.store.get(key)
        if record is None:
            raise RecordNotFoundError(key)
        if self.confirm_delete is not None and not await self.confirm_delete(record):
            logger.info(f"Delete of '{key}' declined")
            return False

        snapshot = self.store.snapshot()
        self.store.remove(key)
        logger.info(f"Deleting shortcut '{key}'")

        try:
            await self._call(RemoteOperation.DELETE, [key], MutationResponse)
        except Exception as e:
            self._revert(RemoteOperation.DELETE, key, snapshot, self.settings.rollback_delete, e)

        self._notify(f"Deleted '{key}'", "success")
        return True

    # --- Favorite ---

    async def toggle_favorite(self, key: str) -> Record:
        record = self.store.get(key)
        if record is None:
            raise RecordNotFoundError(key)

        flipped = record.model_copy(update={'favorite': not record.favorite, 'updated_at': self._clock()})
        self.store.replace(flipped)
        logger.debug(f"Favorite for '{key}' -> {flipped.favorite}")

        task = asyncio.create_task(self._send_favorite(record, flipped))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return flipped

    async def _send_favorite(self, previous: Record, flipped: Record) -> None:
        try:
            response = await self._call(RemoteOperation.TOGGLE_FAVORITE, [flipped.key], FavoriteResponse,
                                        require_ok=False)
        except Exception as e:
            classified = classify(e)
            if not self.settings.rollback_toggle_favorite:
                logger.warning(f"Favorite toggle for '{flipped.key}' failed, keeping local value: {classified}")
                return
            reverted = self._replace_if_unchanged(flipped, previous)
            logger.warning(f"Favorite toggle for '{flipped.key}' failed ({classified}); reverted={reverted}")
            suffix = " (changes reverted)" if reverted else ""
            self._notify(f"{classified.title}: {classified.description}{suffix}", "error")
            return

        if response.favorite is not None and response.favorite != flipped.favorite:
            # The backend is authoritative about the final flag
            self._replace_if_unchanged(flipped, flipped.model_copy(update={'favorite': response.favorite}))
            logger.info(f"Favorite for '{flipped.key}' reconciled to server value {response.favorite}")

    def _replace_if_unchanged(self, expected: Record, replacement: Record) -> bool:
        # Only touches the record if no later edit replaced or removed it
        if self.store.get(expected.key) is not expected:
            return False
        self.store.replace(replacement)
        return True

    async def drain(self) -> None:
        """Waits for outstanding favorite toggles."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    @property
    def pending(self) -> int:
        return len(self._pending)

    # --- Helpers ---

    def _revert(self, operation: RemoteOperation, key: str, snapshot, rollback: bool, error: Exception) -> None:
        classified = classify(error)
        if rollback:
            self.store.restore(snapshot)
        logger.opt(exception=error).error(
            f"{operation.value} for '{key}' failed: {classified} (rolled back: {rollback})")
        failure = MutationRevertedError(operation.value, key, classified.title, classified.description,
                                        reverted=rollback, cause=error)
        self._notify(str(failure), "error")
        raise failure from error

    async def _call(self, operation: RemoteOperation, args: Sequence[Any], response_model: Type[ResponseT],
                    require_ok: bool = True) -> ResponseT:
        async def attempt() -> ResponseT:
            raw = await self.gateway.invoke(operation, args)
            try:
                response = response_model.model_validate(raw if raw is not None else {})
            except ValidationError as e:
                raise SyncProtocolError(f"Malformed '{operation.value}' response: {e}") from e
            # ok=None is accepted only where the backend may omit the flag
            if response.ok is False or (require_ok and not response.ok):
                raise RemoteRejectedError(operation.value, response.message)
            return response

        return await self.retry_policy.run(attempt, description=operation.value)

    def _notify(self, message: str, severity: Severity) -> None:
        if self.notifier is not None:
            self.notifier.notify(message, severity=severity)

#
# End of tem_client/Sync/mutation_engine.py
########################################################################################################################
