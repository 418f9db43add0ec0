"""Offline Sync Reconciler: idempotent replay of queued client events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, ContextManager, Iterable, Optional

from sqlalchemy.exc import IntegrityError

from ..constants import EventType
from ..errors import DuplicateEventError, TasbihError
from ..logging_config import get_logger
from ..schemas import LearnMarkRequest, OfflineEvent, TapRequest, parse_payload

if TYPE_CHECKING:
    from ..context import CoreServices

logger = get_logger("sync")

SYNCED = "synced"
ALREADY_SYNCED = "already_synced"
IGNORED = "ignored"
ERROR = "error"


@dataclass(frozen=True)
class SyncItemResult:
    """Per-event outcome; a failed item never aborts its siblings."""

    offline_id: Optional[str]
    status: str
    error: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {"offline_id": self.offline_id, "status": self.status}
        if self.error is not None:
            payload["error"] = self.error
        return payload


class OfflineSyncReconciler:
    """Replays a batch sequentially, one transaction per event.

    The ``(user_id, offline_id)`` unique constraint on the event log is the
    idempotency key: a replayed id is reported ``already_synced`` whether it is
    caught by the lookup or by the constraint during a concurrent replay.
    """

    def __init__(self, unit_of_work: Callable[[], ContextManager["CoreServices"]]) -> None:
        self.unit_of_work = unit_of_work

    def sync(self, user_id: str, events: Iterable[OfflineEvent]) -> list[SyncItemResult]:
        results = [self._replay(user_id, event) for event in events]
        logger.info(
            "Offline sync for %s: %d events, %d synced",
            user_id,
            len(results),
            sum(1 for r in results if r.status == SYNCED),
            extra={"user_id": user_id},
        )
        return results

    def _replay(self, user_id: str, event: OfflineEvent) -> SyncItemResult:
        offline_id = event.offline_id
        event_type = event.type.strip().lower()
        if event_type not in (EventType.TAP.value, EventType.LEARN_MARK.value):
            logger.warning("Ignoring offline event %s of unknown type %r", offline_id, event.type)
            return SyncItemResult(offline_id, IGNORED, f"unknown event type: {event.type}")

        try:
            with self.unit_of_work() as services:
                if offline_id and services.event_repo.offline_id_exists(user_id, offline_id):
                    return SyncItemResult(offline_id, ALREADY_SYNCED)
                if event_type == EventType.TAP.value:
                    payload = parse_payload(TapRequest, event.data)
                    services.counter.tap(
                        user_id,
                        payload.session_id,
                        payload.delta,
                        payload.event_type.value,
                        offline_id=offline_id,
                        prayer_segment=payload.prayer_segment.value if payload.prayer_segment else None,
                        occurred_at=event.timestamp,
                        replayed=True,
                    )
                else:
                    payload = parse_payload(LearnMarkRequest, event.data)
                    services.goals.mark_learned(
                        user_id,
                        payload.goal_id,
                        offline_id=offline_id,
                        occurred_at=event.timestamp,
                    )
        except IntegrityError as exc:
            if offline_id:
                logger.info("Offline event %s was synced concurrently", offline_id)
                return SyncItemResult(offline_id, ALREADY_SYNCED)
            logger.exception("Offline event failed with an integrity error")
            return SyncItemResult(offline_id, ERROR, str(exc.orig))
        except DuplicateEventError:
            return SyncItemResult(offline_id, ALREADY_SYNCED)
        except TasbihError as exc:
            logger.warning("Offline event %s rejected: %s", offline_id, exc.message)
            return SyncItemResult(offline_id, ERROR, exc.message)
        except Exception as exc:
            logger.exception("Offline event %s failed", offline_id)
            return SyncItemResult(offline_id, ERROR, str(exc) or exc.__class__.__name__)
        return SyncItemResult(offline_id, SYNCED)


__all__ = ["OfflineSyncReconciler", "SyncItemResult"]
