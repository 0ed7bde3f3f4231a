import logging
from dataclasses import dataclass
from datetime import datetime

from app.cashdesk.db.models import AuditEvent

logger = logging.getLogger(__name__)


@dataclass
class AuditEventPayload:
    outlet_id: int | None
    cashier_id: int | None
    trace_id: str | None
    actor: str
    action: str
    entity_type: str
    entity_id: str | None
    before: dict | None
    after: dict | None
    metadata: dict | None
    result: str


class AuditService:
    """Best-effort audit logging.

    Strategy: failures are logged and swallowed to avoid breaking request flows.
    Call it after the business commit so an audit failure never rolls back cash.
    """

    def __init__(self, db):
        self.db = db

    def record_event(self, payload: AuditEventPayload) -> None:
        try:
            event = AuditEvent(
                outlet_id=payload.outlet_id,
                cashier_id=payload.cashier_id,
                trace_id=payload.trace_id,
                actor=payload.actor,
                action=payload.action,
                entity_type=payload.entity_type,
                entity_id=payload.entity_id,
                before_payload=payload.before,
                after_payload=payload.after,
                event_metadata=dict(payload.metadata or {}),
                result=payload.result,
                created_at=datetime.utcnow(),
            )
            self.db.add(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(
                "Failed to write audit event",
                extra={"action": payload.action, "trace_id": payload.trace_id, "entity_id": payload.entity_id},
            )
