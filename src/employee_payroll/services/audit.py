"""Audit trail recording."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from employee_payroll.auth import AuthContext
from employee_payroll.models import AuditEvent


def _json_safe(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def record_audit(
    session: AsyncSession,
    auth: AuthContext,
    entity_type: str,
    entity_id: UUID,
    action: str,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
) -> AuditEvent:
    """Add an audit event to the session; it is written with the transaction."""
    event = AuditEvent(
        actor_user_id=auth.user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        before_json=_json_safe(before) if before is not None else None,
        after_json=_json_safe(after) if after is not None else None,
    )
    session.add(event)
    return event
