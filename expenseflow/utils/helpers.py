"""General helper utilities."""
from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional

from flask import jsonify, request

from expenseflow.errors import ValidationError
from expenseflow.models import ApprovalDecisionStatus


def json_response(payload: Any, status: int = 200):
    """Return a JSON response with status code."""
    return jsonify(payload), status


def json_payload() -> Dict[str, Any]:
    """Request body as a dict; non-JSON or non-object bodies become empty."""
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def require_fields(payload: Dict[str, Any], fields: Iterable[str]) -> None:
    missing = sorted(field for field in fields if payload.get(field) in (None, ""))
    if missing:
        raise ValidationError(f"Missing fields: {', '.join(missing)}")


def parse_id(raw: Any, field: str) -> int:
    if raw is None or raw == "":
        raise ValidationError(f"Missing fields: {field}")
    if isinstance(raw, bool):
        raise ValidationError(f"Invalid '{field}'.", code="INVALID_FIELD")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid '{field}'.", code="INVALID_FIELD") from None
    if value <= 0:
        raise ValidationError(f"Invalid '{field}'.", code="INVALID_FIELD")
    return value


def parse_decision(raw: Any) -> ApprovalDecisionStatus:
    """Accept ``Approved``/``Rejected`` in any case; PENDING is not a decision."""
    if raw is None or raw == "":
        raise ValidationError("Missing fields: action")
    if isinstance(raw, ApprovalDecisionStatus):
        decision = raw
    else:
        try:
            decision = ApprovalDecisionStatus[str(raw).strip().upper()]
        except KeyError:
            decision = None
    if decision not in (ApprovalDecisionStatus.APPROVED, ApprovalDecisionStatus.REJECTED):
        raise ValidationError("Action must be 'Approved' or 'Rejected'.", code="INVALID_FIELD")
    return decision


def parse_amount(raw: Any) -> Decimal:
    try:
        amount = Decimal(str(raw))
    except (InvalidOperation, TypeError):
        raise ValidationError("Invalid amount.", code="INVALID_FIELD") from None
    if not amount.is_finite():
        raise ValidationError("Invalid amount.", code="INVALID_FIELD")
    return amount


def parse_date(raw: Any, field: str) -> Optional[date]:
    if raw in (None, ""):
        return None
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        raise ValidationError(f"Invalid '{field}' format. Use YYYY-MM-DD.", code="INVALID_FIELD") from None
