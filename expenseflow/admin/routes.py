"""Administrative routes for approval flows and rules."""
from __future__ import annotations

from typing import Any

from flask import request

from expenseflow.services import flow_config
from expenseflow.utils.helpers import json_payload, json_response, require_fields

from . import admin_bp


@admin_bp.route("/approval-flows", methods=["GET"])
def list_flows() -> Any:
    flows = flow_config.list_flows(request.args.get("companyId"))
    return json_response({"flows": [flow.to_dict() for flow in flows]})


@admin_bp.route("/approval-flows", methods=["POST"])
def create_flow() -> Any:
    """Create an approval flow from an ordered list of steps."""
    payload = json_payload()
    require_fields(payload, ("companyId", "name", "steps"))
    flow = flow_config.create_flow(
        payload["companyId"],
        payload["name"],
        payload["steps"] if isinstance(payload["steps"], list) else [payload["steps"]],
        is_default=bool(payload.get("isDefault")),
    )
    return json_response({"message": "Saved", "flow": flow.to_dict()}, status=201)


@admin_bp.route("/approval-rules", methods=["GET"])
def list_rules() -> Any:
    rules = flow_config.list_rules(request.args.get("companyId"))
    return json_response({"rules": [rule.to_dict() for rule in rules]})


@admin_bp.route("/approval-rules", methods=["POST"])
def create_rule() -> Any:
    """Create a conditional rule with its conditions."""
    payload = json_payload()
    require_fields(payload, ("companyId", "name"))
    conditions = payload.get("conditions") or []
    rule = flow_config.create_rule(
        payload["companyId"],
        payload["name"],
        conditions if isinstance(conditions, list) else [conditions],
        description=payload.get("description"),
        success_outcome=payload.get("successOutcome"),
    )
    return json_response({"message": "Saved", "id": rule.id, "rule": rule.to_dict()}, status=201)
