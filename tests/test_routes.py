from expenseflow.models import ExpenseStatus, UserRole


def _post_decision(client, expense_id, approver_id, action="Approved", **extra):
    body = {"approverId": approver_id, "action": action, **extra}
    return client.post(f"/api/expenses/{expense_id}/approvals", json=body)


def test_submit_and_fetch_expense(client, org, make_flow):
    flow = make_flow({"step_order": 1, "is_manager_approver": True})

    response = client.post(
        "/api/expenses",
        json={"userId": org.employee.id, "amount": "99.90", "category": "Meals", "expenseDate": "2026-09-30"},
    )
    assert response.status_code == 201
    body = response.get_json()
    assert body["status"] == "PENDING"
    assert body["currentFlowStepId"] == flow.steps[0].id

    detail = client.get(f"/api/expenses/{body['id']}").get_json()
    assert detail["expense"]["amount"] == 99.9
    assert detail["expense"]["date_spent"] == "2026-09-30"
    assert detail["approvals"] == []


def test_submit_expense_validation(client, org):
    response = client.post("/api/expenses", json={"amount": 10})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Missing fields: userId", "code": "MISSING_FIELDS"}

    response = client.post("/api/expenses", json={"userId": org.employee.id, "amount": "ten"})
    assert response.status_code == 400
    assert response.get_json()["code"] == "INVALID_FIELD"

    response = client.post("/api/expenses", json={"userId": 999, "amount": 10})
    assert response.status_code == 404


def test_decision_flow_over_http(client, org, make_flow, make_expense):
    flow = make_flow(
        {"step_order": 1, "is_manager_approver": True},
        {"step_order": 2, "approver_role": UserRole.ADMIN},
    )
    expense = make_expense(flow.steps[0])

    response = _post_decision(client, expense.id, org.manager.id, comments="Looks fine")
    assert response.status_code == 200
    assert response.get_json() == {
        "status": "PENDING",
        "transition": "ADVANCED",
        "message": "Moved to next approval step",
        "nextStepId": flow.steps[1].id,
    }

    response = _post_decision(client, expense.id, org.admin.id, action="approved")
    assert response.get_json()["message"] == "Expense approved (end of flow)"
    assert response.get_json()["status"] == ExpenseStatus.APPROVED.value

    response = _post_decision(client, expense.id, org.admin.id)
    assert response.status_code == 409
    assert response.get_json()["code"] == "CONFLICT"


def test_decision_error_codes(client, org, make_flow, make_expense):
    flow = make_flow({"step_order": 1, "is_manager_approver": True})
    expense = make_expense(flow.steps[0])
    stranded = make_expense()

    response = client.post(f"/api/expenses/{expense.id}/approvals", json={"approverId": org.manager.id})
    assert response.status_code == 400
    assert response.get_json()["error"] == "Missing fields: action"

    assert _post_decision(client, expense.id, org.manager.id, action="Maybe").status_code == 400
    assert _post_decision(client, 999, org.manager.id).status_code == 404

    response = _post_decision(client, expense.id, org.colleague.id)
    assert response.status_code == 403
    assert response.get_json() == {"error": "Not authorized to approve this step", "code": "UNAUTHORIZED"}

    response = _post_decision(client, stranded.id, org.manager.id)
    assert response.status_code == 400
    assert response.get_json()["code"] == "NO_ACTIVE_STEP"


def test_escalate_endpoint(client, org, make_flow, make_expense):
    flow = make_flow({"step_order": 1, "is_manager_approver": True})
    expense = make_expense(flow.steps[0])

    response = client.post(f"/api/expenses/{expense.id}/escalate")
    assert response.status_code == 200
    assert response.get_json()["transition"] == "COMPLETED"

    assert client.post(f"/api/expenses/{expense.id}/escalate").status_code == 409


def test_pending_approvals_endpoint(client, org, make_flow, make_expense):
    flow = make_flow({"step_order": 1, "is_manager_approver": True})
    expense = make_expense(flow.steps[0])

    response = client.get(f"/api/approvals?approverId={org.manager.id}")
    assert response.status_code == 200
    assert [item["expense"]["id"] for item in response.get_json()] == [expense.id]

    assert client.get("/api/approvals").status_code == 400
    assert client.get("/api/approvals?approverId=999").status_code == 404


def test_admin_flow_and_rule_endpoints(client, org):
    response = client.post(
        "/api/approval-rules",
        json={
            "companyId": org.company.id,
            "name": "Majority",
            "conditions": [{"conditionType": "Percentage", "conditionValue": "50"}],
        },
    )
    assert response.status_code == 201
    rule_id = response.get_json()["id"]

    response = client.post(
        "/api/approval-flows",
        json={
            "companyId": org.company.id,
            "name": "Standard",
            "isDefault": True,
            "steps": [
                {"stepOrder": 1, "isManagerApprover": True, "conditionalRuleId": rule_id},
                {"stepOrder": 1, "approverUserId": org.director.id, "conditionalRuleId": rule_id},
            ],
        },
    )
    assert response.status_code == 201
    assert len(response.get_json()["flow"]["steps"]) == 2

    flows = client.get(f"/api/approval-flows?companyId={org.company.id}").get_json()["flows"]
    assert [flow["name"] for flow in flows] == ["Standard"]
    rules = client.get("/api/approval-rules").get_json()["rules"]
    assert rules[0]["conditions"][0]["condition_type"] == "PERCENTAGE"

    response = client.post("/api/approval-flows", json={"companyId": org.company.id, "name": "Empty"})
    assert response.status_code == 400
