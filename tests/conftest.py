"""Pytest fixtures for the approval engine test suite.

Each test gets a fresh in-memory SQLite schema and a small company:
an admin, a manager, two employees reporting to that manager, and a
second manager acting as finance director.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from expenseflow import create_app, db
from expenseflow.models import (
    ApprovalFlow,
    ApprovalRule,
    Company,
    EmployeeProfile,
    Expense,
    ExpenseStatus,
    FlowStep,
    RuleCondition,
    User,
    UserRole,
)


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _user(company, first_name, role, manager=None):
    user = User(
        first_name=first_name,
        last_name="Tester",
        email=f"{first_name.lower()}@acme.test",
        role=role,
        company_id=company.id,
    )
    db.session.add(user)
    db.session.flush()
    if manager is not None:
        db.session.add(EmployeeProfile(user_id=user.id, manager_id=manager.id))
    return user


@pytest.fixture
def org(app):
    company = Company(name="Acme", currency_code="USD")
    db.session.add(company)
    db.session.flush()

    admin = _user(company, "Ada", UserRole.ADMIN)
    manager = _user(company, "Mona", UserRole.MANAGER)
    employee = _user(company, "Eli", UserRole.EMPLOYEE, manager=manager)
    colleague = _user(company, "Cora", UserRole.EMPLOYEE, manager=manager)
    director = _user(company, "Dina", UserRole.MANAGER)
    db.session.commit()

    return SimpleNamespace(
        company=company,
        admin=admin,
        manager=manager,
        employee=employee,
        colleague=colleague,
        director=director,
    )


@pytest.fixture
def make_rule(org):
    """Build a rule from ``(ConditionType, value)`` pairs."""

    def factory(*conditions, success_outcome=ExpenseStatus.APPROVED):
        rule = ApprovalRule(company_id=org.company.id, name="Rule", success_outcome=success_outcome)
        for condition_type, value in conditions:
            rule.conditions.append(RuleCondition(condition_type=condition_type, condition_value=str(value)))
        db.session.add(rule)
        db.session.commit()
        return rule

    return factory


@pytest.fixture
def make_flow(org):
    """Build a flow from dicts of FlowStep column values; ``step_order`` is required."""

    def factory(*steps, is_default=True, name="Default flow"):
        flow = ApprovalFlow(company_id=org.company.id, name=name, is_default=is_default)
        flow.steps = [FlowStep(**step) for step in steps]
        db.session.add(flow)
        db.session.commit()
        return flow

    return factory


@pytest.fixture
def make_expense(org):
    """Create an expense sitting on ``step`` (or on no step)."""

    def factory(step=None, submitter=None, amount="120.00", status=ExpenseStatus.PENDING):
        submitter = submitter or org.employee
        expense = Expense(
            company_id=org.company.id,
            submitter_user_id=submitter.id,
            amount=Decimal(amount),
            currency_code="USD",
            category="Travel",
            date_spent=date(2026, 10, 1),
            status=status,
            current_flow_step_id=step.id if step is not None else None,
        )
        db.session.add(expense)
        db.session.commit()
        return expense

    return factory
