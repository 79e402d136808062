"""Approval flow, rule and decision models."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from expenseflow import db
from expenseflow.models.expense import ExpenseStatus
from expenseflow.models.user import UserRole


class ApprovalDecisionStatus(enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ConditionType(enum.Enum):
    PERCENTAGE = "PERCENTAGE"
    SPECIFIC_USER = "SPECIFIC_USER"
    AMOUNT_THRESHOLD = "AMOUNT_THRESHOLD"

    @classmethod
    def parse(cls, raw: str) -> "ConditionType":
        """Parse a condition type name; ``AutoApprove`` is an alias of ``SpecificUser``."""
        normalized = str(raw).strip().replace("-", "_").upper()
        normalized = {
            "SPECIFICUSER": "SPECIFIC_USER",
            "AUTOAPPROVE": "SPECIFIC_USER",
            "AUTO_APPROVE": "SPECIFIC_USER",
            "AMOUNTTHRESHOLD": "AMOUNT_THRESHOLD",
        }.get(normalized, normalized)
        return cls[normalized]


class LogicOperator(enum.Enum):
    AND = "AND"
    OR = "OR"
    NONE = "NONE"


# Tagged condition variants -------------------------------------------------

@dataclass(frozen=True)
class PercentageCondition:
    threshold: Optional[int]


@dataclass(frozen=True)
class SpecificUserCondition:
    user_id: Optional[int]


@dataclass(frozen=True)
class AmountThresholdCondition:
    amount: Optional[Decimal]


ConditionKind = Union[PercentageCondition, SpecificUserCondition, AmountThresholdCondition]


def _to_int(raw: Optional[str]) -> Optional[int]:
    try:
        return int(Decimal(str(raw).strip()))
    except (InvalidOperation, OverflowError, TypeError, ValueError):
        return None


def _to_user_id(raw: Optional[str]) -> Optional[int]:
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None


class ApprovalFlow(db.Model):
    __tablename__ = "approval_flows"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    is_default = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)

    company = db.relationship("Company", back_populates="approval_flows", lazy="joined")
    steps = db.relationship(
        "FlowStep",
        back_populates="flow",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by=lambda: [FlowStep.step_order, FlowStep.id],
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "is_default": self.is_default,
            "steps": [step.to_dict() for step in self.steps],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<ApprovalFlow {self.name}>"


class FlowStep(db.Model):
    """One approver slot; steps sharing ``flow_id`` and ``step_order`` form a group."""

    __tablename__ = "flow_steps"

    id = db.Column(db.Integer, primary_key=True)
    flow_id = db.Column(
        db.Integer,
        db.ForeignKey("approval_flows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    step_order = db.Column(db.Integer, nullable=False)
    is_manager_approver = db.Column(db.Boolean, default=False, nullable=False)
    approver_role = db.Column(db.Enum(UserRole, name="user_role"), nullable=True)
    approver_user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    conditional_rule_id = db.Column(
        db.Integer,
        db.ForeignKey("approval_rules.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)

    flow = db.relationship("ApprovalFlow", back_populates="steps", lazy="select")
    approver_user = db.relationship("User", lazy="select")
    conditional_rule = db.relationship("ApprovalRule", lazy="select")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "flow_id": self.flow_id,
            "step_order": self.step_order,
            "is_manager_approver": self.is_manager_approver,
            "approver_role": self.approver_role.value if self.approver_role else None,
            "approver_user_id": self.approver_user_id,
            "conditional_rule_id": self.conditional_rule_id,
        }

    def __repr__(self) -> str:
        return f"<FlowStep id={self.id} flow_id={self.flow_id} order={self.step_order}>"


class ApprovalRule(db.Model):
    __tablename__ = "approval_rules"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    success_outcome = db.Column(
        db.Enum(ExpenseStatus, name="expense_status"),
        nullable=False,
        default=ExpenseStatus.APPROVED,
    )
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)

    company = db.relationship("Company", back_populates="approval_rules", lazy="joined")
    conditions = db.relationship(
        "RuleCondition",
        back_populates="rule",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="RuleCondition.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "description": self.description,
            "success_outcome": self.success_outcome.value if self.success_outcome else None,
            "conditions": [condition.to_dict() for condition in self.conditions],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<ApprovalRule id={self.id} name={self.name}>"


class RuleCondition(db.Model):
    __tablename__ = "rule_conditions"

    id = db.Column(db.Integer, primary_key=True)
    rule_id = db.Column(
        db.Integer,
        db.ForeignKey("approval_rules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    condition_type = db.Column(db.Enum(ConditionType, name="condition_type"), nullable=False)
    condition_value = db.Column(db.String(255), nullable=False, default="")
    logic_operator = db.Column(
        db.Enum(LogicOperator, name="logic_operator"),
        nullable=False,
        default=LogicOperator.NONE,
    )
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)

    rule = db.relationship("ApprovalRule", back_populates="conditions", lazy="select")

    def as_kind(self) -> ConditionKind:
        """Decode the string-encoded value into its tagged variant."""
        if self.condition_type is ConditionType.PERCENTAGE:
            return PercentageCondition(threshold=_to_int(self.condition_value))
        if self.condition_type is ConditionType.SPECIFIC_USER:
            return SpecificUserCondition(user_id=_to_user_id(self.condition_value))
        if self.condition_type is ConditionType.AMOUNT_THRESHOLD:
            try:
                amount = Decimal(str(self.condition_value).strip())
            except InvalidOperation:
                amount = None
            return AmountThresholdCondition(amount=amount)
        raise ValueError(f"Unsupported condition type {self.condition_type!r}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "rule_id": self.rule_id,
            "condition_type": self.condition_type.value if self.condition_type else None,
            "condition_value": self.condition_value,
            "logic_operator": self.logic_operator.value if self.logic_operator else None,
        }

    def __repr__(self) -> str:
        return f"<RuleCondition rule_id={self.rule_id} type={self.condition_type.value if self.condition_type else None}>"


class ExpenseApproval(db.Model):
    """A single approver's decision on one step; append-only."""

    __tablename__ = "expense_approvals"
    __table_args__ = (
        db.UniqueConstraint(
            "expense_id", "step_id", "approver_user_id", name="unique_approval_per_step"
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    expense_id = db.Column(
        db.Integer,
        db.ForeignKey("expenses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    step_id = db.Column(
        db.Integer,
        db.ForeignKey("flow_steps.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    approver_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    status = db.Column(
        db.Enum(ApprovalDecisionStatus, name="approval_decision_status"),
        nullable=False,
        default=ApprovalDecisionStatus.PENDING,
    )
    comment = db.Column(db.Text, nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)

    expense = db.relationship("Expense", back_populates="approvals", lazy="select")
    approver = db.relationship("User", lazy="joined")
    step = db.relationship("FlowStep", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "expense_id": self.expense_id,
            "step_id": self.step_id,
            "approver_user_id": self.approver_user_id,
            "status": self.status.value if self.status else None,
            "comment": self.comment,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return (
            f"<ExpenseApproval expense_id={self.expense_id} step_id={self.step_id} "
            f"status={self.status.value if self.status else None}>"
        )
