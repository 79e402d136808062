"""Expense model definitions."""
from __future__ import annotations

import enum

from expenseflow import db


class ExpenseStatus(enum.Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self in (ExpenseStatus.APPROVED, ExpenseStatus.REJECTED)


class Expense(db.Model):
    __tablename__ = "expenses"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    submitter_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    currency_code = db.Column(db.String(10), nullable=False)
    category = db.Column(db.String(120), nullable=True)
    description = db.Column(db.Text, nullable=True)
    date_spent = db.Column(db.Date, nullable=True)
    status = db.Column(db.Enum(ExpenseStatus, name="expense_status"), nullable=False, default=ExpenseStatus.DRAFT)
    current_flow_step_id = db.Column(
        db.Integer,
        db.ForeignKey("flow_steps.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now(), nullable=False)

    company = db.relationship("Company", lazy="joined")
    submitter = db.relationship("User", foreign_keys=[submitter_user_id], lazy="joined")
    current_flow_step = db.relationship("FlowStep", foreign_keys=[current_flow_step_id], lazy="select")
    approvals = db.relationship(
        "ExpenseApproval",
        back_populates="expense",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="ExpenseApproval.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "submitter_user_id": self.submitter_user_id,
            "amount": float(self.amount) if self.amount is not None else None,
            "currency_code": self.currency_code,
            "category": self.category,
            "description": self.description,
            "date_spent": self.date_spent.isoformat() if self.date_spent else None,
            "status": self.status.value if self.status else None,
            "current_flow_step_id": self.current_flow_step_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<Expense id={self.id} status={self.status.value if self.status else None}>"
