"""Decide whether an approver is entitled to act on a flow step."""
from __future__ import annotations

from typing import Iterable, Optional

from expenseflow.models import FlowStep, User


def authorize(step: FlowStep, approver: User, submitter: Optional[User]) -> bool:
    """Return True if ``approver`` matches any of the step's approver criteria.

    A step matches when the approver is the submitter's manager on a manager
    step, is the step's specific user, or holds the step's role. The criteria
    are checked independently, so a step may match on more than one.
    """
    if (
        step.is_manager_approver
        and submitter is not None
        and submitter.manager_id is not None
        and submitter.manager_id == approver.id
    ):
        return True
    if step.approver_user_id is not None and step.approver_user_id == approver.id:
        return True
    if step.approver_role is not None and step.approver_role == approver.role:
        return True
    return False


def find_matching_step(
    group: Iterable[FlowStep], approver: User, submitter: Optional[User]
) -> Optional[FlowStep]:
    """Return the lowest-id step in ``group`` that authorizes ``approver``."""
    for step in sorted(group, key=lambda s: s.id):
        if authorize(step, approver, submitter):
            return step
    return None
