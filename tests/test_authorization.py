from types import SimpleNamespace

from expenseflow.models import UserRole
from expenseflow.services.authorization import authorize, find_matching_step


def _step(step_id=1, is_manager_approver=False, approver_role=None, approver_user_id=None):
    return SimpleNamespace(
        id=step_id,
        is_manager_approver=is_manager_approver,
        approver_role=approver_role,
        approver_user_id=approver_user_id,
    )


def _user(user_id, role=UserRole.EMPLOYEE, manager_id=None):
    return SimpleNamespace(id=user_id, role=role, manager_id=manager_id)


MANAGER = _user(10, role=UserRole.MANAGER)
SUBMITTER = _user(20, manager_id=10)


def test_manager_step_matches_submitters_manager():
    assert authorize(_step(is_manager_approver=True), MANAGER, SUBMITTER) is True


def test_manager_step_rejects_other_managers():
    other_manager = _user(11, role=UserRole.EMPLOYEE)
    assert authorize(_step(is_manager_approver=True), other_manager, SUBMITTER) is False


def test_manager_step_without_submitter_manager():
    orphan = _user(21)
    assert authorize(_step(is_manager_approver=True), MANAGER, orphan) is False
    assert authorize(_step(is_manager_approver=True), MANAGER, None) is False


def test_specific_user_step():
    step = _step(approver_user_id=30)
    assert authorize(step, _user(30), SUBMITTER) is True
    assert authorize(step, _user(31), SUBMITTER) is False


def test_role_step():
    step = _step(approver_role=UserRole.ADMIN)
    assert authorize(step, _user(40, role=UserRole.ADMIN), SUBMITTER) is True
    assert authorize(step, _user(41, role=UserRole.MANAGER), SUBMITTER) is False


def test_criteria_are_checked_independently():
    # Manager flag does not match, but the role does.
    step = _step(is_manager_approver=True, approver_role=UserRole.MANAGER)
    stranger_manager = _user(12, role=UserRole.MANAGER)
    assert authorize(step, stranger_manager, SUBMITTER) is True


def test_empty_step_matches_nobody():
    assert authorize(_step(), MANAGER, SUBMITTER) is False


def test_find_matching_step_prefers_lowest_id():
    group = [
        _step(step_id=7, approver_role=UserRole.MANAGER),
        _step(step_id=3, is_manager_approver=True),
        _step(step_id=5, approver_user_id=99),
    ]
    assert find_matching_step(group, MANAGER, SUBMITTER).id == 3


def test_find_matching_step_none_when_unauthorized():
    group = [_step(step_id=1, approver_user_id=99)]
    assert find_matching_step(group, MANAGER, SUBMITTER) is None
