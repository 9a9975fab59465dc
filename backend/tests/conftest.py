import pytest
from datetime import date, datetime, timezone

from integrity import ComplianceRules, LeaveRequest, ShiftAssignment
from integrity.types import ComplianceContext
from integrity.validators import sort_shifts


class MockUser:
    def __init__(self, role="manager", user_id="user-1", tenant_id="tenant-1"):
        self.user_id = user_id
        self.tenant_id = tenant_id
        self.role = role


@pytest.fixture(autouse=True)
def override_auth_dependencies():
    from app import app
    from auth.dependencies import get_current_user, require_admin, require_manager_or_admin

    mock_user = MockUser(role="admin")

    async def mock_get_current_user():
        return mock_user

    async def mock_require_admin():
        return mock_user

    async def mock_require_manager_or_admin():
        return mock_user

    app.dependency_overrides[get_current_user] = mock_get_current_user
    app.dependency_overrides[require_admin] = mock_require_admin
    app.dependency_overrides[require_manager_or_admin] = mock_require_manager_or_admin

    yield mock_user

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clean_locks():
    from db.locks import reset_locks

    reset_locks()
    yield
    reset_locks()


@pytest.fixture
def make_shift():
    """Factory for ShiftAssignment with sensible defaults."""
    counter = {"n": 0}

    def _make(day, start="09:00", end="17:00", employee_id="emp-1", shift_id=None, schedule_id="sched-1"):
        counter["n"] += 1
        if isinstance(day, str):
            day = date.fromisoformat(day)
        return ShiftAssignment(
            id=shift_id or f"shift-{counter['n']}",
            employee_id=employee_id,
            schedule_id=schedule_id,
            date=day,
            start_time=start,
            end_time=end,
        )

    return _make


@pytest.fixture
def make_leave():
    def _make(start, end, status="approved", leave_type="vacation", employee_id="emp-1"):
        return LeaveRequest(
            employee_id=employee_id,
            start_date=date.fromisoformat(start),
            end_date=date.fromisoformat(end),
            type=leave_type,
            status=status,
        )

    return _make


@pytest.fixture
def make_context():
    def _make(shifts, employee=None, leave_requests=None, rules=None):
        return ComplianceContext(
            rules=rules or ComplianceRules(),
            shifts=sort_shifts(shifts),
            employee=employee,
            leave_requests=leave_requests or [],
        )

    return _make


@pytest.fixture
def reference_time():
    return datetime(2024, 3, 11, 8, 0, tzinfo=timezone.utc)
