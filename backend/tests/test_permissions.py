"""
Permission gate tests.

Verifies:
- check() grants when any required code is held (OR semantics)
- require() logs a PERMISSION_DENIED event before raising
- Catalogue helpers and replace-set assignment
"""

import pytest

from opsdesk.models import SecurityEvent
from opsdesk.permissions import (
    PERMISSION_DEFINITIONS,
    SUBMIT_PERMISSION_BY_TYPE,
    get_all_permission_codes,
    grouped_catalogue,
    validate_permission_code,
)
from opsdesk.services import permission_service
from opsdesk.validation import PermissionDeniedError, ValidationError


class TestCheck:
    """Pure permission check."""

    @pytest.mark.parametrize(
        "held,required,expected",
        [
            ({"stock_add"}, "stock_add", True),
            ({"stock_add"}, "stock_reduce", False),
            ({"stock_add"}, ["stock_reduce", "stock_add"], True),
            ({"log_write"}, ["stock_reduce", "stock_add"], False),
            (set(), "inventory_view", False),
            ({"inventory_manage"}, ("inventory_view", "inventory_manage"), True),
        ],
    )
    def test_any_of(self, held, required, expected):
        assert permission_service.check(held, required) is expected

    def test_empty_requirement_denies(self):
        assert permission_service.check({"stock_add"}, []) is False


class TestRequire:

    def test_denial_is_logged(self, db_session, make_user):
        user = make_user("bob", ["log_write"])

        with pytest.raises(PermissionDeniedError) as exc_info:
            permission_service.require(user.id, ["stock_approve"], resource="/api/stock-requests/1/approve")

        assert exc_info.value.data == {"requiredPermissions": ["stock_approve"]}
        event = db_session.query(SecurityEvent).filter_by(user_id=user.id).one()
        assert event.event_type == "PERMISSION_DENIED"
        assert event.success is False
        assert event.resource == "/api/stock-requests/1/approve"

    def test_granted_leaves_no_event(self, db_session, make_user):
        user = make_user("carol", ["stock_approve"])
        permission_service.require(user.id, "stock_approve")
        assert db_session.query(SecurityEvent).count() == 0

    def test_explicit_permission_set_is_used(self, db_session, make_user):
        user = make_user("dave", [])
        # A caller-supplied set wins over the stored one
        permission_service.require(user.id, "stock_add", user_permissions={"stock_add"})


class TestCatalogue:

    def test_every_code_is_unique(self):
        codes = get_all_permission_codes()
        assert len(codes) == len(set(codes)) == len(PERMISSION_DEFINITIONS)

    def test_submit_codes_exist(self):
        for code in SUBMIT_PERMISSION_BY_TYPE.values():
            assert validate_permission_code(code)

    def test_grouped_catalogue_covers_all_codes(self):
        grouped = [p["code"] for group in grouped_catalogue() for p in group["permissions"]]
        assert sorted(grouped) == sorted(get_all_permission_codes())

    def test_initialize_is_idempotent(self, db_session):
        assert permission_service.initialize_permissions() == 0


class TestAssignment:

    def test_set_replaces_whole_set(self, db_session, make_user):
        user = make_user("erin", ["stock_add", "log_write"])
        permission_service.set_user_permissions(user, ["stock_reduce"])
        db_session.commit()
        assert permission_service.get_user_permissions(user.id) == {"stock_reduce"}

    def test_unknown_code_rejected(self, db_session, make_user):
        user = make_user("frank", [])
        with pytest.raises(ValidationError):
            permission_service.set_user_permissions(user, ["launch_rockets"])

    def test_grant_and_revoke(self, db_session, make_user):
        user = make_user("gina", [])
        assert permission_service.grant_permission(user, "log_write") is True
        assert permission_service.grant_permission(user, "log_write") is False
        assert permission_service.revoke_permission(user, "log_write") is True
        assert permission_service.revoke_permission(user, "log_write") is False
        assert permission_service.get_user_permissions(user.id) == set()
