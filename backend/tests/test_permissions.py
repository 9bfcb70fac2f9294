import pytest

from autocrm import permissions
from autocrm.permissions import PermissionDeniedError


def test_owner_has_every_permission():
    assert set(permissions.get_role_permissions("owner")) == set(permissions.get_all_permission_codes())


def test_manager_cannot_manage_users():
    manager = set(permissions.get_role_permissions("manager"))
    assert "MANAGE_USERS" not in manager
    assert manager == set(permissions.get_all_permission_codes()) - {"MANAGE_USERS"}


def test_staff_permissions():
    assert set(permissions.get_role_permissions("staff")) == {
        "MANAGE_WORK_ORDERS",
        "MANAGE_APPOINTMENTS",
        "MANAGE_CLIENTS",
    }


def test_unknown_role_has_nothing():
    assert permissions.get_role_permissions("intern") == []
    assert permissions.role_has_permission("intern", "MANAGE_CLIENTS") is False


def test_role_table_only_uses_defined_codes():
    codes = set(permissions.get_all_permission_codes())
    for granted in permissions.DEFAULT_ROLE_PERMISSIONS.values():
        assert set(granted) <= codes


def test_permission_definition_lookup():
    definition = permissions.get_permission_definition("VIEW_REPORTS")
    assert definition["category"] == permissions.PermissionCategory.REPORTS
    assert permissions.get_permission_definition("NOPE") is None


def test_require_permission(store):
    staff = store.get_user_by_id("user-3")
    permissions.require_permission(staff, "MANAGE_CLIENTS")

    with pytest.raises(PermissionDeniedError):
        permissions.require_permission(staff, "MANAGE_INVENTORY")
    with pytest.raises(PermissionDeniedError):
        permissions.require_permission(None, "MANAGE_CLIENTS")


# =============================================================================
# CLI
# =============================================================================


def test_cli_perms_check(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["perms", "check", "user-3", "MANAGE_INVENTORY"])
    assert "does NOT have MANAGE_INVENTORY" in result.output

    result = runner.invoke(args=["perms", "check", "user-2", "MANAGE_INVENTORY"])
    assert result.output.startswith("OK")


def test_cli_perms_list_for_role(app):
    result = app.test_cli_runner().invoke(args=["perms", "list", "--role", "staff"])
    assert "Total: 3 permissions" in result.output


def test_cli_store_stats(app):
    result = app.test_cli_runner().invoke(args=["store", "stats"])
    assert result.exit_code == 0
    assert "WO-2024-006" in result.output


def test_cli_low_stock(app):
    result = app.test_cli_runner().invoke(args=["store", "low-stock", "--branch", "branch-1"])
    assert "BELT-GRM-001" in result.output
    assert "Total: 1 items" in result.output
