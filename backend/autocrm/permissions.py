"""
Permission constants and the static role table.

Roles are fixed (owner, manager, staff) and map to a fixed permission set.
There is no per-user override and nothing here is stored in the database.
"""

# =============================================================================
# PERMISSION CATEGORIES
# =============================================================================

class PermissionCategory:
    """Permission categories for grouping in the settings screen."""
    USERS = "USERS"
    REPORTS = "REPORTS"
    SETTINGS = "SETTINGS"
    INVENTORY = "INVENTORY"
    OPERATIONS = "OPERATIONS"


# =============================================================================
# PERMISSION DEFINITIONS
# =============================================================================

# Each permission is defined as: (code, name, description, category)
PERMISSION_DEFINITIONS = [
    (
        "MANAGE_USERS",
        "Manage Users",
        "Create, edit and remove staff accounts",
        PermissionCategory.USERS,
    ),
    (
        "VIEW_REPORTS",
        "View Reports",
        "Access the dashboard KPIs and reports",
        PermissionCategory.REPORTS,
    ),
    (
        "MANAGE_SETTINGS",
        "Manage Settings",
        "Edit branches and the service catalog",
        PermissionCategory.SETTINGS,
    ),
    (
        "MANAGE_INVENTORY",
        "Manage Inventory",
        "Edit parts, adjust stock and record movements",
        PermissionCategory.INVENTORY,
    ),
    (
        "MANAGE_WORK_ORDERS",
        "Manage Work Orders",
        "Create and edit work orders, their lines and part reservations",
        PermissionCategory.OPERATIONS,
    ),
    (
        "MANAGE_APPOINTMENTS",
        "Manage Appointments",
        "Book, edit and convert appointments",
        PermissionCategory.OPERATIONS,
    ),
    (
        "MANAGE_CLIENTS",
        "Manage Clients",
        "Create and edit clients and their vehicles",
        PermissionCategory.OPERATIONS,
    ),
]


# =============================================================================
# ROLE TABLE
# =============================================================================

DEFAULT_ROLE_PERMISSIONS = {
    "owner": [
        # Owner gets ALL permissions
        "MANAGE_USERS",
        "VIEW_REPORTS",
        "MANAGE_SETTINGS",
        "MANAGE_INVENTORY",
        "MANAGE_WORK_ORDERS",
        "MANAGE_APPOINTMENTS",
        "MANAGE_CLIENTS",
    ],
    "manager": [
        "VIEW_REPORTS",
        "MANAGE_SETTINGS",
        "MANAGE_INVENTORY",
        "MANAGE_WORK_ORDERS",
        "MANAGE_APPOINTMENTS",
        "MANAGE_CLIENTS",
    ],
    "staff": [
        "MANAGE_WORK_ORDERS",
        "MANAGE_APPOINTMENTS",
        "MANAGE_CLIENTS",
    ],
}


class PermissionDeniedError(Exception):
    """Raised when a role lacks a required permission."""
    pass


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permission_definition(code):
    """Get full definition for a permission code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "category": perm[3],
            }
    return None


def get_role_permissions(role) -> list[str]:
    """Permissions granted to a role; unknown roles get none."""
    return list(DEFAULT_ROLE_PERMISSIONS.get(role, []))


def role_has_permission(role, code: str) -> bool:
    return code in DEFAULT_ROLE_PERMISSIONS.get(role, ())


def require_permission(user, code: str) -> None:
    """Raise PermissionDeniedError unless user's role grants code."""
    if user is None:
        raise PermissionDeniedError("No acting user")
    if not role_has_permission(user.role, code):
        raise PermissionDeniedError(f"Role {user.role!r} lacks permission {code}")
