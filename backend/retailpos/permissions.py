"""
Permission constants and the static role -> permission mapping.

The caller supplies its role and shop scope explicitly on every request;
there is no session store. Checks are a pure lookup in DEFAULT_ROLE_PERMISSIONS.
"""

from __future__ import annotations

from dataclasses import dataclass

# =============================================================================
# PERMISSION CATEGORIES
# =============================================================================

class PermissionCategory:
    """Permission categories for organization."""
    INVENTORY = "INVENTORY"
    SALES = "SALES"
    FINANCE = "FINANCE"
    SYSTEM = "SYSTEM"


# =============================================================================
# PERMISSION DEFINITIONS
# =============================================================================

# Each permission is defined as: (code, name, description, category)
PERMISSION_DEFINITIONS = [
    ("VIEW_INVENTORY", "View Inventory", "View products, categories and stock levels", PermissionCategory.INVENTORY),
    ("MANAGE_PRODUCTS", "Manage Products", "Create and edit products and categories", PermissionCategory.INVENTORY),
    ("ADJUST_INVENTORY", "Adjust Inventory", "Restock or correct product quantities", PermissionCategory.INVENTORY),
    ("MANAGE_SUPPLIERS", "Manage Suppliers", "Create, edit and delete suppliers and their product links", PermissionCategory.INVENTORY),
    ("CREATE_SALE", "Create Sale", "Check out carts and view sales", PermissionCategory.SALES),
    ("UPDATE_SALE_STATUS", "Update Sale Status", "Change delivery and payment status of sales", PermissionCategory.SALES),
    ("PROCESS_RETURN", "Process Return", "Record customer returns", PermissionCategory.SALES),
    ("APPROVE_RETURN", "Approve Return", "Approve or reject pending returns", PermissionCategory.SALES),
    ("MANAGE_CUSTOMERS", "Manage Customers", "Create and view customers", PermissionCategory.SALES),
    ("VIEW_LEDGER", "View Ledger", "View income, expenses and OHADA codes", PermissionCategory.FINANCE),
    ("RECORD_LEDGER", "Record Ledger Entries", "Record manual income and expenses", PermissionCategory.FINANCE),
    ("MANAGE_LEDGER_CODES", "Manage OHADA Codes", "Add OHADA classification codes", PermissionCategory.FINANCE),
    ("MANAGE_SHOPS", "Manage Shops", "Create shops", PermissionCategory.SYSTEM),
]


# =============================================================================
# DEFAULT ROLE PERMISSIONS
# =============================================================================

DEFAULT_ROLE_PERMISSIONS = {
    "admin": [code for code, _, _, _ in PERMISSION_DEFINITIONS],

    "manager": [
        "VIEW_INVENTORY",
        "MANAGE_PRODUCTS",
        "ADJUST_INVENTORY",
        "MANAGE_SUPPLIERS",
        "CREATE_SALE",
        "UPDATE_SALE_STATUS",
        "PROCESS_RETURN",
        "APPROVE_RETURN",
        "MANAGE_CUSTOMERS",
        "VIEW_LEDGER",
        "RECORD_LEDGER",
    ],

    "cashier": [
        # Cashier: counter operations only
        "VIEW_INVENTORY",
        "CREATE_SALE",
        "PROCESS_RETURN",
        "MANAGE_CUSTOMERS",
    ],
}

ROLES = tuple(DEFAULT_ROLE_PERMISSIONS.keys())


@dataclass(frozen=True)
class ActorContext:
    """Who is acting, in which role, for which shop. Always passed explicitly."""
    actor_id: str | None
    role: str
    shop_id: str | None


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def role_has_permission(role: str | None, code: str) -> bool:
    return code in DEFAULT_ROLE_PERMISSIONS.get(role or "", ())
