ORDERS_CREATE = "orders:create"
ORDERS_READ_OWN = "orders:read_own"
ORDERS_READ_ALL = "orders:read_all"
ORDERS_UPDATE_STATUS = "orders:update_status"
PAYMENTS_CREATE = "payments:create"
PAYMENTS_VERIFY = "payments:verify"
PRODUCTS_WRITE = "products:write"
CATEGORIES_WRITE = "categories:write"
ADMIN_STATS = "admin:stats"

_USER = [
    ORDERS_CREATE,
    ORDERS_READ_OWN,
    PAYMENTS_CREATE,
    PAYMENTS_VERIFY,
]

PERMISSIONS = {
    "admin": _USER + [
        ORDERS_READ_ALL,
        ORDERS_UPDATE_STATUS,
        PRODUCTS_WRITE,
        CATEGORIES_WRITE,
        ADMIN_STATS,
    ],
    "user": _USER,
}


def capabilities_for(role: str) -> frozenset:
    """Capability set granted to ``role``; unknown roles get nothing."""
    return frozenset(PERMISSIONS.get(role, []))


def has_permission(role: str, permission: str) -> bool:
    if not role:
        return False
    return permission in capabilities_for(role)
