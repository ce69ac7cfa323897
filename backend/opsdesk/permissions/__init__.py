# Overview: Permission catalogue package.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    USER_PERMISSIONS,
    INVENTORY_PERMISSIONS,
    STOCK_PERMISSIONS,
    LOGISTICS_PERMISSIONS,
    WORKLOG_PERMISSIONS,
    MEDIA_PERMISSIONS,
    MERCHANT_PERMISSIONS,
    SUBMIT_PERMISSION_BY_TYPE,
)
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
    grouped_catalogue,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "USER_PERMISSIONS",
    "INVENTORY_PERMISSIONS",
    "STOCK_PERMISSIONS",
    "LOGISTICS_PERMISSIONS",
    "WORKLOG_PERMISSIONS",
    "MEDIA_PERMISSIONS",
    "MERCHANT_PERMISSIONS",
    "SUBMIT_PERMISSION_BY_TYPE",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
    "grouped_catalogue",
]
