# Overview: Lookups over the static permission catalogue.

from .categories import PermissionCategory
from .definitions import PERMISSION_DEFINITIONS


_BY_CODE = {code: (code, name, description, category) for code, name, description, category in PERMISSION_DEFINITIONS}


def get_all_permission_codes():
    """Catalogue codes in declaration order."""
    return list(_BY_CODE)


def get_permissions_by_category(category):
    return [entry for entry in PERMISSION_DEFINITIONS if entry[3] == category]


def get_permission_definition(code):
    """Catalogue entry for a code as a dict, or None for unknown codes."""
    entry = _BY_CODE.get(code)
    if entry is None:
        return None
    code, name, description, category = entry
    return {"code": code, "name": name, "description": description, "category": category}


def validate_permission_code(code):
    return code in _BY_CODE


def grouped_catalogue():
    """Catalogue grouped by category, in display order."""
    return [
        {
            "category": category,
            "permissions": [get_permission_definition(entry[0]) for entry in get_permissions_by_category(category)],
        }
        for category in PermissionCategory.ORDER
    ]
