# Overview: Permission categories used to group codes in the admin UI.


class PermissionCategory:
    """Grouping labels for permission codes."""
    USERS = "USERS"
    INVENTORY = "INVENTORY"
    STOCK = "STOCK"
    LOGISTICS = "LOGISTICS"
    WORKLOG = "WORKLOG"
    MEDIA = "MEDIA"
    MERCHANT = "MERCHANT"

    ORDER = (USERS, INVENTORY, STOCK, LOGISTICS, WORKLOG, MEDIA, MERCHANT)
