# Overview: Static permission catalogue.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- USERS --

USER_PERMISSIONS = [
    ("user_manage", "Manage Users", "Create, edit, disable and delete user accounts", PermissionCategory.USERS),
    ("user_view", "View Users", "View the user directory", PermissionCategory.USERS),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "inventory_manage",
        "Manage Products",
        "Create, edit and delete products; set stock directly",
        PermissionCategory.INVENTORY,
    ),
    ("inventory_view", "View Products", "View products and stock levels", PermissionCategory.INVENTORY),
]


# -- STOCK REQUESTS --

STOCK_PERMISSIONS = [
    ("stock_add", "Submit Inbound", "Submit inbound stock requests", PermissionCategory.STOCK),
    (
        "stock_reduce",
        "Submit Outbound",
        "Submit outbound and self-purchase stock requests",
        PermissionCategory.STOCK,
    ),
    (
        "stock_approve",
        "Approve Requests",
        "Approve or reject pending stock requests and adjust their line items",
        PermissionCategory.STOCK,
    ),
    ("stock_view_all", "View All Requests", "View stock requests submitted by anyone", PermissionCategory.STOCK),
]


# -- LOGISTICS --

LOGISTICS_PERMISSIONS = [
    (
        "shipping_manage",
        "Manage Shipping",
        "Record courier, tracking and delivery status for approved requests",
        PermissionCategory.LOGISTICS,
    ),
]


# -- WORK LOGS --

WORKLOG_PERMISSIONS = [
    ("log_write", "Write Work Logs", "Write and edit own daily work logs", PermissionCategory.WORKLOG),
    ("log_view_all", "View All Work Logs", "Read every user's work logs", PermissionCategory.WORKLOG),
]


# -- MEDIA --

MEDIA_PERMISSIONS = [
    ("media_upload", "Upload Media", "Upload daily media assets", PermissionCategory.MEDIA),
    ("media_view_team", "View All Media", "View uploads and quota stats of every user", PermissionCategory.MEDIA),
]


# -- MERCHANT --

MERCHANT_PERMISSIONS = [
    ("merchant_upload", "Register Merchants", "Submit merchant registrations", PermissionCategory.MERCHANT),
    (
        "merchant_view_all",
        "Review Merchants",
        "View every merchant registration and set its review status",
        PermissionCategory.MERCHANT,
    ),
]


PERMISSION_DEFINITIONS = (
    USER_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + STOCK_PERMISSIONS
    + LOGISTICS_PERMISSIONS
    + WORKLOG_PERMISSIONS
    + MEDIA_PERMISSIONS
    + MERCHANT_PERMISSIONS
)


# Permission required to submit each stock request variant.
SUBMIT_PERMISSION_BY_TYPE = {
    "inbound": "stock_add",
    "outbound": "stock_reduce",
    "self_purchase": "stock_reduce",
}
