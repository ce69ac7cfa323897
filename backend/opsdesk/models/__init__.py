from .auth import User, Permission, UserPermission, SessionToken, USER_TYPES
from .security import SecurityEvent
from .catalog import Product
from .stock_requests import StockRequest, StockRequestItem, ShipmentInfo
from .worklogs import DailyLog
from .media import MediaUpload
from .merchants import MerchantRegistration

__all__ = [
    'User', 'Permission', 'UserPermission', 'SessionToken', 'USER_TYPES',
    'SecurityEvent',
    'Product',
    'StockRequest', 'StockRequestItem', 'ShipmentInfo',
    'DailyLog',
    'MediaUpload',
    'MerchantRegistration',
]
