from models.category import Category
from models.medicine import Medicine
from models.stock_movement import StockMovement, MovementType
from models.alert import Alert, AlertKind
from models.client import Client
from models.users import User
from models.sales_orders import SalesOrder, SalesOrderStatus
from models.sales_order_items import SalesOrderItem
from models.audit_log import AuditLog

__all__ = ['Alert', 'AlertKind', 'AuditLog', 'Category', 'Client', 'Medicine', 'MovementType', 'SalesOrder', 'SalesOrderItem', 'SalesOrderStatus', 'StockMovement', 'User']
