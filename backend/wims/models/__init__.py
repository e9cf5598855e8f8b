# Import every model so Base.metadata and relationship() strings resolve.
from wims.models.user import User
from wims.models.supplier import Supplier
from wims.models.product import Product
from wims.models.movement_log import MovementLogEntry, MovementType
from wims.models.order import Order, OrderItem, OrderStatus
from wims.models.audit_log import AuditLog

__all__ = [
    "User",
    "Supplier",
    "Product",
    "MovementLogEntry",
    "MovementType",
    "Order",
    "OrderItem",
    "OrderStatus",
    "AuditLog",
]
