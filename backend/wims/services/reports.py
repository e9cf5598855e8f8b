# Read-only query surfaces. Nothing in here writes.

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from wims.models.movement_log import MovementLogEntry
from wims.models.order import Order
from wims.models.product import Product
from wims.models.user import User
from wims.services.errors import NotFound


def list_products(db: Session) -> List[Product]:
    return list(db.scalars(select(Product).order_by(Product.id.desc())))


def list_movements(
    db: Session,
    product_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[dict]:
    q = (
        select(MovementLogEntry, Product.sku, Product.name, User.username)
        .outerjoin(Product, Product.id == MovementLogEntry.product_id)
        .outerjoin(User, User.id == MovementLogEntry.user_id)
        .order_by(MovementLogEntry.timestamp.desc(), MovementLogEntry.id.desc())
    )
    if product_id is not None:
        q = q.where(MovementLogEntry.product_id == product_id)
    if limit is not None:
        q = q.limit(max(1, limit))

    return [
        {
            "id": m.id,
            "product_id": m.product_id,
            "product_sku": sku or "Deleted",
            "product_name": name or "Deleted",
            "user_id": m.user_id,
            "user_name": username or "System",
            "movement_type": m.movement_type,
            "quantity_change": m.quantity_change,
            "from_location": m.from_location,
            "to_location": m.to_location,
            "notes": m.notes,
            "timestamp": m.timestamp,
        }
        for m, sku, name, username in db.execute(q).all()
    ]


def low_stock(db: Session) -> List[Product]:
    return list(
        db.scalars(
            select(Product)
            .where(Product.quantity <= Product.reorder_point)
            .order_by(Product.quantity.asc(), Product.id)
        )
    )


def location_summary(db: Session) -> List[dict]:
    rows = db.execute(
        select(
            Product.location,
            func.count(Product.id),
            func.coalesce(func.sum(Product.quantity), 0),
        )
        .group_by(Product.location)
        .order_by(Product.location.asc())
    ).all()

    return [
        {"location": loc, "item_count": int(count), "total_quantity": int(total)}
        for loc, count, total in rows
    ]


def list_orders(db: Session) -> List[Order]:
    return list(
        db.scalars(
            select(Order)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
    )


def get_order(db: Session, order_id: int) -> Order:
    order = db.scalar(
        select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
    )
    if order is None:
        raise NotFound("Order not found.")
    return order
