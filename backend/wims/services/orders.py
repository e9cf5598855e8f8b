"""
Purchase order lifecycle.

    PENDING --receive--> RECEIVED
    PENDING --cancel---> CANCELLED

RECEIVED and CANCELLED are terminal. Receiving credits every line's product
and writes one RECEIPT movement per line, all in one unit of work.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from wims.core.clock import utcnow
from wims.core.config import settings
from wims.core.database import atomic
from wims.models.movement_log import MovementType
from wims.models.order import Order, OrderItem, OrderStatus
from wims.models.product import Product
from wims.models.supplier import Supplier
from wims.schemas import OrderCreate
from wims.services import audit, ledger, products
from wims.services.errors import InvalidInput, InvalidState, NotFound, TransactionFailure

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.RECEIVED, OrderStatus.CANCELLED},
    OrderStatus.RECEIVED: set(),
    OrderStatus.CANCELLED: set(),
}


def _locked_order(db: Session, order_id: int) -> Order:
    order = db.scalar(select(Order).where(Order.id == order_id).with_for_update())
    if order is None:
        raise NotFound("Order not found.")
    return order


def _transition(order: Order, target: OrderStatus) -> None:
    if target not in TRANSITIONS[OrderStatus(order.status)]:
        raise InvalidState("Order already processed.")
    order.status = target


def create_order(
    db: Session,
    payload: OrderCreate,
    *,
    actor_id: int,
    ip: Optional[str] = None,
) -> Order:
    if not payload.items:
        raise InvalidInput("Order must contain items.")

    total_cost = sum(
        (Decimal(item.quantity) * item.unit_cost for item in payload.items),
        Decimal("0"),
    ).quantize(CENTS)

    with atomic(db):
        if db.get(Supplier, payload.supplier_id) is None:
            raise InvalidInput("Unknown supplier.")

        wanted = {item.product_id for item in payload.items}
        found = set(db.scalars(select(Product.id).where(Product.id.in_(wanted))))
        missing = sorted(wanted - found)
        if missing:
            raise InvalidInput(f"Unknown product id(s): {', '.join(map(str, missing))}")

        order = Order(
            supplier_id=payload.supplier_id,
            user_id=actor_id,
            status=OrderStatus.PENDING,
            total_cost=total_cost,
            expected_delivery=payload.expected_delivery,
            notes=payload.notes,
            items=[
                OrderItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_cost=item.unit_cost,
                )
                for item in payload.items
            ],
        )
        db.add(order)
        db.flush()

        audit.record(
            db,
            user_id=actor_id,
            action="CREATE_ORDER",
            details=f"Created PO #{order.id} (${total_cost})",
            ip_address=ip,
        )

    db.refresh(order)
    logger.info("order created id=%s lines=%d total=%s", order.id, len(order.items), total_cost)
    return order


def receive_order(
    db: Session,
    order_id: int,
    *,
    actor_id: int,
    ip: Optional[str] = None,
) -> Order:
    with atomic(db):
        order = _locked_order(db, order_id)
        _transition(order, OrderStatus.RECEIVED)

        for item in order.items:
            product = products.lock_product(db, item.product_id)
            if product is None:
                if settings.receipt_policy == "strict":
                    raise TransactionFailure(
                        f"PO #{order.id}: product {item.product_id} no longer exists; receipt aborted."
                    )
                logger.warning(
                    "PO #%s: skipping line %s, product %s no longer exists",
                    order.id,
                    item.id,
                    item.product_id,
                )
                continue

            product.quantity = int(product.quantity or 0) + item.quantity
            db.flush()

            ledger.append(
                db,
                product_id=product.id,
                user_id=actor_id,
                movement_type=MovementType.RECEIPT,
                quantity_change=item.quantity,
                to_location=product.location,
                notes=f"PO #{order.id} Received",
            )

        order.received_at = utcnow()

        audit.record(
            db,
            user_id=actor_id,
            action="RECEIVE_ORDER",
            details=f"Received PO #{order.id}",
            ip_address=ip,
        )

    db.refresh(order)
    logger.info("order received id=%s", order.id)
    return order


def cancel_order(
    db: Session,
    order_id: int,
    *,
    actor_id: int,
    ip: Optional[str] = None,
) -> Order:
    with atomic(db):
        order = _locked_order(db, order_id)
        _transition(order, OrderStatus.CANCELLED)

        audit.record(
            db,
            user_id=actor_id,
            action="CANCEL_ORDER",
            details=f"Cancelled PO #{order.id}",
            ip_address=ip,
        )

    db.refresh(order)
    logger.info("order cancelled id=%s", order.id)
    return order
