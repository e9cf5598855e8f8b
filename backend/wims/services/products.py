"""
Product store: the only writer of ``Product`` rows.

Every mutation runs inside ``atomic`` and, where stock or location changes,
appends exactly one ledger entry explaining it.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wims.core.database import atomic
from wims.models.movement_log import MovementType
from wims.models.order import OrderItem
from wims.models.product import Product
from wims.schemas import ProductCreate, ProductUpdate
from wims.services import audit, ledger
from wims.services.errors import Conflict, NotFound

logger = logging.getLogger(__name__)

# columns that cannot be cleared with an explicit null
_NOT_NULLABLE = {"name", "quantity", "reorder_point"}


def lock_product(db: Session, product_id: int) -> Optional[Product]:
    # row lock on PostgreSQL; on SQLite the unit already holds the write lock
    return db.scalar(select(Product).where(Product.id == product_id).with_for_update())


def _locked_product(db: Session, product_id: int) -> Product:
    p = lock_product(db, product_id)
    if p is None:
        raise NotFound("Product not found.")
    return p


def create_product(
    db: Session,
    payload: ProductCreate,
    *,
    actor_id: Optional[int],
    ip: Optional[str] = None,
) -> Product:
    with atomic(db):
        if db.scalar(select(Product.id).where(Product.sku == payload.sku)) is not None:
            raise Conflict("SKU already exists.")

        p = Product(**payload.model_dump())
        db.add(p)
        try:
            db.flush()
        except IntegrityError as e:
            # lost a race against a concurrent insert of the same SKU
            raise Conflict("SKU already exists.") from e

        if p.quantity > 0:
            ledger.append(
                db,
                product_id=p.id,
                user_id=actor_id,
                movement_type=MovementType.RECEIPT,
                quantity_change=p.quantity,
                to_location=p.location,
                notes="Initial Stock",
            )

        audit.record(
            db,
            user_id=actor_id,
            action="CREATE_PRODUCT",
            details=f"Created product {p.sku} ({p.name})",
            ip_address=ip,
        )

    db.refresh(p)
    logger.info("product created id=%s sku=%s quantity=%s", p.id, p.sku, p.quantity)
    return p


def update_product(
    db: Session,
    product_id: int,
    payload: ProductUpdate,
    *,
    actor_id: Optional[int],
    ip: Optional[str] = None,
) -> Product:
    changes = {
        k: v
        for k, v in payload.model_dump(exclude_unset=True).items()
        if not (v is None and k in _NOT_NULLABLE)
    }

    with atomic(db):
        p = _locked_product(db, product_id)

        old_qty = int(p.quantity or 0)
        old_loc = p.location
        new_qty = int(changes.get("quantity", old_qty))
        new_loc = changes.get("location", old_loc)

        delta = new_qty - old_qty
        location_changed = new_loc != old_loc

        for k, v in changes.items():
            setattr(p, k, v)
        db.flush()

        movement = ledger.classify_movement(delta, location_changed, old_loc, new_loc)
        if movement is not None:
            movement_type, notes = movement
            ledger.append(
                db,
                product_id=p.id,
                user_id=actor_id,
                movement_type=movement_type,
                quantity_change=delta,
                from_location=old_loc,
                to_location=new_loc,
                notes=notes,
            )

        audit.record(
            db,
            user_id=actor_id,
            action="UPDATE_PRODUCT",
            details=f"Updated SKU {p.sku}",
            ip_address=ip,
        )

    db.refresh(p)
    logger.info("product updated id=%s delta=%+d location_changed=%s", p.id, delta, location_changed)
    return p


def delete_product(
    db: Session,
    product_id: int,
    *,
    actor_id: Optional[int],
    ip: Optional[str] = None,
) -> None:
    with atomic(db):
        p = _locked_product(db, product_id)

        if ledger.has_history(db, p.id):
            raise Conflict("Product has stock movement history and cannot be deleted.")

        if db.scalar(select(OrderItem.id).where(OrderItem.product_id == p.id).limit(1)) is not None:
            raise Conflict("Product is referenced by purchase orders and cannot be deleted.")

        audit.record(
            db,
            user_id=actor_id,
            action="DELETE_PRODUCT",
            details=f"Deleted product {p.sku}",
            ip_address=ip,
        )
        db.delete(p)

    logger.info("product deleted id=%s", product_id)
