"""
Movement ledger: the append-only record of why a product's quantity or
location changed.

``Product.quantity`` must always equal the sum of ``quantity_change`` over the
product's entries. The ledger does not enforce that on its own; callers write
the product row and its entry inside one ``atomic`` unit.
"""

import logging
from typing import List, NamedTuple, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from wims.models.movement_log import MovementLogEntry, MovementType
from wims.models.product import Product
from wims.services.errors import InvalidInput

logger = logging.getLogger(__name__)


class Drift(NamedTuple):
    product_id: int
    sku: str
    quantity: int
    ledger_quantity: int


def _loc(value: Optional[str]) -> str:
    return value if value else "-"


def classify_movement(
    delta: int,
    location_changed: bool,
    old_location: Optional[str] = None,
    new_location: Optional[str] = None,
) -> Optional[Tuple[MovementType, str]]:
    """
    Pick the movement type and note for a manual product edit.

    Returns None when neither quantity nor location changed.
    """
    if delta == 0 and not location_changed:
        return None

    moved = f"from {_loc(old_location)} to {_loc(new_location)}"

    if delta == 0:
        return MovementType.MOVE, f"Moved {moved}"

    direction = "IN" if delta > 0 else "OUT"
    note = f"Manual Update ({direction})"

    if location_changed:
        return MovementType.ADJUSTMENT, f"{note}; moved {moved}"

    return (MovementType.IN if delta > 0 else MovementType.OUT), note


def append(
    db: Session,
    *,
    product_id: int,
    user_id: Optional[int],
    movement_type: MovementType,
    quantity_change: int,
    from_location: Optional[str] = None,
    to_location: Optional[str] = None,
    notes: Optional[str] = None,
) -> MovementLogEntry:
    if quantity_change == 0:
        if movement_type != MovementType.MOVE:
            raise InvalidInput(f"{movement_type.value} movement needs a non-zero quantity change.")
        if from_location == to_location:
            raise InvalidInput("MOVE movement needs differing locations.")

    entry = MovementLogEntry(
        product_id=product_id,
        user_id=user_id,
        movement_type=movement_type,
        quantity_change=quantity_change,
        from_location=from_location,
        to_location=to_location,
        notes=notes,
    )
    db.add(entry)
    db.flush()

    logger.info(
        "movement product_id=%s type=%s change=%+d to=%s",
        product_id,
        movement_type.value,
        quantity_change,
        to_location,
    )
    return entry


def ledger_balance(db: Session, product_id: int) -> int:
    total = db.scalar(
        select(func.coalesce(func.sum(MovementLogEntry.quantity_change), 0)).where(
            MovementLogEntry.product_id == product_id
        )
    )
    return int(total or 0)


def has_history(db: Session, product_id: int) -> bool:
    return (
        db.scalar(
            select(MovementLogEntry.id).where(MovementLogEntry.product_id == product_id).limit(1)
        )
        is not None
    )


def find_drift(db: Session) -> List[Drift]:
    """Products whose stored quantity disagrees with their ledger sum."""
    sums = (
        select(
            MovementLogEntry.product_id.label("product_id"),
            func.sum(MovementLogEntry.quantity_change).label("total"),
        )
        .group_by(MovementLogEntry.product_id)
        .subquery()
    )

    rows = db.execute(
        select(Product.id, Product.sku, Product.quantity, func.coalesce(sums.c.total, 0))
        .outerjoin(sums, sums.c.product_id == Product.id)
        .where(Product.quantity != func.coalesce(sums.c.total, 0))
        .order_by(Product.id)
    ).all()

    drift = [Drift(pid, sku, int(qty), int(total)) for pid, sku, qty, total in rows]
    if drift:
        logger.warning("ledger drift on %d product(s)", len(drift))
    return drift
