import enum

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    CheckConstraint,
    event,
)
from sqlalchemy.orm import relationship

from wims.core.clock import utcnow
from wims.core.database import Base
from wims.services.errors import LedgerImmutableError


class MovementType(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"
    RECEIPT = "RECEIPT"
    DISPATCH = "DISPATCH"
    MOVE = "MOVE"


class MovementLogEntry(Base):
    """One row of the append-only stock ledger."""

    __tablename__ = "product_movement_log"

    __table_args__ = (
        # only a pure relocation may carry a zero delta
        CheckConstraint(
            "quantity_change <> 0 OR movement_type = 'MOVE'",
            name="ck_movement_nonzero_unless_move",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    # null when system-initiated
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    movement_type = Column(
        Enum(MovementType, name="movement_type", native_enum=False, length=20),
        nullable=False,
    )
    quantity_change = Column(Integer, nullable=False)

    from_location = Column(String(100), nullable=True)
    to_location = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)

    product = relationship("Product", back_populates="movements")
    user = relationship("User")


@event.listens_for(MovementLogEntry, "before_update")
def _reject_movement_update(mapper, connection, target):
    raise LedgerImmutableError(f"Movement {target.id} is immutable and cannot be updated.")


@event.listens_for(MovementLogEntry, "before_delete")
def _reject_movement_delete(mapper, connection, target):
    raise LedgerImmutableError(f"Movement {target.id} is immutable and cannot be deleted.")
