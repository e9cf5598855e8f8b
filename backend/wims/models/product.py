from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    DateTime,
    Numeric,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from wims.core.clock import utcnow
from wims.core.database import Base


class Product(Base):
    __tablename__ = "products"

    __table_args__ = (
        # SAFETY CONSTRAINTS
        CheckConstraint("quantity >= 0", name="ck_quantity_non_negative"),
        CheckConstraint("reorder_point >= 0", name="ck_reorder_point_non_negative"),
        CheckConstraint("unit_cost IS NULL OR unit_cost >= 0", name="ck_unit_cost_non_negative"),

        # PERFORMANCE INDEXES
        Index("ix_products_location", "location"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # immutable after creation
    sku = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)

    # derived: always equals the sum of this product's movement rows
    quantity = Column(Integer, nullable=False, default=0)
    reorder_point = Column(Integer, nullable=False, default=10)

    location = Column(String(100), nullable=True)
    unit_cost = Column(Numeric(10, 2), nullable=True)
    expiration_date = Column(Date, nullable=True)

    # timestamps
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
    )

    movements = relationship(
        "MovementLogEntry",
        back_populates="product",
        order_by="MovementLogEntry.id",
        passive_deletes="all",
    )

    @property
    def is_low_stock(self) -> bool:
        return (self.quantity or 0) <= (self.reorder_point or 0)
