# backend/wims/seed.py
#
# DEV ONLY: python -m wims.seed
# Stock is seeded through the product store so every unit has a ledger row.

import logging

import wims.models  # noqa: F401
from wims.core.database import SessionLocal, engine, Base
from wims.core.logging import configure_logging
from wims.core.seed import seed_suppliers_if_empty, seed_users_if_empty
from wims.models.product import Product
from wims.models.user import User
from wims.schemas import ProductCreate
from wims.services import products as product_store

logger = logging.getLogger(__name__)

DEMO_PRODUCTS = [
    ProductCreate(sku="ELEC-001", name="USB-C Cable", category="Electronics", quantity=40, reorder_point=15, location="A-01", unit_cost="2.50"),
    ProductCreate(sku="ELEC-002", name="Power Adapter", category="Electronics", quantity=8, reorder_point=10, location="A-02", unit_cost="11.00"),
    ProductCreate(sku="PACK-001", name="Shipping Box (M)", category="Packaging", quantity=120, reorder_point=50, location="B-01", unit_cost="0.40"),
]


def main():
    configure_logging()

    # make sure tables exist
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_users_if_empty(db)
        seed_suppliers_if_empty(db)

        admin = db.query(User).filter(User.username == "admin").first()

        for payload in DEMO_PRODUCTS:
            if db.query(Product).filter(Product.sku == payload.sku).first():
                continue
            product_store.create_product(db, payload, actor_id=admin.id if admin else None, ip=None)

        logger.info("database seeded")
    finally:
        db.close()


if __name__ == "__main__":
    main()
