import threading
import time

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from wims.core.database import atomic
from wims.models.audit_log import AuditLog
from wims.models.movement_log import MovementLogEntry, MovementType
from wims.models.order import Order, OrderStatus
from wims.models.product import Product
from wims.models.supplier import Supplier
from wims.models.user import User
from wims.schemas import OrderCreate, ProductCreate, ProductUpdate
from wims.services import audit, ledger, orders, products
from wims.services.errors import Conflict, TransactionFailure


def _write_everything(db, actor):
    p = Product(sku="TX-001", name="Pallet Wrap", quantity=3, location="D-1")
    db.add(p)
    db.flush()
    ledger.append(db, product_id=p.id, user_id=actor.id, movement_type=MovementType.RECEIPT, quantity_change=3)
    audit.record(db, user_id=actor.id, action="CREATE_PRODUCT", details="Created product TX-001")
    return p


def _row_counts(db):
    return (db.query(Product).count(), db.query(MovementLogEntry).count(), db.query(AuditLog).count())


def test_commit_persists_all_three_writes(db, admin):
    with atomic(db):
        _write_everything(db, admin)

    db.rollback()
    assert _row_counts(db) == (1, 1, 1)


def test_domain_error_rolls_back_and_propagates(db, admin):
    with pytest.raises(Conflict):
        with atomic(db):
            _write_everything(db, admin)
            raise Conflict("late conflict")

    assert _row_counts(db) == (0, 0, 0)


def test_store_error_surfaces_as_transaction_failure(db, admin):
    with pytest.raises(TransactionFailure) as exc_info:
        with atomic(db):
            _write_everything(db, admin)
            raise OperationalError("UPDATE products", {}, Exception("database is locked"))

    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert _row_counts(db) == (0, 0, 0)


def test_unexpected_error_rolls_back_and_propagates(db, admin):
    with pytest.raises(RuntimeError):
        with atomic(db):
            _write_everything(db, admin)
            raise RuntimeError("request cancelled")

    assert _row_counts(db) == (0, 0, 0)


def test_constraint_violation_is_transaction_failure(db, admin):
    with pytest.raises(TransactionFailure):
        with atomic(db):
            db.add(Product(sku="NEG-001", name="Broken", quantity=-5))
            db.flush()

    assert db.query(Product).count() == 0


# ---------- concurrent writers (file-backed SQLite, one session per thread) ----------


def _seed_file_db(factory):
    s = factory()
    try:
        user = User(username="manager", name="Manager", role="manager", password_hash="x")
        supplier = Supplier(name="ACME Industrial")
        s.add_all([user, supplier])
        s.commit()
        p = products.create_product(
            s, ProductCreate(sku="ELEC-001", name="USB-C Cable", quantity=10, location="A-1"), actor_id=user.id
        )
        return user.id, supplier.id, p.id
    finally:
        s.close()


def _hold_first_read(monkeypatch):
    """The first product read signals and then keeps its transaction open briefly."""
    real_lock_product = products.lock_product
    first_read = threading.Event()

    def lock_product(db, product_id):
        p = real_lock_product(db, product_id)
        if not first_read.is_set():
            first_read.set()
            time.sleep(0.3)
        return p

    monkeypatch.setattr(products, "lock_product", lock_product)
    return first_read


def _run_racing(first_read, first, second):
    errors = []

    def guarded(fn):
        def run():
            try:
                fn()
            except Exception as e:
                errors.append(e)

        return run

    t1 = threading.Thread(target=guarded(first))
    t1.start()
    assert first_read.wait(timeout=5)
    # the second writer starts while the first still holds its read
    t2 = threading.Thread(target=guarded(second))
    t2.start()
    t1.join(timeout=10)
    t2.join(timeout=10)
    return errors


def test_concurrent_updates_on_one_product_serialize(file_engine, monkeypatch):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    user_id, _, product_id = _seed_file_db(factory)
    first_read = _hold_first_read(monkeypatch)

    def set_quantity(qty):
        def run():
            s = factory()
            try:
                products.update_product(s, product_id, ProductUpdate(quantity=qty), actor_id=user_id)
            finally:
                s.close()

        return run

    errors = _run_racing(first_read, set_quantity(7), set_quantity(15))
    assert errors == []

    db = factory()
    try:
        assert db.get(Product, product_id).quantity == 15
        assert ledger.ledger_balance(db, product_id) == 15
        deltas = [
            m.quantity_change
            for m in db.query(MovementLogEntry).filter_by(product_id=product_id).order_by(MovementLogEntry.id)
        ]
        assert deltas == [10, -3, 8]
        assert ledger.find_drift(db) == []
    finally:
        db.close()


def test_concurrent_receipts_for_one_product_serialize(file_engine, monkeypatch):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    user_id, supplier_id, product_id = _seed_file_db(factory)

    s = factory()
    try:
        order_ids = [
            orders.create_order(
                s,
                OrderCreate(
                    supplier_id=supplier_id,
                    items=[{"product_id": product_id, "quantity": qty, "unit_cost": "2.00"}],
                ),
                actor_id=user_id,
            ).id
            for qty in (5, 4)
        ]
    finally:
        s.close()

    first_read = _hold_first_read(monkeypatch)

    def receive(order_id):
        def run():
            s = factory()
            try:
                orders.receive_order(s, order_id, actor_id=user_id)
            finally:
                s.close()

        return run

    errors = _run_racing(first_read, receive(order_ids[0]), receive(order_ids[1]))
    assert errors == []

    db = factory()
    try:
        assert db.get(Product, product_id).quantity == 19
        assert [db.get(Order, oid).status for oid in order_ids] == [OrderStatus.RECEIVED] * 2
        assert ledger.find_drift(db) == []
    finally:
        db.close()
