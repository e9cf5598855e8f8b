from decimal import Decimal

import pytest
from sqlalchemy import delete

from wims.core.config import settings
from wims.models.audit_log import AuditLog
from wims.models.movement_log import MovementLogEntry, MovementType
from wims.models.order import Order, OrderStatus
from wims.models.product import Product
from wims.schemas import OrderCreate, ProductCreate
from wims.services import orders, products
from wims.services.errors import InvalidInput, InvalidState, NotFound, TransactionFailure


@pytest.fixture()
def stock(db, admin):
    a = products.create_product(
        db, ProductCreate(sku="ELEC-001", name="USB-C Cable", quantity=7, location="A-1"), actor_id=admin.id
    )
    b = products.create_product(
        db, ProductCreate(sku="PACK-001", name="Shipping Box", quantity=0, location="B-2"), actor_id=admin.id
    )
    return a, b


def _order(db, actor, supplier, lines):
    payload = OrderCreate(
        supplier_id=supplier.id,
        notes="restock",
        items=[{"product_id": p.id, "quantity": q, "unit_cost": c} for p, q, c in lines],
    )
    return orders.create_order(db, payload, actor_id=actor.id)


class TestCreateOrder:
    def test_total_cost_and_no_stock_effect(self, db, admin, supplier, stock, assert_no_drift):
        a, b = stock
        before = db.query(MovementLogEntry).count()

        order = _order(db, admin, supplier, [(a, 5, "2.00"), (b, 3, "0.35")])

        assert order.status == OrderStatus.PENDING
        assert order.total_cost == Decimal("11.05")
        assert [i.subtotal for i in order.items] == [Decimal("10.00"), Decimal("1.05")]
        assert db.get(Product, a.id).quantity == 7
        assert db.query(MovementLogEntry).count() == before
        assert_no_drift()

    def test_audit_row_written(self, db, admin, supplier, stock):
        order = _order(db, admin, supplier, [(stock[0], 5, "2.00")])
        [a] = db.query(AuditLog).filter_by(action="CREATE_ORDER").all()
        assert a.details == f"Created PO #{order.id} ($10.00)"

    def test_empty_items_rejected(self, db, admin, supplier):
        payload = OrderCreate.model_construct(supplier_id=supplier.id, items=[])
        with pytest.raises(InvalidInput):
            orders.create_order(db, payload, actor_id=admin.id)
        assert db.query(Order).count() == 0

    def test_unknown_product_rejected(self, db, admin, supplier, stock):
        payload = OrderCreate(
            supplier_id=supplier.id,
            items=[
                {"product_id": stock[0].id, "quantity": 1, "unit_cost": "1.00"},
                {"product_id": 404, "quantity": 1, "unit_cost": "1.00"},
            ],
        )
        with pytest.raises(InvalidInput, match="404"):
            orders.create_order(db, payload, actor_id=admin.id)
        assert db.query(Order).count() == 0

    def test_unknown_supplier_rejected(self, db, admin, stock):
        payload = OrderCreate(supplier_id=77, items=[{"product_id": stock[0].id, "quantity": 1, "unit_cost": "1"}])
        with pytest.raises(InvalidInput):
            orders.create_order(db, payload, actor_id=admin.id)


class TestReceiveOrder:
    def test_credits_every_line(self, db, admin, supplier, stock, assert_no_drift):
        a, b = stock
        order = _order(db, admin, supplier, [(a, 5, "2.00"), (b, 3, "0.35")])

        order = orders.receive_order(db, order.id, actor_id=admin.id)

        assert order.status == OrderStatus.RECEIVED
        assert order.received_at is not None
        assert order.received_at.tzinfo is None
        assert order.total_cost == Decimal("11.05")
        assert db.get(Product, a.id).quantity == 12
        assert db.get(Product, b.id).quantity == 3

        receipts = (
            db.query(MovementLogEntry)
            .filter(MovementLogEntry.notes == f"PO #{order.id} Received")
            .order_by(MovementLogEntry.id)
            .all()
        )
        assert [(m.product_id, m.movement_type, m.quantity_change, m.to_location) for m in receipts] == [
            (a.id, MovementType.RECEIPT, 5, "A-1"),
            (b.id, MovementType.RECEIPT, 3, "B-2"),
        ]
        assert db.query(AuditLog).filter_by(action="RECEIVE_ORDER").count() == 1
        assert_no_drift()

    def test_second_receive_fails_without_double_credit(self, db, admin, supplier, stock, assert_no_drift):
        a, _ = stock
        order = _order(db, admin, supplier, [(a, 5, "2.00")])
        orders.receive_order(db, order.id, actor_id=admin.id)
        movements = db.query(MovementLogEntry).count()

        with pytest.raises(InvalidState, match="already processed"):
            orders.receive_order(db, order.id, actor_id=admin.id)

        assert db.get(Product, a.id).quantity == 12
        assert db.query(MovementLogEntry).count() == movements
        assert db.query(AuditLog).filter_by(action="RECEIVE_ORDER").count() == 1
        assert_no_drift()

    def test_unknown_order(self, db, admin):
        with pytest.raises(NotFound):
            orders.receive_order(db, 123, actor_id=admin.id)

    def test_missing_product_aborts_whole_receipt(self, db, admin, supplier, stock, assert_no_drift):
        a, b = stock
        order = _order(db, admin, supplier, [(a, 5, "2.00"), (b, 3, "0.35")])

        # b has no history, so it can vanish out from under the order
        db.execute(delete(Product).where(Product.id == b.id))
        db.commit()

        with pytest.raises(TransactionFailure):
            orders.receive_order(db, order.id, actor_id=admin.id)

        db.expire_all()
        assert db.get(Order, order.id).status == OrderStatus.PENDING
        assert db.get(Product, a.id).quantity == 7
        assert db.query(MovementLogEntry).filter(MovementLogEntry.notes.like(f"PO #{order.id}%")).count() == 0
        assert db.query(AuditLog).filter_by(action="RECEIVE_ORDER").count() == 0
        assert_no_drift()

    def test_lenient_policy_skips_missing_product(self, db, admin, supplier, stock, monkeypatch, assert_no_drift):
        a, b = stock
        order = _order(db, admin, supplier, [(a, 5, "2.00"), (b, 3, "0.35")])
        db.execute(delete(Product).where(Product.id == b.id))
        db.commit()
        monkeypatch.setattr(settings, "receipt_policy", "lenient")

        order = orders.receive_order(db, order.id, actor_id=admin.id)

        assert order.status == OrderStatus.RECEIVED
        assert db.get(Product, a.id).quantity == 12
        assert_no_drift()


class TestCancelOrder:
    def test_cancel_has_no_ledger_effect(self, db, admin, supplier, stock, assert_no_drift):
        a, _ = stock
        order = _order(db, admin, supplier, [(a, 5, "2.00")])
        before = db.query(MovementLogEntry).count()

        order = orders.cancel_order(db, order.id, actor_id=admin.id)

        assert order.status == OrderStatus.CANCELLED
        assert db.query(MovementLogEntry).count() == before
        assert db.get(Product, a.id).quantity == 7
        assert_no_drift()

    def test_cancelled_order_cannot_be_received(self, db, admin, supplier, stock):
        order = _order(db, admin, supplier, [(stock[0], 5, "2.00")])
        orders.cancel_order(db, order.id, actor_id=admin.id)

        with pytest.raises(InvalidState):
            orders.receive_order(db, order.id, actor_id=admin.id)
        assert db.get(Product, stock[0].id).quantity == 7

    def test_received_order_cannot_be_cancelled(self, db, admin, supplier, stock):
        order = _order(db, admin, supplier, [(stock[0], 5, "2.00")])
        orders.receive_order(db, order.id, actor_id=admin.id)

        with pytest.raises(InvalidState):
            orders.cancel_order(db, order.id, actor_id=admin.id)
