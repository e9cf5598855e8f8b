# backend/wims/api/routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from wims.api.deps_auth import (
    CurrentUser,
    get_current_user,
    get_db,
    get_ip,
    require_admin,
    require_manager,
)
from wims.core.config import settings
from wims.schemas import (
    AuditLogOut,
    DriftOut,
    LocationSummary,
    MovementOut,
    OrderCreate,
    OrderOut,
    ProductCreate,
    ProductOut,
    ProductUpdate,
)
from wims.services import audit, ledger, orders, products, reports

router = APIRouter()

# ---------- INVENTORY (any role can read) ----------

@router.get("/inventory", response_model=List[ProductOut], tags=["inventory"])
def list_products(
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
):
    return reports.list_products(db)

# ---------- INVENTORY (manager/admin write, admin delete) ----------

@router.post(
    "/inventory",
    response_model=ProductOut,
    status_code=status.HTTP_201_CREATED,
    tags=["inventory"],
)
def create_product(
    payload: ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_manager),
):
    return products.create_product(db, payload, actor_id=user.id, ip=get_ip(request))


@router.put("/inventory/{product_id}", response_model=ProductOut, tags=["inventory"])
def update_product(
    product_id: int,
    payload: ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_manager),
):
    return products.update_product(db, product_id, payload, actor_id=user.id, ip=get_ip(request))


@router.delete("/inventory/{product_id}", tags=["inventory"])
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    products.delete_product(db, product_id, actor_id=user.id, ip=get_ip(request))
    return {"ok": True, "message": "Product deleted."}

# ---------- PURCHASE ORDERS ----------

@router.get("/orders", response_model=List[OrderOut], tags=["orders"])
def list_orders(
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
):
    return reports.list_orders(db)


@router.get("/orders/{order_id}", response_model=OrderOut, tags=["orders"])
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
):
    return reports.get_order(db, order_id)


@router.post(
    "/orders",
    response_model=OrderOut,
    status_code=status.HTTP_201_CREATED,
    tags=["orders"],
)
def create_order(
    payload: OrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_manager),
):
    return orders.create_order(db, payload, actor_id=user.id, ip=get_ip(request))


@router.post("/orders/{order_id}/receive", response_model=OrderOut, tags=["orders"])
def receive_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_manager),
):
    return orders.receive_order(db, order_id, actor_id=user.id, ip=get_ip(request))


@router.post("/orders/{order_id}/cancel", response_model=OrderOut, tags=["orders"])
def cancel_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_manager),
):
    return orders.cancel_order(db, order_id, actor_id=user.id, ip=get_ip(request))

# ---------- REPORTS (read-only) ----------

@router.get("/reports/movement", response_model=List[MovementOut], tags=["reports"])
def movement_log(
    product_id: Optional[int] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(require_manager),
):
    return reports.list_movements(db, product_id=product_id, limit=limit)


@router.get("/reports/lowstock", response_model=List[ProductOut], tags=["reports"])
def low_stock(
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(require_manager),
):
    return reports.low_stock(db)


@router.get("/reports/summary/location", response_model=List[LocationSummary], tags=["reports"])
def location_summary(
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(require_manager),
):
    return reports.location_summary(db)


@router.get("/reports/audit", response_model=List[AuditLogOut], tags=["reports"])
def audit_logs(
    limit: int = settings.audit_log_limit,
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(require_admin),
):
    return audit.recent(db, limit)


@router.get("/reports/consistency", response_model=List[DriftOut], tags=["reports"])
def ledger_consistency(
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(require_admin),
):
    return [d._asdict() for d in ledger.find_drift(db)]
