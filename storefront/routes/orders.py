from typing import Dict, List, Union

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.errors import AuthorizationError, OrderNotFound
from storefront.models.order import Order
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.orders_schemas import AdminOrderView, OrderView
from storefront.services.order_ledger import OrderLedger
from storefront.utils.token import get_current_user

router = APIRouter()


def _titles(session: Session, orders: List[Order]) -> Dict[int, str]:
    ids = {o.product_id for o in orders}
    if not ids:
        return {}
    rows = session.exec(select(Product.id, Product.title).where(Product.id.in_(ids))).all()
    return {pid: title for pid, title in rows}


@router.get("/my-orders", response_model=List[OrderView])
def my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    orders = OrderLedger(session).list_for_user(current_user.id)
    titles = _titles(session, orders)
    return [OrderView.from_order(o, titles.get(o.product_id)) for o in orders]


@router.get("", response_model=List[AdminOrderView])
def all_orders(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    orders = OrderLedger(session).list_all()
    titles = _titles(session, orders)
    return [AdminOrderView.from_order(o, titles.get(o.product_id)) for o in orders]


@router.get("/{order_id}", response_model=Union[AdminOrderView, OrderView])
def get_order(
    order_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = OrderLedger(session).get(order_id)
    if not order:
        raise OrderNotFound()

    if order.user_id != current_user.id and not current_user.is_admin:
        raise AuthorizationError("Not authorized")

    product = session.get(Product, order.product_id)
    title = product.title if product else None

    if current_user.is_admin:
        return AdminOrderView.from_order(order, title)
    return OrderView.from_order(order, title)
