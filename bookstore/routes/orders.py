from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from bookstore.constants.roles import is_staff
from bookstore.database import get_session
from bookstore.dependencies.auth import require_staff
from bookstore.dependencies.services import get_order_service
from bookstore.exceptions import Forbidden
from bookstore.models.user import User
from bookstore.schemas.orders_schemas import PlaceOrderRequest, PlaceOrderResponse, PlacedOrderItem
from bookstore.services.order_service import OrderService, serialize_order
from bookstore.services.receipt_service import build_receipt_pdf
from bookstore.utils.token import get_current_user

router = APIRouter()


@router.post("", response_model=PlaceOrderResponse)
def place_order(
    data: PlaceOrderRequest | None = None,
    orders: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_user),
):
    items = None
    if data and data.items is not None:
        items = [(line.book_id, line.quantity) for line in data.items]

    placed = orders.place_order(current_user.id, items)
    order = placed.order

    return PlaceOrderResponse(
        order_id=order.id,
        claim_code=order.claim_code,
        subtotal=order.subtotal,
        total_amount=order.total_amount,
        discount_applied=order.discount_applied,
        discount_message=placed.discount_message,
        items=[
            PlacedOrderItem(
                book_id=i.book_id,
                book_title=i.book_title,
                quantity=i.quantity,
                unit_price=i.unit_price,
                discount=i.discount,
                line_total=i.line_total,
            )
            for i in order.items
        ],
    )


@router.get("/mine")
def my_orders(
    orders: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_user),
):
    return [serialize_order(o, current_user) for o in orders.get_orders_by_user(current_user.id)]


@router.get("/notifications")
def order_notifications(
    orders: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_user),
):
    return orders.get_order_notifications(current_user.id)


@router.get("/pending")
def pending_orders(
    orders: OrderService = Depends(get_order_service),
    session: Session = Depends(get_session),
    _: User = Depends(require_staff),
):
    return [serialize_order(o, session.get(User, o.user_id)) for o in orders.get_pending_orders()]


@router.get("/completed")
def completed_orders(
    orders: OrderService = Depends(get_order_service),
    session: Session = Depends(get_session),
    _: User = Depends(require_staff),
):
    return [serialize_order(o, session.get(User, o.user_id)) for o in orders.get_completed_orders()]


@router.get("/claim/{claim_code}")
def order_by_claim_code(
    claim_code: str,
    orders: OrderService = Depends(get_order_service),
    session: Session = Depends(get_session),
    _: User = Depends(require_staff),
):
    order = orders.get_order_by_claim_code(claim_code)
    return serialize_order(order, session.get(User, order.user_id))


@router.put("/{order_id}/cancel")
def cancel_order(
    order_id: int,
    orders: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_user),
):
    order = orders.cancel_order(current_user.id, order_id, role=current_user.role)
    return {"message": "Order cancelled successfully.", "order_id": order.id, "status": order.status}


@router.get("/{order_id}/receipt")
def download_receipt(
    order_id: int,
    orders: OrderService = Depends(get_order_service),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = _visible_order(orders, order_id, current_user)
    pdf = build_receipt_pdf(order, session.get(User, order.user_id))
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="receipt_{order.id}.pdf"'},
    )


@router.get("/{order_id}")
def order_details(
    order_id: int,
    orders: OrderService = Depends(get_order_service),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = _visible_order(orders, order_id, current_user)
    return serialize_order(order, session.get(User, order.user_id))


def _visible_order(orders: OrderService, order_id: int, user: User):
    order = orders.get_order(order_id)
    if order.user_id != user.id and not is_staff(user.role):
        raise Forbidden("You can only view your own orders")
    return order
