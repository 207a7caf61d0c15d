# -------- STAFF ORDER LISTING --------
from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import String, cast
from sqlmodel import Session, or_, select

from bookstore.constants.order_status import OrderStatus
from bookstore.database import get_session
from bookstore.dependencies.auth import require_staff
from bookstore.models.order import Order
from bookstore.models.user import User
from bookstore.utils.pagination import paginate

router = APIRouter()


@router.get("")
def list_orders(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    session: Session = Depends(get_session),
    _: User = Depends(require_staff),
):
    query = (
        select(Order, User)
        .join(User, User.id == Order.user_id)
    )

    if search:
        like = f"%{search}%"
        query = query.where(or_(
            User.first_name.ilike(like),
            User.last_name.ilike(like),
            Order.claim_code.ilike(like),
            cast(Order.id, String).ilike(like),
        ))

    if status:
        query = query.where(Order.status == status.value)

    if start_date:
        query = query.where(Order.order_date >= datetime.combine(start_date, time.min))

    if end_date:
        query = query.where(Order.order_date <= datetime.combine(end_date, time.max))

    query = query.order_by(Order.order_date.desc(), Order.id.desc())

    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=lambda row: {
            "order_id": row[0].id,
            "claim_code": row[0].claim_code,
            "customer_name": row[1].full_name,
            "date": row[0].order_date,
            "total_amount": row[0].total_amount,
            "status": row[0].status,
        },
    )
