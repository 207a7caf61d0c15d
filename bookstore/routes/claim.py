from fastapi import APIRouter, Depends

from bookstore.dependencies.auth import require_staff
from bookstore.dependencies.services import get_order_service
from bookstore.models.user import User
from bookstore.schemas.orders_schemas import ClaimCodeRequest, CompleteOrderResponse
from bookstore.services.order_service import OrderService, serialize_order_item

router = APIRouter()


@router.post("/verify", response_model=CompleteOrderResponse)
def verify_claim_code(
    claim: ClaimCodeRequest,
    orders: OrderService = Depends(get_order_service),
    _: User = Depends(require_staff),
):
    completed = orders.complete_order(claim.claim_code)
    return CompleteOrderResponse(
        message="Order completed successfully.",
        user_id=completed.user_id,
        items=[serialize_order_item(i) for i in completed.items],
    )
