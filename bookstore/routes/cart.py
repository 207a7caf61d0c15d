from fastapi import APIRouter, Depends

from bookstore.dependencies.services import get_cart_service, get_order_service
from bookstore.models.user import User
from bookstore.schemas.cart_schemas import CartAddRequest, CartUpdateRequest
from bookstore.services.cart_service import CartService
from bookstore.services.order_service import OrderService
from bookstore.utils.token import get_current_user

router = APIRouter()


# Add to Cart

@router.post("/add")
def add_to_cart(
    data: CartAddRequest,
    cart: CartService = Depends(get_cart_service),
    current_user: User = Depends(get_current_user)
):
    item = cart.add_item(current_user.id, data.book_id, data.quantity)
    return {"message": "Added to cart", "item": item}


# View Cart

@router.get("")
def get_cart(
    cart: CartService = Depends(get_cart_service),
    orders: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_user)
):
    completed = orders.get_successful_order_count(current_user.id)
    return cart.get_cart(current_user.id, completed_order_count=completed)


# Update Cart

@router.put("/update/{book_id}")
def update_cart_item(
    book_id: int,
    data: CartUpdateRequest,
    cart: CartService = Depends(get_cart_service),
    current_user: User = Depends(get_current_user)
):
    item = cart.update_item(current_user.id, book_id, data.quantity)
    if item is None:
        return {"message": "Item removed"}
    return {"message": "Quantity updated", "item": item}


# Remove Cart

@router.delete("/remove/{book_id}")
def remove_item(
    book_id: int,
    cart: CartService = Depends(get_cart_service),
    current_user: User = Depends(get_current_user)
):
    cart.remove_item(current_user.id, book_id)
    return {"message": "Item removed from cart"}


# Clear Cart

@router.delete("/clear")
def clear_cart(
    cart: CartService = Depends(get_cart_service),
    current_user: User = Depends(get_current_user)
):
    cart.clear(current_user.id)
    return {"message": "Cart cleared"}
