from fastapi import Depends, HTTPException
from bookstore.constants.roles import ADMIN, is_staff
from bookstore.models.user import User
from bookstore.utils.token import get_current_user


def require_staff(current_user: User = Depends(get_current_user)):
    if not is_staff(current_user.role):
        raise HTTPException(status_code=403, detail="Staff access required")
    return current_user


def require_admin(current_user: User = Depends(get_current_user)):
    if current_user.role != ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
