from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from bookstore.constants.roles import STAFF, USER
from bookstore.database import get_session
from bookstore.dependencies.auth import require_admin
from bookstore.models.user import User
from bookstore.schemas.user_schemas import UserRegister, UserLogin, Token, UserResponse
from bookstore.utils.hash import hash_password, verify_password
from bookstore.utils.token import create_access_token


router = APIRouter()


def _create_user(payload: UserRegister, session: Session, role: str) -> User:
    existing_user = session.exec(select(User).where(User.email == payload.email)).first()
    if existing_user:
        raise HTTPException(400, "Email already registered")

    user = User(
        first_name=payload.first_name,
        last_name=payload.last_name or "",
        username=payload.username or payload.email,
        email=payload.email,
        password=hash_password(payload.password),
        role=role,
    )

    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@router.post("/register", response_model=UserResponse)
def register_user(payload: UserRegister, session: Session = Depends(get_session)):
    user = _create_user(payload, session, USER)
    return UserResponse(
        message="Registration successful.",
        user_id=user.id,
        email=user.email,
        role=user.role,
        can_login=user.can_login
    )


@router.post("/register-staff", response_model=UserResponse)
def register_staff(
    payload: UserRegister,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    user = _create_user(payload, session, STAFF)
    return UserResponse(
        message="Staff registration successful.",
        user_id=user.id,
        email=user.email,
        role=user.role,
        can_login=user.can_login
    )


@router.post("/login", response_model=Token)
def login(payload: UserLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == payload.email)).first()

    if not user or not verify_password(payload.password, user.password):
        raise HTTPException(401, "Invalid email or password")

    if not user.can_login:
        raise HTTPException(403, "User account is disabled")

    token = create_access_token({"user_id": user.id, "role": user.role})
    return Token(access_token=token, token_type="bearer")
