import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from storefront.database import get_session
from storefront.errors import AuthError, ConflictError
from storefront.models.user import User, UserRole
from storefront.schemas.user_schemas import MeResponse, UserRegister, UserLogin, Token, UserResponse
from storefront.services.entitlements import entitled_product_ids
from storefront.utils.hash import hash_password, verify_password
from storefront.utils.token import create_access_token, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=UserResponse)
def register_user(payload: UserRegister, session: Session = Depends(get_session)):
    email = payload.email.lower()
    existing_user = session.exec(select(User).where(User.email == email)).first()
    if existing_user:
        raise ConflictError("Email already registered")

    user = User(
        name=payload.name,
        email=email,
        password_hash=hash_password(payload.password),
        role=UserRole.customer,
    )

    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"Registered user {user.id}")

    return UserResponse(
        message="Registration successful.",
        user_id=user.id,
        email=user.email,
        role=user.role.value,
    )


@router.post("/login", response_model=Token)
def login(payload: UserLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == payload.email.lower())).first()

    if not user or not verify_password(payload.password, user.password_hash):
        raise AuthError("Invalid email or password")

    token = create_access_token({"user_id": user.id, "role": user.role.value})
    return Token(access_token=token, token_type="bearer")


@router.get("/me", response_model=MeResponse)
def me(session: Session = Depends(get_session), current_user: User = Depends(get_current_user)):
    return MeResponse(
        id=current_user.id,
        name=current_user.name,
        email=current_user.email,
        role=current_user.role.value,
        purchased_products=entitled_product_ids(session, current_user.id),
    )
