import logging

from fastapi import APIRouter, Depends, HTTPException, status

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from movieshelf.db.database_session import get_db
from movieshelf.db.models.users import User
from movieshelf.api.schemas import RegisterRequest, LoginRequest, AuthResponse, MeResponse, UserResponse
from movieshelf.api.security import (
    TokenIdentity,
    hash_password,
    verify_password,
    create_access_token,
    get_current_identity,
)
from movieshelf.observability.metrics import AUTH_REQUESTS


MIN_PASSWORD_LENGTH = 6

# Same message for unknown email and wrong password, so callers cannot tell which emails are registered
BAD_CREDENTIALS = "Invalid email or password"

logger = logging.getLogger(__name__)

# Init route obj
router = APIRouter(prefix="/api/auth", tags=["auth"])


def _reject(endpoint: str, status_code: int, detail: str) -> HTTPException:
    AUTH_REQUESTS.labels(endpoint=endpoint, result="failure").inc()
    return HTTPException(status_code=status_code, detail=detail)


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """
    Get's the users name, email and password and creates a new user inside the DB, if
    the email (case-insensitive) doesn't already exist.

    **Parameters**:\n
    `payload` (RegisterRequest): The user name, email and password.\n

    **Returns**:\n
    `AuthResponse`(response_model):
    - `token` (str): JWT access token valid for 30 days.\n
    - `user` (UserResponse): The created user.
    """
    name = (payload.name or "").strip()
    email = (payload.email or "").strip().lower()
    password = payload.password or ""

    if not name or not email or not password:
        raise _reject("register", status.HTTP_400_BAD_REQUEST, "All fields are required")

    if "@" not in email:
        raise _reject("register", status.HTTP_400_BAD_REQUEST, "Invalid email format")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise _reject(
            "register",
            status.HTTP_400_BAD_REQUEST,
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    # Check if email already exists in DB
    email_exists = db.query(User).filter(User.email == email).first()
    if email_exists:
        raise _reject("register", status.HTTP_409_CONFLICT, "Email already registered")

    # Create new user obj
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
    )

    # Add user to DB, the unique index still guards against a concurrent register
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise _reject("register", status.HTTP_409_CONFLICT, "Email already registered")
    db.refresh(user)

    logger.info("Registered user %s", user.id)
    AUTH_REQUESTS.labels(endpoint="register", result="success").inc()

    return AuthResponse(
        token=create_access_token(user_id=user.id, email=user.email),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """
    Login endpoint. Returns a fresh JWT access token if user email and password are valid.

    **Returns**:\n
    `AuthResponse`(response_model):
    - `token` (str): JWT access token for authentication.\n
    - `user` (UserResponse): The logged in user.
    """
    email = (payload.email or "").strip().lower()
    password = payload.password or ""

    if not email or not password:
        raise _reject("login", status.HTTP_400_BAD_REQUEST, "Email and password are required")

    # Check if email is part of DB table
    user = db.query(User).filter(User.email == email).first()

    # Raise error if user is unknown or password is invalid
    if not user or not verify_password(password, user.password_hash):
        raise _reject("login", status.HTTP_401_UNAUTHORIZED, BAD_CREDENTIALS)

    AUTH_REQUESTS.labels(endpoint="login", result="success").inc()

    return AuthResponse(
        token=create_access_token(user_id=user.id, email=user.email),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=MeResponse)
def me(
    identity: TokenIdentity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Returns the user the bearer token was issued for.

    `Requires:` valid access token
    """
    user = db.query(User).filter(User.id == identity.user_id).first()
    if not user:
        raise _reject("me", status.HTTP_404_NOT_FOUND, "User not found")

    AUTH_REQUESTS.labels(endpoint="me", result="success").inc()
    return MeResponse(user=UserResponse.model_validate(user))
