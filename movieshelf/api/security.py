from fastapi import HTTPException, Request, status, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

import os
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from dotenv import load_dotenv
from jose import jwt, JWTError
from passlib.context import CryptContext


load_dotenv()

# Load env vars for JWT
JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "30"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

# Create configured hashing machine -> Hash pwd with this machine
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

# auto_error=False: a missing header must become 401 here, not the scheme's default
bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenIdentity:
    """Caller identity decoded from a valid access token."""
    user_id: int
    email: str


def hash_password(pwd: str) -> str:
    '''
    Hashes the given password with the defined pwd_context manager (hashing machine).
    The salt is generated by bcrypt and stored inside the hash.

    Parameters
    ----------
    pwd: str
        The password that will be hashed

    Returns
    -------
    The hashed password.
    '''
    return pwd_context.hash(pwd)


def verify_password(pwd: str, hashed_pwd: str) -> bool:
    '''
    Verifys if the given plain password corresponds to the given hashed pwd.

    Parameters
    ----------
    pwd: str
        Password in raw text.
    hashed_pwd: str
        Hashed password.

    Returns
    -------
    True if pwd and hashed password belong together, otherwise false.
    '''
    return pwd_context.verify(pwd, hashed_pwd)


def create_access_token(user_id: int, email: str, expires_delta: Optional[timedelta] = None) -> str:
    '''
    Creates an JWT access token for the given user.

    Parameters
    ----------
    user_id: int
        Primary key of the user, embedded so requests can be scoped without a lookup.
    email: str
        Users email, used as subject.
    expires_delta: timedelta, optional
        Lifetime of the token. Defaults to ACCESS_TOKEN_EXPIRE_DAYS.

    Returns
    -------
    access_token: str
        The jwt access token for the user.
    '''
    if expires_delta is None:
        expires_delta = timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS)

    # Define expiration date
    expire = datetime.now(timezone.utc) + expires_delta

    # Define payload
    payload = {
        "sub": email,
        "user_id": user_id,
        "email": email,
        "exp": expire,
    }

    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> TokenIdentity:
    """
    Decodes a jwt token and returns the identity it was issued for.

    Parameters
    ----------
    token : str
        The jwt access token.

    Returns
    -------
    identity: TokenIdentity
        User id and email of the token owner.

    Raises
    ------
    JWTError
        If the signature is invalid, the token is expired or claims are missing.
    """
    # Expiry is checked by jose while decoding
    payload = jwt.decode(
        token=token,
        key=JWT_SECRET,
        algorithms=[JWT_ALGORITHM],
    )

    user_id = payload.get("user_id")
    email = payload.get("email") or payload.get("sub")

    if not isinstance(user_id, int) or not email:
        raise JWTError("Missing user_id or email claim.")

    return TokenIdentity(user_id=user_id, email=email)


def get_current_identity(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> TokenIdentity:
    '''
    Token verification dependency. Reads the bearer token of the request, verifies it
    and attaches the decoded identity to request.state.identity for downstream ownership
    checks. No database lookup takes place here.

    Returns
    ----------
    identity : TokenIdentity
        The identity the token was issued for.

    Raises
    ----------
    HTTPException
        401 if no bearer token was sent, 403 if the token is invalid or expired.
    '''
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Checks if token is valid else, Exception
    try:
        identity = decode_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token",
        )

    request.state.identity = identity
    return identity
