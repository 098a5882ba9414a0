from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from tenderchain.models import User, UserType, utcnow
import os

SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-change-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

http_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Caller identity resolved once from the bearer token."""
    user_id: int
    user_type: UserType
    company_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_tender(self) -> bool:
        return self.user_type == UserType.TENDER


def _unauthorized(detail: str = "Unauthorized"):
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])
    if expires_delta:
        expire = utcnow() + expires_delta
    else:
        expire = utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_user_token(user: User) -> str:
    return create_access_token({
        "sub": user.id,
        "userType": user.user_type.value,
        "companyName": user.company_name,
        "email": user.email,
    })


def verify_token(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise _unauthorized("Could not validate credentials")


def context_from_payload(payload: dict) -> AuthContext:
    user_id = payload.get("sub")
    user_type = payload.get("userType")
    if user_id is None or user_type is None:
        raise _unauthorized("Invalid authentication payload")
    try:
        return AuthContext(
            user_id=int(user_id),
            user_type=UserType(user_type),
            company_name=payload.get("companyName"),
            email=payload.get("email"),
        )
    except ValueError:
        raise _unauthorized("Invalid authentication payload")


def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer),
) -> AuthContext:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise _unauthorized()
    return context_from_payload(verify_token(credentials.credentials))


def require_tender(context: AuthContext = Depends(get_auth_context)) -> AuthContext:
    # Wrong role is reported as 401, same as a missing token
    if not context.is_tender:
        raise _unauthorized()
    return context
