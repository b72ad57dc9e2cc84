from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

import jwt
from fastapi import HTTPException, status
from pydantic import BaseModel

from .config import settings
from .models.enums import UserRole

# Configure logging
logger = logging.getLogger(__name__)


class Principal(BaseModel):
    """Caller identity extracted from a bearer token"""

    subject: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class AuthService:
    @staticmethod
    def create_access_token(
        subject: str,
        role: UserRole = UserRole.STUDENT,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Create JWT access token"""
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        to_encode = {
            "sub": subject,
            "role": UserRole(role).value,
            "exp": expire,
            "type": "access",
        }
        return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Principal:
        """Verify a JWT and return the caller it identifies"""
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
        try:
            payload = jwt.decode(
                token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
            )
        except jwt.ExpiredSignatureError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            )
        except jwt.PyJWTError as e:
            logger.warning(f"Rejected token: {e}")
            raise credentials_exception

        subject = payload.get("sub")
        if not subject or payload.get("type") != "access":
            raise credentials_exception
        try:
            role = UserRole(payload.get("role", UserRole.STUDENT.value))
        except ValueError:
            raise credentials_exception
        return Principal(subject=subject, role=role)
