"""
JWT token handling for authentication and authorization.

Provides utilities for creating and validating access/refresh token pairs
carrying tenant, role and employee information, plus password hashing and
generation.
"""
import os
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, List
from jose import JWTError, jwt
from passlib.context import CryptContext

# Configuration
ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", secrets.token_urlsafe(32))
REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", secrets.token_urlsafe(32))
ALGORITHM = "HS256"
ACCESS_TOKEN_TTL_SECONDS = int(os.getenv("JWT_ACCESS_TTL_SECONDS", "900"))
REFRESH_TOKEN_TTL_SECONDS = int(os.getenv("JWT_REFRESH_TTL_SECONDS", "1209600"))  # 14 days

PASSWORD_ALPHABET = string.ascii_letters + string.digits

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class JWTHandler:
    """JWT token handler for authentication."""

    @staticmethod
    def _encode(data: Dict[str, Any], secret: str, ttl_seconds: int) -> str:
        to_encode = data.copy()
        to_encode.update({"exp": datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)})
        return jwt.encode(to_encode, secret, algorithm=ALGORITHM)

    @staticmethod
    def _decode(token: str, secret: str, token_type: str) -> Optional[Dict[str, Any]]:
        try:
            payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
        except JWTError:
            return None
        if payload.get("type") != token_type:
            return None
        return payload

    @staticmethod
    def build_payload(
        user_id,
        tenant_id,
        email: str,
        username: Optional[str],
        roles: List[Dict[str, Any]],
        employee_id=None
    ) -> Dict[str, Any]:
        """
        Build the claims shared by access and refresh tokens.

        Args:
            user_id: User ID
            tenant_id: Tenant ID
            email: User email
            username: User name
            roles: Role dicts with role, scope_type and scope_id
            employee_id: Linked employee ID, if any

        Returns:
            Dict[str, Any]: Token claims
        """
        return {
            "sub": str(user_id),
            "tenant_id": str(tenant_id),
            "email": email,
            "username": username,
            "roles": roles,
            "employee_id": str(employee_id) if employee_id else None,
        }

    @staticmethod
    def create_access_token(payload: Dict[str, Any]) -> str:
        """Create a short-lived access token."""
        return JWTHandler._encode({**payload, "type": "access"}, ACCESS_SECRET, ACCESS_TOKEN_TTL_SECONDS)

    @staticmethod
    def create_refresh_token(payload: Dict[str, Any]) -> str:
        """Create a long-lived refresh token."""
        return JWTHandler._encode({**payload, "type": "refresh"}, REFRESH_SECRET, REFRESH_TOKEN_TTL_SECONDS)

    @staticmethod
    def verify_access_token(token: str) -> Optional[Dict[str, Any]]:
        """
        Verify and decode an access token.

        Returns:
            Optional[Dict[str, Any]]: Token payload if valid, None if invalid
        """
        return JWTHandler._decode(token, ACCESS_SECRET, "access")

    @staticmethod
    def verify_refresh_token(token: str) -> Optional[Dict[str, Any]]:
        """Verify and decode a refresh token."""
        return JWTHandler._decode(token, REFRESH_SECRET, "refresh")


class PasswordHandler:
    """Password handling utilities."""

    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash a password.

        Args:
            password: Plain text password

        Returns:
            str: Hashed password
        """
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plain text password
            hashed_password: Hashed password

        Returns:
            bool: True if password matches, False otherwise
        """
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def generate_password(length: int = 12) -> str:
        """Generate a random alphanumeric password."""
        return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))
