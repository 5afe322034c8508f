"""
Identity store for login-capable credentials.

Mirrors the admin surface of a hosted identity provider: records are created,
updated, listed and deleted independently of the application ``users`` table.
Every call runs in its own session and commits on return, so a failure in a
later application write never rolls back an identity write.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from uuid import UUID
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..database.models import AuthIdentity
from ..errors import db_error_message
from .jwt_handler import PasswordHandler

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """Identity store call failed."""


class IdentityStore:
    """Admin client for identity records."""

    def __init__(self, bind: Engine):
        self._sessions = sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)

    def create_user(
        self,
        email: str,
        password: str,
        email_confirm: bool = False,
        user_metadata: Optional[Dict[str, Any]] = None
    ) -> AuthIdentity:
        """
        Create an identity record.

        Raises:
            IdentityError: If the email is already registered or the write fails
        """
        with self._sessions() as session:
            if session.query(AuthIdentity).filter(AuthIdentity.email == email).first():
                raise IdentityError("A user with this email address has already been registered")
            identity = AuthIdentity(
                email=email,
                encrypted_password=PasswordHandler.hash_password(password),
                email_confirmed_at=datetime.now(timezone.utc) if email_confirm else None,
                user_metadata=dict(user_metadata or {}),
            )
            session.add(identity)
            try:
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise IdentityError(f"Could not create identity: {db_error_message(e)}") from e
            return identity

    def list_users(self) -> List[AuthIdentity]:
        """Return every identity record."""
        with self._sessions() as session:
            return session.query(AuthIdentity).order_by(AuthIdentity.created_at).all()

    def get_user_by_id(self, identity_id: UUID) -> Optional[AuthIdentity]:
        with self._sessions() as session:
            return session.get(AuthIdentity, identity_id)

    def get_user_by_email(self, email: str) -> Optional[AuthIdentity]:
        with self._sessions() as session:
            return session.query(AuthIdentity).filter(AuthIdentity.email == email).first()

    def update_user_by_id(
        self,
        identity_id: UUID,
        password: Optional[str] = None,
        email: Optional[str] = None,
        user_metadata: Optional[Dict[str, Any]] = None
    ) -> AuthIdentity:
        """
        Update credentials or metadata of an identity.

        Metadata keys are merged into the existing metadata.

        Raises:
            IdentityError: If the identity does not exist or the write fails
        """
        with self._sessions() as session:
            identity = session.get(AuthIdentity, identity_id)
            if identity is None:
                raise IdentityError(f"User not found: {identity_id}")
            if password is not None:
                identity.encrypted_password = PasswordHandler.hash_password(password)
            if email is not None:
                identity.email = email
            if user_metadata:
                identity.user_metadata = {**(identity.user_metadata or {}), **user_metadata}
            try:
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise IdentityError(f"Could not update identity: {db_error_message(e)}") from e
            return identity

    def delete_user(self, identity_id: UUID) -> None:
        """
        Delete an identity record.

        Raises:
            IdentityError: If the identity does not exist or the delete fails
        """
        with self._sessions() as session:
            identity = session.get(AuthIdentity, identity_id)
            if identity is None:
                raise IdentityError(f"User not found: {identity_id}")
            session.delete(identity)
            try:
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise IdentityError(f"Could not delete identity: {db_error_message(e)}") from e

    def authenticate(self, email: str, password: str) -> Optional[AuthIdentity]:
        """
        Verify a password login.

        Returns:
            Optional[AuthIdentity]: The identity on success, None otherwise
        """
        with self._sessions() as session:
            identity = session.query(AuthIdentity).filter(AuthIdentity.email == email).first()
            if identity is None or not PasswordHandler.verify_password(password, identity.encrypted_password):
                return None
            identity.last_sign_in_at = datetime.now(timezone.utc)
            session.commit()
            return identity
