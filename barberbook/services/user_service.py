"""
User service: sign-up, credential login and self-service account changes.
"""

import hmac
import logging
from typing import Any, Dict, Optional

from barberbook.core import config
from barberbook.core.security import (
    PASSWORD_POLICY_MESSAGE,
    hash_password,
    is_strong_password,
    verify_password,
)
from barberbook.db.base import Role, User
from barberbook.db.seed import ensure_admin_user
from barberbook.repositories.user_repo import UserRepository
from barberbook.schemas.dtos import PasswordChangeRequest, RegisterRequest
from barberbook.schemas.serializers import business_to_dict, user_to_dict

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    def register(self, request: RegisterRequest) -> User:
        """Create an account from the sign-up form.

        Only CLIENT and BUSINESS_OWNER can be chosen; anything else
        (including ADMIN and WORKER) falls back to CLIENT.
        """
        request.validate()
        if self.user_repo.email_in_use(request.email):
            raise ValueError("Email already in use")

        role = (request.role or Role.CLIENT).upper()
        if role not in Role.SELF_REGISTRABLE:
            role = Role.CLIENT

        user = self.user_repo.add(
            User(
                name=request.name,
                email=request.email,
                password_hash=hash_password(request.password),
                role=role,
            )
        )
        logger.info(
            "User registered",
            extra={"context": {"user_id": user.id, "role": user.role}},
        )
        return user

    def authenticate(self, email: Optional[str], password: Optional[str]) -> Optional[User]:
        """Return the user for valid credentials, else None.

        The ADMIN_USERNAME / ADMIN_PASSWORD pair from the environment always
        logs in as the bootstrap admin, which is created on first use.
        """
        if not email or not password:
            return None
        email = email.strip().lower()

        admin_credentials = config.get_admin_credentials()
        if admin_credentials is not None:
            admin_username, admin_password = admin_credentials
            if email == admin_username.lower() and hmac.compare_digest(
                password.encode(), admin_password.encode()
            ):
                admin_id = ensure_admin_user()
                return self.user_repo.get_by_id(admin_id) if admin_id else None

        user = self.user_repo.get_by_email(email)
        if user is None or not user.is_active:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    def update_profile(self, user: User, name: Optional[str], phone: Optional[str] = None) -> User:
        if not name or not str(name).strip():
            raise ValueError("Name is required")
        user.name = str(name).strip()
        if phone is not None:
            user.phone = str(phone).strip() or None
        return self.user_repo.save(user)

    def change_password(self, user: User, request: PasswordChangeRequest) -> None:
        request.validate()
        if not verify_password(request.current_password, user.password_hash):
            raise ValueError("Current password is incorrect")
        if not is_strong_password(request.new_password):
            raise ValueError(PASSWORD_POLICY_MESSAGE)
        user.password_hash = hash_password(request.new_password)
        self.user_repo.save(user)
        logger.info("Password changed", extra={"context": {"user_id": user.id}})

    def account(self, user: User) -> Dict[str, Any]:
        """The user plus every business they are attached to."""
        data = user_to_dict(user)
        data["business"] = business_to_dict(user.business) if user.business else None
        data["clientBusinesses"] = [
            business_to_dict(link.business) for link in user.client_links
        ]
        return data
