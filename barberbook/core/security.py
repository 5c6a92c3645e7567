"""
Password hashing, the account password policy and Bearer tokens.

Passwords are bcrypt hashes through passlib. Tokens are HS256 JWTs signed
with JWT_SECRET_KEY whose ``sub`` is the user id; the email and role ride
along so API clients can read them without another request.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import jwt
from passlib.context import CryptContext

from barberbook.core.config import get_jwt_secret_key

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 8

# (pattern, what it asks for) in the order the policy message lists them.
PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"\d"), "a number"),
    (re.compile(r"[^A-Za-z0-9]"), "a special character"),
)

PASSWORD_POLICY_MESSAGE = (
    f"Password must be at least {MIN_PASSWORD_LENGTH} characters and include "
    + ", ".join(label for _, label in PASSWORD_RULES[:-1])
    + f" and {PASSWORD_RULES[-1][1]}"
)

JWT_ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(hours=24)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check ``plain_password`` against a stored hash.

    Guest clients are stored without a hash; they, and any row holding
    something passlib cannot identify, never verify.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def password_problems(password: Optional[str]) -> List[str]:
    """Return what ``password`` is missing; empty when it meets the policy."""
    password = password or ""
    problems = []
    if len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"at least {MIN_PASSWORD_LENGTH} characters")
    problems.extend(label for pattern, label in PASSWORD_RULES if not pattern.search(password))
    return problems


def is_strong_password(password: Optional[str]) -> bool:
    return not password_problems(password)


def create_access_token(
    claims: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Sign ``claims`` with ``iat`` and ``exp`` added."""
    issued_at = datetime.now(timezone.utc)
    payload = dict(claims, iat=issued_at, exp=issued_at + (expires_delta or TOKEN_LIFETIME))
    return jwt.encode(payload, get_jwt_secret_key(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the verified claims, or None for a bad signature or an expired token."""
    try:
        return jwt.decode(token, get_jwt_secret_key(), algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None


def create_user_token(user_id: int, email: str, role: str) -> str:
    return create_access_token({"sub": str(user_id), "email": email, "role": role})


def get_user_from_token(token: str) -> Optional[Dict[str, Any]]:
    """Map a Bearer token to ``{"user_id", "email", "role"}``."""
    claims = decode_access_token(token)
    if not claims:
        return None
    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        return None
    return {"user_id": user_id, "email": claims.get("email"), "role": claims.get("role")}
