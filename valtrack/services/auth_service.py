# =======================================================================================
# valtrack/services/auth_service.py - Authentication for the dashboard and mobile app
# =======================================================================================

import json
from typing import Any, Dict, Optional
from sqlalchemy import or_, select
from sqlalchemy.engine import Connection
from passlib.context import CryptContext

from ..models.enums import ROLE_MODULES, MODULE_KEYS
from ..schema import profiles
from ..utils.exceptions import AccessDeniedError, AuthenticationError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthService:
    """Handles profile authentication (username or email + password)."""

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def default_permissions(role: str) -> Dict[str, bool]:
        granted = ROLE_MODULES.get(role, [])
        return {key: key in granted for key in MODULE_KEYS}

    def to_session(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Profile row without the hash, permissions decoded."""
        profile = {k: v for k, v in dict(row).items() if k != "password_hash"}
        raw = profile.get("permissions")
        profile["permissions"] = json.loads(raw) if raw else self.default_permissions(profile["role"])
        return profile

    def authenticate(
        self, conn: Connection, username: str, password: str
    ) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            select(profiles).where(
                or_(profiles.c.username == username, profiles.c.email == username)
            )
        ).mappings().first()

        if not row:
            return None

        if not self.verify_password(password, row["password_hash"]):
            return None

        return dict(row)

    def login(self, conn: Connection, username: str, password: str) -> Dict[str, Any]:
        row = self.authenticate(conn, (username or "").strip(), password or "")
        if not row:
            raise AuthenticationError("Invalid username or password")
        if row["status"] != "active":
            raise AccessDeniedError("Your account is inactive. Please contact an administrator.")

        return {
            "token": self.create_fake_token(row["id"], row["username"]),
            "message": "Login successful",
            "profile": self.to_session(row),
        }

    def create_fake_token(self, profile_id: int, username: str) -> str:
        """Opaque session token; clients only check that one exists."""
        return f"profile-{profile_id}-{username}"
