# =======================================================================================
# valtrack/services/profile_service.py - Staff Profiles
# =======================================================================================
import json
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.engine import Connection
from ..models.enums import AuditModule, TITLE_ROLES
from ..schema import profiles
from ..utils.exceptions import ConflictError, InvalidRequestError, NotFoundError
from ..utils.timeutils import utcnow
from ..utils.validators import TopologyValidator, require_text
from .audit_service import AuditService
from .auth_service import AuthService
from .patron_service import PatronService

logger = logging.getLogger(__name__)

ASSIGNMENT_FIELDS = ("assigned_branch_id", "assigned_floor_id", "assigned_area_id")
ROLE_TITLES = {role: title for title, role in TITLE_ROLES.items()}
CLEARABLE_FIELDS = ("full_name", "avatar_url") + ASSIGNMENT_FIELDS


class ProfileService:
    """Dashboard / mobile accounts for admins, staff and volunteers."""

    def __init__(self):
        self.audit = AuditService()
        self.auth = AuthService()
        self.patrons = PatronService()
        self.topology = TopologyValidator()

    # ---------- helpers ----------

    @staticmethod
    def resolve_role(title: Optional[str], role: Optional[str]) -> str:
        """Admins keep their role; otherwise the title decides."""
        if role == "admin":
            return "admin"
        return TITLE_ROLES.get(title or "", role or "staff")

    def _check_assignment(self, conn: Connection, role: str, values: Dict[str, Any]) -> None:
        branch_id = values.get("assigned_branch_id")
        floor_id = values.get("assigned_floor_id")
        area_id = values.get("assigned_area_id")

        if role != "admin" and (branch_id is None or floor_id is None or area_id is None):
            raise InvalidRequestError("Staff and volunteers must be assigned a branch, floor and area")

        if branch_id is not None:
            self.topology.get_branch(conn, branch_id)
        if floor_id is not None:
            floor = self.topology.get_floor(conn, floor_id)
            if branch_id is not None and floor["branch_id"] != branch_id:
                raise InvalidRequestError("Assigned floor does not belong to the assigned branch")
        if area_id is not None:
            area = self.topology.resolve_area(conn, area_id)
            if floor_id is not None and area["floor_id"] != floor_id:
                raise InvalidRequestError("Assigned area does not belong to the assigned floor")

    def _ensure_unique(self, conn: Connection, username: str, email: str, exclude_id: Optional[int] = None):
        stmt = select(profiles.c.id).where(
            or_(profiles.c.username == username, profiles.c.email == email)
        )
        if exclude_id is not None:
            stmt = stmt.where(profiles.c.id != exclude_id)
        if conn.execute(stmt).first():
            raise ConflictError("A profile with this username or email already exists")

    def _get_row(self, conn: Connection, profile_id: int) -> Dict[str, Any]:
        row = conn.execute(select(profiles).where(profiles.c.id == profile_id)).mappings().first()
        if not row:
            raise NotFoundError("Profile", profile_id)
        return dict(row)

    def get_profile(self, conn: Connection, profile_id: int) -> Dict[str, Any]:
        return self.auth.to_session(self._get_row(conn, profile_id))

    # ---------- CRUD ----------

    def create_profile(self, conn: Connection, data: Dict[str, Any], actor: str) -> Dict[str, Any]:
        username = require_text(data.get("username"), "Username is required")
        email = require_text(data.get("email"), "Email is required")
        password = require_text(data.get("password"), "Password is required")
        title = data.get("title") or "Library Staff"
        role = self.resolve_role(title, data.get("role"))

        assignment = {field: data.get(field) for field in ASSIGNMENT_FIELDS}
        self._check_assignment(conn, role, assignment)
        self._ensure_unique(conn, username, email)

        permissions = data.get("permissions") or self.auth.default_permissions(role)
        result = conn.execute(
            insert(profiles).values(
                username=username,
                email=email,
                full_name=data.get("full_name"),
                password_hash=self.auth.hash_password(password),
                role=role,
                title=title,
                status="active",
                permissions=json.dumps(permissions),
                avatar_url=data.get("avatar_url"),
                created_at=utcnow(),
                **assignment,
            )
        )
        profile_id = result.inserted_primary_key[0]
        self.audit.log(
            conn, actor, "Create User", AuditModule.USER_MANAGEMENT,
            f"Created {role} profile: {username}", assignment["assigned_branch_id"],
        )
        logger.info("Created %s profile %s", role, username)
        return self.get_profile(conn, profile_id)

    def update_profile(self, conn: Connection, profile_id: int, data: Dict[str, Any], actor: str) -> Dict[str, Any]:
        """Apply the given keys; None clears the name, avatar and assignment fields."""
        current = self._get_row(conn, profile_id)
        data = {k: v for k, v in data.items() if v is not None or k in CLEARABLE_FIELDS}
        values: Dict[str, Any] = {}

        for field in ("username", "email"):
            if field in data:
                values[field] = require_text(data[field], f"{field.capitalize()} cannot be empty")
        if values:
            self._ensure_unique(
                conn,
                values.get("username", current["username"]),
                values.get("email", current["email"]),
                exclude_id=profile_id,
            )

        if "full_name" in data:
            values["full_name"] = data["full_name"]
        if "avatar_url" in data:
            values["avatar_url"] = data["avatar_url"]
        if data.get("password"):
            values["password_hash"] = self.auth.hash_password(data["password"])

        title = data.get("title", current["title"])
        role = self.resolve_role(title, data.get("role", current["role"]))
        values["title"] = title
        values["role"] = role

        assignment = {field: data.get(field, current[field]) for field in ASSIGNMENT_FIELDS}
        self._check_assignment(conn, role, assignment)
        values.update(assignment)

        if "permissions" in data:
            values["permissions"] = json.dumps(data["permissions"])
        elif role != current["role"]:
            values["permissions"] = json.dumps(self.auth.default_permissions(role))

        conn.execute(update(profiles).where(profiles.c.id == profile_id).values(**values))
        self.audit.log(
            conn, actor, "Update User", AuditModule.USER_MANAGEMENT,
            f"Updated profile: {values.get('username', current['username'])}",
            assignment["assigned_branch_id"],
        )
        return self.get_profile(conn, profile_id)

    def toggle_profile_status(self, conn: Connection, profile_id: int, actor: str) -> Dict[str, Any]:
        current = self._get_row(conn, profile_id)
        status = "inactive" if current["status"] == "active" else "active"
        conn.execute(update(profiles).where(profiles.c.id == profile_id).values(status=status))
        self.audit.log(
            conn, actor, "Toggle User Status", AuditModule.USER_MANAGEMENT,
            f"Set {current['username']} to {status}", current["assigned_branch_id"],
        )
        return self.get_profile(conn, profile_id)

    def delete_profile(self, conn: Connection, profile_id: int, actor: str) -> None:
        current = self._get_row(conn, profile_id)
        conn.execute(delete(profiles).where(profiles.c.id == profile_id))
        self.audit.log(
            conn, actor, "Delete User", AuditModule.USER_MANAGEMENT,
            f"Deleted profile: {current['username']}", current["assigned_branch_id"],
        )

    def list_profiles(self, conn: Connection, role: Optional[str] = None) -> List[Dict[str, Any]]:
        stmt = select(profiles)
        if role and role != "all":
            stmt = stmt.where(profiles.c.role == role)
        rows = conn.execute(stmt.order_by(profiles.c.username)).mappings().all()
        return [self.auth.to_session(r) for r in rows]

    # ---------- patron accounts ----------

    def grant_access(self, conn: Connection, patron_id: int, data: Dict[str, Any], actor: str) -> Dict[str, Any]:
        """
        Give a patron a login.

        Username and email are the patron's library ID; the initial password
        is the date of birth (YYYY-MM-DD).
        """
        patron = self.patrons.get_patron(conn, patron_id)
        if not patron["library_id"] or not patron["dateofbirth"]:
            raise InvalidRequestError("Patron needs a Library ID and Date of Birth to be granted access")

        library_id = patron["library_id"]
        existing = conn.execute(
            select(profiles.c.id).where(
                or_(profiles.c.username == library_id, profiles.c.email == library_id)
            )
        ).first()
        if existing:
            raise ConflictError(f"{library_id} already has an account")

        return self.create_profile(
            conn,
            {
                **data,
                "username": library_id,
                "email": library_id,
                "full_name": self.patrons.full_name(patron),
                "password": patron["dateofbirth"].isoformat(),
                "title": ROLE_TITLES.get(data.get("role") or "staff", "Administrator"),
            },
            actor,
        )

    def upload_avatar(self, conn: Connection, profile_id: int, image: bytes, storage, ext: str = "jpg") -> Dict[str, Any]:
        self._get_row(conn, profile_id)
        if not image:
            raise InvalidRequestError("Image is empty")
        path = f"{profile_id}/avatar_{utcnow().strftime('%Y%m%d%H%M%S%f')}.{ext}"
        url = storage.public_url("avatars", path)
        conn.execute(update(profiles).where(profiles.c.id == profile_id).values(avatar_url=url))
        storage.upload("avatars", path, image)
        return self.get_profile(conn, profile_id)
