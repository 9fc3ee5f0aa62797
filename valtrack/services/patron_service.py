# =======================================================================================
# valtrack/services/patron_service.py - Patron Registry
# =======================================================================================
import csv
import io
from typing import Any, Dict, List, Optional
from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.engine import Connection
from ..models.enums import AuditModule
from ..schema import baggage, baggage_logs, patrons
from ..utils.exceptions import ConflictError, InvalidRequestError, NotFoundError, PatronNotFoundError
from ..utils.timeutils import utcnow
from .audit_service import AuditService

REQUIRED_FIELDS = ("surname", "firstname", "dateofbirth", "email")
PATRON_STATUSES = ("active", "suspended", "blocked")


class PatronService:
    """Handles patron CRUD and scan lookups."""

    def __init__(self):
        self.audit = AuditService()

    # ----------------- helpers -----------------
    @staticmethod
    def full_name(patron: Dict[str, Any]) -> str:
        return f"{patron.get('firstname') or ''} {patron.get('surname') or ''}".strip()

    @staticmethod
    def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = {}
        for key, value in data.items():
            if isinstance(value, str):
                value = value.strip() or None
            cleaned[key] = value
        return cleaned

    def _ensure_library_id_free(self, conn: Connection, library_id: Optional[str], exclude_id: Optional[int] = None):
        if not library_id:
            return
        stmt = select(patrons.c.id).where(patrons.c.library_id == library_id)
        if exclude_id is not None:
            stmt = stmt.where(patrons.c.id != exclude_id)
        if conn.execute(stmt).first():
            raise ConflictError(f"Library ID {library_id} is already assigned")

    # ----------------- CRUD -----------------
    def get_patron(self, conn: Connection, patron_id: int) -> Dict[str, Any]:
        patron = conn.execute(
            select(patrons).where(patrons.c.id == patron_id)
        ).mappings().first()
        if not patron:
            raise NotFoundError("Patron", patron_id)
        return dict(patron)

    def create_patron(self, conn: Connection, data: Dict[str, Any], actor: str) -> Dict[str, Any]:
        data = self._clean(data)
        if any(not data.get(field) for field in REQUIRED_FIELDS):
            raise InvalidRequestError("Surname, First Name, Date of Birth, and Email are required")
        self._ensure_library_id_free(conn, data.get("library_id"))

        values = {key: data.get(key) for key in (
            "library_id", "surname", "firstname", "middlename", "dateofbirth",
            "gender", "email", "address", "city",
        )}
        values["account_status"] = data.get("account_status") or "active"
        values["created_at"] = utcnow()

        result = conn.execute(insert(patrons).values(**values))
        self.audit.log(
            conn, actor, "Create Patron", AuditModule.USER_MANAGEMENT,
            f"Created patron: {values['firstname']} {values['surname']}",
        )
        return self.get_patron(conn, result.inserted_primary_key[0])

    def update_patron(self, conn: Connection, patron_id: int, data: Dict[str, Any], actor: str) -> Dict[str, Any]:
        current = self.get_patron(conn, patron_id)
        data = self._clean({k: v for k, v in data.items() if v is not None})

        merged = {**current, **data}
        if any(not merged.get(field) for field in REQUIRED_FIELDS):
            raise InvalidRequestError("Surname, First Name, Date of Birth, and Email are required")
        if "library_id" in data:
            self._ensure_library_id_free(conn, data["library_id"], exclude_id=patron_id)

        if data:
            conn.execute(update(patrons).where(patrons.c.id == patron_id).values(**data))
        self.audit.log(
            conn, actor, "Update Patron", AuditModule.USER_MANAGEMENT,
            f"Updated patron: {merged['firstname']} {merged['surname']}",
        )
        return self.get_patron(conn, patron_id)

    def delete_patron(self, conn: Connection, patron_id: int, actor: str) -> None:
        """Delete a patron; attendance cascades and any held locker is released."""
        patron = self.get_patron(conn, patron_id)
        released = self._release_lockers(conn, patron)
        conn.execute(delete(patrons).where(patrons.c.id == patron_id))
        details = f"Deleted patron ID {patron_id}"
        if released:
            details += f", released {', '.join(released)}"
        self.audit.log(conn, actor, "Delete Patron", AuditModule.USER_MANAGEMENT, details)

    def _release_lockers(self, conn: Connection, patron: Dict[str, Any]) -> List[str]:
        held = conn.execute(
            select(baggage.c.id, baggage.c.area_id)
            .where(baggage.c.patron_id == patron["id"], baggage.c.status == "occupied")
            .with_for_update()
        ).all()
        now = utcnow()
        for locker_id, area_id in held:
            conn.execute(
                update(baggage)
                .where(baggage.c.id == locker_id)
                .values(status="available", patron_id=None, patron_name=None, check_in_time=None)
            )
            conn.execute(
                insert(baggage_logs).values(
                    locker_id=locker_id,
                    area_id=area_id,
                    patron_id=patron["id"],
                    patron_name=self.full_name(patron),
                    action="check_out",
                    timestamp=now,
                )
            )
        return [locker_id for locker_id, _ in held]

    def set_patron_status(self, conn: Connection, patron_id: int, status: str, actor: str) -> Dict[str, Any]:
        if status not in PATRON_STATUSES:
            raise InvalidRequestError(f"Unknown account status: {status}")
        self.get_patron(conn, patron_id)
        conn.execute(update(patrons).where(patrons.c.id == patron_id).values(account_status=status))
        self.audit.log(
            conn, actor, "Update Patron Status", AuditModule.USER_MANAGEMENT,
            f"Changed patron {patron_id} status to {status}",
        )
        return self.get_patron(conn, patron_id)

    # ----------------- search -----------------
    def list_patrons(
        self,
        conn: Connection,
        query: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """List patrons newest first, filtered by name / library id / email and status."""
        stmt = select(patrons)
        if query:
            like = f"%{query.strip()}%"
            stmt = stmt.where(
                or_(
                    patrons.c.surname.ilike(like),
                    patrons.c.firstname.ilike(like),
                    patrons.c.library_id.ilike(like),
                    patrons.c.email.ilike(like),
                )
            )
        if status and status != "all":
            stmt = stmt.where(patrons.c.account_status == status)

        rows = conn.execute(
            stmt.order_by(patrons.c.created_at.desc(), patrons.c.id.desc()).offset(skip).limit(limit)
        ).mappings().all()
        return [dict(r) for r in rows]

    def find_by_scan_value(self, conn: Connection, value: str) -> Dict[str, Any]:
        """
        Resolve a scanned QR value.
        Library IDs are tried first, then the numeric patron id.
        """
        value = (value or "").strip()
        if not value:
            raise PatronNotFoundError(value)

        conditions = [patrons.c.library_id == value]
        if value.isdecimal():
            conditions.append(patrons.c.id == int(value))

        rows = conn.execute(
            select(patrons).where(or_(*conditions))
        ).mappings().all()
        if not rows:
            raise PatronNotFoundError(value)

        # a library id match wins over an id collision
        for row in rows:
            if row["library_id"] == value:
                return dict(row)
        return dict(rows[0])

    # ----------------- export -----------------
    def export_patrons_csv(self, conn: Connection) -> str:
        rows = self.list_patrons(conn, limit=100000)
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow([
            "Library ID", "Surname", "First Name", "Gender", "Date of Birth",
            "Email", "City", "Account Status", "Registered",
        ])
        for p in rows:
            writer.writerow([
                p["library_id"] or "",
                p["surname"],
                p["firstname"],
                p["gender"] or "",
                p["dateofbirth"].isoformat() if p["dateofbirth"] else "",
                p["email"] or "",
                p["city"] or "",
                p["account_status"] or "active",
                p["created_at"].strftime("%Y-%m-%d") if p["created_at"] else "",
            ])
        return buffer.getvalue()
