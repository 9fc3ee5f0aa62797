# =======================================================================================
# valtrack/services/announcement_service.py - Announcements
# =======================================================================================
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import and_, delete, insert, or_, select, update
from sqlalchemy.engine import Connection
from ..models.enums import AuditModule
from ..schema import announcements
from ..utils.exceptions import InvalidRequestError, NotFoundError
from ..utils.timeutils import utcnow
from ..utils.validators import require_text
from .audit_service import AuditService

AUDIENCES = ("all", "patrons", "staff", "specific")


class AnnouncementService:
    """Announcement CRUD and audience filtering."""

    def __init__(self):
        self.audit = AuditService()

    def get_announcement(self, conn: Connection, announcement_id: int) -> Dict[str, Any]:
        row = conn.execute(
            select(announcements).where(announcements.c.id == announcement_id)
        ).mappings().first()
        if not row:
            raise NotFoundError("Announcement", announcement_id)
        return dict(row)

    @staticmethod
    def _audience(audience: Optional[str], target_user_id: Optional[int]):
        audience = audience or "all"
        if audience not in AUDIENCES:
            raise InvalidRequestError(f"Unknown target audience: {audience}")
        if audience != "specific":
            return audience, None
        if target_user_id is None:
            raise InvalidRequestError("Please select a user for a specific announcement")
        return audience, target_user_id

    def create_announcement(self, conn: Connection, data: Dict[str, Any], actor: str) -> Dict[str, Any]:
        title = require_text(data.get("title"), "Title and message are required")
        message = require_text(data.get("message"), "Title and message are required")
        audience, target_user_id = self._audience(data.get("target_audience"), data.get("target_user_id"))
        now = utcnow()

        result = conn.execute(
            insert(announcements).values(
                title=title,
                message=message,
                module=data.get("module") or "General",
                target_audience=audience,
                target_user_id=target_user_id,
                scheduled_at=data.get("scheduled_at") or now,
                is_active=True,
                created_by=actor,
                created_at=now,
            )
        )
        self.audit.log(
            conn, actor, "Create Announcement", AuditModule.ANNOUNCEMENTS,
            f"Posted announcement: {title}",
        )
        return self.get_announcement(conn, result.inserted_primary_key[0])

    def update_announcement(self, conn: Connection, announcement_id: int, data: Dict[str, Any], actor: str) -> Dict[str, Any]:
        current = self.get_announcement(conn, announcement_id)
        values: Dict[str, Any] = {}

        if data.get("title") is not None:
            values["title"] = require_text(data["title"], "Title and message are required")
        if data.get("message") is not None:
            values["message"] = require_text(data["message"], "Title and message are required")
        if data.get("module") is not None:
            values["module"] = data["module"]
        if data.get("scheduled_at") is not None:
            values["scheduled_at"] = data["scheduled_at"]
        if data.get("target_audience") is not None or data.get("target_user_id") is not None:
            values["target_audience"], values["target_user_id"] = self._audience(
                data.get("target_audience") or current["target_audience"],
                data.get("target_user_id", current["target_user_id"]),
            )

        if values:
            conn.execute(
                update(announcements).where(announcements.c.id == announcement_id).values(**values)
            )
            self.audit.log(
                conn, actor, "Update Announcement", AuditModule.ANNOUNCEMENTS,
                f"Updated announcement: {values.get('title', current['title'])}",
            )
        return self.get_announcement(conn, announcement_id)

    def toggle_announcement(self, conn: Connection, announcement_id: int, actor: str) -> Dict[str, Any]:
        current = self.get_announcement(conn, announcement_id)
        conn.execute(
            update(announcements)
            .where(announcements.c.id == announcement_id)
            .values(is_active=not current["is_active"])
        )
        self.audit.log(
            conn, actor, "Toggle Announcement", AuditModule.ANNOUNCEMENTS,
            f"{'Deactivated' if current['is_active'] else 'Activated'} announcement: {current['title']}",
        )
        return self.get_announcement(conn, announcement_id)

    def delete_announcement(self, conn: Connection, announcement_id: int, actor: str) -> None:
        current = self.get_announcement(conn, announcement_id)
        conn.execute(delete(announcements).where(announcements.c.id == announcement_id))
        self.audit.log(
            conn, actor, "Delete Announcement", AuditModule.ANNOUNCEMENTS,
            f"Deleted announcement: {current['title']}",
        )

    def list_announcements(self, conn: Connection) -> List[Dict[str, Any]]:
        rows = conn.execute(
            select(announcements).order_by(announcements.c.scheduled_at.desc(), announcements.c.id.desc())
        ).mappings().all()
        return [dict(r) for r in rows]

    def visible_announcements(
        self,
        conn: Connection,
        audience: str,
        user_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """Active, already-scheduled announcements addressed to this reader."""
        now = now or utcnow()
        targets = [announcements.c.target_audience == "all"]
        if audience not in ("all", "specific"):
            targets.append(announcements.c.target_audience == audience)
        if user_id is not None:
            targets.append(
                and_(
                    announcements.c.target_audience == "specific",
                    announcements.c.target_user_id == user_id,
                )
            )
        rows = conn.execute(
            select(announcements)
            .where(
                announcements.c.is_active.is_(True),
                announcements.c.scheduled_at <= now,
                or_(*targets),
            )
            .order_by(announcements.c.scheduled_at.desc())
        ).mappings().all()
        return [dict(r) for r in rows]
