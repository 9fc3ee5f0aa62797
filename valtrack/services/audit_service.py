# =======================================================================================
# valtrack/services/audit_service.py - Audit Trail
# =======================================================================================
import csv
import io
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import func, insert, or_, select
from sqlalchemy.engine import Connection
from ..schema import audit_logs
from ..utils.timeutils import utcnow


class AuditService:
    """Writes and queries the audit_logs table."""

    def log(
        self,
        conn: Connection,
        user_name: Optional[str],
        action: str,
        module: str,
        details: str,
        branch_id: Optional[int] = None,
    ) -> int:
        result = conn.execute(
            insert(audit_logs).values(
                user_name=user_name or "Staff",
                action=action,
                module=str(getattr(module, "value", module)),
                details=details,
                branch_id=branch_id,
                timestamp=utcnow(),
            )
        )
        return result.inserted_primary_key[0]

    def list_logs(
        self,
        conn: Connection,
        branch_id: Optional[int] = None,
        module: Optional[str] = None,
        query: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """Newest first, optionally filtered by branch, module, text and time window."""
        stmt = select(audit_logs)
        if branch_id is not None:
            stmt = stmt.where(audit_logs.c.branch_id == branch_id)
        if module and module != "all":
            stmt = stmt.where(audit_logs.c.module == module)
        if query:
            like = f"%{query}%"
            stmt = stmt.where(
                or_(
                    audit_logs.c.user_name.ilike(like),
                    audit_logs.c.action.ilike(like),
                    audit_logs.c.details.ilike(like),
                )
            )
        if start is not None:
            stmt = stmt.where(audit_logs.c.timestamp >= start)
        if end is not None:
            stmt = stmt.where(audit_logs.c.timestamp < end)

        rows = conn.execute(
            stmt.order_by(audit_logs.c.timestamp.desc(), audit_logs.c.id.desc()).limit(limit)
        ).mappings().all()
        return [dict(r) for r in rows]

    def count_scans(
        self,
        conn: Connection,
        start: datetime,
        end: datetime,
        branch_id: Optional[int] = None,
    ) -> int:
        """Count check-in and check-out actions (patron and baggage) in a window."""
        stmt = select(func.count()).select_from(audit_logs).where(
            audit_logs.c.timestamp >= start,
            audit_logs.c.timestamp < end,
            or_(
                audit_logs.c.action.ilike("%Check-In%"),
                audit_logs.c.action.ilike("%Check-Out%"),
            ),
        )
        if branch_id is not None:
            stmt = stmt.where(audit_logs.c.branch_id == branch_id)
        return int(conn.execute(stmt).scalar() or 0)

    def export_csv(self, logs: List[Dict[str, Any]]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(["Timestamp", "User", "Action", "Module", "Details"])
        for log in logs:
            writer.writerow([
                log["timestamp"].strftime("%Y-%m-%d %H:%M:%S") if log.get("timestamp") else "",
                log.get("user_name") or "",
                log.get("action") or "",
                log.get("module") or "",
                log.get("details") or "",
            ])
        return buffer.getvalue()
