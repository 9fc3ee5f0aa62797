# =======================================================================================
# valtrack/services/incident_service.py - Incident Reports
# =======================================================================================
import csv
import io
from typing import Any, Dict, List, Optional
from sqlalchemy import func, insert, or_, select, update
from sqlalchemy.engine import Connection
from ..models.enums import AuditModule
from ..schema import incidents
from ..utils.exceptions import ConflictError, InvalidRequestError, NotFoundError
from ..utils.timeutils import utcnow
from ..utils.validators import TopologyValidator, require_text
from .audit_service import AuditService

INCIDENT_TYPES = ("lost_item", "damaged_item", "policy_violation", "medical", "other")


class IncidentService:
    """Incident reporting and resolution."""

    def __init__(self):
        self.audit = AuditService()
        self.topology = TopologyValidator()

    def get_incident(self, conn: Connection, incident_id: int) -> Dict[str, Any]:
        row = conn.execute(
            select(incidents).where(incidents.c.id == incident_id)
        ).mappings().first()
        if not row:
            raise NotFoundError("Incident", incident_id)
        return dict(row)

    def report_incident(
        self,
        conn: Connection,
        description: str,
        branch_id: int,
        reported_by: str,
        incident_type: str = "lost_item",
        patron_id: Optional[int] = None,
        patron_name: Optional[str] = None,
        area_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        description = require_text(description, "Please provide a description")
        if incident_type not in INCIDENT_TYPES:
            raise InvalidRequestError(f"Unknown incident type: {incident_type}")
        self.topology.get_branch(conn, branch_id)

        floor = 1
        if area_id is not None:
            area = self.topology.resolve_area(conn, area_id)
            if area["branch_id"] != branch_id:
                raise InvalidRequestError("Area does not belong to this branch")
            description = f"[{area['name']}] {description}"
            floor = area["floor_number"] or 1

        result = conn.execute(
            insert(incidents).values(
                patron_id=patron_id,
                patron_name=(patron_name or "").strip() or None,
                type=incident_type,
                description=description,
                status="open",
                reported_by=reported_by,
                branch_id=branch_id,
                area_id=area_id,
                floor=floor,
                created_at=utcnow(),
            )
        )
        incident_id = result.inserted_primary_key[0]
        self.audit.log(
            conn, reported_by, "Report Incident", AuditModule.INCIDENTS,
            f"Reported {incident_type} incident #{incident_id}", branch_id,
        )
        return self.get_incident(conn, incident_id)

    def resolve_incident(self, conn: Connection, incident_id: int, resolved_by: str) -> Dict[str, Any]:
        incident = self.get_incident(conn, incident_id)
        if incident["status"] == "resolved":
            raise ConflictError(f"Incident {incident_id} is already resolved")

        conn.execute(
            update(incidents)
            .where(incidents.c.id == incident_id)
            .values(status="resolved", resolved_at=utcnow(), resolved_by=resolved_by)
        )
        self.audit.log(
            conn, resolved_by, "Resolve Incident", AuditModule.INCIDENTS,
            f"Resolved incident #{incident_id}", incident["branch_id"],
        )
        return self.get_incident(conn, incident_id)

    def list_incidents(
        self,
        conn: Connection,
        branch_id: Optional[int] = None,
        status: Optional[str] = None,
        query: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        stmt = select(incidents)
        if branch_id is not None:
            stmt = stmt.where(incidents.c.branch_id == branch_id)
        if status and status != "all":
            stmt = stmt.where(incidents.c.status == status)
        if query:
            like = f"%{query}%"
            stmt = stmt.where(
                or_(incidents.c.description.ilike(like), incidents.c.patron_name.ilike(like))
            )
        rows = conn.execute(
            stmt.order_by(incidents.c.created_at.desc(), incidents.c.id.desc())
        ).mappings().all()
        return [dict(r) for r in rows]

    def incident_counts(self, conn: Connection, branch_id: Optional[int] = None) -> Dict[str, int]:
        stmt = select(incidents.c.status, func.count()).group_by(incidents.c.status)
        if branch_id is not None:
            stmt = stmt.where(incidents.c.branch_id == branch_id)
        counts = {"open": 0, "resolved": 0}
        for status, n in conn.execute(stmt).all():
            counts[status] = int(n)
        return counts

    def export_incidents_csv(self, rows: List[Dict[str, Any]]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(["ID", "Type", "Status", "Patron", "Floor", "Description", "Reported By", "Reported At", "Resolved At"])
        for r in rows:
            writer.writerow([
                r["id"],
                r["type"],
                r["status"],
                r["patron_name"] or "",
                r["floor"] or "",
                r["description"],
                r["reported_by"] or "",
                r["created_at"].strftime("%Y-%m-%d %H:%M:%S") if r["created_at"] else "",
                r["resolved_at"].strftime("%Y-%m-%d %H:%M:%S") if r["resolved_at"] else "",
            ])
        return buffer.getvalue()
