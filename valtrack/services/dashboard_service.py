# =======================================================================================
# valtrack/services/dashboard_service.py
# =======================================================================================

from typing import Any, Dict, List
from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from ..schema import area_attendance, areas, baggage, floors, incidents
from ..utils.timeutils import day_bounds
from ..utils.validators import TopologyValidator
from .area_service import AreaService
from .audit_service import AuditService


class DashboardService:
    """Live per-branch figures for the dashboard landing page."""

    def __init__(self):
        self.audit = AuditService()
        self.areas = AreaService()
        self.topology = TopologyValidator()

    # ---------- summary ----------

    def currently_inside(self, conn: Connection, branch_id: int) -> int:
        return int(conn.execute(
            select(func.count())
            .select_from(
                area_attendance.join(areas, area_attendance.c.area_id == areas.c.id)
                .join(floors, areas.c.floor_id == floors.c.id)
            )
            .where(floors.c.branch_id == branch_id, area_attendance.c.status == "active")
        ).scalar() or 0)

    def active_baggage_count(self, conn: Connection, branch_id: int) -> int:
        return int(conn.execute(
            select(func.count())
            .select_from(
                baggage.join(areas, baggage.c.area_id == areas.c.id)
                .join(floors, areas.c.floor_id == floors.c.id)
            )
            .where(floors.c.branch_id == branch_id, baggage.c.status == "occupied")
        ).scalar() or 0)

    def open_incident_count(self, conn: Connection, branch_id: int) -> int:
        return int(conn.execute(
            select(func.count())
            .select_from(incidents)
            .where(incidents.c.branch_id == branch_id, incidents.c.status == "open")
        ).scalar() or 0)

    def area_stats(self, conn: Connection, branch_id: int) -> List[Dict[str, Any]]:
        """Per-area occupancy, sorted by floor number then area name."""
        return [
            {
                "id": a["id"],
                "name": a["name"],
                "type": a["type"],
                "floor_label": a["floor_label"],
                "floor_number": a["floor_number"],
                "capacity": a["capacity"],
                "current": a["current"],
            }
            for a in self.areas.list_branch_areas(conn, branch_id)
        ]

    def get_summary(self, conn: Connection, branch_id: int) -> Dict[str, Any]:
        self.topology.get_branch(conn, branch_id)
        start, end = day_bounds()
        return {
            "currently_inside": self.currently_inside(conn, branch_id),
            "daily_scans": self.audit.count_scans(conn, start, end, branch_id),
            "active_baggage": self.active_baggage_count(conn, branch_id),
            "open_incidents": self.open_incident_count(conn, branch_id),
            "area_stats": self.area_stats(conn, branch_id),
        }
