# =======================================================================================
# valtrack/services/attendance_service.py - Area Check-In / Check-Out
# =======================================================================================
import logging
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection
from ..models.enums import AuditAction, AuditModule
from ..schema import area_attendance, areas, patrons
from ..utils.exceptions import (
    AccessDeniedError, AlreadyCheckedInError, CapacityReachedError, NotFoundError,
)
from ..utils.timeutils import utcnow
from ..utils.validators import TopologyValidator
from .area_service import AreaService
from .audit_service import AuditService
from .patron_service import PatronService

logger = logging.getLogger(__name__)


class AttendanceService:
    """Handles the patron area attendance toggle."""

    def __init__(self):
        self.audit = AuditService()
        self.areas = AreaService()
        self.patrons = PatronService()
        self.topology = TopologyValidator()

    def _lock_patron(self, conn: Connection, patron_id: int) -> Dict[str, Any]:
        patron = conn.execute(
            select(patrons).where(patrons.c.id == patron_id).with_for_update()
        ).mappings().first()
        if not patron:
            raise NotFoundError("Patron", patron_id)
        return dict(patron)

    def _active_record(self, conn: Connection, patron_id: int) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            select(area_attendance, areas.c.name.label("area_name"))
            .select_from(area_attendance.join(areas, area_attendance.c.area_id == areas.c.id))
            .where(
                area_attendance.c.patron_id == patron_id,
                area_attendance.c.status == "active",
            )
            .order_by(area_attendance.c.entry_time.desc())
        ).mappings().first()
        return dict(row) if row else None

    def toggle_attendance(self, conn: Connection, patron_id: int, area_id: int, actor: str) -> Dict[str, Any]:
        """
        Check a patron into or out of an area.

        Returns: dict matching ScanResponse
        """
        # Lock order: area first, then patron
        area = self.topology.resolve_area(conn, area_id, lock=True)
        patron = self._lock_patron(conn, patron_id)

        name = self.patrons.full_name(patron)
        label = patron["library_id"] or str(patron["id"])
        active = self._active_record(conn, patron_id)

        if active and active["area_id"] == area_id:
            conn.execute(
                update(area_attendance)
                .where(area_attendance.c.id == active["id"])
                .values(status="exited", exit_time=utcnow())
            )
            self.audit.log(
                conn, actor, AuditAction.PATRON_CHECK_OUT.value, AuditModule.QR_SCAN,
                f"{name} ({label}) checked OUT from {area['name']}", area["branch_id"],
            )
            logger.info("Patron %s checked out of area %s", patron_id, area_id)
            action, message = "out", f"{name} checked out of {area['name']}"
        else:
            if patron["account_status"] != "active":
                raise AccessDeniedError(f"Patron account is {patron['account_status']}")
            if active:
                raise AlreadyCheckedInError(
                    f"Patron is currently checked in at {active['area_name']}. "
                    "Please check out there first."
                )

            current = self.areas.area_counts(conn, [area_id])[area_id]
            if current >= area["capacity"]:
                raise CapacityReachedError(f"Capacity reached for {area['name']}. Cannot check in.")

            conn.execute(
                insert(area_attendance).values(
                    patron_id=patron_id,
                    patron_name=name,
                    area_id=area_id,
                    status="active",
                    entry_time=utcnow(),
                )
            )
            self.audit.log(
                conn, actor, AuditAction.PATRON_CHECK_IN.value, AuditModule.QR_SCAN,
                f"{name} ({label}) checked IN to {area['name']}", area["branch_id"],
            )
            logger.info("Patron %s checked into area %s", patron_id, area_id)
            action, message = "in", f"{name} checked in to {area['name']}"

        return {
            "action": action,
            "message": message,
            "patron_id": patron_id,
            "patron_name": name,
            "area_id": area_id,
            "area_name": area["name"],
            "current": self.areas.area_counts(conn, [area_id])[area_id],
            "capacity": area["capacity"],
        }

    def scan(self, conn: Connection, scanned_value: str, area_id: int, actor: str) -> Dict[str, Any]:
        patron = self.patrons.find_by_scan_value(conn, scanned_value)
        return self.toggle_attendance(conn, patron["id"], area_id, actor)

    # ---------- queries ----------

    def active_attendance(self, conn: Connection, area_ids: Iterable[int]) -> List[Dict[str, Any]]:
        area_ids = list(area_ids)
        if not area_ids:
            return []
        rows = conn.execute(
            select(area_attendance, areas.c.name.label("area_name"))
            .select_from(area_attendance.join(areas, area_attendance.c.area_id == areas.c.id))
            .where(
                area_attendance.c.status == "active",
                area_attendance.c.area_id.in_(area_ids),
            )
            .order_by(area_attendance.c.entry_time.desc())
        ).mappings().all()
        return [dict(r) for r in rows]

    def area_counts(self, conn: Connection, area_ids: Iterable[int]) -> Dict[int, int]:
        return self.areas.area_counts(conn, area_ids)

    def scan_history(self, conn: Connection, branch_id: Optional[int] = None, limit: int = 10) -> List[Dict[str, Any]]:
        """Recent QR Scan audit entries, newest first."""
        return self.audit.list_logs(conn, branch_id=branch_id, module=AuditModule.QR_SCAN.value, limit=limit)

    def patron_history(self, conn: Connection, patron_id: int, limit: int = 50) -> List[Dict[str, Any]]:
        self.patrons.get_patron(conn, patron_id)
        rows = conn.execute(
            select(area_attendance, areas.c.name.label("area_name"))
            .select_from(area_attendance.join(areas, area_attendance.c.area_id == areas.c.id))
            .where(area_attendance.c.patron_id == patron_id)
            .order_by(area_attendance.c.entry_time.desc(), area_attendance.c.id.desc())
            .limit(limit)
        ).mappings().all()

        history = []
        for row in rows:
            item = dict(row)
            if item["exit_time"] is not None:
                item["duration_minutes"] = int((item["exit_time"] - item["entry_time"]).total_seconds() // 60)
            else:
                item["duration_minutes"] = None
            history.append(item)
        return history
