# =======================================================================================
# valtrack/services/baggage_service.py - Baggage Lockers
# =======================================================================================
import csv
import io
import logging
from typing import Any, Dict, List
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Connection
from ..models.enums import AuditAction, AuditModule
from ..schema import area_attendance, areas, baggage, baggage_logs, floors
from ..utils.exceptions import (
    ConflictError, InvalidRequestError, LockersOccupiedError, NoLockerAvailableError,
)
from ..utils.timeutils import start_of_day, utcnow
from ..utils.validators import TopologyValidator
from .audit_service import AuditService
from .patron_service import PatronService

logger = logging.getLogger(__name__)


class BaggageService:
    """Locker assignment, release and per-area locker configuration."""

    def __init__(self):
        self.audit = AuditService()
        self.patrons = PatronService()
        self.topology = TopologyValidator()

    @staticmethod
    def locker_id(area_id: int, n: int) -> str:
        return f"LKR-{area_id}-{n:03d}"

    def _log_move(self, conn: Connection, locker_id: str, area_id: int, patron_id: int, name: str, action: str):
        conn.execute(
            insert(baggage_logs).values(
                locker_id=locker_id,
                area_id=area_id,
                patron_id=patron_id,
                patron_name=name,
                action=action,
                timestamp=utcnow(),
            )
        )

    # ---------- toggle ----------

    def toggle_baggage(self, conn: Connection, area_id: int, patron_id: int, actor: str) -> Dict[str, Any]:
        """Release the patron's locker if they hold one, otherwise assign the first free one."""
        area = self.topology.resolve_area(conn, area_id, lock=True)
        patron = self.patrons.get_patron(conn, patron_id)
        name = self.patrons.full_name(patron)

        held = conn.execute(
            select(baggage)
            .where(baggage.c.patron_id == patron_id, baggage.c.status == "occupied")
            .order_by(baggage.c.id)
            .with_for_update()
        ).mappings().first()

        if held:
            conn.execute(
                update(baggage)
                .where(baggage.c.id == held["id"])
                .values(status="available", patron_id=None, patron_name=None, check_in_time=None)
            )
            self._log_move(conn, held["id"], held["area_id"], patron_id, name, "check_out")
            self.audit.log(
                conn, actor, AuditAction.BAGGAGE_CHECK_OUT.value, AuditModule.BAGGAGE,
                f"Released locker {held['id']} for {name}", area["branch_id"],
            )
            logger.info("Released locker %s for patron %s", held["id"], patron_id)
            return {
                "action": "out",
                "message": f"Released locker {held['id']}",
                "locker_id": held["id"],
                "patron_id": patron_id,
                "patron_name": name,
            }

        inside = conn.execute(
            select(area_attendance.c.id).where(
                area_attendance.c.patron_id == patron_id,
                area_attendance.c.area_id == area_id,
                area_attendance.c.status == "active",
            )
        ).first()
        if not inside:
            raise InvalidRequestError(f"Patron is not checked in to {area['name']}")

        locker = conn.execute(
            select(baggage)
            .where(baggage.c.area_id == area_id, baggage.c.status == "available")
            .order_by(baggage.c.id)
            .with_for_update()
        ).mappings().first()
        if not locker:
            raise NoLockerAvailableError("No available lockers in this area")

        conn.execute(
            update(baggage)
            .where(baggage.c.id == locker["id"])
            .values(status="occupied", patron_id=patron_id, patron_name=name, check_in_time=utcnow())
        )
        self._log_move(conn, locker["id"], area_id, patron_id, name, "check_in")
        self.audit.log(
            conn, actor, AuditAction.BAGGAGE_CHECK_IN.value, AuditModule.BAGGAGE,
            f"Assigned locker {locker['id']} to {name}", area["branch_id"],
        )
        logger.info("Assigned locker %s to patron %s", locker["id"], patron_id)
        return {
            "action": "in",
            "message": f"Assigned locker {locker['id']}",
            "locker_id": locker["id"],
            "patron_id": patron_id,
            "patron_name": name,
        }

    # ---------- listing ----------

    def list_lockers(self, conn: Connection, area_id: int) -> List[Dict[str, Any]]:
        area = self.topology.resolve_area(conn, area_id)
        rows = conn.execute(
            select(baggage).where(baggage.c.area_id == area_id).order_by(baggage.c.id)
        ).mappings().all()
        return [{**dict(r), "area_name": area["name"]} for r in rows]

    def locker_summary(self, conn: Connection, area_id: int) -> Dict[str, Any]:
        lockers = self.list_lockers(conn, area_id)
        midnight = start_of_day()
        occupied = [l for l in lockers if l["status"] == "occupied"]
        overdue = [l for l in occupied if l["check_in_time"] and l["check_in_time"] < midnight]
        log_count = conn.execute(
            select(func.count()).select_from(baggage_logs).where(baggage_logs.c.area_id == area_id)
        ).scalar() or 0
        return {
            "area_id": area_id,
            "total": len(lockers),
            "available": len(lockers) - len(occupied),
            "occupied": len(occupied),
            "overdue": len(overdue),
            "log_count": int(log_count),
        }

    def active_baggage(self, conn: Connection, branch_id: int) -> List[Dict[str, Any]]:
        rows = conn.execute(
            select(baggage, areas.c.name.label("area_name"))
            .select_from(
                baggage.join(areas, baggage.c.area_id == areas.c.id)
                .join(floors, areas.c.floor_id == floors.c.id)
            )
            .where(floors.c.branch_id == branch_id, baggage.c.status == "occupied")
            .order_by(baggage.c.check_in_time.desc())
        ).mappings().all()
        return [dict(r) for r in rows]

    # ---------- configuration ----------

    def configure_lockers(self, conn: Connection, area_id: int, target_count: int, actor: str) -> List[Dict[str, Any]]:
        """Grow or shrink an area's lockers to target_count."""
        area = self.topology.resolve_area(conn, area_id, lock=True)
        if target_count < 0:
            raise InvalidRequestError("Locker count cannot be negative")
        if target_count > area["capacity"]:
            raise ConflictError(
                f"Locker count cannot exceed the capacity of {area['name']} ({area['capacity']})"
            )

        existing = conn.execute(
            select(baggage).where(baggage.c.area_id == area_id).order_by(baggage.c.id)
        ).mappings().all()
        current = len(existing)

        if target_count < current:
            removed = existing[target_count:]
            occupied = sum(1 for l in removed if l["status"] == "occupied")
            if occupied:
                raise LockersOccupiedError(f"Cannot remove slots: {occupied} are currently occupied.")
            conn.execute(delete(baggage).where(baggage.c.id.in_([l["id"] for l in removed])))
        elif target_count > current:
            taken = set(conn.execute(select(baggage.c.id)).scalars().all())
            n = current
            for _ in range(target_count - current):
                n += 1
                while self.locker_id(area_id, n) in taken:
                    n += 1
                new_id = self.locker_id(area_id, n)
                taken.add(new_id)
                conn.execute(insert(baggage).values(id=new_id, area_id=area_id, status="available"))

        if target_count != current:
            self.audit.log(
                conn, actor, "Configure Lockers", AuditModule.BAGGAGE,
                f"Set {area['name']} lockers from {current} to {target_count}", area["branch_id"],
            )
        return self.list_lockers(conn, area_id)

    # ---------- export ----------

    def export_occupied_csv(self, conn: Connection, area_id: int) -> str:
        lockers = [l for l in self.list_lockers(conn, area_id) if l["status"] == "occupied"]
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(["Locker ID", "Status", "Patron Name", "Patron ID", "Check-In Time"])
        for l in lockers:
            writer.writerow([
                l["id"],
                l["status"],
                l["patron_name"] or "",
                l["patron_id"] or "",
                l["check_in_time"].strftime("%Y-%m-%d %H:%M:%S") if l["check_in_time"] else "",
            ])
        return buffer.getvalue()

