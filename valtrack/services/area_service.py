# =======================================================================================
# valtrack/services/area_service.py - Area Configuration & Occupancy
# =======================================================================================
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Connection
from ..config import config
from ..models.enums import AuditModule
from ..schema import area_attendance, areas, baggage, floors
from ..utils.exceptions import ConflictError, InvalidRequestError
from ..utils.validators import TopologyValidator, require_text
from .audit_service import AuditService

DEFAULT_AREA_TYPE = "General Library"


class AreaService:
    """Area CRUD plus the live occupancy counts shown next to each area."""

    def __init__(self):
        self.audit = AuditService()
        self.topology = TopologyValidator()

    # ---------- occupancy ----------

    def area_counts(self, conn: Connection, area_ids: Iterable[int]) -> Dict[int, int]:
        """Active attendance count per area; areas with nobody inside map to 0."""
        area_ids = list(area_ids)
        counts = {area_id: 0 for area_id in area_ids}
        if not area_ids:
            return counts

        rows = conn.execute(
            select(area_attendance.c.area_id, func.count().label("n"))
            .where(
                area_attendance.c.status == "active",
                area_attendance.c.area_id.in_(area_ids),
            )
            .group_by(area_attendance.c.area_id)
        ).all()
        for area_id, n in rows:
            counts[area_id] = int(n)
        return counts

    def area_occupancy(self, conn: Connection, area_id: int) -> Dict[str, Any]:
        area = self.topology.resolve_area(conn, area_id)
        current = self.area_counts(conn, [area_id])[area_id]
        capacity = area["capacity"]
        percentage = round(current / capacity * 100, 1) if capacity > 0 else 0.0
        return {
            "area_id": area_id,
            "name": area["name"],
            "current": current,
            "capacity": capacity,
            "percentage": percentage,
            "near_capacity": percentage >= config.NEAR_CAPACITY_THRESHOLD,
        }

    # ---------- listing ----------

    def _area_query(self):
        return (
            select(
                areas,
                floors.c.floor_number,
                floors.c.label.label("floor_label"),
            )
            .select_from(areas.join(floors, areas.c.floor_id == floors.c.id))
        )

    def _with_counts(self, conn: Connection, rows) -> List[Dict[str, Any]]:
        items = [dict(r) for r in rows]
        counts = self.area_counts(conn, [a["id"] for a in items])
        for item in items:
            item["current"] = counts[item["id"]]
        return items

    def list_areas(self, conn: Connection, floor_id: int) -> List[Dict[str, Any]]:
        self.topology.get_floor(conn, floor_id)
        rows = conn.execute(
            self._area_query().where(areas.c.floor_id == floor_id).order_by(areas.c.name)
        ).mappings().all()
        return self._with_counts(conn, rows)

    def list_branch_areas(self, conn: Connection, branch_id: int) -> List[Dict[str, Any]]:
        self.topology.get_branch(conn, branch_id)
        rows = conn.execute(
            self._area_query()
            .where(floors.c.branch_id == branch_id)
            .order_by(floors.c.floor_number, areas.c.name)
        ).mappings().all()
        return self._with_counts(conn, rows)

    def list_assigned_areas(
        self,
        conn: Connection,
        branch_id: int,
        assigned_floor_id: Optional[int] = None,
        assigned_area_id: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Areas a staff member may work in.

        An area assignment wins over a floor assignment; with neither the
        whole branch is visible.
        """
        if assigned_area_id is not None:
            area = self.topology.resolve_area(conn, assigned_area_id)
            if area["branch_id"] != branch_id:
                return []
            rows = conn.execute(
                self._area_query().where(areas.c.id == assigned_area_id)
            ).mappings().all()
            return self._with_counts(conn, rows)

        if assigned_floor_id is not None:
            floor = self.topology.get_floor(conn, assigned_floor_id)
            if floor["branch_id"] != branch_id:
                return []
            return self.list_areas(conn, assigned_floor_id)

        return self.list_branch_areas(conn, branch_id)

    # ---------- CRUD ----------

    def create_area(
        self,
        conn: Connection,
        floor_id: int,
        name: str,
        area_type: Optional[str],
        capacity: int,
        actor: str,
    ) -> Dict[str, Any]:
        floor = self.topology.get_floor(conn, floor_id)
        name = require_text(name, "Please fill in all required fields")
        capacity = self._validate_capacity(capacity)
        self._ensure_unique_name(conn, floor_id, name)

        result = conn.execute(
            insert(areas).values(
                floor_id=floor_id,
                name=name,
                type=(area_type or "").strip() or DEFAULT_AREA_TYPE,
                capacity=capacity,
            )
        )
        area_id = result.inserted_primary_key[0]
        self.audit.log(
            conn, actor, "Create Area", AuditModule.AREA_MANAGEMENT,
            f"Created area {name} (capacity {capacity}) on {floor['label']}", floor["branch_id"],
        )
        return self.get_area(conn, area_id)

    def update_area(
        self,
        conn: Connection,
        area_id: int,
        actor: str,
        name: Optional[str] = None,
        area_type: Optional[str] = None,
        capacity: Optional[int] = None,
    ) -> Dict[str, Any]:
        area = self.topology.resolve_area(conn, area_id)
        values: Dict[str, Any] = {}

        if name is not None:
            name = require_text(name, "Area name is required")
            if name != area["name"]:
                self._ensure_unique_name(conn, area["floor_id"], name)
            values["name"] = name
        if area_type is not None:
            values["type"] = area_type.strip() or DEFAULT_AREA_TYPE
        if capacity is not None:
            values["capacity"] = self._validate_capacity(capacity)
            lockers = conn.execute(
                select(func.count()).select_from(baggage).where(baggage.c.area_id == area_id)
            ).scalar() or 0
            if lockers > values["capacity"]:
                raise ConflictError(
                    f"Capacity cannot be lower than the {lockers} baggage lockers in this area"
                )

        if values:
            conn.execute(update(areas).where(areas.c.id == area_id).values(**values))
            changes = ", ".join(f"{k}={v}" for k, v in values.items())
            self.audit.log(
                conn, actor, "Update Area", AuditModule.AREA_MANAGEMENT,
                f"Updated area {area['name']}: {changes}", area["branch_id"],
            )
        return self.get_area(conn, area_id)

    def delete_area(self, conn: Connection, area_id: int, actor: str) -> None:
        area = self.topology.resolve_area(conn, area_id)
        conn.execute(delete(areas).where(areas.c.id == area_id))
        self.audit.log(
            conn, actor, "Delete Area", AuditModule.AREA_MANAGEMENT,
            f"Deleted area {area['name']}", area["branch_id"],
        )

    def get_area(self, conn: Connection, area_id: int) -> Dict[str, Any]:
        area = self.topology.resolve_area(conn, area_id)
        area["current"] = self.area_counts(conn, [area_id])[area_id]
        return area

    @staticmethod
    def _validate_capacity(capacity) -> int:
        try:
            capacity = int(capacity)
        except (TypeError, ValueError):
            raise InvalidRequestError("Capacity must be a whole number")
        if capacity <= 0:
            raise InvalidRequestError("Capacity must be greater than zero")
        return capacity

    def _ensure_unique_name(self, conn: Connection, floor_id: int, name: str) -> None:
        existing = conn.execute(
            select(areas.c.id).where(areas.c.floor_id == floor_id, areas.c.name == name)
        ).first()
        if existing:
            raise ConflictError(f"Area {name} already exists on this floor")
