# =======================================================================================
# valtrack/services/branch_service.py - Branch & Floor Configuration
# =======================================================================================
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Connection
from ..models.enums import AuditModule
from ..schema import branches, floors
from ..utils.exceptions import ConflictError, InvalidRequestError
from ..utils.timeutils import utcnow
from ..utils.validators import TopologyValidator, require_text
from .audit_service import AuditService

logger = logging.getLogger(__name__)


class BranchService:
    """Branch and floor CRUD for the admin dashboard."""

    def __init__(self):
        self.audit = AuditService()
        self.topology = TopologyValidator()

    # ---------- branches ----------

    def list_branches(self, conn: Connection, include_inactive: bool = True) -> List[Dict[str, Any]]:
        stmt = select(branches).order_by(branches.c.name)
        if not include_inactive:
            stmt = stmt.where(branches.c.is_active.is_(True))
        return [dict(r) for r in conn.execute(stmt).mappings().all()]

    def get_branch(self, conn: Connection, branch_id: int) -> Dict[str, Any]:
        return self.topology.get_branch(conn, branch_id)

    def create_branch(self, conn: Connection, name: str, actor: str) -> Dict[str, Any]:
        """Create a branch together with its default first floor."""
        name = require_text(name, "Branch name is required")
        self._ensure_unique_name(conn, name)

        result = conn.execute(
            insert(branches).values(name=name, is_active=True, created_at=utcnow())
        )
        branch_id = result.inserted_primary_key[0]

        conn.execute(
            insert(floors).values(branch_id=branch_id, floor_number=1, label="Floor 1")
        )

        self.audit.log(
            conn, actor, "Create Branch", AuditModule.BRANCH_MANAGEMENT,
            f"Created branch: {name} (ID: {branch_id})", branch_id,
        )
        logger.info("Created branch %s (%s) with default floor", branch_id, name)
        return self.get_branch(conn, branch_id)

    def update_branch(self, conn: Connection, branch_id: int, name: str, actor: str) -> Dict[str, Any]:
        branch = self.get_branch(conn, branch_id)
        name = require_text(name, "Branch name is required")
        if name != branch["name"]:
            self._ensure_unique_name(conn, name)

        conn.execute(update(branches).where(branches.c.id == branch_id).values(name=name))
        self.audit.log(
            conn, actor, "Update Branch", AuditModule.BRANCH_MANAGEMENT,
            f"Renamed branch {branch['name']} to {name}", branch_id,
        )
        return self.get_branch(conn, branch_id)

    def set_branch_active(self, conn: Connection, branch_id: int, is_active: bool, actor: str) -> Dict[str, Any]:
        branch = self.get_branch(conn, branch_id)
        action = "Activate" if is_active else "Deactivate"

        conn.execute(update(branches).where(branches.c.id == branch_id).values(is_active=is_active))
        self.audit.log(
            conn, actor, f"{action} Branch", AuditModule.BRANCH_MANAGEMENT,
            f"{action}d branch: {branch['name']} (ID: {branch_id})", branch_id,
        )
        return self.get_branch(conn, branch_id)

    def delete_branch(self, conn: Connection, branch_id: int, actor: str) -> None:
        """Delete a branch; floors, areas, lockers and attendance cascade."""
        self.get_branch(conn, branch_id)
        conn.execute(delete(branches).where(branches.c.id == branch_id))
        self.audit.log(
            conn, actor, "Delete Branch", AuditModule.BRANCH_MANAGEMENT,
            f"Deleted branch ID: {branch_id}", None,
        )
        logger.info("Deleted branch %s", branch_id)

    def _ensure_unique_name(self, conn: Connection, name: str) -> None:
        existing = conn.execute(
            select(branches.c.id).where(branches.c.name == name)
        ).first()
        if existing:
            raise ConflictError(f"Branch {name} already exists")

    # ---------- floors ----------

    def list_floors(self, conn: Connection, branch_id: int) -> List[Dict[str, Any]]:
        self.get_branch(conn, branch_id)
        rows = conn.execute(
            select(floors).where(floors.c.branch_id == branch_id).order_by(floors.c.floor_number)
        ).mappings().all()
        return [dict(r) for r in rows]

    def create_floor(
        self,
        conn: Connection,
        branch_id: int,
        floor_number: int,
        label: Optional[str],
        actor: str,
    ) -> Dict[str, Any]:
        self.get_branch(conn, branch_id)
        if floor_number is None:
            raise InvalidRequestError("Floor number is required")

        existing = conn.execute(
            select(floors.c.id).where(
                floors.c.branch_id == branch_id, floors.c.floor_number == floor_number
            )
        ).first()
        if existing:
            raise ConflictError(f"Floor {floor_number} already exists in this branch")

        label = (label or "").strip() or f"Floor {floor_number}"
        result = conn.execute(
            insert(floors).values(branch_id=branch_id, floor_number=floor_number, label=label)
        )
        self.audit.log(
            conn, actor, "Add Floor", AuditModule.AREA_MANAGEMENT,
            f"Added {label} to branch {branch_id}", branch_id,
        )
        return self.topology.get_floor(conn, result.inserted_primary_key[0])

    def rename_floor(self, conn: Connection, floor_id: int, label: str, actor: str) -> Dict[str, Any]:
        floor = self.topology.get_floor(conn, floor_id)
        label = require_text(label, "Label cannot be empty")

        conn.execute(update(floors).where(floors.c.id == floor_id).values(label=label))
        self.audit.log(
            conn, actor, "Update Floor", AuditModule.AREA_MANAGEMENT,
            f"Renamed {floor['label']} to {label}", floor["branch_id"],
        )
        return self.topology.get_floor(conn, floor_id)

    def delete_floor(self, conn: Connection, floor_id: int, actor: str) -> None:
        floor = self.topology.get_floor(conn, floor_id)
        conn.execute(delete(floors).where(floors.c.id == floor_id))
        self.audit.log(
            conn, actor, "Delete Floor", AuditModule.AREA_MANAGEMENT,
            f"Deleted {floor['label']}", floor["branch_id"],
        )
