# =======================================================================================
# valtrack/utils/validators.py - Validation Helpers
# =======================================================================================
from typing import Any, Dict, List, Optional
from sqlalchemy import select
from sqlalchemy.engine import Connection
from .exceptions import InvalidRequestError, NotFoundError
from ..schema import areas, branches, floors


def require_text(value: Optional[str], message: str) -> str:
    """Return the stripped value or raise when blank."""
    if value is None or not str(value).strip():
        raise InvalidRequestError(message)
    return str(value).strip()


class TopologyValidator:
    """Validates the branch -> floor -> area layout."""

    @staticmethod
    def get_branch(conn: Connection, branch_id: int) -> Dict[str, Any]:
        branch = conn.execute(
            select(branches).where(branches.c.id == branch_id)
        ).mappings().first()

        if not branch:
            raise NotFoundError("Branch", branch_id)

        return dict(branch)

    @staticmethod
    def get_floor(conn: Connection, floor_id: int) -> Dict[str, Any]:
        floor = conn.execute(
            select(floors).where(floors.c.id == floor_id)
        ).mappings().first()

        if not floor:
            raise NotFoundError("Floor", floor_id)

        return dict(floor)

    @staticmethod
    def resolve_area(conn: Connection, area_id: int, lock: bool = False) -> Dict[str, Any]:
        """
        Load an area together with its floor and branch.

        With lock=True the area row is held FOR UPDATE until the transaction
        ends, so concurrent check-ins into the same area queue up behind it.
        """
        query = (
            select(
                areas,
                floors.c.floor_number,
                floors.c.label.label("floor_label"),
                floors.c.branch_id,
            )
            .select_from(areas.join(floors, areas.c.floor_id == floors.c.id))
            .where(areas.c.id == area_id)
        )
        if lock:
            query = query.with_for_update(of=areas)

        area = conn.execute(query).mappings().first()

        if not area:
            raise NotFoundError("Area", area_id)

        return dict(area)

    @staticmethod
    def branch_area_ids(conn: Connection, branch_id: int) -> List[int]:
        rows = conn.execute(
            select(areas.c.id)
            .select_from(areas.join(floors, areas.c.floor_id == floors.c.id))
            .where(floors.c.branch_id == branch_id)
        ).all()
        return [r[0] for r in rows]
