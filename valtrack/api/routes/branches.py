# =======================================================================================
# valtrack/api/routes/branches.py - Branch, Floor & Area Endpoints
# =======================================================================================
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.engine import Connection
from ...models.schemas import (
    Area, AreaCreate, AreaOccupancy, AreaUpdate, Branch, BranchCreate, BranchUpdate,
    Floor, FloorCreate, FloorUpdate,
)
from ...services.area_service import AreaService
from ...services.branch_service import BranchService
from ..dependencies import get_actor_name, get_db_connection

router = APIRouter()
branch_service = BranchService()
area_service = AreaService()


# ---- branches ----

@router.get("/branches", response_model=List[Branch])
def list_branches(
    include_inactive: bool = Query(True),
    conn: Connection = Depends(get_db_connection),
):
    return branch_service.list_branches(conn, include_inactive)


@router.post("/branches", response_model=Branch, status_code=201)
def create_branch(
    request: BranchCreate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return branch_service.create_branch(conn, request.name, actor)


@router.get("/branches/{branch_id}", response_model=Branch)
def get_branch(branch_id: int, conn: Connection = Depends(get_db_connection)):
    return branch_service.get_branch(conn, branch_id)


@router.patch("/branches/{branch_id}", response_model=Branch)
def update_branch(
    branch_id: int,
    request: BranchUpdate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    branch = branch_service.get_branch(conn, branch_id)
    if request.name is not None:
        branch = branch_service.update_branch(conn, branch_id, request.name, actor)
    if request.is_active is not None and request.is_active != branch["is_active"]:
        branch = branch_service.set_branch_active(conn, branch_id, request.is_active, actor)
    return branch


@router.delete("/branches/{branch_id}", status_code=204)
def delete_branch(
    branch_id: int,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    branch_service.delete_branch(conn, branch_id, actor)


# ---- floors ----

@router.get("/branches/{branch_id}/floors", response_model=List[Floor])
def list_floors(branch_id: int, conn: Connection = Depends(get_db_connection)):
    return branch_service.list_floors(conn, branch_id)


@router.post("/branches/{branch_id}/floors", response_model=Floor, status_code=201)
def create_floor(
    branch_id: int,
    request: FloorCreate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return branch_service.create_floor(conn, branch_id, request.floor_number, request.label, actor)


@router.patch("/floors/{floor_id}", response_model=Floor)
def rename_floor(
    floor_id: int,
    request: FloorUpdate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return branch_service.rename_floor(conn, floor_id, request.label, actor)


@router.delete("/floors/{floor_id}", status_code=204)
def delete_floor(
    floor_id: int,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    branch_service.delete_floor(conn, floor_id, actor)


# ---- areas ----

@router.get("/branches/{branch_id}/areas", response_model=List[Area])
def list_branch_areas(
    branch_id: int,
    assigned_floor_id: Optional[int] = Query(None),
    assigned_area_id: Optional[int] = Query(None),
    conn: Connection = Depends(get_db_connection),
):
    """All areas of a branch, narrowed to a staff member's floor or area when given."""
    return area_service.list_assigned_areas(conn, branch_id, assigned_floor_id, assigned_area_id)


@router.get("/floors/{floor_id}/areas", response_model=List[Area])
def list_areas(floor_id: int, conn: Connection = Depends(get_db_connection)):
    return area_service.list_areas(conn, floor_id)


@router.post("/floors/{floor_id}/areas", response_model=Area, status_code=201)
def create_area(
    floor_id: int,
    request: AreaCreate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return area_service.create_area(conn, floor_id, request.name, request.type, request.capacity, actor)


@router.get("/areas/{area_id}", response_model=Area)
def get_area(area_id: int, conn: Connection = Depends(get_db_connection)):
    return area_service.get_area(conn, area_id)


@router.patch("/areas/{area_id}", response_model=Area)
def update_area(
    area_id: int,
    request: AreaUpdate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return area_service.update_area(
        conn, area_id, actor, name=request.name, area_type=request.type, capacity=request.capacity
    )


@router.delete("/areas/{area_id}", status_code=204)
def delete_area(
    area_id: int,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    area_service.delete_area(conn, area_id, actor)


@router.get("/areas/{area_id}/occupancy", response_model=AreaOccupancy)
def area_occupancy(area_id: int, conn: Connection = Depends(get_db_connection)):
    return area_service.area_occupancy(conn, area_id)
