# =======================================================================================
# valtrack/api/routes/patrons.py - Patron Endpoints
# =======================================================================================
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.engine import Connection
from ...models.schemas import (
    AttendanceRecord, Patron, PatronCreate, PatronStatusUpdate, PatronUpdate,
)
from ...services.attendance_service import AttendanceService
from ...services.patron_service import PatronService
from ..dependencies import get_actor_name, get_db_connection

router = APIRouter()
patron_service = PatronService()
attendance_service = AttendanceService()


@router.get("/patrons", response_model=List[Patron])
def list_patrons(
    query: Optional[str] = Query(None, description="Name, library ID or email"),
    status: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    conn: Connection = Depends(get_db_connection),
):
    return patron_service.list_patrons(conn, query, status, skip, limit)


@router.get("/patrons/export")
def export_patrons(conn: Connection = Depends(get_db_connection)):
    return Response(
        content=patron_service.export_patrons_csv(conn),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=patrons.csv"},
    )


@router.post("/patrons", response_model=Patron, status_code=201)
def create_patron(
    request: PatronCreate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return patron_service.create_patron(conn, request.model_dump(), actor)


@router.get("/patrons/{patron_id}", response_model=Patron)
def get_patron(patron_id: int, conn: Connection = Depends(get_db_connection)):
    return patron_service.get_patron(conn, patron_id)


@router.patch("/patrons/{patron_id}", response_model=Patron)
def update_patron(
    patron_id: int,
    request: PatronUpdate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return patron_service.update_patron(conn, patron_id, request.model_dump(exclude_unset=True), actor)


@router.put("/patrons/{patron_id}/status", response_model=Patron)
def set_patron_status(
    patron_id: int,
    request: PatronStatusUpdate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return patron_service.set_patron_status(conn, patron_id, request.account_status, actor)


@router.delete("/patrons/{patron_id}", status_code=204)
def delete_patron(
    patron_id: int,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    patron_service.delete_patron(conn, patron_id, actor)


@router.get("/patrons/{patron_id}/history", response_model=List[AttendanceRecord])
def patron_history(
    patron_id: int,
    limit: int = Query(50, ge=1, le=500),
    conn: Connection = Depends(get_db_connection),
):
    return attendance_service.patron_history(conn, patron_id, limit)
