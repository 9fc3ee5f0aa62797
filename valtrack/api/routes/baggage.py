# =======================================================================================
# valtrack/api/routes/baggage.py - Baggage Locker Endpoints
# =======================================================================================
from typing import List
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.engine import Connection
from ...models.schemas import (
    BaggageRequest, BaggageResponse, Locker, LockerConfigRequest, LockerSummary,
)
from ...services.baggage_service import BaggageService
from ..dependencies import get_actor_name, get_db_connection

router = APIRouter()
baggage_service = BaggageService()


@router.post("/baggage/toggle", response_model=BaggageResponse)
def toggle_baggage(
    request: BaggageRequest,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return baggage_service.toggle_baggage(conn, request.area_id, request.patron_id, actor)


@router.get("/areas/{area_id}/lockers", response_model=List[Locker])
def list_lockers(area_id: int, conn: Connection = Depends(get_db_connection)):
    return baggage_service.list_lockers(conn, area_id)


@router.put("/areas/{area_id}/lockers", response_model=List[Locker])
def configure_lockers(
    area_id: int,
    request: LockerConfigRequest,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return baggage_service.configure_lockers(conn, area_id, request.target_count, actor)


@router.get("/areas/{area_id}/lockers/summary", response_model=LockerSummary)
def locker_summary(area_id: int, conn: Connection = Depends(get_db_connection)):
    return baggage_service.locker_summary(conn, area_id)


@router.get("/areas/{area_id}/lockers/export")
def export_occupied(area_id: int, conn: Connection = Depends(get_db_connection)):
    return Response(
        content=baggage_service.export_occupied_csv(conn, area_id),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=baggage_area_{area_id}.csv"},
    )


@router.get("/branches/{branch_id}/baggage", response_model=List[Locker])
def active_baggage(branch_id: int, conn: Connection = Depends(get_db_connection)):
    """Occupied lockers across the branch."""
    return baggage_service.active_baggage(conn, branch_id)
