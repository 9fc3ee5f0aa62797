# =======================================================================================
# valtrack/api/routes/attendance.py - QR Scan Endpoints
# =======================================================================================
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.engine import Connection
from ...models.schemas import AttendanceRecord, AuditLog, ScanRequest, ScanResponse
from ...services.attendance_service import AttendanceService
from ..dependencies import get_actor_name, get_db_connection

router = APIRouter()
attendance_service = AttendanceService()


@router.post("/scan", response_model=ScanResponse)
def handle_scan(
    request: ScanRequest,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    """Toggle the scanned patron in or out of the area."""
    return attendance_service.scan(conn, request.scanned_value, request.area_id, actor)


@router.get("/attendance/active", response_model=List[AttendanceRecord])
def active_attendance(
    area_ids: List[int] = Query(...),
    conn: Connection = Depends(get_db_connection),
):
    return attendance_service.active_attendance(conn, area_ids)


@router.get("/attendance/history", response_model=List[AuditLog])
def scan_history(
    branch_id: Optional[int] = Query(None),
    limit: int = Query(10, ge=1, le=200),
    conn: Connection = Depends(get_db_connection),
):
    return attendance_service.scan_history(conn, branch_id, limit)


@router.get("/attendance/counts", response_model=Dict[int, int])
def area_counts(
    area_ids: List[int] = Query(...),
    conn: Connection = Depends(get_db_connection),
):
    """Active patrons per area, used by the live capacity widgets."""
    return attendance_service.area_counts(conn, area_ids)
