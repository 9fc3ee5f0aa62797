# =======================================================================================
# valtrack/api/routes/audit.py - Audit Log Endpoints
# =======================================================================================
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.engine import Connection
from ...models.schemas import AuditLog
from ...services.audit_service import AuditService
from ..dependencies import get_db_connection

router = APIRouter()
audit_service = AuditService()


@router.get("/audit-logs", response_model=List[AuditLog])
def list_logs(
    branch_id: Optional[int] = Query(None),
    module: Optional[str] = Query(None),
    query: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    limit: int = Query(500, ge=1, le=5000),
    conn: Connection = Depends(get_db_connection),
):
    return audit_service.list_logs(conn, branch_id, module, query, start, end, limit)


@router.get("/audit-logs/export")
def export_logs(
    branch_id: Optional[int] = Query(None),
    module: Optional[str] = Query(None),
    query: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    conn: Connection = Depends(get_db_connection),
):
    logs = audit_service.list_logs(conn, branch_id, module, query, start, end, limit=100000)
    return Response(
        content=audit_service.export_csv(logs),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=audit_logs.csv"},
    )
