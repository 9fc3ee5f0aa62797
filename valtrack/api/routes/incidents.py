# =======================================================================================
# valtrack/api/routes/incidents.py - Incident Endpoints
# =======================================================================================
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.engine import Connection
from ...models.schemas import Incident, IncidentCounts, IncidentCreate
from ...services.incident_service import IncidentService
from ..dependencies import get_actor_name, get_db_connection

router = APIRouter()
incident_service = IncidentService()


@router.get("/incidents", response_model=List[Incident])
def list_incidents(
    branch_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    query: Optional[str] = Query(None),
    conn: Connection = Depends(get_db_connection),
):
    return incident_service.list_incidents(conn, branch_id, status, query)


@router.get("/incidents/counts", response_model=IncidentCounts)
def incident_counts(
    branch_id: Optional[int] = Query(None),
    conn: Connection = Depends(get_db_connection),
):
    return incident_service.incident_counts(conn, branch_id)


@router.get("/incidents/export")
def export_incidents(
    branch_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    conn: Connection = Depends(get_db_connection),
):
    rows = incident_service.list_incidents(conn, branch_id, status)
    return Response(
        content=incident_service.export_incidents_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=incidents.csv"},
    )


@router.post("/incidents", response_model=Incident, status_code=201)
def report_incident(
    request: IncidentCreate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return incident_service.report_incident(
        conn,
        description=request.description,
        branch_id=request.branch_id,
        reported_by=actor,
        incident_type=request.type,
        patron_id=request.patron_id,
        patron_name=request.patron_name,
        area_id=request.area_id,
    )


@router.post("/incidents/{incident_id}/resolve", response_model=Incident)
def resolve_incident(
    incident_id: int,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return incident_service.resolve_incident(conn, incident_id, actor)
