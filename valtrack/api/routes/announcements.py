# =======================================================================================
# valtrack/api/routes/announcements.py - Announcement Endpoints
# =======================================================================================
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.engine import Connection
from ...models.schemas import Announcement, AnnouncementCreate, AnnouncementUpdate
from ...services.announcement_service import AnnouncementService
from ..dependencies import get_actor_name, get_db_connection

router = APIRouter()
announcement_service = AnnouncementService()


@router.get("/announcements", response_model=List[Announcement])
def list_announcements(conn: Connection = Depends(get_db_connection)):
    return announcement_service.list_announcements(conn)


@router.get("/announcements/visible", response_model=List[Announcement])
def visible_announcements(
    audience: str = Query("patrons", description="patrons or staff"),
    user_id: Optional[int] = Query(None),
    conn: Connection = Depends(get_db_connection),
):
    return announcement_service.visible_announcements(conn, audience, user_id)


@router.post("/announcements", response_model=Announcement, status_code=201)
def create_announcement(
    request: AnnouncementCreate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return announcement_service.create_announcement(conn, request.model_dump(), actor)


@router.patch("/announcements/{announcement_id}", response_model=Announcement)
def update_announcement(
    announcement_id: int,
    request: AnnouncementUpdate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return announcement_service.update_announcement(
        conn, announcement_id, request.model_dump(exclude_unset=True), actor
    )


@router.post("/announcements/{announcement_id}/toggle", response_model=Announcement)
def toggle_announcement(
    announcement_id: int,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return announcement_service.toggle_announcement(conn, announcement_id, actor)


@router.delete("/announcements/{announcement_id}", status_code=204)
def delete_announcement(
    announcement_id: int,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    announcement_service.delete_announcement(conn, announcement_id, actor)
