# =======================================================================================
# valtrack/api/routes/profiles.py - Staff Profile Endpoints
# =======================================================================================
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.engine import Connection
from ...models.schemas import GrantAccessRequest, ProfileCreate, ProfileInfo, ProfileUpdate
from ...services.profile_service import ProfileService
from ...services.storage_service import StorageService
from ..dependencies import get_actor_name, get_db_connection, get_storage

router = APIRouter()
profile_service = ProfileService()


@router.get("/profiles", response_model=List[ProfileInfo])
def list_profiles(
    role: Optional[str] = Query(None),
    conn: Connection = Depends(get_db_connection),
):
    return profile_service.list_profiles(conn, role)


@router.post("/profiles", response_model=ProfileInfo, status_code=201)
def create_profile(
    request: ProfileCreate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return profile_service.create_profile(conn, request.model_dump(), actor)


@router.get("/profiles/{profile_id}", response_model=ProfileInfo)
def get_profile(profile_id: int, conn: Connection = Depends(get_db_connection)):
    return profile_service.get_profile(conn, profile_id)


@router.patch("/profiles/{profile_id}", response_model=ProfileInfo)
def update_profile(
    profile_id: int,
    request: ProfileUpdate,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return profile_service.update_profile(conn, profile_id, request.model_dump(exclude_unset=True), actor)


@router.post("/profiles/{profile_id}/toggle-status", response_model=ProfileInfo)
def toggle_profile_status(
    profile_id: int,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    return profile_service.toggle_profile_status(conn, profile_id, actor)


@router.delete("/profiles/{profile_id}", status_code=204)
def delete_profile(
    profile_id: int,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    profile_service.delete_profile(conn, profile_id, actor)


@router.post("/profiles/{profile_id}/avatar", response_model=ProfileInfo)
def upload_avatar(
    profile_id: int,
    file: UploadFile = File(...),
    conn: Connection = Depends(get_db_connection),
    storage: StorageService = Depends(get_storage),
):
    filename = file.filename or ""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "jpg"
    return profile_service.upload_avatar(conn, profile_id, file.file.read(), storage, ext)


@router.post("/patrons/{patron_id}/grant-access", response_model=ProfileInfo, status_code=201)
def grant_access(
    patron_id: int,
    request: GrantAccessRequest,
    conn: Connection = Depends(get_db_connection),
    actor: str = Depends(get_actor_name),
):
    """Create a login for a patron: library ID as username, birth date as password."""
    return profile_service.grant_access(conn, patron_id, request.model_dump(), actor)
