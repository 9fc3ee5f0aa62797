# =======================================================================================
# valtrack/api/routes/registrations.py - Patron Self-Registration Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.engine import Connection
from ...models.schemas import PendingRegistration, RegistrationSubmitted, RegistrationUpdate
from ...services.ocr_service import OCRClient
from ...services.registration_service import RegistrationService
from ...services.storage_service import StorageService
from ..dependencies import get_db_connection, get_ocr_client, get_storage

router = APIRouter()
registration_service = RegistrationService()


@router.post("/registrations", response_model=RegistrationSubmitted, status_code=201)
def submit_id_document(
    id_type: str = Form(...),
    file: UploadFile = File(...),
    conn: Connection = Depends(get_db_connection),
    ocr: OCRClient = Depends(get_ocr_client),
    storage: StorageService = Depends(get_storage),
):
    """Step 1: OCR-checked ID upload; returns the draft and autofill fields."""
    filename = file.filename or ""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "jpg"
    return registration_service.submit_id_document(conn, id_type, file.file.read(), ocr, storage, ext)


@router.get("/registrations/{registration_id}", response_model=PendingRegistration)
def get_registration(registration_id: int, conn: Connection = Depends(get_db_connection)):
    return registration_service.get_registration(conn, registration_id)


@router.patch("/registrations/{registration_id}", response_model=PendingRegistration)
def update_registration(
    registration_id: int,
    request: RegistrationUpdate,
    conn: Connection = Depends(get_db_connection),
):
    return registration_service.update_registration(
        conn, registration_id, request.model_dump(exclude_unset=True)
    )


@router.post("/registrations/{registration_id}/selfie", response_model=PendingRegistration)
def attach_selfie(
    registration_id: int,
    file: UploadFile = File(...),
    conn: Connection = Depends(get_db_connection),
    storage: StorageService = Depends(get_storage),
):
    return registration_service.attach_selfie(conn, registration_id, file.file.read(), storage)
