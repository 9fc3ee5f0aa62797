# =======================================================================================
# valtrack/services/registration_service.py - Patron Self-Registration (KYC)
# =======================================================================================
import logging
import time
from typing import Any, Dict

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection

from ..schema import pending_registrations
from ..utils.exceptions import (
    ConflictError, DocumentRejectedError, ExternalServiceError, InvalidRequestError, NotFoundError,
)
from ..utils.timeutils import utcnow
from .extractor_service import extract_data_from_ocr
from .kyc_service import KYCService
from .ocr_service import ID_ANCHORS

logger = logging.getLogger(__name__)

DETAIL_FIELDS = (
    "surname", "firstname", "middlename", "dateofbirth", "id_number", "email",
    "region", "province", "city", "barangay", "street",
)


class RegistrationService:
    """
    Pending registrations created from the mobile sign-up flow.

    Step 1 uploads an ID (OCR-gated), later steps fill in details and attach
    a selfie holding the ID, which moves the registration to 'pending' review.
    """

    def __init__(self):
        self.kyc = KYCService()

    def get_registration(self, conn: Connection, registration_id: int) -> Dict[str, Any]:
        row = conn.execute(
            select(pending_registrations).where(pending_registrations.c.id == registration_id)
        ).mappings().first()
        if not row:
            raise NotFoundError("Registration", registration_id)
        return dict(row)

    def submit_id_document(
        self,
        conn: Connection,
        id_type: str,
        image: bytes,
        ocr,
        storage,
        ext: str = "jpg",
    ) -> Dict[str, Any]:
        """OCR the ID first; only a document that passes is stored and recorded."""
        if id_type not in ID_ANCHORS:
            raise InvalidRequestError(f"Unknown ID type: {id_type}")
        if not image:
            raise InvalidRequestError("Please upload your ID document")

        result = ocr.process_ocr(image, id_type)
        if result["error"]:
            raise ExternalServiceError(result["error"])
        if not result["is_valid"]:
            logger.info("Rejected %s upload: anchors not found", id_type)
            raise DocumentRejectedError(
                f"The uploaded image does not match a {id_type}. "
                "Please retake the photo and ensure it is clear."
            )

        path = f"pending/{int(time.time() * 1000)}.{ext}"
        inserted = conn.execute(
            insert(pending_registrations).values(
                id_type=id_type,
                id_image_path=path,
                ocr_raw_text=result["text"],
                ocr_status="success",
                status="draft",
                created_at=utcnow(),
            )
        )
        storage.upload("id_uploads", path, image)
        registration = self.get_registration(conn, inserted.inserted_primary_key[0])
        logger.info("Created pending registration %s (%s)", registration["id"], id_type)
        return {
            "registration": registration,
            "extracted": extract_data_from_ocr(result["text"], id_type),
        }

    def update_registration(self, conn: Connection, registration_id: int, details: Dict[str, Any]) -> Dict[str, Any]:
        current = self.get_registration(conn, registration_id)
        if current["status"] not in ("draft", "pending"):
            raise ConflictError(f"Registration is already {current['status']}")

        values = {}
        for field in DETAIL_FIELDS:
            value = details.get(field)
            if value is None:
                continue
            value = str(value).strip()
            values[field] = value.upper() if field in ("surname", "firstname", "middlename") else value

        if values:
            conn.execute(
                update(pending_registrations)
                .where(pending_registrations.c.id == registration_id)
                .values(**values)
            )
        return self.get_registration(conn, registration_id)

    def attach_selfie(self, conn: Connection, registration_id: int, image: bytes, storage) -> Dict[str, Any]:
        current = self.get_registration(conn, registration_id)
        if current["selfie_with_id_path"]:
            raise ConflictError("A selfie has already been submitted for this registration")

        self.kyc.assess_selfie(image)
        path = f"pending/selfie_{int(time.time() * 1000)}.jpg"
        conn.execute(
            update(pending_registrations)
            .where(pending_registrations.c.id == registration_id)
            .values(selfie_with_id_path=path, status="pending")
        )
        storage.upload("selfie_uploads", path, image)
        logger.info("Registration %s submitted for review", registration_id)
        return self.get_registration(conn, registration_id)
