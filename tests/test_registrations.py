import random

import pytest

from valtrack.services.registration_service import RegistrationService
from valtrack.utils.exceptions import (
    ConflictError, DocumentRejectedError, ExternalServiceError, InvalidRequestError,
)

registrations = RegistrationService()

LICENSE_TEXT = (
    "REPUBLIC OF THE PHILIPPINES\n"
    "DRIVER'S LICENSE\n"
    "Last Name: DELA CRUZ\n"
    "First Name: JUAN\n"
    "Date of Birth: 01/15/2000\n"
    "N01-23-456789\n"
)


class FakeOCR:
    def __init__(self, text="", is_valid=True, error=None):
        self.result = {"text": text, "is_valid": is_valid, "error": error}
        self.calls = []

    def process_ocr(self, image, id_type):
        self.calls.append(id_type)
        return self.result


def selfie_bytes(size=12000):
    return bytes(random.Random(7).getrandbits(8) for _ in range(size))


def submit(conn, storage, ocr=None):
    return registrations.submit_id_document(
        conn, "Drivers License", b"\xff\xd8license", ocr or FakeOCR(LICENSE_TEXT), storage,
    )


def test_valid_id_is_stored_and_extracted(conn, storage, s3):
    result = submit(conn, storage)

    registration = result["registration"]
    assert registration["status"] == "draft"
    assert registration["ocr_status"] == "success"
    assert registration["id_image_path"].startswith("pending/")
    assert ("id_uploads", registration["id_image_path"]) in s3.objects
    assert result["extracted"] == {
        "surname": "DELA CRUZ",
        "firstname": "JUAN",
        "middlename": None,
        "dateofbirth": "2000-01-15",
        "id_number": "N01-23-456789",
    }


def test_wrong_document_is_rejected_without_upload(conn, storage, s3):
    with pytest.raises(DocumentRejectedError) as exc:
        submit(conn, storage, FakeOCR("SCHOOL ID", is_valid=False))
    assert exc.value.message == (
        "The uploaded image does not match a Drivers License. "
        "Please retake the photo and ensure it is clear."
    )
    assert s3.objects == {}


def test_ocr_failure(conn, storage):
    with pytest.raises(ExternalServiceError):
        submit(conn, storage, FakeOCR(is_valid=False, error="OCR API Error"))


def test_unknown_id_type(conn, storage):
    ocr = FakeOCR(LICENSE_TEXT)
    with pytest.raises(InvalidRequestError):
        registrations.submit_id_document(conn, "Gym Card", b"img", ocr, storage)
    assert ocr.calls == []


def test_update_uppercases_names(conn, storage):
    registration = submit(conn, storage)["registration"]
    updated = registrations.update_registration(
        conn, registration["id"], {"surname": " santos ", "firstname": "maria", "city": "Quezon City"},
    )
    assert updated["surname"] == "SANTOS"
    assert updated["firstname"] == "MARIA"
    assert updated["city"] == "Quezon City"


def test_selfie_moves_to_pending(conn, storage):
    registration = submit(conn, storage)["registration"]
    updated = registrations.attach_selfie(conn, registration["id"], selfie_bytes(), storage)

    assert updated["status"] == "pending"
    assert updated["selfie_with_id_path"].startswith("pending/selfie_")

    with pytest.raises(ConflictError):
        registrations.attach_selfie(conn, registration["id"], selfie_bytes(), storage)


def test_dark_selfie_is_rejected(conn, storage):
    registration = submit(conn, storage)["registration"]
    with pytest.raises(DocumentRejectedError) as exc:
        registrations.attach_selfie(conn, registration["id"], b"\x00" * 3000, storage)
    assert exc.value.message == "Image too dark, please move to a brighter area."
    assert registrations.get_registration(conn, registration["id"])["status"] == "draft"


def test_selfie_without_id_is_rejected(conn, storage):
    registration = submit(conn, storage)["registration"]
    with pytest.raises(DocumentRejectedError) as exc:
        registrations.attach_selfie(conn, registration["id"], selfie_bytes(300), storage)
    assert exc.value.message == "No ID detected. Please hold your ID clearly next to your face."
