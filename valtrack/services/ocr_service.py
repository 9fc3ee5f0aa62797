# =======================================================================================
# valtrack/services/ocr_service.py - OCR API Client
# =======================================================================================
import base64
import logging
from typing import Any, Dict, Optional

import httpx

from ..config import config
from ..utils.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

# Text that must appear on a genuine document of each type
ID_ANCHORS = {
    "Passport": ["PASAPORTE", "REPUBLIC OF THE PHILIPPINES", "P<PHL"],
    "National ID": ["PHILIPPINE IDENTIFICATION", "REPUBLIC OF THE PHILIPPINES", "PhilSys"],
    "Drivers License": ["DRIVER'S LICENSE", "REPUBLIC OF THE PHILIPPINES", "RESTRICTIONS"],
    "UMID": ["UNIFIED MULTI-PURPOSE ID", "CRN", "SSS"],
    "Voters ID": ["VOTER'S ID", "COMMISSION ON ELECTIONS", "PRECINCT"],
    "Senior Citizen ID": ["SENIOR CITIZEN", "OSCA", "RA 9994", "ID. NO."],
    "PWD ID": ["PERSONS WITH DISABILITY", "PWD ID", "RA 9442", "BARANGAY"],
    "PRC ID": ["PROFESSIONAL REGULATION COMMISSION", "PRC ID", "LICENSURE"],
    "Student ID": ["STUDENT ID", "SCHOOL ID", "UNIVERSITY", "PAMANTASAN"],
    "Others": [],
}


def validate_id(raw_text: str, id_type: str) -> bool:
    """Case-insensitive anchor match; types without anchors always pass."""
    anchors = ID_ANCHORS.get(id_type)
    if not anchors:
        return True
    upper = (raw_text or "").upper()
    return any(anchor.upper() in upper for anchor in anchors)


class OCRClient:
    """Thin client for an OCR.space compatible parse endpoint."""

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.url = url or config.OCR_API_URL
        self.api_key = api_key or config.OCR_API_KEY
        self.client = client or httpx.Client(timeout=config.OCR_TIMEOUT)

    def parse(self, image: bytes) -> str:
        """Return the parsed text of a JPEG image."""
        form = {
            "apikey": self.api_key,
            "base64Image": "data:image/jpeg;base64," + base64.b64encode(image).decode("ascii"),
            "language": "eng",
            "isOverlayRequired": "false",
            "filetype": "JPG",
        }
        try:
            response = self.client.post(self.url, data=form)
            response.raise_for_status()
            result: Dict[str, Any] = response.json()
        except httpx.TimeoutException:
            raise ExternalServiceError("OCR request timed out")
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"OCR request failed: {e}")
        except ValueError:
            raise ExternalServiceError("OCR API returned an invalid response")

        if not isinstance(result, dict):
            raise ExternalServiceError("OCR API returned an invalid response")
        if result.get("IsErroredOnProcessing"):
            messages = result.get("ErrorMessage") or []
            if isinstance(messages, str):
                messages = [messages]
            raise ExternalServiceError(str(messages[0]) if messages else "OCR API Error")

        parsed = result.get("ParsedResults") or []
        if not parsed:
            return ""
        if not isinstance(parsed, list) or not isinstance(parsed[0], dict):
            raise ExternalServiceError("OCR API returned an invalid response")
        text = parsed[0].get("ParsedText") or ""
        return text if isinstance(text, str) else ""

    def process_ocr(self, image: bytes, id_type: str) -> Dict[str, Any]:
        """
        Run OCR and check the document type.

        Returns: {"text", "is_valid", "error"}; failures never raise.
        """
        logger.info("Starting OCR for %s", id_type)
        try:
            text = self.parse(image)
        except ExternalServiceError as e:
            logger.error("OCR processing error: %s", e.message)
            return {"text": "", "is_valid": False, "error": e.message}
        return {"text": text, "is_valid": validate_id(text, id_type), "error": None}
