# =======================================================================================
# valtrack/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from typing import Optional
from fastapi import Header
from sqlalchemy.engine import Connection
from ..database import db_manager
from ..services.address_service import AddressService
from ..services.ocr_service import OCRClient
from ..services.storage_service import StorageService, storage_service

_ocr_client: Optional[OCRClient] = None
_address_service: Optional[AddressService] = None


def get_db_connection() -> Connection:
    """One connection and one transaction per request; errors roll back."""
    with db_manager.get_connection() as conn:
        yield conn


def get_actor_name(x_actor_name: Optional[str] = Header(None)) -> str:
    """Display name written to the audit trail."""
    return (x_actor_name or "").strip() or "Staff"


def get_ocr_client() -> OCRClient:
    global _ocr_client
    if _ocr_client is None:
        _ocr_client = OCRClient()
    return _ocr_client


def get_address_service() -> AddressService:
    global _address_service
    if _address_service is None:
        _address_service = AddressService()
    return _address_service


def get_storage() -> StorageService:
    return storage_service
