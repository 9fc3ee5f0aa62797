# =======================================================================================
# valtrack/services/__init__.py - Services Package
# =======================================================================================
from .address_service import AddressService
from .announcement_service import AnnouncementService
from .area_service import AreaService
from .attendance_service import AttendanceService
from .audit_service import AuditService
from .auth_service import AuthService
from .baggage_service import BaggageService
from .branch_service import BranchService
from .dashboard_service import DashboardService
from .incident_service import IncidentService
from .kyc_service import KYCService
from .ocr_service import OCRClient
from .patron_service import PatronService
from .profile_service import ProfileService
from .registration_service import RegistrationService
from .report_service import ReportService
from .storage_service import StorageService

__all__ = [
    "AddressService", "AnnouncementService", "AreaService", "AttendanceService",
    "AuditService", "AuthService", "BaggageService", "BranchService",
    "DashboardService", "IncidentService", "KYCService", "OCRClient",
    "PatronService", "ProfileService", "RegistrationService", "ReportService",
    "StorageService",
]
