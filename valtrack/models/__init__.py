# =======================================================================================
# valtrack/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "ScanRequest", "ScanResponse", "BaggageRequest", "BaggageResponse",
    "PatronStatus", "AttendanceStatus", "LockerStatus", "IncidentStatus",
    "IncidentType", "Role", "ProfileStatus", "TargetAudience", "ReportPeriod",
    "AuditModule", "AuditAction", "MODULE_KEYS", "ROLE_MODULES", "TITLE_ROLES",
]
