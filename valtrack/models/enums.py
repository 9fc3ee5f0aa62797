# =======================================================================================
# valtrack/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
PatronStatus = Literal["active", "suspended", "blocked"]
AttendanceStatus = Literal["active", "exited"]
LockerStatus = Literal["available", "occupied"]
IncidentStatus = Literal["open", "resolved"]
IncidentType = Literal["lost_item", "damaged_item", "policy_violation", "medical", "other"]
Role = Literal["admin", "staff", "volunteer"]
ProfileStatus = Literal["active", "inactive"]
TargetAudience = Literal["all", "patrons", "staff", "specific"]
ReportPeriod = Literal["daily", "weekly", "monthly", "yearly"]
ScanAction = Literal["in", "out"]

class AuditModule(str, Enum):
    """Module names written to audit_logs.module."""
    QR_SCAN = "QR Scan"
    BAGGAGE = "Baggage Module"
    INCIDENTS = "Incidents"
    USER_MANAGEMENT = "User Management"
    BRANCH_MANAGEMENT = "Branch Management"
    AREA_MANAGEMENT = "Area Management"
    ANNOUNCEMENTS = "Announcements"
    AUDIT_LOGS = "Audit Logs"

class AuditAction(str, Enum):
    PATRON_CHECK_IN = "Patron Check-In"
    PATRON_CHECK_OUT = "Patron Check-Out"
    BAGGAGE_CHECK_IN = "Baggage Check-In"
    BAGGAGE_CHECK_OUT = "Baggage Check-Out"

# Dashboard modules a profile can be granted
MODULE_KEYS = [
    "dashboard", "qr_scan", "baggage", "incidents", "user_management",
    "branch_management", "area_management", "reports", "audit_logs",
]

ROLE_MODULES = {
    "admin": MODULE_KEYS,
    "staff": ["dashboard", "qr_scan", "baggage", "incidents"],
    "volunteer": ["dashboard", "qr_scan", "baggage"],
}

TITLE_ROLES = {
    "Library Staff": "staff",
    "Student Volunteer": "volunteer",
}
