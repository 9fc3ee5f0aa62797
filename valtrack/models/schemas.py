# =======================================================================================
# valtrack/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import date, datetime
from typing import Dict, Optional, List
from pydantic import BaseModel, Field
from .enums import (
    AttendanceStatus, IncidentStatus, IncidentType, LockerStatus, PatronStatus,
    ProfileStatus, ReportPeriod, Role, ScanAction, TargetAudience,
)

# ========== Branch topology ==========

class BranchCreate(BaseModel):
    name: str = Field(..., description="Branch display name")

class BranchUpdate(BaseModel):
    name: Optional[str] = None
    is_active: Optional[bool] = None

class Branch(BaseModel):
    id: int
    name: str
    is_active: bool = True
    created_at: Optional[datetime] = None

class FloorCreate(BaseModel):
    floor_number: int = Field(..., ge=0, description="Floor number within the branch")
    label: Optional[str] = None

class FloorUpdate(BaseModel):
    label: str

class Floor(BaseModel):
    id: int
    branch_id: int
    floor_number: int
    label: str

class AreaCreate(BaseModel):
    name: str
    type: str = "General Library"
    capacity: int = Field(..., gt=0, description="Maximum active patrons")

class AreaUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    capacity: Optional[int] = Field(None, gt=0)

class Area(BaseModel):
    id: int
    floor_id: int
    name: str
    type: str
    capacity: int
    current: int = 0
    floor_number: Optional[int] = None
    floor_label: Optional[str] = None

class AreaOccupancy(BaseModel):
    area_id: int
    name: str
    current: int
    capacity: int
    percentage: float
    near_capacity: bool

# ========== Patrons ==========

class PatronCreate(BaseModel):
    surname: str
    firstname: str
    middlename: Optional[str] = None
    dateofbirth: date
    email: str
    gender: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    library_id: Optional[str] = None
    account_status: PatronStatus = "active"

class PatronUpdate(BaseModel):
    surname: Optional[str] = None
    firstname: Optional[str] = None
    middlename: Optional[str] = None
    dateofbirth: Optional[date] = None
    email: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    library_id: Optional[str] = None

class PatronStatusUpdate(BaseModel):
    account_status: PatronStatus

class Patron(BaseModel):
    id: int
    library_id: Optional[str] = None
    surname: str
    firstname: str
    middlename: Optional[str] = None
    dateofbirth: Optional[date] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    account_status: PatronStatus = "active"
    profile_photo_path: Optional[str] = None
    created_at: Optional[datetime] = None

# ========== Attendance (QR scan) ==========

class ScanRequest(BaseModel):
    """QR scan request model."""
    scanned_value: str = Field(..., min_length=1, max_length=100, description="Library ID or patron ID from the QR code")
    area_id: int = Field(..., description="Area where the scan occurred")

class ScanResponse(BaseModel):
    """QR scan response model."""
    action: ScanAction
    message: str
    patron_id: int
    patron_name: str
    area_id: int
    area_name: str
    current: int
    capacity: int

class AttendanceRecord(BaseModel):
    id: int
    patron_id: int
    patron_name: str
    area_id: int
    status: AttendanceStatus
    entry_time: datetime
    exit_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    area_name: Optional[str] = None

# ========== Baggage ==========

class BaggageRequest(BaseModel):
    area_id: int
    patron_id: int

class BaggageResponse(BaseModel):
    action: ScanAction
    message: str
    locker_id: str
    patron_id: int
    patron_name: str

class Locker(BaseModel):
    id: str
    area_id: int
    status: LockerStatus
    patron_id: Optional[int] = None
    patron_name: Optional[str] = None
    check_in_time: Optional[datetime] = None
    area_name: Optional[str] = None

class LockerConfigRequest(BaseModel):
    target_count: int = Field(..., ge=0)

class LockerSummary(BaseModel):
    area_id: int
    total: int
    available: int
    occupied: int
    overdue: int
    log_count: int

# ========== Incidents ==========

class IncidentCreate(BaseModel):
    patron_id: Optional[int] = None
    patron_name: Optional[str] = None
    type: IncidentType = "lost_item"
    description: str
    branch_id: int
    area_id: Optional[int] = None

class Incident(BaseModel):
    id: int
    patron_id: Optional[int] = None
    patron_name: Optional[str] = None
    type: str
    description: str
    status: IncidentStatus
    reported_by: Optional[str] = None
    branch_id: Optional[int] = None
    area_id: Optional[int] = None
    floor: Optional[int] = None
    created_at: datetime
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None

class IncidentCounts(BaseModel):
    open: int
    resolved: int

# ========== Profiles & auth ==========

class LoginRequest(BaseModel):
    username: str
    password: str

class ProfileInfo(BaseModel):
    id: int
    username: str
    email: str
    full_name: Optional[str] = None
    role: Role
    title: Optional[str] = None
    status: ProfileStatus = "active"
    permissions: Dict[str, bool] = {}
    avatar_url: Optional[str] = None
    assigned_branch_id: Optional[int] = None
    assigned_floor_id: Optional[int] = None
    assigned_area_id: Optional[int] = None

class LoginResponse(BaseModel):
    token: Optional[str] = None
    message: Optional[str] = None
    profile: Optional[ProfileInfo] = None

class ProfileCreate(BaseModel):
    username: str
    email: str
    full_name: Optional[str] = None
    password: str
    title: str = "Library Staff"
    role: Optional[Role] = None
    permissions: Optional[Dict[str, bool]] = None
    avatar_url: Optional[str] = None
    assigned_branch_id: Optional[int] = None
    assigned_floor_id: Optional[int] = None
    assigned_area_id: Optional[int] = None

class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    password: Optional[str] = None
    title: Optional[str] = None
    role: Optional[Role] = None
    permissions: Optional[Dict[str, bool]] = None
    avatar_url: Optional[str] = None
    assigned_branch_id: Optional[int] = None
    assigned_floor_id: Optional[int] = None
    assigned_area_id: Optional[int] = None

class GrantAccessRequest(BaseModel):
    role: Role = "staff"
    permissions: Optional[Dict[str, bool]] = None
    assigned_branch_id: Optional[int] = None
    assigned_floor_id: Optional[int] = None
    assigned_area_id: Optional[int] = None

# ========== Announcements ==========

class AnnouncementCreate(BaseModel):
    title: str
    message: str
    module: str = "General"
    target_audience: TargetAudience = "all"
    target_user_id: Optional[int] = None
    scheduled_at: Optional[datetime] = None

class AnnouncementUpdate(BaseModel):
    title: Optional[str] = None
    message: Optional[str] = None
    module: Optional[str] = None
    target_audience: Optional[TargetAudience] = None
    target_user_id: Optional[int] = None
    scheduled_at: Optional[datetime] = None

class Announcement(BaseModel):
    id: int
    title: str
    message: str
    module: str
    target_audience: TargetAudience
    target_user_id: Optional[int] = None
    scheduled_at: datetime
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

# ========== Audit logs ==========

class AuditLog(BaseModel):
    id: int
    user_name: str
    action: str
    module: str
    details: Optional[str] = None
    branch_id: Optional[int] = None
    timestamp: datetime

# ========== Dashboard & reports ==========

class AreaStat(BaseModel):
    id: int
    name: str
    type: Optional[str] = None
    floor_label: str
    floor_number: int
    capacity: int
    current: int

class DashboardSummary(BaseModel):
    currently_inside: int
    daily_scans: int
    active_baggage: int
    open_incidents: int
    area_stats: List[AreaStat]

class BusyArea(BaseModel):
    id: int
    name: str
    branch_name: str
    floor_label: str
    count: int
    capacity: int
    occupancy_rate: float

class TodayStats(BaseModel):
    total_in: int
    total_out: int
    total_current: int
    total_patrons: int
    busy_areas: List[BusyArea]

class BranchPopularity(BaseModel):
    name: str
    check_ins: int

class TrafficBucket(BaseModel):
    name: str
    start: date
    check_ins: int
    check_outs: int

class TrafficReport(BaseModel):
    period: ReportPeriod
    buckets: List[TrafficBucket]

# ========== KYC / OCR ==========

class ExtractedData(BaseModel):
    surname: Optional[str] = None
    firstname: Optional[str] = None
    middlename: Optional[str] = None
    dateofbirth: Optional[str] = None
    id_number: Optional[str] = None

class RegistrationUpdate(BaseModel):
    surname: Optional[str] = None
    firstname: Optional[str] = None
    middlename: Optional[str] = None
    dateofbirth: Optional[str] = None
    id_number: Optional[str] = None
    email: Optional[str] = None
    region: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    barangay: Optional[str] = None
    street: Optional[str] = None

class PendingRegistration(BaseModel):
    id: int
    id_type: str
    id_image_path: str
    ocr_raw_text: Optional[str] = None
    ocr_status: str
    selfie_with_id_path: Optional[str] = None
    status: str
    surname: Optional[str] = None
    firstname: Optional[str] = None
    middlename: Optional[str] = None
    dateofbirth: Optional[str] = None
    id_number: Optional[str] = None
    email: Optional[str] = None
    region: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    barangay: Optional[str] = None
    street: Optional[str] = None
    created_at: Optional[datetime] = None

class RegistrationSubmitted(BaseModel):
    registration: PendingRegistration
    extracted: ExtractedData

class AddressOption(BaseModel):
    label: str
    value: str

# ========== Health ==========

class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None
