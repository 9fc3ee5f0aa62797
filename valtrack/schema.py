# =======================================================================================
# valtrack/schema.py - Table Definitions
# =======================================================================================
from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer,
    MetaData, String, Table, Text, UniqueConstraint,
)

metadata = MetaData()

# ========== Branch topology ==========

branches = Table(
    "branches", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(150), nullable=False, unique=True),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", DateTime, nullable=False),
)

floors = Table(
    "floors", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("branch_id", Integer, ForeignKey("branches.id", ondelete="CASCADE"), nullable=False),
    Column("floor_number", Integer, nullable=False),
    Column("label", String(100), nullable=False),
    UniqueConstraint("branch_id", "floor_number", name="uq_floors_branch_number"),
)

areas = Table(
    "areas", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("floor_id", Integer, ForeignKey("floors.id", ondelete="CASCADE"), nullable=False),
    Column("name", String(150), nullable=False),
    Column("type", String(100), nullable=False, default="General Library"),
    Column("capacity", Integer, nullable=False),
    UniqueConstraint("floor_id", "name", name="uq_areas_floor_name"),
    CheckConstraint("capacity > 0", name="ck_areas_capacity_positive"),
)

# ========== Patrons & attendance ==========

patrons = Table(
    "patrons", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("library_id", String(50), unique=True),
    Column("surname", String(100), nullable=False),
    Column("firstname", String(100), nullable=False),
    Column("middlename", String(100)),
    Column("dateofbirth", Date, nullable=False),
    Column("gender", String(20)),
    Column("email", String(255), nullable=False),
    Column("address", String(255)),
    Column("city", String(100)),
    Column("account_status", String(20), nullable=False, default="active"),
    Column("profile_photo_path", String(255)),
    Column("created_at", DateTime, nullable=False),
)

area_attendance = Table(
    "area_attendance", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("patron_id", Integer, ForeignKey("patrons.id", ondelete="CASCADE"), nullable=False),
    Column("patron_name", String(255), nullable=False),
    Column("area_id", Integer, ForeignKey("areas.id", ondelete="CASCADE"), nullable=False),
    Column("status", String(20), nullable=False, default="active"),
    Column("entry_time", DateTime, nullable=False),
    Column("exit_time", DateTime),
)

# ========== Baggage ==========

baggage = Table(
    "baggage", metadata,
    Column("id", String(64), primary_key=True),
    Column("area_id", Integer, ForeignKey("areas.id", ondelete="CASCADE"), nullable=False),
    Column("status", String(20), nullable=False, default="available"),
    Column("patron_id", Integer),
    Column("patron_name", String(255)),
    Column("check_in_time", DateTime),
)

baggage_logs = Table(
    "baggage_logs", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("locker_id", String(64), nullable=False),
    Column("area_id", Integer, ForeignKey("areas.id", ondelete="CASCADE"), nullable=False),
    Column("patron_id", Integer),
    Column("patron_name", String(255)),
    Column("action", String(20), nullable=False),
    Column("timestamp", DateTime, nullable=False),
)

# ========== Incidents ==========

incidents = Table(
    "incidents", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("patron_id", Integer),
    Column("patron_name", String(255)),
    Column("type", String(50), nullable=False),
    Column("description", Text, nullable=False),
    Column("status", String(20), nullable=False, default="open"),
    Column("reported_by", String(255)),
    Column("branch_id", Integer, ForeignKey("branches.id", ondelete="SET NULL")),
    Column("area_id", Integer, ForeignKey("areas.id", ondelete="SET NULL")),
    Column("floor", Integer),
    Column("created_at", DateTime, nullable=False),
    Column("resolved_at", DateTime),
    Column("resolved_by", String(255)),
)

# ========== Staff profiles ==========

profiles = Table(
    "profiles", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(100), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("full_name", String(255)),
    Column("password_hash", String(255), nullable=False),
    Column("role", String(20), nullable=False, default="staff"),
    Column("title", String(100)),
    Column("status", String(20), nullable=False, default="active"),
    Column("permissions", Text),
    Column("avatar_url", String(255)),
    Column("assigned_branch_id", Integer, ForeignKey("branches.id", ondelete="SET NULL")),
    Column("assigned_floor_id", Integer, ForeignKey("floors.id", ondelete="SET NULL")),
    Column("assigned_area_id", Integer, ForeignKey("areas.id", ondelete="SET NULL")),
    Column("created_at", DateTime, nullable=False),
)

# ========== Announcements & audit ==========

announcements = Table(
    "announcements", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("message", Text, nullable=False),
    Column("module", String(100), nullable=False, default="General"),
    Column("target_audience", String(20), nullable=False, default="all"),
    Column("target_user_id", Integer),
    Column("scheduled_at", DateTime, nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_by", String(255)),
    Column("created_at", DateTime, nullable=False),
)

audit_logs = Table(
    "audit_logs", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_name", String(255), nullable=False),
    Column("action", String(100), nullable=False),
    Column("module", String(100), nullable=False),
    Column("details", Text),
    Column("branch_id", Integer, ForeignKey("branches.id", ondelete="SET NULL")),
    Column("timestamp", DateTime, nullable=False),
)

# ========== KYC registrations ==========

pending_registrations = Table(
    "pending_registrations", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("id_type", String(50), nullable=False),
    Column("id_image_path", String(255), nullable=False),
    Column("ocr_raw_text", Text),
    Column("ocr_status", String(20), nullable=False),
    Column("selfie_with_id_path", String(255)),
    Column("status", String(20), nullable=False, default="draft"),
    Column("surname", String(100)),
    Column("firstname", String(100)),
    Column("middlename", String(100)),
    Column("dateofbirth", String(10)),
    Column("id_number", String(50)),
    Column("email", String(255)),
    Column("region", String(150)),
    Column("province", String(150)),
    Column("city", String(150)),
    Column("barangay", String(150)),
    Column("street", String(255)),
    Column("created_at", DateTime, nullable=False),
)
