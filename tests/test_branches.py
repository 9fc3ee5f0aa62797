import pytest

from valtrack.services.area_service import AreaService
from valtrack.services.attendance_service import AttendanceService
from valtrack.services.audit_service import AuditService
from valtrack.services.baggage_service import BaggageService
from valtrack.services.branch_service import BranchService
from valtrack.utils.exceptions import ConflictError, InvalidRequestError, NotFoundError

branches = BranchService()
areas = AreaService()


def test_create_branch_adds_default_floor(conn):
    branch = branches.create_branch(conn, "  North Branch ", "Admin")

    assert branch["name"] == "North Branch"
    assert branch["is_active"] is True
    floors = branches.list_floors(conn, branch["id"])
    assert [(f["floor_number"], f["label"]) for f in floors] == [(1, "Floor 1")]

    log = AuditService().list_logs(conn)[0]
    assert log["action"] == "Create Branch"
    assert log["module"] == "Branch Management"


def test_branch_names_are_unique(conn):
    branches.create_branch(conn, "North Branch", "Admin")
    with pytest.raises(ConflictError):
        branches.create_branch(conn, "North Branch", "Admin")
    with pytest.raises(InvalidRequestError):
        branches.create_branch(conn, "   ", "Admin")


def test_rename_and_deactivate(conn):
    branch = branches.create_branch(conn, "North Branch", "Admin")
    branches.update_branch(conn, branch["id"], "Northside", "Admin")
    updated = branches.set_branch_active(conn, branch["id"], False, "Admin")

    assert updated["name"] == "Northside"
    assert updated["is_active"] is False
    assert branches.list_branches(conn, include_inactive=False) == []


def test_floor_numbers_unique_per_branch(conn):
    branch = branches.create_branch(conn, "North Branch", "Admin")
    second = branches.create_floor(conn, branch["id"], 2, None, "Admin")
    assert second["label"] == "Floor 2"

    with pytest.raises(ConflictError):
        branches.create_floor(conn, branch["id"], 2, "Mezzanine", "Admin")

    renamed = branches.rename_floor(conn, second["id"], "Mezzanine", "Admin")
    assert renamed["label"] == "Mezzanine"


def test_delete_branch_cascades(conn, make_area):
    area = make_area()
    branches.delete_branch(conn, area["branch_id"], "Admin")

    with pytest.raises(NotFoundError):
        areas.get_area(conn, area["id"])


def test_area_validation(conn, make_area):
    area = make_area()
    with pytest.raises(InvalidRequestError):
        areas.create_area(conn, area["floor_id"], "Annex", None, 0, "Admin")
    with pytest.raises(InvalidRequestError):
        areas.create_area(conn, area["floor_id"], "", None, 10, "Admin")
    with pytest.raises(ConflictError):
        areas.create_area(conn, area["floor_id"], "Reading Room", None, 10, "Admin")

    assert area["type"] == "General Library"


def test_capacity_cannot_drop_below_lockers(conn, make_area):
    area = make_area(capacity=4)
    BaggageService().configure_lockers(conn, area["id"], 3, "Admin")

    with pytest.raises(ConflictError):
        areas.update_area(conn, area["id"], "Admin", capacity=2)
    assert areas.update_area(conn, area["id"], "Admin", capacity=3)["capacity"] == 3


def test_occupancy_percentage(conn, make_area, make_patron):
    area = make_area(capacity=2)
    patron = make_patron()
    AttendanceService().toggle_attendance(conn, patron["id"], area["id"], "Desk")

    occupancy = areas.area_occupancy(conn, area["id"])
    assert occupancy["current"] == 1
    assert occupancy["percentage"] == 50.0
    assert occupancy["near_capacity"] is False


def test_assigned_areas(conn, make_area):
    reading = make_area(area_name="Reading Room")
    study = make_area(area_name="Study Hall")
    other = make_area(branch_name="East Branch", area_name="Kids Corner")
    branch_id = reading["branch_id"]

    assert [a["name"] for a in areas.list_assigned_areas(conn, branch_id)] == ["Reading Room", "Study Hall"]
    assert [a["name"] for a in areas.list_assigned_areas(conn, branch_id, assigned_area_id=study["id"])] == ["Study Hall"]
    assert [
        a["name"] for a in areas.list_assigned_areas(conn, branch_id, assigned_floor_id=reading["floor_id"])
    ] == ["Reading Room", "Study Hall"]
    assert areas.list_assigned_areas(conn, branch_id, assigned_area_id=other["id"]) == []
