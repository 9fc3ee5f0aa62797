from datetime import timedelta

import pytest
from sqlalchemy import select, update

from valtrack.schema import baggage, baggage_logs
from valtrack.services.attendance_service import AttendanceService
from valtrack.services.baggage_service import BaggageService
from valtrack.utils.exceptions import (
    ConflictError, InvalidRequestError, LockersOccupiedError, NoLockerAvailableError,
)
from valtrack.utils.timeutils import start_of_day

lockers = BaggageService()
attendance = AttendanceService()


@pytest.fixture
def area_inside(conn, make_area, make_patron):
    """Area with two lockers and one patron checked in."""
    area = make_area(capacity=3)
    patron = make_patron()
    lockers.configure_lockers(conn, area["id"], 2, "Admin")
    attendance.toggle_attendance(conn, patron["id"], area["id"], "Desk")
    return area, patron


def test_configure_creates_sequential_ids(conn, make_area):
    area = make_area(capacity=5)
    rows = lockers.configure_lockers(conn, area["id"], 3, "Admin")

    assert [r["id"] for r in rows] == [
        f"LKR-{area['id']}-001", f"LKR-{area['id']}-002", f"LKR-{area['id']}-003",
    ]
    assert all(r["status"] == "available" for r in rows)
    assert rows[0]["area_name"] == "Reading Room"


def test_configure_cannot_exceed_capacity(conn, make_area):
    area = make_area(capacity=2)
    with pytest.raises(ConflictError):
        lockers.configure_lockers(conn, area["id"], 3, "Admin")


def test_toggle_assigns_then_releases(conn, area_inside):
    area, patron = area_inside

    assigned = lockers.toggle_baggage(conn, area["id"], patron["id"], "Desk")
    assert assigned["action"] == "in"
    assert assigned["locker_id"] == f"LKR-{area['id']}-001"

    summary = lockers.locker_summary(conn, area["id"])
    assert summary["occupied"] == 1
    assert summary["available"] == 1

    released = lockers.toggle_baggage(conn, area["id"], patron["id"], "Desk")
    assert released["action"] == "out"
    assert released["message"] == f"Released locker LKR-{area['id']}-001"

    locker = conn.execute(select(baggage).where(baggage.c.id == released["locker_id"])).mappings().first()
    assert locker["status"] == "available"
    assert locker["patron_id"] is None

    actions = conn.execute(select(baggage_logs.c.action).order_by(baggage_logs.c.id)).scalars().all()
    assert actions == ["check_in", "check_out"]


def test_patron_must_be_inside_area(conn, make_area, make_patron):
    area = make_area()
    patron = make_patron()
    lockers.configure_lockers(conn, area["id"], 1, "Admin")

    with pytest.raises(InvalidRequestError) as exc:
        lockers.toggle_baggage(conn, area["id"], patron["id"], "Desk")
    assert exc.value.message == "Patron is not checked in to Reading Room"


def test_no_locker_available(conn, area_inside, make_patron):
    area, patron = area_inside
    other = make_patron(firstname="Maria")
    third = make_patron(firstname="Ana")
    attendance.toggle_attendance(conn, other["id"], area["id"], "Desk")
    attendance.toggle_attendance(conn, third["id"], area["id"], "Desk")
    lockers.toggle_baggage(conn, area["id"], patron["id"], "Desk")
    lockers.toggle_baggage(conn, area["id"], other["id"], "Desk")

    with pytest.raises(NoLockerAvailableError) as exc:
        lockers.toggle_baggage(conn, area["id"], third["id"], "Desk")
    assert exc.value.message == "No available lockers in this area"


def test_shrink_refuses_occupied_lockers(conn, area_inside, make_patron):
    area, patron = area_inside
    other = make_patron(firstname="Maria")
    attendance.toggle_attendance(conn, other["id"], area["id"], "Desk")
    lockers.toggle_baggage(conn, area["id"], patron["id"], "Desk")
    lockers.toggle_baggage(conn, area["id"], other["id"], "Desk")

    with pytest.raises(LockersOccupiedError) as exc:
        lockers.configure_lockers(conn, area["id"], 0, "Admin")
    assert exc.value.message == "Cannot remove slots: 2 are currently occupied."
    assert len(lockers.list_lockers(conn, area["id"])) == 2


def test_shrink_drops_trailing_lockers(conn, area_inside):
    area, patron = area_inside
    lockers.toggle_baggage(conn, area["id"], patron["id"], "Desk")

    rows = lockers.configure_lockers(conn, area["id"], 1, "Admin")
    assert [r["id"] for r in rows] == [f"LKR-{area['id']}-001"]

    # growing again reuses the freed id
    rows = lockers.configure_lockers(conn, area["id"], 3, "Admin")
    assert len({r["id"] for r in rows}) == 3


def test_summary_counts_overdue(conn, area_inside):
    area, patron = area_inside
    result = lockers.toggle_baggage(conn, area["id"], patron["id"], "Desk")
    conn.execute(
        update(baggage)
        .where(baggage.c.id == result["locker_id"])
        .values(check_in_time=start_of_day() - timedelta(hours=3))
    )

    summary = lockers.locker_summary(conn, area["id"])
    assert summary["overdue"] == 1
    assert summary["log_count"] == 1
    assert summary["total"] == 2


def test_active_baggage_and_export(conn, area_inside):
    area, patron = area_inside
    lockers.toggle_baggage(conn, area["id"], patron["id"], "Desk")

    active = lockers.active_baggage(conn, area["branch_id"])
    assert len(active) == 1
    assert active[0]["area_name"] == "Reading Room"

    lines = lockers.export_occupied_csv(conn, area["id"]).strip().splitlines()
    assert lines[0] == "Locker ID,Status,Patron Name,Patron ID,Check-In Time"
    assert lines[1].startswith(f"LKR-{area['id']}-001,occupied,Juan Dela Cruz,{patron['id']},")
    assert len(lines) == 2
