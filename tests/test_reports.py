from datetime import date, datetime

import pytest
from sqlalchemy import insert

from valtrack.schema import audit_logs
from valtrack.services.attendance_service import AttendanceService
from valtrack.services.baggage_service import BaggageService
from valtrack.services.dashboard_service import DashboardService
from valtrack.services.incident_service import IncidentService
from valtrack.services.report_service import ReportService, period_window, traffic_buckets
from valtrack.utils.exceptions import InvalidRequestError

reports = ReportService()


def add_log(conn, action, when, branch_id):
    conn.execute(
        insert(audit_logs).values(
            user_name="Desk", action=action, module="QR Scan",
            details="seeded", branch_id=branch_id, timestamp=when,
        )
    )


def test_daily_buckets_cover_iso_week():
    buckets = traffic_buckets("daily", date(2026, 3, 12))
    assert [b[0] for b in buckets] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    assert buckets[0][1] == date(2026, 3, 9)


def test_weekly_buckets_clip_at_month_end():
    february = traffic_buckets("weekly", date(2026, 2, 10))
    assert [b[0] for b in february] == ["Week 1", "Week 2", "Week 3", "Week 4"]

    march = traffic_buckets("weekly", date(2026, 3, 10))
    assert len(march) == 5
    assert march[-1][1:] == (date(2026, 3, 29), date(2026, 4, 1))


def test_monthly_and_yearly_buckets():
    assert traffic_buckets("monthly", date(2026, 7, 1))[0][0] == "Jan"
    assert len(traffic_buckets("monthly", date(2026, 7, 1))) == 12
    assert [b[0] for b in traffic_buckets("yearly", date(2026, 7, 1))] == ["2022", "2023", "2024", "2025", "2026"]


def test_unknown_period():
    with pytest.raises(InvalidRequestError):
        traffic_buckets("hourly", date(2026, 1, 1))
    with pytest.raises(InvalidRequestError):
        period_window("hourly", date(2026, 1, 1))


def test_period_window_weekly_starts_monday():
    start, end = period_window("weekly", date(2026, 3, 12))
    assert start == datetime(2026, 3, 9)
    assert end == datetime(2026, 3, 16)


def test_traffic_counts_per_bucket(conn, make_area):
    area = make_area()
    branch_id = area["branch_id"]
    add_log(conn, "Patron Check-In", datetime(2026, 3, 9, 10), branch_id)
    add_log(conn, "Patron Check-In", datetime(2026, 3, 9, 11), branch_id)
    add_log(conn, "Patron Check-Out", datetime(2026, 3, 10, 12), branch_id)
    add_log(conn, "Patron Check-In", datetime(2026, 3, 16, 9), branch_id)

    result = reports.traffic(conn, branch_id, "daily", date(2026, 3, 12))
    buckets = {b["name"]: b for b in result["buckets"]}
    assert buckets["Mon"]["check_ins"] == 2
    assert buckets["Tue"]["check_outs"] == 1
    assert sum(b["check_ins"] for b in result["buckets"]) == 2


def test_popular_branches(conn, make_area):
    main = make_area()
    east = make_area(branch_name="East Branch", area_name="Kids Corner")
    when = datetime(2026, 3, 9, 10)
    add_log(conn, "Patron Check-In", when, east["branch_id"])
    add_log(conn, "Patron Check-In", when, east["branch_id"])
    add_log(conn, "Patron Check-In", when, main["branch_id"])
    add_log(conn, "Patron Check-Out", when, main["branch_id"])

    assert reports.popular_branches(conn, "monthly", date(2026, 3, 20)) == [
        {"name": "East Branch", "check_ins": 2},
        {"name": "Main Library", "check_ins": 1},
    ]


def test_today_stats(conn, make_area, make_patron):
    area = make_area(capacity=4)
    attendance = AttendanceService()
    juan, maria = make_patron(), make_patron(firstname="Maria")
    attendance.toggle_attendance(conn, juan["id"], area["id"], "Desk")
    attendance.toggle_attendance(conn, maria["id"], area["id"], "Desk")
    attendance.toggle_attendance(conn, maria["id"], area["id"], "Desk")

    stats = reports.today_stats(conn, area["branch_id"])
    assert stats["total_in"] == 2
    assert stats["total_out"] == 1
    assert stats["total_current"] == 1
    assert stats["total_patrons"] == 2
    assert stats["busy_areas"][0]["name"] == "Reading Room"
    assert stats["busy_areas"][0]["occupancy_rate"] == 25.0


def test_dashboard_summary(conn, make_area, make_patron):
    area = make_area(capacity=3)
    patron = make_patron()
    BaggageService().configure_lockers(conn, area["id"], 1, "Admin")
    AttendanceService().toggle_attendance(conn, patron["id"], area["id"], "Desk")
    BaggageService().toggle_baggage(conn, area["id"], patron["id"], "Desk")
    IncidentService().report_incident(conn, "Lost keys", area["branch_id"], "Desk")

    summary = DashboardService().get_summary(conn, area["branch_id"])
    assert summary["currently_inside"] == 1
    # patron check-in plus baggage check-in
    assert summary["daily_scans"] == 2
    assert summary["active_baggage"] == 1
    assert summary["open_incidents"] == 1
    assert summary["area_stats"] == [{
        "id": area["id"],
        "name": "Reading Room",
        "type": "General Library",
        "floor_label": "Floor 1",
        "floor_number": 1,
        "capacity": 3,
        "current": 1,
    }]
