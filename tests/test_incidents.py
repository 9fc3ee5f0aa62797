import pytest

from valtrack.services.area_service import AreaService
from valtrack.services.branch_service import BranchService
from valtrack.services.incident_service import IncidentService
from valtrack.utils.exceptions import ConflictError, InvalidRequestError

incidents = IncidentService()


def test_report_with_area_prefixes_description(conn, make_area):
    area = make_area()
    incident = incidents.report_incident(
        conn, "Blue umbrella left behind", area["branch_id"], "Desk",
        patron_name="Juan Dela Cruz", area_id=area["id"],
    )

    assert incident["description"] == "[Reading Room] Blue umbrella left behind"
    assert incident["status"] == "open"
    assert incident["type"] == "lost_item"
    assert incident["floor"] == 1
    assert incident["reported_by"] == "Desk"


def test_report_without_area_defaults_to_first_floor(conn, make_area):
    area = make_area()
    incident = incidents.report_incident(conn, "Broken chair", area["branch_id"], "Desk", "damaged_item")
    assert incident["floor"] == 1
    assert incident["description"] == "Broken chair"


def test_report_validation(conn, make_area):
    area = make_area()
    other = make_area(branch_name="East Branch", area_name="Kids Corner")

    with pytest.raises(InvalidRequestError) as exc:
        incidents.report_incident(conn, "  ", area["branch_id"], "Desk")
    assert exc.value.message == "Please provide a description"

    with pytest.raises(InvalidRequestError):
        incidents.report_incident(conn, "Noise", area["branch_id"], "Desk", "gossip")

    with pytest.raises(InvalidRequestError):
        incidents.report_incident(conn, "Noise", area["branch_id"], "Desk", area_id=other["id"])


def test_area_on_upper_floor(conn):
    branches = BranchService()
    branch = branches.create_branch(conn, "Tower Branch", "Admin")
    floor = branches.create_floor(conn, branch["id"], 3, None, "Admin")
    area = AreaService().create_area(conn, floor["id"], "Archives", None, 5, "Admin")

    incident = incidents.report_incident(conn, "Leak", branch["id"], "Desk", "other", area_id=area["id"])
    assert incident["floor"] == 3


def test_resolve_once(conn, make_area):
    area = make_area()
    incident = incidents.report_incident(conn, "Lost wallet", area["branch_id"], "Desk")

    resolved = incidents.resolve_incident(conn, incident["id"], "Supervisor")
    assert resolved["status"] == "resolved"
    assert resolved["resolved_by"] == "Supervisor"
    assert resolved["resolved_at"] is not None

    with pytest.raises(ConflictError):
        incidents.resolve_incident(conn, incident["id"], "Supervisor")


def test_list_counts_and_export(conn, make_area):
    area = make_area()
    branch_id = area["branch_id"]
    first = incidents.report_incident(conn, "Lost wallet", branch_id, "Desk", patron_name="Maria")
    incidents.report_incident(conn, "Spilled coffee", branch_id, "Desk", "damaged_item")
    incidents.resolve_incident(conn, first["id"], "Desk")

    assert incidents.incident_counts(conn, branch_id) == {"open": 1, "resolved": 1}
    assert [i["description"] for i in incidents.list_incidents(conn, branch_id, status="open")] == ["Spilled coffee"]
    assert [i["id"] for i in incidents.list_incidents(conn, query="maria")] == [first["id"]]

    csv_text = incidents.export_incidents_csv(incidents.list_incidents(conn, branch_id))
    lines = csv_text.strip().splitlines()
    assert lines[0].startswith("ID,Type,Status,Patron")
    assert len(lines) == 3
