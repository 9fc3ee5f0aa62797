# =======================================================================================
# valtrack/services/report_service.py - Traffic Reports
# =======================================================================================
import calendar
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from ..models.enums import AuditAction
from ..schema import area_attendance, areas, audit_logs, branches, floors, patrons
from ..utils.exceptions import InvalidRequestError
from ..utils.timeutils import day_bounds, start_of_day, utcnow

PERIODS = ("daily", "weekly", "monthly", "yearly")
CHECK_IN = AuditAction.PATRON_CHECK_IN.value
CHECK_OUT = AuditAction.PATRON_CHECK_OUT.value


def _month_start(day: date) -> date:
    return day.replace(day=1)


def _add_months(day: date, months: int) -> date:
    month = day.month - 1 + months
    return date(day.year + month // 12, month % 12 + 1, 1)


def period_window(period: str, day: date) -> Tuple[datetime, datetime]:
    """[start, end) of the period that contains day."""
    if period == "daily":
        return day_bounds(day)
    if period == "weekly":
        monday = day - timedelta(days=day.weekday())
        return start_of_day(monday), start_of_day(monday + timedelta(days=7))
    if period == "monthly":
        first = _month_start(day)
        return start_of_day(first), start_of_day(_add_months(first, 1))
    if period == "yearly":
        return start_of_day(date(day.year, 1, 1)), start_of_day(date(day.year + 1, 1, 1))
    raise InvalidRequestError(f"Unknown report period: {period}")


def traffic_buckets(period: str, day: date) -> List[Tuple[str, date, date]]:
    """
    Buckets (name, start, end) used by the traffic chart.

    daily   -> the seven days of the ISO week containing day
    weekly  -> 7-day slices of day's month, the last one clipped to month end
    monthly -> the twelve months of day's year
    yearly  -> the five years ending with day's year
    """
    if period == "daily":
        monday = day - timedelta(days=day.weekday())
        return [
            (calendar.day_abbr[i], monday + timedelta(days=i), monday + timedelta(days=i + 1))
            for i in range(7)
        ]
    if period == "weekly":
        first = _month_start(day)
        month_end = _add_months(first, 1)
        buckets = []
        start, n = first, 1
        while start < month_end:
            end = min(start + timedelta(days=7), month_end)
            buckets.append((f"Week {n}", start, end))
            start, n = end, n + 1
        return buckets
    if period == "monthly":
        return [
            (calendar.month_abbr[m], date(day.year, m, 1), _add_months(date(day.year, m, 1), 1))
            for m in range(1, 13)
        ]
    if period == "yearly":
        return [
            (str(y), date(y, 1, 1), date(y + 1, 1, 1))
            for y in range(day.year - 4, day.year + 1)
        ]
    raise InvalidRequestError(f"Unknown report period: {period}")


class ReportService:
    """Check-in / check-out analytics built from the audit trail."""

    def _action_rows(
        self,
        conn: Connection,
        start: datetime,
        end: datetime,
        branch_id: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        stmt = select(audit_logs.c.action, audit_logs.c.timestamp, audit_logs.c.branch_id).where(
            audit_logs.c.action.in_([CHECK_IN, CHECK_OUT]),
            audit_logs.c.timestamp >= start,
            audit_logs.c.timestamp < end,
        )
        if branch_id is not None:
            stmt = stmt.where(audit_logs.c.branch_id == branch_id)
        return [dict(r) for r in conn.execute(stmt).mappings().all()]

    # ---------- today ----------

    def busy_areas(self, conn: Connection, branch_id: Optional[int] = None, limit: int = 5) -> List[Dict[str, Any]]:
        count = func.count(area_attendance.c.id).label("count")
        stmt = (
            select(
                areas.c.id,
                areas.c.name,
                areas.c.capacity,
                floors.c.label.label("floor_label"),
                branches.c.name.label("branch_name"),
                count,
            )
            .select_from(
                area_attendance.join(areas, area_attendance.c.area_id == areas.c.id)
                .join(floors, areas.c.floor_id == floors.c.id)
                .join(branches, floors.c.branch_id == branches.c.id)
            )
            .where(area_attendance.c.status == "active")
            .group_by(areas.c.id, areas.c.name, areas.c.capacity, floors.c.label, branches.c.name)
            .order_by(count.desc(), areas.c.name)
            .limit(limit)
        )
        if branch_id is not None:
            stmt = stmt.where(floors.c.branch_id == branch_id)

        result = []
        for row in conn.execute(stmt).mappings().all():
            item = dict(row)
            item["count"] = int(item["count"])
            item["occupancy_rate"] = round(item["count"] / item["capacity"] * 100, 1) if item["capacity"] else 0.0
            result.append(item)
        return result

    def today_stats(self, conn: Connection, branch_id: Optional[int] = None) -> Dict[str, Any]:
        start, end = day_bounds()
        rows = self._action_rows(conn, start, end, branch_id)

        current = select(func.count()).select_from(
            area_attendance.join(areas, area_attendance.c.area_id == areas.c.id)
            .join(floors, areas.c.floor_id == floors.c.id)
        ).where(area_attendance.c.status == "active")
        if branch_id is not None:
            current = current.where(floors.c.branch_id == branch_id)

        return {
            "total_in": sum(1 for r in rows if r["action"] == CHECK_IN),
            "total_out": sum(1 for r in rows if r["action"] == CHECK_OUT),
            "total_current": int(conn.execute(current).scalar() or 0),
            "total_patrons": int(conn.execute(select(func.count()).select_from(patrons)).scalar() or 0),
            "busy_areas": self.busy_areas(conn, branch_id),
        }

    # ---------- period reports ----------

    def popular_branches(self, conn: Connection, period: str = "daily", day: Optional[date] = None) -> List[Dict[str, Any]]:
        """Check-ins per branch within the period, busiest ten first."""
        day = day or utcnow().date()
        start, end = period_window(period, day)
        rows = self._action_rows(conn, start, end)

        counts: Dict[int, int] = {}
        for r in rows:
            if r["action"] == CHECK_IN and r["branch_id"] is not None:
                counts[r["branch_id"]] = counts.get(r["branch_id"], 0) + 1

        names = dict(conn.execute(select(branches.c.id, branches.c.name)).all())
        ranked = [
            {"name": names[branch_id], "check_ins": n}
            for branch_id, n in counts.items() if branch_id in names
        ]
        ranked.sort(key=lambda b: (-b["check_ins"], b["name"]))
        return ranked[:10]

    def traffic(
        self,
        conn: Connection,
        branch_id: Optional[int] = None,
        period: str = "daily",
        day: Optional[date] = None,
    ) -> Dict[str, Any]:
        day = day or utcnow().date()
        buckets = traffic_buckets(period, day)
        rows = self._action_rows(
            conn, start_of_day(buckets[0][1]), start_of_day(buckets[-1][2]), branch_id
        )

        result = []
        for name, start, end in buckets:
            lo, hi = start_of_day(start), start_of_day(end)
            inside = [r for r in rows if lo <= r["timestamp"] < hi]
            result.append({
                "name": name,
                "start": start,
                "check_ins": sum(1 for r in inside if r["action"] == CHECK_IN),
                "check_outs": sum(1 for r in inside if r["action"] == CHECK_OUT),
            })
        return {"period": period, "buckets": result}
