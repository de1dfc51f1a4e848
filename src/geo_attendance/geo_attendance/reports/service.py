from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..attendance.ledger import AttendanceLedger
from ..attendance.model import AttendanceSession


@dataclass(frozen=True)
class HoursSummary:
    subject_id: int
    total_hours: float
    average_hours: float
    session_count: int

    def to_dict(self) -> dict:
        return {
            "subject_id": self.subject_id,
            "total_hours": round(self.total_hours, 2),
            "average_hours": round(self.average_hours, 2),
            "session_count": self.session_count,
        }


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


def _fmt_hours(hours: float) -> str:
    minutes = int(round(hours * 60))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class AttendanceReportService:
    """Read-side projections over the ledger history."""

    def __init__(self, ledger: AttendanceLedger):
        self._ledger = ledger

    def total_hours(self, subject_id: int, start: Optional[datetime], end: Optional[datetime]) -> float:
        return self.summarize(subject_id, start, end).total_hours

    def average_hours(self, subject_id: int, start: Optional[datetime], end: Optional[datetime]) -> float:
        return self.summarize(subject_id, start, end).average_hours

    def session_count(self, subject_id: int, start: Optional[datetime], end: Optional[datetime]) -> int:
        return self.summarize(subject_id, start, end).session_count

    def summarize(self, subject_id: int, start: Optional[datetime], end: Optional[datetime]) -> HoursSummary:
        sessions = self._ledger.history(subject_id, start, end)
        # Open sessions count as attendance but contribute no hours yet.
        durations = [s.duration_hours for s in sessions if s.duration_hours is not None]
        total = sum(durations)
        average = total / len(durations) if durations else 0.0
        return HoursSummary(subject_id=subject_id, total_hours=total, average_hours=average, session_count=len(sessions))

    def build_attendance_report(
        self,
        *,
        start: Optional[datetime],
        end: Optional[datetime],
        subject_id: Optional[int] = None,
    ) -> ReportData:
        if subject_id is not None:
            sessions: Sequence[AttendanceSession] = self._ledger.history(subject_id, start, end)
        else:
            sessions = self._ledger.all_sessions(start, end)

        summary_map: dict[int, dict] = {}
        out_rows: list[dict] = []

        for s in sessions:
            hours = s.duration_hours or 0.0
            out_rows.append(
                {
                    "session_id": s.session_id,
                    "subject_id": s.subject_id,
                    "work_date": s.opened_at.strftime("%Y-%m-%d"),
                    "check_in": s.opened_at.strftime("%H:%M"),
                    "check_out": s.closed_at.strftime("%H:%M") if s.closed_at else "-",
                    "status": s.status.value,
                    "worked_hours": _fmt_hours(hours),
                    "note": s.close_reason or "",
                }
            )

            entry = summary_map.get(s.subject_id)
            if not entry:
                entry = {"subject_id": s.subject_id, "hours": 0.0, "sessions": 0}
                summary_map[s.subject_id] = entry
            entry["hours"] += hours
            entry["sessions"] += 1

        ranked = sorted(summary_map.values(), key=lambda e: e["hours"], reverse=True)
        summary = [
            {"subject_id": e["subject_id"], "total_hours": _fmt_hours(e["hours"]), "session_count": e["sessions"]}
            for e in ranked
        ]
        return ReportData(rows=out_rows, summary=summary)
