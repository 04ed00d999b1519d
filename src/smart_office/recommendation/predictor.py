from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import Clock, SystemClock
from ..core.constants import DEFAULT_PREDICTION_WEEKS
from ..core.enums import WorkStatus
from ..offices.model import WEEKDAY_CODES


@dataclass(frozen=True)
class WeekdayPrediction:
    day: str
    office_pct: float
    wfh_pct: float
    confidence: float
    samples: int

    def to_dict(self) -> dict:
        return {
            "day": self.day,
            "predicted_office_attendance": round(self.office_pct, 1),
            "predicted_wfh": round(self.wfh_pct, 1),
            "confidence": round(self.confidence, 2),
            "samples": self.samples,
        }


def predict_from_history(
    records: Sequence[AttendanceRecord], *, weeks: int, days: Sequence[str] = WEEKDAY_CODES[:5]
) -> list[WeekdayPrediction]:
    """Per-weekday office/WFH shares from past records.

    Leave days count towards neither share. Confidence is the fraction of the
    window's weeks that had a record on that weekday.
    """
    weeks = max(1, int(weeks))
    out: list[WeekdayPrediction] = []
    for code in days:
        idx = WEEKDAY_CODES.index(code)
        same_day = [r for r in records if r.work_date.weekday() == idx]
        office = sum(1 for r in same_day if r.status == WorkStatus.OFFICE)
        wfh = sum(1 for r in same_day if r.status == WorkStatus.WFH)
        worked = office + wfh
        out.append(
            WeekdayPrediction(
                day=code,
                office_pct=100.0 * office / worked if worked else 0.0,
                wfh_pct=100.0 * wfh / worked if worked else 0.0,
                confidence=min(1.0, len(same_day) / weeks),
                samples=len(same_day),
            )
        )
    return out


class AttendancePredictor:
    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        clock: Optional[Clock] = None,
        weeks: int = DEFAULT_PREDICTION_WEEKS,
    ):
        self._attendance = attendance
        self._clock = clock or SystemClock()
        self._weeks = int(weeks)

    def weekly(self, user_id: int) -> list[WeekdayPrediction]:
        today = self._clock.now().date()
        start: date = today - timedelta(weeks=self._weeks)
        # Today is still in progress.
        records = self._attendance.list_for_user_between(int(user_id), start, today - timedelta(days=1))
        return predict_from_history(records, weeks=self._weeks)
