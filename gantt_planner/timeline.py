"""Mapping between calendar dates and Gantt percentages."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple

from .errors import GeometryError
from .models import Project

ONE_DAY = timedelta(days=1)
DAILY_TICK_LIMIT = 14
WEEKLY_TICK_LIMIT = 60


@dataclass(frozen=True)
class BarGeometry:
    left: float
    width: float

    @property
    def right(self) -> float:
        return self.left + self.width


@dataclass(frozen=True)
class Tick:
    day: date
    percent: float
    label: str


@dataclass(frozen=True)
class Viewport:
    """The ``[min_date, max_date]`` window of one project's Gantt view."""

    min_date: date
    max_date: date

    def __post_init__(self) -> None:
        if self.max_date <= self.min_date:
            raise GeometryError(f"Empty viewport {self.min_date}..{self.max_date}")

    @classmethod
    def for_project(cls, project: Project, today: Optional[date] = None) -> "Viewport":
        """Span every start/due date of the project with one day of padding."""
        dates = project.all_dates()
        if not dates:
            dates = [today or date.today()]
        return cls(min(dates) - ONE_DAY, max(dates) + ONE_DAY)

    @property
    def total_days(self) -> int:
        return (self.max_date - self.min_date).days

    def to_percent(self, day: date) -> float:
        return (day - self.min_date).days / self.total_days * 100

    def to_date(self, percent: float) -> date:
        if not math.isfinite(percent):
            raise GeometryError(f"Cannot map {percent} to a date")
        return self.min_date + timedelta(days=math.floor(percent / 100 * self.total_days + 0.5))

    def days_to_percent(self, days: float) -> float:
        return days / self.total_days * 100

    def bar_geometry(self, start: date, due: date) -> BarGeometry:
        """A bar covers whole days, from ``start`` up to the end of ``due``."""
        left = self.to_percent(start)
        return BarGeometry(left, self.to_percent(due + ONE_DAY) - left)

    def bar_dates(self, geometry: BarGeometry) -> Tuple[date, date]:
        start = self.to_date(geometry.left)
        due = self.to_date(geometry.right) - ONE_DAY
        return start, max(start, due)

    @property
    def min_width_percent(self) -> float:
        return self.days_to_percent(1)

    def grow_to_fit(self, left: float, right: float) -> "Viewport":
        """Extend the window so that ``[left, right]`` falls inside ``[0, 100]``."""
        min_date, max_date = self.min_date, self.max_date
        if left < 0:
            min_date -= timedelta(days=math.ceil(-left / 100 * self.total_days))
        if right > 100:
            max_date += timedelta(days=math.ceil((right - 100) / 100 * self.total_days))
        if (min_date, max_date) == (self.min_date, self.max_date):
            return self
        return Viewport(min_date, max_date)

    def rebase(self, percent: float, source: "Viewport") -> float:
        """Re-express a percentage of ``source`` against this viewport."""
        days = percent / 100 * source.total_days + (source.min_date - self.min_date).days
        return self.days_to_percent(days)

    def rebase_geometry(self, geometry: BarGeometry, source: "Viewport") -> BarGeometry:
        left = self.rebase(geometry.left, source)
        return BarGeometry(left, self.rebase(geometry.right, source) - left)


def timeline_ticks(viewport: Viewport) -> List[Tick]:
    """Header ticks: daily up to two weeks, weekly up to sixty days, else monthly."""
    total = viewport.total_days
    if total <= DAILY_TICK_LIMIT:
        days = [viewport.min_date + timedelta(days=offset) for offset in range(total + 1)]
        fmt = "%b %d"
    elif total <= WEEKLY_TICK_LIMIT:
        days = [viewport.min_date + timedelta(days=offset) for offset in range(0, total + 1, 7)]
        fmt = "%b %d"
    else:
        days = []
        cursor = viewport.min_date.replace(day=1)
        if cursor < viewport.min_date:
            cursor = _next_month(cursor)
        while cursor <= viewport.max_date:
            days.append(cursor)
            cursor = _next_month(cursor)
        fmt = "%b %Y"
    return [Tick(day, viewport.to_percent(day), day.strftime(fmt)) for day in days]


def _next_month(day: date) -> date:
    if day.month == 12:
        return day.replace(year=day.year + 1, month=1)
    return day.replace(month=day.month + 1)
