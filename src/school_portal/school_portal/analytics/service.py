from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from ..common.context import RequestContext, require_role
from ..common.datetime_utils import month_key
from ..core.enums import BatchKind, BatchStatus, Role
from ..store.repository import RecordStore
from ..users.model import Profile


@dataclass(frozen=True)
class ChartPoint:
    month: str
    students: int
    lecturers: int


@dataclass(frozen=True)
class DashboardCounts:
    students: int
    lecturers: int
    courses: int
    pending: dict[str, int]


def registration_chart(profiles: Iterable[Profile]) -> list[ChartPoint]:
    """Cumulative student/lecturer registrations per YYYY-MM, oldest first."""
    students: Counter = Counter()
    lecturers: Counter = Counter()
    for p in profiles:
        if p.role is Role.STUDENT:
            students[month_key(p.created_at)] += 1
        elif p.role is Role.LECTURER:
            lecturers[month_key(p.created_at)] += 1

    out: list[ChartPoint] = []
    total_students = total_lecturers = 0
    for month in sorted(set(students) | set(lecturers)):
        total_students += students[month]
        total_lecturers += lecturers[month]
        out.append(ChartPoint(month=month, students=total_students, lecturers=total_lecturers))
    return out


class AnalyticsService:
    def __init__(self, store: RecordStore):
        self._store = store

    def _profiles(self) -> list[Profile]:
        return [Profile.from_row(r) for r in self._store.select("profiles", order_by="created_at")]

    def registration_chart(self, ctx: RequestContext) -> list[ChartPoint]:
        require_role(ctx, Role.ADMIN)
        return registration_chart(self._profiles())

    def dashboard_counts(self, ctx: RequestContext) -> DashboardCounts:
        require_role(ctx, Role.ADMIN)
        roles = Counter(p.role for p in self._profiles())
        pending = {
            kind.value: len(self._store.select(kind.value, {"status": BatchStatus.PENDING.value}))
            for kind in BatchKind
        }
        return DashboardCounts(
            students=roles[Role.STUDENT],
            lecturers=roles[Role.LECTURER],
            courses=len(self._store.select("courses")),
            pending=pending,
        )
