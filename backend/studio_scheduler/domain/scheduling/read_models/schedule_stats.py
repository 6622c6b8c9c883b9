"""
Schedule statistics read models.

Per-job and fleet-wide completion, delay and staffing figures. Every date
comparison is done on ``DateOnly`` values in UTC, and progress is summed
exactly; rounding happens only when ``percentage`` is read.
"""

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field, computed_field

from ..entities.job import JobDetail, JobSchedule
from ..entities.normalized_task import NormalizedTask
from ..entities.order_item import ScheduledTask
from ..services.task_normalizer import normalize_job
from ..value_objects.date_only import DateOnly
from ..value_objects.enums import TimeStatus

_HUNDRED = Decimal(100)


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class JobStats(BaseModel):
    """Counts for one job (or the sum over many jobs)."""

    job_id: str | None = None
    total: int = Field(ge=0, default=0)
    completed: int = Field(ge=0, default=0)
    pending: int = Field(ge=0, default=0)
    in_progress: int = Field(ge=0, default=0)
    delayed: int = Field(ge=0, default=0)
    unassigned: int = Field(ge=0, default=0)
    without_crew: int = Field(ge=0, default=0)
    progress_sum: Decimal = Field(ge=0, default=Decimal(0))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def percentage(self) -> int:
        """Mean progress over all work units, rounded half-up."""
        if self.total <= 0:
            return 0
        return round_half_up(self.progress_sum / Decimal(self.total))

    @property
    def scheduled(self) -> int:
        return self.total - self.unassigned

    @property
    def is_partitioned(self) -> bool:
        return self.completed + self.pending + self.in_progress + self.delayed == self.scheduled

    def __add__(self, other: "JobStats") -> "JobStats":
        return JobStats(
            total=self.total + other.total,
            completed=self.completed + other.completed,
            pending=self.pending + other.pending,
            in_progress=self.in_progress + other.in_progress,
            delayed=self.delayed + other.delayed,
            unassigned=self.unassigned + other.unassigned,
            without_crew=self.without_crew + other.without_crew,
            progress_sum=self.progress_sum + other.progress_sum,
        )


class FleetStats(BaseModel):
    """Per-job stats plus their sum."""

    today: DateOnly
    jobs: list[JobStats] = Field(default_factory=list)
    totals: JobStats = Field(default_factory=JobStats)

    @property
    def delayed_job_ids(self) -> list[str]:
        return [job.job_id for job in self.jobs if job.delayed > 0 and job.job_id]


class StatsAggregator:
    """
    Computes ``JobStats`` relative to one "today".

    Bucketing per work unit, first match wins: not scheduled -> unassigned,
    completed -> completed, missing dates -> unassigned, ``today > end`` ->
    delayed, ``today < start`` -> pending, otherwise in progress.
    """

    def __init__(
        self,
        today: DateOnly | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.today = today if today is not None else DateOnly.today(clock)

    def time_status(
        self,
        *,
        scheduled: bool,
        completed: bool,
        start: DateOnly | None,
        end: DateOnly | None,
    ) -> TimeStatus:
        if not scheduled:
            return TimeStatus.UNASSIGNED
        if completed:
            return TimeStatus.COMPLETED
        if start is None or end is None:
            return TimeStatus.UNASSIGNED
        if self.today > end:
            return TimeStatus.DELAYED
        if self.today < start:
            return TimeStatus.PENDING
        return TimeStatus.IN_PROGRESS

    def status_of(self, task: NormalizedTask) -> TimeStatus:
        return self.time_status(
            scheduled=task.scheduled,
            completed=task.is_completed,
            start=task.start_date,
            end=task.end_date,
        )

    @staticmethod
    def _progress(progress: float | None, completed: bool) -> Decimal:
        if progress is None:
            return _HUNDRED if completed else Decimal(0)
        return min(_HUNDRED, max(Decimal(0), Decimal(str(progress))))

    def _accumulate(
        self,
        stats: dict[str, int],
        status: TimeStatus,
        *,
        scheduled: bool,
        completed: bool,
        assigned_to: str | None,
    ) -> None:
        stats[status.value] += 1
        if scheduled and not completed and not assigned_to:
            stats["without_crew"] += 1

    def job_stats(self, tasks: Sequence[NormalizedTask], job_id: str | None = None) -> JobStats:
        counts = {status.value: 0 for status in TimeStatus} | {"without_crew": 0}
        progress_sum = Decimal(0)
        for task in tasks:
            status = self.status_of(task)
            self._accumulate(
                counts,
                status,
                scheduled=task.scheduled,
                completed=task.is_completed,
                assigned_to=task.assigned_to,
            )
            if task.scheduled:
                progress_sum += self._progress(task.progress_percent, task.is_completed)
        return JobStats(
            job_id=job_id,
            total=len(tasks),
            completed=counts[TimeStatus.COMPLETED.value],
            pending=counts[TimeStatus.PENDING.value],
            in_progress=counts[TimeStatus.IN_PROGRESS.value],
            delayed=counts[TimeStatus.DELAYED.value],
            unassigned=counts[TimeStatus.UNASSIGNED.value],
            without_crew=counts["without_crew"],
            progress_sum=progress_sum,
        )

    def stats_for_job(self, job: JobDetail) -> JobStats:
        return self.job_stats(normalize_job(job), job_id=job.id)

    def stats_for_schedule(self, schedule: JobSchedule) -> JobStats:
        """
        Stats for a fleet summary entry.

        ``total_items`` counts the job's work units; units without one of the
        listed tasks are unassigned. A job with no tasks is entirely unassigned.
        """
        tasks: list[ScheduledTask] = list(schedule.tasks)
        total = max(schedule.total_items, len(tasks))
        counts = {status.value: 0 for status in TimeStatus} | {"without_crew": 0}
        counts[TimeStatus.UNASSIGNED.value] = total - len(tasks)
        progress_sum = Decimal(0)
        for task in tasks:
            status = self.time_status(
                scheduled=True,
                completed=task.is_completed,
                start=task.start_date,
                end=task.end_date,
            )
            self._accumulate(
                counts,
                status,
                scheduled=True,
                completed=task.is_completed,
                assigned_to=task.assigned_to,
            )
            progress_sum += self._progress(task.progress_percent, task.is_completed)
        return JobStats(
            job_id=schedule.id,
            total=total,
            completed=counts[TimeStatus.COMPLETED.value],
            pending=counts[TimeStatus.PENDING.value],
            in_progress=counts[TimeStatus.IN_PROGRESS.value],
            delayed=counts[TimeStatus.DELAYED.value],
            unassigned=counts[TimeStatus.UNASSIGNED.value],
            without_crew=counts["without_crew"],
            progress_sum=progress_sum,
        )

    def fleet_stats(self, schedules: Iterable[JobSchedule]) -> FleetStats:
        jobs = [self.stats_for_schedule(schedule) for schedule in schedules]
        totals = JobStats()
        for job in jobs:
            totals = totals + job
        return FleetStats(today=self.today, jobs=jobs, totals=totals)
