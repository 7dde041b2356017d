"""
Metrics Service
Revenue rollups, goal progress and dashboard counters.

Revenue is the sum of Procedure.value by performed_date; calendar windows
(month, quarter, year, ISO week) are computed in UTC.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dates import utcnow, month_start, previous_month_start, quarter_start, year_start, week_start
from app.models import (
    Patient, Procedure, Event, Collaborator, City, User, AdminTask, PatientProgress,
    PatientStatus, EventType, EventStatus, TaskStatus,
)
from app.schemas.metrics import (
    CollaboratorMetrics, GoalProgress, DashboardMetrics, GlobalStats, TopPerformer,
    CollaboratorDashboardStats, WeeklyProgress, MetricsOverview,
)
from app.schemas.city import CityMetricsResponse


def goal_percentage(actual, goal) -> float:
    """
    ``actual / goal * 100``; 0 when the goal is missing or zero.
    Not clamped: over-achievement reports more than 100.
    """
    if goal is None:
        return 0.0
    goal = float(goal)
    if goal <= 0:
        return 0.0
    return round(float(actual or 0) / goal * 100, 2)


def growth_percentage(current: float, previous: float) -> float:
    """Relative change between two periods; 0 when there is no previous data"""
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 2)


def _to_float(value) -> float:
    if value is None:
        return 0.0
    if isinstance(value, Decimal):
        return float(value)
    return float(value)


async def revenue_between(
    db: AsyncSession,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    *criteria,
) -> float:
    """Sum of procedure values performed in [start, end)"""
    conditions = list(criteria)
    if start is not None:
        conditions.append(Procedure.performed_date >= start)
    if end is not None:
        conditions.append(Procedure.performed_date < end)
    result = await db.execute(
        select(func.coalesce(func.sum(Procedure.value), 0)).filter(*conditions)
    )
    return _to_float(result.scalar_one())


async def _count(db: AsyncSession, column, *criteria) -> int:
    result = await db.execute(select(func.count(column)).filter(*criteria))
    return result.scalar_one()


def _consultations_in(start: datetime, end: datetime):
    return and_(
        Event.type == EventType.CONSULTATION,
        Event.status != EventStatus.CANCELLED,
        Event.scheduled_date >= start,
        Event.scheduled_date < end,
    )


def _next_month(start: datetime) -> datetime:
    return month_start(start + timedelta(days=32))


# ==================== Collaborator ====================

async def collaborator_metrics(db: AsyncSession, collaborator: Collaborator) -> CollaboratorMetrics:
    """
    Totals, calendar-window revenue and goal progress for one collaborator.

    Goal progress:
        monthly/sales = month revenue / revenue_goal
        quarterly     = quarter revenue / (revenue_goal * 3)
        yearly        = year revenue / (revenue_goal * 12)
        consultations = consultations this month / consultation_goal
    """
    now = utcnow()
    this_month = month_start(now)
    owner = Procedure.collaborator_id == collaborator.id

    monthly = await revenue_between(db, this_month, None, owner)
    quarterly = await revenue_between(db, quarter_start(now), None, owner)
    yearly = await revenue_between(db, year_start(now), None, owner)

    consultations = await _count(
        db, Event.id,
        Event.collaborator_id == collaborator.id,
        _consultations_in(this_month, _next_month(this_month)),
    )

    revenue_goal = _to_float(collaborator.revenue_goal)

    return CollaboratorMetrics(
        total_patients=await _count(db, Patient.id, Patient.collaborator_id == collaborator.id),
        active_patients=await _count(
            db, Patient.id,
            Patient.collaborator_id == collaborator.id,
            Patient.status == PatientStatus.ACTIVE,
        ),
        total_procedures=await _count(db, Procedure.id, owner),
        monthly_revenue=monthly,
        quarterly_revenue=quarterly,
        yearly_revenue=yearly,
        consultations_this_month=consultations,
        goal_progress=GoalProgress(
            monthly=goal_percentage(monthly, revenue_goal),
            quarterly=goal_percentage(quarterly, revenue_goal * 3),
            yearly=goal_percentage(yearly, revenue_goal * 12),
            sales=goal_percentage(monthly, revenue_goal),
            consultations=goal_percentage(consultations, collaborator.consultation_goal),
        ),
    )


async def collaborator_dashboard_stats(db: AsyncSession, collaborator_id: str) -> CollaboratorDashboardStats:
    now = utcnow()
    this_month = month_start(now)
    last_week = now - timedelta(days=7)
    owner = Procedure.collaborator_id == collaborator_id

    weekly_procedures = await _count(db, Procedure.id, owner, Procedure.performed_date >= last_week)
    weekly_consultations = await _count(
        db, Event.id,
        Event.collaborator_id == collaborator_id,
        Event.type == EventType.CONSULTATION,
        Event.status == EventStatus.COMPLETED,
        Event.completed_at >= last_week,
    )

    return CollaboratorDashboardStats(
        total_patients=await _count(
            db, Patient.id,
            Patient.collaborator_id == collaborator_id,
            Patient.status == PatientStatus.ACTIVE,
        ),
        stalled_patients=await _count(
            db, PatientProgress.id,
            PatientProgress.collaborator_id == collaborator_id,
            PatientProgress.is_stalled.is_(True),
        ),
        completed_tasks=await _count(
            db, AdminTask.id,
            AdminTask.assigned_to == collaborator_id,
            AdminTask.status == TaskStatus.COMPLETED,
            AdminTask.completed_at >= this_month,
        ),
        pending_tasks=await _count(
            db, AdminTask.id,
            AdminTask.assigned_to == collaborator_id,
            AdminTask.status == TaskStatus.PENDING,
        ),
        monthly_revenue=await revenue_between(db, this_month, None, owner),
        weekly_progress=WeeklyProgress(
            procedures=weekly_procedures,
            consultations=weekly_consultations,
            revenue=await revenue_between(db, last_week, None, owner),
        ),
    )


async def collaborator_month_figures(db: AsyncSession) -> Dict[str, Dict[str, float]]:
    """
    Current-month revenue, consultations and active patients for every collaborator
    in three grouped queries
    """
    now = utcnow()
    this_month = month_start(now)
    figures: Dict[str, Dict[str, float]] = {}

    def row(collaborator_id):
        return figures.setdefault(collaborator_id, {"revenue": 0.0, "consultations": 0, "active_patients": 0})

    revenue = await db.execute(
        select(Procedure.collaborator_id, func.coalesce(func.sum(Procedure.value), 0))
        .filter(Procedure.performed_date >= this_month)
        .group_by(Procedure.collaborator_id)
    )
    for collaborator_id, total in revenue.all():
        row(collaborator_id)["revenue"] = _to_float(total)

    consultations = await db.execute(
        select(Event.collaborator_id, func.count(Event.id))
        .filter(_consultations_in(this_month, _next_month(this_month)))
        .group_by(Event.collaborator_id)
    )
    for collaborator_id, total in consultations.all():
        row(collaborator_id)["consultations"] = total

    patients = await db.execute(
        select(Patient.collaborator_id, func.count(Patient.id))
        .filter(Patient.collaborator_id.isnot(None), Patient.status == PatientStatus.ACTIVE)
        .group_by(Patient.collaborator_id)
    )
    for collaborator_id, total in patients.all():
        row(collaborator_id)["active_patients"] = total

    return figures


# ==================== Dashboard ====================

async def dashboard_metrics(db: AsyncSession, collaborator_id: Optional[str] = None) -> DashboardMetrics:
    """
    Headline counters; limited to one collaborator's rows when ``collaborator_id`` is given
    """
    now = utcnow()
    patient_scope = [Patient.collaborator_id == collaborator_id] if collaborator_id else []
    procedure_scope = [Procedure.collaborator_id == collaborator_id] if collaborator_id else []
    event_scope = [Event.collaborator_id == collaborator_id] if collaborator_id else []

    this_month = month_start(now)

    return DashboardMetrics(
        total_patients=await _count(db, Patient.id, *patient_scope),
        active_procedures=await _count(db, Procedure.id, Procedure.validity_date >= now, *procedure_scope),
        pending_followups=await _count(
            db, Event.id,
            Event.type == EventType.FOLLOWUP,
            Event.status.in_([EventStatus.PENDING, EventStatus.CONFIRMED]),
            Event.scheduled_date <= now,
            *event_scope,
        ),
        monthly_revenue=await revenue_between(db, this_month, _next_month(this_month), *procedure_scope),
    )


async def city_metrics(db: AsyncSession) -> List[CityMetricsResponse]:
    """
    Patients, collaborators and current-month revenue per city.
    Revenue is attributed to the city of the collaborator who sold the procedure.
    """
    this_month = month_start(utcnow())

    cities = (await db.execute(select(City).order_by(City.name))).scalars().all()

    patients = dict((await db.execute(
        select(Patient.city_id, func.count(Patient.id)).group_by(Patient.city_id)
    )).all())
    collaborators = dict((await db.execute(
        select(Collaborator.city_id, func.count(Collaborator.id)).group_by(Collaborator.city_id)
    )).all())
    revenue = dict((await db.execute(
        select(Collaborator.city_id, func.coalesce(func.sum(Procedure.value), 0))
        .join(Collaborator, Procedure.collaborator_id == Collaborator.id)
        .filter(Procedure.performed_date >= this_month)
        .group_by(Collaborator.city_id)
    )).all())

    return [
        CityMetricsResponse(
            city_id=city.id,
            city_name=city.name,
            total_patients=patients.get(city.id, 0),
            total_collaborators=collaborators.get(city.id, 0),
            monthly_revenue=_to_float(revenue.get(city.id)),
            goal_progress=goal_percentage(_to_float(revenue.get(city.id)), city.monthly_goal),
        )
        for city in cities
    ]


# ==================== Global ====================

async def top_performers(
    db: AsyncSession,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = 5,
) -> List[TopPerformer]:
    conditions = []
    if start is not None:
        conditions.append(Procedure.performed_date >= start)
    if end is not None:
        conditions.append(Procedure.performed_date <= end)

    total = func.coalesce(func.sum(Procedure.value), 0)
    result = await db.execute(
        select(Procedure.collaborator_id, User.name, total, func.count(Procedure.id))
        .join(Collaborator, Procedure.collaborator_id == Collaborator.id)
        .join(User, Collaborator.user_id == User.id)
        .filter(*conditions)
        .group_by(Procedure.collaborator_id, User.name)
        .order_by(total.desc())
        .limit(limit)
    )
    return [
        TopPerformer(
            collaborator_id=collaborator_id,
            name=name,
            total_revenue=_to_float(revenue),
            total_procedures=procedures,
        )
        for collaborator_id, name, revenue, procedures in result.all()
    ]


async def global_stats(
    db: AsyncSession,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> GlobalStats:
    """
    Company-wide totals. Growth compares the current calendar month (or ISO week)
    with the previous one and reports 0 when the previous period had no revenue.
    """
    now = utcnow()
    range_conditions = []
    if start is not None:
        range_conditions.append(Procedure.performed_date >= start)
    if end is not None:
        range_conditions.append(Procedure.performed_date <= end)
    total_revenue = await revenue_between(db, None, None, *range_conditions)

    this_month = month_start(now)
    this_week = week_start(now)
    month_revenue = await revenue_between(db, this_month, None)
    last_month_revenue = await revenue_between(db, previous_month_start(now), this_month)
    week_revenue = await revenue_between(db, this_week, None)
    last_week_revenue = await revenue_between(db, this_week - timedelta(days=7), this_week)

    return GlobalStats(
        total_patients=await _count(db, Patient.id),
        active_patients=await _count(db, Patient.id, Patient.status == PatientStatus.ACTIVE),
        stalled_patients=await _count(db, PatientProgress.id, PatientProgress.is_stalled.is_(True)),
        total_revenue=total_revenue,
        monthly_growth=growth_percentage(month_revenue, last_month_revenue),
        weekly_growth=growth_percentage(week_revenue, last_week_revenue),
        top_performers=await top_performers(db, start, end),
    )


async def metrics_overview(db: AsyncSession) -> MetricsOverview:
    now = utcnow()
    this_month = month_start(now)

    goals = await db.execute(
        select(func.coalesce(func.sum(Collaborator.revenue_goal), 0))
        .filter(Collaborator.is_active.is_(True))
    )
    revenue = await revenue_between(db, this_month, None)

    return MetricsOverview(
        active_collaborators=await _count(db, Collaborator.id, Collaborator.is_active.is_(True)),
        total_revenue=revenue,
        total_consultations=await _count(db, Event.id, _consultations_in(this_month, _next_month(this_month))),
        overall_goal_progress=goal_percentage(revenue, _to_float(goals.scalar_one())),
    )
