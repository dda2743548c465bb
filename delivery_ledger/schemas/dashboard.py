"""Dashboard payload schemas."""

from datetime import date, datetime

from pydantic import BaseModel


class NameCount(BaseModel):
    name: str
    count: int


class TopItemShare(BaseModel):
    name: str
    count: int
    share_pct: float


class Kpis(BaseModel):
    """Headline counters of the dashboard."""

    total_orders: int
    open_orders: int
    overdue_open: int
    due_today: int
    due_next_7: int
    done_7d: int
    done_30d: int
    unique_clients: int
    returning_clients_pct: float
    avg_lead_days: float | None
    median_lead_days: float | None
    top_delivery_company: TopItemShare | None
    top_article: NameCount | None
    top_city: NameCount | None


class TimeCount(BaseModel):
    period: str
    count: int


class TimeDoneCount(BaseModel):
    period: str
    done: bool
    count: int


class ScheduleItem(BaseModel):
    week: str
    company: str
    count: int


class LeadTimeBin(BaseModel):
    lead_days: int
    count: int


class MonthlyCohort(BaseModel):
    """New vs returning clients for one calendar month (YYYY-MM)."""

    month: str
    new_clients: int
    returning_clients: int


class BucketCount(BaseModel):
    bucket: str
    count: int


class HeatCell(BaseModel):
    weekday: int
    hour: int
    count: int


class OrderExceptionRow(BaseModel):
    id: int
    article_name: str
    client_name: str
    city: str
    delivery_company: str
    delivery_date: date
    age_days: int
    days_overdue: int


class Exceptions(BaseModel):
    overdue_top10: list[OrderExceptionRow]


class DashboardPayload(BaseModel):
    """Everything the dashboard screen renders, computed from one `now`."""

    generated_at: datetime
    kpis: Kpis
    orders_over_time_weekly: list[TimeCount]
    orders_over_time_weekly_by_done: list[TimeDoneCount]
    delivery_schedule_weeks: list[ScheduleItem]
    lead_time_histogram: list[LeadTimeBin]
    top_articles: list[NameCount]
    company_share_90d: list[TopItemShare]
    new_vs_returning_monthly: list[MonthlyCohort]
    backlog_age_buckets: list[BucketCount]
    activity_heatmap: list[HeatCell]
    exceptions: Exceptions
