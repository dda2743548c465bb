"""Dashboard aggregates computed from the order ledger.

Everything here is read-only. One `now` is captured per dashboard build and
passed to every query, so all sections agree on the same instant. Two clocks
are in play and are kept apart on purpose:

- delivery dates are plain calendar dates, compared with *local* today;
- creation timestamps are UTC, compared with UTC windows (last 7/30/90 days).
"""

from __future__ import annotations

import logging
import statistics
import time
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy import text
from sqlalchemy.orm import Session

from delivery_ledger.core.errors import translate_db_errors
from delivery_ledger.schemas.dashboard import (
    BucketCount,
    DashboardPayload,
    Exceptions,
    HeatCell,
    Kpis,
    LeadTimeBin,
    MonthlyCohort,
    NameCount,
    OrderExceptionRow,
    ScheduleItem,
    TimeCount,
    TimeDoneCount,
    TopItemShare,
)
from delivery_ledger.utils.time import as_utc, local_today, utc_now

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY: str = "(Unknown)"
SHARE_WINDOW_DAYS: int = 90
SCHEDULE_HORIZON_DAYS: int = 84
TOP_ARTICLES_LIMIT: int = 10
OVERDUE_EXCEPTIONS_LIMIT: int = 10

# (label, lowest age in days, highest age in days or None for open-ended)
BACKLOG_BANDS: list[tuple[str, int, int | None]] = [
    ("0-2", 0, 2),
    ("3-6", 3, 6),
    ("7-13", 7, 13),
    ("14-29", 14, 29),
    ("30+", 30, None),
]

COMPANY_LABEL_SQL: str = f"COALESCE(NULLIF(TRIM(delivery_company), ''), '{UNKNOWN_COMPANY}')"


@dataclass(frozen=True)
class DashboardClock:
    """The instant a dashboard is computed for, in both clocks."""

    now: datetime
    today: date

    @classmethod
    def at(cls, now: datetime | None = None) -> "DashboardClock":
        utc_value = as_utc(now) if now is not None else utc_now()
        return cls(now=utc_value, today=local_today(utc_value))

    @staticmethod
    def _sql_timestamp(value: datetime) -> str:
        return value.strftime("%Y-%m-%d %H:%M:%S")

    def params(self) -> dict[str, str]:
        return {
            "now_ts": self._sql_timestamp(self.now),
            "done_7d_start": self._sql_timestamp(self.now - timedelta(days=7)),
            "done_30d_start": self._sql_timestamp(self.now - timedelta(days=30)),
            "share_window_start": (self.now.date() - timedelta(days=SHARE_WINDOW_DAYS)).isoformat(),
            "today": self.today.isoformat(),
            "due_week_end": (self.today + timedelta(days=7)).isoformat(),
            "schedule_end": (self.today + timedelta(days=SCHEDULE_HORIZON_DAYS)).isoformat(),
        }


def _scalar(db: Session, sql: str, params: dict[str, Any]) -> Any:
    return db.execute(text(sql), params).scalar()


def _rows(db: Session, sql: str, params: dict[str, Any]) -> list[Any]:
    return list(db.execute(text(sql), params).mappings().all())


def round_share(count: int, total: int) -> float:
    """Percentage of `count` in `total`, one decimal; 0.0 when total is 0."""
    if total <= 0:
        return 0.0
    return round(100.0 * count / total, 1)


def median_lead_days(lead_days: list[int]) -> float | None:
    """Median of lead times: the middle value, or the mean of the two middle values."""
    if not lead_days:
        return None
    return float(statistics.median(lead_days))


def backlog_band(age_days: int) -> str:
    """Return the backlog band label for an order age in whole days."""
    for label, lowest, highest in BACKLOG_BANDS:
        if age_days >= lowest and (highest is None or age_days <= highest):
            return label
    # Negative ages (clock skew) count as brand new.
    return BACKLOG_BANDS[0][0]


def _status_counts(db: Session, params: dict[str, Any]) -> dict[str, int]:
    row = db.execute(
        text(
            """
            SELECT
              COUNT(*) AS total_orders,
              COALESCE(SUM(CASE WHEN done = 0 THEN 1 ELSE 0 END), 0) AS open_orders,
              COALESCE(SUM(CASE WHEN done = 0 AND date(delivery_date) < :today THEN 1 ELSE 0 END), 0) AS overdue_open,
              COALESCE(SUM(CASE WHEN done = 0 AND date(delivery_date) = :today THEN 1 ELSE 0 END), 0) AS due_today,
              COALESCE(SUM(CASE WHEN done = 0 AND date(delivery_date) > :today
                                 AND date(delivery_date) <= :due_week_end THEN 1 ELSE 0 END), 0) AS due_next_7,
              COALESCE(SUM(CASE WHEN done = 1 AND datetime(created_at) >= datetime(:done_7d_start)
                                THEN 1 ELSE 0 END), 0) AS done_7d,
              COALESCE(SUM(CASE WHEN done = 1 AND datetime(created_at) >= datetime(:done_30d_start)
                                THEN 1 ELSE 0 END), 0) AS done_30d,
              COUNT(DISTINCT phone) AS unique_clients
            FROM orders
            """
        ),
        params,
    ).mappings().one()
    return {key: int(value) for key, value in row.items()}


def _returning_clients_pct(db: Session, params: dict[str, Any]) -> float:
    row = db.execute(
        text(
            """
            WITH per_client AS (SELECT phone, COUNT(*) AS cnt FROM orders GROUP BY phone)
            SELECT COALESCE(SUM(CASE WHEN cnt > 1 THEN 1 ELSE 0 END), 0) AS returning_clients, COUNT(*) AS clients
            FROM per_client
            """
        ),
        params,
    ).mappings().one()
    return round_share(int(row["returning_clients"]), int(row["clients"]))


def _lead_days(db: Session, params: dict[str, Any]) -> list[int]:
    rows = db.execute(
        text(
            """
            SELECT CAST(ROUND(julianday(date(delivery_date)) - julianday(date(created_at))) AS INTEGER) AS lead_days
            FROM orders
            WHERE delivery_date IS NOT NULL
              AND date(delivery_date) IS NOT NULL
              AND date(created_at) IS NOT NULL
            ORDER BY lead_days
            """
        ),
        params,
    ).all()
    return [int(row[0]) for row in rows]


def _top_in_window(db: Session, label_sql: str, params: dict[str, Any], limit: int | None = None) -> list[NameCount]:
    # Ties are broken by name so the ranking is reproducible.
    sql = f"""
        SELECT {label_sql} AS name, COUNT(*) AS cnt
        FROM orders
        WHERE date(created_at) >= :share_window_start
        GROUP BY name
        ORDER BY cnt DESC, name ASC
    """
    if limit is not None:
        sql += f" LIMIT {int(limit)}"
    return [NameCount(name=row["name"], count=row["cnt"]) for row in _rows(db, sql, params)]


def company_share(db: Session, params: dict[str, Any]) -> list[TopItemShare]:
    """Full ranked list of delivery companies over the trailing 90 days."""
    total = int(_scalar(db, "SELECT COUNT(*) FROM orders WHERE date(created_at) >= :share_window_start", params))
    return [
        TopItemShare(name=item.name, count=item.count, share_pct=round_share(item.count, total))
        for item in _top_in_window(db, COMPANY_LABEL_SQL, params)
    ]


def weekly_orders(db: Session, params: dict[str, Any]) -> list[TimeCount]:
    rows = _rows(
        db,
        """
        SELECT strftime('%Y-%W', created_at) AS period, COUNT(*) AS cnt
        FROM orders
        GROUP BY period
        ORDER BY period
        """,
        params,
    )
    return [TimeCount(period=row["period"], count=row["cnt"]) for row in rows]


def weekly_orders_by_done(db: Session, params: dict[str, Any]) -> list[TimeDoneCount]:
    rows = _rows(
        db,
        """
        SELECT strftime('%Y-%W', created_at) AS period, done, COUNT(*) AS cnt
        FROM orders
        GROUP BY period, done
        ORDER BY period, done
        """,
        params,
    )
    return [TimeDoneCount(period=row["period"], done=bool(row["done"]), count=row["cnt"]) for row in rows]


def delivery_schedule(db: Session, params: dict[str, Any]) -> list[ScheduleItem]:
    """Open orders due between today and twelve weeks out, per week and company."""
    rows = _rows(
        db,
        f"""
        SELECT strftime('%Y-%W', date(delivery_date)) AS week, {COMPANY_LABEL_SQL} AS company, COUNT(*) AS cnt
        FROM orders
        WHERE done = 0
          AND date(delivery_date) BETWEEN :today AND :schedule_end
        GROUP BY week, company
        ORDER BY week, company
        """,
        params,
    )
    return [ScheduleItem(week=row["week"], company=row["company"], count=row["cnt"]) for row in rows]


def top_articles(db: Session, params: dict[str, Any]) -> list[NameCount]:
    rows = _rows(
        db,
        f"""
        SELECT article_name AS name, COUNT(*) AS cnt
        FROM orders
        GROUP BY article_name
        ORDER BY cnt DESC, name ASC
        LIMIT {TOP_ARTICLES_LIMIT}
        """,
        params,
    )
    return [NameCount(name=row["name"], count=row["cnt"]) for row in rows]


def new_vs_returning_monthly(db: Session, params: dict[str, Any]) -> list[MonthlyCohort]:
    """Per month: phones first seen that month, and orders from phones seen in earlier months."""
    rows = _rows(
        db,
        """
        WITH first_seen AS (
          SELECT phone, strftime('%Y-%m', MIN(date(created_at))) AS first_month
          FROM orders
          GROUP BY phone
        ),
        monthly AS (
          SELECT o.phone AS phone, strftime('%Y-%m', o.created_at) AS month, f.first_month AS first_month
          FROM orders o
          JOIN first_seen f ON f.phone = o.phone
        )
        SELECT month,
               COUNT(DISTINCT CASE WHEN month = first_month THEN phone END) AS new_clients,
               COALESCE(SUM(CASE WHEN month > first_month THEN 1 ELSE 0 END), 0) AS returning_clients
        FROM monthly
        GROUP BY month
        ORDER BY month
        """,
        params,
    )
    return [
        MonthlyCohort(month=row["month"], new_clients=row["new_clients"], returning_clients=row["returning_clients"])
        for row in rows
    ]


def backlog_age_buckets(db: Session, params: dict[str, Any]) -> list[BucketCount]:
    """Open orders by age since creation, always in band order, zero bands included."""
    rows = db.execute(
        text("SELECT CAST(julianday(:now_ts) - julianday(created_at) AS INTEGER) FROM orders WHERE done = 0"),
        params,
    ).all()
    counts = Counter(backlog_band(int(row[0] or 0)) for row in rows)
    return [BucketCount(bucket=label, count=counts.get(label, 0)) for label, _, _ in BACKLOG_BANDS]


def activity_heatmap(db: Session, params: dict[str, Any]) -> list[HeatCell]:
    """Orders by creation weekday (0 = Sunday) and hour, in UTC."""
    rows = _rows(
        db,
        """
        SELECT CAST(strftime('%w', created_at) AS INTEGER) AS weekday,
               CAST(strftime('%H', created_at) AS INTEGER) AS hour,
               COUNT(*) AS cnt
        FROM orders
        GROUP BY weekday, hour
        ORDER BY weekday, hour
        """,
        params,
    )
    return [HeatCell(weekday=row["weekday"], hour=row["hour"], count=row["cnt"]) for row in rows]


def overdue_exceptions(db: Session, params: dict[str, Any]) -> list[OrderExceptionRow]:
    """Open orders due before today, most overdue first."""
    rows = _rows(
        db,
        f"""
        SELECT id, article_name, client_name, city, delivery_company, date(delivery_date) AS delivery_date,
               CAST(julianday(:now_ts) - julianday(created_at) AS INTEGER) AS age_days,
               CAST(julianday(:today) - julianday(date(delivery_date)) AS INTEGER) AS days_overdue
        FROM orders
        WHERE done = 0 AND date(delivery_date) < :today
        ORDER BY date(delivery_date) ASC, id ASC
        LIMIT {OVERDUE_EXCEPTIONS_LIMIT}
        """,
        params,
    )
    return [OrderExceptionRow(**row) for row in rows]


def build_dashboard(db: Session, now: datetime | None = None) -> DashboardPayload:
    """Compute the full dashboard; any failing query fails the whole build."""
    started = time.perf_counter()
    clock = DashboardClock.at(now)
    params = clock.params()

    with translate_db_errors():
        counts = _status_counts(db, params)
        lead_days = _lead_days(db, params)
        shares = company_share(db, params)
        top_article = _top_in_window(db, "article_name", params, limit=1)
        top_city = _top_in_window(db, "city", params, limit=1)

        kpis = Kpis(
            **counts,
            returning_clients_pct=_returning_clients_pct(db, params),
            avg_lead_days=round(statistics.fmean(lead_days), 2) if lead_days else None,
            median_lead_days=median_lead_days(lead_days),
            top_delivery_company=shares[0] if shares else None,
            top_article=top_article[0] if top_article else None,
            top_city=top_city[0] if top_city else None,
        )
        histogram = sorted(Counter(lead_days).items())

        payload = DashboardPayload(
            generated_at=clock.now,
            kpis=kpis,
            orders_over_time_weekly=weekly_orders(db, params),
            orders_over_time_weekly_by_done=weekly_orders_by_done(db, params),
            delivery_schedule_weeks=delivery_schedule(db, params),
            lead_time_histogram=[LeadTimeBin(lead_days=days, count=count) for days, count in histogram],
            top_articles=top_articles(db, params),
            company_share_90d=shares,
            new_vs_returning_monthly=new_vs_returning_monthly(db, params),
            backlog_age_buckets=backlog_age_buckets(db, params),
            activity_heatmap=activity_heatmap(db, params),
            exceptions=Exceptions(overdue_top10=overdue_exceptions(db, params)),
        )

    logger.debug("[DASHBOARD] built in %.1f ms", (time.perf_counter() - started) * 1000)
    return payload
