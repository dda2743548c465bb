from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from delivery_ledger.services.analytics_service import (
    BACKLOG_BANDS,
    backlog_band,
    build_dashboard,
    median_lead_days,
    round_share,
)
from delivery_ledger.utils.time import format_utc_timestamp, local_today

# A Sunday, so the heatmap weekday is 0.
NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
TODAY = local_today(NOW)


def _insert_raw_order(db: Session, *, delivery_company: str, created_at: datetime) -> None:
    db.execute(
        text(
            """
            INSERT INTO orders (client_name, phone, city, address, delivery_company, delivery_date, created_at)
            VALUES ('Legacy', '000', 'Lodz', 'Old Street', :company, :delivery_date, :created_at)
            """
        ),
        {
            "company": delivery_company,
            "delivery_date": NOW.date().isoformat(),
            "created_at": format_utc_timestamp(created_at),
        },
    )
    db.commit()


def test_status_kpis(db: Session, make_order) -> None:
    recent = NOW - timedelta(hours=1)
    make_order(delivery_date=TODAY - timedelta(days=3), created_at=recent)
    make_order(delivery_date=TODAY, created_at=recent)
    make_order(delivery_date=TODAY + timedelta(days=3), created_at=recent)
    make_order(delivery_date=TODAY + timedelta(days=30), created_at=recent)
    make_order(done=True, delivery_date=TODAY - timedelta(days=10), created_at=NOW - timedelta(days=2))
    make_order(done=True, delivery_date=TODAY - timedelta(days=10), created_at=NOW - timedelta(days=20))
    make_order(done=True, delivery_date=TODAY - timedelta(days=10), created_at=NOW - timedelta(days=60))

    kpis = build_dashboard(db, now=NOW).kpis

    assert kpis.total_orders == 7
    assert kpis.open_orders == 4
    assert kpis.overdue_open == 1
    assert kpis.due_today == 1
    assert kpis.due_next_7 == 1
    assert kpis.done_7d == 1
    assert kpis.done_30d == 2


def test_returning_clients_share(db: Session, make_order) -> None:
    phones = [f"+48 500 000 {index:03d}" for index in range(10)]
    for phone in phones:
        make_order(phone=phone)
    for phone in phones[:3]:
        make_order(phone=phone)

    kpis = build_dashboard(db, now=NOW).kpis

    assert kpis.unique_clients == 10
    assert kpis.returning_clients_pct == 30.0


@pytest.mark.parametrize(
    ("lead_days", "expected_median"),
    [([1, 3, 5, 7], 4.0), ([1, 3, 5], 3.0)],
)
def test_lead_time_statistics(db: Session, make_order, lead_days: list[int], expected_median: float) -> None:
    for days in lead_days:
        make_order(delivery_date=NOW.date() + timedelta(days=days), created_at=NOW)

    payload = build_dashboard(db, now=NOW)

    assert payload.kpis.median_lead_days == expected_median
    assert payload.kpis.avg_lead_days == pytest.approx(sum(lead_days) / len(lead_days))
    assert [(item.lead_days, item.count) for item in payload.lead_time_histogram] == [(days, 1) for days in lead_days]


def test_median_helper() -> None:
    assert median_lead_days([]) is None
    assert median_lead_days([7, 1, 5, 3]) == 4.0
    assert median_lead_days([2]) == 2.0


def test_backlog_buckets_include_every_band(db: Session, make_order) -> None:
    make_order(created_at=NOW - timedelta(days=15))
    make_order(created_at=NOW - timedelta(hours=1))
    make_order(done=True, created_at=NOW - timedelta(days=40))

    buckets = build_dashboard(db, now=NOW).backlog_age_buckets

    assert [(item.bucket, item.count) for item in buckets] == [
        ("0-2", 1),
        ("3-6", 0),
        ("7-13", 0),
        ("14-29", 1),
        ("30+", 0),
    ]


def test_backlog_band_boundaries() -> None:
    assert [label for label, _, _ in BACKLOG_BANDS] == ["0-2", "3-6", "7-13", "14-29", "30+"]
    assert backlog_band(2) == "0-2"
    assert backlog_band(3) == "3-6"
    assert backlog_band(13) == "7-13"
    assert backlog_band(29) == "14-29"
    assert backlog_band(30) == "30+"
    assert backlog_band(-1) == "0-2"


def test_company_share_over_trailing_window(db: Session, make_order) -> None:
    recent = NOW - timedelta(days=1)
    for company, count in (("Acme", 5), ("Beta", 3), ("Gamma", 2)):
        for _ in range(count):
            make_order(delivery_company=company, created_at=recent)
    make_order(delivery_company="Delta", created_at=NOW - timedelta(days=120))

    payload = build_dashboard(db, now=NOW)

    assert [(row.name, row.count, row.share_pct) for row in payload.company_share_90d] == [
        ("Acme", 5, 50.0),
        ("Beta", 3, 30.0),
        ("Gamma", 2, 20.0),
    ]
    assert payload.kpis.top_delivery_company.name == "Acme"


def test_blank_company_text_is_reported_as_unknown(db: Session, make_order) -> None:
    make_order(delivery_company="Acme", created_at=NOW - timedelta(days=1))
    _insert_raw_order(db, delivery_company="", created_at=NOW - timedelta(days=1))
    _insert_raw_order(db, delivery_company="   ", created_at=NOW - timedelta(days=1))

    shares = build_dashboard(db, now=NOW).company_share_90d

    assert [(row.name, row.count) for row in shares] == [("(Unknown)", 2), ("Acme", 1)]


def test_ties_are_broken_by_name(db: Session, make_order) -> None:
    recent = NOW - timedelta(days=1)
    for company, city in (("Beta", "Warsaw"), ("Beta", "Gdansk"), ("Alpha", "Warsaw"), ("Alpha", "Gdansk")):
        make_order(delivery_company=company, city=city, created_at=recent)

    kpis = build_dashboard(db, now=NOW).kpis

    assert kpis.top_delivery_company.name == "Alpha"
    assert kpis.top_delivery_company.share_pct == 50.0
    assert kpis.top_city.name == "Gdansk"


def test_top_articles_ranked(db: Session, make_order) -> None:
    for article, count in (("Chair", 3), ("Table", 1), ("Bench", 3)):
        for _ in range(count):
            make_order(article_name=article)

    top = build_dashboard(db, now=NOW).top_articles

    assert [(row.name, row.count) for row in top] == [("Bench", 3), ("Chair", 3), ("Table", 1)]


def test_new_vs_returning_monthly(db: Session, make_order) -> None:
    make_order(phone="111", created_at=datetime(2026, 8, 10, tzinfo=timezone.utc))
    make_order(phone="111", created_at=datetime(2026, 9, 5, tzinfo=timezone.utc))
    make_order(phone="222", created_at=datetime(2026, 9, 6, tzinfo=timezone.utc))

    cohorts = build_dashboard(db, now=NOW).new_vs_returning_monthly

    assert [(row.month, row.new_clients, row.returning_clients) for row in cohorts] == [
        ("2026-08", 1, 0),
        ("2026-09", 1, 1),
    ]


def test_weekly_series(db: Session, make_order) -> None:
    make_order(created_at=NOW)
    make_order(done=True, created_at=NOW)
    make_order(created_at=NOW - timedelta(days=7))

    payload = build_dashboard(db, now=NOW)

    this_week = NOW.strftime("%Y-%W")
    last_week = (NOW - timedelta(days=7)).strftime("%Y-%W")
    assert [(row.period, row.count) for row in payload.orders_over_time_weekly] == [(last_week, 1), (this_week, 2)]
    assert [(row.period, row.done, row.count) for row in payload.orders_over_time_weekly_by_done] == [
        (last_week, False, 1),
        (this_week, False, 1),
        (this_week, True, 1),
    ]


def test_delivery_schedule_covers_open_upcoming_orders(db: Session, make_order) -> None:
    due = TODAY + timedelta(days=3)
    make_order(delivery_company="Acme", delivery_date=due)
    make_order(delivery_company="Acme", delivery_date=due)
    make_order(delivery_company="Beta", delivery_date=due)
    make_order(delivery_company="Acme", delivery_date=due, done=True)
    make_order(delivery_company="Acme", delivery_date=TODAY - timedelta(days=1))
    make_order(delivery_company="Acme", delivery_date=TODAY + timedelta(days=200))

    schedule = build_dashboard(db, now=NOW).delivery_schedule_weeks

    week = due.strftime("%Y-%W")
    assert [(row.week, row.company, row.count) for row in schedule] == [(week, "Acme", 2), (week, "Beta", 1)]


def test_activity_heatmap_uses_utc_weekday_and_hour(db: Session, make_order) -> None:
    make_order(created_at=NOW)
    make_order(created_at=NOW + timedelta(minutes=30))
    make_order(created_at=NOW + timedelta(days=1, hours=-3))

    heatmap = build_dashboard(db, now=NOW + timedelta(days=2)).activity_heatmap

    assert [(cell.weekday, cell.hour, cell.count) for cell in heatmap] == [(0, 12, 2), (1, 9, 1)]


def test_overdue_exceptions_most_overdue_first(db: Session, make_order) -> None:
    first = make_order(delivery_date=TODAY - timedelta(days=5), created_at=NOW - timedelta(days=10))
    latest = make_order(delivery_date=TODAY - timedelta(days=2), created_at=NOW - timedelta(days=3))
    second = make_order(delivery_date=TODAY - timedelta(days=5), created_at=NOW - timedelta(days=6))
    make_order(delivery_date=TODAY - timedelta(days=9), done=True)
    for _ in range(12):
        make_order(delivery_date=TODAY - timedelta(days=1))

    overdue = build_dashboard(db, now=NOW).exceptions.overdue_top10

    assert len(overdue) == 10
    assert [row.id for row in overdue[:3]] == [first, second, latest]
    assert [row.days_overdue for row in overdue[:3]] == [5, 5, 2]
    assert overdue[0].age_days == 10
    assert overdue[0].delivery_date == TODAY - timedelta(days=5)


def test_empty_ledger(db: Session) -> None:
    payload = build_dashboard(db, now=NOW)

    assert payload.generated_at == NOW
    assert payload.kpis.total_orders == 0
    assert payload.kpis.returning_clients_pct == 0.0
    assert payload.kpis.avg_lead_days is None
    assert payload.kpis.median_lead_days is None
    assert payload.kpis.top_delivery_company is None
    assert payload.kpis.top_article is None
    assert payload.company_share_90d == []
    assert payload.lead_time_histogram == []
    assert [item.count for item in payload.backlog_age_buckets] == [0, 0, 0, 0, 0]
    assert payload.exceptions.overdue_top10 == []


def test_round_share() -> None:
    assert round_share(1, 3) == 33.3
    assert round_share(0, 0) == 0.0


def test_broken_schema_fails_the_whole_build(db: Session, make_order) -> None:
    make_order()
    db.execute(text("ALTER TABLE orders RENAME COLUMN phone TO telephone"))
    db.commit()

    with pytest.raises(OperationalError):
        build_dashboard(db, now=NOW)
