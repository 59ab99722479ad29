import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload
from core.exceptions import ValidationError
from models.enums import OrderStatus
from models.orders import Order
from utils.clock import as_utc, utcnow
from utils.money import ZERO, to_decimal

PERIODS = ("today", "week", "month", "all")
RECENT_LIMIT = 20
CHART_DAYS = 7


@dataclass
class EarningsTotals:
    today_earnings: Decimal
    week_earnings: Decimal
    month_earnings: Decimal
    all_time_earnings: Decimal
    today_deliveries: int
    week_deliveries: int
    month_deliveries: int
    all_time_deliveries: int
    period: str
    period_earnings: Decimal
    period_deliveries: int


@dataclass
class DailyEarnings:
    day: str
    date: date
    earnings: Decimal = ZERO
    deliveries: int = 0


@dataclass
class EarningEntry:
    order_number: str
    amount: Decimal
    date: datetime | None
    item_count: int


@dataclass
class EarningsSummary:
    summary: EarningsTotals
    weekly_chart: list[DailyEarnings] = field(default_factory=list)
    recent_earnings: list[EarningEntry] = field(default_factory=list)


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def one_month_before(moment: datetime) -> datetime:
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def window_start(period: str, now: datetime) -> datetime | None:
    """Inclusive lower bound of an earnings window; None means all time. UTC days."""
    if period == "today":
        return start_of_day(now)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return one_month_before(now)
    if period == "all":
        return None
    raise ValidationError(f"Unknown period '{period}', expected one of {', '.join(PERIODS)}")


class EarningsService:
    """
    Read-side view of a partner's delivered orders.

    Nothing is stored: every figure is a sum of ``delivery_earnings`` over the
    partner's delivered orders inside a window, a missing amount counting as 0.
    """

    def __init__(self, db: Session):
        self.db = db

    def _delivered(self, partner_id: int, since: datetime | None):
        conditions = [Order.delivery_partner_id == partner_id, Order.status == OrderStatus.DELIVERED]
        if since is not None:
            conditions.append(Order.delivered_at >= since)
        return conditions

    def totals(self, partner_id: int, since: datetime | None) -> tuple[Decimal, int]:
        amount, count = self.db.execute(
            select(
                func.coalesce(func.sum(func.coalesce(Order.delivery_earnings, 0)), 0),
                func.count(Order.id),
            ).where(*self._delivered(partner_id, since))
        ).one()
        return to_decimal(amount), count or 0

    def daily_breakdown(self, partner_id: int, now: datetime) -> list[DailyEarnings]:
        """Earnings and delivery count per UTC calendar day, oldest of the last 7 days first."""
        today = start_of_day(now)
        days = [today - timedelta(days=offset) for offset in range(CHART_DAYS - 1, -1, -1)]
        buckets = {
            day.date(): DailyEarnings(day=calendar.day_abbr[day.weekday()], date=day.date())
            for day in days
        }

        rows = self.db.execute(
            select(Order.delivery_earnings, Order.delivered_at)
            .where(*self._delivered(partner_id, days[0]))
        ).all()

        for earnings, delivered_at in rows:
            bucket = buckets.get(as_utc(delivered_at).date())
            if bucket is None:
                continue
            bucket.earnings += to_decimal(earnings)
            bucket.deliveries += 1

        return list(buckets.values())

    def recent(self, partner_id: int, since: datetime | None, limit: int = RECENT_LIMIT) -> list[EarningEntry]:
        orders = (
            self.db.query(Order)
            .options(selectinload(Order.items))
            .filter(*self._delivered(partner_id, since))
            .order_by(Order.delivered_at.desc())
            .limit(limit)
            .all()
        )
        return [
            EarningEntry(
                order_number=order.order_number,
                amount=to_decimal(order.delivery_earnings),
                date=order.delivered_at,
                item_count=len(order.items),
            )
            for order in orders
        ]

    def summary(self, partner_id: int, period: str = "week", now: datetime | None = None) -> EarningsSummary:
        now = as_utc(now) if now is not None else utcnow()
        period_start = window_start(period, now)

        today, today_count = self.totals(partner_id, window_start("today", now))
        week, week_count = self.totals(partner_id, window_start("week", now))
        month, month_count = self.totals(partner_id, window_start("month", now))
        all_time, all_count = self.totals(partner_id, None)
        period_amount, period_count = self.totals(partner_id, period_start)

        return EarningsSummary(
            summary=EarningsTotals(
                today_earnings=today,
                week_earnings=week,
                month_earnings=month,
                all_time_earnings=all_time,
                today_deliveries=today_count,
                week_deliveries=week_count,
                month_deliveries=month_count,
                all_time_deliveries=all_count,
                period=period,
                period_earnings=period_amount,
                period_deliveries=period_count,
            ),
            weekly_chart=self.daily_breakdown(partner_id, now),
            recent_earnings=self.recent(partner_id, period_start),
        )
