"""Savings nudges derived from a reconciled bucket summary."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .buckets import BucketSummary
from .models import MonthConfig
from .money import format_currency, round2, safe_ratio

LEISURE_BRAKE_RATIO = 0.8
SAVINGS_CHECK_DAY = 20
SAVINGS_MIN_RATIO = 0.5


class Tone(str, Enum):
    INFO = 'info'
    WARNING = 'warning'
    SUCCESS = 'success'


@dataclass(frozen=True)
class Suggestion:
    id: str
    tone: Tone
    message: str


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def evaluation_day(month: MonthConfig, now: datetime) -> int:
    """Day-of-month used by the rules.

    Today's day when ``now`` falls inside the evaluated month; otherwise the
    month counts as fully elapsed.
    """
    if now.year == month.year and now.month == month.month:
        return now.day
    return days_in_month(month.year, month.month)


def generate_suggestions(
    month: MonthConfig,
    summary: BucketSummary,
    now: Optional[datetime] = None,
    currency: str = 'EUR',
) -> List[Suggestion]:
    """Produce the nudges that apply to a month.

    Every matching rule fires. When none does, a single ``on-track``
    suggestion is returned.

    Args:
        month: The evaluated month
        summary: Output of :func:`bucket_planner.buckets.build_buckets`
        now: Current time, defaults to ``datetime.now()``
        currency: Display currency for amounts quoted in messages

    Returns:
        List of Suggestion with stable ids
    """
    now = now or datetime.now()
    total_days = days_in_month(month.year, month.month)
    day = evaluation_day(month, now)
    suggestions: List[Suggestion] = []

    leisure = summary.leisure
    if (
        leisure.plan > 0
        and safe_ratio(leisure.actual, leisure.plan) >= LEISURE_BRAKE_RATIO
        and day <= total_days // 2
    ):
        suggestions.append(Suggestion(
            id='leisure-brake',
            tone=Tone.WARNING,
            message=(
                f"Leisure is already at {safe_ratio(leisure.actual, leisure.plan):.0%} of its plan "
                f"halfway through the month. Slow down to keep {format_currency(leisure.remaining, currency)} "
                "for the rest of the month."
            ),
        ))

    savings = summary.savings
    if (
        day >= SAVINGS_CHECK_DAY
        and savings.plan > 0
        and safe_ratio(savings.actual, savings.plan) < SAVINGS_MIN_RATIO
    ):
        shortfall = round2(savings.plan * SAVINGS_MIN_RATIO - savings.actual)
        suggestions.append(Suggestion(
            id='savings-transfer',
            tone=Tone.WARNING,
            message=(
                f"Transfer {format_currency(shortfall, currency)} to savings today "
                "to reach half of this month's target."
            ),
        ))

    meal_card = summary.meal_card
    if (
        meal_card.remaining_plan <= 0
        and (meal_card.plan > 0 or meal_card.outflow > 0)
        and day < total_days
    ):
        suggestions.append(Suggestion(
            id='meal-card-empty',
            tone=Tone.WARNING,
            message=(
                "The meal card is used up. Pay for food from the current account "
                "and cut back on leisure until payday."
            ),
        ))

    shit_money = summary.shit_money
    if shit_money.plan > 0 and shit_money.actual >= shit_money.plan:
        suggestions.append(Suggestion(
            id='risky-budget-done',
            tone=Tone.INFO,
            message="This month's shit money allowance is used up.",
        ))

    if not suggestions:
        suggestions.append(Suggestion(
            id='on-track',
            tone=Tone.SUCCESS,
            message="Everything is on track this month. Keep it up!",
        ))
    return suggestions
