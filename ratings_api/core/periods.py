"""
Rating period logic.

Ratings are bucketed into fixed calendar quarters. A rating round for a
restaurant is scoped to the quarter a rating was written in, so a round that
was complete in Q1 starts over empty in Q2.

Every request resolves the current period exactly once through
``current_period_info`` and passes the resulting ``PeriodInfo`` down to the
services, so all queries issued for one request agree on what "current" means
even if the request straddles midnight on a quarter boundary.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Optional, Tuple, Union

from ratings_api.core.errors import InvalidDate


class Period(str, Enum):
    """Calendar quarter."""
    Q1 = "Q1"
    Q2 = "Q2"
    Q3 = "Q3"
    Q4 = "Q4"

    @property
    def ordinal(self) -> int:
        return _ORDINALS[self]

    @property
    def month_range(self) -> Tuple[int, int]:
        """First and last month (inclusive) covered by this quarter."""
        first = (self.ordinal - 1) * 3 + 1
        return first, first + 2

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "Period":
        try:
            return _BY_ORDINAL[ordinal]
        except KeyError:
            raise ValueError(f"No period with ordinal {ordinal}")


_ORDINALS = {Period.Q1: 1, Period.Q2: 2, Period.Q3: 3, Period.Q4: 4}
_BY_ORDINAL = {ordinal: period for period, ordinal in _ORDINALS.items()}


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every timestamp column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def period_of(value: Union[date, datetime]) -> Period:
    """
    Map a date (or datetime) to its quarter.

    Examples:
        >>> period_of(date(2024, 3, 31))
        <Period.Q1: 'Q1'>
        >>> period_of(date(2024, 10, 1))
        <Period.Q4: 'Q4'>
    """
    return Period.from_ordinal((value.month - 1) // 3 + 1)


def date_range(period: Period, year: int) -> Tuple[date, date]:
    """
    Inclusive first and last day of ``period`` in ``year``.

    The last day is computed as the day before the first day of the following
    quarter, so Q4 always ends on Dec 31 of ``year``.

    Raises:
        InvalidDate: if the calendar date cannot be constructed (year out of
            the supported range).

    Examples:
        >>> date_range(Period.Q1, 2024)
        (datetime.date(2024, 1, 1), datetime.date(2024, 3, 31))
        >>> date_range(Period.Q4, 2023)
        (datetime.date(2023, 10, 1), datetime.date(2023, 12, 31))
    """
    first_month, last_month = period.month_range
    try:
        start = date(year, first_month, 1)
    except (ValueError, OverflowError) as e:
        raise InvalidDate(f"Invalid start date for year: {year}, month: {first_month}") from e

    if last_month == 12:
        next_year, next_month = year + 1, 1
    else:
        next_year, next_month = year, last_month + 1

    try:
        end = date(next_year, next_month, 1) - timedelta(days=1)
    except (ValueError, OverflowError):
        if next_year > date.max.year:
            # Q4 of the last representable year still ends on Dec 31.
            end = date(year, 12, 31)
        else:
            raise InvalidDate(
                f"Invalid end date calculation for year: {year}, month: {last_month}"
            )

    return start, end


@dataclass(frozen=True)
class PeriodInfo:
    """A quarter of a specific year together with its date range."""
    year: int
    period: Period
    start: date
    end: date

    @classmethod
    def for_period(cls, period: Period, year: int) -> "PeriodInfo":
        start, end = date_range(period, year)
        return cls(year=year, period=period, start=start, end=end)

    def bounds(self) -> Tuple[datetime, datetime]:
        """Half-open timestamp interval ``[start, end + 1 day)`` for range queries."""
        lower = datetime.combine(self.start, time.min)
        upper = datetime.combine(self.end, time.min) + timedelta(days=1)
        return lower, upper

    def contains(self, value: Union[date, datetime]) -> bool:
        if isinstance(value, datetime):
            value = value.date()
        return self.start <= value <= self.end

    def clamp(self, value: datetime) -> datetime:
        """
        Pin a timestamp into this quarter.

        A request that resolved its period just before a quarter boundary
        still writes timestamps belonging to that period.
        """
        lower = datetime.combine(self.start, time.min)
        last = datetime.combine(self.end, time.max)
        return min(max(value, lower), last)


def current_period_info(now: Optional[datetime] = None) -> PeriodInfo:
    """Resolve the year, quarter and date range containing ``now`` (UTC)."""
    if now is None:
        now = utcnow()
    return PeriodInfo.for_period(period_of(now), now.year)
