"""월 보기 윈도잉. 주 시작은 일요일, 앞뒤 달 패딩 칸 포함. 렌더링 없이 데이터만."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta

from debrief.schemas.calendar import CalendarDay, CalendarMonth
from debrief.schemas.event import EventResponse


def _today(today: date | None) -> date:
    return today or datetime.now(UTC).date()


def current_month(today: date | None = None) -> date:
    """이번 달 1일."""
    return _today(today).replace(day=1)


def add_months(month: date, count: int) -> date:
    """month가 속한 달에서 count개월 뒤(앞) 달의 1일."""
    years, month_index = divmod(month.month - 1 + count, 12)
    return date(month.year + years, month_index + 1, 1)


def months_from(start: date, months_after: int = 11) -> list[date]:
    """start 달 + 이후 months_after개월. 각 달 1일."""
    first = start.replace(day=1)
    return [add_months(first, i) for i in range(months_after + 1)]


def is_past_month(month: date, today: date | None = None) -> bool:
    return month.replace(day=1) < current_month(today)


def format_month_year(month: date) -> str:
    """예: "July 2025"."""
    return month.strftime("%B %Y")


def format_month_year_short(month: date) -> str:
    """예: "Jul 2025"."""
    return month.strftime("%b %Y")


def _week_start(day: date) -> date:
    # weekday(): 월=0 ... 일=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _month_end(month: date) -> date:
    return add_months(month, 1) - timedelta(days=1)


def grid_range(month: date) -> tuple[date, date]:
    """월 그리드 첫 칸(일요일)과 마지막 칸(토요일). 양끝 포함."""
    first = month.replace(day=1)
    last = _month_end(first)
    return _week_start(first), _week_start(last) + timedelta(days=6)


def days_in_month(
    month: date,
    today: date | None = None,
    events_by_day: dict[date, list[EventResponse]] | None = None,
) -> list[CalendarDay]:
    """그리드 칸 목록(항상 7의 배수)."""
    today = _today(today)
    first = month.replace(day=1)
    start, end = grid_range(first)
    events_by_day = events_by_day or {}
    days: list[CalendarDay] = []
    day = start
    while day <= end:
        days.append(
            CalendarDay(
                date=day,
                is_current_month=(day.year, day.month) == (first.year, first.month),
                is_today=day == today,
                day_number=day.day,
                events=events_by_day.get(day, []),
            )
        )
        day += timedelta(days=1)
    return days


def window_bounds(months: list[date]) -> tuple[datetime, datetime]:
    """여러 달 그리드 전체를 덮는 [start, end) UTC 구간. 이벤트 조회 범위."""
    start, _ = grid_range(months[0])
    _, end = grid_range(months[-1])
    return (
        datetime.combine(start, time.min, tzinfo=UTC),
        datetime.combine(end + timedelta(days=1), time.min, tzinfo=UTC),
    )


def group_events_by_day(events: Iterable[EventResponse]) -> dict[date, list[EventResponse]]:
    grouped: dict[date, list[EventResponse]] = defaultdict(list)
    for event in events:
        grouped[event.date].append(event)
    return dict(grouped)


def build_months(
    start: date,
    count: int,
    events: Iterable[EventResponse] = (),
    today: date | None = None,
) -> list[CalendarMonth]:
    """start 달부터 count개월. 이벤트는 start_time의 UTC 날짜 칸에 배치(패딩 칸 포함)."""
    today = _today(today)
    events_by_day = group_events_by_day(events)
    return [
        CalendarMonth(
            month=month,
            label=format_month_year(month),
            short_label=format_month_year_short(month),
            is_past=is_past_month(month, today),
            days=days_in_month(month, today, events_by_day),
        )
        for month in months_from(start, count - 1)
    ]
