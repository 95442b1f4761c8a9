from datetime import date, datetime, timezone, timedelta
try:
    from zoneinfo import ZoneInfo
    BRAZIL_TZ = ZoneInfo("America/Sao_Paulo")
except Exception:
    # tzdata missing on the host: fixed -03:00 offset
    BRAZIL_TZ = timezone(timedelta(hours=-3))


def today_in_brazil() -> date:
    """Current calendar day at the clinic (America/Sao_Paulo)."""
    return datetime.now(BRAZIL_TZ).date()


def month_bounds(year: int, month: int):
    """Return (first_day, first_day_of_next_month) for a calendar month.

    Raises ValueError for an invalid month.
    """
    first = date(year, month, 1)
    if month == 12:
        nxt = date(year + 1, 1, 1)
    else:
        nxt = date(year, month + 1, 1)
    return first, nxt


def start_of_month(d: date) -> date:
    return d.replace(day=1)
