"""
DateUtil - reine Datumsarithmetik

Heute, N Tage voraus, Monatsgrenzen, Vergangenheits-Checks und
Konvertierung zwischen den gespeicherten Datumsformen.
"""

import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from config.settings import STORE_TIMEZONE

DateLike = Union[date, datetime, str]
Clock = Callable[[], datetime]

STORE_TZ = ZoneInfo(STORE_TIMEZONE)

MONTH_NAMES = [
    'Januar', 'Februar', 'März', 'April', 'Mai', 'Juni',
    'Juli', 'August', 'September', 'Oktober', 'November', 'Dezember'
]

ISO_DATE_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})')
GERMAN_DATE_RE = re.compile(r'^(\d{1,2})\.(\d{1,2})\.(\d{4})$')


def system_clock() -> datetime:
    """Aktuelle Zeit in der Zeitzone des Speichers"""
    return datetime.now(STORE_TZ)


def today(clock: Optional[Clock] = None) -> date:
    return (clock or system_clock)().date()


def to_date(value: DateLike) -> date:
    """
    Kürzt auf Kalendertag (Uhrzeit wird ignoriert).

    Akzeptiert date, datetime, 'YYYY-MM-DD[...]' und 'DD.MM.YYYY'.
    Wirft ValueError bei allem anderen.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_date_string(value)
    raise ValueError(f"Kein Datum: {value!r}")


def parse_date_string(value: str) -> date:
    text = value.strip()

    match = ISO_DATE_RE.match(text)
    if match and (len(text) == 10 or text[10] in 'T '):
        year, month, day = (int(g) for g in match.groups())
        return date(year, month, day)

    match = GERMAN_DATE_RE.match(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        return date(year, month, day)

    raise ValueError(f"Ungültiges Datumsformat: {value!r}")


def to_date_string(value: DateLike) -> str:
    """Kanonische Form YYYY-MM-DD"""
    return to_date(value).isoformat()


def format_german(value: DateLike) -> str:
    """DD.MM.YYYY für Anzeige und E-Mails"""
    return to_date(value).strftime('%d.%m.%Y')


def add_days(value: DateLike, days: int) -> date:
    return to_date(value) + timedelta(days=days)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """Erster Tag 00:00:00 bis letzter Tag 23:59:59 (Schaltjahre berücksichtigt)"""
    if not 1 <= month <= 12:
        raise ValueError(f"Ungültiger Monat: {month}")
    start = datetime(year, month, 1, 0, 0, 0, tzinfo=STORE_TZ)
    end = datetime(year, month, days_in_month(year, month), 23, 59, 59, tzinfo=STORE_TZ)
    return start, end


def month_date_strings(year: int, month: int) -> Tuple[str, str]:
    start, end = month_bounds(year, month)
    return start.date().isoformat(), end.date().isoformat()


def day_bounds(value: DateLike) -> Tuple[datetime, datetime]:
    day = to_date(value)
    return (
        datetime.combine(day, time(0, 0, 0), tzinfo=STORE_TZ),
        datetime.combine(day, time(23, 59, 59), tzinfo=STORE_TZ),
    )


def previous_month(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def month_name(month: int) -> str:
    return MONTH_NAMES[month - 1]


def is_past(value: DateLike, reference: date) -> bool:
    return to_date(value) < reference


def is_today(value: DateLike, reference: date) -> bool:
    return to_date(value) == reference


def parse_iso_timestamp(value: str) -> datetime:
    """ISO-8601 inkl. 'Z'-Suffix; naive Zeitstempel gelten in der Speicher-Zeitzone"""
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=STORE_TZ)
    return parsed


def iso_now(clock: Optional[Clock] = None) -> str:
    return (clock or system_clock)().isoformat()


def next_month_start(year: int, month: int) -> datetime:
    """Erster Tag des Folgemonats 00:00:00 (exklusive Obergrenze für Monatsabfragen)"""
    if month == 12:
        return datetime(year + 1, 1, 1, tzinfo=STORE_TZ)
    return datetime(year, month + 1, 1, tzinfo=STORE_TZ)
