"""Display labels for a reservation slot"""

from datetime import date, datetime, time
from typing import NamedTuple, Optional, Union

WEEKDAYS = {
    "es": ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"],
    "en": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
}

MONTHS = {
    "es": [
        "enero", "febrero", "marzo", "abril", "mayo", "junio",
        "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
    ],
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
}

UNKNOWN_DATE = {"es": "Fecha por confirmar", "en": "Date to be confirmed"}

DEFAULT_TIME = time(19, 0)


class ScheduleLabels(NamedTuple):
    date_label: str
    time_label: str


def _parse_date(value: Union[date, str]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_time(value: Union[time, str, None]) -> Optional[time]:
    if value is None or value == "":
        return DEFAULT_TIME
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(value)
    except ValueError:
        return None


def slot_minute(value: time) -> time:
    """Slots are HH:MM; seconds and microseconds are dropped"""
    return value.replace(second=0, microsecond=0)


def format_time(value: Union[time, str, None]) -> str:
    """HH:MM, dropping storage seconds"""
    parsed = _parse_time(value)
    if parsed is None:
        return str(value)
    return parsed.strftime("%H:%M")


def format_schedule(
    reservation_date: Union[date, str, None],
    reservation_time: Union[time, str, None] = None,
    locale: str = "es",
) -> ScheduleLabels:
    """Turn a (date, time) pair into locale-aware labels"""
    if locale not in WEEKDAYS:
        locale = "es"

    if not reservation_date:
        return ScheduleLabels(UNKNOWN_DATE[locale], "")

    parsed_date = _parse_date(reservation_date)
    parsed_time = _parse_time(reservation_time)
    if parsed_date is None or parsed_time is None:
        return ScheduleLabels(str(reservation_date), str(reservation_time or ""))

    weekday = WEEKDAYS[locale][parsed_date.weekday()]
    month = MONTHS[locale][parsed_date.month - 1]
    if locale == "es":
        date_label = f"{weekday}, {parsed_date.day} de {month}"
    else:
        date_label = f"{weekday}, {month} {parsed_date.day}"

    return ScheduleLabels(date_label[0].upper() + date_label[1:], parsed_time.strftime("%H:%M"))
