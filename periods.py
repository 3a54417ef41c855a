import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union
from zoneinfo import ZoneInfo

from config import get_settings

MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


@dataclass(frozen=True)
class Month:
    year: int
    month: int

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @classmethod
    def parse(cls, value: str) -> "Month":
        match = MONTH_RE.match(value or "")
        if not match:
            raise ValueError(f"Month must be formatted YYYY-MM, got {value!r}")
        return cls(int(match.group(1)), int(match.group(2)))


def today_local(tz: Optional[str] = None) -> date:
    zone = ZoneInfo(tz or get_settings().timezone)
    return datetime.now(zone).date()


def resolve_month(value: Optional[str], *, today: Optional[date] = None) -> Month:
    """Parse ``value`` or fall back to the month containing ``today``."""
    if value:
        return Month.parse(value)
    today = today or today_local()
    return Month(today.year, today.month)


def month_key(value: Union[str, date]) -> str:
    """Truncate a date, datetime or ISO date/datetime text to ``YYYY-MM``.

    Raises ``ValueError`` when text does not parse as an ISO date.
    """
    if isinstance(value, (date, datetime)):
        return f"{value.year:04d}-{value.month:02d}"
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value {value!r}")
    text = value.strip()
    try:
        parsed: Union[date, datetime] = date.fromisoformat(text)
    except ValueError:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    return f"{parsed.year:04d}-{parsed.month:02d}"
