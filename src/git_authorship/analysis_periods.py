from __future__ import annotations

import dataclasses
import datetime as dt
import re
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_WINDOW_DAYS = 30

_OFFSET_RE = re.compile(r"^(?:UTC|GMT)?\s*([+-])(\d{1,2})(?::?(\d{2}))?$", re.IGNORECASE)


@dataclasses.dataclass(frozen=True)
class DateWindow:
    since: dt.datetime  # inclusive
    until: dt.datetime  # inclusive

    def __post_init__(self) -> None:
        if self.since.tzinfo is None or self.until.tzinfo is None:
            raise ValueError("DateWindow bounds must be timezone-aware")

    @property
    def zone(self) -> dt.tzinfo:
        return self.since.tzinfo

    @property
    def since_iso(self) -> str:
        return self.since.isoformat()

    @property
    def until_iso(self) -> str:
        return self.until.isoformat()

    def local_time(self, epoch_seconds: int) -> dt.datetime:
        return dt.datetime.fromtimestamp(epoch_seconds, tz=self.zone)

    def contains(self, when: dt.datetime) -> bool:
        return not (when < self.since or when > self.until)


def parse_zone(spec: str | None) -> dt.tzinfo:
    """Accept "UTC", fixed offsets ("UTC+08", "+05:30", "-0700") or IANA names."""
    s = (spec or "").strip()
    if not s or s.upper() in ("UTC", "GMT", "Z"):
        return dt.timezone.utc
    m = _OFFSET_RE.match(s)
    if m:
        sign, hours, minutes = m.group(1), int(m.group(2)), int(m.group(3) or 0)
        if hours > 18 or minutes > 59:
            raise ValueError(f"Invalid time zone offset: {spec!r}")
        delta = dt.timedelta(hours=hours, minutes=minutes)
        return dt.timezone(-delta if sign == "-" else delta)
    try:
        return ZoneInfo(s)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown time zone: {spec!r}") from e


def parse_date(spec: str) -> dt.date:
    s = (spec or "").strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return dt.datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Invalid date: {spec!r} (expected YYYY-MM-DD or DD/MM/YYYY)")


def parse_window(
    since: str | None,
    until: str | None,
    zone: str | None = None,
    *,
    today: dt.date | None = None,
) -> DateWindow:
    """
    Build an inclusive window: `since` starts at 00:00:00 and `until` ends at
    23:59:59 of their days, in `zone`. Missing `until` means today; missing
    `since` means DEFAULT_WINDOW_DAYS before `until`.
    """
    tz = parse_zone(zone)
    if today is None:
        today = dt.datetime.now(tz=tz).date()
    until_date = parse_date(until) if until else today
    since_date = parse_date(since) if since else until_date - dt.timedelta(days=DEFAULT_WINDOW_DAYS)
    if since_date > until_date:
        raise ValueError(f"Window start {since_date.isoformat()} is after window end {until_date.isoformat()}")
    return DateWindow(
        since=dt.datetime.combine(since_date, dt.time(0, 0, 0), tzinfo=tz),
        until=dt.datetime.combine(until_date, dt.time(23, 59, 59), tzinfo=tz),
    )


def slugify(s: str) -> str:
    s = (s or "").strip()
    out: list[str] = []
    for ch in s:
        if ch.isalnum() or ch in ("-", "_"):
            out.append(ch)
        else:
            out.append("-")
    slug = "".join(out).strip("-")
    while "--" in slug:
        slug = slug.replace("--", "-")
    return slug or "run"


def run_type_for_window(window: DateWindow) -> str:
    return f"window_{window.since.date().isoformat()}_{window.until.date().isoformat()}"
