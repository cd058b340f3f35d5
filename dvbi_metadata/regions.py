"""
Receiver side helpers working on parsed regions and service instances.

Deutsch:
    Hilfsfunktionen für Regionszuordnung per Postleitzahl und für die
    zeitliche Verfügbarkeit von Service-Instanzen.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Tuple, Union

from .models import AvailabilityInterval, AvailabilityPeriod, PostcodeRange, Region, ServiceInstance
from .programs import parse_timestamp

log = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?(?:Z|[+-]00:00)?")

Moment = Union[int, datetime]


def normalise_postcode(postcode: str) -> str:
    return "".join(postcode.split()).upper()


def match_postcode_wildcard(pattern: str, postcode: str) -> bool:
    """``*`` in ``pattern`` matches any run of characters."""
    parts = [re.escape(part) for part in normalise_postcode(pattern).split("*")]
    return re.fullmatch(".*".join(parts), normalise_postcode(postcode)) is not None


def match_postcode_range(postcode_range: PostcodeRange, postcode: str) -> bool:
    value = normalise_postcode(postcode)
    start = normalise_postcode(postcode_range.start)
    end = normalise_postcode(postcode_range.end)
    if len(value) != len(start) or len(value) != len(end):
        return False
    return start <= value <= end


def region_matches_postcode(region: Region, postcode: str) -> bool:
    value = normalise_postcode(postcode)
    if any(normalise_postcode(item) == value for item in region.postcodes):
        return True
    if any(match_postcode_range(item, value) for item in region.postcode_ranges):
        return True
    return any(match_postcode_wildcard(item, value) for item in region.wildcard_postcodes)


def find_region_for_postcode(regions: Iterable[Region], postcode: str) -> Optional[Region]:
    """
    Most specific selectable region containing ``postcode``.

    Deutsch:
        Liefert die tiefste auswählbare Region, die zur Postleitzahl passt.
    """
    best = _deepest_match(regions, postcode, depth=0)
    return best[1] if best else None


def _deepest_match(regions: Iterable[Region], postcode: str, depth: int) -> Optional[Tuple[int, Region]]:
    best: Optional[Tuple[int, Region]] = None
    for region in regions:
        if region.selectable and region_matches_postcode(region, postcode):
            if best is None or depth > best[0]:
                best = (depth, region)
        nested = _deepest_match(region.subregions, postcode, depth + 1)
        if nested is not None and (best is None or nested[0] > best[0]):
            best = nested
    return best


def is_instance_available(instance: ServiceInstance, now: Moment) -> bool:
    """
    Whether ``instance`` is available at ``now`` (epoch ms or aware ``datetime``).

    An instance without availability periods is always available.

    Deutsch:
        Prüft die ``Availability``-Perioden und Intervalle einer Instanz.
    """
    if not instance.availability:
        return True
    moment = _as_datetime(now)
    return any(_period_contains(period, moment) for period in instance.availability)


def _as_datetime(now: Moment) -> datetime:
    if isinstance(now, datetime):
        return now if now.tzinfo else now.replace(tzinfo=timezone.utc)
    return _EPOCH + timedelta(milliseconds=int(now))


def _period_contains(period: AvailabilityPeriod, moment: datetime) -> bool:
    now_ms = (moment - _EPOCH) // timedelta(milliseconds=1)
    valid_from = parse_timestamp(period.valid_from)
    valid_to = parse_timestamp(period.valid_to)
    if valid_from is not None and now_ms < valid_from:
        return False
    if valid_to is not None and now_ms > valid_to:
        return False
    if not period.intervals:
        return True
    return any(_interval_contains(interval, moment) for interval in period.intervals)


def _interval_contains(interval: AvailabilityInterval, moment: datetime) -> bool:
    moment = moment.astimezone(timezone.utc)
    days = _parse_days(interval.days)
    start = _seconds_of_day(interval.start_time, default=0)
    end = _seconds_of_day(interval.end_time, default=24 * 3600)
    current = moment.hour * 3600 + moment.minute * 60 + moment.second
    weekday = moment.isoweekday()
    if start <= end:
        return (not days or weekday in days) and start <= current < end
    # window wraps past midnight
    if current >= start:
        return not days or weekday in days
    if current < end:
        previous_day = 7 if weekday == 1 else weekday - 1
        return not days or previous_day in days
    return False


def _parse_days(value: Optional[str]) -> Tuple[int, ...]:
    if not value:
        return ()
    days = []
    for item in value.split():
        if item.isdigit() and 1 <= int(item) <= 7:
            days.append(int(item))
        else:
            log.debug("ignoring invalid availability day %r", item)
    return tuple(days)


def _seconds_of_day(value: Optional[str], default: int) -> int:
    if not value:
        return default
    match = _TIME_RE.fullmatch(value.strip())
    if not match:
        log.debug("unsupported availability time %r", value)
        return default
    hours, minutes, seconds = int(match.group(1)), int(match.group(2)), int(match.group(3) or 0)
    return hours * 3600 + minutes * 60 + seconds
