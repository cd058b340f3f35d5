"""
Consistency checks for parsed service lists.

Deutsch:
    Plausibilitätsprüfungen und Kennzahlen für geparste Service-Listen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

from .accessibility import present_categories
from .models import Channel, ParsedServiceList, Region

log = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when validation fails. / Wird geworfen, wenn die Validierung scheitert."""


@dataclass
class ServiceListStats:
    total_channels: int
    channels_with_instances: int
    playable_instances: int
    region_count: int
    lcn_table_count: int
    accessible_channels: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_channels": self.total_channels,
            "channels_with_instances": self.channels_with_instances,
            "playable_instances": self.playable_instances,
            "region_count": self.region_count,
            "lcn_table_count": self.lcn_table_count,
            "accessible_channels": self.accessible_channels,
        }


@dataclass
class ValidationReport:
    warnings: List[str]
    stats: ServiceListStats


def validate_service_list(parsed: ParsedServiceList) -> ValidationReport:
    warnings: List[str] = list(parsed.warnings)
    if not parsed.services:
        warnings.append("service list contains no channels")

    for channel in parsed.services:
        if not _playable(channel):
            warnings.append(f"channel {channel.id} has no playable DASH instance")

    warnings.extend(_duplicate_lcns(parsed.services))
    stats = _build_stats(parsed)
    log.debug("service list stats: %s", stats.to_dict())
    return ValidationReport(warnings=warnings, stats=stats)


def assert_minimums(stats: ServiceListStats, min_channels: int) -> None:
    errors: List[str] = []
    if min_channels > 0 and stats.total_channels < min_channels:
        errors.append(f"channels {stats.total_channels} below minimum {min_channels}")
    if min_channels > 0 and stats.playable_instances == 0:
        errors.append("no playable service instance found")
    if errors:
        raise ValidationError("; ".join(errors))


def _playable(channel: Channel) -> bool:
    return any(instance.dash_url for instance in channel.service_instances)


def _duplicate_lcns(channels: tuple) -> List[str]:
    seen: Dict[int, str] = {}
    warnings: List[str] = []
    for channel in channels:
        other = seen.get(channel.lcn)
        if other is None:
            seen[channel.lcn] = channel.id
        else:
            warnings.append(f"channel number {channel.lcn} used by {other} and {channel.id}")
    return warnings


def _build_stats(parsed: ParsedServiceList) -> ServiceListStats:
    with_instances = playable = accessible = 0
    for channel in parsed.services:
        if channel.service_instances:
            with_instances += 1
        playable += sum(1 for instance in channel.service_instances if instance.dash_url)
        if present_categories(channel.accessibility_attributes):
            accessible += 1
    return ServiceListStats(
        total_channels=len(parsed.services),
        channels_with_instances=with_instances,
        playable_instances=playable,
        region_count=len(flatten_regions(parsed.regions)),
        lcn_table_count=len(parsed.lcn_tables),
        accessible_channels=accessible,
    )


def flatten_regions(regions: tuple) -> List[Region]:
    """Depth-first list of all regions and subregions."""
    result: List[Region] = []
    for region in regions:
        result.append(region)
        result.extend(flatten_regions(region.subregions))
    return result
