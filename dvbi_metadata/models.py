"""
Shared data models for parsed DVB-I metadata.

All records are immutable. A parse call builds a fresh set of records and a
later re-parse replaces them wholesale; nothing is patched in place.

Deutsch:
    Gemeinsame, unveränderliche Datenmodelle für Service-Listen, Programme und
    Registries. Jeder Parse-Aufruf erzeugt neue Objekte.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_LANGUAGE = "default"
FIRST_UNDECLARED_CHANNEL = 7000


@dataclass(frozen=True)
class LocalizedString:
    """
    Text together with its resolved ``xml:lang``.

    Deutsch:
        Text mit aufgelöster Sprache (``"default"`` wenn keine deklariert ist).
    """

    lang: str
    text: str


@dataclass(frozen=True)
class MediaRepresentation:
    media_uri: str
    content_type: Optional[str] = None


@dataclass(frozen=True)
class CSMapEntry:
    """Single classification scheme term. / Einzelner Eintrag eines Klassifikationsschemas."""

    value: str
    definition: str


# --- accessibility -----------------------------------------------------------


@dataclass(frozen=True)
class AudioAttributes:
    coding: Optional[str] = None
    mix_type: Optional[str] = None
    language: Optional[str] = None


@dataclass(frozen=True)
class SubtitleAttributes:
    language: Optional[str] = None
    carriage: Optional[Tuple[str, ...]] = None
    coding: Optional[Tuple[str, ...]] = None
    purpose: Optional[Tuple[str, ...]] = None
    for_tts: Optional[str] = None
    app: Optional[str] = None


@dataclass(frozen=True)
class AudioDescription:
    audio_attributes: Optional[AudioAttributes] = None
    mix: str = "false"
    app: Optional[str] = None


@dataclass(frozen=True)
class Signing:
    coding: Optional[str] = None
    language: Optional[str] = None
    closed: Optional[str] = None
    app: Optional[str] = None


@dataclass(frozen=True)
class AudioAccessibility:
    """Dialogue enhancement or spoken subtitles entry."""

    audio_attributes: Optional[AudioAttributes] = None
    app: Optional[str] = None


@dataclass(frozen=True)
class AppAndPurpose:
    app: Optional[str] = None
    purpose: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class AccessibilityAttributes:
    """
    Accessibility features of a service, service instance or programme.

    A category is ``None`` when the source declared no usable entry for it,
    never an empty tuple.

    Deutsch:
        Barrierefreiheits-Merkmale. Leere Kategorien sind ``None``.
    """

    subtitles: Optional[Tuple[SubtitleAttributes, ...]] = None
    audio_descriptions: Optional[Tuple[AudioDescription, ...]] = None
    signings: Optional[Tuple[Signing, ...]] = None
    dialogue_enhancements: Optional[Tuple[AudioAccessibility, ...]] = None
    spoken_subtitles: Optional[Tuple[AudioAccessibility, ...]] = None
    magnification_ui: Optional[Tuple[AppAndPurpose, ...]] = None
    high_contrast_ui: Optional[Tuple[AppAndPurpose, ...]] = None
    screen_reader_ui: Optional[Tuple[AppAndPurpose, ...]] = None
    response_to_user_action_ui: Optional[Tuple[AppAndPurpose, ...]] = None


# --- service list ------------------------------------------------------------


@dataclass(frozen=True)
class DrmSystem:
    drm_system_id: Optional[str]
    encryption_scheme: Optional[str] = None
    cps_index: Optional[str] = None


@dataclass(frozen=True)
class CmcdInit:
    """
    CMCD (Common Media Client Data) reporting configuration.

    Deutsch:
        CMCD-Konfiguration; ``mode`` ist ``"header"`` oder ``"query"``.
    """

    enabled: bool
    mode: Optional[str] = None
    enabled_keys: Tuple[str, ...] = field(default_factory=tuple)
    cid: Optional[str] = None
    version: Optional[int] = None


@dataclass(frozen=True)
class AvailabilityInterval:
    days: Optional[str] = None
    recurrence: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


@dataclass(frozen=True)
class AvailabilityPeriod:
    valid_from: Optional[str] = None
    valid_to: Optional[str] = None
    intervals: Tuple[AvailabilityInterval, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ServiceInstance:
    """
    One way of delivering a service. Lower ``priority`` is preferred.

    Deutsch:
        Eine Auslieferungsvariante eines Services; kleinere Priorität gewinnt.
    """

    priority: int = 1
    titles: Tuple[LocalizedString, ...] = field(default_factory=tuple)
    content_protection: Tuple[DrmSystem, ...] = field(default_factory=tuple)
    dash_url: Optional[str] = None
    cmcd: Optional[CmcdInit] = None
    availability: Tuple[AvailabilityPeriod, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MediaPresentationApp:
    url: str
    content_type: str = ""


@dataclass(frozen=True)
class Prominence:
    country: Optional[str] = None
    region: Optional[str] = None
    ranking: Optional[int] = None


@dataclass(frozen=True)
class Channel:
    """
    Normalised representation of one ``<Service>``.

    ``id`` and ``lcn`` are unique within a single parse result.

    Deutsch:
        Normalisierte Darstellung eines Services. ``id`` und ``lcn`` sind
        innerhalb eines Ergebnisses eindeutig.
    """

    id: str
    lcn: int
    titles: Tuple[LocalizedString, ...] = field(default_factory=tuple)
    provider: Optional[str] = None
    providers: Tuple[LocalizedString, ...] = field(default_factory=tuple)
    image: Optional[MediaRepresentation] = None
    out_of_service_image: Optional[MediaRepresentation] = None
    content_guide_uri: Optional[str] = None
    more_episodes_uri: Optional[str] = None
    program_info_uri: Optional[str] = None
    content_guide_service_ref: Optional[str] = None
    target_regions: Tuple[str, ...] = field(default_factory=tuple)
    parallel_apps: Tuple[MediaPresentationApp, ...] = field(default_factory=tuple)
    media_presentation_apps: Tuple[MediaPresentationApp, ...] = field(default_factory=tuple)
    prominences: Tuple[Prominence, ...] = field(default_factory=tuple)
    accessibility_attributes: Optional[AccessibilityAttributes] = None
    service_instances: Tuple[ServiceInstance, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PostcodeRange:
    start: str
    end: str


@dataclass(frozen=True)
class Coordinates:
    latitude: str
    longitude: str
    radius: str


@dataclass(frozen=True)
class Region:
    region_id: str
    selectable: bool = True
    names: Tuple[LocalizedString, ...] = field(default_factory=tuple)
    country_codes: Optional[str] = None
    wildcard_postcodes: Tuple[str, ...] = field(default_factory=tuple)
    postcodes: Tuple[str, ...] = field(default_factory=tuple)
    postcode_ranges: Tuple[PostcodeRange, ...] = field(default_factory=tuple)
    coordinates: Tuple[Coordinates, ...] = field(default_factory=tuple)
    subregions: Tuple["Region", ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LcnEntry:
    service_ref: str
    channel_number: int
    selectable: bool = True
    visible: bool = True


@dataclass(frozen=True)
class LcnTable:
    entries: Tuple[LcnEntry, ...]
    default_region: bool
    target_regions: Tuple[str, ...] = field(default_factory=tuple)

    def channel_number_for(self, service_ref: str) -> Optional[int]:
        for entry in self.entries:
            if entry.service_ref == service_ref:
                return entry.channel_number
        return None


@dataclass(frozen=True)
class ContentGuideSource:
    """
    Content guide endpoints, identified by ``CGSID``.

    Deutsch:
        Endpunkte eines Programmführers (Schedule, Now/Next, weitere Folgen).
    """

    id: Optional[str]
    schedule_uri: Optional[str] = None
    program_info_uri: Optional[str] = None
    more_episodes_uri: Optional[str] = None
    names: Tuple[LocalizedString, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ParsedServiceList:
    """
    Result of :func:`dvbi_metadata.service_list.parse_service_list`.

    Deutsch:
        Ergebnis eines Service-List-Parse-Laufs inklusive Warnungen.
    """

    services: Tuple[Channel, ...] = field(default_factory=tuple)
    regions: Tuple[Region, ...] = field(default_factory=tuple)
    lcn_tables: Tuple[LcnTable, ...] = field(default_factory=tuple)
    image: Optional[MediaRepresentation] = None
    names: Tuple[LocalizedString, ...] = field(default_factory=tuple)
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls, reason: Optional[str] = None) -> "ParsedServiceList":
        return cls(warnings=(reason,) if reason else ())

    def channel(self, channel_id: str) -> Optional[Channel]:
        for chan in self.services:
            if chan.id == channel_id:
                return chan
        return None


# --- programmes --------------------------------------------------------------


@dataclass(frozen=True)
class ParentalRating:
    scheme: Optional[str] = None
    minimum_age: Optional[int] = None


@dataclass(frozen=True)
class CreditItem:
    role: Optional[str] = None
    person_name: Optional[LocalizedString] = None
    character_name: Optional[LocalizedString] = None


@dataclass(frozen=True)
class Keyword:
    value: str
    type: Optional[str] = None


@dataclass(frozen=True)
class Program:
    """
    A programme with resolved start and end time in epoch milliseconds.

    Deutsch:
        Eine Sendung mit Start- und Endzeit in Epoch-Millisekunden.
    """

    id: str
    titles: Tuple[LocalizedString, ...]
    start_time: int
    end_time: int
    description: Optional[str] = None
    parental_ratings: Tuple[ParentalRating, ...] = field(default_factory=tuple)
    genre: Optional[str] = None
    credits: Tuple[CreditItem, ...] = field(default_factory=tuple)
    keywords: Tuple[Keyword, ...] = field(default_factory=tuple)
    media_image: Optional[MediaRepresentation] = None
    accessibility_attributes: Optional[AccessibilityAttributes] = None
    cps_index: Optional[str] = None

    def is_on_air(self, now_ms: int) -> bool:
        return self.start_time <= now_ms < self.end_time


@dataclass(frozen=True)
class NowNext:
    now: Optional[Program] = None
    next: Optional[Program] = None


# --- registry ----------------------------------------------------------------


@dataclass(frozen=True)
class ServiceListOffering:
    name: str
    url: str
    icons: Tuple[MediaRepresentation, ...] = field(default_factory=tuple)
    postcode_filtering: bool = False
    region_id_filtering: bool = False
    multiplex_filtering: bool = False


@dataclass(frozen=True)
class ProviderInfo:
    name: str
    icons: Tuple[MediaRepresentation, ...] = field(default_factory=tuple)
    servicelists: Tuple[ServiceListOffering, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ParsedProviderRegistry:
    registry_info: Optional[ProviderInfo] = None
    provider_list: Tuple[ProviderInfo, ...] = field(default_factory=tuple)


# --- options -----------------------------------------------------------------


@dataclass(frozen=True)
class ParserOptions:
    """
    Knobs controlling service list normalisation.

    Deutsch:
        Optionen für die Normalisierung der Service-Liste.
    """

    lcn_services_only: bool = False
    first_undeclared_channel: int = FIRST_UNDECLARED_CHANNEL
    supported_drm_systems: Optional[Tuple[str, ...]] = None
