"""
DVB-I service list parser.

Turns a ``<ServiceList>`` document into :class:`ParsedServiceList`: channels
with their service instances, regions, LCN tables and content guide bindings.
Malformed input never raises; it degrades to an empty result that carries a
warning.

Deutsch:
    Parser für DVB-I Service-Listen. Fehlerhafte Dokumente führen nie zu einer
    Exception, sondern zu einem leeren Ergebnis mit Warnung. Fehlende LCNs
    werden kollisionsfrei vergeben.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, Union
from xml.etree import ElementTree as ET

from .accessibility import parse_accessibility_attributes
from .models import (
    AvailabilityInterval,
    AvailabilityPeriod,
    Channel,
    CmcdInit,
    ContentGuideSource,
    Coordinates,
    DrmSystem,
    LcnEntry,
    LcnTable,
    MediaPresentationApp,
    MediaRepresentation,
    ParsedServiceList,
    ParserOptions,
    PostcodeRange,
    Prominence,
    Region,
    ServiceInstance,
)
from .xml_nav import (
    XmlTree,
    get_child_element,
    get_child_elements,
    get_child_value,
    get_child_values,
    get_media,
    get_texts,
    local_name,
    parse_document,
    text_content,
)

log = logging.getLogger(__name__)

ROOT_ELEMENT = "ServiceList"

# HowRelated terms. Each role accepts the 2023 term and the earlier spellings
# still found in deployed feeds.
SERVICE_LIST_LOGO = frozenset(
    {
        "urn:dvb:metadata:cs:HowRelatedCS:2023:1001.1",
        "urn:dvb:metadata:cs:HowRelatedCS:2020:1001.1",
    }
)
SERVICE_LOGO = frozenset(
    {
        "urn:dvb:metadata:cs:HowRelatedCS:2023:1000.1",
        "urn:dvb:metadata:cs:HowRelatedCS:2020:1001.2",
    }
)
OUT_OF_SERVICE_LOGO = frozenset(
    {
        "urn:dvb:metadata:cs:HowRelatedCS:2023:1000.4",
        "urn:dvb:metadata:cs:HowRelatedCS:2020:1000.1",
        "urn:dvb:metadata:cs:HowRelatedCS:2021:1000.1",
    }
)
APP_IN_PARALLEL = frozenset(
    {
        "urn:dvb:metadata:cs:HowRelatedCS:2023:2000",
        "urn:dvb:metadata:cs:LinkedApplicationCS:2019:1.1",
    }
)
APP_CONTROLLING_MEDIA = frozenset(
    {
        "urn:dvb:metadata:cs:HowRelatedCS:2023:2001",
        "urn:dvb:metadata:cs:LinkedApplicationCS:2019:1.2",
    }
)

CMCD_MODE_REQUEST = "urn:dvb:metadata:cmcd:delivery:request"
CMCD_METHODS = {
    "urn:dvb:metadata:cmcd:delivery:customHTTPHeader": "header",
    "urn:dvb:metadata:cmcd:delivery:queryArguments": "query",
}


def parse_service_list(
    xml_text: Union[str, bytes],
    supported_drm_systems: Optional[Iterable[str]] = None,
    options: Optional[ParserOptions] = None,
) -> ParsedServiceList:
    """
    Parse a DVB-I service list document.

    Args:
        xml_text: Raw XML text of the service list
        supported_drm_systems: Lower-cased DRM system ids the player can
            decrypt. Overrides ``options.supported_drm_systems``; ``None``
            disables DRM filtering.
        options: LCN assignment options, defaults to :class:`ParserOptions`

    Returns:
        The parsed list. Unparseable input or a missing ``ServiceList`` root
        yields an empty result with a warning instead of an exception.

    Deutsch:
        Liest eine DVB-I Service-Liste ein. Nicht unterstützte DRM-Varianten
        werden verworfen, fehlende Kanalnummern werden vergeben.
    """
    options = options or ParserOptions()
    if supported_drm_systems is None:
        supported_drm_systems = options.supported_drm_systems
    supported = _normalise_drm_ids(supported_drm_systems)

    tree = parse_document(xml_text)
    if tree is None:
        return ParsedServiceList.empty("service list is not well-formed XML")
    root = _locate_root(tree.root)
    if root is None:
        log.warning("document root <%s> is not a %s", local_name(tree.root), ROOT_ELEMENT)
        return ParsedServiceList.empty(f"no <{ROOT_ELEMENT}> element found")

    warnings: List[str] = []
    image = _service_list_logo(root)
    regions = _parse_region_list(tree, get_child_element(root, "RegionList"))
    lcn_tables = _parse_lcn_tables(root)
    default_source = _parse_optional_source(tree, get_child_element(root, "ContentGuideSource"))
    named_sources = _parse_named_sources(tree, get_child_element(root, "ContentGuideSourceList"))

    lcn_table = _select_lcn_table(lcn_tables)
    allocator = _LcnAllocator(options.first_undeclared_channel)
    channels: List[Channel] = []
    seen_ids: Set[str] = set()
    explicit_ids: Set[str] = set()

    for index, service_el in enumerate(get_child_elements(root, "Service"), start=1):
        identifier = (get_child_value(service_el, "UniqueIdentifier") or "").strip()
        if not identifier:
            message = f"service #{index} has no UniqueIdentifier, skipped"
            log.warning(message)
            warnings.append(message)
            continue
        if identifier in seen_ids:
            message = f"duplicate service {identifier} skipped"
            log.warning(message)
            warnings.append(message)
            continue

        channel = _parse_service(tree, service_el, identifier, named_sources, default_source, supported)

        explicit = lcn_table.channel_number_for(identifier) if lcn_table else None
        if explicit is not None and not allocator.claim(explicit):
            message = f"service {identifier} repeats channel number {explicit}, treated as unnumbered"
            log.warning(message)
            warnings.append(message)
            explicit = None
        if explicit is None:
            if options.lcn_services_only:
                log.debug("service %s has no channel number and is dropped", identifier)
                continue
            lcn = allocator.placeholder(len(channels))
        else:
            lcn = explicit
            explicit_ids.add(identifier)

        seen_ids.add(identifier)
        channels.append(dataclasses.replace(channel, lcn=lcn))

    services = allocator.resolve(channels, explicit_ids)
    log.info(
        "parsed service list: %d services, %d regions, %d LCN tables",
        len(services),
        len(regions),
        len(lcn_tables),
    )
    return ParsedServiceList(
        services=services,
        regions=regions,
        lcn_tables=lcn_tables,
        image=image,
        names=get_texts(tree, get_child_elements(root, "Name")),
        warnings=tuple(warnings),
    )


def _locate_root(root: ET.Element) -> Optional[ET.Element]:
    if local_name(root) == ROOT_ELEMENT:
        return root
    for child in root:
        if local_name(child) == ROOT_ELEMENT:
            log.debug("%s found nested inside <%s>", ROOT_ELEMENT, local_name(root))
            return child
    return None


def _normalise_drm_ids(values: Optional[Iterable[str]]) -> Optional[FrozenSet[str]]:
    if values is None:
        return None
    return frozenset(value.strip().lower() for value in values if value and value.strip())


class _LcnAllocator:
    """
    Logical channel number bookkeeping for one parse run.

    Explicit numbers are claimed as services are read. Services without one
    get ``first_undeclared + accepted_count`` first; :meth:`resolve` then
    moves every negative number and every colliding placeholder past the
    highest explicit number.
    """

    def __init__(self, first_undeclared: int) -> None:
        self.first_undeclared = first_undeclared
        self.max_lcn = 0
        self.explicit: Set[int] = set()

    def claim(self, number: int) -> bool:
        if number >= 0 and number in self.explicit:
            return False
        if number >= 0:
            self.explicit.add(number)
            self.max_lcn = max(self.max_lcn, number)
        return True

    def placeholder(self, accepted: int) -> int:
        return self.first_undeclared + accepted

    def resolve(self, channels: List[Channel], explicit_ids: Set[str]) -> Tuple[Channel, ...]:
        taken: Set[int] = set(self.explicit)
        pending: List[int] = []
        for pos, channel in enumerate(channels):
            if channel.lcn < 0:
                pending.append(pos)
            elif channel.id in explicit_ids:
                continue
            elif channel.lcn in taken:
                pending.append(pos)
            else:
                taken.add(channel.lcn)

        result = list(channels)
        for pos in pending:
            self.max_lcn += 1
            while self.max_lcn in taken:
                self.max_lcn += 1
            taken.add(self.max_lcn)
            log.debug("service %s renumbered %d -> %d", result[pos].id, result[pos].lcn, self.max_lcn)
            result[pos] = dataclasses.replace(result[pos], lcn=self.max_lcn)
        return tuple(result)


def _select_lcn_table(tables: Tuple[LcnTable, ...]) -> Optional[LcnTable]:
    # Region specific tables are not selected by receiver location.
    for table in tables:
        if table.default_region:
            return table
    return tables[0] if tables else None


def _related_material(element: ET.Element) -> List[Tuple[str, Optional[ET.Element]]]:
    items = []
    for material in get_child_elements(element, "RelatedMaterial"):
        how_related = (get_child_value(material, "HowRelated", attribute="href") or "").strip()
        items.append((how_related, get_child_element(material, "MediaLocator")))
    return items


def _service_list_logo(root: ET.Element) -> Optional[MediaRepresentation]:
    image = None
    for how_related, locator in _related_material(root):
        if how_related in SERVICE_LIST_LOGO:
            image = get_media(locator) or image
    return image


# --- regions -----------------------------------------------------------------


def _parse_region_list(tree: XmlTree, region_list: Optional[ET.Element]) -> Tuple[Region, ...]:
    if region_list is None:
        return ()
    return tuple(_parse_region(tree, element) for element in get_child_elements(region_list, "Region"))


def _parse_region(tree: XmlTree, element: ET.Element) -> Region:
    ranges = []
    for range_el in get_child_elements(element, "PostcodeRange"):
        start = (range_el.get("from") or "").strip()
        end = (range_el.get("to") or "").strip()
        if start and end:
            ranges.append(PostcodeRange(start=start, end=end))
        else:
            log.debug("incomplete PostcodeRange in region %s ignored", element.get("regionID"))

    coordinates = []
    for coord_el in get_child_elements(element, "Coordinates"):
        latitude = (get_child_value(coord_el, "Latitude") or "").strip()
        longitude = (get_child_value(coord_el, "Longitude") or "").strip()
        radius = (get_child_value(coord_el, "Radius") or "").strip()
        if latitude and longitude:
            coordinates.append(Coordinates(latitude=latitude, longitude=longitude, radius=radius))

    return Region(
        region_id=element.get("regionID") or "",
        selectable=_xs_bool(element.get("selectable"), True),
        names=get_texts(tree, get_child_elements(element, "RegionName")),
        country_codes=element.get("countryCodes") or None,
        wildcard_postcodes=_stripped_values(get_child_values(element, "WildcardPostcode")),
        postcodes=_stripped_values(get_child_values(element, "Postcode")),
        postcode_ranges=tuple(ranges),
        coordinates=tuple(coordinates),
        subregions=tuple(_parse_region(tree, child) for child in get_child_elements(element, "Region")),
    )


def _stripped_values(values: Iterable[str]) -> Tuple[str, ...]:
    return tuple(value.strip() for value in values if value.strip())


# --- LCN tables --------------------------------------------------------------


def _parse_lcn_tables(root: ET.Element) -> Tuple[LcnTable, ...]:
    elements = list(get_child_elements(root, "LCNTable"))
    for table_list in get_child_elements(root, "LCNTableList"):
        elements.extend(get_child_elements(table_list, "LCNTable"))
    return tuple(_parse_lcn_table(element) for element in elements)


def _parse_lcn_table(element: ET.Element) -> LcnTable:
    target_regions = _stripped_values(get_child_values(element, "TargetRegion"))
    entries = []
    for lcn_el in get_child_elements(element, "LCN"):
        service_ref = (lcn_el.get("serviceRef") or "").strip()
        number = _coerce_int(lcn_el.get("channelNumber"))
        if not service_ref or number is None:
            log.debug("LCN entry without serviceRef or channelNumber ignored")
            continue
        entries.append(
            LcnEntry(
                service_ref=service_ref,
                channel_number=number,
                selectable=_xs_bool(lcn_el.get("selectable"), True),
                visible=_xs_bool(lcn_el.get("visible"), True),
            )
        )
    return LcnTable(
        entries=tuple(entries),
        default_region=_xs_bool(element.get("defaultRegion"), False) or not target_regions,
        target_regions=target_regions,
    )


# --- content guide sources ---------------------------------------------------


def parse_content_guide_source(tree: XmlTree, element: ET.Element) -> ContentGuideSource:
    return ContentGuideSource(
        id=(element.get("CGSID") or "").strip() or None,
        schedule_uri=_endpoint_uri(element, "ScheduleInfoEndpoint"),
        program_info_uri=_endpoint_uri(element, "ProgramInfoEndpoint"),
        more_episodes_uri=_endpoint_uri(element, "MoreEpisodesEndpoint"),
        names=get_texts(tree, get_child_elements(element, "Name")),
    )


def _parse_optional_source(tree: XmlTree, element: Optional[ET.Element]) -> Optional[ContentGuideSource]:
    if element is None:
        return None
    return parse_content_guide_source(tree, element)


def _parse_named_sources(tree: XmlTree, element: Optional[ET.Element]) -> Dict[str, ContentGuideSource]:
    sources: Dict[str, ContentGuideSource] = {}
    for source_el in get_child_elements(element, "ContentGuideSource"):
        source = parse_content_guide_source(tree, source_el)
        if source.id:
            sources[source.id] = source
        else:
            log.debug("ContentGuideSource without CGSID in ContentGuideSourceList ignored")
    return sources


def _endpoint_uri(element: ET.Element, name: str) -> Optional[str]:
    endpoint = get_child_element(element, name)
    if endpoint is None:
        return None
    return (get_child_value(endpoint, "URI") or "").strip() or None


def _resolve_content_guide(
    tree: XmlTree,
    service_el: ET.Element,
    named_sources: Dict[str, ContentGuideSource],
    default_source: Optional[ContentGuideSource],
) -> Optional[ContentGuideSource]:
    # First source wins as a whole; missing URIs are not filled from the next one.
    reference = (get_child_value(service_el, "ContentGuideSourceRef") or "").strip()
    if reference:
        if reference in named_sources:
            return named_sources[reference]
        log.debug("ContentGuideSourceRef %s does not name a known source", reference)
    inline = get_child_element(service_el, "ContentGuideSource")
    if inline is not None:
        return parse_content_guide_source(tree, inline)
    return default_source


# --- services ----------------------------------------------------------------


def _parse_service(
    tree: XmlTree,
    service_el: ET.Element,
    identifier: str,
    named_sources: Dict[str, ContentGuideSource],
    default_source: Optional[ContentGuideSource],
    supported_drm: Optional[FrozenSet[str]],
) -> Channel:
    providers = get_texts(tree, get_child_elements(service_el, "ProviderName"))
    source = _resolve_content_guide(tree, service_el, named_sources, default_source)

    image = out_of_service_image = None
    parallel_apps: List[MediaPresentationApp] = []
    controlling_apps: List[MediaPresentationApp] = []
    for how_related, locator in _related_material(service_el):
        if how_related in SERVICE_LOGO:
            image = get_media(locator) or image
        elif how_related in OUT_OF_SERVICE_LOGO:
            out_of_service_image = get_media(locator) or out_of_service_image
        elif how_related in APP_IN_PARALLEL or how_related in APP_CONTROLLING_MEDIA:
            media = get_media(locator)
            if media is None:
                continue
            app = MediaPresentationApp(url=media.media_uri, content_type=media.content_type or "")
            if how_related in APP_IN_PARALLEL:
                parallel_apps.append(app)
            else:
                controlling_apps.append(app)

    instances: List[ServiceInstance] = []
    accessibility = None
    for instance_el in get_child_elements(service_el, "ServiceInstance"):
        instance = _parse_service_instance(tree, instance_el)
        if not _drm_supported(instance, supported_drm):
            log.debug(
                "service instance of %s dropped, unsupported DRM %s",
                identifier,
                ", ".join(drm.drm_system_id or "?" for drm in instance.content_protection),
            )
            continue
        if accessibility is None:
            content_attributes = get_child_element(instance_el, "ContentAttributes")
            accessibility = parse_accessibility_attributes(
                get_child_element(content_attributes, "AccessibilityAttributes")
            )
        instances.append(instance)

    return Channel(
        id=identifier,
        lcn=-1,
        titles=get_texts(tree, get_child_elements(service_el, "ServiceName")),
        provider=providers[0].text if providers else None,
        providers=providers,
        image=image,
        out_of_service_image=out_of_service_image,
        content_guide_uri=source.schedule_uri if source else None,
        more_episodes_uri=source.more_episodes_uri if source else None,
        program_info_uri=source.program_info_uri if source else None,
        content_guide_service_ref=(get_child_value(service_el, "ContentGuideServiceRef") or "").strip() or None,
        target_regions=_stripped_values(get_child_values(service_el, "TargetRegion")),
        parallel_apps=tuple(parallel_apps),
        media_presentation_apps=tuple(controlling_apps),
        prominences=_parse_prominences(get_child_element(service_el, "ProminenceList")),
        accessibility_attributes=accessibility,
        service_instances=tuple(instances),
    )


def _parse_prominences(element: Optional[ET.Element]) -> Tuple[Prominence, ...]:
    prominences = []
    for item in get_child_elements(element, "Prominence"):
        ranking = _coerce_int(item.get("ranking"))
        if ranking is None:
            log.debug("Prominence without parseable ranking ignored")
            continue
        prominences.append(
            Prominence(country=item.get("country") or None, region=item.get("region") or None, ranking=ranking)
        )
    return tuple(prominences)


def _parse_service_instance(tree: XmlTree, element: ET.Element) -> ServiceInstance:
    protection = []
    for cp_el in get_child_elements(element, "ContentProtection"):
        for drm_el in get_child_elements(cp_el, "DRMSystemId"):
            protection.append(
                DrmSystem(
                    drm_system_id=text_content(drm_el).strip() or None,
                    encryption_scheme=drm_el.get("encryptionScheme") or None,
                    cps_index=drm_el.get("cpsIndex") or None,
                )
            )

    dash_url = None
    cmcd = None
    delivery = get_child_element(element, "DASHDeliveryParameters")
    if delivery is not None:
        dash_url = _dash_url(delivery)
        cmcd = parse_cmcd(get_child_element(delivery, "CMCD"))

    priority = _coerce_int(element.get("priority"))
    return ServiceInstance(
        priority=1 if priority is None else priority,
        titles=get_texts(tree, get_child_elements(element, "DisplayName")),
        content_protection=tuple(protection),
        dash_url=dash_url,
        cmcd=cmcd,
        availability=_parse_availability(get_child_element(element, "Availability")),
    )


def _dash_url(delivery: ET.Element) -> Optional[str]:
    url = get_child_value(delivery, "URI")
    if url is None:
        url = get_child_value(get_child_element(delivery, "UriBasedLocation"), "URI")
    return (url or "").strip() or None


def _drm_supported(instance: ServiceInstance, supported: Optional[FrozenSet[str]]) -> bool:
    if supported is None or not instance.content_protection:
        return True
    return any(
        drm.drm_system_id is not None and drm.drm_system_id.strip().lower() in supported
        for drm in instance.content_protection
    )


def parse_cmcd(element: Optional[ET.Element]) -> Optional[CmcdInit]:
    """
    Read a ``CMCD`` element of ``DASHDeliveryParameters``.

    Returns ``None`` unless ``reportingMode``, ``reportingMethod`` and
    ``version`` are all present and recognised.
    """
    if element is None:
        return None
    mode = element.get("reportingMode")
    method = element.get("reportingMethod")
    version = element.get("version")
    if mode is None or method is None or version is None:
        return None
    if mode != CMCD_MODE_REQUEST:
        log.debug("CMCD reportingMode %s not supported", mode)
        return None
    delivery = CMCD_METHODS.get(method)
    if delivery is None:
        log.debug("CMCD reportingMethod %s not supported", method)
        return None
    version_number = _coerce_int(version)
    if version_number is None:
        log.debug("CMCD version %r is not a number", version)
        return None
    keys = element.get("enabledKeys")
    return CmcdInit(
        enabled=True,
        mode=delivery,
        enabled_keys=tuple(keys.split()) if keys else (),
        cid=element.get("contentId"),
        version=version_number,
    )


def _parse_availability(element: Optional[ET.Element]) -> Tuple[AvailabilityPeriod, ...]:
    periods = []
    for period_el in get_child_elements(element, "Period"):
        intervals = tuple(
            AvailabilityInterval(
                days=interval.get("days"),
                recurrence=interval.get("recurrence"),
                start_time=interval.get("startTime"),
                end_time=interval.get("endTime"),
            )
            for interval in get_child_elements(period_el, "Interval")
        )
        periods.append(
            AvailabilityPeriod(
                valid_from=period_el.get("validFrom"),
                valid_to=period_el.get("validTo"),
                intervals=intervals,
            )
        )
    return tuple(periods)


def _coerce_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _xs_bool(value: Optional[str], default: bool) -> bool:
    """``xs:boolean`` lexical forms; anything else falls back to ``default``."""
    if value is None:
        return default
    token = value.strip().lower()
    if token in {"true", "1"}:
        return True
    if token in {"false", "0"}:
        return False
    log.debug("invalid boolean %r, using %s", value, default)
    return default
