"""
Service list registry parsing.

A registry answers with a ``ServiceListEntryPoints`` document listing the
providers and the service lists each of them offers.

Deutsch:
    Einlesen von ``ServiceListEntryPoints`` (Anbieter und deren Service-Listen).
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple, Union
from xml.etree import ElementTree as ET

from .models import MediaRepresentation, ParsedProviderRegistry, ProviderInfo, ServiceListOffering
from .xml_nav import (
    XmlTree,
    get_child_element,
    get_child_elements,
    get_child_value,
    get_media,
    get_texts,
    local_name,
    parse_document,
    text_content,
)

log = logging.getLogger(__name__)

ROOT_ELEMENT = "ServiceListEntryPoints"

_FILTER_FLAGS = (
    ("postcode_filtering", "postcodeFiltering", "PostcodeFiltering"),
    ("region_id_filtering", "regionIdFiltering", "RegionIdFiltering"),
    ("multiplex_filtering", "multiplexFiltering", "MultiplexFiltering"),
)


def parse_provider_registry(xml_text: Union[str, bytes]) -> ParsedProviderRegistry:
    """
    Parse a ``ServiceListEntryPoints`` document.

    Offerings without a service list URI are skipped. Malformed input yields
    an empty registry.

    Deutsch:
        Liefert eine leere Registry, wenn das Dokument nicht lesbar ist.
    """
    tree = parse_document(xml_text)
    if tree is None:
        return ParsedProviderRegistry()
    root = tree.root
    if local_name(root) != ROOT_ELEMENT:
        log.warning("document root <%s> is not a %s", local_name(root), ROOT_ELEMENT)
        return ParsedProviderRegistry()

    registry_info = None
    entity = get_child_element(root, "ServiceListRegistryEntity")
    if entity is not None:
        registry_info = ProviderInfo(name=_first_name(tree, entity, "Name"), icons=_icons(entity))

    providers: List[ProviderInfo] = []
    for offering_el in get_child_elements(root, "ProviderOffering"):
        provider_el = get_child_element(offering_el, "Provider")
        servicelists = tuple(
            offering
            for offering in (
                _parse_offering(tree, item) for item in get_child_elements(offering_el, "ServiceListOffering")
            )
            if offering is not None
        )
        providers.append(
            ProviderInfo(
                name=_first_name(tree, provider_el, "Name") if provider_el is not None else "",
                icons=_icons(provider_el) if provider_el is not None else (),
                servicelists=servicelists,
            )
        )

    log.info("registry lists %d providers", len(providers))
    return ParsedProviderRegistry(registry_info=registry_info, provider_list=tuple(providers))


def _parse_offering(tree: XmlTree, element: ET.Element) -> Optional[ServiceListOffering]:
    uri_el = get_child_element(element, "ServiceListURI")
    url = (get_child_value(uri_el, "URI") or "").strip() if uri_el is not None else ""
    if not url:
        log.debug("ServiceListOffering without ServiceListURI ignored")
        return None
    flags = {key: _flag(element, attribute, child) for key, attribute, child in _FILTER_FLAGS}
    return ServiceListOffering(
        name=_first_name(tree, element, "ServiceListName"),
        url=url,
        icons=_icons(element),
        **flags,
    )


def _first_name(tree: XmlTree, element: ET.Element, tag: str) -> str:
    names = get_texts(tree, get_child_elements(element, tag))
    return names[0].text if names else ""


def _icons(element: ET.Element) -> Tuple[MediaRepresentation, ...]:
    icons = [get_media(icon) for icon in get_child_elements(element, "Icon")]
    for material in get_child_elements(element, "RelatedMaterial"):
        icons.append(get_media(get_child_element(material, "MediaLocator")))
    return tuple(icon for icon in icons if icon is not None)


def _flag(element: ET.Element, attribute: str, child: str) -> bool:
    value = element.get(attribute)
    if value is None:
        flag_el = get_child_element(element, child)
        if flag_el is None:
            return False
        value = text_content(flag_el).strip() or "true"
    return value.strip().lower() in {"true", "1"}
