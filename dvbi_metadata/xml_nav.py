"""
Namespace tolerant XML navigation helpers.

Real-world DVB-I feeds are inconsistent about namespace declarations, so
every lookup matches on the local element name and only checks the namespace
when an exact :class:`Namespace` is requested. ``ElementTree`` elements do not
know their parent; :class:`XmlTree` keeps a child to parent index so that
``xml:lang`` can be inherited from any ancestor.

Deutsch:
    Hilfsfunktionen zur namespace-toleranten Navigation in DVB-I/TVA-XML.
    ``XmlTree`` hält zusätzlich einen Eltern-Index für die Sprachauflösung.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, Union
from xml.etree import ElementTree as ET

from .models import DEFAULT_LANGUAGE, LocalizedString, MediaRepresentation

log = logging.getLogger(__name__)

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"
XML_LANG = f"{{{XML_NAMESPACE}}}lang"


@dataclass(frozen=True)
class Namespace:
    """
    Namespace filter for child lookups: an exact URI or the wildcard.

    ``Namespace.exact("")`` matches elements without a namespace, which is
    different from :data:`ANY_NAMESPACE`.

    Deutsch:
        Namespace-Filter: exakte URI oder Platzhalter für beliebige Namespaces.
    """

    uri: str = ""
    wildcard: bool = False

    @classmethod
    def exact(cls, uri: str) -> "Namespace":
        return cls(uri=uri, wildcard=False)

    def matches(self, uri: str) -> bool:
        return self.wildcard or self.uri == uri


ANY_NAMESPACE = Namespace(wildcard=True)


def split_tag(tag: str) -> Tuple[str, str]:
    """Split ``{uri}local`` into ``(uri, local)``."""
    if tag.startswith("{"):
        uri, _, local = tag[1:].partition("}")
        return uri, local
    return "", tag


def local_name(element: ET.Element) -> str:
    if not isinstance(element.tag, str):
        return ""
    return split_tag(element.tag)[1]


class XmlTree:
    """
    Parsed document plus a child to parent index.

    Deutsch:
        Geparstes Dokument mit Eltern-Index.
    """

    def __init__(self, root: ET.Element) -> None:
        self.root = root
        self._parents: Dict[ET.Element, ET.Element] = {
            child: parent for parent in root.iter() for child in parent
        }

    def parent(self, element: ET.Element) -> Optional[ET.Element]:
        return self._parents.get(element)

    def ancestors(self, element: ET.Element) -> Iterator[ET.Element]:
        current = self.parent(element)
        while current is not None:
            yield current
            current = self.parent(current)


def parse_document(text: Union[str, bytes, None]) -> Optional[XmlTree]:
    """
    Parse XML text without raising on malformed input.

    Returns:
        The parsed tree, or ``None`` if the text is empty or not well-formed.
    """
    if text is None:
        return None
    if isinstance(text, bytes):
        if not text.strip():
            return None
    else:
        text = text.lstrip("\ufeff")
        if not text.strip():
            return None
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        log.warning("XML document could not be parsed: %s", exc)
        return None
    return XmlTree(root)


def text_content(element: ET.Element) -> str:
    """Concatenated text of the element and its descendants."""
    return "".join(element.itertext())


def get_child_elements(
    parent: Optional[ET.Element],
    name: str,
    namespace: Namespace = ANY_NAMESPACE,
) -> List[ET.Element]:
    """Direct children (not descendants) with the given local name."""
    if parent is None:
        return []
    matches: List[ET.Element] = []
    for child in parent:
        if not isinstance(child.tag, str):
            continue
        uri, local = split_tag(child.tag)
        if local == name and namespace.matches(uri):
            matches.append(child)
    return matches


def get_child_element(
    parent: Optional[ET.Element],
    name: str,
    namespace: Namespace = ANY_NAMESPACE,
) -> Optional[ET.Element]:
    children = get_child_elements(parent, name, namespace)
    return children[0] if children else None


def get_child_value(
    parent: Optional[ET.Element],
    name: str,
    namespace: Namespace = ANY_NAMESPACE,
    attribute: Optional[str] = None,
) -> Optional[str]:
    """
    Attribute of the first matching child, or its text if no attribute is given.

    Returns ``None`` when no child matches (or the attribute is missing).
    """
    child = get_child_element(parent, name, namespace)
    if child is None:
        return None
    if attribute:
        return child.get(attribute)
    return text_content(child)


def get_child_values(
    parent: Optional[ET.Element],
    name: str,
    namespace: Namespace = ANY_NAMESPACE,
    attribute: Optional[str] = None,
) -> List[str]:
    values: List[str] = []
    for child in get_child_elements(parent, name, namespace):
        value = child.get(attribute) if attribute else text_content(child)
        if value is not None:
            values.append(value)
    return values


def find_descendants(element: ET.Element, name: str) -> List[ET.Element]:
    return [item for item in element.iter() if item is not element and local_name(item) == name]


def find_ancestor(tree: XmlTree, element: ET.Element, name: str) -> Optional[ET.Element]:
    for ancestor in tree.ancestors(element):
        if local_name(ancestor) == name:
            return ancestor
    return None


def element_language(tree: XmlTree, element: Optional[ET.Element]) -> str:
    """
    Nearest ``xml:lang`` on the element or any ancestor.

    Deutsch:
        Sucht ``xml:lang`` rekursiv entlang aller Vorfahren, sonst ``"default"``.
    """
    if element is None:
        return DEFAULT_LANGUAGE
    lang = element.get(XML_LANG)
    if lang:
        return lang
    return element_language(tree, tree.parent(element))


def get_text(tree: XmlTree, element: Optional[ET.Element]) -> Optional[LocalizedString]:
    if element is None:
        return None
    text = text_content(element).strip()
    if not text:
        return None
    return LocalizedString(lang=element_language(tree, element), text=text)


def get_texts(tree: XmlTree, elements: List[ET.Element]) -> Tuple[LocalizedString, ...]:
    texts = (get_text(tree, element) for element in elements)
    return tuple(text for text in texts if text is not None)


def get_media(element: Optional[ET.Element]) -> Optional[MediaRepresentation]:
    """``MediaUri`` child of ``element`` as a media reference."""
    media_uri = get_child_element(element, "MediaUri")
    if media_uri is None:
        return None
    uri = text_content(media_uri).strip()
    if not uri:
        return None
    return MediaRepresentation(media_uri=uri, content_type=media_uri.get("contentType"))
