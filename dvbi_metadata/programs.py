"""
Now/Next and schedule parsing for TV-Anytime programme metadata.

``ProgramInformation`` carries the descriptive data of a programme while the
broadcast time sits on a ``ScheduleEvent``. Both can be embedded in each
other or linked through the programme CRID, so the parser builds an index of
every ``ProgramInformation`` by ``programId`` before resolving events.

Deutsch:
    Einlesen von Now/Next- und Programmführer-Dokumenten (TVA
    ``ProgramInformation`` / ``ScheduleEvent``) inklusive CRID-Auflösung.
"""

from __future__ import annotations

import logging
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from xml.etree import ElementTree as ET

import isodate

from .accessibility import parse_accessibility_attributes
from .models import CreditItem, Keyword, MediaRepresentation, NowNext, ParentalRating, Program
from .xml_nav import (
    XmlTree,
    find_ancestor,
    find_descendants,
    get_child_element,
    get_child_elements,
    get_child_value,
    get_media,
    get_text,
    get_texts,
    parse_document,
    text_content,
)

log = logging.getLogger(__name__)

PROGRAM_IMAGE = "urn:tva:metadata:cs:HowRelatedCS:2012:19"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_FRACTION_RE = re.compile(r"\.(\d+)")

NowReference = Union[int, datetime, None]


def parse_duration(text: Optional[str]) -> Optional[int]:
    """
    Parse an ISO-8601 duration such as ``PT1H30M`` into milliseconds.

    Any ``xs:duration`` form is accepted, including fractional components.
    Year and month components are resolved against the Unix epoch. Returns
    ``None`` for text that is not a duration or for negative durations.
    """
    if not text:
        return None
    try:
        duration = isodate.parse_duration(text.strip())
    except (isodate.ISO8601Error, ValueError) as exc:
        log.debug("unsupported duration %r: %s", text, exc)
        return None
    if isinstance(duration, isodate.Duration):
        duration = duration.totimedelta(start=_EPOCH)
    millis = int(round(duration.total_seconds() * 1000))
    if millis < 0:
        log.debug("negative duration %r ignored", text)
        return None
    return millis


def parse_timestamp(text: Optional[str]) -> Optional[int]:
    """
    Parse an ISO-8601 timestamp into epoch milliseconds.

    Timestamps without a zone designator are read as UTC.
    """
    if not text:
        return None
    value = text.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    # fromisoformat only accepts three or six fractional digits before 3.11
    value = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        log.debug("unsupported timestamp %r", text)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - _EPOCH) // timedelta(milliseconds=1)


def parse_program_info(xml_text: Union[str, bytes], now: NowReference = None) -> NowNext:
    """
    Pick the current and the following programme from a Now/Next document.

    Args:
        xml_text: Raw XML of the programme information feed
        now: Reference time as epoch milliseconds or aware ``datetime``;
            ``None`` reads the system clock

    Returns:
        ``NowNext`` with ``now`` being the programme whose ``[start, end)``
        contains the reference time and ``next`` the earliest programme
        starting after it. When only ``now`` is found, ``next`` is the
        programme following it in start-time order. Malformed input returns
        an empty pair.

    Deutsch:
        Ermittelt die laufende und die nächste Sendung. ``now`` ist
        injizierbar, damit das Ergebnis testbar bleibt.
    """
    tree = parse_document(xml_text)
    if tree is None:
        return NowNext()
    now_ms = _now_ms(now)

    events_by_crid = _events_by_crid(tree)
    programs: List[Program] = []
    for element in find_descendants(tree.root, "ProgramInformation"):
        program = _map_now_next_program(tree, element, events_by_crid)
        if program is not None:
            programs.append(program)
    programs.sort(key=lambda item: item.start_time)

    current: Optional[Program] = None
    upcoming: Optional[Program] = None
    for program in programs:
        if program.is_on_air(now_ms):
            current = program
        elif program.start_time > now_ms and (upcoming is None or program.start_time < upcoming.start_time):
            upcoming = program

    if current is not None and upcoming is None:
        position = programs.index(current)
        if position + 1 < len(programs):
            upcoming = programs[position + 1]

    log.debug(
        "now/next from %d programmes: now=%s next=%s",
        len(programs),
        current.id if current else None,
        upcoming.id if upcoming else None,
    )
    return NowNext(now=current, next=upcoming)


def parse_schedule(xml_text: Union[str, bytes]) -> List[Program]:
    """
    Read every ``ScheduleEvent`` of a schedule document, sorted by start time.

    The programme data of an event comes from, in order: an embedded
    ``ProgramInformation``, the ``ProgramInformation`` named by
    ``Program/@crid`` (an unknown CRID skips the event) or a
    ``BasicDescription`` on the event itself.

    Deutsch:
        Liest alle ``ScheduleEvent``-Einträge; CRID-Verweise werden über einen
        vorab erstellten Index aufgelöst.
    """
    tree = parse_document(xml_text)
    if tree is None:
        return []

    programs_by_id = _programs_by_id(tree)
    programs: List[Program] = []
    skipped = 0
    for event in find_descendants(tree.root, "ScheduleEvent"):
        source = _schedule_event_source(event, programs_by_id)
        if source is None:
            skipped += 1
            continue
        program = map_xml_to_program(tree, source, schedule_event=event)
        if program is None:
            skipped += 1
            continue
        programs.append(program)

    if skipped:
        log.debug("%d schedule events without usable programme data skipped", skipped)
    return sorted(programs, key=lambda item: item.start_time)


def map_xml_to_program(
    tree: XmlTree,
    element: ET.Element,
    schedule_event: Optional[ET.Element] = None,
    use_end_time: bool = True,
) -> Optional[Program]:
    """
    Map a ``ProgramInformation`` (or a self-describing ``ScheduleEvent``).

    Times come from ``schedule_event`` when given: ``PublishedStartTime`` plus
    ``PublishedEndTime`` (if ``use_end_time``) or ``PublishedDuration``. If
    the event has no start time, or no event is given, the element's own
    start time and duration are used. Returns ``None`` when the identifier,
    the title or one of the times cannot be resolved.
    """
    program_id = _program_id(element, schedule_event)
    if not program_id:
        return None

    basic = get_child_element(element, "BasicDescription")
    if basic is None:
        return None
    titles = get_texts(tree, get_child_elements(basic, "Title"))
    if not titles:
        return None

    start = end = None
    if schedule_event is not None:
        start, end = _published_times(schedule_event, use_end_time)
    if start is None and element is not schedule_event:
        start, end = _published_times(element, use_end_time=False)
    if start is None or end is None:
        log.debug("programme %s has no resolvable start/end time", program_id)
        return None

    accessibility = get_child_element(element, "AccessibilityAttributes")
    if accessibility is None:
        accessibility = get_child_element(basic, "AccessibilityAttributes")

    return Program(
        id=program_id,
        titles=titles,
        start_time=start,
        end_time=end,
        description=_description(basic),
        parental_ratings=_parental_ratings(basic),
        genre=get_child_value(basic, "Genre", attribute="href") or None,
        credits=_credits(tree, basic),
        keywords=_keywords(basic),
        media_image=_program_image(basic) or _program_image(element),
        accessibility_attributes=parse_accessibility_attributes(accessibility),
        cps_index=(get_child_value(element, "CPSIndex") or "").strip() or None,
    )


def build_schedule_url(
    content_guide_uri: str,
    start: Union[int, datetime],
    window_hours: int = 24,
) -> str:
    """
    Append the ``start`` / ``duration`` query used to request a schedule window.

    ``start`` is epoch milliseconds or an aware ``datetime``; the result uses
    ``start=YYYY-MM-DDTHH:MM:SS.mmmZ&duration=PT<window_hours>H``.
    """
    start_ms = _now_ms(start)
    moment = _EPOCH + timedelta(milliseconds=start_ms)
    start_iso = moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
    parts = urlsplit(content_guide_uri)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend([("start", start_iso), ("duration", f"PT{window_hours}H")])
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def _now_ms(now: NowReference) -> int:
    if now is None:
        return int(time.time() * 1000)
    if isinstance(now, datetime):
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return (now - _EPOCH) // timedelta(milliseconds=1)
    return int(now)


def _programs_by_id(tree: XmlTree) -> Dict[str, ET.Element]:
    index: Dict[str, ET.Element] = {}
    for element in find_descendants(tree.root, "ProgramInformation"):
        program_id = (element.get("programId") or "").strip()
        if program_id and program_id not in index:
            index[program_id] = element
    return index


def _events_by_crid(tree: XmlTree) -> Dict[str, ET.Element]:
    index: Dict[str, ET.Element] = {}
    for event in find_descendants(tree.root, "ScheduleEvent"):
        crid = (get_child_value(event, "Program", attribute="crid") or "").strip()
        if crid and crid not in index:
            index[crid] = event
    return index


def _schedule_event_source(event: ET.Element, programs_by_id: Dict[str, ET.Element]) -> Optional[ET.Element]:
    embedded = find_descendants(event, "ProgramInformation")
    if embedded:
        return embedded[0]
    crid = (get_child_value(event, "Program", attribute="crid") or "").strip()
    if crid:
        resolved = programs_by_id.get(crid)
        if resolved is None:
            log.debug("schedule event references unknown CRID %s", crid)
        return resolved
    if get_child_element(event, "BasicDescription") is not None:
        return event
    return None


def _map_now_next_program(
    tree: XmlTree,
    element: ET.Element,
    events_by_crid: Dict[str, ET.Element],
) -> Optional[Program]:
    candidates = [find_ancestor(tree, element, "ScheduleEvent")]
    program_id = (element.get("programId") or "").strip()
    if get_child_value(element, "PublishedStartTime") is None and program_id:
        candidates.append(events_by_crid.get(program_id))
    for event in candidates:
        if event is not None and get_child_value(event, "PublishedStartTime") is not None:
            return map_xml_to_program(tree, element, schedule_event=event, use_end_time=False)
    return map_xml_to_program(tree, element, use_end_time=False)


def _program_id(element: ET.Element, schedule_event: Optional[ET.Element]) -> Optional[str]:
    program_id = (element.get("programId") or "").strip()
    if program_id:
        return program_id
    for owner in (element, schedule_event):
        if owner is None:
            continue
        instance = find_descendants(owner, "InstanceMetadataId")
        if instance and text_content(instance[0]).strip():
            return text_content(instance[0]).strip()
    if schedule_event is not None:
        crid = (get_child_value(schedule_event, "Program", attribute="crid") or "").strip()
        if crid:
            return crid
    return None


def _published_times(element: ET.Element, use_end_time: bool) -> Tuple[Optional[int], Optional[int]]:
    start = parse_timestamp(get_child_value(element, "PublishedStartTime"))
    if start is None:
        return None, None
    if use_end_time:
        end = parse_timestamp(get_child_value(element, "PublishedEndTime"))
        if end is not None:
            return start, end
    duration = parse_duration(get_child_value(element, "PublishedDuration"))
    if duration is None:
        return start, None
    return start, start + duration


def _description(basic: ET.Element) -> Optional[str]:
    synopses = get_child_elements(basic, "Synopsis")
    if not synopses:
        return None
    chosen = next((item for item in synopses if item.get("length") == "long"), None)
    if chosen is None:
        chosen = next((item for item in synopses if item.get("length") == "medium"), synopses[0])
    return text_content(chosen).strip() or None


def _parental_ratings(basic: ET.Element) -> Tuple[ParentalRating, ...]:
    ratings = []
    for guidance in get_child_elements(basic, "ParentalGuidance"):
        scheme = get_child_value(guidance, "ParentalRating", attribute="href") or None
        age_text = (get_child_value(guidance, "MinimumAge") or "").strip()
        minimum_age = int(age_text) if age_text.isdigit() else None
        if scheme is None and minimum_age is None:
            continue
        ratings.append(ParentalRating(scheme=scheme, minimum_age=minimum_age))
    return tuple(ratings)


def _keywords(basic: ET.Element) -> Tuple[Keyword, ...]:
    keywords = []
    for element in get_child_elements(basic, "Keyword"):
        value = text_content(element).strip()
        if value:
            keywords.append(Keyword(value=value, type=element.get("type") or None))
    return tuple(keywords)


def _credits(tree: XmlTree, basic: ET.Element) -> Tuple[CreditItem, ...]:
    credits = []
    for item in get_child_elements(get_child_element(basic, "CreditsList"), "CreditsItem"):
        role_el = get_child_element(item, "Role")
        role = None
        if role_el is not None:
            role = role_el.get("href") or text_content(role_el).strip() or None
        name_el = get_child_element(item, "PersonName")
        if name_el is None:
            name_el = get_child_element(item, "OrganizationName")
        credit = CreditItem(
            role=role,
            person_name=get_text(tree, name_el),
            character_name=get_text(tree, get_child_element(item, "Character")),
        )
        if credit != CreditItem():
            credits.append(credit)
    return tuple(credits)


def _program_image(element: ET.Element) -> Optional[MediaRepresentation]:
    for material in get_child_elements(element, "RelatedMaterial"):
        how_related = (get_child_value(material, "HowRelated", attribute="href") or "").strip()
        if how_related == PROGRAM_IMAGE:
            media = get_media(get_child_element(material, "MediaLocator"))
            if media is not None:
                return media
    return None
