"""
TV-Anytime ``AccessibilityAttributes`` parsing.

The same element shape is attached to services, service instances and
programmes, so every owner shares this parser.

Deutsch:
    Auswertung von TVA ``AccessibilityAttributes`` (Untertitel, Audiodeskription,
    Gebärdensprache, Dialoganhebung, gesprochene Untertitel, UI-Merkmale).
"""

from __future__ import annotations

import logging
from dataclasses import fields
from typing import Dict, List, Optional, Tuple
from xml.etree import ElementTree as ET

from . import classification as cs
from .models import (
    AccessibilityAttributes,
    AppAndPurpose,
    AudioAccessibility,
    AudioAttributes,
    AudioDescription,
    Signing,
    SubtitleAttributes,
)
from .xml_nav import get_child_element, get_child_elements, get_child_value, get_child_values, text_content

log = logging.getLogger(__name__)

UNSPECIFIED_PLATFORM = "unspecified platform"

_UI_CATEGORIES = (
    ("magnification_ui", "MagnificationUIAttributes"),
    ("high_contrast_ui", "HighContrastUIAttributes"),
    ("screen_reader_ui", "ScreenReaderAttributes"),
    ("response_to_user_action_ui", "ResponseToUserActionAttributes"),
)


def parse_accessibility_attributes(element: Optional[ET.Element]) -> Optional[AccessibilityAttributes]:
    """
    Map an ``AccessibilityAttributes`` element to :class:`AccessibilityAttributes`.

    Categories without usable entries stay ``None``; if no category is left
    the function returns ``None`` instead of an empty record.

    Deutsch:
        Liefert ``None``, wenn das Element keine verwertbaren Angaben enthält.
    """
    if element is None:
        return None

    values: Dict[str, Optional[tuple]] = {
        "subtitles": _non_empty([_parse_subtitle(item) for item in get_child_elements(element, "SubtitleAttributes")]),
        "audio_descriptions": _non_empty(
            [_parse_audio_description(item) for item in get_child_elements(element, "AudioDescriptionAttributes")]
        ),
        "signings": _non_empty([_parse_signing(item) for item in get_child_elements(element, "SigningAttributes")]),
        "dialogue_enhancements": _non_empty(
            [_parse_audio_accessibility(item) for item in get_child_elements(element, "DialogueEnhancementAttributes")]
        ),
        "spoken_subtitles": _non_empty(
            [_parse_audio_accessibility(item) for item in get_child_elements(element, "SpokenSubtitlesAttributes")]
        ),
    }
    for key, tag in _UI_CATEGORIES:
        entries = [_parse_app_and_purpose(item) for item in get_child_elements(element, tag)]
        values[key] = _non_empty([entry for entry in entries if entry.app is not None or entry.purpose is not None])

    if all(value is None for value in values.values()):
        log.debug("AccessibilityAttributes without usable entries ignored")
        return None
    return AccessibilityAttributes(**values)


def parse_audio_attributes(element: Optional[ET.Element]) -> Optional[AudioAttributes]:
    if element is None:
        return None
    language = get_child_value(element, "AudioLanguage")
    return AudioAttributes(
        coding=cs.map_single(get_child_value(element, "Coding", attribute="href"), cs.ALL_AUDIO_CODING_CS),
        mix_type=cs.map_single(get_child_value(element, "MixType", attribute="href"), cs.AUDIO_PRESENTATION_CS),
        language=language or None,
    )


def application_requirement(element: Optional[ET.Element]) -> Optional[str]:
    """
    Describe the first ``AppInformation`` child as ``"<standard>; <feature>, ..."``.

    Returns ``None`` when the element carries no ``AppInformation``.
    """
    app = get_child_element(element, "AppInformation")
    if app is None:
        return None

    standard = UNSPECIFIED_PLATFORM
    required = get_child_element(app, "RequiredStandardVersion")
    if required is not None:
        mapped = cs.map_single(text_content(required).strip(), cs.APP_STANDARD_CS)
        if mapped:
            standard = mapped

    features: List[str] = []
    for option in get_child_elements(app, "RequiredOptionalFeature"):
        mapped = cs.map_single(text_content(option).strip(), cs.OPTIONAL_FEATURE_CS)
        if mapped:
            features.append(mapped)

    if features:
        return f"{standard}; {', '.join(features)}"
    return standard


def _parse_subtitle(element: ET.Element) -> SubtitleAttributes:
    return SubtitleAttributes(
        language=get_child_value(element, "SubtitleLanguage") or None,
        carriage=cs.map_term_list(get_child_values(element, "Carriage", attribute="href"), cs.SUBTITLE_CARRIAGE_CS),
        coding=cs.map_term_list(get_child_values(element, "Coding", attribute="href"), cs.SUBTITLE_CODING_CS),
        purpose=cs.map_term_list(get_child_values(element, "Purpose", attribute="href"), cs.SUBTITLE_PURPOSE_CS),
        for_tts=get_child_value(element, "SuitableForTTS") or None,
        app=application_requirement(element),
    )


def _parse_audio_description(element: ET.Element) -> AudioDescription:
    mix = get_child_value(element, "ReceiverMix") or "false"
    return AudioDescription(
        audio_attributes=parse_audio_attributes(get_child_element(element, "AudioAttributes")),
        mix=mix.strip().lower(),
        app=application_requirement(element),
    )


def _parse_signing(element: ET.Element) -> Signing:
    return Signing(
        coding=cs.map_single(get_child_value(element, "Coding", attribute="href"), cs.VIDEO_CODEC_CS),
        language=get_child_value(element, "SignLanguage") or None,
        closed=get_child_value(element, "Closed") or None,
        app=application_requirement(element),
    )


def _parse_audio_accessibility(element: ET.Element) -> AudioAccessibility:
    return AudioAccessibility(
        audio_attributes=parse_audio_attributes(get_child_element(element, "AudioAttributes")),
        app=application_requirement(element),
    )


def _parse_app_and_purpose(element: ET.Element) -> AppAndPurpose:
    return AppAndPurpose(
        app=application_requirement(element),
        purpose=cs.map_term_list(get_child_values(element, "Purpose", attribute="href"), cs.ACCESSIBILITY_PURPOSE_CS),
    )


def _non_empty(items: list) -> Optional[Tuple]:
    return tuple(items) if items else None


def present_categories(attributes: Optional[AccessibilityAttributes]) -> List[str]:
    """Names of the categories that carry at least one entry."""
    if attributes is None:
        return []
    return [item.name for item in fields(attributes) if getattr(attributes, item.name) is not None]
