"""
Classification scheme (CS) term mappings.

DVB-I, TV-Anytime and MPEG-7 documents identify codecs, subtitle formats,
accessibility purposes and application platforms through controlled-vocabulary
URNs. This module translates those URNs into short labels using static lookup
tables.

Deutsch:
    Abbildung von Klassifikationsschema-URNs (Codecs, Untertitel, Barriere-
    freiheit, Applikationsplattformen) auf kurze, lesbare Bezeichnungen.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .models import CSMapEntry

logger = logging.getLogger(__name__)

UNKNOWN_VALUE = "!err!"
I18N_MARKER = "~"
OPEN_SUBTITLES = "open"

CSTable = Tuple[CSMapEntry, ...]
CSInput = Union[str, Sequence[str], None]
CSOutput = Union[str, List[str], None]


def _terms(uri: str, pairs: Iterable[Tuple[str, str]]) -> CSTable:
    return tuple(CSMapEntry(value=f"{uri}:{term}", definition=definition) for term, definition in pairs)


# Subtitle carriage
SUBTITLE_CARRIAGE_CS_URI = "urn:tva:metadata:cs:SubtitleCarriageCS:2023"
SUBTITLE_CARRIAGE_CS = _terms(
    SUBTITLE_CARRIAGE_CS_URI,
    [
        ("1", "app"),
        ("2.1", "ttml"),
        ("3", "isobmff"),
        ("4", "standalone"),
        ("5", OPEN_SUBTITLES),
        ("99", "other"),
    ],
)

# Subtitle coding format
SUBTITLE_CODING_CS_URI = "urn:tva:metadata:cs:SubtitleCodingFormatCS:2023"
SUBTITLE_CODING_CS = _terms(
    SUBTITLE_CODING_CS_URI,
    [
        ("1", "WST"),
        ("2.1.2", "DVB bmp 1.2.1"),
        ("2.1.3", "DVB bmp 1.3.1"),
        ("2.1.4", "DVB bmp 1.5.1"),
        ("2.1.5", "DVB bmp 1.6.1"),
        ("2.2", "DVB char"),
        ("3.1", "EBU-TT"),
        ("3.2.1", "EBU-TT-D 1.0"),
        ("3.2.2", "EBU-TT-D 1.0.1"),
        ("3.3", "SMPTE-TT"),
        ("3.4.1", "CFF-TT-t"),
        ("3.4.2", "CFF-TT-i"),
        ("3.5", "SDP-US"),
        ("3.6.1.1", "IMSC-t 1.0"),
        ("3.6.1.2", "IMSC-t 1.0.1"),
        ("3.6.1.3", "IMSC-t 1.1"),
        ("3.6.1.4", "IMSC-t 1.2"),
        ("3.6.2.1", "IMSC-i 1.0"),
        ("3.6.2.2", "IMSC-i 1.0.1"),
        ("3.6.2.3", "IMSC-i 1.1"),
        ("3.6.2.4", "IMSC-i 1.2"),
        ("3.7", "ARIB-TT"),
        ("4", "WebVTT"),
        ("5", "SRT"),
        ("8", "app"),
        ("9", OPEN_SUBTITLES),
        ("99", "other"),
    ],
)

# Audio presentation (mix type)
AUDIO_PRESENTATION_CS_URI = "urn:mpeg:mpeg7:cs:AudioPresentationCS:2007"
AUDIO_PRESENTATION_CS = _terms(
    AUDIO_PRESENTATION_CS_URI,
    [
        ("1", "none"),
        ("2", "mono"),
        ("3", "stereo"),
        ("4", "surround"),
        ("5", "home"),
        ("6", "movie"),
    ],
)

# Audio coding: MPEG-7 formats plus the two DVB codec schemes
MPEG7_AUDIO_CODING_CS_URI = "urn:mpeg:mpeg7:cs:AudioCodingFormatCS:2001"
MPEG7_AUDIO_CODING_CS = _terms(
    MPEG7_AUDIO_CODING_CS_URI,
    [
        ("1", "AC3"),
        ("2", "DTS"),
        ("3.1", "MP1-L1"),
        ("3.2", "MP1-L2"),
        ("3.3", "MP1-L3"),
        ("4.1.1", "MP2-LSR-L1"),
        ("4.1.2", "MP2-LSR-L2"),
        ("4.1.3", "MP2-LSR-L3"),
        ("4.2.1", "MP2-BCmc-L1"),
        ("4.2.2", "MP2-BCmc-L2"),
        ("4.2.3", "MP2-BCmc-L3"),
        ("4.3.1", "AAC-LC"),
        ("4.3.2", "AAC-MP"),
        ("4.3.3", "AAC-SP"),
        ("4.4", "MP3"),
        ("5.1.1", "MP4-Synth-L1"),
        ("5.1.2", "MP4-Synth-L2"),
        ("5.1.3", "MP4-Synth-L3"),
        ("5.2.1", "MP4-Speech-L1"),
        ("5.2.2", "MP4-Speech-L2"),
    ]
    + [(f"5.3.{level}", f"MP4-Scale-L{level}") for level in range(1, 5)]
    + [(f"5.4.{level}", f"MP4-Main-L{level}") for level in range(1, 5)]
    + [(f"5.5.{level}", f"MP4-HQ-L{level}") for level in range(1, 9)]
    + [(f"5.6.{level}", f"MP4-LD-L{level}") for level in range(1, 9)]
    + [(f"5.7.{level}", f"MP4-NA-L{level}") for level in range(1, 5)]
    + [(f"5.8.{level}", f"MP4-MAI-L{level}") for level in range(1, 7)]
    + [
        ("6", "AMR"),
        ("7.1", "G.723"),
        ("7.2", "G.726"),
        ("7.3", "G.728"),
        ("7.4", "G.729"),
        ("8", "PCM"),
        ("10", "ATRAC"),
        ("11", "ATRAC2"),
        ("12", "ATRAC3"),
    ],
)

_DVB_AUDIO_CODEC_COMMON = [
    ("1.1.1", "MP4-Adv-L1"),
    ("1.1.2", "MP4-Adv-L2"),
    ("1.1.3", "MP4-Adv-L4"),
    ("1.1.4", "MP4-Adv-L5"),
    ("1.2.2", "MP4-HE-L2"),
    ("1.2.3", "MP4-HE-L3"),
    ("1.2.4", "MP4-HE-L4"),
    ("1.2.5", "MP4-HE-L5"),
    ("1.3.2", "MP4-HEv2-L2"),
    ("1.3.3", "MP4-HEv2-L3"),
    ("1.3.4", "MP4-HEv2-L4"),
    ("1.3.5", "MP4-HEv2-L5"),
    ("2.1", "AMR-WB+"),
    ("3.1", "E-AC3"),
]

DVB_AUDIO_CODEC_2007_CS_URI = "urn:dvb:metadata:cs:AudioCodecCS:2007"
DVB_AUDIO_CODEC_2007_CS = _terms(DVB_AUDIO_CODEC_2007_CS_URI, _DVB_AUDIO_CODEC_COMMON)

DVB_AUDIO_CODEC_2020_CS_URI = "urn:dvb:metadata:cs:AudioCodecCS:2020"
DVB_AUDIO_CODEC_2020_CS = _terms(
    DVB_AUDIO_CODEC_2020_CS_URI,
    _DVB_AUDIO_CODEC_COMMON
    + [
        ("4.1.1", "AC4-CIP-L0"),
        ("4.1.2", "AC4-CIP-L1"),
        ("4.1.3", "AC4-CIP-L2"),
        ("4.1.4", "AC4-CIP-L3"),
        ("5.1.1", "DTS-HD Core"),
        ("5.1.2", "DTS-HD LBR"),
        ("5.1.3", "DTS-HD Core+Ext"),
        ("5.1.4", "DTS-HD Lossless"),
        ("5.2.1", "DTS-UHD 2"),
        ("5.2.2", "DTS-UHD 3"),
        ("6.1.1", "MPEG-H 3D LC-1"),
        ("6.1.2", "MPEG-H 3D LC-2"),
        ("6.1.3", "MPEG-H 3D LC-3"),
    ],
)

ALL_AUDIO_CODING_CS = MPEG7_AUDIO_CODING_CS + DVB_AUDIO_CODEC_2020_CS + DVB_AUDIO_CODEC_2007_CS

# Video codec
VIDEO_CODEC_CS_URI = "urn:dvb:metadata:cs:VideoCodecCS:2022"

_H264_LEVELS = ("1", "1b", "1.1", "1.2", "1.3", "2", "2.1", "2.2", "3", "3.1", "3.2", "4", "4.1", "4.2", "5", "5.1")
_H264_PROFILES = (
    (1, "base", range(1, 17)),
    (2, "main", range(1, 17)),
    (3, "ext", range(1, 17)),
    (4, "high", range(1, 17)),
    (5, "high10", range(1, 17)),
    (6, "high422", range(1, 17)),
    (7, "high444", range(1, 17)),
    (8, "scal-high", range(9, 15)),
    (9, "stereo-high", range(9, 13)),
)
_H265_MAIN_LEVELS = ((1, "1"), (6, "2"), (7, "2.1"), (9, "3"), (10, "3.1"), (12, "4"), (13, "4.1"))
_H265_MAIN10_LEVELS = _H265_MAIN_LEVELS + ((15, "5"), (16, "5.1"), (17, "5.2"), (18, "6"), (19, "6.1"))
_AVS3_HIGH10_LEVELS = (
    "2.0.15",
    "2.0.30",
    "2.0.60",
    "4.0.30",
    "4.0.60",
    "6.0.30",
    "6.4.30",
    "6.0.60",
    "6.4.60",
    "6.0.120",
    "6.4.120",
    "8.0.30",
    "8.4.30",
    "8.0.60",
    "8.4.60",
    "8.0.120",
    "8.4.120",
    "10.0.30",
    "10.4.30",
    "10.0.60",
    "10.4.60",
    "10.0.120",
    "10.4.120",
)
_VVC_MAIN10_LEVELS = ("3.0", "3.1", "4.0", "4.1", "5.0", "5.1", "5.2", "6.0", "6.1", "6.2")

VIDEO_CODEC_CS = _terms(
    VIDEO_CODEC_CS_URI,
    [
        (f"1.{index}.{level}", f"H.264-{profile}-L{_H264_LEVELS[level - 1]}")
        for index, profile, levels in _H264_PROFILES
        for level in levels
    ]
    + [
        ("2.1.1", "VC1-simp-LL"),
        ("2.1.2", "VC1-simp-ML"),
        ("2.2.1", "VC1-main-LL"),
        ("2.2.2", "VC1-main-ML"),
        ("2.2.3", "VC1-main-HL"),
    ]
    + [(f"2.3.{level + 1}", f"VC1-adv-L{level}") for level in range(0, 5)]
    + [
        ("3.1.1", "H.262-main-main"),
        ("3.1.2", "H.262-main-high"),
    ]
    + [(f"4.1.{term}", f"H.265-main-L{level}") for term, level in _H265_MAIN_LEVELS]
    + [(f"4.2.{term}", f"H.265-main10-L{level}") for term, level in _H265_MAIN10_LEVELS]
    + [(f"5.1.{pos}", f"AVS3-high10-{level}") for pos, level in enumerate(_AVS3_HIGH10_LEVELS, start=1)]
    + [(f"6.1.{pos}", f"VVC-main10-L{level}") for pos, level in enumerate(_VVC_MAIN10_LEVELS, start=1)],
)

# Subtitle purpose (labels marked for translation)
SUBTITLE_PURPOSE_CS_URI = "urn:tva:metadata:cs:SubtitlePurposeCS:2023"
SUBTITLE_PURPOSE_CS = _terms(
    SUBTITLE_PURPOSE_CS_URI,
    [
        ("1", "~subtitle_purpose_translation"),
        ("2", "~subtitle_purpose_hard_of_hearing"),
        ("3", "~subtitle_purpose_audio_description"),
        ("4", "~subtitle_purpose_commentary"),
        ("5", "~subtitle_purpose_forced_narrative"),
    ],
)

# Application platform standard versions
HBBTV_STANDARD_URI = "urn:hbbtv:appinformation:standardversion:hbbtv"
CTA_WAVE_STANDARD_URI = "urn:cta:wave:appinformation:standardversion"
APP_STANDARD_CS = _terms(
    HBBTV_STANDARD_URI,
    [
        ("1.2.1", "HbbTV 1.5"),
        ("1.5.1", "HbbTV 2.0.2"),
        ("1.6.1", "HbbTV 2.0.3"),
        ("1.7.1", "HbbTV 2.0.4"),
    ],
) + _terms(
    CTA_WAVE_STANDARD_URI,
    [
        ("cta5000:2017", "CTA-5000"),
        ("cta5000a:2018", "CTA-5000-A"),
        ("cta5000b:2019", "CTA-5000-B"),
        ("cta5000c:2020", "CTA-5000-C"),
        ("cta5000d:2021", "CTA-5000-D"),
        ("cta5000e:2022", "CTA-5000-E"),
        ("cta5000f:2023", "CTA-5000-F"),
    ],
)

# Application optional features
HBBTV_OPTION_URI = "urn:hbbtv:appinformation:optionalfeature:hbbtv"
OPTIONAL_FEATURE_CS = _terms(
    HBBTV_OPTION_URI,
    [
        ("2decoder", "+2DECODER"),
        ("2html", "+2HTML"),
        ("graphics_01", "+GRAPHICS_01"),
        ("graphics_02", "+GRAPHICS_02"),
        ("aria", "+ARIA"),
    ],
)

# Accessibility purpose (UI features)
ACCESSIBILITY_PURPOSE_CS_URI = "urn:tva:metadata:cs:AccessibilityPurposeCS:2023"
ACCESSIBILITY_PURPOSE_CS = _terms(
    ACCESSIBILITY_PURPOSE_CS_URI,
    [
        ("1.1", "~textMagnification"),
        ("1.2", "~magnifierGlass"),
        ("1.3", "~screenZoom"),
        ("1.4", "~largeLayout"),
        ("2.1", "~monochrome"),
        ("3.1", "~maleVoice"),
        ("3.2", "~femaleVoice"),
        ("3.3", "~configurableVerbosity"),
        ("3.4", "~speed"),
        ("4.1", "~audio"),
        ("4.2", "~visual"),
        ("4.3", "~haptic"),
    ],
)


def map_value(value: str, table: CSTable) -> str:
    """
    Map a single term.

    Args:
        value: Full URN of the term, e.g. ``urn:mpeg:mpeg7:cs:AudioCodingFormatCS:2001:1``
        table: One of the ``*_CS`` tables of this module

    Returns:
        The definition without the leading ``~`` translation marker, or
        ``"!err!"`` if the URN is not part of the table.
    """
    for entry in table:
        if entry.value == value:
            definition = entry.definition
            return definition[1:] if definition.startswith(I18N_MARKER) else definition

    logger.debug("Unknown classification term '%s'", value)
    return UNKNOWN_VALUE


def map_values(values: CSInput, table: CSTable) -> CSOutput:
    """
    Map a term or an ordered list of terms.

    ``None``, an empty string and an empty list all mean "no value" and map to
    ``None``. A list maps element-wise and keeps its order.

    Deutsch:
        Bildet einen Begriff oder eine Liste von Begriffen ab. Leere Eingaben
        ergeben ``None``, unbekannte Begriffe ``"!err!"``.
    """
    if values is None:
        return None
    if isinstance(values, str):
        return map_value(values, table) if values else None
    if len(values) == 0:
        return None
    return [map_value(value, table) for value in values]


def map_term_list(values: Sequence[str], table: CSTable) -> Optional[Tuple[str, ...]]:
    """Element-wise mapping returned as a tuple, ``None`` for an empty list."""
    mapped = map_values(list(values), table)
    if mapped is None:
        return None
    return tuple(mapped)


def map_single(value: Optional[str], table: CSTable) -> Optional[str]:
    mapped = map_values(value, table)
    return mapped if isinstance(mapped, str) else None


def audio_coding_cs(values: CSInput) -> CSOutput:
    return map_values(values, ALL_AUDIO_CODING_CS)


def audio_presentation_cs(values: CSInput) -> CSOutput:
    return map_values(values, AUDIO_PRESENTATION_CS)


def video_codec_cs(values: CSInput) -> CSOutput:
    return map_values(values, VIDEO_CODEC_CS)


def subtitle_carriage_cs(values: CSInput) -> CSOutput:
    return map_values(values, SUBTITLE_CARRIAGE_CS)


def subtitle_coding_cs(values: CSInput) -> CSOutput:
    return map_values(values, SUBTITLE_CODING_CS)


def subtitle_purpose_cs(values: CSInput) -> CSOutput:
    return map_values(values, SUBTITLE_PURPOSE_CS)


def accessibility_purpose_cs(values: CSInput) -> CSOutput:
    return map_values(values, ACCESSIBILITY_PURPOSE_CS)


def standard_version(values: CSInput) -> CSOutput:
    return map_values(values, APP_STANDARD_CS)


def optional_feature(values: CSInput) -> CSOutput:
    return map_values(values, OPTIONAL_FEATURE_CS)
