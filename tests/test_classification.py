from __future__ import annotations

import pytest

from dvbi_metadata import classification as cs


@pytest.mark.parametrize(
    "urn, expected",
    [
        ("urn:mpeg:mpeg7:cs:AudioCodingFormatCS:2001:1", "AC3"),
        ("urn:mpeg:mpeg7:cs:AudioCodingFormatCS:2001:3.2", "MP1-L2"),
        ("urn:mpeg:mpeg7:cs:AudioCodingFormatCS:2001:4.3.3", "AAC-SP"),
        ("urn:dvb:metadata:cs:AudioCodecCS:2007:1.2.5", "MP4-HE-L5"),
        ("urn:dvb:metadata:cs:AudioCodecCS:2020:4.1.1", "AC4-CIP-L0"),
        ("urn:dvb:metadata:cs:AudioCodecCS:2020:6.1.3", "MPEG-H 3D LC-3"),
    ],
)
def test_audio_coding_terms(urn: str, expected: str) -> None:
    assert cs.audio_coding_cs(urn) == expected


def test_video_codec_terms() -> None:
    assert cs.video_codec_cs("urn:dvb:metadata:cs:VideoCodecCS:2022:1.1.1") == "H.264-base-L1"
    assert cs.video_codec_cs("urn:dvb:metadata:cs:VideoCodecCS:2022:1.4.15") == "H.264-high-L5"
    assert cs.video_codec_cs("urn:dvb:metadata:cs:VideoCodecCS:2022:3.1.1") == "H.262-main-main"
    assert cs.video_codec_cs("urn:dvb:metadata:cs:VideoCodecCS:2022:4.2.19") == "H.265-main10-L6.1"
    assert cs.video_codec_cs("urn:dvb:metadata:cs:VideoCodecCS:2022:6.1.1") == "VVC-main10-L3.0"


def test_translation_marker_is_stripped() -> None:
    assert cs.subtitle_purpose_cs("urn:tva:metadata:cs:SubtitlePurposeCS:2023:2") == "subtitle_purpose_hard_of_hearing"
    assert cs.accessibility_purpose_cs("urn:tva:metadata:cs:AccessibilityPurposeCS:2023:3.2") == "femaleVoice"


def test_unknown_term_maps_to_error_marker() -> None:
    assert cs.subtitle_carriage_cs("urn:tva:metadata:cs:SubtitleCarriageCS:2023:42") == cs.UNKNOWN_VALUE
    # a known term looked up in the wrong table is unknown as well
    assert cs.audio_presentation_cs("urn:tva:metadata:cs:SubtitleCarriageCS:2023:1") == "!err!"


@pytest.mark.parametrize("empty", [None, "", []])
def test_empty_input_maps_to_none(empty) -> None:
    assert cs.subtitle_coding_cs(empty) is None


def test_list_input_keeps_order() -> None:
    result = cs.subtitle_carriage_cs(
        [
            "urn:tva:metadata:cs:SubtitleCarriageCS:2023:5",
            "urn:tva:metadata:cs:SubtitleCarriageCS:2023:7",
            "urn:tva:metadata:cs:SubtitleCarriageCS:2023:2.1",
        ]
    )
    assert result == [cs.OPEN_SUBTITLES, cs.UNKNOWN_VALUE, "ttml"]


def test_app_platform_terms() -> None:
    assert cs.standard_version("urn:hbbtv:appinformation:standardversion:hbbtv:1.7.1") == "HbbTV 2.0.4"
    assert cs.standard_version("urn:cta:wave:appinformation:standardversion:cta5000f:2023") == "CTA-5000-F"
    assert cs.optional_feature("urn:hbbtv:appinformation:optionalfeature:hbbtv:graphics_02") == "+GRAPHICS_02"


def test_term_list_and_single_helpers() -> None:
    assert cs.map_term_list([], cs.SUBTITLE_CODING_CS) is None
    assert cs.map_term_list(["urn:tva:metadata:cs:SubtitleCodingFormatCS:2023:4"], cs.SUBTITLE_CODING_CS) == (
        "WebVTT",
    )
    assert cs.map_single(None, cs.AUDIO_PRESENTATION_CS) is None
    assert cs.map_single("urn:mpeg:mpeg7:cs:AudioPresentationCS:2007:4", cs.AUDIO_PRESENTATION_CS) == "surround"


def test_tables_have_unique_terms() -> None:
    for table in (
        cs.SUBTITLE_CARRIAGE_CS,
        cs.SUBTITLE_CODING_CS,
        cs.ALL_AUDIO_CODING_CS,
        cs.VIDEO_CODEC_CS,
        cs.APP_STANDARD_CS,
        cs.OPTIONAL_FEATURE_CS,
        cs.ACCESSIBILITY_PURPOSE_CS,
    ):
        values = [entry.value for entry in table]
        assert len(values) == len(set(values))
