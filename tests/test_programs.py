from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from dvbi_metadata.models import CreditItem, Keyword, LocalizedString, MediaRepresentation, ParentalRating
from dvbi_metadata.programs import (
    build_schedule_url,
    parse_duration,
    parse_program_info,
    parse_schedule,
    parse_timestamp,
)

FIXTURE_DIR = Path(__file__).parent / "fixtures"


def _ms(hour: int, minute: int = 0, second: int = 0) -> int:
    moment = datetime(2024, 5, 1, hour, minute, second, tzinfo=timezone.utc)
    return int(moment.timestamp()) * 1000


@pytest.fixture()
def now_next_xml() -> str:
    return (FIXTURE_DIR / "now_next.xml").read_text(encoding="utf-8")


@pytest.fixture()
def schedule_xml() -> str:
    return (FIXTURE_DIR / "schedule.xml").read_text(encoding="utf-8")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("PT1H", 3_600_000),
        ("PT1H30M", 5_400_000),
        ("PT45S", 45_000),
        ("PT0.5S", 500),
        ("P1DT2H", 93_600_000),
        ("P0Y0M0DT1H", 3_600_000),
        ("PT1.5H", 5_400_000),
        ("PT1H0M0.000S", 3_600_000),
        (" PT30M ", 1_800_000),
        ("P1W", 604_800_000),
        ("-PT1H", None),
        ("1 hour", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_duration(text, expected) -> None:
    assert parse_duration(text) == expected


def test_parse_timestamp() -> None:
    assert parse_timestamp("2024-05-01T10:00:00Z") == _ms(10)
    assert parse_timestamp("2024-05-01T12:00:00+02:00") == _ms(10)
    assert parse_timestamp("2024-05-01T10:00:00.25Z") == _ms(10) + 250
    assert parse_timestamp("2024-05-01T10:00:00.1234567Z") == _ms(10) + 123
    # no zone designator is read as UTC
    assert parse_timestamp("2024-05-01T10:00:00") == _ms(10)
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(None) is None


def test_now_next_picks_current_and_following(now_next_xml: str) -> None:
    result = parse_program_info(now_next_xml, now=_ms(10, 30))
    assert result.now.id == "crid://example.com/p1"
    assert result.next.id == "crid://example.com/p2"


def test_now_next_ignores_published_end_time(now_next_xml: str) -> None:
    result = parse_program_info(now_next_xml, now=_ms(11, 15))
    assert result.now.id == "crid://example.com/p2"
    assert result.now.end_time == _ms(11, 30)
    assert result.next.id == "crid://example.com/p3"


def test_now_next_accepts_datetime(now_next_xml: str) -> None:
    result = parse_program_info(now_next_xml, now=datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc))
    assert result.now is None
    assert result.next.id == "crid://example.com/p1"


def test_now_next_after_last_programme(now_next_xml: str) -> None:
    result = parse_program_info(now_next_xml, now=_ms(12, 45))
    assert result.now is None
    assert result.next is None


def test_now_next_programme_details(now_next_xml: str) -> None:
    program = parse_program_info(now_next_xml, now=_ms(10, 30)).now
    assert program.titles == (LocalizedString("de", "Morgenmagazin"), LocalizedString("en", "Morning Magazine"))
    assert program.start_time == _ms(10)
    assert program.end_time == _ms(11)
    assert program.description == "Nachrichten und Gespräche am Morgen."
    assert program.genre == "urn:tva:metadata:cs:ContentCS:2011:3.1.1"
    assert program.parental_ratings == (
        ParentalRating(scheme="urn:fvc:metadata:cs:ContentRatingCS:2014-07:twelve", minimum_age=12),
    )
    assert program.keywords == (Keyword("news", "main"), Keyword("talk"))
    assert program.credits == (
        CreditItem(
            role="urn:tva:metadata:cs:TVARoleCS:2011:V83",
            person_name=LocalizedString("de", "Anna Beispiel"),
            character_name=LocalizedString("de", "Moderation"),
        ),
    )
    assert program.media_image == MediaRepresentation("https://img.example.com/p1.jpg", "image/jpeg")
    assert program.accessibility_attributes is None


def test_now_next_accessibility_and_medium_synopsis(now_next_xml: str) -> None:
    result = parse_program_info(now_next_xml, now=_ms(11, 15))
    assert result.now.description == "Das Wetter."
    assert result.next.accessibility_attributes.subtitles[0].carriage == ("open",)


def test_now_next_embedded_schedule_event() -> None:
    xml = """
    <TVAMain>
      <ScheduleEvent>
        <PublishedStartTime>2024-05-01T10:00:00Z</PublishedStartTime>
        <PublishedDuration>PT2H</PublishedDuration>
        <ProgramInformation programId="crid://example.com/inline">
          <BasicDescription><Title>Inline</Title></BasicDescription>
        </ProgramInformation>
      </ScheduleEvent>
      <ProgramInformation programId="crid://example.com/own">
        <BasicDescription><Title>Own times</Title></BasicDescription>
        <PublishedStartTime>2024-05-01T12:00:00Z</PublishedStartTime>
        <PublishedDuration>PT1H</PublishedDuration>
      </ProgramInformation>
    </TVAMain>
    """
    result = parse_program_info(xml, now=_ms(11))
    assert result.now.id == "crid://example.com/inline"
    assert result.now.end_time == _ms(12)
    assert result.next.id == "crid://example.com/own"
    assert result.next.start_time == _ms(12)


def test_now_next_malformed_input() -> None:
    result = parse_program_info("<TVAMain><broken>", now=0)
    assert result.now is None and result.next is None


def test_schedule_is_sorted_and_resolves_crids(schedule_xml: str) -> None:
    programs = parse_schedule(schedule_xml)
    assert [program.id for program in programs] == [
        "crid://example.com/embedded",
        "crid://example.com/s1",
        "imi:example.com/ev4",
    ]


def test_schedule_prefers_published_end_time(schedule_xml: str) -> None:
    news = parse_schedule(schedule_xml)[1]
    assert news.start_time == _ms(12)
    assert news.end_time == _ms(12, 45)
    assert news.description == "Headlines of the day."
    assert news.cps_index == "cps-news"


def test_schedule_event_with_own_description(schedule_xml: str) -> None:
    short = parse_schedule(schedule_xml)[2]
    assert short.titles == (LocalizedString("de", "Kurznachrichten"),)
    assert short.start_time == _ms(14) + 500
    assert short.end_time == _ms(14, 15) + 500


def test_schedule_embedded_programme(schedule_xml: str) -> None:
    breakfast = parse_schedule(schedule_xml)[0]
    assert breakfast.titles == (LocalizedString("en", "Breakfast Show"),)
    assert (breakfast.start_time, breakfast.end_time) == (_ms(10), _ms(10, 30))


def test_schedule_malformed_input() -> None:
    assert parse_schedule("") == []
    assert parse_schedule("<TVAMain>") == []


def test_build_schedule_url() -> None:
    url = build_schedule_url("https://guide.example.com/schedule?sid=one", _ms(10) + 5)
    assert url == "https://guide.example.com/schedule?sid=one&start=2024-05-01T10%3A00%3A00.005Z&duration=PT24H"
    url = build_schedule_url(
        "https://guide.example.com/schedule", datetime(2024, 5, 1, 6, tzinfo=timezone.utc), window_hours=6
    )
    assert url.endswith("start=2024-05-01T06%3A00%3A00.000Z&duration=PT6H")


def test_is_on_air_is_half_open(now_next_xml: str) -> None:
    program = parse_program_info(now_next_xml, now=_ms(10, 30)).now
    assert program.is_on_air(_ms(10))
    assert not program.is_on_air(_ms(11))


def test_now_next_at_programme_boundary(now_next_xml: str) -> None:
    result = parse_program_info(now_next_xml, now=_ms(11))
    assert result.now.id == "crid://example.com/p2"
    assert result.next.id == "crid://example.com/p3"


def test_parsing_is_repeatable(now_next_xml: str, schedule_xml: str) -> None:
    assert parse_program_info(now_next_xml, now=_ms(10)) == parse_program_info(now_next_xml, now=_ms(10))
    assert parse_schedule(schedule_xml) == parse_schedule(schedule_xml)
