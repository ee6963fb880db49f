"""Unit tests for the downsampling logic."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from models.errors import InvalidGranularity, InvalidReading
from models.records import Reading
from services.granularity import Granularity
from services.sampler import Sampler, sample


def _reading(ts: str, value: str, topic_id: int = 1) -> Reading:
    """Helper to build readings from naive ISO strings interpreted as UTC."""

    timestamp = datetime.fromisoformat(ts).replace(tzinfo=timezone.utc)
    return Reading(timestamp=timestamp, topic_id=topic_id, value=value)


IRREGULAR = [
    _reading("2023-02-15T12:00:00", "g"),
    _reading("2023-01-01T00:00:00.500", "b"),
    _reading("2024-06-01T00:00:00", "h"),
    _reading("2023-01-01T00:00:00", "a"),
    _reading("2023-01-01T00:05:00", "d"),
    _reading("2023-01-01T00:00:00.500", "b2"),
    _reading("2023-01-02T00:00:00", "f"),
    _reading("2023-01-01T03:00:00", "e"),
    _reading("2023-01-01T00:00:01", "c"),
]

EXPECTED_VALUES = {
    Granularity.year: ["a", "h"],
    Granularity.month: ["a", "g", "h"],
    Granularity.date: ["a", "f", "g", "h"],
    Granularity.hour: ["a", "e", "f", "g", "h"],
    Granularity.minute: ["a", "d", "e", "f", "g", "h"],
    Granularity.second: ["a", "c", "d", "e", "f", "g", "h"],
    Granularity.millisecond: ["a", "b", "c", "d", "e", "f", "g", "h"],
}


def test_sample_empty_input_returns_empty_list() -> None:
    sampler = Sampler()

    for level in Granularity:
        assert sampler.sample([], level) == []


def test_sample_drops_readings_in_the_same_second() -> None:
    readings = [
        _reading("2024-01-01T10:00:00.100", "5"),
        _reading("2024-01-01T10:00:00.900", "6"),
        _reading("2024-01-01T10:00:01.200", "7"),
    ]

    result = Sampler().sample(readings, Granularity.second)

    assert result == [readings[0], readings[2]]


def test_sample_keeps_first_reading_of_month() -> None:
    readings = [_reading("2023-01-01T00:00:00", "1"), _reading("2023-01-02T00:00:00", "2")]

    result = Sampler().sample(readings, "month")

    assert [reading.value for reading in result] == ["1"]


@pytest.mark.parametrize("level", list(Granularity))
def test_sample_irregular_sequence_per_level(level: Granularity) -> None:
    result = Sampler().sample(IRREGULAR, level)

    assert [reading.value for reading in result] == EXPECTED_VALUES[level]


@pytest.mark.parametrize("level", list(Granularity))
def test_sample_output_is_sorted_and_no_longer_than_input(level: Granularity) -> None:
    result = Sampler().sample(IRREGULAR, level)

    timestamps = [reading.timestamp for reading in result]
    assert timestamps == sorted(timestamps)
    assert 0 < len(result) <= len(IRREGULAR)


@pytest.mark.parametrize("level", list(Granularity))
def test_sample_is_idempotent(level: Granularity) -> None:
    sampler = Sampler()

    once = sampler.sample(IRREGULAR, level)

    assert sampler.sample(once, level) == once


def test_coarser_levels_never_keep_more_readings() -> None:
    sampler = Sampler()

    lengths = [len(sampler.sample(IRREGULAR, level)) for level in Granularity]

    assert lengths == sorted(lengths)


@pytest.mark.parametrize("level", list(Granularity))
def test_identical_timestamps_keep_the_first_supplied(level: Granularity) -> None:
    first = _reading("2024-03-01T08:00:00", "A")
    second = _reading("2024-03-01T08:00:00", "B")

    assert Sampler().sample([first, second], level) == [first]
    assert Sampler().sample([second, first], level) == [second]


def test_sample_does_not_mutate_input() -> None:
    readings = list(IRREGULAR)

    Sampler().sample(readings, Granularity.hour)

    assert readings == IRREGULAR


def test_sample_accepts_iterators_and_level_names() -> None:
    readings = [_reading("2024-01-01T10:00:00", "x"), _reading("2024-01-01T10:59:59", "y")]

    result = sample(iter(readings), " HOUR ")

    assert result == [readings[0]]


def test_sample_buckets_in_utc() -> None:
    plus_two = timezone(timedelta(hours=2))
    new_year_local = Reading(
        timestamp=datetime(2024, 1, 1, 1, 30, tzinfo=plus_two), topic_id=1, value="late-2023"
    )
    new_year_utc = _reading("2024-01-01T00:10:00", "early-2024")

    result = Sampler().sample([new_year_utc, new_year_local], Granularity.year)

    assert [reading.value for reading in result] == ["late-2023", "early-2024"]


@pytest.mark.parametrize("level", ["week", "", None, 3])
def test_sample_rejects_unknown_granularity(level) -> None:
    with pytest.raises(InvalidGranularity):
        Sampler().sample(IRREGULAR, level)

    with pytest.raises(InvalidGranularity):
        Sampler().sample([], level)


def test_sample_rejects_naive_timestamps() -> None:
    readings = [
        _reading("2024-01-01T10:00:00", "ok"),
        Reading(timestamp=datetime(2024, 1, 1, 11), topic_id=1, value="naive"),
    ]

    with pytest.raises(InvalidReading) as excinfo:
        Sampler().sample(readings, Granularity.hour)

    assert excinfo.value.details["index"] == 1


def test_sample_rejects_non_datetime_timestamps() -> None:
    readings = [Reading(timestamp="2024-01-01", topic_id=1, value="x")]  # type: ignore[arg-type]

    with pytest.raises(InvalidReading):
        Sampler().sample(readings, Granularity.hour)
