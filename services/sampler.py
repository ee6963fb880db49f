"""Downsampling of reading sequences for charting."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List

from models.errors import InvalidReading
from models.records import Reading
from services.granularity import Granularity, bucket_key


class Sampler:
    """Keeps the chronologically first reading of every granularity bucket.

    The sampler holds no state between calls and never mutates its input.
    Readings with equal timestamps keep their original relative order, so the
    one supplied first is the one retained.
    """

    def sample(self, readings: Iterable[Reading], granularity: Granularity | str) -> List[Reading]:
        level = Granularity.parse(granularity)
        candidates = list(readings)
        if not candidates:
            return []

        for index, reading in enumerate(candidates):
            self._check_timestamp(index, reading)

        ordered = sorted(candidates, key=lambda reading: reading.timestamp)
        samples = [ordered[0]]
        anchor = bucket_key(ordered[0].timestamp, level)
        for reading in ordered[1:]:
            key = bucket_key(reading.timestamp, level)
            if key == anchor:
                continue
            samples.append(reading)
            anchor = key

        return samples

    @staticmethod
    def _check_timestamp(index: int, reading: Reading) -> None:
        timestamp = getattr(reading, "timestamp", None)
        if isinstance(timestamp, datetime) and timestamp.tzinfo is not None:
            return
        raise InvalidReading(
            f"Reading at position {index} has an unusable timestamp: {timestamp!r}",
            {"index": index, "timestamp": repr(timestamp)},
        )


def sample(readings: Iterable[Reading], granularity: Granularity | str) -> List[Reading]:
    """Sample ``readings`` with a throwaway :class:`Sampler`."""
    return Sampler().sample(readings, granularity)
