"""Sample sanitization.

The device occasionally reports an all-ones record
``{0xffffffff, 0xff, 0xffff}``. It carries no signal and is dropped before any
processing. No other validation happens here: malformed but non-sentinel
samples pass through and are handled downstream.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator

from lighthouse_decoder.models.samples import INVALID_SAMPLE, Sample


SampleFilter = Callable[[Sample], bool]


def is_sample_valid(sample: Sample) -> bool:
    """False only for the exact all-ones sentinel sample."""
    return not (
        sample.timestamp == INVALID_SAMPLE.timestamp
        and sample.sensor_id == INVALID_SAMPLE.sensor_id
        and sample.length == INVALID_SAMPLE.length
    )


def filter_samples(samples: Iterable[Sample], predicate: SampleFilter) -> Iterator[Sample]:
    """Lazily yield the samples accepted by ``predicate``, preserving order."""
    for s in samples:
        if predicate(s):
            yield s


def sanitize(samples: Iterable[Sample]) -> Iterator[Sample]:
    """Drop sentinel samples.

    The result is lazy and order preserving; it can be iterated again only if
    ``samples`` itself can.
    """
    return filter_samples(samples, is_sample_valid)
