"""Bounded fan-out of (shape, record) pairs onto a worker pool."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Protocol

from pydantic import BaseModel, ValidationError

from .attributes import decode_record
from .errors import AttributeDecodeWarning, SerializationFailure
from .geometry import map_geometry
from .models import AttributeRecord, Feature, Shape

logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    """Anything that accepts progress increments, e.g. a tqdm bar."""

    def update(self, n: int = 1) -> object: ...


class FeatureSink:
    """Shared result store with one reserved slot per input position.

    Writes go through a lock; reading the features back keeps input order and
    leaves out the slots of skipped pairs.
    """

    def __init__(self, size: int):
        self._slots: list[Feature | None] = [None] * size
        self._lock = threading.Lock()

    def put(self, index: int, feature: Feature) -> None:
        with self._lock:
            self._slots[index] = feature

    def features(self) -> list[Feature]:
        with self._lock:
            return [feature for feature in self._slots if feature is not None]


class DispatchResult(BaseModel):
    """Outcome of one dispatch batch."""

    features: list[Feature]
    paired: int
    skipped: int
    decode_warnings: int


def build_feature(
    shape: Shape,
    record: AttributeRecord,
    issues: list[AttributeDecodeWarning] | None = None,
) -> Feature | None:
    """Map and decode one pair. Returns None for unsupported shape kinds."""
    geometry = map_geometry(shape)
    if geometry is None:
        return None
    properties = decode_record(record, issues)
    try:
        return Feature(geometry=geometry, properties=properties)
    except ValidationError as exc:
        raise SerializationFailure(f"Failed to encode feature {record.position}: {exc}") from exc


def _process_pair(index: int, shape: Shape, record: AttributeRecord, sink: FeatureSink) -> tuple[bool, int]:
    issues: list[AttributeDecodeWarning] = []
    feature = build_feature(shape, record, issues)
    if feature is not None:
        sink.put(index, feature)
    return feature is not None, len(issues)


def dispatch(
    pairs: Iterable[tuple[Shape, AttributeRecord]],
    max_workers: int | None = None,
    progress: ProgressSink | None = None,
) -> DispatchResult:
    """Convert every pair into a Feature on a bounded thread pool.

    The pair sequence is fully read before any work is scheduled. Every unit
    runs to completion even if a sibling fails; afterwards the failure with
    the lowest input position is re-raised and the rest are logged.
    """
    items = list(pairs)
    workers = max_workers or os.cpu_count() or 1
    sink = FeatureSink(len(items))
    logger.info("Converting %d records with %d workers", len(items), workers)

    skipped = 0
    decode_warnings = 0
    failures: dict[int, BaseException] = {}

    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_index: dict[Future[tuple[bool, int]], int] = {
            executor.submit(_process_pair, index, shape, record, sink): index
            for index, (shape, record) in enumerate(items)
        }
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            exc = future.exception()
            if exc is not None:
                failures[index] = exc
            else:
                stored, warning_count = future.result()
                skipped += not stored
                decode_warnings += warning_count
            if progress is not None:
                progress.update(1)

    if failures:
        first = min(failures)
        for index in sorted(failures)[1:]:
            logger.error("Record %d failed: %s", index, failures[index])
        raise failures[first]

    features = sink.features()
    if skipped:
        logger.info("Skipped %d records with unsupported shape types", skipped)
    return DispatchResult(
        features=features,
        paired=len(items),
        skipped=skipped,
        decode_warnings=decode_warnings,
    )
