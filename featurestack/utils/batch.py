"""Ordered fan-out for independent per-item work.

Building many geometry units (or looking up coordinates for many rows
from an external service) is embarrassingly parallel, but collection
order is load-bearing: it decides which attribute row pairs with which
unit. ``map_ordered`` runs the calls in a thread pool and hands results
back in input order regardless of completion order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, TypeVar

from featurestack.core.config import get_config
from featurestack.models.collection import FeatureCollection
from featurestack.models.geometry import GeometryUnit

if TYPE_CHECKING:
    from featurestack.models.collection import CRSLike
    from featurestack.models.ring import Ring

logger = logging.getLogger("featurestack.utils.batch")

T = TypeVar("T")
R = TypeVar("R")


def map_ordered(
    func: Callable[[T], R],
    items: Iterable[T],
    *,
    max_workers: int | None = None,
) -> list[R]:
    """Apply ``func`` to every item concurrently; return results in input order.

    If any call raises, the exception from the earliest failing item (in
    input order) propagates once all submitted calls have finished.

    Args:
        func: Callable applied to each item. Must be thread-safe.
        items: Inputs.
        max_workers: Pool size (default ``FeatureStackConfig.max_workers``).
    """
    items = list(items)
    if not items:
        return []
    workers = max_workers or get_config().max_workers

    with ThreadPoolExecutor(max_workers=min(workers, len(items))) as pool:
        futures = [pool.submit(func, item) for item in items]
        # Waiting in submission order restores input order.
        results = [future.result() for future in futures]

    logger.debug("Mapped %d item(s) across %d worker(s)", len(items), workers)
    return results


def build_units(
    specs: Sequence[tuple[str, Sequence[Ring]]],
    *,
    crs: CRSLike = None,
    max_workers: int | None = None,
) -> FeatureCollection:
    """Build a FeatureCollection from ``(unit_id, rings)`` pairs in parallel.

    The collection keeps the order of ``specs``.

    Raises:
        InvalidGeometryError: If any unit is malformed.
        DuplicateIdentifierError: If identifiers repeat.
    """
    units = map_ordered(
        lambda spec: GeometryUnit(spec[0], tuple(spec[1])),
        specs,
        max_workers=max_workers,
    )
    return FeatureCollection(units, crs)
