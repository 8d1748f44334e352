from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import cv2
import numpy as np
import pytest

from arplan.exceptions import ConfigurationError, ImageDecodeError, NonConvexQuadrilateralError
from arplan.settings import PerspectiveSettings
from arplan.vector.perspective import (
    PerspectiveCache,
    SourceImage,
    canonical_quad,
    validate_convex_quad,
)


@pytest.fixture
def source():
    pixels = np.zeros((100, 200, 3), dtype=np.uint8)
    cv2.rectangle(pixels, (20, 10), (120, 60), (255, 255, 255), thickness=-1)
    return SourceImage.from_array(pixels)


def quad(i=0):
    right = 0.5 + 0.01 * i
    return [(0.1, 0.1), (right, 0.1), (right, 0.6), (0.1, 0.6)]


def test_miss_warps_to_longest_edges(source):
    cache = PerspectiveCache()
    corrected = cache.get([(0.1, 0.1), (0.6, 0.1), (0.6, 0.6), (0.1, 0.6)], source)
    assert (corrected.width, corrected.height) == (100, 50)
    # the selected region is the white rectangle
    assert corrected.pixels.mean() > 200
    assert cache.stats.misses == 1
    assert len(cache) == 1


def test_explicit_output_size(source):
    corrected = PerspectiveCache().get(quad(), source, output_size=(40, 30))
    assert (corrected.width, corrected.height) == (40, 30)


def test_same_region_with_other_start_or_winding_hits(source):
    cache = PerspectiveCache()
    first = cache.get(quad(), source)
    rotated_start = quad()[2:] + quad()[:2]
    reversed_winding = list(reversed(quad()))

    assert cache.get(rotated_start, source) is first
    assert cache.get(reversed_winding, source) is first
    assert cache.stats.hits == 2
    assert len(cache) == 1


def test_canonical_quad_is_clockwise_from_top_left():
    ccw = [(0.1, 0.6), (0.5, 0.6), (0.5, 0.1), (0.1, 0.1)]
    assert canonical_quad(ccw) == ((0.1, 0.1), (0.5, 0.1), (0.5, 0.6), (0.1, 0.6))


def test_different_images_do_not_share_entries(source):
    other = SourceImage.from_array(np.full((100, 200, 3), 7, dtype=np.uint8))
    cache = PerspectiveCache()
    cache.get(quad(), source)
    cache.get(quad(), other)
    assert len(cache) == 2
    assert cache.stats.hits == 0


@pytest.mark.parametrize(
    "corners",
    [
        [(0.1, 0.1), (0.6, 0.6), (0.6, 0.1), (0.1, 0.6)],  # self-intersecting
        [(0.1, 0.1), (0.6, 0.1), (0.3, 0.2), (0.1, 0.6)],  # concave
        [(0.1, 0.1), (0.3, 0.1), (0.6, 0.1), (0.1, 0.6)],  # collinear
        [(0.1, 0.1), (0.6, 0.1), (0.6, 0.6)],  # triangle
        [(0.1, 0.1), (0.6, 0.1), (0.6, float("nan")), (0.1, 0.6)],
    ],
)
def test_non_convex_input_is_rejected_and_cache_untouched(source, corners):
    cache = PerspectiveCache()
    cache.get(quad(), source)

    with pytest.raises(NonConvexQuadrilateralError):
        cache.get(corners, source)

    assert len(cache) == 1
    assert cache.stats.misses == 1


def test_quad_collapsing_under_key_rounding_is_rejected(source):
    tiny = [(0.1, 0.1), (0.1000002, 0.1), (0.1000002, 0.1000002), (0.1, 0.1000002)]
    assert len(validate_convex_quad(tiny)) == 4
    cache = PerspectiveCache()

    with pytest.raises(NonConvexQuadrilateralError):
        cache.get(tiny, source)

    assert len(cache) == 0
    assert cache.stats.misses == 0


def test_validate_convex_quad_accepts_both_windings():
    assert len(validate_convex_quad(quad())) == 4
    assert len(validate_convex_quad(list(reversed(quad())))) == 4


def test_capacity_is_never_exceeded_and_lru_is_evicted(source):
    cache = PerspectiveCache(capacity=20)
    for i in range(20):
        cache.get(quad(i), source)
    first_key = PerspectiveCache.make_key(quad(0), source)
    assert len(cache) == 20 and first_key in cache

    cache.get(quad(20), source)

    assert len(cache) == 20
    assert first_key not in cache
    assert cache.stats.evictions == 1


def test_hit_promotes_entry_to_most_recent(source):
    cache = PerspectiveCache(capacity=3)
    for i in range(3):
        cache.get(quad(i), source)
    cache.get(quad(0), source)
    cache.get(quad(3), source)

    assert PerspectiveCache.make_key(quad(0), source) in cache
    assert PerspectiveCache.make_key(quad(1), source) not in cache
    entries = cache.entries()
    assert entries[-1].key == PerspectiveCache.make_key(quad(3), source)
    assert [e.last_access for e in entries] == sorted(e.last_access for e in entries)


def test_keys_are_ordered_least_to_most_recent(source):
    cache = PerspectiveCache(capacity=5)
    for i in range(3):
        cache.get(quad(i), source)
    cache.get(quad(1), source)
    assert cache.keys()[-1] == PerspectiveCache.make_key(quad(1), source)
    cache.clear()
    assert len(cache) == 0


def test_concurrent_access_respects_capacity(source):
    cache = PerspectiveCache(capacity=5)
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda i: cache.get(quad(i % 12), source), range(60)))
    stats = cache.stats
    assert len(cache) == 5
    assert stats.hits + stats.misses == 60


def test_invalid_capacity_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        PerspectiveCache(capacity=0)


def test_cache_from_settings():
    cache = PerspectiveCache.from_settings(PerspectiveSettings(cache_capacity=7, interpolation="nearest"))
    assert cache.capacity == 7
    assert cache.interpolation == "nearest"


def test_encoded_bytes_round_trip(source):
    corrected = PerspectiveCache().get(quad(), source)
    decoded = SourceImage.from_bytes(corrected.to_bytes(".png"))
    assert (decoded.width, decoded.height) == (corrected.width, corrected.height)
    assert decoded.identity == SourceImage.from_bytes(corrected.to_bytes(".png")).identity


def test_undecodable_bytes_raise():
    with pytest.raises(ImageDecodeError):
        SourceImage.from_bytes(b"definitely not an image")
    with pytest.raises(ImageDecodeError):
        SourceImage.from_bytes(b"")
