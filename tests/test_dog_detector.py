"""End-to-end tests for the DoG spot detector."""

from __future__ import annotations

import itertools
import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

import dogspot.analysis.dog_detector as dog_module
from dogspot import DogDetector, DogDetectorSettings, detect
from dogspot.core.exceptions import MedianFilterError


BLOB_CENTERS = [(16.3, 20.7), (40.6, 45.2), (15.0, 48.4), (45.4, 14.2)]


def _gaussian_blobs(shape, centers, amplitudes, sigma, background=0.0) -> np.ndarray:
    grids = np.meshgrid(*[np.arange(n, dtype=np.float64) for n in shape], indexing="ij")
    image = np.full(shape, background, dtype=np.float64)
    sigmas = np.broadcast_to(np.asarray(sigma, dtype=np.float64), (len(shape),))
    for center, amplitude in zip(centers, amplitudes):
        d2 = sum(((g - c) / s) ** 2 for g, c, s in zip(grids, center, sigmas))
        image += amplitude * np.exp(-d2 / 2.0)
    return image


def _blob_image(radius_px: float = 3.0) -> np.ndarray:
    # A blob of radius r in 2D has sigma r / sqrt(2).
    return _gaussian_blobs((64, 64), BLOB_CENTERS, [100.0] * 4, radius_px / math.sqrt(2))


def _match(spots, centers, calibration=(1.0, 1.0)):
    """For each true center, the distance to its closest spot in physical units."""
    positions = np.array([s.position for s in spots])
    truth = np.asarray(centers) * np.asarray(calibration)
    return [float(np.min(np.linalg.norm(positions - c, axis=1))) for c in truth]


@pytest.mark.parametrize("subpixel, tolerance", [(True, 0.5), (False, 1.0)])
def test_one_spot_per_separated_blob(subpixel, tolerance) -> None:
    image = _blob_image()
    settings = DogDetectorSettings(expected_radius=3.0, threshold=10.0, do_subpixel_localization=subpixel)

    success, spots, message = detect(image, (1.0, 1.0), settings)

    assert success, message
    assert message == ""
    assert len(spots) == len(BLOB_CENTERS)
    assert max(_match(spots, BLOB_CENTERS)) < tolerance
    assert all(s.radius == 3.0 for s in spots)


def test_subpixel_is_more_precise_than_integer_positions() -> None:
    image = _blob_image()
    fine = detect(image, (1.0, 1.0), DogDetectorSettings(expected_radius=3.0, threshold=10.0))
    coarse = detect(
        image, (1.0, 1.0),
        DogDetectorSettings(expected_radius=3.0, threshold=10.0, do_subpixel_localization=False),
    )

    assert sum(_match(fine.spots, BLOB_CENTERS)) < sum(_match(coarse.spots, BLOB_CENTERS))
    for spot in coarse.spots:
        assert all(float(p).is_integer() for p in spot.position)


def test_anisotropic_calibration() -> None:
    calibration = (0.5, 1.0)
    centers_px = [(24.0, 20.3), (80.4, 30.6)]
    radius = 3.0
    sigma_physical = radius / math.sqrt(2)
    image = _gaussian_blobs(
        (112, 48), centers_px, [80.0, 80.0],
        sigma=(sigma_physical / calibration[0], sigma_physical / calibration[1]),
    )

    result = detect(image, calibration, DogDetectorSettings(expected_radius=radius, threshold=10.0))

    assert result.success
    assert len(result.spots) == 2
    assert max(_match(result.spots, centers_px, calibration)) < 0.5


def test_three_dimensional_blob() -> None:
    radius = 2.0
    center = (12.3, 11.6, 12.2)
    image = _gaussian_blobs((24, 24, 24), [center], [50.0], radius / math.sqrt(3))

    result = detect(image, (1.0, 1.0, 1.0), DogDetectorSettings(expected_radius=radius, threshold=5.0))

    assert result.success
    assert len(result.spots) == 1
    assert math.dist(result.spots[0].position, center) < 0.5


def test_overlapping_blobs_keep_the_brighter_one() -> None:
    bright, dim = (30.0, 30.0), (30.0, 35.0)
    image = _gaussian_blobs((64, 64), [bright, dim], [120.0, 60.0], 3.0 / math.sqrt(2))

    result = detect(image, (1.0, 1.0), DogDetectorSettings(expected_radius=3.0, threshold=10.0))

    assert result.success
    assert len(result.spots) == 1
    spot = result.spots[0]
    assert math.dist(spot.position, bright) < math.dist(spot.position, dim)


def test_spots_never_overlap_and_are_sorted() -> None:
    rng = np.random.default_rng(11)
    centers = rng.uniform(4, 60, size=(25, 2))
    amplitudes = rng.uniform(30, 150, size=25)
    image = _gaussian_blobs((64, 64), centers, amplitudes, 2.0 / math.sqrt(2))
    image += rng.normal(0.0, 2.0, size=image.shape)

    result = detect(image, (0.8, 0.8), DogDetectorSettings(expected_radius=1.6, threshold=15.0))

    assert result.success
    assert result.spots
    for a, b in itertools.combinations(result.spots, 2):
        assert a.distance_to(b) >= a.radius + b.radius
    qualities = [s.quality for s in result.spots]
    assert qualities == sorted(qualities, reverse=True)


def test_raising_threshold_keeps_a_subset() -> None:
    centers = [(12.0, 12.0), (12.0, 40.0), (40.0, 12.0), (40.0, 40.0)]
    image = _gaussian_blobs((56, 56), centers, [30.0, 60.0, 90.0, 120.0], 2.0)

    counts = []
    previous = None
    for threshold in [5.0, 45.0, 75.0, 105.0, 200.0]:
        result = detect(image, (1.0, 1.0), DogDetectorSettings(expected_radius=2.0 * math.sqrt(2), threshold=threshold))
        assert result.success
        positions = {tuple(np.round(s.position, 6)) for s in result.spots}
        if previous is not None:
            assert positions <= previous
        previous = positions
        counts.append(len(positions))

    assert counts == [4, 3, 2, 1, 0]


def test_uniform_image_yields_no_spots() -> None:
    image = np.full((32, 32), 10, dtype=np.uint8)

    result = detect(image, (1.0, 1.0), DogDetectorSettings(expected_radius=2.0, threshold=20.0))

    assert result == (True, [], "")


def test_integer_input_is_not_modified() -> None:
    image = (_blob_image() * 10).astype(np.uint16)
    original = image.copy()

    result = detect(image, (1.0, 1.0), DogDetectorSettings(expected_radius=3.0, threshold=100.0))

    assert result.success
    assert len(result.spots) == len(BLOB_CENTERS)
    assert np.array_equal(image, original)


def test_median_filter_option() -> None:
    image = _blob_image()
    image[5, 5] = 500.0  # hot pixel

    plain = detect(image, (1.0, 1.0), DogDetectorSettings(expected_radius=3.0, threshold=10.0))
    filtered = detect(
        image, (1.0, 1.0),
        DogDetectorSettings(expected_radius=3.0, threshold=10.0, use_median_filter=True),
    )

    assert filtered.success
    assert len(filtered.spots) == len(BLOB_CENTERS)
    assert len(plain.spots) == len(BLOB_CENTERS) + 1


def test_median_filter_failure_is_reported(monkeypatch) -> None:
    def _fail(image, radius=1):
        raise MedianFilterError("out of luck")

    monkeypatch.setattr(dog_module, "apply_median_filter", _fail)

    result = detect(_blob_image(), (1.0, 1.0), DogDetectorSettings(expected_radius=3.0, use_median_filter=True))

    assert result == (False, [], "DogDetector: out of luck")


def test_allocation_failure_is_reported(monkeypatch) -> None:
    def _no_memory(*args, **kwargs):
        raise MemoryError

    monkeypatch.setattr(dog_module, "difference_of_gaussian", _no_memory)

    success, spots, message = detect(_blob_image(), (1.0, 1.0), DogDetectorSettings(expected_radius=3.0))

    assert not success
    assert spots == []
    assert message.startswith(DogDetector.BASE_ERROR_MESSAGE)
    assert "allocate" in message


@pytest.mark.parametrize(
    "image, calibration, settings",
    [
        (np.zeros((16, 16)), (1.0,), DogDetectorSettings()),
        (np.zeros((16, 16)), (1.0, -1.0), DogDetectorSettings()),
        (np.zeros((16, 16)), None, DogDetectorSettings()),
        (np.zeros((16, 16)), (1.0, 1.0), DogDetectorSettings(expected_radius=-2.0)),
        (np.zeros((16, 16), dtype=complex), (1.0, 1.0), DogDetectorSettings()),
        (np.array(["a", "b"]), (1.0,), DogDetectorSettings()),
        (np.zeros((0, 4)), (1.0, 1.0), DogDetectorSettings()),
    ],
)
def test_invalid_inputs_fail_without_raising(image, calibration, settings) -> None:
    success, spots, message = detect(image, calibration, settings)

    assert not success
    assert spots == []
    assert message.startswith("DogDetector: ")


def test_detector_is_reusable_across_threads() -> None:
    detector = DogDetector(DogDetectorSettings(expected_radius=3.0, threshold=10.0))
    frames = [np.roll(_blob_image(), shift, axis=1) for shift in range(6)]

    sequential = [detector.detect(frame, (1.0, 1.0)) for frame in frames]
    with ThreadPoolExecutor(max_workers=3) as pool:
        concurrent = list(pool.map(lambda f: detector.detect(f, (1.0, 1.0)), frames))

    assert concurrent == sequential


def test_detector_identity() -> None:
    detector = DogDetector()

    assert str(detector) == "DoG detector"
    assert "DoG" in detector.INFO_TEXT
    assert detector.settings == DogDetectorSettings()
