"""Tests for descriptor matching thresholds."""
import numpy as np

from facetrack.domain.entities.face_track import FaceTrackMapping
from facetrack.domain.value_objects.resolution import Matched, MatchPolicy, Unmatched
from facetrack.services.descriptors import cosine_similarity, normalize
from facetrack.services.matching import match_descriptor

STRICT = MatchPolicy(strict_threshold=0.90, adaptive_enabled=False, adaptive_threshold=0.82)
ADAPTIVE = MatchPolicy(strict_threshold=0.90, adaptive_enabled=True, adaptive_threshold=0.82)


def record(record_id, descriptor, track_id=None):
    return FaceTrackMapping(
        id=record_id,
        track_id=track_id or f"{record_id:010x}",
        face_descriptor=descriptor,
        audio_url=f"https://audio.test/{record_id}.mp3",
    )


def vector_with_similarity(base, target, seed=0):
    """Build a vector whose cosine similarity with ``base`` is ``target``."""
    rng = np.random.default_rng(seed)
    u = np.asarray(base, dtype=float)
    u = u / np.linalg.norm(u)
    noise = rng.normal(size=u.shape)
    w = noise - noise.dot(u) * u
    w = w / np.linalg.norm(w)
    return (target * u + np.sqrt(1 - target ** 2) * w).tolist()


def test_similarity_exactly_at_strict_threshold_matches():
    query = [3, 1, 9, 3]
    stored = [-1, 3, 9, 3]
    assert cosine_similarity(query, stored) == 0.9

    result = match_descriptor(query, [record(1, stored)], STRICT)

    assert isinstance(result, Matched)
    assert result.adaptive is False


def test_adaptive_band_rejected_when_disabled():
    base = [1.0] * 16
    query = vector_with_similarity(base, 0.86)
    result = match_descriptor(query, [record(1, base)], STRICT)

    assert isinstance(result, Unmatched)
    assert result.best_score is not None
    assert 0.82 <= result.best_score < 0.90


def test_adaptive_band_accepted_when_enabled():
    base = [1.0] * 16
    query = vector_with_similarity(base, 0.86)
    result = match_descriptor(query, [record(1, base)], ADAPTIVE)

    assert isinstance(result, Matched)
    assert result.adaptive is True


def test_below_adaptive_band_is_unmatched():
    base = [1.0] * 16
    query = vector_with_similarity(base, 0.5)
    result = match_descriptor(query, [record(1, base)], ADAPTIVE)

    assert isinstance(result, Unmatched)
    assert result.best_candidate.id == 1


def test_small_noise_still_matches():
    """Descriptors of the same face with 0.01 noise stay above 0.99."""
    rng = np.random.default_rng(42)
    raw = rng.normal(0.0, 0.1, 128)
    noisy = raw + rng.uniform(-0.01, 0.01, 128)

    stored = normalize(raw.tolist())
    query = normalize(noisy.tolist())
    assert cosine_similarity(query, stored) >= 0.99

    result = match_descriptor(query, [record(1, stored)], STRICT)
    assert isinstance(result, Matched)
    assert result.score >= 0.99


def test_best_record_wins():
    query = [1, 0, 0]
    records = [record(1, [1, 1, 0]), record(2, [10, 1, 0]), record(3, [0, 1, 0])]
    result = match_descriptor(query, records, STRICT)
    assert isinstance(result, Matched)
    assert result.record.id == 2


def test_ties_keep_the_earliest_record():
    query = [1, 2, 3]
    records = [record(1, [1, 2, 3]), record(2, [1, 2, 3])]
    result = match_descriptor(query, records, STRICT)
    assert isinstance(result, Matched)
    assert result.record.id == 1


def test_records_without_usable_descriptor_are_skipped():
    query = [1, 2, 3]
    records = [record(1, None), record(2, [1, 2]), record(3, [])]
    result = match_descriptor(query, records, ADAPTIVE)
    assert isinstance(result, Unmatched)
    assert result.best_score is None


def test_empty_store_is_unmatched():
    assert isinstance(match_descriptor([1, 2], [], ADAPTIVE), Unmatched)
