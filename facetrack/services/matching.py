"""Descriptor matching against stored face track mappings."""
from typing import Optional, Sequence

from facetrack.domain.entities.face_track import FaceTrackMapping
from facetrack.domain.value_objects.resolution import (
    Matched,
    MatchPolicy,
    MatchResult,
    Unmatched,
)
from facetrack.services.descriptors import cosine_similarity


def match_descriptor(
    query: Sequence[int],
    records: Sequence[FaceTrackMapping],
    policy: MatchPolicy,
) -> MatchResult:
    """Find the stored mapping most similar to a normalized descriptor.

    Records without a descriptor, or with a descriptor of another dimension,
    are skipped. On equal scores the record seen first wins, so callers pass
    records in ascending id order to prefer the oldest identity.

    Args:
        query: Normalized descriptor of the capture
        records: Candidate mappings
        policy: Strict and adaptive thresholds

    Returns:
        Matched when the best score crosses the strict threshold, or the
        adaptive one when the adaptive band is enabled; Unmatched otherwise.
    """
    best: Optional[FaceTrackMapping] = None
    best_score: Optional[float] = None

    for record in records:
        stored = record.face_descriptor
        if not stored or len(stored) != len(query):
            continue
        score = cosine_similarity(query, stored)
        if best_score is None or score > best_score:
            best, best_score = record, score

    if best is None:
        return Unmatched()

    if best_score >= policy.strict_threshold:
        return Matched(record=best, score=best_score)

    if policy.adaptive_enabled and best_score >= policy.adaptive_threshold:
        return Matched(record=best, score=best_score, adaptive=True)

    return Unmatched(best_candidate=best, best_score=best_score)
