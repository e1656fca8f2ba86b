"""
Ranking and deduplication of candidate meeting slots.
"""

from typing import List, Sequence

from .models import CandidateSlot

DEFAULT_MAX_RESULTS = 5


def rank(candidates: Sequence[CandidateSlot], max_results: int = DEFAULT_MAX_RESULTS) -> List[CandidateSlot]:
    """
    Order candidates by confidence and drop overlapping windows.

    The sort is stable, so equally confident candidates keep the order they
    were found in (chronological for the slot finder). A candidate is dropped
    when it overlaps one that was already accepted; windows that merely touch
    are both kept.

    Args:
        candidates: Candidates as emitted by the slot finder
        max_results: Maximum number of slots to return

    Returns:
        At most ``max_results`` non-overlapping candidates
    """
    if max_results <= 0:
        return []

    ordered = sorted(candidates, key=lambda candidate: -candidate.confidence)
    accepted: List[CandidateSlot] = []

    for candidate in ordered:
        if any(candidate.overlaps(existing) for existing in accepted):
            continue

        accepted.append(candidate)
        if len(accepted) == max_results:
            break

    return accepted
