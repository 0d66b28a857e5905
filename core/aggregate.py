"""
Merging per-site result lists into one ranked list.
"""

import logging
from typing import Iterable, List, Mapping, Optional

from models.questions import Answer, CandidateSet, Question
from models.search import MergeMode

__all__ = ["sort_answers", "merge"]

logger = logging.getLogger(__name__)


def sort_answers(answers: Iterable[Answer]) -> List[Answer]:
    """Order answers by non-increasing score; ties keep their order."""
    return sorted(answers, key=lambda a: -a.score)


def merge(
    per_site: Mapping[str, List[Question]],
    mode: MergeMode,
    *,
    candidates: Optional[CandidateSet] = None,
) -> List[Question]:
    """
    Combine per-site results.

    Args:
        per_site: Site code to that site's questions, in site iteration order
        mode: Which ranking rule applies
        candidates: Discovery candidates; when given in DISCOVERY mode, the
            merged list follows the search engine's original ranking

    Returns:
        One list of questions
    """
    questions = [q for qs in per_site.values() for q in qs]

    if mode == MergeMode.DIRECT_MULTI:
        # sorted() is stable, so equal scores keep their site order
        questions = sorted(questions, key=lambda q: -q.score)
    elif mode == MergeMode.DISCOVERY and candidates is not None:
        questions = _by_candidate_rank(per_site, candidates)

    logger.debug(f"Merged {len(questions)} questions from {len(per_site)} sites ({mode.value})")
    return questions


def _by_candidate_rank(
    per_site: Mapping[str, List[Question]], candidates: CandidateSet
) -> List[Question]:
    ranked = []
    for site, qs in per_site.items():
        for q in qs:
            ordinal = candidates.ordinal(site, q.id)
            # Questions the engine never listed go last
            ranked.append((len(candidates) if ordinal is None else ordinal, q))
    ranked.sort(key=lambda pair: pair[0])
    return [q for _, q in ranked]
