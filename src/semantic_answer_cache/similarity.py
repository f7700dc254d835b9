"""
Similarity matching over a snapshot of cache entries.

The scan is linear in the number of entries, which ``max_entries`` bounds.
"""

import logging
from collections.abc import Iterable, Sequence

import numpy as np

from semantic_answer_cache.entities import CacheEntryEntity, CacheMatchEntity

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float] | None, b: Sequence[float] | None) -> float:
    """
    Compute the cosine similarity between two vectors.

    Returns 0.0 instead of raising when either vector is missing, empty,
    zero-magnitude or non-finite, or when the lengths differ.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        Similarity in [-1, 1].
    """
    if a is None or b is None or len(a) == 0 or len(a) != len(b):
        return 0.0

    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)
    if vec_a.ndim != 1 or vec_b.ndim != 1:
        return 0.0

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if not (np.isfinite(norm_a) and np.isfinite(norm_b)) or norm_a <= 0 or norm_b <= 0:
        return 0.0

    score = float(np.dot(vec_a, vec_b) / (norm_a * norm_b))
    return float(np.clip(score, -1.0, 1.0))


def find_best(
    entries: Iterable[CacheEntryEntity],
    query_embedding: Sequence[float],
    threshold: float,
) -> CacheMatchEntity | None:
    """
    Find the entry most similar to the query embedding.

    Only a strictly higher score replaces the current best, so among equal
    scores the first one encountered wins. Entries without an embedding or
    with a different dimensionality are skipped.

    Args:
        entries: Entries to scan, in scan order.
        query_embedding: The query vector.
        threshold: Minimum similarity (inclusive) for a match.

    Returns:
        The best match at or above the threshold, or None.
    """
    dimension = len(query_embedding)
    best: CacheEntryEntity | None = None
    best_score = 0.0

    for entry in entries:
        if entry.embedding is None or len(entry.embedding) != dimension:
            logger.warning(
                "Skipping malformed cache entry %s (%r): dimension %d, expected %d",
                entry.id,
                entry.query,
                entry.dimension,
                dimension,
            )
            continue

        score = cosine_similarity(query_embedding, entry.embedding)
        logger.debug("Similarity for %r: %.4f", entry.query, score)

        if score >= threshold and (best is None or score > best_score):
            best = entry
            best_score = score

    if best is None:
        return None

    best.last_similarity = best_score
    return CacheMatchEntity(entry=best, similarity=best_score)
