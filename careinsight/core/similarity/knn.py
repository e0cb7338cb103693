"""
K-Nearest Neighbours Similarity Engine

Ranks candidates by distance to a target feature vector. No training step:
every call recomputes from the vectors it is given.

Feature vectors are plain dicts of feature-name → number. Two vectors need
not share keys; a key missing from one side (or holding None or NaN) reads as 0.

Normalisation must see the target and all candidates together so that every
vector is scaled on the same min/max basis. Use normalize_batch() for that.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from careinsight.utils import get_logger

logger = get_logger(__name__)

FeatureVector = Dict[str, float]

# Features within this absolute difference are reported as "similar"
EXPLAIN_THRESHOLD = 0.1


class DistanceMetric(str, Enum):
    """Distance used to rank candidates."""
    EUCLIDEAN = "euclidean"
    COSINE = "cosine"


@dataclass
class SimilarityCandidate:
    """A candidate to rank. `item` is opaque and handed back untouched."""
    item: Any
    features: FeatureVector


@dataclass
class Neighbor:
    """One ranked candidate."""
    item: Any
    distance: float
    similarity: float                                   # 0-1, 1 = most similar
    features: FeatureVector = field(default_factory=dict, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item": self.item,
            "distance": self.distance,
            "similarity": self.similarity,
        }


CandidateLike = Union[SimilarityCandidate, Tuple[Any, Mapping[str, float]], Mapping[str, Any]]


# ── Helpers ───────────────────────────────────────────────────────────────────

def _value(vector: Mapping[str, Any], key: str) -> float:
    """Feature value as a float; missing, None and NaN read as 0."""
    value = vector.get(key)
    if value is None:
        return 0.0
    number = float(value)
    return 0.0 if math.isnan(number) else number


def _aligned(a: Mapping[str, Any], b: Mapping[str, Any]) -> Tuple[np.ndarray, np.ndarray]:
    """Project both vectors onto the union of their keys."""
    keys = list(dict.fromkeys([*a.keys(), *b.keys()]))
    va = np.array([_value(a, k) for k in keys], dtype=float)
    vb = np.array([_value(b, k) for k in keys], dtype=float)
    return va, vb


def _as_candidate(candidate: CandidateLike) -> SimilarityCandidate:
    if isinstance(candidate, SimilarityCandidate):
        return candidate
    if isinstance(candidate, Mapping):
        return SimilarityCandidate(item=candidate.get("item"), features=candidate["features"])
    item, features = candidate
    return SimilarityCandidate(item=item, features=features)


# ── Distances ─────────────────────────────────────────────────────────────────

def euclidean_distance(a: Mapping[str, float], b: Mapping[str, float]) -> float:
    """Euclidean distance over the union of keys."""
    va, vb = _aligned(a, b)
    if va.size == 0:
        return 0.0
    return float(np.sqrt(np.sum((va - vb) ** 2)))


def cosine_similarity(a: Mapping[str, float], b: Mapping[str, float]) -> float:
    """Cosine similarity over the union of keys; 0 if either vector is all zeros."""
    va, vb = _aligned(a, b)
    magnitude_a = float(np.sum(va * va))
    magnitude_b = float(np.sum(vb * vb))
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (np.sqrt(magnitude_a) * np.sqrt(magnitude_b)))


# ── Normalisation ─────────────────────────────────────────────────────────────

def normalize_features(vectors: Sequence[Mapping[str, float]]) -> List[FeatureVector]:
    """
    Min-max scale a batch of vectors into [0, 1].

    The feature set is taken from the first vector; min and max are computed
    across the whole batch. A feature that is constant across the batch maps
    to exactly 0 for every vector.

    Args:
        vectors: The complete batch (target first, then candidates)

    Returns:
        New vectors holding only the first vector's keys, in batch order
    """
    if not vectors:
        return []

    keys = list(vectors[0].keys())
    matrix = np.array(
        [[_value(vector, key) for key in keys] for vector in vectors],
        dtype=float,
    ).reshape(len(vectors), len(keys))

    mins = matrix.min(axis=0) if keys else np.zeros(0)
    maxs = matrix.max(axis=0) if keys else np.zeros(0)
    spans = maxs - mins
    degenerate = spans == 0

    # Avoid 0/0 for constant columns; those are overwritten with 0 below
    safe_spans = np.where(degenerate, 1.0, spans)
    scaled = (matrix - mins) / safe_spans
    scaled[:, degenerate] = 0.0

    if degenerate.any():
        logger.debug(
            "normalize_features: constant feature(s) "
            + ", ".join(k for k, d in zip(keys, degenerate) if d)
        )

    return [
        {key: float(row[i]) for i, key in enumerate(keys)}
        for row in scaled
    ]


def normalize_batch(
    target: Mapping[str, float],
    candidates: Sequence[CandidateLike],
) -> Tuple[FeatureVector, List[SimilarityCandidate]]:
    """
    Normalise a target together with its candidates on one shared basis.

    Returns:
        (normalised target, candidates with normalised features)
    """
    resolved = [_as_candidate(c) for c in candidates]
    normalized = normalize_features([target, *[c.features for c in resolved]])
    return normalized[0], [
        SimilarityCandidate(item=c.item, features=normalized[i + 1])
        for i, c in enumerate(resolved)
    ]


# ── Ranking ───────────────────────────────────────────────────────────────────

def find_knn(
    target: Mapping[str, float],
    candidates: Sequence[CandidateLike],
    k: int,
    metric: Union[DistanceMetric, str] = DistanceMetric.EUCLIDEAN,
) -> List[Neighbor]:
    """
    Find the k candidates nearest to the target.

    Euclidean: similarity = 1 / (1 + distance).
    Cosine: similarity = cosine, distance = 1 - cosine.
    Candidates are sorted by ascending distance; ties keep input order.

    Raises:
        ValueError: unknown metric name
    """
    metric = DistanceMetric(metric)
    if not candidates or k <= 0:
        return []

    results: List[Neighbor] = []
    for candidate in candidates:
        c = _as_candidate(candidate)
        if metric == DistanceMetric.COSINE:
            similarity = cosine_similarity(target, c.features)
            distance = 1 - similarity
        else:
            distance = euclidean_distance(target, c.features)
            similarity = 1 / (1 + distance)
        results.append(Neighbor(
            item=c.item,
            distance=distance,
            similarity=similarity,
            features=dict(c.features),
        ))

    results.sort(key=lambda n: n.distance)
    logger.debug(
        f"find_knn: {len(results)} candidate(s), k={k}, metric={metric.value}"
    )
    return results[:k]


def apply_weights(
    vector: Mapping[str, float],
    weights: Mapping[str, float],
) -> FeatureVector:
    """Multiply each weighted feature present in the vector by its weight."""
    weighted = dict(vector)
    for key, weight in weights.items():
        if key in weighted:
            weighted[key] = _value(weighted, key) * weight
    return weighted


def find_weighted_knn(
    target: Mapping[str, float],
    candidates: Sequence[CandidateLike],
    k: int,
    weights: Optional[Mapping[str, float]] = None,
) -> List[Neighbor]:
    """
    Euclidean KNN with per-feature weights.

    The weight scales both the target's and each candidate's value before the
    difference is taken, so a feature's contribution to the squared distance
    grows with the square of its weight.
    """
    if not candidates:
        return []

    weights = weights or {}
    weighted_target = apply_weights(target, weights)
    weighted_candidates = [
        SimilarityCandidate(item=c.item, features=apply_weights(c.features, weights))
        for c in (_as_candidate(x) for x in candidates)
    ]
    return find_knn(weighted_target, weighted_candidates, k, DistanceMetric.EUCLIDEAN)


# ── Explanation ───────────────────────────────────────────────────────────────

def explain_similarity(
    target: Mapping[str, float],
    candidate: Mapping[str, float],
    names: Optional[Mapping[str, str]] = None,
    threshold: float = EXPLAIN_THRESHOLD,
) -> List[str]:
    """
    Human-readable reasons two vectors are alike.

    Lists every feature of the target that the candidate also has and whose
    values differ by at most `threshold`. Not used for ranking.
    """
    names = names or {}
    explanations: List[str] = []

    for key in target:
        if key not in candidate:
            continue
        a, b = _value(target, key), _value(candidate, key)
        if abs(a - b) <= threshold:
            explanations.append(f"Similar {names.get(key, key)}: {a:.2f} vs {b:.2f}")

    return explanations
