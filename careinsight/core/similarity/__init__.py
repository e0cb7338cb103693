"""
Similarity Layer

Weighted k-nearest-neighbour ranking over named feature vectors.

Usage:
    from careinsight.core.similarity import normalize_batch, find_weighted_knn

    target, candidates = normalize_batch(target_features, candidates)
    neighbours = find_weighted_knn(target, candidates, k=5, weights={"severity": 3})
"""
from .knn import (
    DistanceMetric,
    FeatureVector,
    Neighbor,
    SimilarityCandidate,
    EXPLAIN_THRESHOLD,
    apply_weights,
    cosine_similarity,
    euclidean_distance,
    explain_similarity,
    find_knn,
    find_weighted_knn,
    normalize_batch,
    normalize_features,
)

__all__ = [
    "DistanceMetric",
    "FeatureVector",
    "Neighbor",
    "SimilarityCandidate",
    "EXPLAIN_THRESHOLD",
    "apply_weights",
    "cosine_similarity",
    "euclidean_distance",
    "explain_similarity",
    "find_knn",
    "find_weighted_knn",
    "normalize_batch",
    "normalize_features",
]
