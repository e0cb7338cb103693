"""
Unit Tests for the KNN Similarity Engine

Tests for distances, batch normalisation, plain and weighted ranking and
similarity explanations.
"""
import math

import pytest

from careinsight.core.similarity import (
    DistanceMetric,
    Neighbor,
    SimilarityCandidate,
    apply_weights,
    cosine_similarity,
    euclidean_distance,
    explain_similarity,
    find_knn,
    find_weighted_knn,
    normalize_batch,
    normalize_features,
)


# Fixtures
@pytest.fixture
def ideal_volunteer():
    """Target profile every volunteer is compared against."""
    return {"skillMatch": 1.0, "averageRating": 1.0, "availability": 1.0}


@pytest.fixture
def volunteer_pool():
    """Two volunteers that trade skill match for rating."""
    return [
        SimilarityCandidate(item="rated", features={"skillMatch": 0.2, "averageRating": 1.0, "availability": 1.0}),
        SimilarityCandidate(item="skilled", features={"skillMatch": 1.0, "averageRating": 0.6, "availability": 1.0}),
    ]


class TestDistances:
    """Tests for euclidean_distance and cosine_similarity."""

    def test_euclidean_over_key_union(self):
        """Test keys missing from one side read as zero."""
        assert euclidean_distance({"a": 1}, {"b": 1}) == pytest.approx(math.sqrt(2))

    def test_euclidean_none_reads_as_zero(self):
        """Test None values are treated as zero."""
        assert euclidean_distance({"a": None}, {"a": 3}) == pytest.approx(3.0)

    def test_euclidean_identical_and_empty(self):
        """Test identical vectors and empty vectors are distance zero."""
        assert euclidean_distance({"a": 2, "b": 5}, {"b": 5, "a": 2}) == 0.0
        assert euclidean_distance({}, {}) == 0.0

    def test_cosine_parallel_and_orthogonal(self):
        """Test cosine similarity of parallel and orthogonal vectors."""
        assert cosine_similarity({"a": 1, "b": 2}, {"a": 2, "b": 4}) == pytest.approx(1.0)
        assert cosine_similarity({"a": 1}, {"b": 1}) == pytest.approx(0.0)

    def test_nan_reads_as_zero(self):
        """Test NaN values are treated as zero."""
        assert euclidean_distance({"a": float("nan")}, {"a": 3}) == pytest.approx(3.0)

    def test_cosine_zero_magnitude(self):
        """Test an all-zero vector has similarity zero instead of NaN."""
        assert cosine_similarity({"a": 0, "b": 0}, {"a": 1, "b": 1}) == 0.0
        assert cosine_similarity({}, {"a": 1}) == 0.0


class TestNormalization:
    """Tests for min-max normalisation."""

    def test_scales_into_unit_range(self):
        """Test every output value lies in [0, 1] with min 0 and max 1."""
        out = normalize_features([{"x": 0}, {"x": 10}, {"x": 5}])

        assert [v["x"] for v in out] == pytest.approx([0.0, 1.0, 0.5])

    def test_constant_feature_maps_to_zero(self):
        """Test a feature with no spread normalises to exactly zero."""
        out = normalize_features([{"x": 1, "y": 5}, {"x": 3, "y": 5}])

        assert all(v["y"] == 0.0 for v in out)
        assert [v["x"] for v in out] == [0.0, 1.0]

    def test_keys_come_from_first_vector(self):
        """Test keys absent from the first vector are dropped."""
        out = normalize_features([{"x": 0}, {"x": 2, "z": 9}])

        assert out == [{"x": 0.0}, {"x": 1.0}]

    def test_empty_batch(self):
        """Test normalising nothing returns nothing."""
        assert normalize_features([]) == []

    def test_batch_includes_target(self):
        """Test the target shares the candidates' min/max basis."""
        target, candidates = normalize_batch(
            {"x": 10},
            [("a", {"x": 0}), {"item": "b", "features": {"x": 5}}],
        )

        assert target == {"x": 1.0}
        assert [c.item for c in candidates] == ["a", "b"]
        assert [c.features["x"] for c in candidates] == [0.0, 0.5]

    def test_nan_feature_reads_as_zero(self):
        """Test a NaN in one candidate does not poison the shared basis."""
        target, candidates = normalize_batch(
            {"x": 0},
            [("far", {"x": 9}), ("nan", {"x": float("nan")}), ("mid", {"x": 4.5})],
        )

        assert target == {"x": 0.0}
        assert [c.features["x"] for c in candidates] == pytest.approx([1.0, 0.0, 0.5])

    def test_does_not_mutate_inputs(self):
        """Test the caller's vectors are left untouched."""
        vectors = [{"x": 0}, {"x": 4}]
        normalize_features(vectors)

        assert vectors == [{"x": 0}, {"x": 4}]


class TestFindKnn:
    """Tests for find_knn."""

    def test_identical_candidate_ranks_first(self):
        """Test a candidate equal to the target has distance 0, similarity 1."""
        target = {"a": 1.0, "b": 2.0}
        neighbours = find_knn(target, [("far", {"a": 5, "b": 5}), ("same", dict(target))], k=2)

        assert neighbours[0].item == "same"
        assert neighbours[0].distance == 0.0
        assert neighbours[0].similarity == 1.0
        assert neighbours[1].similarity == pytest.approx(1 / (1 + neighbours[1].distance))

    def test_sorted_by_ascending_distance(self):
        """Test results come back nearest first."""
        candidates = [(i, {"x": float(x)}) for i, x in enumerate([7, 1, 4, 2])]
        neighbours = find_knn({"x": 0}, candidates, k=4)

        assert [n.item for n in neighbours] == [1, 3, 2, 0]
        distances = [n.distance for n in neighbours]
        assert distances == sorted(distances)

    def test_ties_keep_input_order(self):
        """Test equal distances preserve candidate order."""
        neighbours = find_knn({"x": 0}, [("first", {"x": 1}), ("second", {"x": -1})], k=2)

        assert [n.item for n in neighbours] == ["first", "second"]

    def test_nan_candidate_keeps_ranking(self):
        """Test a NaN feature ranks as zero instead of scrambling the order."""
        candidates = [
            ("far", {"x": 9}),
            ("nan", {"x": float("nan")}),
            ("near", {"x": 1}),
            ("mid", {"x": 5}),
        ]
        neighbours = find_knn({"x": 0}, candidates, k=4)

        assert [n.item for n in neighbours] == ["nan", "near", "mid", "far"]
        assert [n.distance for n in neighbours] == pytest.approx([0.0, 1.0, 5.0, 9.0])

    def test_k_larger_than_pool(self):
        """Test k beyond the pool size returns every candidate."""
        assert len(find_knn({"x": 0}, [("a", {"x": 1}), ("b", {"x": 2})], k=10)) == 2

    def test_k_zero_or_no_candidates(self):
        """Test non-positive k and an empty pool return an empty list."""
        assert find_knn({"x": 0}, [("a", {"x": 1})], k=0) == []
        assert find_knn({"x": 0}, [("a", {"x": 1})], k=-1) == []
        assert find_knn({"x": 0}, [], k=3) == []

    def test_cosine_metric(self):
        """Test cosine ranking uses distance = 1 - similarity."""
        neighbours = find_knn(
            {"a": 1, "b": 0},
            [("orthogonal", {"a": 0, "b": 1}), ("parallel", {"a": 2, "b": 0})],
            k=2,
            metric="cosine",
        )

        assert [n.item for n in neighbours] == ["parallel", "orthogonal"]
        assert neighbours[0].similarity == pytest.approx(1.0)
        assert neighbours[0].distance == pytest.approx(0.0)
        assert neighbours[1].distance == pytest.approx(1.0)

    def test_unknown_metric(self):
        """Test an unknown metric name is rejected."""
        with pytest.raises(ValueError):
            find_knn({"x": 0}, [("a", {"x": 1})], k=1, metric="manhattan")

    def test_item_handed_back_untouched(self):
        """Test the opaque item is returned by identity."""
        item = object()
        neighbours = find_knn({"x": 0}, [SimilarityCandidate(item=item, features={"x": 1})], k=1)

        assert neighbours[0].item is item
        assert isinstance(neighbours[0], Neighbor)
        assert "features" not in neighbours[0].to_dict()

    def test_metric_enum_accepted(self):
        """Test the enum and its string value behave the same."""
        a = find_knn({"x": 1}, [("a", {"x": 2})], k=1, metric=DistanceMetric.COSINE)
        b = find_knn({"x": 1}, [("a", {"x": 2})], k=1, metric="cosine")

        assert a[0].similarity == b[0].similarity


class TestWeightedKnn:
    """Tests for find_weighted_knn."""

    def test_weight_applies_to_both_sides(self):
        """Test a weight of 3 scales a unit difference to distance 3."""
        neighbours = find_weighted_knn({"x": 1}, [("a", {"x": 0})], k=1, weights={"x": 3})

        assert neighbours[0].distance == pytest.approx(3.0)

    def test_weight_effect_is_quadratic_in_squared_distance(self):
        """Test doubling a weight quadruples that feature's squared contribution."""
        target = {"x": 1.0, "y": 1.0}
        candidate = [("a", {"x": 0.0, "y": 0.0})]
        d = find_weighted_knn(target, candidate, k=1, weights={"x": 2})[0].distance

        assert d ** 2 == pytest.approx(2 ** 2 * 1 + 1)

    def test_unweighted_matches_plain_knn(self):
        """Test no weights gives the plain Euclidean ranking."""
        candidates = [("a", {"x": 1, "y": 3}), ("b", {"x": 2, "y": 0})]
        weighted = find_weighted_knn({"x": 0, "y": 0}, candidates, k=2)
        plain = find_knn({"x": 0, "y": 0}, candidates, k=2)

        assert [n.item for n in weighted] == [n.item for n in plain]
        assert [n.distance for n in weighted] == pytest.approx([n.distance for n in plain])

    def test_skill_match_outranks_rating(self, ideal_volunteer, volunteer_pool):
        """Test a perfect skill match beats a better rating under skill weight 3."""
        neighbours = find_weighted_knn(ideal_volunteer, volunteer_pool, k=1, weights={"skillMatch": 3})

        assert len(neighbours) == 1
        assert neighbours[0].item == "skilled"
        assert neighbours[0].distance == pytest.approx(0.4)

    def test_empty_pool(self):
        """Test weighted ranking of nothing is empty."""
        assert find_weighted_knn({"x": 1}, [], k=3, weights={"x": 2}) == []

    def test_apply_weights_ignores_absent_keys(self):
        """Test weights for keys the vector lacks are not added."""
        assert apply_weights({"x": 2}, {"x": 3, "y": 5}) == {"x": 6}


class TestExplainSimilarity:
    """Tests for explain_similarity."""

    def test_lists_close_features(self):
        """Test only features within the threshold are explained."""
        reasons = explain_similarity(
            {"age": 0.50, "severity": 1.0},
            {"age": 0.55, "severity": 0.0},
            names={"age": "age"},
        )

        assert reasons == ["Similar age: 0.50 vs 0.55"]

    def test_threshold_is_inclusive_and_keys_fall_back(self):
        """Test a difference equal to the threshold counts; unnamed keys use their key."""
        reasons = explain_similarity({"x": 0.5}, {"x": 0.5}, threshold=0.0)

        assert reasons == ["Similar x: 0.50 vs 0.50"]

    def test_missing_candidate_key_skipped(self):
        """Test target features the candidate lacks are not explained."""
        assert explain_similarity({"x": 0.1}, {"y": 0.1}) == []
