"""
Unit Tests for the Rule Trees

Tests for traversal, explanations, feature resolution, export and the
startup validator.
"""
import pytest

from careinsight.core.decision_tree import (
    CARE_PATH_FALLBACK_STEPS,
    CARE_PATH_NEXT_STEPS,
    DISCHARGE_NEXT_STEPS,
    DecisionNode,
    LeafNode,
    Operator,
    RuleTree,
    TreeBuilder,
    build_care_path_tree,
    build_discharge_readiness_tree,
    resolve_features,
    validate_tree,
)
from careinsight.utils import TreeValidationError


# Fixtures
@pytest.fixture(scope="module")
def care_path():
    return build_care_path_tree()


@pytest.fixture(scope="module")
def discharge():
    return build_discharge_readiness_tree()


@pytest.fixture
def stable_adult():
    """Care-path inputs that fall through every alarm branch."""
    return {
        "oxygenSaturation": 95,
        "heartRate": 70,
        "bloodPressureSystolic": 120,
        "temperature": 37.0,
        "age": 30,
        "mobilityScore": 5,
        "daysAdmitted": 1,
        "painLevel": 1,
        "recentSurgery": False,
    }


@pytest.fixture
def discharge_ready():
    """Discharge inputs that pass every clinical gate."""
    return {
        "oxygenSaturation": 96,
        "temperature": 36.8,
        "painLevel": 2,
        "mobilityScore": 4,
        "daysAdmitted": 3,
        "age": 50,
        "hasChronicCondition": False,
    }


class TestOperator:
    """Tests for Operator.evaluate."""

    @pytest.mark.parametrize("op,value,expected", [
        (Operator.GT, 5, False),
        (Operator.GT, 6, True),
        (Operator.LT, 4, True),
        (Operator.GTE, 5, True),
        (Operator.LTE, 5, True),
        (Operator.LTE, 6, False),
        (Operator.EQ, 5, True),
        (Operator.EQ, 5.5, False),
    ])
    def test_against_threshold_five(self, op, value, expected):
        """Test each operator compares value against threshold."""
        assert op.evaluate(value, 5) is expected


class TestResolveFeatures:
    """Tests for boundary feature resolution."""

    def test_booleans_become_numbers(self):
        """Test True/False resolve to 1.0/0.0."""
        assert resolve_features({"a": True, "b": False}) == {"a": 1.0, "b": 0.0}

    def test_none_and_nan_dropped(self):
        """Test missing values are dropped rather than stored."""
        assert resolve_features({"a": None, "b": float("nan"), "c": 2}) == {"c": 2.0}


class TestCarePathTree:
    """Tests for the shipped care-path tree."""

    def test_stable_adult_gets_standard_care(self, care_path, stable_adult):
        """Test a stable adult falls through to standard care."""
        result = care_path.predict(stable_adult)

        assert result.recommendation == "STANDARD_CARE"
        assert result.confidence == 0.78
        assert result.next_steps == CARE_PATH_NEXT_STEPS["STANDARD_CARE"]

    @pytest.mark.parametrize("overrides,expected,confidence", [
        ({"oxygenSaturation": 85}, "IMMEDIATE_ICU_TRANSFER", 0.95),
        ({"heartRate": 120, "bloodPressureSystolic": 150}, "CARDIOLOGY_CONSULT", 0.88),
        ({"heartRate": 120}, "MONITOR_VITALS_HOURLY", 0.82),
        ({"temperature": 39.0, "recentSurgery": True}, "INFECTION_PROTOCOL", 0.90),
        ({"temperature": 39.0}, "ANTIPYRETIC_TREATMENT", 0.85),
        ({"age": 70, "mobilityScore": 2}, "PHYSICAL_THERAPY", 0.87),
        ({"age": 70, "daysAdmitted": 6}, "DISCHARGE_PLANNING", 0.83),
        ({"age": 70}, "CONTINUE_MONITORING", 0.80),
        ({"painLevel": 8}, "PAIN_MANAGEMENT_CONSULT", 0.89),
        ({"daysAdmitted": 4}, "DISCHARGE_EVALUATION", 0.85),
    ])
    def test_every_leaf_reachable(self, care_path, stable_adult, overrides, expected, confidence):
        """Test each recommendation is reachable with its authored confidence."""
        result = care_path.predict({**stable_adult, **overrides})

        assert result.recommendation == expected
        assert result.confidence == confidence
        assert result.rule_path[-1] in {
            n.rule for n in care_path.nodes if isinstance(n, LeafNode) and n.prediction == expected
        }

    def test_rule_path_length_and_order(self, care_path, stable_adult):
        """Test the rule path holds every decision rule then the leaf rule."""
        result = care_path.predict(stable_adult)

        assert len(result.rule_path) == care_path.depth + 1
        assert result.rule_path[0] == "Oxygen saturation < 90%"
        assert result.rule_path[-1] == "Continue standard care protocol"

    def test_short_circuit_path(self, care_path):
        """Test a critical SpO2 stops after the first split."""
        result = care_path.predict({"oxygenSaturation": 80, "heartRate": 150})

        assert result.rule_path == ["Oxygen saturation < 90%", "Critical oxygen levels detected"]

    def test_missing_features_read_as_zero(self, care_path):
        """Test an empty feature set is treated as all zeros."""
        assert care_path.predict({}).recommendation == "IMMEDIATE_ICU_TRANSFER"

    def test_reasoning_text(self, care_path):
        """Test the reasoning joins the rule path and humanises the outcome."""
        result = care_path.predict({"oxygenSaturation": 85})

        assert result.reasoning == (
            "Based on clinical assessment: Oxygen saturation < 90% → "
            "Critical oxygen levels detected. Recommendation: immediate icu transfer."
        )

    def test_predictions(self, care_path):
        """Test the tree exposes its eleven distinct outcomes."""
        assert set(care_path.predictions) == set(CARE_PATH_NEXT_STEPS)

    def test_result_to_dict(self, care_path, stable_adult):
        """Test result serialisation uses snake_case keys."""
        data = care_path.predict(stable_adult).to_dict()

        assert set(data) == {"recommendation", "confidence", "rule_path", "reasoning", "next_steps"}


class TestDischargeReadinessTree:
    """Tests for the shipped discharge-readiness tree."""

    def test_low_oxygen_short_circuits(self, discharge):
        """Test low SpO2 decides before any other feature is consulted."""
        result = discharge.predict({
            "oxygenSaturation": 85,
            "temperature": 37.0,
            "painLevel": 0,
            "mobilityScore": 5,
            "daysAdmitted": 5,
            "age": 40,
            "hasChronicCondition": False,
        })

        assert result.recommendation == "NOT_READY"
        assert result.confidence == 0.95
        assert len(result.rule_path) == 2
        assert result.reasoning == (
            "Discharge assessment: Oxygen saturation < 92% → "
            "Oxygen levels too low for discharge. Status: not ready."
        )

    @pytest.mark.parametrize("overrides,expected,confidence", [
        ({}, "READY", 0.92),
        ({"age": 80}, "READY", 0.88),
        ({"age": 80, "hasChronicCondition": True}, "READY_WITH_HOME_CARE", 0.82),
        ({"daysAdmitted": 1}, "OBSERVE_24H", 0.78),
        ({"temperature": 38.0}, "NOT_READY", 0.90),
        ({"painLevel": 6}, "NOT_READY", 0.85),
        ({"mobilityScore": 2}, "NOT_READY", 0.87),
    ])
    def test_outcomes(self, discharge, discharge_ready, overrides, expected, confidence):
        """Test each discharge outcome and its confidence."""
        result = discharge.predict({**discharge_ready, **overrides})

        assert result.recommendation == expected
        assert result.confidence == confidence
        assert result.next_steps == DISCHARGE_NEXT_STEPS[expected]

    def test_boolean_one_matches_true(self, discharge, discharge_ready):
        """Test a numeric 1 and True take the same branch."""
        a = discharge.predict({**discharge_ready, "age": 80, "hasChronicCondition": True})
        b = discharge.predict({**discharge_ready, "age": 80, "hasChronicCondition": 1})

        assert a.recommendation == b.recommendation == "READY_WITH_HOME_CARE"

    def test_delay_step_wording(self, discharge):
        """Test the NOT_READY plan documents the reason for delay."""
        assert "Document reasons for delay" in discharge.next_steps_for("NOT_READY")


class TestExport:
    """Tests for export_tree and export_arena."""

    def test_nested_export(self, care_path):
        """Test the nested export mirrors the root split."""
        exported = care_path.export_tree()

        assert exported["feature"] == "oxygenSaturation"
        assert exported["operator"] == "lt"
        assert exported["threshold"] == 90.0
        assert exported["left"]["prediction"] == "IMMEDIATE_ICU_TRANSFER"
        assert exported["right"]["feature"] == "heartRate"

    def test_export_is_independent(self, care_path):
        """Test mutating an export never touches the live tree."""
        exported = care_path.export_tree()
        exported["left"]["prediction"] = "TAMPERED"
        exported["threshold"] = 0

        assert care_path.export_tree()["left"]["prediction"] == "IMMEDIATE_ICU_TRANSFER"
        assert care_path.predict({"oxygenSaturation": 85}).recommendation == "IMMEDIATE_ICU_TRANSFER"

    def test_arena_export(self, discharge):
        """Test the flat export keeps child indices and the root."""
        arena = discharge.export_arena()

        assert arena["root"] == discharge.root
        assert len(arena["nodes"]) == len(discharge.nodes)
        root = arena["nodes"][arena["root"]]
        assert root["feature"] == "oxygenSaturation"
        assert isinstance(root["left"], int)


class TestTreeBuilder:
    """Tests for authoring custom trees."""

    def test_fallback_steps_for_unlisted_prediction(self):
        """Test a prediction without its own plan gets the fallback steps."""
        b = TreeBuilder("custom")
        root = b.split(
            "score", "gte", 10, "Score >= 10",
            left=b.leaf("ESCALATE", 0.9, "High score"),
            right=b.leaf("WAIT", 0.6, "Low score"),
        )
        tree = b.build(root, next_steps={"ESCALATE": ["Page on-call"]}, fallback_steps=CARE_PATH_FALLBACK_STEPS)

        assert tree.predict({"score": 12}).next_steps == ["Page on-call"]
        assert tree.predict({"score": 3}).next_steps == CARE_PATH_FALLBACK_STEPS
        assert tree.depth == 1

    def test_shipped_tree_depths(self, care_path, discharge):
        """Test the shipped trees validate to their authored depths."""
        assert care_path.depth == 6
        assert discharge.depth == 7


class TestValidateTree:
    """Tests for the startup validator."""

    def test_dangling_child(self):
        """Test an out-of-range child index is rejected."""
        nodes = [DecisionNode("x", 1, Operator.GT, "x > 1", 1, 5), LeafNode("A", 0.5, "a")]

        with pytest.raises(TreeValidationError) as exc_info:
            RuleTree("dangling", nodes, root=0)

        assert exc_info.value.details["tree"] == "dangling"
        assert exc_info.value.node_index == 0

    def test_shared_child(self):
        """Test a node reachable from two parents is rejected."""
        nodes = [LeafNode("A", 0.5, "a"), DecisionNode("x", 1, Operator.GT, "x > 1", 0, 0)]

        with pytest.raises(TreeValidationError):
            validate_tree(nodes, root=1)

    def test_cycle(self):
        """Test a node that points back at itself is rejected."""
        nodes = [DecisionNode("x", 1, Operator.GT, "x > 1", 0, 1), LeafNode("A", 0.5, "a")]

        with pytest.raises(TreeValidationError):
            validate_tree(nodes, root=0)

    def test_root_out_of_range(self):
        """Test a root index outside the arena is rejected."""
        with pytest.raises(TreeValidationError):
            validate_tree([LeafNode("A", 0.5, "a")], root=3)

    @pytest.mark.parametrize("leaf", [
        LeafNode("A", 1.5, "a"),
        LeafNode("A", -0.1, "a"),
        LeafNode("", 0.5, "a"),
    ])
    def test_bad_leaf(self, leaf):
        """Test leaves need a prediction and a confidence in [0, 1]."""
        with pytest.raises(TreeValidationError):
            validate_tree([leaf], root=0)

    def test_non_finite_threshold(self):
        """Test a NaN threshold is rejected."""
        nodes = [
            LeafNode("A", 0.5, "a"),
            LeafNode("B", 0.5, "b"),
            DecisionNode("x", float("nan"), Operator.GT, "x > ?", 0, 1),
        ]

        with pytest.raises(TreeValidationError):
            validate_tree(nodes, root=2)

    def test_too_deep(self):
        """Test a path longer than max_depth is rejected."""
        nodes = [
            LeafNode("A", 0.5, "a"),
            LeafNode("B", 0.5, "b"),
            LeafNode("C", 0.5, "c"),
            LeafNode("D", 0.5, "d"),
            DecisionNode("x", 1, Operator.GT, "x > 1", 0, 1),
            DecisionNode("y", 1, Operator.GT, "y > 1", 4, 2),
            DecisionNode("z", 1, Operator.GT, "z > 1", 5, 3),
        ]

        assert validate_tree(nodes, root=6, max_depth=3) == 3
        with pytest.raises(TreeValidationError):
            validate_tree(nodes, root=6, max_depth=2)

    def test_single_leaf_tree(self):
        """Test a lone leaf is a valid tree of depth zero."""
        assert validate_tree([LeafNode("A", 1.0, "a")], root=0) == 0
