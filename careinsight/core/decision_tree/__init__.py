"""
Decision Tree Layer

Explainable rule trees over clinical thresholds.

Usage:
    from careinsight.core.decision_tree import build_care_path_tree

    tree = build_care_path_tree()             # validated once, at startup
    result = tree.predict({"oxygenSaturation": 95, "heartRate": 70})
    result.recommendation, result.rule_path, result.next_steps
"""
from .base import (
    DecisionNode,
    DecisionResult,
    FeatureValue,
    LeafNode,
    Operator,
    TreeNode,
    resolve_features,
)
from .tree import RuleTree, TreeBuilder, validate_tree
from .trees import (
    CARE_PATH_NEXT_STEPS,
    CARE_PATH_FALLBACK_STEPS,
    DISCHARGE_NEXT_STEPS,
    DISCHARGE_FALLBACK_STEPS,
    build_care_path_tree,
    build_discharge_readiness_tree,
)

__all__ = [
    "DecisionNode",
    "DecisionResult",
    "FeatureValue",
    "LeafNode",
    "Operator",
    "TreeNode",
    "resolve_features",
    "RuleTree",
    "TreeBuilder",
    "validate_tree",
    "CARE_PATH_NEXT_STEPS",
    "CARE_PATH_FALLBACK_STEPS",
    "DISCHARGE_NEXT_STEPS",
    "DISCHARGE_FALLBACK_STEPS",
    "build_care_path_tree",
    "build_discharge_readiness_tree",
]
