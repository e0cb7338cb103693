"""
Decision Tree Layer: Base Types

Node, operator and result types shared by every rule tree. Trees are stored
as an arena: a tuple of nodes addressed by integer index, with an explicit
root index. Decision nodes refer to their children by index.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Union


class Operator(str, Enum):
    """Comparison applied as `operator(feature_value, threshold)`."""
    GT  = "gt"
    LT  = "lt"
    GTE = "gte"
    LTE = "lte"
    EQ  = "eq"

    def evaluate(self, value: float, threshold: float) -> bool:
        if self is Operator.GT:
            return value > threshold
        if self is Operator.LT:
            return value < threshold
        if self is Operator.GTE:
            return value >= threshold
        if self is Operator.LTE:
            return value <= threshold
        return value == threshold


@dataclass(frozen=True)
class DecisionNode:
    """
    Internal node. The condition being true sends traversal LEFT,
    false sends it RIGHT.
    """
    feature: str
    threshold: float
    operator: Operator
    rule: str
    left: int
    right: int


@dataclass(frozen=True)
class LeafNode:
    """Terminal node carrying the recommendation and its authored confidence."""
    prediction: str
    confidence: float
    rule: str


TreeNode = Union[DecisionNode, LeafNode]

# Boundary-side feature value; resolved to float before traversal
FeatureValue = Union[bool, int, float, None]


def resolve_features(raw: Mapping[str, FeatureValue]) -> Dict[str, float]:
    """
    Resolve boundary feature values to plain floats.

    True/False become 1.0/0.0. None (and NaN) are dropped, so the feature
    later reads as 0 like any other missing key.
    """
    resolved: Dict[str, float] = {}
    for key, value in raw.items():
        if value is None:
            continue
        if isinstance(value, bool):
            resolved[key] = 1.0 if value else 0.0
            continue
        number = float(value)
        if math.isnan(number):
            continue
        resolved[key] = number
    return resolved


@dataclass
class DecisionResult:
    """Explainable outcome of one tree traversal."""
    recommendation: str
    confidence: float
    rule_path: List[str] = field(default_factory=list)
    reasoning: str = ""
    next_steps: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommendation": self.recommendation,
            "confidence": self.confidence,
            "rule_path": list(self.rule_path),
            "reasoning": self.reasoning,
            "next_steps": list(self.next_steps),
        }


def node_to_dict(node: TreeNode) -> Dict[str, Any]:
    """Flat dict for one arena node (children stay as indices)."""
    if isinstance(node, LeafNode):
        return {
            "prediction": node.prediction,
            "confidence": node.confidence,
            "rule": node.rule,
        }
    return {
        "feature": node.feature,
        "threshold": node.threshold,
        "operator": node.operator.value,
        "rule": node.rule,
        "left": node.left,
        "right": node.right,
    }


def humanize_prediction(prediction: str) -> str:
    """IMMEDIATE_ICU_TRANSFER → 'immediate icu transfer'."""
    return prediction.replace("_", " ").lower()
