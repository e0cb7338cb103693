"""
Rule Tree: Arena, Builder, Validator, Traversal

A RuleTree is immutable once built. Construction validates the arena once;
a malformed tree raises TreeValidationError so startup fails instead of a
request crashing mid-traversal.

Authoring:
    b = TreeBuilder("care_path")
    root = b.split("oxygenSaturation", Operator.LT, 90, "Oxygen saturation < 90%",
                   left=b.leaf("IMMEDIATE_ICU_TRANSFER", 0.95, "Critical oxygen levels"),
                   right=b.leaf("STANDARD_CARE", 0.78, "Continue standard care"))
    tree = b.build(root, next_steps={...}, fallback_steps=[...])

Child arguments are evaluated before split() runs, so children always land
in the arena before their parent and the root is the last node added.
"""
from __future__ import annotations

import math
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from careinsight.config import MAX_TREE_DEPTH
from careinsight.utils import get_logger, TreeValidationError
from .base import (
    DecisionNode,
    DecisionResult,
    FeatureValue,
    LeafNode,
    Operator,
    TreeNode,
    humanize_prediction,
    node_to_dict,
    resolve_features,
)

logger = get_logger(__name__)


# ── Validation ────────────────────────────────────────────────────────────────

def validate_tree(
    nodes: Sequence[TreeNode],
    root: int,
    name: str = "tree",
    max_depth: int = MAX_TREE_DEPTH,
) -> int:
    """
    Check the arena forms a finite binary tree rooted at `root`.

    Every decision node must have two in-range children, every node may be
    reached at most once (no sharing, no cycles), leaves need a prediction and
    a confidence in [0, 1], and no path may be deeper than `max_depth`.

    Returns:
        Depth of the tree (number of decision nodes on the longest path)

    Raises:
        TreeValidationError: on the first structural problem found
    """
    if not 0 <= root < len(nodes):
        raise TreeValidationError(
            f"Root index {root} outside arena of {len(nodes)} node(s)",
            tree=name, node_index=root,
        )

    visited = set()
    max_seen = 0
    stack: List[Tuple[int, int]] = [(root, 0)]

    while stack:
        index, depth = stack.pop()
        if index in visited:
            raise TreeValidationError(
                f"Node {index} is reachable more than once (shared child or cycle)",
                tree=name, node_index=index,
            )
        visited.add(index)
        node = nodes[index]

        if isinstance(node, LeafNode):
            if not node.prediction:
                raise TreeValidationError(
                    f"Leaf {index} has no prediction", tree=name, node_index=index,
                )
            if not 0.0 <= node.confidence <= 1.0:
                raise TreeValidationError(
                    f"Leaf {index} confidence {node.confidence} outside [0, 1]",
                    tree=name, node_index=index,
                )
            max_seen = max(max_seen, depth)
            continue

        if not isinstance(node, DecisionNode):
            raise TreeValidationError(
                f"Node {index} is not a DecisionNode or LeafNode",
                tree=name, node_index=index,
            )
        if depth >= max_depth:
            raise TreeValidationError(
                f"Tree deeper than {max_depth} at node {index}",
                tree=name, node_index=index, details={"max_depth": max_depth},
            )
        if not isinstance(node.operator, Operator):
            raise TreeValidationError(
                f"Node {index} has unknown operator {node.operator!r}",
                tree=name, node_index=index,
            )
        if not math.isfinite(node.threshold):
            raise TreeValidationError(
                f"Node {index} threshold is not finite", tree=name, node_index=index,
            )
        for side, child in (("left", node.left), ("right", node.right)):
            if child is None or not 0 <= child < len(nodes):
                raise TreeValidationError(
                    f"Node {index} has a dangling {side} child ({child})",
                    tree=name, node_index=index, details={"side": side},
                )
            stack.append((child, depth + 1))

    unreachable = len(nodes) - len(visited)
    if unreachable:
        logger.warning(f"RuleTree [{name}]: {unreachable} unreachable node(s) in arena")

    return max_seen


# ── Builder ───────────────────────────────────────────────────────────────────

class TreeBuilder:
    """Appends nodes to an arena and hands back their indices."""

    def __init__(self, name: str):
        self.name = name
        self._nodes: List[TreeNode] = []

    def _add(self, node: TreeNode) -> int:
        self._nodes.append(node)
        return len(self._nodes) - 1

    def leaf(self, prediction: str, confidence: float, rule: str) -> int:
        return self._add(LeafNode(prediction=prediction, confidence=float(confidence), rule=rule))

    def split(
        self,
        feature: str,
        operator: Union[Operator, str],
        threshold: float,
        rule: str,
        left: int,
        right: int,
    ) -> int:
        return self._add(DecisionNode(
            feature=feature,
            threshold=float(threshold),
            operator=Operator(operator),
            rule=rule,
            left=left,
            right=right,
        ))

    def build(
        self,
        root: int,
        next_steps: Optional[Mapping[str, Sequence[str]]] = None,
        fallback_steps: Sequence[str] = (),
        description: str = "",
        reasoning_prefix: str = "Based on clinical assessment",
        outcome_label: str = "Recommendation",
    ) -> "RuleTree":
        return RuleTree(
            name=self.name,
            nodes=self._nodes,
            root=root,
            next_steps=next_steps,
            fallback_steps=fallback_steps,
            description=description,
            reasoning_prefix=reasoning_prefix,
            outcome_label=outcome_label,
        )


# ── Tree ──────────────────────────────────────────────────────────────────────

class RuleTree:
    """
    Static, explainable binary decision tree.

    Immutable after construction; predict() is safe to call concurrently.
    """

    def __init__(
        self,
        name: str,
        nodes: Sequence[TreeNode],
        root: int,
        next_steps: Optional[Mapping[str, Sequence[str]]] = None,
        fallback_steps: Sequence[str] = (),
        description: str = "",
        reasoning_prefix: str = "Based on clinical assessment",
        outcome_label: str = "Recommendation",
        max_depth: int = MAX_TREE_DEPTH,
    ):
        self._nodes: Tuple[TreeNode, ...] = tuple(nodes)
        self._root = root
        self.name = name
        self.description = description
        self._reasoning_prefix = reasoning_prefix
        self._outcome_label = outcome_label
        self._next_steps = MappingProxyType({
            prediction: tuple(steps) for prediction, steps in (next_steps or {}).items()
        })
        self._fallback_steps = tuple(fallback_steps)

        self._depth = validate_tree(self._nodes, root, name=name, max_depth=max_depth)
        logger.info(
            f"RuleTree [{name}]: {len(self._nodes)} node(s), depth={self._depth}"
        )

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def root(self) -> int:
        return self._root

    @property
    def nodes(self) -> Tuple[TreeNode, ...]:
        return self._nodes

    @property
    def predictions(self) -> List[str]:
        """Distinct leaf predictions, in arena order."""
        seen: Dict[str, None] = {}
        for node in self._nodes:
            if isinstance(node, LeafNode):
                seen.setdefault(node.prediction, None)
        return list(seen)

    def next_steps_for(self, prediction: str) -> List[str]:
        return list(self._next_steps.get(prediction, self._fallback_steps))

    def predict(self, features: Mapping[str, FeatureValue]) -> DecisionResult:
        """
        Walk the tree for one patient.

        Missing features read as 0 and booleans as 1/0. Each visited node's
        rule is appended to the rule path, the leaf's rule last.
        """
        values = resolve_features(features)
        rule_path: List[str] = []
        node = self._nodes[self._root]

        while isinstance(node, DecisionNode):
            value = values.get(node.feature, 0.0)
            rule_path.append(node.rule)
            node = self._nodes[node.left if node.operator.evaluate(value, node.threshold) else node.right]

        rule_path.append(node.rule)

        result = DecisionResult(
            recommendation=node.prediction,
            confidence=node.confidence,
            rule_path=rule_path,
            reasoning=self._reasoning(node.prediction, rule_path),
            next_steps=self.next_steps_for(node.prediction),
        )
        logger.debug(
            f"RuleTree [{self.name}]: {result.recommendation} "
            f"(confidence={result.confidence}, steps={len(rule_path)})"
        )
        return result

    def _reasoning(self, prediction: str, rule_path: List[str]) -> str:
        reasons = " → ".join(rule_path)
        return (
            f"{self._reasoning_prefix}: {reasons}. "
            f"{self._outcome_label}: {humanize_prediction(prediction)}."
        )

    def export_tree(self) -> Dict[str, Any]:
        """
        Nested, independent copy of the tree for display and audit.

        Built from fresh dicts on every call, so mutating the result never
        touches the live tree.
        """
        def expand(index: int) -> Dict[str, Any]:
            node = self._nodes[index]
            data = node_to_dict(node)
            if isinstance(node, DecisionNode):
                data["left"] = expand(node.left)
                data["right"] = expand(node.right)
            return data

        return expand(self._root)

    def export_arena(self) -> Dict[str, Any]:
        """Flat copy of the arena: {"root": index, "nodes": [...]}."""
        return {
            "root": self._root,
            "nodes": [node_to_dict(node) for node in self._nodes],
        }
