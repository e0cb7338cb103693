"""
Inference Engine: Composition Root

Builds the classifier models and rule trees once and hands them out by
reference. Tree validation happens here, so a malformed tree stops startup.

Usage:
    from careinsight.engine import bootstrap, ClinicalInferenceService

    engines = bootstrap()                     # at process startup
    service = ClinicalInferenceService(engines)
    service.classify_alert_priority("Code blue", "cardiac arrest in bay 4")
    service.care_path({"oxygenSaturation": 95, "heartRate": 70})
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Sequence

from careinsight import config
from careinsight.core.classifier import (
    ClassificationResult,
    ClassifierModel,
    build_alert_priority_model,
    build_medical_record_type_model,
)
from careinsight.core.decision_tree import (
    DecisionResult,
    FeatureValue,
    RuleTree,
    build_care_path_tree,
    build_discharge_readiness_tree,
)
from careinsight.core.similarity import Neighbor, find_knn, find_weighted_knn
from careinsight.services.care_decisions import export_tree_document, parse_evaluation_type
from careinsight.services.classification import (
    classify_alert_priority,
    classify_medical_record_type,
)
from careinsight.utils import get_logger, setup_logging

logger = get_logger(__name__)


@dataclass(frozen=True)
class InferenceEngines:
    """Immutable bundle of everything the boundary functions predict with."""
    alert_priority: ClassifierModel
    record_type: ClassifierModel
    care_path: RuleTree
    discharge_readiness: RuleTree

    def trees(self) -> Dict[str, RuleTree]:
        return {
            "care-path": self.care_path,
            "discharge-readiness": self.discharge_readiness,
        }


def build_engines() -> InferenceEngines:
    """
    Train the seeded classifiers and build the validated trees.

    Raises:
        TreeValidationError: a shipped tree is malformed
    """
    engines = InferenceEngines(
        alert_priority=build_alert_priority_model(),
        record_type=build_medical_record_type_model(),
        care_path=build_care_path_tree(),
        discharge_readiness=build_discharge_readiness_tree(),
    )
    logger.info(
        "Inference engines ready: "
        f"alert_priority={len(engines.alert_priority.labels)} labels, "
        f"record_type={len(engines.record_type.labels)} labels, "
        f"care_path depth={engines.care_path.depth}, "
        f"discharge_readiness depth={engines.discharge_readiness.depth}"
    )
    return engines


# ── Process-wide engines ──────────────────────────────────────────────────────

_engines: Optional[InferenceEngines] = None
_engines_lock = threading.Lock()


def bootstrap(configure_logging: bool = True) -> InferenceEngines:
    """Configure logging from settings and build the process-wide engines."""
    if configure_logging:
        setup_logging(config.LOG_LEVEL, config.LOG_FILE or None)
    return get_engines()


def get_engines() -> InferenceEngines:
    """Process-wide engines, built on first use."""
    global _engines
    if _engines is None:
        with _engines_lock:
            if _engines is None:
                _engines = build_engines()
    return _engines


# ── Service facade ────────────────────────────────────────────────────────────

class ClinicalInferenceService:
    """
    Boundary functions bound to one InferenceEngines instance.

    Stateless beyond the engines it holds; safe to share across threads.
    """

    def __init__(self, engines: Optional[InferenceEngines] = None):
        self.engines = engines or get_engines()

    def classify_alert_priority(
        self,
        title: Optional[str] = None,
        message: Optional[str] = None,
    ) -> ClassificationResult:
        return classify_alert_priority(title, message, model=self.engines.alert_priority)

    def classify_medical_record_type(
        self,
        title: Optional[str] = None,
        summary: Optional[str] = None,
        diagnosis: Optional[str] = None,
    ) -> ClassificationResult:
        return classify_medical_record_type(title, summary, diagnosis, model=self.engines.record_type)

    def care_path(self, features: Mapping[str, FeatureValue]) -> DecisionResult:
        return self.engines.care_path.predict(features)

    def discharge_readiness(self, features: Mapping[str, FeatureValue]) -> DecisionResult:
        return self.engines.discharge_readiness.predict(features)

    def find_knn(self, target, candidates, k: int, metric: str = "euclidean") -> Sequence[Neighbor]:
        return find_knn(target, candidates, k, metric)

    def find_weighted_knn(self, target, candidates, k: int, weights=None) -> Sequence[Neighbor]:
        return find_weighted_knn(target, candidates, k, weights)

    def export_tree(self, evaluation_type: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        tree = self.engines.trees()[parse_evaluation_type(evaluation_type).value]
        return export_tree_document(tree, now)
