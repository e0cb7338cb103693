"""
Care Decision Workflows

Runs the rule trees for single patients and batches, and packages a tree
for audit export. Trees are passed in; when omitted, the process-wide
engines built by careinsight.engine are used.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from careinsight.core.decision_tree import DecisionResult, FeatureValue, RuleTree
from careinsight.models import PatientRecord
from careinsight.utils import get_logger, InferenceError
from .features import DocumentLike, build_tree_features, coerce_document

logger = get_logger(__name__)


class EvaluationType(str, Enum):
    CARE_PATH = "care-path"
    DISCHARGE_READINESS = "discharge-readiness"


def _engines():
    from careinsight.engine import get_engines
    return get_engines()


def evaluate_care_path(
    features: Mapping[str, FeatureValue],
    tree: Optional[RuleTree] = None,
) -> DecisionResult:
    tree = tree or _engines().care_path
    return tree.predict(features)


def evaluate_discharge_readiness(
    features: Mapping[str, FeatureValue],
    tree: Optional[RuleTree] = None,
) -> DecisionResult:
    tree = tree or _engines().discharge_readiness
    return tree.predict(features)


def evaluate_patient(
    patient: DocumentLike,
    vitals: Optional[DocumentLike] = None,
    overrides: Optional[DocumentLike] = None,
    evaluation_type: Union[EvaluationType, str] = EvaluationType.CARE_PATH,
    tree: Optional[RuleTree] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Assemble features for one patient and run the requested tree.

    Raises:
        InferenceError: unknown evaluation type
    """
    evaluation = parse_evaluation_type(evaluation_type)
    record = coerce_document(PatientRecord, patient, "patient")
    features = build_tree_features(record, vitals, overrides, now)

    if evaluation is EvaluationType.DISCHARGE_READINESS:
        result = evaluate_discharge_readiness(features, tree)
    else:
        result = evaluate_care_path(features, tree)

    logger.info(f"evaluate_patient [{evaluation.value}]: patient={record.id} → {result.recommendation}")
    return {
        "patient_id": record.id,
        "patient_name": record.name,
        **result.to_dict(),
        "timestamp": _timestamp(now),
    }


def batch_evaluate(
    patients: Sequence[Union[DocumentLike, Tuple[DocumentLike, Optional[DocumentLike]]]],
    evaluation_type: Union[EvaluationType, str] = EvaluationType.CARE_PATH,
    tree: Optional[RuleTree] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Evaluate many patients with one tree.

    Each entry is a patient document or a (patient, vitals) pair. A patient
    that fails is logged and left out; the rest still get a result.

    Raises:
        InferenceError: unknown evaluation type
    """
    evaluation = parse_evaluation_type(evaluation_type)
    results: List[Dict[str, Any]] = []

    for entry in patients:
        patient, vitals = entry if isinstance(entry, tuple) else (entry, None)
        try:
            record = coerce_document(PatientRecord, patient, "patient")
            outcome = evaluate_patient(record, vitals, None, evaluation, tree, now)
            outcome["room_number"] = record.room_number
            outcome.pop("timestamp", None)
            results.append(outcome)
        except Exception as exc:
            logger.error(f"batch_evaluate [{evaluation.value}]: patient failed: {exc}", exc_info=True)

    logger.info(f"batch_evaluate [{evaluation.value}]: {len(results)}/{len(patients)} evaluated")
    return {
        "evaluation_type": evaluation.value,
        "total_patients": len(patients),
        "evaluated": len(results),
        "results": results,
        "timestamp": _timestamp(now),
    }


def export_tree_document(tree: RuleTree, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Audit/display export of a tree with its name and description."""
    return {
        "name": tree.name,
        "description": tree.description,
        "tree": tree.export_tree(),
        "exported_at": _timestamp(now),
    }


def parse_evaluation_type(value: Union[EvaluationType, str]) -> EvaluationType:
    try:
        return EvaluationType(value)
    except ValueError as exc:
        raise InferenceError(
            f"Unknown evaluation type: {value!r}",
            details={"allowed": [e.value for e in EvaluationType]},
        ) from exc


def _timestamp(now: Optional[datetime]) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()
