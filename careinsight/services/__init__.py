"""
Services Package - Workflows over the inference cores

Feature adapters turn documents into vectors; the workflows rank, classify
and evaluate with the process-wide engines unless given their own.
"""
from careinsight.core.similarity import find_knn, find_weighted_knn
from .features import (
    build_tree_features,
    coerce_document,
    extract_doctor_features,
    extract_patient_features,
    extract_volunteer_features,
    parse_blood_pressure,
)
from .classification import classify_alert_priority, classify_medical_record_type
from .care_decisions import (
    EvaluationType,
    batch_evaluate,
    evaluate_care_path,
    evaluate_discharge_readiness,
    evaluate_patient,
    export_tree_document,
    parse_evaluation_type,
)
from .matching import (
    batch_similarity,
    find_similar_patients,
    rank_volunteers,
    recommend_doctors,
)

__all__ = [
    "find_knn",
    "find_weighted_knn",
    "build_tree_features",
    "coerce_document",
    "extract_doctor_features",
    "extract_patient_features",
    "extract_volunteer_features",
    "parse_blood_pressure",
    "classify_alert_priority",
    "classify_medical_record_type",
    "EvaluationType",
    "batch_evaluate",
    "evaluate_care_path",
    "evaluate_discharge_readiness",
    "evaluate_patient",
    "export_tree_document",
    "parse_evaluation_type",
    "batch_similarity",
    "find_similar_patients",
    "rank_volunteers",
    "recommend_doctors",
]
