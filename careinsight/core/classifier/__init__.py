"""
Text Classification Layer

Naive Bayes classification of short clinical texts.

Usage:
    from careinsight.core.classifier import build_alert_priority_model

    model = build_alert_priority_model()      # once, at startup
    result = model.predict("code blue cardiac arrest")
    result.label, result.scores
"""
from .naive_bayes import (
    ClassificationResult,
    ClassifierModel,
    TextClassifier,
    EMPTY_RESULT,
    tokenize,
)
from .seeds import (
    ALERT_PRIORITY_SEEDS,
    MEDICAL_RECORD_TYPE_SEEDS,
    build_alert_priority_model,
    build_medical_record_type_model,
)

__all__ = [
    "ClassificationResult",
    "ClassifierModel",
    "TextClassifier",
    "EMPTY_RESULT",
    "tokenize",
    "ALERT_PRIORITY_SEEDS",
    "MEDICAL_RECORD_TYPE_SEEDS",
    "build_alert_priority_model",
    "build_medical_record_type_model",
]
