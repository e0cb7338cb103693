"""
Text Classification Boundary

Concatenates the free-text fields of an alert or medical record and runs the
matching Naive Bayes model. Models are passed in; when omitted, the
process-wide engines built by careinsight.engine are used.
"""
from __future__ import annotations

from typing import Optional

from careinsight.config import STRICT_CLASSIFICATION
from careinsight.core.classifier import ClassificationResult, ClassifierModel
from careinsight.models import AlertText, MedicalRecordText
from careinsight.utils import get_logger

logger = get_logger(__name__)


def _run(model: ClassifierModel, text: str, strict: bool) -> ClassificationResult:
    result = model.predict_strict(text) if strict else model.predict(text)
    logger.debug(f"{model.name}: '{text[:60]}' → {result.label or '<none>'}")
    return result


def classify_alert_priority(
    title: Optional[str] = None,
    message: Optional[str] = None,
    model: Optional[ClassifierModel] = None,
    strict: bool = STRICT_CLASSIFICATION,
) -> ClassificationResult:
    """Priority (Low / Medium / High / Critical) of an alert."""
    if model is None:
        from careinsight.engine import get_engines
        model = get_engines().alert_priority
    text = AlertText(title=title, message=message).as_text()
    return _run(model, text, strict)


def classify_medical_record_type(
    title: Optional[str] = None,
    summary: Optional[str] = None,
    diagnosis: Optional[str] = None,
    model: Optional[ClassifierModel] = None,
    strict: bool = STRICT_CLASSIFICATION,
) -> ClassificationResult:
    """Record type (Consultation, Lab Results, Imaging, ...) of a medical record."""
    if model is None:
        from careinsight.engine import get_engines
        model = get_engines().record_type
    text = MedicalRecordText(title=title, summary=summary, diagnosis=diagnosis).as_text()
    return _run(model, text, strict)
