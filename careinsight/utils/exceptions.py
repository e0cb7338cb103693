"""
Custom Exception Hierarchy

Specific exception types for the inference engine, each carrying a stable
error code and structured details for callers that serialise errors.
"""
from typing import Optional, Dict, Any


class CareInsightError(Exception):
    """Base exception for all inference engine errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class NoTrainedLabelsError(CareInsightError):
    """Prediction requested from a classifier that has never been trained."""

    def __init__(
        self,
        message: str = "Classifier has no trained labels",
        classifier: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="NO_TRAINED_LABELS",
            details={"classifier": classifier, **(details or {})}
        )
        self.classifier = classifier


class TreeValidationError(CareInsightError):
    """
    A decision tree failed structural validation.

    This is a configuration error: the tree is authored in code and checked
    once at startup, so the process should refuse to start.
    """

    def __init__(
        self,
        message: str,
        tree: str = "unknown",
        node_index: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="TREE_VALIDATION_ERROR",
            details={"tree": tree, "node_index": node_index, **(details or {})}
        )
        self.tree = tree
        self.node_index = node_index


class FeatureExtractionError(CareInsightError):
    """A domain document could not be turned into a feature vector."""

    def __init__(
        self,
        message: str,
        document: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="FEATURE_EXTRACTION_ERROR",
            details={"document": document, **(details or {})}
        )
        self.document = document


class InferenceError(CareInsightError):
    """Errors while running an inference workflow."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="INFERENCE_ERROR",
            details=details
        )
