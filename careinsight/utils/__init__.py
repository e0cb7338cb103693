"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, setup_logging
from .exceptions import (
    CareInsightError,
    NoTrainedLabelsError,
    TreeValidationError,
    FeatureExtractionError,
    InferenceError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "CareInsightError",
    "NoTrainedLabelsError",
    "TreeValidationError",
    "FeatureExtractionError",
    "InferenceError",
]
