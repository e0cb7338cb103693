"""
Seed corpora for the shipped text classifiers.

The classifiers are seeded from these fixed examples and never learn from
production data.
"""
from __future__ import annotations

from typing import List, Tuple

from .naive_bayes import ClassifierModel, TextClassifier

ALERT_PRIORITY_SEEDS: List[Tuple[str, str]] = [
    ("Low", "routine check minor update no immediate action"),
    ("Low", "information notice low importance"),
    ("Low", "non urgent follow up later"),
    ("Medium", "elevated fever moderate pain monitor"),
    ("Medium", "requires attention today"),
    ("High", "severe pain chest shortness urgent review"),
    ("High", "critical lab value immediate contact doctor"),
    ("Critical", "emergency cardiac arrest stroke code blue"),
    ("Critical", "unresponsive severe bleeding call emergency"),
]

MEDICAL_RECORD_TYPE_SEEDS: List[Tuple[str, str]] = [
    ("Consultation", "consultation follow up visit clinic advice plan"),
    ("Lab Results", "lab blood test panel results value reference"),
    ("Assessment", "assessment evaluation status review observation"),
    ("Imaging", "imaging x ray mri ct ultrasound scan report"),
    ("Prescription", "prescription medication dosage take daily refills"),
    ("Other", "miscellaneous document other type general note"),
]


def build_alert_priority_model() -> ClassifierModel:
    return TextClassifier(name="alert_priority").train_many(ALERT_PRIORITY_SEEDS).snapshot()


def build_medical_record_type_model() -> ClassifierModel:
    return TextClassifier(name="medical_record_type").train_many(MEDICAL_RECORD_TYPE_SEEDS).snapshot()
