"""
Feature Extraction Adapters

Turn domain documents into the numeric inputs the inference cores consume.
This is the only place where raw documents are read; the cores see plain
feature vectors.

Encodings:
    gender    male/M → 0, female/F → 1, anything else → 0.5
    severity  normal → 0, warning → 0.5, critical → 1
    rating    0-5 stars → 0-1
"""
from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from careinsight.config import DEFAULT_MOBILITY_SCORE
from careinsight.core.decision_tree import FeatureValue
from careinsight.core.similarity import FeatureVector
from careinsight.models import (
    DoctorProfile,
    PatientPreferences,
    PatientRecord,
    TreeFeatureOverrides,
    VitalsRecord,
    VolunteerProfile,
    VolunteerTask,
)
from careinsight.utils import get_logger, FeatureExtractionError

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)
DocumentLike = Union[BaseModel, Mapping[str, Any]]

_GENDER_CODES = {"male": 0.0, "m": 0.0, "female": 1.0, "f": 1.0}
_SEVERITY_CODES = {"warning": 0.5, "critical": 1.0}
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

SECONDS_PER_DAY = 60 * 60 * 24
FULL_TIME_HOURS = 40
DOCTOR_CASELOAD_CAPACITY = 20


# ── Helpers ───────────────────────────────────────────────────────────────────

def coerce_document(model_cls: Type[M], document: Optional[DocumentLike], name: str) -> Optional[M]:
    """
    Validate a raw document (or another model) into `model_cls`.

    Raises:
        FeatureExtractionError: the document does not fit the model
    """
    if document is None or isinstance(document, model_cls):
        return document
    if isinstance(document, BaseModel):
        document = document.model_dump(by_alias=True)
    try:
        return model_cls.model_validate(document)
    except ValidationError as exc:
        raise FeatureExtractionError(
            f"Invalid {name} document",
            document=name,
            details={"errors": exc.errors(include_url=False)},
        ) from exc


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _now(now: Optional[datetime]) -> datetime:
    return _aware(now) if now else datetime.now(timezone.utc)


def age_in_years(date_of_birth: datetime, now: Optional[datetime] = None) -> int:
    """Completed years between birth and now."""
    today = _now(now).date()
    born = date_of_birth.date()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def days_since(start: datetime, now: Optional[datetime] = None) -> int:
    """Whole days elapsed since `start` (naive datetimes are read as UTC)."""
    elapsed = (_now(now) - _aware(start)).total_seconds()
    return math.floor(elapsed / SECONDS_PER_DAY)


def parse_blood_pressure(reading: Optional[str]) -> Tuple[float, float]:
    """'120/80' → (120.0, 80.0). Missing or unparseable parts read as 0."""
    if not reading:
        return 0.0, 0.0
    parts = reading.split("/")

    def leading_int(part: str) -> float:
        match = _LEADING_INT_RE.match(part)
        return float(match.group(1)) if match else 0.0

    systolic = leading_int(parts[0])
    diastolic = leading_int(parts[1]) if len(parts) > 1 else 0.0
    return systolic, diastolic


def patient_age(patient: PatientRecord, now: Optional[datetime] = None) -> float:
    if patient.date_of_birth:
        return float(age_in_years(patient.date_of_birth, now))
    return float(patient.age or 0)


def _overlap_ratio(required, offered) -> Optional[float]:
    required = set(required)
    if not required:
        return None
    return len(required & set(offered)) / len(required)


# ── Similarity features ───────────────────────────────────────────────────────

def extract_patient_features(
    patient: DocumentLike,
    vitals: Optional[DocumentLike] = None,
    now: Optional[datetime] = None,
) -> FeatureVector:
    """Patient + latest vitals → feature vector for patient similarity."""
    patient = coerce_document(PatientRecord, patient, "patient")
    vitals = coerce_document(VitalsRecord, vitals, "vitals") or VitalsRecord()

    systolic, diastolic = parse_blood_pressure(vitals.blood_pressure)
    days_admitted = days_since(patient.admission_date, now) if patient.admission_date else 0

    return {
        "age": patient_age(patient, now),
        "gender": _GENDER_CODES.get((patient.gender or "").lower(), 0.5),
        "heartRate": float(vitals.heart_rate or 0),
        "bloodPressureSystolic": systolic,
        "bloodPressureDiastolic": diastolic,
        "temperature": float(vitals.temperature or 0),
        "oxygenSaturation": float(vitals.oxygen_saturation or 0),
        "respiratoryRate": float(vitals.respiratory_rate or 0),
        "bmi": 0.0,                     # not recorded on the patient document
        "daysAdmitted": float(days_admitted),
        "chronicConditionsCount": float(len(patient.medical_conditions)),
        "allergiesCount": float(len(patient.allergies)),
        "medicationsCount": float(len(patient.medications)),
        "severity": _SEVERITY_CODES.get(vitals.severity or "", 0.0),
    }


def extract_volunteer_features(volunteer: DocumentLike, task: DocumentLike) -> FeatureVector:
    """Volunteer profile scored against one task's requirements."""
    volunteer = coerce_document(VolunteerProfile, volunteer, "volunteer")
    task = coerce_document(VolunteerTask, task, "task")

    skill_match = _overlap_ratio(task.required_skills, volunteer.skills)
    language_match = _overlap_ratio(task.required_languages, volunteer.languages)

    if volunteer.available_hours:
        availability = min(volunteer.available_hours / FULL_TIME_HOURS, 1.0)
    else:
        availability = 0.5

    return {
        "availability": float(availability),
        "experienceYears": float(volunteer.experience_years or 0),
        "tasksCompleted": float(volunteer.tasks_completed or 0),
        "averageRating": (volunteer.average_rating or 0) / 5,
        "skillMatch": skill_match if skill_match is not None else 0.0,
        "proximityScore": float(volunteer.proximity_score or 0.5),
        "languageMatch": language_match if language_match is not None else 1.0,
        "preferenceMatch": 1.0 if task.type in volunteer.preferred_task_types else 0.5,
    }


def extract_doctor_features(
    doctor: DocumentLike,
    patient: DocumentLike,
    required_specialty: Optional[str] = None,
) -> FeatureVector:
    """Doctor profile scored against a patient's needs."""
    doctor = coerce_document(DoctorProfile, doctor, "doctor")
    patient = coerce_document(PatientPreferences, patient, "patient")

    doctor_languages = doctor.languages if doctor.languages is not None else ["English"]
    patient_languages = (
        patient.preferred_languages if patient.preferred_languages is not None else ["English"]
    )
    language_match = _overlap_ratio(patient_languages, doctor_languages)

    if doctor.current_patients:
        availability = max(0.0, 1 - doctor.current_patients / DOCTOR_CASELOAD_CAPACITY)
    else:
        availability = 0.8

    same_department = bool(patient.department) and doctor.department == patient.department

    return {
        "specialtyMatch": 1.0 if required_specialty and doctor.specialty == required_specialty else 0.5,
        "experienceYears": float(doctor.experience_years or 0),
        "patientsHandled": float(doctor.total_patients_handled or 0),
        "averageRating": (doctor.average_rating or 4) / 5,
        "availability": float(availability),
        "caseloadSimilarity": float(doctor.caseload_similarity or 0.5),
        "departmentMatch": 1.0 if same_department else 0.0,
        "languageMatch": language_match if language_match is not None else 1.0,
    }


# ── Decision tree features ────────────────────────────────────────────────────

def _first(*values: Optional[float]) -> Optional[float]:
    """First truthy value, else the last one given."""
    for value in values:
        if value:
            return value
    return values[-1]


def build_tree_features(
    patient: DocumentLike,
    vitals: Optional[DocumentLike] = None,
    overrides: Optional[DocumentLike] = None,
    now: Optional[datetime] = None,
) -> Dict[str, FeatureValue]:
    """
    Assemble rule-tree inputs for one patient.

    Recorded values win over clinician overrides. Mobility defaults to the
    configured score when nobody entered one. Booleans are left as booleans;
    the tree resolves them to 1/0.
    """
    patient = coerce_document(PatientRecord, patient, "patient")
    vitals = coerce_document(VitalsRecord, vitals, "vitals") or VitalsRecord()
    overrides = coerce_document(TreeFeatureOverrides, overrides, "overrides") or TreeFeatureOverrides()

    systolic, diastolic = parse_blood_pressure(vitals.blood_pressure)

    if patient.admission_date:
        days_admitted: Optional[float] = float(days_since(patient.admission_date, now))
    else:
        days_admitted = overrides.days_admitted or 0

    mobility = overrides.mobility_score
    if mobility is None:
        mobility = DEFAULT_MOBILITY_SCORE

    features: Dict[str, FeatureValue] = {
        "age": _first(patient_age(patient, now), overrides.age, 0),
        "heartRate": _first(vitals.heart_rate, overrides.heart_rate),
        "bloodPressureSystolic": _first(systolic, overrides.blood_pressure_systolic),
        "bloodPressureDiastolic": _first(diastolic, overrides.blood_pressure_diastolic),
        "temperature": _first(vitals.temperature, overrides.temperature),
        "oxygenSaturation": _first(vitals.oxygen_saturation, overrides.oxygen_saturation),
        "respiratoryRate": _first(vitals.respiratory_rate, overrides.respiratory_rate),
        "painLevel": _first(overrides.pain_level, vitals.pain_level),
        "mobilityScore": mobility,
        "daysAdmitted": days_admitted,
        "hasChronicCondition": patient.has_chronic_condition or bool(overrides.has_chronic_condition),
        "recentSurgery": bool(overrides.recent_surgery),
    }
    logger.debug(f"build_tree_features: patient={patient.id} features={features}")
    return features
