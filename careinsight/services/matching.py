"""
Matching Workflows

Similar-patient lookup, volunteer ranking and doctor recommendation built on
the KNN core. The caller fetches the documents; these functions only compute.

Every workflow normalises the target together with all of its candidates in
one call, then ranks with per-feature weights. Profiles are compared against
an "ideal" vector for volunteer and doctor matching.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from careinsight.config import (
    BATCH_CANDIDATE_LIMIT,
    BATCH_DEFAULT_K,
    DEFAULT_K,
    DOCTOR_DEFAULT_K,
    SIMILARITY_EXPLAIN_THRESHOLD,
)
from careinsight.core.similarity import (
    SimilarityCandidate,
    explain_similarity,
    find_knn,
    find_weighted_knn,
    normalize_batch,
)
from careinsight.models import (
    DoctorProfile,
    PatientPreferences,
    PatientRecord,
    VolunteerProfile,
    VolunteerTask,
)
from careinsight.utils import get_logger
from .features import (
    DocumentLike,
    coerce_document,
    extract_doctor_features,
    extract_patient_features,
    extract_volunteer_features,
    patient_age,
)

logger = get_logger(__name__)

# ── Weights & ideal profiles ──────────────────────────────────────────────────

PATIENT_SIMILARITY_WEIGHTS: Dict[str, float] = {
    "age": 2,
    "chronicConditionsCount": 2,
    "severity": 3,
    "heartRate": 1.5,
    "oxygenSaturation": 1.5,
    "temperature": 1.5,
}

PATIENT_FEATURE_NAMES: Dict[str, str] = {
    "age": "age",
    "heartRate": "heart rate",
    "oxygenSaturation": "oxygen saturation",
    "temperature": "temperature",
    "chronicConditionsCount": "chronic conditions",
    "severity": "severity level",
}

VOLUNTEER_WEIGHTS: Dict[str, float] = {
    "skillMatch": 3,
    "languageMatch": 2,
    "availability": 2,
    "averageRating": 1.5,
    "experienceYears": 1.5,
    "preferenceMatch": 1,
}

IDEAL_VOLUNTEER: Dict[str, float] = {
    "availability": 1,
    "experienceYears": 10,
    "tasksCompleted": 50,
    "averageRating": 1,
    "skillMatch": 1,
    "proximityScore": 1,
    "languageMatch": 1,
    "preferenceMatch": 1,
}

DOCTOR_WEIGHTS: Dict[str, float] = {
    "specialtyMatch": 3,
    "departmentMatch": 2,
    "availability": 2,
    "experienceYears": 1.5,
    "averageRating": 1.5,
    "caseloadSimilarity": 1.5,
    "languageMatch": 1,
}

IDEAL_DOCTOR: Dict[str, float] = {
    "specialtyMatch": 1,
    "experienceYears": 20,
    "patientsHandled": 500,
    "averageRating": 1,
    "availability": 1,
    "caseloadSimilarity": 1,
    "departmentMatch": 1,
    "languageMatch": 1,
}

PatientWithVitals = Tuple[DocumentLike, Optional[DocumentLike]]


def _percent(similarity: float) -> int:
    return int(round(similarity * 100))


# ── Patients ──────────────────────────────────────────────────────────────────

def find_similar_patients(
    target: PatientWithVitals,
    candidates: Sequence[PatientWithVitals],
    k: int = DEFAULT_K,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Rank other patients by clinical similarity to the target.

    Args:
        target: (patient, latest vitals) of the patient of interest
        candidates: (patient, latest vitals) of every other patient
        k: Number of matches to return

    Returns:
        Ranked match dicts with similarity percentage, distance and reasons
    """
    target_patient, target_vitals = target
    target_features = extract_patient_features(target_patient, target_vitals, now)

    # Items carry their pool index; one record may appear with several vitals
    pool = []
    for index, (patient, vitals) in enumerate(candidates):
        record = coerce_document(PatientRecord, patient, "patient")
        pool.append(SimilarityCandidate(
            item=(index, record),
            features=extract_patient_features(record, vitals, now),
        ))

    normalized_target, normalized_pool = normalize_batch(target_features, pool)
    neighbours = find_weighted_knn(normalized_target, normalized_pool, k, PATIENT_SIMILARITY_WEIGHTS)

    matches = []
    for rank, neighbour in enumerate(neighbours, start=1):
        index, record = neighbour.item
        matches.append({
            "rank": rank,
            "patient": {
                "id": record.id,
                "name": record.name,
                "age": patient_age(record, now),
                "gender": record.gender,
                "condition": record.primary_condition,
                "room_number": record.room_number,
            },
            "similarity": _percent(neighbour.similarity),
            "distance": round(neighbour.distance, 3),
            # Reasons compare the unweighted normalised vectors
            "match_reasons": explain_similarity(
                normalized_target,
                normalized_pool[index].features,
                PATIENT_FEATURE_NAMES,
                threshold=SIMILARITY_EXPLAIN_THRESHOLD,
            ),
            "shared_conditions": list(record.medical_conditions),
        })

    logger.info(f"find_similar_patients: {len(matches)} match(es) from {len(pool)} candidate(s)")
    return matches


def batch_similarity(
    targets: Sequence[PatientWithVitals],
    population: Sequence[PatientWithVitals],
    k: int = BATCH_DEFAULT_K,
    candidate_limit: int = BATCH_CANDIDATE_LIMIT,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Top similar patient for each target, using unweighted KNN.

    Each target is compared with at most `candidate_limit` other patients from
    the population. A target that fails extraction is logged and skipped.
    """
    results = []

    for patient, vitals in targets:
        try:
            target = coerce_document(PatientRecord, patient, "patient")
            target_features = extract_patient_features(target, vitals, now)

            pool = []
            for other, other_vitals in population:
                record = coerce_document(PatientRecord, other, "patient")
                if target.id is not None and record.id == target.id:
                    continue
                pool.append(SimilarityCandidate(
                    item=record,
                    features=extract_patient_features(record, other_vitals, now),
                ))
                if len(pool) >= candidate_limit:
                    break

            normalized_target, normalized_pool = normalize_batch(target_features, pool)
            similar = find_knn(normalized_target, normalized_pool, k)

            top = similar[0] if similar else None
            results.append({
                "patient_id": target.id,
                "patient_name": target.name,
                "similar_count": len(similar),
                "top_match": {
                    "id": top.item.id,
                    "name": top.item.name,
                    "similarity": _percent(top.similarity),
                } if top else None,
            })
        except Exception as exc:
            logger.error(f"batch_similarity: failed for one patient: {exc}", exc_info=True)

    logger.info(f"batch_similarity: processed {len(results)}/{len(targets)} patient(s)")
    return results


# ── Volunteers ────────────────────────────────────────────────────────────────

def rank_volunteers(
    task: DocumentLike,
    volunteers: Sequence[DocumentLike],
    k: int = DEFAULT_K,
) -> List[Dict[str, Any]]:
    """Best volunteers for a task, closest to the ideal volunteer profile first."""
    task = coerce_document(VolunteerTask, task, "task")
    if not volunteers:
        logger.info("rank_volunteers: no volunteers available")
        return []

    pool = []
    for volunteer in volunteers:
        profile = coerce_document(VolunteerProfile, volunteer, "volunteer")
        pool.append(SimilarityCandidate(item=profile, features=extract_volunteer_features(profile, task)))

    ideal, normalized_pool = normalize_batch(IDEAL_VOLUNTEER, pool)
    best = find_weighted_knn(ideal, normalized_pool, k, VOLUNTEER_WEIGHTS)

    required = task.required_skills
    results = []
    for rank, neighbour in enumerate(best, start=1):
        profile: VolunteerProfile = neighbour.item
        skill_pct = (
            _percent(len(set(profile.skills) & set(required)) / len(required)) if required else 0
        )
        rating = profile.average_rating or 0
        results.append({
            "rank": rank,
            "volunteer": {
                "id": profile.id,
                "name": profile.name,
                "email": profile.email,
                "skills": list(profile.skills),
                "experience_years": profile.experience_years,
                "tasks_completed": profile.tasks_completed,
                "rating": round(rating, 1),
            },
            "match_score": _percent(neighbour.similarity),
            "match_reasons": [
                f"Skill match: {skill_pct}%",
                f"Experience: {profile.experience_years or 0:g} years",
                f"Completed tasks: {profile.tasks_completed or 0:g}",
                f"Rating: {rating:.1f}/5.0",
            ],
        })

    logger.info(f"rank_volunteers: task={task.id} → {len(results)} candidate(s)")
    return results


# ── Doctors ───────────────────────────────────────────────────────────────────

def _availability_band(current_patients: Optional[float]) -> str:
    current = current_patients or 0
    if current < 10:
        return "High"
    if current < 15:
        return "Medium"
    return "Low"


def recommend_doctors(
    patient: DocumentLike,
    doctors: Sequence[DocumentLike],
    k: int = DOCTOR_DEFAULT_K,
    specialty: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Doctors closest to the ideal profile for this patient and specialty."""
    preferences = coerce_document(PatientPreferences, patient, "patient")
    if not doctors:
        logger.info("recommend_doctors: no doctors available")
        return []

    pool = []
    for doctor in doctors:
        profile = coerce_document(DoctorProfile, doctor, "doctor")
        pool.append(SimilarityCandidate(
            item=profile,
            features=extract_doctor_features(profile, preferences, specialty),
        ))

    ideal, normalized_pool = normalize_batch(IDEAL_DOCTOR, pool)
    best = find_weighted_knn(ideal, normalized_pool, k, DOCTOR_WEIGHTS)

    results = []
    for rank, neighbour in enumerate(best, start=1):
        profile: DoctorProfile = neighbour.item
        rating = profile.average_rating or 0
        same_department = bool(preferences.department) and profile.department == preferences.department
        results.append({
            "rank": rank,
            "doctor": {
                "id": profile.id,
                "name": profile.name,
                "email": profile.email,
                "specialty": profile.specialty,
                "department": profile.department,
                "experience_years": profile.experience_years,
                "rating": round(rating, 1),
                "current_patients": profile.current_patients,
            },
            "match_score": _percent(neighbour.similarity),
            "availability": _availability_band(profile.current_patients),
            "recommendation_reasons": [
                f"Specialty match: {profile.specialty}"
                if specialty and profile.specialty == specialty else "General practitioner",
                f"{profile.experience_years or 0:g} years of experience",
                f"Rating: {rating:.1f}/5.0",
                f"Current caseload: {profile.current_patients or 0:g} patients",
                f"Same department: {profile.department}" if same_department else "Different department",
            ],
        })

    logger.info(f"recommend_doctors: specialty={specialty} → {len(results)} doctor(s)")
    return results
