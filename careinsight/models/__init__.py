"""
Boundary models for domain documents and request payloads.
"""
from .documents import (
    MedicalHistory,
    PatientRecord,
    VitalsRecord,
    VolunteerProfile,
    VolunteerTask,
    DoctorProfile,
    PatientPreferences,
)
from .requests import AlertText, MedicalRecordText, TreeFeatureOverrides

__all__ = [
    "MedicalHistory",
    "PatientRecord",
    "VitalsRecord",
    "VolunteerProfile",
    "VolunteerTask",
    "DoctorProfile",
    "PatientPreferences",
    "AlertText",
    "MedicalRecordText",
    "TreeFeatureOverrides",
]
