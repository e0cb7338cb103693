"""
careinsight: Boundary Document Models

Pydantic models for the domain documents handed to the feature adapters.
Field aliases follow the camelCase keys of the stored documents; snake_case
names are accepted too. Unknown keys are ignored.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


# === Patients ===

class MedicalHistory(_Document):
    """Subset of a patient's history used for decisions."""
    chronic_conditions: List[str] = Field(default_factory=list, alias="chronicConditions")

    @field_validator("chronic_conditions", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class PatientRecord(_Document):
    """Patient document as stored by the ward application."""
    id: Optional[str] = Field(default=None, alias="_id")
    name: Optional[str] = None
    age: Optional[float] = None
    date_of_birth: Optional[datetime] = Field(default=None, alias="dateOfBirth")
    gender: Optional[str] = None
    admission_date: Optional[datetime] = Field(default=None, alias="admissionDate")
    medical_conditions: List[str] = Field(default_factory=list, alias="medicalConditions")
    allergies: List[str] = Field(default_factory=list)
    medications: List[str] = Field(default_factory=list)
    medical_history: Optional[MedicalHistory] = Field(default=None, alias="medicalHistory")
    department: Optional[str] = None
    room_number: Optional[str] = Field(default=None, alias="roomNumber")
    status: Optional[str] = None

    @field_validator("medical_conditions", "allergies", "medications", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("id", "room_number", mode="before")
    @classmethod
    def stringify(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @property
    def has_chronic_condition(self) -> bool:
        return bool(self.medical_history and self.medical_history.chronic_conditions)

    @property
    def primary_condition(self) -> str:
        if self.medical_conditions:
            return self.medical_conditions[0]
        return self.status or "N/A"


class VitalsRecord(_Document):
    """Latest vital-sign reading for a patient."""
    heart_rate: Optional[float] = Field(default=None, alias="heartRate")
    blood_pressure: Optional[str] = Field(default=None, alias="bloodPressure")   # "120/80"
    temperature: Optional[float] = None
    oxygen_saturation: Optional[float] = Field(default=None, alias="oxygenSaturation")
    respiratory_rate: Optional[float] = Field(default=None, alias="respiratoryRate")
    pain_level: Optional[float] = Field(default=None, alias="painLevel")
    severity: Optional[str] = None                                              # normal / warning / critical
    recorded_at: Optional[datetime] = Field(default=None, alias="recordedAt")


# === Staff ===

class VolunteerProfile(_Document):
    id: Optional[str] = Field(default=None, alias="_id")
    name: Optional[str] = None
    email: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    experience_years: Optional[float] = Field(default=None, alias="experienceYears")
    tasks_completed: Optional[float] = Field(default=None, alias="tasksCompleted")
    average_rating: Optional[float] = Field(default=None, alias="averageRating")         # 0-5
    available_hours: Optional[float] = Field(default=None, alias="availableHours")       # per week
    preferred_task_types: List[str] = Field(default_factory=list, alias="preferredTaskTypes")
    proximity_score: Optional[float] = Field(default=None, alias="proximityScore")       # 0-1

    @field_validator("skills", "languages", "preferred_task_types", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("id", mode="before")
    @classmethod
    def stringify(cls, value: Any) -> Any:
        return None if value is None else str(value)


class VolunteerTask(_Document):
    id: Optional[str] = None
    type: Optional[str] = None
    required_skills: List[str] = Field(default_factory=list, alias="requiredSkills")
    required_languages: List[str] = Field(default_factory=list, alias="requiredLanguages")
    estimated_hours: Optional[float] = Field(default=None, alias="estimatedHours")

    @field_validator("required_skills", "required_languages", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class DoctorProfile(_Document):
    id: Optional[str] = Field(default=None, alias="_id")
    name: Optional[str] = None
    email: Optional[str] = None
    specialty: Optional[str] = None
    department: Optional[str] = None
    experience_years: Optional[float] = Field(default=None, alias="experienceYears")
    total_patients_handled: Optional[float] = Field(default=None, alias="totalPatientsHandled")
    average_rating: Optional[float] = Field(default=None, alias="averageRating")         # 0-5
    current_patients: Optional[float] = Field(default=None, alias="currentPatients")
    languages: Optional[List[str]] = None
    caseload_similarity: Optional[float] = Field(default=None, alias="caseloadSimilarity")

    @field_validator("id", mode="before")
    @classmethod
    def stringify(cls, value: Any) -> Any:
        return None if value is None else str(value)


class PatientPreferences(_Document):
    """Patient-side inputs for doctor matching."""
    department: Optional[str] = None
    preferred_languages: Optional[List[str]] = Field(default=None, alias="preferredLanguages")
