"""
careinsight: Request Payload Models

Caller-supplied inputs for the classification and decision workflows.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class AlertText(_Payload):
    """Free text of an emergency alert."""
    title: Optional[str] = None
    message: Optional[str] = None

    def as_text(self) -> str:
        return f"{self.title or ''} {self.message or ''}".strip()


class MedicalRecordText(_Payload):
    """Free text of a medical record."""
    title: Optional[str] = None
    summary: Optional[str] = None
    diagnosis: Optional[str] = None

    def as_text(self) -> str:
        return f"{self.title or ''} {self.summary or ''} {self.diagnosis or ''}".strip()


class TreeFeatureOverrides(_Payload):
    """
    Clinician-entered values for the decision trees.

    Stored vitals win over these where both exist; pain, mobility and the
    surgery flag are only ever entered by hand.
    """
    age: Optional[float] = None
    heart_rate: Optional[float] = Field(default=None, alias="heartRate")
    blood_pressure_systolic: Optional[float] = Field(default=None, alias="bloodPressureSystolic")
    blood_pressure_diastolic: Optional[float] = Field(default=None, alias="bloodPressureDiastolic")
    temperature: Optional[float] = None
    oxygen_saturation: Optional[float] = Field(default=None, alias="oxygenSaturation")
    respiratory_rate: Optional[float] = Field(default=None, alias="respiratoryRate")
    pain_level: Optional[float] = Field(default=None, alias="painLevel")
    mobility_score: Optional[float] = Field(default=None, alias="mobilityScore")
    days_admitted: Optional[float] = Field(default=None, alias="daysAdmitted")
    has_chronic_condition: Optional[bool] = Field(default=None, alias="hasChronicCondition")
    recent_surgery: Optional[bool] = Field(default=None, alias="recentSurgery")
