"""
Pytest Configuration and Fixtures

Shared fixtures for the inference engine tests.
"""
import pytest
from datetime import datetime, timezone
from pathlib import Path
import sys
from typing import Any, Dict

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from careinsight.engine import InferenceEngines, build_engines


@pytest.fixture(scope="session")
def engines() -> InferenceEngines:
    """Seeded classifiers and validated trees, built once per session."""
    return build_engines()


@pytest.fixture
def fixed_now() -> datetime:
    """Frozen clock so ages and lengths of stay are deterministic."""
    return datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_patient() -> Dict[str, Any]:
    """Patient document as stored by the ward application."""
    return {
        "_id": "p-001",
        "name": "Ada Patel",
        "dateOfBirth": "1950-03-20T00:00:00Z",
        "gender": "female",
        "admissionDate": "2024-06-10T12:00:00Z",
        "medicalConditions": ["Hypertension", "Type 2 Diabetes"],
        "allergies": ["Penicillin"],
        "medications": ["Metformin", "Lisinopril", "Aspirin"],
        "medicalHistory": {"chronicConditions": ["Hypertension"]},
        "department": "Cardiology",
        "roomNumber": 204,
        "status": "admitted",
    }


@pytest.fixture
def sample_vitals() -> Dict[str, Any]:
    """Latest vital-sign reading for sample_patient."""
    return {
        "heartRate": 88,
        "bloodPressure": "135/85",
        "temperature": 37.1,
        "oxygenSaturation": 96,
        "respiratoryRate": 16,
        "severity": "warning",
    }
