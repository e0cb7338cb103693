"""
Shipped Clinical Rule Trees

Two hand-authored trees built from ward care guidelines:

Care path (first matching branch wins, top to bottom):
    SpO2 < 90 %                       → IMMEDIATE_ICU_TRANSFER
    HR > 100 bpm, SBP > 140 mmHg      → CARDIOLOGY_CONSULT
    HR > 100 bpm                      → MONITOR_VITALS_HOURLY
    Temp > 38.5 °C, recent surgery    → INFECTION_PROTOCOL
    Temp > 38.5 °C                    → ANTIPYRETIC_TREATMENT
    Age ≥ 65, mobility < 3            → PHYSICAL_THERAPY
    Age ≥ 65, admitted ≥ 5 days       → DISCHARGE_PLANNING
    Age ≥ 65                          → CONTINUE_MONITORING
    Pain ≥ 7                          → PAIN_MANAGEMENT_CONSULT
    Admitted ≥ 3 days                 → DISCHARGE_EVALUATION
    otherwise                         → STANDARD_CARE

Discharge readiness:
    SpO2 < 92 %, Temp > 37.5 °C, pain > 5, mobility < 3 → NOT_READY
    admitted < 2 days                                   → OBSERVE_24H
    age ≥ 75 with a chronic condition                   → READY_WITH_HOME_CARE
    otherwise                                           → READY

In every split the condition being true goes LEFT.
"""
from __future__ import annotations

from typing import Dict, List

from .base import Operator
from .tree import RuleTree, TreeBuilder

# ── Care path ─────────────────────────────────────────────────────────────────

CARE_PATH_NEXT_STEPS: Dict[str, List[str]] = {
    "IMMEDIATE_ICU_TRANSFER": [
        "Alert ICU team immediately",
        "Prepare oxygen therapy",
        "Continuous vital monitoring",
        "Notify attending physician",
    ],
    "CARDIOLOGY_CONSULT": [
        "Request cardiology consultation",
        "Perform ECG",
        "Monitor blood pressure every 30 minutes",
        "Review cardiac medications",
    ],
    "MONITOR_VITALS_HOURLY": [
        "Set up hourly vital sign monitoring",
        "Document trends in patient chart",
        "Alert nurse if vitals worsen",
        "Review in 4 hours",
    ],
    "INFECTION_PROTOCOL": [
        "Collect blood cultures",
        "Start empiric antibiotics per protocol",
        "Monitor temperature every 2 hours",
        "Notify surgical team",
    ],
    "ANTIPYRETIC_TREATMENT": [
        "Administer antipyretic medication",
        "Monitor temperature response",
        "Ensure adequate hydration",
        "Reassess in 4 hours",
    ],
    "PHYSICAL_THERAPY": [
        "Consult physical therapy team",
        "Assess fall risk",
        "Create mobility improvement plan",
        "Daily therapy sessions",
    ],
    "DISCHARGE_PLANNING": [
        "Initiate discharge planning process",
        "Assess home care needs",
        "Schedule follow-up appointments",
        "Prepare discharge instructions",
    ],
    "DISCHARGE_EVALUATION": [
        "Evaluate discharge readiness",
        "Review medications and instructions",
        "Confirm follow-up appointments",
        "Assess patient understanding",
    ],
    "PAIN_MANAGEMENT_CONSULT": [
        "Request pain management consultation",
        "Review current pain medications",
        "Assess pain characteristics",
        "Consider multimodal approach",
    ],
    "CONTINUE_MONITORING": [
        "Continue current care plan",
        "Monitor vital signs per protocol",
        "Document patient progress",
        "Reassess daily",
    ],
    "STANDARD_CARE": [
        "Follow standard care protocols",
        "Regular vital sign monitoring",
        "Administer scheduled medications",
        "Daily physician rounds",
    ],
}

CARE_PATH_FALLBACK_STEPS = [
    "Continue standard care",
    "Monitor patient status",
    "Document progress",
]


def build_care_path_tree() -> RuleTree:
    b = TreeBuilder("care_path")

    elderly = b.split(
        "mobilityScore", Operator.LT, 3, "Mobility score < 3",
        left=b.leaf("PHYSICAL_THERAPY", 0.87, "Elderly with low mobility"),
        right=b.split(
            "daysAdmitted", Operator.GTE, 5, "Days admitted >= 5",
            left=b.leaf("DISCHARGE_PLANNING", 0.83, "Stable elderly patient, long stay"),
            right=b.leaf("CONTINUE_MONITORING", 0.80, "Stable elderly patient, short stay"),
        ),
    )

    adult = b.split(
        "painLevel", Operator.GTE, 7, "Pain level >= 7",
        left=b.leaf("PAIN_MANAGEMENT_CONSULT", 0.89, "Severe pain reported"),
        right=b.split(
            "daysAdmitted", Operator.GTE, 3, "Days admitted >= 3",
            left=b.leaf("DISCHARGE_EVALUATION", 0.85, "Stable patient, ready for discharge assessment"),
            right=b.leaf("STANDARD_CARE", 0.78, "Continue standard care protocol"),
        ),
    )

    febrile = b.split(
        "recentSurgery", Operator.EQ, 1, "Recent surgery",
        left=b.leaf("INFECTION_PROTOCOL", 0.90, "Post-surgical fever"),
        right=b.leaf("ANTIPYRETIC_TREATMENT", 0.85, "Fever without surgery"),
    )

    tachycardic = b.split(
        "bloodPressureSystolic", Operator.GT, 140, "Systolic BP > 140 mmHg",
        left=b.leaf("CARDIOLOGY_CONSULT", 0.88, "Tachycardia with hypertension"),
        right=b.leaf("MONITOR_VITALS_HOURLY", 0.82, "Elevated heart rate, normal BP"),
    )

    root = b.split(
        "oxygenSaturation", Operator.LT, 90, "Oxygen saturation < 90%",
        left=b.leaf("IMMEDIATE_ICU_TRANSFER", 0.95, "Critical oxygen levels detected"),
        right=b.split(
            "heartRate", Operator.GT, 100, "Heart rate > 100 bpm",
            left=tachycardic,
            right=b.split(
                "temperature", Operator.GT, 38.5, "Temperature > 38.5°C",
                left=febrile,
                right=b.split(
                    "age", Operator.GTE, 65, "Age >= 65 years",
                    left=elderly,
                    right=adult,
                ),
            ),
        ),
    )

    return b.build(
        root,
        next_steps=CARE_PATH_NEXT_STEPS,
        fallback_steps=CARE_PATH_FALLBACK_STEPS,
        description="Clinical decision tree for care path recommendations",
        reasoning_prefix="Based on clinical assessment",
        outcome_label="Recommendation",
    )


# ── Discharge readiness ───────────────────────────────────────────────────────

DISCHARGE_NEXT_STEPS: Dict[str, List[str]] = {
    "READY": [
        "Complete discharge paperwork",
        "Provide medication instructions",
        "Schedule follow-up appointment",
        "Give emergency contact information",
        "Ensure patient understands care plan",
    ],
    "READY_WITH_HOME_CARE": [
        "Arrange home health care services",
        "Coordinate with home care agency",
        "Provide detailed care instructions",
        "Schedule home visit within 48 hours",
        "Ensure caregiver is present at discharge",
    ],
    "NOT_READY": [
        "Continue current treatment plan",
        "Address barriers to discharge",
        "Reassess in 24 hours",
        "Document reasons for delay",
        "Update care team",
    ],
    "OBSERVE_24H": [
        "Continue observation for 24 hours",
        "Monitor vital signs closely",
        "Reassess discharge criteria",
        "Prepare preliminary discharge plan",
        "Educate patient on discharge expectations",
    ],
}

DISCHARGE_FALLBACK_STEPS = ["Continue assessment", "Consult care team"]


def build_discharge_readiness_tree() -> RuleTree:
    b = TreeBuilder("discharge_readiness")

    stayed = b.split(
        "age", Operator.GTE, 75, "Age >= 75 years",
        left=b.split(
            "hasChronicCondition", Operator.EQ, 1, "Has chronic condition",
            left=b.leaf("READY_WITH_HOME_CARE", 0.82, "Elderly with chronic condition needs home support"),
            right=b.leaf("READY", 0.88, "Stable elderly patient"),
        ),
        right=b.leaf("READY", 0.92, "Stable patient, adequate stay"),
    )

    mobile = b.split(
        "daysAdmitted", Operator.GTE, 2, "Days admitted >= 2",
        left=stayed,
        right=b.leaf("OBSERVE_24H", 0.78, "Short stay, observe longer"),
    )

    root = b.split(
        "oxygenSaturation", Operator.LT, 92, "Oxygen saturation < 92%",
        left=b.leaf("NOT_READY", 0.95, "Oxygen levels too low for discharge"),
        right=b.split(
            "temperature", Operator.GT, 37.5, "Temperature > 37.5°C",
            left=b.leaf("NOT_READY", 0.90, "Fever present"),
            right=b.split(
                "painLevel", Operator.GT, 5, "Pain level > 5",
                left=b.leaf("NOT_READY", 0.85, "Uncontrolled pain"),
                right=b.split(
                    "mobilityScore", Operator.GTE, 3, "Mobility score >= 3",
                    left=mobile,
                    right=b.leaf("NOT_READY", 0.87, "Mobility too limited"),
                ),
            ),
        ),
    )

    return b.build(
        root,
        next_steps=DISCHARGE_NEXT_STEPS,
        fallback_steps=DISCHARGE_FALLBACK_STEPS,
        description="Clinical decision tree for discharge readiness evaluation",
        reasoning_prefix="Discharge assessment",
        outcome_label="Status",
    )
