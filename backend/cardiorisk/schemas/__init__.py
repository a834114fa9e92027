"""Pydantic schemas for the cardiovascular risk engine."""

from cardiorisk.schemas.base import (
    Confidence,
    DiabetesStatus,
    Gender,
    InterventionType,
    Priority,
    Race,
    Reclassification,
    RecommendationCategory,
    RiskLevel,
    parse_gender,
)
from cardiorisk.schemas.intervention import (
    InterventionEffect,
    InterventionRequest,
    InterventionScenario,
)
from cardiorisk.schemas.patient import (
    InvalidParametersError,
    PatientInput,
    PatientParameters,
    coerce_parameters,
)
from cardiorisk.schemas.risk import (
    AgeRange,
    AlgorithmConfig,
    AlgorithmInfo,
    ClinicalRecommendation,
    ClinicalReference,
    Disclaimer,
    RiskCategory,
    RiskComparison,
    RiskResult,
    ValidationResult,
)

__all__ = [
    # Enums
    "Confidence",
    "DiabetesStatus",
    "Gender",
    "InterventionType",
    "Priority",
    "Race",
    "Reclassification",
    "RecommendationCategory",
    "RiskLevel",
    "parse_gender",
    # Patient
    "InvalidParametersError",
    "PatientInput",
    "PatientParameters",
    "coerce_parameters",
    # Results
    "AgeRange",
    "AlgorithmConfig",
    "AlgorithmInfo",
    "ClinicalRecommendation",
    "ClinicalReference",
    "Disclaimer",
    "RiskCategory",
    "RiskComparison",
    "RiskResult",
    "ValidationResult",
    # Interventions
    "InterventionEffect",
    "InterventionRequest",
    "InterventionScenario",
]
