"""Base enums for the cardiovascular risk engine."""

from enum import Enum


class Gender(str, Enum):
    """Declared gender of the patient."""

    MALE = "male"
    FEMALE = "female"
    NON_BINARY = "non-binary"  # Blended male/female estimate


class Race(str, Enum):
    """Declared race/ethnicity group used by the coefficient tables."""

    WHITE = "white"
    BLACK = "black"
    OTHER = "other"  # Uses the white coefficient sets


class RiskLevel(str, Enum):
    """Ordered risk categories shared by every model."""

    LOW = "low"
    BORDERLINE = "borderline"
    INTERMEDIATE = "intermediate"
    HIGH = "high"

    @property
    def ordinal(self) -> int:
        """Position of this level in the low-to-high ordering."""
        return list(RiskLevel).index(self)


class Confidence(str, Enum):
    """Confidence in a risk estimate."""

    STANDARD = "standard"
    LOWER = "lower"  # Averaged estimate for non-binary gender


class Reclassification(str, Enum):
    """Direction of category change between PCE and PREVENT."""

    UP = "up"
    DOWN = "down"
    NONE = "none"


class RecommendationCategory(str, Enum):
    """Kinds of clinical recommendation."""

    LIFESTYLE = "lifestyle"
    MEDICATION = "medication"
    MONITORING = "monitoring"
    REFERRAL = "referral"


class Priority(str, Enum):
    """Priority of a clinical recommendation."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class InterventionType(str, Enum):
    """Hypothetical interventions the simulator understands."""

    SMOKING_CESSATION = "smoking_cessation"
    BLOOD_PRESSURE_REDUCTION = "blood_pressure_reduction"
    STATIN_THERAPY = "statin_therapy"
    PHYSICAL_ACTIVITY = "physical_activity"
    WEIGHT_LOSS = "weight_loss"
    KIDNEY_PROTECTION = "kidney_protection"


class DiabetesStatus(str, Enum):
    """Diabetes tier derived from HbA1c or history."""

    NONE = "none"
    PREDIABETES = "prediabetes"
    DIABETES = "diabetes"
    UNCONTROLLED = "uncontrolled"


# Accepted spellings that map onto Gender.NON_BINARY
_NON_BINARY_ALIASES = {"other", "nonbinary", "non_binary", "non-binary"}


def parse_gender(value: Gender | str) -> Gender:
    """Parse a gender string, accepting case variants and the "other" alias.

    Raises:
        ValueError: If the value is not a recognized gender.
    """
    if isinstance(value, Gender):
        return value
    lowered = str(value).strip().lower()
    if lowered in _NON_BINARY_ALIASES:
        return Gender.NON_BINARY
    return Gender(lowered)
