"""Risk result, recommendation, and configuration schemas."""

from pydantic import BaseModel, ConfigDict, Field

from cardiorisk.schemas.base import (
    Confidence,
    Priority,
    Reclassification,
    RecommendationCategory,
    RiskLevel,
)
from cardiorisk.schemas.patient import PatientParameters


class RiskCategory(BaseModel):
    """A risk level together with its display color and message."""

    model_config = ConfigDict(frozen=True)

    level: RiskLevel
    color: str = Field(..., description="Hex color used by the presentation layer")
    message: str


class Disclaimer(BaseModel):
    """Educational-use disclaimer attached to every result."""

    model_config = ConfigDict(frozen=True)

    primary: str
    limitations: list[str] = Field(default_factory=list)
    usage: str


class ClinicalReference(BaseModel):
    """A published source backing a calculation or recommendation."""

    model_config = ConfigDict(frozen=True)

    id: str
    authors: str
    title: str
    journal: str
    year: int
    pmid: str | None = None
    doi: str | None = None
    url: str | None = None
    summary: str | None = None


class ClinicalRecommendation(BaseModel):
    """A guideline-based recommendation derived from a risk result."""

    model_config = ConfigDict(frozen=True)

    category: RecommendationCategory
    priority: Priority
    recommendation: str
    evidence: str
    reference: ClinicalReference | None = None


class RiskComparison(BaseModel):
    """Side-by-side summary of PCE and PREVENT results."""

    model_config = ConfigDict(frozen=True)

    pce_risk: float
    prevent_risk: float
    risk_difference: float = Field(..., description="Absolute difference in percentage points")
    reclassification: Reclassification
    clinical_significance: str


class ValidationResult(BaseModel):
    """Outcome of checking patient parameters against a model's requirements."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class RiskResult(BaseModel):
    """Result of a risk calculation.

    Failed calculations are returned as data: ``success`` is False, ``risk``
    is 0 and ``errors`` lists every failed precondition. Callers branch on
    ``success`` rather than catching exceptions.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    risk: float = Field(..., description="Primary (10-year) risk in percent")
    risk_category: RiskCategory
    risk_30_year: float | None = Field(None, description="30-year risk in percent (PREVENT only)")
    risk_category_30_year: RiskCategory | None = None
    confidence: Confidence = Confidence.STANDARD
    algorithm: str
    parameters: PatientParameters
    defaults_used: list[str] = Field(default_factory=list)
    derived_fields: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    interpretation: str = ""
    disclaimer: Disclaimer
    gender_note: str | None = None
    comparison: RiskComparison | None = None
    error: str | None = None
    errors: list[str] = Field(default_factory=list)


class AgeRange(BaseModel):
    """Inclusive age range a model is validated for."""

    model_config = ConfigDict(frozen=True)

    min: int
    max: int

    def contains(self, age: float) -> bool:
        """Check if an age falls inside the range."""
        return self.min <= age <= self.max


class AlgorithmInfo(BaseModel):
    """Model metadata read by the presentation layer to drive form steps."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    age_range: AgeRange
    required_parameters: list[str]
    optional_parameters: list[str]


class AlgorithmConfig(BaseModel):
    """Factory configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    algorithm: str = Field("PCE", description="Name of the active algorithm")
    enable_comparison: bool = Field(False, description="Run every registered model on each calculation")
    show_citations: bool = Field(False, description="Display clinical citations")
    enable_interventions: bool = Field(True, description="Enable intervention modeling")
