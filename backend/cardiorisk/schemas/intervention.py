"""Intervention request, effect, and scenario schemas."""

from pydantic import BaseModel, ConfigDict, Field

from cardiorisk.schemas.base import InterventionType
from cardiorisk.schemas.risk import ClinicalReference, RiskResult


class InterventionRequest(BaseModel):
    """A hypothetical change to simulate."""

    model_config = ConfigDict(frozen=True)

    type: InterventionType
    reduction: float | None = Field(None, description="Systolic BP reduction (mmHg)")
    percent_weight_loss: float | None = Field(None, description="Body weight reduction (%)")
    egfr_improvement: float | None = Field(None, description="eGFR improvement (mL/min/1.73m²)")


class InterventionEffect(BaseModel):
    """Published effect size of an intervention."""

    model_config = ConfigDict(frozen=True)

    time_frame: str
    source: str
    risk_reduction: float | None = Field(None, description="Relative risk reduction (0-1)")
    reference: ClinicalReference | None = None
    cholesterol_reduction: float | None = Field(None, description="Cholesterol reduction (mg/dL)")
    systolic_bp_reduction: float | None = Field(None, description="SBP reduction (mmHg)")
    risk_reduction_per_10mmhg: float | None = None
    risk_reduction_per_5_percent: float | None = None
    max_reduction: float | None = Field(None, description="Maximum realistic SBP reduction (mmHg)")
    egfr_improvement: float | None = None
    kidney_protection: bool = False


class InterventionScenario(BaseModel):
    """Risk recomputed after applying one intervention."""

    model_config = ConfigDict(frozen=True)

    intervention: str
    effect: InterventionEffect
    new_risk: RiskResult
