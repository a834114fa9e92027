"""Risk calculator algorithm interface.

Every cardiovascular risk model implements this interface so the registry,
factory and intervention simulator can treat them interchangeably without
branching on model identity.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar

from cardiorisk.schemas.base import InterventionType, RiskLevel
from cardiorisk.schemas.intervention import InterventionRequest, InterventionScenario
from cardiorisk.schemas.patient import (
    InvalidParametersError,
    PatientInput,
    PatientParameters,
    coerce_parameters,
)
from cardiorisk.schemas.risk import (
    AgeRange,
    AlgorithmInfo,
    ClinicalRecommendation,
    ClinicalReference,
    Disclaimer,
    RiskCategory,
    RiskResult,
    ValidationResult,
)
from cardiorisk.services.interventions import (
    INTERVENTION_EFFECTS,
    InterventionPlan,
    InterventionSimulator,
    reduce_systolic_bp,
    weight_loss_updates,
)

logger = logging.getLogger(__name__)

# Every successful risk is clamped to this range
MIN_RISK = 0.1
MAX_RISK = 99.9

# Systolic BP range accepted by both models (mmHg)
SBP_MIN = 90
SBP_MAX = 200

RISK_COLORS = {
    RiskLevel.LOW: "#22C55E",
    RiskLevel.BORDERLINE: "#EAB308",
    RiskLevel.INTERMEDIATE: "#F97316",
    RiskLevel.HIGH: "#EF4444",
}


def bound_risk(risk: float) -> float:
    """Clamp a risk percentage to [0.1, 99.9] and round to 1 decimal."""
    return round(max(MIN_RISK, min(MAX_RISK, risk)), 1)


def make_category(level: RiskLevel, message: str) -> RiskCategory:
    return RiskCategory(level=level, color=RISK_COLORS[level], message=message)


def categorize_10_year(risk: float) -> RiskCategory:
    """Categorize 10-year risk per 2019 AHA/ACC primary prevention cutoffs."""
    if risk < 5:
        return make_category(RiskLevel.LOW, "Low risk")
    if risk < 7.5:
        return make_category(RiskLevel.BORDERLINE, "Borderline risk")
    if risk < 20:
        return make_category(RiskLevel.INTERMEDIATE, "Intermediate risk")
    return make_category(RiskLevel.HIGH, "High risk")


def correct_hdl(total_cholesterol: float, hdl_cholesterol: float) -> float:
    """Keep HDL below total cholesterol (HDL → total − 10 when it exceeds total)."""
    if hdl_cholesterol > total_cholesterol:
        return min(hdl_cholesterol, total_cholesterol - 10)
    return hdl_cholesterol


class RiskCalculatorAlgorithm(ABC):
    """Interface for cardiovascular risk algorithms.

    Implementations expose static metadata (name, version, validated age
    range, required and optional parameter names) that the presentation
    layer reads to drive form validation, and the operations below.

    Example usage:
        algorithm = PCERiskCalculator()
        result = algorithm.calculate_risk(params)
        if result.success:
            print(result.risk, result.risk_category.level)
    """

    name: ClassVar[str]
    version: ClassVar[str]
    age_range: ClassVar[AgeRange]
    required_parameters: ClassVar[tuple[str, ...]]
    optional_parameters: ClassVar[tuple[str, ...]]

    @abstractmethod
    def calculate_risk(self, params: PatientInput) -> RiskResult:
        """Calculate cardiovascular risk.

        Must never raise for bad patient data: failures are returned as a
        RiskResult with ``success=False``.
        """
        pass  # pragma: no cover

    @abstractmethod
    def validate_inputs(self, params: PatientInput) -> ValidationResult:
        """Check parameters against this model's requirements."""
        pass  # pragma: no cover

    @abstractmethod
    def model_interventions(
        self,
        baseline: PatientInput,
        interventions: Sequence[InterventionRequest | Mapping[str, Any]],
    ) -> list[InterventionScenario]:
        """Recompute risk after each hypothetical intervention, in order."""
        pass  # pragma: no cover

    @abstractmethod
    def get_recommendations(self, result: RiskResult) -> list[ClinicalRecommendation]:
        """Get guideline-based recommendations for a result."""
        pass  # pragma: no cover

    @abstractmethod
    def get_citations(self) -> list[ClinicalReference]:
        """Get the references backing this algorithm."""
        pass  # pragma: no cover

    def get_info(self) -> AlgorithmInfo:
        """Get algorithm metadata."""
        return AlgorithmInfo(
            name=self.name,
            version=self.version,
            age_range=self.age_range,
            required_parameters=list(self.required_parameters),
            optional_parameters=list(self.optional_parameters),
        )


class BaseRiskCalculator(RiskCalculatorAlgorithm):
    """Base risk calculator with the shared calculation pipeline.

    ``calculate_risk`` validates, then hands complete parameters to
    ``_compute``. Any failure along the way is converted into a
    ``success=False`` result at this boundary.
    """

    disclaimer: ClassVar[Disclaimer]

    # Systolic BP assumed when none is supplied; None means it is required
    default_systolic_bp: ClassVar[float | None] = None

    def calculate_risk(self, params: PatientInput) -> RiskResult:
        try:
            patient = coerce_parameters(params)
        except InvalidParametersError as e:
            logger.warning(f"{self.name} rejected unparseable parameters: {e}")
            return self._failure_result(PatientParameters(), e.errors)

        validation = self.validate_inputs(patient)
        if not validation.is_valid:
            logger.info(f"{self.name} validation failed: {len(validation.errors)} error(s)")
            return self._failure_result(patient, validation.errors)

        try:
            return self._compute(patient, list(validation.warnings))
        except (ValueError, ArithmeticError) as e:
            logger.warning(f"{self.name} calculation failed: {e}")
            return self._failure_result(patient, [f"{self.name} calculation failed: {e}"])

    def validate_inputs(self, params: PatientInput) -> ValidationResult:
        try:
            patient = coerce_parameters(params)
        except InvalidParametersError as e:
            return ValidationResult(is_valid=False, errors=e.errors)

        errors, warnings = self._validate(patient)
        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def model_interventions(
        self,
        baseline: PatientInput,
        interventions: Sequence[InterventionRequest | Mapping[str, Any]],
    ) -> list[InterventionScenario]:
        return InterventionSimulator(self).simulate(baseline, interventions)

    @abstractmethod
    def _validate(self, params: PatientParameters) -> tuple[list[str], list[str]]:
        """Return (errors, warnings) for the given parameters."""
        pass  # pragma: no cover

    @abstractmethod
    def _compute(self, params: PatientParameters, warnings: list[str]) -> RiskResult:
        """Apply defaults and run the risk equations on validated parameters."""
        pass  # pragma: no cover

    def plan_intervention(
        self,
        request: InterventionRequest,
        working: PatientParameters,
    ) -> InterventionPlan | None:
        """Map an intervention request onto this model's inputs.

        Args:
            request: The requested intervention.
            working: Parameters with every earlier intervention applied.

        Returns:
            The plan to apply, or None when the precondition fails and the
            request should be skipped.
        """
        planners = {
            InterventionType.SMOKING_CESSATION: self._plan_smoking_cessation,
            InterventionType.BLOOD_PRESSURE_REDUCTION: self._plan_blood_pressure_reduction,
            InterventionType.STATIN_THERAPY: self._plan_statin_therapy,
            InterventionType.PHYSICAL_ACTIVITY: self._plan_physical_activity,
            InterventionType.WEIGHT_LOSS: self._plan_weight_loss,
            InterventionType.KIDNEY_PROTECTION: self._plan_kidney_protection,
        }
        return planners[request.type](request, working)

    def _plan_smoking_cessation(
        self, request: InterventionRequest, working: PatientParameters
    ) -> InterventionPlan | None:
        if not working.smoking:
            return None
        return InterventionPlan(
            label="Smoking Cessation",
            effect=INTERVENTION_EFFECTS["smoking_cessation"],
            updates={"smoking": False},
        )

    def _plan_blood_pressure_reduction(
        self, request: InterventionRequest, working: PatientParameters
    ) -> InterventionPlan | None:
        current = working.systolic_bp or self.default_systolic_bp
        if not request.reduction or request.reduction <= 0 or current is None:
            return None
        return InterventionPlan(
            label=f"Blood Pressure Reduction ({request.reduction:g} mmHg)",
            effect=INTERVENTION_EFFECTS["blood_pressure_reduction"],
            updates={"systolic_bp": reduce_systolic_bp(current, request.reduction)},
        )

    @abstractmethod
    def _plan_statin_therapy(
        self, request: InterventionRequest, working: PatientParameters
    ) -> InterventionPlan | None:
        """Map statin therapy onto this model's lipid inputs."""
        pass  # pragma: no cover

    def _plan_physical_activity(
        self, request: InterventionRequest, working: PatientParameters
    ) -> InterventionPlan | None:
        # No model takes an activity input; discount the computed risk instead
        effect = INTERVENTION_EFFECTS["physical_activity"]
        return InterventionPlan(
            label="Increased Physical Activity",
            effect=effect,
            risk_reduction=effect.risk_reduction,
        )

    def _plan_weight_loss(
        self, request: InterventionRequest, working: PatientParameters
    ) -> InterventionPlan | None:
        current = working.systolic_bp or self.default_systolic_bp
        percent = request.percent_weight_loss
        if not percent or percent <= 0 or current is None:
            return None
        return InterventionPlan(
            label=f"Weight Loss ({percent:g}%)",
            effect=INTERVENTION_EFFECTS["weight_loss"],
            updates=weight_loss_updates(current, working.weight, percent),
        )

    def _plan_kidney_protection(
        self, request: InterventionRequest, working: PatientParameters
    ) -> InterventionPlan | None:
        # Only models with a kidney function input support this
        return None

    @abstractmethod
    def _interpret(self, risk: float) -> str:
        """Plain-language summary of a 10-year risk."""
        pass  # pragma: no cover

    def apply_risk_reduction(self, result: RiskResult, reduction: float) -> RiskResult:
        """Discount an already computed result by a relative risk reduction."""
        risk = bound_risk(result.risk * (1 - reduction))
        return result.model_copy(
            update={
                "risk": risk,
                "risk_category": categorize_10_year(risk),
                "interpretation": self._interpret(risk),
            }
        )

    def _validate_common(self, params: PatientParameters, errors: list[str]) -> None:
        """Check the demographic fields every model requires."""
        if params.age is None or not self.age_range.contains(params.age):
            errors.append(
                f"Age must be between {self.age_range.min}-{self.age_range.max} years for {self.name}"
            )
        if params.gender is None:
            errors.append("Gender must be specified (male, female, or non-binary)")
        if params.race is None:
            errors.append(f"Race must be specified for {self.name} calculation")

    def _failure_result(self, params: PatientParameters, errors: Sequence[str]) -> RiskResult:
        errors = list(errors)
        return RiskResult(
            success=False,
            risk=0,
            risk_category=categorize_10_year(0),
            algorithm=self.name,
            parameters=params,
            disclaimer=self.disclaimer,
            error=", ".join(errors),
            errors=errors,
        )
