"""PREVENT Equations (2024 AHA).

Race-free 10-year and 30-year cardiovascular risk that adds kidney function
and statin use to the traditional risk factors. One linear predictor feeds
both timeframes through separate baseline survival values, so each timeframe
is clamped and categorized independently.

Continuous inputs are centered and scaled before weighting:
    a = (age - 55) / 10
    c = (non-HDL + HDL - 200) / 40
    h = (HDL - 50) / 15
    s = (SBP - 120) / 20
    g = (eGFR - 90) / 15
"""

import logging
import math
from dataclasses import dataclass

from cardiorisk.schemas.base import (
    Confidence,
    Gender,
    Priority,
    Race,
    RecommendationCategory,
    RiskLevel,
)
from cardiorisk.schemas.intervention import InterventionRequest
from cardiorisk.schemas.patient import PatientParameters
from cardiorisk.schemas.risk import (
    AgeRange,
    ClinicalRecommendation,
    ClinicalReference,
    Disclaimer,
    RiskCategory,
    RiskResult,
)
from cardiorisk.services.algorithm import (
    SBP_MAX,
    SBP_MIN,
    BaseRiskCalculator,
    bound_risk,
    categorize_10_year,
    correct_hdl,
    make_category,
)
from cardiorisk.services.clinical_utils import (
    calculate_egfr,
    calculate_non_hdl,
    validate_cholesterol,
    validate_diabetes,
    validate_kidney_function,
)
from cardiorisk.services.interventions import INTERVENTION_EFFECTS, InterventionPlan
from cardiorisk.services.references import CLINICAL_REFERENCES

logger = logging.getLogger(__name__)

# Population defaults for missing values
DEFAULT_TOTAL_CHOLESTEROL = 200
DEFAULT_HDL_CHOLESTEROL = 50
DEFAULT_NON_HDL_CHOLESTEROL = 150
DEFAULT_EGFR = 90
DEFAULT_SYSTOLIC_BP = 120

# Statin therapy lowers non-HDL cholesterol by this much, never below the floor
STATIN_NON_HDL_REDUCTION = 40
STATIN_NON_HDL_FLOOR = 100

# Kidney protection never raises eGFR above this
EGFR_CEILING = 120


@dataclass(frozen=True)
class PREVENTCoefficients:
    """Coefficient set for one race group."""

    age: float
    age_squared: float
    female: float
    cholesterol: float
    hdl: float
    sbp: float
    bp_treated: float
    diabetes: float
    smoking: float
    statin: float
    egfr: float
    egfr_squared: float
    age_cholesterol: float
    age_smoking: float
    baseline_survival_10yr: float
    baseline_survival_30yr: float


PREVENT_COEFFICIENTS: dict[str, PREVENTCoefficients] = {
    "non_black": PREVENTCoefficients(
        age=0.70,
        age_squared=-0.05,
        female=-0.35,
        cholesterol=0.12,
        hdl=-0.15,
        sbp=0.30,
        bp_treated=0.20,
        diabetes=0.55,
        smoking=0.60,
        statin=-0.15,
        egfr=-0.10,
        egfr_squared=0.04,
        age_cholesterol=-0.04,
        age_smoking=-0.10,
        baseline_survival_10yr=0.965,
        baseline_survival_30yr=0.84,
    ),
    "black": PREVENTCoefficients(
        age=0.68,
        age_squared=-0.05,
        female=-0.30,
        cholesterol=0.12,
        hdl=-0.15,
        sbp=0.34,
        bp_treated=0.20,
        diabetes=0.60,
        smoking=0.60,
        statin=-0.15,
        egfr=-0.10,
        egfr_squared=0.04,
        age_cholesterol=-0.04,
        age_smoking=-0.10,
        baseline_survival_10yr=0.958,
        baseline_survival_30yr=0.82,
    ),
}


@dataclass
class PREVENTInputs:
    """Complete predictor inputs after defaults and derivations."""

    age: float
    non_hdl_cholesterol: float
    hdl_cholesterol: float
    systolic_bp: float
    egfr: float
    bp_treated: bool = False
    diabetic: bool = False
    smoker: bool = False
    on_statin: bool = False


def categorize_30_year(risk: float) -> RiskCategory:
    """Categorize 30-year risk (higher cutoffs than the 10-year scale)."""
    if risk < 20:
        return make_category(RiskLevel.LOW, "Low long-term risk")
    if risk < 30:
        return make_category(RiskLevel.BORDERLINE, "Borderline long-term risk")
    if risk < 50:
        return make_category(RiskLevel.INTERMEDIATE, "Intermediate long-term risk")
    return make_category(RiskLevel.HIGH, "High long-term risk")


def linear_predictor(coeffs: PREVENTCoefficients, inputs: PREVENTInputs, female: bool) -> float:
    a = (inputs.age - 55) / 10
    c = (inputs.non_hdl_cholesterol + inputs.hdl_cholesterol - 200) / 40
    h = (inputs.hdl_cholesterol - 50) / 15
    s = (inputs.systolic_bp - 120) / 20
    g = (inputs.egfr - 90) / 15
    smoking = 1 if inputs.smoker else 0

    return (
        coeffs.age * a
        + coeffs.age_squared * a * a
        + coeffs.female * (1 if female else 0)
        + coeffs.cholesterol * c
        + coeffs.hdl * h
        + coeffs.sbp * s
        + coeffs.bp_treated * (1 if inputs.bp_treated else 0)
        + coeffs.diabetes * (1 if inputs.diabetic else 0)
        + coeffs.smoking * smoking
        + coeffs.statin * (1 if inputs.on_statin else 0)
        + coeffs.egfr * g
        + coeffs.egfr_squared * g * g
        + coeffs.age_cholesterol * a * c
        + coeffs.age_smoking * a * smoking
    )


def prevent_risk(
    coeffs: PREVENTCoefficients,
    inputs: PREVENTInputs,
    female: bool,
) -> tuple[float, float]:
    """Calculate clamped (10-year, 30-year) risk percentages."""
    relative_hazard = math.exp(linear_predictor(coeffs, inputs, female))
    risk_10yr = (1 - coeffs.baseline_survival_10yr ** relative_hazard) * 100
    risk_30yr = (1 - coeffs.baseline_survival_30yr ** relative_hazard) * 100
    return bound_risk(risk_10yr), bound_risk(risk_30yr)


class PREVENTRiskCalculator(BaseRiskCalculator):
    """10- and 30-year cardiovascular risk using the 2024 PREVENT equations.

    eGFR may be supplied directly or derived from creatinine; non-HDL
    cholesterol may be supplied directly or derived from total and HDL.
    Derived values are listed in ``derived_fields`` and population defaults
    in ``defaults_used``.
    """

    name = "PREVENT"
    version = "2024.1"
    age_range = AgeRange(min=30, max=79)
    required_parameters = (
        "age",
        "gender",
        "race",
        "systolic_bp",
        "non_hdl_cholesterol",
        "egfr",
        "statin_use",
    )
    optional_parameters = (
        "diastolic_bp",
        "total_cholesterol",
        "hdl_cholesterol",
        "diabetes",
        "smoking",
        "bp_medication",
        "weight",
        "height",
        "creatinine",
        "hba1c",
        "albumin_creatinine_ratio",
        "social_deprivation_index",
    )

    default_systolic_bp = DEFAULT_SYSTOLIC_BP

    disclaimer = Disclaimer(
        primary=(
            "This educational tool uses the 2024 AHA PREVENT Equations for demonstration "
            "purposes only. Results are not intended for clinical decision-making."
        ),
        limitations=[
            "Validated for ages 30-79 years",
            "Incorporates kidney function for enhanced accuracy",
            "Provides both 10-year and 30-year risk estimates",
            "Requires recent laboratory values for optimal accuracy",
            "Individual results may vary based on unmeasured factors",
            "Social determinants of health may influence actual risk",
        ],
        usage=(
            "Educational Use Only - Consult healthcare providers for personalized risk "
            "assessment and treatment recommendations."
        ),
    )

    def _validate(self, params: PatientParameters) -> tuple[list[str], list[str]]:
        errors: list[str] = []
        warnings: list[str] = []

        self._validate_common(params, errors)

        sbp = params.systolic_bp
        if sbp is not None and (sbp < SBP_MIN or sbp > SBP_MAX):
            errors.append(f"Systolic blood pressure must be between {SBP_MIN}-{SBP_MAX} mmHg")

        warnings.extend(validate_kidney_function(params).warnings)
        if not params.egfr and not params.creatinine:
            errors.append("Either eGFR or creatinine is required for PREVENT calculation")

        warnings.extend(validate_cholesterol(params).warnings)
        if not params.non_hdl_cholesterol and not (params.total_cholesterol and params.hdl_cholesterol):
            errors.append("Non-HDL cholesterol is required (or both total and HDL cholesterol)")

        if params.statin_use is None:
            errors.append("Statin use status is required for PREVENT calculation")

        warnings.extend(validate_diabetes(params).warnings)

        return errors, warnings

    def _prepare(
        self,
        params: PatientParameters,
        warnings: list[str],
        defaults_used: list[str],
        derived_fields: list[str],
    ) -> PREVENTInputs:
        """Fill in derived values and defaults in a fixed order."""
        # Kidney function
        egfr = params.egfr
        if not egfr and params.creatinine and params.age and params.gender:
            try:
                egfr = calculate_egfr(params.creatinine, params.age, params.gender)
                derived_fields.append("eGFR")
                warnings.append("eGFR calculated from creatinine using CKD-EPI 2021 equation")
            except ValueError as e:
                logger.debug(f"eGFR derivation failed, using default: {e}")
                egfr = DEFAULT_EGFR
                defaults_used.append("eGFR (calculation failed)")
        elif not egfr:
            egfr = DEFAULT_EGFR
            defaults_used.append("eGFR")

        # Cholesterol
        total = params.total_cholesterol
        hdl = params.hdl_cholesterol
        non_hdl = params.non_hdl_cholesterol

        if not non_hdl:
            if not total:
                total = DEFAULT_TOTAL_CHOLESTEROL
                defaults_used.append("total cholesterol")
            if not hdl:
                hdl = DEFAULT_HDL_CHOLESTEROL
                defaults_used.append("HDL cholesterol")

        if total and hdl:
            corrected_hdl = correct_hdl(total, hdl)
            if corrected_hdl != hdl:
                warnings.append(
                    f"HDL cholesterol exceeds total cholesterol; using {corrected_hdl:g} mg/dL"
                )
                hdl = corrected_hdl

        # Defaulted total and HDL give the 150 mg/dL non-HDL fallback.
        # Validation rejects missing lipids, so only direct callers reach that path.
        if not non_hdl:
            non_hdl = calculate_non_hdl(total, hdl)
            derived_fields.append("non-HDL cholesterol")

        if not hdl:
            hdl = DEFAULT_HDL_CHOLESTEROL
            defaults_used.append("HDL cholesterol")

        # Blood pressure
        sbp = params.systolic_bp
        if not sbp:
            sbp = DEFAULT_SYSTOLIC_BP
            defaults_used.append("systolic blood pressure")

        return PREVENTInputs(
            age=params.age,
            non_hdl_cholesterol=non_hdl,
            hdl_cholesterol=hdl,
            systolic_bp=sbp,
            egfr=egfr,
            bp_treated=bool(params.bp_medication),
            diabetic=bool(params.diabetes),
            smoker=bool(params.smoking),
            on_statin=bool(params.statin_use),
        )

    def _compute(self, params: PatientParameters, warnings: list[str]) -> RiskResult:
        defaults_used: list[str] = []
        derived_fields: list[str] = []
        inputs = self._prepare(params, warnings, defaults_used, derived_fields)

        race_group = "black" if params.race == Race.BLACK else "non_black"
        coeffs = PREVENT_COEFFICIENTS[race_group]

        confidence = Confidence.STANDARD
        gender_note = None

        if params.is_non_binary:
            male_10, male_30 = prevent_risk(coeffs, inputs, female=False)
            female_10, female_30 = prevent_risk(coeffs, inputs, female=True)
            risk_10yr = bound_risk((male_10 + female_10) / 2)
            risk_30yr = bound_risk((male_30 + female_30) / 2)
            confidence = Confidence.LOWER
            gender_note = "Risk estimated using averaged male/female calculations"
        else:
            risk_10yr, risk_30yr = prevent_risk(
                coeffs, inputs, female=params.gender == Gender.FEMALE
            )

        logger.debug(f"PREVENT risk: 10yr={risk_10yr}, 30yr={risk_30yr}")

        return RiskResult(
            success=True,
            risk=risk_10yr,
            risk_category=categorize_10_year(risk_10yr),
            risk_30_year=risk_30yr,
            risk_category_30_year=categorize_30_year(risk_30yr),
            confidence=confidence,
            algorithm=self.name,
            parameters=params,
            defaults_used=defaults_used,
            derived_fields=derived_fields,
            warnings=warnings,
            interpretation=self._interpret(risk_10yr, risk_30yr),
            disclaimer=self.disclaimer,
            gender_note=gender_note,
        )

    def _interpret(self, risk_10yr: float, risk_30yr: float | None = None) -> str:
        category = categorize_10_year(risk_10yr)
        text = (
            f"Your estimated 10-year cardiovascular risk is {risk_10yr}% "
            f"({category.level.value} risk)."
        )
        if risk_30yr:
            category_30 = categorize_30_year(risk_30yr)
            text += f" Your 30-year risk is {risk_30yr}% ({category_30.level.value} long-term risk)."

        if risk_10yr < 5:
            text += " Continue maintaining excellent lifestyle habits and regular monitoring."
        elif risk_10yr < 7.5:
            text += " Consider lifestyle modifications and enhanced monitoring."
        elif risk_10yr < 20:
            text += " Lifestyle changes and possible medical treatment may provide significant benefit."
        else:
            text += " Medical treatment strongly recommended in addition to intensive lifestyle changes."

        if risk_30yr and risk_30yr >= 30:
            text += " The elevated long-term risk emphasizes the importance of early intervention."
        return text

    def apply_risk_reduction(self, result: RiskResult, reduction: float) -> RiskResult:
        reduced = super().apply_risk_reduction(result, reduction)
        if result.risk_30_year is None:
            return reduced
        risk_30yr = bound_risk(result.risk_30_year * (1 - reduction))
        return reduced.model_copy(
            update={
                "risk_30_year": risk_30yr,
                "risk_category_30_year": categorize_30_year(risk_30yr),
                "interpretation": self._interpret(reduced.risk, risk_30yr),
            }
        )

    def get_recommendations(self, result: RiskResult) -> list[ClinicalRecommendation]:
        """Recommendations weighing both the 10-year and 30-year estimates."""
        prevent_reference = CLINICAL_REFERENCES["prevent-algorithm"]
        recommendations: list[ClinicalRecommendation] = []
        risk_10yr = result.risk
        risk_30yr = result.risk_30_year or 0

        if risk_10yr >= 20 or risk_30yr >= 50:
            recommendations.append(
                ClinicalRecommendation(
                    category=RecommendationCategory.MEDICATION,
                    priority=Priority.HIGH,
                    recommendation="High-intensity statin therapy strongly recommended",
                    evidence="High cardiovascular risk based on PREVENT equations",
                    reference=prevent_reference,
                )
            )
        elif risk_10yr >= 7.5 or risk_30yr >= 30:
            recommendations.append(
                ClinicalRecommendation(
                    category=RecommendationCategory.MEDICATION,
                    priority=Priority.MEDIUM,
                    recommendation="Consider statin therapy with clinician-patient discussion",
                    evidence="Intermediate cardiovascular risk based on PREVENT equations",
                    reference=prevent_reference,
                )
            )

        # eGFR may have been derived from creatinine
        egfr = validate_kidney_function(result.parameters).egfr
        if egfr and egfr < 60:
            recommendations.append(
                ClinicalRecommendation(
                    category=RecommendationCategory.REFERRAL,
                    priority=Priority.HIGH,
                    recommendation="Nephrology consultation recommended",
                    evidence="Reduced kidney function increases cardiovascular risk",
                    reference=CLINICAL_REFERENCES["ckd-epi-2021"],
                )
            )
            recommendations.append(
                ClinicalRecommendation(
                    category=RecommendationCategory.MEDICATION,
                    priority=Priority.MEDIUM,
                    recommendation="Consider ACE inhibitor or ARB for kidney protection",
                    evidence="Kidney protection reduces cardiovascular events",
                    reference=prevent_reference,
                )
            )

        recommendations.append(
            ClinicalRecommendation(
                category=RecommendationCategory.LIFESTYLE,
                priority=Priority.HIGH,
                recommendation="Comprehensive lifestyle modification program",
                evidence="Enhanced lifestyle interventions for PREVENT-based risk reduction",
                reference=prevent_reference,
            )
        )

        if result.parameters.smoking:
            recommendations.append(
                ClinicalRecommendation(
                    category=RecommendationCategory.LIFESTYLE,
                    priority=Priority.HIGH,
                    recommendation="Intensive smoking cessation program",
                    evidence="Smoking cessation reduces both 10-year and 30-year cardiovascular risk",
                    reference=CLINICAL_REFERENCES["smoking-cessation"],
                )
            )

        if risk_10yr >= 5 or risk_30yr >= 20:
            recommendations.append(
                ClinicalRecommendation(
                    category=RecommendationCategory.MONITORING,
                    priority=Priority.MEDIUM,
                    recommendation="Annual comprehensive cardiovascular risk reassessment",
                    evidence="Regular monitoring with PREVENT equations for optimal care",
                    reference=prevent_reference,
                )
            )

        return recommendations

    def get_citations(self) -> list[ClinicalReference]:
        return [
            CLINICAL_REFERENCES["prevent-algorithm"],
            CLINICAL_REFERENCES["ckd-epi-2021"],
            CLINICAL_REFERENCES["smoking-cessation"],
            CLINICAL_REFERENCES["statin-therapy"],
        ]

    def _plan_statin_therapy(
        self, request: InterventionRequest, working: PatientParameters
    ) -> InterventionPlan | None:
        if working.statin_use:
            return None

        current = working.non_hdl_cholesterol
        if not current and working.total_cholesterol and working.hdl_cholesterol:
            current = calculate_non_hdl(working.total_cholesterol, working.hdl_cholesterol)
        current = current or DEFAULT_NON_HDL_CHOLESTEROL

        return InterventionPlan(
            label="Statin Therapy",
            effect=INTERVENTION_EFFECTS["statin_therapy"],
            updates={
                "non_hdl_cholesterol": max(STATIN_NON_HDL_FLOOR, current - STATIN_NON_HDL_REDUCTION),
                "statin_use": True,
            },
        )

    def _plan_kidney_protection(
        self, request: InterventionRequest, working: PatientParameters
    ) -> InterventionPlan | None:
        improvement = request.egfr_improvement
        if not improvement or improvement <= 0:
            return None

        current = validate_kidney_function(working).egfr
        if not current:
            return None

        return InterventionPlan(
            label="Kidney Protection Therapy",
            effect=INTERVENTION_EFFECTS["kidney_protection"],
            updates={"egfr": min(EGFR_CEILING, round(current + improvement, 1))},
        )
