"""Pooled Cohort Equations (2013 ACC/AHA).

10-year ASCVD risk from race- and sex-specific Cox models. Race "other" uses
the white coefficient sets. Non-binary patients get the mean of the male and
female estimates with lower confidence.
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
)
from cardiorisk.schemas.intervention import InterventionRequest
from cardiorisk.schemas.patient import PatientParameters
from cardiorisk.schemas.risk import (
    AgeRange,
    ClinicalRecommendation,
    ClinicalReference,
    Disclaimer,
    RiskResult,
)
from cardiorisk.services.algorithm import (
    SBP_MAX,
    SBP_MIN,
    BaseRiskCalculator,
    bound_risk,
    categorize_10_year,
    correct_hdl,
)
from cardiorisk.services.interventions import INTERVENTION_EFFECTS, InterventionPlan
from cardiorisk.services.references import CLINICAL_REFERENCES

logger = logging.getLogger(__name__)

# Population medians used when lipids are missing (mg/dL)
DEFAULT_TOTAL_CHOLESTEROL = 200
DEFAULT_HDL_CHOLESTEROL = 50

# Statin therapy lowers total cholesterol by this much, never below the floor
STATIN_CHOLESTEROL_REDUCTION = 50
STATIN_CHOLESTEROL_FLOOR = 130


@dataclass(frozen=True)
class PCECoefficients:
    """One race/sex coefficient set of the Pooled Cohort Equations."""

    ln_age: float
    ln_age_squared: float
    ln_total_chol: float
    ln_age_total_chol: float
    ln_hdl_chol: float
    ln_age_hdl_chol: float
    ln_treated_sbp: float
    ln_age_treated_sbp: float
    ln_untreated_sbp: float
    ln_age_untreated_sbp: float
    smoking: float
    ln_age_smoking: float
    diabetes: float
    mean_sum: float  # Population mean of the weighted sum
    baseline_survival: float


PCE_COEFFICIENTS: dict[str, PCECoefficients] = {
    "white_female": PCECoefficients(
        ln_age=-29.799,
        ln_age_squared=4.884,
        ln_total_chol=13.540,
        ln_age_total_chol=-3.114,
        ln_hdl_chol=-13.578,
        ln_age_hdl_chol=3.149,
        ln_treated_sbp=2.019,
        ln_age_treated_sbp=0.0,
        ln_untreated_sbp=1.957,
        ln_age_untreated_sbp=0.0,
        smoking=7.574,
        ln_age_smoking=-1.665,
        diabetes=0.661,
        mean_sum=-29.18,
        baseline_survival=0.9665,
    ),
    "black_female": PCECoefficients(
        ln_age=17.114,
        ln_age_squared=0.0,
        ln_total_chol=0.940,
        ln_age_total_chol=0.0,
        ln_hdl_chol=-18.920,
        ln_age_hdl_chol=4.475,
        ln_treated_sbp=29.291,
        ln_age_treated_sbp=-6.432,
        ln_untreated_sbp=27.820,
        ln_age_untreated_sbp=-6.087,
        smoking=0.691,
        ln_age_smoking=0.0,
        diabetes=0.874,
        mean_sum=86.61,
        baseline_survival=0.9533,
    ),
    "white_male": PCECoefficients(
        ln_age=12.344,
        ln_age_squared=0.0,
        ln_total_chol=11.853,
        ln_age_total_chol=-2.664,
        ln_hdl_chol=-7.990,
        ln_age_hdl_chol=1.769,
        ln_treated_sbp=1.797,
        ln_age_treated_sbp=0.0,
        ln_untreated_sbp=1.764,
        ln_age_untreated_sbp=0.0,
        smoking=7.837,
        ln_age_smoking=-1.795,
        diabetes=0.658,
        mean_sum=61.18,
        baseline_survival=0.9144,
    ),
    "black_male": PCECoefficients(
        ln_age=2.469,
        ln_age_squared=0.0,
        ln_total_chol=0.302,
        ln_age_total_chol=0.0,
        ln_hdl_chol=-0.307,
        ln_age_hdl_chol=0.0,
        ln_treated_sbp=1.916,
        ln_age_treated_sbp=0.0,
        ln_untreated_sbp=1.809,
        ln_age_untreated_sbp=0.0,
        smoking=0.549,
        ln_age_smoking=0.0,
        diabetes=0.645,
        mean_sum=19.54,
        baseline_survival=0.8954,
    ),
}


def coefficient_key(race: Race, gender: Gender) -> str:
    """Pick the coefficient set for a race and a binary gender."""
    race_group = "black" if race == Race.BLACK else "white"
    return f"{race_group}_{gender.value}"


def pce_risk(
    coeffs: PCECoefficients,
    age: float,
    total_cholesterol: float,
    hdl_cholesterol: float,
    systolic_bp: float,
    bp_treated: bool = False,
    smoker: bool = False,
    diabetic: bool = False,
) -> float:
    """Calculate clamped 10-year ASCVD risk (%) for one coefficient set.

    Args:
        coeffs: Race/sex coefficient set.
        age: Age in years.
        total_cholesterol: Total cholesterol in mg/dL.
        hdl_cholesterol: HDL cholesterol in mg/dL.
        systolic_bp: Systolic blood pressure in mmHg.
        bp_treated: On antihypertensive medication.
        smoker: Current smoker.
        diabetic: Has diabetes.

    Returns:
        Risk percentage in [0.1, 99.9], rounded to 1 decimal place.
    """
    ln_age = math.log(age)
    ln_tc = math.log(total_cholesterol)
    ln_hdl = math.log(hdl_cholesterol)
    ln_sbp = math.log(systolic_bp)

    if bp_treated:
        sbp_coeff, age_sbp_coeff = coeffs.ln_treated_sbp, coeffs.ln_age_treated_sbp
    else:
        sbp_coeff, age_sbp_coeff = coeffs.ln_untreated_sbp, coeffs.ln_age_untreated_sbp

    smoking = 1 if smoker else 0

    individual_sum = (
        coeffs.ln_age * ln_age
        + coeffs.ln_age_squared * ln_age * ln_age
        + coeffs.ln_total_chol * ln_tc
        + coeffs.ln_age_total_chol * ln_age * ln_tc
        + coeffs.ln_hdl_chol * ln_hdl
        + coeffs.ln_age_hdl_chol * ln_age * ln_hdl
        + sbp_coeff * ln_sbp
        + age_sbp_coeff * ln_age * ln_sbp
        + coeffs.smoking * smoking
        + coeffs.ln_age_smoking * ln_age * smoking
        + coeffs.diabetes * (1 if diabetic else 0)
    )

    survival = coeffs.baseline_survival ** math.exp(individual_sum - coeffs.mean_sum)
    return bound_risk((1 - survival) * 100)


class PCERiskCalculator(BaseRiskCalculator):
    """10-year ASCVD risk using the 2013 Pooled Cohort Equations.

    Example usage:
        calculator = PCERiskCalculator()
        result = calculator.calculate_risk({
            "age": 55, "gender": "male", "race": "white", "systolic_bp": 130,
            "total_cholesterol": 210, "hdl_cholesterol": 45,
        })
    """

    name = "PCE"
    version = "2013.1"
    age_range = AgeRange(min=40, max=79)
    required_parameters = ("age", "gender", "race", "systolic_bp")
    optional_parameters = (
        "diastolic_bp",
        "total_cholesterol",
        "hdl_cholesterol",
        "diabetes",
        "smoking",
        "bp_medication",
        "weight",
        "height",
    )

    disclaimer = Disclaimer(
        primary=(
            "This educational tool uses the 2013 ACC/AHA Pooled Cohort Equations for "
            "demonstration purposes only. Results are not intended for clinical decision-making."
        ),
        limitations=[
            "Validated for ages 40-79 years only",
            "May overestimate risk in some populations",
            "Requires recent cholesterol values for accuracy",
            "Does not include family history or other risk factors",
            "Individual results may vary significantly",
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
        if sbp is None or sbp < SBP_MIN or sbp > SBP_MAX:
            errors.append(f"Systolic blood pressure must be between {SBP_MIN}-{SBP_MAX} mmHg")

        total = params.total_cholesterol
        if total and (total < 130 or total > 320):
            warnings.append("Total cholesterol outside typical range (130-320 mg/dL)")

        hdl = params.hdl_cholesterol
        if hdl and (hdl < 20 or hdl > 100):
            warnings.append("HDL cholesterol outside typical range (20-100 mg/dL)")

        # Inputs only PREVENT uses
        if params.egfr or params.creatinine:
            warnings.append(
                "Kidney function parameters not used in PCE calculation. Consider PREVENT algorithm."
            )
        if params.non_hdl_cholesterol:
            warnings.append(
                "Non-HDL cholesterol not used in PCE calculation. Consider PREVENT algorithm."
            )
        # statin_use only gates the statin therapy intervention here

        return errors, warnings

    def _compute(self, params: PatientParameters, warnings: list[str]) -> RiskResult:
        defaults_used: list[str] = []

        total = params.total_cholesterol
        if not total:
            total = DEFAULT_TOTAL_CHOLESTEROL
            defaults_used.append("total cholesterol")

        hdl = params.hdl_cholesterol
        if not hdl:
            hdl = DEFAULT_HDL_CHOLESTEROL
            defaults_used.append("HDL cholesterol")

        corrected_hdl = correct_hdl(total, hdl)
        if corrected_hdl != hdl:
            warnings.append(
                f"HDL cholesterol exceeds total cholesterol; using {corrected_hdl:g} mg/dL"
            )
            hdl = corrected_hdl

        def risk_for(gender: Gender) -> float:
            return pce_risk(
                PCE_COEFFICIENTS[coefficient_key(params.race, gender)],
                age=params.age,
                total_cholesterol=total,
                hdl_cholesterol=hdl,
                systolic_bp=params.systolic_bp,
                bp_treated=bool(params.bp_medication),
                smoker=bool(params.smoking),
                diabetic=bool(params.diabetes),
            )

        confidence = Confidence.STANDARD
        gender_note = None

        if params.is_non_binary:
            male_risk = risk_for(Gender.MALE)
            female_risk = risk_for(Gender.FEMALE)
            risk = bound_risk((male_risk + female_risk) / 2)
            confidence = Confidence.LOWER
            gender_note = "Risk estimated using averaged male/female calculations"
            logger.debug(f"PCE blended estimate: male={male_risk}, female={female_risk}")
        else:
            risk = risk_for(params.gender)

        return RiskResult(
            success=True,
            risk=risk,
            risk_category=categorize_10_year(risk),
            confidence=confidence,
            algorithm=self.name,
            parameters=params,
            defaults_used=defaults_used,
            warnings=warnings,
            interpretation=self._interpret(risk),
            disclaimer=self.disclaimer,
            gender_note=gender_note,
        )

    def _interpret(self, risk: float) -> str:
        category = categorize_10_year(risk)
        text = (
            f"Your estimated 10-year risk of cardiovascular disease is {risk}%, "
            f"which is considered {category.level.value} risk. "
        )
        if risk < 5:
            text += "Continue maintaining healthy lifestyle habits."
        elif risk < 7.5:
            text += "Consider lifestyle modifications and regular monitoring."
        elif risk < 20:
            text += "Lifestyle changes and possible medical treatment may be beneficial."
        else:
            text += "Strong consideration for medical treatment in addition to lifestyle changes."
        return text

    def get_recommendations(self, result: RiskResult) -> list[ClinicalRecommendation]:
        """Recommendations following the 2019 AHA/ACC primary prevention guideline."""
        pce_reference = CLINICAL_REFERENCES["pce-2013"]
        recommendations: list[ClinicalRecommendation] = []
        risk = result.risk

        if risk >= 20:
            recommendations.append(
                ClinicalRecommendation(
                    category=RecommendationCategory.MEDICATION,
                    priority=Priority.HIGH,
                    recommendation="High-intensity statin therapy recommended",
                    evidence="Class I recommendation for ASCVD risk ≥20%",
                    reference=pce_reference,
                )
            )
        elif risk >= 7.5:
            recommendations.append(
                ClinicalRecommendation(
                    category=RecommendationCategory.MEDICATION,
                    priority=Priority.MEDIUM,
                    recommendation="Consider statin therapy after clinician-patient discussion",
                    evidence="Class IIa recommendation for ASCVD risk 7.5-19.9%",
                    reference=pce_reference,
                )
            )

        recommendations.append(
            ClinicalRecommendation(
                category=RecommendationCategory.LIFESTYLE,
                priority=Priority.HIGH,
                recommendation="Heart-healthy lifestyle modifications",
                evidence="Class I recommendation for all patients",
                reference=pce_reference,
            )
        )

        if result.parameters.smoking:
            recommendations.append(
                ClinicalRecommendation(
                    category=RecommendationCategory.LIFESTYLE,
                    priority=Priority.HIGH,
                    recommendation="Smoking cessation counseling and support",
                    evidence="Reduces cardiovascular risk by ~35%",
                    reference=CLINICAL_REFERENCES["smoking-cessation"],
                )
            )

        sbp = result.parameters.systolic_bp
        if sbp and sbp > 130:
            recommendations.append(
                ClinicalRecommendation(
                    category=RecommendationCategory.LIFESTYLE,
                    priority=Priority.MEDIUM,
                    recommendation="Blood pressure management and monitoring",
                    evidence="Target <130/80 mmHg for most patients",
                    reference=pce_reference,
                )
            )

        if risk >= 5:
            recommendations.append(
                ClinicalRecommendation(
                    category=RecommendationCategory.MONITORING,
                    priority=Priority.MEDIUM,
                    recommendation="Annual cardiovascular risk reassessment",
                    evidence="Regular monitoring for intermediate to high-risk patients",
                    reference=pce_reference,
                )
            )

        return recommendations

    def get_citations(self) -> list[ClinicalReference]:
        return [
            CLINICAL_REFERENCES["pce-2013"],
            CLINICAL_REFERENCES["smoking-cessation"],
            CLINICAL_REFERENCES["statin-therapy"],
        ]

    def _plan_statin_therapy(
        self, request: InterventionRequest, working: PatientParameters
    ) -> InterventionPlan | None:
        if working.statin_use:
            return None
        current = working.total_cholesterol or DEFAULT_TOTAL_CHOLESTEROL
        return InterventionPlan(
            label="Statin Therapy",
            effect=INTERVENTION_EFFECTS["statin_therapy"],
            updates={
                "total_cholesterol": max(
                    STATIN_CHOLESTEROL_FLOOR, current - STATIN_CHOLESTEROL_REDUCTION
                ),
                "statin_use": True,
            },
        )
