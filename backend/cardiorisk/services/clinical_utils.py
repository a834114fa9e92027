"""Clinical Utility Calculations.

Derived values and staged classifiers that support the risk models:
CKD-EPI 2021 eGFR, non-HDL cholesterol, BMI, and warning-only checks for
kidney function, cholesterol, and diabetes. Classifiers never block a
calculation; they only return warnings.
"""

import logging
from dataclasses import dataclass, field

from cardiorisk.schemas.base import DiabetesStatus, Gender, parse_gender
from cardiorisk.schemas.patient import PatientParameters

logger = logging.getLogger(__name__)

LBS_TO_KG = 0.453592
INCHES_TO_M = 0.0254


@dataclass
class KidneyAssessment:
    """Kidney function findings for a patient."""

    warnings: list[str] = field(default_factory=list)
    egfr: float | None = None  # Supplied or calculated
    egfr_calculated: bool = False
    ckd_stage: str | None = None


@dataclass
class CholesterolAssessment:
    """Lipid findings for a patient."""

    warnings: list[str] = field(default_factory=list)
    non_hdl_cholesterol: float | None = None
    ldl_estimate: float | None = None


@dataclass
class DiabetesAssessment:
    """Glycemic findings for a patient."""

    status: DiabetesStatus = DiabetesStatus.NONE
    warnings: list[str] = field(default_factory=list)


# ============================================================================
# CKD-EPI eGFR
# ============================================================================

def _egfr_ckdepi(creatinine: float, age: float, female: bool) -> float:
    # 2021 CKD-EPI equation (race-free)
    # eGFR = 142 × min(Scr/κ, 1)^α × max(Scr/κ, 1)^-1.200 × 0.9938^Age × (1.012 if female)
    kappa = 0.7 if female else 0.9
    alpha = -0.241 if female else -0.302

    scr_ratio = creatinine / kappa
    min_term = min(scr_ratio, 1) ** alpha
    max_term = max(scr_ratio, 1) ** -1.200
    age_term = 0.9938 ** age
    sex_term = 1.012 if female else 1

    return 142 * min_term * max_term * age_term * sex_term


def calculate_egfr(creatinine: float, age: float, gender: Gender | str) -> float:
    """Calculate eGFR using the CKD-EPI 2021 equation (without race).

    For a non-binary gender declaration both the male and female estimates
    are computed and their mean is returned.

    Args:
        creatinine: Serum creatinine in mg/dL.
        age: Patient age in years.
        gender: Declared gender.

    Returns:
        eGFR in mL/min/1.73m², rounded to 1 decimal place.

    Raises:
        ValueError: If creatinine or age is not positive.
    """
    if creatinine is None or creatinine <= 0:
        raise ValueError(f"Creatinine must be positive, got {creatinine}")
    if age is None or age <= 0:
        raise ValueError(f"Age must be positive, got {age}")

    gender = parse_gender(gender)

    if gender == Gender.NON_BINARY:
        # Blended estimate: mean of the two gendered equations
        male = _egfr_ckdepi(creatinine, age, female=False)
        female = _egfr_ckdepi(creatinine, age, female=True)
        egfr = (male + female) / 2
    else:
        egfr = _egfr_ckdepi(creatinine, age, female=gender == Gender.FEMALE)

    return round(egfr, 1)


def calculate_non_hdl(total_cholesterol: float, hdl_cholesterol: float) -> float:
    """Calculate non-HDL cholesterol (total minus HDL)."""
    return total_cholesterol - hdl_cholesterol


def calculate_bmi(weight_lbs: float, height_inches: float) -> float:
    """Calculate Body Mass Index from US customary units.

    Args:
        weight_lbs: Weight in pounds.
        height_inches: Height in inches.

    Returns:
        BMI in kg/m², rounded to 1 decimal place.
    """
    weight_kg = weight_lbs * LBS_TO_KG
    height_m = height_inches * INCHES_TO_M
    return round(weight_kg / (height_m ** 2), 1)


def estimate_ldl(total_cholesterol: float, hdl_cholesterol: float) -> float | None:
    """Rough Friedewald LDL estimate assuming triglycerides of ~150 mg/dL.

    Returns None when total cholesterol is 400 mg/dL or higher, where the
    approximation breaks down.
    """
    if total_cholesterol >= 400:
        return None
    return total_cholesterol - hdl_cholesterol - 30


# ============================================================================
# Staged classifiers
# ============================================================================

def get_ckd_stage(egfr: float) -> str:
    """Get the KDIGO CKD stage label for an eGFR value."""
    if egfr >= 90:
        return "G1 (Normal/High)"
    if egfr >= 60:
        return "G2 (Mild decrease)"
    if egfr >= 45:
        return "G3a (Mild-moderate decrease)"
    if egfr >= 30:
        return "G3b (Moderate-severe decrease)"
    if egfr >= 15:
        return "G4 (Severe decrease)"
    return "G5 (Kidney failure)"


def validate_kidney_function(params: PatientParameters) -> KidneyAssessment:
    """Assess kidney function, deriving eGFR from creatinine when needed.

    Args:
        params: Patient parameters.

    Returns:
        KidneyAssessment with warnings, the eGFR used and its CKD stage.
    """
    assessment = KidneyAssessment()

    egfr = params.egfr
    if not egfr and params.creatinine and params.age and params.gender:
        try:
            egfr = calculate_egfr(params.creatinine, params.age, params.gender)
            assessment.egfr_calculated = True
        except ValueError as e:
            logger.debug(f"eGFR derivation failed: {e}")
            assessment.warnings.append("Unable to calculate eGFR from creatinine")
            egfr = None

    if not egfr:
        return assessment

    assessment.egfr = egfr
    assessment.ckd_stage = get_ckd_stage(egfr)

    if egfr < 60:
        assessment.warnings.append(
            f"Reduced kidney function detected (eGFR: {egfr}). Consider nephrology consultation."
        )
    if egfr < 30:
        assessment.warnings.append(
            "Severely reduced kidney function. Cardiovascular risk significantly increased."
        )

    acr = params.albumin_creatinine_ratio
    if acr:
        if acr > 30:
            assessment.warnings.append("Elevated albumin-creatinine ratio indicates kidney damage.")
        if acr > 300:
            assessment.warnings.append(
                "Severely elevated albumin-creatinine ratio. Requires immediate attention."
            )

    return assessment


def validate_cholesterol(params: PatientParameters) -> CholesterolAssessment:
    """Flag notable lipid values.

    Args:
        params: Patient parameters.

    Returns:
        CholesterolAssessment with warnings, non-HDL and an LDL estimate.
    """
    assessment = CholesterolAssessment()
    total = params.total_cholesterol
    hdl = params.hdl_cholesterol

    if total and hdl:
        assessment.non_hdl_cholesterol = calculate_non_hdl(total, hdl)
        assessment.ldl_estimate = estimate_ldl(total, hdl)

    non_hdl = params.non_hdl_cholesterol or assessment.non_hdl_cholesterol

    if total and total > 240:
        assessment.warnings.append("Elevated total cholesterol (>240 mg/dL). Consider lipid management.")

    if hdl and hdl < 40:
        assessment.warnings.append("Low HDL cholesterol (<40 mg/dL). Consider lifestyle interventions.")

    if non_hdl:
        if non_hdl > 190:
            assessment.warnings.append("Very high non-HDL cholesterol (>190 mg/dL). Consider statin therapy.")
        elif non_hdl > 160:
            assessment.warnings.append("High non-HDL cholesterol (>160 mg/dL). Review lipid management.")

    return assessment


def validate_diabetes(params: PatientParameters) -> DiabetesAssessment:
    """Classify glycemic status from HbA1c, falling back to diabetes history.

    HbA1c cutoffs: 5.7% prediabetes, 6.5% diabetes, 7.0% above the usual
    treatment target, 9.0% uncontrolled.
    """
    assessment = DiabetesAssessment()
    hba1c = params.hba1c

    if hba1c:
        if hba1c >= 6.5:
            assessment.status = DiabetesStatus.DIABETES
            if hba1c >= 9.0:
                assessment.status = DiabetesStatus.UNCONTROLLED
                assessment.warnings.append(
                    "Poorly controlled diabetes (HbA1c ≥9%). Intensive diabetes management needed."
                )
            elif hba1c >= 7.0:
                assessment.warnings.append(
                    "Diabetes present but may need better control. Target HbA1c <7% for most patients."
                )
        elif hba1c >= 5.7:
            assessment.status = DiabetesStatus.PREDIABETES
            assessment.warnings.append(
                "Prediabetes detected (HbA1c 5.7-6.4%). Consider diabetes prevention strategies."
            )
    elif params.diabetes:
        assessment.status = DiabetesStatus.DIABETES
        assessment.warnings.append("Diabetes history noted. Recent HbA1c recommended for risk assessment.")

    return assessment
