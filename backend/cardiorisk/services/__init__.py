"""Services for the cardiovascular risk engine.

Services implement the risk models and their supporting calculations:
- PCERiskCalculator: 2013 Pooled Cohort Equations (10-year ASCVD risk)
- PREVENTRiskCalculator: 2024 PREVENT equations (10- and 30-year risk)
- RiskCalculatorFactory: active-model delegation and model comparison
- InterventionSimulator: cumulative what-if scenarios
- clinical_utils: eGFR, non-HDL, BMI and warning classifiers
- references: static clinical citations
"""

from cardiorisk.services.algorithm import (
    BaseRiskCalculator,
    RiskCalculatorAlgorithm,
    bound_risk,
    categorize_10_year,
    correct_hdl,
)
from cardiorisk.services.clinical_utils import (
    CholesterolAssessment,
    DiabetesAssessment,
    KidneyAssessment,
    calculate_bmi,
    calculate_egfr,
    calculate_non_hdl,
    estimate_ldl,
    get_ckd_stage,
    validate_cholesterol,
    validate_diabetes,
    validate_kidney_function,
)
from cardiorisk.services.interventions import (
    INTERVENTION_EFFECTS,
    InterventionPlan,
    InterventionSimulator,
)
from cardiorisk.services.pce import PCERiskCalculator
from cardiorisk.services.prevent import PREVENTRiskCalculator, categorize_30_year
from cardiorisk.services.references import (
    CLINICAL_REFERENCES,
    format_citation,
    get_clinical_reference,
    get_doi_url,
    get_pubmed_url,
)
from cardiorisk.services.registry import (
    AlgorithmNotRegisteredError,
    AlgorithmRegistry,
    RiskCalculatorFactory,
    build_comparison,
    create_risk_calculator_factory,
)

__all__ = [
    # Algorithm interface
    "BaseRiskCalculator",
    "RiskCalculatorAlgorithm",
    "bound_risk",
    "categorize_10_year",
    "categorize_30_year",
    "correct_hdl",
    # Models
    "PCERiskCalculator",
    "PREVENTRiskCalculator",
    # Registry & factory
    "AlgorithmNotRegisteredError",
    "AlgorithmRegistry",
    "RiskCalculatorFactory",
    "build_comparison",
    "create_risk_calculator_factory",
    # Interventions
    "INTERVENTION_EFFECTS",
    "InterventionPlan",
    "InterventionSimulator",
    # Clinical utilities
    "CholesterolAssessment",
    "DiabetesAssessment",
    "KidneyAssessment",
    "calculate_bmi",
    "calculate_egfr",
    "calculate_non_hdl",
    "estimate_ldl",
    "get_ckd_stage",
    "validate_cholesterol",
    "validate_diabetes",
    "validate_kidney_function",
    # References
    "CLINICAL_REFERENCES",
    "format_citation",
    "get_clinical_reference",
    "get_doi_url",
    "get_pubmed_url",
]
