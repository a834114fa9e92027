"""Clinical Reference Database.

Static citations keyed by short string IDs. Models attach these to
recommendations, intervention effects and citation lists; the engine never
interprets them.
"""

from cardiorisk.schemas.risk import ClinicalReference

PUBMED_BASE_URL = "https://pubmed.ncbi.nlm.nih.gov"
DOI_BASE_URL = "https://doi.org"


CLINICAL_REFERENCES: dict[str, ClinicalReference] = {
    "ckd-epi-2021": ClinicalReference(
        id="ckd-epi-2021",
        authors="Inker LA, Eneanya ND, Coresh J, et al.",
        title="New Creatinine- and Cystatin C-Based Equations to Estimate GFR without Race",
        journal="New England Journal of Medicine",
        year=2021,
        pmid="34554658",
        doi="10.1056/NEJMoa2102953",
        summary="Updated CKD-EPI equation removing race coefficient for more equitable eGFR estimation.",
    ),
    "prevent-algorithm": ClinicalReference(
        id="prevent-algorithm",
        authors="Khan SS, Matsushita K, Sang Y, et al.",
        title="Development and Validation of the American Heart Association's PREVENT Equations",
        journal="Circulation",
        year=2024,
        pmid="37947085",
        doi="10.1161/CIRCULATIONAHA.123.067626",
        summary=(
            "PREVENT equations for 10- and 30-year cardiovascular risk prediction including "
            "kidney function and enhanced demographic representation."
        ),
    ),
    "pce-2013": ClinicalReference(
        id="pce-2013",
        authors="Goff DC Jr, Lloyd-Jones DM, Bennett G, et al.",
        title="2013 ACC/AHA Guideline on the Assessment of Cardiovascular Risk",
        journal="Circulation",
        year=2014,
        pmid="24222017",
        doi="10.1161/01.cir.0000437741.48606.98",
        summary="Original Pooled Cohort Equations for 10-year ASCVD risk estimation.",
    ),
    "smoking-cessation": ClinicalReference(
        id="smoking-cessation",
        authors="Critchley JA, Capewell S",
        title=(
            "Mortality risk reduction associated with smoking cessation in patients "
            "with coronary heart disease"
        ),
        journal="JAMA",
        year=2003,
        pmid="12865374",
        doi="10.1001/jama.290.1.86",
        summary="Systematic review showing 36% mortality reduction with smoking cessation.",
    ),
    "statin-therapy": ClinicalReference(
        id="statin-therapy",
        authors="Cholesterol Treatment Trialists Collaboration",
        title="Efficacy and safety of more intensive lowering of LDL cholesterol",
        journal="Lancet",
        year=2010,
        pmid="21067804",
        doi="10.1016/S0140-6736(10)61350-5",
        summary="Meta-analysis demonstrating LDL cholesterol reduction benefits for cardiovascular outcomes.",
    ),
    "social-determinants-health": ClinicalReference(
        id="social-determinants-health",
        authors="Havranek EP, Mujahid MS, Barr DA, et al.",
        title="Social Determinants of Risk and Outcomes for Cardiovascular Disease",
        journal="Circulation",
        year=2015,
        pmid="26199086",
        doi="10.1161/CIR.0000000000000228",
        summary="AHA Scientific Statement on how social factors impact cardiovascular health and outcomes.",
    ),
    "area-deprivation-index": ClinicalReference(
        id="area-deprivation-index",
        authors="Kind AJH, Buckingham WR",
        title="Making Neighborhood-Disadvantage Metrics Accessible",
        journal="New England Journal of Medicine",
        year=2018,
        pmid="29562145",
        doi="10.1056/NEJMp1802313",
        summary="Review of area-based socioeconomic measures including Area Deprivation Index for clinical use.",
    ),
    "social-deprivation-cvd": ClinicalReference(
        id="social-deprivation-cvd",
        authors="Churchwell K, Elkind MSV, Benjamin RM, et al.",
        title="Call to Action: Structural Racism as a Fundamental Driver of Health Disparities",
        journal="Circulation",
        year=2020,
        pmid="33170755",
        doi="10.1161/CIR.0000000000000936",
        summary=(
            "AHA Presidential Advisory addressing structural racism and social determinants "
            "in cardiovascular health."
        ),
    ),
}


def get_clinical_reference(reference_id: str) -> ClinicalReference | None:
    """Look up a clinical reference by ID.

    Args:
        reference_id: Short reference ID (e.g. "pce-2013").

    Returns:
        ClinicalReference if found, None otherwise.
    """
    return CLINICAL_REFERENCES.get(reference_id)


def format_citation(reference: ClinicalReference) -> str:
    """Format a reference as a one-line citation."""
    return f"{reference.authors} {reference.title}. {reference.journal}. {reference.year}."


def get_pubmed_url(pmid: str) -> str:
    return f"{PUBMED_BASE_URL}/{pmid}/"


def get_doi_url(doi: str) -> str:
    return f"{DOI_BASE_URL}/{doi}"
