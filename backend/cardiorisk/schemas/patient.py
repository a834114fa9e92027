"""Patient parameter schema."""

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cardiorisk.schemas.base import Gender, Race, parse_gender


class PatientParameters(BaseModel):
    """Clinical inputs for a cardiovascular risk calculation.

    Every field is optional here. Which fields are required, and the ranges
    they must fall in, depends on the risk model and is checked by that
    model's ``validate_inputs`` rather than at construction time.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    # Demographics
    age: float | None = Field(None, description="Age in years")
    gender: Gender | None = Field(None, description="Declared gender")
    race: Race | None = Field(None, description="Declared race/ethnicity group")

    # Blood pressure
    systolic_bp: float | None = Field(None, description="Systolic blood pressure (mmHg)")
    diastolic_bp: float | None = Field(None, description="Diastolic blood pressure (mmHg)")
    bp_medication: bool | None = Field(None, description="On antihypertensive medication")

    # Cholesterol
    total_cholesterol: float | None = Field(None, description="Total cholesterol (mg/dL)")
    hdl_cholesterol: float | None = Field(None, description="HDL cholesterol (mg/dL)")
    non_hdl_cholesterol: float | None = Field(None, description="Non-HDL cholesterol (mg/dL)")

    # Medical history
    diabetes: bool | None = Field(None, description="Diabetes mellitus")
    smoking: bool | None = Field(None, description="Current smoker")
    statin_use: bool | None = Field(None, description="Currently taking a statin")

    # Kidney function
    egfr: float | None = Field(None, description="eGFR (mL/min/1.73m²)")
    creatinine: float | None = Field(None, description="Serum creatinine (mg/dL)")
    albumin_creatinine_ratio: float | None = Field(None, description="Urine ACR (mg/g)")

    # Optional enhancements
    hba1c: float | None = Field(None, description="Hemoglobin A1c (%)")
    social_deprivation_index: float | None = Field(None, description="Area social deprivation index")

    # Physical measurements
    weight: float | None = Field(None, description="Weight (lbs)")
    height: float | None = Field(None, description="Height (inches)")

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, value: Any) -> Any:
        """Accept case-insensitive gender strings and the "other" alias."""
        if isinstance(value, str):
            return parse_gender(value)
        return value

    @field_validator("race", mode="before")
    @classmethod
    def normalize_race(cls, value: Any) -> Any:
        """Accept case-insensitive race strings."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def is_non_binary(self) -> bool:
        """Check if the blended male/female estimate applies."""
        return self.gender == Gender.NON_BINARY


PatientInput = PatientParameters | Mapping[str, Any]


class InvalidParametersError(ValueError):
    """Raised when patient parameters cannot be parsed or fail hard validation."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


def coerce_parameters(params: PatientInput) -> PatientParameters:
    """Convert a mapping into PatientParameters.

    Raises:
        InvalidParametersError: If the mapping does not describe valid parameters.
    """
    if isinstance(params, PatientParameters):
        return params
    try:
        return PatientParameters.model_validate(params)
    except ValidationError as e:
        messages = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise InvalidParametersError(messages) from e
