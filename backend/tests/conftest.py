"""Pytest configuration and fixtures for risk engine tests."""

from typing import Any

import pytest

from cardiorisk.schemas import AlgorithmConfig, PatientParameters
from cardiorisk.services import (
    PCERiskCalculator,
    PREVENTRiskCalculator,
    RiskCalculatorFactory,
    create_risk_calculator_factory,
)


@pytest.fixture
def low_risk_woman() -> dict[str, Any]:
    """45-year-old white woman with favorable lipids and normal BP."""
    return {
        "age": 45,
        "gender": "female",
        "race": "white",
        "systolic_bp": 120,
        "bp_medication": False,
        "total_cholesterol": 180,
        "hdl_cholesterol": 60,
        "diabetes": False,
        "smoking": False,
    }


@pytest.fixture
def high_risk_man() -> dict[str, Any]:
    """65-year-old white man: treated hypertension, diabetic smoker, poor lipids."""
    return {
        "age": 65,
        "gender": "male",
        "race": "white",
        "systolic_bp": 160,
        "bp_medication": True,
        "total_cholesterol": 240,
        "hdl_cholesterol": 35,
        "diabetes": True,
        "smoking": True,
    }


@pytest.fixture
def prevent_reference_man() -> PatientParameters:
    """55-year-old man whose centered PREVENT inputs are all zero."""
    return PatientParameters(
        age=55,
        gender="male",
        race="white",
        systolic_bp=120,
        non_hdl_cholesterol=150,
        hdl_cholesterol=50,
        egfr=90,
        statin_use=False,
    )


@pytest.fixture
def prevent_patient(high_risk_man: dict[str, Any]) -> dict[str, Any]:
    """High-risk patient with the extra inputs PREVENT requires."""
    return {**high_risk_man, "egfr": 75, "statin_use": False}


@pytest.fixture
def pce() -> PCERiskCalculator:
    return PCERiskCalculator()


@pytest.fixture
def prevent() -> PREVENTRiskCalculator:
    return PREVENTRiskCalculator()


@pytest.fixture
def factory() -> RiskCalculatorFactory:
    """Factory with both models registered, PCE active, comparison off."""
    return create_risk_calculator_factory(AlgorithmConfig(algorithm="PCE"))
