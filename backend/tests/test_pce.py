"""Tests for the Pooled Cohort Equations calculator."""

import pytest

from cardiorisk.schemas import (
    Confidence,
    Gender,
    PatientParameters,
    Race,
    RecommendationCategory,
    RiskLevel,
)
from cardiorisk.services.algorithm import correct_hdl
from cardiorisk.services.pce import PCE_COEFFICIENTS, coefficient_key, pce_risk


# ============================================================================
# Metadata Tests
# ============================================================================


class TestPCEMetadata:
    """Test algorithm metadata."""

    def test_info(self, pce):
        """Test name, version and age range."""
        info = pce.get_info()
        assert info.name == "PCE"
        assert info.version == "2013.1"
        assert info.age_range.min == 40
        assert info.age_range.max == 79
        assert info.required_parameters == ["age", "gender", "race", "systolic_bp"]
        assert "total_cholesterol" in info.optional_parameters

    def test_other_race_uses_white_coefficients(self):
        """Test race "other" maps to the white coefficient sets."""
        assert coefficient_key(Race.OTHER, Gender.MALE) == "white_male"
        assert coefficient_key(Race.BLACK, Gender.FEMALE) == "black_female"

    def test_citations(self, pce):
        """Test citation IDs."""
        assert [ref.id for ref in pce.get_citations()] == [
            "pce-2013",
            "smoking-cessation",
            "statin-therapy",
        ]


# ============================================================================
# Risk Calculation Tests
# ============================================================================


class TestPCECalculation:
    """Test 10-year risk calculation."""

    def test_low_risk_woman(self, pce, low_risk_woman):
        """Test healthy 45-year-old woman is low risk."""
        result = pce.calculate_risk(low_risk_woman)
        assert result.success is True
        assert result.risk < 5
        assert result.risk_category.level == RiskLevel.LOW
        assert result.confidence == Confidence.STANDARD
        assert result.risk_30_year is None

    def test_high_risk_man(self, pce, high_risk_man):
        """Test 65-year-old diabetic smoker with treated hypertension is high risk."""
        result = pce.calculate_risk(high_risk_man)
        assert result.success is True
        assert result.risk > 20
        assert result.risk_category.level == RiskLevel.HIGH

    def test_matches_published_equation(self):
        """Test the white male equation gives ~60% for the high-risk example."""
        risk = pce_risk(
            PCE_COEFFICIENTS["white_male"],
            age=65,
            total_cholesterol=240,
            hdl_cholesterol=35,
            systolic_bp=160,
            bp_treated=True,
            smoker=True,
            diabetic=True,
        )
        assert risk == pytest.approx(60.2, abs=0.5)

    def test_accepts_model_instance(self, pce, low_risk_woman):
        """Test PatientParameters and plain dicts give the same result."""
        from_dict = pce.calculate_risk(low_risk_woman)
        from_model = pce.calculate_risk(PatientParameters(**low_risk_woman))
        assert from_dict.risk == from_model.risk

    def test_risk_rounded_and_bounded(self, pce):
        """Test extreme inputs stay within [0.1, 99.9]."""
        extreme_high = {
            "age": 79, "gender": "male", "race": "black", "systolic_bp": 200,
            "bp_medication": True, "total_cholesterol": 320, "hdl_cholesterol": 20,
            "diabetes": True, "smoking": True,
        }
        extreme_low = {
            "age": 40, "gender": "female", "race": "white", "systolic_bp": 90,
            "total_cholesterol": 130, "hdl_cholesterol": 100,
        }
        for params in (extreme_high, extreme_low):
            result = pce.calculate_risk(params)
            assert result.success is True
            assert 0.1 <= result.risk <= 99.9
            assert result.risk == round(result.risk, 1)

    def test_interpretation_mentions_risk(self, pce, low_risk_woman):
        """Test interpretation text includes the risk and category."""
        result = pce.calculate_risk(low_risk_woman)
        assert f"{result.risk}%" in result.interpretation
        assert "low risk" in result.interpretation

    def test_disclaimer_attached(self, pce, low_risk_woman):
        """Test every result carries the PCE disclaimer."""
        result = pce.calculate_risk(low_risk_woman)
        assert "Pooled Cohort Equations" in result.disclaimer.primary
        assert len(result.disclaimer.limitations) == 5


class TestPCEDefaults:
    """Test population defaults and corrections."""

    def test_missing_lipids_use_defaults(self, pce):
        """Test omitted total and HDL cholesterol are defaulted and recorded."""
        result = pce.calculate_risk(
            {"age": 55, "gender": "male", "race": "white", "systolic_bp": 130}
        )
        assert result.success is True
        assert result.defaults_used == ["total cholesterol", "HDL cholesterol"]

    def test_defaults_match_explicit_values(self, pce):
        """Test defaults equal supplying 200/50 explicitly."""
        base = {"age": 55, "gender": "male", "race": "white", "systolic_bp": 130}
        defaulted = pce.calculate_risk(base)
        explicit = pce.calculate_risk({**base, "total_cholesterol": 200, "hdl_cholesterol": 50})
        assert defaulted.risk == explicit.risk
        assert explicit.defaults_used == []

    def test_hdl_above_total_corrected(self, pce):
        """Test HDL above total is replaced by total - 10."""
        base = {"age": 55, "gender": "female", "race": "white", "systolic_bp": 130}
        inverted = pce.calculate_risk({**base, "total_cholesterol": 150, "hdl_cholesterol": 170})
        corrected = pce.calculate_risk({**base, "total_cholesterol": 150, "hdl_cholesterol": 140})
        assert inverted.success is True
        assert inverted.risk == corrected.risk
        assert any("HDL cholesterol exceeds total" in w for w in inverted.warnings)

    def test_correct_hdl(self):
        """Test the correction helper."""
        assert correct_hdl(150, 170) == 140
        assert correct_hdl(200, 50) == 50


class TestPCENonBinary:
    """Test blended estimate for non-binary patients."""

    def test_mean_of_male_and_female(self, pce, high_risk_man):
        """Test non-binary risk is the mean of the gendered risks."""
        male = pce.calculate_risk({**high_risk_man, "gender": "male"})
        female = pce.calculate_risk({**high_risk_man, "gender": "female"})
        blended = pce.calculate_risk({**high_risk_man, "gender": "non-binary"})

        assert blended.risk == pytest.approx((male.risk + female.risk) / 2, abs=0.05)
        assert blended.confidence == Confidence.LOWER
        assert blended.gender_note == "Risk estimated using averaged male/female calculations"

    def test_other_alias(self, pce, low_risk_woman):
        """Test "other" is treated as non-binary."""
        result = pce.calculate_risk({**low_risk_woman, "gender": "other"})
        assert result.confidence == Confidence.LOWER

    def test_binary_gender_standard_confidence(self, pce, high_risk_man):
        """Test confidence is lower only for non-binary."""
        result = pce.calculate_risk(high_risk_man)
        assert result.confidence == Confidence.STANDARD
        assert result.gender_note is None


# ============================================================================
# Validation Tests
# ============================================================================


class TestPCEValidation:
    """Test input validation."""

    @pytest.mark.parametrize("age", [39, 80])
    def test_age_out_of_range(self, pce, low_risk_woman, age):
        """Test ages outside 40-79 fail with an error."""
        result = pce.calculate_risk({**low_risk_woman, "age": age})
        assert result.success is False
        assert result.risk == 0
        assert result.errors
        assert "Age must be between 40-79" in result.error

    @pytest.mark.parametrize("age", [40, 79])
    def test_age_boundaries_succeed(self, pce, low_risk_woman, age):
        """Test the validated range is inclusive."""
        assert pce.calculate_risk({**low_risk_woman, "age": age}).success is True

    def test_all_errors_collected(self, pce):
        """Test every failed precondition is reported."""
        result = pce.calculate_risk({"age": 30})
        assert result.success is False
        assert len(result.errors) == 4  # age, gender, race, systolic BP

    @pytest.mark.parametrize("sbp", [89, 201])
    def test_systolic_bp_out_of_range(self, pce, low_risk_woman, sbp):
        """Test systolic BP must be within 90-200."""
        result = pce.calculate_risk({**low_risk_woman, "systolic_bp": sbp})
        assert result.success is False
        assert any("Systolic blood pressure" in e for e in result.errors)

    def test_unparseable_mapping(self, pce):
        """Test invalid mappings become failed results, not exceptions."""
        result = pce.calculate_risk({"age": "sixty"})
        assert result.success is False
        assert result.errors

    def test_soft_warnings(self, pce, low_risk_woman):
        """Test out-of-range lipids and unused inputs warn without failing."""
        params = {
            **low_risk_woman,
            "total_cholesterol": 340,
            "egfr": 80,
            "non_hdl_cholesterol": 150,
        }
        validation = pce.validate_inputs(params)
        assert validation.is_valid is True
        assert len(validation.warnings) == 3

        result = pce.calculate_risk(params)
        assert result.success is True
        assert len(result.warnings) == 3

    def test_statin_flag_not_warned(self, pce, low_risk_woman):
        """Test the statin flag is accepted silently."""
        validation = pce.validate_inputs({**low_risk_woman, "statin_use": True})
        assert validation.warnings == []

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_systolic_bp(self, pce, low_risk_woman, value):
        """Test NaN and infinite systolic BP fail instead of clamping to 99.9."""
        result = pce.calculate_risk({**low_risk_woman, "systolic_bp": value})
        assert result.success is False
        assert result.risk == 0
        assert any(e.startswith("systolic_bp") for e in result.errors)

    def test_non_finite_cholesterol(self, pce, low_risk_woman):
        """Test NaN lipids are rejected."""
        result = pce.calculate_risk({**low_risk_woman, "total_cholesterol": float("nan")})
        assert result.success is False


# ============================================================================
# Recommendation Tests
# ============================================================================


class TestPCERecommendations:
    """Test clinical recommendations."""

    def test_high_risk_recommendations(self, pce, high_risk_man):
        """Test high risk gets statin, smoking, BP and monitoring advice."""
        result = pce.calculate_risk(high_risk_man)
        recs = pce.get_recommendations(result)
        texts = [rec.recommendation for rec in recs]

        assert "High-intensity statin therapy recommended" in texts
        assert "Smoking cessation counseling and support" in texts
        assert "Blood pressure management and monitoring" in texts
        assert "Annual cardiovascular risk reassessment" in texts

    def test_low_risk_lifestyle_only(self, pce, low_risk_woman):
        """Test low risk gets only lifestyle advice."""
        result = pce.calculate_risk(low_risk_woman)
        recs = pce.get_recommendations(result)
        assert len(recs) == 1
        assert recs[0].category == RecommendationCategory.LIFESTYLE
