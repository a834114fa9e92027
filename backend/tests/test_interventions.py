"""Tests for the intervention simulator."""

import logging

import pytest

from cardiorisk.schemas import InterventionRequest, InterventionType, RiskLevel
from cardiorisk.services.algorithm import categorize_10_year
from cardiorisk.services.interventions import (
    INTERVENTION_EFFECTS,
    InterventionSimulator,
    reduce_systolic_bp,
    weight_loss_updates,
)


def request(intervention_type: str, **amounts) -> InterventionRequest:
    return InterventionRequest(type=InterventionType(intervention_type), **amounts)


# ============================================================================
# Helper Tests
# ============================================================================


class TestHelpers:
    """Test parameter update helpers."""

    def test_reduce_systolic_bp(self):
        """Test SBP reduction."""
        assert reduce_systolic_bp(160, 10) == 150

    def test_reduce_systolic_bp_floor(self):
        """Test SBP never drops below 90."""
        assert reduce_systolic_bp(95, 20) == 90

    def test_weight_loss_updates(self):
        """Test 3 mmHg per 5% and proportional weight change."""
        updates = weight_loss_updates(150, 200, 10)
        assert updates == {"systolic_bp": 144, "weight": 180}

    def test_weight_loss_without_weight(self):
        """Test only SBP changes when weight is unknown."""
        assert weight_loss_updates(150, None, 5) == {"systolic_bp": 147}

    def test_effect_table(self):
        """Test published effect sizes."""
        assert INTERVENTION_EFFECTS["smoking_cessation"].risk_reduction == 0.35
        assert INTERVENTION_EFFECTS["physical_activity"].risk_reduction == 0.25
        assert INTERVENTION_EFFECTS["blood_pressure_reduction"].max_reduction == 20
        assert INTERVENTION_EFFECTS["kidney_protection"].kidney_protection is True


# ============================================================================
# Shared Intervention Tests
# ============================================================================


class TestSmokingCessation:
    """Test smoking cessation."""

    def test_non_smoker_skipped(self, pce, low_risk_woman):
        """Test cessation for a non-smoker yields no scenario."""
        assert pce.model_interventions(low_risk_woman, [request("smoking_cessation")]) == []

    def test_smoker_risk_drops(self, pce, high_risk_man):
        """Test cessation lowers risk for a smoker."""
        baseline = pce.calculate_risk(high_risk_man)
        scenarios = pce.model_interventions(high_risk_man, [request("smoking_cessation")])

        assert len(scenarios) == 1
        assert scenarios[0].intervention == "Smoking Cessation"
        assert scenarios[0].new_risk.parameters.smoking is False
        assert scenarios[0].new_risk.risk < baseline.risk
        assert scenarios[0].effect.source == "Critchley & Capewell 2003"

    def test_second_cessation_skipped(self, pce, high_risk_man):
        """Test preconditions are checked against the working copy."""
        scenarios = pce.model_interventions(
            high_risk_man, [request("smoking_cessation"), request("smoking_cessation")]
        )
        assert len(scenarios) == 1


class TestBloodPressureReduction:
    """Test blood pressure reduction."""

    def test_reduces_systolic_bp(self, pce, high_risk_man):
        """Test SBP is reduced by the requested amount."""
        scenarios = pce.model_interventions(
            high_risk_man, [request("blood_pressure_reduction", reduction=10)]
        )
        assert scenarios[0].intervention == "Blood Pressure Reduction (10 mmHg)"
        assert scenarios[0].new_risk.parameters.systolic_bp == 150

    def test_floor_at_90(self, pce, low_risk_woman):
        """Test SBP never goes below 90."""
        scenarios = pce.model_interventions(
            {**low_risk_woman, "systolic_bp": 95},
            [request("blood_pressure_reduction", reduction=20)],
        )
        assert scenarios[0].new_risk.parameters.systolic_bp == 90

    @pytest.mark.parametrize("reduction", [None, 0, -5])
    def test_requires_positive_reduction(self, pce, high_risk_man, reduction):
        """Test missing or non-positive reductions are skipped."""
        scenarios = pce.model_interventions(
            high_risk_man, [request("blood_pressure_reduction", reduction=reduction)]
        )
        assert scenarios == []

    def test_reductions_accumulate(self, pce, high_risk_man):
        """Test repeated reductions build on the working copy."""
        scenarios = pce.model_interventions(
            high_risk_man,
            [
                request("blood_pressure_reduction", reduction=10),
                request("blood_pressure_reduction", reduction=10),
            ],
        )
        assert [s.new_risk.parameters.systolic_bp for s in scenarios] == [150, 140]


class TestPhysicalActivity:
    """Test the post-hoc physical activity discount."""

    def test_discounts_current_risk(self, pce, high_risk_man):
        """Test a 25% relative reduction of the current risk, re-categorized."""
        baseline = pce.calculate_risk(high_risk_man)
        scenarios = pce.model_interventions(high_risk_man, [request("physical_activity")])

        new_risk = scenarios[0].new_risk
        assert scenarios[0].intervention == "Increased Physical Activity"
        assert new_risk.risk == pytest.approx(baseline.risk * 0.75, abs=0.05)
        assert new_risk.risk_category == categorize_10_year(new_risk.risk)
        assert f"is {new_risk.risk}%" in new_risk.interpretation
        assert f"is {baseline.risk}%" not in new_risk.interpretation

    def test_applies_to_working_copy(self, pce, high_risk_man):
        """Test the discount applies after earlier interventions."""
        after_cessation = pce.calculate_risk({**high_risk_man, "smoking": False})
        scenarios = pce.model_interventions(
            high_risk_man, [request("smoking_cessation"), request("physical_activity")]
        )
        assert scenarios[1].new_risk.risk == pytest.approx(after_cessation.risk * 0.75, abs=0.05)

    def test_working_copy_unchanged(self, pce, high_risk_man):
        """Test later interventions do not inherit the discount."""
        scenarios = pce.model_interventions(
            high_risk_man,
            [request("physical_activity"), request("blood_pressure_reduction", reduction=10)],
        )
        direct = pce.calculate_risk({**high_risk_man, "systolic_bp": 150})
        assert scenarios[1].new_risk.risk == direct.risk

    def test_skipped_when_calculation_fails(self, pce, high_risk_man):
        """Test no scenario when the current risk cannot be computed."""
        scenarios = pce.model_interventions({**high_risk_man, "age": 30}, [request("physical_activity")])
        assert scenarios == []

    def test_prevent_discounts_thirty_year(self, prevent, prevent_patient):
        """Test PREVENT discounts both timeframes."""
        baseline = prevent.calculate_risk(prevent_patient)
        scenarios = prevent.model_interventions(prevent_patient, [request("physical_activity")])
        new_risk = scenarios[0].new_risk
        assert new_risk.risk == pytest.approx(baseline.risk * 0.75, abs=0.05)
        assert new_risk.risk_30_year == pytest.approx(baseline.risk_30_year * 0.75, abs=0.05)


class TestWeightLoss:
    """Test weight loss."""

    def test_lowers_bp_and_weight(self, pce, high_risk_man):
        """Test 10% weight loss lowers SBP by 6 mmHg and weight by 10%."""
        scenarios = pce.model_interventions(
            {**high_risk_man, "weight": 200},
            [request("weight_loss", percent_weight_loss=10)],
        )
        params = scenarios[0].new_risk.parameters
        assert scenarios[0].intervention == "Weight Loss (10%)"
        assert params.systolic_bp == 154
        assert params.weight == 180

    def test_requires_positive_percent(self, pce, high_risk_man):
        """Test zero weight loss is skipped."""
        assert pce.model_interventions(high_risk_man, [request("weight_loss", percent_weight_loss=0)]) == []


# ============================================================================
# Model-Specific Intervention Tests
# ============================================================================


class TestStatinTherapy:
    """Test statin therapy on each model."""

    def test_pce_lowers_total_cholesterol(self, pce, high_risk_man):
        """Test PCE statin lowers total cholesterol by 50 and sets the flag."""
        scenarios = pce.model_interventions(high_risk_man, [request("statin_therapy")])
        params = scenarios[0].new_risk.parameters
        assert params.total_cholesterol == 190
        assert params.statin_use is True
        assert not any("Statin use" in w for w in scenarios[0].new_risk.warnings)

    def test_pce_total_cholesterol_floor(self, pce, low_risk_woman):
        """Test total cholesterol never drops below 130."""
        scenarios = pce.model_interventions(low_risk_woman, [request("statin_therapy")])
        assert scenarios[0].new_risk.parameters.total_cholesterol == 130

    def test_pce_uses_default_total(self, pce, high_risk_man):
        """Test missing total cholesterol is treated as 200."""
        params = {**high_risk_man, "total_cholesterol": None}
        scenarios = pce.model_interventions(params, [request("statin_therapy")])
        assert scenarios[0].new_risk.parameters.total_cholesterol == 150

    def test_skipped_when_already_on_statin(self, pce, prevent, prevent_patient):
        """Test both models skip statin therapy for current statin users."""
        on_statin = {**prevent_patient, "statin_use": True}
        assert pce.model_interventions(on_statin, [request("statin_therapy")]) == []
        assert prevent.model_interventions(on_statin, [request("statin_therapy")]) == []

    def test_prevent_lowers_derived_non_hdl(self, prevent, prevent_patient):
        """Test PREVENT statin lowers non-HDL (derived from total - HDL) by 40."""
        baseline = prevent.calculate_risk(prevent_patient)
        scenarios = prevent.model_interventions(prevent_patient, [request("statin_therapy")])
        params = scenarios[0].new_risk.parameters
        assert params.non_hdl_cholesterol == 165
        assert params.statin_use is True
        assert scenarios[0].new_risk.risk < baseline.risk

    def test_prevent_non_hdl_floor(self, prevent, prevent_reference_man):
        """Test non-HDL never drops below 100."""
        params = prevent_reference_man.model_copy(update={"non_hdl_cholesterol": 120})
        scenarios = prevent.model_interventions(params, [request("statin_therapy")])
        assert scenarios[0].new_risk.parameters.non_hdl_cholesterol == 100


class TestKidneyProtection:
    """Test kidney protection."""

    def test_pce_skips(self, pce, prevent_patient):
        """Test PCE has no kidney input and skips the request."""
        assert pce.model_interventions(prevent_patient, [request("kidney_protection", egfr_improvement=5)]) == []

    def test_prevent_raises_egfr(self, prevent, prevent_patient):
        """Test eGFR rises by the requested amount."""
        scenarios = prevent.model_interventions(
            prevent_patient, [request("kidney_protection", egfr_improvement=5)]
        )
        assert scenarios[0].intervention == "Kidney Protection Therapy"
        assert scenarios[0].new_risk.parameters.egfr == 80

    def test_prevent_egfr_ceiling(self, prevent, prevent_patient):
        """Test eGFR never exceeds 120."""
        scenarios = prevent.model_interventions(
            {**prevent_patient, "egfr": 118}, [request("kidney_protection", egfr_improvement=5)]
        )
        assert scenarios[0].new_risk.parameters.egfr == 120

    def test_prevent_derives_egfr(self, prevent, prevent_patient):
        """Test eGFR is derived from creatinine when not supplied."""
        from cardiorisk.services.clinical_utils import calculate_egfr

        params = {**prevent_patient, "egfr": None, "creatinine": 1.5}
        current = calculate_egfr(1.5, 65, "male")
        scenarios = prevent.model_interventions(params, [request("kidney_protection", egfr_improvement=5)])
        assert scenarios[0].new_risk.parameters.egfr == pytest.approx(current + 5, abs=0.05)

    def test_requires_positive_amount(self, prevent, prevent_patient):
        """Test missing improvement is skipped."""
        assert prevent.model_interventions(prevent_patient, [request("kidney_protection")]) == []


# ============================================================================
# Simulator Tests
# ============================================================================


class TestSimulator:
    """Test simulator ordering and input handling."""

    def test_scenarios_in_request_order(self, prevent, prevent_patient):
        """Test scenarios follow request order, skipping failed preconditions."""
        scenarios = prevent.model_interventions(
            {**prevent_patient, "weight": 200},
            [
                request("weight_loss", percent_weight_loss=5),
                request("smoking_cessation"),
                request("kidney_protection"),
                request("statin_therapy"),
                request("physical_activity"),
            ],
        )
        assert [s.intervention for s in scenarios] == [
            "Weight Loss (5%)",
            "Smoking Cessation",
            "Statin Therapy",
            "Increased Physical Activity",
        ]

    def test_mutations_accumulate(self, prevent, prevent_patient):
        """Test each scenario carries every earlier change."""
        scenarios = prevent.model_interventions(
            prevent_patient,
            [request("smoking_cessation"), request("blood_pressure_reduction", reduction=20)],
        )
        final = scenarios[-1].new_risk.parameters
        assert final.smoking is False
        assert final.systolic_bp == 140

    def test_combined_interventions_lower_risk(self, prevent, prevent_patient):
        """Test cumulative interventions keep lowering risk."""
        scenarios = prevent.model_interventions(
            prevent_patient,
            [
                request("smoking_cessation"),
                request("blood_pressure_reduction", reduction=20),
                request("statin_therapy"),
            ],
        )
        risks = [s.new_risk.risk for s in scenarios]
        assert risks == sorted(risks, reverse=True)
        assert scenarios[-1].new_risk.risk_category.level.ordinal <= RiskLevel.HIGH.ordinal

    def test_accepts_mapping_requests(self, pce, high_risk_man):
        """Test plain dict requests are parsed."""
        scenarios = pce.model_interventions(
            high_risk_man, [{"type": "blood_pressure_reduction", "reduction": 10}]
        )
        assert scenarios[0].new_risk.parameters.systolic_bp == 150

    def test_malformed_request_ignored(self, pce, high_risk_man):
        """Test unparseable requests are skipped."""
        scenarios = pce.model_interventions(
            high_risk_man, [{"type": "meditation"}, {"type": "smoking_cessation"}]
        )
        assert [s.intervention for s in scenarios] == ["Smoking Cessation"]

    def test_invalid_baseline(self, pce, caplog):
        """Test an unparseable baseline yields no scenarios."""
        with caplog.at_level(logging.WARNING):
            scenarios = pce.model_interventions({"age": "old"}, [request("physical_activity")])
        assert scenarios == []
        assert "invalid baseline" in caplog.text

    def test_simulator_directly(self, prevent, prevent_patient):
        """Test the simulator can be driven without the model facade."""
        simulator = InterventionSimulator(prevent)
        scenarios = simulator.simulate(prevent_patient, [request("smoking_cessation")])
        assert scenarios[0].new_risk.algorithm == "PREVENT"
