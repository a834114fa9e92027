"""Intervention Simulator.

Applies an ordered list of hypothetical interventions to a working copy of
a patient's parameters and re-runs the risk model after each one. Each model
decides how a request maps onto its own inputs (``plan_intervention``);
this module only drives the loop.

Two kinds of plan exist:
- a parameter update, applied to the working copy before recalculating;
- a post-hoc relative risk reduction (physical activity), applied to the
  risk already computed for the working copy. No model has an activity
  input, so the working copy is left unchanged.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from cardiorisk.core.audit import log_simulation
from cardiorisk.schemas.intervention import (
    InterventionEffect,
    InterventionRequest,
    InterventionScenario,
)
from cardiorisk.schemas.patient import InvalidParametersError, PatientInput, coerce_parameters
from cardiorisk.services.references import CLINICAL_REFERENCES

if TYPE_CHECKING:
    from cardiorisk.services.algorithm import BaseRiskCalculator

logger = logging.getLogger(__name__)

# Systolic BP never drops below this after an intervention (mmHg)
SBP_FLOOR = 90

# SBP reduction per 5% body weight lost (mmHg)
SBP_REDUCTION_PER_5_PERCENT_WEIGHT = 3


# Evidence-based lifestyle intervention effects
INTERVENTION_EFFECTS: dict[str, InterventionEffect] = {
    "smoking_cessation": InterventionEffect(
        risk_reduction=0.35,
        time_frame="1-2 years",
        source="Critchley & Capewell 2003",
        reference=CLINICAL_REFERENCES["smoking-cessation"],
    ),
    "physical_activity": InterventionEffect(
        risk_reduction=0.25,
        time_frame="3-6 months",
        source="Li et al. 2012 Meta-analysis",
    ),
    "blood_pressure_reduction": InterventionEffect(
        risk_reduction_per_10mmhg=0.22,
        time_frame="3-6 months",
        source="Ettehad et al. 2016",
        max_reduction=20,
    ),
    "statin_therapy": InterventionEffect(
        risk_reduction=0.25,
        cholesterol_reduction=50,
        time_frame="6-12 months",
        source="CTT Collaboration 2010",
        reference=CLINICAL_REFERENCES["statin-therapy"],
    ),
    "weight_loss": InterventionEffect(
        systolic_bp_reduction=SBP_REDUCTION_PER_5_PERCENT_WEIGHT,
        risk_reduction_per_5_percent=0.10,
        time_frame="6-12 months",
        source="Wing et al. 2011",
    ),
    "kidney_protection": InterventionEffect(
        risk_reduction=0.15,
        egfr_improvement=5,
        kidney_protection=True,
        time_frame="6-12 months",
        source="ACE inhibitor/ARB therapy",
    ),
}


@dataclass
class InterventionPlan:
    """How a model applies one intervention request.

    Exactly one of ``updates`` (parameter changes for the working copy) or
    ``risk_reduction`` (post-hoc relative discount) is used.
    """

    label: str
    effect: InterventionEffect
    updates: dict[str, Any] = field(default_factory=dict)
    risk_reduction: float | None = None

    @property
    def is_post_hoc(self) -> bool:
        return self.risk_reduction is not None


def reduce_systolic_bp(current: float, reduction: float) -> float:
    """Lower systolic BP by ``reduction`` without going below the floor."""
    return round(max(SBP_FLOOR, current - reduction), 1)


def weight_loss_updates(
    current_sbp: float,
    weight: float | None,
    percent: float,
) -> dict[str, Any]:
    """Parameter updates for losing ``percent`` of body weight."""
    sbp_drop = SBP_REDUCTION_PER_5_PERCENT_WEIGHT * percent / 5
    updates: dict[str, Any] = {"systolic_bp": reduce_systolic_bp(current_sbp, sbp_drop)}
    if weight:
        updates["weight"] = round(weight * (1 - percent / 100), 1)
    return updates


def parse_request(request: InterventionRequest | Mapping[str, Any]) -> InterventionRequest | None:
    if isinstance(request, InterventionRequest):
        return request
    try:
        return InterventionRequest.model_validate(request)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed intervention request: {e.error_count()} error(s)")
        return None


class InterventionSimulator:
    """Runs ordered what-if scenarios against one risk model.

    Usage:
        simulator = InterventionSimulator(PREVENTRiskCalculator())
        scenarios = simulator.simulate(
            baseline,
            [InterventionRequest(type="smoking_cessation"),
             InterventionRequest(type="blood_pressure_reduction", reduction=10)],
        )
    """

    def __init__(self, algorithm: "BaseRiskCalculator") -> None:
        self._algorithm = algorithm

    def simulate(
        self,
        baseline: PatientInput,
        interventions: Sequence[InterventionRequest | Mapping[str, Any]],
    ) -> list[InterventionScenario]:
        """Apply interventions cumulatively and recompute risk after each.

        Args:
            baseline: The patient's current parameters.
            interventions: Requests in the order they should be applied.

        Returns:
            One scenario per applied intervention, in request order. Requests
            whose precondition fails produce no scenario.
        """
        try:
            working = coerce_parameters(baseline)
        except InvalidParametersError as e:
            logger.warning(f"Cannot simulate interventions for invalid baseline: {e}")
            return []

        scenarios: list[InterventionScenario] = []

        for raw_request in interventions:
            request = parse_request(raw_request)
            if request is None:
                continue

            plan = self._algorithm.plan_intervention(request, working)
            if plan is None:
                logger.debug(f"Skipping {request.type.value}: precondition not met")
                continue

            if plan.is_post_hoc:
                current = self._algorithm.calculate_risk(working)
                if not current.success:
                    logger.debug(f"Skipping {request.type.value}: current risk unavailable")
                    continue
                new_risk = self._algorithm.apply_risk_reduction(current, plan.risk_reduction)
            else:
                working = working.model_copy(update=plan.updates)
                new_risk = self._algorithm.calculate_risk(working)

            scenarios.append(
                InterventionScenario(
                    intervention=plan.label,
                    effect=plan.effect,
                    new_risk=new_risk,
                )
            )

        log_simulation(self._algorithm.name, requested=len(interventions), applied=len(scenarios))
        return scenarios
