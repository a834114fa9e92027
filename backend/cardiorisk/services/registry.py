"""Algorithm Registry and Risk Calculator Factory.

The registry maps model names to calculators and tracks which one is active.
The factory wraps a registry with configuration, optional PCE/PREVENT
comparison and pure delegation of every other operation to the active model.

Each factory owns its registry, so callers that need an isolated active
pointer (one per session) create their own factory with
``create_risk_calculator_factory``.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from threading import Lock
from typing import Any

from cardiorisk.core.audit import AuditAction, log_algorithm_switch, log_audit, log_calculation
from cardiorisk.core.config import settings
from cardiorisk.schemas.base import Reclassification, RiskLevel
from cardiorisk.schemas.intervention import InterventionRequest, InterventionScenario
from cardiorisk.schemas.patient import (
    InvalidParametersError,
    PatientInput,
    PatientParameters,
    coerce_parameters,
)
from cardiorisk.schemas.risk import (
    AlgorithmConfig,
    AlgorithmInfo,
    ClinicalRecommendation,
    ClinicalReference,
    Disclaimer,
    RiskCategory,
    RiskComparison,
    RiskResult,
    ValidationResult,
)
from cardiorisk.services.algorithm import RISK_COLORS, RiskCalculatorAlgorithm
from cardiorisk.services.pce import PCERiskCalculator
from cardiorisk.services.prevent import PREVENTRiskCalculator

logger = logging.getLogger(__name__)

DEFAULT_ACTIVE_ALGORITHM = "PCE"

# Absolute risk differences (percentage points) worth calling out
SIGNIFICANT_DIFFERENCE = 5
MODERATE_DIFFERENCE = 2


class AlgorithmNotRegisteredError(ValueError):
    """Raised when an algorithm name has no registered calculator."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or f"Algorithm '{name}' not registered")


def _failed_comparison_result(name: str, params: PatientInput, error: Exception) -> RiskResult:
    """Placeholder result for a model that raised during comparison."""
    try:
        parameters = coerce_parameters(params)
    except InvalidParametersError:
        parameters = PatientParameters()

    message = f"{name} calculation failed: {error}"
    return RiskResult(
        success=False,
        risk=0,
        risk_category=RiskCategory(level=RiskLevel.LOW, color=RISK_COLORS[RiskLevel.LOW], message="Error"),
        algorithm=name,
        parameters=parameters,
        disclaimer=Disclaimer(
            primary="Calculation failed",
            usage="Error occurred during calculation",
        ),
        error=message,
        errors=[message],
    )


class AlgorithmRegistry:
    """Named risk calculators with a lock-guarded active pointer."""

    def __init__(self, active: str = DEFAULT_ACTIVE_ALGORITHM) -> None:
        self._algorithms: dict[str, RiskCalculatorAlgorithm] = {}
        self._active = active
        self._lock = Lock()

    def register(self, algorithm: RiskCalculatorAlgorithm) -> None:
        """Register a calculator under its name, replacing any earlier one."""
        with self._lock:
            self._algorithms[algorithm.name] = algorithm
        logger.debug(f"Registered algorithm {algorithm.name} v{algorithm.version}")

    def get_algorithm(self, name: str) -> RiskCalculatorAlgorithm | None:
        return self._algorithms.get(name)

    def get_active_algorithm(self) -> RiskCalculatorAlgorithm:
        """Get the active calculator.

        Raises:
            AlgorithmNotRegisteredError: If the active name has no calculator.
        """
        with self._lock:
            name = self._active
            algorithm = self._algorithms.get(name)
        if algorithm is None:
            raise AlgorithmNotRegisteredError(name, f"Active algorithm '{name}' not found")
        return algorithm

    def set_active_algorithm(self, name: str) -> None:
        """Make a registered calculator active.

        Raises:
            AlgorithmNotRegisteredError: If ``name`` is not registered.
        """
        with self._lock:
            if name not in self._algorithms:
                raise AlgorithmNotRegisteredError(name)
            self._active = name

    @property
    def active_algorithm_name(self) -> str:
        with self._lock:
            return self._active

    def get_available_algorithms(self) -> list[str]:
        """List registered names in registration order."""
        with self._lock:
            return list(self._algorithms)

    def compare_algorithms(
        self,
        params: PatientInput,
        names: Iterable[str],
    ) -> dict[str, RiskResult]:
        """Run several calculators on the same parameters.

        A calculator that raises produces a failed placeholder result for
        that name only. Unknown names are skipped.

        Returns:
            Results keyed by algorithm name.
        """
        results: dict[str, RiskResult] = {}

        for name in names:
            algorithm = self.get_algorithm(name)
            if algorithm is None:
                logger.debug(f"Skipping unknown algorithm in comparison: {name}")
                continue
            try:
                results[name] = algorithm.calculate_risk(params)
            except Exception as e:
                logger.warning(f"{name} failed during comparison: {e}")
                results[name] = _failed_comparison_result(name, params, e)

        return results


def assess_clinical_significance(risk_difference: float, reclassification: Reclassification) -> str:
    """Describe how much two model estimates disagree."""
    if reclassification != Reclassification.NONE:
        return f"Risk category changed ({reclassification.value}ward). Consider clinical review."
    if risk_difference > SIGNIFICANT_DIFFERENCE:
        return (
            "Significant risk difference detected. Review parameters and consider "
            "clinical correlation."
        )
    if risk_difference > MODERATE_DIFFERENCE:
        return "Moderate risk difference. Results are generally consistent."
    return "Minimal risk difference. Results are highly consistent."


def build_comparison(pce: RiskResult, prevent: RiskResult) -> RiskComparison:
    """Compare 10-year PCE and PREVENT results.

    Reclassification is "up" when PREVENT places the patient in a higher
    category than PCE, "down" when lower.
    """
    risk_difference = round(abs(prevent.risk - pce.risk), 1)

    pce_rank = pce.risk_category.level.ordinal
    prevent_rank = prevent.risk_category.level.ordinal
    if prevent_rank > pce_rank:
        reclassification = Reclassification.UP
    elif prevent_rank < pce_rank:
        reclassification = Reclassification.DOWN
    else:
        reclassification = Reclassification.NONE

    return RiskComparison(
        pce_risk=pce.risk,
        prevent_risk=prevent.risk,
        risk_difference=risk_difference,
        reclassification=reclassification,
        clinical_significance=assess_clinical_significance(risk_difference, reclassification),
    )


class RiskCalculatorFactory:
    """Unified entry point for risk calculation with algorithm switching.

    Usage:
        factory = RiskCalculatorFactory()
        factory.register_algorithm(PCERiskCalculator())
        factory.register_algorithm(PREVENTRiskCalculator())
        factory.switch_algorithm("PREVENT")
        result = factory.calculate_risk(params)
    """

    def __init__(
        self,
        config: AlgorithmConfig | None = None,
        registry: AlgorithmRegistry | None = None,
    ) -> None:
        config = config or AlgorithmConfig()
        if registry is None:
            registry = AlgorithmRegistry(active=config.algorithm)
        # The configured algorithm always mirrors the registry's active pointer
        self._config = config.model_copy(update={"algorithm": registry.active_algorithm_name})
        self._registry = registry
        self._config_lock = Lock()

    @property
    def registry(self) -> AlgorithmRegistry:
        return self._registry

    def register_algorithm(self, algorithm: RiskCalculatorAlgorithm) -> None:
        self._registry.register(algorithm)

    def available_algorithms(self) -> list[str]:
        return self._registry.get_available_algorithms()

    def calculate_risk(self, params: PatientInput) -> RiskResult:
        """Calculate risk with the active algorithm.

        When comparison is enabled and more than one algorithm is registered,
        every registered algorithm is run and, if both PCE and PREVENT
        succeed, a comparison summary is attached to the result.
        """
        algorithm = self._registry.get_active_algorithm()
        result = algorithm.calculate_risk(params)

        compared = False
        available = self._registry.get_available_algorithms()
        if self.get_config().enable_comparison and len(available) > 1:
            results = self._registry.compare_algorithms(params, available)
            pce = results.get(PCERiskCalculator.name)
            prevent = results.get(PREVENTRiskCalculator.name)
            if pce and prevent and pce.success and prevent.success:
                comparison = build_comparison(pce, prevent)
                result = result.model_copy(update={"comparison": comparison})
                compared = True
                logger.debug(f"Comparison: {comparison.reclassification.value}, diff={comparison.risk_difference}")

        log_calculation(
            algorithm.name,
            success=result.success,
            defaults_count=len(result.defaults_used),
            warnings_count=len(result.warnings),
            compared=compared,
        )
        return result

    def compare_algorithms(
        self,
        params: PatientInput,
        names: Sequence[str] | None = None,
    ) -> dict[str, RiskResult]:
        """Run the named algorithms (default: all registered) side by side."""
        names = list(names) if names is not None else self._registry.get_available_algorithms()
        results = self._registry.compare_algorithms(params, names)
        log_audit(
            AuditAction.COMPARE,
            self._registry.active_algorithm_name,
            details={
                "algorithms": list(results),
                "succeeded": sum(1 for r in results.values() if r.success),
            },
        )
        return results

    def model_interventions(
        self,
        baseline: PatientInput,
        interventions: Sequence[InterventionRequest | Mapping[str, Any]],
    ) -> list[InterventionScenario]:
        return self._registry.get_active_algorithm().model_interventions(baseline, interventions)

    def validate_inputs(self, params: PatientInput) -> ValidationResult:
        return self._registry.get_active_algorithm().validate_inputs(params)

    def get_recommendations(self, result: RiskResult) -> list[ClinicalRecommendation]:
        return self._registry.get_active_algorithm().get_recommendations(result)

    def get_citations(self) -> list[ClinicalReference]:
        return self._registry.get_active_algorithm().get_citations()

    def switch_algorithm(self, name: str) -> None:
        """Make ``name`` the active algorithm.

        Raises:
            AlgorithmNotRegisteredError: If ``name`` is not registered.
        """
        previous = self._registry.active_algorithm_name
        self._registry.set_active_algorithm(name)
        with self._config_lock:
            self._config = self._config.model_copy(update={"algorithm": name})
        if previous != name:
            logger.info(f"Switched risk algorithm: {previous} -> {name}")
            log_algorithm_switch(previous, name)

    def get_config(self) -> AlgorithmConfig:
        """Get the current configuration (an immutable snapshot)."""
        with self._config_lock:
            return self._config

    def update_config(self, **updates: Any) -> AlgorithmConfig:
        """Merge updates into the configuration.

        Raises:
            ValidationError: If an update has the wrong type or names an unknown field.
            AlgorithmNotRegisteredError: If ``algorithm`` names an unregistered model.
        """
        with self._config_lock:
            merged = AlgorithmConfig.model_validate({**self._config.model_dump(), **updates})

        if "algorithm" in updates:
            self.switch_algorithm(merged.algorithm)

        with self._config_lock:
            self._config = merged.model_copy(
                update={"algorithm": self._registry.active_algorithm_name}
            )
            return self._config

    def get_algorithm_info(self) -> AlgorithmInfo:
        return self._registry.get_active_algorithm().get_info()


def create_risk_calculator_factory(config: AlgorithmConfig | None = None) -> RiskCalculatorFactory:
    """Create a factory with PCE and PREVENT registered.

    Args:
        config: Factory configuration. Defaults to the application settings.

    Returns:
        A factory whose active algorithm is ``config.algorithm``.
    """
    config = config or settings.algorithm_config()
    factory = RiskCalculatorFactory(config=config)
    factory.register_algorithm(PCERiskCalculator())
    factory.register_algorithm(PREVENTRiskCalculator())
    factory.switch_algorithm(config.algorithm)
    logger.info(
        f"Risk calculator factory ready: active={config.algorithm}, "
        f"comparison={config.enable_comparison}"
    )
    return factory
