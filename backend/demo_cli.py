#!/usr/bin/env python3
"""
Cardiovascular Risk Engine - Demo CLI

Run a patient through the PCE or PREVENT model and see the risk, categories,
warnings, model comparison, recommendations and intervention scenarios.

Usage:
    python demo_cli.py --sample                          # Use sample patient
    python demo_cli.py --file patient.json               # Load parameters from JSON
    python demo_cli.py --sample --algorithm PCE --compare
    python demo_cli.py --sample --interventions smoking_cessation,blood_pressure_reduction=10
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from cardiorisk.core.config import settings
from cardiorisk.schemas import (
    InterventionRequest,
    InterventionScenario,
    InterventionType,
    RiskResult,
)
from cardiorisk.services import (
    AlgorithmNotRegisteredError,
    RiskCalculatorFactory,
    create_risk_calculator_factory,
)

# ============================================================================
# Sample Patient
# ============================================================================

SAMPLE_PATIENT: dict[str, Any] = {
    "age": 62,
    "gender": "male",
    "race": "white",
    "systolic_bp": 148,
    "diastolic_bp": 88,
    "bp_medication": True,
    "total_cholesterol": 235,
    "hdl_cholesterol": 38,
    "diabetes": True,
    "smoking": True,
    "statin_use": False,
    "creatinine": 1.2,
    "hba1c": 7.4,
    "weight": 210,
    "height": 70,
}

# Amount used when an intervention is given without "=value"
DEFAULT_INTERVENTION_AMOUNTS = {
    InterventionType.BLOOD_PRESSURE_REDUCTION: ("reduction", 10),
    InterventionType.WEIGHT_LOSS: ("percent_weight_loss", 5),
    InterventionType.KIDNEY_PROTECTION: ("egfr_improvement", 5),
}

# ============================================================================
# Display Functions
# ============================================================================

class Colors:
    """ANSI color codes for terminal output."""
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    END = '\033[0m'
    GRAY = '\033[90m'

LEVEL_COLORS = {
    "low": Colors.GREEN,
    "borderline": Colors.YELLOW,
    "intermediate": Colors.YELLOW,
    "high": Colors.RED,
}

def print_header(text: str, char: str = "="):
    """Print a formatted header."""
    width = 80
    print()
    print(f"{Colors.BOLD}{Colors.CYAN}{char * width}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{text.center(width)}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{char * width}{Colors.END}")

def print_subheader(text: str):
    """Print a formatted subheader."""
    print()
    print(f"{Colors.BOLD}{Colors.YELLOW}{'─' * 80}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.YELLOW}  {text}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.YELLOW}{'─' * 80}{Colors.END}")

def print_item(label: str, value: str, indent: int = 2):
    """Print a labeled item."""
    spaces = " " * indent
    print(f"{spaces}{Colors.GRAY}{label}:{Colors.END} {value}")

def print_warning(text: str):
    """Print warning message."""
    print(f"  {Colors.YELLOW}!{Colors.END} {text}")

def print_error(text: str):
    """Print error message."""
    print(f"  {Colors.RED}✗{Colors.END} {text}")

def format_risk(risk: float, level: str) -> str:
    color = LEVEL_COLORS.get(level, "")
    return f"{color}{risk}% ({level}){Colors.END}"

# ============================================================================
# Input Parsing
# ============================================================================

def parse_interventions(text: str) -> list[InterventionRequest]:
    """Parse "smoking_cessation,blood_pressure_reduction=10" into requests."""
    requests = []
    for item in filter(None, (part.strip() for part in text.split(","))):
        name, _, amount = item.partition("=")
        intervention_type = InterventionType(name.strip())
        fields: dict[str, Any] = {"type": intervention_type}
        if intervention_type in DEFAULT_INTERVENTION_AMOUNTS:
            field_name, default = DEFAULT_INTERVENTION_AMOUNTS[intervention_type]
            fields[field_name] = float(amount) if amount else default
        requests.append(InterventionRequest(**fields))
    return requests

def load_patient(path: Path) -> dict[str, Any]:
    """Load patient parameters from a JSON object file."""
    data = json.loads(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Patient file must contain a JSON object")
    return data

# ============================================================================
# Output
# ============================================================================

def display_result(factory: RiskCalculatorFactory, result: RiskResult):
    """Display a risk result in formatted output."""
    print_subheader(f"{result.algorithm} RESULT")

    if not result.success:
        for error in result.errors:
            print_error(error)
        return

    print_item("10-year risk", format_risk(result.risk, result.risk_category.level.value))
    if result.risk_30_year is not None and result.risk_category_30_year:
        print_item(
            "30-year risk",
            format_risk(result.risk_30_year, result.risk_category_30_year.level.value),
        )
    print_item("Confidence", result.confidence.value)
    if result.gender_note:
        print_item("Note", result.gender_note)
    print()
    print(f"  {result.interpretation}")

    if result.defaults_used:
        print_item("Defaults used", ", ".join(result.defaults_used))
    if result.derived_fields:
        print_item("Derived", ", ".join(result.derived_fields))

    if result.warnings:
        print_subheader("WARNINGS")
        for warning in result.warnings:
            print_warning(warning)

    if result.comparison:
        comparison = result.comparison
        print_subheader("PCE vs PREVENT")
        print_item("PCE", f"{comparison.pce_risk}%")
        print_item("PREVENT", f"{comparison.prevent_risk}%")
        print_item("Difference", f"{comparison.risk_difference} points")
        print_item("Reclassification", comparison.reclassification.value)
        print(f"  {comparison.clinical_significance}")

    recommendations = factory.get_recommendations(result)
    if recommendations:
        print_subheader("RECOMMENDATIONS")
        for rec in recommendations:
            print(f"  {Colors.GREEN}●{Colors.END} [{rec.priority.value}] {rec.recommendation}")
            print(f"    {Colors.GRAY}{rec.evidence}{Colors.END}")

    if factory.get_config().show_citations:
        print_subheader("REFERENCES")
        for ref in factory.get_citations():
            print(f"  {ref.authors} {ref.title}. {ref.journal}. {ref.year}.")

def display_scenarios(scenarios: list[InterventionScenario]):
    """Display intervention scenarios in request order."""
    print_subheader("INTERVENTION SCENARIOS")
    if not scenarios:
        print("  No applicable interventions.")
        return
    for scenario in scenarios:
        risk = scenario.new_risk
        line = f"  {scenario.intervention:40s} → "
        if risk.success:
            line += format_risk(risk.risk, risk.risk_category.level.value)
            if risk.risk_30_year is not None:
                line += f"  (30-year {risk.risk_30_year}%)"
        else:
            line += f"{Colors.RED}failed{Colors.END}"
        print(line)
        print(f"    {Colors.GRAY}{scenario.effect.source}, {scenario.effect.time_frame}{Colors.END}")

# ============================================================================
# Main Entry Point
# ============================================================================

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Cardiovascular Risk Engine - Demo CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python demo_cli.py --sample                       # Sample patient, default model
  python demo_cli.py --file patient.json --json     # JSON output
  python demo_cli.py --sample --algorithm PCE       # Use the Pooled Cohort Equations
  python demo_cli.py --sample --interventions smoking_cessation,weight_loss=10
"""
    )
    parser.add_argument('--file', '-f', help='Path to patient parameters JSON file')
    parser.add_argument('--sample', '-s', action='store_true', help='Use sample patient')
    parser.add_argument('--algorithm', '-a', help='Risk model to use (PCE or PREVENT)')
    parser.add_argument('--compare', '-c', action='store_true', help='Compare PCE and PREVENT')
    parser.add_argument('--interventions', '-i', help='Comma-separated interventions to simulate')
    parser.add_argument('--json', action='store_true', help='Print results as JSON')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.file:
        path = Path(args.file)
        if not path.exists():
            print(f"Error: File not found: {args.file}")
            return 1
        try:
            patient = load_patient(path)
        except ValueError as e:
            print(f"Error: Cannot read {path.name}: {e}")
            return 1
    elif args.sample:
        patient = SAMPLE_PATIENT
    else:
        parser.print_help()
        return 1

    config = settings.algorithm_config()
    if args.compare:
        config = config.model_copy(update={"enable_comparison": True})

    factory = create_risk_calculator_factory(config)
    if args.algorithm:
        try:
            factory.switch_algorithm(args.algorithm.upper())
        except AlgorithmNotRegisteredError as e:
            print(f"Error: {e}. Available: {', '.join(factory.available_algorithms())}")
            return 1

    try:
        interventions = parse_interventions(args.interventions) if args.interventions else []
    except ValueError as e:
        print(f"Error: Invalid intervention list: {e}")
        return 1

    result = factory.calculate_risk(patient)
    scenarios = []
    if interventions and config.enable_interventions:
        scenarios = factory.model_interventions(patient, interventions)

    if args.json:
        output = {
            "result": result.model_dump(mode="json"),
            "recommendations": [
                rec.model_dump(mode="json") for rec in factory.get_recommendations(result)
            ],
            "scenarios": [scenario.model_dump(mode="json") for scenario in scenarios],
        }
        print(json.dumps(output, indent=2))
    else:
        print_header(f"CARDIOVASCULAR RISK - {factory.get_algorithm_info().name}")
        display_result(factory, result)
        if interventions:
            display_scenarios(scenarios)

    return 0 if result.success else 2

if __name__ == "__main__":
    sys.exit(main())
