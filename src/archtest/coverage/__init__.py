"""Coverage domain: scoring criteria and the coverage calculator."""

from archtest.coverage.calculator import (
    CoverageCalculator,
    FileCoverage,
    TypeScore,
    coverage_level,
)
from archtest.coverage.criteria import (
    ClassNameCriterion,
    Criterion,
    FinalClassCriterion,
    InheritanceCriterion,
    default_criteria,
)

__all__ = [
    "ClassNameCriterion",
    "CoverageCalculator",
    "Criterion",
    "FileCoverage",
    "FinalClassCriterion",
    "InheritanceCriterion",
    "TypeScore",
    "coverage_level",
    "default_criteria",
]
