"""Validation framework for task list documents.

Provides the rule validators applied to each task, and the result types
they produce.
"""

from __future__ import annotations

from tasklint.validators.base import (
    BaseValidator,
    Severity,
    ValidationContext,
    ValidationError,
    ValidationResult,
)
from tasklint.validators.category_validator import CategoryValidator
from tasklint.validators.dependency_validator import DependencyValidator
from tasklint.validators.error_handling_validator import ErrorHandlingValidator
from tasklint.validators.id_validator import IdValidator
from tasklint.validators.kpi_validator import KpiValidator
from tasklint.validators.section_validator import SectionValidator
from tasklint.validators.status_validator import StatusValidator
from tasklint.validators.subtask_validator import SubtaskValidator

__all__ = [
    # Base types
    "BaseValidator",
    "Severity",
    "ValidationContext",
    "ValidationError",
    "ValidationResult",
    # Validators
    "CategoryValidator",
    "DependencyValidator",
    "ErrorHandlingValidator",
    "IdValidator",
    "KpiValidator",
    "SectionValidator",
    "StatusValidator",
    "SubtaskValidator",
]
