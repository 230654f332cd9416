"""
Multi-step wizard for companies, schools and branches.
"""

from .steps import (
    WizardStep,
    COMPANY_STEPS,
    SCHOOL_STEPS,
    BRANCH_STEPS,
    WIZARD_STEPS,
    CORE_FIELDS,
)
from .controller import WizardController, WizardState, SubmitResult

__all__ = [
    "WizardStep",
    "COMPANY_STEPS",
    "SCHOOL_STEPS",
    "BRANCH_STEPS",
    "WIZARD_STEPS",
    "CORE_FIELDS",
    "WizardController",
    "WizardState",
    "SubmitResult",
]
