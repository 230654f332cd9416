"""
Wizard step definitions for companies, schools and branches.

Each step lists the fields it shows and an optional validator. Validators
receive the whole accumulated record because some rules span steps (active
teachers are entered on one step, total teachers on another).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from shared.config.constants import Limits
from shared.utils.validators import (
    is_blank,
    is_valid_email,
    is_valid_phone,
    is_valid_url,
    parse_int,
)

Validator = Callable[[dict[str, Any]], dict[str, str]]


@dataclass(frozen=True)
class WizardStep:
    step_id: str
    title: str
    fields: tuple[str, ...]
    validate: Validator | None = None

    def run(self, record: dict[str, Any]) -> dict[str, str]:
        if self.validate is None:
            return {}
        return self.validate(record)


# =============================================================================
# Field rules
# =============================================================================


def _check_basic(label: str) -> Validator:
    def validate(record: dict[str, Any]) -> dict[str, str]:
        errors = {}
        if is_blank(record.get("name")):
            errors["name"] = f"{label} name is required"
        code = record.get("code")
        if is_blank(code):
            errors["code"] = f"{label} code is required"
        elif len(str(code).strip()) < Limits.MIN_CODE_LENGTH:
            errors["code"] = f"Code must be at least {Limits.MIN_CODE_LENGTH} characters"
        if is_blank(record.get("status")):
            errors["status"] = "Status is required"
        return errors

    return validate


def _check_emails(record: dict[str, Any], fields: tuple[str, ...], errors: dict[str, str]) -> None:
    for name in fields:
        value = record.get(name)
        if not is_blank(value) and not is_valid_email(str(value)):
            errors[name] = "Invalid email address"


def _check_phones(record: dict[str, Any], fields: tuple[str, ...], errors: dict[str, str]) -> None:
    for name in fields:
        value = record.get(name)
        if not is_blank(value) and not is_valid_phone(str(value)):
            errors[name] = "Invalid phone number"


def _check_months(record: dict[str, Any], fields: tuple[str, ...], errors: dict[str, str]) -> None:
    for name in fields:
        value = record.get(name)
        if is_blank(value):
            continue
        month = parse_int(value)
        if month is None or not 1 <= month <= 12:
            errors[name] = "Month must be between 1 and 12"


def _check_not_above(
    record: dict[str, Any], field: str, limit_field: str, message: str, errors: dict[str, str]
) -> None:
    value = parse_int(record.get(field))
    limit = parse_int(record.get(limit_field))
    if value is not None and limit is not None and value > limit:
        errors[field] = message


# =============================================================================
# Company
# =============================================================================


def _company_location(record: dict[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_months(record, ("fiscal_year_start",), errors)
    return errors


def _company_contact(record: dict[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_emails(record, ("main_email", "ceo_email"), errors)
    _check_phones(record, ("main_phone", "ceo_phone"), errors)
    website = record.get("website")
    if not is_blank(website) and not is_valid_url(str(website)):
        errors["website"] = "URL must start with http:// or https://"
    return errors


COMPANY_STEPS: tuple[WizardStep, ...] = (
    WizardStep(
        "basic",
        "Basic Information",
        ("name", "code", "status", "description", "organization_type"),
        _check_basic("Company"),
    ),
    WizardStep(
        "location",
        "Location & Registration",
        (
            "region",
            "country",
            "head_office_address",
            "head_office_city",
            "head_office_country",
            "registration_number",
            "tax_id",
            "fiscal_year_start",
        ),
        _company_location,
    ),
    WizardStep(
        "contact",
        "Contact Information",
        ("main_phone", "main_email", "website", "ceo_name", "ceo_email", "ceo_phone"),
        _company_contact,
    ),
    WizardStep("additional", "Additional Details", ("address", "notes", "logo", "logo_url")),
)


# =============================================================================
# School
# =============================================================================


def _school_leadership(record: dict[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_emails(record, ("principal_email",), errors)
    _check_phones(record, ("principal_phone",), errors)
    _check_not_above(
        record, "active_teachers_count", "teachers_count", "Cannot exceed total teachers", errors
    )
    return errors


def _school_capacity(record: dict[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_not_above(
        record, "student_count", "total_capacity", "Cannot exceed total capacity", errors
    )
    _check_months(record, ("academic_year_start", "academic_year_end"), errors)
    return errors


SCHOOL_STEPS: tuple[WizardStep, ...] = (
    WizardStep(
        "basic",
        "Basic Information",
        ("name", "code", "status", "description", "school_type", "curriculum_type"),
        _check_basic("School"),
    ),
    WizardStep(
        "leadership",
        "Leadership & Staff",
        (
            "principal_name",
            "principal_email",
            "principal_phone",
            "teachers_count",
            "active_teachers_count",
        ),
        _school_leadership,
    ),
    WizardStep(
        "location",
        "Campus Location",
        (
            "campus_address",
            "campus_city",
            "campus_state",
            "campus_postal_code",
            "latitude",
            "longitude",
            "address",
        ),
    ),
    WizardStep(
        "capacity",
        "Capacity & Schedule",
        (
            "total_capacity",
            "student_count",
            "established_date",
            "academic_year_start",
            "academic_year_end",
        ),
        _school_capacity,
    ),
    WizardStep(
        "facilities",
        "Facilities",
        ("has_library", "has_laboratory", "has_sports_facilities", "has_cafeteria", "notes", "logo"),
    ),
)


# =============================================================================
# Branch
# =============================================================================


def _branch_leadership(record: dict[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_emails(record, ("branch_head_email",), errors)
    _check_phones(record, ("branch_head_phone",), errors)
    return errors


def _branch_capacity(record: dict[str, Any]) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_not_above(
        record, "current_students", "student_capacity", "Cannot exceed student capacity", errors
    )
    return errors


BRANCH_STEPS: tuple[WizardStep, ...] = (
    WizardStep(
        "basic",
        "Basic Information",
        ("name", "code", "status", "description", "building_name", "floor_details"),
        _check_basic("Branch"),
    ),
    WizardStep(
        "leadership",
        "Branch Management",
        ("branch_head_name", "branch_head_email", "branch_head_phone", "teachers_count"),
        _branch_leadership,
    ),
    WizardStep(
        "capacity",
        "Capacity",
        ("student_capacity", "current_students", "student_count", "active_teachers_count"),
        _branch_capacity,
    ),
    WizardStep(
        "schedule",
        "Operating Schedule",
        ("opening_time", "closing_time", "working_days", "address", "notes"),
    ),
)


WIZARD_STEPS: dict[str, tuple[WizardStep, ...]] = {
    "company": COMPANY_STEPS,
    "school": SCHOOL_STEPS,
    "branch": BRANCH_STEPS,
}

# Fields written to the core table; everything else goes to *_additional
CORE_FIELDS: dict[str, tuple[str, ...]] = {
    "company": ("name", "code", "description", "status", "region", "country", "address", "notes", "logo"),
    "school": ("name", "code", "description", "status", "company_id", "address", "notes", "logo"),
    "branch": ("name", "code", "description", "status", "school_id", "address", "notes"),
}
