"""
Validation rules for intake submissions and doctor responses.

The checks are pure functions over untyped JSON mappings. They return an
ordered list of human-readable violations (empty when the data is valid) and
never raise for fields that are present but malformed.
"""
from numbers import Real
from typing import Any, List, Mapping

from ..exceptions import RequestValidationFailed

AGE_MIN_EXCLUSIVE = 0
AGE_MAX = 150
PAIN_MIN = 1
PAIN_MAX = 10


def is_blank(value: Any) -> bool:
    """Missing, null, non-string and whitespace-only values all count as blank."""
    if not isinstance(value, str):
        return True
    return len(value.strip()) == 0


def is_number(value: Any) -> bool:
    # bool is a subclass of int; JSON true/false is not an age
    return isinstance(value, Real) and not isinstance(value, bool)


def validate_intake(data: Mapping[str, Any]) -> List[str]:
    """
    Check a patient intake submission.

    Rules run in a fixed order: name, age, symptoms, duration, pain,
    gender, department.

    Args:
        data: Parsed request body

    Returns:
        List[str]: One message per violated rule
    """
    errors = []

    if is_blank(data.get("fullName")):
        errors.append("fullName is required")

    age = data.get("age")
    if not is_number(age) or not (AGE_MIN_EXCLUSIVE < age <= AGE_MAX):
        errors.append("age must be a valid number between 1 and 150")

    if is_blank(data.get("mainSymptoms")):
        errors.append("mainSymptoms is required")

    if is_blank(data.get("symptomDuration")):
        errors.append("symptomDuration is required")

    pain = data.get("painSeverity")
    if not is_number(pain) or not (PAIN_MIN <= pain <= PAIN_MAX):
        errors.append("painSeverity must be a number between 1 and 10")

    if is_blank(data.get("gender")):
        errors.append("gender is required")

    if is_blank(data.get("preferredDepartment")):
        errors.append("preferredDepartment is required")

    return errors


def validate_doctor_response(data: Mapping[str, Any]) -> List[str]:
    """
    Check a doctor response submission.

    Args:
        data: Parsed request body

    Returns:
        List[str]: One message per violated rule
    """
    errors = []

    if is_blank(data.get("patientId")):
        errors.append("patientId is required")

    if is_blank(data.get("prescription")):
        errors.append("prescription is required")

    sick_leave = data.get("sickLeave")
    if sick_leave is not None:
        if not is_number(sick_leave) or sick_leave < 0 or not float(sick_leave).is_integer():
            errors.append("sickLeave must be a non-negative integer")

    return errors


def ensure_valid(errors: List[str]) -> None:
    """Raise RequestValidationFailed when any rule was violated."""
    if errors:
        raise RequestValidationFailed(errors)
