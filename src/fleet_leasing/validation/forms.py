from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Union

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\(\d{3}\) \d{3}-\d{4}$")

# Leading-prefix number parsing, the way browser form inputs are read.
_FLOAT_PREFIX_RE = re.compile(r"^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")
_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")

MIN_NAME_LENGTH = 2
MIN_MONTHLY_PAYMENT = 100.0
MIN_MILEAGE_LIMIT = 5000
MIN_TERMS_LENGTH = 50

FormErrors = dict[str, Union[str, dict[str, str]]]


def format_phone_number(value: str) -> str:
    """
    Normalise raw phone input into the partial or full "(555) 123-4567" shape.

    Applied on every edit, so the stored value is always formatted as far as
    the typed digits allow. Digits past the tenth are dropped.
    """
    digits = re.sub(r"\D", "", value or "")
    if len(digits) <= 3:
        return digits
    if len(digits) <= 6:
        return f"({digits[:3]}) {digits[3:]}"
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:10]}"


def parse_float(raw: str | None) -> float:
    m = _FLOAT_PREFIX_RE.match(raw or "")
    return float(m.group(1)) if m else math.nan


def parse_int(raw: str | None) -> float:
    m = _INT_PREFIX_RE.match(raw or "")
    return float(int(m.group(1))) if m else math.nan


@dataclass
class NewLesseeFields:
    name: str = ""
    email: str = ""
    phone: str = ""

    def set_phone(self, raw: str) -> None:
        self.phone = format_phone_number(raw)


@dataclass
class LesseeForm:
    name: str = ""
    vehicle_id: str = ""
    email: str = ""
    phone: str = ""

    def set_phone(self, raw: str) -> None:
        self.phone = format_phone_number(raw)


@dataclass
class LeaseForm:
    vehicle_id: str = ""
    lessee_type: str = "existing"  # "existing" | "new"
    lessee_id: str = ""
    new_lessee: NewLesseeFields = field(default_factory=NewLesseeFields)
    start_date: date | None = None
    end_date: date | None = None
    monthly_payment: str = ""
    security_deposit: str = ""
    mileage_limit: str = ""
    terms: str = ""


def validate_name(name: str, *, required_message: str = "Name is required") -> str | None:
    if not name.strip():
        return required_message
    if len(name.strip()) < MIN_NAME_LENGTH:
        return "Name must be at least 2 characters"
    return None


def validate_email(email: str) -> str | None:
    if not email.strip():
        return "Email is required"
    if not EMAIL_RE.match(email):
        return "Please enter a valid email address"
    return None


def validate_phone(phone: str) -> str | None:
    if not phone.strip():
        return "Phone number is required"
    if not PHONE_RE.match(phone):
        return "Phone must be in format (555) 123-4567"
    return None


def validate_selection(value: str, message: str) -> str | None:
    return None if value else message


def validate_date_range(start: date | None, end: date | None) -> dict[str, str]:
    errors: dict[str, str] = {}
    if start is None:
        errors["start_date"] = "Start date is required"
    if end is None:
        errors["end_date"] = "End date is required"
    elif start is not None and end <= start:
        errors["end_date"] = "End date must be after start date"
    return errors


def validate_monthly_payment(raw: str) -> str | None:
    if not raw:
        return "Monthly payment is required"
    amount = parse_float(raw)
    if math.isnan(amount) or amount <= 0:
        return "Please enter a valid payment amount"
    if amount < MIN_MONTHLY_PAYMENT:
        return "Monthly payment must be at least $100"
    return None


def validate_security_deposit(raw: str) -> str | None:
    if not raw:
        return "Security deposit is required"
    amount = parse_float(raw)
    if math.isnan(amount) or amount < 0:
        return "Please enter a valid deposit amount"
    return None


def validate_mileage_limit(raw: str) -> str | None:
    if not raw:
        return "Mileage limit is required"
    miles = parse_int(raw)
    if math.isnan(miles) or miles <= 0:
        return "Please enter a valid mileage limit"
    if miles < MIN_MILEAGE_LIMIT:
        return "Mileage limit must be at least 5,000 miles"
    return None


def validate_terms(terms: str) -> str | None:
    if not terms.strip():
        return "Lease terms and conditions are required"
    if len(terms.strip()) < MIN_TERMS_LENGTH:
        return "Terms must be at least 50 characters"
    return None


def _collect(errors: dict, key: str, message: str | None) -> None:
    if message is not None:
        errors[key] = message


def validate_lessee_form(form: LesseeForm) -> dict[str, str]:
    errors: dict[str, str] = {}
    _collect(errors, "name", validate_name(form.name, required_message="Lessee name is required"))
    _collect(errors, "vehicle_id", validate_selection(form.vehicle_id, "Please select a vehicle"))
    _collect(errors, "email", validate_email(form.email))
    _collect(errors, "phone", validate_phone(form.phone))
    return errors


def validate_new_lessee(fields: NewLesseeFields) -> dict[str, str]:
    errors: dict[str, str] = {}
    _collect(errors, "name", validate_name(fields.name))
    _collect(errors, "email", validate_email(fields.email))
    _collect(errors, "phone", validate_phone(fields.phone))
    return errors


def validate_lease_form(form: LeaseForm) -> FormErrors:
    """
    Validate a lease form. Errors for the inline new-lessee fields are nested
    under "new_lessee"; an empty result means the form may be submitted.
    """
    errors: FormErrors = {}
    _collect(errors, "vehicle_id", validate_selection(form.vehicle_id, "Please select a vehicle"))

    if form.lessee_type == "existing":
        _collect(errors, "lessee_id", validate_selection(form.lessee_id, "Please select a lessee"))
    elif form.lessee_type == "new":
        lessee_errors = validate_new_lessee(form.new_lessee)
        if lessee_errors:
            errors["new_lessee"] = lessee_errors
    else:
        raise ValueError(f"unknown lessee_type '{form.lessee_type}'")

    errors.update(validate_date_range(form.start_date, form.end_date))
    _collect(errors, "monthly_payment", validate_monthly_payment(form.monthly_payment))
    _collect(errors, "security_deposit", validate_security_deposit(form.security_deposit))
    _collect(errors, "mileage_limit", validate_mileage_limit(form.mileage_limit))
    _collect(errors, "terms", validate_terms(form.terms))
    return errors


def is_submittable(errors: FormErrors) -> bool:
    return not errors
