"""
Field-level validation rules for drafts.

``validate_draft`` is pure: it never touches the collection, the network or
the draft itself.  The engine runs it on every commit attempt.

Examples:
    >>> from roster.core.models import Draft
    >>> validate_draft(Draft(name="Al"))["name"]
    'Name must be at least 3 characters'
"""

from __future__ import annotations

import re

from roster.core.models import Draft

# Patterns are applied with fullmatch, so they carry no anchors. \s matches
# Unicode whitespace; digits are ASCII only
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_PATTERN = re.compile(r"\+?[0-9\s-]{10,}")
WEBSITE_PATTERN = re.compile(r"(https?://)?([\da-z.-]+)\.([a-z.]{2,6})([/\w .-]*)/?", re.ASCII)

MIN_NAME_LENGTH = 3
MIN_COMPANY_LENGTH = 3


def validate_draft(draft: Draft) -> dict[str, str]:
    """Check ``draft`` against every field rule.

    Returns:
        Mapping of dotted field path to message for each violated rule.
        Empty mapping means the draft is valid.
    """
    errors: dict[str, str] = {}

    if len(draft.name) < MIN_NAME_LENGTH:
        errors["name"] = f"Name must be at least {MIN_NAME_LENGTH} characters"
    if not EMAIL_PATTERN.fullmatch(draft.email):
        errors["email"] = "Invalid email format"
    if not PHONE_PATTERN.fullmatch(draft.phone):
        errors["phone"] = "Invalid phone number"
    if not draft.address.street:
        errors["address.street"] = "Street is required"
    if not draft.address.city:
        errors["address.city"] = "City is required"

    # Optional fields: only checked when filled in
    company = draft.company.name
    if company and len(company) < MIN_COMPANY_LENGTH:
        errors["company.name"] = f"Company name must be at least {MIN_COMPANY_LENGTH} characters"
    if draft.website and not WEBSITE_PATTERN.fullmatch(draft.website):
        errors["website"] = "Invalid URL format"

    return errors


__all__ = ["validate_draft", "EMAIL_PATTERN", "PHONE_PATTERN", "WEBSITE_PATTERN"]
