"""
Input validation for values that end up in CMA request URLs.

Resource ids and locale codes are interpolated into URL paths, so they are
checked before any request is made.
"""

import re

# CMA ids: 1-64 characters from letters, digits, '-', '_' and '.'
_RESOURCE_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,64}")

# BCP 47-ish locale codes as accepted by Contentful (e.g. "en", "en-US", "zh-Hans-CN")
_LOCALE_CODE_PATTERN = re.compile(r"[A-Za-z]{2,3}(-[A-Za-z0-9]{2,8})*")


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Entry id")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_resource_id(
    resource_id: str | None, field_name: str = "Resource id"
) -> tuple[bool, str]:
    """
    Validate a CMA resource id (space, entry, asset, webhook, ...).

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.
    """
    if not resource_id or not resource_id.strip():
        return (
            False,
            format_validation_error(field_name, "cannot be empty"),
        )

    if ".." in resource_id:
        return (
            False,
            format_validation_error(field_name, "cannot contain '..'"),
        )

    if not _RESOURCE_ID_PATTERN.fullmatch(resource_id):
        return (
            False,
            format_validation_error(
                field_name,
                f"'{resource_id}' must be 1-64 characters of letters, "
                "digits, '-', '_' or '.'",
            ),
        )

    return (True, "")


def validate_locale_code(code: str | None) -> tuple[bool, str]:
    """
    Validate a locale code used as a URL segment (asset processing).

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not code or not code.strip():
        return (
            False,
            format_validation_error("Locale code", "cannot be empty"),
        )

    if not _LOCALE_CODE_PATTERN.fullmatch(code):
        return (
            False,
            format_validation_error(
                "Locale code", f"'{code}' is not a valid locale code"
            ),
        )

    return (True, "")
