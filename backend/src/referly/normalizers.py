"""Input normalization for identity fields."""

import phonenumbers
from phonenumbers import NumberParseException

from referly.logging_config import get_logger

logger = get_logger(__name__)


def normalize_email(email: str | None) -> str:
    """Trim and lower-case an email address."""
    return (email or "").strip().lower()


def normalize_code(code: str | None) -> str | None:
    """Trim a referral/coupon code; blank means absent."""
    if code is None:
        return None
    code = code.strip()
    return code or None


def normalize_phone(phone: str | None, region: str) -> str | None:
    """Normalize phone number to E.164 format.

    Numbers that cannot be parsed or are invalid for the region are kept as
    given (trimmed) so no user input is lost.

    Args:
        phone: Raw phone number
        region: Default country code (ISO 3166-1 alpha-2)

    Returns:
        E.164 phone, the trimmed raw value, or None when blank
    """
    if phone is None:
        return None
    phone = phone.strip()
    if not phone:
        return None

    try:
        parsed = phonenumbers.parse(phone, region)
    except NumberParseException as e:
        logger.debug("phone_parse_error", error=str(e))
        return phone

    if not phonenumbers.is_valid_number(parsed):
        logger.debug("phone_invalid", region=region)
        return phone

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
