"""Shared validation utilities"""

import re
from dataclasses import dataclass
from typing import Optional

from ..config import COUNTRY_CALLING_CODE


@dataclass(frozen=True)
class NormalizedPhone:
    """A phone number in canonical form plus every stored form it may match"""

    canonical: str
    variants: frozenset[str]

    @property
    def e164(self) -> str:
        return f"+{self.canonical}"


def normalize_phone(phone: Optional[str]) -> NormalizedPhone:
    """
    Normalize a Kenyan phone number.

    Accepts the formats customers actually type (``0712345678``,
    ``712345678``, ``254712345678``, ``+254 712 345 678``) and returns the
    canonical ``254XXXXXXXXX`` form together with the equivalent forms older
    records may have been stored under.

    Raises:
        ValueError: If the input holds no digits
    """
    raw = (phone or "").strip()
    digits = re.sub(r"\D", "", raw)
    if not digits:
        raise ValueError("Phone number is required")

    if digits.startswith(COUNTRY_CALLING_CODE):
        national = digits[len(COUNTRY_CALLING_CODE):]
    elif digits.startswith("0"):
        national = digits[1:]
    else:
        national = digits

    canonical = f"{COUNTRY_CALLING_CODE}{national}"
    variants = {
        raw,
        digits,
        canonical,
        f"+{canonical}",
        f"0{national}",
        national,
    }
    return NormalizedPhone(canonical=canonical, variants=frozenset(v for v in variants if v))


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """Pydantic-friendly wrapper returning the canonical form"""
    if not phone:
        return phone
    normalized = normalize_phone(phone)
    national = normalized.canonical[len(COUNTRY_CALLING_CODE):]
    if len(national) != 9:
        raise ValueError("Phone number must have 9 digits after the country code")
    return normalized.canonical


def mask_phone(phone: str) -> str:
    """254712345678 -> 254***345678"""
    return re.sub(r"^(\d{3})(\d{3})(\d{3})(\d{3})$", r"\1***\3\4", phone)


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email
