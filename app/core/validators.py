"""
Data validation utilities shared by the request schemas
"""

import re
from decimal import Decimal, InvalidOperation
import phonenumbers
from phonenumbers import NumberParseException

# Numbers without a country code are read as Brazilian
DEFAULT_PHONE_REGION = "BR"


def validate_phone(phone: str) -> str:
    """
    Validate a phone number and return it in E.164 format
    """
    if not phone:
        return phone

    # Remove all non-numeric characters except +
    cleaned_phone = re.sub(r'[^\d+]', '', phone)

    try:
        parsed_number = phonenumbers.parse(cleaned_phone, DEFAULT_PHONE_REGION)
    except NumberParseException:
        raise ValueError('Invalid phone number format')

    if not phonenumbers.is_valid_number(parsed_number):
        raise ValueError('Invalid phone number')

    return phonenumbers.format_number(parsed_number, phonenumbers.PhoneNumberFormat.E164)


def validate_email(email: str) -> str:
    """
    Validate email format
    """
    if not email:
        return email

    email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

    if not re.match(email_pattern, email) or '..' in email:
        raise ValueError('Invalid email format')

    if len(email) > 100:
        raise ValueError('Email too long')

    return email.lower()


def validate_state_code(state: str) -> str:
    """
    Two-letter state code (e.g. PE, SP), normalized to upper case
    """
    state = state.strip().upper()
    if not re.fullmatch(r'[A-Z]{2}', state):
        raise ValueError('State must be a two-letter code')
    return state


def validate_decimal_string(value) -> str:
    """
    Accept numbers or numeric strings and return a non-negative decimal string
    with two places (goals are stored as text)
    """
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value).replace(",", "."))
    except InvalidOperation:
        raise ValueError('Must be a decimal number')
    if not amount.is_finite() or amount < 0:
        raise ValueError('Must be a non-negative decimal number')
    return str(amount.quantize(Decimal("0.01")))


def validate_password(password: str) -> str:
    """
    Minimal password policy
    """
    if len(password) < 6:
        raise ValueError('Password must be at least 6 characters long')

    if len(password) > 72:
        # bcrypt only looks at the first 72 bytes
        raise ValueError('Password too long')

    return password


def sanitize_input(text: str, max_length: int = 1000) -> str:
    """
    Sanitize free text: strip control characters and angle brackets,
    collapse whitespace and cap the length
    """
    if not text:
        return text

    if len(text) > max_length:
        text = text[:max_length]

    for char in ['<', '>', '\x00']:
        text = text.replace(char, '')

    text = ' '.join(text.split())

    return text.strip()


def require_value(value):
    """
    Reject an explicit null sent for a column that cannot be empty
    """
    if value is None:
        raise ValueError('Field cannot be null')
    return value
