from __future__ import annotations

from email_validator import EmailNotValidError, validate_email

from ..models.records import NormalizedUser, RawRecord
from ..models.validation import INVALID_EMAIL, MISSING_FIELD, ValidationError

"""Record normalization: trim, lowercase, capitalize, validate email.

Every step is a hard gate; the first offending field wins. Pure functions,
no database or file access.

Email grammar: email-validator in syntax-only mode (no DNS lookups).
- local part: RFC 5322 dot-atom, ASCII only (allow_smtputf8=False)
- domain: valid DNS labels, at least one dot, no special-use names
  (localhost, .test, .local, .invalid, .onion, .arpa)
- quoted local parts and [ip] domain literals are rejected
"""

__all__ = [
    "normalize",
    "capitalize_first",
    "is_valid_email",
]


def capitalize_first(value: str) -> str:
    """Upper-case the first character only; the rest is left as given."""
    first = value[:1]
    upper = first.upper()
    # "ß".upper() == "SS" のような多文字展開は冪等性を壊すので元の文字のまま
    if len(upper) != 1:
        upper = first
    return upper + value[1:]


def _email_syntax_error(email: str) -> str | None:
    try:
        validate_email(email, check_deliverability=False, allow_smtputf8=False)
    except EmailNotValidError as e:
        return str(e)
    return None


def is_valid_email(email: str) -> bool:
    return _email_syntax_error(email) is None


def normalize(raw: RawRecord, line_number: int) -> NormalizedUser:
    """Normalize one raw record.

    Raises:
        ValidationError: `missing_field` for an empty (after trim) field,
            `invalid_email` when the email fails the syntax check.
    """
    trimmed: dict[str, str] = {}
    for field, value in raw.fields():
        stripped = (value or "").strip()
        if not stripped:
            raise ValidationError(line_number, field, MISSING_FIELD, f"{field} is empty")
        trimmed[field] = stripped.lower()

    email = trimmed["email"]
    problem = _email_syntax_error(email)
    if problem is not None:
        raise ValidationError(
            line_number,
            "email",
            INVALID_EMAIL,
            f"invalid email address {email!r}: {problem}",
        )

    return NormalizedUser(
        name=capitalize_first(trimmed["name"]),
        surname=capitalize_first(trimmed["surname"]),
        email=email,
    )
