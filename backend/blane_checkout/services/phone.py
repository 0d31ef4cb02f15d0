"""International phone validation for the contact form. Country table keyed by dial code."""
import re
from dataclasses import dataclass

# (name, ISO code, dial code). Several countries may share a dial code (US/CA).
COUNTRIES: tuple[tuple[str, str, str], ...] = (
    ("Morocco", "MA", "212"),
    ("France", "FR", "33"),
    ("United States", "US", "1"),
    ("Spain", "ES", "34"),
    ("United Kingdom", "GB", "44"),
    ("Germany", "DE", "49"),
    ("Italy", "IT", "39"),
    ("Belgium", "BE", "32"),
    ("Netherlands", "NL", "31"),
    ("Canada", "CA", "1"),
    ("Switzerland", "CH", "41"),
    ("Portugal", "PT", "351"),
    ("Algeria", "DZ", "213"),
    ("Tunisia", "TN", "216"),
    ("Egypt", "EG", "20"),
    ("Saudi Arabia", "SA", "966"),
    ("UAE", "AE", "971"),
    ("Qatar", "QA", "974"),
    ("Kuwait", "KW", "965"),
    ("Bahrain", "BH", "973"),
    ("Oman", "OM", "968"),
    ("Turkey", "TR", "90"),
    ("Australia", "AU", "61"),
    ("Brazil", "BR", "55"),
    ("China", "CN", "86"),
    ("India", "IN", "91"),
    ("Japan", "JP", "81"),
    ("Mexico", "MX", "52"),
    ("Russia", "RU", "7"),
    ("Singapore", "SG", "65"),
    ("South Africa", "ZA", "27"),
)

MIN_LOCAL_DIGITS = 5
MAX_LOCAL_DIGITS = 15

MSG_PHONE_REQUIRED = "Numéro de téléphone requis"
MSG_PHONE_FORMAT = "Format de numéro invalide"
MSG_PHONE_COUNTRY = "Indicatif pays invalide"

_SEPARATORS = re.compile(r"[\s.\-()/]")


@dataclass(frozen=True)
class PhoneValidation:
    is_valid: bool
    error_message: str | None = None
    country_name: str | None = None
    formatted: str | None = None


def _clean_dial_code(country_code: str | None) -> str:
    return (country_code or "").strip().lstrip("+").lstrip("0")


def _clean_local(number: str | None) -> str:
    return _SEPARATORS.sub("", number or "")


def country_name_for(dial_code: str) -> str | None:
    code = _clean_dial_code(dial_code)
    return next((name for name, _, dial in COUNTRIES if dial == code), None)


def format_phone_number(country_code: str, number: str) -> str:
    """Display form: '+212 612345678'."""
    return f"+{_clean_dial_code(country_code)} {_clean_local(number)}"


def validate_international_phone(country_code: str | None, number: str | None) -> PhoneValidation:
    local = _clean_local(number)
    if not local:
        return PhoneValidation(False, MSG_PHONE_REQUIRED)
    if not local.isdigit() or not (MIN_LOCAL_DIGITS <= len(local) <= MAX_LOCAL_DIGITS):
        return PhoneValidation(False, MSG_PHONE_FORMAT)
    country = country_name_for(country_code or "")
    if country is None:
        return PhoneValidation(False, MSG_PHONE_COUNTRY)
    return PhoneValidation(True, None, country, format_phone_number(country_code or "", local))


def normalize_phone(country_code: str, number: str) -> str:
    """Wire form: dial code + local digits, no '+', no separators."""
    return f"{_clean_dial_code(country_code)}{_clean_local(number)}"
