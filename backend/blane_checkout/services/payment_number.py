"""
Gateway reference formatting. The payment endpoint only accepts numbers starting
with ORDER or RES; the backend hands out several historical shapes.
"""
import re

from blane_checkout.core.constants import KIND_ORDER

_DASHED = re.compile(r"^(RES|ORDER)-[A-Z0-9]+", re.IGNORECASE)
_CODE_WITHOUT_DASH = re.compile(r"^(RES|ORDER)([A-Z]{2}[0-9]+)$", re.IGNORECASE)
_VZ_CODE = re.compile(r"^VZ[0-9]+$", re.IGNORECASE)


def _prefix(kind: str) -> str:
    return "ORDER" if kind == KIND_ORDER else "RES"


def format_payment_number(kind: str, reference: str) -> str:
    """
    Normalise an order/reservation reference for initiate_payment.

    RES-XK12 / ORDER-XK12 pass through; BLANE- prefixes are stripped; RESVZ12 -> RES-VZ12;
    bare VZ12 codes get the kind prefix with a dash; numeric ids get ORDER12 / RES12.
    """
    number = (reference or "").strip()
    if not number:
        return number
    if number.upper().startswith("BLANE-"):
        number = number[len("BLANE-"):]
    if _DASHED.match(number):
        return number
    m = _CODE_WITHOUT_DASH.match(number)
    if m:
        return f"{m.group(1).upper()}-{m.group(2)}"
    if _VZ_CODE.match(number):
        return f"{_prefix(kind)}-{number}"
    if number.isdigit():
        return f"{_prefix(kind)}{number}"
    if number.upper().startswith(("ORDER", "RES")):
        return number
    digits = re.sub(r"\D", "", number)
    return f"{_prefix(kind)}{digits}" if digits else number
