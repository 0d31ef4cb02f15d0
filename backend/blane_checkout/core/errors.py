"""
Centralized error taxonomy for checkout failures.
Constants and a reusable helper so the API client stays thin and new error types are easy to add.
"""
from __future__ import annotations

from typing import Any, Callable

# ---------------------------------------------------------------------------
# Constants: user-facing messages (shown to the customer as-is)
# ---------------------------------------------------------------------------

MSG_REQUIRED_FIELDS = "Veuillez remplir tous les champs obligatoires."
MSG_BAD_REQUEST = "Requête invalide. Veuillez vérifier vos informations."
MSG_UNAUTHORIZED = "Vous devez être connecté pour accéder à cette ressource."
MSG_FORBIDDEN = "Vous n'avez pas les droits nécessaires pour accéder à cette ressource."
MSG_NOT_FOUND = "Ressource non trouvée."
MSG_SLOT_FULL = "Ce créneau a atteint son nombre maximal de réservations."
MSG_SERVER_ERROR = "Le serveur a rencontré une erreur. Veuillez réessayer plus tard."
MSG_NO_RESPONSE = "Aucune réponse reçue. Vérifiez votre connexion internet."
MSG_TIMEOUT = "La requête a expiré. Veuillez réessayer plus tard."
MSG_PAYMENT_PREPARATION = "Erreur lors de la préparation du paiement"
MSG_UNEXPECTED = "Une erreur inattendue est survenue. Veuillez réessayer."
MSG_SUBMISSION_IN_FLIGHT = "Votre demande est déjà en cours de traitement."
MSG_SUBMISSION_DONE = "Votre demande a déjà été envoyée."

STATUS_BAD_REQUEST = 400
STATUS_UNPROCESSABLE = 422


class CheckoutError(Exception):
    """Base for every error raised by the checkout core."""

    def __init__(self, message: str = MSG_UNEXPECTED) -> None:
        super().__init__(message)
        self.message = message


class FieldValidationError(CheckoutError):
    """Local validation failed; never sent to the backend."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        first = next((msgs[0] for msgs in errors.values() if msgs), MSG_REQUIRED_FIELDS)
        super().__init__(first)
        self.errors = errors


class BackendError(CheckoutError):
    """Non-2xx response from the Blane backend."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        field_errors: dict[str, list[str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.field_errors = field_errors or {}


class BackendValidationError(BackendError):
    """HTTP 400/422: the form stays editable and resubmittable."""


class BackendUnavailableError(BackendError):
    """Transport failure or timeout; no response was received."""


class PaymentPreparationError(CheckoutError):
    """Gateway initiation failed. The order/reservation itself already exists."""

    def __init__(self, message: str = MSG_PAYMENT_PREPARATION) -> None:
        super().__init__(message)


class SubmissionInFlightError(CheckoutError):
    def __init__(self) -> None:
        super().__init__(MSG_SUBMISSION_IN_FLIGHT)


class SubmissionCompletedError(CheckoutError):
    """The draft was already submitted; reset() before submitting again."""

    def __init__(self) -> None:
        super().__init__(MSG_SUBMISSION_DONE)


class PersistenceError(CheckoutError):
    """Key-value store read or write did not complete."""


class InvalidTransitionError(CheckoutError):
    pass


# ---------------------------------------------------------------------------
# Response rules: (predicate on status, exception class, default message)
# Add new rules here instead of scattering status checks in the client.
# ---------------------------------------------------------------------------

ERROR_RULES: list[tuple[Callable[[int], bool], type[BackendError], str]] = [
    (lambda s: s == STATUS_BAD_REQUEST, BackendValidationError, MSG_BAD_REQUEST),
    (lambda s: s == STATUS_UNPROCESSABLE, BackendValidationError, MSG_SLOT_FULL),
    (lambda s: s == 401, BackendError, MSG_UNAUTHORIZED),
    (lambda s: s == 403, BackendError, MSG_FORBIDDEN),
    (lambda s: s == 404, BackendError, MSG_NOT_FOUND),
    (lambda s: s >= 500, BackendError, MSG_SERVER_ERROR),
]


def _as_messages(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v not in (None, "")]
    if value in (None, ""):
        return []
    return [str(value)]


def extract_field_errors(body: Any) -> dict[str, list[str]]:
    """Field -> messages map from a backend error body ({"error": {...}} or {"errors": {...}})."""
    if not isinstance(body, dict):
        return {}
    for key in ("error", "errors"):
        raw = body.get(key)
        if isinstance(raw, dict):
            return {str(field): _as_messages(msgs) for field, msgs in raw.items() if _as_messages(msgs)}
    return {}


def backend_error_from_response(status_code: int, body: Any) -> BackendError:
    """
    Map a non-2xx response into a BackendError.
    Uses ERROR_RULES for the class and default message; a string "error" or a "message"
    in the body wins over the default, and a field map becomes field_errors.
    """
    exc_class: type[BackendError] = BackendError
    message = MSG_UNEXPECTED
    for predicate, rule_class, default in ERROR_RULES:
        if predicate(status_code):
            exc_class, message = rule_class, default
            break
    field_errors = extract_field_errors(body)
    if isinstance(body, dict):
        raw_error = body.get("error")
        if isinstance(raw_error, str) and raw_error.strip():
            message = raw_error.strip()
        elif field_errors:
            message = next(iter(field_errors.values()))[0]
        elif isinstance(body.get("message"), str) and body["message"].strip():
            message = body["message"].strip()
    return exc_class(message, status_code=status_code, field_errors=field_errors)
