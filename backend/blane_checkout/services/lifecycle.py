"""
Submission lifecycle as an explicit state machine, independent of any UI.

    Idle -> Validating -> AwaitingConfirmation -> Validating -> Submitting
    Submitting -> Completed                          (cash)
    Submitting -> PersistingForRedirect -> Redirected (online / partial)
    Validating | Submitting | PersistingForRedirect -> Failed(reason)
    Failed -> Validating (resubmit); Completed | Failed | Redirected -> Idle (start over)
"""
from dataclasses import dataclass
from enum import Enum

from blane_checkout.core.errors import InvalidTransitionError


class SubmissionStatus(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SUBMITTING = "submitting"
    PERSISTING_FOR_REDIRECT = "persisting_for_redirect"
    REDIRECTED = "redirected"
    COMPLETED = "completed"
    FAILED = "failed"


class SubmissionEvent(str, Enum):
    BEGIN_VALIDATION = "begin_validation"
    VALIDATION_FAILED = "validation_failed"
    OPEN_CONFIRMATION = "open_confirmation"
    DISMISS_CONFIRMATION = "dismiss_confirmation"
    BEGIN_SUBMISSION = "begin_submission"
    SUBMISSION_FAILED = "submission_failed"
    COMPLETE = "complete"
    PERSIST_FOR_REDIRECT = "persist_for_redirect"
    REDIRECT = "redirect"
    PAYMENT_SETUP_FAILED = "payment_setup_failed"
    RESET = "reset"


# Failure reasons carried by Failed(reason)
REASON_VALIDATION = "validation"
REASON_BACKEND_VALIDATION = "backend_validation"
REASON_BACKEND = "backend"
REASON_PAYMENT_PREPARATION = "payment_preparation"
REASON_UNEXPECTED = "unexpected"

S = SubmissionStatus
E = SubmissionEvent

TRANSITIONS: dict[tuple[SubmissionStatus, SubmissionEvent], SubmissionStatus] = {
    (S.IDLE, E.BEGIN_VALIDATION): S.VALIDATING,
    (S.FAILED, E.BEGIN_VALIDATION): S.VALIDATING,
    (S.AWAITING_CONFIRMATION, E.BEGIN_VALIDATION): S.VALIDATING,
    (S.VALIDATING, E.VALIDATION_FAILED): S.FAILED,
    (S.VALIDATING, E.OPEN_CONFIRMATION): S.AWAITING_CONFIRMATION,
    (S.AWAITING_CONFIRMATION, E.DISMISS_CONFIRMATION): S.IDLE,
    (S.VALIDATING, E.BEGIN_SUBMISSION): S.SUBMITTING,
    (S.SUBMITTING, E.SUBMISSION_FAILED): S.FAILED,
    (S.SUBMITTING, E.COMPLETE): S.COMPLETED,
    (S.SUBMITTING, E.PERSIST_FOR_REDIRECT): S.PERSISTING_FOR_REDIRECT,
    (S.PERSISTING_FOR_REDIRECT, E.REDIRECT): S.REDIRECTED,
    (S.PERSISTING_FOR_REDIRECT, E.PAYMENT_SETUP_FAILED): S.FAILED,
    (S.COMPLETED, E.RESET): S.IDLE,
    (S.FAILED, E.RESET): S.IDLE,
    (S.REDIRECTED, E.RESET): S.IDLE,
    (S.IDLE, E.RESET): S.IDLE,
}

IN_FLIGHT = frozenset({S.SUBMITTING, S.PERSISTING_FOR_REDIRECT})


@dataclass(frozen=True)
class SubmissionState:
    status: SubmissionStatus = SubmissionStatus.IDLE
    reason: str | None = None

    @property
    def in_flight(self) -> bool:
        return self.status in IN_FLIGHT

    @property
    def terminal(self) -> bool:
        return self.status in (S.COMPLETED, S.REDIRECTED)


def transition(state: SubmissionState, event: SubmissionEvent, reason: str | None = None) -> SubmissionState:
    """Next state for (state, event). Only Failed keeps a reason."""
    target = TRANSITIONS.get((state.status, event))
    if target is None:
        raise InvalidTransitionError(f"No transition from {state.status.value} on {event.value}")
    return SubmissionState(target, reason if target is S.FAILED else None)
