"""
Availability: how many units a customer may buy/book, and which dates/periods are bookable.

Orders are capped by stock and a per-order limit. Reservations are capped by the
remaining capacity of the chosen time slot ("time" model) or period ("date" model);
one unit of quantity books `personnes_prestation` seats.
"""
import logging
from datetime import date, timedelta
from typing import Callable

from blane_checkout.core.constants import (
    DEFAULT_BOOKING_WINDOW_DAYS,
    DEFAULT_MAX_ORDERS,
    WEEKDAY_NAMES_EN,
    WEEKDAY_NAMES_FR,
)
from blane_checkout.core.errors import BackendError, FieldValidationError
from blane_checkout.schemas import Deal, Period, TimeSlot
from blane_checkout.services.api import BlaneApiClient

logger = logging.getLogger(__name__)

MSG_DATE_UNAVAILABLE = "Cette date n'est pas disponible pour cette offre."
MSG_PERIOD_UNAVAILABLE = "Cette période n'est pas disponible pour cette offre."
MSG_SLOTS_UNAVAILABLE = "Erreur lors du chargement des créneaux disponibles."

_WEEKDAY_INDEX = {name: i for names in (WEEKDAY_NAMES_FR, WEEKDAY_NAMES_EN) for i, name in enumerate(names)}


def order_quantity_ceiling(deal: Deal) -> int:
    """min(stock, max_orders); no stock means unlimited, no max_orders means 10."""
    cap = deal.max_orders or DEFAULT_MAX_ORDERS
    if deal.stock is None:
        return cap
    return max(0, min(deal.stock, cap))


def reservation_seats(deal: Deal, quantity: int) -> int:
    """Seats consumed by `quantity` units (number_persons on the wire)."""
    return deal.personnes_prestation * quantity


def effective_start(deal: Deal, today: date | None = None) -> date:
    return deal.start_date or today or date.today()


def effective_end(deal: Deal, today: date | None = None) -> date:
    explicit = deal.expiration_date or deal.end_date
    if explicit:
        return explicit
    return effective_start(deal, today) + timedelta(days=DEFAULT_BOOKING_WINDOW_DAYS)


def allowed_weekdays(deal: Deal) -> set[int] | None:
    """Weekday indexes (Monday=0) the deal runs on, or None when unrestricted."""
    if not deal.jours_creneaux:
        return None
    days = {_WEEKDAY_INDEX[d] for d in deal.jours_creneaux if d in _WEEKDAY_INDEX}
    if not days:
        logger.warning("Deal %s has unrecognised jours_creneaux %s", deal.slug, deal.jours_creneaux)
    return days


def is_date_available(deal: Deal, day: date, today: date | None = None) -> bool:
    today = today or date.today()
    if day < effective_start(deal, today) or day > effective_end(deal, today):
        return False
    days = allowed_weekdays(deal)
    return days is None or day.weekday() in days


def is_period_valid(deal: Deal, period: Period, today: date | None = None) -> bool:
    """Inside the deal window, not over, and at least one day of [start, end] on an allowed weekday."""
    today = today or date.today()
    if period.end < period.start or period.end < today:
        return False
    if period.start < effective_start(deal, today) or period.end > effective_end(deal, today):
        return False
    days = allowed_weekdays(deal)
    if days is None:
        return True
    current = period.start
    while current <= period.end:
        if current.weekday() in days:
            return True
        current += timedelta(days=1)
    return False


class AvailabilityResolver:
    """
    Tracks the chosen date/time/period for one form and pushes the resulting quantity
    ceiling to a listener (the draft controller) whenever the selection changes.

    A slot or period that cannot be found yields a ceiling of 0: the booking is blocked
    rather than allowed against an unknown capacity.
    """

    def __init__(
        self,
        deal: Deal,
        client: BlaneApiClient | None = None,
        *,
        on_ceiling_change: Callable[[int], None] | None = None,
        today: date | None = None,
    ) -> None:
        self.deal = deal
        self.client = client
        self.on_ceiling_change = on_ceiling_change
        self.today = today
        self.time_slots: list[TimeSlot] = []
        self.selected_date: date | None = None
        self.selected_time: str | None = None
        self.selected_period: Period | None = None
        self.slots_error: str | None = None
        self.ceiling = self.initial_ceiling()

    def initial_ceiling(self) -> int:
        """Ceiling before any slot is chosen: the order cap, or one unit for a reservation."""
        return order_quantity_ceiling(self.deal) if not self.deal.is_reservation else 1

    def _push(self, ceiling: int) -> int:
        self.ceiling = ceiling
        if self.on_ceiling_change is not None:
            self.on_ceiling_change(ceiling)
        return ceiling

    async def select_date(self, day: date) -> list[TimeSlot]:
        """Choose a date (time model): refetch that date's slots wholesale and clear the chosen time."""
        if not is_date_available(self.deal, day, self.today):
            raise FieldValidationError({"reservation_date": [MSG_DATE_UNAVAILABLE]})
        self.selected_date = day
        self.selected_time = None
        self.slots_error = None
        self.time_slots = []
        self._push(self.initial_ceiling())
        if self.client is None:
            raise RuntimeError("AvailabilityResolver needs an API client to load time slots")
        try:
            self.time_slots = await self.client.get_available_time_slots(self.deal.slug, day)
        except BackendError as e:
            logger.warning("Time slots for %s on %s unavailable: %s", self.deal.slug, day, e.message)
            self.slots_error = MSG_SLOTS_UNAVAILABLE
        logger.debug("Loaded %s time slots for %s on %s", len(self.time_slots), self.deal.slug, day)
        return self.time_slots

    def find_slot(self, time: str) -> TimeSlot | None:
        return next((s for s in self.time_slots if s.time == time), None)

    def select_time(self, time: str) -> int:
        """Choose a time among the loaded slots; ceiling = that slot's remaining capacity."""
        self.selected_time = time
        slot = self.find_slot(time)
        if slot is None:
            logger.warning("Slot %s not found for %s on %s", time, self.deal.slug, self.selected_date)
            return self._push(0)
        return self._push(slot.remaining_capacity if slot.available else 0)

    def select_period(self, key: str) -> int:
        """Choose a period by its "start-end" key; ceiling = that period's remaining capacity."""
        period = self.deal.find_period(key)
        self.selected_period = None
        if period is None:
            logger.warning("Period %s not found for %s", key, self.deal.slug)
            return self._push(0)
        if not is_period_valid(self.deal, period, self.today):
            self._push(0)
            raise FieldValidationError({"selected_period": [MSG_PERIOD_UNAVAILABLE]})
        self.selected_period = period
        return self._push(period.remaining_capacity if period.available else 0)
