"""Tests for availability: quantity ceilings, booking window, weekday filter, slot capacity."""
from datetime import date, timedelta

import pytest

from blane_checkout.core.errors import FieldValidationError
from blane_checkout.schemas import Period
from blane_checkout.services.availability import (
    AvailabilityResolver,
    effective_end,
    effective_start,
    is_date_available,
    is_period_valid,
    order_quantity_ceiling,
    reservation_seats,
)

from conftest import TODAY, make_deal


@pytest.mark.parametrize(
    "stock, max_orders, expected",
    [
        (None, None, 10),
        (3, 5, 3),
        (50, None, 10),
        (None, 4, 4),
        (0, 5, 0),
    ],
)
def test_order_quantity_ceiling(stock, max_orders, expected):
    assert order_quantity_ceiling(make_deal(stock=stock, max_orders=max_orders)) == expected


def test_reservation_seats_scale_with_participants(time_deal):
    assert reservation_seats(time_deal, 3) == 6


def test_weekday_filter_rejects_tuesday(time_deal):
    assert is_date_available(time_deal, date(2026, 3, 2), TODAY)  # Monday
    assert not is_date_available(time_deal, date(2026, 3, 3), TODAY)  # Tuesday
    assert is_date_available(time_deal, date(2026, 3, 4), TODAY)  # Wednesday


def test_period_with_one_allowed_weekday_is_accepted(period_deal):
    mon_to_wed = period_deal.find_period("2026-03-09-2026-03-11")
    thu_to_mon = period_deal.find_period("2026-03-05-2026-03-09")
    tuesday_only = period_deal.find_period("2026-03-10-2026-03-10")
    assert is_period_valid(period_deal, mon_to_wed, TODAY)
    # four of five days are disallowed, Monday is enough
    assert is_period_valid(period_deal, thu_to_mon, TODAY)
    assert not is_period_valid(period_deal, tuesday_only, TODAY)


def test_dates_outside_the_deal_window_are_rejected(time_deal):
    assert not is_date_available(time_deal, date(2026, 2, 23), TODAY)  # Monday before start_date
    assert not is_date_available(time_deal, date(2026, 7, 6), TODAY)  # Monday after expiration_date


def test_default_window_is_90_days_from_today():
    deal = make_deal(type="reservation", type_time="time")
    assert effective_start(deal, TODAY) == TODAY
    assert effective_end(deal, TODAY) == TODAY + timedelta(days=90)
    assert is_date_available(deal, TODAY + timedelta(days=90), TODAY)
    assert not is_date_available(deal, TODAY + timedelta(days=91), TODAY)
    assert not is_date_available(deal, TODAY - timedelta(days=1), TODAY)


def test_end_date_used_when_no_expiration():
    deal = make_deal(type="reservation", end_date="2026-04-01 23:59:59")
    assert effective_end(deal, TODAY) == date(2026, 4, 1)


def test_finished_period_is_rejected(period_deal):
    past = Period(start=date(2026, 3, 1), end=date(2026, 3, 1))
    assert not is_period_valid(period_deal, past, date(2026, 3, 4))


def test_unrestricted_deal_accepts_any_weekday():
    deal = make_deal(type="reservation", type_time="date", jours_creneaux=None)
    period = Period(start=date(2026, 3, 10), end=date(2026, 3, 10))
    assert is_period_valid(deal, period, TODAY)
    assert is_date_available(deal, date(2026, 3, 3), TODAY)


def test_english_weekday_names_are_understood():
    deal = make_deal(type="reservation", jours_creneaux="Monday, Wednesday")
    assert is_date_available(deal, date(2026, 3, 2), TODAY)
    assert not is_date_available(deal, date(2026, 3, 3), TODAY)


@pytest.mark.anyio
async def test_select_date_refetches_slots_and_clears_time(time_deal, client, backend):
    backend.time_slots["2026-03-02"] = [
        {"time": "10:00", "available": True, "maxReservations": 5, "currentReservations": 2},
        {"time": "14:00", "available": True, "maxReservations": 5, "currentReservations": 5},
    ]
    pushed = []
    resolver = AvailabilityResolver(time_deal, client, on_ceiling_change=pushed.append, today=TODAY)

    slots = await resolver.select_date(date(2026, 3, 2))
    assert [s.time for s in slots] == ["10:00", "14:00"]
    assert resolver.select_time("10:00") == 3
    assert resolver.select_time("14:00") == 0
    assert pushed == [1, 3, 0]

    backend.time_slots["2026-03-04"] = [{"time": "09:00", "maxReservations": 2, "currentReservations": 0}]
    slots = await resolver.select_date(date(2026, 3, 4))
    assert [s.time for s in slots] == ["09:00"]
    assert resolver.selected_time is None
    # the cleared time takes the old slot's capacity with it
    assert pushed[-1] == 1
    assert resolver.ceiling == 1
    request = backend.calls("GET", "/front/v1/blanes/hammam-rabat/available-time-slots")[-1]
    assert request.url.params["date"] == "2026-03-04"


@pytest.mark.anyio
async def test_unknown_slot_blocks_booking(time_deal, client, backend):
    backend.time_slots["2026-03-02"] = [{"time": "10:00", "maxReservations": 5, "currentReservations": 0}]
    resolver = AvailabilityResolver(time_deal, client, today=TODAY)
    await resolver.select_date(date(2026, 3, 2))
    assert resolver.select_time("18:00") == 0
    assert resolver.ceiling == 0


@pytest.mark.anyio
async def test_slot_fetch_failure_leaves_no_slots(time_deal, client, backend):
    backend.failures[("GET", "/front/v1/blanes/hammam-rabat/available-time-slots")] = (500, {})
    resolver = AvailabilityResolver(time_deal, client, today=TODAY)
    assert await resolver.select_date(date(2026, 3, 2)) == []
    assert resolver.slots_error is not None
    assert resolver.select_time("10:00") == 0


@pytest.mark.anyio
async def test_select_date_rejects_disallowed_weekday(time_deal, client, backend):
    resolver = AvailabilityResolver(time_deal, client, today=TODAY)
    with pytest.raises(FieldValidationError) as exc:
        await resolver.select_date(date(2026, 3, 3))
    assert "reservation_date" in exc.value.errors
    assert backend.requests == []


def test_select_period_uses_remaining_capacity(period_deal):
    pushed = []
    resolver = AvailabilityResolver(period_deal, on_ceiling_change=pushed.append, today=TODAY)
    assert resolver.select_period("2026-03-09-2026-03-11") == 3
    assert resolver.select_period("2026-03-16-2026-03-18") == 0
    assert resolver.select_period("2027-01-01-2027-01-02") == 0
    assert pushed == [3, 0, 0]


def test_select_period_rejects_invalid_period(period_deal):
    pushed = []
    resolver = AvailabilityResolver(period_deal, on_ceiling_change=pushed.append, today=TODAY)
    assert resolver.select_period("2026-03-09-2026-03-11") == 3
    with pytest.raises(FieldValidationError):
        resolver.select_period("2026-03-10-2026-03-10")
    assert resolver.selected_period is None
    assert resolver.ceiling == 0
    assert pushed == [3, 0]


def test_order_resolver_starts_at_stock_ceiling():
    resolver = AvailabilityResolver(make_deal(stock=2))
    assert resolver.ceiling == 2
