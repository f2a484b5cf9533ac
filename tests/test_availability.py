from datetime import datetime

import pytest

from barberdesk.domain.availability.service import (
    TIME_SLOTS,
    format_date,
    generate_time_slots,
    get_future_dates,
    resolve_available_slots,
)

from .conftest import BOOKING_DATE


class TestSlotGrid:
    def test_default_grid(self):
        assert len(TIME_SLOTS) == 21
        assert TIME_SLOTS[0] == "09:00"
        assert TIME_SLOTS[-2:] == ["18:30", "19:00"]

    def test_custom_grid(self):
        assert generate_time_slots(10, 12, 60) == ["10:00", "11:00", "12:00"]

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            generate_time_slots(9, 10, 0)


class TestFutureDates:
    def test_today_included_before_cutoff(self):
        dates = get_future_dates(7, now=datetime(2026, 10, 19, 16, 29))
        assert dates[0] == "2026-10-19"
        assert dates[-1] == "2026-10-25"
        assert len(dates) == 7

    def test_today_skipped_at_cutoff(self):
        dates = get_future_dates(7, now=datetime(2026, 10, 19, 16, 30))
        assert dates[0] == "2026-10-20"
        assert len(dates) == 7

    def test_month_rollover(self):
        assert get_future_dates(3, now=datetime(2026, 10, 31, 18, 0)) == [
            "2026-11-01",
            "2026-11-02",
            "2026-11-03",
        ]


class TestFormatDate:
    def test_spanish_long_form(self):
        assert format_date("2026-10-17") == "sábado, 17 de octubre de 2026"
        assert format_date("2026-10-19") == "lunes, 19 de octubre de 2026"

    def test_empty_and_invalid(self):
        assert format_date("") == ""
        assert format_date(None) == ""
        assert format_date("mañana") == "mañana"


class TestResolveAvailableSlots:
    slots = ["09:00", "09:30", "10:00"]

    def test_no_reservations(self):
        assert resolve_available_slots(self.slots, [], barber_id="b1", barber_count=2) == self.slots

    def test_cancelled_never_blocks(self):
        reservations = [{"time": "09:00", "barber_id": "b1", "status": "cancelada"}]
        assert resolve_available_slots(self.slots, reservations, barber_id="b1") == self.slots
        assert resolve_available_slots(self.slots, reservations, barber_count=1) == self.slots

    def test_specific_barber_blocked_by_own_reservation(self):
        reservations = [{"time": "09:30:00", "barber_id": "b1", "status": "confirmada"}]
        assert resolve_available_slots(self.slots, reservations, barber_id="b1") == ["09:00", "10:00"]

    def test_specific_barber_ignores_other_barbers(self):
        reservations = [{"time": "09:30", "barber_id": "b2", "status": "pendiente"}]
        assert resolve_available_slots(self.slots, reservations, barber_id="b1") == self.slots

    def test_reservation_without_barber_blocks_everyone(self):
        reservations = [{"time": "10:00", "barber_id": None, "status": "pendiente"}]
        assert resolve_available_slots(self.slots, reservations, barber_id="b1") == ["09:00", "09:30"]

    def test_any_barber_uses_capacity(self):
        reservations = [{"time": "09:00", "barber_id": "b1", "status": "pendiente"}]
        assert resolve_available_slots(self.slots, reservations, barber_count=2) == self.slots

        reservations.append({"time": "09:00", "barber_id": None, "status": "confirmada"})
        assert resolve_available_slots(self.slots, reservations, barber_count=2) == ["09:30", "10:00"]

    def test_zero_barbers_still_allows_one_booking(self):
        assert resolve_available_slots(self.slots, [], barber_count=0) == self.slots
        reservations = [{"time": "10:00", "status": "pendiente"}]
        assert resolve_available_slots(self.slots, reservations, barber_count=0) == ["09:00", "09:30"]

    def test_output_is_subset_in_grid_order(self):
        slots = ["09:00", "09:00", "10:00"]
        assert resolve_available_slots(slots, [], barber_count=1) == ["09:00", "10:00"]


class TestAvailabilityRoutes:
    def test_slots_for_specific_barber(self, client, fake_backend):
        fake_backend.add_reservation("10:00", barber_id="b1")
        fake_backend.add_reservation("11:00", barber_id="b2")
        fake_backend.add_reservation("12:00", barber_id="b1", status="cancelada")

        response = client.get("/availability/slots", params={"date": BOOKING_DATE, "barberId": "b1"})

        assert response.status_code == 200
        data = response.json()
        assert data["date"] == BOOKING_DATE
        assert data["barberId"] == "b1"
        assert "10:00" not in data["slots"]
        assert "11:00" in data["slots"]
        assert "12:00" in data["slots"]
        assert len(data["allSlots"]) == 21
        assert ("/reservations", {"date": BOOKING_DATE, "barberId": "b1"}) in fake_backend.queries

    def test_slots_for_any_barber(self, client, fake_backend):
        # Two active barbers; the inactive one does not add capacity
        fake_backend.add_reservation("10:00", barber_id="b1")
        fake_backend.add_reservation("10:00", barber_id="b2")
        fake_backend.add_reservation("11:00", barber_id="b1")

        data = client.get("/availability/slots", params={"date": BOOKING_DATE}).json()

        assert "10:00" not in data["slots"]
        assert "11:00" in data["slots"]
        assert len(data["slots"]) == 20

    def test_missing_date_returns_no_slots(self, client, fake_backend):
        data = client.get("/availability/slots").json()
        assert data["slots"] == []
        assert fake_backend.calls == []

    def test_invalid_date(self, client):
        response = client.get("/availability/slots", params={"date": "20-10-2026"})
        assert response.status_code == 422

    def test_bookable_dates(self, client):
        data = client.get("/availability/dates", params={"days": 3}).json()
        assert len(data) == 3
        for entry in data:
            assert entry["label"] == format_date(entry["date"])
