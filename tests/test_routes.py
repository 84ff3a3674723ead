"""Tests for the HTTP API."""

from conftest import FRIDAY, MONDAY, SATURDAY, TUESDAY, make_appointment


def book(client, day, slot, **overrides):
    return client.post(
        "/appointments",
        json={"date": day.isoformat(), "slot": slot, "appointment": make_appointment(**overrides)},
    )


def identity(**overrides):
    appointment = make_appointment(**overrides)
    appointment.pop("status")
    return appointment


class TestHealthAndGrid:
    """Tests for /health and /grid."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_grid(self, client):
        data = client.get("/grid").json()
        assert len(data["slots"]) == 8
        assert data["periods"]["afternoon"][0] == "13:00-13:30"
        assert data["durations"] == {"30min": 1, "1hour": 2, "2hours": 4}


class TestAppointmentRoutes:
    """Tests for /appointments endpoints."""

    def test_create_appointment(self, client):
        response = book(client, FRIDAY, "13:00-13:30", duration="2hours")

        assert response.status_code == 201
        data = response.json()
        assert data["slots"] == ["13:00-13:30", "13:30-14:00", "14:00-14:30", "14:30-15:00"]
        assert data["appointment"]["status"] == "pending"
        assert "id" in data

    def test_create_conflict(self, client):
        book(client, TUESDAY, "13:30-14:00", dentist="DD", patient="Other")

        response = book(client, TUESDAY, "13:00-13:30", duration="1hour")

        assert response.status_code == 409

    def test_create_weekend(self, client):
        response = book(client, SATURDAY, "09:00-09:30")
        assert response.status_code == 409

    def test_create_duration_does_not_fit(self, client):
        response = book(client, TUESDAY, "14:30-15:00", duration="1hour")
        assert response.status_code == 422

    def test_create_bad_duration(self, client):
        response = book(client, TUESDAY, "09:00-09:30", duration="45min")
        assert response.status_code == 422

    def test_create_restricted_slot_for_staff(self, client):
        response = book(client, MONDAY, "09:00-09:30", dentist="staff")
        assert response.status_code == 409

    def test_update_appointment(self, client):
        book(client, TUESDAY, "09:00-09:30", duration="1hour")

        response = client.patch(
            "/appointments",
            json={
                "date": TUESDAY.isoformat(),
                "slot": "09:00-09:30",
                "original": identity(duration="1hour"),
                "changes": make_appointment(duration="1hour", status="confirmed"),
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert [row["slot"] for row in data] == ["09:00-09:30", "09:30-10:00"]
        assert {row["status"] for row in data} == {"confirmed"}

    def test_partial_update_keeps_other_fields(self, client):
        book(client, TUESDAY, "13:00-13:30", duration="2hours", status="confirmed")

        response = client.patch(
            "/appointments",
            json={
                "date": TUESDAY.isoformat(),
                "slot": "13:00-13:30",
                "original": identity(duration="2hours"),
                "changes": {"phone": "0899999999"},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert [row["slot"] for row in data] == [
            "13:00-13:30",
            "13:30-14:00",
            "14:00-14:30",
            "14:30-15:00",
        ]
        assert {(row["phone"], row["duration"], row["status"]) for row in data} == {
            ("0899999999", "2hours", "confirmed")
        }

    def test_cancel_requires_duration(self, client):
        book(client, TUESDAY, "13:00-13:30", duration="2hours")
        appointment = identity()
        del appointment["duration"]

        response = client.post(
            "/appointments/cancel",
            json={"date": TUESDAY.isoformat(), "slot": "13:00-13:30", "appointment": appointment},
        )

        assert response.status_code == 422
        assert len(client.get(f"/days/{TUESDAY.isoformat()}").json()["appointments"]) == 4

    def test_update_not_found(self, client):
        response = client.patch(
            "/appointments",
            json={
                "date": TUESDAY.isoformat(),
                "slot": "09:00-09:30",
                "original": identity(),
                "changes": make_appointment(status="confirmed"),
            },
        )
        assert response.status_code == 404

    def test_cancel_twice(self, client):
        book(client, TUESDAY, "13:00-13:30", duration="1hour")
        body = {
            "date": TUESDAY.isoformat(),
            "slot": "13:00-13:30",
            "appointment": identity(duration="1hour"),
        }

        first = client.post("/appointments/cancel", json=body)
        second = client.post("/appointments/cancel", json=body)

        assert first.status_code == 200
        assert first.json() == {"removed": 2, "rebooked": None}
        assert second.status_code == 404

    def test_cancel_with_rebook(self, client):
        book(client, MONDAY, "13:00-13:30")

        response = client.post(
            "/appointments/cancel",
            json={
                "date": MONDAY.isoformat(),
                "slot": "13:00-13:30",
                "appointment": identity(),
                "rebook": True,
            },
        )

        assert response.status_code == 200
        rebooked = response.json()["rebooked"]
        assert rebooked["date"] == TUESDAY.isoformat()
        assert rebooked["slot"] == "09:00-09:30"

    def test_day_view(self, client):
        book(client, TUESDAY, "13:00-13:30", duration="1hour")
        client.post("/leave", json={"date": TUESDAY.isoformat(), "dentist": "DT"})
        client.post(
            "/meetings", json={"date": TUESDAY.isoformat(), "dentist": "DD", "period": "morning"}
        )

        data = client.get(f"/days/{TUESDAY.isoformat()}").json()

        assert sorted(data["appointments"]) == ["13:00-13:30", "13:30-14:00"]
        assert data["appointments"]["13:30-14:00"][0]["patient"] == "Somchai"
        assert data["leave"] == ["DT"]
        assert data["meetings"][0]["period"] == "morning"


class TestAvailabilityRoutes:
    """Tests for /availability endpoints."""

    def test_availability_after_booking(self, client):
        book(client, FRIDAY, "13:00-13:30", duration="2hours")

        response = client.get(
            "/availability",
            params={"date": FRIDAY.isoformat(), "duration": "30min", "dentist": "DD"},
        )

        assert response.status_code == 200
        assert response.json()["available_slots"] == [
            "09:00-09:30",
            "09:30-10:00",
            "10:00-10:30",
            "10:30-11:00",
        ]

    def test_availability_explicit_slot(self, client):
        response = client.get(
            "/availability",
            params={
                "date": TUESDAY.isoformat(),
                "duration": "1hour",
                "dentist": "DC",
                "slot": "10:00-10:30",
            },
        )
        assert response.json()["available_slots"] == ["10:00-10:30"]

    def test_availability_explicit_slot_does_not_fit(self, client):
        response = client.get(
            "/availability",
            params={
                "date": TUESDAY.isoformat(),
                "duration": "2hours",
                "dentist": "DC",
                "slot": "10:00-10:30",
            },
        )
        assert response.status_code == 422

    def test_availability_with_meeting(self, client):
        client.post(
            "/meetings", json={"date": MONDAY.isoformat(), "dentist": "DD", "period": "morning"}
        )

        morning = client.get(
            "/availability",
            params={"date": MONDAY.isoformat(), "duration": "30min", "dentist": "DD", "period": "morning"},
        ).json()
        afternoon = client.get(
            "/availability",
            params={"date": MONDAY.isoformat(), "duration": "30min", "dentist": "DD", "period": "afternoon"},
        ).json()

        assert morning["available_slots"] == []
        assert len(afternoon["available_slots"]) == 4

    def test_next_opening(self, client):
        client.post("/leave", json={"date": MONDAY.isoformat(), "dentist": "DC"})

        response = client.get(
            "/availability/next",
            params={"dentist": "DC", "duration": "2hours", "start": MONDAY.isoformat()},
        )

        assert response.json() == {
            "dentist": "DC",
            "duration": "2hours",
            "found": True,
            "date": TUESDAY.isoformat(),
            "slot": "09:00-09:30",
        }

    def test_next_opening_from_weekend_start(self, client):
        response = client.get(
            "/availability/next",
            params={"dentist": "DC", "duration": "2hours", "start": SATURDAY.isoformat()},
        )
        data = response.json()
        assert data["date"] == "2025-03-17"
        assert data["slot"] == "09:00-09:30"

    def test_next_opening_with_delay(self, client):
        response = client.get(
            "/availability/next",
            params={
                "dentist": "DC",
                "duration": "30min",
                "start": MONDAY.isoformat(),
                "delay_days": 5,
                "period": "afternoon",
            },
        )
        data = response.json()
        assert data["date"] == "2025-03-17"
        assert data["slot"] == "13:00-13:30"


class TestScheduleRoutes:
    """Tests for /leave and /meetings endpoints."""

    def test_leave_round_trip(self, client):
        created = client.post("/leave", json={"date": TUESDAY.isoformat(), "dentist": "DC"})
        assert created.status_code == 201

        listed = client.get("/leave", params={"on_date": TUESDAY.isoformat()}).json()
        assert [row["dentist"] for row in listed] == ["DC"]

        deleted = client.delete("/leave", params={"on_date": TUESDAY.isoformat(), "dentist": "DC"})
        assert deleted.status_code == 204
        assert client.get("/leave").json() == []

    def test_leave_requires_dentist(self, client):
        response = client.post("/leave", json={"date": TUESDAY.isoformat(), "dentist": ""})
        assert response.status_code == 422

    def test_remove_missing_leave(self, client):
        response = client.delete("/leave", params={"on_date": TUESDAY.isoformat(), "dentist": "DC"})
        assert response.status_code == 404

    def test_meeting_round_trip(self, client):
        client.post(
            "/meetings", json={"date": TUESDAY.isoformat(), "dentist": "DD", "period": "afternoon"}
        )

        deleted = client.delete(
            "/meetings", params={"on_date": TUESDAY.isoformat(), "dentist": "DD", "index": 0}
        )

        assert deleted.status_code == 204
        assert client.get("/meetings").json() == []

    def test_meeting_bad_period(self, client):
        response = client.post(
            "/meetings", json={"date": TUESDAY.isoformat(), "dentist": "DD", "period": "evening"}
        )
        assert response.status_code == 422


class TestDentistRoutes:
    """Tests for /dentists endpoints."""

    def test_upsert_list_remove(self, client):
        response = client.put("/dentists/DX", json={"color": "#abcdef"})
        assert response.status_code == 200
        assert response.json() == {"name": "DX", "color": "#abcdef"}

        assert client.get("/dentists").json() == {"DX": "#abcdef"}

        assert client.delete("/dentists/DX").status_code == 204
        assert client.delete("/dentists/DX").status_code == 404

    def test_bad_color(self, client):
        response = client.put("/dentists/DX", json={"color": "red"})
        assert response.status_code == 422


class TestMaintenanceRoutes:
    """Tests for /maintenance/sweep."""

    def test_sweep_with_cutoff(self, client):
        book(client, TUESDAY, "09:00-09:30")

        response = client.post("/maintenance/sweep", params={"cutoff": FRIDAY.isoformat()})

        assert response.status_code == 200
        assert response.json()["deleted"]["appointments"] == 1
        assert client.get(f"/days/{TUESDAY.isoformat()}").json()["appointments"] == {}
