"""API tests for /api/appointments."""
import uuid

import pytest

from carebook.modules.scheduling.types import AppointmentStatus
from factories import MONDAY, at


@pytest.fixture
def doctor(schedule_repo):
    return schedule_repo.add_doctor(offers_home_visit=True)


@pytest.fixture
def clinic(schedule_repo):
    return schedule_repo.add_clinic("North Clinic")


def book(client, doctor_id, start="2025-03-03T09:00:00", end="2025-03-03T09:30:00", **extra):
    payload = {
        "patientId": str(uuid.uuid4()),
        "doctorId": str(doctor_id),
        "startTime": start,
        "endTime": end,
        **extra,
    }
    return client.post("/api/appointments", json=payload)


class TestCreate:
    def test_books_and_notifies_doctor(self, client, notifier, doctor, clinic):
        res = book(client, doctor.id, clinicId=str(clinic.id))

        assert res.status_code == 201
        body = res.json()
        assert body["message"] == "appointment_created"
        data = body["data"]
        assert data["status"] == "pending"
        assert data["type"] == "in_clinic"
        assert data["clinicId"] == str(clinic.id)

        channel, event, payload = notifier.events[-1]
        assert channel == f"doctor-{doctor.id}"
        assert event == "new-appointment"
        assert payload["appointment_id"] == data["id"]

    def test_overlap_is_409_with_conflicts(self, client, appointment_repo, notifier, doctor):
        taken = appointment_repo.add(doctor.id, at(MONDAY, "09:00"), at(MONDAY, "09:30"))

        res = book(client, doctor.id, start="2025-03-03T09:15:00", end="2025-03-03T09:45:00")

        assert res.status_code == 409
        detail = res.json()["detail"]
        assert detail["error"] == "appointment_conflict"
        assert [c["id"] for c in detail["conflicts"]] == [str(taken.id)]
        assert detail["conflicts"][0]["startTime"] == "2025-03-03T09:00:00"
        assert notifier.events == []

    def test_back_to_back_booking_is_allowed(self, client, appointment_repo, doctor):
        appointment_repo.add(doctor.id, at(MONDAY, "09:00"), at(MONDAY, "09:30"))

        res = book(client, doctor.id, start="2025-03-03T09:30:00", end="2025-03-03T10:00:00")

        assert res.status_code == 201

    def test_second_identical_booking_conflicts(self, client, doctor):
        assert book(client, doctor.id).status_code == 201
        assert book(client, doctor.id).status_code == 409

    def test_completed_appointment_does_not_block_booking(self, client, appointment_repo, doctor):
        appointment_repo.add(
            doctor.id, at(MONDAY, "09:00"), at(MONDAY, "09:30"), status=AppointmentStatus.COMPLETED
        )
        assert book(client, doctor.id).status_code == 201

    def test_inverted_interval_is_400(self, client, doctor):
        res = book(client, doctor.id, start="2025-03-03T10:00:00", end="2025-03-03T09:00:00")
        assert res.status_code == 400

    def test_unknown_doctor_is_404(self, client):
        res = book(client, uuid.uuid4())
        assert res.status_code == 404
        assert res.json()["detail"] == "doctor_not_found"

    def test_unknown_clinic_is_404(self, client, doctor):
        res = book(client, doctor.id, clinicId=str(uuid.uuid4()))
        assert res.json()["detail"] == "clinic_not_found"

    def test_home_visit_needs_address(self, client, doctor):
        res = book(client, doctor.id, type="home_visit")
        assert res.status_code == 400
        assert res.json()["detail"] == "address_required_for_home_visit"

    def test_home_visit_with_address(self, client, doctor, clinic):
        res = book(client, doctor.id, type="home_visit", address="1 Main St", clinicId=str(clinic.id))

        assert res.status_code == 201
        data = res.json()["data"]
        assert data["address"] == "1 Main St"
        assert data["clinicId"] is None

    def test_tele_consultation_not_offered(self, client, doctor):
        res = book(client, doctor.id, type="tele_consultation")
        assert res.status_code == 400
        assert res.json()["detail"] == "tele_consultation_not_offered"


class TestStatus:
    def test_cancel_frees_the_interval(self, client, notifier, doctor):
        appt_id = book(client, doctor.id).json()["data"]["id"]

        res = client.put(f"/api/appointments/{appt_id}/cancel")

        assert res.status_code == 200
        assert res.json()["data"]["status"] == "cancelled"
        assert notifier.events[-1][1] == "appointment-status-updated"
        assert book(client, doctor.id).status_code == 201

    def test_cancel_twice_is_a_noop(self, client, notifier, doctor):
        appt_id = book(client, doctor.id).json()["data"]["id"]
        client.put(f"/api/appointments/{appt_id}/cancel")
        published = len(notifier.events)

        res = client.put(f"/api/appointments/{appt_id}/cancel")

        assert res.status_code == 200
        assert len(notifier.events) == published

    def test_confirm_then_complete(self, client, doctor):
        appt_id = book(client, doctor.id).json()["data"]["id"]

        for status in ("confirmed", "in_progress", "completed"):
            res = client.put(f"/api/appointments/{appt_id}/status", json={"status": status})
            assert res.status_code == 200
            assert res.json()["data"]["status"] == status

    def test_cancelled_cannot_be_reopened(self, client, doctor):
        appt_id = book(client, doctor.id).json()["data"]["id"]
        client.put(f"/api/appointments/{appt_id}/cancel")

        res = client.put(f"/api/appointments/{appt_id}/status", json={"status": "confirmed"})

        assert res.status_code == 400
        assert res.json()["detail"] == "cannot_change_cancelled_appointment"

    def test_unknown_status_is_422(self, client, doctor):
        appt_id = book(client, doctor.id).json()["data"]["id"]
        res = client.put(f"/api/appointments/{appt_id}/status", json={"status": "lost"})
        assert res.status_code == 422

    def test_unknown_appointment_is_404(self, client):
        assert client.put(f"/api/appointments/{uuid.uuid4()}/cancel").status_code == 404
