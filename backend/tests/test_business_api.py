from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from conftest import NOW, auth_headers, make_business, make_service
from marketplace import models

SERVICE = {"name": "Full Valet", "price": 120.0, "duration": 60}
CAR = {
    "title": "2016 Toyota Corolla",
    "make": "Toyota",
    "model": "Corolla",
    "year": 2016,
    "price": 85000,
    "mileage": 120000,
}


class TestRegistration:
    def test_register_opens_trial(self, client, owner):
        res = client.post(
            "/business",
            json={"name": "Sparkle Clean", "city": "Gaborone"},
            headers=auth_headers(owner),
        )
        assert res.status_code == 201
        body = res.json()
        assert body["verification_status"] == "pending"
        assert body["subscription_plan"] == "None"
        assert body["subscription_status"] == "inactive"
        assert body["trial_start_date"].startswith("2025-06-01T12:00:00")
        assert body["trial_end_date"].startswith("2025-06-08T12:00:00")

    def test_second_registration_conflicts(self, client, owner):
        headers = auth_headers(owner)
        client.post("/business", json={"name": "Sparkle Clean"}, headers=headers)
        res = client.post("/business", json={"name": "Another"}, headers=headers)
        assert res.status_code == 409

    def test_me_without_business(self, client, owner):
        res = client.get("/business/me", headers=auth_headers(owner))
        assert res.status_code == 404
        assert res.json()["detail"]["code"] == "BUSINESS_NOT_REGISTERED"

    def test_customer_cannot_register(self, client, customer):
        res = client.post("/business", json={"name": "Nope"}, headers=auth_headers(customer))
        assert res.status_code == 403


class TestAccessEndpoint:
    def test_new_business_is_locked_until_verified(self, client, owner):
        headers = auth_headers(owner)
        client.post("/business", json={"name": "Sparkle Clean"}, headers=headers)
        body = client.get("/business/access", headers=headers).json()
        assert body["verified"] is False
        assert body["trial_active"] is True
        assert body["has_booking_access"] is False
        assert body["trial_days_remaining"] == 7
        assert body["lock_reason"] == "not_verified"

    def test_verified_trial(self, client, db, owner):
        make_business(db, owner)
        body = client.get("/business/access", headers=auth_headers(owner)).json()
        assert body["has_booking_access"] is True
        assert body["can_list_vehicles"] is True
        assert body["trial_days_remaining"] == 6


class TestServices:
    def test_unverified_cannot_publish(self, client, db, owner):
        make_business(db, owner, verification_status="pending")
        res = client.post("/business/services", json=SERVICE, headers=auth_headers(owner))
        assert res.status_code == 403
        detail = res.json()["detail"]
        assert detail["code"] == "BUSINESS_NOT_VERIFIED"
        assert detail["feature"] == "services"

    def test_expired_trial_needs_subscription(self, client, db, owner):
        make_business(db, owner, trial_end_date=NOW - timedelta(seconds=1))
        res = client.post("/business/services", json=SERVICE, headers=auth_headers(owner))
        assert res.status_code == 403
        detail = res.json()["detail"]
        assert detail["code"] == "SUBSCRIPTION_REQUIRED"
        assert detail["trial_expires_at"].startswith("2025-06-01T11:59:59")

    def test_publish_and_list(self, client, db, owner):
        make_business(db, owner)
        headers = auth_headers(owner)
        res = client.post("/business/services", json=SERVICE, headers=headers)
        assert res.status_code == 201
        listed = client.get("/business/services", headers=headers).json()
        assert [s["name"] for s in listed] == ["Full Valet"]

    def test_listing_stays_readable_after_lapse(self, client, db, owner):
        business = make_business(db, owner, trial_end_date=NOW - timedelta(days=1))
        make_service(db, business)
        res = client.get("/business/services", headers=auth_headers(owner))
        assert res.status_code == 200
        assert len(res.json()) == 1

    def test_delete_blocked_by_open_booking(self, client, db, owner, customer):
        business = make_business(db, owner)
        service = make_service(db, business)
        db.add(models.Booking(
            customer_id=customer.id,
            business_id=business.id,
            service_id=service.id,
            booking_time=NOW + timedelta(days=1),
            price=service.price,
        ))
        db.commit()
        res = client.delete(f"/business/services/{service.id}", headers=auth_headers(owner))
        assert res.status_code == 409

    def test_delete(self, client, db, owner):
        service = make_service(db, make_business(db, owner))
        res = client.delete(f"/business/services/{service.id}", headers=auth_headers(owner))
        assert res.status_code == 204

    def test_starter_mobile_business_needs_upgrade(self, client, db, owner):
        make_business(
            db,
            owner,
            type="mobile",
            subscription_plan="Starter",
            subscription_status="active",
            trial_end_date=NOW - timedelta(days=1),
        )
        res = client.post("/business/services", json=SERVICE, headers=auth_headers(owner))
        assert res.status_code == 403
        detail = res.json()["detail"]
        assert detail["code"] == "PLAN_UPGRADE_REQUIRED"
        assert detail["feature"] == "mobile_service"

    def test_starter_station_business_publishes(self, client, db, owner):
        make_business(db, owner, subscription_plan="Starter", subscription_status="active")
        assert client.post("/business/services", json=SERVICE, headers=auth_headers(owner)).status_code == 201

    def test_pro_mobile_business_publishes(self, client, db, owner):
        make_business(db, owner, type="mobile", subscription_plan="Pro", subscription_status="active")
        assert client.post("/business/services", json=SERVICE, headers=auth_headers(owner)).status_code == 201

    def test_failed_commit_rolls_back(self, client, db, owner, monkeypatch):
        make_business(db, owner)
        headers = auth_headers(owner)
        rollbacks = []
        real_rollback = Session.rollback

        def failing_commit(session):
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        def recording_rollback(session):
            rollbacks.append(session)
            return real_rollback(session)

        monkeypatch.setattr(Session, "commit", failing_commit)
        monkeypatch.setattr(Session, "rollback", recording_rollback)

        with pytest.raises(OperationalError):
            client.post("/business/services", json=SERVICE, headers=headers)
        assert len(rollbacks) == 1

        monkeypatch.undo()
        assert client.get("/business/services", headers=headers).json() == []


class TestProfileUpdate:
    def test_update_contact_details(self, client, db, owner):
        make_business(db, owner)
        res = client.patch(
            "/business/me",
            json={"city": " Maun ", "whatsapp_number": "+267 71 234 567"},
            headers=auth_headers(owner),
        )
        assert res.status_code == 200
        assert res.json()["city"] == "Maun"
        assert res.json()["name"] == "Sparkle Clean Station"

    def test_starter_cannot_switch_to_mobile(self, client, db, owner):
        make_business(db, owner, subscription_plan="Starter", subscription_status="active")
        res = client.patch("/business/me", json={"type": "mobile"}, headers=auth_headers(owner))
        assert res.status_code == 403
        assert res.json()["detail"]["code"] == "PLAN_UPGRADE_REQUIRED"

    def test_enterprise_switches_to_mobile(self, client, db, owner):
        make_business(db, owner, subscription_plan="Enterprise", subscription_status="active")
        res = client.patch("/business/me", json={"type": "mobile"}, headers=auth_headers(owner))
        assert res.status_code == 200
        assert res.json()["type"] == "mobile"


class TestCarListings:
    def test_starter_needs_upgrade(self, client, db, owner):
        make_business(db, owner, subscription_plan="Starter", subscription_status="active")
        res = client.post("/business/cars", json=CAR, headers=auth_headers(owner))
        assert res.status_code == 403
        assert res.json()["detail"]["code"] == "PLAN_UPGRADE_REQUIRED"

    def test_pro_can_list(self, client, db, owner):
        make_business(db, owner, subscription_plan="Pro", subscription_status="active")
        res = client.post("/business/cars", json=CAR, headers=auth_headers(owner))
        assert res.status_code == 201
        assert res.json()["status"] == "available"

    def test_mark_sold_after_lapse(self, client, db, owner):
        business = make_business(db, owner, trial_end_date=NOW - timedelta(days=1))
        listing = models.CarListing(business_id=business.id, **CAR)
        db.add(listing)
        db.commit()
        res = client.patch(
            f"/business/cars/{listing.id}/status",
            json={"status": "sold"},
            headers=auth_headers(owner),
        )
        assert res.status_code == 200
        assert res.json()["status"] == "sold"


class TestBookingQueue:
    def _booking(self, db, business, customer, status="requested"):
        service = make_service(db, business)
        booking = models.Booking(
            customer_id=customer.id,
            business_id=business.id,
            service_id=service.id,
            booking_time=NOW + timedelta(days=1),
            price=service.price,
            status=status,
        )
        db.add(booking)
        db.commit()
        return booking

    def test_accept_then_complete(self, client, db, owner, customer):
        booking = self._booking(db, make_business(db, owner), customer)
        headers = auth_headers(owner)
        assert client.post(f"/business/bookings/{booking.id}/accept", headers=headers).json()["status"] == "accepted"
        assert client.post(f"/business/bookings/{booking.id}/complete", headers=headers).json()["status"] == "completed"

    def test_accept_requires_access(self, client, db, owner, customer):
        business = make_business(db, owner, trial_end_date=NOW - timedelta(days=1))
        booking = self._booking(db, business, customer)
        res = client.post(f"/business/bookings/{booking.id}/accept", headers=auth_headers(owner))
        assert res.status_code == 403
        assert res.json()["detail"]["code"] == "SUBSCRIPTION_REQUIRED"

    def test_reject_allowed_after_lapse(self, client, db, owner, customer):
        business = make_business(db, owner, trial_end_date=NOW - timedelta(days=1))
        booking = self._booking(db, business, customer)
        res = client.post(f"/business/bookings/{booking.id}/reject", headers=auth_headers(owner))
        assert res.status_code == 200
        assert res.json()["status"] == "rejected"

    def test_cannot_complete_requested(self, client, db, owner, customer):
        booking = self._booking(db, make_business(db, owner), customer)
        res = client.post(f"/business/bookings/{booking.id}/complete", headers=auth_headers(owner))
        assert res.status_code == 409

    def test_filter_by_status(self, client, db, owner, customer):
        business = make_business(db, owner)
        self._booking(db, business, customer, status="accepted")
        res = client.get("/business/bookings?status_filter=requested", headers=auth_headers(owner))
        assert res.json() == []
