from datetime import timedelta

from sqlalchemy import select

from conftest import NOW, auth_headers, make_business, make_user
from marketplace import models


def staff(n):
    return {"name": f"Kagiso Molefe {n}", "phone": "+267 7123 4567", "id_reference": f"OM-{1000 + n}"}


def seed_employees(db, business, count):
    for n in range(count):
        db.add(models.Employee(business_id=business.id, **staff(n)))
    db.commit()


def register(client, owner, n=99):
    return client.post("/business/employees", json=staff(n), headers=auth_headers(owner))


class TestRegisterEmployee:
    def test_register_and_list(self, client, db, owner):
        business = make_business(db, owner)
        res = register(client, owner, n=1)
        assert res.status_code == 201
        assert res.json()["business_id"] == business.id
        assert res.json()["id_reference"] == "OM-1001"

        listed = client.get("/business/employees", headers=auth_headers(owner)).json()
        assert [e["name"] for e in listed] == ["Kagiso Molefe 1"]

    def test_starter_limit(self, client, db, owner):
        business = make_business(db, owner, subscription_plan="Starter", subscription_status="active")
        seed_employees(db, business, 3)
        res = register(client, owner)
        assert res.status_code == 403
        detail = res.json()["detail"]
        assert detail["code"] == "EMPLOYEE_LIMIT_REACHED"
        assert detail["feature"] == "employees"

    def test_trial_uses_starter_cap(self, client, db, owner):
        business = make_business(db, owner)
        seed_employees(db, business, 2)
        assert register(client, owner, n=2).status_code == 201
        assert register(client, owner, n=3).status_code == 403

    def test_pro_allows_ten(self, client, db, owner):
        business = make_business(db, owner, subscription_plan="Pro", subscription_status="active")
        seed_employees(db, business, 9)
        assert register(client, owner).status_code == 201
        assert register(client, owner, n=100).status_code == 403

    def test_enterprise_unlimited(self, client, db, owner):
        business = make_business(db, owner, subscription_plan="Enterprise", subscription_status="active")
        seed_employees(db, business, 25)
        assert register(client, owner).status_code == 201

    def test_expired_trial_needs_subscription(self, client, db, owner):
        make_business(db, owner, trial_end_date=NOW - timedelta(days=1))
        res = register(client, owner)
        assert res.status_code == 403
        assert res.json()["detail"]["code"] == "SUBSCRIPTION_REQUIRED"

    def test_unverified_blocked(self, client, db, owner):
        make_business(db, owner, verification_status="pending")
        res = register(client, owner)
        assert res.json()["detail"]["code"] == "BUSINESS_NOT_VERIFIED"

    def test_browser_sent_to_subscription_page(self, client, db, owner):
        business = make_business(db, owner, subscription_plan="Starter", subscription_status="active")
        seed_employees(db, business, 3)
        res = client.post(
            "/business/employees",
            json=staff(7),
            headers={**auth_headers(owner), "Accept": "text/html"},
            follow_redirects=False,
        )
        assert res.status_code == 303
        assert res.headers["location"] == "/business/subscription"

    def test_short_id_reference_rejected(self, client, db, owner):
        make_business(db, owner)
        payload = {**staff(1), "id_reference": "OM"}
        res = client.post("/business/employees", json=payload, headers=auth_headers(owner))
        assert res.status_code == 422


class TestRemoveEmployee:
    def test_remove_frees_a_slot(self, client, db, owner):
        business = make_business(db, owner, subscription_plan="Starter", subscription_status="active")
        seed_employees(db, business, 3)
        headers = auth_headers(owner)
        first = client.get("/business/employees", headers=headers).json()[0]

        assert client.delete(f"/business/employees/{first['id']}", headers=headers).status_code == 204
        assert register(client, owner).status_code == 201

    def test_other_business_employee_is_404(self, client, db, owner):
        other = make_business(db, make_user(db, "business-owner", "other@example.com"), name="Other Wash")
        seed_employees(db, other, 1)
        make_business(db, owner)
        employee_id = db.scalars(select(models.Employee.id)).first()
        res = client.delete(f"/business/employees/{employee_id}", headers=auth_headers(owner))
        assert res.status_code == 404

    def test_customer_forbidden(self, client, customer):
        assert client.get("/business/employees", headers=auth_headers(customer)).status_code == 403
