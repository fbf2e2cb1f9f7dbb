from decimal import Decimal


def _create_customer(client):
    r = client.post("/customers", json={"full_name": "Mariam Hassan", "phone": "(974) 5551-2345"})
    assert r.status_code == 201, r.text
    return r.json()


def _create_vehicle(client, plate="abc-123"):
    r = client.post("/vehicles", json={"make": "Toyota", "model": "Camry", "year": 2022, "license_plate": plate})
    assert r.status_code == 201, r.text
    return r.json()


def _create_lease(client, **overrides):
    customer = _create_customer(client)
    body = {
        "customer_id": customer["id"],
        "start_date": "2023-01-01",
        "end_date": "2023-04-01",
        "rent_amount": "500",
        "total_amount": "1300",
        "daily_late_fee": "100",
    }
    body.update(overrides)
    r = client.post("/leases", json=body)
    assert r.status_code == 201, r.text
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True


def test_routes_require_a_token():
    from fastapi.testclient import TestClient
    from fleet_api.main import app

    r = TestClient(app).get("/leases")
    assert r.status_code == 401


def test_customer_phone_is_normalized(client):
    customer = _create_customer(client)
    assert customer["phone"] == "97455512345"

    r = client.get("/customers", params={"q": "Mariam"})
    assert [c["id"] for c in r.json()] == [customer["id"]]


def test_duplicate_plate_is_rejected(client):
    _create_vehicle(client)
    r = client.post("/vehicles", json={"make": "Kia", "model": "Rio", "year": 2021, "license_plate": "ABC 123"})
    assert r.status_code == 409


def test_create_lease_returns_duration(client):
    lease = _create_lease(client)

    assert lease["agreement_number"].startswith("AGR-")
    assert lease["status"] == "DRAFT"
    assert lease["duration"] == "3 months"


def test_lease_without_end_date_has_no_duration(client):
    lease = _create_lease(client, end_date=None)
    assert lease["duration"] == "N/A"


def test_lease_rejects_end_before_start(client):
    customer = _create_customer(client)
    r = client.post("/leases", json={
        "customer_id": customer["id"],
        "start_date": "2023-05-01",
        "end_date": "2023-01-01",
        "rent_amount": "500",
    })
    assert r.status_code == 422


def test_lease_rejects_unknown_customer(client):
    r = client.post("/leases", json={"customer_id": 999, "start_date": "2023-05-01", "rent_amount": "500"})
    assert r.status_code == 400


def test_schedule_endpoint(client):
    lease = _create_lease(client)

    r = client.get(f"/leases/{lease['id']}/schedule")
    assert r.status_code == 200
    data = r.json()

    assert [i["due_date"] for i in data["installments"]] == ["2023-01-01", "2023-02-01", "2023-03-01"]
    assert [Decimal(i["amount"]) for i in data["installments"]] == [Decimal("500"), Decimal("500"), Decimal("300")]
    assert Decimal(data["total"]) == Decimal("1300")


def test_activation_rents_the_vehicle_and_closing_frees_it(client):
    vehicle = _create_vehicle(client)
    lease = _create_lease(client, vehicle_id=vehicle["id"])

    r = client.patch(f"/leases/{lease['id']}/status", json={"status": "ACTIVE"})
    assert r.status_code == 200
    assert client.get(f"/vehicles/{vehicle['id']}").json()["status"] == "RENTED"

    r = client.patch(f"/leases/{lease['id']}/status", json={"status": "CLOSED"})
    assert r.status_code == 200
    assert client.get(f"/vehicles/{vehicle['id']}").json()["status"] == "AVAILABLE"

    r = client.patch(f"/leases/{lease['id']}/status", json={"status": "ACTIVE"})
    assert r.status_code == 400


def test_list_leases_filters_by_status(client):
    lease = _create_lease(client)
    client.patch(f"/leases/{lease['id']}/status", json={"status": "ACTIVE"})
    _create_lease(client)

    r = client.get("/leases", params={"status": "active"})
    assert r.status_code == 200
    assert r.json()["total"] == 1
    assert r.json()["items"][0]["id"] == lease["id"]


def test_generate_and_pay_scheduled_rent_late(client):
    lease = _create_lease(client)

    r = client.post(f"/leases/{lease['id']}/payments/generate")
    assert r.status_code == 201
    rows = r.json()
    assert len(rows) == 3

    r = client.post(f"/leases/{lease['id']}/payments/generate")
    assert r.json() == []

    feb = rows[1]
    r = client.post("/payments", json={
        "lease_id": lease["id"],
        "amount": "500",
        "payment_date": "2023-02-06",
        "payment_method": "Cash",
        "include_late_fee": True,
        "target_payment_id": feb["id"],
    })
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["late_fee_recorded"] is True
    assert body["payment"]["status"] == "COMPLETED"
    assert body["payment"]["days_overdue"] == 5
    assert Decimal(body["payment"]["late_fine_amount"]) == Decimal("500")

    fees = client.get("/payments", params={"lease_id": lease["id"], "type": "LATE_PAYMENT_FEE"}).json()
    assert len(fees) == 1
    assert fees[0]["description"] == "Late payment fee for February 2023 (5 days late)"
    assert fees[0]["original_due_date"] == "2023-02-01"

    stats = client.get(f"/payments/statistics/{lease['id']}").json()
    assert Decimal(stats["total_paid"]) == Decimal("1000")
    assert Decimal(stats["total_late"]) == Decimal("500")
    assert Decimal(stats["total_due"]) == Decimal("800")


def test_late_fee_quote(client):
    lease = _create_lease(client)

    r = client.post("/payments/late-fee-quote", json={"lease_id": lease["id"], "payment_date": "2023-03-04"})
    assert r.status_code == 200
    assert r.json()["days_late"] == 3
    assert Decimal(r.json()["amount"]) == Decimal("300")


def test_payment_for_unknown_lease_is_404(client):
    r = client.post("/payments", json={"lease_id": 999, "amount": "10", "payment_date": "2023-03-04"})
    assert r.status_code == 404


def test_cancel_scheduled_payment(client):
    lease = _create_lease(client)
    rows = client.post(f"/leases/{lease['id']}/payments/generate").json()

    r = client.post(f"/payments/{rows[2]['id']}/cancel")
    assert r.status_code == 200
    assert r.json()["status"] == "CANCELED"

    assert client.post("/payments/999/cancel").status_code == 404


def test_login_issues_a_usable_token(db):
    from fastapi.testclient import TestClient
    from fleet_api.infra.models import UserORM, UserRole
    from fleet_api.main import app
    from fleet_api.services.security import hash_password

    db.add(UserORM(name="Staff", email="staff@example.com", password_hash=hash_password("s3cret-pass"), role=UserRole.STAFF))
    db.commit()

    raw = TestClient(app)
    assert raw.post("/auth/login", json={"email": "staff@example.com", "password": "nope"}).status_code == 401

    r = raw.post("/auth/login", json={"email": " Staff@Example.com ", "password": "s3cret-pass"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = raw.get("/leases", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["total"] == 0


def test_staff_cannot_run_admin_actions(staff_client):
    lease = _create_lease(staff_client)

    assert staff_client.get(f"/leases/{lease['id']}").status_code == 200
    assert staff_client.patch(f"/leases/{lease['id']}/status", json={"status": "ACTIVE"}).status_code == 403
    assert staff_client.post(f"/leases/{lease['id']}/payments/generate").status_code == 403
    assert staff_client.post("/payments/1/cancel").status_code == 403

    r = staff_client.post("/payments", json={"lease_id": lease["id"], "amount": "500", "payment_date": "2023-01-01"})
    assert r.status_code == 201


def test_vehicle_in_maintenance_cannot_be_leased(client):
    vehicle = _create_vehicle(client)

    r = client.patch(f"/vehicles/{vehicle['id']}/status", json={"status": "MAINTENANCE"})
    assert r.status_code == 200
    assert r.json()["status"] == "MAINTENANCE"

    customer = _create_customer(client)
    r = client.post("/leases", json={
        "customer_id": customer["id"],
        "vehicle_id": vehicle["id"],
        "start_date": "2023-01-01",
        "rent_amount": "500",
    })
    assert r.status_code == 400

    r = client.patch(f"/vehicles/{vehicle['id']}/status", json={"status": "AVAILABLE"})
    assert r.json()["status"] == "AVAILABLE"

    lease = _create_lease(client, vehicle_id=vehicle["id"])
    client.patch(f"/leases/{lease['id']}/status", json={"status": "ACTIVE"})

    assert client.patch(f"/vehicles/{vehicle['id']}/status", json={"status": "MAINTENANCE"}).status_code == 400
    assert client.patch(f"/vehicles/{vehicle['id']}/status", json={"status": "RENTED"}).status_code == 422
    assert client.patch("/vehicles/999/status", json={"status": "MAINTENANCE"}).status_code == 404


def test_staff_cannot_change_vehicle_status(staff_client):
    vehicle = _create_vehicle(staff_client)
    r = staff_client.patch(f"/vehicles/{vehicle['id']}/status", json={"status": "MAINTENANCE"})
    assert r.status_code == 403
