import pytest

NEW_DOCTOR = {
    "first_name": "Esther",
    "last_name": "Lukusa",
    "phone": "+243822223333",
    "email": "esther@mbote.example.com",
    "specialization": "dermatology",
    "license_number": "LIC-0042",
    "consultation_fee": 30,
    "languages": ["fr", "sw"],
    "city": "Lubumbashi",
}

@pytest.mark.asyncio
async def test_admin_creates_a_doctor(client, admin, gateway):
    response = await client.post("/api/v1/doctors", json=NEW_DOCTOR, headers=admin.headers)

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["first_name"] == "Esther"
    assert data["specialization"] == "dermatology"
    assert data["languages"] == ["fr", "sw"]
    assert data["is_verified"] is False
    assert gateway.sms[0][0] == NEW_DOCTOR["phone"]
    assert "Dr. Esther Lukusa" in gateway.sms[0][1]

    response = await client.get(f"/api/v1/doctors/{data['id']}")
    assert response.status_code == 200
    assert response.json()["license_number"] == "LIC-0042"

@pytest.mark.asyncio
async def test_only_admins_create_doctors(client, doctor, patient):
    for actor in (doctor, patient):
        response = await client.post("/api/v1/doctors", json=NEW_DOCTOR, headers=actor.headers)
        assert response.status_code == 403

@pytest.mark.asyncio
@pytest.mark.parametrize("field, value", [("phone", "+243800000002"), ("license_number", "LIC-0001")])
async def test_duplicate_doctor_is_a_conflict(client, admin, doctor, field, value):
    response = await client.post("/api/v1/doctors", json={**NEW_DOCTOR, field: value}, headers=admin.headers)

    assert response.status_code == 409

@pytest.mark.asyncio
async def test_negative_fee_is_rejected(client, admin):
    response = await client.post("/api/v1/doctors", json={**NEW_DOCTOR, "consultation_fee": -1}, headers=admin.headers)

    assert response.status_code == 422

@pytest.mark.asyncio
async def test_list_doctors_by_specialization(client, doctor, other_doctor):
    response = await client.get("/api/v1/doctors", params={"specialization": "pediatrics"})

    assert response.status_code == 200
    assert [d["id"] for d in response.json()] == [str(other_doctor.profile.id)]

    response = await client.get("/api/v1/doctors", params={"search": "mbu"})
    assert [d["last_name"] for d in response.json()] == ["Mbuyi"]

    response = await client.get("/api/v1/doctors")
    assert len(response.json()) == 2

@pytest.mark.asyncio
async def test_unknown_doctor_is_not_found(client):
    response = await client.get("/api/v1/doctors/00000000-0000-0000-0000-000000000000")

    assert response.status_code == 404
    assert response.json() == {"detail": "Doctor not found"}

@pytest.mark.asyncio
async def test_admin_approves_a_doctor(client, admin, doctor, gateway):
    url = f"/api/v1/doctors/{doctor.profile.id}/approve"

    assert (await client.post(url, headers=doctor.headers)).status_code == 403

    response = await client.post(url, headers=admin.headers)
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["registration_status"] == "approved"
    assert data["is_verified"] is True
    assert gateway.sms == [(doctor.user.phone, "Your Mbote doctor account was approved.")]

    assert (await client.post(url, headers=admin.headers)).status_code == 409

    response = await client.get("/api/v1/doctors", params={"registration_status": "approved"})
    assert [d["id"] for d in response.json()] == [str(doctor.profile.id)]

@pytest.mark.asyncio
async def test_admin_rejects_a_pending_doctor(client, admin, doctor, other_doctor, gateway):
    url = f"/api/v1/doctors/{doctor.profile.id}/reject"

    response = await client.post(url, json={"reason": "License could not be verified"}, headers=admin.headers)

    assert response.status_code == 200
    assert response.json()["registration_status"] == "rejected"
    assert response.json()["rejection_reason"] == "License could not be verified"
    assert "License could not be verified" in gateway.sms[0][1]

    # An approved doctor cannot be rejected afterwards
    await client.post(f"/api/v1/doctors/{other_doctor.profile.id}/approve", headers=admin.headers)
    response = await client.post(
        f"/api/v1/doctors/{other_doctor.profile.id}/reject", json={"reason": "Too late"}, headers=admin.headers
    )
    assert response.status_code == 409

    # A rejected registration can still be approved
    response = await client.post(f"/api/v1/doctors/{doctor.profile.id}/approve", headers=admin.headers)
    assert response.json()["registration_status"] == "approved"
    assert response.json()["rejection_reason"] is None

@pytest.mark.asyncio
async def test_reject_needs_a_reason(client, admin, doctor):
    response = await client.post(f"/api/v1/doctors/{doctor.profile.id}/reject", json={"reason": ""}, headers=admin.headers)

    assert response.status_code == 422
