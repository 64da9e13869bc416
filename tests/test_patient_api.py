import pytest

@pytest.mark.asyncio
async def test_patient_completes_their_profile(client, patient):
    response = await client.put(
        "/api/v1/patients/profile",
        json={"date_of_birth": "1990-04-12", "address": "12 Avenue du Commerce, Kinshasa", "last_name": "Ilunga-Kasa"},
        headers=patient.headers,
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["role"] == "patient"
    assert data["last_name"] == "Ilunga-Kasa"
    assert data["first_name"] == "Jean"
    assert data["profile"]["date_of_birth"] == "1990-04-12"
    assert data["profile"]["address"] == "12 Avenue du Commerce, Kinshasa"
    # Untouched fields keep their value
    assert data["profile"]["gender"] == "M"

    me = await client.get("/api/v1/auth/me", headers=patient.headers)
    assert me.json()["last_name"] == "Ilunga-Kasa"

@pytest.mark.asyncio
async def test_only_patients_use_the_profile_route(client, doctor):
    response = await client.put("/api/v1/patients/profile", json={"address": "Goma"}, headers=doctor.headers)

    assert response.status_code == 403

@pytest.mark.asyncio
async def test_patient_details_are_private(client, patient, other_patient, admin):
    url = f"/api/v1/patients/{patient.profile.id}"

    for actor in (patient, admin):
        response = await client.get(url, headers=actor.headers)
        assert response.status_code == 200
        assert response.json()["profile"]["id"] == str(patient.profile.id)

    assert (await client.get(url, headers=other_patient.headers)).status_code == 403
    assert (await client.put(url, json={"address": "Goma"}, headers=other_patient.headers)).status_code == 403
    assert (await client.get("/api/v1/patients/00000000-0000-0000-0000-000000000000", headers=admin.headers)).status_code == 404

@pytest.mark.asyncio
async def test_admin_updates_a_patient(client, patient, admin):
    response = await client.put(
        f"/api/v1/patients/{patient.profile.id}", json={"gender": "A", "email": "jean.ilunga@example.org"}, headers=admin.headers
    )

    assert response.status_code == 200
    assert response.json()["email"] == "jean.ilunga@example.org"
    assert response.json()["profile"]["gender"] == "A"

@pytest.mark.asyncio
async def test_invalid_gender_is_rejected(client, patient):
    response = await client.put("/api/v1/patients/profile", json={"gender": "X"}, headers=patient.headers)

    assert response.status_code == 422

@pytest.mark.asyncio
async def test_admin_deactivates_a_patient(client, patient, admin):
    url = f"/api/v1/patients/{patient.profile.id}/deactivate"

    assert (await client.put(url, headers=patient.headers)).status_code == 403

    response = await client.put(url, headers=admin.headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    # The open session stops working and no new code can be requested
    assert (await client.get("/api/v1/auth/me", headers=patient.headers)).status_code == 401
    response = await client.post("/api/v1/auth/request-otp", json={"phone": patient.user.phone})
    assert response.status_code == 403
