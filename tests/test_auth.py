"""Tests for sign-up, login and profile endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from clinic_scheduler.core.security import decode_access_token


@pytest.fixture
def doctor_signup_data() -> dict:
    return {
        "email": "Allison.Cameron@clinic-mail.com",
        "password": "Immunology42",
        "first_name": "Allison",
        "last_name": "Cameron",
        "specialty": "Other",
        "experience_years": 6,
        "city": "Princeton",
        "state": "NJ",
        "contact_number": "+15550111",
        "availability_slots": [
            {
                "day": "Monday",
                "start_time": "9:00",
                "end_time": "12:00",
                "consultation_locations": ["Main clinic"],
            }
        ],
    }


@pytest.fixture
def patient_signup_data() -> dict:
    return {
        "email": "lucas.douglas@clinic-mail.com",
        "password": "Detective99",
        "first_name": "Lucas",
        "last_name": "Douglas",
        "date_of_birth": "1975-04-12",
        "city": "Princeton",
    }


@pytest.mark.asyncio
async def test_doctor_signup_and_login(client: AsyncClient, doctor_signup_data: dict) -> None:
    """Test doctor sign-up stores a hashed password usable for login."""
    response = await client.post("/api/v1/doctors/signup", json=doctor_signup_data)
    assert response.status_code == 201
    doctor_id = response.json()["id"]
    assert response.json()["message"] == "Doctor signup successful"

    login = await client.post(
        "/api/v1/auth/login",
        json={
            "email": "allison.cameron@clinic-mail.com",
            "password": doctor_signup_data["password"],
            "role": "doctor",
        },
    )
    assert login.status_code == 200
    data = login.json()
    assert data["token_type"] == "bearer"
    assert data["user_id"] == doctor_id
    assert data["role"] == "doctor"

    payload = decode_access_token(data["access_token"])
    assert payload["sub"] == doctor_id
    assert payload["role"] == "doctor"

    profile = await client.get(
        "/api/v1/doctors/profile",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert profile.status_code == 200
    body = profile.json()
    assert body["email"] == "allison.cameron@clinic-mail.com"
    assert body["availability_slots"][0]["start_time"] == "09:00"
    assert "password_hash" not in body
    assert "password" not in body


@pytest.mark.asyncio
async def test_doctor_signup_duplicate_email(
    client: AsyncClient, doctor_signup_data: dict
) -> None:
    first = await client.post("/api/v1/doctors/signup", json=doctor_signup_data)
    second = await client.post(
        "/api/v1/doctors/signup",
        json={**doctor_signup_data, "email": doctor_signup_data["email"].lower()},
    )

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["message"] == "Doctor already exists"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "changes",
    [
        {"specialty": "Astrologer"},
        {"experience_years": 51},
        {"password": "short"},
        {"email": "not-an-email"},
        {
            "availability_slots": [
                {"day": "Monday", "start_time": "12:00", "end_time": "09:00"},
            ]
        },
    ],
)
async def test_doctor_signup_invalid(
    client: AsyncClient, doctor_signup_data: dict, changes: dict
) -> None:
    response = await client.post("/api/v1/doctors/signup", json={**doctor_signup_data, **changes})

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidInput"


@pytest.mark.asyncio
async def test_patient_signup_and_profile(
    client: AsyncClient, patient_signup_data: dict
) -> None:
    response = await client.post("/api/v1/patients/signup", json=patient_signup_data)
    assert response.status_code == 201

    login = await client.post(
        "/api/v1/auth/login",
        json={
            "email": patient_signup_data["email"],
            "password": patient_signup_data["password"],
            "role": "patient",
        },
    )
    token = login.json()["access_token"]

    profile = await client.get(
        "/api/v1/patients/profile",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert profile.status_code == 200
    body = profile.json()
    assert body["id"] == response.json()["id"]
    assert body["date_of_birth"] == "1975-04-12"
    assert "password_hash" not in body
    assert "medical_history" not in body


@pytest.mark.asyncio
async def test_patient_signup_duplicate_email(
    client: AsyncClient, patient_signup_data: dict
) -> None:
    await client.post("/api/v1/patients/signup", json=patient_signup_data)
    response = await client.post("/api/v1/patients/signup", json=patient_signup_data)

    assert response.status_code == 409
    assert response.json()["message"] == "Patient already exists"


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, test_patient: dict) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": test_patient["email"], "password": "WrongPassword1", "role": "patient"},
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_role_is_part_of_identity(
    client: AsyncClient, test_patient: dict, account_password: str
) -> None:
    """A patient account cannot log in as a doctor."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": test_patient["email"], "password": account_password, "role": "doctor"},
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Doctor not found"


@pytest.mark.asyncio
async def test_logout(client: AsyncClient) -> None:
    response = await client.post("/api/v1/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"message": "Logout successful"}


@pytest.mark.asyncio
async def test_profile_requires_matching_role(
    client: AsyncClient, patient_headers: dict, doctor_headers: dict
) -> None:
    assert (await client.get("/api/v1/doctors/profile", headers=patient_headers)).status_code == 403
    assert (await client.get("/api/v1/patients/profile", headers=doctor_headers)).status_code == 403
    assert (await client.get("/api/v1/patients/profile")).status_code == 401


@pytest.mark.asyncio
async def test_get_doctor_summary(client: AsyncClient, test_doctor: dict) -> None:
    response = await client.get(f"/api/v1/doctors/{test_doctor['id']}")

    assert response.status_code == 200
    assert response.json() == {
        "id": str(test_doctor["id"]),
        "first_name": "Gregory",
        "last_name": "House",
        "specialty": "Neurologist",
    }

    missing = await client.get(f"/api/v1/doctors/{uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "DoctorNotFound"
