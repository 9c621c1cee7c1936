import uuid

import pytest

from app.models.user import UserRole
from tests.helpers import MONDAY, add_booking, add_slot, at, auth_headers, create_category, create_tutor, create_user

URL = "/api/v1/tutors"


@pytest.mark.asyncio
async def test_browse_tutors_with_filters(client, db):
    math = await create_category(db, "Math")
    _, cheap = await create_tutor(db, price_per_hour=20, rating=3, categories=[math])
    _, pricey = await create_tutor(db, price_per_hour=80, rating=5)

    everyone = await client.get(URL)
    assert everyone.status_code == 200
    assert [t["id"] for t in everyone.json()] == [str(pricey.id), str(cheap.id)]

    filtered = await client.get(URL, params={"max_price": 50, "category": "MATH"})
    assert [t["id"] for t in filtered.json()] == [str(cheap.id)]
    assert filtered.json()[0]["categories"] == ["Math"]


@pytest.mark.asyncio
async def test_browse_rejects_unknown_or_bad_filters(client, db):
    unknown = await client.get(URL, params={"language": "fr"})
    assert (unknown.status_code, unknown.json()["detail"]["code"]) == (400, "InvalidField")

    bad_number = await client.get(URL, params={"max_price": "cheap"})
    assert bad_number.status_code == 422


@pytest.mark.asyncio
async def test_tutor_detail(client, db):
    tutor_user, tutor = await create_tutor(db)
    await add_slot(db, tutor, "Tuesday", 600, 0)

    response = await client.get(f"{URL}/{tutor.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == tutor_user.name
    assert body["availability"][0]["end_time"] == "00:00"

    missing = await client.get(f"{URL}/{uuid.uuid4()}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_create_and_update_profile(client, db):
    user = await create_user(db, UserRole.TUTOR)
    math = await create_category(db, "Math")
    art = await create_category(db, "Art")
    headers = auth_headers(user)

    created = await client.post(
        f"{URL}/profile",
        json={"bio": "Hello", "pricePerHr": 40, "categoryIds": [str(math.id)]},
        headers=headers,
    )
    assert created.status_code == 201
    assert created.json()["categories"] == ["Math"]

    duplicate = await client.post(f"{URL}/profile", json={"categoryIds": [str(math.id)]}, headers=headers)
    assert (duplicate.status_code, duplicate.json()["detail"]["code"]) == (409, "ProfileExists")

    updated = await client.patch(
        f"{URL}/profile",
        json={"price_per_hour": 60, "category_ids": [str(art.id), str(math.id)]},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["price_per_hour"] == 60
    assert updated.json()["categories"] == ["Art", "Math"]


@pytest.mark.asyncio
async def test_profile_requires_tutor_role(client, db):
    student = await create_user(db)

    response = await client.post(f"{URL}/profile", json={"categoryIds": []}, headers=auth_headers(student))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_dashboard(client, db):
    tutor_user, tutor = await create_tutor(db)
    student = await create_user(db)
    await add_slot(db, tutor, "Monday", 540, 720)
    await add_booking(db, student, tutor, at(MONDAY, 10))

    response = await client.get(f"{URL}/dashboard/me", headers=auth_headers(tutor_user))

    assert response.status_code == 200
    body = response.json()
    assert len(body["bookings"]) == 1
    assert body["availability"][0]["day"] == "Monday"
