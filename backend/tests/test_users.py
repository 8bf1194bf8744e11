import pytest

from conftest import cookie_header, cookie_values, register
from travellers.models.category import Category
from travellers.services.category_loader import load_categories


@pytest.fixture
def uploads(monkeypatch):
    uploaded = []

    def fake_upload(content: bytes, folder: str) -> str:
        uploaded.append(folder)
        return f"https://res.cloudinary.com/demo/{folder}/{len(uploaded)}.jpg"

    monkeypatch.setattr("travellers.api.stories.upload_image", fake_upload)
    monkeypatch.setattr("travellers.api.users.upload_image", fake_upload)
    return uploaded


def test_list_users_is_public_and_hides_private_fields(client):
    for index in range(3):
        register(client, f"user{index}@x.com", name=f"User {index}")

    response = client.get("/users", params={"per_page": 2})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["total_pages"] == 2
    assert len(data["users"]) == 2
    for user in data["users"]:
        assert "email" not in user
        assert "password_hash" not in user


def test_get_me_requires_session(client):
    assert client.get("/users/me").status_code == 401


def test_get_user_with_stories(client, session_factory, uploads):
    db = session_factory()
    try:
        load_categories(db)
        category_id = db.query(Category).filter(Category.name == "Europe").one().id
    finally:
        db.close()

    cookies = cookie_values(register(client, "writer@x.com", name="Writer"))
    user_id = client.get("/users/me", headers=cookie_header(cookies)).json()["id"]
    client.post(
        "/stories",
        data={"title": "Lisbon", "article": "Trams and tiles.", "category": category_id},
        files={"img": ("cover.png", b"\x89PNGfake", "image/png")},
        headers=cookie_header(cookies),
    )

    response = client.get(f"/users/{user_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["name"] == "Writer"
    assert data["user"]["articles_amount"] == 1
    assert [s["title"] for s in data["stories"]] == ["Lisbon"]

    assert client.get("/users/unknown-user").status_code == 404


def test_update_profile(client):
    cookies = cookie_values(register(client, "profile@x.com", name="Before"))

    response = client.patch(
        "/users/me/profile",
        json={"name": "After", "description": "Backpacker"},
        headers=cookie_header(cookies),
    )

    assert response.status_code == 200
    assert response.json()["name"] == "After"
    assert response.json()["description"] == "Backpacker"

    empty = client.patch("/users/me/profile", json={}, headers=cookie_header(cookies))
    assert empty.status_code == 400


def test_update_profile_validates_trimmed_values(client):
    cookies = cookie_values(register(client, "trim@x.com", name="Before"))

    blank = client.patch("/users/me/profile", json={"name": "   "}, headers=cookie_header(cookies))
    assert blank.status_code == 400
    assert blank.json()["details"][0]["field"] == "name"

    padded = client.patch(
        "/users/me/profile",
        json={"name": "  Ann  ", "description": " Slow traveller "},
        headers=cookie_header(cookies),
    )
    assert padded.status_code == 200
    assert padded.json()["name"] == "Ann"
    assert padded.json()["description"] == "Slow traveller"


def test_update_avatar(client, uploads):
    cookies = cookie_values(register(client, "avatar@x.com"))

    response = client.patch(
        "/users/me/avatar",
        files={"avatar": ("me.jpg", b"\xff\xd8avatar", "image/jpeg")},
        headers=cookie_header(cookies),
    )

    assert response.status_code == 200
    assert response.json()["avatar_url"].startswith("https://res.cloudinary.com/demo/avatars/")
    assert uploads == ["avatars"]
