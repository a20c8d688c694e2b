import pytest
from flask import Flask

from fitcoach.database import connect
from fitcoach.profile_views import (
    check_profile,
    check_trainer_profile,
    get_profile,
    get_trainee_profile,
    get_trainer_by_id,
    get_trainer_profile,
    save_profile,
    save_trainer_profile,
)
from fitcoach.relationships import TrainerTraineeRepository
from fitcoach.security import generate_token
from fitcoach.web import DB_EXTENSION, ApiError

SCHEMA = """
CREATE TABLE profiles (
    user_id INTEGER PRIMARY KEY,
    age INTEGER, height INTEGER, weight REAL, gender TEXT,
    activity_level REAL, goal TEXT, created_at TEXT, updated_at TEXT
);
CREATE TABLE trainer_profiles (
    user_id INTEGER PRIMARY KEY,
    first_name TEXT, last_name TEXT, bio TEXT, specializations TEXT,
    experience INTEGER, certifications TEXT, price_per_hour REAL, languages TEXT,
    contact_email TEXT, contact_phone TEXT, location TEXT, avatar TEXT,
    is_active INTEGER, created_at TEXT, updated_at TEXT
);
CREATE TABLE trainer_trainee (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    trainer_id INTEGER NOT NULL, trainee_id INTEGER NOT NULL,
    created_at TEXT, updated_at TEXT,
    UNIQUE (trainer_id, trainee_id)
);
"""

PROFILE = {
    "age": 30,
    "height": 180,
    "weight": 80.5,
    "gender": "male",
    "activity_level": 1.5,
    "goal": "maintain",
}

TRAINER = {
    "first_name": "Anna",
    "last_name": "Nowak",
    "bio": "Strength coach",
    "specializations": ["strength"],
    "experience": 5,
    "price_per_hour": 100.0,
    "contact_email": "anna@example.com",
}


@pytest.fixture
def conn():
    connection = connect(":memory:")
    connection.executescript(SCHEMA)
    yield connection
    connection.close()


@pytest.fixture
def client(conn):
    app = Flask(__name__)
    app.extensions[DB_EXTENSION] = conn
    app.register_error_handler(ApiError, lambda exc: exc.to_response())
    app.add_url_rule("/profile", view_func=get_profile, methods=["GET"])
    app.add_url_rule("/profile", view_func=save_profile, methods=["POST"])
    app.add_url_rule("/profile/check", view_func=check_profile, methods=["GET"])
    app.add_url_rule(
        "/profile/trainee/<trainee_id>", view_func=get_trainee_profile, methods=["GET"]
    )
    app.add_url_rule("/trainer-profile", view_func=get_trainer_profile, methods=["GET"])
    app.add_url_rule(
        "/trainer-profile", view_func=save_trainer_profile, methods=["POST"]
    )
    app.add_url_rule(
        "/trainer-profile/check", view_func=check_trainer_profile, methods=["GET"]
    )
    app.add_url_rule(
        "/trainer-profile/<trainer_id>", view_func=get_trainer_by_id, methods=["GET"]
    )
    return app.test_client()


def as_user(user_id, role="trainee"):
    return {"Authorization": f"Bearer {generate_token(user_id, role)}"}


def test_profile_round_trip(client):
    saved = client.post("/profile", json=PROFILE, headers=as_user(3))
    assert saved.status_code == 200
    assert saved.get_json()["message"] == "Profile saved"

    response = client.get("/profile", headers=as_user(3))
    profile = response.get_json()["profile"]
    assert response.status_code == 200
    assert profile["user_id"] == 3
    for key, value in PROFILE.items():
        assert profile[key] == value
    assert profile["created_at"]


def test_profile_missing(client):
    response = client.get("/profile", headers=as_user(3))
    assert response.status_code == 404
    assert response.get_json() == {"error": "Profile not found"}


def test_incomplete_profile_rejected(client):
    response = client.post("/profile", json={**PROFILE, "age": 0}, headers=as_user(3))
    assert response.status_code == 400
    assert response.get_json() == {
        "error": "Invalid profile data. All fields are required."
    }


def test_profile_wrong_type_rejected(client):
    response = client.post("/profile", json={**PROFILE, "age": "thirty"}, headers=as_user(3))
    assert response.status_code == 400


def test_check_profile(client):
    assert client.get("/profile/check", headers=as_user(3)).get_json() == {
        "has_profile": False
    }
    client.post("/profile", json=PROFILE, headers=as_user(3))
    assert client.get("/profile/check", headers=as_user(3)).get_json() == {
        "has_profile": True
    }


def test_trainee_profile_requires_trainer(client):
    response = client.get("/profile/trainee/3", headers=as_user(4, "trainee"))
    assert response.status_code == 403
    assert response.get_json() == {"error": "Only trainers can view trainee profiles"}


def test_trainee_profile_invalid_id(client):
    response = client.get("/profile/trainee/abc", headers=as_user(9, "trainer"))
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid trainee ID"}


def test_trainee_profile_not_assigned(client):
    response = client.get("/profile/trainee/3", headers=as_user(9, "trainer"))
    assert response.status_code == 403
    assert response.get_json() == {"error": "Trainee not assigned to this trainer"}


def test_trainee_profile_for_assigned_trainer(client, conn):
    TrainerTraineeRepository(conn).assign_trainee(9, 3)
    missing = client.get("/profile/trainee/3", headers=as_user(9, "trainer"))
    assert missing.status_code == 404

    client.post("/profile", json=PROFILE, headers=as_user(3))
    response = client.get("/profile/trainee/3", headers=as_user(9, "trainer"))
    assert response.status_code == 200
    assert response.get_json()["profile"]["goal"] == PROFILE["goal"]


def test_trainer_profile_absent_is_null(client):
    response = client.get("/trainer-profile", headers=as_user(9, "trainer"))
    assert response.status_code == 200
    assert response.get_json() == {"profile": None}


def test_trainer_profile_round_trip(client):
    saved = client.post("/trainer-profile", json=TRAINER, headers=as_user(9, "trainer"))
    assert saved.status_code == 200
    assert saved.get_json()["profile"]["is_active"] is True

    profile = client.get("/trainer-profile", headers=as_user(9, "trainer")).get_json()["profile"]
    assert profile["first_name"] == TRAINER["first_name"]
    assert profile["specializations"] == TRAINER["specializations"]
    assert profile["is_active"] is True
    assert client.get("/trainer-profile/check", headers=as_user(9)).get_json() == {
        "has_profile": True
    }


def test_trainer_profile_needs_specializations(client):
    response = client.post(
        "/trainer-profile",
        json={**TRAINER, "specializations": []},
        headers=as_user(9, "trainer"),
    )
    assert response.status_code == 400
    assert response.get_json() == {
        "error": "Invalid trainer profile data. All required fields must be filled."
    }


def test_trainer_profile_bad_json(client):
    response = client.post(
        "/trainer-profile",
        json={**TRAINER, "experience": "five"},
        headers=as_user(9, "trainer"),
    )
    assert response.status_code == 400
    assert response.get_json()["error"].startswith("Invalid JSON")


def test_trainer_by_id(client):
    client.post("/trainer-profile", json=TRAINER, headers=as_user(9, "trainer"))
    response = client.get("/trainer-profile/9", headers=as_user(3))
    body = response.get_json()
    assert response.status_code == 200
    assert body["trainer"] == body["profile"]
    assert body["trainer"]["last_name"] == TRAINER["last_name"]


def test_trainer_by_id_errors(client):
    assert client.get("/trainer-profile/x1", headers=as_user(3)).get_json() == {
        "error": "Invalid trainer ID"
    }
    missing = client.get("/trainer-profile/42", headers=as_user(3))
    assert missing.status_code == 404
    assert missing.get_json() == {"error": "Trainer not found"}