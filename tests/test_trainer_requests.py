import json

import pytest

from fitcoach.database import RecordNotFound, connect
from fitcoach.models import TrainerRequest
from fitcoach.trainer_requests import TrainerRequestRepository

SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT UNIQUE NOT NULL,
    password TEXT NOT NULL DEFAULT '',
    role TEXT NOT NULL,
    specialization TEXT,
    experience INTEGER,
    is_online INTEGER NOT NULL DEFAULT 0,
    created_at TEXT,
    last_seen TEXT
);
CREATE TABLE trainer_profiles (
    user_id INTEGER PRIMARY KEY,
    first_name TEXT,
    last_name TEXT,
    bio TEXT,
    specializations TEXT,
    experience INTEGER,
    is_active INTEGER DEFAULT 1
);
CREATE TABLE trainer_requests (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    client_id INTEGER NOT NULL,
    trainer_id INTEGER NOT NULL,
    status TEXT NOT NULL,
    message TEXT,
    created_at TEXT,
    updated_at TEXT
);
"""


@pytest.fixture
def conn():
    connection = connect(":memory:")
    connection.executescript(SCHEMA)
    yield connection
    connection.close()


@pytest.fixture
def repo(conn):
    return TrainerRequestRepository(conn)


def add_user(conn, username, role, specialization=None, experience=None, online=False):
    with conn:
        cursor = conn.execute(
            "INSERT INTO users (username, role, specialization, experience, is_online)"
            " VALUES (?, ?, ?, ?, ?)",
            (username, role, specialization, experience, online),
        )
    return cursor.lastrowid


def add_trainer_profile(conn, user_id, first, last, specializations, experience):
    with conn:
        conn.execute(
            "INSERT INTO trainer_profiles (user_id, first_name, last_name, bio,"
            " specializations, experience) VALUES (?, ?, ?, 'bio', ?, ?)",
            (user_id, first, last, specializations, experience),
        )


def test_create_then_get_by_id_round_trip(conn, repo):
    client = add_user(conn, "anna", "trainee")
    trainer = add_user(conn, "tom", "trainer")
    created = repo.create(
        TrainerRequest(client_id=client, trainer_id=trainer, status="pending", message="hi")
    )
    assert created.id > 0
    assert created.created_at is not None
    fetched = repo.get_by_id(created.id)
    assert fetched.client_id == client
    assert fetched.trainer_id == trainer
    assert fetched.status == "pending"
    assert fetched.message == "hi"
    assert fetched.created_at == created.created_at


def test_get_by_id_missing_raises(repo):
    with pytest.raises(RecordNotFound):
        repo.get_by_id(999)


def test_get_by_client_and_trainer_absent_returns_none(conn, repo):
    client = add_user(conn, "anna", "trainee")
    trainer = add_user(conn, "tom", "trainer")
    assert repo.get_by_client_and_trainer(client, trainer) is None
    repo.create(TrainerRequest(client_id=client, trainer_id=trainer, status="pending"))
    found = repo.get_by_client_and_trainer(client, trainer)
    assert found.status == "pending"


def test_update_status_and_approved_request(conn, repo):
    client = add_user(conn, "anna", "trainee")
    trainer = add_user(conn, "tom", "trainer")
    request = repo.create(TrainerRequest(client_id=client, trainer_id=trainer, status="pending"))
    with pytest.raises(RecordNotFound):
        repo.get_approved_request(client)
    repo.update_status(request.id, "approved")
    approved = repo.get_approved_request(client)
    assert approved.id == request.id
    assert approved.status == "approved"


def test_delete_removes_request(conn, repo):
    client = add_user(conn, "anna", "trainee")
    trainer = add_user(conn, "tom", "trainer")
    request = repo.create(TrainerRequest(client_id=client, trainer_id=trainer, status="pending"))
    repo.delete(request.id)
    with pytest.raises(RecordNotFound):
        repo.get_by_id(request.id)


def test_get_by_client_id_includes_trainer_details(conn, repo):
    client = add_user(conn, "anna", "trainee")
    trainer = add_user(conn, "tom", "trainer", specialization="strength", experience=5)
    repo.create(TrainerRequest(client_id=client, trainer_id=trainer, status="pending"))
    requests = repo.get_by_client_id(client)
    assert len(requests) == 1
    assert requests[0].trainer_username == "tom"
    assert requests[0].trainer_specialization == "strength"
    assert requests[0].trainer_experience == 5


def test_get_by_trainer_id_includes_client_username(conn, repo):
    first = add_user(conn, "anna", "trainee")
    second = add_user(conn, "bob", "trainee")
    trainer = add_user(conn, "tom", "trainer")
    other = add_user(conn, "tim", "trainer")
    repo.create(TrainerRequest(client_id=first, trainer_id=trainer, status="pending"))
    repo.create(TrainerRequest(client_id=second, trainer_id=trainer, status="pending"))
    repo.create(TrainerRequest(client_id=first, trainer_id=other, status="pending"))
    requests = repo.get_by_trainer_id(trainer)
    assert sorted(r.client_username for r in requests) == ["anna", "bob"]
    assert all(r.trainer_id == trainer for r in requests)


def test_search_trainers_is_case_insensitive(conn, repo):
    trainer = add_user(conn, "tom", "trainer", online=True)
    add_trainer_profile(conn, trainer, "Thomas", "Smith", json.dumps(["yoga", "cardio"]), 4)
    trainee = add_user(conn, "thora", "trainee")
    add_trainer_profile(conn, trainee, "Thora", "Smith", "[]", 0)
    results = repo.search_trainers("SMITH")
    assert [r.id for r in results] == [trainer]
    assert results[0].specializations == ["yoga", "cardio"]
    assert results[0].is_online is True
    assert results[0].experience == 4


def test_search_trainers_matches_full_name(conn, repo):
    trainer = add_user(conn, "tom", "trainer")
    add_trainer_profile(conn, trainer, "Thomas", "Smith", "[]", 1)
    assert [r.username for r in repo.search_trainers("thomas smith")] == ["tom"]
    assert repo.search_trainers("nobody") == []


def test_search_trainers_bad_specializations_give_empty_list(conn, repo):
    trainer = add_user(conn, "tom", "trainer")
    add_trainer_profile(conn, trainer, "Thomas", "Smith", "not json", 1)
    results = repo.search_trainers("tom")
    assert results[0].specializations == []