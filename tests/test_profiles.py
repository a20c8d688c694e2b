import pytest

from fitcoach.database import RecordNotFound, connect
from fitcoach.models import Profile
from fitcoach.profiles import ProfileRepository

SCHEMA = """
CREATE TABLE profiles (
    user_id INTEGER PRIMARY KEY,
    age INTEGER NOT NULL,
    height INTEGER NOT NULL,
    weight REAL NOT NULL,
    gender TEXT NOT NULL,
    activity_level REAL NOT NULL,
    goal TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


@pytest.fixture
def repo():
    conn = connect(":memory:")
    conn.executescript(SCHEMA)
    yield ProfileRepository(conn)
    conn.close()


def _profile(**changes):
    values = dict(user_id=5, age=28, height=170, weight=65.5, gender="female", activity_level=1.55, goal="gain")
    values.update(changes)
    return Profile(**values)


def test_saved_profile_round_trips(repo):
    repo.create_or_update(_profile())
    stored = repo.get_by_user_id(5)
    assert (stored.user_id, stored.age, stored.height, stored.weight) == (5, 28, 170, 65.5)
    assert (stored.gender, stored.activity_level, stored.goal) == ("female", 1.55, "gain")
    assert stored.created_at != ""
    assert stored.created_at == stored.updated_at


def test_update_overwrites_values_and_keeps_single_row(repo):
    repo.create_or_update(_profile())
    first = repo.get_by_user_id(5)
    repo.create_or_update(_profile(weight=60.0, goal="lose"))
    second = repo.get_by_user_id(5)
    assert second.weight == 60.0
    assert second.goal == "lose"
    assert second.created_at == first.created_at
    (count,) = repo.conn.execute("SELECT COUNT(*) FROM profiles").fetchone()
    assert count == 1


def test_missing_profile_raises(repo):
    with pytest.raises(RecordNotFound):
        repo.get_by_user_id(99)


def test_has_valid_profile_for_complete_profile(repo):
    repo.create_or_update(_profile())
    assert repo.has_valid_profile(5) is True


def test_has_valid_profile_false_when_missing(repo):
    assert repo.has_valid_profile(5) is False


def test_has_valid_profile_false_when_field_empty(repo):
    repo.create_or_update(_profile(goal=""))
    assert repo.has_valid_profile(5) is False
    assert repo.get_by_user_id(5).is_valid() is False