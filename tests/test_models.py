from datetime import datetime

from fitcoach.models import (
    ChartData,
    ChartPoint,
    Profile,
    ProgressReportWithTrainer,
    TraineeWithProfile,
    TrainerProfile,
    User,
    to_json,
)


def _valid_profile():
    return Profile(
        user_id=3,
        age=30,
        height=180,
        weight=80.5,
        gender="male",
        activity_level=1.4,
        goal="lose",
    )


def test_default_profile_is_empty_and_invalid():
    profile = Profile()
    assert profile.is_empty()
    assert not profile.is_valid()


def test_filled_profile_is_valid_and_not_empty():
    profile = _valid_profile()
    assert profile.is_valid()
    assert not profile.is_empty()


def test_profile_missing_goal_is_invalid():
    profile = _valid_profile()
    profile.goal = ""
    assert not profile.is_valid()
    assert not profile.is_empty()


def test_trainer_profile_validity_needs_specializations_and_price():
    trainer = TrainerProfile(first_name="Anna", last_name="Nowak", bio="Coach", price_per_hour=100.0)
    assert not trainer.is_valid()
    trainer.specializations = ["strength"]
    assert trainer.is_valid()
    trainer.price_per_hour = 0
    assert not trainer.is_valid()


def test_trainer_profile_empty_and_full_name():
    assert TrainerProfile().is_empty()
    trainer = TrainerProfile(first_name="Anna", last_name="Nowak")
    assert not trainer.is_empty()
    assert trainer.full_name() == "Anna Nowak"


def test_to_json_omits_empty_optional_user_fields():
    data = to_json(User(id=1, username="bob", role="trainee"))
    assert "password" not in data
    assert "nickname" not in data
    assert "experience" not in data
    assert data["is_online"] is False
    assert data["username"] == "bob"


def test_to_json_keeps_filled_optional_fields():
    data = to_json(User(id=1, username="bob", role="trainer", experience=5, nickname="b"))
    assert data["experience"] == 5
    assert data["nickname"] == "b"


def test_to_json_flattens_inherited_fields():
    report = ProgressReportWithTrainer(id=4, client_id=2, weight=70.0, trainer_username="Self-report")
    data = to_json(report)
    assert data["id"] == 4
    assert data["client_id"] == 2
    assert data["trainer_id"] is None
    assert data["trainer_username"] == "Self-report"


def test_to_json_formats_datetimes():
    moment = datetime(2024, 5, 1, 10, 0, 0)
    assert to_json({"at": moment}) == {"at": "2024-05-01T10:00:00"}


def test_to_json_nested_lists_of_records():
    chart = ChartData(weight_data=[ChartPoint(date="d1", value=70.0)])
    data = to_json(chart)
    assert data["weight_data"] == [{"date": "d1", "value": 70.0}]
    assert data["body_fat_data"] == []


def test_trainee_with_profile_nests_profile_only_when_present():
    bare = to_json(TraineeWithProfile(id=9, username="kate", created_at="2024"))
    assert "profile" not in bare
    assert "last_seen" not in bare
    full = to_json(TraineeWithProfile(id=9, username="kate", profile=_valid_profile()))
    assert full["profile"]["goal"] == "lose"
    assert "created_at" not in full["profile"]