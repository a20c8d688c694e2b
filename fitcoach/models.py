"""Domain records shared by the repositories and the HTTP layer."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional


def _omit_if_empty(default: Any = None, *, factory: Any = None) -> Any:
    """Declare a field that is left out of JSON output when it is empty."""
    metadata = {"omitempty": True}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def to_json(value: Any) -> Any:
    """Turn records, lists and timestamps into plain JSON-ready values.

    Fields marked as omit-if-empty are dropped when they hold a zero value,
    and inherited fields appear alongside the record's own.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        result: dict[str, Any] = {}
        for spec in dataclasses.fields(value):
            item = getattr(value, spec.name)
            if spec.metadata.get("omitempty") and not item:
                continue
            result[spec.name] = to_json(item)
        return result
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    return value


@dataclass
class User:
    id: int = 0
    username: str = ""
    password: str = _omit_if_empty("")
    role: str = ""
    nickname: str = _omit_if_empty("")
    specialization: str = _omit_if_empty("")
    experience: int = _omit_if_empty(0)
    is_online: bool = False


@dataclass
class Profile:
    user_id: int = 0
    age: int = 0
    height: int = 0
    weight: float = 0.0
    gender: str = ""
    activity_level: float = 0.0
    goal: str = ""
    created_at: str = _omit_if_empty("")
    updated_at: str = _omit_if_empty("")

    def is_empty(self) -> bool:
        """True when no personal data has been filled in."""
        return (
            self.age == 0
            and self.height == 0
            and self.weight == 0
            and self.gender == ""
            and self.activity_level == 0
            and self.goal == ""
        )

    def is_valid(self) -> bool:
        """True when every required field holds a usable value."""
        return (
            self.age > 0
            and self.height > 0
            and self.weight > 0
            and self.gender != ""
            and self.activity_level > 0
            and self.goal != ""
        )


@dataclass
class TraineeWithProfile(User):
    profile: Optional[Profile] = _omit_if_empty(None)
    created_at: str = ""
    last_seen: Optional[str] = _omit_if_empty(None)


@dataclass
class TrainerProfile:
    user_id: int = 0
    first_name: str = ""
    last_name: str = ""
    bio: str = ""
    specializations: list[str] = field(default_factory=list)
    experience: int = 0
    certifications: list[str] = field(default_factory=list)
    price_per_hour: float = 0.0
    languages: list[str] = field(default_factory=list)
    contact_email: str = ""
    contact_phone: str = ""
    location: str = ""
    avatar: str = _omit_if_empty("")
    is_active: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_empty(self) -> bool:
        """True when neither name nor bio has been filled in."""
        return self.first_name == "" and self.last_name == "" and self.bio == ""

    def is_valid(self) -> bool:
        """True when the profile may be published."""
        return (
            self.first_name != ""
            and self.last_name != ""
            and self.bio != ""
            and len(self.specializations) > 0
            and self.experience >= 0
            and self.price_per_hour > 0
        )

    def full_name(self) -> str:
        """First and last name joined by a space."""
        return f"{self.first_name} {self.last_name}"


@dataclass
class ChatMessage:
    id: int = 0
    sender_id: int = 0
    receiver_id: int = 0
    content: str = ""
    is_read: bool = False
    created_at: Optional[datetime] = None


@dataclass
class FoodProduct:
    id: int = 0
    name: str = ""
    calories: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    carbs: float = 0.0


@dataclass
class ProgressReport:
    id: int = 0
    client_id: int = 0
    trainer_id: Optional[int] = None
    weight: Optional[float] = None
    body_fat: Optional[float] = None
    measurements: str = ""
    notes: str = ""
    photo_url: str = ""
    created_at: Optional[datetime] = None


@dataclass
class ProgressReportWithTrainer(ProgressReport):
    trainer_username: str = ""


@dataclass
class UserStats:
    total_reports: int = 0
    min_weight: float = 0.0
    max_weight: float = 0.0
    avg_weight: float = 0.0
    latest_weight: float = 0.0
    first_weight: float = 0.0
    weight_change: float = 0.0
    min_body_fat: float = 0.0
    max_body_fat: float = 0.0
    avg_body_fat: float = 0.0
    latest_body_fat: float = 0.0
    latest_date: Optional[datetime] = None
    first_date: Optional[datetime] = None


@dataclass
class ChartPoint:
    date: str = ""
    value: float = 0.0


@dataclass
class ChartData:
    weight_data: list[ChartPoint] = field(default_factory=list)
    body_fat_data: list[ChartPoint] = field(default_factory=list)


@dataclass
class TraineeStatsItem:
    trainee_id: int = 0
    trainee_name: str = ""
    report_count: int = 0
    latest_weight: float = 0.0
    first_weight: float = 0.0
    weight_change: float = 0.0
    last_report_date: str = ""


@dataclass
class TrainerStats:
    total_trainees: int = 0
    total_reports: int = 0
    avg_weight: float = 0.0
    trainee_stats: list[TraineeStatsItem] = field(default_factory=list)


@dataclass
class TrainerSearchResult:
    id: int = 0
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    specializations: list[str] = field(default_factory=list)
    experience: int = 0
    is_online: bool = False


@dataclass
class TrainerRequest:
    id: int = 0
    client_id: int = 0
    trainer_id: int = 0
    status: str = ""
    message: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class TrainerRequestWithDetails(TrainerRequest):
    trainer_username: str = ""
    trainer_specialization: str = ""
    trainer_experience: int = 0
    client_username: str = ""


@dataclass
class TrainerTrainee:
    id: int = 0
    trainer_id: int = 0
    trainee_id: int = 0
    status: str = ""
    created_at: Optional[datetime] = None


@dataclass
class TraineeWithDetails:
    id: int = 0
    username: str = ""
    is_online: bool = False
    last_activity: Optional[datetime] = None
    unread_messages: int = 0
    current_plan: Optional[str] = None
    goal: Optional[str] = None
    progress: int = 0