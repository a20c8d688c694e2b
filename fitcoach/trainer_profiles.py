"""Storage of trainers' public profiles."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any, Optional

from fitcoach.database import TIMESTAMP_FORMAT, RecordNotFound
from fitcoach.models import TrainerProfile

_COLUMNS = """
    user_id, first_name, last_name, bio, specializations, experience,
    certifications, price_per_hour, languages, contact_email, contact_phone,
    location, avatar, is_active, created_at, updated_at
"""


def _string_list(raw: Any) -> list[str]:
    """Decode a JSON array of strings; anything unreadable yields an empty list."""
    if raw is None:
        return []
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(decoded, list):
        return []
    return [str(item) for item in decoded]


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _profile_from_row(row: sqlite3.Row) -> TrainerProfile:
    return TrainerProfile(
        user_id=row["user_id"],
        first_name=row["first_name"] or "",
        last_name=row["last_name"] or "",
        bio=row["bio"] or "",
        specializations=_string_list(row["specializations"]),
        experience=int(row["experience"] or 0),
        certifications=_string_list(row["certifications"]),
        price_per_hour=float(row["price_per_hour"] or 0),
        languages=_string_list(row["languages"]),
        contact_email=row["contact_email"] or "",
        contact_phone=row["contact_phone"] or "",
        location=row["location"] or "",
        avatar=row["avatar"] or "",
        is_active=bool(row["is_active"]),
        created_at=_to_datetime(row["created_at"]),
        updated_at=_to_datetime(row["updated_at"]),
    )


class TrainerProfileRepository:
    """Reads and writes rows of the trainer_profiles table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def get_by_user_id(self, user_id: int) -> TrainerProfile:
        """Return the trainer's profile, raising RecordNotFound if there is none."""
        row = self.conn.execute(
            f"SELECT {_COLUMNS} FROM trainer_profiles WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        if row is None:
            raise RecordNotFound(f"no trainer profile for user {user_id}")
        return _profile_from_row(row)

    def create_or_update(self, profile: TrainerProfile) -> None:
        """Insert the profile, or overwrite the trainer's existing one."""
        now = datetime.now().strftime(TIMESTAMP_FORMAT)
        with self.conn:
            self.conn.execute(
                f"""
                INSERT INTO trainer_profiles ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id) DO UPDATE SET
                    first_name = excluded.first_name,
                    last_name = excluded.last_name,
                    bio = excluded.bio,
                    specializations = excluded.specializations,
                    experience = excluded.experience,
                    certifications = excluded.certifications,
                    price_per_hour = excluded.price_per_hour,
                    languages = excluded.languages,
                    contact_email = excluded.contact_email,
                    contact_phone = excluded.contact_phone,
                    location = excluded.location,
                    avatar = excluded.avatar,
                    is_active = excluded.is_active,
                    updated_at = excluded.updated_at
                """,
                (
                    profile.user_id,
                    profile.first_name,
                    profile.last_name,
                    profile.bio,
                    json.dumps(list(profile.specializations)),
                    profile.experience,
                    json.dumps(list(profile.certifications)),
                    profile.price_per_hour,
                    json.dumps(list(profile.languages)),
                    profile.contact_email,
                    profile.contact_phone,
                    profile.location,
                    profile.avatar,
                    profile.is_active,
                    now,
                    now,
                ),
            )

    def has_valid_profile(self, user_id: int) -> bool:
        """Tell whether the trainer has a profile with names, bio and a price."""
        (count,) = self.conn.execute(
            """
            SELECT COUNT(*) FROM trainer_profiles
            WHERE user_id = ?
              AND first_name != ''
              AND last_name != ''
              AND bio != ''
              AND price_per_hour > 0
            """,
            (user_id,),
        ).fetchone()
        return count > 0

    def get_all_active_trainers(self) -> list[TrainerProfile]:
        """Return active trainers, most experienced and newest first.

        Rows that cannot be read are skipped.
        """
        rows = self.conn.execute(
            f"""
            SELECT {_COLUMNS} FROM trainer_profiles
            WHERE is_active = 1
            ORDER BY experience DESC, created_at DESC
            """
        ).fetchall()
        trainers = []
        for row in rows:
            try:
                trainers.append(_profile_from_row(row))
            except (TypeError, ValueError):
                continue
        return trainers