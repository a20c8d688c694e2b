"""Storage of trainee body profiles."""

from __future__ import annotations

import sqlite3
from datetime import datetime

from fitcoach.database import TIMESTAMP_FORMAT, RecordNotFound
from fitcoach.models import Profile


class ProfileRepository:
    """Reads and writes rows of the profiles table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def get_by_user_id(self, user_id: int) -> Profile:
        """Return the user's profile, raising RecordNotFound if there is none."""
        row = self.conn.execute(
            """
            SELECT user_id, age, height, weight, gender, activity_level, goal,
                   created_at, updated_at
            FROM profiles
            WHERE user_id = ?
            """,
            (user_id,),
        ).fetchone()
        if row is None:
            raise RecordNotFound(f"no profile for user {user_id}")
        return Profile(
            user_id=row["user_id"],
            age=row["age"],
            height=row["height"],
            weight=float(row["weight"]),
            gender=row["gender"],
            activity_level=float(row["activity_level"]),
            goal=row["goal"],
            created_at=str(row["created_at"] or ""),
            updated_at=str(row["updated_at"] or ""),
        )

    def create_or_update(self, profile: Profile) -> None:
        """Insert the profile, or overwrite the user's existing one."""
        now = datetime.now().strftime(TIMESTAMP_FORMAT)
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO profiles (user_id, age, height, weight, gender,
                                      activity_level, goal, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id) DO UPDATE SET
                    age = excluded.age,
                    height = excluded.height,
                    weight = excluded.weight,
                    gender = excluded.gender,
                    activity_level = excluded.activity_level,
                    goal = excluded.goal,
                    updated_at = excluded.updated_at
                """,
                (
                    profile.user_id,
                    profile.age,
                    profile.height,
                    profile.weight,
                    profile.gender,
                    profile.activity_level,
                    profile.goal,
                    now,
                    now,
                ),
            )

    def has_valid_profile(self, user_id: int) -> bool:
        """Tell whether the user has a profile with every field filled in."""
        (count,) = self.conn.execute(
            """
            SELECT COUNT(*) FROM profiles
            WHERE user_id = ?
              AND age > 0
              AND height > 0
              AND weight > 0
              AND gender != ''
              AND activity_level > 0
              AND goal != ''
            """,
            (user_id,),
        ).fetchone()
        return count > 0