"""Links between trainers and the trainees they coach."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Optional

from fitcoach.database import TIMESTAMP_FORMAT
from fitcoach.models import TraineeWithDetails, User

_TRAINEES_QUERY = """
SELECT u.id, u.username, u.is_online,
       COALESCE(MAX(m.created_at), u.created_at) AS last_activity,
       COALESCE(unread.cnt, 0) AS unread_messages,
       tp.name AS current_plan,
       p.goal AS goal,
       COALESCE(CAST(ROUND(
           CASE
               WHEN tp.start_date IS NOT NULL AND tp.end_date IS NOT NULL THEN
                   (julianday('now', 'localtime') - julianday(tp.start_date))
                   / (julianday(tp.end_date) - julianday(tp.start_date)) * 100
               ELSE 0
           END
       ) AS INTEGER), 0) AS progress
FROM trainer_trainee tt
JOIN users u ON tt.trainee_id = u.id
LEFT JOIN messages m ON (m.sender_id = u.id OR m.receiver_id = u.id)
LEFT JOIN (
    SELECT receiver_id, COUNT(*) AS cnt
    FROM messages
    WHERE sender_id = :trainer AND is_read = 0
    GROUP BY receiver_id
) unread ON unread.receiver_id = u.id
LEFT JOIN training_plans tp ON tp.client_id = u.id AND tp.trainer_id = :trainer
LEFT JOIN profiles p ON p.user_id = u.id
WHERE tt.trainer_id = :trainer
GROUP BY u.id, u.username, u.is_online, u.created_at, unread.cnt,
         tp.name, tp.start_date, tp.end_date, p.goal
ORDER BY last_activity DESC
"""


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


class TrainerTraineeRepository:
    """Reads and writes rows of the trainer_trainee table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def assign_trainee(self, trainer_id: int, trainee_id: int) -> None:
        """Link the trainee to the trainer; an existing link is left alone."""
        now = datetime.now().strftime(TIMESTAMP_FORMAT)
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO trainer_trainee (trainer_id, trainee_id, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (trainer_id, trainee_id) DO NOTHING
                """,
                (trainer_id, trainee_id, now, now),
            )

    def get_trainer_trainees(self, trainer_id: int) -> list[TraineeWithDetails]:
        """Return the trainer's trainees with activity, plan and progress details."""
        rows = self.conn.execute(_TRAINEES_QUERY, {"trainer": trainer_id}).fetchall()
        return [
            TraineeWithDetails(
                id=row["id"],
                username=row["username"],
                is_online=bool(row["is_online"]),
                last_activity=_to_datetime(row["last_activity"]),
                unread_messages=int(row["unread_messages"] or 0),
                current_plan=row["current_plan"],
                goal=row["goal"],
                progress=int(row["progress"] or 0),
            )
            for row in rows
        ]

    def remove_trainee(self, trainer_id: int, trainee_id: int) -> None:
        """Delete the link between the trainer and the trainee."""
        with self.conn:
            self.conn.execute(
                "DELETE FROM trainer_trainee WHERE trainer_id = ? AND trainee_id = ?",
                (trainer_id, trainee_id),
            )

    def get_trainee_trainer(self, trainee_id: int) -> Optional[User]:
        """Return the trainee's trainer, or None if nobody coaches them."""
        row = self.conn.execute(
            """
            SELECT u.id, u.username, u.role, u.is_online
            FROM trainer_trainee tt
            JOIN users u ON tt.trainer_id = u.id
            WHERE tt.trainee_id = ?
            LIMIT 1
            """,
            (trainee_id,),
        ).fetchone()
        if row is None:
            return None
        return User(
            id=row["id"],
            username=row["username"],
            role=row["role"],
            is_online=bool(row["is_online"]),
        )