"""Chat messages exchanged between trainers and trainees."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Optional

from fitcoach.database import TIMESTAMP_FORMAT
from fitcoach.models import ChatMessage, User

_MESSAGE_COLUMNS = "id, sender_id, receiver_id, content, is_read, created_at"


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _message_from_row(row: sqlite3.Row) -> ChatMessage:
    return ChatMessage(
        id=row["id"],
        sender_id=row["sender_id"],
        receiver_id=row["receiver_id"],
        content=row["content"],
        is_read=bool(row["is_read"]),
        created_at=_to_datetime(row["created_at"]),
    )


class MessageRepository:
    """Reads and writes rows of the messages table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def create(self, message: ChatMessage) -> ChatMessage:
        """Store the message stamped with the current time and fill in its id."""
        now = datetime.now().replace(microsecond=0)
        with self.conn:
            cursor = self.conn.execute(
                """
                INSERT INTO messages (sender_id, receiver_id, content, is_read, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    message.sender_id,
                    message.receiver_id,
                    message.content,
                    message.is_read,
                    now.strftime(TIMESTAMP_FORMAT),
                ),
            )
        message.id = cursor.lastrowid
        message.created_at = now
        return message

    def get_conversation(
        self,
        user_id: int,
        partner_id: int,
        limit: int = 0,
        after: int = 0,
    ) -> list[ChatMessage]:
        """Return messages between two users, oldest first.

        With only a limit, the most recent `limit` messages are returned.
        With `after`, only messages whose id is greater are returned, capped
        by the limit when one is given.
        """
        condition = (
            "((sender_id = :user AND receiver_id = :partner)"
            " OR (sender_id = :partner AND receiver_id = :user))"
        )
        params: dict[str, int] = {"user": user_id, "partner": partner_id}
        if after > 0:
            condition += " AND id > :after"
            params["after"] = after

        if limit > 0 and after == 0:
            query = f"""
                SELECT * FROM (
                    SELECT {_MESSAGE_COLUMNS} FROM messages
                    WHERE {condition}
                    ORDER BY created_at DESC, id DESC
                    LIMIT :limit
                ) ORDER BY created_at ASC, id ASC
            """
            params["limit"] = limit
        else:
            query = f"""
                SELECT {_MESSAGE_COLUMNS} FROM messages
                WHERE {condition}
                ORDER BY created_at ASC, id ASC
            """
            if limit > 0:
                query += " LIMIT :limit"
                params["limit"] = limit

        return [_message_from_row(row) for row in self.conn.execute(query, params)]

    def get_unread_count(self, user_id: int) -> int:
        """Count unread messages addressed to the user."""
        (count,) = self.conn.execute(
            "SELECT COUNT(*) FROM messages WHERE receiver_id = ? AND is_read = 0",
            (user_id,),
        ).fetchone()
        return count

    def get_unread_count_from_sender(self, user_id: int, sender_id: int) -> int:
        """Count unread messages the sender addressed to the user."""
        (count,) = self.conn.execute(
            "SELECT COUNT(*) FROM messages "
            "WHERE receiver_id = ? AND sender_id = ? AND is_read = 0",
            (user_id, sender_id),
        ).fetchone()
        return count

    def mark_as_read(self, message_id: int) -> None:
        """Flag a single message as read."""
        with self.conn:
            self.conn.execute("UPDATE messages SET is_read = 1 WHERE id = ?", (message_id,))

    def get_conversation_partners(self, user_id: int) -> list[User]:
        """Return the users linked to this one as trainer or trainee, by name."""
        rows = self.conn.execute(
            """
            SELECT DISTINCT u.id, u.username, u.role, u.is_online
            FROM users u
            INNER JOIN trainer_trainee tt ON
                (u.id = tt.trainer_id AND tt.trainee_id = :user) OR
                (u.id = tt.trainee_id AND tt.trainer_id = :user)
            WHERE u.id != :user
            ORDER BY u.username
            """,
            {"user": user_id},
        ).fetchall()
        return [
            User(
                id=row["id"],
                username=row["username"],
                role=row["role"],
                is_online=bool(row["is_online"]),
            )
            for row in rows
        ]

    def mark_conversation_as_read(self, receiver_id: int, sender_id: int) -> None:
        """Flag every unread message from the sender to the receiver as read."""
        with self.conn:
            self.conn.execute(
                "UPDATE messages SET is_read = 1 "
                "WHERE receiver_id = ? AND sender_id = ? AND is_read = 0",
                (receiver_id, sender_id),
            )