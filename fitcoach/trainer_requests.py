"""Requests from trainees asking a trainer to coach them, and trainer search."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any, Optional

from fitcoach.database import TIMESTAMP_FORMAT, RecordNotFound
from fitcoach.models import TrainerRequest, TrainerRequestWithDetails, TrainerSearchResult

_REQUEST_COLUMNS = "id, client_id, trainer_id, status, message, created_at, updated_at"


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _request_from_row(row: sqlite3.Row) -> TrainerRequest:
    return TrainerRequest(
        id=row["id"],
        client_id=row["client_id"],
        trainer_id=row["trainer_id"],
        status=row["status"] or "",
        message=row["message"] or "",
        created_at=_to_datetime(row["created_at"]),
        updated_at=_to_datetime(row["updated_at"]),
    )


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


class TrainerRequestRepository:
    """Reads and writes rows of the trainer_requests table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def create(self, request: TrainerRequest) -> TrainerRequest:
        """Store the request and fill in its id and timestamps."""
        now = datetime.now().replace(microsecond=0)
        stamp = now.strftime(TIMESTAMP_FORMAT)
        with self.conn:
            cursor = self.conn.execute(
                """
                INSERT INTO trainer_requests
                    (client_id, trainer_id, status, message, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    request.client_id,
                    request.trainer_id,
                    request.status,
                    request.message,
                    stamp,
                    stamp,
                ),
            )
        request.id = cursor.lastrowid
        request.created_at = now
        request.updated_at = now
        return request

    def get_by_client_id(self, client_id: int) -> list[TrainerRequestWithDetails]:
        """Return the client's requests with trainer details, newest first."""
        rows = self.conn.execute(
            """
            SELECT tr.id, tr.client_id, tr.trainer_id, tr.status, tr.message,
                   tr.created_at, tr.updated_at,
                   u.username, u.specialization, u.experience
            FROM trainer_requests tr
            JOIN users u ON tr.trainer_id = u.id
            WHERE tr.client_id = ?
            ORDER BY tr.created_at DESC, tr.id DESC
            """,
            (client_id,),
        ).fetchall()
        return [
            TrainerRequestWithDetails(
                id=row["id"],
                client_id=row["client_id"],
                trainer_id=row["trainer_id"],
                status=row["status"] or "",
                message=row["message"] or "",
                created_at=_to_datetime(row["created_at"]),
                updated_at=_to_datetime(row["updated_at"]),
                trainer_username=row["username"],
                trainer_specialization=row["specialization"] or "",
                trainer_experience=int(row["experience"] or 0),
            )
            for row in rows
        ]

    def update_status(self, request_id: int, status: str) -> None:
        """Set the request's status and refresh its update time."""
        now = datetime.now().strftime(TIMESTAMP_FORMAT)
        with self.conn:
            self.conn.execute(
                "UPDATE trainer_requests SET status = ?, updated_at = ? WHERE id = ?",
                (status, now, request_id),
            )

    def delete(self, request_id: int) -> None:
        """Remove the request."""
        with self.conn:
            self.conn.execute("DELETE FROM trainer_requests WHERE id = ?", (request_id,))

    def get_approved_request(self, client_id: int) -> TrainerRequest:
        """Return an approved request of the client, raising RecordNotFound if none."""
        row = self.conn.execute(
            f"""
            SELECT {_REQUEST_COLUMNS}
            FROM trainer_requests
            WHERE client_id = ? AND status = 'approved'
            LIMIT 1
            """,
            (client_id,),
        ).fetchone()
        if row is None:
            raise RecordNotFound(f"no approved request for client {client_id}")
        return _request_from_row(row)

    def search_trainers(self, query: str) -> list[TrainerSearchResult]:
        """Find trainers whose username or name contains the query, ignoring case."""
        rows = self.conn.execute(
            """
            SELECT u.id, u.username, tp.first_name, tp.last_name,
                   tp.specializations, tp.experience, u.is_online
            FROM users u
            JOIN trainer_profiles tp ON u.id = tp.user_id
            WHERE u.role = 'trainer'
              AND (
                u.username LIKE :pattern
                OR tp.first_name LIKE :pattern
                OR tp.last_name LIKE :pattern
                OR (tp.first_name || ' ' || tp.last_name) LIKE :pattern
              )
            ORDER BY tp.first_name, tp.last_name
            """,
            {"pattern": f"%{query}%"},
        ).fetchall()
        return [
            TrainerSearchResult(
                id=row["id"],
                username=row["username"],
                first_name=row["first_name"] or "",
                last_name=row["last_name"] or "",
                specializations=_string_list(row["specializations"]),
                experience=int(row["experience"] or 0),
                is_online=bool(row["is_online"]),
            )
            for row in rows
        ]

    def get_by_trainer_id(self, trainer_id: int) -> list[TrainerRequestWithDetails]:
        """Return requests addressed to the trainer with client names, newest first."""
        rows = self.conn.execute(
            """
            SELECT tr.id, tr.client_id, tr.trainer_id, tr.status, tr.message,
                   tr.created_at, tr.updated_at, u.username AS client_username
            FROM trainer_requests tr
            JOIN users u ON tr.client_id = u.id
            WHERE tr.trainer_id = ?
            ORDER BY tr.created_at DESC, tr.id DESC
            """,
            (trainer_id,),
        ).fetchall()
        return [
            TrainerRequestWithDetails(
                id=row["id"],
                client_id=row["client_id"],
                trainer_id=row["trainer_id"],
                status=row["status"] or "",
                message=row["message"] or "",
                created_at=_to_datetime(row["created_at"]),
                updated_at=_to_datetime(row["updated_at"]),
                client_username=row["client_username"],
            )
            for row in rows
        ]

    def get_by_id(self, request_id: int) -> TrainerRequest:
        """Return the request, raising RecordNotFound if it does not exist."""
        row = self.conn.execute(
            f"SELECT {_REQUEST_COLUMNS} FROM trainer_requests WHERE id = ?",
            (request_id,),
        ).fetchone()
        if row is None:
            raise RecordNotFound(f"no trainer request {request_id}")
        return _request_from_row(row)

    def get_by_client_and_trainer(
        self, client_id: int, trainer_id: int
    ) -> Optional[TrainerRequest]:
        """Return the client's request to the trainer, or None if there is none."""
        row = self.conn.execute(
            f"""
            SELECT {_REQUEST_COLUMNS}
            FROM trainer_requests
            WHERE client_id = ? AND trainer_id = ?
            """,
            (client_id, trainer_id),
        ).fetchone()
        if row is None:
            return None
        return _request_from_row(row)