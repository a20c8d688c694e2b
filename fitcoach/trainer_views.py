"""Views for trainer search, coaching requests and trainer-trainee links."""

from __future__ import annotations

import logging
import re
import sqlite3
from datetime import datetime
from typing import Any, Optional

from flask import jsonify, request

from fitcoach.database import TIMESTAMP_FORMAT, RecordNotFound
from fitcoach.models import TrainerRequest, User, to_json
from fitcoach.relationships import TrainerTraineeRepository
from fitcoach.trainer_requests import TrainerRequestRepository
from fitcoach.web import ApiError, current_role, current_user_id, get_db, require_auth

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")
_ALLOWED_DECISIONS = ("approved", "rejected")
_REPLACEABLE_STATUSES = ("rejected", "cancelled")


def _atoi(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _json_object() -> dict[str, Any]:
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        raise ApiError(400, "request body must be a JSON object")
    return body


def _list_or_null(items: list[Any]):
    return jsonify(to_json(items) if items else None)


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _bind_trainer_request() -> TrainerRequest:
    """Build a trainer request from the JSON body; absent or null fields stay empty."""
    body = _json_object()
    values: dict[str, Any] = {}
    for name in ("id", "client_id", "trainer_id"):
        value = body.get(name)
        if value is None:
            continue
        if not _is_int(value):
            raise ApiError(400, f"field '{name}' must be an integer")
        values[name] = value
    for name in ("status", "message"):
        value = body.get(name)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ApiError(400, f"field '{name}' must be a string")
        values[name] = value
    return TrainerRequest(**values)


# ---------------------------------------------------------------------------
# Trainer requests
# ---------------------------------------------------------------------------


@require_auth
def search_trainers():
    """Find trainers whose username or name contains the query string `q`."""
    query = request.args.get("q", "")
    if len(query.encode("utf-8")) < 2:
        raise ApiError(400, "Query must be at least 2 characters")
    try:
        trainers = TrainerRequestRepository(get_db()).search_trainers(query)
    except sqlite3.Error as exc:
        raise ApiError(500, "Failed to search trainers") from exc
    return _list_or_null(trainers), 200


@require_auth
def send_request():
    """Let a trainee ask a trainer for coaching."""
    user_id = current_user_id()
    if current_role() != "trainee":
        raise ApiError(403, "Only clients can send trainer requests")
    req = _bind_trainer_request()

    repo = TrainerRequestRepository(get_db())
    try:
        existing = repo.get_by_client_and_trainer(user_id, req.trainer_id)
    except sqlite3.Error:
        existing = None
    if existing is not None:
        if existing.status == "pending":
            raise ApiError(
                409,
                {
                    "error": "Masz już aktywną prośbę do tego trenera",
                    "request": existing,
                },
            )
        if existing.status in _REPLACEABLE_STATUSES:
            try:
                repo.delete(existing.id)
            except sqlite3.Error as exc:
                raise ApiError(500, "Nie można usunąć wcześniejszej prośby") from exc

    req.client_id = user_id
    req.status = "pending"
    try:
        repo.create(req)
    except sqlite3.Error as exc:
        logger.error("Error creating trainer request: %s", exc)
        raise ApiError(500, "Failed to send request") from exc
    return jsonify(to_json(req)), 201


@require_auth
def get_my_requests():
    """List the authenticated client's requests with the trainers' usernames."""
    user_id = current_user_id()
    try:
        rows = get_db().execute(
            """
            SELECT tr.id, tr.client_id, tr.trainer_id, tr.status, tr.message,
                   tr.created_at, tr.updated_at, u.username AS trainer_username
            FROM trainer_requests tr
            JOIN users u ON tr.trainer_id = u.id
            WHERE tr.client_id = ?
            """,
            (user_id,),
        ).fetchall()
    except sqlite3.Error as exc:
        raise ApiError(500, f"Database error: {exc}") from exc

    requests = []
    for row in rows:
        required = ("status", "message", "created_at", "updated_at", "trainer_username")
        if any(row[name] is None for name in required):
            logger.warning("Skipping incomplete trainer request %s", row["id"])
            continue
        try:
            created_at = _to_datetime(row["created_at"])
            updated_at = _to_datetime(row["updated_at"])
        except ValueError as exc:
            logger.warning("Skipping trainer request %s: %s", row["id"], exc)
            continue
        requests.append(
            {
                "id": row["id"],
                "client_id": row["client_id"],
                "trainer_id": row["trainer_id"],
                "status": row["status"],
                "message": row["message"],
                "created_at": created_at,
                "updated_at": updated_at,
                "trainer_username": row["trainer_username"],
            }
        )
    return _list_or_null(requests), 200


@require_auth
def cancel_request(request_id: str):
    """Delete a trainer request."""
    try:
        ident = _atoi(request_id)
    except ValueError as exc:
        raise ApiError(400, "Invalid request ID") from exc
    try:
        TrainerRequestRepository(get_db()).delete(ident)
    except sqlite3.Error as exc:
        raise ApiError(500, "Failed to cancel request") from exc
    return jsonify({"message": "Request cancelled successfully"}), 200


@require_auth
def get_my_trainer():
    """Return the trainee's trainer, falling back to an approved request."""
    trainee_id = current_user_id()
    conn = get_db()
    try:
        trainer = TrainerTraineeRepository(conn).get_trainee_trainer(trainee_id)
    except sqlite3.Error as exc:
        raise ApiError(500, f"Database error: {exc}") from exc
    if trainer is not None:
        return jsonify(to_json(trainer)), 200

    try:
        approved = TrainerRequestRepository(conn).get_approved_request(trainee_id)
    except RecordNotFound as exc:
        raise ApiError(404, "No approved trainer found") from exc
    except sqlite3.Error as exc:
        raise ApiError(500, f"Failed to get trainer: {exc}") from exc

    try:
        row = conn.execute(
            "SELECT id, username, role FROM users WHERE id = ?", (approved.trainer_id,)
        ).fetchone()
    except sqlite3.Error as exc:
        raise ApiError(500, f"Failed to get trainer details: {exc}") from exc
    if row is None:
        raise ApiError(500, "Failed to get trainer details: no rows in result set")
    user = User(id=row["id"], username=row["username"], role=row["role"])
    return jsonify(to_json(user)), 200


@require_auth
def get_requests_for_me():
    """List the requests addressed to the authenticated trainer."""
    trainer_id = current_user_id()
    if current_role() != "trainer":
        raise ApiError(403, "Only trainers can access trainer requests")
    try:
        requests = TrainerRequestRepository(get_db()).get_by_trainer_id(trainer_id)
    except sqlite3.Error as exc:
        raise ApiError(500, "Failed to get requests") from exc
    return _list_or_null(requests), 200


@require_auth
def update_request_status(request_id: str):
    """Approve or reject a request; approval links the trainer and the client."""
    try:
        ident = _atoi(request_id)
    except ValueError as exc:
        raise ApiError(400, "Invalid request ID") from exc
    trainer_id = current_user_id()
    if current_role() != "trainer":
        raise ApiError(403, "Only trainers can update request status")

    conn = get_db()
    try:
        pending = TrainerRequestRepository(conn).get_by_id(ident)
    except (RecordNotFound, sqlite3.Error) as exc:
        raise ApiError(500, "Failed to get request details") from exc
    if pending.trainer_id != trainer_id:
        raise ApiError(403, "You can only update requests sent to you")

    body = request.get_json(force=True, silent=True)
    status = body.get("status") if isinstance(body, dict) else None
    if not isinstance(status, str) or not status:
        raise ApiError(400, "Invalid request body")
    if status not in _ALLOWED_DECISIONS:
        raise ApiError(400, "Status must be 'approved' or 'rejected'")

    now = datetime.now().strftime(TIMESTAMP_FORMAT)
    try:
        with conn:
            try:
                conn.execute(
                    "UPDATE trainer_requests SET status = ?, updated_at = ? WHERE id = ?",
                    (status, now, ident),
                )
            except sqlite3.Error as exc:
                raise ApiError(500, "Failed to update request status") from exc

            if status == "approved":
                try:
                    (existing,) = conn.execute(
                        "SELECT COUNT(*) FROM trainer_trainee "
                        "WHERE trainer_id = ? AND trainee_id = ?",
                        (trainer_id, pending.client_id),
                    ).fetchone()
                except sqlite3.Error as exc:
                    logger.error("Error checking existing relationship: %s", exc)
                    raise ApiError(500, "Failed to check existing relationship") from exc
                if existing == 0:
                    try:
                        conn.execute(
                            "INSERT INTO trainer_trainee "
                            "(trainer_id, trainee_id, created_at, updated_at) "
                            "VALUES (?, ?, ?, ?)",
                            (trainer_id, pending.client_id, now, now),
                        )
                    except sqlite3.Error as exc:
                        raise ApiError(
                            500,
                            f"Failed to create trainer-trainee relationship: {exc}",
                        ) from exc
                else:
                    logger.info(
                        "Relationship already exists between trainer %d and trainee %d",
                        trainer_id,
                        pending.client_id,
                    )
    except sqlite3.Error as exc:
        raise ApiError(500, "Failed to commit transaction") from exc

    return jsonify({"message": "Request status updated successfully", "status": status}), 200


# ---------------------------------------------------------------------------
# Trainer-trainee links
# ---------------------------------------------------------------------------


@require_auth
def assign_trainee():
    """Link a trainee to the authenticated trainer."""
    trainer_id = current_user_id()
    if current_role() != "trainer":
        raise ApiError(403, "Only trainers can assign trainees")
    body = _json_object()
    trainee_id = body.get("trainee_id")
    if trainee_id is not None and not _is_int(trainee_id):
        raise ApiError(400, "field 'trainee_id' must be an integer")
    if not trainee_id:
        raise ApiError(400, "field 'trainee_id' is required")
    try:
        TrainerTraineeRepository(get_db()).assign_trainee(trainer_id, trainee_id)
    except sqlite3.Error as exc:
        raise ApiError(500, "Failed to assign trainee") from exc
    return jsonify({"message": "Trainee assigned successfully"}), 200


@require_auth
def list_trainees():
    """List the authenticated trainer's trainees with activity details."""
    trainer_id = current_user_id()
    if current_role() != "trainer":
        raise ApiError(403, "Only trainers can view trainees")
    try:
        trainees = TrainerTraineeRepository(get_db()).get_trainer_trainees(trainer_id)
    except (sqlite3.Error, ValueError) as exc:
        logger.error("Error fetching trainees: %s", exc)
        raise ApiError(500, f"Failed to get trainees: {exc}") from exc
    return _list_or_null(trainees), 200


@require_auth
def remove_trainee(trainee_id: str):
    """Unlink a trainee from the authenticated trainer."""
    trainer_id = current_user_id()
    if current_role() != "trainer":
        raise ApiError(403, "Only trainers can remove trainees")
    try:
        trainee = _atoi(trainee_id)
    except ValueError as exc:
        raise ApiError(400, "Invalid trainee ID") from exc
    try:
        TrainerTraineeRepository(get_db()).remove_trainee(trainer_id, trainee)
    except sqlite3.Error as exc:
        raise ApiError(500, "Failed to remove trainee") from exc
    return jsonify({"message": "Trainee removed successfully"}), 200


@require_auth
def get_assigned_trainer():
    """Return the trainer the authenticated trainee is linked to."""
    trainee_id = current_user_id()
    try:
        trainer = TrainerTraineeRepository(get_db()).get_trainee_trainer(trainee_id)
    except sqlite3.Error as exc:
        raise ApiError(500, "Failed to get trainer") from exc
    if trainer is None:
        raise ApiError(404, "No trainer assigned")
    return jsonify(to_json(trainer)), 200