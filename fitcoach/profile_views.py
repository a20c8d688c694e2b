"""Views for trainee body profiles and trainers' public profiles."""

from __future__ import annotations

import logging
import re
import sqlite3
from typing import Any

from flask import jsonify, request

from fitcoach.database import RecordNotFound
from fitcoach.models import Profile, TrainerProfile, to_json
from fitcoach.profiles import ProfileRepository
from fitcoach.trainer_profiles import TrainerProfileRepository
from fitcoach.web import ApiError, current_role, current_user_id, get_db, require_auth

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")

_PROFILE_FIELDS = {
    "age": int,
    "height": int,
    "weight": float,
    "gender": str,
    "activity_level": float,
    "goal": str,
    "created_at": str,
    "updated_at": str,
}

_TRAINER_FIELDS = {
    "first_name": str,
    "last_name": str,
    "bio": str,
    "specializations": list,
    "experience": int,
    "certifications": list,
    "price_per_hour": float,
    "languages": list,
    "contact_email": str,
    "contact_phone": str,
    "location": str,
    "avatar": str,
    "is_active": bool,
}


class _BindError(ValueError):
    """Raised when a JSON body does not fit the target record."""


def _atoi(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


def _coerce(name: str, value: Any, kind: type) -> Any:
    if kind is bool:
        ok = isinstance(value, bool)
    elif kind is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    elif kind is float:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        value = float(value) if ok else value
    elif kind is list:
        ok = isinstance(value, list) and all(isinstance(item, str) for item in value)
        value = list(value) if ok else value
    else:
        ok = isinstance(value, str)
    if not ok:
        raise _BindError(
            f"cannot unmarshal {type(value).__name__} into field {name} "
            f"of type {kind.__name__}"
        )
    return value


def _bind(record_type: type, fields: dict[str, type]) -> Any:
    """Build a record from the JSON body; absent or null fields stay at defaults."""
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        raise _BindError("request body must be a JSON object")
    values = {
        name: _coerce(name, body[name], kind)
        for name, kind in fields.items()
        if body.get(name) is not None
    }
    return record_type(**values)


@require_auth
def get_profile():
    """Return the authenticated user's body profile."""
    try:
        profile = ProfileRepository(get_db()).get_by_user_id(current_user_id())
    except (RecordNotFound, sqlite3.Error) as exc:
        raise ApiError(404, "Profile not found") from exc
    return jsonify({"profile": to_json(profile)}), 200


@require_auth
def save_profile():
    """Create or replace the authenticated user's body profile."""
    user_id = current_user_id()
    try:
        profile: Profile = _bind(Profile, _PROFILE_FIELDS)
    except _BindError as exc:
        raise ApiError(400, str(exc)) from exc
    profile.user_id = user_id
    if not profile.is_valid():
        raise ApiError(400, "Invalid profile data. All fields are required.")
    try:
        ProfileRepository(get_db()).create_or_update(profile)
    except sqlite3.Error as exc:
        raise ApiError(500, str(exc)) from exc
    return jsonify({"message": "Profile saved", "profile": to_json(profile)}), 200


@require_auth
def check_profile():
    """Tell whether the authenticated user has a complete profile."""
    try:
        has_profile = ProfileRepository(get_db()).has_valid_profile(current_user_id())
    except sqlite3.Error as exc:
        raise ApiError(500, "DB error") from exc
    return jsonify({"has_profile": has_profile}), 200


@require_auth
def get_trainee_profile(trainee_id: str):
    """Let a trainer read the profile of one of their trainees."""
    trainer_id = current_user_id()
    if current_role() != "trainer":
        raise ApiError(403, "Only trainers can view trainee profiles")
    try:
        trainee = _atoi(trainee_id)
    except ValueError as exc:
        raise ApiError(400, "Invalid trainee ID") from exc

    conn = get_db()
    try:
        (count,) = conn.execute(
            "SELECT COUNT(*) FROM trainer_trainee WHERE trainer_id = ? AND trainee_id = ?",
            (trainer_id, trainee),
        ).fetchone()
    except sqlite3.Error as exc:
        logger.error("Error checking trainer-trainee relationship: %s", exc)
        raise ApiError(500, "Database error") from exc
    if count == 0:
        raise ApiError(403, "Trainee not assigned to this trainer")

    try:
        profile = ProfileRepository(conn).get_by_user_id(trainee)
    except (RecordNotFound, sqlite3.Error) as exc:
        logger.error("Error getting trainee profile: %s", exc)
        raise ApiError(404, "Trainee profile not found") from exc
    return jsonify({"profile": to_json(profile)}), 200


@require_auth
def get_trainer_profile():
    """Return the authenticated trainer's profile, or null when there is none."""
    user_id = current_user_id()
    try:
        profile = TrainerProfileRepository(get_db()).get_by_user_id(user_id)
    except (RecordNotFound, sqlite3.Error, ValueError) as exc:
        logger.info("Trainer profile not found for user %d: %s", user_id, exc)
        return jsonify({"profile": None}), 200
    if profile.is_empty():
        return jsonify({"profile": None}), 200
    return jsonify({"profile": to_json(profile)}), 200


@require_auth
def save_trainer_profile():
    """Create or replace the authenticated trainer's profile, marking it active."""
    user_id = current_user_id()
    try:
        profile: TrainerProfile = _bind(TrainerProfile, _TRAINER_FIELDS)
    except _BindError as exc:
        raise ApiError(400, f"Invalid JSON: {exc}") from exc
    profile.user_id = user_id
    profile.is_active = True
    if not profile.is_valid():
        raise ApiError(
            400, "Invalid trainer profile data. All required fields must be filled."
        )
    try:
        TrainerProfileRepository(get_db()).create_or_update(profile)
    except sqlite3.Error as exc:
        raise ApiError(500, f"Database error: {exc}") from exc
    return jsonify({"message": "Trainer profile saved", "profile": to_json(profile)}), 200


@require_auth
def check_trainer_profile():
    """Tell whether the authenticated trainer has a complete profile."""
    try:
        has_profile = TrainerProfileRepository(get_db()).has_valid_profile(
            current_user_id()
        )
    except sqlite3.Error as exc:
        raise ApiError(500, "DB error") from exc
    return jsonify({"has_profile": has_profile}), 200


@require_auth
def get_trainer_by_id(trainer_id: str):
    """Return a trainer's public profile by user id."""
    try:
        trainer = _atoi(trainer_id)
    except ValueError as exc:
        raise ApiError(400, "Invalid trainer ID") from exc
    try:
        profile = TrainerProfileRepository(get_db()).get_by_user_id(trainer)
    except (RecordNotFound, sqlite3.Error, ValueError) as exc:
        logger.info("Trainer not found for ID %d: %s", trainer, exc)
        raise ApiError(404, "Trainer not found") from exc
    if profile.is_empty():
        raise ApiError(404, "Trainer profile is empty")
    body = to_json(profile)
    return jsonify({"trainer": body, "profile": body}), 200