"""Food product listing and the nutrition calculator."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterable
from typing import Any, Optional

from flask import jsonify, request

from fitcoach.models import FoodProduct, to_json
from fitcoach.web import ApiError, get_db, require_auth

_NUTRIENTS = ("calories", "protein", "fat", "carbs")


def nutrition_totals(
    items: Iterable[tuple[int, float]],
    lookup: Callable[[int], Optional[FoodProduct]],
) -> dict[str, float]:
    """Sum nutrients of (product_id, grams) portions; values are per 100 g.

    Products the lookup cannot find are skipped.
    """
    totals = dict.fromkeys(_NUTRIENTS, 0.0)
    for product_id, grams in items:
        product = lookup(product_id)
        if product is None:
            continue
        factor = grams / 100.0
        for nutrient in _NUTRIENTS:
            totals[nutrient] += getattr(product, nutrient) * factor
    return totals


def _product_from_row(row: sqlite3.Row) -> FoodProduct:
    return FoodProduct(
        id=row["id"],
        name=row["name"],
        calories=float(row["calories"]),
        protein=float(row["protein"]),
        fat=float(row["fat"]),
        carbs=float(row["carbs"]),
    )


def _product_lookup(conn: sqlite3.Connection) -> Callable[[int], Optional[FoodProduct]]:
    def lookup(product_id: int) -> Optional[FoodProduct]:
        try:
            row = conn.execute(
                "SELECT id, name, calories, protein, fat, carbs "
                "FROM food_products WHERE id = ?",
                (product_id,),
            ).fetchone()
            return None if row is None else _product_from_row(row)
        except (sqlite3.Error, TypeError, ValueError):
            return None

    return lookup


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _calc_items(body: Any) -> list[tuple[int, float]]:
    invalid = ApiError(400, "Invalid input")
    if not isinstance(body, dict):
        raise invalid
    raw = body.get("items")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise invalid
    items = []
    for entry in raw:
        if entry is None:
            items.append((0, 0.0))
            continue
        if not isinstance(entry, dict):
            raise invalid
        product_id = entry.get("product_id")
        grams = entry.get("grams")
        if product_id is None:
            product_id = 0
        if grams is None:
            grams = 0.0
        if not _is_int(product_id):
            raise invalid
        if not (_is_int(grams) or isinstance(grams, float)):
            raise invalid
        items.append((product_id, float(grams)))
    return items


@require_auth
def calculate():
    """Total the nutrients of the posted portions."""
    items = _calc_items(request.get_json(force=True, silent=True))
    return jsonify(nutrition_totals(items, _product_lookup(get_db()))), 200


@require_auth
def list_products():
    """List food products by name, optionally filtered by a search term."""
    search = request.args.get("search", "")
    query = "SELECT id, name, calories, protein, fat, carbs FROM food_products"
    params: tuple[Any, ...] = ()
    if search:
        query += " WHERE LOWER(name) LIKE LOWER(?)"
        params = (f"%{search}%",)
    query += " ORDER BY name"
    try:
        rows = get_db().execute(query, params).fetchall()
    except sqlite3.Error as exc:
        raise ApiError(500, "Database error") from exc
    try:
        products = [_product_from_row(row) for row in rows]
    except (TypeError, ValueError) as exc:
        raise ApiError(500, "Scan error") from exc
    return jsonify(to_json(products) if products else None), 200