import json
import logging
import sqlite3
from typing import Any, Callable, Dict, Optional

from cookbook_rag.db.connect import get_conn, transaction
from services.models import ExtractedRecord

logger = logging.getLogger(__name__)


class DuplicateRecipeError(RuntimeError):
    pass


def init_db() -> None:
    con = get_conn()
    try:
        cur = con.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS recipes (
            id INTEGER PRIMARY KEY,
            dish_name TEXT UNIQUE NOT NULL,
            description TEXT,
            prep_time TEXT,
            cook_time TEXT,
            servings TEXT,
            categories TEXT DEFAULT '[]',
            language TEXT DEFAULT 'vi',
            source TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        );
        """)

        cur.execute("""
        CREATE TABLE IF NOT EXISTS recipe_ingredients (
            id INTEGER PRIMARY KEY,
            recipe_id INTEGER NOT NULL,
            position INTEGER NOT NULL,
            name TEXT NOT NULL,
            quantity TEXT NOT NULL,
            FOREIGN KEY(recipe_id) REFERENCES recipes(id) ON DELETE CASCADE
        );
        """)

        # step_number is the printed number and may repeat; position keeps order.
        cur.execute("""
        CREATE TABLE IF NOT EXISTS recipe_steps (
            id INTEGER PRIMARY KEY,
            recipe_id INTEGER NOT NULL,
            position INTEGER NOT NULL,
            step_number INTEGER NOT NULL,
            description TEXT NOT NULL,
            FOREIGN KEY(recipe_id) REFERENCES recipes(id) ON DELETE CASCADE
        );
        """)
        con.commit()
    finally:
        con.close()


def recipe_exists(dish_name: str) -> bool:
    con = get_conn()
    try:
        cur = con.execute("SELECT 1 FROM recipes WHERE dish_name = ? LIMIT 1", (dish_name,))
        return cur.fetchone() is not None
    finally:
        con.close()


def save_recipe(
    record: ExtractedRecord,
    source: str = "pdf-import",
    language: str = "vi",
    before_commit: Optional[Callable[[int], None]] = None,
) -> int:
    """Insert a recipe with its ingredients and steps. Returns the new row id.

    ``before_commit`` runs inside the transaction with the new id; if it raises,
    the insert is rolled back and the exception propagates.
    """
    try:
        with transaction() as con:
            cur = con.execute(
                """
                INSERT INTO recipes (
                    dish_name, description, prep_time, cook_time, servings,
                    categories, language, source
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.title,
                    record.description,
                    record.prep_time,
                    record.cook_time,
                    record.servings,
                    json.dumps(sorted(record.categories), ensure_ascii=False),
                    language,
                    source,
                ),
            )
            recipe_id = int(cur.lastrowid)

            con.executemany(
                """
                INSERT INTO recipe_ingredients (recipe_id, position, name, quantity)
                VALUES (?, ?, ?, ?)
                """,
                [
                    (recipe_id, position, item.name, item.quantity)
                    for position, item in enumerate(record.ingredients, start=1)
                ],
            )
            con.executemany(
                """
                INSERT INTO recipe_steps (recipe_id, position, step_number, description)
                VALUES (?, ?, ?, ?)
                """,
                [
                    (recipe_id, position, step.number, step.text)
                    for position, step in enumerate(record.steps, start=1)
                ],
            )
            if before_commit is not None:
                before_commit(recipe_id)
    except sqlite3.IntegrityError as exc:
        raise DuplicateRecipeError(f"Recipe already exists: {record.title}") from exc

    logger.debug("Stored recipe %s as id %s", record.title, recipe_id)
    return recipe_id


def get_recipe(dish_name: str) -> Optional[Dict[str, Any]]:
    """Full recipe in the record wire shape, or None."""
    con = get_conn()
    try:
        cur = con.execute("SELECT * FROM recipes WHERE dish_name = ?", (dish_name,))
        row = cur.fetchone()
        if not row:
            return None

        recipe = dict(row)
        ingredients = con.execute(
            "SELECT name, quantity FROM recipe_ingredients WHERE recipe_id = ? ORDER BY position",
            (recipe["id"],),
        ).fetchall()
        steps = con.execute(
            "SELECT step_number, description FROM recipe_steps WHERE recipe_id = ? ORDER BY position",
            (recipe["id"],),
        ).fetchall()
    finally:
        con.close()

    return {
        "id": recipe["id"],
        "title": recipe["dish_name"],
        "description": recipe["description"],
        "prepTime": recipe["prep_time"],
        "cookTime": recipe["cook_time"],
        "servings": recipe["servings"],
        "ingredients": [{"name": r["name"], "quantity": r["quantity"]} for r in ingredients],
        "steps": [{"number": r["step_number"], "text": r["description"]} for r in steps],
        "categories": json.loads(recipe["categories"] or "[]"),
        "language": recipe["language"],
        "source": recipe["source"],
    }


def count_recipes() -> int:
    con = get_conn()
    try:
        return int(con.execute("SELECT COUNT(*) FROM recipes").fetchone()[0])
    finally:
        con.close()
