import json
import logging
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .errors import RecipeValidationError, StoreError
from .models import Recipe, RecipeInput, RecipeUpdate

MAX_PAGE_SIZE = 100
SEARCH_LIMIT = 30

SCHEMA = """
CREATE TABLE IF NOT EXISTS recipes (
    id           TEXT PRIMARY KEY,
    name         TEXT NOT NULL,
    description  TEXT,
    ingredients  TEXT NOT NULL DEFAULT '[]',
    instructions TEXT NOT NULL DEFAULT '[]',
    prep_time    INTEGER,
    cook_time    INTEGER,
    servings     INTEGER,
    cuisine      TEXT,
    tags         TEXT NOT NULL DEFAULT '[]',
    source       TEXT,
    image_url    TEXT,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_recipes_name    ON recipes(name);
CREATE INDEX IF NOT EXISTS idx_recipes_cuisine ON recipes(cuisine);
CREATE INDEX IF NOT EXISTS idx_recipes_created ON recipes(created_at DESC);
"""

COLUMNS = (
    "id", "name", "description", "ingredients", "instructions", "prep_time",
    "cook_time", "servings", "cuisine", "tags", "source", "image_url",
    "created_at", "updated_at",
)

JSON_COLUMNS = ("ingredients", "instructions", "tags")


def _now() -> str:
    # fixed-width UTC text so lexical order equals time order
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _escape_like(query: str) -> str:
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _require_id(recipe_id: Any) -> str:
    if not isinstance(recipe_id, str):
        raise RecipeValidationError("Invalid recipe id: must be a string")
    return recipe_id


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def normalize_page(
    limit: Any = None, offset: Any = None, default_limit: int = 50
) -> Tuple[int, int]:
    """
    Normalize paging parameters.

    Missing, non-numeric, zero or negative limits fall back to the default;
    limits above the maximum are clamped. Offsets fall back to 0.
    """
    parsed_limit = _to_int(limit)
    if parsed_limit is None or parsed_limit <= 0:
        parsed_limit = default_limit
    parsed_limit = min(parsed_limit, MAX_PAGE_SIZE)

    parsed_offset = _to_int(offset)
    if parsed_offset is None or parsed_offset < 0:
        parsed_offset = 0

    return parsed_limit, parsed_offset


class RecipeStore:
    """
    SQLite-backed recipe store.

    All access goes through one connection guarded by a lock, so every call
    is atomic with respect to every other call. Methods are synchronous;
    async callers should run them with ``asyncio.to_thread``.
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or logging.getLogger("RecipeStore")
        self.db_path = str(db_path)
        self._lock = threading.RLock()

        try:
            self._conn = sqlite3.connect(
                self.db_path, check_same_thread=False, isolation_level=None
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA busy_timeout=5000;")
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to open recipe database {self.db_path}: {e}") from e

        self.logger.info(f"Recipe store opened at {self.db_path}")

    def close(self) -> None:
        with self._lock:
            self._conn.close()
        self.logger.info("Recipe store closed")

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                self._conn.execute("BEGIN IMMEDIATE;")
                yield self._conn
                self._conn.execute("COMMIT;")
            except sqlite3.Error as e:
                self._rollback()
                raise StoreError(f"Recipe database failure: {e}") from e
            except Exception:
                self._rollback()
                raise

    def _rollback(self) -> None:
        if self._conn.in_transaction:
            self._conn.execute("ROLLBACK;")

    def _query(
        self, sql: str, params: Union[Tuple[Any, ...], Mapping[str, Any]] = ()
    ) -> List[sqlite3.Row]:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"Recipe database failure: {e}") from e

    @staticmethod
    def _row_to_recipe(row: Mapping[str, Any]) -> Recipe:
        data = dict(row)
        for column in JSON_COLUMNS:
            data[column] = json.loads(data.get(column) or "[]")
        return Recipe.model_validate(data)

    @staticmethod
    def _recipe_to_row(recipe: Recipe) -> Dict[str, Any]:
        row = recipe.model_dump()
        for column in JSON_COLUMNS:
            row[column] = json.dumps(row[column], ensure_ascii=False)
        return row

    @staticmethod
    def _coerce(model, data: Union[Mapping[str, Any], Any]):
        if isinstance(data, model):
            return data
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise RecipeValidationError.from_pydantic(e) from e

    def _fetch(self, conn: sqlite3.Connection, recipe_id: str) -> Optional[Recipe]:
        row = conn.execute("SELECT * FROM recipes WHERE id = ?", (recipe_id,)).fetchone()
        return self._row_to_recipe(row) if row else None

    def save(self, data: Union[RecipeInput, Mapping[str, Any]]) -> Recipe:
        """
        Save a new recipe.

        Raises:
            RecipeValidationError: if the input fails validation
            StoreError: if the database write fails
        """
        recipe_input = self._coerce(RecipeInput, data)
        timestamp = _now()
        recipe = Recipe(
            id=str(uuid.uuid4()),
            created_at=timestamp,
            updated_at=timestamp,
            **recipe_input.model_dump(),
        )

        row = self._recipe_to_row(recipe)
        placeholders = ", ".join("?" for _ in COLUMNS)
        with self._transaction() as conn:
            conn.execute(
                f"INSERT INTO recipes ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                tuple(row[column] for column in COLUMNS),
            )

        self.logger.debug(f"Saved recipe {recipe.id} ({recipe.name})")
        return recipe

    def get(self, recipe_id: str) -> Optional[Recipe]:
        recipe_id = _require_id(recipe_id)
        rows = self._query("SELECT * FROM recipes WHERE id = ?", (recipe_id,))
        return self._row_to_recipe(rows[0]) if rows else None

    def list(
        self, limit: Any = None, offset: Any = None, default_limit: int = 50
    ) -> Tuple[List[Recipe], int]:
        """List recipes newest first, returning the page and the total count."""
        limit, offset = normalize_page(limit, offset, default_limit)
        with self._lock:
            rows = self._query(
                "SELECT * FROM recipes ORDER BY created_at DESC, rowid DESC "
                "LIMIT ? OFFSET ?",
                (limit, offset),
            )
            total = self.count()
        return [self._row_to_recipe(row) for row in rows], total

    def search(self, query: str) -> List[Recipe]:
        """
        Case-insensitive substring search, newest first, capped at 30.

        Case folding is SQLite LIKE folding, which covers ASCII letters only:
        "CRÈME" does not match "crème".
        """
        if not isinstance(query, str):
            raise RecipeValidationError("Invalid search: query must be a string")
        pattern = f"%{_escape_like(query)}%"
        rows = self._query(
            """
            SELECT * FROM recipes
            WHERE name LIKE :q ESCAPE '\\'
               OR description LIKE :q ESCAPE '\\'
               OR ingredients LIKE :q ESCAPE '\\'
               OR cuisine LIKE :q ESCAPE '\\'
               OR tags LIKE :q ESCAPE '\\'
            ORDER BY created_at DESC, rowid DESC
            LIMIT :limit
            """,
            {"q": pattern, "limit": SEARCH_LIMIT},
        )
        return [self._row_to_recipe(row) for row in rows]

    def update(
        self, recipe_id: str, data: Union[RecipeUpdate, Mapping[str, Any]]
    ) -> Optional[Recipe]:
        """
        Merge the supplied fields onto an existing recipe.

        The read, merge and write happen inside one transaction.

        Returns:
            The updated recipe, or None if no recipe has this id
        """
        recipe_id = _require_id(recipe_id)
        update = self._coerce(RecipeUpdate, data)

        with self._transaction() as conn:
            existing = self._fetch(conn, recipe_id)
            if existing is None:
                return None

            # never let updated_at move backwards
            updated_at = max(_now(), existing.updated_at)
            merged = existing.apply(update, updated_at)
            row = self._recipe_to_row(merged)
            assignments = ", ".join(f"{column} = ?" for column in COLUMNS[1:-2])
            conn.execute(
                f"UPDATE recipes SET {assignments}, updated_at = ? WHERE id = ?",
                tuple(row[column] for column in COLUMNS[1:-2])
                + (row["updated_at"], recipe_id),
            )

        self.logger.debug(f"Updated recipe {recipe_id}")
        return merged

    def delete(self, recipe_id: str) -> bool:
        recipe_id = _require_id(recipe_id)
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM recipes WHERE id = ?", (recipe_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            self.logger.debug(f"Deleted recipe {recipe_id}")
        return deleted

    def count(self) -> int:
        rows = self._query("SELECT COUNT(*) AS count FROM recipes")
        return rows[0]["count"]
