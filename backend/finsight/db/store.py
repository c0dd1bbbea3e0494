from typing import Any

from psycopg import sql

_TX_COLUMNS = """
    t.transaction_id::text AS transaction_id,
    t.username,
    t.date,
    t.transaction_type,
    t.amount,
    t.note,
    t.category_id::text AS category_id,
    t.created_at,
    t.updated_at
"""

_CATEGORY_COLUMNS = """
    c.category_id::text AS category_id,
    c.username,
    c.name,
    c.icon,
    c.category_type,
    c.created_at,
    c.updated_at
"""

TX_UPDATABLE = ("date", "transaction_type", "amount", "note", "category_id")
CATEGORY_UPDATABLE = ("name", "icon", "category_type")


class PostgresRecordStore:
    """Owner-scoped reads and writes over the users, categories and
    transactions tables. Every query filters on ``username``."""

    def __init__(self, conn) -> None:
        self._conn = conn

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def _fetchone(self, query, params) -> dict[str, Any] | None:
        with self._conn.cursor() as cur:
            cur.execute(query, params)
            return cur.fetchone()

    def _fetchall(self, query, params) -> list[dict[str, Any]]:
        with self._conn.cursor() as cur:
            cur.execute(query, params)
            return cur.fetchall()

    # users

    def get_user(self, username: str) -> dict[str, Any] | None:
        return self._fetchone(
            "SELECT username, password_hash, full_name FROM users WHERE username=%s",
            (username,),
        )

    def insert_user(self, username: str, password_hash: str, full_name: str) -> None:
        with self._conn.cursor() as cur:
            cur.execute(
                "INSERT INTO users (username, password_hash, full_name) VALUES (%s, %s, %s)",
                (username, password_hash, full_name),
            )

    # categories

    def fetch_owned_categories(self, owner_id: str) -> list[dict[str, Any]]:
        return self._fetchall(
            f"""
            SELECT {_CATEGORY_COLUMNS}
            FROM categories c
            WHERE c.username=%s
            ORDER BY c.name, c.category_id
            """,
            (owner_id,),
        )

    def get_category(self, owner_id: str, category_id: str) -> dict[str, Any] | None:
        return self._fetchone(
            f"""
            SELECT {_CATEGORY_COLUMNS}
            FROM categories c
            WHERE c.username=%s AND c.category_id=%s::uuid
            """,
            (owner_id, category_id),
        )

    def insert_category(self, owner_id: str, name: str, icon: str | None, category_type: str) -> dict[str, Any]:
        return self._fetchone(
            """
            INSERT INTO categories AS c (username, name, icon, category_type)
            VALUES (%s, %s, %s, %s)
            RETURNING c.category_id::text AS category_id,
                      c.username, c.name, c.icon, c.category_type,
                      c.created_at, c.updated_at
            """,
            (owner_id, name, icon, category_type),
        )

    def update_category(self, owner_id: str, category_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        return self._update("categories", "category_id", CATEGORY_UPDATABLE, owner_id, category_id, fields)

    def delete_category(self, owner_id: str, category_id: str) -> bool:
        # Transactions keep their category_id; the report renders them as uncategorized.
        row = self._fetchone(
            """
            DELETE FROM categories
            WHERE username=%s AND category_id=%s::uuid
            RETURNING category_id
            """,
            (owner_id, category_id),
        )
        return row is not None

    # transactions

    def fetch_owned_transactions(self, owner_id: str) -> list[dict[str, Any]]:
        return self._fetchall(
            f"""
            SELECT {_TX_COLUMNS}
            FROM transactions t
            WHERE t.username=%s
            """,
            (owner_id,),
        )

    def list_transactions(self, owner_id: str) -> list[dict[str, Any]]:
        return self._fetchall(
            f"""
            SELECT {_TX_COLUMNS}
            FROM transactions t
            WHERE t.username=%s
            ORDER BY t.date DESC, t.transaction_id DESC
            """,
            (owner_id,),
        )

    def get_transaction(self, owner_id: str, transaction_id: str) -> dict[str, Any] | None:
        return self._fetchone(
            f"""
            SELECT {_TX_COLUMNS}
            FROM transactions t
            WHERE t.username=%s AND t.transaction_id=%s::uuid
            """,
            (owner_id, transaction_id),
        )

    def insert_transaction(
        self,
        owner_id: str,
        date,
        transaction_type: str,
        amount,
        note: str,
        category_id: str | None,
    ) -> dict[str, Any]:
        return self._fetchone(
            """
            INSERT INTO transactions AS t (username, date, transaction_type, amount, note, category_id)
            VALUES (%s, %s, %s, %s, %s, %s::uuid)
            RETURNING t.transaction_id::text AS transaction_id,
                      t.username, t.date, t.transaction_type, t.amount, t.note,
                      t.category_id::text AS category_id,
                      t.created_at, t.updated_at
            """,
            (owner_id, date, transaction_type, amount, note, category_id),
        )

    def update_transaction(self, owner_id: str, transaction_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        return self._update("transactions", "transaction_id", TX_UPDATABLE, owner_id, transaction_id, fields)

    def delete_transaction(self, owner_id: str, transaction_id: str) -> bool:
        row = self._fetchone(
            """
            DELETE FROM transactions
            WHERE username=%s AND transaction_id=%s::uuid
            RETURNING transaction_id
            """,
            (owner_id, transaction_id),
        )
        return row is not None

    def _update(
        self,
        table: str,
        id_column: str,
        allowed: tuple[str, ...],
        owner_id: str,
        record_id: str,
        fields: dict[str, Any],
    ) -> dict[str, Any] | None:
        unknown = set(fields) - set(allowed)
        if unknown:
            raise ValueError(f"Cannot update {', '.join(sorted(unknown))} on {table}")

        assignments = [
            sql.SQL("{} = {}").format(
                sql.Identifier(col),
                sql.SQL("%s::uuid") if col.endswith("_id") else sql.Placeholder(),
            )
            for col in fields
        ]
        assignments.append(sql.SQL("updated_at = now()"))
        query = sql.SQL(
            "UPDATE {table} SET {assignments} WHERE username=%s AND {id_col}=%s::uuid RETURNING {id_col}::text AS {id_col}"
        ).format(
            table=sql.Identifier(table),
            assignments=sql.SQL(", ").join(assignments),
            id_col=sql.Identifier(id_column),
        )
        row = self._fetchone(query, (*fields.values(), owner_id, record_id))
        if row is None:
            return None
        if table == "transactions":
            return self.get_transaction(owner_id, record_id)
        return self.get_category(owner_id, record_id)
