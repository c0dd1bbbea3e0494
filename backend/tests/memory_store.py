import uuid
from datetime import datetime, timezone
from typing import Any

from psycopg.errors import UniqueViolation


class InMemoryRecordStore:
    """Dict-backed stand-in for PostgresRecordStore used by the test suites."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.categories: list[dict[str, Any]] = []
        self.transactions: list[dict[str, Any]] = []
        self.commits = 0
        self.rollbacks = 0
        self.fail_reads = False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def get_user(self, username):
        return self.users.get(username)

    def insert_user(self, username, password_hash, full_name):
        if username in self.users:
            raise UniqueViolation("duplicate key value violates unique constraint \"users_pkey\"")
        self.users[username] = {"username": username, "password_hash": password_hash, "full_name": full_name}

    def add_category(self, username, name, category_type, icon=None, category_id=None):
        now = datetime.now(timezone.utc)
        row = {
            "category_id": category_id or str(uuid.uuid4()),
            "username": username,
            "name": name,
            "icon": icon,
            "category_type": category_type,
            "created_at": now,
            "updated_at": now,
        }
        self.categories.append(row)
        return dict(row)

    def add_transaction(self, username, date, transaction_type, amount, note="", category_id=None, transaction_id=None):
        now = datetime.now(timezone.utc)
        row = {
            "transaction_id": transaction_id or str(uuid.uuid4()),
            "username": username,
            "date": date,
            "transaction_type": transaction_type,
            "amount": amount,
            "note": note,
            "category_id": category_id,
            "created_at": now,
            "updated_at": now,
        }
        self.transactions.append(row)
        return dict(row)

    def fetch_owned_categories(self, owner_id):
        if self.fail_reads:
            raise ConnectionError("store offline")
        return [dict(c) for c in self.categories if c["username"] == owner_id]

    def get_category(self, owner_id, category_id):
        return next(
            (dict(c) for c in self.categories if c["username"] == owner_id and c["category_id"] == category_id),
            None,
        )

    def insert_category(self, owner_id, name, icon, category_type):
        return self.add_category(owner_id, name, category_type, icon=icon)

    def update_category(self, owner_id, category_id, fields):
        return self._update(self.categories, "category_id", owner_id, category_id, fields)

    def delete_category(self, owner_id, category_id):
        return self._delete(self.categories, "category_id", owner_id, category_id)

    def fetch_owned_transactions(self, owner_id):
        if self.fail_reads:
            raise ConnectionError("store offline")
        return [dict(t) for t in self.transactions if t["username"] == owner_id]

    def list_transactions(self, owner_id):
        rows = self.fetch_owned_transactions(owner_id)
        return sorted(rows, key=lambda t: (t["date"], t["transaction_id"]), reverse=True)

    def get_transaction(self, owner_id, transaction_id):
        return next(
            (
                dict(t)
                for t in self.transactions
                if t["username"] == owner_id and t["transaction_id"] == transaction_id
            ),
            None,
        )

    def insert_transaction(self, owner_id, date, transaction_type, amount, note, category_id):
        return self.add_transaction(owner_id, date, transaction_type, amount, note=note, category_id=category_id)

    def update_transaction(self, owner_id, transaction_id, fields):
        return self._update(self.transactions, "transaction_id", owner_id, transaction_id, fields)

    def delete_transaction(self, owner_id, transaction_id):
        return self._delete(self.transactions, "transaction_id", owner_id, transaction_id)

    def _update(self, rows, id_key, owner_id, record_id, fields):
        for row in rows:
            if row["username"] == owner_id and row[id_key] == record_id:
                row.update(fields)
                row["updated_at"] = datetime.now(timezone.utc)
                return dict(row)
        return None

    def _delete(self, rows, id_key, owner_id, record_id):
        for idx, row in enumerate(rows):
            if row["username"] == owner_id and row[id_key] == record_id:
                del rows[idx]
                return True
        return False
