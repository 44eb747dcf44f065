"""
Pytest configuration and fixtures for the inventory tests.
"""

import io
from datetime import date
from types import SimpleNamespace

import openpyxl
import pytest

from core.models import Medication


@pytest.fixture
def today():
    """Fixed reference date so expiry classification is stable."""
    return date(2025, 6, 15)


@pytest.fixture
def medications():
    """One record per expiry situation relative to 2025-06-15."""
    return [
        Medication("med-1", "010.000.0104", "Paracetamol 500mg", "L-100", date(2025, 1, 1), 10),
        Medication("med-2", "010.000.0105", "Ibuprofeno 400mg", "L-200", date(2025, 7, 1), 5),
        Medication("med-3", "010.000.0106", "Amoxicilina 500mg", "B-300", date(2026, 6, 1), 100),
        Medication("med-4", "010.000.0107", "Omeprazol 20mg", "L-400", date(2025, 6, 15), 0),
    ]


@pytest.fixture
def make_xlsx():
    """Build an in-memory .xlsx from a list of rows."""

    def build(rows: list[list]) -> bytes:
        wb = openpyxl.Workbook()
        ws = wb.active
        for row in rows:
            ws.append(row)
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    return build


class FakeQuery:
    """Chainable stand-in for a PostgREST query builder."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.op = None
        self.args = {}

    def select(self, columns):
        self.op = "select"
        return self

    def order(self, column):
        self.args["order"] = column
        return self

    def range(self, start, end):
        self.args["range"] = (start, end)
        return self

    def upsert(self, payload, on_conflict=None):
        self.op = "upsert"
        self.args["payload"] = payload
        self.args["on_conflict"] = on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    def neq(self, column, value):
        self.args["neq"] = (column, value)
        return self

    def execute(self):
        self.client.calls.append((self.table, self.op, dict(self.args)))
        if self.client.error is not None:
            raise self.client.error

        rows = self.client.tables.setdefault(self.table, {})
        if self.op == "select":
            ordered = [rows[k] for k in sorted(rows)]
            start, end = self.args["range"]
            return SimpleNamespace(data=ordered[start : end + 1])
        if self.op == "upsert":
            for row in self.args["payload"]:
                rows[row["id"]] = dict(row)
            return SimpleNamespace(data=self.args["payload"])
        if self.op == "delete":
            column, value = self.args["neq"]
            for key in [k for k, r in rows.items() if r[column] != value]:
                del rows[key]
            return SimpleNamespace(data=[])
        raise AssertionError(f"unexpected operation {self.op}")


class FakeSupabase:
    """Minimal in-memory Supabase client: table(...) queries over dict rows."""

    def __init__(self, rows: list[dict] | None = None, error: Exception | None = None):
        self.tables = {"medications": {r["id"]: dict(r) for r in rows or []}}
        self.error = error
        self.calls = []

    def table(self, name):
        return FakeQuery(self, name)

    def calls_for(self, op):
        return [c for c in self.calls if c[1] == op]


@pytest.fixture
def fake_supabase():
    return FakeSupabase


def remote_row(i: int, expiry: str = "2026-01-31", qty: int = 10) -> dict:
    return {
        "id": f"med-{i}",
        "clave": f"C{i}",
        "nombre": f"Medication {i}",
        "lote": f"L{i}",
        "fecha_caducidad": expiry,
        "cantidad": qty,
    }


@pytest.fixture
def make_remote_row():
    return remote_row


class FakeCompletions:
    """Records parse() calls and replays a canned parsed report or error."""

    def __init__(self, parsed=None, error=None):
        self.parsed = parsed
        self.error = error
        self.calls = []

    def parse(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(parsed=self.parsed)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_openai():
    """Factory for an OpenAI-like client exposing chat.completions.parse."""

    def build(parsed=None, error=None):
        completions = FakeCompletions(parsed=parsed, error=error)
        return SimpleNamespace(chat=SimpleNamespace(completions=completions))

    return build
