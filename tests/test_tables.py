import base64
from urllib.parse import parse_qs, urlparse

import pytest

from aroma import tables
from aroma.errors import ValidationError
from aroma.models import DiningTable


def test_ten_tables_get_distinct_tokens(store):
    created = [tables.create_table(store, str(number)) for number in range(1, 11)]

    tokens = {table.token for table in created}
    assert len(tokens) == 10
    assert [table.number for table in store.list_tables()] == [str(n) for n in range(1, 11)]


def test_token_collision_is_redrawn(store, monkeypatch):
    first = tables.create_table(store, "1")
    draws = iter([first.token, first.token, "t-fresh"])
    monkeypatch.setattr(tables, "generate_token", lambda: next(draws))

    second = tables.create_table(store, "2")

    assert second.token == "t-fresh"


def test_duplicate_table_number_rejected(store):
    tables.create_table(store, "5")

    with pytest.raises(ValidationError):
        tables.create_table(store, "5")
    with pytest.raises(ValidationError):
        tables.create_table(store, "  ")


def test_lookup_by_token(store):
    table = tables.create_table(store, "A1")

    assert store.get_table_by_token(table.token).number == "A1"
    assert store.get_table_by_token("missing") is None


def test_table_url_carries_number_and_token():
    table = DiningTable(id=1, number="Patio 3", token="t-abc123")

    url = tables.table_url("https://menu.example.com/", table)

    parsed = urlparse(url)
    assert parsed.netloc == "menu.example.com"
    assert parse_qs(parsed.query) == {"table": ["Patio 3"], "token": ["t-abc123"]}


def test_qr_data_url_is_svg():
    data_url = tables.qr_data_url("https://menu.example.com/?table=1&token=t-1")

    prefix = "data:image/svg+xml;base64,"
    assert data_url.startswith(prefix)
    assert b"<svg" in base64.b64decode(data_url[len(prefix):])
