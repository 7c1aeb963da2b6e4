"""Integration tests: templates and prepared statements against SQLite in memory.

Covers literal expansion executed as-is, prepared statements over a raw
sqlite3 connection and over a SQLAlchemy connection, batches, MapSetter
updates and error wrapping from the driver.
"""
from __future__ import annotations

import io
import sqlite3

import pytest
from sqlalchemy import create_engine, text

import smileyql
from smileyql import MapSetter, SmileyPreparedStatement, SmileyTemplate
from smileyql.errors import NativeStatementError
from tests.fixtures import BIN_QUERY, BIN_ROWS, ITEM_ROWS, load_ddl


def test_literal_expansion_executes(db):
    template = SmileyTemplate.for_connection(db, BIN_QUERY + " ORDER BY item_number")
    rows = db.execute(template.apply({"aisle": 7, "level": 2})).fetchall()
    assert rows == [("I-200", 12)]


def test_literal_strings_with_quotes_execute(db):
    db.execute("INSERT INTO item_tbl VALUES ('I-300', 'Washer, 1/2''', NULL)")
    sql = smileyql.render(
        "SELECT item_number FROM item_tbl WHERE 1=1(: AND description = :description :)",
        {"description": "Washer, 1/2'"},
    )
    assert db.execute(sql).fetchall() == [("I-300",)]


def test_prepared_statement_on_sqlite(db):
    with smileyql.prepare(db, BIN_QUERY + " ORDER BY quantity") as statement:
        assert statement.execute_query() == [("I-100", 0), ("I-200", 12), ("I-100", 88)]
        statement.set_int("aisle", 7)
        assert statement.execute_query() == [("I-200", 12), ("I-100", 88)]
        statement.set_int("level", 1)
        assert statement.execute_query() == [("I-100", 88)]
        statement.clear_parameter("aisle")
        assert statement.execute_query() == [("I-100", 0), ("I-100", 88)]


def test_null_binding_includes_its_region(db):
    sql = "SELECT aisle FROM bin_tbl WHERE 1=1(: AND note IS :note :) ORDER BY aisle"
    with SmileyPreparedStatement(db, sql) as statement:
        assert len(statement.execute_query()) == 3
        statement.set_null("note")
        assert statement.execute_query() == [(7,), (9,)]


def test_execute_then_read_the_outcome(db):
    with SmileyPreparedStatement(db, BIN_QUERY + " ORDER BY quantity") as statement:
        statement.set_int("aisle", 7)
        assert statement.execute()
        assert statement.get_result_set().fetchall() == [("I-200", 12), ("I-100", 88)]
        assert statement.get_update_count() == -1
    sql = "UPDATE bin_tbl SET quantity = 0 WHERE 1=1(: AND aisle = :aisle :)"
    with SmileyPreparedStatement(db, sql) as statement:
        statement.set_int("aisle", 7)
        assert not statement.execute()
        assert statement.get_result_set() is None
        assert statement.get_update_count() == 2


def test_stream_is_written_again_after_another_binding_changes(db):
    sql = "UPDATE item_tbl SET picture = :picture WHERE item_number = :item"
    with SmileyPreparedStatement(db, sql) as statement:
        statement.set_binary_stream("picture", io.BytesIO(b"\x89PNG"))
        statement.set_string("item", "I-100")
        assert statement.execute_update() == 1
        statement.set_string("item", "I-200")
        assert statement.execute_update() == 1
    pictures = db.execute("SELECT picture FROM item_tbl ORDER BY item_number").fetchall()
    assert pictures == [(b"\x89PNG",), (b"\x89PNG",)]


def test_prepared_update_and_batch(db):
    sql = "UPDATE bin_tbl SET quantity = :quantity WHERE aisle = :aisle(: AND level = :level :)"
    with SmileyPreparedStatement(db, sql) as statement:
        statement.set_int("quantity", 5)
        statement.set_int("aisle", 7)
        assert statement.execute_update() == 2
        statement.set_int("quantity", 50)
        statement.set_int("level", 2)
        statement.add_batch()
        statement.set_int("aisle", 9)
        statement.set_int("level", 1)
        statement.add_batch()
        assert statement.execute_batch() == [1, 1]
    quantities = db.execute("SELECT aisle, level, quantity FROM bin_tbl ORDER BY aisle, level").fetchall()
    assert quantities == [(7, 1, 5), (7, 2, 50), (9, 1, 50)]


def test_map_setter_inserts_rows(db):
    sql = "INSERT INTO bin_tbl (aisle, level, bin_number, item_number, quantity) VALUES ( :aisle, :level, :bin, :item, :quantity )"
    setter = (
        MapSetter.builder()
        .int_var("aisle")
        .int_var("level")
        .int_var("bin")
        .string_var("item")
        .int_var("quantity")
        .build()
    )
    with SmileyPreparedStatement(db, sql) as statement:
        counts = setter.execute_update(
            statement,
            [
                {"aisle": 11, "level": 1, "bin": 1, "item": "I-100", "quantity": 4},
                {"aisle": 11, "level": 1, "bin": 2, "item": "I-200", "quantity": 6},
            ],
        )
    assert counts == [1, 1]
    assert db.execute("SELECT SUM(quantity) FROM bin_tbl WHERE aisle = 11").fetchone() == (10,)


def test_driver_errors_are_wrapped(db):
    sql = "INSERT INTO bin_tbl (aisle, level, bin_number, item_number) VALUES ( :aisle, :level, :bin, :item )"
    with SmileyPreparedStatement(db, sql) as statement:
        for name, value in {"aisle": 7, "level": 1, "bin": 8, "item": "dup"}.items():
            statement.set_object(name, value)
        with pytest.raises(NativeStatementError) as exc_info:
            statement.execute_update()
    assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)


def test_prepared_statement_over_sqlalchemy_connection():
    engine = create_engine("sqlite://")
    try:
        with engine.connect() as conn:
            for statement in load_ddl().split(";"):
                if statement.strip():
                    conn.execute(text(statement))
            conn.exec_driver_sql("INSERT INTO bin_tbl VALUES (?, ?, ?, ?, ?, ?)", BIN_ROWS)
            conn.exec_driver_sql("INSERT INTO item_tbl VALUES (?, ?, ?)", ITEM_ROWS)
            with SmileyPreparedStatement(conn, BIN_QUERY) as statement:
                statement.set_int("bin_number", 3)
                assert statement.execute_query() == [("I-100", 0)]
    finally:
        engine.dispose()
