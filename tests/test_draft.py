import asyncio
import json

import pytest

from firexplorer.model.document import Document
from firexplorer.state.draft import (
    INVALID_JSON_MESSAGE,
    DraftEditor,
    DraftRow,
    DraftValidationError,
    format_row_value,
    parse_fields,
    parse_row_value,
)
from firexplorer.state.store import CommitStatus, SessionStore


def snapshot(rows):
    return [(row.key, row.value) for row in rows]


def test_new_draft_starts_with_placeholder_field():
    editor = DraftEditor()
    assert editor.is_new
    assert editor.document_id is None
    assert snapshot(editor.rows) == [("key", "value")]
    assert json.loads(editor.text) == {"key": "value"}


def test_existing_document_rows_show_raw_values():
    document = Document(id="b", fields={"name": "Bob", "age": 42, "admin": False, "meta": {"a": [1]}, "x": None})
    editor = DraftEditor(document)
    assert editor.document_id == "b"
    assert snapshot(editor.rows) == [
        ("name", "Bob"),
        ("age", "42"),
        ("admin", "false"),
        ("meta", '{\n  "a": [\n    1\n  ]\n}'),
        ("x", "null"),
    ]


def test_row_values_parse_as_json_or_fall_back_to_string():
    assert parse_row_value("42") == 42
    assert parse_row_value('{"a": 1}') == {"a": 1}
    assert parse_row_value("true") is True
    assert parse_row_value("hello") == "hello"
    assert parse_row_value("") == ""
    assert format_row_value("42") == "42"


def test_rows_to_text_drops_blank_keys_and_types_values():
    editor = DraftEditor()
    editor.rows_changed(
        [
            DraftRow(" name ", "Anna"),
            DraftRow("", "ignored"),
            DraftRow("   ", "ignored too"),
            DraftRow("age", "31"),
            DraftRow("tags", '["a", "b"]'),
            DraftRow("broken", '{"a":'),
        ]
    )
    assert json.loads(editor.text) == {"name": "Anna", "age": 31, "tags": ["a", "b"], "broken": '{"a":'}
    assert editor.error is None


def test_text_to_rows_diffs_by_key():
    editor = DraftEditor(Document(id="d", fields={"a": 1, "b": "two", "c": True}))
    rows_before = list(editor.rows)
    changed = editor.text_changed(json.dumps({"a": 1, "b": "TWO", "d": [1, 2]}))
    assert changed
    assert snapshot(editor.rows) == [("a", "1"), ("b", "TWO"), ("d", "[\n  1,\n  2\n]")]
    assert editor.rows[0] is rows_before[0]
    assert editor.rows[1] is rows_before[1]


def test_invalid_text_reports_error_and_keeps_rows():
    editor = DraftEditor(Document(id="d", fields={"a": 1}))
    before = snapshot(editor.rows)
    assert editor.text_changed('{"a": 1,') is False
    assert editor.error == INVALID_JSON_MESSAGE
    assert snapshot(editor.rows) == before
    assert editor.text == '{"a": 1,'

    editor.text_changed('{"a": 2}')
    assert editor.error is None
    assert snapshot(editor.rows) == [("a", "2")]


def test_round_trip_rows_text_rows_is_a_noop():
    document = Document(id="r", fields={"z": 1, "a": "text", "m": {"k": [1, 2, {"x": None}]}, "f": 1.5, "t": True})
    editor = DraftEditor(document)
    rows_before = list(editor.rows)
    editor.rows_changed(list(editor.rows))
    text = editor.text

    notified = []
    editor.bind_views(on_rows=notified.append, on_text=None)
    editor.text_changed(text)
    assert notified == []
    assert editor.rows == rows_before
    assert [row.key for row in editor.rows] == ["z", "a", "m", "f", "t"]


def test_view_echo_does_not_start_another_sync():
    editor = DraftEditor()
    echoes = []

    def echo_text(text):
        # A text widget would fire its change signal while being updated.
        echoes.append(editor.text_changed(text))

    def echo_rows(rows):
        echoes.append(editor.rows_changed(list(rows)))

    editor.bind_views(on_rows=echo_rows, on_text=echo_text)

    editor.rows_changed([DraftRow("key", "value"), DraftRow("n", "1")])
    assert echoes == [False]
    assert editor.syncing is None

    editor.text_changed('{"key": "value", "n": 2}')
    assert echoes == [False, False]
    assert snapshot(editor.rows) == [("key", "value"), ("n", "2")]
    assert editor.syncing is None


def test_guard_is_released_when_a_view_callback_raises():
    def boom(_):
        raise RuntimeError("widget gone")

    editor = DraftEditor(on_text=boom)
    with pytest.raises(RuntimeError):
        editor.rows_changed()
    assert editor.syncing is None
    assert editor.text_changed('{"k": 1}') is True


def test_add_and_remove_rows():
    editor = DraftEditor(Document(id="d", fields={"a": 1, "b": 2}))
    editor.add_row()
    assert snapshot(editor.rows)[-1] == ("", "")
    assert json.loads(editor.text) == {"a": 1, "b": 2}
    editor.remove_row(0)
    assert json.loads(editor.text) == {"b": 2}


def test_validated_fields_requires_an_object():
    editor = DraftEditor()
    editor.text_changed("[1, 2]")
    with pytest.raises(DraftValidationError):
        editor.validated_fields()
    assert editor.error is not None
    assert editor.syncing is None


def test_blank_new_id_is_left_to_the_backend():
    editor = DraftEditor()
    editor.set_document_id("   ")
    assert editor.document_id is None
    editor.set_document_id("custom")
    assert editor.document_id == "custom"

    existing = DraftEditor(Document(id="fixed", fields={}))
    existing.set_document_id("other")
    assert existing.document_id == "fixed"


def test_commit_invalid_text_leaves_backend_untouched(source):
    store = SessionStore(source)

    async def scenario():
        session = await store.open_session("people")
        store.begin_edit("people", session.documents[0])
        store.edit_text_changed('{"name": ')
        return await store.commit_edit()

    result = asyncio.run(scenario())
    assert result.status is CommitStatus.INVALID
    assert result.message == INVALID_JSON_MESSAGE
    assert not any(call[0] == "set_document" for call in source.calls)
    assert source.collections["people"]["a"] == {"name": "Anna", "city": "Oslo"}
    assert store.editor is not None


def test_commit_new_document_generates_id(source):
    store = SessionStore(source)

    async def scenario():
        await store.open_session("people")
        store.begin_edit("people")
        store.edit_rows_changed([DraftRow("name", "Eve"), DraftRow("age", "30")])
        result = await store.commit_edit()
        await store.refresh("people")
        return result

    result = asyncio.run(scenario())
    assert result.ok
    assert result.document_id == "generated-0001"
    assert source.collections["people"]["generated-0001"] == {"name": "Eve", "age": 30}
    assert store.editor is None
    assert "generated-0001" in [doc.id for doc in store.get("people").documents]


def test_commit_existing_document_overwrites_it(source):
    store = SessionStore(source)

    async def scenario():
        session = await store.open_session("people")
        store.begin_edit("people", session.documents[1])
        store.edit_text_changed('{"name": "Robert"}')
        return await store.commit_edit()

    result = asyncio.run(scenario())
    assert result.status is CommitStatus.SAVED
    assert source.collections["people"]["b"] == {"name": "Robert"}


def test_backend_failure_on_commit_keeps_the_draft(source):
    store = SessionStore(source)

    async def scenario():
        await store.open_session("people")
        store.begin_edit("people")
        source.fail_with("permission denied")
        return await store.commit_edit()

    result = asyncio.run(scenario())
    assert result.status is CommitStatus.FAILED
    assert result.message == "permission denied"
    assert store.editor is not None


def test_delete_edited_document(source):
    store = SessionStore(source)

    async def scenario():
        session = await store.open_session("people")
        store.begin_edit("people", session.documents[0])
        deleted = await store.delete_edited()
        store.begin_edit("people")
        unsaved = await store.delete_edited()
        return deleted, unsaved

    deleted, unsaved = asyncio.run(scenario())
    assert deleted.status is CommitStatus.DELETED
    assert "a" not in source.collections["people"]
    assert unsaved.status is CommitStatus.INVALID


def test_edit_operations_require_an_open_draft(source):
    store = SessionStore(source)
    with pytest.raises(RuntimeError):
        store.edit_text_changed("{}")


def test_non_finite_literals_are_not_json():
    assert parse_row_value("NaN") == "NaN"
    assert parse_row_value("Infinity") == "Infinity"
    assert parse_row_value("-Infinity") == "-Infinity"
    with pytest.raises(DraftValidationError):
        parse_fields('{"score": NaN}')


def test_string_fields_spelled_like_non_finite_numbers_stay_strings():
    editor = DraftEditor(Document(id="d", fields={"grade": "NaN", "limit": "Infinity"}))
    editor.rows_changed(list(editor.rows))
    assert parse_fields(editor.text) == {"grade": "NaN", "limit": "Infinity"}
    assert snapshot(editor.rows) == [("grade", "NaN"), ("limit", "Infinity")]


def test_commit_rejects_non_finite_literals_in_text(source):
    store = SessionStore(source)

    async def scenario():
        session = await store.open_session("people")
        store.begin_edit("people", session.documents[1])
        store.edit_text_changed('{"score": NaN}')
        return await store.commit_edit()

    result = asyncio.run(scenario())
    assert result.status is CommitStatus.INVALID
    assert result.message == INVALID_JSON_MESSAGE
    assert not any(call[0] == "set_document" for call in source.calls)
    assert source.collections["people"]["b"] == {"name": "Bob", "age": 42}


def test_text_edit_keeps_rows_whose_keys_have_surrounding_spaces():
    editor = DraftEditor()
    editor.rows_changed([DraftRow(" name ", "Anna")])
    row = editor.rows[0]
    editor.text_changed('{"name": "Bob"}')
    assert editor.rows == [row]
    assert row.value == "Bob"
