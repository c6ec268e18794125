import json
from datetime import datetime, timezone

from firexplorer.model.display import (
    cell_value,
    documents_as_json,
    format_cell,
    render_json,
    table_headers,
    tree_label,
)
from firexplorer.model.document import Document


def test_format_cell():
    assert format_cell(None) == ""
    assert format_cell(True) == "true"
    assert format_cell(3) == "3"
    assert format_cell("text") == "text"
    assert format_cell({"a": [1, 2]}) == '{"a": [1, 2]}'


def test_table_headers_start_with_identifier_in_first_seen_order():
    documents = [
        Document(id="1", fields={"name": "Anna", "age": 3}),
        Document(id="2", fields={"city": "Oslo", "name": "Bob"}),
    ]
    assert table_headers(documents) == ["_id", "name", "age", "city"]
    assert cell_value(documents[1], "_id") == "2"
    assert cell_value(documents[1], "age") == ""


def test_tree_labels():
    assert tree_label("tags", ["a", "b"]) == "tags: [2 items]"
    assert tree_label("meta", {"a": 1}) == "meta: {...}"
    assert tree_label("name", "Anna") == "name: Anna"


def test_backend_values_without_json_form_are_stringified():
    moment = datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert json.loads(render_json({"at": moment})) == {"at": str(moment)}


def test_documents_as_json():
    text = documents_as_json([Document(id="x", fields={"n": 1})])
    assert json.loads(text) == [{"id": "x", "data": {"n": 1}}]


def test_non_finite_numbers_render_as_strict_json():
    text = render_json({"ratio": float("nan"), "limits": [float("inf"), -float("inf"), 1.5]})
    assert "NaN" not in text
    assert "Infinity" not in text
    assert json.loads(text) == {"ratio": "nan", "limits": ["inf", "-inf", 1.5]}
