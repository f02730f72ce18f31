import json

import pytest

from crpt_api.documents import (
    Description,
    Document,
    Product,
    document_from_dict,
    document_to_dict,
    load_document,
    to_json,
)
from crpt_api.errors import SerializationFailure


def test_to_json_uses_wire_keys() -> None:
    document = Document(
        description=Description(participant_inn="7700000001"),
        doc_id="doc-1",
        import_request=True,
        products=[Product(tnved_code="6401100000", uit_code="UIT-1")],
    )

    payload = json.loads(to_json(document))

    assert payload["description"] == {"participantInn": "7700000001"}
    assert payload["importRequest"] is True
    assert "import_request" not in payload
    assert payload["doc_id"] == "doc-1"
    assert payload["products"][0]["tnved_code"] == "6401100000"
    assert payload["products"][0]["uitu_code"] is None


def test_empty_document_serializes() -> None:
    payload = document_to_dict(Document())

    assert payload["description"] is None
    assert payload["products"] == []
    assert payload["importRequest"] is False


def test_to_json_keeps_non_ascii_text() -> None:
    document = Document(doc_status="ЧЕРНОВИК")

    assert "ЧЕРНОВИК" in to_json(document)


def test_to_json_rejects_nan() -> None:
    document = Document(doc_id=float("nan"))

    with pytest.raises(SerializationFailure):
        to_json(document)


def test_to_json_rejects_non_document() -> None:
    with pytest.raises(SerializationFailure):
        to_json({"doc_id": "1"})


def test_document_from_dict_restores_wire_payload(sample_document_dict) -> None:
    document = document_from_dict(sample_document_dict)

    assert document.description.participant_inn == "7700000001"
    assert document.import_request is True
    assert document.products[0].certificate_document_number == "CC-42"
    assert document_to_dict(document) == sample_document_dict


def test_document_from_dict_ignores_unknown_product_keys() -> None:
    document = document_from_dict({"products": [{"tnved_code": "1", "colour": "red"}]})

    assert document.products == [Product(tnved_code="1")]


@pytest.mark.parametrize(
    "raw",
    [
        [],
        "document",
        {"description": "7700000001"},
        {"products": {"tnved_code": "1"}},
        {"products": ["not a product"]},
    ],
)
def test_document_from_dict_rejects_bad_shapes(raw) -> None:
    with pytest.raises(SerializationFailure):
        document_from_dict(raw)


def test_load_document(tmp_path, sample_document_dict) -> None:
    path = tmp_path / "doc.json"
    path.write_text(json.dumps(sample_document_dict), encoding="utf-8")

    document = load_document(path)

    assert document.doc_id == "doc-1"


def test_load_document_invalid_json(tmp_path) -> None:
    path = tmp_path / "doc.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SerializationFailure):
        load_document(path)


def test_load_document_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_document(tmp_path / "missing.json")


@pytest.mark.parametrize("value", ["false", "0", 0, 1, None, "true"])
def test_document_from_dict_rejects_non_boolean_import_flag(value) -> None:
    with pytest.raises(SerializationFailure):
        document_from_dict({"importRequest": value})


def test_document_from_dict_import_flag_defaults_to_false() -> None:
    assert document_from_dict({}).import_request is False
    assert document_from_dict({"importRequest": False}).import_request is False
