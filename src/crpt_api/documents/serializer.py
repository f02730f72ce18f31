# ABOUTME: JSON encoding and decoding of CRPT documents.
# ABOUTME: Maps dataclass fields to the wire keys expected by the CRPT API.

import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

from ..errors import SerializationFailure
from .models import Description, Document, Product

# Document fields whose wire key differs from the attribute name
DOCUMENT_KEY_OVERRIDES = {"import_request": "importRequest"}
DESCRIPTION_KEY_OVERRIDES = {"participant_inn": "participantInn"}

PRODUCT_FIELDS = tuple(f.name for f in fields(Product))


def _rename(data: dict, overrides: dict[str, str]) -> dict:
    return {overrides.get(key, key): value for key, value in data.items()}


def document_to_dict(document: Document) -> dict:
    """Convert a document to a mapping keyed by CRPT wire names."""
    payload = _rename(asdict(document), DOCUMENT_KEY_OVERRIDES)
    if payload["description"] is not None:
        payload["description"] = _rename(payload["description"], DESCRIPTION_KEY_OVERRIDES)
    return payload


def to_json(document: Document) -> str:
    """Serialize a document to the JSON request body.

    Raises:
        SerializationFailure: If the document is not a dataclass instance or
            holds values JSON cannot represent.
    """
    try:
        return json.dumps(document_to_dict(document), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationFailure(f"Could not serialize document: {e}") from e


def document_from_dict(raw: Any) -> Document:
    """Build a Document from a mapping that uses CRPT wire keys."""
    if not isinstance(raw, dict):
        raise SerializationFailure("Document must be a JSON object")

    description = None
    raw_description = raw.get("description")
    if raw_description is not None:
        if not isinstance(raw_description, dict):
            raise SerializationFailure("'description' must be a JSON object")
        description = Description(participant_inn=raw_description.get("participantInn"))

    raw_products = raw.get("products") or []
    if not isinstance(raw_products, list):
        raise SerializationFailure("'products' must be a list")

    import_request = raw.get("importRequest", False)
    if not isinstance(import_request, bool):
        raise SerializationFailure("'importRequest' must be true or false")

    products = []
    for i, item in enumerate(raw_products):
        if not isinstance(item, dict):
            raise SerializationFailure(f"Product {i} must be a JSON object")
        products.append(Product(**{name: item.get(name) for name in PRODUCT_FIELDS}))

    return Document(
        description=description,
        doc_id=raw.get("doc_id"),
        doc_status=raw.get("doc_status"),
        doc_type=raw.get("doc_type"),
        import_request=import_request,
        owner_inn=raw.get("owner_inn"),
        participant_inn=raw.get("participant_inn"),
        producer_inn=raw.get("producer_inn"),
        production_date=raw.get("production_date"),
        production_type=raw.get("production_type"),
        products=products,
        reg_date=raw.get("reg_date"),
        reg_number=raw.get("reg_number"),
    )


def load_document(path: Path) -> Document:
    """Read a document from a JSON file.

    OSError from opening the file propagates unchanged.
    """
    with open(path, encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except ValueError as e:
            raise SerializationFailure(f"Invalid JSON in document {path}: {e}") from e
    return document_from_dict(raw)
