# ABOUTME: Data model for a CRPT "introduce goods" document.
# ABOUTME: Plain dataclasses; the client treats them as opaque payload.

from dataclasses import dataclass, field


@dataclass
class Description:
    """Document description block."""
    participant_inn: str | None = None


@dataclass
class Product:
    """A single product entry of a document."""
    certificate_document: str | None = None
    certificate_document_date: str | None = None
    certificate_document_number: str | None = None
    owner_inn: str | None = None
    producer_inn: str | None = None
    production_date: str | None = None
    tnved_code: str | None = None
    uit_code: str | None = None
    uitu_code: str | None = None


@dataclass
class Document:
    """Document introducing products into circulation."""
    description: Description | None = None
    doc_id: str | None = None
    doc_status: str | None = None
    doc_type: str | None = None
    import_request: bool = False
    owner_inn: str | None = None
    participant_inn: str | None = None
    producer_inn: str | None = None
    production_date: str | None = None
    production_type: str | None = None
    products: list[Product] = field(default_factory=list)
    reg_date: str | None = None
    reg_number: str | None = None
