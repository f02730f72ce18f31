# ABOUTME: Document model and JSON codec package.
# ABOUTME: Exports the dataclasses and the functions that encode and load them.

from .models import Description, Document, Product
from .serializer import document_from_dict, document_to_dict, load_document, to_json

__all__ = [
    "Description",
    "Document",
    "Product",
    "document_from_dict",
    "document_to_dict",
    "load_document",
    "to_json",
]
