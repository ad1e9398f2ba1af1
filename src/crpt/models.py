"""
Pydantic models for the document registration API.

Wire field names follow the ``LP_INTRODUCE_GOODS`` document format:
mostly snake_case, with a few camelCase exceptions handled by aliases.
Absent (``None``) fields are never sent.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    """Base for models that accept both Python names and wire aliases."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Description(_WireModel):
    """Document description section."""

    participant_inn: str | None = Field(default=None, alias="participantInn")


class Product(_WireModel):
    """A single product entry in a document."""

    certificate_document: str | None = None
    certificate_document_date: date | None = None
    certificate_document_number: str | None = None
    owner_inn: str | None = None
    producer_inn: str | None = None
    production_date: date | None = None
    tnved_code: str | None = None
    uit_code: str | None = None
    uitu_code: str | None = None


class Document(_WireModel):
    """Document introducing goods produced in the country into circulation."""

    description: Description | None = None
    doc_id: str | None = None
    doc_status: str | None = None
    doc_type: str | None = None
    import_request: bool | None = Field(default=None, alias="importRequest")
    owner_inn: str | None = None
    participant_inn: str | None = None
    producer_inn: str | None = None
    production_date: date | None = None
    production_type: str | None = None
    products: list[Product] | None = None
    reg_date: date | None = None
    reg_number: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Document:
        return cls.model_validate(data)


class DocumentRequest(_WireModel):
    """Envelope pairing a document with its signature."""

    document: Document
    signature: str

    def to_json_bytes(self) -> bytes:
        """Serialize with wire names, omitting absent fields."""
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


def encode_document_request(document: Document | dict[str, Any], signature: str) -> bytes:
    """
    Encode a document and signature as the JSON request body.

    Args:
        document: Document model or a mapping that validates as one
        signature: Detached signature string

    Returns:
        UTF-8 encoded JSON ``{"document": ..., "signature": ...}``
    """
    return DocumentRequest(document=document, signature=signature).to_json_bytes()
