"""Pytest configuration and fixtures."""

import json
import threading
from datetime import date

import httpx
import pytest

from crpt.models import Description, Document, Product

API_URL = "https://example.com/api/v3/lk/documents/create"


class FakeClock:
    """Manually advanced time source for non-blocking limiter tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingHandler:
    """httpx.MockTransport handler that records every request it receives."""

    def __init__(self, status_code: int = 200, error: Exception | None = None) -> None:
        self.status_code = status_code
        self.error = error
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json={"value": "accepted"})

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def api_url() -> str:
    return API_URL


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def sample_document() -> Document:
    """Sample LP_INTRODUCE_GOODS document."""
    return Document(
        doc_id="doc_12345",
        doc_status="NEW",
        doc_type="LP_INTRODUCE_GOODS",
        import_request=False,
        owner_inn="1234567890",
        participant_inn="0987654321",
        producer_inn="1122334455",
        production_date=date(2024, 10, 1),
        reg_date=date(2024, 10, 4),
        reg_number="REG-2024-001",
        production_type="OWN_PRODUCTION",
        description=Description(participant_inn="0987654321"),
        products=[
            Product(
                certificate_document="CERT_DOC_001",
                certificate_document_date=date(2024, 9, 15),
                certificate_document_number="CERT-001-2024",
                owner_inn="1234567890",
                producer_inn="1122334455",
                production_date=date(2024, 10, 1),
                tnved_code="0101210000",
                uit_code="01234567890123",
                uitu_code="98765432109876",
            )
        ],
    )
