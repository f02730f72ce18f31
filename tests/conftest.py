import json
import threading

import pytest


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = ""):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Stands in for requests.Session; records every POST."""

    def __init__(self, status_code: int = 200, text: str = "", error: Exception | None = None):
        self.status_code = status_code
        self.text = text
        self.error = error
        self.calls: list[dict] = []
        self.closed = False
        self._lock = threading.Lock()

    def post(self, url, data=None, headers=None, timeout=None):
        with self._lock:
            self.calls.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return FakeResponse(self.status_code, self.text)

    def close(self) -> None:
        self.closed = True

    def bodies(self) -> list[dict]:
        return [json.loads(call["data"].decode("utf-8")) for call in self.calls]


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def sample_document_dict() -> dict:
    return {
        "description": {"participantInn": "7700000001"},
        "doc_id": "doc-1",
        "doc_status": "DRAFT",
        "doc_type": "LP_INTRODUCE_GOODS",
        "importRequest": True,
        "owner_inn": "7700000002",
        "participant_inn": "7700000001",
        "producer_inn": "7700000003",
        "production_date": "2020-01-23",
        "production_type": "OWN_PRODUCTION",
        "products": [
            {
                "certificate_document": "CONFORMITY_CERTIFICATE",
                "certificate_document_date": "2020-01-20",
                "certificate_document_number": "CC-42",
                "owner_inn": "7700000002",
                "producer_inn": "7700000003",
                "production_date": "2020-01-23",
                "tnved_code": "6401100000",
                "uit_code": "010463003407001221SxMGorvNuq6Wk91fgr92sdkK",
                "uitu_code": None,
            }
        ],
        "reg_date": "2020-01-23",
        "reg_number": "R-1",
    }
