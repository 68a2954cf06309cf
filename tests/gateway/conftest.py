import pytest
import requests
from fastapi.testclient import TestClient

from heckegate import SigningService
from heckegate_gateway import config, main
from heckegate_gateway.main import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture(autouse=True)
def _reset_webhooks():
    main.WEBHOOKS.clear()
    yield
    main.WEBHOOKS.clear()


@pytest.fixture
def signed_gateway(tmp_path, monkeypatch):
    """Restart the gateway with a freshly generated proof signing key."""
    signer = SigningService()
    signer.generate_key_pair("hecke-proof-test-01")
    key_path = tmp_path / "key.json"
    signer.save_key_file(str(key_path))

    monkeypatch.setattr(config, "SIGNING_KEY_PATH", str(key_path))
    monkeypatch.setattr(main, "ENGINE", None)
    monkeypatch.setattr(main, "SIGNER", None)
    main._startup()
    return signer.get_trust_store()


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


@pytest.fixture
def webhook_calls(monkeypatch):
    """Capture outgoing webhook POSTs instead of sending them."""
    calls = []

    def fake_post(url, data=None, headers=None, timeout=None):
        calls.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        return FakeResponse(200)

    monkeypatch.setattr(requests, "post", fake_post)
    return calls
