import pytest
import requests
from facilityhub.core.exceptions import PaymentGatewayError
from facilityhub.services import paystack


class FakeResponse:
    def __init__(self, body, status_code=200):
        self._body = body
        self.status_code = status_code

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._body


@pytest.fixture
def sent(monkeypatch):
    """Capture outbound requests and answer with the queued responses."""
    calls = {"requests": [], "responses": []}

    def fake_request(method, url, headers=None, timeout=None, **kwargs):
        calls["requests"].append({"method": method, "url": url, "headers": headers, **kwargs})
        answer = calls["responses"].pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    monkeypatch.setattr(requests, "request", fake_request)
    return calls


def _client():
    return paystack.PaystackClient(secret_key="sk_test_123", base_url="https://gateway.test/", timeout=5)


def test_unwraps_data_and_sends_bearer(sent):
    sent["responses"].append(FakeResponse({"status": True, "data": {"authorization_url": "https://pay"}}))
    data = _client().initialize_transaction({"amount": 100})
    assert data == {"authorization_url": "https://pay"}

    request = sent["requests"][0]
    assert request["method"] == "POST"
    assert request["url"] == "https://gateway.test/transaction/initialize"
    assert request["headers"]["Authorization"] == "Bearer sk_test_123"
    assert request["json"] == {"amount": 100}

def test_status_false_raises(sent):
    sent["responses"].append(FakeResponse({"status": False, "message": "Invalid key"}, status_code=401))
    with pytest.raises(PaymentGatewayError) as exc:
        _client().verify_transaction("FH-1")
    assert exc.value.message == "Invalid key"
    assert exc.value.status_code == 502

def test_list_banks_passes_filters(sent):
    sent["responses"].append(FakeResponse({"status": True, "data": []}))
    _client().list_banks(country="ghana", currency="GHS")
    assert sent["requests"][0]["params"] == {"country": "ghana", "currency": "GHS"}

def test_missing_secret_is_refused():
    client = paystack.PaystackClient(secret_key=None, base_url="https://gateway.test")
    client.secret_key = None
    with pytest.raises(PaymentGatewayError):
        client.fetch_subaccount("ACCT_x")

def test_transient_errors_are_retried(sent, monkeypatch):
    monkeypatch.setattr(paystack.PaystackClient._send.retry, "sleep", lambda seconds: None)
    sent["responses"].extend([
        requests.exceptions.ConnectionError("reset"),
        FakeResponse({"status": True, "data": {"recipient_code": "RCP_1"}}),
    ])
    assert _client().create_transfer_recipient({"type": "ghipss"}) == {"recipient_code": "RCP_1"}
    assert len(sent["requests"]) == 2

def test_persistent_network_failure_becomes_gateway_error(sent, monkeypatch):
    monkeypatch.setattr(paystack.PaystackClient._send.retry, "sleep", lambda seconds: None)
    sent["responses"].extend([requests.exceptions.Timeout("slow")] * 3)
    with pytest.raises(PaymentGatewayError):
        _client().initiate_transfer({"amount": 100})
    assert len(sent["requests"]) == 3
