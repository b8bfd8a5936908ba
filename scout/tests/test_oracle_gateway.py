"""
Unit tests for the oracle gateway and its backends.
"""
import pytest
import requests

from fakes import FakeBackend
from scout.src.oracle import gateway as gateway_module
from scout.src.oracle.gateway import OllamaBackend, OpenAIBackend, OracleGateway, build_backend
from scout.src.utils.config import OracleConfig
from scout.src.utils.errors import OracleMalformedResponse, OracleTimeout, OracleUnavailable


class _Response:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self._payload = payload or {}
        self.status_code = status_code
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._payload


class TestOracleGateway:
    def test_query_parses_decision(self):
        backend = FakeBackend(['{"shouldClick": true, "confidence": 0.9, "elementIndex": 2}'])
        gateway = OracleGateway(OracleConfig(), backend=backend)
        response = gateway.query("pick a link")
        assert response.success
        assert response.decision().target_ref == "2"
        assert backend.prompts == ["pick a link"]

    def test_query_options_override_defaults(self):
        backend = FakeBackend(["{}"])
        gateway = OracleGateway(OracleConfig(temperature=0.2, max_tokens=400), backend=backend)
        gateway.query("p", {"temperature": 0.7, "num_predict": 800})
        assert backend.options == [{"temperature": 0.7, "max_tokens": 800}]

    def test_query_uses_config_defaults(self):
        backend = FakeBackend(["{}"])
        OracleGateway(OracleConfig(temperature=0.1, max_tokens=123), backend=backend).query("p")
        assert backend.options == [{"temperature": 0.1, "max_tokens": 123}]

    @pytest.mark.parametrize(
        "error, kind",
        [
            (OracleTimeout("slow"), "timeout"),
            (OracleUnavailable("down"), "unavailable"),
            (OracleMalformedResponse("envelope"), "malformed"),
        ],
    )
    def test_query_never_raises_transport_errors(self, error, kind):
        gateway = OracleGateway(OracleConfig(), backend=FakeBackend([error]))
        response = gateway.query("p")
        assert not response.success
        assert response.error_kind == kind
        assert response.error

    def test_request_raises(self):
        gateway = OracleGateway(OracleConfig(), backend=FakeBackend([OracleUnavailable("down")]))
        with pytest.raises(OracleUnavailable):
            gateway.request("p")

    def test_availability_and_models(self):
        gateway = OracleGateway(OracleConfig(), backend=FakeBackend(available=False))
        assert gateway.is_available() is False
        assert gateway.list_models() == [{"name": "fake-model"}]

    def test_log_callback_receives_messages(self):
        messages = []
        gateway = OracleGateway(OracleConfig(), backend=FakeBackend(["nope"]), log_callback=messages.append)
        gateway.query("p")
        assert any("unusable response" in m for m in messages)

    def test_confidence_threshold_from_config(self):
        gateway = OracleGateway(OracleConfig(confidence_threshold=0.75), backend=FakeBackend())
        assert gateway.confidence_threshold == 0.75


class TestOllamaBackend:
    def test_generate_posts_prompt(self, monkeypatch):
        captured = {}

        def fake_post(url, json, timeout):
            captured.update(url=url, json=json, timeout=timeout)
            return _Response({"response": '{"ok": true}'})

        monkeypatch.setattr(gateway_module.requests, "post", fake_post)
        backend = OllamaBackend(OracleConfig(ollama_url="http://ollama:11434/", model="gemma3:4b", timeout=12))
        text = backend.generate("hello", temperature=0.3, max_tokens=50)

        assert text == '{"ok": true}'
        assert captured["url"] == "http://ollama:11434/api/generate"
        assert captured["json"]["model"] == "gemma3:4b"
        assert captured["json"]["stream"] is False
        assert captured["json"]["options"]["num_predict"] == 50
        assert captured["timeout"] == 12

    def test_timeout_maps_to_oracle_timeout(self, monkeypatch):
        def fake_post(*args, **kwargs):
            raise requests.Timeout("read timed out")

        monkeypatch.setattr(gateway_module.requests, "post", fake_post)
        with pytest.raises(OracleTimeout):
            OllamaBackend(OracleConfig()).generate("p", temperature=0.2, max_tokens=10)

    def test_connection_error_maps_to_unavailable(self, monkeypatch):
        def fake_post(*args, **kwargs):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(gateway_module.requests, "post", fake_post)
        with pytest.raises(OracleUnavailable):
            OllamaBackend(OracleConfig()).generate("p", temperature=0.2, max_tokens=10)

    def test_http_error_maps_to_unavailable(self, monkeypatch):
        monkeypatch.setattr(gateway_module.requests, "post", lambda *a, **k: _Response(status_code=500))
        with pytest.raises(OracleUnavailable):
            OllamaBackend(OracleConfig()).generate("p", temperature=0.2, max_tokens=10)

    def test_bad_envelope_is_malformed(self, monkeypatch):
        monkeypatch.setattr(gateway_module.requests, "post", lambda *a, **k: _Response(bad_json=True))
        with pytest.raises(OracleMalformedResponse):
            OllamaBackend(OracleConfig()).generate("p", temperature=0.2, max_tokens=10)

    def test_is_available_probes_tags(self, monkeypatch):
        seen = {}

        def fake_get(url, timeout):
            seen.update(url=url, timeout=timeout)
            return _Response({"models": [{"name": "gemma3:4b"}]})

        monkeypatch.setattr(gateway_module.requests, "get", fake_get)
        backend = OllamaBackend(OracleConfig(ollama_url="http://ollama:11434"))
        assert backend.is_available(2.0)
        assert seen == {"url": "http://ollama:11434/api/tags", "timeout": 2.0}
        assert backend.list_models() == [{"name": "gemma3:4b"}]

    def test_is_available_false_when_unreachable(self, monkeypatch):
        def fake_get(*args, **kwargs):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(gateway_module.requests, "get", fake_get)
        backend = OllamaBackend(OracleConfig())
        assert backend.is_available(1.0) is False
        assert backend.list_models() == []


class TestOpenAIBackend:
    def test_missing_key_is_unavailable(self):
        backend = OpenAIBackend(OracleConfig(backend="openai", openai_api_key=None))
        assert backend.is_available(1.0) is False
        with pytest.raises(OracleUnavailable):
            backend.generate("p", temperature=0.2, max_tokens=10)

    def test_build_backend_selects_by_name(self):
        assert isinstance(build_backend(OracleConfig(backend="openai")), OpenAIBackend)
        assert isinstance(build_backend(OracleConfig(backend="ollama")), OllamaBackend)


class TestOracleConfig:
    def test_probe_timeout_clamped(self):
        assert OracleConfig(probe_timeout=30).probe_timeout == 5.0

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_URL", "http://gpu-box:11434/")
        monkeypatch.setenv("OLLAMA_MODEL", "llama3")
        monkeypatch.setenv("SCOUT_CONFIDENCE_THRESHOLD", "0.8")
        monkeypatch.setenv("OLLAMA_TIMEOUT", "not-a-number")
        config = OracleConfig.from_env()
        assert config.ollama_url == "http://gpu-box:11434"
        assert config.model == "llama3"
        assert config.confidence_threshold == 0.8
        assert config.timeout == 30.0
