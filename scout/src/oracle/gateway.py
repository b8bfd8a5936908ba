"""
Decision oracle gateway.

Sends one prompt to a language-model service and recovers a structured
decision from whatever text comes back. Two backends are provided: a local
Ollama server (plain HTTP via requests) and the OpenAI chat API.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import openai
import requests

from scout.src.utils.config import CONFIG, OracleConfig
from scout.src.utils.errors import (
    OracleError,
    OracleMalformedResponse,
    OracleTimeout,
    OracleUnavailable,
)
from scout.src.utils.models import OracleResponse

from .parsing import parse_response


class OllamaBackend:
    """Ollama `/api/generate` client."""

    name = "ollama"

    def __init__(self, config: OracleConfig) -> None:
        self.base_url = config.ollama_url.rstrip("/")
        self.model = config.model
        self.timeout = config.timeout
        self.top_p = config.top_p

    def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        try:
            response = requests.post(
                f"{self.base_url}/api/generate",
                json={
                    "model": self.model,
                    "prompt": prompt,
                    "stream": False,
                    "options": {
                        "temperature": temperature,
                        "num_predict": max_tokens,
                        "top_p": self.top_p,
                    },
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.Timeout as exc:
            raise OracleTimeout(f"Ollama query timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise OracleUnavailable(f"Ollama query failed: {exc}") from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise OracleMalformedResponse("Ollama returned a non-JSON envelope") from exc
        return str(payload.get("response") or "")

    def is_available(self, timeout: float) -> bool:
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=timeout)
        except requests.RequestException:
            return False
        return response.status_code == 200

    def list_models(self) -> List[Dict[str, Any]]:
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=self.timeout)
            response.raise_for_status()
            return list(response.json().get("models") or [])
        except (requests.RequestException, ValueError):
            return []


class OpenAIBackend:
    """OpenAI chat-completions client."""

    name = "openai"

    def __init__(self, config: OracleConfig) -> None:
        self.model = config.openai_model
        self.timeout = config.timeout
        self.client = openai.OpenAI(api_key=config.openai_api_key, timeout=config.timeout) if config.openai_api_key else None

    def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        if self.client is None:
            raise OracleUnavailable("OPENAI_API_KEY is not set")
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                max_completion_tokens=max_tokens,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": "Answer with a single JSON object."},
                    {"role": "user", "content": prompt},
                ],
            )
        except openai.APITimeoutError as exc:
            raise OracleTimeout(f"OpenAI query timed out after {self.timeout}s") from exc
        except openai.OpenAIError as exc:
            raise OracleUnavailable(f"OpenAI query failed: {exc}") from exc
        if not completion.choices:
            raise OracleMalformedResponse("OpenAI returned no choices")
        return completion.choices[0].message.content or ""

    def is_available(self, timeout: float) -> bool:
        if self.client is None:
            return False
        try:
            self.client.with_options(timeout=timeout).models.list()
        except openai.OpenAIError:
            return False
        return True

    def list_models(self) -> List[Dict[str, Any]]:
        if self.client is None:
            return []
        try:
            return [{"name": model.id} for model in self.client.models.list().data]
        except openai.OpenAIError:
            return []


def build_backend(config: OracleConfig):
    if config.backend == "openai":
        return OpenAIBackend(config)
    return OllamaBackend(config)


class OracleGateway:
    """Single entry point for oracle-backed decisions."""

    def __init__(
        self,
        config: Optional[OracleConfig] = None,
        backend: Any = None,
        *,
        log_callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.config = config or CONFIG.oracle
        self.backend = backend if backend is not None else build_backend(self.config)
        self._log_callback = log_callback

    def _log(self, message: str) -> None:
        print(f"[Oracle] {message}")
        if self._log_callback:
            self._log_callback(message)

    @property
    def confidence_threshold(self) -> float:
        return self.config.confidence_threshold

    def request(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Raw model text; raises OracleUnavailable / OracleTimeout."""
        return self.backend.generate(
            prompt,
            temperature=self.config.temperature if temperature is None else temperature,
            max_tokens=self.config.max_tokens if max_tokens is None else max_tokens,
        )

    def query(self, prompt: str, options: Optional[Dict[str, Any]] = None) -> OracleResponse:
        options = options or {}
        self._log(f"query ({len(prompt)} chars): {prompt[:120]!r}")
        try:
            raw = self.request(
                prompt,
                temperature=options.get("temperature"),
                max_tokens=options.get("max_tokens", options.get("num_predict")),
            )
        except OracleError as exc:
            self._log(f"query failed ({exc.kind}): {exc}")
            return OracleResponse(success=False, error=str(exc), error_kind=exc.kind)

        self._log(f"response: {raw[:200]!r}")
        result = parse_response(raw)
        if not result.success:
            self._log(f"unusable response: {result.error}")
        elif result.partial:
            self._log("response recovered partially")
        return result

    def is_available(self) -> bool:
        available = bool(self.backend.is_available(self.config.probe_timeout))
        if not available:
            self._log(f"{getattr(self.backend, 'name', 'oracle')} backend not available")
        return available

    def list_models(self) -> List[Dict[str, Any]]:
        return self.backend.list_models()
