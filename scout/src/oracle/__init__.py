"""Decision oracle gateway and response recovery."""

from .gateway import OllamaBackend, OpenAIBackend, OracleGateway, build_backend
from .parsing import parse_response

__all__ = ["OllamaBackend", "OpenAIBackend", "OracleGateway", "build_backend", "parse_response"]
