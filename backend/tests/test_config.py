from __future__ import annotations

import pytest

from config import Configuration
from utils import mask_secret, strip_code_fence, strip_thinking_tokens


def test_from_env_reads_google_and_llm(monkeypatch) -> None:
    monkeypatch.setenv("GOOGLE_PLACES_API_KEY", "places-key")
    monkeypatch.delenv("GOOGLE_DISTANCE_MATRIX_API_KEY", raising=False)
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("WAIT_TIMES_ENABLED", "no")
    monkeypatch.setenv("PLAN_RADIUS_M", "2000")

    cfg = Configuration.from_env()
    assert cfg.google_places_api_key == "places-key"
    assert cfg.distance_matrix_key == "places-key"
    assert cfg.llm_api_key == "sk-test"
    assert cfg.wait_times_enabled is False
    assert cfg.plan_radius_m == 2000
    assert cfg.llm_enabled


def test_require_checks_raise_value_error() -> None:
    cfg = Configuration()
    with pytest.raises(ValueError, match="Google Places API key not configured"):
        cfg.require_places()
    with pytest.raises(ValueError, match="Distance Matrix"):
        cfg.require_distance_matrix()
    with pytest.raises(ValueError, match="LLM"):
        cfg.require_llm()


def test_log_summary_masks_key() -> None:
    cfg = Configuration(google_places_api_key="AIzaSyVeryLongSecretKey")
    summary = cfg.log_summary()
    assert "AIzaSyVeryLongSecretKey" not in summary
    assert mask_secret("AIzaSyVeryLongSecretKey") in summary


def test_sanitized_ollama_url() -> None:
    assert Configuration(ollama_base_url="http://host:11434/").sanitized_ollama_url() == "http://host:11434/v1"


@pytest.mark.parametrize(
    "text, expected",
    [
        ('```json\n{"a": 1}\n```', '{"a": 1}'),
        ('```\n{"a": 1}\n```\n', '{"a": 1}'),
        ('{"a": 1}', '{"a": 1}'),
        ('  {"a": "```"}  ', '{"a": "```"}'),
        ("", ""),
    ],
)
def test_strip_code_fence(text: str, expected: str) -> None:
    assert strip_code_fence(text) == expected


def test_strip_thinking_tokens() -> None:
    assert strip_thinking_tokens("<think>hmm</think>{}") == "{}"
