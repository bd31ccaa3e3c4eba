import json
from http.client import IncompleteRead

import pytest

from scaneia.services import ai_service
from scaneia.services.ai_service import TextGenerationError


def test_analyze_url_returns_completion(app, completions):
    completions.text = "  Site com riscos baixos.  "
    with app.app_context():
        assert ai_service.analyze_url("https://exemplo.com") == "Site com riscos baixos."

    body = completions.requests[0]
    assert body["model"] == "gpt-4"
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 300
    assert body["messages"][0]["content"] == ai_service.URL_ANALYSIS_PROMPT


def test_empty_completion_uses_could_not_text(app, completions):
    completions.text = ""
    with app.app_context():
        assert ai_service.analyze_url("https://exemplo.com") == ai_service.URL_EMPTY
        assert ai_service.generate_vulnerability_report([], "https://exemplo.com") == ai_service.REPORT_EMPTY
        assert ai_service.analyze_logs([]) == ai_service.LOGS_EMPTY


@pytest.mark.parametrize("error", [TimeoutError("slow"), ConnectionResetError("reset")])
def test_transport_failures_collapse_to_fallback(app, completions, error):
    completions.error = error
    with app.app_context():
        assert ai_service.analyze_url("https://exemplo.com") == ai_service.URL_FAILED
        assert ai_service.generate_vulnerability_report([], "https://x.com") == ai_service.REPORT_FAILED
        assert ai_service.analyze_logs([{"level": "INFO"}]) == ai_service.LOGS_FAILED


def test_malformed_response_collapses_to_fallback(app, monkeypatch):
    class Malformed:
        def read(self):
            return json.dumps({"unexpected": True}).encode()

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

    monkeypatch.setattr(ai_service, "urlopen", lambda req, timeout=None: Malformed())
    with app.app_context():
        assert ai_service.analyze_url("https://exemplo.com") == ai_service.URL_FAILED


def test_strict_mode_raises(app, completions):
    completions.error = TimeoutError("slow")
    with app.app_context():
        with pytest.raises(TextGenerationError):
            ai_service.generate_vulnerability_report([], "https://exemplo.com", strict=True)


def test_missing_key_is_a_failure(app, completions):
    app.config["OPENAI_API_KEY"] = ""
    with app.app_context():
        assert ai_service.analyze_url("https://exemplo.com") == ai_service.URL_FAILED
    assert completions.requests == []


def test_report_prompt_carries_vulnerabilities(app, completions):
    vulns = [{"type": "XSS", "severity": "Alta", "description": "formulários"}]
    with app.app_context():
        ai_service.generate_vulnerability_report(vulns, "https://exemplo.com")

    user_prompt = completions.requests[0]["messages"][1]["content"]
    assert "https://exemplo.com" in user_prompt
    assert '"severity": "Alta"' in user_prompt
    assert completions.requests[0]["max_tokens"] == 1000


class _Response:
    def __init__(self, read):
        self.read = read

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def _truncated_read():
    raise IncompleteRead(b"")


def test_truncated_body_collapses_to_fallback(app, monkeypatch):
    monkeypatch.setattr(ai_service, "urlopen", lambda req, timeout=None: _Response(_truncated_read))
    with app.app_context():
        assert ai_service.analyze_url("https://exemplo.com") == ai_service.URL_FAILED
        with pytest.raises(TextGenerationError):
            ai_service.generate_vulnerability_report([], "https://exemplo.com", strict=True)


@pytest.mark.parametrize("content", [{"x": 1}, ["a", "b"], 42])
def test_non_text_content_collapses_to_fallback(app, monkeypatch, content):
    body = json.dumps({"choices": [{"message": {"content": content}}]}).encode()
    monkeypatch.setattr(ai_service, "urlopen", lambda req, timeout=None: _Response(lambda: body))
    with app.app_context():
        assert ai_service.analyze_url("https://exemplo.com") == ai_service.URL_FAILED
        assert ai_service.analyze_logs([]) == ai_service.LOGS_FAILED
