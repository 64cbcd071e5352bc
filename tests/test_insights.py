import asyncio
import json

import pytest

from health_dashboard.errors import ConfigurationError, UpstreamError
from health_dashboard.insights import InsightRequester
from health_dashboard.llm_provider import LLMProvider
from tests.fakes import OPENROUTER_URL, FakeUpstream, completion, make_settings

HEALTH_DATA = {
    "oura": {"sleep": {"data": [{"day": "2024-03-14", "score": 82}]}},
    "strava": {"activities": [{
        "name": "Morning Run", "type": "Run", "distance": 5000,
        "moving_time": 1800, "start_date_local": "2024-03-14T07:00:00Z",
    }]},
}


def make_requester(upstream, **overrides):
    return InsightRequester(LLMProvider(make_settings(**overrides), transport=upstream.transport))


class TestInsightRequester:

    def setup_method(self):
        self.upstream = FakeUpstream()

    def sent_payload(self):
        return json.loads(self.upstream.requests[0].content)

    def test_chat_embeds_context_in_system_prompt(self):
        self.upstream.add("POST", OPENROUTER_URL, json=completion("You slept well."))
        requester = make_requester(self.upstream)

        answer = asyncio.run(requester.chat("How did I sleep?", HEALTH_DATA))

        assert answer == "You slept well."
        payload = self.sent_payload()
        system, user = payload["messages"]
        assert system["role"] == "system"
        assert "- 2024-03-14: score 82" in system["content"]
        assert "2024-03-14: Run - Morning Run, 5.0km, 30min" in system["content"]
        assert user == {"role": "user", "content": "How did I sleep?"}
        assert payload["max_tokens"] == InsightRequester.CHAT_MAX_TOKENS
        assert payload["model"] == "test/model"
        assert self.upstream.requests[0].headers["authorization"] == "Bearer test-llm-key"

    def test_daily_summary_uses_short_budget(self):
        self.upstream.add("POST", OPENROUTER_URL, json=completion("Solid recovery today."))
        requester = make_requester(self.upstream)

        summary = asyncio.run(requester.daily_summary(HEALTH_DATA))

        assert summary == "Solid recovery today."
        payload = self.sent_payload()
        assert payload["max_tokens"] == InsightRequester.SUMMARY_MAX_TOKENS
        assert "daily summary" in payload["messages"][1]["content"]
        assert "## Sleep Scores" in payload["messages"][1]["content"]

    def test_trends_uses_larger_budget(self):
        self.upstream.add("POST", OPENROUTER_URL, json=completion("## Sleep\nStable."))
        requester = make_requester(self.upstream)

        analysis = asyncio.run(requester.trends(HEALTH_DATA))

        assert analysis == "## Sleep\nStable."
        payload = self.sent_payload()
        assert payload["max_tokens"] == InsightRequester.TRENDS_MAX_TOKENS
        assert payload["max_tokens"] > InsightRequester.SUMMARY_MAX_TOKENS
        assert "## Recommendations" in payload["messages"][1]["content"]

    def test_no_health_data(self):
        self.upstream.add("POST", OPENROUTER_URL, json=completion("ok"))
        requester = make_requester(self.upstream)

        asyncio.run(requester.daily_summary(None))

        assert "No health data is currently available." in self.sent_payload()["messages"][1]["content"]

    def test_missing_credential_makes_no_request(self):
        requester = make_requester(self.upstream, OPENROUTER_API_KEY="")

        for call in (
            lambda: requester.chat("hi", HEALTH_DATA),
            lambda: requester.daily_summary(HEALTH_DATA),
            lambda: requester.trends(HEALTH_DATA),
        ):
            with pytest.raises(ConfigurationError, match="OPENROUTER_API_KEY"):
                asyncio.run(call())

        assert self.upstream.requests == []

    def test_unknown_llm_provider(self):
        requester = make_requester(self.upstream, LLM_PROVIDER="nonexistent")

        with pytest.raises(ConfigurationError):
            asyncio.run(requester.chat("hi", None))
        assert self.upstream.requests == []

    def test_upstream_failure(self):
        self.upstream.add("POST", OPENROUTER_URL, status=502, text="Bad Gateway")
        requester = make_requester(self.upstream)

        with pytest.raises(UpstreamError, match="502"):
            asyncio.run(requester.chat("hi", HEALTH_DATA))
        assert len(self.upstream.requests) == 1

    def test_error_in_json_body(self):
        self.upstream.add("POST", OPENROUTER_URL, json={"error": {"message": "model not found"}})
        requester = make_requester(self.upstream)

        with pytest.raises(UpstreamError, match="model not found"):
            asyncio.run(requester.chat("hi", HEALTH_DATA))

    def test_deepseek_strips_model_prefix(self):
        self.upstream.add("POST", "https://api.deepseek.com/v1/chat/completions", json=completion("hello"))
        requester = make_requester(
            self.upstream, LLM_PROVIDER="deepseek", LLM_MODEL="deepseek/deepseek-chat", DEEPSEEK_API_KEY="ds-key",
        )

        assert asyncio.run(requester.chat("hi", None)) == "hello"
        assert self.sent_payload()["model"] == "deepseek-chat"
