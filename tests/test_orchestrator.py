"""Tests for the image model fallback chain."""

import asyncio

import httpx
import pytest

from stylevision.errors import ConfigError, MalformedResponseError
from stylevision.gemini import GeminiClient, build_request
from stylevision.orchestrator import AttemptStatus, ModelFallbackOrchestrator

from helpers import gemini_image, gemini_text, json_response, mock_client


def _model_of(request):
    return request.url.path.rsplit("/", 1)[-1].split(":")[0]


def _run(settings, handler, sleep, require_image=True):
    async def go():
        async with mock_client(handler) as http:
            client = GeminiClient(settings, http, sleep=sleep)
            orchestrator = ModelFallbackOrchestrator(client, settings.image_models, require_image=require_image)
            return await orchestrator.run(build_request("edit"))
    return asyncio.run(go())


class TestModelFallbackOrchestrator:

    def test_third_model_wins_after_text_only_replies(self, settings, fake_sleep):
        order = []

        def handler(request):
            model = _model_of(request)
            order.append(model)
            if model == "model-c":
                return json_response(200, gemini_image(b64="SU1H"))
            return json_response(200, gemini_text(f"{model} only talks"))

        outcome = _run(settings, handler, fake_sleep)
        assert outcome.success
        assert outcome.model == "model-c"
        assert outcome.image == "data:image/png;base64,SU1H"
        assert outcome.last_error is None
        assert order == ["model-a", "model-b", "model-c"]
        assert [a.status for a in outcome.attempts] == [
            AttemptStatus.FAILED_FATAL,
            AttemptStatus.FAILED_FATAL,
            AttemptStatus.SUCCESS,
        ]

    def test_stops_at_first_success(self, settings, fake_sleep):
        order = []

        def handler(request):
            order.append(_model_of(request))
            return json_response(200, gemini_image())

        outcome = _run(settings, handler, fake_sleep)
        assert outcome.model == "model-a"
        assert order == ["model-a"]

    def test_all_fail_keeps_text_and_last_error(self, settings, fake_sleep):
        def handler(request):
            if _model_of(request) == "model-a":
                return json_response(404, {"error": "no such model"})
            if _model_of(request) == "model-b":
                return json_response(200, gemini_text("cannot do that"))
            return json_response(200, {"candidates": [{"finishReason": "SAFETY", "content": {"parts": []}}]})

        outcome = _run(settings, handler, fake_sleep)
        assert not outcome.success
        assert outcome.text == "cannot do that"
        assert outcome.last_error is not None
        assert len(outcome.attempts) == 3
        assert all(a.status == AttemptStatus.FAILED_FATAL for a in outcome.attempts)

    def test_transient_failure_moves_on(self, settings, sleeps, fake_sleep):
        def handler(request):
            if _model_of(request) == "model-a":
                raise httpx.ConnectError("reset", request=request)
            return json_response(200, gemini_image())

        outcome = _run(settings, handler, fake_sleep)
        assert outcome.model == "model-b"
        assert outcome.attempts[0].status == AttemptStatus.FAILED_TRANSIENT
        assert sleeps == [1, 2]

    def test_text_accepted_when_image_optional(self, settings, fake_sleep):
        outcome = _run(settings, lambda request: json_response(200, gemini_text("a description")), fake_sleep,
                       require_image=False)
        assert outcome.model == "model-a"
        assert outcome.text == "a description"
        assert outcome.image is None

    def test_missing_key_propagates(self, settings, fake_sleep):
        settings.gemini_api_key = ""
        with pytest.raises(ConfigError):
            _run(settings, lambda request: json_response(200, gemini_image()), fake_sleep)

    def test_empty_reply_is_malformed(self, settings, fake_sleep):
        outcome = _run(settings, lambda request: json_response(200, {"candidates": []}), fake_sleep)
        assert isinstance(outcome.last_error, MalformedResponseError)
        assert outcome.text is None

    def test_requires_models(self, settings):
        with pytest.raises(ValueError):
            ModelFallbackOrchestrator(GeminiClient(settings, None), [])
