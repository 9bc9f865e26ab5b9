"""Tests for the prediction backend poller."""

import asyncio

import pytest

from stylevision.errors import MalformedResponseError, PollTimeoutError, UpstreamRejectionError
from stylevision.prediction import PredictionPoller, PredictionState

from helpers import json_response, mock_client

SUBMIT_URL = "https://predictions.test/v1/predictions"
POLL_URL = "https://predictions.test/v1/predictions/p1"


def _handler(poll_statuses, requests, output="https://cdn.test/out.png"):
    def handler(request):
        requests.append(request)
        if request.method == "POST":
            return json_response(201, {"id": "p1", "status": "starting", "urls": {"get": POLL_URL}})
        polls = sum(1 for r in requests if r.method == "GET")
        status = poll_statuses[min(polls, len(poll_statuses)) - 1]
        body = {"id": "p1", "status": status, "urls": {"get": POLL_URL}}
        if status == "succeeded":
            body["output"] = output
        if status == "failed":
            body["error"] = "model crashed"
        return json_response(200, body)
    return handler


def _run(handler, sleep, max_polls=60):
    async def go():
        async with mock_client(handler) as http:
            poller = PredictionPoller(http, "secret", SUBMIT_URL, max_polls=max_polls, interval=1.0, sleep=sleep)
            return await poller.run("v-123", {"face_image": "a", "hair_image": "b"})
    return asyncio.run(go())


class TestPredictionState:

    @pytest.mark.parametrize("status,state", [
        ("starting", PredictionState.PENDING),
        ("processing", PredictionState.PENDING),
        ("succeeded", PredictionState.SUCCEEDED),
        ("failed", PredictionState.FAILED),
        ("canceled", PredictionState.FAILED),
        (None, PredictionState.PENDING),
    ])
    def test_from_status(self, status, state):
        assert PredictionState.from_status(status) is state


class TestPredictionPoller:

    def test_succeeds_after_polling(self, sleeps, fake_sleep):
        requests = []
        output = _run(_handler(["processing", "processing", "succeeded"], requests), fake_sleep)
        assert output == "https://cdn.test/out.png"
        assert sleeps == [1.0, 1.0, 1.0]
        assert requests[0].headers["Authorization"] == "Token secret"
        assert requests[-1].url == POLL_URL

    def test_submit_body(self, fake_sleep):
        requests = []
        _run(_handler(["succeeded"], requests), fake_sleep)
        assert b'"version":"v-123"' in requests[0].content.replace(b" ", b"")

    def test_failed_prediction(self, fake_sleep):
        with pytest.raises(UpstreamRejectionError) as info:
            _run(_handler(["processing", "failed"], []), fake_sleep)
        assert "model crashed" in str(info.value)

    def test_poll_bound(self, sleeps, fake_sleep):
        requests = []
        with pytest.raises(PollTimeoutError):
            _run(_handler(["processing"], requests), fake_sleep, max_polls=60)
        assert len(sleeps) == 60
        assert sum(1 for r in requests if r.method == "GET") == 60

    def test_submit_rejected(self, fake_sleep):
        def handler(request):
            return json_response(422, {"detail": "invalid version"})

        with pytest.raises(UpstreamRejectionError) as info:
            _run(handler, fake_sleep)
        assert info.value.status_code == 422

    def test_missing_poll_url(self, fake_sleep):
        def handler(request):
            return json_response(201, {"id": "p1", "status": "starting"})

        with pytest.raises(MalformedResponseError):
            _run(handler, fake_sleep)
