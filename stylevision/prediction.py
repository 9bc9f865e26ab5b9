# stylevision/prediction.py
"""
Client for the asynchronous prediction backend used by hairstyle transfer.

A submitted prediction is polled at its `urls.get` address until it
succeeds or fails. The number of polls is bounded; running out of polls
is a PollTimeoutError, never an endless wait.
"""

import asyncio
from enum import Enum
from typing import Any, Callable, Dict

import httpx

from stylevision.errors import MalformedResponseError, PollTimeoutError, UpstreamRejectionError
from stylevision.gemini import fetch_with_retry
from stylevision.logger import console


class PredictionState(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @classmethod
    def from_status(cls, status: Any) -> "PredictionState":
        if status == "succeeded":
            return cls.SUCCEEDED
        if status in ("failed", "canceled"):
            return cls.FAILED
        # starting, processing, or anything new the backend invents
        return cls.PENDING


class PredictionPoller:
    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str,
        submit_url: str,
        max_polls: int = 60,
        interval: float = 1.0,
        sleep: Callable = asyncio.sleep,
        max_retries: int = 2,
    ):
        self.http = http
        self.api_key = api_key
        self.submit_url = submit_url
        self.max_polls = max_polls
        self.interval = interval
        self.sleep = sleep
        self.max_retries = max_retries

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Token {self.api_key}", "Content-Type": "application/json"}

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        response = await fetch_with_retry(
            self.http, method, url, max_retries=self.max_retries, sleep=self.sleep, headers=self.headers, **kwargs
        )
        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text[:500]
            console.log(f"[red]Prediction backend error {response.status_code}: {str(payload)[:200]}[/red]")
            raise UpstreamRejectionError(
                f"Prediction backend error: {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError("Prediction backend returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise MalformedResponseError("Prediction backend returned an unexpected body")
        return data

    async def submit(self, version: str, inputs: Dict[str, Any]) -> Dict[str, Any]:
        console.log(f"[blue]Submitting prediction (version {version[:12]})[/blue]")
        return await self._request("POST", self.submit_url, json={"version": version, "input": inputs})

    async def wait(self, prediction: Dict[str, Any]) -> Dict[str, Any]:
        """Poll until the prediction is terminal; returns the final prediction body."""
        result = prediction
        polls = 0
        while True:
            state = PredictionState.from_status(result.get("status"))
            if state is PredictionState.SUCCEEDED:
                console.log(f"[green]Prediction succeeded after {polls} polls[/green]")
                return result
            if state is PredictionState.FAILED:
                console.log(f"[red]Prediction failed: {result.get('error')}[/red]")
                raise UpstreamRejectionError(
                    f"Generation failed: {result.get('error') or result.get('status')}",
                    status_code=502,
                    payload=result,
                )
            if polls >= self.max_polls:
                raise PollTimeoutError(f"Prediction still {result.get('status')!r} after {polls} polls")

            poll_url = (result.get("urls") or {}).get("get")
            if not poll_url:
                raise MalformedResponseError("Prediction response has no polling URL")

            await self.sleep(self.interval)
            polls += 1
            result = await self._request("GET", poll_url)
            if polls % 10 == 0:
                console.log(f"[yellow]Prediction still {result.get('status')} after {polls} polls[/yellow]")

    async def run(self, version: str, inputs: Dict[str, Any]) -> Any:
        prediction = await self.submit(version, inputs)
        final = await self.wait(prediction)
        return final.get("output")
