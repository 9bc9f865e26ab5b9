# stylevision/analysis.py
"""
Request-scoped AI flows: photo analysis, style visualisation, the
virtual try-on pipeline and hairstyle transfer.

Each flow opens its own httpx client so nothing is shared between
requests. analyze_or_fallback() is the entry point the UI routes use:
whatever goes wrong, it hands back a renderable AnalysisResult.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from stylevision.config import Settings
from stylevision.errors import ConfigError, MalformedResponseError, StyleVisionError
from stylevision.extract import extract_analysis_json
from stylevision.fallback_data import get_fallback
from stylevision.gemini import GeminiClient, InlineImage, build_request, image_edit_config
from stylevision.logger import console
from stylevision.metrics import ANALYSIS_REQUESTS, FALLBACKS_SERVED
from stylevision.models import AnalysisResult, NormalizedRecommendation
from stylevision.normalize import AnalysisKind, resolve_kind, normalize_result
from stylevision.orchestrator import FallbackOutcome, ModelFallbackOrchestrator
from stylevision.prediction import PredictionPoller
from stylevision.prompts import (
    GENERATE_HAIRSTYLE_PROMPT,
    HAIRSTYLE_FALLBACK_PROMPTS,
    color_visualization_prompt,
    style_visualization_prompt,
)
from stylevision.utils import split_data_uri

MAX_TRYON_VISUALIZATIONS = 6


def make_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.timeout_seconds)


@dataclass(frozen=True)
class AnalysisRequest:
    image_src: str
    kind: AnalysisKind

    @classmethod
    def create(cls, image_src: str, analysis_type: Optional[str]) -> "AnalysisRequest":
        return cls(image_src=image_src, kind=resolve_kind(analysis_type))

    @property
    def image(self) -> InlineImage:
        mime_type, data = split_data_uri(self.image_src)
        return InlineImage(mime_type=mime_type, data=data)


def visualization_prompt(kind: AnalysisKind, rec: NormalizedRecommendation) -> str:
    if kind.name == "color":
        return color_visualization_prompt(rec.name, rec.hex_code or "", rec.description)
    details = rec.description
    if rec.cutting_technique:
        details = f"{details}\nCutting technique: {rec.cutting_technique}"
    return style_visualization_prompt(rec.name, details, rec.visual_description or "")


class AnalysisService:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_factory: Optional[Callable[[Settings], httpx.AsyncClient]] = None,
        sleep: Callable = asyncio.sleep,
    ):
        self.settings = settings or Settings.from_env()
        self.http_factory = http_factory
        self.sleep = sleep

    def _http(self) -> httpx.AsyncClient:
        factory = self.http_factory or make_http_client
        return factory(self.settings)

    def _require_gemini_key(self) -> None:
        if not self.settings.gemini_api_key:
            raise ConfigError("API key not configured", setting="GEMINI_API_KEY")

    # ---- analysis ----

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Live analysis. Raises a StyleVisionError subclass on any failure."""
        self._require_gemini_key()
        body = build_request(request.kind.prompt, request.image)

        async with self._http() as http:
            client = GeminiClient(self.settings, http, sleep=self.sleep)
            data = await client.generate(self.settings.text_model, body)

        raw = extract_analysis_json(data)
        result = normalize_result(request.kind, raw)
        if not result.recommendations:
            raise MalformedResponseError("analysis reply has no recommendations")
        console.log(
            f"[green]{request.kind.name} analysis returned {len(result.recommendations)} recommendations[/green]"
        )
        return result

    async def analyze_or_fallback(
        self, request: AnalysisRequest
    ) -> Tuple[AnalysisResult, Optional[StyleVisionError]]:
        """Returns (result, error). error is None when the result is live."""
        ANALYSIS_REQUESTS.labels(kind=request.kind.name).inc()
        try:
            return await self.analyze(request), None
        except StyleVisionError as exc:
            FALLBACKS_SERVED.labels(kind=request.kind.name, reason=exc.error_code).inc()
            console.log(f"[yellow]Serving fallback {request.kind.name} analysis ({exc.error_code}): {exc}[/yellow]")
            return get_fallback(request.kind), exc

    # ---- image generation ----

    async def _visualize_with(self, http: httpx.AsyncClient, image: InlineImage, prompt: str) -> FallbackOutcome:
        body = build_request(prompt, image, generation_config=image_edit_config(), with_safety=False)
        client = GeminiClient(self.settings, http, sleep=self.sleep)
        orchestrator = ModelFallbackOrchestrator(client, self.settings.image_models)
        return await orchestrator.run(body)

    async def visualize(self, user_photo: str, prompt: str) -> FallbackOutcome:
        """Edit the user's photo with `prompt`, walking the image model chain."""
        self._require_gemini_key()
        mime_type, data = split_data_uri(user_photo)
        async with self._http() as http:
            return await self._visualize_with(http, InlineImage(mime_type, data), prompt)

    async def virtual_tryon(self, user_photo: str, analysis_type: Optional[str]) -> Dict[str, Any]:
        """
        Analyse the photo, then render up to six recommendations one after
        another. A failed rendering marks that item only.
        """
        request = AnalysisRequest.create(user_photo, analysis_type)
        result, error = await self.analyze_or_fallback(request)

        items: List[Dict[str, Any]] = []
        recommendations = result.recommendations[:MAX_TRYON_VISUALIZATIONS]

        if not self.settings.gemini_api_key:
            console.log("[yellow]No API key, skipping try-on rendering[/yellow]")
            items = [dict(rec.to_payload(), generatedImage=None, generationSuccess=False) for rec in recommendations]
        else:
            async with self._http() as http:
                for i, rec in enumerate(recommendations):
                    if i > 0:
                        await self.sleep(self.settings.tryon_request_gap)
                    outcome = await self._visualize_with(http, request.image, visualization_prompt(request.kind, rec))
                    items.append(
                        dict(rec.to_payload(), generatedImage=outcome.image, generationSuccess=outcome.success)
                    )
                    colour = "green" if outcome.success else "yellow"
                    console.log(
                        f"[{colour}]Try-on {i + 1}/{len(recommendations)} {rec.name}: "
                        f"{'ok' if outcome.success else 'no image'}[/{colour}]"
                    )

        analysis = result.to_payload()
        analysis.pop("recommendations", None)
        return {
            "analysis": analysis,
            "recommendations": items,
            "source": result.source,
            "errorCode": error.error_code if error else None,
        }

    # ---- personalised hairstyle generation ----

    async def _hairstyle_plan(
        self, http: httpx.AsyncClient, image: InlineImage
    ) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Ask for six styles tailored to the face; the fixed prompts stand in on any failure."""
        client = GeminiClient(self.settings, http, sleep=self.sleep)
        try:
            data = await client.generate(self.settings.text_model, build_request(GENERATE_HAIRSTYLE_PROMPT, image))
            raw = extract_analysis_json(data)
        except StyleVisionError as exc:
            console.log(f"[yellow]Hairstyle analysis failed ({exc.error_code}), using fixed prompts[/yellow]")
            return list(HAIRSTYLE_FALLBACK_PROMPTS), None

        hairstyles = raw.get("hairstyles")
        if not isinstance(hairstyles, list) or len(hairstyles) < len(HAIRSTYLE_FALLBACK_PROMPTS):
            console.log("[yellow]Hairstyle analysis incomplete, using fixed prompts[/yellow]")
            return list(HAIRSTYLE_FALLBACK_PROMPTS), None

        styles = []
        for i, style in enumerate(hairstyles):
            if not isinstance(style, dict):
                style = {}
            prompts = style.get("prompts") if isinstance(style.get("prompts"), dict) else {}
            fixed = HAIRSTYLE_FALLBACK_PROMPTS[i % len(HAIRSTYLE_FALLBACK_PROMPTS)]
            styles.append({
                "name": style.get("name") or fixed["name"],
                "prompt": prompts.get("front") or fixed["prompt"],
                "whyItWorks": style.get("why_it_works"),
                "trendOrigin": style.get("trend_origin"),
                "description": style.get("description"),
            })
        face_analysis = {
            "shape": raw.get("face_shape"),
            "details": raw.get("face_analysis"),
            "strategy": raw.get("styling_strategy"),
        }
        console.log(f"[green]Hairstyle analysis: {face_analysis['shape']} face, {len(styles)} styles[/green]")
        return styles, face_analysis

    async def generate_hairstyles(self, user_photo: str, style_index: Optional[int] = None) -> Dict[str, Any]:
        """
        Pick six hairstyles for the face in `user_photo` and render them, or
        only the one at `style_index`. A failed rendering marks that item only.
        """
        self._require_gemini_key()
        mime_type, data = split_data_uri(user_photo)
        image = InlineImage(mime_type, data)
        indices = [style_index] if style_index is not None else list(range(len(HAIRSTYLE_FALLBACK_PROMPTS)))

        results: List[Dict[str, Any]] = []
        async with self._http() as http:
            styles, face_analysis = await self._hairstyle_plan(http, image)
            for n, idx in enumerate(indices):
                if n > 0:
                    await self.sleep(self.settings.tryon_request_gap)
                style = styles[idx] if idx < len(styles) else HAIRSTYLE_FALLBACK_PROMPTS[idx]
                outcome = await self._visualize_with(http, image, style["prompt"])
                results.append({
                    "styleIndex": idx,
                    "styleName": style["name"],
                    "image": outcome.image,
                    "whyItWorks": style.get("whyItWorks"),
                    "trendOrigin": style.get("trendOrigin"),
                    "description": style.get("description"),
                    "error": None if outcome.success else "Generation failed - try a different photo",
                })

        generated = sum(1 for r in results if r["image"])
        colour = "green" if generated else "yellow"
        console.log(f"[{colour}]Generated {generated}/{len(results)} hairstyles[/{colour}]")
        return {
            "success": generated > 0,
            "faceAnalysis": face_analysis,
            "results": results,
            "message": f"Generated {generated}/{len(results)} personalized hairstyles"
            if generated
            else "Failed to generate styles. Please try a different photo.",
        }

    # ---- prediction backend ----

    async def hairstyle_transfer(self, user_photo: str, hairstyle_ref: str) -> Any:
        if not self.settings.replicate_api_key:
            raise ConfigError(
                "Replicate API key not configured. Add REPLICATE_API_KEY to environment variables.",
                setting="REPLICATE_API_KEY",
            )
        if not self.settings.hairstyle_transfer_version:
            raise ConfigError(
                "Hairstyle transfer model version not configured. Set HAIRSTYLE_TRANSFER_VERSION.",
                setting="HAIRSTYLE_TRANSFER_VERSION",
            )

        async with self._http() as http:
            poller = PredictionPoller(
                http,
                self.settings.replicate_api_key,
                self.settings.replicate_api_url,
                max_polls=self.settings.prediction_max_polls,
                interval=self.settings.prediction_poll_interval,
                sleep=self.sleep,
                max_retries=self.settings.max_retries,
            )
            return await poller.run(
                self.settings.hairstyle_transfer_version,
                {"face_image": user_photo, "hair_image": hairstyle_ref},
            )
