# stylevision/normalize.py
"""
Map loosely-shaped AI output onto AnalysisResult / NormalizedRecommendation.

Each analysis kind is described once (prompt + field aliases) and the same
normalizer serves every route, instead of each endpoint re-parsing the
model's JSON in its own way.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from stylevision.models import AnalysisResult, NormalizedRecommendation
from stylevision.prompts import COLOR_ANALYSIS_PROMPT, HAIRSTYLE_ANALYSIS_PROMPT

# canonical key -> accepted source keys, first match wins
_COMMON_ALIASES = {
    "name": ["name", "colorName", "styleName", "title"],
    "description": ["description", "whyItWorks", "why_it_works", "suitabilityReason", "reason"],
    "suitabilityScore": ["suitabilityScore", "matchScore", "score", "suitability"],
    "maintenanceLevel": ["maintenanceLevel", "maintenance"],
    "stylingTips": ["stylingTips", "instructions", "tips"],
    "bestFor": ["bestFor", "best_for", "occasions", "benefits"],
    "expertTip": ["expertTip", "expert_tip"],
}

_HAIRSTYLE_ALIASES = {
    "cuttingTechnique": ["cuttingTechnique", "cuttingInstructions", "whatToAskFor"],
    "lengthChange": ["lengthChange", "length_change"],
    "visualDescription": ["visualDescription", "theLook"],
}

_COLOR_ALIASES = {
    "hexCode": ["hexCode", "hex", "hex_code", "color_hex"],
    "technique": ["technique"],
    "processingNeeded": ["processingNeeded", "processing_needed"],
    "visualDescription": ["visualDescription", "theLook"],
}

_RESULT_ALIASES = {
    "recommendations": ["recommendations", "hairstyles", "recommendedColors"],
    "faceShape": ["faceShape", "face_shape"],
    "faceAnalysis": ["faceAnalysis", "faceFeatures", "face_analysis"],
    "currentHair": ["currentHair", "current_hair"],
    "skinTone": ["skinTone", "skin_tone"],
    "undertone": ["undertone"],
    "eyeColor": ["eyeColor", "eye_color"],
    "naturalHairColor": ["naturalHairColor", "natural_hair_color"],
    "season": ["season"],
    "expertTip": ["expertTip", "expert_tip"],
    "keyTips": ["keyTips", "key_tips"],
}

_MAINTENANCE = {"low": "Low", "medium": "Medium", "high": "High"}


@dataclass(frozen=True)
class AnalysisKind:
    name: str  # "hairstyle" | "color"
    prompt: str
    aliases: Dict[str, List[str]] = field(default_factory=dict)


HAIRSTYLE = AnalysisKind("hairstyle", HAIRSTYLE_ANALYSIS_PROMPT, {**_COMMON_ALIASES, **_HAIRSTYLE_ALIASES})
COLOR = AnalysisKind("color", COLOR_ANALYSIS_PROMPT, {**_COMMON_ALIASES, **_COLOR_ALIASES})

ANALYSIS_KINDS = {"hairstyle": HAIRSTYLE, "color": COLOR}


def resolve_kind(analysis_type: Optional[str]) -> AnalysisKind:
    """'color' selects colour analysis; 'hair' and anything else mean hairstyle."""
    if analysis_type and analysis_type.strip().lower() in ("color", "colour"):
        return COLOR
    return HAIRSTYLE


def _pick(raw: Dict[str, Any], aliases: List[str]) -> Any:
    for key in aliases:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def normalize_score(value: Any) -> float:
    """0-100 and 0-1 scales both map into [0, 1]; garbage maps to 0.5."""
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.5
    if score != score:  # NaN
        return 0.5
    if score > 1:
        score = score / 100.0
    return min(1.0, max(0.0, score))


def normalize_maintenance(value: Any) -> str:
    if isinstance(value, str):
        return _MAINTENANCE.get(value.strip().lower(), "Medium")
    return "Medium"


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return [str(value)]


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)


def normalize_recommendation(raw: Any, kind: AnalysisKind, index: int = 0) -> NormalizedRecommendation:
    if not isinstance(raw, dict):
        raw = {"name": str(raw)} if raw is not None else {}
    aliases = kind.aliases

    values: Dict[str, Any] = {
        "id": str(raw.get("id") or f"{kind.name}-{index}"),
        "name": _as_text(_pick(raw, aliases["name"])) or "",
        "description": _as_text(_pick(raw, aliases["description"])) or "",
        "suitabilityScore": normalize_score(_pick(raw, aliases["suitabilityScore"])),
        "maintenanceLevel": normalize_maintenance(_pick(raw, aliases["maintenanceLevel"])),
        "stylingTips": _as_list(_pick(raw, aliases["stylingTips"])),
        "bestFor": _as_list(_pick(raw, aliases["bestFor"])),
    }

    for canonical in aliases:
        if canonical in values:
            continue
        text = _as_text(_pick(raw, aliases[canonical]))
        if text is not None:
            values[canonical] = text

    return NormalizedRecommendation(**values)


def normalize_result(kind: AnalysisKind, raw: Dict[str, Any], source: str = "ai") -> AnalysisResult:
    """Build an AnalysisResult from a parsed model reply."""
    picked = {canonical: _pick(raw, keys) for canonical, keys in _RESULT_ALIASES.items()}

    items = picked.pop("recommendations") or []
    if not isinstance(items, list):
        items = [items]
    recommendations = [normalize_recommendation(item, kind, i) for i, item in enumerate(items)]

    values: Dict[str, Any] = {
        "analysisType": kind.name,
        "source": source,
        "recommendations": recommendations,
        "expertTip": _as_text(picked.pop("expertTip")) or "",
        "keyTips": _as_list(picked.pop("keyTips")),
    }
    for key in ("faceAnalysis", "currentHair"):
        value = picked.pop(key)
        if isinstance(value, dict):
            values[key] = value
    for key, value in picked.items():
        text = _as_text(value)
        if text is not None:
            values[key] = text

    return AnalysisResult(**values)
