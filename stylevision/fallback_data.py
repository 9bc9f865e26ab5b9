# stylevision/fallback_data.py
"""
Fixed analysis results served whenever the live AI path fails.

Stored already in canonical form, so the UI renders them exactly like a
normalized model reply.
"""

import copy
from typing import Any, Dict

from stylevision.models import AnalysisResult
from stylevision.normalize import AnalysisKind, resolve_kind

ADVISORY_AI = "These recommendations were generated by AI from your photo."
ADVISORY_FALLBACK = (
    "AI analysis is unavailable right now, so these are general recommendations. "
    "Try again later for a personalised result."
)

_HAIRSTYLE_FALLBACK: Dict[str, Any] = {
    "analysisType": "hairstyle",
    "source": "fallback",
    "faceShape": "Oval",
    "faceAnalysis": {
        "jawline": "Well-defined, balanced proportions",
        "forehead": "Medium height, well-proportioned",
        "cheekbones": "Subtly prominent, creating elegant contours",
        "faceRatio": "Balanced length to width",
    },
    "currentHair": {"estimatedLength": "medium", "texture": "wavy", "density": "medium"},
    "recommendations": [
        {
            "id": "fb-hair-1",
            "name": "The Modern Quiff",
            "description": "Adds height and sophistication while keeping a clean, professional look for any occasion.",
            "suitabilityScore": 0.92,
            "maintenanceLevel": "Medium",
            "stylingTips": [
                "Apply volumizing mousse to damp hair",
                "Blow dry upward using a round brush at the roots",
                "Finish with matte clay, working from back to front",
            ],
            "bestFor": ["Office", "Evening events"],
            "expertTip": "Sea salt spray before blow drying gives natural texture; matte clay holds without shine.",
            "visualDescription": "Voluminous top swept upward and back with tapered sides.",
            "cuttingTechnique": "Textured quiff with 2-3 inches on top, tapered sides, skin fade at the temples.",
            "lengthChange": "trim sides, keep top length",
        },
        {
            "id": "fb-hair-2",
            "name": "Textured French Crop",
            "description": "Low maintenance yet stylish, and it works with the natural hair texture.",
            "suitabilityScore": 0.88,
            "maintenanceLevel": "Low",
            "stylingTips": [
                "Towel dry until slightly damp",
                "Apply a small amount of clay to fingertips",
                "Work through hair with loose, natural movements",
            ],
            "bestFor": ["Everyday", "Casual"],
            "expertTip": "A pea-sized amount of matte clay is all you need.",
            "visualDescription": "Short, choppy layers with natural movement and a soft fringe.",
            "cuttingTechnique": "Point cutting throughout, short tapered sides, soft fringe at 1 inch.",
            "lengthChange": "major cut",
        },
        {
            "id": "fb-hair-3",
            "name": "Executive Side Part",
            "description": "Professional and versatile, it moves from the boardroom to evening events easily.",
            "suitabilityScore": 0.85,
            "maintenanceLevel": "Medium",
            "stylingTips": [
                "Apply pomade to damp hair",
                "Comb into place following the natural part",
                "Set with light-hold hairspray",
            ],
            "bestFor": ["Office", "Formal events"],
            "expertTip": "Push all hair forward to find where it naturally splits; that is your part.",
            "visualDescription": "Polished look with a defined natural part and sleek finish.",
            "cuttingTechnique": "3-4 inches on top, tapered sides, natural part line defined.",
            "lengthChange": "reshape only",
        },
        {
            "id": "fb-hair-4",
            "name": "Effortless Messy Fringe",
            "description": "Gives a youthful, approachable appearance suited to creative settings.",
            "suitabilityScore": 0.82,
            "maintenanceLevel": "Low",
            "stylingTips": [
                "Let hair air dry or rough dry with fingers",
                "Apply texture spray from 6 inches away",
                "Tousle with fingers",
            ],
            "bestFor": ["Casual", "Creative work"],
            "expertTip": "Air dry whenever possible for the most natural finish.",
            "visualDescription": "Relaxed, lived-in style with textured bangs.",
            "cuttingTechnique": "Longer textured fringe (2-3 inches), razored layers, shorter graduated back.",
            "lengthChange": "trim 1 inch",
        },
        {
            "id": "fb-hair-5",
            "name": "The Power Slick Back",
            "description": "A sleek, confident style that reads as authoritative.",
            "suitabilityScore": 0.78,
            "maintenanceLevel": "High",
            "stylingTips": [
                "Apply high-hold gel or pomade to damp hair",
                "Comb straight back from the forehead",
                "Let set naturally or use low heat",
            ],
            "bestFor": ["Formal events", "Evening"],
            "expertTip": "Start with damp hair for the best hold and smoothest finish.",
            "visualDescription": "Hair swept straight back with a high fade on the sides.",
            "cuttingTechnique": "4-5 inches on top, high skin fade on sides, clean neckline.",
            "lengthChange": "trim sides only",
        },
        {
            "id": "fb-hair-6",
            "name": "Sharp Buzz Fade",
            "description": "Zero daily styling while always looking sharp.",
            "suitabilityScore": 0.75,
            "maintenanceLevel": "Low",
            "stylingTips": [
                "No daily styling needed",
                "Trim every 2-3 weeks",
                "Use SPF on the scalp in summer",
            ],
            "bestFor": ["Sport", "Everyday"],
            "expertTip": "Keep the scalp moisturized and protected from the sun.",
            "visualDescription": "Ultra-clean minimal cut with a precise gradient fade.",
            "cuttingTechnique": "Guard 2 or 3 on top, skin fade from the temples down, crisp lineup.",
            "lengthChange": "major cut",
        },
    ],
    "expertTip": "Oval faces suit most styles, so pick by lifestyle and how much time you spend styling.",
    "keyTips": [
        "Busy schedules favour lower-maintenance cuts",
        "Bring reference photos to your stylist",
        "Use products that match your hair type",
    ],
}

_COLOR_FALLBACK: Dict[str, Any] = {
    "analysisType": "color",
    "source": "fallback",
    "skinTone": "Neutral",
    "undertone": "neutral",
    "eyeColor": "Brown",
    "naturalHairColor": "Medium brown",
    "season": "Autumn",
    "recommendations": [
        {
            "id": "fb-color-1",
            "name": "Rich Chestnut",
            "description": "A warm, multi-dimensional brown that enhances warmth in the skin.",
            "suitabilityScore": 0.92,
            "maintenanceLevel": "Medium",
            "stylingTips": ["Add caramel highlights around the face for dimension"],
            "bestFor": ["Warm undertones", "Everyday wear"],
            "expertTip": "Face-framing caramel pieces catch the light.",
            "hexCode": "#5D2906",
            "technique": "full color",
            "processingNeeded": "Single-process color, no lightening",
        },
        {
            "id": "fb-color-2",
            "name": "Copper Penny",
            "description": "Vibrant warm copper that brings out golden undertones.",
            "suitabilityScore": 0.88,
            "maintenanceLevel": "High",
            "stylingTips": ["Use a copper color-depositing conditioner weekly"],
            "bestFor": ["Statement look", "Golden undertones"],
            "expertTip": "Copper fades fastest; wash in cool water.",
            "hexCode": "#B04A00",
            "technique": "full color",
            "processingNeeded": "Light pre-lightening on dark bases",
        },
        {
            "id": "fb-color-3",
            "name": "Caramel Balayage",
            "description": "Sun-kissed warmth that creates natural-looking dimension.",
            "suitabilityScore": 0.85,
            "maintenanceLevel": "Low",
            "stylingTips": ["Keep lighter pieces around the face"],
            "bestFor": ["Low upkeep", "Natural dimension"],
            "expertTip": "Balayage grows out softly, so touch-ups can wait 3-4 months.",
            "hexCode": "#C68E17",
            "technique": "balayage",
            "processingNeeded": "Hand-painted lightening on selected sections",
        },
        {
            "id": "fb-color-4",
            "name": "Warm Chocolate",
            "description": "Deep brown with red undertones, sophisticated yet approachable.",
            "suitabilityScore": 0.82,
            "maintenanceLevel": "Low",
            "stylingTips": ["Clear gloss every 6 weeks keeps the shine"],
            "bestFor": ["Professional settings", "Darker bases"],
            "expertTip": "Glossing treatments enhance richness between colour appointments.",
            "hexCode": "#3C1414",
            "technique": "full color",
            "processingNeeded": "Deposit-only color",
        },
        {
            "id": "fb-color-5",
            "name": "Honey Blonde",
            "description": "Warm golden blonde that complements autumn colouring.",
            "suitabilityScore": 0.78,
            "maintenanceLevel": "High",
            "stylingTips": ["Use purple shampoo sparingly"],
            "bestFor": ["Brightening", "Summer"],
            "expertTip": "Golden tones are your friend; avoid toning them out completely.",
            "hexCode": "#E8B960",
            "technique": "highlights",
            "processingNeeded": "Bleaching needed on brown bases",
        },
        {
            "id": "fb-color-6",
            "name": "Classic Auburn",
            "description": "A balanced red-brown blend that is timeless and flattering.",
            "suitabilityScore": 0.75,
            "maintenanceLevel": "Medium",
            "stylingTips": ["Use colour-safe sulfate-free shampoo"],
            "bestFor": ["Versatility", "Autumn palettes"],
            "expertTip": "The most universally flattering shade for warm colouring.",
            "hexCode": "#8B2500",
            "technique": "full color",
            "processingNeeded": "Single-process color",
        },
    ],
    "expertTip": "Warm tones enhance your natural glow; stay in the golden family when going lighter.",
    "keyTips": [
        "Avoid ashy or cool-toned colours that can make skin look sallow",
        "When going lighter, choose golden or honey over platinum",
        "Rich deep colours give contrast without harshness",
    ],
}

_DATASETS = {"hairstyle": _HAIRSTYLE_FALLBACK, "color": _COLOR_FALLBACK}


class FallbackDatasetProvider:
    """Hands out fresh copies so callers can mutate a result without touching the dataset."""

    def get_fallback(self, kind) -> AnalysisResult:
        if not isinstance(kind, AnalysisKind):
            kind = resolve_kind(kind)
        return AnalysisResult.model_validate(copy.deepcopy(_DATASETS[kind.name]))


fallback_provider = FallbackDatasetProvider()


def get_fallback(kind) -> AnalysisResult:
    return fallback_provider.get_fallback(kind)
