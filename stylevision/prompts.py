# stylevision/prompts.py
"""Prompt text sent to the AI backend."""

HAIRSTYLE_ANALYSIS_PROMPT = """You are an expert hairstylist and facial geometry analyst. Analyze this person's photo carefully.

ANALYSE:
1. FACE SHAPE: oval, round, square, heart, oblong, diamond or rectangle
2. FACIAL FEATURES: jawline, forehead, cheekbones, face length vs width ratio
3. CURRENT HAIR: approximate length, texture (straight/wavy/curly/coily), density (thin/medium/thick)

CONSTRAINTS:
- Only recommend haircuts that REDUCE or MAINTAIN current length
- Consider what is realistically achievable with their current hair
- Focus on cuts that complement their specific facial geometry

Recommend exactly 6 hairstyles ranked by suitability.

Return ONLY valid JSON:
{
  "faceShape": "specific shape",
  "faceAnalysis": {"jawline": "...", "forehead": "...", "cheekbones": "...", "faceRatio": "..."},
  "currentHair": {"estimatedLength": "short/medium/long", "texture": "straight/wavy/curly/coily", "density": "thin/medium/thick"},
  "recommendations": [
    {
      "name": "Specific Hairstyle Name",
      "cuttingTechnique": "Detailed cutting approach",
      "description": "Why this suits their face - be specific about geometry",
      "suitabilityScore": 0.95,
      "lengthChange": "trim 2 inches / major cut / reshape only",
      "maintenanceLevel": "Low/Medium/High",
      "stylingTips": ["tip1", "tip2", "tip3"],
      "bestFor": ["occasion1", "occasion2"],
      "visualDescription": "How the finished cut looks on them: length, layers, framing, parting"
    }
  ],
  "expertTip": "Personalized advice based on their unique features"
}"""

COLOR_ANALYSIS_PROMPT = """You are an expert hair colorist specializing in color theory and skin tone analysis.

Analyze this person's photo for:
1. Skin tone (fair, light, medium, olive, tan, deep)
2. Undertone (warm/golden, cool/pink, neutral)
3. Eye color
4. Natural hair color
5. Color season (Spring, Summer, Autumn, Winter)

Recommend 6 hair colors that complement their natural coloring.
Only recommend colors achievable from their current hair (say if bleaching would be needed).

Return ONLY valid JSON:
{
  "skinTone": "specific tone",
  "undertone": "warm/cool/neutral",
  "eyeColor": "color",
  "naturalHairColor": "color",
  "season": "Spring/Summer/Autumn/Winter",
  "recommendations": [
    {
      "colorName": "Specific Color Name",
      "hexCode": "#RRGGBB",
      "technique": "balayage/highlights/full color/ombre",
      "description": "Why this complements their coloring",
      "suitabilityScore": 0.95,
      "maintenanceLevel": "Low/Medium/High",
      "processingNeeded": "description of salon process",
      "bestFor": ["benefit1", "benefit2"]
    }
  ],
  "expertTip": "Personalized color advice"
}"""

_KEEP_FACE = "Keep the EXACT same face, skin, features, and background. Only change the hair."

PRESET_HAIRSTYLES = [
    {
        "name": "Classic Side Part",
        "prompt": "Edit this photo to give the person a classic side part hairstyle - hair parted on the left side, "
        "neatly combed, with a clean fade on the sides. " + _KEEP_FACE,
    },
    {
        "name": "Textured Crop",
        "prompt": "Edit this photo to give the person a textured crop hairstyle - short on sides with a textured, "
        "slightly messy top. " + _KEEP_FACE,
    },
    {
        "name": "Slicked Back",
        "prompt": "Edit this photo to give the person a slicked back hairstyle - hair combed backward with a polished "
        "wet look, clean sides. " + _KEEP_FACE,
    },
    {
        "name": "Undercut with Volume",
        "prompt": "Edit this photo to give the person an undercut hairstyle - very short sides with a longer "
        "voluminous top swept to one side. " + _KEEP_FACE,
    },
    {
        "name": "Crew Cut",
        "prompt": "Edit this photo to give the person a crew cut hairstyle - short all around, slightly longer on top, "
        "clean military-inspired cut. " + _KEEP_FACE,
    },
    {
        "name": "Spiky Textured",
        "prompt": "Edit this photo to give the person a spiky textured hairstyle - short sides with a spiky, textured "
        "top pointing upward. " + _KEEP_FACE,
    },
]

GENERATE_HAIRSTYLE_PROMPT = """You are a celebrity hair stylist and face morphologist following current runway trends.

1. Analyse the facial structure in the photo: face shape, forehead, jawline, cheekbones,
   face length relative to width, and symmetry.
2. Recommend exactly 6 hairstyles that flatter THIS face, mixing classic and trending looks.
3. For each style explain geometrically why it works.

Output ONLY raw JSON, no markdown and no text around it:
{
  "face_shape": "Detected face shape",
  "face_analysis": {
    "forehead": "Width and height assessment",
    "jawline": "Shape and definition",
    "cheekbones": "Prominence level",
    "face_length": "Long/Medium/Short relative to width",
    "symmetry": "Symmetry notes"
  },
  "styling_strategy": "What to enhance, balance or soften",
  "hairstyles": [
    {
      "id": 1,
      "name": "Specific Hairstyle Name",
      "trend_origin": "Where the trend comes from",
      "why_it_works": "2-3 sentences of geometric reasoning",
      "description": "Brief style description",
      "prompts": {
        "front": "Transform the hair to [exact style]. Maintain all facial features exactly unchanged. Photorealistic.",
        "back": "Back view showing [neckline, taper, texture]"
      }
    }
  ]
}"""

_KEEP_FEATURES = "Keep facial features unchanged. Professional, photorealistic."

# Used when the generate-hairstyle analysis cannot be parsed.
HAIRSTYLE_FALLBACK_PROMPTS = [
    {
        "name": "Modern Textured Style",
        "prompt": "Transform this person's hair to a modern textured hairstyle that complements their face shape. "
        + _KEEP_FEATURES,
    },
    {
        "name": "Classic Refined Look",
        "prompt": "Transform this person's hair to a classic refined hairstyle suited to their face geometry. "
        + _KEEP_FEATURES,
    },
    {
        "name": "Trending Fashion Cut",
        "prompt": "Transform this person's hair to a current trending fashion hairstyle that flatters their face. "
        + _KEEP_FEATURES,
    },
    {
        "name": "Volume Enhanced Style",
        "prompt": "Transform this person's hair to add volume where needed for facial balance. " + _KEEP_FEATURES,
    },
    {
        "name": "Sleek Contemporary",
        "prompt": "Transform this person's hair to a sleek contemporary style suited to their features. "
        + _KEEP_FEATURES,
    },
    {
        "name": "Natural Textured Look",
        "prompt": "Transform this person's hair to a natural textured look that enhances their face shape. "
        + _KEEP_FEATURES,
    },
]


def style_visualization_prompt(name: str, description: str = "", visual_description: str = "") -> str:
    return f"""You are a professional hairstyle visualization expert.

Generate a NEW photorealistic image showing this EXACT SAME PERSON with a "{name}" hairstyle applied.

HAIRSTYLE DETAILS:
{description}

VISUAL SPECIFICATIONS:
{visual_description}

REQUIREMENTS:
1. Keep the SAME face, skin tone, facial features, and expression
2. Only modify the hair - apply the described hairstyle
3. Make it look like a real photograph
4. Maintain the same lighting and background style
5. This is a HAIRCUT visualization - only remove or reshape hair, never add length

Generate a single photorealistic image of this person with the new hairstyle."""


def color_visualization_prompt(name: str, hex_code: str = "", description: str = "") -> str:
    shade = f" ({hex_code})" if hex_code else ""
    return f"""Edit this person's photo to show their hair dyed "{name}"{shade}.
{description}
Keep the face, skin, eyes, expression and background exactly the same. Only change the hair color.
Make it look like a real salon result photo with natural shine and dimension."""
