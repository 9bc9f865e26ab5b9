# stylevision/models.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Dict, Any, Literal, Optional


# ---- inbound request bodies ----

class AnalyzeRequest(BaseModel):
    imageSrc: str  # data URI or raw base64
    analysisType: str = "hair"  # hair | color


class DetectFaceRequest(BaseModel):
    image: str  # one video frame as data URI
    sessionId: Optional[str] = None
    profile: Literal["background", "capture"] = "capture"


class GenerateStyleRequest(BaseModel):
    userPhoto: str
    hairstyleName: str
    hairstyleDescription: str = ""
    visualDescription: str = ""


class HairstyleGenRequest(BaseModel):
    userPhoto: str
    hairstyleIndex: Optional[int] = 0


class GenerateHairstyleRequest(BaseModel):
    userPhoto: str
    styleIndex: Optional[int] = Field(None, ge=0, le=5)  # all six when omitted


class VirtualTryOnRequest(BaseModel):
    userPhoto: str
    analysisType: str = "hair"


class HairstyleTransferRequest(BaseModel):
    userPhoto: str
    hairstyleRef: str


# ---- analysis result schema ----

MaintenanceLevel = Literal["Low", "Medium", "High"]


class NormalizedRecommendation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    name: str = ""
    description: str = ""
    suitability_score: float = Field(0.5, alias="suitabilityScore", ge=0.0, le=1.0)
    maintenance_level: MaintenanceLevel = Field("Medium", alias="maintenanceLevel")
    styling_tips: List[str] = Field(default_factory=list, alias="stylingTips")
    best_for: List[str] = Field(default_factory=list, alias="bestFor")
    expert_tip: Optional[str] = Field(None, alias="expertTip")
    visual_description: Optional[str] = Field(None, alias="visualDescription")

    # hairstyle only
    cutting_technique: Optional[str] = Field(None, alias="cuttingTechnique")
    length_change: Optional[str] = Field(None, alias="lengthChange")

    # colour only
    hex_code: Optional[str] = Field(None, alias="hexCode")
    technique: Optional[str] = None
    processing_needed: Optional[str] = Field(None, alias="processingNeeded")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class AnalysisResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    analysis_type: Literal["hairstyle", "color"] = Field(alias="analysisType")
    source: Literal["ai", "fallback"] = "ai"

    # hairstyle
    face_shape: Optional[str] = Field(None, alias="faceShape")
    face_analysis: Optional[Dict[str, Any]] = Field(None, alias="faceAnalysis")
    current_hair: Optional[Dict[str, Any]] = Field(None, alias="currentHair")

    # colour
    skin_tone: Optional[str] = Field(None, alias="skinTone")
    undertone: Optional[str] = None
    eye_color: Optional[str] = Field(None, alias="eyeColor")
    natural_hair_color: Optional[str] = Field(None, alias="naturalHairColor")
    season: Optional[str] = None

    recommendations: List[NormalizedRecommendation] = Field(default_factory=list)
    expert_tip: str = Field("", alias="expertTip")
    key_tips: List[str] = Field(default_factory=list, alias="keyTips")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
