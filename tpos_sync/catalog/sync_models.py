from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

class SavedVariantResponse(BaseModel):
    """Persisted result of the last successful generation (replay input)."""
    attributeLines: List[Dict[str, Any]]
    previewVariants: List[Dict[str, Any]]
    class Config:
        extra = "allow"

class VariantPreviewRequest(BaseModel):
    product_code: str = Field(min_length=1)
    descriptor: str = ""

class VariantSyncRequest(VariantPreviewRequest):
    image: Optional[str] = None  # base64 or data URL

class VariantReplayRequest(BaseModel):
    product_code: str = Field(min_length=1)
