# app/schemas/uploads.py
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field


class ProcessedImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    order: int = Field(ge=0)


class SkippedPart(BaseModel):
    field: str
    filename: str
    content_type: str
    reason: Literal["not_allowed", "store_not_configured"]


class IngestResult(BaseModel):
    images: List[ProcessedImage] = []
    urls: List[str] = []
    fields: Dict[str, Any] = {}
    skipped: List[SkippedPart] = []


class RawIngestResult(BaseModel):
    urls: List[str] = []
    skipped: List[SkippedPart] = []
