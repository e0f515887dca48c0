from pydantic import BaseModel, Field
from typing import List, Optional


class StaticSignIn(BaseModel):
    landmarks: List[float]


class DynamicSignIn(BaseModel):
    landmark_sequence: List[List[float]] = Field(alias="landmarkSequence")
    model_choice: Optional[str] = Field(default=None, alias="modelChoice")


class TextToSignIn(BaseModel):
    text: str
