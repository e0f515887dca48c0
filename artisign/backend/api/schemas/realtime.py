from pydantic import BaseModel, Field
from typing import List, Optional


class SessionCreateIn(BaseModel):
    user_id: Optional[str] = Field(default=None, alias="userId")


class SessionEndIn(BaseModel):
    session_id: str = Field(alias="sessionId", min_length=1)


class LandmarksIn(BaseModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    landmarks: List[float]


class LandmarkSequenceIn(BaseModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    landmark_sequence: List[List[float]] = Field(alias="landmarkSequence")
    model_choice: Optional[str] = Field(default=None, alias="modelChoice")


class CorrectionIn(BaseModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    correction_type: str = Field(alias="correctionType")
    correction: Optional[str] = None
