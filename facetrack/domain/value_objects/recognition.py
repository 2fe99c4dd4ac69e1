"""Cloud face recognition value objects."""
from typing import Optional

from pydantic import BaseModel, Field


class RecognizerMatch(BaseModel):
    """Best match returned by a cloud face search."""
    face_id: Optional[str] = Field(None, description="Recognizer face identifier")
    external_id: Optional[str] = Field(None, description="Reference stored when the face was indexed")
    similarity: float = Field(..., description="Similarity score (0-100)")
