"""Stem and mixing value objects."""
from pathlib import Path
from typing import Dict

from pydantic import BaseModel, Field

# Category name -> public stem URL
StemSelection = Dict[str, str]


class CategoryConfig(BaseModel):
    """One instrument category in the stem library."""
    name: str = Field(..., description="Category name, also the storage folder")
    prefix: str = Field(..., description="Filename prefix of the category's stems")
    count: int = Field(..., description="Number of stems available", ge=1)
    foreground: bool = Field(False, description="Boosted in the mix when true, attenuated otherwise")


class MixInput(BaseModel):
    """A downloaded stem ready to be mixed."""
    category: str
    path: Path
    gain: float = Field(1.0, ge=0.0)
