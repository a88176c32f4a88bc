"""Core data models used throughout the DOI webservice."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DOIRecord(BaseModel):
    """A single network code to DOI mapping from the FDSN registry."""

    model_config = ConfigDict(frozen=True)

    network: str = Field(min_length=1)
    doi: str = Field(min_length=1)
