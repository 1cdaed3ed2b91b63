"""
Wayfarer Backend - Import/Export Schemas
"""

from typing import List

from pydantic import Field

from wayfarer.schemas.common import CamelModel


class ImportFailure(CamelModel):
    record: int = Field(description="1-based position of the record in the file")
    spot: str = Field(description="Record name, or 'Unknown' when it has none")
    error: str


class ImportResults(CamelModel):
    successful: int = 0
    failed: int = 0
    errors: List[ImportFailure] = Field(default_factory=list)


class ImportResponse(CamelModel):
    message: str = "Import completed"
    results: ImportResults
