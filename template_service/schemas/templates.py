from pydantic import BaseModel, Field, field_validator
from typing import List

class CombinedTemplateRequest(BaseModel):
    templates: List[str] = Field(..., min_length=1, examples=[["react", "express"]])

    @field_validator("templates")
    @classmethod
    def reject_duplicates(cls, value: List[str]) -> List[str]:
        seen = set()
        for name in value:
            if name in seen:
                raise ValueError(f'Template "{name}" requested more than once')
            seen.add(name)
        return value

class TemplateListResponse(BaseModel):
    templates: List[str]

class ErrorResponse(BaseModel):
    error: str
    message: str | None = None
