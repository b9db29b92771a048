"""Error taxonomy for template retrieval.

Every error raised before the response body starts is rendered as a JSON
body by the handler registered in ``template_service.main``. Errors raised
after that point can only abort the stream.
"""
from typing import Any, Dict, List, Optional


class TemplateServiceError(Exception):
    status_code: int = 500
    error: str = "Server error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class InvalidTemplateName(TemplateServiceError):
    """Requested name is not in the allow-list."""
    status_code = 400
    error = "Invalid template"

    def __init__(self, template: str, available: Optional[List[str]] = None):
        super().__init__(f'Template "{template}" not found')
        self.template = template
        self.available = list(available or [])

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["available"] = self.available
        return body


class TemplateNotFound(TemplateServiceError):
    """Name is allow-listed but the upstream archive has no such folder."""
    status_code = 404
    error = "Template not found"

    def __init__(self, template: str):
        super().__init__(f'Template "{template}" not found in upstream archive')
        self.template = template

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["template"] = self.template
        return body


class UpstreamUnavailable(TemplateServiceError):
    status_code = 502
    error = "Failed to fetch templates from GitHub"


class CorruptArchive(TemplateServiceError):
    status_code = 502
    error = "Corrupt upstream archive"


class WriteFailed(TemplateServiceError):
    status_code = 500
    error = "Archive write failed"


class RateLimited(TemplateServiceError):
    status_code = 429
    error = "Too many requests, please try again later."
