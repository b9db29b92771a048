from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response, StreamingResponse
from template_service.core.ratelimit import enforce_rate_limit
from template_service.core.service import PreparedArchive, TemplateService
from template_service.schemas.templates import (
    CombinedTemplateRequest,
    ErrorResponse,
    TemplateListResponse,
)

router = APIRouter(prefix="/api")

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def get_template_service(request: Request) -> TemplateService:
    return request.app.state.template_service


async def archive_response(service: TemplateService, prepared: PreparedArchive) -> Response:
    headers = {
        "Content-Disposition": f"attachment; filename={prepared.filename}",
        "X-Content-Type-Options": "nosniff",
    }
    if service.stream_archives:
        return StreamingResponse(
            service.stream(prepared), media_type="application/zip", headers=headers
        )
    return Response(
        content=await service.buffer(prepared), media_type="application/zip", headers=headers
    )


@router.get("/templates", response_model=TemplateListResponse)
def list_templates(service: TemplateService = Depends(get_template_service)):
    return TemplateListResponse(templates=service.registry.available())


@router.get(
    "/generate-template/{template}",
    dependencies=[Depends(enforce_rate_limit)],
    responses=ERROR_RESPONSES,
)
async def generate_template(
    template: str,
    service: TemplateService = Depends(get_template_service),
):
    prepared = await service.prepare([template])
    return await archive_response(service, prepared)


@router.post(
    "/templates",
    dependencies=[Depends(enforce_rate_limit)],
    responses=ERROR_RESPONSES,
)
async def download_templates(
    req: CombinedTemplateRequest,
    service: TemplateService = Depends(get_template_service),
):
    prepared = await service.prepare(req.templates)
    return await archive_response(service, prepared)


@router.post(
    "/generate-combined",
    dependencies=[Depends(enforce_rate_limit)],
    responses=ERROR_RESPONSES,
)
async def generate_combined(
    req: CombinedTemplateRequest,
    service: TemplateService = Depends(get_template_service),
):
    prepared = await service.prepare(req.templates)
    return await archive_response(service, prepared)
