"""FastAPI route definitions for the short link REST API.

API Endpoint Overview
=====================
::
    GET    /healthz
        └─ HealthResponse (200)

    POST   /api/links
        ├─ LinkCreate (request body)
        └─ LinkResponse (201) or 400/409/503

    GET    /api/links
        └─ list[LinkResponse] (200), newest first

    GET    /api/links/:code
        └─ LinkResponse (200) or 404

    DELETE /api/links/:code
        └─ DeleteResponse (200) or 404

    GET    /:code
        └─ 302 Redirect or 404 (plain text)

Key Behaviours
===============
- Service errors carry their HTTP status; handlers turn them into
  ``HTTPException`` with ``{"error", "message"}`` details.
- The redirect is always 302 so every visit reaches the tally again.
- ``/healthz`` is a liveness probe: always 200, database state in the body.
- ``/healthz`` is declared before ``/{code}`` so it is never taken as a code.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from sqlalchemy import text

from shortlinks.dependencies import RequestContext, get_link_service, get_request_context
from shortlinks.enums import HealthStatus
from shortlinks.exceptions import LinkServiceError, NotFound
from shortlinks.link_service import LinkService
from shortlinks.schemas import DeleteResponse, HealthResponse, LinkCreate, LinkResponse

__all__ = ["router"]

router = APIRouter()


def _http_error(exc: LinkServiceError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())


@router.get("/healthz", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY

    try:
        await ctx.database.execute(text("SELECT 1"))
    except Exception as e:
        ctx.logger.error(f"Database health check failed: {e}")
        db_status = HealthStatus.UNHEALTHY

    return HealthResponse(
        ok=True,
        version=ctx.settings.APP_VERSION,
        status=db_status,
        database=db_status,
    )


@router.post("/api/links", response_model=LinkResponse, status_code=201, tags=["links"])
async def create_link(
    payload: LinkCreate,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    ctx.logger.info(f"Link creation requested: target={payload.target!r} custom_code={payload.code!r}")
    try:
        link = await service.create_link(payload)
    except LinkServiceError as exc:
        raise _http_error(exc) from exc

    return LinkResponse.from_record(link, ctx.settings.BASE_URL)


@router.get("/api/links", response_model=list[LinkResponse], tags=["links"])
async def list_links(
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> list[LinkResponse]:
    try:
        links = await service.list_links()
    except LinkServiceError as exc:
        raise _http_error(exc) from exc

    return [LinkResponse.from_record(link, ctx.settings.BASE_URL) for link in links]


@router.get("/api/links/{code}", response_model=LinkResponse, tags=["links"])
async def get_link_stats(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> LinkResponse:
    try:
        link = await service.get_link(code)
    except LinkServiceError as exc:
        if isinstance(exc, NotFound):
            ctx.logger.warning(f"Stats not found for code: {code}")
        raise _http_error(exc) from exc

    return LinkResponse.from_record(link, ctx.settings.BASE_URL)


@router.delete("/api/links/{code}", response_model=DeleteResponse, tags=["links"])
async def delete_link(
    code: str,
    service: LinkService = Depends(get_link_service),
) -> DeleteResponse:
    try:
        await service.delete_link(code)
    except LinkServiceError as exc:
        raise _http_error(exc) from exc

    return DeleteResponse(message="Link deleted successfully")


@router.get("/{code}", tags=["redirect"])
async def redirect_to_target(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> Response:
    try:
        record = await service.redirect(code)
    except NotFound:
        ctx.logger.warning(f"Redirect failed - code not found: {code} in {ctx.get_duration():.1f}ms")
        return PlainTextResponse("404 - Link Not Found", status_code=404)
    except LinkServiceError as exc:
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    ctx.logger.info(
        f"Redirect: {code} -> {record.target} clicks={record.clicks} in {ctx.get_duration():.1f}ms"
    )
    return RedirectResponse(url=record.target, status_code=302)
