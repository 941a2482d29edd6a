# src/sql_gateway/web_interface/routes/sql_routes.py
from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
import logging

from sql_gateway.core.responses import ServiceResponse
from sql_gateway.database.query_service import QueryService, SECURITY_HEADERS
from sql_gateway.security.rate_limiter import ClientInfo
from sql_gateway.web_interface.dependencies import get_client_info, get_query_service, read_request_body
from sql_gateway.web_interface.documentation import build_documentation

# Get logger
logger = logging.getLogger(__name__)

# Create router
router = APIRouter()


def _respond(result: ServiceResponse) -> JSONResponse:
    """Render a service response with the SQL security headers."""
    headers = {**SECURITY_HEADERS, **result.headers}
    return JSONResponse(
        status_code=result.status_code,
        content=jsonable_encoder(result.body),
        headers=headers
    )


@router.post("/execute")
async def execute_query(
        request: Request,
        client: ClientInfo = Depends(get_client_info),
        query_service: QueryService = Depends(get_query_service)
):
    """
    Validate and execute a read-only SQL query.
    """
    body, size = await read_request_body(request, query_service.config.max_request_bytes)
    # Execution blocks on the database driver
    result = await run_in_threadpool(query_service.execute_request, body, client, size)
    return _respond(result)


@router.post("/validate")
async def validate_query(
        request: Request,
        client: ClientInfo = Depends(get_client_info),
        query_service: QueryService = Depends(get_query_service)
):
    """
    Analyze a SQL query without executing it.
    """
    body, size = await read_request_body(request, query_service.config.max_request_bytes)
    result = query_service.validate_request(body, client, size)
    return _respond(result)


@router.get("/test")
async def test_connection(
        client: ClientInfo = Depends(get_client_info),
        query_service: QueryService = Depends(get_query_service)
):
    """
    Test the database connection.
    """
    result = await run_in_threadpool(query_service.rate_limited, client, query_service.test_connection)
    if result.is_error and result.status_code != 429:
        logger.error(f"Database test failed: {result.body['details']}")
    return _respond(result)


@router.get("/stats")
async def get_stats(
        client: ClientInfo = Depends(get_client_info),
        query_service: QueryService = Depends(get_query_service)
):
    """
    Get connection pool statistics and the effective configuration.
    """
    return _respond(query_service.rate_limited(client, query_service.get_stats))


@router.get("/docs")
async def get_documentation(
        request: Request,
        client: ClientInfo = Depends(get_client_info),
        query_service: QueryService = Depends(get_query_service)
):
    """
    Get the SQL API documentation.
    """
    base_url = str(request.base_url).rstrip("/") + "/api/sql"
    return _respond(query_service.rate_limited(
        client, lambda: ServiceResponse(200, build_documentation(base_url, query_service.config))
    ))
