import logging

from fastapi import APIRouter, Response, status
from fastapi.responses import JSONResponse

from app.aggregation.aggregator import MissingCredentialError, fetch_all
from app.config.companies import COMPANIES
from app.config.settings import settings
from app.schemas.quote import AggregateResult, ErrorResponse, FailureDetail, StocksResponse

router = APIRouter()
logger = logging.getLogger(__name__)

STOCKS_PATH = "/api/stocks"
AGGREGATE_STATUS_HEADER = "X-Aggregate-Status"


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.cors_allow_origin,
        "Access-Control-Allow-Methods": "GET, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }


def error_response(
    status_code: int, body: ErrorResponse, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers={**cors_headers(), **(headers or {})},
    )


def internal_error_response(exc: Exception) -> JSONResponse:
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(
            error="Internal server error",
            message="An unexpected error occurred while processing your request",
            details=str(exc) if settings.expose_error_details else None,
        ),
    )


def _service_unavailable(result: AggregateResult) -> JSONResponse:
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorResponse(
            error="Service unavailable",
            message="Unable to fetch stock data. Please try again later.",
            details=[
                FailureDetail(ticker=outcome.ticker, error=outcome.error)
                for outcome in result.outcomes
            ],
        ),
        headers={AGGREGATE_STATUS_HEADER: result.overall_status},
    )


@router.options(STOCKS_PATH)
async def stocks_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=cors_headers())


@router.api_route(STOCKS_PATH, methods=["HEAD", "POST", "PUT", "PATCH", "DELETE"])
async def stocks_method_not_allowed() -> JSONResponse:
    return error_response(
        status.HTTP_405_METHOD_NOT_ALLOWED,
        ErrorResponse(error="Method not allowed", message="Only GET requests are supported"),
        headers={"Allow": "GET, OPTIONS"},
    )


@router.get(STOCKS_PATH, response_model=StocksResponse)
async def get_stocks(response: Response):
    try:
        result = await fetch_all(COMPANIES, settings.providers.api_key)
    except MissingCredentialError:
        logger.error("API_KEY environment variable not configured")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorResponse(
                error="Server configuration error",
                message="API key not configured. Please contact administrator.",
            ),
        )
    except Exception as exc:
        logger.exception("Unexpected error in stocks API")
        return internal_error_response(exc)

    if result.overall_status == "all-failed":
        return _service_unavailable(result)

    response.headers.update(cors_headers())
    response.headers[AGGREGATE_STATUS_HEADER] = result.overall_status
    return StocksResponse(
        status=result.overall_status,
        timestamp=result.timestamp,
        data=result.outcomes,
        summary=result.summary,
    )
