from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from greendata.core.database import get_db
from greendata.core.security import bearer_token, resolve_profile
from greendata.schemas.compression import CompressRequest, ErrorResponse
from greendata.services.compression_service import compression_service
from greendata.services.storage_service import get_storage
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions", tags=["Functions"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


class FunctionError(Exception):
    pass


def _error(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error=message).model_dump(),
        headers=CORS_HEADERS,
    )


@router.options("/compress-file")
async def compress_file_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/compress-file", responses={400: {"model": ErrorResponse}})
async def compress_file(
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_storage),
):
    """
    Simulated compression of an uploaded object.

    Expects ``{filePath, filename, originalSize, mimeType}`` and a bearer token.
    Records the file for the caller and answers with the sizes and savings;
    every failure is a 400 ``{"error": ...}``.
    """
    try:
        owner = await resolve_profile(bearer_token(request.headers.get("Authorization")), db)
        if owner is None:
            raise FunctionError("Unauthorized")

        try:
            payload = CompressRequest.model_validate(await request.json())
        except ValueError as e:
            # ValidationError and JSON decoding errors are both ValueErrors
            detail = e.errors()[0]["msg"] if isinstance(e, ValidationError) else "Invalid JSON body"
            raise FunctionError(detail) from e

        result = await compression_service.process(db, storage, owner, payload)
    except Exception as e:
        logger.error("Error processing file: %s", e, exc_info=True)
        return _error(str(e) or "An error occurred during compression")

    return JSONResponse(
        status_code=200,
        content=result.model_dump(by_alias=True),
        headers=CORS_HEADERS,
    )
