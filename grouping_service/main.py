"""
Tab Grouper - Grouping Service

FastAPI service that groups browser tabs into topic categories using a
completion model. The pipeline itself lives in ``pipeline.py``; this
module wires it to HTTP.
"""

import json
import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import get_config
from . import __version__
from .errors import GroupingError
from .llm_client import build_completion_client
from .models import ErrorResponse, GroupTabsRequest, HealthResponse
from .pipeline import TabGroupingPipeline

config = get_config()

# Configure logging
logging.basicConfig(
    level=config.app.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

_started_at = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Grouping service starting...")
    try:
        client = build_completion_client(config.llm)
    except Exception as e:
        logger.error(f"Failed to create completion client: {e}")
        raise
    app.state.pipeline = TabGroupingPipeline.from_settings(client, config.llm)
    logger.info(f"Grouping service ready with model: {config.llm.model_name}")

    yield

    logger.info("Grouping service shutting down")


app = FastAPI(
    title="Tab Grouper",
    description="Groups browser tabs into topic categories with a completion model",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.server.cors_origin_list,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def get_pipeline(request: Request) -> TabGroupingPipeline:
    """Pipeline built at startup; overridden in tests."""
    return request.app.state.pipeline


async def read_json_body(request: Request):
    """Request body as JSON, or None when it is missing or malformed."""
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


@app.post(
    "/group-tabs",
    response_model=dict[str, list],
    responses={
        400: {"model": ErrorResponse, "description": "No tabs provided"},
        500: {"model": ErrorResponse, "description": "Upstream or parsing failure"},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": GroupTabsRequest.model_json_schema()}},
        }
    },
    tags=["Grouping"],
)
async def group_tabs(
    body=Depends(read_json_body),
    pipeline: TabGroupingPipeline = Depends(get_pipeline),
):
    """
    Group tabs by topic.

    Returns a JSON object mapping category names to lists of tab ids,
    exactly as produced by the model. Upstream failures are retried up to
    MAX_RETRIES times before a 500 is returned.
    """
    logger.info("=== NEW REQUEST ===")
    try:
        groups = await pipeline.run(body)
        response = JSONResponse(content=groups)
    except GroupingError as e:
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    except Exception as e:
        logger.exception("Error in /group-tabs")
        return JSONResponse(
            status_code=500,
            content={"error": "Something went wrong", "details": str(e)},
        )

    logger.info("=== REQUEST COMPLETE ===")
    return response


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Liveness probe with process uptime."""
    return HealthResponse(status="ok", uptime=time.monotonic() - _started_at)


# Run with: uvicorn grouping_service.main:app --host 0.0.0.0 --port 3000
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.server.host, port=config.server.port)
