"""
FileDB HTTP Server — FastAPI dispatcher over the document store.

Each route extracts its parameters (JSON body, falling back to the query
string), calls exactly one DocumentStore operation, and writes the result or
the error message back as the response body.

Status handling:
  - PATCH /file/key, POST /file, DELETE /file, POST /merge remap failures to
    the error's status code (400 when it carries none)
  - GET /file, GET /file/key, DELETE /file/key answer failures with the
    message and 200

GET /file/key sends string values as plain text and any other value as JSON.

Run:
    filedb serve --port 5000

Or:
    uvicorn filedb.server:create_app --factory --port 5000
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional, Type, TypeVar

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, ValidationError

from filedb import __version__
from filedb.documents.models import FileRequest, KeyRequest, SetRequest, StatusResponse
from filedb.documents.service import DocumentStore
from filedb.engine.config import FileDBConfig, get_config
from filedb.engine.errors import FileDBError, InvalidArgumentError

logger = logging.getLogger("filedb.server")

M = TypeVar("M", bound=BaseModel)


async def _read_params(request: Request, model: Type[M]) -> M:
    """
    Validate request parameters against ``model``.

    Body takes precedence; an empty body falls back to the query string.
    """
    raw = await request.body()
    data: Dict[str, Any]
    if raw.strip():
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidArgumentError(f"Request body is not valid JSON: {e.msg}")
        if not isinstance(data, dict):
            raise InvalidArgumentError("Request body must be a JSON object")
    else:
        data = dict(request.query_params)

    try:
        return model(**data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "parameter"
        if first.get("type") == "missing":
            message = "Filename is missing" if field == "fileName" else f"{field} is missing"
        else:
            message = f"{field}: {first.get('msg', 'invalid value')}"
        raise InvalidArgumentError(message, parameter=field) from e


def _error_response(err: FileDBError, remap: bool) -> PlainTextResponse:
    status = (err.status_code or 400) if remap else 200
    return PlainTextResponse(err.message, status_code=status)


def create_app(
    config: Optional[FileDBConfig] = None,
    store: Optional[DocumentStore] = None,
) -> FastAPI:
    """Build the FastAPI application bound to one DocumentStore."""
    config = config or get_config()
    store = store or DocumentStore.from_config(config)

    app = FastAPI(
        title="FileDB",
        description="HTTP interface over a directory of JSON documents",
        version=__version__,
    )
    app.state.store = store
    app.state.config = config

    @app.get("/", response_class=PlainTextResponse)
    async def get_home():
        return PlainTextResponse(
            "Welcome to my Server",
            headers={"My-custom-header": "This is a great API"},
        )

    @app.get("/status", response_model=StatusResponse)
    async def get_status():
        return StatusResponse(
            up=True,
            owner=config.server.owner,
            timestamp=time.time_ns() // 1_000_000,
        )

    @app.get("/file")
    async def get_file(request: Request):
        try:
            params = await _read_params(request, FileRequest)
            raw = await store.get_file(params.fileName)
        except FileDBError as e:
            return _error_response(e, remap=False)
        return Response(content=raw, media_type="application/json")

    @app.get("/file/key")
    async def get_property_value(request: Request):
        try:
            params = await _read_params(request, KeyRequest)
            value = await store.get(params.fileName, params.keyName)
        except FileDBError as e:
            return _error_response(e, remap=False)
        if value is None:
            # Either the key is absent or the stored value is null
            return Response(content=b"", media_type="application/json")
        if isinstance(value, str):
            return PlainTextResponse(value)
        return JSONResponse(value)

    @app.patch("/file/key")
    async def patch_set(request: Request):
        try:
            params = await _read_params(request, SetRequest)
            await store.set(params.fileName, params.keyName, params.value)
        except FileDBError as e:
            return _error_response(e, remap=True)
        return PlainTextResponse("File Written", status_code=200)

    @app.delete("/file/key")
    async def remove_property(request: Request):
        try:
            params = await _read_params(request, KeyRequest)
            await store.remove(params.fileName, params.keyName)
        except FileDBError as e:
            return _error_response(e, remap=False)
        return PlainTextResponse("key removed")

    @app.delete("/file")
    async def delete_file(request: Request):
        try:
            params = await _read_params(request, FileRequest)
            deleted = await store.delete_file(params.fileName)
        except FileDBError as e:
            return _error_response(e, remap=True)
        if not deleted:
            return PlainTextResponse(f"{params.fileName} does not exist", status_code=400)
        return PlainTextResponse(f"{params.fileName} successfully deleted")

    @app.post("/file")
    async def post_write(request: Request):
        try:
            params = await _read_params(request, FileRequest)
            await store.create_file(params.fileName)
        except FileDBError as e:
            return _error_response(e, remap=True)
        return PlainTextResponse(f"{params.fileName} successfully created", status_code=201)

    @app.post("/merge")
    async def post_merge():
        try:
            merged = await store.merge_data()
        except FileDBError as e:
            return _error_response(e, remap=True)
        return JSONResponse(merged)

    @app.exception_handler(404)
    async def not_found(request: Request, exc: Exception):
        return PlainTextResponse("Not Found", status_code=404)

    logger.info(f"FileDB app ready: documents in {store.data_dir}")
    return app


def run(config: Optional[FileDBConfig] = None, host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Serve the app with uvicorn."""
    import uvicorn

    config = config or get_config()
    host = host or config.server.host
    port = port or config.server.port
    logger.info(f"server listening on port {port}")
    uvicorn.run(create_app(config), host=host, port=port, log_level=config.logging.level.lower())
