"""FastAPI app serving the app-local control paths and event ingestion."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel, StrictBool, StrictFloat, StrictInt, StrictStr
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from metadata_acs.config import get_settings
from metadata_acs.control import BAD_REQUEST_HTML
from metadata_acs.event_bus import LocalEventBus
from metadata_acs.logs import configure_logging
from metadata_acs.runner import MetadataACSService, create_service

log = logging.getLogger(__name__)

EventValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]


class EventPayload(BaseModel):
    topic: Dict[str, str]
    data: Dict[str, EventValue] = {}


def create_app(service: Optional[MetadataACSService] = None) -> FastAPI:
    service = service or create_service()
    prefix = f"/local/{service.settings.app_id}"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service.start(asyncio.get_running_loop())
        yield
        service.shutdown()
        log.info("Exiting application")

    app = FastAPI(title="Metadata ACS", version="0.1.0", lifespan=lifespan)
    app.state.service = service

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            log.warning("Cannot locate handler for request %s", request.url.path)
            return HTMLResponse(BAD_REQUEST_HTML, status_code=status.HTTP_400_BAD_REQUEST)
        return HTMLResponse(str(exc.detail), status_code=exc.status_code)

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post(f"{prefix}/events", status_code=status.HTTP_202_ACCEPTED)
    async def ingest_event(payload: EventPayload):
        bus = service.bus
        if not isinstance(bus, LocalEventBus):
            return HTMLResponse(BAD_REQUEST_HTML, status_code=status.HTTP_400_BAD_REQUEST)
        delivered = bus.publish(payload.topic, payload.data)
        return {"status": "queued", "subscribers": delivered}

    @app.get(prefix + "/{path:path}")
    async def control(path: str, request: Request) -> Response:
        query = dict(request.query_params)
        if service.control.is_blocking(path):
            answer = await run_in_threadpool(service.control.handle, path, query)
        else:
            answer = service.control.handle(path, query)
        return Response(
            content=answer.body,
            status_code=answer.status_code,
            media_type=answer.media_type,
            headers=answer.headers,
        )

    return app


def main() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(settings)
    app = create_app(create_service(settings))
    # uvicorn turns SIGTERM/SIGINT into a lifespan shutdown.
    uvicorn.run(app, host=settings.http_host, port=settings.http_port, log_config=None)


if __name__ == "__main__":
    main()
