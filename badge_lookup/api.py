from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pathlib import Path
from typing import Optional
import logging

from . import configure_logging
from .config import BadgeConfig, get_config
from .errors import BadgeLookupError, UpstreamError
from .models import BadgesResponse, ErrorResponse, HealthResponse
from .service import BadgeLookupService
from .store import AirtableStore, RecordStore

logger = logging.getLogger(__name__)

# ==================== APP FACTORY ====================

def create_app(config: Optional[BadgeConfig] = None, store: Optional[RecordStore] = None) -> FastAPI:
    """
    Build the badge lookup app.

    store defaults to an AirtableStore created on the first badge request,
    so a misconfigured server still starts and answers /api/health.
    """
    config = config or get_config()

    app = FastAPI(
        title="Digital Badge Lookup API",
        description="Looks up a user's badge assignments and badge details from Airtable",
        version="1.0.0"
    )

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.store = store
    app.state.service = None

    missing = config.missing_keys()
    if missing:
        logger.warning(
            "Missing env vars: %s. The API will return 500 until they are set.",
            ", ".join(missing),
        )

    @app.exception_handler(BadgeLookupError)
    async def badge_lookup_error_handler(request: Request, exc: BadgeLookupError):
        if isinstance(exc, UpstreamError):
            logger.error("Upstream failure on %s: %s", request.url.path, exc.message, exc_info=exc.cause or exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    register_routes(app)
    return app

def get_service(request: Request) -> BadgeLookupService:
    """Build (once) the service for this app; fails fast on missing config"""
    state = request.app.state
    state.config.validate()
    if state.service is None:
        store = state.store or AirtableStore.from_config(state.config)
        state.service = BadgeLookupService(state.config, store)
    return state.service

# ==================== API ENDPOINTS ====================

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "userId missing"},
    500: {"model": ErrorResponse, "description": "Missing configuration or Airtable failure"},
}

def register_routes(app: FastAPI) -> None:

    @app.get("/api/health", response_model=HealthResponse)
    def health():
        """Liveness and configuration probe"""
        return HealthResponse(ok=True, hasAirtable=app.state.config.has_airtable)

    @app.get("/api/badges", response_model=BadgesResponse, responses=ERROR_RESPONSES)
    @app.get("/api/badges/", response_model=BadgesResponse, include_in_schema=False)
    def missing_user(service: BadgeLookupService = Depends(get_service)):
        return service.lookup(None)

    @app.get("/api/badges/{user_id:path}", response_model=BadgesResponse, responses=ERROR_RESPONSES)
    def get_badges(user_id: str, sessionId: Optional[str] = None, service: BadgeLookupService = Depends(get_service)):
        """
        Get a user's resolved badge assignments

        - Optional sessionId narrows the lookup to one session
        - Assignments whose badge cannot be found are omitted
        """
        return service.lookup(user_id, sessionId)

    @app.get("/{full_path:path}", include_in_schema=False)
    def single_page_app(full_path: str):
        """Serve files from the static directory, falling back to index.html"""
        static_dir = Path(app.state.config.static_dir).resolve()
        requested = (static_dir / full_path).resolve()
        if full_path and static_dir in requested.parents and requested.is_file():
            return FileResponse(requested)

        index = static_dir / "index.html"
        if index.is_file():
            return FileResponse(index)
        return JSONResponse(status_code=404, content={"error": "Not found"})

app = create_app()

# ==================== RUN SERVER ====================

def main():
    import uvicorn
    configure_logging()
    config = get_config()
    logger.info("Digital badge lookup listening on http://localhost:%s", config.port)
    uvicorn.run(app, host=config.host, port=config.port)

if __name__ == "__main__":
    main()
