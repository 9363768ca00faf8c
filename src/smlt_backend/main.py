import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request

from .config import settings
from .errors import RequestParameterError
from .index.provider import SnapshotProvider
from .observer import LoggingObserver
from .pipeline import SemanticMoreLikeThis
from .request_params import build_request_config
from .telemetry import metrics, sanitize_text, setup_logging

logger = logging.getLogger(__name__)

RESPONSE_KEY = "semanticMoreLikeThis"


def _default_provider() -> SnapshotProvider:
    # Imported here so the app can be built without chromadb for in-process snapshots.
    from .index.chroma_snapshot import ChromaSnapshotProvider

    app_config = settings.app_config
    return ChromaSnapshotProvider(
        host=settings.chroma_host,
        port=settings.chroma_port,
        chroma=app_config.chroma,
        defaults=app_config.smlt,
        lexical=app_config.lexical,
    )


def _query_params(request: Request) -> Dict[str, List[str]]:
    params = request.query_params
    return {key: params.getlist(key) for key in params.keys()}


def create_app(provider: Optional[SnapshotProvider] = None) -> FastAPI:
    setup_logging(settings.log_level)
    metrics.configure(enabled=settings.app_config.telemetry.metrics_enabled)

    app = FastAPI(
        title="SMLT Backend",
        description="Semantic More Like This: hybrid vector + lexical similar-document retrieval.",
        version="1.0.0",
    )
    app.state.provider = provider or _default_provider()
    observer = LoggingObserver()

    # --- Health Check ---
    @app.get("/health")
    def health_check():
        try:
            snapshot = app.state.provider.current()
        except Exception as e:
            logger.error("Health check failed: %s", e)
            raise HTTPException(status_code=503, detail="Index snapshot is not available.")
        return {"status": "ok", "documents": snapshot.document_count}

    # --- API Endpoints ---

    @app.get("/smlt")
    def semantic_more_like_this(request: Request) -> Dict[str, Any]:
        """Documents similar to ``smlt.id``; an empty object when SMLT is not requested."""
        params = _query_params(request)
        try:
            config = build_request_config(params, settings.smlt_defaults)
        except RequestParameterError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if config is None:
            return {}

        metrics.increment("smlt.requests", mode=config.mode.value)
        try:
            snapshot = app.state.provider.current()
            result = SemanticMoreLikeThis(snapshot, observer=observer).run(config)
        except Exception as e:
            logger.error("SMLT request for '%s' failed: %s", sanitize_text(config.source_id), e)
            metrics.increment("smlt.errors")
            raise HTTPException(status_code=500, detail=f"Failed to find similar documents: {e}")
        return {RESPONSE_KEY: result.to_response()}

    @app.post("/api/index/refresh")
    def refresh_index():
        """Reload the index snapshot so new documents become searchable."""
        try:
            snapshot = app.state.provider.refresh()
        except Exception as e:
            logger.error("Snapshot refresh failed: %s", e)
            raise HTTPException(status_code=500, detail=f"Failed to refresh index: {e}")
        return {"success": True, "documents": snapshot.document_count}

    return app


app = create_app()
