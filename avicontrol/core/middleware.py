from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import time
import logging

logger = logging.getLogger(__name__)

SYNC_STATE_HEADER = "X-Sync-State"


def setup_middleware(app: FastAPI):
    """Configure all middleware for the application"""

    # CORS: la interfaz corre en otro origen (tablet / navegador)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[SYNC_STATE_HEADER],
    )

    @app.middleware("http")
    async def log_requests(request, call_next):
        start_time = time.time()

        response = await call_next(request)

        # La interfaz muestra el indicador de nube sin consultar /sync/status
        replication = request.app.state.context.replication
        sync_state = replication.state.value
        response.headers[SYNC_STATE_HEADER] = sync_state

        process_time = time.time() - start_time
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Sync: {sync_state}"
            f"{' (error: ' + replication.last_error + ')' if replication.last_error else ''} - "
            f"Time: {process_time:.4f}s"
        )

        return response
