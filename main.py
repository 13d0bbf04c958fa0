"""
FastAPI WebSocket Room Chat Server
Clients register a name, join a room and exchange messages fanned out to every occupant
"""

from fastapi import FastAPI, WebSocket, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pathlib import Path
import time
import uvicorn

from chat_core import (
    Registry,
    Dispatcher,
    Session,
    get_logger,
    log_system_event,
    HOST,
    PORT,
    SERVER_NAME,
    WS_PING_INTERVAL,
    WS_PING_TIMEOUT,
)

logger = get_logger()

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    log_system_event("startup", f"{SERVER_NAME} starting up")

    yield

    stats = await app.state.registry.get_stats()
    log_system_event("shutdown", f"{SERVER_NAME} shutting down | sessions={stats['total_sessions']}")


def create_app() -> FastAPI:
    """Build an application with its own registry and dispatcher"""
    app = FastAPI(
        title=SERVER_NAME,
        description="Real-time room chat over websockets",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.registry = Registry()
    app.state.dispatcher = Dispatcher(app.state.registry)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """Serve the chat page"""
        index = STATIC_DIR / "index.html"
        if not index.is_file():
            return HTMLResponse(content="<h1>Chat interface not found</h1>", status_code=404)
        return FileResponse(index)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        try:
            stats = await app.state.registry.get_stats()
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            raise HTTPException(status_code=503, detail="Service unavailable")

        return {
            "status": "healthy",
            "timestamp": time.time(),
            "connections": stats,
        }

    @app.get("/stats")
    async def get_stats():
        """Get server statistics"""
        return {
            "server": SERVER_NAME,
            "timestamp": time.time(),
            "registry": await app.state.registry.get_stats(),
            "rooms": await app.state.registry.get_room_info(),
        }

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Chat websocket: one Session per accepted connection"""
        await websocket.accept()

        session = Session(websocket, app.state.registry, app.state.dispatcher)
        logger.info(f"WebSocket connection {session.session_id} accepted from {session.peer}")

        await session.run()
        logger.info(f"WebSocket context {session.session_id} destroyed")

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """Log unexpected errors without leaking details"""
        logger.error(f"Unhandled exception on {request.url.path}: {exc}")
        return HTMLResponse(content="Internal server error", status_code=500)

    if STATIC_DIR.is_dir():
        app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    return app


app = create_app()

if __name__ == "__main__":
    logger.info(f"Starting {SERVER_NAME} on {HOST}:{PORT}...")

    uvicorn.run(
        "main:app",
        host=HOST,
        port=PORT,
        reload=False,
        log_level="info",
        access_log=True,
        ws_ping_interval=WS_PING_INTERVAL,
        ws_ping_timeout=WS_PING_TIMEOUT,
    )
