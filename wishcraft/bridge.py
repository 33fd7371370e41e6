"""Local HTTP bridge between the wishlist store and the browser extension."""

from __future__ import annotations

import enum
import logging
import socket
import sys
import threading
import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__, routes
from .config_loader import BridgeConfig
from .dispatcher import OwnerDispatcher
from .store import WishlistStore

LOGGER = logging.getLogger(__name__)


def create_bridge_app(
    store: WishlistStore,
    dispatcher: OwnerDispatcher,
    bridge_config: BridgeConfig | None = None,
) -> FastAPI:
    app = FastAPI(
        title="WishCraft bridge",
        description="Lets the WishCraft Clipper extension list wishlists and add items.",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.store = store
    app.state.dispatcher = dispatcher
    app.state.bridge_config = bridge_config or BridgeConfig()

    # CORSMiddleware only answers requests that carry an Origin header; the
    # extension contract wants the header on every response.
    @app.middleware("http")
    async def allow_any_origin(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("Access-Control-Allow-Origin", "*")
        return response

    @app.exception_handler(StarletteHTTPException)
    async def plain_text_http_error(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    app.include_router(routes.router)
    return app


class BridgeState(str, enum.Enum):
    STOPPED = "stopped"
    LISTENING = "listening"


class BridgeServer:
    """Serves the bridge app from a background thread.

    :meth:`start` binds the port on the calling thread so a port that is
    already taken is reported right away; the bridge then stays stopped and
    the rest of the application carries on without it.
    """

    def __init__(
        self,
        app: FastAPI,
        host: str = "127.0.0.1",
        port: int = 6521,
        *,
        log_level: str = "info",
        startup_timeout: float = 5.0,
    ) -> None:
        self.app = app
        self.host = host
        self.port = port
        self.log_level = log_level.lower()
        self.startup_timeout = startup_timeout
        self.state = BridgeState.STOPPED
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def start(self) -> bool:
        if self.state is BridgeState.LISTENING:
            return True
        try:
            sock = self._bind()
        except OSError as exc:
            LOGGER.error("WishCraft bridge failed to start on %s:%s: %s", self.host, self.port, exc)
            return False

        config = uvicorn.Config(
            self.app,
            log_level=self.log_level,
            log_config=None,
            access_log=False,
            lifespan="off",
        )
        server = uvicorn.Server(config)
        thread = threading.Thread(
            target=server.run,
            kwargs={"sockets": [sock]},
            name="wishcraft-bridge",
            daemon=True,
        )
        thread.start()

        deadline = time.monotonic() + self.startup_timeout
        while not server.started and thread.is_alive() and time.monotonic() < deadline:
            time.sleep(0.05)
        if not server.started:
            LOGGER.error("WishCraft bridge did not come up on %s", self.url)
            server.should_exit = True
            sock.close()
            return False

        self._server = server
        self._thread = thread
        self.state = BridgeState.LISTENING
        LOGGER.info("WishCraft bridge running at %s", self.url)
        return True

    def stop(self, timeout: float = 5.0) -> None:
        if self._server is None or self._thread is None:
            return
        self._server.should_exit = True
        self._thread.join(timeout)
        self._server = None
        self._thread = None
        self.state = BridgeState.STOPPED

    def _bind(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            if sys.platform != "win32":
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(128)
        except OSError:
            sock.close()
            raise
        self.port = sock.getsockname()[1]
        sock.set_inheritable(True)
        return sock
