"""
Development Server

Serves the output directory over HTTP so a browser can load the modules
through the import map written with ``--serve``.
"""

import asyncio
import contextlib
import socket
from pathlib import Path
from typing import Iterator, Optional, Sequence

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .common import ServerDefaults, ServerError
from .common.logger import get_logger

logger = get_logger(__name__)


def create_app(
    output_dir: Path,
    cors_origins: Sequence[str] = ServerDefaults.CORS_ORIGINS,
) -> FastAPI:
    """
    Create the static file app for an output directory.

    CORS is open by default so pages served from another origin can import
    the modules.
    """
    app = FastAPI(title="esimport", docs_url=None, redoc_url=None, openapi_url=None)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_origins),
        allow_methods=list(ServerDefaults.CORS_METHODS),
        allow_headers=["*"],
    )
    app.mount("/", StaticFiles(directory=str(output_dir), check_dir=False), name="static")
    return app


class _Server(uvicorn.Server):
    """uvicorn server that leaves signal handling to the rebuild coordinator."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        pass


class DevServer:
    """
    Local static server for the build output.

    Example:
        >>> server = DevServer(output_dir, port=3000)
        >>> await server.start()
        >>> ...
        >>> await server.stop()
    """

    def __init__(self, output_dir: Path, port: int = ServerDefaults.PORT, host: str = ServerDefaults.HOST):
        self.output_dir = Path(output_dir)
        self.port = port
        self.host = host
        config = uvicorn.Config(
            create_app(self.output_dir),
            host=host,
            port=port,
            log_level="warning",
            lifespan="off",
        )
        self._server = _Server(config)
        self._socket: Optional[socket.socket] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    @property
    def started(self) -> bool:
        return self._task is not None and self._server.started

    async def start(self) -> None:
        """
        Bind the port and serve in the background.

        Returns once the server accepts connections.

        Raises:
            ServerError: If the port cannot be bound or the server fails to start
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        try:
            self._socket = socket.create_server((self.host, self.port))
        except OSError as e:
            raise ServerError(f"Cannot serve on {self.host}:{self.port}: {e.strerror or e}") from e
        self.port = self._socket.getsockname()[1]

        self._task = asyncio.create_task(self._serve())
        while not self.started:
            if self._task.done():
                task, self._task = self._task, None
                self._close_socket()
                raise ServerError(f"Server on {self.url} failed to start") from task.exception()
            await asyncio.sleep(0.01)
        logger.info("Serving build output", url=self.url, directory=str(self.output_dir))

    async def _serve(self) -> None:
        try:
            await self._server.serve(sockets=[self._socket])
        except SystemExit as e:
            # uvicorn exits the process when startup fails
            raise ServerError(f"Server on {self.url} exited with status {e.code}") from e

    async def stop(self) -> None:
        """Stop accepting connections and let in-flight responses finish."""
        if self._task is None:
            return
        self._server.should_exit = True
        try:
            await self._task
        finally:
            self._task = None
            self._close_socket()
        logger.info("Server stopped", url=self.url)

    def _close_socket(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None
