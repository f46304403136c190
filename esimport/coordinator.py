"""
Rebuild Coordinator

Owns the long-lived bundler context and drives build cycles:

    idle -> building -> idle            one cycle per qualifying change
    any  -> shutting-down               on SIGINT/SIGTERM or when done

A cycle recomputes the entry points, rebuilds, and writes the import map.
Cycles never overlap: the next batch of file changes is consumed only after
the current rebuild has finished.
"""

import asyncio
import signal
import uuid
from enum import Enum
from functools import partial
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from watchfiles import Change, DefaultFilter, awatch

from .build import EntryPointResolution, compile_entry_points
from .bundler import Bundler, BundlerFactory, EsbuildContext, analyze_metafile
from .common import EsimportError
from .common.logger import clear_build_id, get_logger, set_build_id
from .config import BuildConfig
from .importmap import ImportMapBuilder
from .schema import ImportMap
from .server import DevServer

logger = get_logger(__name__)


class CoordinatorState(Enum):
    """Lifecycle state of a RebuildCoordinator."""

    IDLE = "idle"
    BUILDING = "building"
    SHUTTING_DOWN = "shutting-down"


def is_parent_dir(parent: Path, child: Path) -> bool:
    """
    Check whether child is parent or lies below it.

    Examples:
        >>> is_parent_dir(Path("/project"), Path("/project/src"))
        True

        >>> is_parent_dir(Path("/project/src"), Path("/project"))
        False
    """
    parent, child = Path(parent).resolve(), Path(child).resolve()
    return child == parent or parent in child.parents


class OutputDirFilter(DefaultFilter):
    """
    Watch filter ignoring the coordinator's own writes.

    Changes inside the output directory would otherwise retrigger a rebuild
    whenever the output directory lives inside the watched project.
    """

    def __init__(self, output_dir: Path, **kwargs):
        super().__init__(**kwargs)
        self.output_dir = Path(output_dir).resolve()

    def __call__(self, change: Change, path: str) -> bool:
        if is_parent_dir(self.output_dir, Path(path)):
            return False
        return super().__call__(change, path)


class RebuildCoordinator:
    """
    Drives build cycles for one esimport invocation.

    Example:
        >>> coordinator = RebuildCoordinator(BuildConfig.from_options("pkg", "dist"))
        >>> import_map = await coordinator.run()
    """

    def __init__(
        self,
        config: BuildConfig,
        bundler_factory: Optional[BundlerFactory] = None,
        console: Optional[Console] = None,
    ):
        """
        Args:
            config: Options of this invocation
            bundler_factory: Creates a bundler for a resolution, esbuild by default
            console: Console for the ``--verbose`` analysis
        """
        self.config = config
        self.bundler_factory = bundler_factory or partial(EsbuildContext, executable=config.esbuild)
        self.console = console or Console()
        self.state = CoordinatorState.IDLE
        self.import_map: Optional[ImportMap] = None
        self.builds = 0

        self._bundler: Optional[Bundler] = None
        self._resolution: Optional[EntryPointResolution] = None
        self._server: Optional[DevServer] = None
        self._signals: List[int] = []

    @property
    def project_root(self) -> Path:
        return self.config.package_dir

    @property
    def output_dir(self) -> Path:
        return self.config.output_dir

    async def _ensure_bundler(self, resolution: EntryPointResolution) -> Bundler:
        """Reuse the bundler context unless the entry points or externals changed."""
        if self._bundler is not None and resolution == self._resolution:
            return self._bundler
        if self._bundler is not None:
            logger.info("Entry points changed, recreating bundler context")
            await self._bundler.dispose()
        self._bundler = self.bundler_factory(self.project_root, self.output_dir, resolution)
        self._resolution = resolution
        return self._bundler

    async def build_once(self) -> ImportMap:
        """
        Run one full build cycle.

        Raises:
            EsimportError: If resolution, bundling or import map creation fails
        """
        if self.state is CoordinatorState.SHUTTING_DOWN:
            raise EsimportError("Coordinator is shutting down", code="SHUTTING_DOWN")

        self.state = CoordinatorState.BUILDING
        set_build_id(uuid.uuid4().hex[:8])
        try:
            resolution = await asyncio.to_thread(
                compile_entry_points, self.project_root, self.output_dir
            )
            builder = ImportMapBuilder(
                self.project_root,
                self.output_dir,
                resolution.entry_points,
                serve_port=self.config.serve_port,
                algorithm=self.config.digest_algorithm,
            )
            bundler = await self._ensure_bundler(resolution)
            result = await bundler.rebuild()
            logger.info(f"{len(result.inputs)} ES modules processed.")

            self.import_map = await builder.build(result.outputs)
            self.builds += 1
            if self.config.verbose:
                self.console.print(analyze_metafile(result, self.output_dir))
            return self.import_map
        finally:
            if self.state is CoordinatorState.BUILDING:
                self.state = CoordinatorState.IDLE
            clear_build_id()

    async def watch(self, stop_event: asyncio.Event) -> None:
        """
        Rebuild on every batch of project changes until stop_event is set.

        A failing cycle is reported and the watch continues with the next
        change.
        """
        watch_filter = OutputDirFilter(self.output_dir)
        logger.info("Watching for changes", directory=str(self.project_root))
        async for changes in awatch(
            self.project_root,
            watch_filter=watch_filter,
            stop_event=stop_event,
        ):
            logger.debug("Change detected", changes=len(changes))
            try:
                await self.build_once()
            except EsimportError as e:
                logger.error("Rebuild failed", error=e.to_dict())
                self.console.print(f"[bold red]✗[/bold red] {escape(e.message)}")

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> Optional[ImportMap]:
        """
        Build once, then keep serving and/or watching if configured.

        The coordinator is always shut down before returning.

        Args:
            stop_event: Cancellation token, set on SIGINT/SIGTERM when watching
        """
        stop_event = stop_event or asyncio.Event()
        try:
            await self.build_once()
            if not (self.config.watch or self.config.serving):
                return self.import_map

            self._install_signal_handlers(stop_event)
            if self.config.serving:
                self._server = DevServer(self.output_dir, port=self.config.serve_port)
                await self._server.start()

            if self.config.watch:
                await self.watch(stop_event)
            else:
                await stop_event.wait()
            return self.import_map
        finally:
            self._remove_signal_handlers()
            await self.shutdown()

    async def shutdown(self) -> None:
        """Stop the dev server and dispose the bundler. Safe to call twice."""
        if self.state is CoordinatorState.SHUTTING_DOWN:
            return
        self.state = CoordinatorState.SHUTTING_DOWN
        try:
            if self._server is not None:
                server, self._server = self._server, None
                await server.stop()
        finally:
            if self._bundler is not None:
                bundler, self._bundler = self._bundler, None
                await bundler.dispose()
        logger.debug("Coordinator shut down", builds=self.builds)

    def _install_signal_handlers(self, stop_event: asyncio.Event) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except (NotImplementedError, RuntimeError):
                # Windows event loops, KeyboardInterrupt still reaches run()
                continue
            self._signals.append(sig)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        while self._signals:
            loop.remove_signal_handler(self._signals.pop())
