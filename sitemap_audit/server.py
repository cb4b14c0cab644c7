# File: sitemap_audit/server.py
"""sitemap_audit.server: lifecycle of the site under audit.

The orchestrator only talks to :class:`TargetServer`. Tests use
:class:`ExternalServer` with an in-process aiohttp app; the CLI spawns the
real site through :class:`SubprocessServer`.
"""
from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Mapping, Optional, Protocol, Sequence
from urllib.parse import urlsplit

from sitemap_audit.errors import BuildOutputMissingError, ServerStartError
from sitemap_audit.logger import logger

__all__ = ["TargetServer", "ExternalServer", "SubprocessServer"]


class TargetServer(Protocol):
    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    def kill(self) -> None: ...

    @property
    def returncode(self) -> Optional[int]: ...


class ExternalServer:
    """A server someone else started; start/stop do nothing."""

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None

    def kill(self) -> None:
        return None

    @property
    def returncode(self) -> Optional[int]:
        return None


class SubprocessServer:
    """Spawns *command* as a child process and tears it down afterwards."""

    STOP_TIMEOUT = 10.0

    def __init__(
        self,
        command: Sequence[str],
        *,
        base_url: Optional[str] = None,
        build_dir: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        if not command:
            raise ValueError("server command must not be empty")
        self.command = list(command)
        self.base_url = base_url
        self.build_dir = build_dir
        self.env = dict(os.environ if env is None else env)
        self._proc: Optional[asyncio.subprocess.Process] = None
        self._pumps: list[asyncio.Task[None]] = []

    @property
    def returncode(self) -> Optional[int]:
        return None if self._proc is None else self._proc.returncode

    async def start(self) -> None:
        if self.build_dir is not None and not Path(self.build_dir).exists():
            raise BuildOutputMissingError(
                f"Missing {self.build_dir} build output. Run the site build first."
            )
        env = dict(self.env)
        port = urlsplit(self.base_url).port if self.base_url else None
        if port:
            env["PORT"] = str(port)
        logger.info("Starting target server: %s", " ".join(self.command))
        try:
            self._proc = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as exc:
            raise ServerStartError(
                f"Cannot start target server {self.command[0]!r}: {exc.strerror or exc}"
            ) from exc
        for name, stream in (("stdout", self._proc.stdout), ("stderr", self._proc.stderr)):
            if stream is not None:
                self._pumps.append(asyncio.create_task(self._pump(name, stream)))

    async def _pump(self, name: str, stream: asyncio.StreamReader) -> None:
        while line := await stream.readline():
            logger.debug("server %s: %s", name, line.decode("utf-8", "replace").rstrip())

    def kill(self) -> None:
        if self._proc is not None and self._proc.returncode is None:
            self._proc.kill()

    async def stop(self) -> None:
        proc = self._proc
        if proc is None:
            return
        if proc.returncode is None:
            proc.terminate()
            try:
                await asyncio.wait_for(proc.wait(), timeout=self.STOP_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("Target server ignored SIGTERM, killing pid %s", proc.pid)
                proc.kill()
                await proc.wait()
        for pump in self._pumps:
            pump.cancel()
        await asyncio.gather(*self._pumps, return_exceptions=True)
        self._pumps.clear()
        logger.info("Target server stopped (exit code %s)", proc.returncode)
