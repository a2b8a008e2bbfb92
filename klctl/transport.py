from __future__ import annotations

import asyncio
import logging
from socket import gaierror
from typing import Optional

from .exceptions import TransportError

logger = logging.getLogger(__name__)


class BaseTransport:
    """Minimal asynchronous line interface to the hub."""

    async def __aenter__(self) -> "BaseTransport":  # pragma: no cover
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # pragma: no cover
        await self.close()

    async def open(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def close(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def write_line(self, data: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def readline(self) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    def closed(self) -> bool:  # pragma: no cover - interface
        """Returns True if the transport is closed, False otherwise."""
        raise NotImplementedError


class TCPTransport(BaseTransport):
    """Asynchronous TCP transport using asyncio streams."""

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    async def open(self) -> None:
        try:
            self._reader, self._writer = await asyncio.open_connection(self.host, self.port)
            logger.info("TCPTransport connected to %s:%s", self.host, self.port)
        except (OSError, gaierror) as exc:
            raise TransportError(f"Unable to connect to hub at {self.host}:{self.port}: {exc}") from exc

    async def close(self) -> None:
        if self._writer:
            writer = self._writer
            self._writer = None
            self._reader = None
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as exc:
                logger.debug("TCPTransport close: %s", exc)
            logger.info("TCPTransport closed.")

    def closed(self) -> bool:
        return self._writer is None

    async def write_line(self, data: str) -> None:
        if not self._writer:
            raise TransportError("TCPTransport is not open")
        payload = (data + "\n").encode("utf-8")
        logger.debug("TCPTransport >> %s", data)
        try:
            self._writer.write(payload)
            await self._writer.drain()
        except OSError as exc:
            raise TransportError(f"Write to hub failed: {exc}") from exc

    async def readline(self) -> str:
        if not self._reader:
            raise TransportError("TCPTransport is not open")
        try:
            raw = await self._reader.readline()
        except OSError as exc:
            raise TransportError(f"Read from hub failed: {exc}") from exc
        except ValueError as exc:
            # StreamReader limit overrun
            raise TransportError(f"Reply line too long: {exc}") from exc
        if not raw:
            raise TransportError("Remote closed connection")
        line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
        logger.debug("TCPTransport << %s", line)
        return line
