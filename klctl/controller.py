import asyncio
import logging
from typing import List, Optional

from .commands import Command, UpdateField
from .constants import SENTINEL
from .devices import DeviceType
from .exceptions import ProtocolRejection, ReplyTimeout, TransportError
from .parser import ReplyParser, ReplySchema
from .status import describe
from .transport import BaseTransport
from .types import ProtocolVersion, Reply


class HubController:
    """Runs one request session against the hub over a line transport.

    The session always ends by sending the quit line and closing the
    transport, whatever happened before.
    """

    def __init__(
        self,
        transport: BaseTransport,
        parser: Optional[ReplyParser] = None,
        version: Optional[ProtocolVersion] = None,
        read_timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.transport = transport
        self.parser = parser or ReplyParser()
        self.version = version or ProtocolVersion.parse()
        self.read_timeout = read_timeout
        self.logger = logger or logging.getLogger(__name__)
        self._closed = False

    async def __aenter__(self) -> "HubController":
        await self.transport.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if not self.transport.closed():
                await self.transport.write_line(Command.QUIT().encode())
        except TransportError as exc:
            self.logger.debug("Could not send quit line: %s", exc)
        finally:
            await self.transport.close()

    async def _read_line(self) -> str:
        if not self.read_timeout:
            return await self.transport.readline()
        try:
            return await asyncio.wait_for(self.transport.readline(), timeout=self.read_timeout)
        except asyncio.TimeoutError:
            raise ReplyTimeout(f"No reply from hub within {self.read_timeout}s") from None

    async def write(self, command: Command) -> None:
        """Encode ``command`` and write it as exactly one line."""
        if self.transport.closed():
            raise TransportError("Transport is closed")
        await self.transport.write_line(command.encode(self.version))

    async def read_reply(self, command: Command, schema: Optional[ReplySchema] = None) -> Reply:
        line = await self._read_line()
        return self.parser.parse_reply(command, line, schema)

    async def send_command(self, command: Command, schema: Optional[ReplySchema] = None) -> Reply:
        """Send a command and return its decoded reply, successful or not.

        Raises:
            TransportError: If the connection fails or closes.
            MalformedReply: If the reply has no numeric status.
        """
        await self.write(command)
        return await self.read_reply(command, schema)

    @staticmethod
    def check(command: Command, reply: Reply) -> Reply:
        if not command.is_success(reply.status):
            raise ProtocolRejection(
                command.verb.value,
                reply.status,
                describe(command.verb.value, reply.status),
                reply,
            )
        return reply

    async def execute(self, command: Command) -> Reply:
        """Send a command and raise ProtocolRejection unless the hub reports success."""
        reply = await self.send_command(command)
        return self.check(command, reply)

    async def read_block(self, count: Optional[int] = None) -> List[str]:
        """Read the body following a LIST or STATUS header.

        With ``count`` exactly that many lines are read, otherwise lines are
        read up to the sentinel line.
        """
        lines: List[str] = []
        try:
            if count is not None:
                while len(lines) < count:
                    lines.append(await self._read_line())
                return lines
            while True:
                line = await self._read_line()
                if line.strip() == SENTINEL:
                    return lines
                lines.append(line)
        except ReplyTimeout:
            raise
        except TransportError as exc:
            expected = count if count is not None else "sentinel"
            raise TransportError(
                f"Reply body cut short after {len(lines)} lines (expected {expected}): {exc}"
            ) from exc

    async def toggle(self, name: str) -> Reply:
        return await self.execute(Command.TOGGLE(name))

    async def set(self, name: str, command: str, argument: Optional[str] = None) -> Reply:
        return await self.execute(Command.SET(name, command, argument))

    async def transmit(self, topic: str, message: str) -> Reply:
        return await self.execute(Command.TRANSMIT(topic, message))

    async def transmit_code(self, code: int, pulse: int) -> Reply:
        return await self.execute(Command.TRANSMIT_CODE(code, pulse))

    async def add(self, name: str, topic: str, dev_type: DeviceType, commands: Optional[str] = None) -> Reply:
        return await self.execute(Command.ADD(name, topic, dev_type, commands))

    async def delete(self, name: str) -> Reply:
        return await self.execute(Command.DELETE(name))

    async def update(self, field: UpdateField, name: str, value: Optional[str] = None) -> Reply:
        return await self.execute(Command.UPDATE(field, name, value))

    async def list_devices(self) -> List[str]:
        reply = await self.execute(Command.LIST())
        count = reply.get("count")
        self.logger.debug("LIST header announced %s devices", count if count is not None else "unknown")
        return await self.read_block(count)

    async def status(self, name: str) -> List[str]:
        await self.execute(Command.STATUS(name))
        return await self.read_block()
