"""Entry point for hub reply decoding."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from ..commands import Command, Verb
from ..status import is_known
from ..types import Reply
from .base import decode_reply, tokenize
from .schemas import LIST_HEADER, SNIFF_CAPTURE, Field, ReplySchema


class ReplyParser:
    """Decodes reply lines and extracts the named fields each verb's reply carries."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger(__name__)
        self.header_schemas: Dict[Verb, ReplySchema] = {
            Verb.LIST: LIST_HEADER,
        }

    def parse_line(self, line: str) -> Reply:
        reply = decode_reply(line)
        self.logger.debug("ReplyParser: status=%s tokens=%s", reply.status, reply.tokens)
        if not is_known(reply.status):
            self.logger.warning("Hub answered with unrecognized status %s: %r", reply.status, reply.line)
        return reply

    def parse_reply(self, command: Command, line: str, schema: Optional[ReplySchema] = None) -> Reply:
        """Decode a reply to ``command``.

        Named fields are only extracted from successful replies, since error
        replies carry free text instead.
        """
        reply = self.parse_line(line)
        schema = schema or self.header_schemas.get(command.verb)
        if schema is None or not command.is_success(reply.status):
            return reply
        return schema.apply(reply)


__all__ = [
    "Field",
    "ReplyParser",
    "ReplySchema",
    "LIST_HEADER",
    "SNIFF_CAPTURE",
    "decode_reply",
    "tokenize",
]
