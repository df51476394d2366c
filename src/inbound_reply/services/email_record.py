from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from inbound_reply.config import Settings
from inbound_reply.services.address_parser import AddressParts, format_address, parse_address
from inbound_reply.services.charset import normalize_charset
from inbound_reply.services.email_parser import assemble_body
from inbound_reply.services.processor import EmailProcessor, load_processor

logger = logging.getLogger(__name__)


def parse_charsets(value: Any) -> dict[str, str]:
    """Accept a mapping or its JSON serialization; anything else is an empty map."""
    if value is None or value == "" or value == b"":
        return {}
    if isinstance(value, Mapping):
        return {str(k): str(v) for k, v in value.items() if v}
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError):
        decoded = None
    if not isinstance(decoded, dict):
        logger.warning(
            "Ignoring charsets field that is not a JSON object",
            extra={"event": "charsets_invalid"},
        )
        return {}
    return {str(k): str(v) for k, v in decoded.items() if v}


class EmailRecord:
    """One inbound email, normalized once by :meth:`process`."""

    def __init__(
        self,
        params: Mapping[str, Any],
        settings: Settings | None = None,
        processor: EmailProcessor | None = None,
    ) -> None:
        if settings is None:
            # Defaults only; the environment is read by the service entry points.
            settings = Settings.model_construct()
        self.params = dict(params)
        self.settings = settings
        self.processor = processor if processor is not None else load_processor(settings.processor)

        self.charsets: dict[str, str] = {}
        self.body: str | None = None
        self.subject: str = ""
        self.to_parts: AddressParts | None = None
        self.from_parts: AddressParts | None = None
        self._processed = False

    def _field(self, name: str) -> str:
        return normalize_charset(self.params.get(name), self.charsets.get(name))

    def process(self) -> "EmailRecord":
        if self._processed:
            return self

        charsets = parse_charsets(self.params.get("charsets"))
        self.charsets = charsets
        body = assemble_body(self.params, charsets, self.settings.custom_delimiter)

        self.body = body
        self.subject = self._field("subject")
        self.to_parts = parse_address(self._field("to"))
        self.from_parts = parse_address(self._field("from"))
        self._processed = True

        logger.info(
            "Processed inbound email",
            extra={
                "event": "email_processed",
                "to": self.to_parts.email,
                "from": self.from_parts.email,
                "body_chars": len(body),
            },
        )
        self.processor.handle(self)
        return self

    @property
    def to(self) -> Any:
        if self.to_parts is None:
            return None
        return format_address(self.to_parts, self.settings.to_format)

    @property
    def from_(self) -> Any:
        if self.from_parts is None:
            return None
        return format_address(self.from_parts, self.settings.from_format)

    def to_dict(self) -> dict[str, Any]:
        def _render(value: Any) -> Any:
            return value.as_dict() if isinstance(value, AddressParts) else value

        return {
            "to": _render(self.to),
            "from": _render(self.from_),
            "subject": self.subject,
            "body": self.body,
        }
