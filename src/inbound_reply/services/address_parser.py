import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

BRACKETED_RE = re.compile(r"<([^<>]*)>")


class AddressFormat(str, Enum):
    FULL = "full"
    EMAIL = "email"
    TOKEN = "token"
    HASH = "hash"


@dataclass(frozen=True)
class AddressParts:
    token: str
    host: str
    email: str
    full: str
    display_name: str = ""

    def as_dict(self) -> dict[str, str]:
        return {"token": self.token, "host": self.host, "email": self.email, "full": self.full}


def _select_address(value: str) -> tuple[str, str]:
    """Return ``(display_name, address)``; the last bracketed address wins."""
    matches = list(BRACKETED_RE.finditer(value))
    if matches:
        last = matches[-1]
        return value[: last.start()], last.group(1)
    if "<" in value:
        head, _, tail = value.rpartition("<")
        return head, tail
    return "", value


def parse_address(raw: str | None) -> AddressParts:
    full = (raw or "").strip()
    display_name, address = _select_address(full)
    address = address.strip()
    display_name = display_name.strip().strip('"').strip()

    token, at, host = address.rpartition("@")
    if not at:
        logger.debug(
            "Address has no host part; keeping it as a token",
            extra={"event": "address_malformed", "address": full},
        )
        return AddressParts(token=address, host="", email=address, full=full, display_name=display_name)

    return AddressParts(
        token=token,
        host=host,
        email=f"{token}@{host}",
        full=full,
        display_name=display_name,
    )


def format_address(parts: AddressParts, address_format: AddressFormat | str) -> Any:
    address_format = AddressFormat(address_format)
    if address_format is AddressFormat.HASH:
        return parts
    if address_format is AddressFormat.FULL:
        return parts.full
    if address_format is AddressFormat.EMAIL:
        return parts.email
    return parts.token
