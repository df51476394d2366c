import logging
import re
from collections.abc import Mapping
from typing import Any, Callable

from inbound_reply.config import DEFAULT_REPLY_DELIMITER
from inbound_reply.services.charset import normalize_charset
from inbound_reply.services.html_reducer import reduce_html

logger = logging.getLogger(__name__)

LineMatcher = Callable[[list[str], int], bool]

CLIENT_SIGNATURES = (
    "Sent from my iPhone",
    "Sent from my iPad",
    "Sent from my Android",
    "Sent from my BlackBerry",
    "Sent from Mail for Windows",
    "Get Outlook for iOS",
    "Get Outlook for Android",
)

_LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")
_REPLY_MARKER_RE = re.compile(r"^\s*(?:>\s*)?" + re.escape(DEFAULT_REPLY_DELIMITER))
# Date and name are matched loosely; nothing here is validated as a date.
_ON_WROTE_RE = re.compile(r"^\s*(?:>\s*)?On\s.+\swrote:\s*$")
_INLINE_ON_WROTE_RE = re.compile(r"\s*\bOn\s.+?\swrote:\s*$")
_ORIGINAL_MESSAGE_RE = re.compile(r"^-{2,}\s*Original Message\s*-{2,}$")
_SIGNATURE_RE = re.compile(r"^\s*--\s*$")


class EmailBodyNotFound(ValueError):
    def __init__(self) -> None:
        super().__init__("email body not found: neither 'text' nor 'html' was supplied")


def _matches_reply_marker(lines: list[str], index: int) -> bool:
    return bool(_REPLY_MARKER_RE.match(lines[index]))


def _matches_on_wrote(lines: list[str], index: int) -> bool:
    line = lines[index]
    if _ON_WROTE_RE.match(line):
        return True
    # "On <date> <name>" wrapped before "<address> wrote:".
    if index + 1 < len(lines) and lines[index + 1].lstrip().startswith("<"):
        joined = f"{line.rstrip()} {lines[index + 1].strip()}"
        return bool(_ON_WROTE_RE.match(joined))
    return False


def _matches_original_message(lines: list[str], index: int) -> bool:
    return bool(_ORIGINAL_MESSAGE_RE.match(lines[index].strip()))


def _matches_client_signature(lines: list[str], index: int) -> bool:
    return lines[index].strip() in CLIENT_SIGNATURES


def _matches_signature_delimiter(lines: list[str], index: int) -> bool:
    return bool(_SIGNATURE_RE.match(lines[index]))


CUTOFF_MATCHERS: list[tuple[LineMatcher, str]] = [
    (_matches_reply_marker, "reply marker"),
    (_matches_on_wrote, "on-date-wrote header"),
    (_matches_original_message, "original message banner"),
    (_matches_client_signature, "client signature"),
    (_matches_signature_delimiter, "signature delimiter"),
]


def _active_matchers(custom_delimiter: str | None) -> list[tuple[LineMatcher, str]]:
    if not custom_delimiter:
        return list(CUTOFF_MATCHERS)

    delimiter = custom_delimiter.strip()

    def _matches_custom_delimiter(lines: list[str], index: int) -> bool:
        return lines[index].strip() == delimiter

    # A configured delimiter replaces the default reply marker.
    rest = [entry for entry in CUTOFF_MATCHERS if entry[0] is not _matches_reply_marker]
    return [(_matches_custom_delimiter, "custom delimiter"), *rest]


def _first_match(lines: list[str], custom_delimiter: str | None) -> tuple[int, str] | None:
    matchers = _active_matchers(custom_delimiter)
    for index in range(len(lines)):
        for matcher, description in matchers:
            if matcher(lines, index):
                return index, description
    return None


def find_cutoff(lines: list[str], custom_delimiter: str | None = None) -> int | None:
    match = _first_match(lines, custom_delimiter)
    return match[0] if match else None


def describe_cutoff(lines: list[str], custom_delimiter: str | None = None) -> str | None:
    match = _first_match(lines, custom_delimiter)
    return match[1] if match else None


def split_inline_marker(lines: list[str], marker: str = DEFAULT_REPLY_DELIMITER) -> list[str]:
    """Move a reply marker found mid-line onto its own line.

    An ``On ... wrote:`` fragment directly in front of the marker is moved onto
    its own line as well, so the cutoff lands on the reply text boundary.
    """
    result: list[str] = []
    for line in lines:
        position = line.find(marker)
        head = line[:position] if position > 0 else ""
        if head.strip() in ("", ">"):
            result.append(line)
            continue
        header = _INLINE_ON_WROTE_RE.search(head)
        if header:
            result.append(head[: header.start()])
            result.append(header.group(0).strip())
        else:
            result.append(head.rstrip())
        result.append(line[position:])
    return result


def extract_reply_text(raw_text: str, custom_delimiter: str | None = None) -> str:
    if not raw_text:
        return ""

    lines = _LINE_SPLIT_RE.split(raw_text)
    if not custom_delimiter:
        lines = split_inline_marker(lines)

    match = _first_match(lines, custom_delimiter)
    if match:
        index, description = match
        logger.debug(
            "Cut reply body at quoted content",
            extra={"event": "reply_cutoff", "line": index, "matcher": description},
        )
        lines = lines[:index]

    return "\n".join(lines).rstrip()


def assemble_body(
    raw_input: Mapping[str, Any],
    charset_map: Mapping[str, str] | None = None,
    custom_delimiter: str | None = None,
) -> str:
    charsets = charset_map or {}
    text = raw_input.get("text")
    html = raw_input.get("html")

    if text is not None and text.strip():
        source = "text"
    elif html is not None:
        source = "html"
    elif text is not None:
        source = "text"
    else:
        raise EmailBodyNotFound()

    decoded = normalize_charset(raw_input[source], charsets.get(source))
    if source == "html":
        decoded = reduce_html(decoded, custom_delimiter or DEFAULT_REPLY_DELIMITER)

    return extract_reply_text(decoded, custom_delimiter)
