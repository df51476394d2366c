import io
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote_plus, unquote_to_bytes

from python_multipart import parse_form
from python_multipart.exceptions import FormParserError

from inbound_reply.services.email_record import EmailRecord

if TYPE_CHECKING:
    from python_multipart.multipart import Field, File

    from inbound_reply.config import Settings
    from inbound_reply.services.processor import EmailProcessor

logger = logging.getLogger(__name__)

EMAIL_FIELDS = ("to", "from", "subject", "text", "html", "charsets")

MULTIPART = "multipart/form-data"
URLENCODED = "application/x-www-form-urlencoded"


class UnsupportedPayload(ValueError):
    pass


def parse_form_fields(content_type: str, raw_body: bytes) -> dict[str, bytes]:
    """Decode a webhook POST into raw byte values keyed by field name.

    Attachment parts are skipped. Values stay undecoded so the per-field
    charsets sent with the payload can be applied later.
    """
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type not in (MULTIPART, URLENCODED):
        raise UnsupportedPayload(f"unsupported content type '{media_type or 'missing'}'")

    fields: dict[str, bytes] = {}

    def on_field(field: "Field") -> None:
        name = (field.field_name or b"").decode("latin-1")
        value = field.value or b""
        if media_type == URLENCODED:
            # The querystring parser hands back percent-encoded bytes.
            name = unquote_plus(name, encoding="latin-1")
            value = unquote_to_bytes(value.replace(b"+", b" "))
        fields[name] = value

    def on_file(file: "File") -> None:
        file.close()

    headers = {"Content-Type": content_type, "Content-Length": str(len(raw_body))}
    try:
        parse_form(headers, io.BytesIO(raw_body), on_field, on_file)
    except (FormParserError, ValueError) as exc:
        raise UnsupportedPayload(f"malformed {media_type} body") from exc
    return fields


def handle_inbound_email(
    fields: dict[str, Any],
    settings: "Settings",
    processor: "EmailProcessor | None" = None,
) -> dict[str, Any]:
    params = {name: fields[name] for name in EMAIL_FIELDS if name in fields}
    record = EmailRecord(params, settings, processor).process()
    logger.info(
        "Inbound email handled",
        extra={
            "event": "inbound_email_handled",
            "to": record.to_parts.email if record.to_parts else "",
            "from": record.from_parts.email if record.from_parts else "",
        },
    )
    return {"status": "ok", "email": record.to_dict()}
