import codecs
import logging

logger = logging.getLogger(__name__)

_UTF8 = "utf-8"


def _resolve_codec(declared_charset: str | None) -> str:
    name = (declared_charset or "").strip()
    if not name:
        return _UTF8
    try:
        info = codecs.lookup(name)
    except LookupError:
        info = None
    # Binary transforms (base64, hex, zlib, rot13) are not character sets.
    if info is None or not getattr(info, "_is_text_encoding", True):
        logger.warning(
            "Unknown charset declared; decoding as UTF-8",
            extra={"event": "charset_unknown", "charset": name},
        )
        return _UTF8
    return info.name


def normalize_charset(raw: bytes | str | None, declared_charset: str | None = None) -> str:
    """Decode ``raw`` from ``declared_charset`` into text, dropping invalid sequences.

    ``str`` input is treated as already decoded; only lone surrogates left over
    from a ``surrogateescape`` decode are removed. Never raises on bad bytes.
    """
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw.encode(_UTF8, errors="ignore").decode(_UTF8)

    data = bytes(raw)
    codec = _resolve_codec(declared_charset)
    try:
        return data.decode(codec, errors="ignore")
    except (LookupError, UnicodeError) as exc:
        # Some codecs (idna) reject the "ignore" error handler outright.
        logger.warning(
            "Charset decode failed; decoding as UTF-8",
            extra={"event": "charset_decode_failed", "charset": codec, "error": repr(exc)},
        )
        return data.decode(_UTF8, errors="ignore")
