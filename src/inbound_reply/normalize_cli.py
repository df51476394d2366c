from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from inbound_reply.config import get_settings
from inbound_reply.services.email_parser import EmailBodyNotFound
from inbound_reply.services.email_record import EmailRecord
from inbound_reply.services.logging_config import configure_logging


def _read_payload(source: str) -> dict[str, Any]:
    raw = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise SystemExit("payload must be a JSON object")
    return payload


def _run(source: str, to_format: str | None) -> tuple[int, dict[str, Any]]:
    settings = get_settings()
    configure_logging(settings.log_level)
    if to_format:
        settings = settings.model_copy(update={"to_format": to_format})

    try:
        record = EmailRecord(_read_payload(source), settings).process()
    except EmailBodyNotFound as exc:
        return 2, {"status": "error", "error": str(exc)}
    return 0, {"status": "ok", "email": record.to_dict()}


def main() -> int:
    parser = argparse.ArgumentParser(description="Normalize an inbound email payload and print the reply body.")
    parser.add_argument("payload", help="Path to a JSON payload with to/from/subject/text/html/charsets, or '-' for stdin.")
    parser.add_argument(
        "--to-format",
        choices=["full", "email", "token", "hash"],
        default=None,
        help="Override the configured representation of the 'to' address.",
    )
    args = parser.parse_args()

    code, payload = _run(args.payload, args.to_format)
    print(json.dumps(payload, indent=2, sort_keys=True))
    return code


if __name__ == "__main__":
    raise SystemExit(main())
