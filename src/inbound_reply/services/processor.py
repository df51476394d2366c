from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from inbound_reply.services.email_record import EmailRecord

logger = logging.getLogger(__name__)


class ProcessorLoadError(RuntimeError):
    pass


@runtime_checkable
class EmailProcessor(Protocol):
    def handle(self, record: "EmailRecord") -> Any: ...


class NoopProcessor:
    def handle(self, record: "EmailRecord") -> "EmailRecord":
        return record


def load_processor(path: str) -> EmailProcessor:
    """Import ``package.module:attribute`` and return an object with ``handle``.

    Classes are instantiated without arguments. An empty path gives the no-op
    processor.
    """
    if not path or not path.strip():
        return NoopProcessor()

    module_name, _, attribute = path.strip().partition(":")
    if not attribute:
        module_name, _, attribute = module_name.rpartition(".")
    if not module_name or not attribute:
        raise ProcessorLoadError(f"invalid processor path '{path}'; expected 'package.module:attribute'")

    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attribute)
    except (ImportError, AttributeError) as exc:
        raise ProcessorLoadError(f"cannot import processor '{path}'") from exc

    if isinstance(target, type):
        target = target()
    if not isinstance(target, EmailProcessor):
        raise ProcessorLoadError(f"processor '{path}' does not define handle(record)")

    logger.info("Loaded email processor", extra={"event": "processor_loaded", "processor": path})
    return target
