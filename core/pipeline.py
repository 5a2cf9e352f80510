"""Shared consumer/processor/producer scaffolding and the result envelope."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Protocol, TypeVar

from .cli_errors import CLIError

LOG = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT")
ResultT = TypeVar("ResultT")
RequestT = TypeVar("RequestT")
T = TypeVar("T")
R = TypeVar("R")


@dataclass
class ResultEnvelope(Generic[ResultT]):
    """Success/failure result of one unit of work.

    Batch callers get one envelope per item and decide on fallbacks
    themselves instead of the leaf swallowing errors.
    """

    status: str
    payload: Optional[ResultT] = None
    diagnostics: Optional[dict[str, Any]] = None

    @classmethod
    def success(cls, payload: ResultT) -> "ResultEnvelope[ResultT]":
        return cls(status="success", payload=payload)

    @classmethod
    def failure(cls, error: BaseException, **extra: Any) -> "ResultEnvelope[ResultT]":
        diagnostics: Dict[str, Any] = {"message": str(error), "error": type(error).__name__}
        if isinstance(error, CLIError):
            diagnostics["code"] = int(error.code)
            if error.hint:
                diagnostics["hint"] = error.hint
        diagnostics.update(extra)
        return cls(status="error", diagnostics=diagnostics)

    def ok(self) -> bool:
        return self.status.lower() == "success"

    @property
    def message(self) -> Optional[str]:
        return (self.diagnostics or {}).get("message")

    def unwrap(self) -> ResultT:
        """Return payload or raise ValueError. Use after ok() check."""
        if self.payload is None:
            raise ValueError(self.message or "No payload")
        return self.payload

    def payload_or(self, default: ResultT) -> ResultT:
        """Payload on success, ``default`` otherwise (including empty payloads)."""
        if self.ok() and self.payload:
            return self.payload
        return default


class Processor(Protocol[PayloadT, ResultT]):
    def process(self, payload: PayloadT) -> ResultT:
        ...


class Producer(Protocol[ResultT]):
    def produce(self, result: ResultT) -> None:
        ...


class RequestConsumer(Generic[RequestT]):
    """Wraps a request object so command handlers read like the other pipelines."""

    def __init__(self, request: RequestT) -> None:
        self._request = request

    def consume(self) -> RequestT:  # pragma: no cover - trivial
        return self._request


class BaseProducer:
    """Base class for pipeline producers with common error handling.

    Subclasses override _produce_success(); failures print their message
    (and hint, when present) so every command reports errors the same way.
    """

    def produce(self, result: ResultEnvelope) -> None:
        if not result.ok():
            self.print_error(result)
            return
        if result.payload is not None:
            self._produce_success(result.payload, result.diagnostics)

    def _produce_success(self, payload: Any, diagnostics: Optional[Dict[str, Any]]) -> None:
        """Override in subclass to handle successful result output."""
        raise NotImplementedError("Subclass must implement _produce_success")

    @staticmethod
    def print_error(result: ResultEnvelope) -> bool:
        """Print error message if result failed. Returns True if error was printed."""
        if result.ok():
            return False
        diagnostics = result.diagnostics or {}
        if diagnostics.get("message"):
            print(f"Error: {diagnostics['message']}")
        if diagnostics.get("hint"):
            print(f"Hint: {diagnostics['hint']}")
        return True


class SafeProcessor(Generic[T, R]):
    """Base processor that turns exceptions into error envelopes.

    Subclasses implement _process_safe() without error handling boilerplate.
    """

    def process(self, payload: T) -> ResultEnvelope[R]:
        try:
            return ResultEnvelope.success(self._process_safe(payload))
        except CLIError as exc:
            return ResultEnvelope.failure(exc)
        except Exception as exc:
            LOG.debug("%s failed", type(self).__name__, exc_info=True)
            return ResultEnvelope.failure(exc, code=1)

    def _process_safe(self, payload: T) -> R:
        """Override to implement processing logic without error handling boilerplate."""
        raise NotImplementedError("Subclass must implement _process_safe")


def run_pipeline(request: Any, processor: Processor, producer: Producer) -> int:
    """Process a request, produce its output and return the CLI exit code.

    Returns 0 on success, else the ``code`` from diagnostics (default 1).
    """
    envelope = processor.process(RequestConsumer(request).consume())
    producer.produce(envelope)
    return 0 if envelope.ok() else int((envelope.diagnostics or {}).get("code", 1))
