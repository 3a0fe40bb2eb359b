"""Command boundary — run a command and report the outcome as a Result.

Domain code raises Protean exceptions; callers of ``execute`` never see
them. Validation problems become ``invalid_argument`` failures, state and
uniqueness violations become ``invalid_state`` failures.
"""

from enum import Enum
from typing import Any

import structlog
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain
from pydantic import BaseModel

from shared.locks import KeyedLocks, lock_keys_for

logger = structlog.get_logger(__name__)

_locks = KeyedLocks()


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = "invalid_argument"
    INVALID_STATE = "invalid_state"


class Result(BaseModel):
    ok: bool
    value: Any = None
    error: str | None = None
    kind: ErrorKind | None = None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, error: str) -> "Result":
        return cls(ok=False, kind=kind, error=error)


def _validation_message(exc: ValidationError) -> str:
    messages = getattr(exc, "messages", None)
    if not isinstance(messages, dict):
        return str(exc)

    parts = []
    for errors in messages.values():
        parts.extend(str(e) for e in (errors if isinstance(errors, (list, tuple)) else [errors]))
    return "; ".join(parts) or str(exc)


def _cancelled(cancel_event) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def execute(command, cancel_event=None) -> Result:
    """Process ``command`` synchronously in the active domain.

    ``cancel_event`` is any object with ``is_set()`` (e.g. ``threading.Event``).
    A set event aborts the command before anything is read or written.
    """
    name = type(command).__name__
    if _cancelled(cancel_event):
        logger.info("Command cancelled", command=name)
        return Result.failure(ErrorKind.INVALID_STATE, "Request cancelled")

    try:
        keys = set(lock_keys_for(command))
        while True:
            with _locks.hold(*keys):
                # Resolved keys can change before the locks are taken
                current = set(lock_keys_for(command))
                if current <= keys:
                    if _cancelled(cancel_event):
                        logger.info("Command cancelled", command=name)
                        return Result.failure(ErrorKind.INVALID_STATE, "Request cancelled")
                    value = current_domain.process(command, asynchronous=False)
                    break
            keys |= current
    except ValidationError as exc:
        result = Result.failure(ErrorKind.INVALID_ARGUMENT, _validation_message(exc))
    except ObjectNotFoundError as exc:
        result = Result.failure(ErrorKind.INVALID_ARGUMENT, str(exc))
    except InvalidOperationError as exc:
        result = Result.failure(ErrorKind.INVALID_STATE, str(exc))
    else:
        return Result.success(value)

    logger.warning("Command failed", command=name, kind=result.kind.value, error=result.error)
    return result
