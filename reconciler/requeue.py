# ============================================================================
# REQUEUE CONTROLLER
# ============================================================================
# STATUS: Reconciler - Pipeline stop handling
# PURPOSE: Turn a sub-reconciler stop signal into an event, a log line and
#          a scheduling decision
# CREATED: 11 OCT 2026
# ============================================================================
"""
Requeue Controller

A sub-reconciler returns None to let the pipeline continue, or one of
two signals to stop it:

- RetryableError: something failed; the pass is reported as an error
  and the manager retries the object with exponential backoff.
- PendingMessage: a precondition is not met yet; the pass ends cleanly
  and the object is re-queued after a short delay.

Every stop produces exactly one event and one log line.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from core.config import ReconcilerDefaults
from core.contracts import EventKind, ObjectKey, PassState, ResourceKind
from core.errors import ReconciliationError
from core.models import EventReason


# ============================================================================
# SIGNALS
# ============================================================================

@dataclass(frozen=True)
class RetryableError:
    """Stop the pipeline because of a recoverable error."""
    error: BaseException
    delay: Optional[float] = None

    def __str__(self) -> str:
        return str(self.error)


@dataclass(frozen=True)
class PendingMessage:
    """Stop the pipeline until a precondition is met."""
    message: str
    delay: Optional[float] = None

    def __str__(self) -> str:
        return self.message


RequeueSignal = Union[RetryableError, PendingMessage]


@dataclass(frozen=True)
class ReconcileResult:
    """What the manager should do after a pass that did not raise."""
    requeue_after: Optional[float] = None

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None


@dataclass(frozen=True)
class PassOutcome:
    """Where and why the step loop ended."""
    state: PassState
    step: Optional[str] = None
    signal: Optional[RequeueSignal] = None


def classify(signal: Optional[RequeueSignal]) -> PassState:
    """Map a step return value to the pass state it leads to."""
    if signal is None:
        return PassState.DONE
    if isinstance(signal, RetryableError):
        return PassState.STOPPED_ERROR
    if isinstance(signal, PendingMessage):
        return PassState.STOPPED_MESSAGE
    raise TypeError(f"Not a requeue signal: {signal!r}")


# ============================================================================
# PROCESSING
# ============================================================================

async def process_requeue(
    signal: RequeueSignal,
    step: str,
    kind: ResourceKind,
    key: ObjectKey,
    recorder,
    logger: Union[logging.Logger, logging.LoggerAdapter],
    defaults: ReconcilerDefaults,
) -> ReconcileResult:
    """
    Handle a pipeline stop.

    Args:
        signal: The signal the step returned
        step: Name of the step that stopped the pipeline
        kind: Kind of the reconciled object
        key: Key of the reconciled object
        recorder: EventRecorder for the stop event
        logger: Logger for the stop line
        defaults: Delay defaults and bounds

    Returns:
        ReconcileResult with requeue_after set (pending messages)

    Raises:
        ReconciliationError: for error signals, chained to the original error
    """
    if isinstance(signal, RetryableError):
        await recorder.record(
            kind,
            key,
            EventKind.WARNING,
            EventReason.RECONCILIATION_TERMINATED_EARLY.value,
            str(signal.error),
        )
        logger.error(f"Error in reconciliation step {step} for {kind.value} {key}: {signal.error}")
        raise ReconciliationError(step, str(key), signal.error) from signal.error

    if isinstance(signal, PendingMessage):
        await recorder.record(
            kind,
            key,
            EventKind.NORMAL,
            EventReason.RECONCILIATION_TERMINATED_EARLY.value,
            signal.message,
        )
        logger.info(
            f"Reconciliation terminated early at step {step} for {kind.value} {key}: "
            f"{signal.message}"
        )
        return ReconcileResult(requeue_after=defaults.clamp_delay(signal.delay))

    raise TypeError(f"Not a requeue signal: {signal!r}")


__all__ = [
    "RetryableError",
    "PendingMessage",
    "RequeueSignal",
    "ReconcileResult",
    "PassOutcome",
    "classify",
    "process_requeue",
]
