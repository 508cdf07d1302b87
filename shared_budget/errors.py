"""Exception types raised by the budget engine."""

from __future__ import annotations

from typing import Any, Optional


class BudgetEngineError(Exception):
    """Base class for all engine errors."""


class InvalidBudgetRowError(BudgetEngineError, ValueError):
    """A raw row could not be turned into a model object."""


class EmptySourcePeriodError(BudgetEngineError, ValueError):
    """The period to copy from holds no budget rows."""

    def __init__(self, source: Any):
        self.source = source
        super().__init__(f"No budgets found for {source} to copy from")


class PropagationError(BudgetEngineError):
    """A propagation step failed; the remaining steps were not run.

    The collaborator's own message is kept verbatim in ``str(error)`` and the
    original exception is available as ``__cause__``.
    """

    def __init__(self, step: Any, source: Any, target: Any, reason: Optional[BaseException] = None):
        self.step = step
        self.source = source
        self.target = target
        self.reason = reason
        step_name = getattr(step, 'value', step)
        message = f"Propagation {source} -> {target} failed at step '{step_name}'"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)
