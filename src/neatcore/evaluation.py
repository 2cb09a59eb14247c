"""
Outcomes shared by the evaluators.

An evaluator either returns a value or raises one of two kinds of
:class:`EvaluationError`:

- :class:`UserEvaluationError`: a meaningful runtime outcome of the program,
  such as evaluating ``error`` or running out of budget.
- :class:`InternalEvaluationError`: the machine reached a state that a
  well-typed program can never reach.
"""

from typing import Final

DEFAULT_STEP_BUDGET: Final = 100_000
"""Machine steps allowed per evaluation before giving up with a user error."""


class EvaluationError(Exception):
    def __init__(self, message: str, cause: object) -> None:
        super().__init__(message)
        self.cause = cause
        """The term or machine value the error was raised at."""


class UserEvaluationError(EvaluationError):
    pass


class InternalEvaluationError(EvaluationError):
    pass
