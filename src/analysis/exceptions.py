"""Custom exceptions for content analysis."""


class AnalysisError(Exception):
    """Base exception for analysis errors."""


class ModelInvocationError(AnalysisError):
    """A single model call failed in a way the next model may not.

    Covers provider errors, timeouts, throttling and unusable replies.
    """


class OutputBudgetExceededError(ModelInvocationError):
    """Raised when the model stopped because it ran out of output tokens."""


class AllModelsExhaustedError(AnalysisError):
    """Raised when every configured model was over quota or failed."""

    def __init__(self, failures: dict[str, str]) -> None:
        """Initialise AllModelsExhaustedError.

        :param failures: Reason each model was not used, keyed by model name.
        """
        self.failures = failures
        details = "; ".join(f"{model}: {reason}" for model, reason in failures.items())
        super().__init__(f"All models exhausted or failed ({details or 'no models configured'})")


class InternalConsistencyError(AnalysisError):
    """Raised when merged results violate an invariant, such as a duplicate content ID."""
