class InvalidArgumentError(ValueError):
    """Raised when a public operation receives arguments it cannot work with."""


class ConvergenceWarning(UserWarning):
    """Iterative projection stopped at max_iter before reaching the tolerance."""
