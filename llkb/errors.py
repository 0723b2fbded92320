"""Errors raised at the LLKB engine boundary."""


class LLKBValidationError(ValueError):
    """A caller violated an input contract (bad threshold, malformed record).

    Raised where input enters the engine, never from inside scoring. "Nothing
    found" outcomes are results (NONE, SKIP, empty lists), not errors.
    """


def check_threshold(name: str, value: float) -> float:
    """Reject thresholds outside [0, 1]."""
    if not 0.0 <= value <= 1.0:
        raise LLKBValidationError(f"{name} must be within [0, 1], got {value}")
    return value
