"""
Easing Core - Functional Core

Pure functions mapping linear transition progress to eased progress.
No side effects.
"""

from typing import Callable, Dict, Union

from slide_types import EasingKind


def clamp01(value: float) -> float:
    """Clamp a value to [0.0, 1.0]"""
    return max(0.0, min(1.0, value))


def ease_linear(p: float) -> float:
    return p


def ease_in_cubic(p: float) -> float:
    return p * p * p


def ease_out_cubic(p: float) -> float:
    return 1.0 - (1.0 - p) ** 3


def ease_in_out_cubic(p: float) -> float:
    """Cubic ease-in for the first half, cubic ease-out for the second

    Both branches evaluate to 0.5 at p=0.5.
    """
    if p < 0.5:
        return 4.0 * p * p * p
    return 1.0 - (-2.0 * p + 2.0) ** 3 / 2.0


EASING_FUNCTIONS: Dict[EasingKind, Callable[[float], float]] = {
    EasingKind.LINEAR: ease_linear,
    EasingKind.EASE_IN: ease_in_cubic,
    EasingKind.EASE_OUT: ease_out_cubic,
    EasingKind.EASE_IN_OUT: ease_in_out_cubic,
}

assert set(EASING_FUNCTIONS) == set(EasingKind), "every EasingKind needs an easing function"


def apply_easing(progress: float, easing: Union[EasingKind, str]) -> float:
    """Apply an easing curve to normalized progress

    Input outside [0, 1] saturates rather than failing.

    Args:
        progress: Linear progress, nominally 0.0 to 1.0
        easing: EasingKind member or its wire name ("ease-in-out", ...).
            Unrecognized names fall back to linear.

    Returns:
        Eased progress in [0.0, 1.0]

    Examples:
        >>> apply_easing(0.5, EasingKind.EASE_IN)
        0.125
        >>> apply_easing(2.0, "linear")
        1.0
    """
    if not isinstance(easing, EasingKind):
        try:
            easing = EasingKind(easing)
        except ValueError:
            easing = EasingKind.LINEAR
    return EASING_FUNCTIONS[easing](clamp01(progress))
