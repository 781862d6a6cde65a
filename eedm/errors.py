"""Exceptions raised by eedm."""


class ArgumentError(ValueError):
    """Raised when an argument has the wrong type, shape or length.

    Data-dependent undefined results (zero variance, too few neighbours,
    lags running past the table boundary) are never reported this way:
    they are carried through as NaN.
    """
