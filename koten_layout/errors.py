class KotenLayoutError(Exception):
    """Base class for errors raised by koten_layout."""


class InvalidInput(KotenLayoutError, ValueError):
    """Image rejected before tensor construction (bad shape or empty side)."""


class ShapeMismatch(KotenLayoutError, ValueError):
    """Model output does not follow the (1, 4 + C, A) layout."""
