class PaginationError(RuntimeError):
    """Base class for failures raised by the pagination engine."""


class RenderFailure(PaginationError):
    """
    The renderer could not produce a usable raster for a block or page group.

    `unit` identifies what was being rendered (a block label such as
    ``#3 <table>`` or ``page 2``) so the caller can report it.
    """

    def __init__(self, unit, reason):
        self.unit = unit
        self.reason = reason
        super().__init__(f"Render failed for {unit}: {reason}")


class StylesheetError(ValueError):
    """A custom stylesheet could not be loaded."""
