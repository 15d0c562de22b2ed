# rocviz/errors.py


class RocError(ValueError):
    """Base class for everything rocviz raises on bad input."""


class ShapeError(RocError):
    """Input does not have the shape of an ROC curve (or collection).

    Raised by the canonicalizer, the JSON/CSV parsers and the exporters.
    The message names the offending field path and row/index.
    """
