"""Exception types raised by the engine."""


class EngineError(Exception):
    """Base class for engine errors."""


class InvalidBoardError(EngineError, ValueError):
    """The board snapshot is malformed or cannot arise from legal play."""
