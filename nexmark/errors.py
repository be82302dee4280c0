"""Exception taxonomy for the Nexmark generator."""


class NexmarkError(Exception):
    """Base class for generator errors."""


class ConfigError(NexmarkError, ValueError):
    """Invalid generation parameters. Raised at construction, never mid-stream."""


class GenerationError(NexmarkError, ArithmeticError):
    """An id or timestamp left the representable range while generating an event."""

    def __init__(self, message, index=None):
        super().__init__(message)
        self.index = index
