"""Error taxonomy shared by the domain and adapters."""


class MemecastError(Exception):
    """Base class for memecast errors."""


class ConfigurationError(MemecastError):
    """Missing credential or identifier. Fatal at startup or registration."""


class ExternalCallFailure(MemecastError):
    """A chat platform or generation service call failed."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}" if detail else f"{operation} failed")


class EmptyInput(MemecastError):
    """The user supplied no prompt text."""


class NoCandidateFound(MemecastError):
    """The engagement scan found nothing to post about."""
