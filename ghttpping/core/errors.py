class InvalidInputError(ValueError):
    """Rejected before any network or process I/O."""


class CommandError(RuntimeError):
    """An OS inventory command could not be run or exited non-zero."""

    def __init__(self, command: str, detail: str):
        super().__init__(f"{command}: {detail}")
        self.command = command
        self.detail = detail


class EgressError(Exception):
    pass


class EgressTransportError(EgressError):
    """The echo endpoint could not be reached with or without TLS verification."""


class EgressPayloadError(EgressError):
    """The echo endpoint answered, but not with the expected JSON object."""
