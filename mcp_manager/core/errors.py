"""Error taxonomy for mcp-manager operations."""


class McpManagerError(Exception):
    """Base class for all mcp-manager errors."""


class NotFoundError(McpManagerError):
    """A referenced provider, agent or installation does not exist."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} '{identifier}' not found")


class ConflictError(McpManagerError):
    """The record being created already exists.

    Callers normally treat this as "already in the desired state".
    """

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} '{identifier}' already exists")


class SourceUnavailableError(McpManagerError):
    """A remote registry could not be reached or returned garbage."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Registry '{source}' unavailable: {reason}")


class MalformedInputError(McpManagerError):
    """An agent file or configuration map could not be understood.

    Can contain multiple error messages, like ConfigError.
    """

    def __init__(self, errors: str | list[str]):
        if isinstance(errors, str):
            self.errors = [errors]
        else:
            self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class WriteFailureError(McpManagerError):
    """A file or store write failed irrecoverably."""

    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"Failed to write {target}: {reason}")
