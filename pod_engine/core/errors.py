class PODEngineError(Exception):
    """Base class for engine errors surfaced to callers."""


class NotFoundError(PODEngineError):
    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class ConfigurationError(PODEngineError):
    """Registry not initialized, or no validator resolves for a client."""


class ValidationExecutionError(PODEngineError):
    def __init__(self, section: str, cause: Exception):
        self.section = section
        self.cause = cause
        super().__init__(f"Section '{section}' failed: {cause}")


class InvalidTransitionError(PODEngineError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Invalid delivery status transition: {current} -> {target}")


class ConflictError(PODEngineError):
    """A write would replace a record or a manual override it must not touch."""
