class TenureError(Exception):
    """Base exception for the Tenure discover backend."""

    pass


class PersistenceError(TenureError):
    """Raised when the storage backend is unavailable or a value cannot be (de)serialized."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Persistence failure for key '{key}': {reason}")


class ContentProviderError(TenureError):
    """Raised by content provider adapters when a question, scoring or detail fetch fails."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Content provider '{operation}' failed: {reason}")
