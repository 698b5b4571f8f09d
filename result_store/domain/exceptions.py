"""Result store exception hierarchy

Propagation policy:
- StoreConnectionError / SchemaError abort startup (raised from ResultStore.open)
- PersistenceError / SpillError are logged and contained inside the store
- NotFoundError never leaves a lookup; lookups return None instead
- StoreClosedError is raised for any call on a store that is not ready
"""


class StoreError(Exception):
    """Base class for all result store failures

    Usage:
    - callers that only need to know "the store failed" catch StoreError
    - ResultReaper.run_once catches it so a failed firing never stops the
      schedule

    Example:
        try:
            store.open()
        except StoreConnectionError:
            logger.critical("result database unreachable")
            raise
    """


class StoreConnectionError(StoreError):
    """A connection to the backing store could not be acquired."""


class SchemaError(StoreError):
    """The results table could not be created."""


class PersistenceError(StoreError):
    """An individual insert, update or delete failed."""

    def __init__(self, operation: str, record_id: str | None, cause: Exception | None = None):
        self.operation = operation
        self.record_id = record_id
        message = f"{operation} failed for record {record_id}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class SpillError(StoreError):
    """Writing or reading a spilled payload file failed."""


class NotFoundError(StoreError):
    """No record exists for the requested id."""

    def __init__(self, record_id: str | None):
        self.record_id = record_id
        super().__init__(f"Result record not found: {record_id}")


class StoreClosedError(StoreError):
    """The store is not in the READY state."""

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"Result store is not ready (state: {state})")
