"""
Attribution error taxonomy.

No-candidate and low-confidence outcomes are not errors: the attributor
returns None for both. Everything here is a store failure that aborts the
processing of a single outcome event.
"""

from typing import Optional


class AttributionError(Exception):
    """Base class for failures raised while attributing an outcome event."""
    pass


class StoreError(AttributionError):
    """The event store could not complete an operation."""
    pass


class StoreReadError(StoreError):
    """A query against the event store failed."""
    pass


class StoreWriteError(StoreError):
    """An append to the event store failed."""
    pass


class KnowledgeWriteError(StoreWriteError):
    """
    The knowledge entry write failed after its attribution record was
    written. The record is kept, so this is a partial success.
    """

    def __init__(self, message: str, attribution_id: str, kb_id: Optional[str] = None):
        super().__init__(message)
        self.attribution_id = attribution_id
        self.kb_id = kb_id
