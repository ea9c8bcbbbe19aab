from fastapi import Request

from .store import StoreClient, StoreError


def get_store(request: Request) -> StoreClient:
    """Return the process-wide store client created at startup."""
    store = getattr(request.app.state, "store", None)
    if not store:
        raise StoreError("Store client not initialized")
    return store
