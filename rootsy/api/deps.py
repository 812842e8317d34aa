from typing import Annotated

from fastapi import Depends, HTTPException, Request

from rootsy.core.errors import StorageError, WriteFailedError
from rootsy.core.session_coordinator import SessionCoordinator


def get_coordinator(request: Request) -> SessionCoordinator:
    """Dependency returning the app's session coordinator."""
    return request.app.state.coordinator


CoordinatorDep = Annotated[SessionCoordinator, Depends(get_coordinator)]


def storage_http_error(e: StorageError) -> HTTPException:
    """Map a storage failure onto an HTTP error carrying its message."""
    if isinstance(e, WriteFailedError):
        return HTTPException(status_code=409, detail=e.message)
    return HTTPException(status_code=500, detail=e.message)
