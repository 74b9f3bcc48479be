"""Shared document and response shapes."""

from typing import Any, Optional, TypedDict


class FirestoreDocument(TypedDict, total=False):
    """Fields every stored tournament document carries.

    ``createdAt`` and ``updatedAt`` hold server timestamps; ``revision`` is
    bumped on every engine write.
    """

    id: str
    createdAt: Any
    updatedAt: Any
    revision: int


class ErrorResponse(TypedDict):
    """JSON body returned for a failed request."""

    success: bool
    message: str
    data: Optional[Any]
