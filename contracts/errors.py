"""Error codes surfaced by the discovery core and the exception used to raise them."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

# code -> (default message, http status for the transport layer)
ERROR_CODES: Dict[str, Tuple[str, int]] = {
    "ACCOUNT_ID_REQUIRED": ("Account id is required", 400),
    "DISCOVERY_REQUIRED": ("Spot must be discovered first", 403),
    "NOT_AUTHORIZED": ("Not authorized for this resource", 403),
    "NOT_FOUND": ("Resource not found", 404),
    "TRAIL_NOT_FOUND": ("Trail not found", 404),
    "SPOT_NOT_FOUND": ("Spot not found", 404),
    "DISCOVERY_NOT_FOUND": ("Discovery not found", 404),
    "CONTENT_NOT_FOUND": ("Discovery content not found", 404),
    "TRAIL_HAS_NO_SPOTS": ("Trail has no spots", 409),
    "ALREADY_EXISTS": ("Item already exists", 409),
    "CONTENT_REJECTED": ("Comment was rejected by the content filter", 422),
    "IMAGE_UPLOAD_NOT_SUPPORTED": ("Image uploads must be stored before attaching them", 422),
    "INVALID_RATING": ("Rating must be a number between 1 and 5", 422),
    "STORE_ERROR": ("Store operation failed", 503),
    "GET_DISCOVERIES_ERROR": ("Failed to get discoveries", 500),
    "GET_DISCOVERY_ERROR": ("Failed to get discovery", 500),
    "GET_SPOT_IDS_ERROR": ("Failed to get discovered spot ids", 500),
    "GET_SPOTS_ERROR": ("Failed to get spots", 500),
    "GET_SPOT_ERROR": ("Failed to get spot", 500),
    "GET_CLUES_ERROR": ("Failed to get clues", 500),
    "DISCOVERY_TRAIL_ERROR": ("Failed to get discovery trail", 500),
    "PROCESS_LOCATION_ERROR": ("Failed to process location", 500),
    "PROCESS_SCAN_EVENT_ERROR": ("Failed to process scan event", 500),
    "GET_PROFILE_ERROR": ("Failed to get discovery profile", 500),
    "UPDATE_TRAIL_ERROR": ("Failed to update active trail", 500),
    "GET_DISCOVERY_STATS_ERROR": ("Failed to get discovery stats", 500),
    "GET_TRAIL_STATS_ERROR": ("Failed to get trail stats", 500),
    "GET_CONTENT_ERROR": ("Failed to get discovery content", 500),
    "SAVE_CONTENT_ERROR": ("Failed to save discovery content", 500),
    "DELETE_CONTENT_ERROR": ("Failed to delete discovery content", 500),
    "REACTION_ERROR": ("Failed to save reaction", 500),
    "GET_REACTIONS_ERROR": ("Failed to get reactions", 500),
    "DISCOVERY_STATE_ERROR": ("Failed to get discovery state", 500),
}

FALLBACK_STATUS = 500


def describe(code: str) -> Tuple[str, int]:
    return ERROR_CODES.get(code, (code.replace("_", " ").capitalize(), FALLBACK_STATUS))


class DiscoveryServiceError(Exception):
    """Raised when a discovery operation fails and the caller wants an exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        payload: Optional[Dict[str, Any]] = None,
        code: str = "STORE_ERROR",
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.payload = payload or {"error": code}

    @classmethod
    def from_code(cls, code: str, message: Optional[str] = None, **details: Any) -> "DiscoveryServiceError":
        default_message, status = describe(code)
        return cls(message or default_message, status_code=status, payload={"error": code, **details}, code=code)

    @property
    def details(self) -> Dict[str, Any]:
        return {key: value for key, value in self.payload.items() if key != "error"}
