from typing import Optional, Any
from enum import Enum

# ------------------------------- Statuses ------------------------------- #

class ApiStatus(str, Enum):
    """Standard API response statuses"""
    SUCCESS = "success"
    ERROR = "error"
    VALIDATION_ERROR = "validation_error"
    SERVER_ERROR = "server_error"

# ------------------------------- Response Helpers ------------------------------- #

def error_response(
    message: str = "An error occurred",
    status: ApiStatus = ApiStatus.ERROR,
    error_code: Optional[str] = None,
    details: Optional[str] = None,
    data: Any = None,
) -> dict:
    """
    Helper function to create a standardized error response.
    ``error`` repeats the message and ``details`` carries the stringified
    cause, the two keys the UI reads on failure.
    """
    return {
        "status": status.value,
        "message": message,
        "error": message,
        "details": details,
        "data": data,
        "error_code": error_code,
    }
