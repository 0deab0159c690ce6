"""Error taxonomy shared by services and routes.

Services raise these; the app's error handler renders them as the JSON
failure envelope with the matching HTTP status.
"""

from typing import Dict, List, Optional


class StoreError(Exception):
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, *, errors: Optional[List[Dict[str, str]]] = None) -> None:
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    def to_dict(self) -> Dict:
        payload = {"success": False, "message": self.message}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class ValidationError(StoreError):
    status_code = 400
    default_message = "Validation failed"


class ConflictError(StoreError):
    status_code = 400
    default_message = "Resource already exists"


class NotFoundError(StoreError):
    status_code = 404
    default_message = "Not found"


class AuthError(StoreError):
    status_code = 401
    default_message = "Invalid authentication token"


class AuthorizationError(StoreError):
    status_code = 403
    default_message = "Not authorized"


class UpstreamError(StoreError):
    status_code = 500
    default_message = "Upstream service failed"
