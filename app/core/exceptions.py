"""Domain errors raised by the services and rendered by the API layer."""
from typing import Any, Dict, List, Optional


class EngageError(Exception):
    """Base class for errors surfaced to the HTTP caller."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class ValidationError(EngageError):
    """A mutation was rejected by a business rule.

    ``errors`` carries field-level detail in the same shape FastAPI uses for
    request validation errors: ``[{"loc": [...], "msg": "..."}]``.
    """

    status_code = 400
    code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None,
                 errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        if errors is None:
            errors = [{"loc": ["body", field] if field else ["body"], "msg": message}]
        self.errors = errors

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class NotFoundError(EngageError):
    """A referenced entity does not exist."""

    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class PersistenceError(EngageError):
    """The storage layer failed; the mutation was rolled back."""

    status_code = 500
    code = "persistence_error"


class DeliveryError(Exception):
    """Sending a message to one realtime connection failed.

    Only ever raised and handled inside the broadcaster.
    """

    def __init__(self, connection_id: str, reason: str):
        super().__init__(f"delivery to {connection_id} failed: {reason}")
        self.connection_id = connection_id
        self.reason = reason
