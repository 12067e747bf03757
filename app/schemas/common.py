"""Common schemas."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API and realtime payloads.

    JSON uses camelCase (``isDisplayedInPresenter``); snake_case field names
    are accepted on input too.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """Error body rendered for domain errors (documented on every v1 route)."""
    detail: str
    code: str
    errors: Optional[List[Dict[str, Any]]] = None
