"""
# Shared Model Utilities

Building blocks used by every resource model:

- **`CamelModel`**: Pydantic base that serializes to camelCase (`publishedAt`) while accepting
  both camelCase and snake_case on input.
- **`ObjectIdStr`**: A string validated to be a 24-hex MongoDB ObjectId.
- **`ApiResponse` / `envelope()`**: The uniform `{success, message, data, errors}` wrapper.
- **`to_public()`**: Converts a raw Mongo document into a JSON-friendly dict (`_id` → `id`,
  ObjectIds → strings).
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def _validate_object_id(v: str) -> str:
    if not ObjectId.is_valid(v):
        raise ValueError("must be a valid ObjectId")
    return str(ObjectId(v))


def _stringify_id(v: Any) -> Any:
    if isinstance(v, ObjectId):
        return str(v)
    return v


# Inbound reference: must parse as an ObjectId
ObjectIdStr = Annotated[str, AfterValidator(_validate_object_id)]
# Outbound reference: whatever the store holds, rendered as a string
IdStr = Annotated[str, BeforeValidator(_stringify_id)]


def camelize(value: Any) -> Any:
    """Recursively rename snake_case dict keys to camelCase; `_id` is kept."""
    if isinstance(value, dict):
        return {(k if k.startswith("_") else to_camel(k)): camelize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [camelize(v) for v in value]
    if isinstance(value, ObjectId):
        return str(value)
    return value


# Free-form sub-document (populated reference, SEO block) emitted with camelCase keys
CamelDict = Annotated[Any, BeforeValidator(camelize)]


class CamelModel(BaseModel):
    """Base model that emits camelCase keys and accepts snake_case or camelCase input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    @classmethod
    def render(cls, doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Validate a raw Mongo document against this model and dump it with camelCase keys."""
        if doc is None:
            return None
        return cls.model_validate(to_public(doc)).model_dump(by_alias=True)


class ApiResponse(BaseModel):
    """
    The uniform response envelope.

    Attributes:
        success (bool): Whether the operation succeeded.
        message (Optional[str]): Human readable outcome.
        data (Optional[Any]): Payload on success.
        errors (Optional[List[Dict[str, Any]]]): Per-field validation errors on failure.
    """

    success: bool
    message: Optional[str] = None
    data: Optional[Any] = None
    errors: Optional[List[Dict[str, Any]]] = None


def envelope(
    data: Any = None,
    message: Optional[str] = None,
    success: bool = True,
    errors: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Build an envelope dict, omitting the keys that are not set."""
    return ApiResponse(success=success, message=message, data=data, errors=errors).model_dump(exclude_none=True)


def to_public(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Convert a Mongo document into plain JSON-friendly values.

    `_id` is exposed as both `id` and `_id`; nested ObjectIds (including lists of them and
    populated sub-documents) become strings.
    """
    if doc is None:
        return None
    out: Dict[str, Any] = {}
    for key, value in doc.items():
        out[key] = _public_value(value)
    if "_id" in out:
        out["id"] = out["_id"]
    return out


def _public_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return to_public(value)
    if isinstance(value, list):
        return [_public_value(v) for v in value]
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_object_id(value: Any) -> Any:
    """Return `value` as an ObjectId when it parses as one, otherwise unchanged."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value
