"""
Submission Models

Typed views of the admin forms. A raw form payload is parsed into a
FieldmapSubmission or an ObjectMapSubmission before it reaches the
mapping store.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, StringConstraints
from pydantic import ValidationError as PydanticValidationError

from object_sync.errors import ValidationError


class EntityKind(str, Enum):
    FIELDMAP = "fieldmap"
    OBJECT_MAP = "object-map"


class Method(str, Enum):
    ADD = "add"
    EDIT = "edit"
    CLONE = "clone"
    DELETE = "delete"


# Query argument that carries the pending-error token for each form
TOKEN_PARAMS = {
    EntityKind.FIELDMAP: "transient",
    EntityKind.OBJECT_MAP: "map_transient",
}

SUPPORTED_METHODS = {
    EntityKind.FIELDMAP: {Method.ADD, Method.EDIT, Method.CLONE, Method.DELETE},
    EntityKind.OBJECT_MAP: {Method.ADD, Method.EDIT, Method.DELETE},
}

RequiredStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class Submission(BaseModel):
    """Fields every admin form posts."""

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    method: Method
    id: Optional[str] = None
    redirect_url_success: str = ""
    redirect_url_error: str = ""

    def data(self) -> Dict[str, Any]:
        """Entity fields without the form plumbing."""
        skip = {"method", "redirect_url_success", "redirect_url_error", "transient", "map_transient", "kind"}
        return {k: v for k, v in self.model_dump().items() if k not in skip}


class DeleteSubmission(Submission):
    kind: EntityKind
    id: RequiredStr


class FieldmapSubmission(Submission):
    kind: EntityKind = EntityKind.FIELDMAP
    label: RequiredStr
    salesforce_object: RequiredStr
    wordpress_object: RequiredStr
    salesforce_record_types_allowed: Union[List[str], str, None] = None
    salesforce_record_type_default: Optional[str] = None
    pull_trigger_field: Optional[str] = None
    sync_triggers: Union[List[str], str, None] = None
    push_async: Optional[str] = None
    push_drafts: Optional[str] = None
    weight: Optional[str] = None


class ObjectMapSubmission(Submission):
    kind: EntityKind = EntityKind.OBJECT_MAP
    wordpress_id: RequiredStr
    salesforce_id: RequiredStr
    wordpress_object: Optional[str] = None


def _describe(error: PydanticValidationError) -> List[str]:
    return [".".join(str(part) for part in e["loc"]) for e in error.errors()]


def parse_submission(payload: Dict[str, Any], kind: Union[EntityKind, str], method: Optional[str] = None) -> Submission:
    """
    Validate a raw form payload for the given entity kind.

    Args:
        payload: Submitted form fields
        kind: Which form was submitted
        method: Overrides the payload's method field

    Returns:
        The typed submission

    Raises:
        ValidationError: if the method is unknown or a required field is empty
    """
    kind = EntityKind(kind)
    raw_method = method if method is not None else payload.get("method")
    try:
        parsed_method = Method(str(raw_method or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown method {raw_method!r} for {kind.value}", ["method"])
    if parsed_method not in SUPPORTED_METHODS[kind]:
        raise ValidationError(f"{kind.value} does not support {parsed_method.value}", ["method"])

    data = dict(payload)
    data["method"] = parsed_method
    if parsed_method == Method.DELETE:
        model = DeleteSubmission
        data["kind"] = kind
    elif kind == EntityKind.FIELDMAP:
        model = FieldmapSubmission
    else:
        model = ObjectMapSubmission

    try:
        submission = model.model_validate(data)
    except PydanticValidationError as e:
        fields = _describe(e)
        raise ValidationError(f"Invalid {kind.value} submission: {', '.join(fields)}", fields) from e

    if parsed_method == Method.EDIT and not submission.id:
        raise ValidationError(f"Editing a {kind.value} requires an id", ["id"])
    return submission
