"""Conversion of loosely-typed input into validated request models."""

from typing import Any, Dict, List, Mapping, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from consult_core.exceptions import InvalidInputError

ModelT = TypeVar("ModelT", bound=BaseModel)


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten pydantic error dicts to field/message/type triples."""
    return [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in errors
    ]


def parse_request(model: Type[ModelT], data: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Return ``data`` as a validated ``model`` instance.

    Already-validated instances pass through. Anything else must be a mapping
    that validates against ``model``; otherwise ``InvalidInputError`` is raised
    before any business logic runs.
    """
    if isinstance(data, model):
        return data
    if not isinstance(data, Mapping):
        raise InvalidInputError(
            f"Expected an object for {model.__name__}, got {type(data).__name__}"
        )
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as e:
        raise InvalidInputError(
            f"Invalid {model.__name__}",
            errors=format_validation_errors(e.errors()),
        ) from e
