"""Reusable, strict base models for configuration and boundary data."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    A base model that accepts and emits camelCase keys.

    Scenario files written by hosts use camelCase (`messageSpeed`), while the
    Python side uses snake_case (`message_speed`). Both spellings are accepted
    when validating.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
    )


class StrictBaseModel(CamelModel):
    """A strict, immutable pydantic base model."""

    model_config = CamelModel.model_config | {
        "extra": "forbid",
        "frozen": True,
        "strict": True,
    }
