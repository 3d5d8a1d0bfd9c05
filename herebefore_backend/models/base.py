"""
Base model configuration for the command surface
"""

from pydantic import BaseModel as PydanticBaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseModel(PydanticBaseModel):
    """Base model with camelCase conversion for JavaScript compatibility.

    This base model configuration:
    - Accepts camelCase arguments for snake_case python fields
    - Forbids unknown fields to ensure type safety
    """

    model_config = ConfigDict(
        # See: <https://docs.pydantic.dev/2.10/concepts/alias/#using-an-aliasgenerator>
        alias_generator=to_camel,
        # snake_case in Python code, camelCase from the UI shell
        populate_by_name=True,
        # See: <https://docs.pydantic.dev/2.10/concepts/models/#extra-data>
        extra="forbid",
    )

    def model_dump(self, **kwargs):
        """Override model_dump to always use aliases (camelCase) by default."""
        kwargs.setdefault("by_alias", True)
        return super().model_dump(**kwargs)
