"""Base model configuration for report documents."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base model with standard configuration.

    Report documents come from an external runner: unknown fields are kept so
    a merged report can be written back without losing data, and camelCase
    aliases are accepted alongside field names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")
