"""Shared model configuration for LLKB documents."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """
    Base for records that round-trip through the LLKB JSON documents.

    Documents are keyed in camelCase (``journeyIds``, ``successRate``);
    Python code uses the snake_case field names. Both are accepted.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResultModel(BaseModel):
    """Immutable result of an engine computation. Built once, never mutated."""

    model_config = ConfigDict(frozen=True)
