"""Base model for documents exchanged with the widget and the store."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WidgetModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
