"""Common base for API models"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class MidazModel(BaseModel):
    """API model serialized with camelCase keys

    Unknown fields returned by the server are kept so newer API versions
    do not break decoding.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )
