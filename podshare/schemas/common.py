from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class UserSummary(CamelModel):
    id: int
    name: str | None = None
    image: str | None = None

class ActionOkOut(CamelModel):
    success: bool = True
    message: str | None = None
