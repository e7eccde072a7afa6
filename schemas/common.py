from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# largest value a 64-bit integer column holds
MAX_ROW_ID = 2**63 - 1


class CamelModel(BaseModel):
    # JSON bodies use camelCase (isGroup, toUserId, ...); Python code uses snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatusOut(CamelModel):
    status: str


class PhotoUploaded(CamelModel):
    message: str = "Photo uploaded"
    url: str
