from typing import Annotated

from fastapi import Path

from schemas.common import MAX_ROW_ID

# ids outside the integer column range are malformed requests, not lookups
RowId = Annotated[int, Path(ge=1, le=MAX_ROW_ID)]
