from typing import Annotated

from pydantic import BaseModel, Field

# Upper bound of the store's INTEGER columns
MAX_DB_INT = 2**31 - 1

RecordId = Annotated[int, Field(ge=1, le=MAX_DB_INT)]


class Paging(BaseModel):
    page: int
    page_size: int = Field(..., alias="pageSize")
    total: int
    pages: int

    model_config = {"populate_by_name": True}
