from typing import Optional, List
from pydantic import BaseModel


class GenreCreate(BaseModel):
    name: Optional[str] = None


class GenreResponse(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class GenreListResponse(BaseModel):
    data: List[GenreResponse]
