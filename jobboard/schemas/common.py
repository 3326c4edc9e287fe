"""Response envelope shared by every endpoint."""
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class PaginationSchema(BaseModel):
    """Pagination block, serialized in camelCase."""
    current_page: int = Field(serialization_alias="currentPage")
    total_pages: int = Field(serialization_alias="totalPages")
    page_size: int = Field(serialization_alias="pageSize")
    total_items: int = Field(serialization_alias="totalItems")

    model_config = ConfigDict(from_attributes=True)


class SuccessResponse(BaseModel, Generic[T]):
    """Success envelope: data plus an optional pagination block."""
    status: str = "success"
    message: str
    data: Optional[T] = None
    pagination: Optional[PaginationSchema] = None


class ValueData(BaseModel):
    """Wraps a scalar payload so ``data`` is always an object."""
    value: int | str


class ErrorResponse(BaseModel):
    """Failure envelope."""
    status: str = "error"
    kind: str
    message: str
    code: int
    error: Optional[str] = None
