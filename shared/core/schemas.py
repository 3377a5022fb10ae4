from pydantic import BaseModel, model_validator
from typing import Generic, List, Optional, TypeVar, Union
from uuid import UUID

from shared.wrappers.empty_string_model_wrapper import EmptyStringModel

# Shared properties
T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class UserToken(BaseModel):
    user_id: str
    company_id: UUID
    name: Optional[str] = None
    exp: Optional[int] = None


class CommonQueryParams(EmptyStringModel):
    search: Optional[str] = None
    page: Optional[int] = 1
    limit: Optional[int] = DEFAULT_PAGE_SIZE

    @model_validator(mode="after")
    def clamp_paging(self):
        # out of range values are clamped, not rejected
        if not self.page or self.page < 1:
            self.page = 1
        if not self.limit or self.limit < 1:
            self.limit = DEFAULT_PAGE_SIZE
        self.limit = min(self.limit, MAX_PAGE_SIZE)
        return self

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class Lookup(BaseModel):
    id: Union[str, UUID]  # accepts both UUID and str
    name: str

    model_config = {"from_attributes": True}


class BulkDeleteRequest(BaseModel):
    ids: List[UUID]


class BulkDeleteResponse(BaseModel):
    message: str
    deleted_count: int


class MessageResponse(BaseModel):
    message: str


class JsonOutResult(BaseModel, Generic[T]):
    data: Optional[T] = None
    status: str
    status_code: str
    message: str
