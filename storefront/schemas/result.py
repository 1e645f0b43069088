# storefront/schemas/result.py
from enum import Enum
from typing import Generic, Literal, TypeVar, Union

from pydantic import BaseModel

from storefront.core.errors import CatalogError, ErrorKind


class Provenance(str, Enum):
    """Откуда пришли данные снимка."""
    CACHE = "cache"
    REMOTE = "remote"
    FALLBACK = "fallback"


DataType = TypeVar('DataType')


class Loading(BaseModel):
    status: Literal["loading"] = "loading"


class Success(BaseModel, Generic[DataType]):
    status: Literal["success"] = "success"
    data: DataType
    provenance: Provenance

    @property
    def is_stale(self) -> bool:
        # Все, что пришло не с сервера, UI помечает как "данные могут быть устаревшими"
        return self.provenance != Provenance.REMOTE


class Error(BaseModel):
    status: Literal["error"] = "error"
    kind: ErrorKind
    message: str

    @classmethod
    def from_exception(cls, exc: CatalogError) -> "Error":
        return cls(kind=exc.kind, message=exc.message)


Result = Union[Loading, Success, Error]


class ProvenancedResponse(BaseModel, Generic[DataType]):
    """HTTP-ответ с данными и отметкой источника для UI ("данные могут быть устаревшими")."""
    data: DataType
    provenance: Provenance
    stale: bool
