# storefront/core/errors.py

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Единая таксономия ошибок слоя данных каталога."""
    NETWORK_UNREACHABLE = "network_unreachable"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    DECODE_ERROR = "decode_error"
    NOT_FOUND = "not_found"
    STORAGE_ERROR = "storage_error"
    UNEXPECTED = "unexpected"


class CatalogError(Exception):
    """Базовое исключение. Каждый подкласс знает свой ErrorKind."""
    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RemoteError(CatalogError):
    """Ошибки удаленного каталога, после которых репозиторий пробует фолбэк."""


class NetworkUnreachableError(RemoteError):
    kind = ErrorKind.NETWORK_UNREACHABLE


class RequestTimeoutError(RemoteError):
    kind = ErrorKind.TIMEOUT


class ServerError(RemoteError):
    kind = ErrorKind.SERVER_ERROR

    def __init__(self, message: str, status_code: int, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class DecodeError(RemoteError):
    # Ответ пришел, но его форма не совпадает с ожидаемой: это дефект схемы, а не сети
    kind = ErrorKind.DECODE_ERROR


class NotFoundError(CatalogError):
    kind = ErrorKind.NOT_FOUND


class StorageError(CatalogError):
    kind = ErrorKind.STORAGE_ERROR
