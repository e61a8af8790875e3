from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """
    CamelModel — база для всех схем API: snake_case в Python, camelCase в JSON.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PageMeta(CamelModel):
    """
    PageMeta — метаданные пагинации.
    """
    page: int = Field(..., examples=[1])
    limit: int = Field(..., examples=[10])
    total: int = Field(..., examples=[42])
    total_pages: int = Field(..., examples=[5])
    has_next_page: bool
    has_prev_page: bool


class ErrorItem(BaseModel):
    """
    ErrorItem — ошибка конкретного поля (path + message).
    """
    path: str = Field(..., examples=["body.email"])
    message: str = Field(..., examples=["Field required"])


class ErrorResponse(CamelModel):
    """
    ErrorResponse — стандартная структура для ошибки.
    """
    success: bool = False
    status_code: int = Field(..., examples=[404])
    message: str = Field(..., examples=["Task not found"])
    errors: Optional[List[ErrorItem]] = None
    stack: Optional[str] = None


class ApiResponse(CamelModel, Generic[T]):
    """
    ApiResponse — универсальный конверт ответа {success, statusCode, message, data?, meta?}.
    """
    success: bool = True
    status_code: int = 200
    message: str = Field(..., examples=["Operation successful"])
    data: Optional[T] = None
    meta: Optional[PageMeta] = None

    @model_serializer(mode="wrap")
    def _drop_empty(self, handler) -> Dict[str, Any]:
        result = handler(self)
        for key in ("data", "meta"):
            if result.get(key) is None:
                result.pop(key, None)
        return result


def envelope(message: str, data: Any = None, meta: Optional[Dict[str, Any]] = None, status_code: int = 200) -> Dict[str, Any]:
    """Build the success body; FastAPI validates it against the route's ApiResponse[...] model."""
    return {
        "success": True,
        "status_code": status_code,
        "message": message,
        "data": data,
        "meta": meta,
    }
