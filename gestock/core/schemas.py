from typing import Annotated, Tuple

from fastapi import Depends, Query, Response
from sqlmodel import SQLModel

from gestock.config import settings


class MessageResponse(SQLModel):
    message: str


def get_pagination_params(
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
) -> Tuple[int, int]:
    return limit, offset


PaginationParams = Annotated[Tuple[int, int], Depends(get_pagination_params)]


def set_content_range(response: Response, resource: str, offset: int, count: int, total: int) -> None:
    end_range = offset + count - 1 if count else offset
    response.headers["Content-Range"] = f"{resource} {offset}-{end_range}/{total}"
