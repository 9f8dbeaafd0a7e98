from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from shelfscan.internal.models import BatchResult, BookQuery
from shelfscan.internal.resolution import ResolutionContext, resolve_batch
from shelfscan.util.context import get_context, get_user_id

router = APIRouter(prefix="/books", tags=["Books"])


class ResolveRequest(BaseModel):
    books: list[BookQuery] = Field(min_length=1)


class ResolveResponse(BatchResult):
    success: bool = True


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_books(
    body: ResolveRequest,
    context: Annotated[ResolutionContext, Depends(get_context)],
    user_id: Annotated[str | None, Depends(get_user_id)],
):
    """
    Reading-list annotation uses the user id from the X-User-Id header, see
    `get_user_id`. Any user id in the body is ignored.
    """
    result = await resolve_batch(context, body.books, user_id=user_id)
    if not result.books:
        raise HTTPException(
            status_code=404,
            detail={
                "error": "Could not find rating information for any books",
                "extractedBooks": [b.model_dump() for b in body.books],
            },
        )
    return ResolveResponse(
        books=result.books,
        total_found=result.total_found,
        total_processed=result.total_processed,
    )
