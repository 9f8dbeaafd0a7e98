from typing import Annotated

from fastapi import Header, Request

from shelfscan.internal.resolution import ResolutionContext


def get_context(request: Request) -> ResolutionContext:
    return request.app.state.context


def get_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str | None:
    """
    The reading-list owner as asserted by the authenticating proxy in front of
    the service. shelfscan does no authentication itself: it must only be
    reachable through that proxy, and the proxy must overwrite any
    client-supplied X-User-Id header.
    """
    if x_user_id is None or not x_user_id.strip():
        return None
    return x_user_id.strip()
