"""
Share Link API Endpoints.

Owners create and manage read-only links to a persona run. Opening a link is
public: the token (and the password, when one was set) is all that is needed,
and failed attempts are rate limited per client IP.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, Request, Response, status

from codexalpha.core.database.entities.shared_links import SharedLink
from codexalpha.core.models.io.share_links import (
    ShareLinkCreate,
    ShareLinkCreated,
    ShareLinkRead,
    ShareLinkVerified,
    ShareLinkVerify,
)
from codexalpha.server.core.security import CurrentUserDep
from codexalpha.server.services.deps import PdfExportDep, ShareLinksDep
from codexalpha.server.services.share_links import client_ip

from .persona_runs import file_response

router = APIRouter(tags=["share-links"])


def to_read(link: SharedLink) -> ShareLinkRead:
    return ShareLinkRead(
        id=link.id,
        persona_run_id=link.persona_run_id,
        share_token=link.share_token,
        has_password=bool(link.password_hash),
        expires_at=link.expires_at,
        is_active=link.is_active,
        view_count=link.view_count or 0,
        created_at=link.created_at,
    )


@router.post(
    "",
    response_model=ShareLinkCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create Share Link",
    description="Create a share link for one of the caller's persona runs.",
    response_description="The share token and the public URL.",
    responses={
        403: {"description": "Run belongs to another user"},
        404: {"description": "Run not found"},
    },
)
async def create_share_link(link_in: ShareLinkCreate, user: CurrentUserDep, shares: ShareLinksDep) -> ShareLinkCreated:
    """
    Create a share link.

    - **persona_run_id**: The run to share.
    - **password**: Optional password (1-100 characters); stored as a salted PBKDF2 hash.
    - **expires_in_days**: Optional lifetime in days (1-365).
    """
    link = await shares.create(
        user, link_in.persona_run_id, password=link_in.password, expires_in_days=link_in.expires_in_days
    )
    return ShareLinkCreated(
        share_token=link.share_token, share_url=shares.share_url(link.share_token), expires_at=link.expires_at
    )


@router.get(
    "",
    response_model=List[ShareLinkRead],
    summary="List Share Links",
    description="List the share links of one of the caller's persona runs.",
    response_description="Share links, newest first.",
)
async def list_share_links(
    user: CurrentUserDep, shares: ShareLinksDep, persona_run_id: str = Query(description="Run identifier")
) -> List[ShareLinkRead]:
    """
    List share links of a run.
    """
    return [to_read(link) for link in await shares.list_for_run(persona_run_id, user)]


@router.post(
    "/{link_id}/deactivate",
    response_model=ShareLinkRead,
    summary="Deactivate Share Link",
    description="Stop a share link from opening.",
    response_description="The deactivated link.",
    responses={
        403: {"description": "Link belongs to another user's run"},
        404: {"description": "Link not found"},
    },
)
async def deactivate_share_link(link_id: str, user: CurrentUserDep, shares: ShareLinksDep) -> ShareLinkRead:
    """
    Deactivate a share link.
    """
    return to_read(await shares.deactivate(link_id, user))


@router.post(
    "/verify",
    response_model=ShareLinkVerified,
    summary="Open Share Link",
    description="Open a share link and return the shared persona run (public).",
    response_description="The shared run with its codexes and sections.",
    responses={
        401: {"description": "Password required or incorrect"},
        403: {"description": "Link expired"},
        404: {"description": "Invalid or inactive link"},
        429: {"description": "Too many failed attempts from this IP"},
    },
)
async def verify_share_link(verify_in: ShareLinkVerify, request: Request, shares: ShareLinksDep) -> ShareLinkVerified:
    """
    Open a share link.

    When the link is password protected and no password is given the response
    is a 401 with `requires_password: true`.

    - **share_token**: The token from the share URL.
    - **password**: The link password, if any.
    """
    run = await shares.verify(verify_in.share_token, verify_in.password, client_ip(request.headers))
    return ShareLinkVerified(persona_run=run)


@router.get(
    "/{share_token}/codexes/{codex_id}/pdf",
    summary="Download Shared Codex PDF",
    description="Download one codex of a shared run as PDF (public).",
    response_description="application/pdf",
    responses={
        200: {"content": {"application/pdf": {}}},
        401: {"description": "Password required or incorrect"},
        404: {"description": "Invalid link or codex not part of the shared run"},
        429: {"description": "Too many failed attempts from this IP"},
    },
)
async def download_shared_codex_pdf(
    share_token: str,
    codex_id: str,
    request: Request,
    shares: ShareLinksDep,
    exports: PdfExportDep,
    password: Optional[str] = Query(default=None),
) -> Response:
    """
    Download a shared codex PDF.

    - **password**: The link password, if any.
    """
    exported = await exports.shared_codex_pdf(shares, share_token, password, client_ip(request.headers), codex_id)
    return file_response(exported)
