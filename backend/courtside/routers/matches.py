# backend/courtside/routers/matches.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response

from .. import scoring
from ..cache import match_view_cache
from ..config import SHARE_BASE_URL
from ..exceptions import MatchConflict, MatchForbidden, http_problem
from ..rate_limit import event_rate_limit, limiter
from ..schemas import (
    EventIn,
    MatchCreate,
    MatchCreatedOut,
    MatchListOut,
    MatchOut,
    MatchSummaryOut,
)
from ..scoring.models import MatchStatus
from ..storage import MatchStore, StoredMatch, generate_admin_token, get_match_store

logger = logging.getLogger(__name__)

# Resource-only prefix; versioning is added in main.py
router = APIRouter(prefix="/matches", tags=["matches"])


def _share_url(mid: str) -> str:
    return f"{SHARE_BASE_URL}/view/{mid}"


def _match_out(stored: StoredMatch) -> MatchOut:
    return MatchOut(
        id=stored.id,
        version=stored.version,
        shareUrl=_share_url(stored.id),
        createdAt=stored.created_at,
        updatedAt=stored.updated_at,
        state=stored.match,
        situation=scoring.point_situation(stored.match),
    )


def _summary_out(stored: StoredMatch) -> MatchSummaryOut:
    match = stored.match
    return MatchSummaryOut(
        id=stored.id,
        player1Name=match.config.player1_name,
        player2Name=match.config.player2_name,
        status=match.status,
        scoreline=match.final_scoreline or scoring.running_scoreline(match),
        matchWinner=match.match_winner,
        updatedAt=stored.updated_at,
    )


async def _require_admin(
    store: MatchStore, mid: str, admin_token: Optional[str]
) -> StoredMatch:
    stored = await store.load(mid)
    if not admin_token or not await store.verify_token(mid, admin_token):
        raise MatchForbidden(mid)
    return stored


# POST /api/v0/matches
@router.post("", response_model=MatchCreatedOut, status_code=201)
async def create_match(
    body: MatchCreate,
    store: MatchStore = Depends(get_match_store),
) -> MatchCreatedOut:
    match = scoring.create_match(body.config, first_server=body.firstServer)
    admin_token = generate_admin_token()
    stored = await store.create(match, admin_token=admin_token)
    return MatchCreatedOut(match=_match_out(stored), adminToken=admin_token)


# GET /api/v0/matches
@router.get("", response_model=MatchListOut)
async def list_matches(
    status: Optional[MatchStatus] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    store: MatchStore = Depends(get_match_store),
) -> MatchListOut:
    rows = await store.list(status=status, limit=limit, offset=offset)
    return MatchListOut(
        matches=[_summary_out(r) for r in rows],
        limit=limit,
        offset=offset,
    )


# GET /api/v0/matches/{mid}
@router.get("/{mid}", response_model=MatchOut)
async def get_match(
    mid: str,
    store: MatchStore = Depends(get_match_store),
) -> MatchOut:
    async def load() -> MatchOut:
        return _match_out(await store.load(mid))

    return await match_view_cache.get_or_load(mid, load)


# POST /api/v0/matches/{mid}/events
async def append_event(
    mid: str,
    ev: EventIn,
    store: MatchStore,
    admin_token: Optional[str],
) -> MatchOut:
    stored = await _require_admin(store, mid, admin_token)
    if ev.expectedVersion is not None and ev.expectedVersion != stored.version:
        raise MatchConflict(mid, ev.expectedVersion, stored.version)
    if ev.type == "ADJUST" and ev.setNumber != stored.match.current_set:
        raise http_problem(
            400,
            f"only set {stored.match.current_set} can be adjusted",
            "match_event_invalid",
        )

    updated = scoring.reduce(stored.match, ev.to_event())
    if updated == stored.match:
        # Rejected or no-op event: nothing to persist.
        return _match_out(stored)

    saved = await store.save(mid, updated, expected_version=stored.version)
    await match_view_cache.invalidate(mid)
    if saved.match.is_completed and not stored.match.is_completed:
        logger.info(
            "Match %s completed: %s won %s",
            mid,
            saved.match.match_winner,
            saved.match.final_scoreline,
        )
    return _match_out(saved)


@router.post("/{mid}/events", response_model=MatchOut)
@limiter.limit(event_rate_limit)
async def append_event_route(
    request: Request,
    mid: str,
    ev: EventIn,
    store: MatchStore = Depends(get_match_store),
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
) -> MatchOut:
    return await append_event(mid, ev, store, x_admin_token)


# DELETE /api/v0/matches/{mid}
@router.delete("/{mid}", status_code=204)
async def delete_match(
    mid: str,
    store: MatchStore = Depends(get_match_store),
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
):
    await _require_admin(store, mid, x_admin_token)
    await store.delete(mid)
    await match_view_cache.invalidate(mid)
    return Response(status_code=204)
