"""
FastAPI application exposing the "people you may know" endpoint.
"""

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query

from .config import configure_logging, get_settings
from .db import close_driver, get_driver
from .errors import UpstreamFetchError, UserNotFoundError
from .graph import (
    FriendGraph,
    InMemorySocialGraph,
    Neo4jFriendGraph,
    Neo4jUserDirectory,
    UserDirectory,
    friend_profiles,
)
from .models import FriendListResponse, Recommendation, RecommendationResponse, User
from .recommendation import RecommendationEngine
from .snapshot import load_snapshot


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    configure_logging()
    settings = get_settings()
    logger.info(
        "Starting with %s backend (directory cap %d)",
        settings.backend,
        settings.directory_cap,
    )
    yield
    await close_driver()


app = FastAPI(
    title="People You May Know API",
    description="Friend recommendations ranked by mutual connections.",
    version="0.1.0",
    lifespan=lifespan,
)


@lru_cache(maxsize=1)
def get_snapshot_graph() -> InMemorySocialGraph:
    """Load the CSV snapshot once per process."""
    settings = get_settings()
    graph = load_snapshot(settings.snapshot_dir)
    logger.info("Loaded snapshot from %s: %d users", settings.snapshot_dir, len(graph))
    return graph


def get_friend_graph() -> FriendGraph:
    """Dependency providing the friend-graph accessor."""
    if get_settings().backend == "snapshot":
        return get_snapshot_graph()
    return Neo4jFriendGraph(get_driver())


def get_directory() -> UserDirectory:
    """Dependency providing the user-directory accessor."""
    if get_settings().backend == "snapshot":
        return get_snapshot_graph()
    return Neo4jUserDirectory(get_driver())


def get_engine(
    friend_graph: FriendGraph = Depends(get_friend_graph),
    directory: UserDirectory = Depends(get_directory),
) -> RecommendationEngine:
    settings = get_settings()
    return RecommendationEngine(
        friend_graph,
        directory,
        directory_cap=settings.directory_cap,
        fetch_timeout=settings.fetch_timeout,
    )


@app.get(
    "/api/users/{user_id}/recommendations",
    response_model=RecommendationResponse,
)
async def recommend_people(
    user_id: str,
    limit: Optional[int] = Query(None, ge=1, le=100),
    engine: RecommendationEngine = Depends(get_engine),
) -> RecommendationResponse:
    """People you may know, ranked by number of mutual friends."""
    try:
        records = await engine.compute(user_id, limit=limit)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except UpstreamFetchError:
        logger.exception("Recommendation lookup failed for %s", user_id)
        raise HTTPException(status_code=503, detail="Graph backend unavailable")

    return RecommendationResponse(
        user_id=user_id,
        recommendations=[Recommendation.from_record(r) for r in records],
    )


@app.get("/api/users/{user_id}/friends", response_model=FriendListResponse)
async def list_friends(
    user_id: str,
    friend_graph: FriendGraph = Depends(get_friend_graph),
    directory: UserDirectory = Depends(get_directory),
) -> FriendListResponse:
    """Friends of a user, used by clients to show mutual connections."""
    try:
        profiles = await friend_profiles(friend_graph, directory, user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except UpstreamFetchError:
        logger.exception("Friend lookup failed for %s", user_id)
        raise HTTPException(status_code=503, detail="Graph backend unavailable")

    return FriendListResponse(
        user_id=user_id,
        friends=[User.from_profile(p) for p in profiles],
    )


@app.get("/health")
async def health() -> dict:
    """Simple health-check endpoint used by Docker and external probes."""
    return {"status": "ok"}
