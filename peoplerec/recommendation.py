"""
Core recommendation logic: "people you may know" ranked by mutual friends.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import UpstreamFetchError, UserNotFoundError
from .graph import BulkFriendGraph, FriendGraph, UserDirectory, UserId, UserProfile


logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY_CAP = 10
DEFAULT_FETCH_TIMEOUT = 2.0


@dataclass(frozen=True)
class RecommendationRecord:
    """One ranked candidate."""

    candidate: UserProfile
    mutual_friend_ids: Tuple[UserId, ...]
    mutual_friend_count: int
    common_interest_count: int = 0
    # Profiles of the mutual friends the directory could resolve, in
    # mutual_friend_ids order.
    mutual_friend_details: Tuple[UserProfile, ...] = ()


class RecommendationEngine:
    """
    Rank non-friends of a user by the number of friends they share.

    The engine is a pure read over the graph: it never mutates either
    accessor, and two calls against an unchanged snapshot return the same
    list.
    """

    def __init__(
        self,
        friend_graph: FriendGraph,
        directory: UserDirectory,
        directory_cap: int = DEFAULT_DIRECTORY_CAP,
        fetch_timeout: Optional[float] = DEFAULT_FETCH_TIMEOUT,
    ):
        if directory_cap < 1:
            raise ValueError("directory_cap must be at least 1")
        self.friend_graph = friend_graph
        self.directory = directory
        self.directory_cap = directory_cap
        self.fetch_timeout = fetch_timeout

    async def compute(
        self,
        requester_id: UserId,
        limit: Optional[int] = None,
    ) -> List[RecommendationRecord]:
        """
        Return recommendation records for ``requester_id``, best first.

        ``limit`` overrides the directory cap for this call. Raises
        ``UserNotFoundError`` when the requester does not exist.
        """
        requester_friends = await self.friend_graph.friends_of(requester_id)
        cap = limit if limit is not None else self.directory_cap
        users = await self.directory.list(excluding=requester_id, limit=cap)

        candidates = filter_candidates(requester_id, requester_friends, users)
        adjacency = await self._fetch_candidate_friends(
            [c.user_id for c in candidates]
        )

        records = [
            build_record(c, requester_friends, adjacency.get(c.user_id, ()))
            for c in candidates
        ]
        profiles = await self._fetch_profiles(
            {fid for r in records for fid in r.mutual_friend_ids}
        )
        records = [attach_details(r, profiles) for r in records]
        ranked = rank(records)
        logger.debug(
            "Computed %d recommendations for %s (%d users listed, %d friends)",
            len(ranked),
            requester_id,
            len(users),
            len(requester_friends),
        )
        return ranked

    async def _fetch_candidate_friends(
        self, candidate_ids: Sequence[UserId]
    ) -> Dict[UserId, Tuple[UserId, ...]]:
        if not candidate_ids:
            return {}

        if isinstance(self.friend_graph, BulkFriendGraph):
            try:
                return await self._with_timeout(
                    self.friend_graph.friends_of_many(candidate_ids)
                )
            except (UpstreamFetchError, asyncio.TimeoutError):
                logger.warning(
                    "Bulk friend lookup failed, fetching %d candidates one by one",
                    len(candidate_ids),
                    exc_info=True,
                )

        friend_lists = await asyncio.gather(
            *(self._friends_or_empty(cid) for cid in candidate_ids)
        )
        return dict(zip(candidate_ids, friend_lists))

    async def _friends_or_empty(self, candidate_id: UserId) -> Tuple[UserId, ...]:
        """Fetch one candidate's friends; any failure counts as no friends."""
        try:
            return tuple(
                await self._with_timeout(self.friend_graph.friends_of(candidate_id))
            )
        except (UserNotFoundError, UpstreamFetchError, asyncio.TimeoutError):
            logger.warning(
                "Friend lookup failed for candidate %s, scoring 0 mutual friends",
                candidate_id,
                exc_info=True,
            )
            return ()

    async def _fetch_profiles(
        self, user_ids: Iterable[UserId]
    ) -> Dict[UserId, UserProfile]:
        """Directory profiles for ``user_ids``; unresolved ids are left out."""
        ids = sorted(user_ids)
        profiles = await asyncio.gather(*(self._profile_or_none(uid) for uid in ids))
        return {uid: p for uid, p in zip(ids, profiles) if p is not None}

    async def _profile_or_none(self, user_id: UserId) -> Optional[UserProfile]:
        try:
            return await self._with_timeout(self.directory.get(user_id))
        except (UserNotFoundError, UpstreamFetchError, asyncio.TimeoutError):
            logger.warning(
                "Profile lookup failed for mutual friend %s, leaving it out of the details",
                user_id,
                exc_info=True,
            )
            return None

    async def _with_timeout(self, awaitable):
        if self.fetch_timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self.fetch_timeout)


def filter_candidates(
    requester_id: UserId,
    requester_friends: Sequence[UserId],
    users: Sequence[UserProfile],
) -> List[UserProfile]:
    """Drop the requester, their friends and repeated ids; keep directory order."""
    excluded = set(requester_friends)
    excluded.add(requester_id)
    candidates: List[UserProfile] = []
    for user in users:
        if user.user_id in excluded:
            continue
        excluded.add(user.user_id)
        candidates.append(user)
    return candidates


def mutual_friends(
    requester_friends: Sequence[UserId],
    candidate_friends: Sequence[UserId],
) -> Tuple[UserId, ...]:
    """Friends shared by both users, in the requester's friend order."""
    theirs = set(candidate_friends)
    seen = set()
    mutual = []
    for fid in requester_friends:
        if fid in theirs and fid not in seen:
            seen.add(fid)
            mutual.append(fid)
    return tuple(mutual)


def build_record(
    candidate: UserProfile,
    requester_friends: Sequence[UserId],
    candidate_friends: Sequence[UserId],
) -> RecommendationRecord:
    mutual = mutual_friends(requester_friends, candidate_friends)
    # Interest overlap is not scored; the field is always zero.
    return RecommendationRecord(
        candidate=candidate,
        mutual_friend_ids=mutual,
        mutual_friend_count=len(mutual),
        common_interest_count=0,
    )


def attach_details(
    record: RecommendationRecord,
    profiles: Dict[UserId, UserProfile],
) -> RecommendationRecord:
    details = tuple(profiles[fid] for fid in record.mutual_friend_ids if fid in profiles)
    return replace(record, mutual_friend_details=details)


def rank(records: Sequence[RecommendationRecord]) -> List[RecommendationRecord]:
    """Sort by mutual friend count, highest first; ties keep input order."""
    return sorted(records, key=lambda r: r.mutual_friend_count, reverse=True)
