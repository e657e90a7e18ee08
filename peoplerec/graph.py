"""
Read-only accessors over the friendship graph and the user directory.

Two backends are provided:

- ``Neo4jFriendGraph`` / ``Neo4jUserDirectory`` read ``(:User)`` nodes and
  ``[:KNOWS]`` relationships through the async Neo4j driver.
- ``InMemorySocialGraph`` serves both roles from a snapshot held in memory
  (see ``peoplerec.snapshot``).

Friendship is symmetric: relationships are matched without direction, so an
edge stored as ``(a)-[:KNOWS]->(b)`` makes ``a`` and ``b`` friends of each
other.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from neo4j import AsyncDriver
from neo4j.exceptions import DriverError, Neo4jError

from .db import neo4j_session
from .errors import UpstreamFetchError, UserNotFoundError


UserId = str


@dataclass(frozen=True)
class UserProfile:
    """Directory entry for a single user."""

    user_id: UserId
    username: str
    full_name: Optional[str] = None
    interests: Tuple[str, ...] = field(default_factory=tuple)


@runtime_checkable
class FriendGraph(Protocol):
    async def friends_of(self, user_id: UserId) -> Tuple[UserId, ...]:
        ...


@runtime_checkable
class BulkFriendGraph(FriendGraph, Protocol):
    """Friend graph able to return the adjacency of many users in one call."""

    async def friends_of_many(
        self, user_ids: Sequence[UserId]
    ) -> Dict[UserId, Tuple[UserId, ...]]:
        ...


@runtime_checkable
class UserDirectory(Protocol):
    async def list(self, excluding: UserId, limit: int) -> List[UserProfile]:
        ...

    async def get(self, user_id: UserId) -> UserProfile:
        ...


class InMemorySocialGraph:
    """
    Friend graph and user directory over an in-memory snapshot.

    Users are enumerated in insertion order. Friend tuples follow the order
    in which edges were added.
    """

    def __init__(
        self,
        users: Iterable[UserProfile] = (),
        edges: Iterable[Tuple[UserId, UserId]] = (),
    ):
        self._users: Dict[UserId, UserProfile] = {}
        self._friends: Dict[UserId, Dict[UserId, None]] = {}
        for user in users:
            self.add_user(user)
        for a, b in edges:
            self.add_friendship(a, b)

    def add_user(self, user: UserProfile) -> None:
        self._users[user.user_id] = user
        self._friends.setdefault(user.user_id, {})

    def add_friendship(self, a: UserId, b: UserId) -> None:
        if a == b:
            raise ValueError(f"A user cannot befriend themselves: {a}")
        for uid in (a, b):
            if uid not in self._users:
                raise UserNotFoundError(uid)
        self._friends[a][b] = None
        self._friends[b][a] = None

    def __len__(self) -> int:
        return len(self._users)

    async def friends_of(self, user_id: UserId) -> Tuple[UserId, ...]:
        if user_id not in self._friends:
            raise UserNotFoundError(user_id)
        return tuple(self._friends[user_id])

    async def friends_of_many(
        self, user_ids: Sequence[UserId]
    ) -> Dict[UserId, Tuple[UserId, ...]]:
        return {
            uid: tuple(self._friends[uid]) for uid in user_ids if uid in self._friends
        }

    async def list(self, excluding: UserId, limit: int) -> List[UserProfile]:
        users = [u for uid, u in self._users.items() if uid != excluding]
        return users[:limit]

    async def get(self, user_id: UserId) -> UserProfile:
        try:
            return self._users[user_id]
        except KeyError:
            raise UserNotFoundError(user_id) from None


async def friend_profiles(
    friend_graph: FriendGraph,
    directory: UserDirectory,
    user_id: UserId,
) -> List[UserProfile]:
    """
    Profiles of ``user_id``'s friends, in friend-graph order.

    Friends that disappear from the directory between the two lookups are
    left out.
    """
    friend_ids = await friend_graph.friends_of(user_id)
    profiles = await asyncio.gather(
        *(directory.get(fid) for fid in friend_ids), return_exceptions=True
    )
    found: List[UserProfile] = []
    for profile in profiles:
        if isinstance(profile, UserNotFoundError):
            continue
        if isinstance(profile, BaseException):
            raise profile
        found.append(profile)
    return found


def _profile_from_record(record) -> UserProfile:
    return UserProfile(
        user_id=str(record["id"]),
        username=record.get("username") or str(record["id"]),
        full_name=record.get("full_name"),
        interests=tuple(record.get("interests") or ()),
    )


class Neo4jFriendGraph:
    """Friend graph backed by ``[:KNOWS]`` relationships."""

    def __init__(self, driver: AsyncDriver):
        self._driver = driver

    async def friends_of(self, user_id: UserId) -> Tuple[UserId, ...]:
        query = """
        MATCH (u:User {id: $user_id})
        OPTIONAL MATCH (u)-[:KNOWS]-(f:User)
        WITH u, f ORDER BY f.id
        RETURN u.id AS id, collect(DISTINCT f.id) AS friends
        """
        try:
            async with neo4j_session(self._driver) as session:
                result = await session.run(query, user_id=user_id)
                record = await result.single()
        except (Neo4jError, DriverError) as exc:
            raise UpstreamFetchError(f"friends_of({user_id}) failed: {exc}") from exc

        if record is None:
            raise UserNotFoundError(user_id)
        return tuple(str(fid) for fid in record["friends"])

    async def friends_of_many(
        self, user_ids: Sequence[UserId]
    ) -> Dict[UserId, Tuple[UserId, ...]]:
        """
        Adjacency of several users in a single round trip.

        Ids with no matching node are absent from the result.
        """
        query = """
        UNWIND $user_ids AS uid
        MATCH (u:User {id: uid})
        OPTIONAL MATCH (u)-[:KNOWS]-(f:User)
        WITH u, f ORDER BY f.id
        RETURN u.id AS id, collect(DISTINCT f.id) AS friends
        """
        try:
            async with neo4j_session(self._driver) as session:
                result = await session.run(query, user_ids=list(user_ids))
                records = await result.data()
        except (Neo4jError, DriverError) as exc:
            raise UpstreamFetchError(f"friends_of_many failed: {exc}") from exc

        return {
            str(r["id"]): tuple(str(fid) for fid in r["friends"]) for r in records
        }


class Neo4jUserDirectory:
    """User directory backed by ``(:User)`` nodes."""

    def __init__(self, driver: AsyncDriver):
        self._driver = driver

    async def list(self, excluding: UserId, limit: int) -> List[UserProfile]:
        query = """
        MATCH (u:User)
        WHERE u.id <> $excluding
        RETURN u.id AS id, u.username AS username,
               u.full_name AS full_name, u.interests AS interests
        ORDER BY u.id
        LIMIT $limit
        """
        try:
            async with neo4j_session(self._driver) as session:
                result = await session.run(query, excluding=excluding, limit=limit)
                records = await result.data()
        except (Neo4jError, DriverError) as exc:
            raise UpstreamFetchError(f"directory listing failed: {exc}") from exc
        return [_profile_from_record(r) for r in records]

    async def get(self, user_id: UserId) -> UserProfile:
        query = """
        MATCH (u:User {id: $user_id})
        RETURN u.id AS id, u.username AS username,
               u.full_name AS full_name, u.interests AS interests
        """
        try:
            async with neo4j_session(self._driver) as session:
                result = await session.run(query, user_id=user_id)
                record = await result.single()
        except (Neo4jError, DriverError) as exc:
            raise UpstreamFetchError(f"get({user_id}) failed: {exc}") from exc

        if record is None:
            raise UserNotFoundError(user_id)
        return _profile_from_record(record)
