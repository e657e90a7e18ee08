"""
Tests for the friend-graph and user-directory accessors.
"""

import asyncio

import pytest
from neo4j.exceptions import ServiceUnavailable

from peoplerec.errors import UpstreamFetchError, UserNotFoundError
from peoplerec.graph import (
    BulkFriendGraph,
    InMemorySocialGraph,
    Neo4jFriendGraph,
    Neo4jUserDirectory,
    UserProfile,
    friend_profiles,
)


class FakeResult:
    def __init__(self, records):
        self._records = records

    async def single(self):
        return self._records[0] if self._records else None

    async def data(self):
        return list(self._records)


class FakeSession:
    def __init__(self, driver):
        self.driver = driver

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def run(self, query, **params):
        self.driver.queries.append((query, params))
        if self.driver.error is not None:
            raise self.driver.error
        return FakeResult(self.driver.records)


class FakeDriver:
    """Stands in for neo4j.AsyncDriver; every query returns ``records``."""

    def __init__(self, records=(), error=None):
        self.records = list(records)
        self.error = error
        self.queries = []
        self.sessions = 0

    def session(self):
        self.sessions += 1
        return FakeSession(self)


@pytest.fixture
def graph():
    users = [
        UserProfile(user_id="u1", username="alice", full_name="Alice"),
        UserProfile(user_id="u2", username="bob"),
        UserProfile(user_id="u3", username="carol", interests=("chess",)),
    ]
    return InMemorySocialGraph(users=users, edges=[("u1", "u2"), ("u3", "u1")])


def test_in_memory_friendship_is_symmetric(graph):
    assert asyncio.run(graph.friends_of("u1")) == ("u2", "u3")
    assert asyncio.run(graph.friends_of("u2")) == ("u1",)
    assert asyncio.run(graph.friends_of("u3")) == ("u1",)


def test_in_memory_unknown_user(graph):
    with pytest.raises(UserNotFoundError):
        asyncio.run(graph.friends_of("u9"))
    with pytest.raises(UserNotFoundError):
        asyncio.run(graph.get("u9"))


def test_in_memory_rejects_bad_edges(graph):
    with pytest.raises(ValueError):
        graph.add_friendship("u1", "u1")
    with pytest.raises(UserNotFoundError):
        graph.add_friendship("u1", "u9")


def test_in_memory_list_excludes_and_limits(graph):
    listed = asyncio.run(graph.list(excluding="u1", limit=10))
    assert [u.user_id for u in listed] == ["u2", "u3"]
    listed = asyncio.run(graph.list(excluding="u2", limit=1))
    assert [u.user_id for u in listed] == ["u1"]


def test_in_memory_bulk_skips_unknown(graph):
    adjacency = asyncio.run(graph.friends_of_many(["u2", "u9"]))
    assert adjacency == {"u2": ("u1",)}
    assert isinstance(graph, BulkFriendGraph)


def test_friend_profiles(graph):
    profiles = asyncio.run(friend_profiles(graph, graph, "u1"))
    assert [p.username for p in profiles] == ["bob", "carol"]


def test_friend_profiles_skips_missing_directory_entries(graph):
    directory = InMemorySocialGraph(users=[UserProfile(user_id="u3", username="carol")])
    profiles = asyncio.run(friend_profiles(graph, directory, "u1"))
    assert [p.user_id for p in profiles] == ["u3"]


def test_neo4j_friends_of():
    driver = FakeDriver(records=[{"id": "u1", "friends": ["u2", "u3"]}])
    friends = asyncio.run(Neo4jFriendGraph(driver).friends_of("u1"))

    assert friends == ("u2", "u3")
    query, params = driver.queries[0]
    assert "KNOWS" in query
    assert params == {"user_id": "u1"}


def test_neo4j_friends_of_unknown_user():
    driver = FakeDriver(records=[])
    with pytest.raises(UserNotFoundError):
        asyncio.run(Neo4jFriendGraph(driver).friends_of("u9"))


def test_neo4j_errors_become_upstream_failures():
    driver = FakeDriver(error=ServiceUnavailable("connection refused"))
    with pytest.raises(UpstreamFetchError):
        asyncio.run(Neo4jFriendGraph(driver).friends_of("u1"))
    with pytest.raises(UpstreamFetchError):
        asyncio.run(Neo4jFriendGraph(driver).friends_of_many(["u1"]))
    with pytest.raises(UpstreamFetchError):
        asyncio.run(Neo4jUserDirectory(driver).list(excluding="u1", limit=10))


def test_neo4j_friends_of_many():
    driver = FakeDriver(
        records=[
            {"id": "u2", "friends": ["u1"]},
            {"id": "u3", "friends": []},
        ]
    )
    adjacency = asyncio.run(Neo4jFriendGraph(driver).friends_of_many(("u2", "u3", "u9")))

    assert adjacency == {"u2": ("u1",), "u3": ()}
    assert driver.queries[0][1] == {"user_ids": ["u2", "u3", "u9"]}
    assert driver.sessions == 1


def test_neo4j_directory_list():
    driver = FakeDriver(
        records=[
            {"id": "u2", "username": "bob", "full_name": None, "interests": None},
            {"id": "u3", "username": "carol", "full_name": "Carol D", "interests": ["chess"]},
        ]
    )
    users = asyncio.run(Neo4jUserDirectory(driver).list(excluding="u1", limit=10))

    assert users == [
        UserProfile(user_id="u2", username="bob"),
        UserProfile(user_id="u3", username="carol", full_name="Carol D", interests=("chess",)),
    ]
    assert driver.queries[0][1] == {"excluding": "u1", "limit": 10}


def test_neo4j_directory_get():
    driver = FakeDriver(records=[{"id": "u1", "username": None, "full_name": "Alice"}])
    profile = asyncio.run(Neo4jUserDirectory(driver).get("u1"))
    assert profile == UserProfile(user_id="u1", username="u1", full_name="Alice")

    with pytest.raises(UserNotFoundError):
        asyncio.run(Neo4jUserDirectory(FakeDriver()).get("u9"))
