"""
Exceptions raised by the graph accessors and the recommendation engine.
"""


class PeopleRecError(Exception):
    """Base class for service errors."""


class UserNotFoundError(PeopleRecError):
    """The requested user id does not exist."""

    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class UpstreamFetchError(PeopleRecError):
    """A friend-graph or directory backend call failed."""
