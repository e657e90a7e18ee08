"""
Pydantic models for API responses.

Fields are snake_case in Python and camelCase on the wire.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .graph import UserProfile
from .recommendation import RecommendationRecord


class User(BaseModel):
    """Public user representation."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    full_name: str = Field(alias="fullName")
    interests: List[str] = []

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "User":
        return cls(
            id=profile.user_id,
            username=profile.username,
            full_name=profile.full_name or profile.username,
            interests=list(profile.interests),
        )


class MutualFriend(BaseModel):
    """Short profile of a friend shared with a candidate."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    full_name: str = Field(alias="fullName")

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "MutualFriend":
        return cls(
            id=profile.user_id,
            username=profile.username,
            full_name=profile.full_name or profile.username,
        )


class Recommendation(BaseModel):
    """One "people you may know" entry."""

    model_config = ConfigDict(populate_by_name=True)

    user: User
    mutual_friends: int = Field(alias="mutualFriends")
    mutual_friend_ids: List[str] = Field(alias="mutualFriendIds")
    mutual_friends_details: List[MutualFriend] = Field(alias="mutualFriendsDetails")
    common_interests: int = Field(alias="commonInterests")

    @classmethod
    def from_record(cls, record: RecommendationRecord) -> "Recommendation":
        return cls(
            user=User.from_profile(record.candidate),
            mutual_friends=record.mutual_friend_count,
            mutual_friend_ids=list(record.mutual_friend_ids),
            mutual_friends_details=[
                MutualFriend.from_profile(p) for p in record.mutual_friend_details
            ],
            common_interests=record.common_interest_count,
        )


class RecommendationResponse(BaseModel):
    """Ranked recommendations for one user."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    recommendations: List[Recommendation]


class FriendListResponse(BaseModel):
    """Friends of one user."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    friends: List[User]
