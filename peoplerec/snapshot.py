"""
CSV snapshot of the social graph.

Expected files inside the snapshot directory:
- users.csv: id, username, full_name, interests (';'-separated tags)
- friendships.csv: user_id, friend_id (one undirected edge per row)

Blank cells are treated as missing values.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from .graph import InMemorySocialGraph, UserProfile


logger = logging.getLogger(__name__)

USERS_FILE = "users.csv"
FRIENDSHIPS_FILE = "friendships.csv"


def _cell(row: dict, column: str) -> Optional[str]:
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def _split_interests(value: Optional[str]) -> Tuple[str, ...]:
    if value is None:
        return ()
    return tuple(tag.strip() for tag in value.split(";") if tag.strip())


def load_users(directory: Path | str) -> List[UserProfile]:
    """Load user profiles, in file order."""
    df = pd.read_csv(Path(directory) / USERS_FILE, dtype=str, keep_default_na=False)
    profiles = []
    for row in df.to_dict("records"):
        user_id = _cell(row, "id")
        if user_id is None:
            continue
        profiles.append(
            UserProfile(
                user_id=user_id,
                username=_cell(row, "username") or user_id,
                full_name=_cell(row, "full_name"),
                interests=_split_interests(_cell(row, "interests")),
            )
        )
    return profiles


def load_friendships(directory: Path | str) -> pd.DataFrame:
    """Load friend edges with self-loops and duplicate pairs removed."""
    df = pd.read_csv(Path(directory) / FRIENDSHIPS_FILE, dtype=str, keep_default_na=False)
    df = df[["user_id", "friend_id"]].apply(lambda col: col.str.strip())
    df = df[(df["user_id"] != "") & (df["friend_id"] != "")]
    df = df[df["user_id"] != df["friend_id"]]
    # (a, b) and (b, a) are the same friendship.
    swap = df["user_id"] > df["friend_id"]
    pairs = pd.DataFrame(
        {
            "user_id": df["user_id"].where(~swap, df["friend_id"]),
            "friend_id": df["friend_id"].where(~swap, df["user_id"]),
        }
    )
    return pairs.drop_duplicates().reset_index(drop=True)


def known_edges(edges: pd.DataFrame, user_ids: Iterable[str]) -> pd.DataFrame:
    """Keep only edges whose endpoints are both known users."""
    ids = set(user_ids)
    mask = edges["user_id"].isin(ids) & edges["friend_id"].isin(ids)
    dropped = int((~mask).sum())
    if dropped:
        logger.warning("Skipping %d friendships that reference unknown users", dropped)
    return edges[mask].reset_index(drop=True)


def load_snapshot(directory: Path | str) -> InMemorySocialGraph:
    """Build an in-memory graph from the CSV files in ``directory``."""
    users = load_users(directory)
    edges = known_edges(load_friendships(directory), (u.user_id for u in users))
    return InMemorySocialGraph(
        users=users,
        edges=zip(edges["user_id"], edges["friend_id"]),
    )
