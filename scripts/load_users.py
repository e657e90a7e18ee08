"""
ETL script to load a social-graph CSV snapshot into Neo4j.

It reads the following files from the snapshot directory (default: ``data/``
at the project root, or the first command-line argument):
- users.csv
- friendships.csv

This script:
- Creates :User nodes with `id`, `username`, `full_name` and `interests`
- Creates one :KNOWS relationship per friendship (matched undirected by the API)
"""

from __future__ import annotations

import sys
from pathlib import Path

from neo4j import GraphDatabase

from peoplerec.config import get_settings
from peoplerec.snapshot import known_edges, load_friendships, load_users


PROJECT_ROOT = Path(__file__).resolve().parents[1]


def run(snapshot_dir: Path):
    """Main ETL entrypoint."""
    settings = get_settings()
    print(f"[ETL] Connecting to Neo4j at: {settings.neo4j_uri}")

    driver = GraphDatabase.driver(
        settings.neo4j_uri,
        auth=(settings.neo4j_user, settings.neo4j_password),
    )
    # Test connection
    with driver.session() as test_session:
        test_session.run("RETURN 1").single()
    print("[ETL] ✓ Connection successful")

    print(f"[ETL] Loading CSV files from {snapshot_dir}...")
    users = load_users(snapshot_dir)
    edges = known_edges(load_friendships(snapshot_dir), (u.user_id for u in users))
    print(f"[ETL] Loaded: {len(users)} users, {len(edges)} friendships")

    with driver.session() as session:
        print("[ETL] Creating User constraint...")
        session.run("CREATE CONSTRAINT IF NOT EXISTS FOR (u:User) REQUIRE u.id IS UNIQUE")
        print("[ETL] ✓ Constraint created")

        print(f"[ETL] Creating {len(users)} User nodes...")
        user_count = 0
        for user in users:
            session.run(
                """
                MERGE (u:User {id: $id})
                SET u.username = $username,
                    u.full_name = $full_name,
                    u.interests = $interests
                """,
                id=user.user_id,
                username=user.username,
                full_name=user.full_name,
                interests=list(user.interests),
            )
            user_count += 1
            if user_count % 1000 == 0:
                print(f"[ETL] Created {user_count} users...")

        print(f"[ETL] ✓ Created {user_count} User nodes")

        print(f"[ETL] Creating {len(edges)} KNOWS relationships...")
        edge_count = 0
        for _, row in edges.iterrows():
            session.run(
                """
                MATCH (a:User {id: $src}), (b:User {id: $dst})
                MERGE (a)-[:KNOWS]-(b)
                """,
                src=row["user_id"],
                dst=row["friend_id"],
            )
            edge_count += 1
            if edge_count % 10000 == 0:
                print(f"[ETL] Created {edge_count} relationships...")

        print(f"[ETL] ✓ Created {edge_count} KNOWS relationships")

    # Verify
    with driver.session() as verify_session:
        user_query = "MATCH (u:User) RETURN count(u) AS cnt"
        user_count_result = verify_session.run(user_query).single()
        knows_query = "MATCH ()-[r:KNOWS]->() RETURN count(r) AS cnt"
        knows_count_result = verify_session.run(knows_query).single()
        print(
            f"[ETL] Verification: {user_count_result['cnt']} users, "
            f"{knows_count_result['cnt']} KNOWS relationships"
        )

    driver.close()
    print("[ETL] ✓ ETL completed successfully")


if __name__ == "__main__":
    run(Path(sys.argv[1]) if len(sys.argv) > 1 else PROJECT_ROOT / "data")
