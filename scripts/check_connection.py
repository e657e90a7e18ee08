"""
Check the Neo4j connection and report what the recommendation API will see.
Run this to diagnose connection issues.
"""

import sys
import traceback

from neo4j import GraphDatabase

from peoplerec.config import get_settings


def check_connection():
    """Test Neo4j connection and show basic stats."""
    settings = get_settings()
    print(f"Testing connection to: {settings.neo4j_uri}")
    print(f"User: {settings.neo4j_user}")
    print(f"Password: {'*' * len(settings.neo4j_password)}")
    print()

    try:
        driver = GraphDatabase.driver(
            settings.neo4j_uri,
            auth=(settings.neo4j_user, settings.neo4j_password),
        )

        with driver.session() as session:
            session.run("RETURN 1 AS test").single()
            print("✓ Connection successful!")

            record = session.run("MATCH (u:User) RETURN count(u) AS cnt").single()
            print(f"✓ Users in database: {record['cnt'] if record else 0}")

            record = session.run("MATCH ()-[r:KNOWS]->() RETURN count(r) AS cnt").single()
            print(f"✓ KNOWS relationships: {record['cnt'] if record else 0}")

            lonely_query = (
                "MATCH (u:User) WHERE NOT (u)-[:KNOWS]-() "
                "RETURN count(u) AS cnt"
            )
            record = session.run(lonely_query).single()
            print(f"✓ Users without friends: {record['cnt'] if record else 0}")

            records = session.run(
                "MATCH (u:User) RETURN u.id AS id, u.username AS username LIMIT 5"
            ).data()
            if records:
                print("\nSample users:")
                for r in records:
                    print(f"  - id: {r['id']}, username: {r.get('username') or 'N/A'}")

        driver.close()
        print("\n✓ All checks passed!")

    except Exception as e:  # pylint: disable=broad-exception-caught
        print(f"\n✗ Error: {e}")
        traceback.print_exc()
        return False

    return True


if __name__ == "__main__":
    check_success = check_connection()  # pylint: disable=invalid-name
    sys.exit(0 if check_success else 1)
