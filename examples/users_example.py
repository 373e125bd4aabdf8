#!/usr/bin/env python3
r"""
GremlinAlchemy Models Example

Defines two models, connects to a Titan graph served by Rexster
(http://localhost:8182/graphs/graph/tp/gremlin by default), then inserts,
updates, relates and finds vertices.

    GREMLIN_HOST=titan.local python examples/users_example.py
"""

import asyncio
import logging
import os
from datetime import datetime

from gremlinalchemy import GremlinAlchemyError, Mapper, Schema
from gremlinalchemy.mapper import READY


# =============================================================================
# DEFINE MODELS
# =============================================================================

mapper = Mapper()

User = mapper.model(
    "User",
    Schema({
        "name": {"type": str, "indexed": True},
        "email": {"type": str, "unique": True},
        "age": int,
        "joined": "date",
    }),
)

Project = mapper.model(
    "Project",
    Schema({
        "code": {"type": str, "unique": True},
        "title": str,
        "budget": "number",
    }),
    scripts="""
def findById(id) {
  g.v(id)
}
""",
)


# =============================================================================
# EXAMPLE DEMONSTRATION
# =============================================================================

async def demonstrate_models():
    print("🚀 GremlinAlchemy Models Demo")
    print("=" * 60)

    mapper.on(READY, lambda connection: print(f"\n📊 Connected to {connection.settings.url}"))
    await mapper.connect({
        "host": os.environ.get("GREMLIN_HOST", "localhost"),
        "port": int(os.environ.get("GREMLIN_PORT", 8182)),
        "graph": os.environ.get("GREMLIN_GRAPH", "graph"),
        "client": os.environ.get("GREMLIN_CLIENT", "titan"),
    })

    report = mapper.index_report
    print(f"   Index keys: {len(report.existing)} existing, {len(report.created)} created")

    # =============================================================================
    # 1. INSERT
    # =============================================================================

    print(f"\n1️⃣ Inserting vertices")
    print("-" * 40)

    alice = await User(name="Alice Johnson", email="alice@techcorp.com", age=28, joined=datetime.now()).save()
    bob = await User(name="Bob Chen", email="bob@example.com", age=24).save()
    analytics = await Project(code="AI2024", title="Analytics Platform", budget=500000.0).save()

    for model in (alice, bob, analytics):
        print(f"✅ {model!r} -> {model.to_object()}")

    # =============================================================================
    # 2. UPDATE
    # =============================================================================

    print(f"\n2️⃣ Updating vertices")
    print("-" * 40)

    bob.age = 25
    await bob.save()
    print(f"✅ {bob.name} is now {bob.age}")

    # =============================================================================
    # 3. RELATE
    # =============================================================================

    print(f"\n3️⃣ Creating edges")
    print("-" * 40)

    follows = await alice.add_outgoing_edge(bob, "follows", {"since": 2023})
    leads = await alice.add_outgoing_edge(analytics, "leads")
    print(f"✅ {follows.out_v} -[{follows.label}]-> {follows.in_v}")
    print(f"✅ {leads.out_v} -[{leads.label}]-> {leads.in_v}")

    # =============================================================================
    # 4. FIND
    # =============================================================================

    print(f"\n4️⃣ Finding vertices")
    print("-" * 40)

    found = await User.find_by_email("alice@techcorp.com")
    print(f"✅ find_by_email: {[user.name for user in found]}")

    project = await Project.find_by_id(analytics.id)
    print(f"✅ find_by_id (script): {project.title if project else None}")

    followers = await User.find("g.v(id).in(label)", id=bob.id, label="follows")
    print(f"✅ followers of {bob.name}: {[user.name for user in followers]}")


async def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        await demonstrate_models()
        return True
    except GremlinAlchemyError as e:
        print(f"\n❌ Demo failed: {e}")
        return False
    finally:
        await mapper.disconnect()


if __name__ == "__main__":
    success = asyncio.run(main())

    if success:
        print(f"\n🎊 Demo completed successfully!")
    else:
        print(f"\n💥 Demo encountered errors.")
