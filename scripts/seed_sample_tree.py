import asyncio
import sys
from pathlib import Path

# Add parent directory to sys.path for absolute imports
sys.path.append(str(Path(__file__).parent.parent))

from content_tree.db import init_db
from content_tree.exceptions import NotFoundError
from content_tree.hierarchy import child_level, get_spec
from content_tree.models.enums import Level
from content_tree.services.content_service import ContentService
from content_tree.store import BeanieEntityStore

SEED_ACTOR = "system_seed"

SAMPLE_EXAM = "JEE"
SAMPLE_TREE = {
    "Physics": {
        "Mechanics": {
            "Kinematics": {
                "Motion In A Straight Line": ["Displacement", "Velocity", "Acceleration"],
                "Projectile Motion": ["Horizontal Projection", "Oblique Projection"],
            },
            "Dynamics": {
                "Laws Of Motion": ["First Law", "Second Law", "Third Law"],
                "Friction": ["Static Friction", "Kinetic Friction"],
            },
        },
        "Thermodynamics": {
            "Heat": {
                "Calorimetry": ["Specific Heat", "Latent Heat"],
            },
        },
    },
    "Chemistry": {
        "Physical Chemistry": {
            "Atomic Structure": {
                "Bohr Model": ["Energy Levels", "Spectral Lines"],
                "Quantum Numbers": ["Principal", "Azimuthal"],
            },
        },
    },
    "Mathematics": {
        "Calculus": {
            "Limits": {
                "Standard Limits": ["Algebraic", "Trigonometric"],
            },
        },
    },
}


async def seed_branch(service: ContentService, level: Level, parent, branch) -> int:
    """Create every record of ``branch`` under ``parent``; returns the count"""
    created = 0
    for name in branch:
        record = await service.create(
            level,
            {
                "name": name,
                get_spec(level).parent_field: parent.id,
                "title": name,
                "meta_description": f"{name} notes for {SAMPLE_EXAM}",
            },
            actor=SEED_ACTOR,
        )
        created += 1
        if level == Level.TOPIC:
            await service.save_details(
                level,
                record.id,
                {"content": f"<h2>{name}</h2><p>Overview of {name.lower()}.</p>"},
            )
        if isinstance(branch, dict) and branch[name]:
            created += await seed_branch(service, child_level(level), record, branch[name])
    return created


async def seed_sample_tree():
    """Seed the database with a sample exam tree"""
    print("🔌 Connecting to database...")
    await init_db()
    print("✅ Database connected")

    service = ContentService(BeanieEntityStore())

    try:
        existing = await service.get(Level.EXAM, SAMPLE_EXAM)
    except NotFoundError:
        existing = None
    if existing:
        print(f"⚠️  Sample exam '{existing.name}' already exists ({existing.id}), skipping")
        return

    exam = await service.create(Level.EXAM, {"name": SAMPLE_EXAM}, actor=SEED_ACTOR)
    print(f"Inserted exam: {exam.name}")
    created = await seed_branch(service, Level.SUBJECT, exam, SAMPLE_TREE)
    print(f"✅ Created {created} records under {exam.name}")


if __name__ == "__main__":
    asyncio.run(seed_sample_tree())
