import os

os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017/content_tree_test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-the-content-tree-suite")

import pytest

from content_tree.cache import TreeCache
from content_tree.hierarchy import child_level, get_spec
from content_tree.models.enums import Level
from content_tree.services.content_service import ContentService
from content_tree.services.navigation_service import NavigationResolver
from content_tree.services.projection_service import TreeProjector
from content_tree.services.resolver_service import IdentityResolver

from .memory_store import MemoryEntityStore


# JEE
#   Physics (1)
#     Mechanics (1)
#       Kinematics (1): Motion In A Straight Line, Projectile Motion
#       Dynamics (2): Laws Of Motion
#     Thermodynamics (2)
#       Heat (1): Calorimetry
#   Chemistry (2)
#     Physical Chemistry (1)
#       Atomic Structure (1): Bohr Model
# Every topic holds two subtopics.
SAMPLE_TREE = {
    "Physics": {
        "Mechanics": {
            "Kinematics": {
                "Motion In A Straight Line": ["Displacement", "Velocity"],
                "Projectile Motion": ["Horizontal Projection", "Oblique Projection"],
            },
            "Dynamics": {
                "Laws Of Motion": ["First Law", "Second Law"],
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
            },
        },
    },
}


async def build_tree(service, exam_name="JEE", tree=None):
    """Create an exam and its subtree; returns the records keyed by name"""
    records = {}
    exam = await service.create(Level.EXAM, {"name": exam_name})
    records[exam.name] = exam

    async def grow(level, parent, branch):
        for name in branch:
            record = await service.create(
                level, {"name": name, get_spec(level).parent_field: parent.id}
            )
            records[record.name] = record
            if isinstance(branch, dict) and branch[name]:
                await grow(child_level(level), record, branch[name])

    await grow(Level.SUBJECT, exam, SAMPLE_TREE if tree is None else tree)
    return records


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def store():
    return MemoryEntityStore()


@pytest.fixture
def cache():
    return TreeCache(max_entries=100, ttl_seconds=60)


@pytest.fixture
def service(store, cache):
    return ContentService(store, cache)


@pytest.fixture
def projector(store, cache):
    return TreeProjector(store, cache)


@pytest.fixture
def navigator(store, projector):
    return NavigationResolver(projector, IdentityResolver(store))


@pytest.fixture
async def jee(service):
    return await build_tree(service)
