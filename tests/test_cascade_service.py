import pytest

from content_tree.cache import cache_key
from content_tree.exceptions import HierarchyValidationError, NotFoundError, PartialCascadeFailure
from content_tree.hierarchy import LEVELS, get_spec
from content_tree.models.enums import CascadeOperation, Level, Status
from content_tree.services.cascade_service import CascadeEngine


def statuses(store, level):
    return {record.name: record.status for record in store.all(level)}


def assert_no_orphans(store):
    for level in LEVELS[1:]:
        spec = get_spec(level)
        for record in store.all(level):
            for field in spec.ancestor_fields:
                ancestor_level = next(l for l in LEVELS if get_spec(l).ref_field == field)
                assert record.refs[field] in store.records[ancestor_level], (
                    f"{level.value} {record.name} points at a missing {ancestor_level.value}"
                )


@pytest.fixture
def engine(store, cache):
    return CascadeEngine(store, cache)


# ============================================================================
# Status cascade
# ============================================================================

async def test_deactivating_subject_reaches_every_descendant(store, engine, jee):
    result = await engine.apply_status_cascade(Level.SUBJECT, jee["Physics"].id, Status.INACTIVE)

    assert result.operation == CascadeOperation.STATUS
    assert result.counts == {
        Level.SUBJECT: 1,
        Level.UNIT: 2,
        Level.CHAPTER: 3,
        Level.TOPIC: 4,
        Level.SUBTOPIC: 8,
    }
    assert result.total_descendants == 17
    assert result.summary() == (
        "Subject deactivated and all its 17 children were also deactivated"
    )

    for name in ("Physics", "Mechanics", "Kinematics", "Laws Of Motion", "Latent Heat"):
        record = next(
            r for level in LEVELS for r in store.all(level) if r.name == name
        )
        assert record.status == Status.INACTIVE
    # Chemistry branch untouched
    assert store.by_name(Level.SUBJECT, "Chemistry").status == Status.ACTIVE
    assert store.by_name(Level.SUBTOPIC, "Spectral Lines").status == Status.ACTIVE


async def test_status_cascade_never_touches_ancestors_or_siblings(store, engine, jee):
    await engine.apply_status_cascade(Level.CHAPTER, jee["Kinematics"].id, "inactive")

    assert store.by_name(Level.EXAM, "JEE").status == Status.ACTIVE
    assert store.by_name(Level.SUBJECT, "Physics").status == Status.ACTIVE
    assert store.by_name(Level.UNIT, "Mechanics").status == Status.ACTIVE
    assert store.by_name(Level.CHAPTER, "Dynamics").status == Status.ACTIVE
    assert store.by_name(Level.TOPIC, "Projectile Motion").status == Status.INACTIVE
    assert store.by_name(Level.TOPIC, "Laws Of Motion").status == Status.ACTIVE


async def test_reactivation_restores_descendants(store, engine, jee):
    await engine.apply_status_cascade(Level.UNIT, jee["Mechanics"].id, Status.INACTIVE)
    result = await engine.apply_status_cascade(Level.UNIT, jee["Mechanics"].id, Status.ACTIVE)

    assert result.summary() == "Unit activated and all its 11 children were also activated"
    assert all(status == Status.ACTIVE for status in statuses(store, Level.SUBTOPIC).values())


async def test_status_cascade_is_idempotent(store, engine, jee):
    first = await engine.apply_status_cascade(Level.UNIT, jee["Thermodynamics"].id, "inactive")
    snapshot = {level: statuses(store, level) for level in LEVELS}
    second = await engine.apply_status_cascade(Level.UNIT, jee["Thermodynamics"].id, "inactive")

    assert first.counts == second.counts
    assert {level: statuses(store, level) for level in LEVELS} == snapshot


async def test_leaf_status_change_reports_no_children(engine, jee):
    result = await engine.apply_status_cascade(Level.SUBTOPIC, jee["Velocity"].id, "inactive")

    assert result.counts == {Level.SUBTOPIC: 1}
    assert result.total_descendants == 0
    assert result.summary() == "SubTopic deactivated successfully"


async def test_invalid_status_is_rejected_before_mutation(store, engine, jee):
    store.calls.clear()
    with pytest.raises(HierarchyValidationError):
        await engine.apply_status_cascade(Level.SUBJECT, jee["Physics"].id, "archived")
    assert not [call for call in store.calls if call[0].startswith("update")]


async def test_missing_target_raises_not_found(store, engine):
    with pytest.raises(NotFoundError):
        await engine.apply_status_cascade(Level.CHAPTER, "65a1b2c3d4e5f60718293a4b", "inactive")
    assert not [call for call in store.calls if call[0].startswith("update")]


async def test_status_failure_reports_completed_levels(store, engine, jee):
    store.fail_on.add(("update_many", Level.TOPIC))

    with pytest.raises(PartialCascadeFailure) as exc_info:
        await engine.apply_status_cascade(Level.SUBJECT, jee["Physics"].id, "inactive")

    failure = exc_info.value
    assert failure.failed_level == "topic"
    assert failure.completed_levels == ["subject", "unit", "chapter"]
    assert failure.counts == {"subject": 1, "unit": 2, "chapter": 3}
    assert failure.to_dict()["retryable"] is True
    assert failure.status_code == 500

    # Shallower levels were committed, deeper ones were not
    assert store.by_name(Level.CHAPTER, "Heat").status == Status.INACTIVE
    assert store.by_name(Level.TOPIC, "Calorimetry").status == Status.ACTIVE

    # Retrying after the fault clears converges
    store.fail_on.clear()
    await engine.apply_status_cascade(Level.SUBJECT, jee["Physics"].id, "inactive")
    assert store.by_name(Level.SUBTOPIC, "Second Law").status == Status.INACTIVE


# ============================================================================
# Delete cascade
# ============================================================================

async def test_delete_unit_removes_subtree_bottom_up(store, engine, jee):
    store.calls.clear()
    result = await engine.apply_delete_cascade(Level.UNIT, jee["Mechanics"].id)

    assert result.operation == CascadeOperation.DELETE
    assert result.counts == {
        Level.SUBTOPIC: 6,
        Level.TOPIC: 3,
        Level.CHAPTER: 2,
        Level.UNIT: 1,
    }
    assert result.completed_levels == [Level.SUBTOPIC, Level.TOPIC, Level.CHAPTER, Level.UNIT]
    assert result.summary() == "Unit deleted and all its 11 children were also deleted"

    deletes = [level for operation, level in store.calls if operation == "delete_many"]
    assert deletes == [Level.SUBTOPIC, Level.TOPIC, Level.CHAPTER, Level.UNIT]

    assert [r.name for r in store.all(Level.UNIT)] == ["Physical Chemistry", "Thermodynamics"]
    assert "Kinematics" not in statuses(store, Level.CHAPTER)
    assert "Displacement" not in statuses(store, Level.SUBTOPIC)
    assert_no_orphans(store)


async def test_delete_removes_detail_records(store, service, engine, jee):
    await service.save_details(Level.TOPIC, jee["Projectile Motion"].id, {"content": "<p>Range</p>"})
    await service.save_details(Level.SUBTOPIC, jee["Displacement"].id, {"content": "<p>dx</p>"})
    await service.save_details(Level.TOPIC, jee["Calorimetry"].id, {"content": "<p>Q</p>"})

    result = await engine.apply_delete_cascade(Level.CHAPTER, jee["Kinematics"].id)

    assert result.details_deleted == {Level.SUBTOPIC: 1, Level.TOPIC: 1}
    assert jee["Projectile Motion"].id not in store.details[Level.TOPIC]
    assert jee["Displacement"].id not in store.details[Level.SUBTOPIC]
    assert jee["Calorimetry"].id in store.details[Level.TOPIC]


async def test_delete_leaf_topic_with_details(store, service, engine, jee):
    await service.save_details(Level.TOPIC, jee["Bohr Model"].id, {"title": "Bohr"})
    result = await engine.apply_delete_cascade(Level.TOPIC, jee["Bohr Model"].id)

    assert result.counts == {Level.SUBTOPIC: 2, Level.TOPIC: 1}
    assert result.details_deleted == {Level.SUBTOPIC: 0, Level.TOPIC: 1}
    assert store.details[Level.TOPIC] == {}


async def test_delete_exam_leaves_other_exams(store, service, engine, jee):
    neet = await service.create(Level.EXAM, {"name": "neet"})
    await service.create(Level.SUBJECT, {"name": "biology", "exam_id": neet.id})

    await engine.apply_delete_cascade(Level.EXAM, jee["JEE"].id)

    assert [r.name for r in store.all(Level.EXAM)] == ["NEET"]
    assert [r.name for r in store.all(Level.SUBJECT)] == ["Biology"]
    for level in LEVELS[2:]:
        assert store.all(level) == []


async def test_delete_failure_is_retryable(store, engine, jee):
    store.fail_on.add(("delete_many", Level.TOPIC))

    with pytest.raises(PartialCascadeFailure) as exc_info:
        await engine.apply_delete_cascade(Level.UNIT, jee["Mechanics"].id)

    failure = exc_info.value
    assert failure.operation == "delete"
    assert failure.failed_level == "topic"
    assert failure.completed_levels == ["subtopic"]
    # The target itself survives a partial delete
    assert store.by_name(Level.UNIT, "Mechanics")
    assert store.by_name(Level.TOPIC, "Projectile Motion")

    store.fail_on.clear()
    result = await engine.apply_delete_cascade(Level.UNIT, jee["Mechanics"].id)
    assert result.counts[Level.SUBTOPIC] == 0
    assert result.counts[Level.TOPIC] == 3
    assert_no_orphans(store)


async def test_delete_missing_record(store, engine):
    with pytest.raises(NotFoundError):
        await engine.apply_delete_cascade(Level.UNIT, "65a1b2c3d4e5f60718293a4b")
    assert not [call for call in store.calls if call[0] == "delete_many"]


# ============================================================================
# Cache invalidation
# ============================================================================

async def test_cascade_invalidates_cached_tree(cache, projector, engine, jee):
    exam_id = jee["JEE"].id
    await projector.project(exam_id)
    key = cache_key(exam_id, "tree", Level.TOPIC.value, False)
    assert key in cache

    await engine.apply_status_cascade(Level.TOPIC, jee["Calorimetry"].id, "inactive")
    assert key not in cache

    tree = await projector.project(exam_id)
    heat = tree.children[0].children[1].children[0]
    assert heat.name == "Heat"
    assert heat.children == []


async def test_failed_cascade_still_invalidates(store, cache, projector, engine, jee):
    exam_id = jee["JEE"].id
    await projector.project(exam_id)
    store.fail_on.add(("update_many", Level.SUBTOPIC))

    with pytest.raises(PartialCascadeFailure):
        await engine.apply_status_cascade(Level.EXAM, exam_id, "inactive")
    assert cache_key(exam_id, "tree", Level.TOPIC.value, False) not in cache


async def test_reactivating_descendant_leaves_exam_inactive(store, engine, jee):
    await engine.apply_status_cascade(Level.EXAM, jee["JEE"].id, "inactive")
    for level in LEVELS:
        assert all(status == Status.INACTIVE for status in statuses(store, level).values())

    await engine.apply_status_cascade(Level.CHAPTER, jee["Heat"].id, "active")
    assert store.by_name(Level.EXAM, "JEE").status == Status.INACTIVE
    assert store.by_name(Level.UNIT, "Thermodynamics").status == Status.INACTIVE
    assert store.by_name(Level.SUBTOPIC, "Latent Heat").status == Status.ACTIVE
