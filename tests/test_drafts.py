import pytest
import sqlalchemy as sa

from app import drafts, editing
from app.exceptions import NotFound, ConsistencyViolation, WorkoutStateError
from app.models import Workout, WorkoutStatus, ExerciseInstance, WorkoutSet, PartnerLink, GroupMember, NO_SUPERSET
from app.repository import Repository


def count(db, model, *criteria):
    return db.session.scalar(sa.select(sa.func.count()).select_from(model).where(*criteria))


def exercises_of(db, workout_id):
    db.session.expire_all()
    return db.session.scalars(
        sa.select(ExerciseInstance)
        .where(ExerciseInstance.workout_id == workout_id)
        .order_by(ExerciseInstance.sort_number)
    ).all()


def snapshot(db, workout_id):
    # Inhoud van een workout zonder ids: (definitie, positie, [(set, reps, gewicht)])
    return [
        (e.exercise_definition_id, e.sort_number, [(s.set_number, s.reps, s.weight_kg) for s in e.sets])
        for e in exercises_of(db, workout_id)
    ]


def test_create_workout_starts_empty_draft(db, user, fresh):
    workout_id = drafts.create_workout(user.id)
    workout = fresh(Workout, workout_id)
    assert workout.status == WorkoutStatus.DRAFT
    assert workout.name == 'Gym Workout'
    assert workout.original_workout_id is None
    assert workout.activity_time is not None
    assert exercises_of(db, workout_id) == []


def test_create_draft_copy_copies_full_tree(db, make_workout, fresh):
    original = make_workout([[(10, 60.0), (8, 70.0)], [(12, 20.0), (12, 20.0), (10, 22.5)], [(5, 100.0)]],
                            notes='heavy day')

    draft_id = drafts.create_draft_copy(original.id)

    draft = fresh(Workout, draft_id)
    assert draft_id != original.id
    assert draft.status == WorkoutStatus.DRAFT
    assert draft.original_workout_id == original.id
    assert draft.name == 'Push Day'
    assert draft.notes == 'heavy day'
    assert snapshot(db, draft_id) == snapshot(db, original.id)
    assert count(db, ExerciseInstance, ExerciseInstance.workout_id == draft_id) == 3
    draft_exercise_ids = [e.id for e in exercises_of(db, draft_id)]
    assert count(db, WorkoutSet, WorkoutSet.exercise_instance_id.in_(draft_exercise_ids)) == 6
    assert not set(draft_exercise_ids) & {e.id for e in exercises_of(db, original.id)}


def test_create_draft_copy_remaps_partner_links(db, make_workout):
    original = make_workout([[(10, 50.0)], [(10, 30.0)], [(8, 80.0)]])
    first, second, third = exercises_of(db, original.id)
    first.superset = PartnerLink(second.id)
    db.session.commit()

    draft_id = drafts.create_draft_copy(original.id)

    copy_first, copy_second, copy_third = exercises_of(db, draft_id)
    assert copy_first.superset == PartnerLink(copy_second.id)
    assert copy_first.superset != PartnerLink(second.id)
    assert copy_second.superset == NO_SUPERSET
    assert copy_third.superset == NO_SUPERSET
    # bron blijft ongewijzigd
    assert exercises_of(db, original.id)[0].superset == PartnerLink(second.id)


def test_create_draft_copy_remints_superset_groups(db, make_workout):
    original = make_workout([[(10, 50.0)], [(10, 30.0)], [(8, 80.0)]])
    first, second, _ = exercises_of(db, original.id)
    first.superset = GroupMember('source-group', 0)
    second.superset = GroupMember('source-group', 1)
    db.session.commit()

    draft_id = drafts.create_draft_copy(original.id)

    copy_first, copy_second, copy_third = exercises_of(db, draft_id)
    assert isinstance(copy_first.superset, GroupMember)
    assert copy_first.superset.group_id != 'source-group'
    assert copy_first.superset.group_id == copy_second.superset.group_id
    assert (copy_first.superset.order, copy_second.superset.order) == (0, 1)
    assert copy_third.superset == NO_SUPERSET


def test_create_draft_copy_missing_workout_raises_not_found(db, user):
    with pytest.raises(NotFound):
        drafts.create_draft_copy(4242)
    assert count(db, Workout) == 0


def test_create_draft_copy_rejects_partner_outside_workout(db, make_workout):
    original = make_workout([[(10, 50.0)], [(10, 30.0)]])
    elsewhere = make_workout([[(5, 5.0)]], name='Other')
    stray = exercises_of(db, elsewhere.id)[0]
    exercises_of(db, original.id)[0].superset = PartnerLink(stray.id)
    db.session.commit()

    with pytest.raises(ConsistencyViolation):
        drafts.create_draft_copy(original.id)

    assert count(db, Workout) == 2
    assert count(db, ExerciseInstance) == 3
    assert count(db, WorkoutSet) == 3


def test_create_draft_copy_rejects_partner_cycle(db, make_workout):
    original = make_workout([[(10, 50.0)], [(10, 30.0)]])
    first, second = exercises_of(db, original.id)
    first.superset = PartnerLink(second.id)
    second.superset = PartnerLink(first.id)
    db.session.commit()

    with pytest.raises(ConsistencyViolation):
        drafts.create_draft_copy(original.id)
    assert count(db, Workout) == 1


def test_failure_during_remap_leaves_no_rows(db, make_workout, monkeypatch):
    original = make_workout([[(10, 50.0), (10, 50.0)], [(10, 30.0)]])

    def broken_remap(repo, source, id_map):
        raise RuntimeError("injected failure in pass 2")

    monkeypatch.setattr(drafts, '_remap_supersets', broken_remap)

    with pytest.raises(RuntimeError):
        drafts.create_draft_copy(original.id)

    assert count(db, Workout) == 1
    assert count(db, ExerciseInstance) == 2
    assert count(db, WorkoutSet) == 3


def test_editing_the_copy_leaves_source_untouched(db, make_workout):
    original = make_workout([[(10, 50.0)], [(8, 30.0), (8, 30.0)]])
    before = snapshot(db, original.id)

    draft_id = drafts.create_draft_copy(original.id)
    copy_first, copy_second = exercises_of(db, draft_id)
    editing.add_set(copy_first.id, reps=6, weight_kg=55.0)
    editing.delete_set(copy_second.sets[0].id)
    editing.delete_exercise(copy_second.id)

    assert snapshot(db, original.id) == before
    assert len(snapshot(db, draft_id)) == 1


def test_finalize_edit_case_transfers_exercises(db, make_workout, fresh):
    original = make_workout([[(10, 50.0)], [(8, 30.0)]], notes='old notes')
    draft_id = drafts.create_draft_copy(original.id)
    copy_first, copy_second = exercises_of(db, draft_id)
    editing.add_set(copy_first.id, reps=9, weight_kg=52.5)
    editing.delete_exercise(copy_second.id)
    editing.rename_workout(draft_id, 'Push Day v2')
    expected = snapshot(db, draft_id)
    expected_ids = [e.id for e in exercises_of(db, draft_id)]

    final_id = drafts.finalize_draft(draft_id, 'felt strong')

    assert final_id == original.id
    assert fresh(Workout, draft_id) is None
    workout = fresh(Workout, original.id)
    assert workout.status == WorkoutStatus.ACTIVE
    assert workout.notes == 'felt strong'
    assert workout.name == 'Push Day v2'
    assert snapshot(db, original.id) == expected
    assert [e.id for e in exercises_of(db, original.id)] == expected_ids
    assert count(db, ExerciseInstance) == 1
    assert count(db, WorkoutSet) == 2


def test_finalize_creation_case_promotes_draft(db, user, definitions, fresh):
    draft_id = drafts.create_workout(user.id)
    instance = editing.add_exercise(draft_id, definitions[0].id)
    editing.add_set(instance.id, reps=5, weight_kg=100.0)

    final_id = drafts.finalize_draft(draft_id, 'first session')

    assert final_id == draft_id
    workout = fresh(Workout, draft_id)
    assert workout.status == WorkoutStatus.ACTIVE
    assert workout.notes == 'first session'
    assert len(exercises_of(db, draft_id)) == 1


def test_finalize_requires_draft(db, make_workout):
    active = make_workout([[(10, 50.0)]])
    with pytest.raises(WorkoutStateError):
        drafts.finalize_draft(active.id, 'notes')


def test_finalize_missing_draft_raises_not_found(db, user):
    with pytest.raises(NotFound):
        drafts.finalize_draft(999, 'notes')


def test_failure_during_finalize_transfers_nothing(db, make_workout, monkeypatch, fresh):
    original = make_workout([[(10, 50.0)], [(8, 30.0)]], notes='old notes')
    draft_id = drafts.create_draft_copy(original.id)
    editing.delete_exercise(exercises_of(db, draft_id)[1].id)
    original_before = snapshot(db, original.id)
    draft_before = snapshot(db, draft_id)

    def broken_update_where(self, model, criteria, fields):
        raise RuntimeError("injected failure while moving exercises")

    monkeypatch.setattr(Repository, 'update_where', broken_update_where)

    with pytest.raises(RuntimeError):
        drafts.finalize_draft(draft_id, 'new notes')

    assert snapshot(db, original.id) == original_before
    assert snapshot(db, draft_id) == draft_before
    assert fresh(Workout, original.id).notes == 'old notes'
    assert fresh(Workout, draft_id).status == WorkoutStatus.DRAFT


def test_finalize_after_original_vanished_keeps_draft(db, make_workout, fresh):
    original_id = make_workout([[(10, 50.0)], [(8, 30.0), (6, 35.0)]]).id
    draft_id = drafts.create_draft_copy(original_id)
    drafts.delete_workout_subtree(original_id)
    draft_before = snapshot(db, draft_id)

    with pytest.raises(NotFound):
        drafts.finalize_draft(draft_id, 'notes')

    draft = fresh(Workout, draft_id)
    assert draft.status == WorkoutStatus.DRAFT
    assert draft.original_workout_id == original_id
    assert snapshot(db, draft_id) == draft_before
    assert count(db, WorkoutSet) == 3


def test_superset_scenario_copy_then_finalize(db, make_workout, fresh):
    # Workout met oefening A (partner B) en B; kopie wijst naar kopie(B), afronden geeft het origineel terug.
    original = make_workout([[(10, 40.0)], []])
    a, b = exercises_of(db, original.id)
    a.superset = PartnerLink(b.id)
    db.session.commit()

    draft_id = drafts.create_draft_copy(original.id)
    assert fresh(Workout, draft_id).original_workout_id == original.id
    copy_a, copy_b = exercises_of(db, draft_id)
    assert copy_a.superset == PartnerLink(copy_b.id)

    assert drafts.finalize_draft(draft_id, 'felt strong') == original.id

    final_a, final_b = exercises_of(db, original.id)
    assert {final_a.id, final_b.id} == {copy_a.id, copy_b.id}
    assert final_a.superset == PartnerLink(final_b.id)
    assert fresh(Workout, original.id).notes == 'felt strong'
    assert fresh(Workout, draft_id) is None


def test_discard_new_draft_deletes_subtree(db, make_workout, fresh):
    draft = make_workout([[(10, 50.0), (10, 50.0)], [(8, 30.0)]], status=WorkoutStatus.DRAFT)

    assert drafts.discard_draft(draft.id) is None

    assert fresh(Workout, draft.id) is None
    assert count(db, ExerciseInstance) == 0
    assert count(db, WorkoutSet) == 0


def test_discard_is_idempotent(db, make_workout):
    draft = make_workout([[(10, 50.0)]], status=WorkoutStatus.DRAFT)
    drafts.discard_draft(draft.id)

    assert drafts.discard_draft(draft.id) is None
    assert drafts.discard_draft(123456) is None


def test_replayed_discard_leaves_newer_workout_alone(db, user, fresh):
    first = drafts.create_workout(user.id)
    drafts.discard_draft(first)
    second = drafts.create_workout(user.id)

    assert second != first
    assert drafts.discard_draft(first) is None
    assert fresh(Workout, second) is not None


def test_discard_edit_draft_keeps_original(db, make_workout, fresh):
    original = make_workout([[(10, 50.0)], [(8, 30.0)]])
    before = snapshot(db, original.id)
    draft_id = drafts.create_draft_copy(original.id)
    editing.delete_exercise(exercises_of(db, draft_id)[0].id)

    assert drafts.discard_draft(draft_id) == original.id

    assert fresh(Workout, draft_id) is None
    assert fresh(Workout, original.id).status == WorkoutStatus.ACTIVE
    assert snapshot(db, original.id) == before
    assert count(db, ExerciseInstance) == 2


def test_discard_refuses_active_workout(db, make_workout):
    active = make_workout([[(10, 50.0)]])
    with pytest.raises(WorkoutStateError):
        drafts.discard_draft(active.id)
    assert count(db, Workout) == 1


def test_delete_workout_subtree_missing_raises(db, user):
    with pytest.raises(NotFound):
        drafts.delete_workout_subtree(77)


def test_delete_workout_removes_pending_edit_drafts(db, make_workout, fresh):
    original = make_workout([[(10, 50.0)]])
    keep = make_workout([[(3, 3.0)]], name='Keep')
    draft_id = drafts.create_draft_copy(original.id)

    drafts.delete_workout(original.id)

    assert fresh(Workout, original.id) is None
    assert fresh(Workout, draft_id) is None
    assert fresh(Workout, keep.id) is not None
    assert count(db, ExerciseInstance) == 1
    assert count(db, WorkoutSet) == 1


def test_open_for_edit_reuses_pending_draft(db, make_workout):
    original = make_workout([[(10, 50.0)]])

    draft_id = drafts.open_for_edit(original.id)

    assert draft_id != original.id
    assert drafts.open_for_edit(original.id) == draft_id
    assert drafts.open_for_edit(draft_id) == draft_id
    assert count(db, Workout) == 2


def test_list_workouts_hides_drafts_and_other_users(db, make_workout, other_user):
    older = make_workout([], name='Older')
    newer = make_workout([], name='Newer')
    make_workout([], name='Draft', status=WorkoutStatus.DRAFT)
    make_workout([], name='Not mine', owner=other_user)

    workouts = drafts.list_workouts(older.user_id)

    assert {w.id for w in workouts} == {older.id, newer.id}
