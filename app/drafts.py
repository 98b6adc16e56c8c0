"""Draft-workflow voor workouts.

Een workout wordt altijd als draft bewerkt. Een nieuwe workout begint als lege
draft; een bestaande actieve workout wordt eerst volledig gekopieerd naar een
draft met original_workout_id, die bij afronden de oefeningen van het origineel
vervangt. Elke operatie loopt in precies een databasetransactie.

De sessie van de gebruiker (welke draft open staat) wordt hier nooit gelezen of
geschreven; de HTTP-laag krijgt ids terug en beheert die zelf.
"""
import logging

import sqlalchemy as sa
from flask import current_app

from app.exceptions import ConsistencyViolation, WorkoutStateError
from app.models import (Workout, WorkoutStatus, ExerciseInstance, WorkoutSet,
                        NoSuperset, PartnerLink, GroupMember)
from app.repository import get_repository
from app.supersets import find_partner_cycle, new_group_id

logger = logging.getLogger(__name__)


def require_draft(workout):
    if not workout.is_draft:
        raise WorkoutStateError(
            f"Workout {workout.id} is {workout.status.value}; only drafts can be changed")


def create_workout(user_id, name=None, repository=None):
    # Nieuwe, lege draft-workout.
    repo = repository or get_repository()
    with repo.transaction():
        workout = Workout(
            user_id=user_id,
            type='GYM_WORKOUT',
            name=name or current_app.config.get('DEFAULT_WORKOUT_NAME', 'Gym Workout'),
            status=WorkoutStatus.DRAFT,
        )
        workout_id = repo.create(workout)
    logger.debug(f"Nieuwe draft-workout {workout_id} aangemaakt voor user {user_id}")
    return workout_id


def create_draft_copy(original_id, repository=None):
    """
    Maak een volledig losstaande draft-kopie van een workout.

    Notities:
        - Bron, oefeningen en sets worden binnen de transactie in een keer gelezen.
        - Pass 1 kopieert oefeningen en sets en houdt oud-id -> nieuw-id bij.
        - Pass 2 zet superset-verwijzingen om naar de nieuwe rijen; een kopie
          wijst nooit terug naar de bron.
    Returns:
        int: id van de nieuwe draft.
    """
    repo = repository or get_repository()
    with repo.transaction():
        source = repo.get_with_children(original_id)
        draft = Workout(
            user_id=source.user_id,
            type=source.type,
            name=source.name,
            notes=source.notes,
            activity_time=source.activity_time,
            status=WorkoutStatus.DRAFT,
            original_workout_id=source.id,
        )
        draft_id = repo.create(draft)
        id_map = _copy_exercises(repo, source, draft_id)
        _remap_supersets(repo, source, id_map)
    logger.debug(f"Draft {draft_id} gekopieerd van workout {original_id} ({len(id_map)} oefeningen)")
    return draft_id


def _copy_exercises(repo, source, draft_id):
    id_map = {}
    for exercise in source.exercises:
        copy = ExerciseInstance(
            workout_id=draft_id,
            exercise_definition_id=exercise.exercise_definition_id,
            sort_number=exercise.sort_number,
        )
        id_map[exercise.id] = repo.create(copy)
        for workout_set in exercise.sets:
            repo.session.add(WorkoutSet(
                exercise_instance_id=copy.id,
                set_number=workout_set.set_number,
                reps=workout_set.reps,
                weight_kg=workout_set.weight_kg,
                set_type=workout_set.set_type,
            ))
    repo.session.flush()
    return id_map


def _remap_supersets(repo, source, id_map):
    links = {exercise.id: exercise.superset_partner_id
             for exercise in source.exercises if exercise.superset_partner_id is not None}
    cycle = find_partner_cycle(links)
    if cycle:
        raise ConsistencyViolation(f"Workout {source.id} has a superset cycle: {cycle}")

    group_map = {}
    for exercise in source.exercises:
        superset = exercise.superset
        if isinstance(superset, NoSuperset):
            continue
        if exercise.id not in id_map:
            raise ConsistencyViolation(f"Exercise {exercise.id} was not copied")
        if isinstance(superset, PartnerLink):
            if superset.partner_id not in id_map:
                raise ConsistencyViolation(
                    f"Superset partner {superset.partner_id} of exercise {exercise.id} "
                    f"is not part of workout {source.id}")
            remapped = PartnerLink(id_map[superset.partner_id])
        else:
            if superset.group_id not in group_map:
                group_map[superset.group_id] = new_group_id()
            remapped = GroupMember(group_map[superset.group_id], superset.order)
        repo.update_fields(ExerciseInstance, id_map[exercise.id], {'superset': remapped})


def finalize_draft(draft_id, notes, repository=None):
    """
    Rond een draft af.

    Notities:
        - Bewerkkopie: oefeningen van het origineel worden verwijderd, die van de
          draft verhuizen naar het origineel (zelfde ids), naam en notities gaan
          mee en de lege draft verdwijnt.
        - Nieuwe workout: de draft wordt zelf actief.
    Returns:
        int: id van de workout die overblijft.
    """
    repo = repository or get_repository()
    with repo.transaction():
        draft = repo.get(Workout, draft_id)
        require_draft(draft)
        if draft.original_workout_id is None:
            repo.update_fields(Workout, draft.id, {'status': WorkoutStatus.ACTIVE, 'notes': notes})
            final_id = draft.id
        else:
            original = repo.get(Workout, draft.original_workout_id)
            _delete_exercises(repo, original.id)
            moved = repo.update_where(
                ExerciseInstance,
                [ExerciseInstance.workout_id == draft.id],
                {'workout_id': original.id},
            )
            repo.update_fields(Workout, original.id, {'name': draft.name, 'notes': notes})
            repo.delete_where(Workout, Workout.id == draft.id)
            repo.session.expire(original)
            final_id = original.id
            logger.debug(f"{moved} oefeningen van draft {draft_id} overgezet naar workout {final_id}")
    logger.debug(f"Draft {draft_id} afgerond als workout {final_id}")
    return final_id


def _delete_exercises(repo, workout_id):
    exercise_ids = repo.session.scalars(
        sa.select(ExerciseInstance.id).where(ExerciseInstance.workout_id == workout_id)
    ).all()
    if exercise_ids:
        repo.delete_where(WorkoutSet, WorkoutSet.exercise_instance_id.in_(exercise_ids))
        repo.delete_where(ExerciseInstance, ExerciseInstance.id.in_(exercise_ids))
    return len(exercise_ids)


def delete_workout_subtree(workout_id, repository=None):
    # Verwijder sets, oefeningen en de workout zelf; de database cascadeert niet.
    repo = repository or get_repository()
    with repo.transaction():
        repo.get(Workout, workout_id)
        removed = _delete_exercises(repo, workout_id)
        repo.delete_where(Workout, Workout.id == workout_id)
    logger.debug(f"Workout {workout_id} met {removed} oefeningen verwijderd")


def discard_draft(draft_id, repository=None):
    """
    Gooi een draft weg zonder het origineel te raken.

    Returns:
        int | None: id van het origineel bij een bewerkkopie, anders None.
        Een onbekend id telt als al weggegooid.
    """
    repo = repository or get_repository()
    with repo.transaction():
        draft = repo.session.get(Workout, draft_id)
        if draft is None:
            logger.debug(f"Draft {draft_id} bestaat niet (meer), niets weg te gooien")
            return None
        require_draft(draft)
        original_id = draft.original_workout_id
        delete_workout_subtree(draft_id, repo)
    logger.debug(f"Draft {draft_id} weggegooid, origineel: {original_id}")
    return original_id


def delete_workout(workout_id, repository=None):
    # Verwijder een workout plus eventuele bewerkkopieen die er nog naar wijzen.
    repo = repository or get_repository()
    with repo.transaction():
        repo.get(Workout, workout_id)
        draft_ids = repo.session.scalars(
            sa.select(Workout.id).where(Workout.original_workout_id == workout_id)
        ).all()
        for draft_id in draft_ids:
            delete_workout_subtree(draft_id, repo)
        delete_workout_subtree(workout_id, repo)
    logger.debug(f"Workout {workout_id} verwijderd, samen met drafts {list(draft_ids)}")


def open_for_edit(workout_id, repository=None):
    """
    Geef het id van de draft waarin een workout bewerkt wordt.

    Notities:
        - Een draft wordt zelf bewerkt.
        - Voor een actieve workout wordt een bestaande bewerkkopie hergebruikt,
          anders wordt een nieuwe kopie gemaakt.
    """
    repo = repository or get_repository()
    workout = repo.get(Workout, workout_id)
    if workout.is_draft:
        return workout.id
    existing = repo.session.scalar(
        sa.select(Workout.id)
        .where(Workout.original_workout_id == workout.id, Workout.status == WorkoutStatus.DRAFT)
        .order_by(Workout.id.desc())
    )
    if existing is not None:
        logger.debug(f"Bestaande draft {existing} hergebruikt voor workout {workout_id}")
        return existing
    return create_draft_copy(workout.id, repo)


def list_workouts(user_id, repository=None):
    repo = repository or get_repository()
    stmt = (
        sa.select(Workout)
        .where(Workout.user_id == user_id, Workout.status != WorkoutStatus.DRAFT)
        .order_by(Workout.activity_time.desc(), Workout.id.desc())
    )
    return repo.session.scalars(stmt).all()
