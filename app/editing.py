import logging

import sqlalchemy as sa

from app.drafts import require_draft
from app.exceptions import InvalidInput
from app.models import Workout, WorkoutStatus, ExerciseDefinition, ExerciseInstance, WorkoutSet
from app.repository import get_repository
from app.supersets import release_superset_partner

logger = logging.getLogger(__name__)


def _shift_positions(repo, model, column, scope, start, delta):
    """
    Verschuif posities (sort_number/set_number) zonder de unieke constraint tijdelijk te schenden.

    Notities:
        - Eerst naar negatieve waarden, daarna terug; een directe UPDATE botst
          rij-voor-rij met de buren.
    """
    repo.update_where(model, [scope, column > start], {column.key: -(column + delta)})
    repo.update_where(model, [scope, column < 0], {column.key: -column})


def _workout_of_exercise(repo, instance):
    return repo.get(Workout, instance.workout_id)


def add_exercise(workout_id, definition_id, after_sort_number=None, repository=None):
    """
    Voeg een oefening toe aan een draft-workout.

    Args:
        after_sort_number: voeg in na deze positie; None voegt achteraan toe.
    Returns:
        ExerciseInstance: de nieuwe oefening.
    """
    repo = repository or get_repository()
    with repo.transaction():
        require_draft(repo.get(Workout, workout_id))
        repo.get(ExerciseDefinition, definition_id)
        if after_sort_number is None:
            max_sort = repo.session.scalar(
                sa.select(sa.func.max(ExerciseInstance.sort_number))
                .where(ExerciseInstance.workout_id == workout_id)
            )
            sort_number = 0 if max_sort is None else max_sort + 1
        else:
            _shift_positions(repo, ExerciseInstance, ExerciseInstance.sort_number,
                             ExerciseInstance.workout_id == workout_id, after_sort_number, 1)
            sort_number = after_sort_number + 1
        instance = ExerciseInstance(
            workout_id=workout_id,
            exercise_definition_id=definition_id,
            sort_number=sort_number,
        )
        repo.create(instance)
    logger.debug(f"Oefening {instance.id} (definitie {definition_id}) toegevoegd aan workout {workout_id} op {sort_number}")
    return instance


def update_exercise(instance_id, definition_id, repository=None):
    repo = repository or get_repository()
    with repo.transaction():
        instance = repo.get(ExerciseInstance, instance_id)
        require_draft(_workout_of_exercise(repo, instance))
        repo.get(ExerciseDefinition, definition_id)
        repo.update_fields(ExerciseInstance, instance_id, {'exercise_definition_id': definition_id})
    return instance


def delete_exercise(instance_id, repository=None):
    """
    Verwijder een oefening met al haar sets.

    Returns:
        int: id van de workout waar de oefening bij hoorde.
    """
    repo = repository or get_repository()
    with repo.transaction():
        instance = repo.get(ExerciseInstance, instance_id)
        workout_id = instance.workout_id
        require_draft(_workout_of_exercise(repo, instance))
        release_superset_partner(repo, instance)
        repo.delete_where(WorkoutSet, WorkoutSet.exercise_instance_id == instance_id)
        repo.delete_where(ExerciseInstance, ExerciseInstance.id == instance_id)
    logger.debug(f"Oefening {instance_id} verwijderd uit workout {workout_id}")
    return workout_id


def add_set(instance_id, reps=0, weight_kg=0.0, set_type=None, repository=None):
    repo = repository or get_repository()
    with repo.transaction():
        instance = repo.get(ExerciseInstance, instance_id)
        require_draft(_workout_of_exercise(repo, instance))
        max_number = repo.session.scalar(
            sa.select(sa.func.max(WorkoutSet.set_number))
            .where(WorkoutSet.exercise_instance_id == instance_id)
        )
        workout_set = WorkoutSet(
            exercise_instance_id=instance_id,
            set_number=1 if max_number is None else max_number + 1,
            reps=reps or 0,
            weight_kg=weight_kg or 0.0,
            set_type=set_type,
        )
        repo.create(workout_set)
    logger.debug(f"Set {workout_set.set_number} toegevoegd aan oefening {instance_id}")
    return workout_set


def update_set(set_id, reps=None, weight_kg=None, set_type=None, repository=None):
    repo = repository or get_repository()
    with repo.transaction():
        workout_set = repo.get(WorkoutSet, set_id)
        instance = repo.get(ExerciseInstance, workout_set.exercise_instance_id)
        require_draft(_workout_of_exercise(repo, instance))
        fields = {key: value for key, value in
                  (('reps', reps), ('weight_kg', weight_kg), ('set_type', set_type))
                  if value is not None}
        if fields:
            repo.update_fields(WorkoutSet, set_id, fields)
    return workout_set


def delete_set(set_id, repository=None):
    """
    Verwijder een set en nummer de volgende sets opnieuw.

    Returns:
        int: id van de oefening waar de set bij hoorde.
    """
    repo = repository or get_repository()
    with repo.transaction():
        workout_set = repo.get(WorkoutSet, set_id)
        instance_id = workout_set.exercise_instance_id
        set_number = workout_set.set_number
        require_draft(_workout_of_exercise(repo, repo.get(ExerciseInstance, instance_id)))
        repo.delete_where(WorkoutSet, WorkoutSet.id == set_id)
        _shift_positions(repo, WorkoutSet, WorkoutSet.set_number,
                         WorkoutSet.exercise_instance_id == instance_id, set_number, -1)
    return instance_id


def rename_workout(workout_id, name, repository=None):
    # Naam mag ook op een actieve workout worden aangepast.
    name = (name or '').strip()
    if not name:
        raise InvalidInput("Workout name cannot be empty")
    repo = repository or get_repository()
    with repo.transaction():
        workout = repo.update_fields(Workout, workout_id, {'name': name})
    return workout


def exercise_history(user_id, definition_id, repository=None):
    """
    Haal de sets van een oefening op uit alle afgeronde workouts van een gebruiker.

    Returns:
        list: dicts met 'workout' en 'sets', nieuwste workout eerst.
    """
    repo = repository or get_repository()
    stmt = (
        sa.select(WorkoutSet, Workout)
        .join(ExerciseInstance, WorkoutSet.exercise_instance_id == ExerciseInstance.id)
        .join(Workout, ExerciseInstance.workout_id == Workout.id)
        .where(Workout.user_id == user_id,
               Workout.status == WorkoutStatus.ACTIVE,
               ExerciseInstance.exercise_definition_id == definition_id)
        .order_by(Workout.activity_time.desc(), Workout.id.desc(),
                  ExerciseInstance.sort_number, WorkoutSet.set_number)
    )
    history = []
    for workout_set, workout in repo.session.execute(stmt).all():
        if not history or history[-1]['workout'].id != workout.id:
            history.append({'workout': workout, 'sets': []})
        history[-1]['sets'].append(workout_set)
    return history


def list_exercise_definitions(repository=None):
    repo = repository or get_repository()
    return repo.session.scalars(sa.select(ExerciseDefinition).order_by(ExerciseDefinition.name)).all()
