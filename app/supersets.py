import logging
import uuid

import sqlalchemy as sa

from app.exceptions import ConsistencyViolation
from app.models import ExerciseInstance, Workout, GroupMember, PartnerLink, NO_SUPERSET
from app.repository import get_repository

logger = logging.getLogger(__name__)


def new_group_id():
    return uuid.uuid4().hex


def find_partner_cycle(links):
    """
    Zoek een cyclus in partner-koppelingen.

    Args:
        links: dict van oefening-id naar partner-id.
    Returns:
        list: de ids in de cyclus, of None als er geen cyclus is.
    """
    for start in links:
        path = [start]
        current = links.get(start)
        while current is not None:
            if current in path:
                return path[path.index(current):]
            path.append(current)
            current = links.get(current)
    return None


def get_superset_group(workout_id, group_id, repository=None):
    # Alle leden van een groep binnen een workout, op volgorde in de groep.
    repo = repository or get_repository()
    stmt = (
        sa.select(ExerciseInstance)
        .where(ExerciseInstance.workout_id == workout_id,
               ExerciseInstance.superset_group_id == group_id)
        .order_by(ExerciseInstance.superset_order)
    )
    return repo.session.scalars(stmt).all()


def next_superset_order(workout_id, group_id, repository=None):
    repo = repository or get_repository()
    max_order = repo.session.scalar(
        sa.select(sa.func.max(ExerciseInstance.superset_order))
        .where(ExerciseInstance.workout_id == workout_id,
               ExerciseInstance.superset_group_id == group_id)
    )
    return 0 if max_order is None else max_order + 1


def leave_superset_group(repo, instance):
    # Blijft er in de groep maar een lid over, dan wordt de groep opgeheven.
    if not instance.superset_group_id:
        return
    remaining = [member for member in get_superset_group(instance.workout_id, instance.superset_group_id, repo)
                 if member.id != instance.id]
    if len(remaining) == 1:
        remaining[0].superset = NO_SUPERSET
        repo.session.flush()
        logger.debug(f"Superset {instance.superset_group_id} opgeheven, oefening {remaining[0].id} zelfstandig")


def release_superset_partner(repo, instance):
    """
    Maak partners los van een oefening die verwijderd of uit een superset gehaald wordt.

    Notities:
        - Oefeningen die via een partner-koppeling naar `instance` wijzen worden zelfstandig.
        - Zie leave_superset_group voor het groepslidmaatschap.
    """
    released = repo.update_where(
        ExerciseInstance,
        [ExerciseInstance.superset_partner_id == instance.id],
        {'superset_partner_id': None},
    )
    if released:
        logger.debug(f"{released} partner(s) van oefening {instance.id} losgemaakt")
    leave_superset_group(repo, instance)


def add_to_superset(instance_id, group_id=None, repository=None):
    """
    Voeg een oefening toe aan een superset-groep.

    Args:
        instance_id: de oefening binnen een draft-workout.
        group_id: bestaande groep in dezelfde workout; None start een nieuwe groep.
    Returns:
        GroupMember: het nieuwe groepslidmaatschap.
    """
    from app.drafts import require_draft

    repo = repository or get_repository()
    with repo.transaction():
        instance = repo.get(ExerciseInstance, instance_id)
        require_draft(repo.get(Workout, instance.workout_id))
        if group_id is not None and instance.superset_group_id == group_id:
            return instance.superset
        if group_id is None:
            group_id = new_group_id()
        elif not get_superset_group(instance.workout_id, group_id, repo):
            raise ConsistencyViolation(
                f"Superset group {group_id} has no members in workout {instance.workout_id}")

        if instance.superset_partner_id is not None or instance.superset_group_id:
            release_superset_partner(repo, instance)
        member = GroupMember(group_id, next_superset_order(instance.workout_id, group_id, repo))
        instance.superset = member
        repo.session.flush()
    logger.debug(f"Oefening {instance_id} toegevoegd aan superset {group_id} op positie {member.order}")
    return member


def link_partner(instance_id, partner_id, repository=None):
    # Koppel twee oefeningen direct aan elkaar (partner-variant van een superset).
    from app.drafts import require_draft

    repo = repository or get_repository()
    with repo.transaction():
        instance = repo.get(ExerciseInstance, instance_id)
        partner = repo.get(ExerciseInstance, partner_id)
        if instance.id == partner.id:
            raise ConsistencyViolation(f"Exercise {instance_id} cannot be its own superset partner")
        if instance.workout_id != partner.workout_id:
            raise ConsistencyViolation(
                f"Exercise {partner_id} does not belong to workout {instance.workout_id}")
        require_draft(repo.get(Workout, instance.workout_id))

        links = dict(repo.session.execute(
            sa.select(ExerciseInstance.id, ExerciseInstance.superset_partner_id)
            .where(ExerciseInstance.workout_id == instance.workout_id,
                   ExerciseInstance.superset_partner_id.is_not(None))
        ).all())
        links[instance.id] = partner.id
        cycle = find_partner_cycle(links)
        if cycle:
            raise ConsistencyViolation(f"Superset link would form a cycle: {cycle}")

        leave_superset_group(repo, instance)
        instance.superset = PartnerLink(partner.id)
        repo.session.flush()
    return instance.superset


def remove_from_superset(instance_id, repository=None):
    from app.drafts import require_draft

    repo = repository or get_repository()
    with repo.transaction():
        instance = repo.get(ExerciseInstance, instance_id)
        require_draft(repo.get(Workout, instance.workout_id))
        release_superset_partner(repo, instance)
        instance.superset = NO_SUPERSET
        repo.session.flush()
    logger.debug(f"Oefening {instance_id} uit superset gehaald")
