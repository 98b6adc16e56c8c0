import json
from dataclasses import dataclass
from enum import Enum
import pytz
import sqlalchemy as sa
import sqlalchemy.orm as so
from datetime import datetime, timezone
from typing import Optional, Union
from app import db
from sqlalchemy.types import TypeDecorator, TEXT


class JSONEncodedList(TypeDecorator):
    """
    SQLAlchemy TypeDecorator om Python-lijsten als JSON-strings op te slaan in TEXT-velden.
    Notities:
        - Converteert lijsten naar JSON bij opslaan (`process_bind_param`).
        - Parseert JSON naar lijsten bij ophalen (`process_result_value`).
        - Gebruikt voor ExerciseDefinition.secondary_muscles.
    """
    impl = TEXT
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return '[]'  # Standaard lege lijst
        return json.dumps(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return []
        return json.loads(value)


class WorkoutStatus(str, Enum):
    """
    Enum voor de levenscyclus van een workout.
    Notities:
        - Een workout begint altijd als DRAFT.
        - DRAFT -> ACTIVE bij afronden, DRAFT -> verwijderd bij weggooien.
    """
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class NoSuperset:
    """Oefening staat op zichzelf."""


@dataclass(frozen=True)
class PartnerLink:
    """Directe koppeling naar een andere oefening in dezelfde workout."""
    partner_id: int


@dataclass(frozen=True)
class GroupMember:
    """Lid van een benoemde superset-groep, met volgorde binnen de groep."""
    group_id: str
    order: int


Superset = Union[NoSuperset, PartnerLink, GroupMember]
NO_SUPERSET = NoSuperset()


class User(db.Model):
    """
    Model voor gebruikers.

    Notities:
        - Gebruikt Auth0 voor authenticatie (auth0_id).
        - Implementeert Flask-Login eigenschappen (is_active, is_authenticated, etc.).
    """
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    auth0_id: so.Mapped[str] = so.mapped_column(sa.String(64), unique=True, nullable=False)
    name: so.Mapped[Optional[str]] = so.mapped_column(sa.String(64), index=True, nullable=True)
    email: so.Mapped[str] = so.mapped_column(sa.String(120), index=True, unique=True, nullable=False)
    last_seen: so.Mapped[Optional[datetime]] = so.mapped_column(default=lambda: datetime.now(timezone.utc))
    workouts: so.WriteOnlyMapped['Workout'] = so.relationship(back_populates='user')

    @property
    def is_active(self):
        """Vlag of de gebruiker actief is (voor Flask-Login)."""
        return True

    @property
    def is_authenticated(self):
        return True

    @property
    def is_anonymous(self):
        return False

    def get_id(self):
        return str(self.id)

    def __repr__(self):
        return f'<User {self.name}>'


class Workout(db.Model):
    """
    Model voor een gelogde of lopende training.

    Notities:
        - original_workout_id is een zwakke terugverwijzing: alleen gezet op
          drafts die als bewerkkopie van een actieve workout zijn gemaakt.
        - Geen ORM-cascade naar oefeningen; verwijderen gaat via
          drafts.delete_workout_subtree.
        - Ids worden nooit hergebruikt, ook niet op SQLite (AUTOINCREMENT).
    """
    __table_args__ = {'sqlite_autoincrement': True}
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    user_id: so.Mapped[int] = so.mapped_column(sa.ForeignKey('user.id'), index=True, nullable=False)
    type: so.Mapped[str] = so.mapped_column(sa.String(50), default='GYM_WORKOUT', nullable=False)
    name: so.Mapped[str] = so.mapped_column(sa.String(255), default='Gym Workout')
    notes: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    activity_time: so.Mapped[datetime] = so.mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    status: so.Mapped[WorkoutStatus] = so.mapped_column(
        sa.Enum(WorkoutStatus, values_callable=lambda e: [m.value for m in e]),
        default=WorkoutStatus.DRAFT, nullable=False, index=True)
    original_workout_id: so.Mapped[Optional[int]] = so.mapped_column(index=True, nullable=True)
    created_at: so.Mapped[datetime] = so.mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    user: so.Mapped['User'] = so.relationship(back_populates='workouts')
    exercises: so.Mapped[list['ExerciseInstance']] = so.relationship(
        back_populates='workout', order_by='ExerciseInstance.sort_number')

    def __init__(self, **kwargs):
        """
        Initialiseer Workout met tijdzone-correcties.
        Notities:
            - Voegt UTC-tijdzone toe aan activity_time indien ontbrekend.
        """
        super().__init__(**kwargs)
        if self.activity_time and self.activity_time.tzinfo is None:
            self.activity_time = self.activity_time.replace(tzinfo=pytz.UTC)

    @property
    def is_draft(self):
        return self.status == WorkoutStatus.DRAFT

    @property
    def is_edit_draft(self):
        """Vlag of dit een bewerkkopie van een bestaande workout is."""
        return self.is_draft and self.original_workout_id is not None

    def __repr__(self):
        return f'<Workout {self.id} {self.status.value}>'

    def to_dict(self, include_exercises=False):
        """
        Converteer Workout-object naar dictionary voor JSON-responsen.

        Returns:
            dict: Workout-gegevens, optioneel met oefeningen en sets.
        """
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'type': self.type,
            'name': self.name,
            'notes': self.notes,
            'status': self.status.value,
            'original_workout_id': self.original_workout_id,
            'activity_time': self.activity_time.isoformat() if self.activity_time else None,
        }
        if include_exercises:
            data['exercises'] = [exercise.to_dict() for exercise in self.exercises]
        return data


class ExerciseDefinition(db.Model):
    """
    Model voor de gedeelde catalogus van oefeningen.
    Notities:
        - Wordt nooit door de draft-workflow gewijzigd.
    """
    __tablename__ = 'exercise_definition'
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    name: so.Mapped[str] = so.mapped_column(sa.String(100), unique=True, index=True)
    description: so.Mapped[Optional[str]] = so.mapped_column(sa.Text)
    target_muscle_group: so.Mapped[Optional[str]] = so.mapped_column(sa.String(100), index=True)
    body_part: so.Mapped[Optional[str]] = so.mapped_column(sa.String(100))
    equipment: so.Mapped[Optional[str]] = so.mapped_column(sa.String(100))
    secondary_muscles: so.Mapped[list] = so.mapped_column(JSONEncodedList, default=list)
    video_url: so.Mapped[Optional[str]] = so.mapped_column(sa.String(255))
    image_url_start: so.Mapped[Optional[str]] = so.mapped_column(sa.String(255))
    image_url_end: so.Mapped[Optional[str]] = so.mapped_column(sa.String(255))

    def __repr__(self):
        return f'<ExerciseDefinition {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'target_muscle_group': self.target_muscle_group,
            'body_part': self.body_part,
            'equipment': self.equipment,
            'secondary_muscles': self.secondary_muscles or [],
            'video_url': self.video_url,
            'images': [img for img in (self.image_url_start, self.image_url_end) if img],
        }


class ExerciseInstance(db.Model):
    """
    Model voor een oefening binnen een specifieke workout.

    Notities:
        - sort_number is uniek per workout.
        - Superset-informatie wordt via de `superset` property gelezen en gezet;
          hooguit een van partner-koppeling en groepslidmaatschap is gevuld.
    """
    __tablename__ = 'exercise_instance'
    __table_args__ = (
        sa.UniqueConstraint('workout_id', 'sort_number', name='uq_exercise_instance_sort'),
        {'sqlite_autoincrement': True},
    )
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    workout_id: so.Mapped[int] = so.mapped_column(sa.ForeignKey('workout.id'), index=True, nullable=False)
    exercise_definition_id: so.Mapped[int] = so.mapped_column(
        sa.ForeignKey('exercise_definition.id'), index=True, nullable=False)
    sort_number: so.Mapped[int] = so.mapped_column(nullable=False)
    superset_partner_id: so.Mapped[Optional[int]] = so.mapped_column(
        sa.ForeignKey('exercise_instance.id', ondelete='SET NULL'), nullable=True)
    superset_group_id: so.Mapped[Optional[str]] = so.mapped_column(sa.String(36), index=True, nullable=True)
    superset_order: so.Mapped[Optional[int]] = so.mapped_column(nullable=True)
    workout: so.Mapped['Workout'] = so.relationship(back_populates='exercises')
    exercise_definition: so.Mapped['ExerciseDefinition'] = so.relationship()
    sets: so.Mapped[list['WorkoutSet']] = so.relationship(
        back_populates='exercise_instance', order_by='WorkoutSet.set_number')

    @property
    def superset(self) -> Superset:
        if self.superset_partner_id is not None:
            return PartnerLink(self.superset_partner_id)
        if self.superset_group_id:
            return GroupMember(self.superset_group_id, self.superset_order or 0)
        return NO_SUPERSET

    @superset.setter
    def superset(self, value: Superset):
        self.superset_partner_id = None
        self.superset_group_id = None
        self.superset_order = None
        if isinstance(value, PartnerLink):
            self.superset_partner_id = value.partner_id
        elif isinstance(value, GroupMember):
            self.superset_group_id = value.group_id
            self.superset_order = value.order

    def __repr__(self):
        return f'<ExerciseInstance {self.id} in {self.workout_id} at {self.sort_number}>'

    def to_dict(self):
        superset = self.superset
        if isinstance(superset, PartnerLink):
            superset_data = {'kind': 'partner', 'partner_id': superset.partner_id}
        elif isinstance(superset, GroupMember):
            superset_data = {'kind': 'group', 'group_id': superset.group_id, 'order': superset.order}
        else:
            superset_data = None
        return {
            'id': self.id,
            'workout_id': self.workout_id,
            'exercise_definition_id': self.exercise_definition_id,
            'exercise_name': self.exercise_definition.name if self.exercise_definition else None,
            'sort_number': self.sort_number,
            'superset': superset_data,
            'sets': [workout_set.to_dict() for workout_set in self.sets],
        }


class WorkoutSet(db.Model):
    """
    Model voor een uitgevoerde set binnen een oefening.
    Notities:
        - set_number is uniek per oefening.
    """
    __tablename__ = 'workout_set'
    __table_args__ = (
        sa.UniqueConstraint('exercise_instance_id', 'set_number', name='uq_workout_set_number'),
        {'sqlite_autoincrement': True},
    )
    id: so.Mapped[int] = so.mapped_column(primary_key=True)
    exercise_instance_id: so.Mapped[int] = so.mapped_column(
        sa.ForeignKey('exercise_instance.id'), index=True, nullable=False)
    set_number: so.Mapped[int] = so.mapped_column(nullable=False)
    reps: so.Mapped[int] = so.mapped_column(default=0, nullable=False)
    weight_kg: so.Mapped[float] = so.mapped_column(default=0.0, nullable=False)
    set_type: so.Mapped[Optional[str]] = so.mapped_column(sa.String(50))
    exercise_instance: so.Mapped['ExerciseInstance'] = so.relationship(back_populates='sets')

    def __repr__(self):
        return f'<WorkoutSet {self.id}: Exercise {self.exercise_instance_id}, Set {self.set_number}>'

    def to_dict(self):
        return {
            'id': self.id,
            'set_number': self.set_number,
            'reps': self.reps,
            'weight_kg': self.weight_kg,
            'set_type': self.set_type,
        }
