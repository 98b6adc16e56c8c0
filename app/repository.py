"""Toegang tot de relationele opslag voor de workout-workflow.

De workflow praat alleen via deze klasse met de database: ophalen, aanmaken,
velden bijwerken, bulk-verwijderen en transacties. Transacties zijn
herbruikbaar genest; alleen de buitenste commit of rollt terug.
"""
import logging
from contextlib import contextmanager

import sqlalchemy as sa
import sqlalchemy.orm as so
from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import NotFound, TransactionFailure
from app.models import Workout, ExerciseInstance

logger = logging.getLogger(__name__)

_DEPTH_KEY = 'liftlog_transaction_depth'


class Repository:
    def __init__(self, session):
        self.session = session

    def get(self, model, entity_id):
        entity = self.session.get(model, entity_id)
        if entity is None:
            raise NotFound(model.__name__, entity_id)
        return entity

    def get_with_children(self, workout_id):
        """
        Haal een workout op met al zijn oefeningen en hun sets in een keer.

        Notities:
            - populate_existing ververst objecten die al in de sessie zitten,
              zodat de kopie nooit op verouderde collecties werkt.
        """
        stmt = (
            sa.select(Workout)
            .where(Workout.id == workout_id)
            .options(so.selectinload(Workout.exercises).selectinload(ExerciseInstance.sets))
            .execution_options(populate_existing=True)
        )
        workout = self.session.scalar(stmt)
        if workout is None:
            raise NotFound('Workout', workout_id)
        return workout

    def create(self, entity):
        self.session.add(entity)
        self.session.flush()
        return entity.id

    def update_fields(self, model, entity_id, fields):
        entity = self.get(model, entity_id)
        for key, value in fields.items():
            setattr(entity, key, value)
        self.session.flush()
        return entity

    def update_where(self, model, criteria, fields):
        result = self.session.execute(sa.update(model).where(*criteria).values(**fields))
        return result.rowcount

    def delete_where(self, model, *criteria):
        result = self.session.execute(sa.delete(model).where(*criteria))
        logger.debug(f"Deleted {result.rowcount} {model.__name__} rows")
        return result.rowcount

    @contextmanager
    def transaction(self):
        depth = self.session.info.get(_DEPTH_KEY, 0)
        self.session.info[_DEPTH_KEY] = depth + 1
        try:
            yield self
            if depth == 0:
                self.session.commit()
        except SQLAlchemyError as e:
            if depth == 0:
                self.session.rollback()
                logger.error(f"Transactie teruggedraaid: {e}")
            raise TransactionFailure(str(e)) from e
        except Exception:
            if depth == 0:
                self.session.rollback()
                logger.debug("Transactie teruggedraaid na workflow-fout")
            raise
        finally:
            self.session.info[_DEPTH_KEY] = depth


def get_repository():
    from app import db
    return Repository(db.session)
