import pytest

from app import create_app, db as _db
from app.models import User, ExerciseDefinition, Workout, WorkoutStatus, ExerciseInstance, WorkoutSet
from config import Config


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    WTF_CSRF_ENABLED = False
    SESSION_TYPE = None
    AUTH0_DOMAIN = 'liftlog.example.auth0.com'
    AUTH0_CLIENT_ID = 'test-client'
    AUTH0_CLIENT_SECRET = 'test-secret'


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def user(db):
    user = User(auth0_id='auth0|tester', email='tester@example.com', name='Tester')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def other_user(db):
    user = User(auth0_id='auth0|someone-else', email='else@example.com', name='Someone Else')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def definitions(db):
    names = ['Barbell Bench Press', 'Pull Up', 'Back Squat', 'Overhead Press']
    definitions = [ExerciseDefinition(name=name, target_muscle_group='Chest') for name in names]
    db.session.add_all(definitions)
    db.session.commit()
    return definitions


@pytest.fixture
def make_workout(db, user, definitions):
    """
    Maak een workout met oefeningen en sets.

    `exercises` is een lijst met per oefening een lijst van (reps, weight) tuples.
    """
    def _make(exercises=(), status=WorkoutStatus.ACTIVE, name='Push Day', notes=None, owner=None):
        workout = Workout(user_id=(owner or user).id, name=name, notes=notes, status=status)
        db.session.add(workout)
        db.session.flush()
        for index, sets in enumerate(exercises):
            instance = ExerciseInstance(
                workout_id=workout.id,
                exercise_definition_id=definitions[index % len(definitions)].id,
                sort_number=index,
            )
            db.session.add(instance)
            db.session.flush()
            for number, (reps, weight) in enumerate(sets, start=1):
                db.session.add(WorkoutSet(
                    exercise_instance_id=instance.id, set_number=number, reps=reps, weight_kg=weight))
        db.session.commit()
        return workout
    return _make


@pytest.fixture
def fresh(db):
    # Lees een rij opnieuw uit de database, zonder de identity map.
    def _fresh(model, entity_id):
        db.session.expire_all()
        return db.session.get(model, entity_id)
    return _fresh


@pytest.fixture
def client(app, user):
    client = app.test_client()
    with client.session_transaction() as sess:
        sess['_user_id'] = str(user.id)
        sess['_fresh'] = True
    return client
