from flask import jsonify, session
from flask_login import current_user
from functools import wraps
from app import db
from app.models import Workout, ExerciseInstance, WorkoutSet

ACTIVE_WORKOUT_KEY = 'active_workout_id'


def workout_from_id(workout_id=None, **kwargs):
    return db.session.get(Workout, workout_id)


def workout_from_exercise(instance_id=None, **kwargs):
    instance = db.session.get(ExerciseInstance, instance_id)
    return db.session.get(Workout, instance.workout_id) if instance else None


def workout_from_set(set_id=None, **kwargs):
    workout_set = db.session.get(WorkoutSet, set_id)
    if not workout_set:
        return None
    return workout_from_exercise(instance_id=workout_set.exercise_instance_id)


def owns_workout(resolve=workout_from_id):
    #    Decorator om eigendom van de workout achter een route te controleren.
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            workout = resolve(**kwargs)
            if workout is None:
                return jsonify({'success': False, 'message': 'Workout not found'}), 404
            if workout.user_id != current_user.id:
                return jsonify({'success': False, 'message': 'Unauthorized access to workout'}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def hx_redirect(url, status=200, **payload):
    #    JSON-antwoord met HX-Redirect header zodat htmx doorstuurt.
    response = jsonify({'success': True, 'redirect': url, **payload})
    response.headers['HX-Redirect'] = url
    return response, status


def form_errors(form):
    return jsonify({'success': False, 'message': 'Invalid form data', 'errors': form.errors}), 400


def set_active_workout(workout_id):
    session[ACTIVE_WORKOUT_KEY] = workout_id


def clear_active_workout(workout_id=None):
    # Alleen wissen als het de opgegeven workout betreft (of geen id is gegeven).
    if workout_id is None or session.get(ACTIVE_WORKOUT_KEY) == workout_id:
        session.pop(ACTIVE_WORKOUT_KEY, None)
