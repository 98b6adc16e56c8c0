from flask import request, current_app, session, redirect, url_for, flash, jsonify
from flask_login import login_required, current_user, login_user, logout_user
from app.forms import WorkoutNameForm, FinishWorkoutForm, AddExerciseForm, UpdateExerciseForm, SetForm, \
    SupersetForm
from app.models import Workout, ExerciseDefinition, User
from app import drafts, editing, supersets
import logging

from .utils import owns_workout, workout_from_exercise, workout_from_set, hx_redirect, form_errors, \
    set_active_workout, clear_active_workout, ACTIVE_WORKOUT_KEY
from .. import db
from ..repository import get_repository

logger = logging.getLogger(__name__)

# De blueprint wordt geïmporteerd vanuit main/__init__.py
from . import bp as main


@main.route('/')
def landing():
    if current_user.is_authenticated:
        return redirect(url_for('main.workouts'))
    return jsonify({'message': 'Log in to start logging workouts', 'login': url_for('main.login')})


@main.route('/login')
def login():
    logger.debug("Login route aangeroepen")

    if current_user.is_authenticated:
        logger.debug(f"Gebruiker al ingelogd: {current_user.name}, eerst uitloggen")
        logout_user()
        session.clear()

    try:
        from app import oauth  # Lazy import
        redirect_response = oauth.auth0.authorize_redirect(redirect_uri=url_for('main.callback', _external=True))
        logger.debug(f"Auth0 login redirect URL: {redirect_response.location}")
        return redirect_response
    except Exception as e:
        logger.error(f"Auth0 login fout: {str(e)}")
        flash('Fout bij inloggen. Probeer opnieuw.')
        return redirect(url_for('main.landing'))


@main.route('/callback')
def callback():
    try:
        from app import oauth
        token = oauth.auth0.authorize_access_token()
        if not token:
            logger.error("Geen toegangstoken ontvangen van Auth0.")
            flash('Authenticatie mislukt.')
            return redirect(url_for('main.landing'))

        userinfo = token.get('userinfo') or \
            oauth.auth0.get(f"https://{current_app.config['AUTH0_DOMAIN']}/userinfo").json()

        user = db.session.scalar(db.select(User).filter_by(auth0_id=userinfo['sub']))
        if not user:
            user = User(
                email=userinfo['email'],
                auth0_id=userinfo['sub'],
                name=userinfo.get('name'),
            )
            db.session.add(user)
            db.session.commit()

        login_user(user)
        logger.debug(f"User ingelogd: id={user.get_id()}, name={user.name}")
        return redirect(url_for('main.workouts'))
    except Exception as e:
        db.session.rollback()
        logger.error(f"Callback fout: {e}", exc_info=True)
        flash('Authenticatie mislukt. Probeer opnieuw.')
        return redirect(url_for('main.landing'))


@main.route('/logout')
@login_required
def logout():
    logger.debug(f"Logout route, user: {current_user.name}")
    logout_user()
    session.clear()
    return redirect('https://' + current_app.config['AUTH0_DOMAIN'] +
                    '/v2/logout?client_id=' + current_app.config['AUTH0_CLIENT_ID'] +
                    '&returnTo=' + url_for('main.landing', _external=True))


@main.route('/workouts')
@login_required
def workouts():
    workout_list = drafts.list_workouts(current_user.id)
    return jsonify({
        'active_workout_id': session.get(ACTIVE_WORKOUT_KEY),
        'workouts': [workout.to_dict() for workout in workout_list],
    })


@main.route('/workouts/new', methods=['POST'])
@login_required
def new_workout():
    active_id = session.get(ACTIVE_WORKOUT_KEY)
    discard = request.args.get('discard') == 'true'

    if active_id is not None and not discard:
        # Er loopt al een workout: laat de gebruiker kiezen
        logger.debug(f"Workout {active_id} nog actief voor user {current_user.id}, bevestiging nodig")
        return jsonify({
            'success': False,
            'message': 'A workout is already in progress',
            'return_url': url_for('main.view_workout', workout_id=active_id),
            'discard_url': url_for('main.new_workout', discard='true'),
        }), 409

    if active_id is not None:
        previous = db.session.get(Workout, active_id)
        if previous and previous.user_id == current_user.id and previous.is_draft:
            drafts.discard_draft(active_id)
        clear_active_workout()

    workout_id = drafts.create_workout(current_user.id)
    set_active_workout(workout_id)
    return hx_redirect(url_for('main.view_workout', workout_id=workout_id), status=201, workout_id=workout_id)


@main.route('/workouts/<int:workout_id>')
@login_required
@owns_workout()
def view_workout(workout_id):
    workout = get_repository().get_with_children(workout_id)
    return jsonify(workout.to_dict(include_exercises=True))


@main.route('/workouts/<int:workout_id>/create-edit-draft', methods=['POST'])
@login_required
@owns_workout()
def create_edit_draft(workout_id):
    draft_id = drafts.open_for_edit(workout_id)
    set_active_workout(draft_id)
    logger.debug(f"Workout {workout_id} wordt bewerkt in draft {draft_id}")
    return hx_redirect(url_for('main.view_workout', workout_id=draft_id), workout_id=draft_id)


@main.route('/activity/<int:workout_id>/finish', methods=['POST'])
@login_required
@owns_workout()
def finish_workout(workout_id):
    form = FinishWorkoutForm()
    if not form.validate_on_submit():
        return form_errors(form)

    final_id = drafts.finalize_draft(workout_id, form.notes.data or '')
    clear_active_workout(workout_id)
    return hx_redirect(url_for('main.view_workout', workout_id=final_id), workout_id=final_id)


@main.route('/activity/<int:workout_id>/discard', methods=['POST'])
@login_required
def discard_workout(workout_id):
    workout = db.session.get(Workout, workout_id)
    if workout is not None and workout.user_id != current_user.id:
        return jsonify({'success': False, 'message': 'Unauthorized access to workout'}), 403

    original_id = drafts.discard_draft(workout_id)
    clear_active_workout(workout_id)
    if original_id is not None:
        return hx_redirect(url_for('main.view_workout', workout_id=original_id), workout_id=original_id)
    return hx_redirect(url_for('main.workouts'))


@main.route('/activity/<int:workout_id>', methods=['DELETE'])
@login_required
@owns_workout()
def delete_workout(workout_id):
    drafts.delete_workout(workout_id)
    clear_active_workout(workout_id)
    flash("Workout succesvol verwijderd.", "success")
    return hx_redirect(url_for('main.workouts'))


@main.route('/activity/<int:workout_id>/name', methods=['POST'])
@login_required
@owns_workout()
def rename_workout(workout_id):
    form = WorkoutNameForm()
    if not form.validate_on_submit():
        return form_errors(form)
    workout = editing.rename_workout(workout_id, form.name.data)
    return jsonify({'success': True, 'workout': workout.to_dict()})


@main.route('/activity/<int:workout_id>/add-exercise', methods=['POST'])
@login_required
@owns_workout()
def add_exercise(workout_id):
    form = AddExerciseForm()
    if not form.validate_on_submit():
        return form_errors(form)
    instance = editing.add_exercise(workout_id, form.exercise_definition_id.data, form.after_sort_number.data)
    return jsonify({'success': True, 'exercise': instance.to_dict()}), 201


@main.route('/gym-exercise/<int:instance_id>', methods=['PUT'])
@login_required
@owns_workout(workout_from_exercise)
def update_exercise(instance_id):
    form = UpdateExerciseForm()
    if not form.validate_on_submit():
        return form_errors(form)
    instance = editing.update_exercise(instance_id, form.exercise_definition_id.data)
    return jsonify({'success': True, 'exercise': instance.to_dict()})


@main.route('/gym-exercise/<int:instance_id>', methods=['DELETE'])
@login_required
@owns_workout(workout_from_exercise)
def delete_exercise(instance_id):
    workout_id = editing.delete_exercise(instance_id)
    return jsonify({'success': True, 'workout_id': workout_id})


@main.route('/gym-exercise/<int:instance_id>/add-set', methods=['POST'])
@login_required
@owns_workout(workout_from_exercise)
def add_set(instance_id):
    form = SetForm()
    if not form.validate_on_submit():
        return form_errors(form)
    workout_set = editing.add_set(instance_id, form.reps.data, form.weight_kg.data, form.set_type.data or None)
    return jsonify({'success': True, 'set': workout_set.to_dict()}), 201


@main.route('/gym-set/<int:set_id>', methods=['PUT'])
@login_required
@owns_workout(workout_from_set)
def update_set(set_id):
    form = SetForm()
    if not form.validate_on_submit():
        return form_errors(form)
    workout_set = editing.update_set(set_id, form.reps.data, form.weight_kg.data, form.set_type.data or None)
    return jsonify({'success': True, 'set': workout_set.to_dict()})


@main.route('/gym-set/<int:set_id>', methods=['DELETE'])
@login_required
@owns_workout(workout_from_set)
def delete_set(set_id):
    instance_id = editing.delete_set(set_id)
    return jsonify({'success': True, 'exercise_id': instance_id})


@main.route('/gym-exercise/<int:instance_id>/superset', methods=['POST'])
@login_required
@owns_workout(workout_from_exercise)
def add_to_superset(instance_id):
    form = SupersetForm()
    if not form.validate_on_submit():
        return form_errors(form)
    member = supersets.add_to_superset(instance_id, form.group_id.data or None)
    return jsonify({'success': True, 'group_id': member.group_id, 'order': member.order})


@main.route('/gym-exercise/<int:instance_id>/superset', methods=['DELETE'])
@login_required
@owns_workout(workout_from_exercise)
def remove_from_superset(instance_id):
    supersets.remove_from_superset(instance_id)
    return jsonify({'success': True})


@main.route('/exercises')
@login_required
def exercise_list():
    definitions = editing.list_exercise_definitions()
    return jsonify({'exercises': [definition.to_dict() for definition in definitions]})


@main.route('/exercise-info/<int:definition_id>')
@login_required
def exercise_info(definition_id):
    definition = db.get_or_404(ExerciseDefinition, definition_id)
    history = editing.exercise_history(current_user.id, definition_id)
    return jsonify({
        'exercise': definition.to_dict(),
        'history': [
            {'workout': entry['workout'].to_dict(), 'sets': [s.to_dict() for s in entry['sets']]}
            for entry in history
        ],
    })
