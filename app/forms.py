from flask_wtf import FlaskForm
from wtforms import StringField, FloatField, IntegerField
from wtforms.fields.simple import TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange, Optional


class WorkoutNameForm(FlaskForm):
    """
    Formulier voor het inline hernoemen van een workout.
    """
    name = StringField('Naam', validators=[DataRequired(), Length(min=1, max=255)])


class FinishWorkoutForm(FlaskForm):
    """
    Formulier waarmee een draft wordt afgerond.
    Notities:
        - Notities zijn optioneel; een leeg veld slaat een lege string op.
    """
    notes = TextAreaField('Notities', validators=[Optional(), Length(max=2000)])


class AddExerciseForm(FlaskForm):
    """
    Formulier voor het toevoegen van een oefening aan een draft.
    Notities:
        - after_sort_number leeg: oefening komt achteraan.
    """
    exercise_definition_id = IntegerField('Oefening', validators=[DataRequired(), NumberRange(min=1)])
    after_sort_number = IntegerField('Na positie', validators=[Optional(), NumberRange(min=-1)])


class UpdateExerciseForm(FlaskForm):
    exercise_definition_id = IntegerField('Oefening', validators=[DataRequired(), NumberRange(min=1)])


class SetForm(FlaskForm):
    """
    Formulier voor het toevoegen of bewerken van een set.
    Notities:
        - Lege velden laten de bestaande waarde ongemoeid bij bewerken.
    """
    reps = IntegerField('Herhalingen', validators=[Optional(), NumberRange(min=0, max=1000)])
    weight_kg = FloatField('Gewicht (kg)', validators=[Optional(), NumberRange(min=0, max=1000)])
    set_type = StringField('Type', validators=[Optional(), Length(max=50)])


class SupersetForm(FlaskForm):
    group_id = StringField('Superset', validators=[Optional(), Length(max=36)])
