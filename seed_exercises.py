import json
import logging
import sys
from app import db, create_app
from app.models import ExerciseDefinition
from sqlalchemy.exc import IntegrityError
import chardet

logger = logging.getLogger(__name__)


def detect_encoding(file_path):
    with open(file_path, 'rb') as f:
        raw_data = f.read()
        result = chardet.detect(raw_data)
        return result['encoding'] or 'utf-8'


def title_case(value):
    """Zet 'barbell bench press' om naar 'Barbell Bench Press'."""
    if not value:
        return None
    return ' '.join(word[:1].upper() + word[1:] for word in value.strip().split())


def definition_from_record(record):
    """
    Bouw een ExerciseDefinition uit een record van de JSON-export.

    Notities:
        - Afbeeldingen worden vanaf /static/exercises/<id>/ geserveerd.
        - Records zonder naam of primaire spiergroep geven None.
    """
    name = title_case(record.get('name'))
    primary_muscles = record.get('primaryMuscles') or []
    if not name or not primary_muscles:
        return None

    exercise_id = record.get('id') or name.replace(' ', '_')
    return ExerciseDefinition(
        name=name,
        description=record.get('description'),
        target_muscle_group=title_case(primary_muscles[0]),
        body_part=title_case(record.get('bodyPart')),
        equipment=title_case(record.get('equipment')),
        secondary_muscles=[title_case(m) for m in record.get('secondaryMuscles') or [] if m],
        video_url=record.get('videoUrl') or record.get('gifUrl'),
        image_url_start=f"/static/exercises/{exercise_id}/0.jpg",
        image_url_end=f"/static/exercises/{exercise_id}/1.jpg",
    )


def load_records(json_file_path):
    encoding = detect_encoding(json_file_path)
    logger.info(f"Detected encoding: {encoding}")
    with open(json_file_path, encoding=encoding, errors='replace') as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"Expected a list of exercises in {json_file_path}")
    return records


def seed_exercises(json_file_path, app=None):
    """
    Vul de oefeningcatalogus vanuit een JSON-bestand.

    Notities:
        - Bestaande oefeningen (op naam) worden overgeslagen; het script is herhaalbaar.
    Returns:
        int: aantal nieuw toegevoegde oefeningen.
    """
    app = app or create_app()
    with app.app_context():
        records = load_records(json_file_path)
        logger.info(f"Found {len(records)} exercises in the JSON file. Seeding...")

        seeded_count = 0
        for row_number, record in enumerate(records, start=1):
            definition = definition_from_record(record)
            if definition is None:
                logger.warning(f"Skipping row {row_number}: missing name or primary muscle")
                continue

            exists = db.session.scalar(db.select(ExerciseDefinition.id).filter_by(name=definition.name))
            if exists:
                continue

            try:
                db.session.add(definition)
                db.session.commit()
                seeded_count += 1
            except IntegrityError as e:
                db.session.rollback()
                logger.warning(f"Could not insert exercise '{definition.name}' (row {row_number}): {e}")

        logger.info(f"Database seeding completed. Added {seeded_count} new exercises.")
        return seeded_count


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    json_file_path = sys.argv[1] if len(sys.argv) > 1 else 'exercises.json'
    seed_exercises(json_file_path)
