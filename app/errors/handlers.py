import logging
from flask import jsonify
from app import db
from app.errors import bp
from app.exceptions import DraftWorkflowError, NotFound, TransactionFailure

logger = logging.getLogger(__name__)


def error_response(status_code, error, message):
    return jsonify({'success': False, 'error': error, 'message': message}), status_code


@bp.app_errorhandler(NotFound)
def workflow_not_found(error):
    logger.debug(f"Niet gevonden: {error.message}")
    return error_response(404, 'Not Found', error.message)


@bp.app_errorhandler(TransactionFailure)
def transaction_failure(error):
    db.session.rollback()
    logger.error(f"Databasefout in workflow: {error.message}", exc_info=True)
    return error_response(500, 'Transaction Failure', 'Database error, no changes were saved')


@bp.app_errorhandler(DraftWorkflowError)
def workflow_error(error):
    # InvalidInput -> 400, WorkoutStateError -> 409, ConsistencyViolation -> 500
    if error.status_code >= 500:
        logger.error(f"Workflow-fout: {error.message}", exc_info=True)
    return error_response(error.status_code, error.__class__.__name__, error.message)


@bp.app_errorhandler(404)
def not_found_error(error):
    return error_response(404, 'Not Found', str(error))


@bp.app_errorhandler(500)
def internal_error(error):
    db.session.rollback()
    return error_response(500, 'Internal Server Error', str(error))
