class DraftWorkflowError(Exception):
    """Basisklasse voor fouten uit de workout-workflow."""

    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class NotFound(DraftWorkflowError):
    """Workout, oefening of set bestaat niet."""

    status_code = 404

    def __init__(self, entity, entity_id):
        super().__init__(f"{entity} with id={entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConsistencyViolation(DraftWorkflowError):
    """Superset-verwijzing die niet binnen dezelfde workout oplost, of een cyclus."""


class TransactionFailure(DraftWorkflowError):
    """Fout van de database tijdens een transactie; alles is teruggedraaid."""


class WorkoutStateError(DraftWorkflowError):
    """Operatie is niet toegestaan in de huidige status van de workout."""

    status_code = 409


class InvalidInput(DraftWorkflowError):
    """Ongeldige invoer, bijvoorbeeld een lege workoutnaam."""

    status_code = 400
