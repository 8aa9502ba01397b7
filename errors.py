"""
errors.py — What can go wrong, and how loudly.
Validation and empty-result errors are user mistakes or thin catalogs;
gateway errors are the record store misbehaving. None of them is fatal.
"""


class LiftLogError(Exception):
    """Base for everything the app reports back to the user."""


class ValidationError(LiftLogError):
    """Missing or invalid input, rejected before touching the store."""


class EmptyResultError(LiftLogError):
    """Nothing matched. Worth telling the user, not a fault."""


class EmptyCandidatePool(EmptyResultError):
    def __init__(self, muscle_group: str, exercise_types):
        self.muscle_group = muscle_group
        self.exercise_types = list(exercise_types)
        super().__init__(
            f'No exercises for "{muscle_group}" with types '
            f'{", ".join(self.exercise_types)}. Add some to your catalog first.'
        )


class NoReplacementAvailable(EmptyResultError):
    def __init__(self, exercise_type: str):
        self.exercise_type = exercise_type
        super().__init__(f'No other "{exercise_type}" exercises to swap in.')


class GatewayError(LiftLogError):
    """A record store call failed (network, auth, quota, missing row...)."""

    def __init__(self, operation: str, collection: str = "", detail: str = ""):
        self.operation = operation
        self.collection = collection
        self.detail = detail
        target = f" {collection}" if collection else ""
        message = f"Could not {operation}{target}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class NotAuthenticated(GatewayError):
    def __init__(self):
        super().__init__("read the current user", detail="nobody is logged in")
