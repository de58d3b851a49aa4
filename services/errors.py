'''
Error taxonomy shared by repositories, the project cache and the resources.
Each class carries the HTTP status the API answers with.
'''


class ScrumError(Exception):
    status_code = 500
    error = "scrum_error"

    def __init__(self, message):
        super().__init__(message)
        self.message = message


# Constraint or input problems, never retried
class ValidationFailed(ScrumError):
    status_code = 400
    error = "validation_failed"


class DuplicateEntry(ValidationFailed):
    status_code = 409
    error = "duplicate_entry"


class NotFound(ScrumError):
    status_code = 404
    error = "not_found"


class PermissionDenied(ScrumError):
    status_code = 403
    error = "permission_denied"


class AuthenticationFailed(ScrumError):
    status_code = 401
    error = "invalid_credentials"


class OperationFailed(ScrumError):
    """A database call failed after retries.

    ``label`` names entity and operation, e.g. ``TaskCreateFailed``; the
    message reads "Failed to create task: <reason>".
    """

    error = "operation_failed"

    def __init__(self, entity, operation, reason):
        self.entity = entity
        self.operation = operation
        self.reason = reason
        super().__init__(f"Failed to {operation} {entity}: {reason}")

    @property
    def label(self):
        return f"{_camel(self.entity)}{_camel(self.operation)}Failed"


def _camel(words):
    return "".join(part.capitalize() for part in words.split())
