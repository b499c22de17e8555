"""
Business error taxonomy.

Every error carries the HTTP status and the stable ``error`` code the API
reports for it. Anything that is not a ``MsgAppError`` is an internal fault.
"""


class MsgAppError(Exception):
    status_code = 400
    code = 'error'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(MsgAppError):
    status_code = 404
    code = 'not_found'


class InvalidCredentialsError(NotFoundError):
    status_code = 401
    code = 'invalid_credentials'


class ConflictError(MsgAppError):
    status_code = 409
    code = 'conflict'


class ValidationError(MsgAppError):
    status_code = 400
    code = 'validation_error'


class DuplicateRequestError(MsgAppError):
    status_code = 409
    code = 'duplicate_request'


class InvalidStateError(MsgAppError):
    status_code = 409
    code = 'invalid_state'


class SelfRequestError(MsgAppError):
    status_code = 400
    code = 'self_request'


class UnauthorizedError(MsgAppError):
    status_code = 401
    code = 'unauthorized'
