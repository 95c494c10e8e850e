"""
HP Homestay Portal - Workflow Errors
Every error a view may surface to the client carries its HTTP status code
"""

from django.http import JsonResponse


class WorkflowError(Exception):
    """Base class for recoverable request failures"""
    status_code = 500
    default_message = 'Request failed'

    def __init__(self, message=None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def as_response(self):
        payload = {'message': self.message}
        payload.update(self.extra)
        return JsonResponse(payload, status=self.status_code)


class AuthenticationRequired(WorkflowError):
    status_code = 401
    default_message = 'Authentication required'


class Forbidden(WorkflowError):
    status_code = 403
    default_message = 'You are not allowed to perform this action'


class NotFound(WorkflowError):
    status_code = 404
    default_message = 'Application not found'


class InvalidTransition(WorkflowError):
    """Status precondition unmet or mandatory remarks missing"""
    status_code = 400
    default_message = 'Application is not in the correct status for this action'


class ValidationFailed(WorkflowError):
    status_code = 400
    default_message = 'Invalid request'


class DuplicateApplication(WorkflowError):
    status_code = 409
    default_message = 'Only one homestay application is permitted per owner account'


class ConcurrentTransition(WorkflowError):
    """The stored status changed between read and write"""
    status_code = 409
    default_message = 'Application was updated by someone else. Reload it and try again.'
