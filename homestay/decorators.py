"""
HP Homestay Portal - View Decorators
Session and role checks that answer with JSON instead of redirecting to a login page
"""

import json
import logging
from functools import wraps

from .exceptions import AuthenticationRequired, Forbidden, ValidationFailed, WorkflowError


logger = logging.getLogger(__name__)


def api_view(view_func):
    """Convert WorkflowError into its JSON response and log anything unexpected as a 500"""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except WorkflowError as e:
            return e.as_response()
        except Exception as e:
            logger.exception(f"{view_func.__name__} failed: {str(e)}")
            return WorkflowError('Internal server error').as_response()
    return wrapper


def api_login_required(view_func):
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            raise AuthenticationRequired()
        return view_func(request, *args, **kwargs)
    return wrapper


def role_required(*roles, message=None):
    """Restrict a view to the given roles; implies api_login_required"""
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            if not request.user.is_authenticated:
                raise AuthenticationRequired()
            if request.user.role not in roles:
                raise Forbidden(message or 'You are not allowed to perform this action')
            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator


def parse_json_body(request):
    """Request body as a dict; an empty body is an empty dict"""
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationFailed('Request body must be valid JSON')
    if not isinstance(payload, dict):
        raise ValidationFailed('Request body must be a JSON object')
    return payload
