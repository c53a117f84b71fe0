"""
Submission validation.

Each validator returns (ok, errors) where errors maps a field name to a single
human readable message. The validators never raise; the routes decide what to do
with a failed result. json_object() is the one exception: a request body
that is not a JSON object has no fields to report on, so it raises.
"""
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .schemas import ProblemCreateRequest, SignInRequest, SignUpRequest, SolutionCreateRequest

# field -> {pydantic error type: message}; the None entry is the field's fallback
FIELD_MESSAGES = {
    'title': {
        'string_too_long': "Title must be less than 200 characters",
        None: "Title must be at least 10 characters",
    },
    'description': {
        'string_too_long': "Description must be less than 5000 characters",
        None: "Description must be at least 50 characters",
    },
    'category': {None: "Please select a category"},
    'email': {None: "Please enter a valid email address"},
    'password': {None: "Password must be at least 6 characters"},
    'display_name': {
        'string_too_long': "Name must be less than 100 characters",
        None: "Name must be at least 2 characters",
    },
    'content': {None: "Solution cannot be empty"},
}


def field_errors(exc: PydanticValidationError) -> dict[str, str]:
    """Collapse a pydantic error list to the first message per field"""
    errors = {}
    for err in exc.errors():
        field = str(err['loc'][0]) if err['loc'] else '__root__'
        if field in errors:
            continue
        messages = FIELD_MESSAGES.get(field, {})
        errors[field] = messages.get(err['type'], messages.get(None, err['msg']))
    return errors


def json_object(data) -> dict:
    """Request body as a dict; a missing body counts as empty, any other non-object raises ValidationError"""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError({'body': "Request body must be a JSON object"})
    return data


def _validate(schema, data) -> tuple[bool, dict[str, str]]:
    try:
        schema(**data)
    except PydanticValidationError as e:
        return (False, field_errors(e))
    return (True, {})


def validate_problem(title, description, category) -> tuple[bool, dict[str, str]]:
    """Title 10-200 chars, description 50-5000 chars (both trimmed), category from the fixed list"""
    return _validate(ProblemCreateRequest, {
        'title': title,
        'description': description,
        'category': category,
    })


def validate_credentials(email, password, display_name=None, sign_up=False) -> tuple[bool, dict[str, str]]:
    """Email must be valid, password 6+ chars, display name 2+ chars when given at sign-up"""
    if sign_up:
        return _validate(SignUpRequest, {
            'email': email,
            'password': password,
            'display_name': display_name,
        })
    return _validate(SignInRequest, {'email': email, 'password': password})


def validate_solution(content) -> tuple[bool, dict[str, str]]:
    return _validate(SolutionCreateRequest, {'content': content})
