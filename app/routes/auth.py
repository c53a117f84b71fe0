"""Authentication HTTP routes - sign up, sign in, sign out and the current session"""
from flask import Blueprint, request, jsonify
from flasgger import swag_from
import logging
import os
from app.auth_utils import auth_required, close_session, current_session, sign_in, sign_up
from app.errors import ValidationError
from app.extensions import query_cache
from app.schemas import SignInRequest, SignUpRequest, SessionResponse, SessionUser, TokenResponse
from app.validation import json_object, validate_credentials

logger = logging.getLogger(__name__)

# Get absolute path to specs directory
_specs_dir = os.path.join(os.path.dirname(__file__), '..', 'specs')

# Create Blueprint for auth routes - keeps related routes together
auth_bp = Blueprint('auth', __name__)


def _token_response(token, session, message):
    response = TokenResponse(access_token=token, user=SessionUser.from_session(session))
    response_data = response.model_dump()
    response_data['message'] = message
    return response_data


@auth_bp.route('/signup', methods=['POST'])
@swag_from(os.path.join(_specs_dir, 'auth_signup.yaml'))
def signup():
    """Create an account with email, password and an optional display name"""
    # 1. Validate the form fields before anything reaches the store
    data = json_object(request.get_json(silent=True))
    is_valid, errors = validate_credentials(
        data.get('email'), data.get('password'), data.get('display_name'), sign_up=True)
    if not is_valid:
        raise ValidationError(errors)
    req = SignUpRequest(**data)

    # 2. Create the profile and open a session (409 if the email is taken)
    token, session = sign_up(req.email, req.password, req.display_name)

    # 3. Return token and session user
    return jsonify(_token_response(token, session, 'Welcome to CrowdSolve!')), 201


@auth_bp.route('/signin', methods=['POST'])
@swag_from(os.path.join(_specs_dir, 'auth_signin.yaml'))
def signin():
    """Sign in with credentials to receive a JWT token"""
    data = json_object(request.get_json(silent=True))
    is_valid, errors = validate_credentials(data.get('email'), data.get('password'))
    if not is_valid:
        raise ValidationError(errors)
    req = SignInRequest(**data)

    token, session = sign_in(req.email, req.password)
    return jsonify(_token_response(token, session, 'Welcome back!')), 200


@auth_bp.route('/signout', methods=['POST'])
@swag_from(os.path.join(_specs_dir, 'auth_signout.yaml'))
@auth_required
def signout(session):
    """Revoke the current token and forget the user's cached upvotes"""
    close_session()
    query_cache.invalidate_for('sign_out', user_id=session.user_id)
    logger.info("Profile %s signed out", session.user_id)
    return jsonify({'message': 'Signed out'}), 200


@auth_bp.route('/session', methods=['GET'])
@swag_from(os.path.join(_specs_dir, 'auth_session.yaml'))
def get_session():
    """Current session, or authenticated=false for anonymous callers"""
    session = current_session()
    response = SessionResponse(
        authenticated=session is not None,
        user=SessionUser.from_session(session) if session else None,
    )
    return jsonify(response.model_dump()), 200
