"""Upvote routes - toggling and listing a user's upvotes"""
from flask import Blueprint, request, jsonify
from flasgger import swag_from
from pydantic import ValidationError as PydanticValidationError
import os
from app import repository
from app.auth_utils import auth_required, current_session
from app.errors import ValidationError
from app.schemas import UpvoteToggleRequest
from app.validation import field_errors, json_object

_specs_dir = os.path.join(os.path.dirname(__file__), '..', 'specs')

solutions_bp = Blueprint('solutions', __name__)


@solutions_bp.route('/solutions/<solution_id>/upvote', methods=['POST'])
@swag_from(os.path.join(_specs_dir, 'upvote_toggle.yaml'))
@auth_required
def toggle_upvote(session, solution_id):
    """
    Toggle the session user's upvote on a solution (authentication required)
    Request:
    - Body: has_upvoted (the state the client last rendered, default false)
    Response:
    - 200: UpvoteToggleResponse with the new state
    - 401: Not signed in
    - 404: Solution not found
    - 500: Store failure, including a duplicate upvote rejected by the store
    """
    try:
        req = UpvoteToggleRequest(**json_object(request.get_json(silent=True)))
    except PydanticValidationError as e:
        raise ValidationError(field_errors(e))

    response = repository.toggle_upvote(session, solution_id, req.has_upvoted)
    return jsonify(response.model_dump()), 200


@solutions_bp.route('/me/upvotes', methods=['GET'])
@swag_from(os.path.join(_specs_dir, 'upvotes_list.yaml'))
def list_my_upvotes():
    """The current session's upvotes; an empty list when anonymous"""
    session = current_session()
    upvotes = repository.list_user_upvotes(session)
    return jsonify({
        'authenticated': session is not None,
        'upvotes': [u.model_dump() for u in upvotes],
    }), 200
