"""Problem and solution routes - browsing, posting and solving problems"""
from flask import Blueprint, request, jsonify
from flasgger import swag_from
import os
from app import repository
from app.auth_utils import auth_required, current_session
from app.errors import NotFoundError, ValidationError
from app.schemas import (
    ProblemCreateRequest, ProblemListResponse, SolutionListResponse, SolutionView
)
from app.validation import json_object, validate_problem, validate_solution

_specs_dir = os.path.join(os.path.dirname(__file__), '..', 'specs')

problems_bp = Blueprint('problems', __name__, url_prefix='')


def _get_problem_or_404(problem_id):
    problem = repository.get_problem(problem_id)
    if problem is None:
        raise NotFoundError("This problem may have been removed or doesn't exist.", title='Problem not found')
    return problem


@problems_bp.route('', methods=['GET'])
@swag_from(os.path.join(_specs_dir, 'problems_list.yaml'))
def list_problems():
    """
    List problems newest first, optionally filtered by category.
    Request:
    - URL Params: category (one of the five categories, or "all" - the default)
    Response:
    - 200: ProblemListResponse, with an empty_message when nothing matches
    - 400: Unknown category
    - 500: Store failure
    """
    # 1. Resolve the optional session and category filter
    session = current_session()
    category = request.args.get('category', 'all')

    # 2. Query through the data-access layer (cached per category)
    problems = repository.list_problems(category)

    # 3. Build response schema, including the empty state text
    empty_message = None
    if not problems:
        if category not in (None, '', 'all'):
            empty_message = "No problems in this category yet. Be the first to post one!"
        else:
            empty_message = "No problems have been posted yet. Be the first to share a challenge!"

    response = ProblemListResponse(
        category=category or 'all',
        total=len(problems),
        problems=problems,
        empty_message=empty_message,
        can_submit=session is not None,
    )
    return jsonify(response.model_dump(mode='json')), 200


@problems_bp.route('', methods=['POST'])
@swag_from(os.path.join(_specs_dir, 'problems_create.yaml'))
@auth_required
def create_problem(session):
    """
    Post a new problem (authentication required)
    Request:
    - Body: title (10-200 chars), description (50-5000 chars), category
    Response:
    - 201: Created ProblemRecord and its location
    - 400: Field errors
    - 401: Not signed in
    """
    # 1. Validate the submission before it reaches the store
    data = json_object(request.get_json(silent=True))
    is_valid, errors = validate_problem(data.get('title'), data.get('description'), data.get('category'))
    if not is_valid:
        raise ValidationError(errors)
    req = ProblemCreateRequest(**data)

    # 2. Insert, the data-access layer invalidates the affected lists
    problem = repository.insert_problem(session, req)

    response_data = problem.model_dump(mode='json')
    response_data['location'] = f'/problems/{problem.id}'
    response_data['message'] = 'Problem posted!'
    return jsonify(response_data), 201


@problems_bp.route('/<problem_id>', methods=['GET'])
@swag_from(os.path.join(_specs_dir, 'problems_detail.yaml'))
def get_problem(problem_id):
    """Problem detail with its author's display name (null when the author has none)"""
    problem = _get_problem_or_404(problem_id)
    return jsonify(problem.model_dump(mode='json')), 200


@problems_bp.route('/<problem_id>/solutions', methods=['GET'])
@swag_from(os.path.join(_specs_dir, 'solutions_list.yaml'))
def list_solutions(problem_id):
    """
    Solutions for a problem, most upvoted first.
    Each solution carries has_upvoted for the current session and is_top for
    the leading solution once it has at least one upvote. can_upvote is false
    for anonymous callers so the upvote control renders disabled.
    """
    # 1. Check the problem exists
    _get_problem_or_404(problem_id)

    # 2. Load solutions and the session user's upvotes
    session = current_session()
    solutions = repository.list_solutions(problem_id)
    upvotes = repository.list_user_upvotes(session)

    # 3. Mark upvoted and top solutions
    top_id = solutions[0].id if solutions and solutions[0].upvotes_count > 0 else None
    views = [
        SolutionView(
            **solution.model_dump(),
            has_upvoted=repository.has_upvoted(upvotes, solution.id),
            is_top=solution.id == top_id,
        )
        for solution in solutions
    ]

    response = SolutionListResponse(
        problem_id=problem_id,
        total=len(views),
        solutions=views,
        can_upvote=session is not None,
        can_submit=session is not None,
    )
    return jsonify(response.model_dump(mode='json')), 200


@problems_bp.route('/<problem_id>/solutions', methods=['POST'])
@swag_from(os.path.join(_specs_dir, 'solutions_create.yaml'))
@auth_required
def create_solution(session, problem_id):
    """
    Submit a solution to a problem (authentication required)
    Request:
    - Body: content (non-blank text)
    Response:
    - 201: Created SolutionRecord
    - 400: Blank content
    - 401: Not signed in
    - 404: Problem not found
    """
    data = json_object(request.get_json(silent=True))
    is_valid, errors = validate_solution(data.get('content'))
    if not is_valid:
        raise ValidationError(errors)

    solution = repository.insert_solution(session, problem_id, data['content'])

    response_data = solution.model_dump(mode='json')
    response_data['message'] = 'Your solution has been added successfully.'
    return jsonify(response_data), 201
