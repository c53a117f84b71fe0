"""Home and about pages"""
from flask import Blueprint, current_app, jsonify
from flasgger import swag_from
import os
from app import repository
from app.auth_utils import current_session
from app.models import Category
from app.schemas import HomeResponse

_specs_dir = os.path.join(os.path.dirname(__file__), '..', 'specs')

pages_bp = Blueprint('pages', __name__)

ABOUT = {
    'name': 'CrowdSolve',
    'mission': (
        "Empowering communities to solve the world's toughest challenges through "
        "collective intelligence and open innovation."
    ),
    'how_it_works': [
        {'step': 'Share a problem',
         'detail': 'Post problems that matter to you, your organization, or your community.'},
        {'step': 'Gather solutions',
         'detail': 'The community brings fresh perspectives from different industries and backgrounds.'},
        {'step': 'Vote on the best',
         'detail': 'Upvotes on the most promising solutions help the best ideas rise to the top.'},
        {'step': 'Make an impact',
         'detail': 'Implement the solutions that work best and share your results back.'},
    ],
}


@pages_bp.route('/', methods=['GET'])
@swag_from(os.path.join(_specs_dir, 'home.yaml'))
def home():
    """Featured problems (most upvoted) and community totals"""
    session = current_session()
    featured = repository.list_featured_problems(current_app.config.get('FEATURED_PROBLEMS_LIMIT', 3))
    response = HomeResponse(
        authenticated=session is not None,
        featured=featured,
        stats=repository.community_stats(),
    )
    return jsonify(response.model_dump(mode='json')), 200


@pages_bp.route('/about', methods=['GET'])
@swag_from(os.path.join(_specs_dir, 'about.yaml'))
def about():
    categories = [{'value': c.value, 'label': c.label} for c in Category]
    return jsonify({**ABOUT, 'categories': categories}), 200
