"""Tests for problem, solution and upvote routes"""
from datetime import datetime, timedelta, timezone
import pytest
from app import create_app
from app.config import TestingConfig
from app.extensions import db, query_cache
from app.models import Category, Problem, Profile, Solution

DESCRIPTION = 'Commuters spend two hours a day in traffic because bus routes have not changed in decades.'


@pytest.fixture
def app():
    """Create and configure a test app"""
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def auth_headers(client):
    """Sign up a user and return its Authorization header."""
    response = client.post('/auth/signup',
        json={'email': 'ada@example.com', 'password': 'secret1', 'display_name': 'Ada'})
    token = response.get_json()['access_token']
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def sample_problems(app):
    """Create sample problems for testing."""
    author = Profile(email='grace@example.com', password_hash='hash', display_name='Grace')
    db.session.add(author)
    db.session.commit()

    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    problems = [
        Problem(user_id=author.id, title='Bus routes are outdated', description=DESCRIPTION,
                category=Category.SOCIAL_IMPACT, created_at=base),
        Problem(user_id=author.id, title='Nurses burn out quickly', description=DESCRIPTION,
                category=Category.EDUCATION, created_at=base + timedelta(days=1)),
        Problem(user_id=author.id, title='Small shops cannot compete online', description=DESCRIPTION,
                category=Category.STARTUPS, created_at=base + timedelta(days=2)),
    ]
    db.session.add_all(problems)
    db.session.commit()
    return [p.id for p in problems]


@pytest.fixture
def problem_with_solutions(app, sample_problems):
    """Two solutions on the first sample problem."""
    problem_id = sample_problems[0]
    author_id = db.session.get(Problem, problem_id).user_id
    base = datetime(2024, 6, 1, tzinfo=timezone.utc)
    solutions = [
        Solution(problem_id=problem_id, user_id=author_id, content='Redesign the network from ride data',
                 created_at=base),
        Solution(problem_id=problem_id, user_id=author_id, content='Add express lanes for buses',
                 created_at=base + timedelta(minutes=5)),
    ]
    db.session.add_all(solutions)
    db.session.commit()
    return problem_id, [s.id for s in solutions]


class TestListProblems:
    """Tests for GET /problems"""

    def test_list_all(self, client, sample_problems):
        """Test all problems newest first"""
        response = client.get('/problems')
        assert response.status_code == 200

        data = response.get_json()
        assert data['category'] == 'all'
        assert data['total'] == 3
        assert [p['title'] for p in data['problems']] == [
            'Small shops cannot compete online', 'Nurses burn out quickly', 'Bus routes are outdated'
        ]
        assert data['problems'][0]['author_name'] == 'Grace'
        assert data['empty_message'] is None
        assert data['can_submit'] is False

    def test_filter_by_category(self, client, sample_problems):
        response = client.get('/problems?category=education')
        data = response.get_json()
        assert data['total'] == 1
        assert data['problems'][0]['category'] == 'education'
        assert data['problems'][0]['category_label'] == 'Education'

    def test_empty_category_message(self, client, sample_problems):
        """Test empty filtered list explains the category is empty"""
        data = client.get('/problems?category=environment').get_json()
        assert data['total'] == 0
        assert data['empty_message'] == 'No problems in this category yet. Be the first to post one!'

    def test_empty_database_message(self, client, auth_headers):
        data = client.get('/problems', headers=auth_headers).get_json()
        assert data['empty_message'] == 'No problems have been posted yet. Be the first to share a challenge!'
        assert data['can_submit'] is True

    def test_unknown_category(self, client, sample_problems):
        response = client.get('/problems?category=sports')
        assert response.status_code == 400
        assert 'category' in response.get_json()['errors']


class TestCreateProblem:
    """Tests for POST /problems"""

    def test_create_problem(self, client, auth_headers):
        """Test posting a problem returns 201 and shows up in the list"""
        client.get('/problems')  # warm the cached list

        response = client.post('/problems', headers=auth_headers, json={
            'title': 'Bike theft in city centres',
            'description': DESCRIPTION,
            'category': 'environment',
        })
        assert response.status_code == 201
        data = response.get_json()
        assert data['author_name'] == 'Ada'
        assert data['location'] == f"/problems/{data['id']}"
        assert data['upvotes_count'] == 0

        listed = client.get('/problems').get_json()['problems']
        assert [p['id'] for p in listed] == [data['id']]

    def test_create_problem_requires_auth(self, client):
        """Test anonymous users are redirected to sign in"""
        response = client.post('/problems', json={
            'title': 'Bike theft in city centres', 'description': DESCRIPTION, 'category': 'environment',
        })
        assert response.status_code == 401
        assert response.get_json()['redirect'] == '/auth?mode=signup'

    def test_create_problem_single_field_error(self, client, auth_headers):
        """Test a short title is reported on the title field only"""
        response = client.post('/problems', headers=auth_headers, json={
            'title': 'Too short', 'description': DESCRIPTION, 'category': 'environment',
        })
        assert response.status_code == 400
        assert response.get_json()['errors'] == {'title': 'Title must be at least 10 characters'}
        assert client.get('/problems').get_json()['total'] == 0

    def test_create_problem_rejects_list_body(self, client, auth_headers):
        """Test a JSON array body is a validation error"""
        response = client.post('/problems', headers=auth_headers, json=['title', 'description'])
        assert response.status_code == 400
        assert response.get_json()['errors'] == {'body': 'Request body must be a JSON object'}


class TestProblemDetail:
    """Tests for GET /problems/<id>"""

    def test_get_problem(self, client, sample_problems):
        response = client.get(f'/problems/{sample_problems[1]}')
        assert response.status_code == 200
        data = response.get_json()
        assert data['title'] == 'Nurses burn out quickly'
        assert data['author_name'] == 'Grace'
        assert data['solutions_count'] == 0

    def test_problem_not_found(self, client):
        response = client.get('/problems/does-not-exist')
        assert response.status_code == 404
        assert response.get_json()['title'] == 'Problem not found'

    def test_missing_problems_are_not_cached(self, client):
        """Test looking up unknown ids leaves nothing behind in the query cache"""
        for i in range(50):
            assert client.get(f'/problems/missing-{i}').status_code == 404
        assert len(query_cache) == 0


class TestSolutions:
    """Tests for GET and POST /problems/<id>/solutions"""

    def test_list_solutions_anonymous(self, client, problem_with_solutions):
        """Test anonymous callers see solutions with upvoting disabled"""
        problem_id, _ = problem_with_solutions
        data = client.get(f'/problems/{problem_id}/solutions').get_json()

        assert data['total'] == 2
        assert data['can_upvote'] is False
        assert data['can_submit'] is False
        assert all(s['has_upvoted'] is False for s in data['solutions'])
        # No upvotes yet, so nothing is marked as the top solution
        assert all(s['is_top'] is False for s in data['solutions'])
        assert [s['content'] for s in data['solutions']] == [
            'Redesign the network from ride data', 'Add express lanes for buses'
        ]

    def test_list_solutions_unknown_problem(self, client):
        assert client.get('/problems/missing/solutions').status_code == 404

    def test_submit_solution(self, client, auth_headers, problem_with_solutions):
        """Test a submitted solution appears exactly once and bumps the problem's count"""
        problem_id, _ = problem_with_solutions
        client.get(f'/problems/{problem_id}/solutions')
        client.get(f'/problems/{problem_id}')

        response = client.post(f'/problems/{problem_id}/solutions', headers=auth_headers,
                               json={'content': 'Let riders vote on new stops'})
        assert response.status_code == 201
        new_id = response.get_json()['id']

        data = client.get(f'/problems/{problem_id}/solutions', headers=auth_headers).get_json()
        assert [s['id'] for s in data['solutions']].count(new_id) == 1
        assert data['can_submit'] is True
        assert client.get(f'/problems/{problem_id}').get_json()['solutions_count'] == 3

    def test_submit_blank_solution(self, client, auth_headers, problem_with_solutions):
        problem_id, _ = problem_with_solutions
        response = client.post(f'/problems/{problem_id}/solutions', headers=auth_headers,
                               json={'content': '   '})
        assert response.status_code == 400
        assert response.get_json()['errors'] == {'content': 'Solution cannot be empty'}

    def test_submit_solution_requires_auth(self, client, problem_with_solutions):
        problem_id, _ = problem_with_solutions
        response = client.post(f'/problems/{problem_id}/solutions', json={'content': 'Idea'})
        assert response.status_code == 401

    def test_submit_solution_unknown_problem(self, client, auth_headers):
        response = client.post('/problems/missing/solutions', headers=auth_headers,
                               json={'content': 'Idea'})
        assert response.status_code == 404


class TestUpvotes:
    """Tests for POST /solutions/<id>/upvote and GET /me/upvotes"""

    def test_toggle_upvote_round_trip(self, client, auth_headers, problem_with_solutions):
        """Test upvoting marks the solution, reorders the list, and a second toggle undoes it"""
        problem_id, (first, second) = problem_with_solutions
        url = f'/problems/{problem_id}/solutions'
        client.get(url, headers=auth_headers)

        response = client.post(f'/solutions/{second}/upvote', headers=auth_headers,
                               json={'has_upvoted': False})
        assert response.status_code == 200
        assert response.get_json() == {'solution_id': second, 'has_upvoted': True}

        data = client.get(url, headers=auth_headers).get_json()
        assert data['can_upvote'] is True
        top = data['solutions'][0]
        assert top['id'] == second
        assert top['upvotes_count'] == 1
        assert top['has_upvoted'] is True
        assert top['is_top'] is True
        assert data['solutions'][1]['has_upvoted'] is False

        mine = client.get('/me/upvotes', headers=auth_headers).get_json()
        assert mine['upvotes'] == [{'solution_id': second, 'problem_id': problem_id}]

        response = client.post(f'/solutions/{second}/upvote', headers=auth_headers,
                               json={'has_upvoted': True})
        assert response.get_json()['has_upvoted'] is False

        data = client.get(url, headers=auth_headers).get_json()
        assert [s['id'] for s in data['solutions']] == [first, second]
        assert all(s['has_upvoted'] is False for s in data['solutions'])
        assert client.get('/me/upvotes', headers=auth_headers).get_json()['upvotes'] == []

    def test_upvote_requires_auth(self, client, problem_with_solutions):
        """Test anonymous toggles are rejected before the store is touched"""
        _, (first, _) = problem_with_solutions
        response = client.post(f'/solutions/{first}/upvote', json={'has_upvoted': False})
        assert response.status_code == 401
        assert db.session.get(Solution, first).upvotes_count == 0

    def test_upvote_unknown_solution(self, client, auth_headers):
        response = client.post('/solutions/missing/upvote', headers=auth_headers, json={})
        assert response.status_code == 404

    def test_upvote_rejects_scalar_body(self, client, auth_headers, problem_with_solutions):
        """Test a bare JSON value instead of an object is a validation error"""
        _, (first, _) = problem_with_solutions
        response = client.post(f'/solutions/{first}/upvote', headers=auth_headers, json=True)
        assert response.status_code == 400
        assert db.session.get(Solution, first).upvotes_count == 0

    def test_duplicate_upvote_surfaces_store_error(self, client, auth_headers, problem_with_solutions):
        """Test a stale double insert is rejected by the store's unique constraint"""
        _, (first, _) = problem_with_solutions
        client.post(f'/solutions/{first}/upvote', headers=auth_headers, json={'has_upvoted': False})

        response = client.post(f'/solutions/{first}/upvote', headers=auth_headers,
                               json={'has_upvoted': False})
        assert response.status_code == 500
        assert response.get_json()['title'] == 'Error'
        assert db.session.get(Solution, first).upvotes_count == 1

    def test_my_upvotes_anonymous(self, client):
        data = client.get('/me/upvotes').get_json()
        assert data == {'authenticated': False, 'upvotes': []}
