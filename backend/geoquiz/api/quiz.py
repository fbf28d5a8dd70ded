from flask import Blueprint, jsonify, request, current_app
from functools import wraps
import hmac
import math
from geoquiz import socketio, get_quiz
from geoquiz.services.quiz import QuizStoreError
from geoquiz.services.quiz.submission import Accepted, RejectionReason
from geoquiz.services.quiz.values import Coordinate, SubmissionRequest


quiz = Blueprint('quiz', __name__)

_REJECTION_STATUS = {
    RejectionReason.QUESTION_NOT_FOUND: 404,
    RejectionReason.OUT_OF_RANGE: 403,
    RejectionReason.INCORRECT: 400,
    RejectionReason.ALREADY_ANSWERED: 409,
}


def _parse_coordinate(data):
    """Return a Coordinate from a {'lat', 'lng'} mapping, or None if malformed."""
    if not isinstance(data, dict):
        return None
    try:
        lat = float(data['lat'])
        lng = float(data['lng'])
    except (KeyError, TypeError, ValueError):
        return None
    # "inf", "nan" and 1e400 all parse as floats
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None
    return Coordinate(lat=lat, lng=lng)


def admin_required(view):
    """Capability check for operator routes: X-Admin-Token must match ADMIN_TOKEN."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get('ADMIN_TOKEN')
        supplied = request.headers.get('X-Admin-Token', '')
        if not expected or not hmac.compare_digest(supplied.encode(), expected.encode()):
            return jsonify({'error': 'Forbidden'}), 403
        return view(*args, **kwargs)
    return wrapper


def _leaderboard_payload(n=None):
    size = n if n is not None else int(current_app.config.get('LEADERBOARD_SIZE', 10))
    return [entry.to_dict() for entry in get_quiz().leaderboard(size)]


@quiz.route('/answer', methods=['POST'])
def submit_answer():
    data = request.get_json(silent=True) or {}
    question_id = data.get('question_id')
    team_id = data.get('team_id')
    answer = data.get('answer')
    position = _parse_coordinate(data.get('position'))
    if not all([question_id, team_id]) or not isinstance(answer, str) or position is None:
        return jsonify({'error': 'question_id, team_id, answer and position {lat, lng} are required'}), 400

    submission = SubmissionRequest(
        question_id=str(question_id),
        answer=answer,
        team_id=str(team_id),
        position=position,
    )
    try:
        outcome = get_quiz().submit_answer(submission)
    except QuizStoreError as exc:
        current_app.logger.error(f"[submit] team={team_id} question={question_id} store failure: {exc}")
        return jsonify({'error': 'Score could not be saved, try again'}), 503

    if isinstance(outcome, Accepted):
        current_app.logger.info(
            f"[submit] team={team_id} question={question_id} accepted +{outcome.points_awarded} total={outcome.new_total}"
        )
        socketio.emit('leaderboard_update', {'leaderboard': _leaderboard_payload()}, to='leaderboard', namespace='/ws')
        return jsonify(outcome.to_dict()), 200

    current_app.logger.info(f"[submit] team={team_id} question={question_id} rejected {outcome.reason.value}")
    return jsonify(outcome.to_dict()), _REJECTION_STATUS[outcome.reason]


@quiz.route('/refresh', methods=['POST'])
@admin_required
def refresh_cache():
    result = get_quiz().refresh_cache()
    if not result.ok:
        # Prior snapshot keeps serving
        return jsonify({'error': 'Question store unavailable', 'version': result.version}), 503
    return jsonify({'count': result.count, 'version': result.version})


@quiz.route('/leaderboard', methods=['GET'])
def leaderboard():
    n = request.args.get('n', type=int)
    if n is not None and n < 0:
        return jsonify({'error': 'n must be non-negative'}), 400
    return jsonify({'leaderboard': _leaderboard_payload(n)})


@quiz.route('/nearby', methods=['GET'])
def nearby_questions():
    position = _parse_coordinate(request.args.to_dict())
    if position is None:
        return jsonify({'error': 'lat and lng query parameters are required'}), 400
    radius = request.args.get('radius', type=float)
    if radius is not None and radius < 0:
        return jsonify({'error': 'radius must be non-negative'}), 400
    return jsonify({'questions': get_quiz().nearby(position, radius)})


@quiz.route('/teams/<string:team_id>', methods=['GET'])
def team_progress(team_id):
    return jsonify(get_quiz().team(team_id).to_dict())


@quiz.route('/admin/logs', methods=['GET'])
@admin_required
def recent_logs():
    handler = current_app.extensions['log_buffer']
    return jsonify({'lines': handler.lines()})
