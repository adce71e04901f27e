from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from quizrooms import db
from quizrooms.models import QuestionRecord, Score, UserSettings
from quizrooms.services.rooms.sources import MIXED_DOMAIN

scores = Blueprint('scores', __name__)

_BOOL_SETTINGS = {'notifications', 'soundEffects', 'autoStart'}
_INT_SETTINGS = {'defaultTimeLimit', 'defaultQuestions'}
_TEXT_SETTINGS = {'theme', 'language', 'defaultDomain'}


def _score_totals():
    total = db.func.sum(Score.score).label('total_score')
    games = db.func.count(Score.id).label('games_played')
    average = db.func.avg(Score.score).label('average_score')
    return (
        db.session.query(Score.username, total, games, average)
        .group_by(Score.username)
        .order_by(total.desc(), Score.username)
    )


def _row_to_dict(row):
    return {
        'username': row.username,
        'totalScore': int(row.total_score or 0),
        'gamesPlayed': int(row.games_played or 0),
        'averageScore': int(round(float(row.average_score or 0))),
    }


@scores.route('/questions', methods=['GET'])
def list_questions():
    domain = request.args.get('domain')
    try:
        limit = int(request.args.get('limit', 10))
    except ValueError:
        return jsonify({'error': 'limit must be an integer'}), 400
    query = QuestionRecord.query
    if domain and domain != MIXED_DOMAIN:
        query = query.filter_by(domain=domain)
    records = query.order_by(QuestionRecord.id).limit(max(0, limit)).all()
    return jsonify([r.to_dict() for r in records])


@scores.route('/score', methods=['POST'])
def submit_score():
    data = request.get_json(silent=True) or {}
    username = data.get('username')
    username = username.strip() if isinstance(username, str) else ''
    score = data.get('score')
    if not username or isinstance(score, bool) or not isinstance(score, int) or score < 0:
        return jsonify({'success': False, 'error': 'username and a non-negative integer score are required'}), 400
    try:
        db.session.add(Score(username=username, score=score, domain=data.get('domain')))
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[score-save-failed] player={username} error={exc}")
        return jsonify({'success': False}), 500
    return jsonify({'success': True}), 201


@scores.route('/leaderboard', methods=['GET'])
def leaderboard():
    try:
        rows = _score_totals().all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[leaderboard-failed] error={exc}")
        return jsonify({'error': 'Failed to load leaderboard'}), 500
    return jsonify([_row_to_dict(row) for row in rows])


# A player may be literally named "username"; PUT on that path is the rename
@scores.route('/profile/username', methods=['GET'], defaults={'username': 'username'})
@scores.route('/profile/<string:username>', methods=['GET'])
def get_profile(username):
    try:
        rows = _score_totals().all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[profile-failed] player={username} error={exc}")
        return jsonify({'error': 'Failed to load profile'}), 500
    for rank, row in enumerate(rows, start=1):
        if row.username == username:
            payload = _row_to_dict(row)
            payload['rank'] = rank
            return jsonify(payload)
    return jsonify({
        'username': username,
        'totalScore': 0,
        'gamesPlayed': 0,
        'averageScore': 0,
        'rank': 0,
    })


@scores.route('/profile/username', methods=['PUT'])
def rename_user():
    data = request.get_json(silent=True) or {}
    current = data.get('currentUsername')
    new = data.get('newUsername')
    if not all(isinstance(v, str) and v.strip() for v in (current, new)):
        return jsonify({'error': 'currentUsername and newUsername are required'}), 400
    try:
        updated = Score.query.filter_by(username=current).update({'username': new.strip()})
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[rename-failed] player={current} error={exc}")
        return jsonify({'error': 'Failed to update username'}), 500
    return jsonify({'success': True, 'updated': updated})


@scores.route('/settings/<string:username>', methods=['GET'])
def get_settings(username):
    try:
        settings = UserSettings.query.filter_by(username=username).first()
        if not settings:
            settings = UserSettings(username=username)
            db.session.add(settings)
            db.session.commit()
        payload = settings.to_dict()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[settings-load-failed] player={username} error={exc}")
        return jsonify({'error': 'Failed to load settings'}), 500
    return jsonify(payload)


@scores.route('/settings', methods=['PUT'])
def save_settings():
    data = request.get_json(silent=True) or {}
    username = data.get('username')
    values = data.get('settings')
    if not isinstance(username, str) or not username.strip() or not isinstance(values, dict):
        return jsonify({'error': 'Invalid payload'}), 400

    for key, value in values.items():
        if key in _BOOL_SETTINGS and not isinstance(value, bool):
            return jsonify({'error': f'{key} must be a boolean'}), 400
        if key in _INT_SETTINGS and (isinstance(value, bool) or not isinstance(value, int) or value < 1):
            return jsonify({'error': f'{key} must be a positive integer'}), 400
        if key in _TEXT_SETTINGS and not isinstance(value, str):
            return jsonify({'error': f'{key} must be a string'}), 400

    settings = UserSettings.query.filter_by(username=username).first()
    if not settings:
        settings = UserSettings(username=username)
        db.session.add(settings)
    settings.update_from(values)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[settings-save-failed] player={username} error={exc}")
        return jsonify({'error': 'Failed to save settings'}), 500
    return jsonify({'success': True, 'settings': settings.to_dict()})
