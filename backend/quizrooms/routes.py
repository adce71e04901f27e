from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Quiz room server is running!'})


@main.route('/health')
def health():
    service = current_app.extensions['quizrooms']
    return jsonify({'status': 'healthy', 'rooms': len(service.registry)})
