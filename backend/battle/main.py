from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'status': 'ok', 'message': 'Manager Battle Backend', 'version': '1.0.0'})


@main.route('/health')
def health():
    report = current_app.extensions['battle'].health()
    return jsonify(report), 200 if report['status'] == 'healthy' else 503
