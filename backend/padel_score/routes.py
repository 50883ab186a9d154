from flask import Blueprint, request, jsonify
from padel_score import db
from padel_score.services.users import UserDirectory

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Padel Score API!'})

@main.route('/health')
def health():
    return jsonify('OK')

@main.route('/users/<string:user_id>', methods=['POST'])
def upsert_user(user_id):
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Request body must be a JSON object'}), 400

    name = data.get('name')
    email = data.get('email')
    for field, value in (('name', name), ('email', email)):
        if value is not None and not isinstance(value, str):
            return jsonify({'error': f'{field} must be a string'}), 400

    outcome = UserDirectory(db.session).upsert(user_id, name=name, email=email)
    if not outcome.ok:
        return jsonify({'error': outcome.message}), 409
    return jsonify(outcome.value)
