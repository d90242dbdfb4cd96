from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from hitgame.services.accounts import credentials
from hitgame.services.accounts.tokens import current_user_id, issue_token

auth = Blueprint('auth', __name__)


@auth.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    user = credentials.register(data.get('email'), data.get('password'))
    return jsonify({'ok': True, 'user': user.to_dict()}), 201


@auth.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = credentials.authenticate(data.get('email'), data.get('password'))
    return jsonify({'ok': True, 'token': issue_token(user), 'user': user.to_dict()})


@auth.route('/me', methods=['GET'])
@jwt_required()
def me():
    user = credentials.get_user(current_user_id())
    return jsonify({'ok': True, 'user': user.to_dict()})
