from flask import Blueprint, request, jsonify, g
from db.extensions import db
from app.decorators import login_required
from services.auth_service import AuthService

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/auth/signup', methods=['POST'])
def signup():
    data = request.get_json() or {}
    user = AuthService.register(data.get('email'), data.get('password'), data.get('full_name'))
    db.session.commit()
    return jsonify({
        'user_id': str(user.id),
        'email': user.email,
        'roles': user.role_names(),
        'access_token': AuthService.issue_token(user)
    }), 201


@auth_bp.route('/auth/login', methods=['POST'])
def login():
    data = request.get_json() or {}
    user = AuthService.login(data.get('email'), data.get('password'))
    return jsonify({
        'user_id': str(user.id),
        'email': user.email,
        'roles': user.role_names(),
        'access_token': AuthService.issue_token(user)
    }), 200


@auth_bp.route('/auth/me', methods=['GET'])
@login_required
def me():
    user = g.current_user
    return jsonify({
        'user_id': str(user.id),
        'email': user.email,
        'roles': user.role_names(),
        'profile': user.profile.to_dict() if user.profile else None
    }), 200
