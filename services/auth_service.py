from flask import current_app
from flask_jwt_extended import create_access_token, get_jwt_identity
from db.extensions import db
from models.user import User
from models.userRole import UserRole, APP_ROLES
from models.profile import Profile
from services.exceptions import AuthError, ValidationError
import re
import uuid

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 6


class AuthService:

    @staticmethod
    def register(email, password, full_name=None):
        """
        Create a user, its profile, and the default customer role.

        Returns the new User; the caller commits.
        """
        email = (email or '').strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise ValidationError('Valid email is required')
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        if User.query.filter_by(email=email).first():
            raise ValidationError('Email already exists')

        user = User(email=email)
        user.set_password(password)
        db.session.add(user)
        db.session.flush()

        db.session.add(Profile(user_id=user.id, full_name=full_name))
        db.session.add(UserRole(user_id=user.id, role='customer'))
        current_app.logger.info(f"Registered user {user.id}")
        return user

    @staticmethod
    def login(email, password):
        email = (email or '').strip().lower()
        user = User.query.filter_by(email=email).first()
        if not user or not user.check_password(password or ''):
            raise AuthError('Invalid email or password')
        return user

    @staticmethod
    def issue_token(user):
        return create_access_token(identity=str(user.id), additional_claims={'roles': user.role_names()})

    @staticmethod
    def get_current_user():
        identity = get_jwt_identity()
        if not identity:
            return None
        try:
            return db.session.get(User, uuid.UUID(identity))
        except ValueError:
            return None

    @staticmethod
    def has_role(user, role):
        if user is None:
            return False
        return UserRole.query.filter_by(user_id=user.id, role=role).first() is not None

    @staticmethod
    def grant_role(user, role):
        if role not in APP_ROLES:
            raise ValidationError(f"Unknown role '{role}'")
        if not AuthService.has_role(user, role):
            db.session.add(UserRole(user_id=user.id, role=role))
            current_app.logger.info(f"Granted role {role} to user {user.id}")
