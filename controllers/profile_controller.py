from flask import Blueprint, request, jsonify, g
from db.extensions import db
from app.decorators import login_required
from models.profile import Profile
from services.cloudinary_services import CloudinaryImageService
from services.exceptions import ValidationError

profile_bp = Blueprint('profile', __name__)

PROFILE_FIELDS = ('full_name', 'phone', 'address')


def _own_profile(user):
    profile = Profile.query.filter_by(user_id=user.id).first()
    if not profile:
        profile = Profile(user_id=user.id)
        db.session.add(profile)
    return profile


@profile_bp.route('/profile', methods=['GET'])
@login_required
def get_profile():
    profile = _own_profile(g.current_user)
    db.session.commit()
    return jsonify(profile.to_dict()), 200


@profile_bp.route('/profile', methods=['PUT'])
@login_required
def update_profile():
    data = request.get_json() or {}
    profile = _own_profile(g.current_user)
    for field in PROFILE_FIELDS:
        if field in data:
            setattr(profile, field, data[field])
    db.session.commit()
    return jsonify(profile.to_dict()), 200


@profile_bp.route('/profile/avatar', methods=['POST'])
@login_required
def upload_avatar():
    image_file = request.files.get('avatar')
    if not image_file:
        raise ValidationError('No image file provided')
    profile = _own_profile(g.current_user)
    url, _, stored_remotely = CloudinaryImageService.upload_avatar(image_file, g.current_user.id)
    profile.avatar_url = url
    db.session.commit()
    return jsonify({'avatar_url': url, 'stored_remotely': stored_remotely}), 200
