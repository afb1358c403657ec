from flask import current_app
from db.extensions import db
from models.vendor import Vendor, VERIFICATION_STATUSES
from services.auth_service import AuthService
from services.exceptions import NotFound, ValidationError
from services.utils import parse_uuid

VENDOR_FIELDS = ('business_name', 'business_license', 'description', 'location')


class VendorService:

    @staticmethod
    def register_vendor(user, data):
        """Create a pending vendor profile for ``user`` and grant the vendor role."""
        if Vendor.query.filter_by(user_id=user.id).first():
            raise ValidationError('You are already registered as a vendor')
        business_name = (data.get('business_name') or '').strip()
        if not business_name:
            raise ValidationError('Business name is required')

        vendor = Vendor(
            user_id=user.id,
            business_name=business_name,
            business_license=data.get('business_license'),
            description=data.get('description'),
            location=data.get('location'),
            verification_status='pending'
        )
        db.session.add(vendor)
        AuthService.grant_role(user, 'vendor')
        db.session.flush()
        current_app.logger.info(f"Vendor {vendor.id} registered for user {user.id}, awaiting verification")
        return vendor

    @staticmethod
    def get_vendor_for_user(user):
        vendor = Vendor.query.filter_by(user_id=user.id).first()
        if not vendor:
            raise NotFound('Vendor profile not found')
        return vendor

    @staticmethod
    def update_vendor(vendor, data):
        for field in VENDOR_FIELDS:
            if field in data:
                setattr(vendor, field, data[field])
        if not vendor.business_name:
            raise ValidationError('Business name is required')
        return vendor

    @staticmethod
    def list_public_vendors():
        return Vendor.query.filter_by(verification_status='verified').order_by(Vendor.business_name).all()

    @staticmethod
    def list_vendors(status=None):
        query = Vendor.query
        if status:
            if status not in VERIFICATION_STATUSES:
                raise ValidationError(f"Unknown verification status '{status}'")
            query = query.filter_by(verification_status=status)
        return query.order_by(Vendor.created_at.desc()).all()

    @staticmethod
    def set_verification_status(vendor_id, status, reason=None):
        if status not in ('verified', 'rejected'):
            raise ValidationError("Verification status must be 'verified' or 'rejected'")
        vendor = db.session.get(Vendor, parse_uuid(vendor_id, 'Vendor'))
        if not vendor:
            raise NotFound('Vendor not found')
        vendor.verification_status = status
        vendor.rejection_reason = reason if status == 'rejected' else None
        current_app.logger.info(f"Vendor {vendor.id} marked {status}")
        return vendor
