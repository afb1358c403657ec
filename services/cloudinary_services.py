# services/cloudinary_services.py
"""
Cloudinary storage for product images and profile avatars.

Products go under ``PRODUCTS/<vendor>`` and avatars under ``AVATARS``. When an
upload fails the image is embedded as a base64 data URL instead, so the
listing still has a picture until storage is fixed.
"""

import base64
import cloudinary
import cloudinary.uploader
import cloudinary.exceptions
from flask import current_app
from datetime import datetime
from werkzeug.utils import secure_filename

from services.exceptions import ValidationError


class CloudinaryImageService:

    @staticmethod
    def is_cloudinary_configured():
        """Checking if Cloudinary credentials are available"""
        return all([
            current_app.config.get('CLOUDINARY_CLOUD_NAME'),
            current_app.config.get('CLOUDINARY_API_KEY'),
            current_app.config.get('CLOUDINARY_API_SECRET')
        ])

    @staticmethod
    def configure_cloudinary():
        """Initialize Cloudinary configuration"""
        if not CloudinaryImageService.is_cloudinary_configured():
            current_app.logger.warning("Cloudinary credentials not configured")
            return False

        cloudinary.config(
            cloud_name=current_app.config.get('CLOUDINARY_CLOUD_NAME'),
            api_key=current_app.config.get('CLOUDINARY_API_KEY'),
            api_secret=current_app.config.get('CLOUDINARY_API_SECRET')
        )
        return True

    @staticmethod
    def validate_image(image_file):
        """Reject missing, oversized, or non-image uploads."""
        if not image_file or image_file.filename == '':
            raise ValidationError('No image file provided')

        allowed = current_app.config.get('ALLOWED_IMAGE_TYPES', ())
        if image_file.mimetype not in allowed:
            raise ValidationError(f"Invalid file type '{image_file.mimetype}'. Allowed: {', '.join(allowed)}")

        image_file.seek(0, 2)  # Seek to end
        file_size = image_file.tell()
        image_file.seek(0)

        max_size = current_app.config.get('MAX_IMAGE_SIZE', 5 * 1024 * 1024)
        if file_size > max_size:
            raise ValidationError(f'Image file is too large (max {max_size // (1024 * 1024)}MB)')
        return file_size

    @staticmethod
    def _upload_result(url=None, public_id=None, error=None):
        return {'success': error is None, 'url': url, 'public_id': public_id, 'error': error}

    @staticmethod
    def upload_image(image_file, folder_path, public_id, width=500, height=500):
        """
        Upload an image to Cloudinary, scaled to fit ``width`` x ``height``.

        Returns a dict with ``success``, ``url``, ``public_id`` and ``error``;
        upload errors are reported there rather than raised.
        """
        if not CloudinaryImageService.configure_cloudinary():
            return CloudinaryImageService._upload_result(error='Cloudinary not configured')

        current_app.logger.info(f"Uploading image to {folder_path}/{public_id}")
        try:
            uploaded = cloudinary.uploader.upload(
                image_file,
                folder=folder_path,
                public_id=public_id,
                resource_type="image",
                overwrite=False,
                quality="auto:best",
                transformation=[{'width': width, 'height': height, 'crop': 'fit', 'gravity': 'center'}]
            )
        except cloudinary.exceptions.Error as ce:
            current_app.logger.error(f"Cloudinary API error: {str(ce)}")
            return CloudinaryImageService._upload_result(error=f"Cloudinary API error: {str(ce)}")
        except (OSError, ValueError) as e:
            current_app.logger.error(f"Could not read image for upload: {str(e)}")
            return CloudinaryImageService._upload_result(error=f"Unreadable image: {str(e)}")

        if not uploaded.get('secure_url') or not uploaded.get('public_id'):
            current_app.logger.error(f"Unexpected Cloudinary upload response: {uploaded}")
            return CloudinaryImageService._upload_result(error='Cloudinary response missing URL or public_id')

        current_app.logger.info(f"Image stored at {uploaded['secure_url']}")
        return CloudinaryImageService._upload_result(uploaded['secure_url'], uploaded['public_id'])

    @staticmethod
    def to_data_url(image_file):
        image_file.seek(0)
        encoded = base64.b64encode(image_file.read()).decode('ascii')
        image_file.seek(0)
        return f"data:{image_file.mimetype};base64,{encoded}"

    @staticmethod
    def store_image(image_file, folder_path, public_id, **kwargs):
        """
        Validate and upload an image, embedding it as a data URL when the upload fails.

        Returns ``(url, public_id, stored_remotely)``.
        """
        CloudinaryImageService.validate_image(image_file)
        result = CloudinaryImageService.upload_image(image_file, folder_path, public_id, **kwargs)
        if result['success']:
            return result['url'], result['public_id'], True

        current_app.logger.warning(f"Image upload failed ({result['error']}), storing image locally as data URL")
        return CloudinaryImageService.to_data_url(image_file), None, False

    @staticmethod
    def upload_product_image(image_file, product_name, vendor_name):
        safe_vendor_name = secure_filename(vendor_name.replace(' ', '_').lower()) if vendor_name else 'unknown_vendor'
        safe_product_name = secure_filename(product_name.replace(' ', '_').lower()) if product_name else 'unknown_product'
        folder_path = f"PRODUCTS/{safe_vendor_name}"
        public_id = f"product_{safe_product_name}_{int(datetime.utcnow().timestamp())}"
        return CloudinaryImageService.store_image(image_file, folder_path, public_id)

    @staticmethod
    def upload_avatar(image_file, user_id):
        public_id = f"avatar_{user_id}_{int(datetime.utcnow().timestamp())}"
        return CloudinaryImageService.store_image(image_file, "AVATARS", public_id, width=256, height=256)

    @staticmethod
    def delete_image(public_id):
        """Remove a replaced or deleted image; failures are only logged."""
        if not public_id or not CloudinaryImageService.configure_cloudinary():
            return False
        try:
            outcome = cloudinary.uploader.destroy(public_id).get('result')
        except cloudinary.exceptions.Error as e:
            current_app.logger.error(f"Error deleting image {public_id}: {str(e)}")
            return False
        if outcome != 'ok':
            current_app.logger.warning(f"Cloudinary did not delete {public_id}: {outcome}")
            return False
        current_app.logger.info(f"Deleted image {public_id}")
        return True
