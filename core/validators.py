"""
Field validators shared by the marketplace models and serializers.
"""

import re
from django.core.exceptions import ValidationError


ALLOWED_IMAGE_EXTENSIONS = ['jpg', 'jpeg', 'png', 'webp']
ALLOWED_IMAGE_CONTENT_TYPES = ['image/jpeg', 'image/png', 'image/webp']
MAX_IMAGE_SIZE = 5 * 1024 * 1024


def validate_phone_number(value):
    """
    Validate a contact number.

    Accepts international formats with an optional country code, spaces,
    dashes and parentheses, e.g. ``+91 98765 43210`` or ``(987) 654-3210``.
    Requires at least 10 digits.

    Raises:
        ValidationError: If the number format is invalid
    """
    if not value:  # Empty string is allowed (optional field)
        return

    if not re.match(r'^[\d\s\-\+\(\)]+$', value):
        raise ValidationError(
            'Phone number can only contain digits, spaces, dashes, parentheses, and plus sign.',
            code='invalid_phone_chars'
        )

    digits = re.sub(r'\D', '', value)

    if len(digits) < 10 or len(digits) > 15:
        raise ValidationError(
            'Phone number must contain between 10 and 15 digits.',
            code='invalid_phone_length'
        )

    # Placeholder numbers like 0000000000
    if len(set(digits)) == 1:
        raise ValidationError(
            'Phone number cannot be all the same digit.',
            code='invalid_phone_pattern'
        )


def validate_book_image(image):
    """
    Validate an uploaded book photo.

    Checks:
    - File size (max 5MB)
    - File extension and content type (jpg, jpeg, png, webp)

    Raises:
        ValidationError: If image is invalid
    """
    if not image:
        return

    if image.size > MAX_IMAGE_SIZE:
        raise ValidationError(
            f'Image file size cannot exceed 5MB. Current size: {image.size / (1024 * 1024):.2f}MB',
            code='image_too_large'
        )

    file_name = image.name.lower()
    if not any(file_name.endswith(f'.{ext}') for ext in ALLOWED_IMAGE_EXTENSIONS):
        raise ValidationError(
            f'Invalid image format. Allowed formats: {", ".join(ALLOWED_IMAGE_EXTENSIONS)}',
            code='invalid_image_format'
        )

    content_type = getattr(image, 'content_type', None)
    if content_type and content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
        raise ValidationError(
            f'Invalid image content type: {content_type}',
            code='invalid_content_type'
        )
