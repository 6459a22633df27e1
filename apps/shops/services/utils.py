"""
Shop App Utility Functions
Helpers for phone numbers, money formatting and uploaded file validation
"""

import logging
from decimal import Decimal
from typing import Tuple

from django.core.files.uploadedfile import UploadedFile
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


# ==========================================
# PHONE NUMBERS
# ==========================================

def normalize_phone(phone: str) -> str:
    """
    Normalize Nigerian phone number to international digits

    Examples:
        08012345678 -> 2348012345678
        +2348012345678 -> 2348012345678
        2348012345678 -> 2348012345678
    """
    # Remove spaces, dashes, parentheses, plus
    phone = ''.join(filter(str.isdigit, phone or ''))
    if not phone:
        return ''

    if phone.startswith('0'):
        phone = '234' + phone[1:]
    elif not phone.startswith('234'):
        phone = '234' + phone

    return phone


# ==========================================
# MONEY
# ==========================================

def format_currency(amount: Decimal, currency: str = 'NGN') -> str:
    """
    Format amount as currency string

    Returns:
        Formatted string (e.g., '₦10,000.00')
    """
    symbol = '₦' if currency == 'NGN' else currency
    return f"{symbol}{Decimal(amount):,.2f}"


# ==========================================
# FILE HANDLING
# ==========================================

IMAGE_CONTENT_TYPES = ('image/jpeg', 'image/jpg', 'image/png', 'image/webp')
PROOF_CONTENT_TYPES = IMAGE_CONTENT_TYPES + ('application/pdf',)


def validate_image_file(file: UploadedFile, max_size: int) -> Tuple[bool, str]:
    """
    Validate uploaded image file

    Args:
        file: Uploaded file
        max_size: Maximum file size in bytes

    Returns:
        Tuple of (is_valid: bool, error_message: str)
    """
    if file.size > max_size:
        return False, f'File size must be less than {max_size // (1024 * 1024)}MB'

    content_type = getattr(file, 'content_type', '') or ''
    if content_type not in IMAGE_CONTENT_TYPES:
        return False, 'Only JPG, PNG and WEBP images are allowed'

    # Pillow must be able to decode it
    try:
        img = Image.open(file)
        img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.warning(f'Rejected upload {getattr(file, "name", "")}: {str(e)}')
        return False, 'Invalid image file'
    finally:
        file.seek(0)

    return True, ''


def validate_payment_proof(file: UploadedFile, max_size: int) -> Tuple[bool, str]:
    """
    Validate a customer's bank transfer proof (image or PDF)

    Returns:
        Tuple of (is_valid: bool, error_message: str)
    """
    if file.size > max_size:
        return False, f'Payment proof must be less than {max_size // (1024 * 1024)}MB'

    content_type = getattr(file, 'content_type', '') or ''
    if content_type not in PROOF_CONTENT_TYPES:
        return False, 'Payment proof must be an image or a PDF'

    if content_type == 'application/pdf':
        header = file.read(5)
        file.seek(0)
        if header != b'%PDF-':
            return False, 'Invalid PDF file'
        return True, ''

    return validate_image_file(file, max_size)
