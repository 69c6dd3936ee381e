from django.core.exceptions import ValidationError

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
MAX_BYTES = 2 * 1024 * 1024  # 2 MB


def validate_avatar_image(file_obj):
    ctype = getattr(file_obj, "content_type", "") or ""
    if ctype not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(f"Unsupported image type: {ctype or 'unknown'}")
    size = getattr(file_obj, "size", 0) or 0
    if size <= 0 or size > MAX_BYTES:
        raise ValidationError("Image file too large (max 2MB).")
    return file_obj
