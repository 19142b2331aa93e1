from .downloader import fetch_image, image_references, infer_extension, materialize_image, materialize_images
from .resolve import pick_base, resolve_candidates
from .storage import ImageStorage, LocalImageStorage, safe_segment

__all__ = [
    "ImageStorage",
    "LocalImageStorage",
    "safe_segment",
    "pick_base",
    "resolve_candidates",
    "fetch_image",
    "infer_extension",
    "image_references",
    "materialize_image",
    "materialize_images",
]
