"""Image I/O utilities."""

from ascii_reveal.io.images import (
    ImageSource,
    iter_gallery_images,
    load_source_image,
    save_image,
    source_key,
)

__all__ = ["ImageSource", "iter_gallery_images", "load_source_image", "save_image", "source_key"]
