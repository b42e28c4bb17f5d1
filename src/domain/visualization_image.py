"""
Access to rendered visualization content.
"""

from pathlib import Path
from typing import Optional, Union


def load_image(visualization, base_dir: Optional[Union[str, Path]] = None) -> Optional[bytes]:
    """
    Return the rendered image bytes of a visualization.

    Small images are stored inline (image_blob); large ones live in an
    external file (image_path), resolved against base_dir when relative.

    Returns:
        Image bytes, or None if the artifact was never materialized

    Raises:
        FileNotFoundError: image_path points to a file that does not exist
    """
    if visualization.image_blob is not None:
        return bytes(visualization.image_blob)
    if not visualization.image_path:
        return None

    path = Path(visualization.image_path)
    if base_dir is not None and not path.is_absolute():
        path = Path(base_dir) / path
    return path.read_bytes()


def default_filename(visualization) -> str:
    """File name used when extracting a visualization, e.g. 'network3_spring_7.png'."""
    extension = (visualization.image_format or 'PNG').lower()
    layout = visualization.layout_algorithm.replace(' ', '_')
    return f"network{visualization.network_id}_{layout}_{visualization.viz_id}.{extension}"
