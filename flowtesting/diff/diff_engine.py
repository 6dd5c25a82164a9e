"""
Visual Diff Engine for flow snapshots
Compares encoded renders under a tolerance and generates highlighted diff images with metrics
"""

import io
import logging
from typing import NamedTuple, Optional, Tuple

import numpy as np
from PIL import Image
from scipy import ndimage

from flowtesting.config import Config


class DiffConfig:
    """Configuration for diff generation"""

    def __init__(self, backdrop_alpha: Optional[int] = None):
        # Unchanged pixels are drawn as faded grayscale at this opacity
        alpha = Config.diff_backdrop_alpha() if backdrop_alpha is None else backdrop_alpha
        self.backdrop_alpha = min(255, max(0, alpha))
        self.highlight_color = (255, 0, 0, 255)


class DiffImage(NamedTuple):
    png_data: bytes
    metrics: dict


class VisualDiffEngine:
    """Pixel comparison and diff rendering for PNG snapshots"""

    def __init__(self, config: Optional[DiffConfig] = None):
        """
        Initialize the diff engine

        Args:
            config: Configuration object, uses defaults if None
        """
        self.config = config or DiffConfig()
        self.logger = logging.getLogger(__name__)

    def load_image(self, data: bytes) -> Optional[Image.Image]:
        """
        Decode PNG bytes into an RGBA image

        Returns:
            Image: Decoded image, or None if the bytes are not a readable image
        """
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            self.logger.debug(f"Could not decode image data ({len(data)} bytes): {e}")
            return None
        if image.mode != 'RGBA':
            image = image.convert('RGBA')
        return image

    def images_match(self, reference_data: bytes, actual_data: bytes, tolerance: float) -> bool:
        """
        Decide whether a render matches its reference

        Args:
            reference_data: Stored reference PNG
            actual_data: Freshly rendered PNG
            tolerance: Allowed per-byte difference as a fraction of 255

        Returns:
            bool: True if the images match
        """
        # Fast path: binary equality
        if reference_data == actual_data:
            return True
        if tolerance <= 0:
            return False

        reference = self.load_image(reference_data)
        actual = self.load_image(actual_data)
        if reference is None or actual is None:
            return False

        # Tolerance never rescues a size mismatch
        if reference.size != actual.size:
            self.logger.debug(f"Size mismatch: {reference.size} vs {actual.size}")
            return False

        return self.pixels_within_tolerance(reference, actual, tolerance)

    def pixels_within_tolerance(self, img1: Image.Image, img2: Image.Image, tolerance: float) -> bool:
        """Compare every byte of every RGBA pixel against tolerance * 255"""
        img1_array = np.asarray(img1, dtype=np.int16)
        img2_array = np.asarray(img2, dtype=np.int16)
        if img1_array.size == 0:
            return True

        max_diff = int(np.abs(img1_array - img2_array).max())
        # Compared as a fraction so tolerance == max_diff / 255 is an exact match
        self.logger.debug(f"Max channel difference {max_diff}, threshold {tolerance * 255.0:.2f}")
        return max_diff / 255.0 <= tolerance

    def normalize_images(self, img1: Image.Image, img2: Image.Image) -> Tuple[Image.Image, Image.Image]:
        """
        Place two images on same-sized transparent canvases at their top-left origin

        The canvas is the maximum width and height of both, so differently
        sized renders can still be diffed.
        """
        target_width = max(img1.width, img2.width)
        target_height = max(img1.height, img2.height)

        normalized_img1 = Image.new('RGBA', (target_width, target_height), (0, 0, 0, 0))
        normalized_img2 = Image.new('RGBA', (target_width, target_height), (0, 0, 0, 0))
        normalized_img1.paste(img1, (0, 0))
        normalized_img2.paste(img2, (0, 0))

        return normalized_img1, normalized_img2

    def compute_diff_mask(self, img1: Image.Image, img2: Image.Image) -> np.ndarray:
        """Boolean mask of pixels where any of R, G, B or A differs"""
        img1_array = np.asarray(img1)
        img2_array = np.asarray(img2)
        return np.any(img1_array != img2_array, axis=-1)

    def create_highlighted_diff(self, reference: Image.Image, mask: np.ndarray) -> Image.Image:
        """
        Red for changed pixels, faded grayscale of the reference elsewhere

        Args:
            reference: Normalized reference image
            mask: Changed-pixel mask from compute_diff_mask

        Returns:
            RGBA diff image
        """
        reference_array = np.asarray(reference, dtype=np.uint16)
        gray = ((reference_array[:, :, 0] + reference_array[:, :, 1] + reference_array[:, :, 2]) // 3).astype(np.uint8)

        result_array = np.empty(reference_array.shape, dtype=np.uint8)
        result_array[:, :, 0] = gray
        result_array[:, :, 1] = gray
        result_array[:, :, 2] = gray
        result_array[:, :, 3] = self.config.backdrop_alpha
        result_array[mask] = self.config.highlight_color

        return Image.fromarray(result_array)

    def calculate_metrics(self, mask: np.ndarray) -> dict:
        """
        Calculate diff metrics from a changed-pixel mask

        Returns:
            Dictionary with changed pixel count, mismatch percentage and region count
        """
        total_pixels = mask.size
        changed_pixels = int(np.count_nonzero(mask))
        mismatch_pct = round((changed_pixels / total_pixels) * 100, 3) if total_pixels > 0 else 0.0

        # Connected changed regions
        _, num_regions = ndimage.label(mask)

        return {
            'diff_pixels_changed': changed_pixels,
            'diff_mismatch_pct': float(mismatch_pct),
            'diff_regions': int(num_regions),
        }

    def encode_png(self, image: Image.Image) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, 'PNG')
        return buffer.getvalue()

    def generate_diff(self, reference_data: bytes, actual_data: bytes) -> Optional[DiffImage]:
        """
        Build the visual diff for a mismatching pair

        Best-effort: returns None if either image cannot be decoded or encoding fails.
        """
        reference = self.load_image(reference_data)
        actual = self.load_image(actual_data)
        if reference is None or actual is None:
            self.logger.warning("Skipping diff generation: reference or actual image is not decodable")
            return None

        norm_reference, norm_actual = self.normalize_images(reference, actual)
        mask = self.compute_diff_mask(norm_reference, norm_actual)
        metrics = self.calculate_metrics(mask)
        highlighted = self.create_highlighted_diff(norm_reference, mask)

        try:
            png_data = self.encode_png(highlighted)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Could not encode diff image: {e}")
            return None

        return DiffImage(png_data=png_data, metrics=metrics)
