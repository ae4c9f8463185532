"""Geometry utilities for pinhole-camera measurements from pose landmarks."""

import math
from typing import Dict, List, Sequence

import numpy as np


class GeometryCalculator:
    """Helper class for geometric calculations on pose landmarks."""

    @staticmethod
    def distance_2d(point1: Dict, point2: Dict) -> float:
        """Calculate Euclidean distance between two 2D points.

        Args:
            point1: Dict with 'x_px' and 'y_px' keys
            point2: Dict with 'x_px' and 'y_px' keys

        Returns:
            Distance in pixels
        """
        dx = point1["x_px"] - point2["x_px"]
        dy = point1["y_px"] - point2["y_px"]
        return math.sqrt(dx * dx + dy * dy)

    @staticmethod
    def midpoint(point1: Dict, point2: Dict) -> Dict:
        """Calculate midpoint between two points.

        Args:
            point1: Dict with 'x_px' and 'y_px' keys
            point2: Dict with 'x_px' and 'y_px' keys

        Returns:
            Midpoint dict with 'x_px' and 'y_px'
        """
        return {
            "x_px": (point1["x_px"] + point2["x_px"]) / 2,
            "y_px": (point1["y_px"] + point2["y_px"]) / 2,
        }

    @staticmethod
    def estimate_depth_cm(
        pixel_interocular_distance: float,
        focal_length_px: float,
        real_interocular_distance_cm: float,
    ) -> float:
        """Estimate camera-to-subject distance from the eye spacing.

        distance = (real_size_cm × focal_length) / detected_size_pixels

        Args:
            pixel_interocular_distance: Eye-to-eye distance in pixels
            focal_length_px: Camera focal length in pixels
            real_interocular_distance_cm: Assumed real eye spacing in cm

        Returns:
            Estimated distance in centimeters

        Raises:
            ValueError: If the pixel distance is not positive
        """
        if pixel_interocular_distance <= 0:
            raise ValueError("pixel_interocular_distance must be positive")
        return (real_interocular_distance_cm * focal_length_px) / pixel_interocular_distance

    @staticmethod
    def pixels_to_cm(pixel_distance: float, depth_cm: float, focal_length_px: float) -> float:
        """Back-project a pixel distance at a known depth to centimeters."""
        return (pixel_distance * depth_cm) / focal_length_px

    @staticmethod
    def visibility_check(landmarks: List[Dict], indices: Sequence[int], min_visibility: float = 0.5) -> bool:
        """Check if landmarks at given indices have sufficient visibility.

        Args:
            landmarks: List of landmarks
            indices: Landmark indices to check
            min_visibility: Minimum visibility threshold (0-1), inclusive

        Returns:
            True if all landmarks are visible
        """
        for idx in indices:
            if idx >= len(landmarks) or landmarks[idx] is None:
                return False
            if (landmarks[idx].get("visibility") or 0) < min_visibility:
                return False
        return True

    @staticmethod
    def std_dev(values: Sequence[float]) -> float:
        """Population standard deviation of a sample."""
        if not values:
            return 0.0
        return float(np.std(np.asarray(values, dtype=float)))
