"""Basic usage example for linefinder."""

from pathlib import Path

import cv2
from linefinder import DetectionConfig, DetectionSession
from linefinder.preprocessing.transforms import CannyEdges, GaussianBlur
from linefinder.utils.visualization import LineStyle, draw_segments


def main():
    """Detect the dominant lines in one image."""
    # Load image
    image_path = "test_data/frames/sample_frame.jpg"
    image = cv2.imread(image_path)

    if image is None:
        print(f"Error: Could not load image from {image_path}")
        return

    # Blur and edge-detect, then look for the five strongest lines
    print("Detecting lines...")
    session = DetectionSession(
        image,
        DetectionConfig(num_peaks=5, fill_gap=10, min_length=60),
        preprocessing=[GaussianBlur(5), CannyEdges(50, 150)],
    )
    result = session.detect()
    print(f"Detected {len(result.segments)} segments from {len(result.peaks)} peaks")
    for segment in result.segments:
        print(f"  {segment.point1} -> {segment.point2}  theta={segment.theta:.1f}")

    # Save output
    output = draw_segments(image, result.segments, LineStyle(color='r', stroke_width=2))
    output_path = Path("output/basic_detection.jpg")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    cv2.imwrite(str(output_path), output)
    print(f"Results saved to {output_path}")


if __name__ == "__main__":
    main()
