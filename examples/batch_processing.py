"""Batch processing example for a folder of frames."""

import json
import sys
from pathlib import Path

import cv2
from linefinder import DetectionSession, LineDetectionError
from linefinder.preprocessing.transforms import CannyEdges
from linefinder.utils.logger import create_session_log_file, setup_logger


def main(config_path: str = None):
    """Run detection on every frame with one shared session."""
    logger = setup_logger('linefinder', log_file=create_session_log_file())

    # One session, new image per frame; config may come from a YAML file
    session = DetectionSession(config=config_path, preprocessing=[CannyEdges()])

    frames_dir = Path("test_data/frames")
    frame_files = sorted(frames_dir.glob("*.jpg"))

    logger.info(f"Processing {len(frame_files)} frames...")

    results = []
    for i, frame_path in enumerate(frame_files):
        logger.info(f"Processing frame {i+1}/{len(frame_files)}: {frame_path.name}")

        image = cv2.imread(str(frame_path))
        if image is None:
            logger.warning(f"Could not load {frame_path}")
            continue

        try:
            session.set_image(image)
            result = session.detect()
        except LineDetectionError as e:
            logger.error(f"Detection failed for {frame_path.name}: {e}")
            continue

        summary = result.to_dict()
        summary['frame_name'] = frame_path.name
        results.append(summary)

    output_path = Path("output/batch_results.json")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        json.dump(results, f, indent=2)
    logger.info("Batch processing complete!")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
