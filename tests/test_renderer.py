import unittest

from _fakes import RecordingCanvas, make_image, make_pose
from pose_kit.types import make_result
from PoseNet_Demo.renderer import TARGET_SIZE, render
from PoseNet_Demo.state import DisplayFlags


KEYPOINTS_ONLY = DisplayFlags(show_keypoints=True, show_skeleton=False, show_bounding_box=False)


class TestRenderer(unittest.TestCase):
    def test_pose_confidence_boundary_is_inclusive(self) -> None:
        result = make_result(
            [
                make_pose(0.2, [0.9], points=[(1.0, 1.0)]),
                make_pose(0.19999, [0.9], points=[(2.0, 2.0)]),
                make_pose(0.5, [0.9], points=[(3.0, 3.0)]),
            ]
        )
        canvas = RecordingCanvas()
        render(canvas, make_image(), result, 0.1, 0.2, KEYPOINTS_ONLY)
        self.assertEqual(canvas.points, [(1.0, 1.0), (3.0, 3.0)])

    def test_low_scoring_pose_is_skipped(self) -> None:
        result = make_result(
            [
                make_pose(0.3, [0.9, 0.9], points=[(10.0, 10.0), (20.0, 20.0)]),
                make_pose(0.05, [0.9, 0.9], points=[(100.0, 100.0), (200.0, 200.0)]),
            ]
        )
        canvas = RecordingCanvas()
        render(canvas, make_image(), result, 0.1, 0.2, DisplayFlags(show_bounding_box=True))
        self.assertEqual(canvas.points, [(10.0, 10.0), (20.0, 20.0)])
        self.assertEqual(len(canvas.rects), 1)

    def test_keypoints_filtered_by_part_confidence(self) -> None:
        pose = make_pose(0.9, [0.5, 0.1, 0.09], points=[(1.0, 2.0), (3.0, 4.0), (5.0, 6.0)])
        canvas = RecordingCanvas()
        render(canvas, make_image(), make_result([pose]), 0.1, 0.2, KEYPOINTS_ONLY)
        self.assertEqual(canvas.points, [(1.0, 2.0), (3.0, 4.0)])

    def test_bounding_box_spans_all_keypoints(self) -> None:
        pose = make_pose(0.9, [0.9, 0.9, 0.01], points=[(10.0, 20.0), (50.0, 80.0), (200.0, 5.0)])
        canvas = RecordingCanvas()
        flags = DisplayFlags(show_keypoints=True, show_skeleton=False, show_bounding_box=True)
        render(canvas, make_image(), make_result([pose]), 0.5, 0.2, flags)
        self.assertEqual(len(canvas.points), 2)
        self.assertEqual(canvas.rects, [(10.0, 5.0, 190.0, 75.0)])

    def test_skeleton_edges_need_both_ends(self) -> None:
        scores = [0.0] * 17
        for idx in (5, 7, 9):  # left shoulder, elbow, wrist
            scores[idx] = 0.8
        pose = make_pose(0.9, scores)
        canvas = RecordingCanvas()
        flags = DisplayFlags(show_keypoints=False, show_skeleton=True, show_bounding_box=False)
        render(canvas, make_image(), make_result([pose]), 0.5, 0.2, flags)
        self.assertEqual(len(canvas.segments), 2)
        self.assertEqual(canvas.points, [])

    def test_display_flags_off_draws_only_base_image(self) -> None:
        pose = make_pose(0.9, [0.9] * 17)
        canvas = RecordingCanvas()
        flags = DisplayFlags(show_keypoints=False, show_skeleton=False, show_bounding_box=False)
        render(canvas, make_image(), make_result([pose]), 0.1, 0.2, flags)
        self.assertEqual(len(canvas.images), 1)
        self.assertEqual((canvas.points, canvas.segments, canvas.rects), ([], [], []))

    def test_base_image_and_overlays_scaled_to_target(self) -> None:
        image = make_image(size=(1026, 513))
        pose = make_pose(0.9, [0.9], points=[(100.0, 100.0)])
        canvas = RecordingCanvas()
        render(canvas, image, make_result([pose]), 0.1, 0.2, KEYPOINTS_ONLY)
        self.assertEqual(canvas.images, [((513, 1026, 3), TARGET_SIZE)])
        self.assertEqual(canvas.points, [(50.0, 100.0)])


if __name__ == "__main__":
    unittest.main()
