import unittest

import numpy as np

from pose_kit.nms import RadiusNMSConfig, keypoint_nms
from pose_kit.postprocess import PosePostConfig, PosePostprocessor
from pose_kit.types import PART_NAMES, EstimateParams


K = len(PART_NAMES)


def _row(score: float, cx: float, cy: float, kp_score: float = 0.9) -> np.ndarray:
    kps = np.zeros((K, 3), dtype=np.float32)
    kps[:, 0] = cx + np.arange(K)
    kps[:, 1] = cy + np.arange(K)
    kps[:, 2] = kp_score
    kps[0, 2] = 0.99  # nose is the root
    box = np.array([cx - 10, cy - 10, cx + 10, cy + 10, score], dtype=np.float32)
    return np.concatenate([box, kps.reshape(-1)])


class TestPosePostprocess(unittest.TestCase):
    def test_decode_rows(self) -> None:
        p = np.stack([_row(0.9, 100, 100), _row(0.4, 300, 300)])
        post = PosePostprocessor(PosePostConfig())
        scores, keypoints = post._decode(p)
        self.assertTrue(np.allclose(scores, [0.9, 0.4]))
        self.assertEqual(keypoints.shape, (2, K, 3))
        self.assertAlmostEqual(float(keypoints[1, 2, 0]), 302.0)

    def test_decode_anchors_layout_with_batch(self) -> None:
        rows = np.stack([_row(0.1 * (i % 10), 10 * i, 10 * i) for i in range(256)])
        p = rows.T[None, ...]  # (1, 5 + 3K, 256)
        scores, keypoints = PosePostprocessor()._decode(p)
        self.assertEqual(scores.shape, (256,))
        self.assertEqual(keypoints.shape, (256, K, 3))
        self.assertAlmostEqual(float(keypoints[3, 0, 0]), 30.0)

    def test_rejects_unknown_layout(self) -> None:
        with self.assertRaises(ValueError):
            PosePostprocessor()._decode(np.zeros((3, 7), dtype=np.float32))
        with self.assertRaises(ValueError):
            PosePostprocessor()._decode(np.zeros((2, 1, 56), dtype=np.float32))

    def test_threshold_nms_and_order(self) -> None:
        p = np.stack(
            [
                _row(0.5, 100, 100),
                _row(0.9, 105, 100),  # suppresses the first (roots 5px apart)
                _row(0.7, 300, 300),
                _row(0.05, 400, 400),  # below score_threshold
            ]
        )
        params = EstimateParams(score_threshold=0.1, nms_radius=20.0, max_detections=15)
        poses = PosePostprocessor().process(p, params, orig_size=(513, 513))
        self.assertEqual([round(pose.score, 2) for pose in poses], [0.9, 0.7])
        self.assertEqual(poses[0].keypoints[0].part, "nose")
        self.assertEqual(len(poses[0].keypoints), K)

    def test_max_detections(self) -> None:
        p = np.stack([_row(0.9 - 0.1 * i, 60 * i, 60 * i) for i in range(5)])
        params = EstimateParams(score_threshold=0.0, nms_radius=1.0, max_detections=2)
        poses = PosePostprocessor().process(p, params, orig_size=(1000, 1000))
        self.assertEqual(len(poses), 2)

    def test_keypoints_mapped_back_through_letterbox(self) -> None:
        p = np.stack([_row(0.9, 110, 60)])
        params = EstimateParams(score_threshold=0.1)
        poses = PosePostprocessor().process(p, params, orig_size=(400, 200), pad=(10.0, 20.0), ratio=(0.5, 0.5))
        nose = poses[0].keypoints[0]
        self.assertAlmostEqual(nose.x, 200.0)
        self.assertAlmostEqual(nose.y, 80.0)

    def test_flip_horizontal(self) -> None:
        p = np.stack([_row(0.9, 10, 10)])
        params = EstimateParams(score_threshold=0.1, flip_horizontal=True)
        poses = PosePostprocessor().process(p, params, orig_size=(100, 100))
        self.assertAlmostEqual(poses[0].keypoints[0].x, 89.0)

    def test_only_multi_person_decoding(self) -> None:
        with self.assertRaises(ValueError):
            PosePostprocessor().process(
                np.stack([_row(0.9, 10, 10)]),
                EstimateParams(decoding_method="single-person"),
                orig_size=(100, 100),
            )

    def test_keypoint_nms_empty(self) -> None:
        keep = keypoint_nms(np.zeros((0, K, 3), dtype=np.float32), np.zeros((0,), dtype=np.float32), RadiusNMSConfig())
        self.assertEqual(keep.shape, (0,))


if __name__ == "__main__":
    unittest.main()
