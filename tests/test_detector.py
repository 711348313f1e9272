import unittest

import numpy as np

from fingerdraw.core.detector import (
    FINGER_INDICES,
    NUM_LANDMARKS,
    PALM_CENTER_INDICES,
    DetectionResult,
    HandRole,
    LandmarkIndex,
    assign_hand_id,
    role_for_handedness,
)
from tests.hands import HEIGHT, INDEX_ONLY_PX, WIDTH, make_hand


class TestHandRoles(unittest.TestCase):
    """手性标签 -> 角色（镜像画面下故意反转）"""

    def test_left_label_is_cursor(self):
        self.assertEqual(role_for_handedness("Left"), HandRole.CURSOR)

    def test_right_label_is_toggle(self):
        self.assertEqual(role_for_handedness("Right"), HandRole.TOGGLE)

    def test_unknown_label(self):
        self.assertIsNone(role_for_handedness("left"))
        self.assertIsNone(role_for_handedness(""))


class TestHandLandmarks(unittest.TestCase):

    def test_hand_ids_are_unique_per_frame(self):
        ids = []
        for label in ("Left", "Left", "Right", "Left"):
            ids.append(assign_hand_id(label, ids))
        self.assertEqual(ids, ["left", "left_1", "right", "left_2"])

    def test_index_layout(self):
        self.assertEqual(NUM_LANDMARKS, 21)
        self.assertEqual(LandmarkIndex.WRIST, 0)
        self.assertEqual(FINGER_INDICES["index"], (8, 7, 6, 5))
        self.assertEqual(PALM_CENTER_INDICES, (0, 5, 9, 13, 17))

    def test_index_tip_pixel(self):
        hand = make_hand(INDEX_ONLY_PX)
        x, y = hand.index_tip_pixel
        self.assertAlmostEqual(x, 288.0)
        self.assertAlmostEqual(y, 154.0)

    def test_landmarks_pixel(self):
        hand = make_hand(INDEX_ONLY_PX)
        pixels = hand.landmarks_pixel
        self.assertEqual(pixels.shape, (21, 2))
        self.assertTrue(np.all(np.abs(pixels[0] - np.array([320, 384])) <= 1))

    def test_to_dict(self):
        data = make_hand(INDEX_ONLY_PX, handedness="Right").to_dict()
        self.assertEqual(data["role"], "toggle")
        self.assertEqual(data["handedness"], "Right")
        self.assertEqual(len(data["landmarks"]), 21)

    def test_detection_result(self):
        result = DetectionResult(image_width=WIDTH, image_height=HEIGHT)
        self.assertFalse(result.has_hands)
        result.hands.append(make_hand(INDEX_ONLY_PX))
        self.assertEqual(result.num_hands, 1)


if __name__ == "__main__":
    unittest.main()
