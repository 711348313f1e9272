"""
手势判定测试
使用合成关键点，不依赖摄像头与模型
"""

import math
import unittest

import numpy as np

from fingerdraw.config.settings import GestureThresholds
from fingerdraw.core.gesture import (
    GestureClassifier,
    HandClassification,
    classify_landmarks,
    count_extended_fingers,
    is_hand_open,
    is_horizontal_open_palm,
    is_index_finger_only,
    palm_center,
    palm_direction,
)
from tests.hands import (
    FIST_PX,
    HEIGHT,
    INDEX_ONLY_PX,
    OPEN_HAND_PX,
    SIDEWAYS_HAND_PX,
    WIDTH,
    make_hand,
    mirror,
    normalize,
)


def palm_normal_z(landmarks):
    """测试侧独立计算的掌面法向量 z 分量"""
    scale = np.array([WIDTH, HEIGHT, WIDTH])
    px = np.asarray(landmarks) * scale
    normal = np.cross(px[5] - px[0], px[17] - px[0])
    return normal[2] / np.linalg.norm(normal)


class TestOpenHand(unittest.TestCase):
    """张开手掌判定"""

    def test_extended_hand_is_open(self):
        lm = normalize(OPEN_HAND_PX)
        self.assertEqual(count_extended_fingers(lm, WIDTH, HEIGHT), 5)
        self.assertTrue(is_hand_open(lm, WIDTH, HEIGHT))

    def test_fist_is_closed(self):
        lm = normalize(FIST_PX)
        self.assertEqual(count_extended_fingers(lm, WIDTH, HEIGHT), 0)
        self.assertFalse(is_hand_open(lm, WIDTH, HEIGHT))

    def test_three_fingers_is_enough(self):
        # 拇指、小指收起，剩下三根伸直
        points = list(OPEN_HAND_PX)
        points[4] = (315, 300)
        points[18], points[19], points[20] = (384, 240), (384, 260), (384, 280)
        lm = normalize(points)
        self.assertEqual(count_extended_fingers(lm, WIDTH, HEIGHT), 3)
        self.assertTrue(is_hand_open(lm, WIDTH, HEIGHT))

    def test_two_fingers_is_not_open(self):
        points = list(OPEN_HAND_PX)
        points[4] = (315, 300)
        points[18], points[19], points[20] = (384, 240), (384, 260), (384, 280)
        points[14], points[15], points[16] = (352, 216), (352, 236), (352, 256)
        lm = normalize(points)
        self.assertEqual(count_extended_fingers(lm, WIDTH, HEIGHT), 2)
        self.assertFalse(is_hand_open(lm, WIDTH, HEIGHT))

    def test_equal_joint_heights_are_not_extended(self):
        # 严格递减：指尖与关节同高不算伸直
        points = list(OPEN_HAND_PX)
        points[8] = (288, 182)
        lm = normalize(points)
        self.assertEqual(count_extended_fingers(lm, WIDTH, HEIGHT), 4)

    def test_thumb_uses_horizontal_distance_only(self):
        points = list(FIST_PX)
        points[4] = (250, 400)
        lm = normalize(points)
        self.assertEqual(count_extended_fingers(lm, WIDTH, HEIGHT), 1)

    def test_accepts_plain_sequences(self):
        lm = [tuple(p) for p in normalize(OPEN_HAND_PX).tolist()]
        self.assertTrue(is_hand_open(lm, WIDTH, HEIGHT))

    def test_custom_min_fingers(self):
        lm = normalize(INDEX_ONLY_PX)
        self.assertFalse(is_hand_open(lm, WIDTH, HEIGHT))
        self.assertTrue(is_hand_open(lm, WIDTH, HEIGHT, GestureThresholds(open_min_fingers=1)))


class TestIndexOnly(unittest.TestCase):
    """食指单指判定"""

    def test_index_only(self):
        lm = normalize(INDEX_ONLY_PX)
        self.assertTrue(is_index_finger_only(lm, WIDTH, HEIGHT))

    def test_index_only_is_not_open(self):
        # 只有一根手指伸直，两个判定不会同时成立
        lm = normalize(INDEX_ONLY_PX)
        self.assertTrue(is_index_finger_only(lm, WIDTH, HEIGHT))
        self.assertFalse(is_hand_open(lm, WIDTH, HEIGHT))

    def test_fist_is_not_index_only(self):
        self.assertFalse(is_index_finger_only(normalize(FIST_PX), WIDTH, HEIGHT))

    def test_open_hand_is_not_index_only(self):
        self.assertFalse(is_index_finger_only(normalize(OPEN_HAND_PX), WIDTH, HEIGHT))

    def test_thumb_out_breaks_index_only(self):
        points = list(INDEX_ONLY_PX)
        points[4] = (240, 300)   # 距手腕 80px > 30px + 20px
        self.assertFalse(is_index_finger_only(normalize(points), WIDTH, HEIGHT))

    def test_thumb_within_tolerance(self):
        points = list(INDEX_ONLY_PX)
        points[4] = (272, 300)   # 距手腕 48px <= 30px + 20px
        self.assertTrue(is_index_finger_only(normalize(points), WIDTH, HEIGHT))

    def test_thumb_tests_agree(self):
        # 拇指关节距手腕 30px：<=30px 不算伸直，<=50px 仍算收拢
        for x in range(241, 320, 2):
            points = list(INDEX_ONLY_PX)
            points[4] = (x, 300)
            lm = normalize(points)
            dist = abs(x - 320)
            thumb_extended = count_extended_fingers(lm, WIDTH, HEIGHT) == 2
            self.assertEqual(thumb_extended, dist > 30, x)
            self.assertEqual(is_index_finger_only(lm, WIDTH, HEIGHT), dist <= 50, x)
            if not thumb_extended:
                self.assertTrue(is_index_finger_only(lm, WIDTH, HEIGHT), x)

    def test_tip_margin_is_fixed_pixels(self):
        # 中指指尖只比关节低 4px，不算弯曲
        points = list(INDEX_ONLY_PX)
        points[12] = (324, 262)
        self.assertFalse(is_index_finger_only(normalize(points), WIDTH, HEIGHT))

        points[12] = (324, 264)  # 低 6px
        self.assertTrue(is_index_finger_only(normalize(points), WIDTH, HEIGHT))

    def test_joint_far_above_middle_is_not_closed(self):
        # 关节比中节高 20px（超出 15px 容差）
        points = list(INDEX_ONLY_PX)
        points[11] = (322, 215)
        points[12] = (324, 240)
        self.assertFalse(is_index_finger_only(normalize(points), WIDTH, HEIGHT))

    def test_margins_are_configurable(self):
        points = list(INDEX_ONLY_PX)
        points[12] = (324, 262)
        lm = normalize(points)
        loose = GestureThresholds(closed_tip_margin_px=2.0)
        self.assertTrue(is_index_finger_only(lm, WIDTH, HEIGHT, loose))


class TestHorizontalPalm(unittest.TestCase):
    """水平手掌判定"""

    def test_closed_hand_is_never_horizontal(self):
        for points in (FIST_PX, INDEX_ONLY_PX):
            self.assertFalse(is_horizontal_open_palm(normalize(points), WIDTH, HEIGHT))

    def test_flat_open_hand_counts_by_flipped_normal(self):
        lm = normalize(OPEN_HAND_PX)
        self.assertGreater(palm_normal_z(lm), 0.1)
        self.assertTrue(is_horizontal_open_palm(lm, WIDTH, HEIGHT))

    def test_negative_normal_without_level(self):
        lm = normalize(mirror(OPEN_HAND_PX), depths={17: 0.2413})
        self.assertAlmostEqual(palm_normal_z(lm), -0.5, delta=0.01)
        self.assertTrue(is_horizontal_open_palm(lm, WIDTH, HEIGHT))

        # 法向量阈值抬高后，水平判定不再成立，说明齐平条件为假
        strict = GestureThresholds(normal_z_threshold=0.6)
        self.assertFalse(is_horizontal_open_palm(lm, WIDTH, HEIGHT, strict))

    def test_edge_on_upright_hand_is_not_horizontal(self):
        lm = normalize(mirror(OPEN_HAND_PX), depths={17: 2.0})
        self.assertLess(abs(palm_normal_z(lm)), 0.1)
        self.assertTrue(is_hand_open(lm, WIDTH, HEIGHT))
        self.assertFalse(is_horizontal_open_palm(lm, WIDTH, HEIGHT))

    def test_level_fingertips_count_as_horizontal(self):
        lm = normalize(SIDEWAYS_HAND_PX, depths={17: 1.0})
        self.assertLess(abs(palm_normal_z(lm)), 0.1)
        self.assertTrue(is_horizontal_open_palm(lm, WIDTH, HEIGHT))

        no_level = GestureThresholds(level_ratio=0.0)
        self.assertFalse(is_horizontal_open_palm(lm, WIDTH, HEIGHT, no_level))

    def test_degenerate_normal(self):
        # 手腕、食指根、小指根共线 -> 法向量为 0
        points = list(SIDEWAYS_HAND_PX)
        points[5] = (256, 240)
        points[17] = (288, 240)
        lm = normalize(points)
        self.assertTrue(is_hand_open(lm, WIDTH, HEIGHT))
        self.assertFalse(is_horizontal_open_palm(lm, WIDTH, HEIGHT))


class TestPalmGeometry(unittest.TestCase):
    """手掌方向与掌心"""

    def test_upright_direction_points_up(self):
        dx, dy = palm_direction(normalize(OPEN_HAND_PX), WIDTH, HEIGHT)
        self.assertAlmostEqual(dx, 0.0)
        self.assertAlmostEqual(dy, -1.0)

    def test_direction_is_unit_length(self):
        dx, dy = palm_direction(normalize(SIDEWAYS_HAND_PX), WIDTH, HEIGHT)
        self.assertAlmostEqual(math.hypot(dx, dy), 1.0)
        self.assertGreater(dx, 0.9)

    def test_direction_sentinel_when_points_coincide(self):
        points = list(OPEN_HAND_PX)
        points[9] = points[0]
        self.assertEqual(palm_direction(normalize(points), WIDTH, HEIGHT), (0.0, 0.0))

    def test_palm_center(self):
        cx, cy = palm_center(normalize(OPEN_HAND_PX), WIDTH, HEIGHT)
        self.assertAlmostEqual(cx, (320 + 288 + 320 + 352 + 384) / 5)
        self.assertAlmostEqual(cy, (384 + 264 + 259 + 264 + 278) / 5)


class TestClassifier(unittest.TestCase):
    """整体判定"""

    def test_classify_matches_individual_checks(self):
        for points in (OPEN_HAND_PX, FIST_PX, INDEX_ONLY_PX, SIDEWAYS_HAND_PX):
            lm = normalize(points)
            result = classify_landmarks(lm, WIDTH, HEIGHT)
            self.assertIsInstance(result, HandClassification)
            self.assertEqual(result.is_open, is_hand_open(lm, WIDTH, HEIGHT))
            self.assertEqual(result.is_index_only, is_index_finger_only(lm, WIDTH, HEIGHT))
            self.assertEqual(result.is_horizontal_palm, is_horizontal_open_palm(lm, WIDTH, HEIGHT))
            self.assertEqual(result.palm_direction, palm_direction(lm, WIDTH, HEIGHT))

    def test_classifier_uses_hand_dimensions(self):
        classifier = GestureClassifier()
        result = classifier.classify(make_hand(INDEX_ONLY_PX))
        self.assertTrue(result.is_index_only)
        self.assertFalse(result.is_open)
        self.assertFalse(result.is_horizontal_palm)

    def test_to_dict_is_plain(self):
        data = classify_landmarks(normalize(OPEN_HAND_PX), WIDTH, HEIGHT).to_dict()
        self.assertIs(type(data["is_open"]), bool)
        self.assertEqual(len(data["palm_direction"]), 2)
        self.assertEqual(len(data["palm_center"]), 2)

    def test_random_hands_are_well_behaved(self):
        rng = np.random.default_rng(7)
        for _ in range(200):
            lm = rng.uniform(0.0, 1.0, size=(21, 3))
            lm[:, 2] -= 0.5
            result = classify_landmarks(lm, WIDTH, HEIGHT)

            for flag in (result.is_open, result.is_index_only, result.is_horizontal_palm):
                self.assertIs(type(flag), bool)
            if result.is_horizontal_palm:
                self.assertTrue(result.is_open)

            dx, dy = result.palm_direction
            self.assertFalse(math.isnan(dx) or math.isnan(dy))
            if (dx, dy) != (0.0, 0.0):
                self.assertAlmostEqual(math.hypot(dx, dy), 1.0)


if __name__ == "__main__":
    unittest.main()
