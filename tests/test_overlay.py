import unittest

import numpy as np

from fingerdraw.config.settings import OverlayConfig
from fingerdraw.core.overlay import draw_palm_indicator, draw_strokes, render
from fingerdraw.core.pipeline import DrawingPipeline
from tests.hands import HEIGHT, INDEX_ONLY_PX, OPEN_HAND_PX, WIDTH, make_detection, make_hand


class TestOverlay(unittest.TestCase):

    def setUp(self):
        self.image = np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8)
        self.pipeline = DrawingPipeline()

    def _frame(self, cursor_points=INDEX_ONLY_PX, toggle_points=OPEN_HAND_PX):
        return make_detection(
            make_hand(cursor_points, "Left"),
            make_hand(toggle_points, "Right")
        )

    def test_render_does_not_modify_input(self):
        report = self.pipeline.process(self._frame())
        output = render(self.image, report, self.pipeline.session)
        self.assertEqual(output.shape, self.image.shape)
        self.assertEqual(int(self.image.sum()), 0)
        self.assertGreater(int(output.sum()), 0)

    def test_cursor_color_follows_drawing_state(self):
        config = OverlayConfig()
        report = self.pipeline.process(self._frame())
        output = render(self.image, report, self.pipeline.session, config, draw_landmarks=False)
        x, y = (int(v) for v in report.cursor)
        self.assertEqual(tuple(int(c) for c in output[y, x]), config.cursor_drawing_color)

    def test_strokes_are_drawn(self):
        color = (255, 0, 255)
        draw_strokes(self.image, [[(10, 10), (100, 10)], [(50, 50)]], color, 4)
        self.assertGreater(int(self.image[10, 50].sum()), 0)
        self.assertEqual(int(self.image[200, 200].sum()), 0)
        self.assertEqual(tuple(int(c) for c in self.image[50, 50]), color)

    def test_palm_indicator_skips_arrow_without_direction(self):
        points = list(OPEN_HAND_PX)
        points[9] = points[0]
        report = self.pipeline.process(self._frame(toggle_points=points))
        hand = report.hands[1]
        self.assertEqual(hand.classification.palm_direction, (0.0, 0.0))

        config = OverlayConfig()
        draw_palm_indicator(self.image, hand, config)
        cx, cy = (int(v) for v in hand.classification.palm_center)
        # 只有圆环，圆心处没有箭头
        self.assertEqual(int(self.image[cy, cx].sum()), 0)


if __name__ == "__main__":
    unittest.main()
