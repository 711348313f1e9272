"""
叠加层绘制模块
在 BGR 画面上绘制骨骼、笔画、笔尖和水平手掌指示
"""

from typing import Optional, Sequence

import cv2
import numpy as np

from ..config.settings import OverlayConfig
from .detector import HAND_CONNECTIONS, FINGER_INDICES
from .drawing import DrawingSession, Stroke
from .pipeline import FrameReport, HandReport

_TIP_INDICES = {indices[0] for indices in FINGER_INDICES.values()}


def draw_skeleton(
    image: np.ndarray,
    hand: HandReport,
    color=(0, 255, 255),
    thickness: int = 2,
    circle_radius: int = 4
):
    """绘制单手骨骼与角色标签"""
    points = hand.hand.landmarks_pixel

    for start_idx, end_idx in HAND_CONNECTIONS:
        cv2.line(image, tuple(int(v) for v in points[start_idx]),
                 tuple(int(v) for v in points[end_idx]), color, thickness)

    for i, point in enumerate(points):
        # 指尖用绿色
        if i in _TIP_INDICES:
            cv2.circle(image, (int(point[0]), int(point[1])), circle_radius + 2, (0, 255, 0), -1)
        else:
            cv2.circle(image, (int(point[0]), int(point[1])), circle_radius, color, -1)

    role = hand.role.value if hand.role else "?"
    wrist = points[0]
    label = f"{hand.hand.handedness}/{role} active={hand.active}"
    cv2.putText(image, label, (int(wrist[0]), int(wrist[1]) + 20),
                cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1)


def draw_strokes(image: np.ndarray, strokes: Sequence[Stroke], color, thickness: int):
    """绘制笔画折线，单点笔画画成圆点"""
    for stroke in strokes:
        if not stroke:
            continue
        if len(stroke) == 1:
            x, y = stroke[0]
            cv2.circle(image, (int(x), int(y)), max(thickness // 2, 1), color, -1)
            continue
        pts = np.array(stroke, dtype=np.int32).reshape(-1, 1, 2)
        cv2.polylines(image, [pts], False, color, thickness, lineType=cv2.LINE_AA)


def draw_palm_indicator(image: np.ndarray, hand: HandReport, config: OverlayConfig):
    """水平手掌：掌心画圆，并沿手掌方向画箭头；(0, 0) 方向不画箭头"""
    cx, cy = hand.classification.palm_center
    center = (int(cx), int(cy))
    cv2.circle(image, center, config.cursor_radius * 2, config.palm_color, 2)

    dx, dy = hand.classification.palm_direction
    if dx == 0.0 and dy == 0.0:
        return
    tip = (int(cx + dx * config.palm_arrow_length), int(cy + dy * config.palm_arrow_length))
    cv2.arrowedLine(image, center, tip, config.palm_color, 3, tipLength=0.3)


def render(
    image: np.ndarray,
    report: FrameReport,
    session: DrawingSession,
    config: Optional[OverlayConfig] = None,
    draw_landmarks: bool = True
) -> np.ndarray:
    """
    渲染一帧叠加层

    Args:
        image: 原始 BGR 图像
        report: 本帧处理结果
        session: 绘制会话（提供笔画）
        config: 叠加层配置
        draw_landmarks: 是否绘制骨骼

    Returns:
        绘制后的图像副本
    """
    config = config or OverlayConfig()
    output = image.copy()

    if draw_landmarks:
        for hand in report.hands:
            draw_skeleton(output, hand)

    strokes = session.paths
    current = session.current_path
    if current:
        strokes.append(current)
    draw_strokes(output, strokes, config.stroke_color, config.stroke_thickness)

    for hand in report.hands:
        if hand.classification.is_horizontal_palm:
            draw_palm_indicator(output, hand, config)

    if report.cursor is not None:
        color = config.cursor_drawing_color if session.is_drawing else config.cursor_idle_color
        x, y = report.cursor
        cv2.circle(output, (int(x), int(y)), config.cursor_radius, color, -1)

    if report.drawing_disabled:
        cv2.putText(output, "DRAWING DISABLED", (10, output.shape[0] - 40),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 255), 2)

    return output
