"""
绘制流程模块
对每帧检测结果判定双手手势，按角色驱动绘制状态机
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config.settings import GestureThresholds, PipelineConfig
from .detector import DetectionResult, HandLandmarks, HandRole
from .drawing import DrawingSession, Point, StrokeEvent
from .gesture import GestureClassifier, HandClassification

logger = logging.getLogger(__name__)

TOGGLE_GESTURES = ("open", "index_only")


@dataclass
class HandReport:
    """单手的本帧判定"""
    hand: HandLandmarks
    role: Optional[HandRole]
    classification: HandClassification
    position: Point                  # 食指指尖像素坐标
    active: bool                     # 按角色选择的手势是否成立

    def to_dict(self) -> Dict[str, Any]:
        data = self.hand.to_dict()
        data.update(self.classification.to_dict())
        data["position"] = list(self.position)
        data["active"] = self.active
        return data


@dataclass
class FrameReport:
    """一帧的处理结果"""
    frame_id: int
    timestamp: float
    image_width: int
    image_height: int
    hands: List[HandReport] = field(default_factory=list)
    cursor: Optional[Point] = None       # 双手齐全时的笔尖位置
    pen_down: bool = False
    drawing_disabled: bool = False       # 双手水平张开
    event: Optional[StrokeEvent] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame_id": self.frame_id,
            "timestamp": self.timestamp,
            "image_size": [self.image_width, self.image_height],
            "hands": [h.to_dict() for h in self.hands],
            "cursor": list(self.cursor) if self.cursor else None,
            "pen_down": self.pen_down,
            "drawing_disabled": self.drawing_disabled,
            "event": self.event.to_dict() if self.event else None
        }


class DrawingPipeline:
    """
    双手绘制流程

    CURSOR 手的食指指尖给出笔尖位置，TOGGLE 手的手势决定落笔。
    只有双手同时出现时才绘制；任一手丢失时抬笔但保留已有笔画。
    """

    def __init__(
        self,
        thresholds: Optional[GestureThresholds] = None,
        config: Optional[PipelineConfig] = None,
        session: Optional[DrawingSession] = None
    ):
        self.config = config or PipelineConfig()
        if self.config.toggle_gesture not in TOGGLE_GESTURES:
            raise ValueError(
                f"toggle_gesture 必须是 {TOGGLE_GESTURES} 之一: {self.config.toggle_gesture!r}"
            )
        self.classifier = GestureClassifier(thresholds)
        self.session = session or DrawingSession()

    def _is_active(self, role: Optional[HandRole], result: HandClassification) -> bool:
        if role == HandRole.CURSOR:
            return result.is_index_only
        if self.config.toggle_gesture == "index_only":
            return result.is_index_only
        return result.is_open

    def process(self, detection: DetectionResult) -> FrameReport:
        """
        处理一帧检测结果

        Args:
            detection: 手部检测结果

        Returns:
            FrameReport 本帧判定与绘制状态
        """
        report = FrameReport(
            frame_id=detection.frame_id,
            timestamp=detection.timestamp,
            image_width=detection.image_width,
            image_height=detection.image_height
        )

        # 整帧无手：只隐藏笔尖，不结束当前笔画（检测器偶发丢帧）
        if not detection.hands:
            logger.debug("本帧未检测到手，保持当前笔画")
            return report

        cursor: Optional[HandReport] = None
        toggle: Optional[HandReport] = None

        for hand in detection.hands:
            role = hand.role
            result = self.classifier.classify(hand)
            hand_report = HandReport(
                hand=hand,
                role=role,
                classification=result,
                position=hand.index_tip_pixel,
                active=self._is_active(role, result)
            )
            report.hands.append(hand_report)

            if role == HandRole.CURSOR:
                cursor = hand_report
            elif role == HandRole.TOGGLE:
                toggle = hand_report
            else:
                logger.warning("未知手性标签: %s", hand.handedness)

        if cursor is None or toggle is None:
            report.event = self.session.lift(reason="hand_lost")
            logger.debug("双手不全 (cursor=%s, toggle=%s)，保留已有笔画", cursor is not None, toggle is not None)
            return report

        report.cursor = cursor.position

        both_horizontal = (
            cursor.classification.is_horizontal_palm and
            toggle.classification.is_horizontal_palm
        )
        if both_horizontal and self.config.disable_on_both_horizontal:
            report.drawing_disabled = True
            report.event = self.session.lift(reason="disabled")
            logger.debug("双手水平张开，绘制已禁用")
            return report

        report.pen_down = toggle.active
        report.event = self.session.update(toggle.active, cursor.position)
        return report
