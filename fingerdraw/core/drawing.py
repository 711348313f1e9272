"""
绘制状态机模块
根据每帧的落笔信号累积笔画：IDLE <-> DRAWING
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
Stroke = List[Point]


class DrawingState(Enum):
    """绘制状态枚举"""
    IDLE = "idle"           # 抬笔
    DRAWING = "drawing"     # 落笔中


@dataclass
class StrokeEvent:
    """笔画事件"""
    event_type: str          # "start" | "extend" | "end"
    point_count: int         # 当前笔画点数
    stroke_index: int        # 笔画序号（结束的笔画即其在 paths 中的位置）
    position: Optional[Point] = None
    meta: Dict = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "event_type": self.event_type,
            "point_count": self.point_count,
            "stroke_index": self.stroke_index,
            "position": list(self.position) if self.position else None,
            "meta": self.meta
        }


class DrawingSession:
    """
    绘制会话
    以布尔落笔信号驱动的两状态机，已完成的笔画保存在 paths 中
    """

    def __init__(self):
        self._state = DrawingState.IDLE
        self._paths: List[Stroke] = []
        self._current: Stroke = []
        self._callbacks: List[Callable[[StrokeEvent], None]] = []

    def register_callback(self, callback: Callable[[StrokeEvent], None]):
        """注册事件回调"""
        self._callbacks.append(callback)

    def _emit_event(self, event: StrokeEvent):
        for callback in self._callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception("笔画事件回调异常")

    def update(self, pen_down: bool, position: Point) -> Optional[StrokeEvent]:
        """
        推进一帧

        Args:
            pen_down: 本帧是否落笔
            position: 笔尖像素坐标

        Returns:
            产生的事件，无事件时返回 None
        """
        point = (float(position[0]), float(position[1]))

        if self._state == DrawingState.IDLE:
            if not pen_down:
                return None
            self._state = DrawingState.DRAWING
            self._current = [point]
            event = StrokeEvent("start", 1, len(self._paths), point)
            logger.debug("开始新笔画 #%d at (%.0f, %.0f)", event.stroke_index, *point)
            self._emit_event(event)
            return event

        if pen_down:
            self._current.append(point)
            event = StrokeEvent("extend", len(self._current), len(self._paths), point)
            self._emit_event(event)
            return event

        return self._commit(reason="pen_up")

    def lift(self, reason: str = "lift") -> Optional[StrokeEvent]:
        """强制抬笔，保留当前笔画（手丢失或绘制被禁用时调用）"""
        if self._state == DrawingState.IDLE and not self._current:
            return None
        return self._commit(reason=reason)

    def _commit(self, reason: str) -> Optional[StrokeEvent]:
        self._state = DrawingState.IDLE
        if not self._current:
            return None

        stroke = self._current
        self._paths.append(stroke)
        self._current = []

        event = StrokeEvent(
            "end", len(stroke), len(self._paths) - 1, stroke[-1], meta={"reason": reason}
        )
        logger.debug("笔画 #%d 结束 (%d 点, %s)", event.stroke_index, len(stroke), reason)
        self._emit_event(event)
        return event

    def clear(self):
        """清空全部笔画并回到 IDLE"""
        self._state = DrawingState.IDLE
        self._paths = []
        self._current = []
        logger.info("画布已清空")

    @property
    def state(self) -> DrawingState:
        return self._state

    @property
    def is_drawing(self) -> bool:
        return self._state == DrawingState.DRAWING

    @property
    def paths(self) -> List[Stroke]:
        """已完成的笔画（副本）"""
        return [list(p) for p in self._paths]

    @property
    def current_path(self) -> Stroke:
        return list(self._current)

    def to_dict(self) -> Dict:
        return {
            "state": self._state.value,
            "paths": [[list(p) for p in stroke] for stroke in self._paths],
            "current_path": [list(p) for p in self._current]
        }
