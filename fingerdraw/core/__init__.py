"""
FingerDraw 核心模块
包含手部检测、手势判定、绘制状态机与叠加层绘制
"""

from .capture import CameraCapture, Frame
from .detector import DetectionResult, HandDetector, HandLandmarks, HandRole, role_for_handedness
from .drawing import DrawingSession, DrawingState, StrokeEvent
from .gesture import (
    GestureClassifier,
    HandClassification,
    classify_landmarks,
    is_hand_open,
    is_horizontal_open_palm,
    is_index_finger_only,
    palm_center,
    palm_direction,
)
from .pipeline import DrawingPipeline, FrameReport, HandReport

__all__ = [
    "CameraCapture",
    "Frame",
    "DetectionResult",
    "HandDetector",
    "HandLandmarks",
    "HandRole",
    "role_for_handedness",
    "DrawingSession",
    "DrawingState",
    "StrokeEvent",
    "GestureClassifier",
    "HandClassification",
    "classify_landmarks",
    "is_hand_open",
    "is_horizontal_open_palm",
    "is_index_finger_only",
    "palm_center",
    "palm_direction",
    "DrawingPipeline",
    "FrameReport",
    "HandReport",
]
