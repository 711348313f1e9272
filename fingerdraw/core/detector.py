"""
手部检测模块
使用 MediaPipe Hands 进行手部关键点检测，并按手性分配绘制角色
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class LandmarkIndex(IntEnum):
    """MediaPipe 手部 21 个关键点索引"""
    WRIST = 0

    # 大拇指
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4

    # 食指
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8

    # 中指
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12

    # 无名指
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16

    # 小指
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


NUM_LANDMARKS = 21

# 手指定义：(指尖, 关节, 中节, 指根)
FINGER_INDICES = {
    "thumb": (4, 3, 2, 1),
    "index": (8, 7, 6, 5),
    "middle": (12, 11, 10, 9),
    "ring": (16, 15, 14, 13),
    "pinky": (20, 19, 18, 17)
}

# 掌心：手腕 + 五个指根
PALM_CENTER_INDICES = (0, 5, 9, 13, 17)

# 骨骼连接定义（用于绘制）
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (0, 9), (9, 10), (10, 11), (11, 12),
    (0, 13), (13, 14), (14, 15), (15, 16),
    (0, 17), (17, 18), (18, 19), (19, 20),
    (5, 9), (9, 13), (13, 17)
]


class HandRole(Enum):
    """双手绘制中的角色"""
    CURSOR = "cursor"   # 食指指尖决定笔尖位置
    TOGGLE = "toggle"   # 手势决定落笔/抬笔


def role_for_handedness(label: str) -> Optional[HandRole]:
    """
    根据 MediaPipe 手性标签分配角色

    注意：映射是故意反转的。预览画面是镜像的，MediaPipe 报告的 "Left"
    实际上是用户的右手，因此 "Left" -> CURSOR，"Right" -> TOGGLE。
    不要“修正”这里，否则双手角色会互换。

    Args:
        label: MediaPipe 手性标签（"Left" / "Right"）

    Returns:
        HandRole，未知标签返回 None
    """
    if label == "Left":
        return HandRole.CURSOR
    if label == "Right":
        return HandRole.TOGGLE
    return None


def assign_hand_id(handedness: str, existing_ids: List[str]) -> str:
    """
    分配手部 ID
    使用手性作为 ID；同一帧内手性重复时追加序号（"left", "left_1", ...）
    """
    base = handedness.lower()
    hand_id = base
    suffix = 1
    while hand_id in existing_ids:
        hand_id = f"{base}_{suffix}"
        suffix += 1
    return hand_id


@dataclass
class HandLandmarks:
    """单手关键点数据"""
    hand_id: str                           # 手的标识符
    handedness: str                        # MediaPipe 手性标签
    landmarks: np.ndarray                  # 21x3 关键点坐标 (归一化)
    confidence: float                      # 检测置信度
    image_width: int                       # 原图宽度
    image_height: int                      # 原图高度

    @property
    def role(self) -> Optional[HandRole]:
        return role_for_handedness(self.handedness)

    @property
    def landmarks_pixel(self) -> np.ndarray:
        """21x2 像素坐标（整数，用于绘制）"""
        scale = np.array([self.image_width, self.image_height], dtype=float)
        return (self.landmarks[:, :2] * scale).astype(int)

    @property
    def index_tip_pixel(self) -> Tuple[float, float]:
        """食指指尖像素坐标（笔尖位置）"""
        tip = self.landmarks[LandmarkIndex.INDEX_TIP]
        return (float(tip[0] * self.image_width), float(tip[1] * self.image_height))

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典（用于 JSON 序列化）"""
        role = self.role
        return {
            "id": self.hand_id,
            "handedness": self.handedness,
            "role": role.value if role else None,
            "landmarks": self.landmarks.tolist(),
            "confidence": self.confidence
        }


@dataclass
class DetectionResult:
    """检测结果"""
    hands: List[HandLandmarks] = field(default_factory=list)
    frame_id: int = 0
    timestamp: float = 0.0
    inference_time_ms: float = 0.0
    image_width: int = 0
    image_height: int = 0

    @property
    def num_hands(self) -> int:
        return len(self.hands)

    @property
    def has_hands(self) -> bool:
        return len(self.hands) > 0


class HandDetector:
    """
    手部检测器
    封装 MediaPipe Hands，提供统一的检测接口
    """

    def __init__(
        self,
        max_num_hands: int = 2,
        min_detection_confidence: float = 0.7,
        min_tracking_confidence: float = 0.5,
        model_complexity: int = 1
    ):
        """
        初始化检测器

        Args:
            max_num_hands: 最大检测手数（双手绘制需要 2）
            min_detection_confidence: 检测置信度阈值
            min_tracking_confidence: 追踪置信度阈值
            model_complexity: 模型复杂度 (0=lite, 1=full)
        """
        # 延迟导入，纯几何部分不依赖模型运行时
        import mediapipe as mp

        self.max_num_hands = max_num_hands
        self._hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=max_num_hands,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
            model_complexity=model_complexity
        )
        logger.info("手部检测器已初始化: max_num_hands=%d", max_num_hands)

    def detect(
        self,
        image: np.ndarray,
        frame_id: int = 0,
        timestamp: float = 0.0
    ) -> DetectionResult:
        """
        检测手部关键点

        Args:
            image: BGR 格式图像
            frame_id: 帧序号
            timestamp: 时间戳（毫秒）

        Returns:
            DetectionResult 对象
        """
        start_time = time.time()

        image_rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        image_height, image_width = image.shape[:2]

        results = self._hands.process(image_rgb)

        hands = []
        if results.multi_hand_landmarks and results.multi_handedness:
            for hand_landmarks, handedness_info in zip(
                results.multi_hand_landmarks,
                results.multi_handedness
            ):
                category = handedness_info.classification[0]
                landmarks = np.array([
                    [lm.x, lm.y, lm.z]
                    for lm in hand_landmarks.landmark
                ])

                hands.append(HandLandmarks(
                    hand_id=assign_hand_id(category.label, [h.hand_id for h in hands]),
                    handedness=category.label,
                    landmarks=landmarks,
                    confidence=category.score,
                    image_width=image_width,
                    image_height=image_height
                ))

        inference_time = (time.time() - start_time) * 1000

        return DetectionResult(
            hands=hands,
            frame_id=frame_id,
            timestamp=timestamp,
            inference_time_ms=inference_time,
            image_width=image_width,
            image_height=image_height
        )

    def close(self):
        """释放资源"""
        self._hands.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
