"""
手势识别模块
基于单手 21 个关键点的几何规则判定手势

所有判定都是纯函数：输入为归一化关键点与图像尺寸，输出布尔值或向量，
不保存任何跨帧状态。时间平滑等逻辑由调用方负责。

坐标约定：x 乘以图像宽度，y 乘以图像高度，z 同样乘以图像宽度（近似）。
图像 y 轴向下，因此“指尖向上”表现为 y 值递减。
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from ..config.settings import GestureThresholds
from .detector import FINGER_INDICES, PALM_CENTER_INDICES, HandLandmarks, LandmarkIndex

logger = logging.getLogger(__name__)

_DEFAULT_THRESHOLDS = GestureThresholds()

# 除拇指外的四根手指
_FINGERS = ("index", "middle", "ring", "pinky")

# 水平判定使用的指尖：食指、中指、无名指
_LEVEL_TIPS = [int(LandmarkIndex.INDEX_TIP), int(LandmarkIndex.MIDDLE_TIP), int(LandmarkIndex.RING_TIP)]


@dataclass(frozen=True)
class HandClassification:
    """单手判定结果"""
    is_open: bool
    is_index_only: bool
    is_horizontal_palm: bool
    palm_direction: Tuple[float, float]   # 单位向量，(0, 0) 表示无方向
    palm_center: Tuple[float, float]      # 像素坐标

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_open": self.is_open,
            "is_index_only": self.is_index_only,
            "is_horizontal_palm": self.is_horizontal_palm,
            "palm_direction": list(self.palm_direction),
            "palm_center": list(self.palm_center)
        }


def _to_pixels(landmarks: Sequence, image_width: float, image_height: float) -> np.ndarray:
    """归一化关键点 -> 像素空间 (x*W, y*H, z*W)"""
    pts = np.asarray(landmarks, dtype=float)
    if pts.shape[1] == 2:
        pts = np.hstack([pts, np.zeros((pts.shape[0], 1))])
    return pts[:, :3] * np.array([image_width, image_height, image_width], dtype=float)


def _thumb_distances(px: np.ndarray) -> Tuple[float, float]:
    """拇指指尖、关节到手腕的水平距离"""
    wrist_x = px[LandmarkIndex.WRIST, 0]
    tip_dist = abs(float(px[LandmarkIndex.THUMB_TIP, 0] - wrist_x))
    joint_dist = abs(float(px[LandmarkIndex.THUMB_IP, 0] - wrist_x))
    return tip_dist, joint_dist


def _thumb_extended(px: np.ndarray) -> bool:
    tip_dist, joint_dist = _thumb_distances(px)
    return tip_dist > joint_dist


def _finger_extended(px: np.ndarray, finger: str) -> bool:
    tip, joint, mid, _ = FINGER_INDICES[finger]
    return bool(px[tip, 1] < px[joint, 1] < px[mid, 1])


def _count_extended(px: np.ndarray) -> int:
    count = int(_thumb_extended(px))
    for finger in _FINGERS:
        count += _finger_extended(px, finger)
    return count


def _hand_open(px: np.ndarray, t: GestureThresholds) -> bool:
    count = _count_extended(px)
    is_open = count >= t.open_min_fingers
    logger.debug("张开判定: 伸直手指 %d/5, open=%s", count, is_open)
    return is_open


def _index_only(px: np.ndarray, t: GestureThresholds) -> bool:
    if not _finger_extended(px, "index"):
        logger.debug("食指未伸直，不是单指手势")
        return False

    closed = 0
    for finger in ("middle", "ring", "pinky"):
        tip, joint, mid, _ = FINGER_INDICES[finger]
        tip_y, joint_y, mid_y = px[tip, 1], px[joint, 1], px[mid, 1]
        tip_below_joint = tip_y > joint_y + t.closed_tip_margin_px
        joint_near_mid = joint_y >= mid_y - t.closed_joint_margin_px
        if tip_below_joint and joint_near_mid:
            closed += 1

    tip_dist, joint_dist = _thumb_distances(px)
    thumb_tucked = tip_dist <= joint_dist + t.thumb_tuck_margin_px

    result = bool(closed >= 3 and thumb_tucked)
    logger.debug("单指判定: 弯曲手指 %d/3, 拇指收拢=%s, result=%s", closed, thumb_tucked, result)
    return result


def _horizontal_palm(px: np.ndarray, t: GestureThresholds) -> bool:
    if not _hand_open(px, t):
        return False

    wrist = px[LandmarkIndex.WRIST]
    v1 = px[LandmarkIndex.INDEX_MCP] - wrist
    v2 = px[LandmarkIndex.PINKY_MCP] - wrist

    # 掌面法向量
    normal = np.cross(v1, v2)
    magnitude = float(np.linalg.norm(normal))
    if magnitude == 0.0:
        return False
    normal_z = normal[2] / magnitude

    # 两种符号都接受，兼容镜像输入
    by_normal = normal_z < -t.normal_z_threshold
    by_normal_flipped = normal_z > t.normal_z_threshold

    # 法向量噪声较大时，用指尖与手腕是否大致齐平兜底
    avg_tip_y = float(np.mean(px[_LEVEL_TIPS, 1]))
    vertical_dist = abs(avg_tip_y - wrist[1])
    hand_length = float(np.hypot(v1[0], v1[1]))
    by_level = vertical_dist < hand_length * t.level_ratio

    result = bool(by_normal or by_normal_flipped or by_level)
    logger.debug(
        "水平手掌判定: normal_z=%.3f, by_normal=%s, by_flipped=%s, "
        "vertical_dist=%.1f, hand_length=%.1f, by_level=%s, result=%s",
        normal_z, by_normal, by_normal_flipped, vertical_dist, hand_length, by_level, result
    )
    return result


def _palm_direction(px: np.ndarray) -> Tuple[float, float]:
    delta = px[LandmarkIndex.MIDDLE_MCP, :2] - px[LandmarkIndex.WRIST, :2]
    magnitude = float(np.hypot(delta[0], delta[1]))
    if magnitude == 0.0:
        return (0.0, 0.0)
    return (float(delta[0] / magnitude), float(delta[1] / magnitude))


def _palm_center(px: np.ndarray) -> Tuple[float, float]:
    center = px[list(PALM_CENTER_INDICES), :2].mean(axis=0)
    return (float(center[0]), float(center[1]))


def count_extended_fingers(landmarks: Sequence, image_width: float, image_height: float) -> int:
    """统计伸直的手指数（拇指按水平距离，其余按纵向关节顺序）"""
    return _count_extended(_to_pixels(landmarks, image_width, image_height))


def is_hand_open(
    landmarks: Sequence,
    image_width: float,
    image_height: float,
    thresholds: Optional[GestureThresholds] = None
) -> bool:
    """
    判断手掌是否张开

    拇指：指尖到手腕的水平距离大于关节到手腕的水平距离即为伸直。
    其余四指：指尖 y < 关节 y < 中节 y 即为伸直。
    至少 3 根手指伸直视为张开。

    Args:
        landmarks: 21 个归一化关键点 (x, y, z)，长度由调用方保证
        image_width: 图像宽度（像素）
        image_height: 图像高度（像素）
        thresholds: 阈值配置，默认使用 GestureThresholds()

    Returns:
        是否张开
    """
    t = thresholds or _DEFAULT_THRESHOLDS
    return _hand_open(_to_pixels(landmarks, image_width, image_height), t)


def is_index_finger_only(
    landmarks: Sequence,
    image_width: float,
    image_height: float,
    thresholds: Optional[GestureThresholds] = None
) -> bool:
    """
    判断是否只伸出食指（指向手势）

    1. 食指按张开判定同样的规则伸直；
    2. 中指、无名指、小指中至少 3 根弯曲：
       指尖 y > 关节 y + 5px 且 关节 y >= 中节 y - 15px；
    3. 拇指未外展：|指尖x - 手腕x| <= |关节x - 手腕x| + 20px。

    容差是固定像素值，不随分辨率和手的大小缩放，远距离的小手容易误判。
    """
    t = thresholds or _DEFAULT_THRESHOLDS
    return _index_only(_to_pixels(landmarks, image_width, image_height), t)


def is_horizontal_open_palm(
    landmarks: Sequence,
    image_width: float,
    image_height: float,
    thresholds: Optional[GestureThresholds] = None
) -> bool:
    """
    判断是否为水平张开的手掌

    先要求手掌张开，否则直接返回 False。
    之后以下任一条件成立即返回 True（宽松的“或”组合）：
      - 掌面法向量 z 分量 < -0.1
      - 掌面法向量 z 分量 > 0.1
      - 三个指尖的平均 y 与手腕 y 之差 < 手腕到食指根长度的 50%
    法向量长度为 0 时返回 False。
    """
    t = thresholds or _DEFAULT_THRESHOLDS
    return _horizontal_palm(_to_pixels(landmarks, image_width, image_height), t)


def palm_direction(
    landmarks: Sequence,
    image_width: float,
    image_height: float
) -> Tuple[float, float]:
    """
    手掌方向：从手腕指向中指根的单位向量（像素空间）

    两点重合时返回 (0.0, 0.0)，调用方应将其视为“无方向”。
    """
    return _palm_direction(_to_pixels(landmarks, image_width, image_height))


def palm_center(
    landmarks: Sequence,
    image_width: float,
    image_height: float
) -> Tuple[float, float]:
    """掌心：手腕与五个指根的像素坐标平均值"""
    return _palm_center(_to_pixels(landmarks, image_width, image_height))


def classify_landmarks(
    landmarks: Sequence,
    image_width: float,
    image_height: float,
    thresholds: Optional[GestureThresholds] = None
) -> HandClassification:
    """对一组关键点进行全部判定（只做一次坐标换算）"""
    t = thresholds or _DEFAULT_THRESHOLDS
    px = _to_pixels(landmarks, image_width, image_height)
    return HandClassification(
        is_open=_hand_open(px, t),
        is_index_only=_index_only(px, t),
        is_horizontal_palm=_horizontal_palm(px, t),
        palm_direction=_palm_direction(px),
        palm_center=_palm_center(px)
    )


class GestureClassifier:
    """
    手势分类器
    持有阈值配置，对检测到的每只手独立判定，无跨帧状态
    """

    def __init__(self, thresholds: Optional[GestureThresholds] = None):
        self.thresholds = thresholds or GestureThresholds()

    def classify(self, hand: HandLandmarks) -> HandClassification:
        """
        对手部关键点进行判定

        Args:
            hand: 手部关键点数据

        Returns:
            HandClassification 判定结果
        """
        return classify_landmarks(
            hand.landmarks,
            hand.image_width,
            hand.image_height,
            self.thresholds
        )
