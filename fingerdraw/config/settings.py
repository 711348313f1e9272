"""
FingerDraw 配置文件
包含手势判定阈值、绘制流程参数、服务器与摄像头配置等
"""

from dataclasses import dataclass, field


@dataclass
class GestureThresholds:
    """手势判定阈值配置（像素单位的容差均为固定值，不随分辨率缩放）"""

    # 张开手掌：至少多少根手指伸直
    open_min_fingers: int = 3

    # 食指单指判定：其余手指“弯曲”的像素容差
    closed_tip_margin_px: float = 5.0     # 指尖需低于关节至少此像素
    closed_joint_margin_px: float = 15.0  # 关节不得高于中节超过此像素

    # 食指单指判定：拇指收拢的像素容差
    thumb_tuck_margin_px: float = 20.0

    # 水平手掌：法向量 Z 分量阈值（正负两侧都接受）
    normal_z_threshold: float = 0.1

    # 水平手掌：指尖平均高度与手腕高度差 / 手腕到食指根长度
    level_ratio: float = 0.5


@dataclass
class PipelineConfig:
    """绘制流程配置"""

    # 控制手（TOGGLE）落笔使用的手势: "open" | "index_only"
    toggle_gesture: str = "open"

    # 双手同时水平张开时禁用绘制
    disable_on_both_horizontal: bool = True


@dataclass
class OverlayConfig:
    """叠加层绘制配置（BGR）"""

    stroke_color: tuple = (255, 0, 255)
    stroke_thickness: int = 4
    cursor_radius: int = 10
    cursor_drawing_color: tuple = (0, 255, 0)
    cursor_idle_color: tuple = (160, 160, 160)
    palm_color: tuple = (0, 200, 255)
    palm_arrow_length: int = 80


@dataclass
class ServerConfig:
    """WebSocket 服务器配置"""

    host: str = "127.0.0.1"
    port: int = 8765

    # 统计日志间隔（秒）
    stats_interval: float = 5.0


@dataclass
class CameraConfig:
    """摄像头配置"""

    device_id: int = 0               # 摄像头设备ID
    width: int = 640                 # 分辨率宽度
    height: int = 480                # 分辨率高度
    fps: int = 30                    # 帧率
    mirror: bool = True              # 是否镜像（自拍模式，影响左右手角色映射）


@dataclass
class DetectorConfig:
    """MediaPipe Hands 配置"""

    max_num_hands: int = 2
    min_detection_confidence: float = 0.7
    min_tracking_confidence: float = 0.5
    model_complexity: int = 1


@dataclass
class Config:
    """主配置类，整合所有配置"""

    gesture: GestureThresholds = field(default_factory=GestureThresholds)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)

    # 调试选项
    debug: bool = False
    log_level: str = "INFO"


# 创建默认配置实例
default_config = Config()
