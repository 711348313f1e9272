"""
摄像头采集模块
后台线程读取视频帧，队列满时丢弃最旧的帧
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Generator, Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class Frame:
    """视频帧数据结构"""
    image: np.ndarray           # BGR 图像数据
    frame_id: int               # 帧序号
    timestamp: float            # 相对启动时刻的毫秒数
    width: int
    height: int


class CameraCapture:
    """
    摄像头采集类
    采集在守护线程中进行，消费方通过 read() 取最新帧
    """

    def __init__(
        self,
        device_id: int = 0,
        width: int = 640,
        height: int = 480,
        fps: int = 30,
        mirror: bool = True,
        buffer_size: int = 2
    ):
        """
        Args:
            device_id: 摄像头设备ID
            width: 期望分辨率宽度
            height: 期望分辨率高度
            fps: 期望帧率
            mirror: 是否水平翻转。手性角色映射假定画面是镜像的
            buffer_size: 帧缓冲区大小
        """
        self.device_id = device_id
        self.width = width
        self.height = height
        self.fps = fps
        self.mirror = mirror

        self._cap: Optional[cv2.VideoCapture] = None
        self._frames: queue.Queue = queue.Queue(maxsize=buffer_size)
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._frame_count = 0
        self._start_ms = 0.0

    def start(self) -> bool:
        """
        启动采集

        Returns:
            是否成功启动（摄像头无法打开时返回 False）
        """
        if self._running:
            return True

        self._cap = cv2.VideoCapture(self.device_id)
        if not self._cap.isOpened():
            logger.error("无法打开摄像头 %s", self.device_id)
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._cap.set(cv2.CAP_PROP_FPS, self.fps)

        logger.info(
            "摄像头已启动: %dx%d @ %.1ffps",
            int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            self._cap.get(cv2.CAP_PROP_FPS)
        )

        self._running = True
        self._frame_count = 0
        self._start_ms = time.time() * 1000
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()
        return True

    def stop(self):
        """停止采集并释放摄像头"""
        self._running = False

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=1.0)
        self._thread = None

        if self._cap:
            self._cap.release()
            self._cap = None

        while True:
            try:
                self._frames.get_nowait()
            except queue.Empty:
                break

        logger.info("摄像头已停止")

    def _capture_loop(self):
        while self._running and self._cap is not None and self._cap.isOpened():
            ok, image = self._cap.read()
            if not ok:
                logger.warning("读取帧失败")
                continue

            if self.mirror:
                image = cv2.flip(image, 1)

            self._frame_count += 1
            frame = Frame(
                image=image,
                frame_id=self._frame_count,
                timestamp=time.time() * 1000 - self._start_ms,
                width=image.shape[1],
                height=image.shape[0]
            )

            # 丢弃旧帧，保证消费方拿到最新画面
            if self._frames.full():
                try:
                    self._frames.get_nowait()
                except queue.Empty:
                    pass
            try:
                self._frames.put_nowait(frame)
            except queue.Full:
                pass

    def read(self, timeout: float = 0.1) -> Optional[Frame]:
        """读取一帧，超时返回 None"""
        try:
            return self._frames.get(timeout=timeout)
        except queue.Empty:
            return None

    def read_generator(self) -> Generator[Frame, None, None]:
        while self._running:
            frame = self.read()
            if frame is not None:
                yield frame

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def actual_fps(self) -> float:
        if self._frame_count == 0 or self._start_ms == 0:
            return 0.0
        elapsed = (time.time() * 1000 - self._start_ms) / 1000
        return self._frame_count / elapsed if elapsed > 0 else 0.0

    def __enter__(self):
        if not self.start():
            raise RuntimeError(f"无法打开摄像头 {self.device_id}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
