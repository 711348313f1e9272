"""
WebSocket 服务模块
将每帧的手势判定与笔画状态实时推送给前端
"""

import asyncio
import json
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Set

import websockets

from . import __version__
from .config.settings import Config, default_config
from .core.capture import CameraCapture
from .core.detector import HandDetector
from .core.drawing import StrokeEvent
from .core.pipeline import DrawingPipeline

logger = logging.getLogger(__name__)


@dataclass
class WebSocketMessage:
    """WebSocket 消息结构"""
    type: str
    timestamp: float
    data: Dict[str, Any]

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> "WebSocketMessage":
        data = json.loads(json_str)
        return cls(
            type=data["type"],
            timestamp=data.get("timestamp", 0.0),
            data=data.get("data", {})
        )


def _now_ms() -> float:
    return time.time() * 1000


class FingerDrawServer:
    """
    FingerDraw WebSocket 服务器
    整合摄像头采集、手部检测与绘制流程
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or default_config

        self.camera: Optional[CameraCapture] = None
        self.detector: Optional[HandDetector] = None
        self.pipeline = DrawingPipeline(
            thresholds=self.config.gesture,
            config=self.config.pipeline
        )
        self.pipeline.session.register_callback(self._on_stroke_event)

        self._clients: Set[Any] = set()
        self._running = False
        self._processing_task: Optional[asyncio.Task] = None

        self._frame_count = 0
        self._start_time = 0.0

    @property
    def session(self):
        return self.pipeline.session

    async def start(self):
        """初始化摄像头与检测器"""
        logger.info("正在初始化组件...")

        cam = self.config.camera
        self.camera = CameraCapture(
            device_id=cam.device_id,
            width=cam.width,
            height=cam.height,
            fps=cam.fps,
            mirror=cam.mirror
        )
        if not self.camera.start():
            raise RuntimeError(f"无法启动摄像头 {cam.device_id}")

        det = self.config.detector
        self.detector = HandDetector(
            max_num_hands=det.max_num_hands,
            min_detection_confidence=det.min_detection_confidence,
            min_tracking_confidence=det.min_tracking_confidence,
            model_complexity=det.model_complexity
        )

        self._running = True
        self._start_time = time.time()
        logger.info("组件初始化完成")

    async def stop(self):
        """停止服务"""
        logger.info("正在停止服务...")
        self._running = False

        if self._processing_task:
            self._processing_task.cancel()
            try:
                await self._processing_task
            except asyncio.CancelledError:
                pass

        for client in self._clients.copy():
            await client.close()

        if self.camera:
            self.camera.stop()
        if self.detector:
            self.detector.close()

        logger.info("服务已停止")

    def _on_stroke_event(self, event: StrokeEvent):
        """笔画事件回调：只广播开始与结束"""
        if event.event_type == "extend" or not self._clients:
            return
        message = WebSocketMessage(
            type="stroke_event",
            timestamp=_now_ms(),
            data=event.to_dict()
        )
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.create_task(self._broadcast(message.to_json()))

    async def _broadcast(self, message: str):
        """广播消息到所有客户端"""
        if not self._clients:
            return
        await asyncio.gather(
            *[client.send(message) for client in self._clients.copy()],
            return_exceptions=True
        )

    async def _process_frames(self):
        """帧处理主循环"""
        logger.info("开始帧处理...")

        while self._running:
            frame = self.camera.read(timeout=0.0)
            if frame is None:
                await asyncio.sleep(0.01)
                continue

            self._frame_count += 1

            detection = self.detector.detect(
                frame.image,
                frame_id=frame.frame_id,
                timestamp=frame.timestamp
            )
            report = self.pipeline.process(detection)

            data = report.to_dict()
            data["inference_time_ms"] = detection.inference_time_ms
            data["session"] = self.session.to_dict()

            message = WebSocketMessage(type="frame_data", timestamp=frame.timestamp, data=data)
            await self._broadcast(message.to_json())

            await asyncio.sleep(0.001)

    async def handle_client(self, websocket):
        """处理客户端连接"""
        client_id = id(websocket)
        logger.info("客户端已连接: %s", client_id)
        self._clients.add(websocket)

        welcome = WebSocketMessage(
            type="connected",
            timestamp=_now_ms(),
            data={
                "message": "Welcome to FingerDraw",
                "version": __version__,
                "config": {
                    "camera": {
                        "width": self.config.camera.width,
                        "height": self.config.camera.height,
                        "mirror": self.config.camera.mirror
                    },
                    "toggle_gesture": self.config.pipeline.toggle_gesture
                }
            }
        )
        await websocket.send(welcome.to_json())

        try:
            async for message in websocket:
                await self._handle_message(websocket, message)
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            self._clients.discard(websocket)
            logger.info("客户端已断开: %s", client_id)

    async def _handle_message(self, websocket, message: str):
        """处理客户端消息"""
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.warning("无效的 JSON 消息: %s", message)
            return
        if not isinstance(data, dict):
            logger.warning("无效的消息格式: %s", message)
            return

        msg_type = data.get("type")

        if msg_type == "ping":
            pong = WebSocketMessage(type="pong", timestamp=_now_ms(), data={})
            await websocket.send(pong.to_json())

        elif msg_type == "clear":
            self.session.clear()
            cleared = WebSocketMessage(
                type="session",
                timestamp=_now_ms(),
                data=self.session.to_dict()
            )
            await self._broadcast(cleared.to_json())

        elif msg_type == "get_session":
            reply = WebSocketMessage(
                type="session",
                timestamp=_now_ms(),
                data=self.session.to_dict()
            )
            await websocket.send(reply.to_json())

        else:
            logger.warning("未知消息类型: %s", msg_type)

    async def run(self, host: str = "127.0.0.1", port: int = 8765):
        """运行服务器"""
        await self.start()
        self._processing_task = asyncio.create_task(self._process_frames())

        logger.info("WebSocket 服务器启动: ws://%s:%s", host, port)

        async with websockets.serve(self.handle_client, host, port):
            while self._running:
                await asyncio.sleep(self.config.server.stats_interval)

                if self._frame_count > 0:
                    elapsed = time.time() - self._start_time
                    fps = self._frame_count / elapsed if elapsed > 0 else 0
                    logger.info(
                        "帧数: %d, FPS: %.1f, 客户端: %d, 笔画: %d",
                        self._frame_count, fps, len(self._clients), len(self.session.paths)
                    )
