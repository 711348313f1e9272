#!/usr/bin/env python3
"""
FingerDraw - 双手手势隔空绘制
主入口文件

用法:
    fingerdraw                  # 启动 WebSocket 服务器
    fingerdraw --debug          # 启动本地预览窗口
"""

import argparse
import asyncio
import logging

from .config.settings import Config

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )


def run_debug_mode(config: Config):
    """
    调试模式：显示带叠加层的预览窗口，不启动 WebSocket 服务器
    """
    import cv2

    from .core.capture import CameraCapture
    from .core.detector import HandDetector
    from .core.overlay import render
    from .core.pipeline import DrawingPipeline

    logger.info("调试模式: 'q' 退出, 'c' 清空画布")

    cam = config.camera
    det = config.detector
    camera = CameraCapture(
        device_id=cam.device_id,
        width=cam.width,
        height=cam.height,
        fps=cam.fps,
        mirror=cam.mirror
    )
    pipeline = DrawingPipeline(thresholds=config.gesture, config=config.pipeline)

    if not camera.start():
        logger.error("无法启动摄像头")
        return

    detector = HandDetector(
        max_num_hands=det.max_num_hands,
        min_detection_confidence=det.min_detection_confidence,
        min_tracking_confidence=det.min_tracking_confidence,
        model_complexity=det.model_complexity
    )

    try:
        for frame in camera.read_generator():
            detection = detector.detect(
                frame.image,
                frame_id=frame.frame_id,
                timestamp=frame.timestamp
            )
            report = pipeline.process(detection)
            output = render(frame.image, report, pipeline.session, config.overlay)

            info_lines = [
                f"FPS: {camera.actual_fps:.1f}",
                f"Hands: {detection.num_hands}",
                f"Strokes: {len(pipeline.session.paths)}",
                f"State: {pipeline.session.state.value}"
            ]
            y_offset = 30
            for line in info_lines:
                cv2.putText(output, line, (10, y_offset),
                            cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2)
                y_offset += 25

            cv2.imshow("FingerDraw Debug", output)

            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                break
            elif key == ord('c'):
                pipeline.session.clear()
    finally:
        camera.stop()
        detector.close()
        cv2.destroyAllWindows()
        logger.info("调试模式结束")


def run_server_mode(config: Config):
    """服务器模式：启动 WebSocket 服务器"""
    from .server import FingerDrawServer

    server = FingerDrawServer(config)

    async def _serve():
        try:
            await server.run(host=config.server.host, port=config.server.port)
        finally:
            await server.stop()

    try:
        asyncio.run(_serve())
    except KeyboardInterrupt:
        logger.info("收到中断信号")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="FingerDraw - 双手手势隔空绘制",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
    fingerdraw                        启动 WebSocket 服务器
    fingerdraw --debug                启动预览窗口
    fingerdraw --toggle-gesture index_only
        """
    )
    parser.add_argument("--debug", "-d", action="store_true", help="启动调试模式（预览窗口）")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="服务器主机地址 (默认: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, default=8765, help="服务器端口 (默认: 8765)")
    parser.add_argument("--camera", "-c", type=int, default=0, help="摄像头设备 ID (默认: 0)")
    parser.add_argument("--no-mirror", action="store_true", help="关闭画面镜像")
    parser.add_argument(
        "--toggle-gesture",
        choices=["open", "index_only"],
        default="open",
        help="控制手落笔使用的手势 (默认: open)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="日志级别 (默认: 配置中的 log_level)"
    )
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    config = Config()
    config.server.host = args.host
    config.server.port = args.port
    config.camera.device_id = args.camera
    config.camera.mirror = not args.no_mirror
    config.pipeline.toggle_gesture = args.toggle_gesture
    config.debug = args.debug
    if args.log_level:
        config.log_level = args.log_level
    return config


def main(argv=None):
    """主函数"""
    args = build_parser().parse_args(argv)
    config = config_from_args(args)
    configure_logging(config.log_level)

    if not config.camera.mirror:
        logger.warning("画面未镜像，左右手角色将互换")

    if config.debug:
        run_debug_mode(config)
    else:
        run_server_mode(config)


if __name__ == "__main__":
    main()
