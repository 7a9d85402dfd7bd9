"""
Scene Sentinel - 命令行入口

用法：
    python examples/main.py                    # 使用摄像头
    python examples/main.py a.jpg b.jpg ...    # 循环读取图片（模拟摄像头）

运行中按 r + 回车重置参考帧，Ctrl+C 停止
"""
import sys
import threading
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Windows 控制台 UTF-8 编码
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding='utf-8')

from scene_sentinel.common import Config
from scene_sentinel.errors import SceneSentinelError
from scene_sentinel.messenger import create_alert_service, AlertServiceConfig
from scene_sentinel.monitor import MonitorConfig, create_monitoring_scheduler
from scene_sentinel.vision import CameraCapture, FileCapture


class SceneMonitorApp:
    """场景监控主类"""

    def __init__(self, image_paths=None):
        self.config = Config()
        self.image_paths = image_paths or []
        self.monitor = None
        self._stopped = threading.Event()

    def initialize(self) -> bool:
        """初始化所有模块"""
        print("=" * 50)
        print("Scene Sentinel 启动中...")
        print("=" * 50)

        # 1. 采集来源
        if self.image_paths:
            print(f"\n[1/2] 使用图片模拟摄像头: {len(self.image_paths)} 张")
            capture_source = FileCapture(self.image_paths, log_dir=self.config.log_dir)
        else:
            print(f"\n[1/2] 使用摄像头 (索引: {self.config.camera.camera_index})")
            capture_source = CameraCapture(self.config)

        # 2. 告警 + 调度器
        print("\n[2/2] 初始化告警服务和调度器...")
        monitor_config = MonitorConfig.load(self.config.config_file)
        alert_service = create_alert_service(AlertServiceConfig(
            telegram_token=self.config.telegram.bot_token,
            telegram_chat_id=self.config.telegram.chat_id,
            timeout=monitor_config.alert_timeout,
            log_dir=monitor_config.log_dir
        ))
        self.monitor = create_monitoring_scheduler(
            capture_source=capture_source,
            alert_service=alert_service,
            config_file=self.config.config_file
        )

        settings = self.monitor.settings
        print("\n" + "=" * 50)
        print("配置信息:")
        print(f"  - 截图间隔: {self.monitor.config.capture_interval_ms}ms")
        print(f"  - 灵敏度: {settings.sensitivity}%")
        for criterion, cfg in settings.criteria.items():
            print(f"  - {criterion.value}: {'启用' if cfg.enabled else '停用'}, 阈值 {cfg.parameter}%")
        print(f"  - 监控区域: {len(self.monitor.regions)} 个")
        print("=" * 50)

        return True

    def run(self):
        """启动监控并等待用户输入"""
        try:
            self.monitor.start()
        except SceneSentinelError as e:
            print(f"\n❌ 启动失败: {e}")
            return

        print("\n🚀 开始监控...")
        print("输入 r 重置参考帧，Ctrl+C 停止\n")

        try:
            for line in sys.stdin:
                if line.strip().lower() == "r":
                    try:
                        self.monitor.reset_reference()
                        print("✅ 参考帧已重置")
                    except SceneSentinelError as e:
                        print(f"❌ 重置失败: {e}")
            # 标准输入关闭（例如后台运行）时一直等到 Ctrl+C
            self._stopped.wait()
        except KeyboardInterrupt:
            print("\n\n收到停止信号，正在退出...")

    def shutdown(self):
        """关闭所有模块"""
        print("\n" + "=" * 50)
        print("正在关闭系统...")

        if self.monitor:
            events = self.monitor.ledger.all()
            print(f"本次共检测到 {len(events)} 次变化")
            self.monitor.shutdown()

        print("系统已关闭")
        print("=" * 50)


def main():
    """主函数"""
    app = SceneMonitorApp(sys.argv[1:])

    if not app.initialize():
        print("\n初始化失败，退出程序")
        sys.exit(1)

    try:
        app.run()
    finally:
        app.shutdown()


if __name__ == "__main__":
    main()
