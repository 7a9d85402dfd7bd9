"""
监控调度器

状态机：IDLE <-> ACTIVE

┌──────────┐  start() 截图成功  ┌──────────┐
│   IDLE   │ ─────────────────▶ │  ACTIVE  │ ── 每 capture_interval_ms 一次 tick()
│          │ ◀───────────────── │          │ ── reset_reference() 替换参考帧 + 清除告警锁
└──────────┘       stop()       └──────────┘

并发约定：
- _lock 保护会话状态，截图 / 比较 / 告警投递期间不持有
- start / stop / cancel_pending 会递增 _epoch，进行中的操作提交前检查 epoch，
  不一致则丢弃结果（不会出现部分修改）
- _tick_lock 保证同一时间最多一次比较
- 告警锁（alert_pending）只由 reset_reference() / stop() 清除，不会随时间自动清除
"""
import threading
import time
from concurrent.futures import ThreadPoolExecutor, Future, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List

from scene_sentinel.common import Logger
from scene_sentinel.detection import (
    RegionSet,
    FrameComparator,
    ComparisonMetrics,
    DetectionPolicy,
    PolicyVerdict
)
from scene_sentinel.errors import CaptureFailed, DimensionMismatch, OperationCancelled
from scene_sentinel.messenger import AlertPayload
from scene_sentinel.models import Frame, Region, DetectionEvent
from scene_sentinel.storage import DetectionLedger
from scene_sentinel.vision import CaptureSource
from .monitor_config import MonitorConfig


class MonitoringState(Enum):
    """监控状态"""
    IDLE = "idle"
    ACTIVE = "active"


class TickOutcome(Enum):
    """单次 tick 的结果"""
    SKIPPED = "skipped"                          # 未在监控
    CAPTURE_FAILED = "capture_failed"            # 截图失败 / 超时
    DIMENSION_MISMATCH = "dimension_mismatch"    # 尺寸不一致
    NO_CHANGE = "no_change"                      # 未触发
    ALERTED = "alerted"                          # 触发并告警
    SUPPRESSED = "suppressed"                    # 触发但告警锁已设置
    DISCARDED = "discarded"                      # 期间被 stop / reset / cancel，结果丢弃


@dataclass
class MonitoringSession:
    """监控会话（reference_frame 只由 start / reset_reference 设置）"""
    status: MonitoringState = MonitoringState.IDLE
    reference_frame: Optional[Frame] = None
    last_frame: Optional[Frame] = None
    last_alert_at: Optional[datetime] = None
    alert_pending: bool = False


@dataclass
class MonitorStatus:
    """Monitor 统计"""
    start_time: Optional[datetime] = None
    stop_time: Optional[datetime] = None
    ticks: int = 0
    capture_failures: int = 0
    dimension_mismatches: int = 0
    alerts_sent: int = 0
    alerts_suppressed: int = 0
    delivery_failures: int = 0
    last_verdict: Optional[PolicyVerdict] = None
    last_metrics: Optional[ComparisonMetrics] = None


class MonitoringScheduler:
    """监控调度器

    职责：
    1. 监控循环管理：start() / stop() / reset_reference() / cancel_pending()
    2. 单次检测流程：tick()（截图 -> 比较 -> 判定 -> 去抖 -> 记录 + 告警）
    3. 区域与配置管理（自动保存到配置文件）
    """

    # 等待截图时检查取消信号的间隔（秒）
    CANCEL_POLL_INTERVAL = 0.05

    # 截图线程数（卡住的截图会一直占用线程）
    CAPTURE_WORKERS = 2

    def __init__(self,
                 capture_source: CaptureSource,
                 alert_service,
                 config: MonitorConfig,
                 regions: Optional[RegionSet] = None,
                 ledger: Optional[DetectionLedger] = None,
                 comparator: Optional[FrameComparator] = None,
                 policy: Optional[DetectionPolicy] = None):
        """
        Args:
            capture_source: 图像采集来源
            alert_service: 告警服务（提供 deliver(payload)，可为 None）
            config: Monitor 配置对象
            regions: 区域集合（默认从配置创建）
            ledger: 检测事件记录（默认按配置创建）
            comparator: 帧比较器
            policy: 检测策略
        """
        self.capture_source = capture_source
        self.alert_service = alert_service
        self.config = config

        self.logger = Logger(config.log_dir)

        self.regions = regions if regions is not None else RegionSet.from_list(config.regions, log_dir=config.log_dir)
        self.ledger = ledger if ledger is not None else DetectionLedger(config.max_ledger_events, log_dir=config.log_dir)
        self.comparator = comparator or FrameComparator(log_dir=config.log_dir)
        self.policy = policy or DetectionPolicy(log_dir=config.log_dir)

        # 检测 / 动作设置（每次 tick 取快照）
        self.settings = config.detection_settings()
        self.actions = config.action_config()

        # 状态变量
        self._lock = threading.RLock()
        self._tick_lock = threading.Lock()
        self._session = MonitoringSession()
        self._epoch = 0
        self._pending_operation: Optional[str] = None
        self._loop_thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._captures_in_flight = 0
        self.status = MonitorStatus()

        self._capture_executor = ThreadPoolExecutor(max_workers=self.CAPTURE_WORKERS, thread_name_prefix="SceneCapture")
        self._alert_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="SceneAlert")

        self.logger.log("monitor", "info",
                        f"MonitoringScheduler 初始化 - 截图间隔: {config.capture_interval_ms}ms, "
                        f"区域: {len(self.regions)}")

    # ==================== 状态查询 ====================

    @property
    def state(self) -> MonitoringState:
        with self._lock:
            return self._session.status

    @property
    def session(self) -> MonitoringSession:
        """当前会话的快照"""
        with self._lock:
            return replace(self._session)

    @property
    def is_monitoring(self) -> bool:
        return self.state == MonitoringState.ACTIVE

    # ==================== 监控循环管理 ====================

    def start(self) -> bool:
        """启动监控（截取参考帧后进入 ACTIVE）

        Returns:
            True 启动成功；False 已在监控或有操作进行中

        Raises:
            CaptureFailed: 参考帧截图失败（保持 IDLE）
            OperationCancelled: 截图期间被取消（保持 IDLE）
        """
        with self._lock:
            if self._session.status != MonitoringState.IDLE:
                self.logger.log("monitor", "warning", "监控已在运行")
                return False
            if self._pending_operation:
                self.logger.log("monitor", "warning", f"操作进行中: {self._pending_operation}")
                return False

            self._epoch += 1
            epoch = self._epoch
            self._pending_operation = "start"

        self.logger.log("monitor", "info", "启动监控 - 截取参考帧")

        try:
            frame = self._capture(epoch)

            with self._lock:
                if self._epoch != epoch:
                    raise OperationCancelled("启动已取消")

                self._session = MonitoringSession(
                    status=MonitoringState.ACTIVE,
                    reference_frame=frame,
                    last_frame=frame
                )
                self.status.start_time = datetime.now()

                # 在后台线程运行监控循环
                self._stop_event = threading.Event()
                self._loop_thread = threading.Thread(
                    target=self._run_monitor_loop,
                    args=(self._stop_event,),
                    name="SceneMonitorLoop",
                    daemon=True
                )
                self._loop_thread.start()

        except CaptureFailed as e:
            self.logger.log("monitor", "error", f"启动失败，参考帧截图失败: {e}")
            raise
        except OperationCancelled:
            self.logger.log("monitor", "warning", "启动已取消")
            raise
        finally:
            with self._lock:
                self._pending_operation = None

        self.logger.log("monitor", "info", f"监控已启动 - 参考帧: {frame}")
        return True

    def stop(self) -> bool:
        """停止监控

        不等待进行中的截图；从监控线程内部调用时不 join 自己

        Returns:
            True 已停止；False 本来就是 IDLE（无操作）
        """
        with self._lock:
            if self._session.status == MonitoringState.IDLE:
                self.logger.log("monitor", "warning", "监控未在运行")
                return False

            self._epoch += 1
            self._session = MonitoringSession()
            self.status.stop_time = datetime.now()

            stop_event, self._stop_event = self._stop_event, None
            loop_thread, self._loop_thread = self._loop_thread, None

        self.logger.log("monitor", "info", "停止监控")

        if stop_event:
            stop_event.set()

        if loop_thread is not None and loop_thread is not threading.current_thread():
            loop_thread.join(timeout=self.config.stop_join_timeout)
            if loop_thread.is_alive():
                self.logger.log("monitor", "warning", "监控线程未在超时时间内结束，结果将被丢弃")

        return True

    def reset_reference(self) -> bool:
        """重新截取参考帧并清除告警锁

        Returns:
            True 成功；False 未在监控或有操作进行中

        Raises:
            CaptureFailed: 截图失败（参考帧和告警锁保持不变）
            OperationCancelled: 截图期间被 stop / cancel_pending 取消
        """
        with self._lock:
            if self._session.status != MonitoringState.ACTIVE:
                self.logger.log("monitor", "warning", "监控未在运行，无法重置参考帧")
                return False
            if self._pending_operation:
                self.logger.log("monitor", "warning", f"操作进行中: {self._pending_operation}")
                return False

            epoch = self._epoch
            self._pending_operation = "reset_reference"

        self.logger.log("monitor", "info", "重置参考帧")

        try:
            frame = self._capture(epoch)

            with self._lock:
                if self._epoch != epoch or self._session.status != MonitoringState.ACTIVE:
                    raise OperationCancelled("重置参考帧已取消")

                self._session.reference_frame = frame
                self._session.last_frame = frame
                self._session.alert_pending = False

        except CaptureFailed as e:
            self.logger.log("monitor", "error", f"重置参考帧失败: {e}")
            raise
        except OperationCancelled:
            self.logger.log("monitor", "warning", "重置参考帧已取消")
            raise
        finally:
            with self._lock:
                self._pending_operation = None

        self.logger.log("monitor", "info", "参考帧已更新，告警锁已清除")
        return True

    def cancel_pending(self) -> bool:
        """取消进行中的 start() / reset_reference()

        Returns:
            是否有操作被取消
        """
        with self._lock:
            if not self._pending_operation:
                return False

            self._epoch += 1
            operation = self._pending_operation

        self.logger.log("monitor", "info", f"取消进行中的操作: {operation}")
        return True

    def _run_monitor_loop(self, stop_event: threading.Event):
        """监控循环（后台线程）"""
        next_due = time.monotonic() + self.config.capture_interval

        while not stop_event.is_set():
            # 可中断的等待
            delay = next_due - time.monotonic()
            if delay > 0 and stop_event.wait(delay):
                break

            try:
                self.tick()
            except Exception as e:
                self.logger.log("monitor", "error", f"监控循环异常: {e}")

            # tick 超时则立即开始下一次（不会重叠）
            next_due = max(next_due + self.config.capture_interval, time.monotonic())

        self.logger.log("monitor", "info", "监控循环已退出")

    # ==================== 核心业务流程 ====================

    def tick(self) -> TickOutcome:
        """执行一次检测

        流程：
        1. 截图（不持有锁）
        2. 与当前参考帧比较（读取最新参考帧，不持有锁）
        3. 判定
        4. 触发且告警锁未设置时保存截图（截图开启时）
        5. 去抖：告警锁未设置时记录事件、设置告警锁、异步投递告警

        Returns:
            TickOutcome
        """
        with self._tick_lock:
            return self._tick()

    def _tick(self) -> TickOutcome:
        with self._lock:
            if self._session.status != MonitoringState.ACTIVE:
                return TickOutcome.SKIPPED
            epoch = self._epoch
            self.status.ticks += 1

        # 1. 截图
        try:
            frame = self._capture(epoch)
        except OperationCancelled:
            return TickOutcome.DISCARDED
        except CaptureFailed as e:
            with self._lock:
                self.status.capture_failures += 1
            self.logger.log("monitor", "warning", f"截图失败，跳过本次检测: {e}")
            return TickOutcome.CAPTURE_FAILED

        with self._lock:
            if self._epoch != epoch or self._session.status != MonitoringState.ACTIVE:
                return TickOutcome.DISCARDED

            self._session.last_frame = frame
            reference = self._session.reference_frame
            regions = self.regions.mask_regions()
            settings = self.settings.copy()

        # 2. 比较
        try:
            metrics = self.comparator.compare(
                reference,
                frame,
                regions=regions,
                sensitivity=settings.sensitivity,
                block_size=settings.block_size
            )
        except DimensionMismatch as e:
            with self._lock:
                self.status.dimension_mismatches += 1
            self.logger.log("monitor", "error", f"{e}，跳过本次检测")
            return TickOutcome.DIMENSION_MISMATCH

        # 3. 判定
        verdict = self.policy.evaluate(metrics, settings)

        # 4. 告警截图（只在即将记录事件时保存，不持有锁）
        screenshot_ref = None
        if verdict.triggered:
            with self._lock:
                latched = self._session.alert_pending
                screenshot = self.actions.screenshot
            if not latched and screenshot.enabled:
                screenshot_ref = self.capture_source.save_screenshot(frame, screenshot.quality)

        # 5. 提交
        with self._lock:
            if (self._epoch != epoch
                    or self._session.status != MonitoringState.ACTIVE
                    or self._session.reference_frame is not reference):
                return TickOutcome.DISCARDED

            self.status.last_metrics = metrics
            self.status.last_verdict = verdict

            if not verdict.triggered:
                return TickOutcome.NO_CHANGE

            if self._session.alert_pending:
                self.status.alerts_suppressed += 1
                self.logger.log("monitor", "info", "检测到变化，但告警锁已设置，跳过告警")
                return TickOutcome.SUPPRESSED

            event = self._build_event(verdict, regions, screenshot_ref)
            self.ledger.append(event)
            self._session.alert_pending = True
            self._session.last_alert_at = event.timestamp
            self.status.alerts_sent += 1
            payload = AlertPayload.from_event(event, self.actions)

        self._dispatch_alert(payload)
        return TickOutcome.ALERTED

    def _capture(self, epoch: int) -> Frame:
        """在线程池中截图（带超时，可被取消）

        Raises:
            CaptureFailed: 失败 / 超时 / 返回 None
            OperationCancelled: 等待期间 epoch 变化
        """
        timeout = self.config.capture_timeout
        deadline = time.monotonic() + timeout
        with self._lock:
            if self._captures_in_flight >= self.CAPTURE_WORKERS:
                self.logger.log("monitor", "warning",
                                f"截图线程已全部占用（{self._captures_in_flight} 个截图未结束），本次截图需要排队")
            self._captures_in_flight += 1

        try:
            future = self._capture_executor.submit(self.capture_source.capture)
        except RuntimeError as e:
            self._on_capture_done(None)
            raise CaptureFailed(f"截图服务已关闭: {e}") from e
        future.add_done_callback(self._on_capture_done)

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                future.cancel()
                raise CaptureFailed(f"截图超时 ({timeout}s)")

            try:
                frame = future.result(timeout=min(self.CANCEL_POLL_INTERVAL, remaining))
                break
            except FutureTimeoutError:
                if future.done():
                    # 采集函数自身抛出了 TimeoutError，或恰好在超时后完成
                    error = future.exception()
                    if error is None:
                        continue
                    raise CaptureFailed(f"截图异常: {error}") from error
                if self._epoch != epoch:
                    future.cancel()
                    raise OperationCancelled("截图已取消")
            except CaptureFailed:
                raise
            except Exception as e:
                raise CaptureFailed(f"截图异常: {e}") from e

        if frame is None:
            raise CaptureFailed("截图失败")
        return frame

    def _on_capture_done(self, future: Optional[Future]):
        with self._lock:
            self._captures_in_flight -= 1

    def _build_event(self, verdict: PolicyVerdict,
                     regions: Optional[List[Region]],
                     screenshot_ref: Optional[str]) -> DetectionEvent:
        """根据判定结果构建检测事件"""
        primary = verdict.primary
        region_names = ", ".join(r.name for r in regions) if regions else None

        return DetectionEvent(
            timestamp=datetime.now(),
            criterion=primary.criterion,
            confidence=primary.metric,
            description=verdict.describe(),
            region=region_names,
            screenshot_ref=screenshot_ref
        )

    def _dispatch_alert(self, payload: AlertPayload):
        """异步投递告警（结果只记录日志）"""
        if self.alert_service is None:
            self.logger.log("monitor", "warning", "未配置告警服务，跳过告警投递")
            return

        try:
            future = self._alert_executor.submit(self.alert_service.deliver, payload)
        except RuntimeError as e:
            self.logger.log("monitor", "error", f"告警投递失败（服务已关闭）: {e}")
            return

        future.add_done_callback(self._on_alert_done)

    def _on_alert_done(self, future: Future):
        try:
            result = future.result()
            self.logger.log("monitor", "info", f"告警投递成功: {result.delivered}")
        except Exception as e:
            with self._lock:
                self.status.delivery_failures += 1
            self.logger.log("monitor", "error", f"告警投递失败: {e}")

    # ==================== 区域管理 ====================

    def add_region(self, x: float, y: float, width: float, height: float,
                   name: Optional[str] = None, is_active: bool = True) -> str:
        """添加区域并保存配置"""
        region_id = self.regions.add(x, y, width, height, name=name, is_active=is_active)
        self._save_regions()
        return region_id

    def remove_region(self, region_id: str):
        """删除区域并保存配置"""
        self.regions.remove(region_id)
        self._save_regions()

    def toggle_region(self, region_id: str) -> bool:
        """切换区域激活状态并保存配置"""
        is_active = self.regions.toggle(region_id)
        self._save_regions()
        return is_active

    def _save_regions(self):
        self.config.update(regions=self.regions.to_list())

    # ==================== 配置管理 ====================

    def update_config(self, **kwargs):
        """更新配置并自动保存到文件

        支持所有 MonitorConfig 的字段：
        - capture_interval_ms: 截图间隔（毫秒，下一次等待开始生效）
        - capture_timeout / alert_timeout: 超时（秒，alert_timeout 同步到告警适配器）
        - max_ledger_events: 检测记录上限（立即生效，超出部分丢弃最早的）
        - detection: 检测设置（下一次 tick 生效）
        - actions: 动作设置
        - regions: 区域列表（整体替换）
        """
        # 更新配置对象（会自动保存到文件）
        self.config.update(**kwargs)

        # 同步更新运行时设置
        with self._lock:
            if "detection" in kwargs:
                self.settings = self.config.detection_settings()
            if "actions" in kwargs:
                self.actions = self.config.action_config()
            if "regions" in kwargs:
                self.regions = RegionSet.from_list(self.config.regions, log_dir=self.config.log_dir)

        if "max_ledger_events" in kwargs:
            self.ledger.resize(self.config.max_ledger_events)
        if "alert_timeout" in kwargs and self.alert_service is not None and hasattr(self.alert_service, "set_timeout"):
            self.alert_service.set_timeout(self.config.alert_timeout)

        self.logger.log("monitor", "info", f"配置已更新: {list(kwargs.keys())}")

    def get_status(self) -> Dict[str, Any]:
        """获取服务状态"""
        with self._lock:
            session = self._session
            status = self.status
            return {
                "state": session.status.value,
                "is_monitoring": session.status == MonitoringState.ACTIVE,
                "alert_pending": session.alert_pending,
                "has_reference": session.reference_frame is not None,
                "last_frame_at": session.last_frame.captured_at.isoformat() if session.last_frame else None,
                "last_alert_at": session.last_alert_at.isoformat() if session.last_alert_at else None,
                "pending_operation": self._pending_operation,
                "captures_in_flight": self._captures_in_flight,
                "start_time": status.start_time.isoformat() if status.start_time else None,
                "stop_time": status.stop_time.isoformat() if status.stop_time else None,
                "ticks": status.ticks,
                "capture_failures": status.capture_failures,
                "dimension_mismatches": status.dimension_mismatches,
                "alerts_sent": status.alerts_sent,
                "alerts_suppressed": status.alerts_suppressed,
                "delivery_failures": status.delivery_failures,
                "last_metrics": status.last_metrics.to_dict() if status.last_metrics else None,
                "last_verdict": status.last_verdict.to_dict() if status.last_verdict else None,
                "regions": len(self.regions),
                "ledger": self.ledger.get_status(),
                "config": self.config.to_dict()
            }

    def shutdown(self):
        """关闭服务"""
        self.logger.log("monitor", "info", "关闭 MonitoringScheduler")

        self.cancel_pending()
        if self.is_monitoring:
            self.stop()

        self._capture_executor.shutdown(wait=False)
        self._alert_executor.shutdown(wait=False)

        if self.capture_source:
            self.capture_source.shutdown()
        if self.alert_service is not None and hasattr(self.alert_service, "shutdown"):
            self.alert_service.shutdown()

        self.logger.log("monitor", "info", "MonitoringScheduler 已关闭")


# ==================== 工厂函数 ====================

def create_monitoring_scheduler(capture_source: CaptureSource,
                                alert_service,
                                config_file: str = "config/monitor_config.json",
                                comparator: Optional[FrameComparator] = None) -> MonitoringScheduler:
    """创建监控调度器

    Args:
        capture_source: 图像采集来源
        alert_service: 告警服务
        config_file: 配置文件路径
        comparator: 帧比较器（可注入自定义文本检测器）

    Returns:
        MonitoringScheduler 实例
    """
    # 加载配置（如果文件不存在会创建默认配置）
    config = MonitorConfig.load(config_file)

    return MonitoringScheduler(
        capture_source=capture_source,
        alert_service=alert_service,
        config=config,
        comparator=comparator
    )
