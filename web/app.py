"""
Web Application - Scene Sentinel

使用 Flask 提供 RESTful API（监控控制、区域、检测记录导出）
"""
import sys
from pathlib import Path

# 添加父目录到 sys.path，以便导入 scene_sentinel 模块
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from datetime import datetime

from flask import Flask, jsonify, request, Response
from flask_cors import CORS

from scene_sentinel.common import Config
from scene_sentinel.errors import CaptureFailed, OperationCancelled, RegionNotFound, UnsupportedExportFormat
from scene_sentinel.messenger import create_alert_service, AlertServiceConfig
from scene_sentinel.monitor import MonitorConfig, create_monitoring_scheduler
from scene_sentinel.vision import CameraCapture


# 创建 Flask 应用
app = Flask(__name__)
CORS(app)

# 全局变量
monitor_service = None

EXPORT_MIMETYPES = {
    "plaintext": ("text/plain", "txt"),
    "csv": ("text/csv", "csv"),
}


def init_services():
    """初始化所有服务"""
    global monitor_service

    if monitor_service is not None:
        return monitor_service

    config = Config()
    monitor_config = MonitorConfig.load(config.config_file)

    # 1. Camera
    capture_source = CameraCapture(config)

    # 2. 告警服务
    alert_service = create_alert_service(AlertServiceConfig(
        telegram_token=config.telegram.bot_token,
        telegram_chat_id=config.telegram.chat_id,
        timeout=monitor_config.alert_timeout,
        log_dir=monitor_config.log_dir
    ))

    # 3. 监控调度器
    monitor_service = create_monitoring_scheduler(
        capture_source=capture_source,
        alert_service=alert_service,
        config_file=config.config_file
    )

    return monitor_service


def _error(message: str, status: int):
    return jsonify({
        "success": False,
        "message": message
    }), status


# ==================== 状态 ====================

@app.route('/api/status', methods=['GET'])
def get_status():
    """获取系统状态"""
    monitor = init_services()

    return jsonify({
        "success": True,
        "data": monitor.get_status()
    })


# ==================== 监控控制 ====================

@app.route('/api/monitor/start', methods=['POST'])
def start_monitor():
    """启动监控（截取参考帧）"""
    monitor = init_services()

    try:
        if monitor.start():
            return jsonify({
                "success": True,
                "message": "监控已启动"
            })
        return _error("监控已在运行", 400)

    except (CaptureFailed, OperationCancelled) as e:
        return _error(f"启动失败: {e}", 409)


@app.route('/api/monitor/stop', methods=['POST'])
def stop_monitor():
    """停止监控"""
    monitor = init_services()

    if monitor.stop():
        return jsonify({
            "success": True,
            "message": "监控已停止"
        })
    return _error("监控未在运行", 400)


@app.route('/api/monitor/reset', methods=['POST'])
def reset_reference():
    """重置参考帧（同时清除告警锁）"""
    monitor = init_services()

    try:
        if monitor.reset_reference():
            return jsonify({
                "success": True,
                "message": "参考帧已重置"
            })
        return _error("监控未在运行", 400)

    except (CaptureFailed, OperationCancelled) as e:
        return _error(f"重置失败: {e}", 409)


@app.route('/api/monitor/cancel', methods=['POST'])
def cancel_pending():
    """取消进行中的启动 / 重置"""
    monitor = init_services()

    return jsonify({
        "success": True,
        "data": {"cancelled": monitor.cancel_pending()}
    })


# ==================== 配置 ====================

@app.route('/api/config', methods=['GET'])
def get_config():
    """获取配置"""
    monitor = init_services()

    return jsonify({
        "success": True,
        "data": monitor.config.to_dict()
    })


@app.route('/api/config', methods=['POST'])
def update_config():
    """更新配置

    Body: JSON 格式的配置参数
    {
        "capture_interval_ms": 2000,
        "detection": {"sensitivity": 50, "criteria": {"pixel": {"enabled": true, "parameter": 25}}},
        "actions": {"push_alert": {"enabled": true}},
        ...
    }
    """
    monitor = init_services()

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _error("请求体必须是 JSON 对象", 400)

    try:
        # 更新配置（会自动保存到文件）
        monitor.update_config(**data)
    except (ValueError, TypeError, AttributeError) as e:
        return _error(f"配置无效: {e}", 400)

    return jsonify({
        "success": True,
        "message": "配置已更新"
    })


# ==================== 区域 ====================

@app.route('/api/regions', methods=['GET'])
def list_regions():
    """获取所有区域"""
    monitor = init_services()

    return jsonify({
        "success": True,
        "data": monitor.regions.to_list()
    })


@app.route('/api/regions', methods=['POST'])
def add_region():
    """添加区域

    Body: {"x": 10, "y": 10, "width": 30, "height": 20, "name": "Door"}
    """
    monitor = init_services()

    data = request.get_json(silent=True) or {}
    try:
        region_id = monitor.add_region(
            data.get("x"),
            data.get("y"),
            data.get("width"),
            data.get("height"),
            name=data.get("name"),
            is_active=bool(data.get("is_active", True))
        )
    except ValueError as e:
        return _error(str(e), 400)

    return jsonify({
        "success": True,
        "data": monitor.regions.get(region_id).to_dict()
    }), 201


@app.route('/api/regions/<region_id>', methods=['DELETE'])
def delete_region(region_id):
    """删除区域"""
    monitor = init_services()

    try:
        monitor.remove_region(region_id)
    except RegionNotFound as e:
        return _error(str(e), 404)

    return jsonify({
        "success": True,
        "message": "区域已删除"
    })


@app.route('/api/regions/<region_id>/toggle', methods=['POST'])
def toggle_region(region_id):
    """切换区域激活状态"""
    monitor = init_services()

    try:
        is_active = monitor.toggle_region(region_id)
    except RegionNotFound as e:
        return _error(str(e), 404)

    return jsonify({
        "success": True,
        "data": {"id": region_id, "is_active": is_active}
    })


# ==================== 检测记录 ====================

@app.route('/api/events', methods=['GET'])
def list_events():
    """获取检测记录（最新的在前）

    Query: limit（可选）
    """
    monitor = init_services()

    limit = request.args.get("limit", type=int)
    events = monitor.ledger.newest_first(limit)

    return jsonify({
        "success": True,
        "data": [e.to_dict() for e in events],
        "count": len(events)
    })


@app.route('/api/events', methods=['DELETE'])
def clear_events():
    """清空检测记录"""
    monitor = init_services()
    monitor.ledger.clear()

    return jsonify({
        "success": True,
        "message": "检测记录已清空"
    })


@app.route('/api/events/export', methods=['GET'])
def export_events():
    """导出检测记录（下载文件）

    Query: format=plaintext|csv
    """
    monitor = init_services()

    export_format = request.args.get("format", "plaintext")
    try:
        data = monitor.ledger.export(export_format)
    except UnsupportedExportFormat as e:
        return _error(str(e), 400)

    mimetype, extension = EXPORT_MIMETYPES[export_format]
    filename = f"scene-detections-{datetime.now().strftime('%Y%m%d')}.{extension}"

    return Response(
        data,
        mimetype=mimetype,
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


# ==================== 错误处理 ====================

@app.errorhandler(404)
def not_found(error):
    return jsonify({
        "success": False,
        "message": "接口不存在"
    }), 404


@app.errorhandler(500)
def internal_error(error):
    return jsonify({
        "success": False,
        "message": "服务器内部错误"
    }), 500


# ==================== 启动命令 ====================

if __name__ == '__main__':
    # 初始化服务
    init_services()

    # 启动 Flask 应用
    app.run(host='0.0.0.0', port=5000, debug=False)
