"""
监控区域集合

线程安全：Web 接口线程修改，监控线程读取
"""
import threading
import uuid
from typing import List, Optional, Dict, Any

from scene_sentinel.common import Logger
from scene_sentinel.errors import RegionNotFound
from scene_sentinel.models import Region


class RegionSet:
    """监控区域集合

    职责：
    1. 区域增删改（add / remove / toggle）
    2. 为比较器提供掩码区域（mask_regions）
    3. 与配置文件互相转换（to_list / from_list）

    约定：
    - 集合为空 -> 比较整帧
    - 集合非空但全部未激活 -> 没有像素参与比较（变化比例为 0）
    """

    def __init__(self, regions: Optional[List[Region]] = None, log_dir: Optional[str] = None):
        self.logger = Logger(log_dir)
        self._lock = threading.Lock()
        self._regions: Dict[str, Region] = {}

        for region in regions or []:
            self._regions[region.id] = region

    # ==================== 编辑 ====================

    def add(self, x: float, y: float, width: float, height: float,
            name: Optional[str] = None, is_active: bool = True) -> str:
        """添加区域

        Args:
            x, y, width, height: 百分比坐标
            name: 区域名称（默认 "Region N"）
            is_active: 是否激活

        Returns:
            新区域 ID

        Raises:
            InvalidRegion: 几何参数非法（不会创建任何区域）
        """
        with self._lock:
            region = Region(
                id=uuid.uuid4().hex[:12],
                x=x,
                y=y,
                width=width,
                height=height,
                name=name or f"Region {len(self._regions) + 1}",
                is_active=is_active
            )
            self._regions[region.id] = region

        self.logger.log("region_set", "info",
                        f"添加区域: {region.name} ({region.x}, {region.y}, {region.width}x{region.height})")
        return region.id

    def remove(self, region_id: str) -> Region:
        """删除区域

        Raises:
            RegionNotFound: ID 不存在
        """
        with self._lock:
            if region_id not in self._regions:
                raise RegionNotFound(region_id)
            region = self._regions.pop(region_id)

        self.logger.log("region_set", "info", f"删除区域: {region.name}")
        return region

    def toggle(self, region_id: str) -> bool:
        """切换区域激活状态

        Returns:
            切换后的激活状态

        Raises:
            RegionNotFound: ID 不存在
        """
        with self._lock:
            if region_id not in self._regions:
                raise RegionNotFound(region_id)
            region = self._regions[region_id].with_active(not self._regions[region_id].is_active)
            self._regions[region_id] = region

        self.logger.log("region_set", "info",
                        f"区域 {region.name} {'激活' if region.is_active else '停用'}")
        return region.is_active

    def clear(self):
        """清空所有区域"""
        with self._lock:
            self._regions.clear()

    # ==================== 查询 ====================

    def get(self, region_id: str) -> Region:
        with self._lock:
            if region_id not in self._regions:
                raise RegionNotFound(region_id)
            return self._regions[region_id]

    def all(self) -> List[Region]:
        """所有区域（按添加顺序）"""
        with self._lock:
            return list(self._regions.values())

    def active_regions(self) -> List[Region]:
        """所有激活的区域"""
        with self._lock:
            return [r for r in self._regions.values() if r.is_active]

    def mask_regions(self) -> Optional[List[Region]]:
        """比较器使用的掩码区域

        Returns:
            None 表示整帧比较；列表（可能为空）表示只比较其中的区域
        """
        with self._lock:
            if not self._regions:
                return None
            return [r for r in self._regions.values() if r.is_active]

    def __len__(self) -> int:
        with self._lock:
            return len(self._regions)

    # ==================== 序列化 ====================

    def to_list(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.all()]

    @classmethod
    def from_list(cls, items: Optional[List[Dict[str, Any]]], log_dir: Optional[str] = None) -> "RegionSet":
        """从配置列表创建（非法区域会被跳过并记录日志）"""
        logger = Logger(log_dir)
        regions = []
        for item in items or []:
            try:
                regions.append(Region.from_dict(item))
            except (KeyError, ValueError) as e:
                logger.log("region_set", "warning", f"跳过非法区域配置 {item}: {e}")

        return cls(regions, log_dir=log_dir)
