"""
BaseRecordStore — 所有存储后端的抽象基类。

每个新后端只需：
1. 继承 BaseRecordStore
2. 实现 select_all / select_by_mobile / insert / update_by_mobile / delete_all
3. 在 factory.py 的 _build_registry() 注册一行

Repository 完全不知道背后是 Django ORM、PostgREST 还是内存。

约定：
- 所有方法都是同步的，Repository 负责用 sync_to_async 包一层。
- 入参 / 返回值都是扁平 row dict（列名见 adapter.COLUMNS）。
- 后端失败一律抛 PersistenceError（raise ... from exc），不重试。
"""

from abc import ABC, abstractmethod
from typing import Any

Row = dict[str, Any]


class BaseRecordStore(ABC):

    @abstractmethod
    def select_all(self) -> list[Row]:
        """返回全部 row，按创建顺序。"""

    @abstractmethod
    def select_by_mobile(self, mobile: str) -> Row | None:
        """按 mobile 精确查找，查不到返回 None。"""

    @abstractmethod
    def insert(self, row: Row) -> Row:
        """插入新 row（不带 id），返回存储后的 row（带 id）。"""

    @abstractmethod
    def update_by_mobile(self, mobile: str, row: Row) -> int:
        """按 mobile 更新，同时写 updated_at。返回更新的行数。"""

    @abstractmethod
    def delete_all(self) -> None:
        """删除全部 row。"""

    def upsert(self, row: Row) -> bool:
        """
        按 mobile 插入或更新，返回 True 表示新建。

        默认实现是两次往返（先查后写），并发下同一新 mobile 可能两边都走 insert，
        由表上的 UNIQUE 约束兜底。能在一个事务里完成的后端应 override。
        """
        mobile = row["mobile"]
        if self.select_by_mobile(mobile) is None:
            self.insert(row)
            return True
        self.update_by_mobile(mobile, row)
        return False
