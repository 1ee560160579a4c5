"""
工厂函数：根据 settings.RECORD_STORE 返回对应的存储后端实例。

新增后端只需：
  1. 在 backends.py 新建 XxxRecordStore(BaseRecordStore) 类
  2. 在此处 _build_registry() 加一行
  不需要修改 repository.py 或任何 view。
"""

from django.conf import settings

from .base import BaseRecordStore


def _build_registry() -> dict[str, type[BaseRecordStore]]:
    # 延迟导入，DjangoRecordStore 依赖 models，必须等 app registry 就绪
    from .backends import DjangoRecordStore, MemoryRecordStore, RestRecordStore

    return {
        "django": DjangoRecordStore,
        "rest":   RestRecordStore,
        "memory": MemoryRecordStore,
    }


def get_record_store() -> BaseRecordStore:
    """
    从 settings.RECORD_STORE 读取后端名，返回对应的 RecordStore 实例。

    settings.RECORD_STORE 由环境变量 RECORD_STORE 控制（默认 "django"）。

    Raises:
        ValueError: RECORD_STORE 未知
    """
    backend = getattr(settings, "RECORD_STORE", "django")
    registry = _build_registry()
    store_cls = registry.get(backend)

    if store_cls is None:
        raise ValueError(
            f"Unknown RECORD_STORE: {backend!r}. "
            f"Known backends: {list(registry.keys())}"
        )

    return store_cls()
