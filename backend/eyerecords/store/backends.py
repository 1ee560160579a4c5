"""
具体存储后端实现。

新增后端：在此文件添加一个类，然后在 factory.py 注册即可。

已注册后端：
  django — DjangoRecordStore   (Django ORM, patient_records 表)
  rest   — RestRecordStore     (PostgREST / Supabase HTTP 接口)
  memory — MemoryRecordStore   (进程内 list，开发 / 测试用)
"""

import json
import logging
import uuid
from contextlib import contextmanager

import requests
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.serializers.json import DjangoJSONEncoder
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import PersistenceError
from .adapter import COLUMNS, TABLE_NAME
from .base import BaseRecordStore, Row

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Could not reach the record store. Please try again."


# ── DjangoRecordStore ──────────────────────────────────────────────────────
#
# 使用 Django ORM，数据库由 settings.DATABASES 决定（生产 PostgreSQL，开发 SQLite）。
# upsert 在一个事务里 select_for_update + 写入，避免先查后写的竞争。

class DjangoRecordStore(BaseRecordStore):

    @staticmethod
    def _model():
        from ..models import PatientRecordRow
        return PatientRecordRow

    @contextmanager
    def _db_errors(self, operation: str):
        try:
            yield
        except DatabaseError as exc:
            logger.error("[Store][django] %s 失败: %s", operation, exc)
            raise PersistenceError(FAILURE_MESSAGE, cause=str(exc), detail={"operation": operation}) from exc

    def _values(self, queryset):
        return queryset.values("id", "created_at", "updated_at", *COLUMNS)

    def select_all(self) -> list[Row]:
        with self._db_errors("select_all"):
            return list(self._values(self._model().objects.order_by("created_at", "id")))

    def select_by_mobile(self, mobile: str) -> Row | None:
        with self._db_errors("select_by_mobile"):
            return self._values(self._model().objects.filter(mobile=mobile)).first()

    def insert(self, row: Row) -> Row:
        with self._db_errors("insert"), transaction.atomic():
            obj = self._model().objects.create(**row)
            return self._values(self._model().objects.filter(pk=obj.pk)).get()

    def update_by_mobile(self, mobile: str, row: Row) -> int:
        with self._db_errors("update_by_mobile"):
            # queryset.update() 不触发 auto_now，updated_at 手动写
            return self._model().objects.filter(mobile=mobile).update(**row, updated_at=timezone.now())

    def delete_all(self) -> None:
        with self._db_errors("delete_all"):
            self._model().objects.all().delete()

    def upsert(self, row: Row) -> bool:
        model = self._model()
        with self._db_errors("upsert"), transaction.atomic():
            existing = model.objects.select_for_update().filter(mobile=row["mobile"]).first()
            if existing is None:
                model.objects.create(**row)
                return True
            model.objects.filter(pk=existing.pk).update(**row, updated_at=timezone.now())
            return False


# ── RestRecordStore ────────────────────────────────────────────────────────
#
# PostgREST 协议（Supabase 托管库同样适用）。
# 配置：settings.RECORD_STORE_URL / RECORD_STORE_KEY / RECORD_STORE_TABLE / RECORD_STORE_TIMEOUT
# 超时属于传输层，Repository 不设超时。

class RestRecordStore(BaseRecordStore):

    def __init__(self, base_url=None, api_key=None, table=None, timeout=None, session=None):
        base_url = base_url or getattr(settings, "RECORD_STORE_URL", "")
        api_key = api_key or getattr(settings, "RECORD_STORE_KEY", "")
        if not base_url or not api_key:
            raise ImproperlyConfigured("RECORD_STORE_URL and RECORD_STORE_KEY must be set for the rest record store")

        table = table or getattr(settings, "RECORD_STORE_TABLE", TABLE_NAME)
        self.url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.timeout = timeout or getattr(settings, "RECORD_STORE_TIMEOUT", 10)
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    def _request(self, operation: str, method: str, params=None, row=None, prefer=None):
        headers = {"Prefer": prefer} if prefer else {}
        data = json.dumps(row, cls=DjangoJSONEncoder) if row is not None else None
        try:
            response = self.session.request(
                method,
                self.url,
                params=params,
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("[Store][rest] %s %s 失败: %s", method, operation, exc)
            raise PersistenceError(FAILURE_MESSAGE, cause=str(exc), detail={"operation": operation}) from exc
        return response

    @staticmethod
    def _bad_response(operation: str, cause: str) -> PersistenceError:
        logger.error("[Store][rest] %s 响应格式错误: %s", operation, cause)
        return PersistenceError(FAILURE_MESSAGE, cause=cause, detail={"operation": operation})

    def _rows(self, operation: str, response) -> list[Row]:
        """解析 PostgREST 返回的 JSON 数组；不是 row 列表一律视为存储层失败。"""
        try:
            rows = response.json()
        except ValueError as exc:
            raise self._bad_response(operation, f"invalid JSON: {exc}") from exc
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise self._bad_response(operation, f"expected a JSON array of rows, got {rows!r:.200}")
        return rows

    def select_all(self) -> list[Row]:
        response = self._request("select_all", "GET", params={"select": "*", "order": "created_at.asc"})
        return self._rows("select_all", response)

    def select_by_mobile(self, mobile: str) -> Row | None:
        response = self._request(
            "select_by_mobile", "GET",
            params={"select": "*", "mobile": f"eq.{mobile}", "limit": "1"},
        )
        rows = self._rows("select_by_mobile", response)
        return rows[0] if rows else None

    def insert(self, row: Row) -> Row:
        response = self._request("insert", "POST", row=row, prefer="return=representation")
        rows = self._rows("insert", response)
        if not rows:
            raise self._bad_response("insert", "empty representation returned for insert")
        return rows[0]

    def update_by_mobile(self, mobile: str, row: Row) -> int:
        response = self._request(
            "update_by_mobile", "PATCH",
            params={"mobile": f"eq.{mobile}"},
            row={**row, "updated_at": timezone.now()},
            prefer="return=representation",
        )
        return len(self._rows("update_by_mobile", response))

    def delete_all(self) -> None:
        # PostgREST 拒绝不带过滤条件的 DELETE
        self._request("delete_all", "DELETE", params={"id": "not.is.null"})


# ── MemoryRecordStore ──────────────────────────────────────────────────────
#
# 进程内 list，重启即丢失。对应最早的本地存储版本，开发和 Repository 单测用。

class MemoryRecordStore(BaseRecordStore):

    def __init__(self):
        self._rows: list[Row] = []

    def select_all(self) -> list[Row]:
        return [dict(row) for row in self._rows]

    def select_by_mobile(self, mobile: str) -> Row | None:
        for row in self._rows:
            if row["mobile"] == mobile:
                return dict(row)
        return None

    def insert(self, row: Row) -> Row:
        now = timezone.now()
        stored = {**row, "id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
        self._rows.append(stored)
        return dict(stored)

    def update_by_mobile(self, mobile: str, row: Row) -> int:
        updated = 0
        for stored in self._rows:
            if stored["mobile"] == mobile:
                stored.update(row, updated_at=timezone.now())
                updated += 1
        return updated

    def delete_all(self) -> None:
        self._rows.clear()
