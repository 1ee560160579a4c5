"""
RecordRepository — 验光记录的唯一业务入口。

- mobile 是业务主键：save() 遇到已存在的 mobile 就原地更新（保留 id），否则新建。
- 每次写成功后整表重新加载（read-your-writes），本地快照整体替换，不做增量 patch。
- ValidationError 在碰存储之前抛出；PersistenceError 由 Store 抛出，这里只记日志后继续上抛。

所有对外方法都是 async：Store 是同步实现，统一用 sync_to_async 包装。
HTTP 层用 async_to_sync 调用。
"""

import logging
import re
from collections.abc import Sequence
from dataclasses import replace
from datetime import date
from decimal import Decimal

from asgiref.sync import sync_to_async

from .exceptions import PersistenceError, ValidationError
from .store.adapter import EYE_FIELDS, EYE_PREFIXES, from_row, to_row
from .store.base import BaseRecordStore
from .store.types import PatientRecord

logger = logging.getLogger(__name__)

# ── 校验规则 ───────────────────────────────────────────────────────────────
MOBILE_RE = re.compile(r"[0-9]{10}")          # 仅 ASCII 数字，fullmatch
ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

REQUIRED_FIELDS = {
    "name": "Patient name",
    "mobile": "Mobile number",
    "date": "Date",
    "remarks": "Remarks",
}

# 与 models.PatientRecordRow 的列宽保持一致
NAME_MAX_LENGTH = 200
EYE_MAX_LENGTH = 50
CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999.99")      # DECIMAL(12, 2)

PRICE_FIELDS = (("frame_price", "Frame price"), ("glass_price", "Glass price"))


def _amount_error(field_name: str, label: str, amount: Decimal) -> dict | None:
    if not amount.is_finite():
        message = f"{label} must be a number."
    elif amount < 0:
        message = f"{label} cannot be negative."
    elif amount > MAX_AMOUNT:
        message = f"{label} cannot exceed {MAX_AMOUNT}."
    elif amount != amount.quantize(CENT):
        message = f"{label} can have at most 2 decimal places."
    else:
        return None
    return {"field": field_name, "message": message}


def validate_record(record: PatientRecord) -> None:
    """
    校验一条待保存的记录，收集全部问题后一次性抛出。

    文本字段为 None 按缺失处理；长度和金额范围与数据库列一致，
    保证合法记录写库不会被截断或舍入。

    Raises:
        ValidationError: detail = {"errors": [{"field": ..., "message": ...}, ...]}
    """
    errors = []
    text = {field_name: getattr(record, field_name) or "" for field_name in REQUIRED_FIELDS}

    for field_name, label in REQUIRED_FIELDS.items():
        if not text[field_name].strip():
            errors.append({"field": field_name, "message": f"{label} is required."})

    mobile = text["mobile"]
    if mobile.strip() and not MOBILE_RE.fullmatch(mobile):
        errors.append({"field": "mobile", "message": "Please enter a valid 10-digit mobile number."})

    exam_date = text["date"]
    if exam_date.strip():
        try:
            if not ISO_DATE_RE.fullmatch(exam_date):
                raise ValueError(exam_date)
            date.fromisoformat(exam_date)
        except ValueError:
            errors.append({"field": "date", "message": "Date must be a valid YYYY-MM-DD calendar date."})

    if len(text["name"]) > NAME_MAX_LENGTH:
        errors.append({
            "field": "name",
            "message": f"Patient name cannot be longer than {NAME_MAX_LENGTH} characters.",
        })

    for prefix in EYE_PREFIXES:
        eye = getattr(record, prefix)
        for name in EYE_FIELDS:
            if len(getattr(eye, name) or "") > EYE_MAX_LENGTH:
                label = f"{prefix.replace('_', ' ').capitalize()} {name}"
                errors.append({
                    "field": f"{prefix}_{name}",
                    "message": f"{label} cannot be longer than {EYE_MAX_LENGTH} characters.",
                })

    price_errors = [
        error for error in (
            _amount_error(field_name, label, getattr(record, field_name))
            for field_name, label in PRICE_FIELDS
        )
        if error is not None
    ]
    errors.extend(price_errors)
    if not price_errors and record.total_price > MAX_AMOUNT:
        errors.append({"field": "total_price", "message": f"Total price cannot exceed {MAX_AMOUNT}."})

    if errors:
        raise ValidationError(
            message=" ".join(error["message"] for error in errors),
            code="VALIDATION_ERROR",
            detail={"errors": errors},
        )


class RecordRepository:
    """
    持有一个 Store 和最近一次加载的全量快照。

    由 EyeRecordsConfig.ready() 创建，每个进程一个实例；测试里直接注入任意 Store。
    """

    def __init__(self, store: BaseRecordStore):
        self.store = store
        self._records: tuple[PatientRecord, ...] = ()

    @property
    def records(self) -> tuple[PatientRecord, ...]:
        """最近一次成功加载的快照。"""
        return self._records

    async def list(self) -> Sequence[PatientRecord]:
        rows = await sync_to_async(self.store.select_all)()
        self._records = tuple(from_row(row) for row in rows)
        logger.info("[Repository] 已加载 %d 条记录", len(self._records))
        return list(self._records)

    async def find_by_mobile(self, mobile: str) -> PatientRecord | None:
        row = await sync_to_async(self.store.select_by_mobile)(mobile)
        if row is None:
            return None
        return from_row(row)

    async def search(self, query: str) -> Sequence[PatientRecord]:
        """name 不区分大小写包含 query，或 mobile 原样包含 query。空 query 返回全部。"""
        records = await self.list()
        if not query:
            return records

        needle = query.lower()
        return [
            record for record in records
            if needle in record.name.lower() or query in record.mobile
        ]

    async def save(self, record: PatientRecord) -> PatientRecord:
        """
        按 mobile 新建或更新一条记录，返回重新加载后的版本（带存储层 id）。

        Raises:
            ValidationError:  记录不合法，未写库
            PersistenceError: 存储层失败，快照保持原样
        """
        saved, _ = await self.save_with_status(record)
        return saved

    async def save_with_status(self, record: PatientRecord) -> tuple[PatientRecord, bool]:
        """同 save()，额外返回 created：本次写入是否新建了记录（由 store.upsert 决定）。"""
        record = replace(
            record,
            id=None,
            total_price=record.frame_price + record.glass_price,
        )
        validate_record(record)

        try:
            created = await sync_to_async(self.store.upsert)(to_row(record))
        except PersistenceError as exc:
            logger.warning("[Repository] 保存 mobile=%s 失败: %s", record.mobile, exc.cause)
            raise
        logger.info("[Repository] mobile=%s %s", record.mobile, "已新建" if created else "已更新")

        records = await self.list()
        for saved in records:
            if saved.mobile == record.mobile:
                return saved, created

        # 写成功但重新加载后看不到，说明有库外删除
        raise PersistenceError(
            "The record was saved but could not be reloaded. Please refresh.",
            cause=f"mobile {record.mobile} missing after reload",
            detail={"mobile": record.mobile},
        )

    async def clear_all(self) -> None:
        try:
            await sync_to_async(self.store.delete_all)()
        except PersistenceError as exc:
            logger.warning("[Repository] 清空记录失败: %s", exc.cause)
            raise
        self._records = ()
        logger.info("[Repository] 已清空全部记录")
