"""
Record Store Adapter — PatientRecord（嵌套）↔ row（扁平）的纯映射。

row 形状与 patient_records 表一一对应：
  rightEye.sphere → right_eye_sphere, leftEye.add → left_eye_add, ...

from_row() 永远不抛异常：缺字段 / 非数字一律降级为 "" / 0。
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from .types import EyePrescription, PatientRecord

TABLE_NAME = "patient_records"

EYE_FIELDS = ("sphere", "cylinder", "axis", "add")
EYE_PREFIXES = ("right_eye", "left_eye")
AMOUNT_COLUMNS = ("frame_price", "glass_price", "total_price")

# insert / update 写入的列，不含 id / created_at / updated_at
COLUMNS = (
    ("date", "name", "mobile")
    + tuple(f"{prefix}_{name}" for prefix in EYE_PREFIXES for name in EYE_FIELDS)
    + AMOUNT_COLUMNS
    + ("remarks",)
)


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def coerce_amount(value: Any) -> Decimal:
    """数字或数字字符串 → Decimal；None / bool / 非数字 / NaN / inf → 0。"""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return amount


def _coerce_date(value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return coerce_text(value)


def to_row(record: PatientRecord) -> dict[str, Any]:
    """PatientRecord → row。不带 id，id 只能由存储层分配。"""
    row: dict[str, Any] = {
        "date": record.date,
        "name": record.name,
        "mobile": record.mobile,
    }
    for prefix, eye in zip(EYE_PREFIXES, (record.right_eye, record.left_eye)):
        for name in EYE_FIELDS:
            row[f"{prefix}_{name}"] = getattr(eye, name)
    row["frame_price"] = record.frame_price
    row["glass_price"] = record.glass_price
    row["total_price"] = record.total_price
    row["remarks"] = record.remarks
    return row


def _eye_from_row(row: dict[str, Any], prefix: str) -> EyePrescription:
    return EyePrescription(**{
        name: coerce_text(row.get(f"{prefix}_{name}")) for name in EYE_FIELDS
    })


def from_row(row: dict[str, Any]) -> PatientRecord:
    """row → PatientRecord。多余的列（created_at / updated_at）忽略。"""
    record_id = row.get("id")
    return PatientRecord(
        id=str(record_id) if record_id is not None else None,
        date=_coerce_date(row.get("date")),
        name=coerce_text(row.get("name")),
        mobile=coerce_text(row.get("mobile")),
        right_eye=_eye_from_row(row, "right_eye"),
        left_eye=_eye_from_row(row, "left_eye"),
        frame_price=coerce_amount(row.get("frame_price")),
        glass_price=coerce_amount(row.get("glass_price")),
        total_price=coerce_amount(row.get("total_price")),
        remarks=coerce_text(row.get("remarks")),
    )
