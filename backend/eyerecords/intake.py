"""
HTTP 请求体 → PatientRecord。

只负责「解析 + 类型整理」，业务校验（必填、手机号格式...）在 repository.validate_record()。

请求体使用前端的 camelCase 形状：
{
  "date": "2024-05-01", "name": "Alice", "mobile": "9876543210",
  "rightEye": {"sphere": "-1.25", "cylinder": "-0.50", "axis": "180", "add": ""},
  "leftEye":  {...},
  "framePrice": 1500, "glassPrice": 2200,
  "remarks": "Anti-glare coating"
}
totalPrice 即使传了也忽略，由 Repository 计算。
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from .exceptions import ValidationError
from .store.adapter import EYE_FIELDS, coerce_text
from .store.types import EyePrescription, PatientRecord

PRICE_FIELDS = {"framePrice": "frame_price", "glassPrice": "glass_price"}


def _eye_from_payload(value: Any) -> EyePrescription:
    if not isinstance(value, dict):
        return EyePrescription()
    return EyePrescription(**{name: coerce_text(value.get(name)) for name in EYE_FIELDS})


def _price_from_payload(payload: dict, key: str, errors: list) -> Decimal:
    value = payload.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return Decimal("0")

    try:
        amount = None if isinstance(value, bool) else Decimal(str(value).strip())
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite():
        errors.append({"field": PRICE_FIELDS[key], "message": f"{key} must be a number."})
        return Decimal("0")
    return amount


def record_from_payload(payload: Any) -> PatientRecord:
    """
    Raises:
        ValidationError: 请求体不是 JSON object（INVALID_PAYLOAD）或价格不是数字（INVALID_PRICE）
    """
    if not isinstance(payload, dict):
        raise ValidationError(
            message="Request body must be a JSON object.",
            code="INVALID_PAYLOAD",
        )

    errors = []
    frame_price = _price_from_payload(payload, "framePrice", errors)
    glass_price = _price_from_payload(payload, "glassPrice", errors)
    if errors:
        raise ValidationError(
            message=" ".join(error["message"] for error in errors),
            code="INVALID_PRICE",
            detail={"errors": errors},
        )

    return PatientRecord(
        date=coerce_text(payload.get("date")),
        name=coerce_text(payload.get("name")),
        mobile=coerce_text(payload.get("mobile")),
        right_eye=_eye_from_payload(payload.get("rightEye")),
        left_eye=_eye_from_payload(payload.get("leftEye")),
        frame_price=frame_price,
        glass_price=glass_price,
        remarks=coerce_text(payload.get("remarks")),
    )
