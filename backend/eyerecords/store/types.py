"""
PatientRecord dataclass — Repository 唯一认识的记录格式。

Store 层只搬运扁平的 row dict；row ↔ PatientRecord 的转换由 adapter.py 负责。
业务层（repository.py）和 HTTP 层只消费这个结构。
"""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class EyePrescription:
    sphere: str = ""
    cylinder: str = ""
    axis: str = ""
    add: str = ""


@dataclass(frozen=True)
class PatientRecord:
    """
    一位患者的验光 + 配镜价格记录。

    mobile       业务主键（10 位数字），同一 mobile 最多一条记录。
    id           由存储层在首次创建时分配，之后不变；未保存的记录为 None。
    total_price  = frame_price + glass_price，由 Repository.save() 计算后冗余存储。
    """

    date: str                                 # ISO 8601: "YYYY-MM-DD"
    name: str
    mobile: str
    remarks: str
    right_eye: EyePrescription = field(default_factory=EyePrescription)
    left_eye: EyePrescription = field(default_factory=EyePrescription)
    frame_price: Decimal = Decimal("0")
    glass_price: Decimal = Decimal("0")
    total_price: Decimal = Decimal("0")
    id: str | None = None
