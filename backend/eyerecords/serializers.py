"""
Response serializers — PatientRecord → JSON-able dict。

只负责「输出格式化」，不做任何解析或校验。
输入解析在 intake.py，业务校验在 repository.py。
"""

from dataclasses import asdict


def _amount(value):
    """Decimal → 两位小数字符串，JSON 里不经过 float，金额不丢精度。"""
    return f'{value:.2f}'


def serialize_record(record):
    return {
        'id': record.id,
        'date': record.date,
        'name': record.name,
        'mobile': record.mobile,
        'rightEye': asdict(record.right_eye),
        'leftEye': asdict(record.left_eye),
        'framePrice': _amount(record.frame_price),
        'glassPrice': _amount(record.glass_price),
        'totalPrice': _amount(record.total_price),
        'remarks': record.remarks,
    }


def serialize_record_saved(record, created):
    """Serialize save result for 201 (new mobile) / 200 (existing mobile)."""
    return {
        'record': serialize_record(record),
        'message': 'Record added successfully' if created else 'Record updated successfully',
    }


def serialize_record_list(records):
    results = [serialize_record(record) for record in records]
    return {
        'count': len(results),
        'records': results,
    }


def serialize_search_results(query, records):
    """Serialize search results list."""
    body = serialize_record_list(records)
    body['query'] = query
    return body
