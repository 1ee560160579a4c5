"""
HTTP 层：只调用 RecordRepository 的五个操作，不直接碰 Store。

Repository 是 async 的，这里用 async_to_sync 桥接到同步的 DRF view。
所有业务异常直接 raise，由 exception_handler.unified_exception_handler 统一格式化。
"""

from asgiref.sync import async_to_sync
from django.apps import apps
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import RecordNotFound, ValidationError
from .intake import record_from_payload
from .repository import validate_record
from .serializers import (
    serialize_record,
    serialize_record_list,
    serialize_record_saved,
    serialize_search_results,
)


def get_repository():
    return apps.get_app_config('eyerecords').repository


class RecordListView(APIView):
    """
    GET    /api/records/ - 全部记录
    POST   /api/records/ - 新增记录（mobile 已存在则更新）
    DELETE /api/records/ - 清空全部记录
    """

    def get(self, request):
        records = async_to_sync(get_repository().list)()
        return Response(serialize_record_list(records))

    def post(self, request):
        record = record_from_payload(request.data)
        # created 来自同一次 upsert，不另外查库
        saved, created = async_to_sync(get_repository().save_with_status)(record)
        return Response(
            serialize_record_saved(saved, created),
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def delete(self, request):
        async_to_sync(get_repository().clear_all)()
        return Response(status=status.HTTP_204_NO_CONTENT)


class RecordSearchView(APIView):
    """GET /api/records/search/?q=... - 按姓名或手机号搜索"""

    def get(self, request):
        query = request.query_params.get('q', '')
        records = async_to_sync(get_repository().search)(query)
        return Response(serialize_search_results(query, records))


class RecordDetailView(APIView):
    """
    GET /api/records/<mobile>/ - 查看单条记录
    PUT /api/records/<mobile>/ - 编辑已有记录（mobile 不可修改）
    """

    def get(self, request, mobile):
        record = async_to_sync(get_repository().find_by_mobile)(mobile)
        if record is None:
            raise RecordNotFound(
                message='The requested patient record could not be found',
                detail={'mobile': mobile},
            )
        return Response(serialize_record(record))

    def put(self, request, mobile):
        payload = request.data
        if isinstance(payload, dict) and not payload.get('mobile'):
            payload = {**payload, 'mobile': mobile}
        record = record_from_payload(payload)

        if record.mobile != mobile:
            raise ValidationError(
                message='Mobile number cannot be changed',
                code='MOBILE_IMMUTABLE',
                detail={'mobile': mobile, 'submitted_mobile': record.mobile},
            )

        # 先校验再查库：非法请求不依赖存储是否可用
        validate_record(record)

        repository = get_repository()
        if async_to_sync(repository.find_by_mobile)(mobile) is None:
            raise RecordNotFound(
                message='The requested patient record could not be found',
                detail={'mobile': mobile},
            )

        saved = async_to_sync(repository.save)(record)
        return Response(serialize_record_saved(saved, created=False))
