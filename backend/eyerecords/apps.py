from django.apps import AppConfig


class EyeRecordsConfig(AppConfig):
    """
    组合根：每个进程只建一个 RecordRepository，Store 由 settings.RECORD_STORE 决定。

    View 通过 get_repository() 拿到它，不使用模块级单例。
    """

    name = 'eyerecords'
    verbose_name = 'Eye Records'
    repository = None

    def ready(self):
        from .repository import RecordRepository
        from .store import get_record_store

        self.repository = RecordRepository(get_record_store())
