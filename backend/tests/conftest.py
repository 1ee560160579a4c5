"""
Shared fixtures for all tests.

factory-boy factories 和测试用 Store 都放在这里，unit/ 和 integration/ 通过 fixture 使用。
Repository 是 async 的，测试里统一用 async_to_sync 调用。
"""
import pytest
from datetime import date
from decimal import Decimal
from django.test import Client

import factory
from eyerecords.exceptions import PersistenceError
from eyerecords.models import PatientRecordRow
from eyerecords.repository import RecordRepository
from eyerecords.store.backends import DjangoRecordStore, MemoryRecordStore
from eyerecords.store.types import EyePrescription, PatientRecord


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class PatientRecordRowFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = PatientRecordRow

    date = date(2024, 5, 1)
    name = 'John Doe'
    mobile = factory.Sequence(lambda n: f'{9000000000 + n}')
    right_eye_sphere = '-1.25'
    right_eye_cylinder = '-0.50'
    right_eye_axis = '180'
    right_eye_add = ''
    left_eye_sphere = '-1.00'
    left_eye_cylinder = '-0.25'
    left_eye_axis = '170'
    left_eye_add = ''
    frame_price = Decimal('1500.00')
    glass_price = Decimal('2200.00')
    total_price = Decimal('3700.00')
    remarks = 'Anti-glare coating'


# ---------------------------------------------------------------------------
# Test stores
# ---------------------------------------------------------------------------

class FlakyStore(MemoryRecordStore):
    """内存 Store；fail_writes=True 时写操作、fail_reads=True 时读操作抛 PersistenceError。"""

    fail_writes = False
    fail_reads = False

    def _check(self, operation, failing):
        if failing:
            raise PersistenceError(
                'Could not reach the record store. Please try again.',
                cause='connection refused',
                detail={'operation': operation},
            )

    def select_all(self):
        self._check('select_all', self.fail_reads)
        return super().select_all()

    def select_by_mobile(self, mobile):
        self._check('select_by_mobile', self.fail_reads)
        return super().select_by_mobile(mobile)

    def insert(self, row):
        self._check('insert', self.fail_writes)
        return super().insert(row)

    def update_by_mobile(self, mobile, row):
        self._check('update_by_mobile', self.fail_writes)
        return super().update_by_mobile(mobile, row)

    def delete_all(self):
        self._check('delete_all', self.fail_writes)
        super().delete_all()


def build_record(**overrides):
    fields = {
        'date': '2024-05-01',
        'name': 'Alice',
        'mobile': '9876543210',
        'right_eye': EyePrescription(sphere='-1.25', cylinder='-0.50', axis='180', add=''),
        'left_eye': EyePrescription(sphere='-1.00', cylinder='-0.25', axis='170', add='+1.00'),
        'frame_price': Decimal('1500'),
        'glass_price': Decimal('2200'),
        'remarks': 'Anti-glare coating',
    }
    fields.update(overrides)
    return PatientRecord(**fields)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def make_record():
    """返回一个构造合法 PatientRecord 的函数，关键字参数覆盖默认值。"""
    return build_record


@pytest.fixture
def record_row_factory():
    return PatientRecordRowFactory


@pytest.fixture
def flaky_store():
    return FlakyStore()


@pytest.fixture
def memory_repository(flaky_store):
    """Repository over an in-memory store (no database)."""
    return RecordRepository(flaky_store)


@pytest.fixture
def django_repository(db):
    """Repository over the Django ORM store (test database)."""
    return RecordRepository(DjangoRecordStore())


@pytest.fixture
def api_client():
    """Django test client for integration tests."""
    return Client()


@pytest.fixture
def sample_record_payload():
    """Minimal valid payload for POST /api/records/."""
    return {
        'date': '2024-05-01',
        'name': 'Alice Wang',
        'mobile': '9876543210',
        'rightEye': {'sphere': '-1.25', 'cylinder': '-0.50', 'axis': '180', 'add': ''},
        'leftEye': {'sphere': '-1.00', 'cylinder': '-0.25', 'axis': '170', 'add': '+1.00'},
        'framePrice': 1500,
        'glassPrice': 2200,
        'remarks': 'Anti-glare coating',
    }
