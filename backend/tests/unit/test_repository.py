"""
Unit tests for RecordRepository over the in-memory store.

覆盖：
1. save 新 mobile → find_by_mobile 能查到，id 由存储分配
2. 同一 mobile 保存两次 → 只有一条，id 不变，字段是第二次的
3. total_price = frame_price + glass_price
4. search：空 query / 姓名不区分大小写 / 手机号子串 / 保持 list() 顺序
5. ValidationError 不写库
6. clear_all
7. 存储失败：PersistenceError，快照不变
"""
from dataclasses import replace
from decimal import Decimal

import pytest
from asgiref.sync import async_to_sync

from eyerecords.exceptions import PersistenceError, ValidationError
from eyerecords.store.types import EyePrescription


def save(repository, record):
    return async_to_sync(repository.save)(record)


def list_records(repository):
    return async_to_sync(repository.list)()


def search(repository, query):
    return async_to_sync(repository.search)(query)


def find(repository, mobile):
    return async_to_sync(repository.find_by_mobile)(mobile)


# -------------------------------------------------------------------
# save / find_by_mobile
# -------------------------------------------------------------------

class TestSave:

    def test_fresh_mobile_creates_record(self, memory_repository, make_record):
        record = make_record()

        saved = save(memory_repository, record)
        found = find(memory_repository, record.mobile)

        assert saved.id
        assert found == saved
        assert replace(found, id=None) == replace(record, total_price=Decimal('3700'))

    def test_save_with_status_reports_created(self, memory_repository, make_record):
        first, created = async_to_sync(memory_repository.save_with_status)(make_record())
        second, created_again = async_to_sync(memory_repository.save_with_status)(make_record(remarks='Recheck'))

        assert created is True
        assert created_again is False
        assert second.id == first.id

    def test_same_mobile_updates_in_place(self, memory_repository, make_record):
        first = save(memory_repository, make_record(name='Alice', remarks='first visit'))
        second = save(memory_repository, make_record(
            name='Alice Wang',
            remarks='second visit',
            right_eye=EyePrescription(sphere='-2.00'),
            frame_price=Decimal('900'),
        ))

        records = list_records(memory_repository)

        assert len(records) == 1
        assert second.id == first.id
        assert records[0].name == 'Alice Wang'
        assert records[0].remarks == 'second visit'
        assert records[0].right_eye == EyePrescription(sphere='-2.00')
        assert records[0].total_price == Decimal('3100')

    def test_total_price_is_recomputed(self, memory_repository, make_record):
        saved = save(memory_repository, make_record(
            frame_price=Decimal('1250.50'),
            glass_price=Decimal('749.50'),
            total_price=Decimal('1'),
        ))

        assert saved.total_price == Decimal('2000.00')

    def test_caller_supplied_id_is_ignored(self, memory_repository, make_record):
        saved = save(memory_repository, make_record(id='caller-id'))
        assert saved.id != 'caller-id'

    def test_different_mobiles_create_separate_records(self, memory_repository, make_record):
        save(memory_repository, make_record(mobile='9876543210'))
        save(memory_repository, make_record(mobile='9123456780'))

        assert len(list_records(memory_repository)) == 2

    def test_snapshot_replaced_after_save(self, memory_repository, make_record):
        assert memory_repository.records == ()

        saved = save(memory_repository, make_record())

        assert memory_repository.records == (saved,)

    def test_find_unknown_mobile_returns_none(self, memory_repository):
        assert find(memory_repository, '9000000000') is None


# -------------------------------------------------------------------
# Validation happens before any store write
# -------------------------------------------------------------------

class TestSaveValidation:

    def test_short_mobile_rejected_without_write(self, memory_repository, flaky_store, make_record):
        # 写操作会抛 PersistenceError；收到 ValidationError 说明根本没走到 Store
        flaky_store.fail_writes = True

        with pytest.raises(ValidationError):
            save(memory_repository, make_record(mobile='12345'))

        assert flaky_store.select_all() == []

    def test_empty_remarks_rejected_without_write(self, memory_repository, flaky_store, make_record):
        flaky_store.fail_writes = True

        with pytest.raises(ValidationError) as exc_info:
            save(memory_repository, make_record(remarks=''))

        assert exc_info.value.detail['errors'][0]['field'] == 'remarks'
        assert flaky_store.select_all() == []

    def test_invalid_record_rejected_while_store_unreachable(self, memory_repository, flaky_store, make_record):
        flaky_store.fail_reads = True
        flaky_store.fail_writes = True

        with pytest.raises(ValidationError):
            async_to_sync(memory_repository.save_with_status)(make_record(mobile='12345'))


# -------------------------------------------------------------------
# search
# -------------------------------------------------------------------

class TestSearch:

    @pytest.fixture
    def seeded(self, memory_repository, make_record):
        save(memory_repository, make_record(name='Alice', mobile='9876543210'))
        save(memory_repository, make_record(name='Bob', mobile='9123456780'))
        return memory_repository

    def test_empty_query_returns_list(self, seeded):
        assert search(seeded, '') == list_records(seeded)

    def test_name_match_is_case_insensitive(self, seeded):
        assert [r.name for r in search(seeded, 'ali')] == ['Alice']
        assert [r.name for r in search(seeded, 'ALI')] == ['Alice']

    def test_mobile_substring(self, seeded):
        assert [r.name for r in search(seeded, '987')] == ['Alice']

    def test_matches_keep_list_order(self, seeded):
        assert [r.name for r in search(seeded, '9')] == ['Alice', 'Bob']

    def test_no_match(self, seeded):
        assert search(seeded, 'zzz') == []


# -------------------------------------------------------------------
# clear_all
# -------------------------------------------------------------------

class TestClearAll:

    def test_clear_all_empties_store_and_snapshot(self, memory_repository, make_record):
        save(memory_repository, make_record())

        async_to_sync(memory_repository.clear_all)()

        assert memory_repository.records == ()
        assert list_records(memory_repository) == []

    def test_failed_clear_keeps_snapshot(self, memory_repository, flaky_store, make_record):
        saved = save(memory_repository, make_record())
        flaky_store.fail_writes = True

        with pytest.raises(PersistenceError):
            async_to_sync(memory_repository.clear_all)()

        assert memory_repository.records == (saved,)
        assert list_records(memory_repository) == [saved]


# -------------------------------------------------------------------
# Storage failures
# -------------------------------------------------------------------

class TestSaveStorageFailure:

    def test_failed_save_leaves_list_unchanged(self, memory_repository, flaky_store, make_record):
        save(memory_repository, make_record(mobile='9876543210'))
        before = list_records(memory_repository)
        flaky_store.fail_writes = True

        with pytest.raises(PersistenceError):
            save(memory_repository, make_record(mobile='9123456780'))

        assert memory_repository.records == tuple(before)
        flaky_store.fail_writes = False
        assert list_records(memory_repository) == before

    def test_failed_update_leaves_record_unchanged(self, memory_repository, flaky_store, make_record):
        original = save(memory_repository, make_record(remarks='original'))
        flaky_store.fail_writes = True

        with pytest.raises(PersistenceError):
            save(memory_repository, make_record(remarks='changed'))

        flaky_store.fail_writes = False
        assert find(memory_repository, original.mobile) == original

    def test_persistence_error_keeps_cause(self, memory_repository, flaky_store, make_record):
        flaky_store.fail_writes = True

        with pytest.raises(PersistenceError) as exc_info:
            save(memory_repository, make_record())

        assert exc_info.value.cause == 'connection refused'
        assert exc_info.value.http_status == 503
