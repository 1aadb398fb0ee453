import pytest

from jobtracker_backend.config.global_constants import (
    ApplicationStatus, BackupStatus, BackupType, CommunicationType, JobType
)
from jobtracker_backend.modules.models.storage import CloudBackup, Communication, SalaryRange, StatusHistory
from conftest import make_application, millis


@pytest.mark.asyncio
async def test_application_round_trip(applications):
    # Setup
    app = make_application(
        "None", "Engineer",
        job_type=JobType.CONTRACT,
        salary_range=SalaryRange(min=None, max=90000),
        notes='Multi-line,\n"quoted" notes',
        rating=4,
    )

    # Test
    app_id = await applications.insert_application(app)
    stored = await applications.get_application(app_id)

    # Verify
    assert app_id == 1
    assert stored.id == 1
    assert stored.company_name == "None"
    assert stored.job_type == JobType.CONTRACT
    assert stored.remote_status is None
    assert stored.salary_range == SalaryRange(min=None, max=90000)
    assert stored.notes == 'Multi-line,\n"quoted" notes'
    assert stored.rating == 4
    assert stored.application_date == app.application_date


@pytest.mark.asyncio
async def test_insert_assigns_increasing_ids_and_replaces_existing(applications):
    first = await applications.insert_application(make_application("A"))
    second = await applications.insert_application(make_application("B"))
    replaced = await applications.insert_application(make_application("B2", id=second))

    assert (first, second, replaced) == (1, 2, 2)
    names = sorted(app.company_name for app in await applications.get_all_applications())
    assert names == ["A", "B2"]


@pytest.mark.asyncio
async def test_deleted_ids_are_never_reissued(applications):
    # Setup
    await applications.insert_application(make_application("A"))
    highest = await applications.insert_application(make_application("B"))
    await applications.delete_application(highest)

    # Test
    after_delete = await applications.insert_application(make_application("C"))
    await applications.delete_all_applications()
    after_clear = await applications.insert_application(make_application("D"))

    # Verify
    assert highest == 2
    assert after_delete == 3
    assert after_clear == 4


@pytest.mark.asyncio
async def test_update_missing_application_returns_false(applications):
    assert not await applications.update_application(make_application(id=42))


@pytest.mark.asyncio
async def test_get_all_sorted_by_update_time(applications):
    await applications.insert_application(make_application("Old", updated_timestamp=1000, created_timestamp=1000))
    await applications.insert_application(make_application("New", updated_timestamp=3000, created_timestamp=1000))

    result = await applications.get_all_applications()

    assert [app.company_name for app in result] == ["New", "Old"]


@pytest.mark.asyncio
async def test_delete_cascades_to_history_and_communications(applications, status_history, communications):
    # Setup
    keep_id = await applications.insert_application(make_application("Keep"))
    drop_id = await applications.insert_application(make_application("Drop"))
    for app_id in (keep_id, drop_id):
        await status_history.add_entry(StatusHistory(app_id, ApplicationStatus.APPLIED, millis(2024, 1, 1)))
        await communications.add_communication(Communication(app_id, communication_type=CommunicationType.EMAIL))

    # Test
    await applications.delete_application(drop_id)

    # Verify
    assert await applications.get_application(drop_id) is None
    assert await status_history.get_history(drop_id) == []
    assert await communications.get_communications(drop_id) == []
    assert len(await status_history.get_history(keep_id)) == 1
    assert len(await communications.get_communications(keep_id)) == 1


@pytest.mark.asyncio
async def test_history_ordered_by_status_date(status_history):
    await status_history.add_entry(StatusHistory(1, ApplicationStatus.EMAIL, millis(2024, 1, 5)))
    await status_history.add_entry(StatusHistory(1, ApplicationStatus.APPLIED, millis(2024, 1, 1)))

    entries = await status_history.get_history(1)

    assert [e.status for e in entries] == [ApplicationStatus.APPLIED, ApplicationStatus.EMAIL]
    in_range = await status_history.get_history_by_date_range(millis(2024, 1, 2), millis(2024, 1, 31))
    assert [e.status for e in in_range] == [ApplicationStatus.EMAIL]


@pytest.mark.asyncio
async def test_backup_records(backups):
    pending = CloudBackup(BackupType.CSV, backup_timestamp=1000)
    backup_id = await backups.insert_backup(pending)
    await backups.update_backup(CloudBackup(
        BackupType.CSV, 1000, BackupStatus.COMPLETED, "export.csv", "/tmp/export.csv", id=backup_id
    ))
    await backups.insert_backup(CloudBackup(BackupType.NOTION, 2000, BackupStatus.FAILED, error="not available"))

    last = await backups.get_last_successful_backup()
    notion = await backups.get_backups_by_type(BackupType.NOTION)

    assert last.id == backup_id
    assert last.backup_location == "/tmp/export.csv"
    assert notion[0].error == "not available"
    assert [b.backup_timestamp for b in await backups.get_all_backups()] == [2000, 1000]


@pytest.mark.asyncio
async def test_typed_storage_blocks_base_methods(applications):
    with pytest.raises(AttributeError):
        await applications.insert({'company_name': 'Acme'})
    with pytest.raises(AttributeError):
        await applications.get_all()
