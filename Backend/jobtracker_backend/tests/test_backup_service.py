import asyncio
import csv
import io
from unittest.mock import AsyncMock, MagicMock

import pytest

from jobtracker_backend.config.global_constants import CSV_HEADER, ApplicationStatus, BackupStatus, BackupType
from jobtracker_backend.modules.business.backup.backup_service import BackupService
from jobtracker_backend.modules.business.backup.destinations import ExportDestination
from conftest import make_application

HEADER = ','.join(CSV_HEADER)


@pytest.mark.asyncio
async def test_csv_backup_writes_timestamped_file(backup_service, applications, backups, export_dir):
    # Setup
    await applications.insert_application(make_application("Acme", "Engineer", status=ApplicationStatus.INTERVIEW))
    await applications.insert_application(make_application("Globex, Inc.", "Analyst"))

    # Test
    record = await backup_service.create_backup()

    # Verify
    assert record.backup_status == BackupStatus.COMPLETED
    assert record.backup_file_id == "job_tracker_export_20240301_093015.csv"
    path = export_dir / record.backup_file_id
    assert record.backup_location == str(path)

    with open(path, encoding='utf-8', newline='') as f:
        rows = list(csv.reader(f))
    assert rows[0] == CSV_HEADER
    assert sorted(row[0] for row in rows[1:]) == ["Acme", "Globex, Inc."]

    stored = await backups.get_backup(record.id)
    assert stored.backup_status == BackupStatus.COMPLETED


@pytest.mark.asyncio
async def test_write_failure_gives_failed_record(applications, backups, tmp_path, clock):
    # Setup
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way")
    service = BackupService(applications, backups, ExportDestination(blocker / "exports"), clock=clock)

    # Test
    record = await service.create_backup(BackupType.CSV)

    # Verify
    assert record.backup_status == BackupStatus.FAILED
    assert record.backup_location is None
    assert record.error
    stored = await backups.get_backup(record.id)
    assert stored.backup_status == BackupStatus.FAILED


@pytest.mark.asyncio
@pytest.mark.parametrize("backup_type,name", [
    (BackupType.GOOGLE_DRIVE, "Google Drive"),
    (BackupType.GOOGLE_SHEETS, "Google Sheets"),
    (BackupType.NOTION, "Notion"),
])
async def test_cloud_backups_are_not_available(backup_service, backup_type, name):
    record = await backup_service.create_backup(backup_type)

    assert record.backup_status == BackupStatus.FAILED
    assert record.error == f"{name} backup not available. Please use CSV export."


@pytest.mark.asyncio
async def test_export_to_sink(backup_service, applications):
    await applications.insert_application(make_application("Acme", "Engineer"))
    sink = io.StringIO()

    record = await backup_service.export_to(sink, location="memory")

    assert record.backup_status == BackupStatus.COMPLETED
    assert record.backup_location == "memory"
    assert sink.getvalue().splitlines()[0] == HEADER
    assert sink.getvalue().splitlines()[1].startswith("Acme,Engineer,Applied,")


@pytest.mark.asyncio
async def test_import_inserts_valid_rows(backup_service, applications):
    lines = [
        HEADER,
        "Acme,Engineer,Interview,2024-01-10",
        "",
        ",No company",
        "Globex,Analyst,Offer,01/15/2024,Berlin,Full-time,Hybrid,50000,70000,Great team,https://example.com",
    ]

    result = await backup_service.import_from(lines)

    assert result.success
    assert result.imported == 2
    stored = {app.company_name: app for app in await applications.get_all_applications()}
    assert stored["Acme"].status == ApplicationStatus.INTERVIEW
    assert stored["Globex"].company_location == "Berlin"
    assert stored["Globex"].salary_range.max == 70000


@pytest.mark.asyncio
async def test_import_header_only_reports_no_valid_rows(backup_service):
    result = await backup_service.import_from([HEADER])

    assert not result.success
    assert result.imported == 0
    assert result.error == "No valid applications found in CSV"


@pytest.mark.asyncio
async def test_import_continues_after_insert_failure(clock, tmp_path):
    # Setup
    applications = MagicMock()
    applications.insert_application = AsyncMock(side_effect=[1, OSError("locked"), 3])
    service = BackupService(applications, MagicMock(), ExportDestination(tmp_path), clock=clock)
    lines = [HEADER, "A,Engineer", "B,Engineer", "C,Engineer"]

    # Test
    result = await service.import_from(lines)

    # Verify
    assert result.success
    assert result.imported == 2
    assert applications.insert_application.await_count == 3


@pytest.mark.asyncio
async def test_import_file_missing(backup_service, tmp_path):
    result = await backup_service.import_file(tmp_path / "missing.csv")
    assert result.error == "Could not read file"


@pytest.mark.asyncio
async def test_import_file_with_invalid_utf8(backup_service, applications, tmp_path):
    path = tmp_path / "broken.csv"
    path.write_bytes((HEADER + "\n").encode('utf-8') + b"\xff\xfe,Bad\n")

    result = await backup_service.import_file(path)

    assert result.error == "Could not read file"
    assert await applications.get_all_applications() == []


@pytest.mark.asyncio
async def test_import_stream_reads_chunks(backup_service, applications):
    # Setup
    async def chunks():
        yield (HEADER + "\nCaf").encode('utf-8')
        yield "é Müller".encode('utf-8')[:1]
        yield "é Müller".encode('utf-8')[1:] + b",Engineer\r\nGlo"
        yield b"bex,Analyst,Offer"

    # Test
    result = await backup_service.import_stream(chunks())

    # Verify
    assert result.imported == 2
    names = sorted(app.company_name for app in await applications.get_all_applications())
    assert names == ["Café Müller", "Globex"]


@pytest.mark.asyncio
async def test_import_stream_stops_on_invalid_utf8(backup_service, applications):
    async def chunks():
        yield (HEADER + "\nAcme,Engineer\n").encode('utf-8')
        yield b"\xff\xfe,Bad\n"

    result = await backup_service.import_stream(chunks())

    assert result.imported == 1
    assert result.error == "Could not read file"


@pytest.mark.asyncio
async def test_import_file_round_trip(backup_service, applications):
    await applications.insert_application(make_application("Acme", "Engineer", status=ApplicationStatus.OFFER))
    record = await backup_service.create_backup()
    await applications.delete_all_applications()

    result = await backup_service.import_file(record.backup_location)

    assert result.imported == 1
    restored = await applications.get_all_applications()
    assert restored[0].company_name == "Acme"
    assert restored[0].status == ApplicationStatus.OFFER


@pytest.mark.asyncio
async def test_import_can_be_cancelled_between_rows(clock, tmp_path):
    # Setup
    inserted = []
    started = asyncio.Event()

    async def insert(application):
        inserted.append(application)
        started.set()
        return len(inserted)

    applications = MagicMock()
    applications.insert_application = insert
    service = BackupService(applications, MagicMock(), ExportDestination(tmp_path), clock=clock)

    def lines():
        yield HEADER
        while True:
            yield "Acme,Engineer"

    # Test
    task = asyncio.create_task(service.import_from(lines()))
    await started.wait()
    task.cancel()

    # Verify
    with pytest.raises(asyncio.CancelledError):
        await task
    assert len(inserted) >= 1


@pytest.mark.asyncio
async def test_list_and_last_successful_backup(backup_service):
    completed = await backup_service.create_backup()
    await backup_service.create_backup(BackupType.NOTION)

    records = await backup_service.list_backups()
    last = await backup_service.last_successful_backup()

    assert len(records) == 2
    assert last.id == completed.id
    assert len(await backup_service.backups_by_type(BackupType.NOTION)) == 1

    await backup_service.delete_all_backups()
    assert await backup_service.list_backups() == []
