from jobtracker_backend.modules.storage.base import StorageService
from jobtracker_backend.modules.storage.csv_storage import CSVStorageService
from jobtracker_backend.modules.storage.status_history_storage import StatusHistoryStorage
from jobtracker_backend.modules.storage.communication_storage import CommunicationStorage
from jobtracker_backend.modules.storage.application_storage import ApplicationStorage
from jobtracker_backend.modules.storage.backup_storage import BackupStorage

__all__ = [
    'StorageService',
    'CSVStorageService',
    'StatusHistoryStorage',
    'CommunicationStorage',
    'ApplicationStorage',
    'BackupStorage'
]
