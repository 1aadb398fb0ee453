"""Configuration management for the tracker.

This module handles loading configuration from template files and local overrides.
Template files provide default values, while local files (if they exist) override these defaults.

Directory Structure:
    config/
        templates/  - Template files with default values (.yaml)
    {user_config_dir}/local/     - Local override files (OS-dependent)
"""
import logging
import os
import shutil
from dataclasses import is_dataclass, fields, dataclass
from importlib import resources
from pathlib import Path
from threading import Lock
from typing import Dict, Any, Type, List, Generic, TypeVar, Callable, Optional

import platformdirs
import yaml
from watchdog.events import FileSystemEventHandler, FileSystemEvent, DirMovedEvent, \
    FileMovedEvent, DirModifiedEvent, FileModifiedEvent, DirCreatedEvent, FileCreatedEvent
from watchdog.observers import Observer

from jobtracker_backend.config.global_constants import VERSION, APP_NAME
from jobtracker_backend.config.models import TrackerSettingsModel

T = TypeVar('T')

logger = logging.getLogger(__name__)


def construct_model_kwargs(data: Dict[str, Any], model_class: Type) -> Dict[str, Any]:
    """Keep only keys the dataclass knows about, coercing scalars to the declared type."""
    if not is_dataclass(model_class):
        return data

    field_types = {f.name: f.type for f in fields(model_class)}
    result = {}

    for key, value in data.items():
        if key not in field_types:
            logger.warning(f"Ignoring unknown config key: {key}")
            continue

        field_type = field_types[key]
        if value is None:
            continue
        if field_type in (int, 'int') and not isinstance(value, bool):
            result[key] = int(value)
        elif field_type in (str, 'str'):
            result[key] = str(value)
        else:
            result[key] = value

    return result


class ConfigFileHandler(FileSystemEventHandler):
    """Handles file system events for config files."""
    def __init__(self, refresh_callback: Callable):
        super().__init__()
        self.watched_filenames = set()
        self.refresh_callback = refresh_callback

    def add_watched_file(self, filepath):
        """Add a file path to the watch list."""
        self.watched_filenames.add(filepath)

    def on_created(self, event: DirCreatedEvent | FileCreatedEvent) -> None:
        self._on_filtered_event(event)

    def on_modified(self, event: DirModifiedEvent | FileModifiedEvent) -> None:
        self._on_filtered_event(event)

    def _on_filtered_event(self, event: FileSystemEvent) -> None:
        if event.src_path in self.watched_filenames:
            self.refresh_callback()

    def on_moved(self, event: DirMovedEvent | FileMovedEvent) -> None:
        # Editors often save through a temp file and rename it over the original
        if event.dest_path in self.watched_filenames:
            self.refresh_callback()


@dataclass
class ConfigState(Generic[T]):
    data: T


class DynamicConfig(Generic[T]):
    def __init__(self, name: str, model_class: type[T], local_dir: Optional[str] = None):
        self.name = name
        self.model_class = model_class
        self.template_path = resources.files('jobtracker_backend.config.templates').joinpath(f"{name}.yaml")

        if local_dir is None:
            # Set up platform-specific config directory using platformdirs
            config_dir = Path(platformdirs.user_config_dir(APP_NAME, appauthor=False, version=VERSION))
            local_dir = config_dir / "local"
        local_dir = Path(local_dir)

        # Create local directory if it doesn't exist
        local_dir.mkdir(parents=True, exist_ok=True)

        self.local_path = str(local_dir / f"{name}.yaml")

        # Copy template to local if local doesn't exist but template does
        if os.path.exists(str(self.template_path)) and not os.path.exists(self.local_path):
            shutil.copy2(str(self.template_path), self.local_path)

        self._state: ConfigState[T] | None = None
        self._lock = Lock()
        self._observer = None

        self._load_config()

        # List to store callback functions from other classes
        self._listeners: List[Callable[[T], None]] = []

    def start_watching(self) -> None:
        """Reload the config whenever the local override changes on disk."""
        if self._observer is not None:
            return

        file_handler = ConfigFileHandler(self.refresh)
        file_handler.add_watched_file(os.path.realpath(self.local_path))

        self._observer = Observer()
        self._observer.schedule(file_handler, os.path.dirname(os.path.realpath(self.local_path)), recursive=False)
        self._observer.start()
        logger.info(f"Watching {self.local_path} for changes")

    def stop_watching(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def register_listener(self, callback: Callable[[T], None]) -> None:
        """
        Register a callback function to be called when config changes.
        The callback will receive the updated config object.

        Args:
            callback: A function that takes the config object as its argument
        """
        with self._lock:
            if callback not in self._listeners:
                self._listeners.append(callback)

    def unregister_listener(self, callback: Callable[[T], None]) -> None:
        """
        Remove a previously registered callback function.

        Args:
            callback: The callback function to remove
        """
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def _notify_listeners(self, config: T) -> None:
        """Notify all registered listeners with the current config."""
        for listener in self._listeners:
            try:
                listener(config)
            except Exception as e:
                logger.error(f"Error in config listener: {e}")

    def _load_config(self) -> None:
        config = {}

        # Load from template
        if os.path.exists(str(self.template_path)):
            with self.template_path.open('r') as f:
                template_data = yaml.safe_load(f)
                config.update(template_data or {})

        # Load from platform-specific local path
        if os.path.exists(self.local_path):
            with open(self.local_path, "r") as f:
                local_data = yaml.safe_load(f)
                config.update(local_data or {})

        processed_config = construct_model_kwargs(config, self.model_class)
        self._state = ConfigState(
            data=self.model_class(**processed_config)
        )

    def get(self) -> T:
        return self._state.data

    def refresh(self):
        with self._lock:
            self._load_config()
            config = self._state.data

        # Notify listeners outside the lock to avoid deadlocks
        if self._listeners:
            self._notify_listeners(config)

    def __getattr__(self, name: str) -> Any:
        if name.startswith('_'):
            raise AttributeError(name)
        return getattr(self.get(), name)


def default_data_dir() -> Path:
    """Directory holding the tracker's CSV tables unless overridden in config."""
    configured = tracker_settings.get().data_dir
    if configured:
        return Path(configured).expanduser()
    return Path(platformdirs.user_documents_dir()) / APP_NAME


# Initialize dynamic configuration
tracker_settings = DynamicConfig('tracker', TrackerSettingsModel)
