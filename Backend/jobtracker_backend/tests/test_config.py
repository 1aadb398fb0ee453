import yaml

from jobtracker_backend.config import DynamicConfig, construct_model_kwargs
from jobtracker_backend.config.models import TrackerSettingsModel


def test_template_defaults_are_copied_to_local_dir(tmp_path):
    config = DynamicConfig('tracker', TrackerSettingsModel, local_dir=tmp_path)

    assert (tmp_path / "tracker.yaml").exists()
    assert config.get() == TrackerSettingsModel()
    assert config.undo_timeout_ms == 5000
    assert config.export_date_format == '%Y-%m-%d'


def test_local_override_and_listeners(tmp_path):
    # Setup
    config = DynamicConfig('tracker', TrackerSettingsModel, local_dir=tmp_path)
    received = []
    config.register_listener(received.append)

    # Test
    with open(tmp_path / "tracker.yaml", 'w') as f:
        yaml.safe_dump({'undo_timeout_ms': 8000, 'export_date_format': '%d.%m.%Y'}, f)
    config.refresh()

    # Verify
    assert config.undo_timeout_ms == 8000
    assert config.export_date_format == '%d.%m.%Y'
    assert config.recent_applications_limit == 5
    assert received == [config.get()]

    config.unregister_listener(received.append)
    config.refresh()
    assert len(received) == 1


def test_unknown_keys_are_dropped():
    kwargs = construct_model_kwargs({'undo_timeout_ms': '3000', 'colour': 'blue', 'data_dir': None}, TrackerSettingsModel)
    assert kwargs == {'undo_timeout_ms': 3000}
