"""
Unit tests for user configuration.
"""

import json

from dupematch.config import DEFAULT_THRESHOLD, DEFAULT_WORKERS, MAX_UPLOAD_BYTES
from dupematch.user_config import UserConfig, get_user_config


class TestUserConfig:
    """Test UserConfig priority: environment > config file > defaults."""

    def test_singleton(self):
        assert UserConfig() is get_user_config()

    def test_defaults(self, isolated_config):
        assert isolated_config.default_threshold == DEFAULT_THRESHOLD
        assert isolated_config.default_workers == DEFAULT_WORKERS
        assert isolated_config.descriptor == 'gradient'
        assert isolated_config.hybrid_mode is True
        assert isolated_config.max_upload_bytes == MAX_UPLOAD_BYTES
        assert isolated_config.port == 8080

    def test_config_dir_from_env(self, isolated_config, temp_dir):
        assert isolated_config.config_file_path == temp_dir / "config" / "config.json"

    def test_config_file(self, isolated_config):
        isolated_config.config_dir.mkdir(parents=True)
        isolated_config.config_file_path.write_text(json.dumps({
            'default_threshold': 92.5,
            'descriptor': 'none',
            'hybrid_mode': False,
        }))
        isolated_config.reload()

        assert isolated_config.default_threshold == 92.5
        assert isolated_config.descriptor == 'none'
        assert isolated_config.hybrid_mode is False
        assert isolated_config.default_workers == DEFAULT_WORKERS

    def test_env_overrides_file(self, isolated_config, monkeypatch):
        isolated_config.config_dir.mkdir(parents=True)
        isolated_config.config_file_path.write_text(json.dumps({'default_workers': 2}))
        isolated_config.reload()
        monkeypatch.setenv('DUPEMATCH_WORKERS', '16')
        monkeypatch.setenv('DUPEMATCH_IMAGES_DIR', '/srv/refs')

        assert isolated_config.default_workers == 16
        assert isolated_config.images_dir == '/srv/refs'

    def test_invalid_file_uses_defaults(self, isolated_config):
        isolated_config.config_dir.mkdir(parents=True)
        isolated_config.config_file_path.write_text("{not json")
        isolated_config.reload()
        assert isolated_config.default_threshold == DEFAULT_THRESHOLD

    def test_create_example_config(self, isolated_config):
        assert isolated_config.create_example_config() is True
        data = json.loads(isolated_config.config_file_path.read_text())
        assert data['default_threshold'] == DEFAULT_THRESHOLD
        assert data['descriptor'] == 'gradient'

    def test_hybrid_mode_false_spellings(self, isolated_config, monkeypatch):
        for value in ('false', 'False', 'off', 'no', '0'):
            monkeypatch.setenv('DUPEMATCH_HYBRID', value)
            assert isolated_config.hybrid_mode is False, value

    def test_hybrid_mode_true_spellings(self, isolated_config, monkeypatch):
        for value in ('true', 'on', 'yes', '1'):
            monkeypatch.setenv('DUPEMATCH_HYBRID', value)
            assert isolated_config.hybrid_mode is True, value
