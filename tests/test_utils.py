"""
Unit tests for configuration and logging helpers
"""
import logging
import logging.handlers
import pytest

from page2pdf.utils import (
    apply_env_overrides,
    get_default_config,
    load_config,
    merge_config,
    setup_logging,
)


ENV_VARS = ['HEADLESS', 'CHROME_BINARY_PATH', 'CHROMEDRIVER_PATH', 'PAGE_LOAD_TIMEOUT',
            'USER_AGENT', 'LOG_LEVEL', 'DEBUG_MODE']


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    """Test configuration loading"""

    def test_missing_file_uses_defaults(self, temp_dir):
        config = load_config(str(temp_dir / 'nope.yaml'))
        assert config == get_default_config()

    def test_default_browser_is_headed(self):
        assert get_default_config()['browser']['headless'] is False

    def test_yaml_merged_over_defaults(self, temp_dir):
        path = temp_dir / 'config.yaml'
        path.write_text("browser:\n  headless: true\nlogging:\n  level: WARNING\n")

        config = load_config(str(path))

        assert config['browser']['headless'] is True
        assert config['browser']['page_load_timeout'] == 30
        assert config['logging']['level'] == 'WARNING'
        assert config['logging']['log_to_file'] is False

    def test_invalid_yaml_falls_back(self, temp_dir, caplog):
        path = temp_dir / 'config.yaml'
        path.write_text("browser: [unclosed\n")

        config = load_config(str(path))

        assert config == get_default_config()
        assert "Could not load config" in caplog.text

    def test_empty_sections_keep_defaults(self, temp_dir):
        path = temp_dir / 'config.yaml'
        path.write_text("browser:\n  # headless: true\nlogging:\n  # level: DEBUG\n")

        config = load_config(str(path))

        assert config == get_default_config()

    def test_empty_section_beside_values(self, temp_dir):
        path = temp_dir / 'config.yaml'
        path.write_text("browser:\n  headless: true\nlogging:\n  # level: DEBUG\n")

        config = load_config(str(path))

        assert config['browser']['headless'] is True
        assert config['logging'] == get_default_config()['logging']

    def test_non_mapping_yaml_falls_back(self, temp_dir):
        path = temp_dir / 'config.yaml'
        path.write_text("- just\n- a list\n")

        assert load_config(str(path)) == get_default_config()

    def test_env_overrides(self, temp_dir, monkeypatch):
        monkeypatch.setenv('HEADLESS', 'true')
        monkeypatch.setenv('PAGE_LOAD_TIMEOUT', '60')
        monkeypatch.setenv('CHROMEDRIVER_PATH', '/usr/bin/chromedriver')

        config = load_config(str(temp_dir / 'nope.yaml'))

        assert config['browser']['headless'] is True
        assert config['browser']['page_load_timeout'] == 60
        assert config['browser']['chromedriver_path'] == '/usr/bin/chromedriver'


class TestEnvOverrides:
    """Test environment variable handling"""

    def test_invalid_value_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv('PAGE_LOAD_TIMEOUT', 'soon')

        config = apply_env_overrides(get_default_config())

        assert config['browser']['page_load_timeout'] == 30
        assert "Invalid value for PAGE_LOAD_TIMEOUT" in caplog.text

    def test_invalid_boolean_ignored(self, monkeypatch):
        monkeypatch.setenv('HEADLESS', 'maybe')

        config = apply_env_overrides(get_default_config())
        assert config['browser']['headless'] is False

    def test_debug_mode(self, monkeypatch):
        monkeypatch.setenv('DEBUG_MODE', 'true')

        config = apply_env_overrides(get_default_config())
        assert config['logging']['level'] == 'DEBUG'


class TestMergeConfig:
    def test_nested_merge_does_not_mutate(self):
        base = {'browser': {'headless': False, 'window_size': [1, 2]}}
        merged = merge_config(base, {'browser': {'headless': True}, 'extra': 1})

        assert merged == {'browser': {'headless': True, 'window_size': [1, 2]}, 'extra': 1}
        assert base['browser']['headless'] is False

    def test_none_section_ignored(self):
        base = {'logging': {'level': 'INFO'}, 'user_agent': 'x'}
        merged = merge_config(base, {'logging': None, 'user_agent': None})

        assert merged == {'logging': {'level': 'INFO'}, 'user_agent': None}


class TestSetupLogging:
    """Test logging setup"""

    def test_console_only(self, restore_root_logger):
        logger = setup_logging({'level': 'debug', 'log_to_file': False})

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_rotating_file_handler(self, restore_root_logger, temp_dir):
        logger = setup_logging({
            'level': 'INFO',
            'log_to_file': True,
            'logs_dir': str(temp_dir / 'logs'),
            'log_filename': 'run.log',
        })

        file_handlers = [h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
        assert len(file_handlers) == 1
        logging.getLogger('page2pdf.test').info("hello")
        file_handlers[0].flush()
        assert "hello" in (temp_dir / 'logs' / 'run.log').read_text(encoding='utf-8')

    def test_unknown_level_defaults_to_info(self, restore_root_logger):
        logger = setup_logging({'level': 'LOUD'})
        assert logger.level == logging.INFO
