"""Unit tests for YAML deploy settings."""

from unittest.mock import Mock

import pytest
import yaml

from doordeploy.core.implementations import RealFileSystemService, YamlConfigLoader
from doordeploy.deploy.exceptions import ValidationError
from doordeploy.utils.config import DEFAULT_SETTINGS_FILE, DeploySettings, load_settings, parse_settings


class TestParseSettings:

    def test_empty_file_gives_defaults(self):
        assert parse_settings(None) == DeploySettings()

    def test_overrides_known_keys(self):
        settings = parse_settings({
            'host': 'garage-pi',
            'user': 'ops',
            'binary_name': 'door-mon',
            'probe_timeout_seconds': 5,
            'grace_period_seconds': 3,
            'ssh_port': 2222,
        })

        assert settings.host == 'garage-pi'
        assert settings.user == 'ops'
        assert settings.binary_name == 'door-mon'
        assert settings.service_name == 'door-monitor'
        assert settings.probe_timeout_seconds == 5
        assert settings.grace_period_seconds == 3.0
        assert settings.ssh_port == 2222

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_settings({'hostname': 'pi.local'})

        assert 'hostname' in str(exc.value)

    def test_non_mapping_rejected(self):
        with pytest.raises(ValidationError):
            parse_settings(['host', 'pi.local'])

    @pytest.mark.parametrize('key,value', [
        ('probe_timeout_seconds', 0),
        ('probe_timeout_seconds', 'ten'),
        ('probe_timeout_seconds', True),
        ('grace_period_seconds', -1),
        ('binary_name', ''),
        ('host', 42),
        ('ssh_port', 0),
        ('ssh_port', 70000),
    ])
    def test_bad_values_rejected(self, key, value):
        with pytest.raises(ValidationError):
            parse_settings({key: value})


class TestLoadSettings:

    def test_no_file_gives_defaults(self):
        fs = Mock()
        fs.exists.return_value = False
        loader = Mock()

        settings = load_settings(None, loader, fs)

        assert settings == DeploySettings()
        fs.exists.assert_called_once_with(DEFAULT_SETTINGS_FILE)
        loader.load_yaml.assert_not_called()

    def test_default_file_used_when_present(self):
        fs = Mock()
        fs.exists.return_value = True
        loader = Mock()
        loader.load_yaml.return_value = {'host': 'pi.local'}

        settings = load_settings(None, loader, fs)

        loader.load_yaml.assert_called_once_with(DEFAULT_SETTINGS_FILE)
        assert settings.host == 'pi.local'

    def test_explicit_path_must_exist(self):
        fs = Mock()
        fs.exists.return_value = False

        with pytest.raises(ValidationError) as exc:
            load_settings('deploy/pi.yaml', Mock(), fs)

        assert 'deploy/pi.yaml' in str(exc.value)

    def test_malformed_yaml(self):
        fs = Mock()
        fs.exists.return_value = True
        loader = Mock()
        loader.load_yaml.side_effect = yaml.YAMLError("mapping values are not allowed here")

        with pytest.raises(ValidationError) as exc:
            load_settings('pi.yaml', loader, fs)

        assert 'Could not parse pi.yaml' in str(exc.value)

    def test_reads_real_file(self, tmp_path):
        path = tmp_path / 'pi.yaml'
        path.write_text("host: garage-pi\nuser: pi\ndefault_target: aarch64-unknown-linux-gnu\n")
        fs = RealFileSystemService()

        settings = load_settings(str(path), YamlConfigLoader(fs), fs)

        assert settings.host == 'garage-pi'
        assert settings.default_target == 'aarch64-unknown-linux-gnu'
