import importlib
import logging


cfgmod = importlib.import_module('core.config')

ENV = {
    'PLATFORM': 'Sonarr',
    'BASEURL': 'http://sonarr:8989/',
    'APIKEY': 'secret',
    'TIME_THRESHOLD': '01:00:00',
    'SIZE_THRESHOLD': '50 GB',
    'STRIKE_THRESHOLD': '4',
    'AGGRESSIVE_STRIKES': 'yes',
    'CHECK_INTERVAL': '5m',
}


def test_defaults_without_env_or_yaml():
    s = cfgmod.load_settings(env={}, cfg={})
    assert s.platform == 'radarr'
    assert s.baseurl == 'http://127.0.0.1:7878'
    assert s.apikey == ''
    assert s.strike_threshold == 3
    assert s.aggressive_strikes is False
    assert s.check_interval_ms == 600000
    assert s.prune_stale_strikes is True
    t = s.thresholds()
    assert (t.size_bytes, t.time_ms, t.strikes, t.aggressive) == (25_000_000_000, 7_200_000, 3, False)


def test_env_values_are_resolved():
    s = cfgmod.load_settings(env=ENV, cfg={})
    assert s.platform == 'sonarr'
    assert s.baseurl == 'http://sonarr:8989'
    assert s.apikey == 'secret'
    assert s.check_interval_ms == 300000
    t = s.thresholds()
    assert (t.size_bytes, t.time_ms, t.strikes, t.aggressive) == (50_000_000_000, 3_600_000, 4, True)


def test_yaml_general_overrides_env_but_not_api_key():
    cfg = {'general': {'strike_threshold': '2', 'aggressive_strikes': 'false', 'apikey': 'ignored', 'dry_run': 'true'}}
    s = cfgmod.load_settings(env=ENV, cfg=cfg)
    assert s.strike_threshold == 2
    assert s.aggressive_strikes is False
    assert s.dry_run is True
    assert s.apikey == 'secret'


def test_bad_numbers_fall_back_to_defaults():
    s = cfgmod.load_settings(env={'STRIKE_THRESHOLD': 'many', 'CHECK_INTERVAL': 'often', 'REQUEST_TIMEOUT': '0'}, cfg={})
    assert s.strike_threshold == 3
    assert s.check_interval_ms == cfgmod.DEFAULT_CHECK_INTERVAL_MS
    assert s.request_timeout == 1


def test_negative_strike_threshold_is_clamped():
    s = cfgmod.load_settings(env={'STRIKE_THRESHOLD': '-2'}, cfg={})
    assert s.strike_threshold == 0


def test_load_yaml_reads_file_and_tolerates_missing(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text('general:\n  platform: sonarr\n  strike_threshold: 5\n')
    assert cfgmod.load_yaml(str(path)) == {'general': {'platform': 'sonarr', 'strike_threshold': 5}}
    assert cfgmod.load_yaml(str(tmp_path / 'missing.yaml')) == {}


def test_load_yaml_invalid_file_is_empty(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text('general: [unclosed\n')
    assert cfgmod.load_yaml(str(path)) == {}


def test_load_settings_reads_config_path(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text('general:\n  time_threshold: "00:30:00"\n')
    s = cfgmod.load_settings(env={'CONFIG_PATH': str(path)})
    assert s.thresholds().time_ms == 1_800_000


def test_sanitize_config_coerces_general():
    out = cfgmod.sanitize_config({'general': {'strike_threshold': '7', 'platform': ' RADARR ', 'dry_run': 'yes', 'queue_page_size': 'x'}})
    assert out['general'] == {'strike_threshold': 7, 'platform': 'radarr', 'dry_run': True, 'queue_page_size': 500}
    assert cfgmod.sanitize_config('nope') == {}


def test_validate_config_warns(caplog):
    caplog.set_level(logging.WARNING)
    s = cfgmod.load_settings(env={'PLATFORM': 'lidarr', 'TIME_THRESHOLD': '2h', 'SIZE_THRESHOLD': 'big'}, cfg={})
    problems = cfgmod.validate_config(s)
    assert len(problems) == 4
    assert any('PLATFORM "lidarr"' in r.message for r in caplog.records)


def test_validate_config_clean():
    assert cfgmod.validate_config(cfgmod.load_settings(env=ENV, cfg={})) == []


def test_get_env_var_casts():
    assert cfgmod.get_env_var('N', 1, int, env={'N': '5'}) == 5
    assert cfgmod.get_env_var('N', 1, int, env={'N': 'x'}) == 1
    assert cfgmod.get_env_var('M', None, env={}) is None


def test_unquoted_yaml_time_threshold_is_understood(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text('general:\n  time_threshold: 2:00:00\n')
    s = cfgmod.load_settings(env={'CONFIG_PATH': str(path)})
    assert s.time_threshold == '02:00:00'
    assert s.thresholds().time_ms == 7_200_000
