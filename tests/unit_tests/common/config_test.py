#!/usr/bin/env python
# -*- coding: utf-8 -*-

import pytest

from fidpromise.common import config

"""### TEST CASES ###
    ## load
    config file exist
    config file does not exist

    ##get
    key does not exist
    get a bool value
    get a bool with invalid value
    get a dict
    get a dict with invalid pair
    get a not typed value

    ##set
    set a not existing key
    set a bool value
    set a dict value
"""


@pytest.fixture
def config_path(tmp_path):
    path = str(tmp_path / 'fidpromise.ini')
    yield path
    # Don't keep the test file as config for the next tests.
    config.load(str(tmp_path / 'missing.ini'))


def write_config(path, content):
    with open(path, 'w') as config_file:
        config_file.write('[config]\n' + content)


class TestConfig(object):

    def test_load_missing_file(self, config_path):
        config.load(config_path)
        assert config.get('debug') is False
        assert config.get('log_levels') == {}
        assert config.get('thread_name') == 'fidpromise'

    def test_load_file(self, config_path):
        write_config(config_path, 'debug = true\n'
                                  'log_levels = fidpromise=debug;foo=ERROR\n'
                                  'thread_name = my-queue\n')
        config.load(config_path)
        assert config.get('debug') is True
        assert config.get('log_levels') == {'fidpromise': 'debug',
                                            'foo': 'ERROR'}
        assert config.get('thread_name') == 'my-queue'

    def test_get_unknown_key(self, config_path):
        config.load(config_path)
        with pytest.raises(KeyError):
            config.get('foo')

    def test_get_invalid_bool(self, config_path):
        write_config(config_path, 'debug = maybe\n')
        config.load(config_path)
        assert config.get('debug') is False

    def test_get_dict_with_invalid_pair(self, config_path):
        write_config(config_path, 'log_levels = a=info;nonsense;b=debug\n')
        config.load(config_path)
        assert config.get('log_levels') == {'a': 'info', 'b': 'debug'}

    def test_set_unknown_key(self, config_path):
        config.load(config_path)
        with pytest.raises(KeyError):
            config.set('foo', 'bar')

    def test_set_value(self, config_path):
        config.load(config_path)
        config.set('debug', True)
        assert config.get('debug') is True

        # The value is persisted in the file.
        config.load(config_path)
        assert config.get('debug') is True

    def test_set_dict_value(self, config_path):
        config.load(config_path)
        config.set('log_levels', {'fidpromise.trace': 'debug'})
        config.load(config_path)
        assert config.get('log_levels') == {'fidpromise.trace': 'debug'}
