#!/usr/bin/env python
# -*- coding: utf-8 -*-

import logging
import os
from types import SimpleNamespace

from fidpromise.common import path
from fidpromise.common.path import _ensure_dir_exists

"""### TEST CASES ###
    _ensure_dir_exists, dir exists
    _ensure_dir_exists, dir does not exist
    _ensure_dir_exists, path is a file
    get_config_dir, get_log_dir
"""


class TestEnsureDirExists(object):

    def test_dir_already_exists(self, tmp_path, caplog):
        _ensure_dir_exists(str(tmp_path))
        assert [r for r in caplog.records if r.levelno >= logging.WARNING] \
            == []

    def test_dir_does_not_exist(self, tmp_path):
        new_dir = str(tmp_path / 'a' / 'b')
        _ensure_dir_exists(new_dir)
        assert os.path.isdir(new_dir)

    def test_path_is_a_file(self, tmp_path, caplog):
        file_path = tmp_path / 'file'
        file_path.write_text('content')
        _ensure_dir_exists(str(file_path))
        assert 'Unable to create the missing folder' in caplog.text


class TestAppDirs(object):

    def test_config_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(path, '_appdirs', SimpleNamespace(
            user_config_dir=str(tmp_path / 'config')))
        assert path.get_config_dir() == str(tmp_path / 'config')
        assert os.path.isdir(str(tmp_path / 'config'))

    def test_log_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(path, '_appdirs', SimpleNamespace(
            user_log_dir=str(tmp_path / 'log')))
        assert path.get_log_dir() == str(tmp_path / 'log')
