"""Pytest configuration and fixtures for appconfig package tests."""

import json
import os
import shutil
import tempfile
from pathlib import Path

import pytest

from dataknobs_appconfig import reset_application_config

BASE_CONFIG = """\
db:
  user: test
  pass: testPass

very:
  nested:
    config:
      variable: true

special:
  routes:
    redirect: !env TEST_ENV_VAR
    redirectNot: !env TEST_ENV_VAR_NOT_SET

abs: !require {absolute}
notfound: !require ./foobar.json
err: !require ./throwing.py
file: !require ./required.json
"""

LOCAL_CONFIG = """\
db:
  pass: mergePass

very:
  nested:
    config:
      variableTwo: true
"""

TEST_ENV_CONFIG = """\
forTestEnv: true
db:
  user: testEnvUser
  pass: testEnvPass
"""

THROWING_MODULE = """\
raise RuntimeError("config module exploded")
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp = tempfile.mkdtemp()
    yield Path(temp)
    shutil.rmtree(temp)


@pytest.fixture
def project_dir(temp_dir):
    """A startup directory with base, local and test-environment configs."""
    required = temp_dir / "required.json"
    required.write_text(json.dumps({"requiredFile": True}))

    (temp_dir / "config.yaml").write_text(BASE_CONFIG.format(absolute=required))
    (temp_dir / "config.local.yaml").write_text(LOCAL_CONFIG)
    (temp_dir / "config.test.yaml").write_text(TEST_ENV_CONFIG)
    (temp_dir / "throwing.py").write_text(THROWING_MODULE)
    return temp_dir


@pytest.fixture
def env_vars(monkeypatch):
    """Helper to set environment variables."""

    def _set_env(**kwargs):
        for key, value in kwargs.items():
            monkeypatch.setenv(key, str(value))

    return _set_env


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Clear environment variables the tests rely on being unset."""
    for key in list(os.environ.keys()):
        if key.startswith(("app_config_", "appConfig_", "applicationConfig_", "prefix_")):
            monkeypatch.delenv(key)
    for key in ("NODE_ENV", "TEST_ENV_VAR", "TEST_ENV_VAR_NOT_SET"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_singleton():
    """Start and finish every test without a process-wide config."""
    reset_application_config()
    yield
    reset_application_config()
