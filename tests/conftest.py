"""Shared test fixtures for fmu-annotate."""

import os
import shutil
import textwrap
from pathlib import Path

import pytest

from fmu_annotate.documents import DocumentIndex

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def sim_dir(tmp_path):
    """Copy of the reference simulation: one Stack, a Target model, three SignalGroups."""
    target = tmp_path / "sim"
    shutil.copytree(FIXTURES / "sim", target)
    return target


@pytest.fixture
def sim_index(sim_dir):
    """DocumentIndex populated from the reference simulation."""
    index = DocumentIndex()
    index.scan(sim_dir)
    return index


@pytest.fixture
def rules_csv(tmp_path):
    """Rule table mapping direction to causality (input, output and local)."""
    target = tmp_path / "rules.csv"
    shutil.copy(FIXTURES / "rules.csv", target)
    return target


@pytest.fixture
def write_yaml(tmp_path):
    """Write dedented YAML text below tmp_path and return the file path."""

    def _write(relative: str, text: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text).lstrip(), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Keep user, project and environment configuration out of the test."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    for key in list(os.environ):
        if key.startswith("FMU_ANNOTATE_"):
            monkeypatch.delenv(key)
    return work
