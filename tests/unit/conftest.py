"""Shared test fixtures."""

from pathlib import Path

import pytest

from tests.unit.fakes import FakeEditor, FakeScheduler

STORY = """\
title: "The Cave"

vars {
  hp = 10
}

scene intro {
  text: "You stand at the mouth of a cave. HP: {hp}"
  set torch = 1
  set gold = 5
  choice "Enter" -> cave
  choice "Leave" -> village
}

scene cave {
  text: "It is dark. You have {gold} gold."
  if torch > 0 {
    text: "Your torch flickers."
  }
  choice "Back" -> intro
}

scene secret {
  text: "Nobody comes here."
}
"""


@pytest.fixture
def story() -> str:
    return STORY


@pytest.fixture
def editor() -> FakeEditor:
    return FakeEditor(STORY)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def story_file(tmp_path: Path) -> Path:
    path = tmp_path / "cave.coslang"
    path.write_text(STORY, encoding="utf-8")
    return path
