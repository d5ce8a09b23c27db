"""Tests for CLI commands: help, due, review, import, tag, note, stats, interests, config, serve."""

import json
import logging
import re
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from memora.application.config import resolve_config
from memora.domain.models import utcnow
from memora.infrastructure.json_store import InterestStore, JsonCardStore
from memora.interface.cli import app

runner = CliRunner()


def strip_ansi(text):
    ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi_escape.sub("", text)


@pytest.fixture
def store(data_dir):
    return JsonCardStore(data_dir / "cards.json")


@pytest.fixture
def seeded(store, card_factory):
    # card_factory dates are fixed in the past, so every card here is due now
    cards = [
        card_factory("easy", due_in_days=-1, last_rating=5, tags=["py"]),
        card_factory("failed", due_in_days=-1, last_rating=1),
    ]
    store.save(cards)
    return cards


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    output = strip_ansi(result.stdout)
    assert "SM-2 spaced repetition" in output
    assert "review" in output
    assert "stats" in output


# --- Due ---


def test_due_json_lists_failed_first(seeded):
    result = runner.invoke(app, ["due", "--json"])

    assert result.exit_code == 0
    assert [c["id"] for c in json.loads(result.stdout)] == ["failed", "easy"]


def test_due_no_priority(seeded):
    result = runner.invoke(app, ["due", "--json", "--no-priority"])

    assert [c["id"] for c in json.loads(result.stdout)] == ["easy", "failed"]


def test_due_with_tag(seeded):
    result = runner.invoke(app, ["due", "--json", "--tag", "py"])

    assert [c["id"] for c in json.loads(result.stdout)] == ["easy"]


def test_due_empty_store(data_dir):
    result = runner.invoke(app, ["due"])

    assert result.exit_code == 0
    assert "No cards due" in result.stdout


def test_data_dir_option_overrides_env(tmp_path, seeded):
    other = tmp_path / "other"

    result = runner.invoke(app, ["--data-dir", str(other), "due", "--json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == []


def test_corrupt_store_exits_with_error(data_dir):
    data_dir.mkdir(parents=True)
    (data_dir / "cards.json").write_text("{oops")

    result = runner.invoke(app, ["due"])

    assert result.exit_code == 1
    assert (data_dir / "cards.json").read_text() == "{oops"


def test_invalid_env_config_exits_with_error(data_dir, monkeypatch):
    monkeypatch.setenv("MEMORA_UPCOMING_WINDOW_DAYS", "-1")

    result = runner.invoke(app, ["stats"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
    assert "Traceback" not in result.output


# --- Review ---


def test_review_requeues_until_acceptable(seeded, store):
    # failed card: 2 (requeue), 4 (done); easy card: 5
    answers = ["", "2", "", "4", "", "5"]

    result = runner.invoke(app, ["review"], input="\n".join(answers) + "\n")

    assert result.exit_code == 0, result.stdout
    assert "needs immediate re-review" in result.stdout
    assert "Review session complete! 3 review(s) over 2 card(s)." in result.stdout

    cards = {c.id: c for c in store.load()}
    assert cards["failed"].performance_history == (1, 2, 4)
    assert cards["easy"].performance_history == (5, 5)
    assert not any(c.is_due(utcnow()) for c in cards.values())


def test_review_reprompts_on_invalid_rating(seeded, store):
    answers = ["", "9", "5", "", "5"]

    result = runner.invoke(app, ["review"], input="\n".join(answers) + "\n")

    assert result.exit_code == 0, result.stdout
    assert "between 0 and 5" in result.stdout
    assert store.load()[1].performance_history == (1, 5)


def test_review_with_interests(seeded, data_dir):
    InterestStore(data_dir / "interests.json").save(["py"])

    result = runner.invoke(app, ["review", "--interests"], input="\n5\n")

    assert result.exit_code == 0, result.stdout
    assert "Reviewing 1 card(s)" in result.stdout


def test_review_nothing_matches(seeded):
    result = runner.invoke(app, ["review", "--tag", "nope"])

    assert result.exit_code == 0
    assert "No due cards match" in result.stdout


# --- Import ---


def test_import_command(data_dir, tmp_path, store):
    src = tmp_path / "generated.txt"
    src.write_text("Q: Capital of France?\nA: Paris\n---\nQ: 2+2?\nA: 4\n")

    result = runner.invoke(app, ["import", str(src), "--tag", "quiz"])

    assert result.exit_code == 0
    assert "2 flashcard(s) saved" in result.stdout
    cards = store.load()
    assert [c.answer for c in cards] == ["Paris", "4"]
    assert all(c.tags == frozenset({"quiz"}) for c in cards)


def test_import_missing_file(data_dir, tmp_path):
    result = runner.invoke(app, ["import", str(tmp_path / "nope.txt")])

    assert result.exit_code == 1


# --- Tag / Note ---


def test_tag_command(seeded, store, data_dir):
    result = runner.invoke(app, ["tag", "failed", "math", "algebra", "--remember"])

    assert result.exit_code == 0
    assert store.load()[1].tags == frozenset({"math", "algebra"})
    assert InterestStore(data_dir / "interests.json").load() == ["math", "algebra"]


def test_tag_unknown_card(seeded):
    result = runner.invoke(app, ["tag", "ghost", "x"])

    assert result.exit_code == 1


def test_note_command(seeded, store):
    result = runner.invoke(app, ["note", "easy", "watch the floor"])

    assert result.exit_code == 0
    assert store.load()[0].notes == "watch the floor"


def test_note_markdown(seeded, store, data_dir):
    md = data_dir / "markdown" / "easy.md"

    def edit_then_continue(*args, **kwargs):
        md.write_text(md.read_text() + "from markdown\n")
        return ""

    with patch("memora.interface.cli.typer.prompt", side_effect=edit_then_continue):
        result = runner.invoke(app, ["note", "easy", "--markdown"])

    assert result.exit_code == 0, result.stdout
    assert store.load()[0].notes == "from markdown"


# --- Stats ---


def test_stats_json(seeded):
    result = runner.invoke(app, ["stats", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["total_cards"] == 2
    assert data["due_cards"] == 2
    assert data["performance_distribution"] == [0, 1, 0, 0, 0, 1]


def test_stats_text_on_empty_store(data_dir):
    result = runner.invoke(app, ["stats"])

    assert result.exit_code == 0
    assert "Total cards: 0" in result.stdout
    assert "Average ease factor: 0.00" in result.stdout
    assert "No upcoming reviews scheduled." in result.stdout


# --- Interests ---


def test_interests_lifecycle(data_dir):
    assert "No interests" in runner.invoke(app, ["interests", "list"]).stdout

    assert runner.invoke(app, ["interests", "add", "python"]).exit_code == 0
    assert "already" in runner.invoke(app, ["interests", "add", "python"]).stdout
    assert "1. python" in runner.invoke(app, ["interests", "list"]).stdout

    assert runner.invoke(app, ["interests", "remove", "python"]).exit_code == 0
    assert runner.invoke(app, ["interests", "remove", "python"]).exit_code == 1


# --- Config ---


@patch("memora.interface.cli.resolve_config")
def test_config_show_command(mock_resolve_config):
    mock_config = MagicMock()
    mock_config.model_dump.return_value = {
        "data_dir": Path("/tmp/memora"),
        "include_failed_priority": True,
    }
    mock_resolve_config.return_value = mock_config

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    output_data = json.loads(result.stdout)
    assert output_data["data_dir"] == str(Path("/tmp/memora"))
    assert output_data["include_failed_priority"] is True


def test_config_reads_env(data_dir):
    result = runner.invoke(app, ["config", "show"])

    assert json.loads(result.stdout)["data_dir"] == str(data_dir.resolve())


# --- Serve ---


@patch("uvicorn.run")
def test_serve_command(mock_run, data_dir):
    result = runner.invoke(app, ["serve", "--port", "9000"])
    assert result.exit_code == 0
    mock_run.assert_called_with("memora.server:app", host="127.0.0.1", port=9000, reload=False)


def test_serve_hands_global_data_dir_to_server(data_dir, tmp_path):
    other = tmp_path / "other"
    served_from = []

    with patch("uvicorn.run", side_effect=lambda *a, **kw: served_from.append(resolve_config())):
        result = runner.invoke(app, ["--data-dir", str(other), "serve"])

    assert result.exit_code == 0
    assert served_from[0].data_dir == other.resolve()


# --- Logging ---


def test_verbose_flag_raises_log_level_and_writes_log_file(seeded, mock_home):
    memora_logger = logging.getLogger("memora")

    assert runner.invoke(app, ["-vv", "due"]).exit_code == 0
    assert memora_logger.level == logging.DEBUG

    log_file = mock_home / ".config/memora/logs/memora.log"
    assert "Queue: 2 of 2 cards" in log_file.read_text()

    assert runner.invoke(app, ["due"]).exit_code == 0
    assert memora_logger.level == logging.INFO


def test_verbose_from_env(data_dir, monkeypatch):
    monkeypatch.setenv("MEMORA_VERBOSE", "0")

    assert runner.invoke(app, ["due"]).exit_code == 0
    assert logging.getLogger("memora").level == logging.WARNING


def test_logs_linux(data_dir, mock_home):
    with patch("sys.platform", "linux"), patch("subprocess.run") as mock_run:
        result = runner.invoke(app, ["logs"])

    assert result.exit_code == 0
    log_dir = (mock_home / ".config/memora/logs").resolve()
    mock_run.assert_called_once_with(["xdg-open", str(log_dir)])
    assert log_dir.is_dir()
