import io

import pytest

from auditchecks.prompts import prompt, prompt_select, prompt_with_default, prompt_yes_no, split_and_trim


def feed(monkeypatch, text):
    monkeypatch.setattr("sys.stdin", io.StringIO(text))


def test_prompt_returns_trimmed_line(monkeypatch, capsys):
    feed(monkeypatch, "  hello  \n")
    assert prompt("Say: ") == "hello"
    assert capsys.readouterr().out == "Say: "


def test_prompt_without_newline_returns_empty(monkeypatch):
    feed(monkeypatch, "partial")
    assert prompt("x") == ""


def test_prompt_with_default_uses_default_on_empty(monkeypatch, capsys):
    feed(monkeypatch, "\n")
    assert prompt_with_default("App name", "myapp") == "myapp"
    assert capsys.readouterr().out == "App name [myapp]: "


def test_prompt_with_default_takes_answer(monkeypatch, capsys):
    feed(monkeypatch, "other\n")
    assert prompt_with_default("App path", "") == "other"
    assert capsys.readouterr().out == "App path: "


@pytest.mark.parametrize(
    "answer, default, expected",
    [("y\n", False, True), ("YES\n", False, True), ("n\n", True, False), ("\n", True, True), ("\n", False, False), ("maybe\n", True, False)],
)
def test_prompt_yes_no(monkeypatch, answer, default, expected):
    feed(monkeypatch, answer)
    assert prompt_yes_no("Continue?", default) is expected


def test_prompt_yes_no_suffix(monkeypatch, capsys):
    feed(monkeypatch, "\n")
    prompt_yes_no("Continue?", True)
    assert capsys.readouterr().out == "Continue? (Y/n): "


def test_prompt_select_choice(monkeypatch, capsys):
    feed(monkeypatch, "2\n")
    assert prompt_select("Pick", ["a", "b", "c"], 0) == 1
    out = capsys.readouterr().out
    assert "> 1. a" in out
    assert "  2. b" in out


def test_prompt_select_empty_gives_default(monkeypatch):
    feed(monkeypatch, "\n")
    assert prompt_select("Pick", ["a", "b", "c"], 2) == 2


def test_prompt_select_retries_on_invalid(monkeypatch, capsys):
    feed(monkeypatch, "9\nabc\n3\n")
    assert prompt_select("Pick", ["a", "b", "c"], 0) == 2
    assert capsys.readouterr().out.count("Invalid choice, please try again.") == 2


def test_prompt_select_end_of_input_gives_default(monkeypatch):
    feed(monkeypatch, "")
    assert prompt_select("Pick", ["a", "b"], 1) == 1


def test_split_and_trim():
    assert split_and_trim(" a, b ,,c ") == ["a", "b", "c"]
    assert split_and_trim("") == []
    assert split_and_trim(" , \t") == []