from __future__ import annotations

import pytest

from netblock import console as console_module
from netblock.console import console_encoding, decode_output, mentions_path, says_no_rule_matches


@pytest.fixture
def linux(monkeypatch) -> None:
    monkeypatch.delenv("NETBLOCK_CONSOLE_ENCODING", raising=False)
    monkeypatch.setattr(console_module.platform, "system", lambda: "Linux")


@pytest.fixture
def windows(monkeypatch) -> None:
    monkeypatch.delenv("NETBLOCK_CONSOLE_ENCODING", raising=False)
    monkeypatch.setattr(console_module.platform, "system", lambda: "Windows")


def test_decode_output_reads_gbk(linux) -> None:
    raw = "没有与指定标准相匹配的规则。".encode("gbk")

    assert decode_output(raw) == "没有与指定标准相匹配的规则。"


def test_decode_output_falls_back_to_utf8() -> None:
    raw = "Programme: C:\\Jeux\\été.exe ✓".encode("utf-8")

    assert decode_output(raw, "ascii") == "Programme: C:\\Jeux\\été.exe ✓"


def test_decode_output_empty() -> None:
    assert decode_output(b"") == ""


def test_console_encoding_can_be_overridden(linux, monkeypatch) -> None:
    assert console_encoding() == "gbk"

    monkeypatch.setenv("NETBLOCK_CONSOLE_ENCODING", "cp437")
    assert console_encoding() == "cp437"
    assert decode_output(b"Ok.") == "Ok."


def test_says_no_rule_matches() -> None:
    assert says_no_rule_matches("\nNo rules match the specified criteria.\n")
    assert says_no_rule_matches("NO RULES MATCH")
    assert says_no_rule_matches("没有与指定标准相匹配的规则。")
    assert not says_no_rule_matches("Ok.")


def test_mentions_path_ignores_case() -> None:
    output = "Program:    C:\\Program Files\\Tool\\tool.exe\n"

    assert mentions_path(output, "c:\\program files\\TOOL\\Tool.exe")
    assert not mentions_path(output, "C:\\Program Files\\Other\\tool.exe")


def test_console_encoding_follows_windows_code_page(windows, monkeypatch) -> None:
    monkeypatch.setattr(console_module, "_console_code_page", lambda: 437)

    assert console_encoding() == "cp437"


def test_console_encoding_without_console_uses_oem(windows, monkeypatch) -> None:
    monkeypatch.setattr(console_module, "_console_code_page", lambda: 0)

    assert console_encoding() == "oem"


def test_windows_override_beats_code_page(windows, monkeypatch) -> None:
    monkeypatch.setattr(console_module, "_console_code_page", lambda: 437)
    monkeypatch.setenv("NETBLOCK_CONSOLE_ENCODING", "cp936")

    assert console_encoding() == "cp936"


def test_western_code_page_keeps_accented_path(windows, monkeypatch) -> None:
    monkeypatch.setattr(console_module, "_console_code_page", lambda: 437)
    path = "C:\\Jeux\\Café\\game.exe"
    raw = f"Program:                              {path}\r\nOk.\r\n".encode("cp437")

    text = decode_output(raw)

    assert path in text
    assert mentions_path(text, path.upper())
