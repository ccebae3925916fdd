"""
Test embedded server-code removal.
"""

import logging

import pytest

from dotview.templates import escape_php
from dotview.templates.escape import find_server_code


@pytest.mark.parametrize("source, expected", [
    ("<?php echo 'test'; ?>", ""),
    ("<p>a</p><?php echo $x; ?><p>b</p>", "<p>a</p><p>b</p>"),
    ("<?= $name ?>", ""),
    ("<? echo 1; ?>rest", "rest"),
    ("<% Response.Write(1) %>ok", "ok"),
    ('<script language="php">echo 1;</script>done', "done"),
    ("<?py for x in items ?>x<?py endfor ?>", "x"),
])
def test_escape_php_removes_server_code(source, expected):
    assert escape_php(source) == expected


@pytest.mark.parametrize("source", [
    "<?xml version='1.0' ?><tag></tag>",
    '<?xml version="1.0" encoding="UTF-8"?><root/>',
    "<script>var a = 1;</script>",
    '<script type="text/javascript">alert(1)</script>',
    "plain text",
])
def test_escape_php_keeps_lookalikes(source):
    assert escape_php(source) == source


def test_escape_php_unterminated_tag_removes_rest():
    assert escape_php("before<?php echo 'never closed';") == "before"


def test_escape_php_unclosed_asp_marker_is_text():
    source = "<p>50<% off</p><div>rest</div>"

    assert escape_php(source) == source


def test_escape_php_asp_tag_needs_its_close():
    assert escape_php("a <% b %> c <% d") == "a  c <% d"


def test_escape_php_removal_cannot_form_new_tag():
    """Text joined by a removal is scanned again."""
    assert escape_php("<<?php x ?>?php echo 1; ?>safe") == "safe"


def test_escape_php_case_insensitive():
    assert escape_php("<?PHP echo 1; ?>x") == "x"


def test_escape_php_reports_removal(caplog):
    with caplog.at_level(logging.WARNING, logger="dotview.templates.escape"):
        escape_php("a<?php one(); ?>b<?php two(); ?>c")

    records = [r for r in caplog.records if r.name == "dotview.templates.escape"]
    assert len(records) == 1
    assert "UNSAFE_CONTENT" in records[0].getMessage()
    assert records[0].fault["code"] == "UNSAFE_CONTENT"
    assert records[0].fault["severity"] == "warn"
    assert len(records[0].fault["metadata"]["segments"]) == 2


def test_escape_php_clean_text_logs_nothing(caplog):
    with caplog.at_level(logging.WARNING, logger="dotview.templates.escape"):
        escape_php("<p>clean</p>")

    assert not [r for r in caplog.records if r.name == "dotview.templates.escape"]


def test_find_server_code_lists_segments():
    segments = find_server_code("x<?php a(); ?>y<% b %>z")

    assert segments == ["<?php a(); ?>", "<% b %>"]
