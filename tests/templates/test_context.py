"""
Test render context variable scoping.
"""

import pytest

from dotview.templates import RenderContext


@pytest.fixture
def context():
    context = RenderContext()
    context.set_layout("main")
    context.set_view("home")
    return context


def test_layout_and_view_vars_independent(context):
    context.set_layout_var("title", "Layout")
    context.set_view_var("title", "View")

    assert context.get_layout_var("title") == "Layout"
    assert context.get_view_var("title") == "View"


def test_no_fallback_between_scopes(context):
    context.set_view_var("only_view", 1)

    assert context.get_layout_var("only_view") == ""
    assert context.get_layout_var("only_view", None) is None


def test_vars_scoped_by_selection(context):
    context.set_view_var("user", "ada")
    context.set_view("other")

    assert context.get_view_var("user") == ""

    context.set_view("home")
    assert context.get_view_var("user") == "ada"


def test_selection_replaces_previous(context):
    context.set_layout("admin")

    assert context.layout == "admin"


def test_getters_return_copies(context):
    context.set_view_var("a", 1)
    bag = context.get_view_vars()
    bag["b"] = 2

    assert context.get_view_vars() == {"a": 1}


def test_clear_scopes(context):
    context.set_layout_var("l", 1)
    context.set_view_var("v", 2)

    context.clear("view")
    assert context.get_view_vars() == {}
    assert context.get_layout_vars() == {"l": 1}

    context.clear()
    assert context.get_layout_vars() == {}


def test_clear_unknown_scope(context):
    with pytest.raises(ValueError):
        context.clear("session")


def test_to_dict(context):
    context.set_layout_var("l", 1)
    context.set_view_var("v", 2)

    assert context.to_dict() == {
        "layout": "main",
        "view": "home",
        "layout_vars": {"l": 1},
        "view_vars": {"v": 2},
    }
