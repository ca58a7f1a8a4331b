"""Tests for public URL composition and sanitising."""

import pytest

from assetvault.modules.assets.urls import (
    append_query,
    build_public_url,
    derive_relative_path,
    join_public_url,
    sanitize_url,
)
from assetvault.modules.strategies.models import StrategyDescriptor


def _descriptor(base="https://cdn.x/img", query="", root="/srv/uploads"):
    return StrategyDescriptor(driver="local", root=root, base_url=base, pattern="{uuid}", query=query)


def test_build_from_relative_path():
    url = build_public_url(_descriptor(), relative_path="2024/01/02/abc.png", path=None, name="abc.png")

    assert url == "https://cdn.x/img/2024/01/02/abc.png"


def test_static_query_is_appended():
    url = build_public_url(
        _descriptor(query="?x-oss-process=style/thumb"),
        relative_path="abc.png",
        path=None,
        name="abc.png",
    )

    assert url == "https://cdn.x/img/abc.png?x-oss-process=style/thumb"


def test_no_base_gives_empty_url():
    assert build_public_url(_descriptor(base=""), relative_path="abc.png", path=None, name="abc.png") == ""


@pytest.mark.parametrize(
    ("relative_path", "path", "name", "expected"),
    [
        ("2024/a.png", "/elsewhere/a.png", "a.png", "2024/a.png"),
        ("", "/srv/uploads/2023/05/b.png", "b.png", "2023/05/b.png"),
        (None, "legacy/c.png", "c.png", "legacy/c.png"),
        ("", "/other/root/d.png", "d.png", "d.png"),
        ("", "C:\\data\\e.png", "e.png", "e.png"),
    ],
)
def test_derive_relative_path_priority(relative_path, path, name, expected):
    derived = derive_relative_path(relative_path=relative_path, path=path, name=name, root="/srv/uploads")

    assert derived == expected


def test_windows_paths_under_root_are_trimmed():
    derived = derive_relative_path(
        relative_path="",
        path="D:\\media\\uploads\\2024\\f.png",
        name="f.png",
        root="D:\\media\\uploads",
    )

    assert derived == "2024/f.png"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("https://cdn.x/a.png?token=secret", "https://cdn.x/a.png"),
        ("https://cdn.x/a.png?w=10&token=secret", "https://cdn.x/a.png?w=10"),
        ("https://cdn.x/a.png?w=10", "https://cdn.x/a.png?w=10"),
        ("  ", ""),
        (None, ""),
    ],
)
def test_sanitize_url_strips_token(raw, expected):
    assert sanitize_url(raw) == expected


def test_join_and_append_helpers():
    assert join_public_url("https://cdn.x/", "/a.png") == "https://cdn.x/a.png"
    assert append_query("https://cdn.x/a.png?w=1", "&h=2") == "https://cdn.x/a.png?w=1&h=2"
    assert append_query("https://cdn.x/a.png", "") == "https://cdn.x/a.png"
