"""Tests for strategy configuration parsing and resolution."""

import pytest

from assetvault.core.config import DEFAULT_PATH_PATTERN, StrategyDefaults
from assetvault.modules.strategies import (
    GenericDriverConfig,
    LocalDriverConfig,
    StrategyMisconfiguredError,
    StrategyResolver,
    parse_driver_config,
)
from assetvault.modules.strategies.resolver import derive_base_from_addr, storage_segment


def test_empty_blob_falls_back_to_process_defaults(resolver, storage_root):
    descriptor = resolver.resolve({})

    assert descriptor.driver == "local"
    assert descriptor.root == str(storage_root)
    assert descriptor.pattern == DEFAULT_PATH_PATTERN
    assert descriptor.base_url == "http://localhost:8080/uploads"
    assert descriptor.is_functional


def test_pattern_without_unique_token_is_replaced(resolver):
    descriptor = resolver.resolve({"url": "https://cdn.x/img", "pattern": "{year}/{month}"})

    assert descriptor.pattern == DEFAULT_PATH_PATTERN
    assert "{uuid}" in descriptor.pattern


def test_pattern_with_unique_token_is_kept(resolver):
    descriptor = resolver.resolve({"url": "https://cdn.x/img", "path_template": "{userId}/{uuid}"})

    assert descriptor.pattern == "{userId}/{uuid}"


def test_default_pattern_setting_must_contain_unique_token(storage_root):
    resolver = StrategyResolver(StrategyDefaults(root=str(storage_root), default_pattern="{year}"))

    assert resolver.resolve({"url": "https://cdn.x/img"}).pattern == DEFAULT_PATH_PATTERN


def test_first_non_empty_base_url_synonym_wins(resolver):
    descriptor = resolver.resolve({"url": "", "base_url": "  ", "baseUrl": "https://b.example/files"})

    assert descriptor.base_url == "https://b.example/files"


@pytest.mark.parametrize(
    ("raw_base", "expected"),
    [
        ("https://cdn.x/img/", "https://cdn.x/img"),
        ("//cdn.x/files/", "http://cdn.x/files"),
        ("cdn.x/files", "http://cdn.x/files"),
        ("/static", "http://localhost:8080/static"),
        ("/", "http://localhost:8080/uploads"),
    ],
)
def test_base_url_normalisation(resolver, raw_base, expected):
    assert resolver.resolve({"url": raw_base}).base_url == expected


def test_local_origin_without_path_gets_storage_segment(resolver):
    assert resolver.resolve({"url": "https://b.example"}).base_url == "https://b.example/uploads"


def test_remote_driver_keeps_bare_origin_and_extra_options(resolver):
    config = parse_driver_config({"driver": "s3", "url": "https://bucket.example", "bucket": "media"})

    assert isinstance(config, GenericDriverConfig)
    assert config.options == {"bucket": "media"}
    assert resolver.resolve(config).base_url == "https://bucket.example"


def test_json_blob_parses_to_local_config():
    config = parse_driver_config('{"root": "/data", "queries": "v=1"}')

    assert isinstance(config, LocalDriverConfig)
    assert config.root == "/data"
    assert config.query == "v=1"


def test_unreadable_blob_is_treated_as_empty():
    config = parse_driver_config("not json")

    assert isinstance(config, LocalDriverConfig)
    assert config.root == ""


def test_extension_list_is_normalised(resolver):
    descriptor = resolver.resolve({"url": "https://cdn.x", "allowed_extensions": "PNG, .jpg;gif png"})

    assert descriptor.allowed_extensions == ("png", "jpg", "gif")
    assert descriptor.extension_allowed(".JPG")
    assert not descriptor.extension_allowed("bmp")


def test_missing_root_and_base_is_misconfigured():
    resolver = StrategyResolver(StrategyDefaults())
    descriptor = resolver.resolve({})

    assert descriptor.base_url == ""
    assert not descriptor.is_functional
    with pytest.raises(StrategyMisconfiguredError):
        descriptor.require_functional("s1")


def test_missing_root_only_is_misconfigured():
    resolver = StrategyResolver(StrategyDefaults(public_base_url="https://cdn.x"))

    with pytest.raises(StrategyMisconfiguredError, match="储存路径"):
        resolver.resolve({}).require_functional("s1")


@pytest.mark.parametrize(
    ("addr", "expected"),
    [
        (":8080", "http://localhost:8080"),
        ("0.0.0.0:9000", "http://0.0.0.0:9000"),
        ("https://example.com", "https://example.com"),
        ("", "http://localhost:8080"),
    ],
)
def test_derive_base_from_addr(addr, expected):
    assert derive_base_from_addr(addr) == expected


def test_default_base_url_uses_bind_address_when_unset(storage_root):
    resolver = StrategyResolver(StrategyDefaults(root=str(storage_root), http_addr=":9090"))

    assert resolver.default_base_url() == "http://localhost:9090"


@pytest.mark.parametrize(
    ("root", "expected"),
    [("storage/uploads", "uploads"), ("/srv/media/", "media"), ("", "uploads"), (".", "uploads")],
)
def test_storage_segment(root, expected):
    assert storage_segment(root) == expected
