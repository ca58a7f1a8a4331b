"""Tests for account preferences and settings sections."""

import pytest

from assetvault.core.config import Settings
from assetvault.modules.accounts import AccountService, UserAccount, normalize_visibility
from assetvault.modules.accounts.exceptions import AccountNotFoundError
from assetvault.modules.accounts.models import load_configs


@pytest.mark.parametrize(
    ("value", "expected"),
    [("public", "public"), (" PUBLIC ", "public"), ("private", "private"), ("", "private"), (None, "private")],
)
def test_normalize_visibility(value, expected):
    assert normalize_visibility(value) == expected


@pytest.mark.parametrize(
    ("configs", "expected"),
    [
        ({"default_strategy": "abc"}, "abc"),
        ({"default_strategy": 7}, "7"),
        ({"default_strategy": 0}, None),
        ({"default_strategy": True}, None),
        ({"default_strategy": "  "}, None),
        ({}, None),
    ],
)
def test_default_strategy_preference(configs, expected):
    assert UserAccount(id="u", name="n", configs=configs).default_strategy_id() == expected


def test_default_visibility_preference():
    assert UserAccount(id="u", name="n", configs={"default_visibility": "Public"}).default_visibility() == "public"
    assert UserAccount(id="u", name="n", configs={"default_visibility": 1}).default_visibility() == "private"


def test_load_configs_ignores_bad_blobs():
    assert load_configs('{"a": 1}') == {"a": 1}
    assert load_configs("[1, 2]") == {}
    assert load_configs("{broken") == {}
    assert load_configs(None) == {}


async def test_account_service_reads_group_and_capacity(session, seed):
    service = AccountService.with_session(session)

    account = await service.get_account(seed["account"].id)
    group = await service.get_group(account.group_id)

    assert account.name == "alice"
    assert group is not None and group.name == "default"
    assert await service.get_used_capacity(account.id) == 0
    assert await service.get_group(None) is None
    with pytest.raises(AccountNotFoundError):
        await service.get_account("missing")


def test_nested_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("STORAGE__ROOT", "/srv/media")
    monkeypatch.setenv("STORAGE__PUBLIC_BASE_URL", "")
    monkeypatch.setenv("SERVER__PORT", "9000")

    settings = Settings()
    defaults = settings.strategy_defaults()

    assert settings.http_addr == "0.0.0.0:9000"
    assert defaults.root == "/srv/media"
    assert defaults.public_base_url == ""
    assert defaults.default_pattern == "{year}/{month}/{day}/{uuid}"
