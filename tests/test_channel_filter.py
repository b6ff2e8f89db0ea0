import pytest

from guildwarden.moderation.channel_filter import is_included


def test_no_lists_uses_default():
    assert is_included("general", [], [], True) is True
    assert is_included("general", [], [], False) is False
    assert is_included("general", None, None) is True


def test_excluded_channel_is_not_included():
    assert is_included("general", [], ["general"], True) is False


def test_allow_list_restricts_to_listed_channels():
    assert is_included("general", ["bots"], [], True) is False
    assert is_included("bots", ["bots"], [], True) is True


def test_allow_list_overrides_default_false():
    assert is_included("bots", {"bots"}, set(), False) is True


@pytest.mark.parametrize("default", [True, False])
def test_exclusion_wins_over_allow_list(default):
    assert is_included("general", ["general"], ["general"], default) is False
