from spendwise_bot.names import full_name, resolve_user_name


def test_configured_name_wins(config):
    assert resolve_user_name(config, 1001, {"username": "asha_k"}) == "Asha"


def test_falls_back_to_username(config):
    assert resolve_user_name(config, 2002, {"username": "ravi", "first_name": "Ravi"}) == "ravi"


def test_falls_back_to_full_name(config):
    sender = {"first_name": "Ravi", "last_name": "Kumar"}
    assert resolve_user_name(config, 2002, sender) == "Ravi Kumar"


def test_first_name_only(config):
    assert resolve_user_name(config, 2002, {"first_name": "Ravi"}) == "Ravi"


def test_placeholder_when_nothing_known(config):
    assert resolve_user_name(config, 2002, None) == "User_2002"


def test_custom_strategy_order(config):
    sender = {"username": "ravi", "first_name": "Ravi", "last_name": "K"}
    assert resolve_user_name(config, 1001, sender, strategies=(full_name,)) == "Ravi K"


def test_no_strategy_matches(config):
    assert resolve_user_name(config, 2002, {}, strategies=(full_name,)) is None
