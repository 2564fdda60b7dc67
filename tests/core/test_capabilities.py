import pytest
from ideaboard.core.capabilities import Capabilities


def test_everything_enabled_by_default():
    caps = Capabilities.resolve()
    assert caps == Capabilities(True, True, True, True)


def test_sparse_mapping_defaults_missing_flags():
    caps = Capabilities.resolve({"resize": False, "delete": False})
    assert caps.edit
    assert caps.move
    assert not caps.resize
    assert not caps.delete


def test_unknown_capability_raises():
    with pytest.raises(ValueError):
        Capabilities.resolve({"rotate": True})


def test_playback_without_user_edit_disables_edit():
    caps = Capabilities.resolve(None, authoring=False, user_can_edit=False)
    assert not caps.edit
    assert caps.move


def test_playback_with_user_edit_keeps_edit():
    caps = Capabilities.resolve(None, authoring=False, user_can_edit=True)
    assert caps.edit


def test_authoring_ignores_user_edit_flag():
    caps = Capabilities.resolve(None, authoring=True, user_can_edit=False)
    assert caps.edit


def test_resolving_an_instance_applies_host_mode():
    requested = Capabilities(edit=True, move=False)
    caps = Capabilities.resolve(requested, False, False)
    assert caps == Capabilities(edit=False, move=False)


def test_capabilities_are_immutable():
    caps = Capabilities()
    with pytest.raises(AttributeError):
        caps.edit = False
