import os
import pytest  # noqa: F401


def pytest_configure(config):
    """
    Keep the user's configuration file out of the test run. This hook is
    called early in the pytest process, before any canvas is created.
    """
    os.environ["IDEABOARD_NO_CONFIG"] = "1"
