import pytest

from ck.types.environment import Environment
from ck.builtin.env_builtin import register
from ck.interpreter import Interpreter


@pytest.fixture
def env():
    """Fresh environment with builtins loaded."""
    e = Environment()
    register(e)
    return e


@pytest.fixture
def itp():
    """Fresh interpreter using the process stdin/stdout."""
    return Interpreter()
