import pytest

from app import build_core
from contracts import AccountContext
from helpers import make_context


@pytest.fixture
def core():
    return build_core({"TRAIL_STORE_TYPE": "memory"})


@pytest.fixture
def walker() -> AccountContext:
    return make_context()
