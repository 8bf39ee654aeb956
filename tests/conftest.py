import pytest

from hunter.resolver import Resolver
from hunter.utils.tables import DEFAULT_COLLECTIONS, DEFAULT_TOKENS


@pytest.fixture
def resolver() -> Resolver:
    return Resolver(tokens=DEFAULT_TOKENS, collections=DEFAULT_COLLECTIONS)
