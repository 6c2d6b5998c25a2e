import pytest
from certcache_core.storage import LocalPathResolver, StoreLifecycle


@pytest.fixture
def db_dir(tmp_path):
    return tmp_path / "store"


@pytest.fixture
def resolver(db_dir):
    return LocalPathResolver(str(db_dir))


@pytest.fixture
def lifecycle(resolver):
    lc = StoreLifecycle(resolver)
    yield lc
    lc.close()


@pytest.fixture
def store(lifecycle):
    return lifecycle.initialize()
