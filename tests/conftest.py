import pytest

from ens_sdk.core.registry import Registry
from ens_sdk.core.resolver import ResolverManager
from ens_sdk.core.reverse import ReverseRegistrar

from fakes import ADMIN, REGISTRY, FakeChain, FakeWeb3Client, deploy_ens


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def contracts(chain):
    return deploy_ens(chain)


@pytest.fixture
def client(chain, contracts):
    return FakeWeb3Client(chain, address=ADMIN)


@pytest.fixture
def registry(client):
    return Registry(client, REGISTRY)


@pytest.fixture
def resolvers(client, registry):
    return ResolverManager(client, registry)


@pytest.fixture
def reverse(client, registry):
    return ReverseRegistrar(client, registry)
