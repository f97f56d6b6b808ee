import pytest

from netlify_api import ClientConfig, NetlifyClient, OperationRegistry, RetryPolicy
from stubs import OPENAPI_SPEC, StubTransport


@pytest.fixture
def registry():
    return OperationRegistry.from_openapi(OPENAPI_SPEC)


@pytest.fixture
def transport():
    return StubTransport()


@pytest.fixture
def no_delay_policy():
    return RetryPolicy(max_retry=3, default_delay=0, min_delay=0)


@pytest.fixture
def client(registry, transport, no_delay_policy):
    return NetlifyClient(
        registry,
        config=ClientConfig(),
        transport=transport,
        retry_policy=no_delay_policy,
    )


@pytest.fixture
def make_client(registry, no_delay_policy):
    """Клиент с собственной заглушкой транспорта"""

    def factory(*replies, access_token=None, config=None, retry_policy=None):
        stub = StubTransport(*replies)
        client = NetlifyClient(
            registry,
            access_token=access_token,
            config=config or ClientConfig(),
            transport=stub,
            retry_policy=retry_policy or no_delay_policy,
        )
        return client, stub

    return factory
