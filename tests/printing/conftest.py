import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from printing.dispatcher import reset_dispatcher


@pytest.fixture(scope="session")
def printing_bed():
    from printing.domain import printing

    bed = DomainFixture(printing)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(printing_bed):
    with printing_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()

        for _, broker in current_domain.brokers.items():
            broker._data_reset()

        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _dispatcher(monkeypatch):
    """Start every test with the simulated dispatcher."""
    monkeypatch.setenv("PRINT_DISPATCHER", "simulated")
    reset_dispatcher()
    yield
    reset_dispatcher()


@pytest.fixture()
def gateway(monkeypatch):
    """Switch to the gateway dispatcher and record what it publishes."""
    from printing.dispatcher import get_dispatcher

    monkeypatch.setenv("PRINT_DISPATCHER", "gateway")
    reset_dispatcher()

    published = []
    broker = current_domain.brokers["default"]
    monkeypatch.setattr(broker, "publish", lambda stream, message: published.append((stream, message)))

    dispatcher = get_dispatcher()
    dispatcher.published = published
    return dispatcher
