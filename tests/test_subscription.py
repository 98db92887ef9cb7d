from metadata_acs.errors import SubscribeError
from metadata_acs.models import Topic
from metadata_acs.subscription import SubscriptionManager, SubscriptionState


class RecordingBus:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.subscribed = []
        self.unsubscribed = []

    def subscribe(self, topic_filter, callback):
        if self.fail:
            raise SubscribeError("refused")
        self.subscribed.append(topic_filter)
        return len(self.subscribed)

    def unsubscribe(self, handle):
        self.unsubscribed.append(handle)


def _manager(bus):
    return SubscriptionManager(bus, lambda record: None)


def test_blank_analytic_stays_idle():
    bus = RecordingBus()
    manager = _manager(bus)
    assert manager.set_topic(Topic(" ", " ")) is SubscriptionState.IDLE
    assert bus.subscribed == []


def test_topic_filter_with_category():
    bus = RecordingBus()
    manager = _manager(bus)
    assert manager.set_topic(Topic("FenceGuard", "Camera1Profile1")) is SubscriptionState.SUBSCRIBED
    assert bus.subscribed[0] == [
        ("topic0", "tnsaxis", "CameraApplicationPlatform"),
        ("topic1", "tnsaxis", "FenceGuard"),
        ("topic2", "tnsaxis", "Camera1Profile1"),
    ]
    assert manager.active.topic == Topic("FenceGuard", "Camera1Profile1")


def test_uncategorized_and_empty_bind_topic1_only():
    for category in ("Uncategorized", ""):
        bus = RecordingBus()
        _manager(bus).set_topic(Topic("LicensePlate", category))
        assert [key for key, _, _ in bus.subscribed[0]] == ["topic0", "topic1"]


def test_topic_change_tears_down_first():
    bus = RecordingBus()
    manager = _manager(bus)
    manager.set_topic(Topic("FenceGuard", "Camera1Profile1"))
    manager.set_topic(Topic("FenceGuard", "Camera1Profile2"))
    assert bus.unsubscribed == [1]
    assert manager.active.handle == 2
    assert manager.state is SubscriptionState.SUBSCRIBED


def test_same_topic_does_not_resubscribe():
    bus = RecordingBus()
    manager = _manager(bus)
    manager.set_topic(Topic("FenceGuard", "Camera1Profile1"))
    manager.set_topic(Topic("FenceGuard", "Camera1Profile1"))
    assert bus.unsubscribed == []
    assert len(bus.subscribed) == 1


def test_subscribe_failure_ends_idle():
    bus = RecordingBus()
    manager = _manager(bus)
    manager.set_topic(Topic("FenceGuard"))
    bus.fail = True
    assert manager.set_topic(Topic("LicensePlate")) is SubscriptionState.IDLE
    assert bus.unsubscribed == [1]
    assert manager.active is None


def test_clearing_analytic_unsubscribes():
    bus = RecordingBus()
    manager = _manager(bus)
    manager.set_topic(Topic("FenceGuard"))
    assert manager.set_topic(Topic(" ")) is SubscriptionState.IDLE
    assert bus.unsubscribed == [1]


def test_shutdown_is_terminal():
    bus = RecordingBus()
    manager = _manager(bus)
    manager.set_topic(Topic("FenceGuard"))
    manager.shutdown()
    assert bus.unsubscribed == [1]
    assert manager.state is SubscriptionState.CLOSED
    assert manager.set_topic(Topic("LicensePlate")) is SubscriptionState.CLOSED
    assert len(bus.subscribed) == 1
