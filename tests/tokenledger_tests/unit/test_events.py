"""
Tests for TransferEvent encoding and EventHub delivery.
"""

import logging

import pytest

from tokenledger.core.events import EventHub, TransferEvent
from tokenledger.core.ledger_exceptions import DecodeError
from tokenledger.core.transaction_context import ChaincodeEvent


def _event(name="transferEvent", payload=b"{}"):
    return ChaincodeEvent(tx_id="tx-1", event_name=name, payload=payload)


class TestTransferEvent:
    def test_payload_layout(self):
        payload = TransferEvent("alice", "bob", 300).to_payload()
        assert payload == b'{"sender":"alice","recipient":"bob","amount":300}'

    def test_decode(self):
        payload = b'{"sender":"alice","recipient":"bob","amount":300}'
        assert TransferEvent.from_payload(payload) == TransferEvent("alice", "bob", 300)

    def test_event_name(self):
        assert TransferEvent.EVENT_NAME == "transferEvent"

    @pytest.mark.parametrize(
        "payload",
        [
            b"nope",
            b'{"sender":"alice","recipient":"bob"}',
            b'{"sender":"alice","recipient":"bob","amount":"300"}',
            b'{"sender":"alice","recipient":"bob","amount":true}',
            b"[]",
        ],
    )
    def test_malformed_payloads(self, payload):
        with pytest.raises(DecodeError):
            TransferEvent.from_payload(payload)


class TestEventHub:
    def test_delivers_to_matching_listeners(self, event_hub):
        received = []
        event_hub.subscribe("transferEvent", received.append)
        event_hub.subscribe("otherEvent", received.append)
        assert event_hub.publish(_event()) == 1
        assert [event.event_name for event in received] == ["transferEvent"]

    def test_wildcard_receives_everything(self, event_hub):
        received = []
        event_hub.subscribe(EventHub.WILDCARD, received.append)
        event_hub.publish(_event("a"))
        event_hub.publish(_event("b"))
        assert [event.event_name for event in received] == ["a", "b"]

    def test_unsubscribe(self, event_hub):
        received = []
        handle = event_hub.subscribe("transferEvent", received.append)
        assert event_hub.unsubscribe(handle)
        assert not event_hub.unsubscribe(handle)
        assert event_hub.publish(_event()) == 0
        assert received == []

    def test_failing_listener_is_isolated(self, event_hub, caplog):
        received = []

        def broken(event):
            raise RuntimeError("subscriber down")

        event_hub.subscribe("transferEvent", broken)
        event_hub.subscribe("transferEvent", received.append)

        with caplog.at_level(logging.WARNING, logger="tokenledger.core.events"):
            assert event_hub.publish(_event()) == 1

        assert len(received) == 1
        assert any(getattr(r, "event", None) == "events.listener_failed" for r in caplog.records)

    def test_empty_event_name_rejected(self, event_hub):
        with pytest.raises(ValueError):
            event_hub.subscribe("", lambda event: None)

    def test_listener_count(self, event_hub):
        event_hub.subscribe("transferEvent", lambda event: None)
        event_hub.subscribe("transferEvent", lambda event: None)
        event_hub.subscribe("*", lambda event: None)
        assert event_hub.listener_count() == 3
        assert event_hub.listener_count("transferEvent") == 2
