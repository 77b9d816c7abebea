import json
from datetime import datetime, timedelta

import pytest

from korganizify.calendars import Calendar, event_to_json
from korganizify.client import Client
from korganizify.events import Event
from korganizify.server import SyncServer

MONDAY = datetime(2024, 1, 1, 10, 30)
SUNDAY_AFTERNOON = datetime(2024, 1, 7, 13, 20)
SUNDAY_NIGHT = datetime(2024, 1, 7, 23, 30)


class FakeConnection:
    def __init__(self):
        self.data = b""

    def write(self, data):
        self.data += data

    def messages(self):
        decoder = json.JSONDecoder()
        text = self.data.decode("utf-8").strip()
        found = []
        while text:
            document, end = decoder.raw_decode(text)
            found.append(document)
            text = text[end:].lstrip()
        return found


def join(server, name):
    connection = FakeConnection()
    server.handle(connection, {"title": "new connection", "username": name})
    return connection


@pytest.fixture
def server():
    return SyncServer(clock=lambda: MONDAY)


def request_and_accept(server, alice, bob, requester_events=(), hours="2"):
    server.handle(
        bob,
        {
            "title": "syncRequest",
            "fromUsername": "bob",
            "toUsername": "alice",
            "titleEvent": "Lunch",
            "duration": hours,
            "events": list(requester_events),
        },
    )
    alice.data = b""
    bob.data = b""
    server.handle(
        alice,
        {"title": "acceptSync", "fromUsername": "alice", "toUsername": "bob", "events": []},
    )


def test_first_client_receives_nothing(server):
    alice = join(server, "alice")
    assert alice.messages() == []
    assert list(server.clients) == ["alice"]


def test_new_client_is_announced_and_told_who_is_online(server):
    alice = join(server, "alice")
    bob = join(server, "bob")
    assert alice.data == b'{\n    "title": "new connection",\n    "username": "bob"\n}\n'
    assert bob.messages() == [{"title": "new connection", "username": "alice"}]


def test_handle_accepts_raw_bytes(server):
    connection = FakeConnection()
    server.handle(connection, json.dumps({"title": "new connection", "username": "carol"}).encode())
    assert server.clients["carol"] is connection


def test_handle_ignores_garbage(server):
    alice = join(server, "alice")
    server.handle(alice, b"not json at all")
    assert alice.messages() == []


def test_send_to_unknown_user(server):
    assert server.send_to_client("nobody", {"title": "x"}) is False


def test_send_to_known_user(server):
    alice = join(server, "alice")
    assert server.send_to_client("alice", {"title": "ping"}) is True
    assert alice.messages() == [{"title": "ping"}]


def test_reject_is_forwarded(server):
    alice = join(server, "alice")
    bob = join(server, "bob")
    alice.data = b""
    server.handle(bob, {"title": "rejectSync", "fromUsername": "bob", "toUsername": "alice"})
    assert alice.messages() == [
        {"title": "rejectSync", "fromUsername": "bob", "toUsername": "alice"}
    ]


def test_sync_request_is_forwarded(server):
    alice = join(server, "alice")
    bob = join(server, "bob")
    alice.data = b""
    entry = {"title": "Gym", "startTime": "2024-01-02T09:00:00", "endTime": "2024-01-02T10:00:00",
             "description": "", "location": ""}
    server.handle(
        bob,
        {"title": "syncRequest", "fromUsername": "bob", "toUsername": "alice",
         "titleEvent": "Lunch", "duration": "2", "events": [entry]},
    )
    [message] = alice.messages()
    assert message["title"] == "syncRequest"
    assert message["fromUsername"] == "bob"
    assert message["titleEvent"] == "Lunch"
    assert message["duration"] == "2"
    assert message["events"] == [entry]
    assert len(server.calendars["bob"]) == 1


def test_accept_sends_first_proposal_to_both(server):
    alice = join(server, "alice")
    bob = join(server, "bob")
    request_and_accept(server, alice, bob)
    first = server.current_sync_events[0]
    assert first.end_time - first.start_time == timedelta(hours=2)
    assert first.title == "Lunch"
    for connection in (alice, bob):
        [message] = connection.messages()
        assert message["title"] == "new sync event"
        assert message["from"] == "bob"
        assert message["eventTitle"] == "Lunch"
    assert alice.messages()[0]["startTime"] == "Mon Jan 1 08:00:00 2024"


def test_agreement_after_two_yes(server):
    alice = join(server, "alice")
    bob = join(server, "bob")
    request_and_accept(server, alice, bob)
    alice.data = b""
    bob.data = b""
    server.handle(alice, {"title": "eventResponse", "answer": "yes"})
    assert bob.messages() == []
    server.handle(bob, {"title": "eventResponse", "answer": "yes"})
    [message] = bob.messages()
    assert message["title"] == "agreed sync"

    received = []
    client = Client("bob")
    client.on_sync_success = lambda start, end, title: received.append((start, end, title))
    client.handle_message(message)
    first = server.current_sync_events[0]
    assert received == [(first.start_time, first.end_time, "Lunch")]


def test_refusal_moves_to_next_slot(server):
    alice = join(server, "alice")
    bob = join(server, "bob")
    request_and_accept(server, alice, bob)
    alice.data = b""
    server.handle(alice, {"title": "eventResponse", "answer": "no"})
    server.handle(bob, {"title": "eventResponse", "answer": "yes"})
    [message] = alice.messages()
    assert message["title"] == "new sync event"

    received = []
    client = Client("alice")
    client.on_new_sync_event = lambda title, start: received.append(start)
    client.handle_message(message)
    from korganizify.client import _parse_date_text  # noqa: F401  (round trip below uses public path)

    agreed = []
    client.on_sync_success = lambda start, end, title: agreed.append(start)
    client.handle_message({"title": "agreed sync", "startTime": received[0], "endTime": ""})
    assert agreed == [server.current_sync_events[1].start_time]


def test_no_more_events_when_no_time_is_free():
    server = SyncServer(clock=lambda: SUNDAY_NIGHT)
    alice = join(server, "alice")
    bob = join(server, "bob")
    request_and_accept(server, alice, bob)
    assert server.current_sync_events == []
    for connection in (alice, bob):
        assert connection.messages() == [{"title": "no more events", "from": "bob"}]


def test_requester_events_block_slots(server):
    alice = join(server, "alice")
    bob = join(server, "bob")
    busy = Event(title="Busy", start_time=datetime(2024, 1, 1, 8, 0),
                 end_time=datetime(2024, 1, 1, 12, 0))
    request_and_accept(server, alice, bob, [event_to_json(busy)], hours="1")
    assert server.current_sync_events[0].start_time == datetime(2024, 1, 1, 12, 0)
    assert not any(slot.overlaps_with(busy) for slot in server.current_sync_events)


def test_disconnect_notifies_the_others(server):
    alice = join(server, "alice")
    bob = join(server, "bob")
    alice.data = b""
    server.disconnect(bob)
    assert alice.messages() == [{"title": "disconnected", "username": "bob"}]
    assert server.send_to_client("bob", {"title": "x"}) is False
    assert list(server.clients) == ["alice"]


def test_free_time_invariants(server):
    slots = server.find_free_time(Calendar(), Calendar(), 1, now=MONDAY)
    assert slots
    last_day = MONDAY.date() + timedelta(days=6)
    for slot in slots:
        assert MONDAY.date() <= slot.start_time.date() <= last_day
        assert slot.end_time - slot.start_time == timedelta(hours=1)
        assert slot.start_time.hour >= 8
        assert slot.start_time.minute == 0
    starts = [slot.start_time for slot in slots]
    assert starts == sorted(starts)
    assert len(set(starts)) == len(starts)


def test_free_time_starts_after_now_on_the_last_day(server):
    slots = server.find_free_time(Calendar(), Calendar(), 1, now=SUNDAY_AFTERNOON)
    assert slots
    assert all(slot.start_time.date() == SUNDAY_AFTERNOON.date() for slot in slots)
    assert all(slot.start_time >= SUNDAY_AFTERNOON for slot in slots)


def test_no_free_time_late_on_sunday(server):
    assert server.find_free_time(Calendar(), Calendar(), 1, now=SUNDAY_NIGHT) == []


def test_free_time_skips_events_of_both_calendars(server):
    first, second = Calendar(), Calendar()
    morning = Event(title="A", start_time=datetime(2024, 1, 1, 9, 0),
                    end_time=datetime(2024, 1, 1, 10, 0))
    evening = Event(title="B", start_time=datetime(2024, 1, 2, 18, 0),
                    end_time=datetime(2024, 1, 2, 20, 0))
    first.add_event(morning)
    second.add_event(evening)
    slots = server.find_free_time(first, second, 1, now=MONDAY)
    starts = {slot.start_time for slot in slots}
    assert datetime(2024, 1, 1, 9, 0) not in starts
    assert datetime(2024, 1, 1, 10, 0) in starts
    assert datetime(2024, 1, 2, 18, 0) not in starts
    assert not any(slot.overlaps_with(morning) or slot.overlaps_with(evening) for slot in slots)


def test_longer_slots_fit_fewer_per_day(server):
    short = server.find_free_time(Calendar(), Calendar(), 1, now=MONDAY)
    long = server.find_free_time(Calendar(), Calendar(), 3, now=MONDAY)
    assert len(long) < len(short)
    assert all(slot.end_time - slot.start_time == timedelta(hours=3) for slot in long)