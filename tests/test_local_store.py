"""
Tests for the YAML file store: persistence, migration on load and locked
check-and-write admission.
"""
import threading
import pytest
import sys
import os
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.errors import CapacityReached, DuplicateRegistrant, NotFound, TransportError, ValidationError
from core.migration import SCHEMA_VERSION
from storage.local import EVENTS_KEY, SUBSCRIBERS_KEY, LocalEventStore
from conftest import PNG_DATA_URL


class TestEvents:
    """Tests for event CRUD."""

    def test_create_and_list(self, store, make_event):
        store.create_event(make_event())
        events = store.list_events()
        assert [e.id for e in events] == ['evt_test']
        assert events[0].date == '01/03/26'

    def test_persisted_as_yaml(self, store, make_event):
        store.create_event(make_event())
        with open(os.path.join(store.data_dir, f'{EVENTS_KEY}.yaml'), encoding='utf-8') as f:
            data = yaml.safe_load(f)
        assert data['schema_version'] == SCHEMA_VERSION
        assert data['events'][0]['title'] == 'Cup'
        assert data['events'][0]['registrations'] == []

    def test_duplicate_id_rejected(self, store, make_event):
        store.create_event(make_event())
        with pytest.raises(ValidationError):
            store.create_event(make_event())

    def test_unvalidated_event_not_stored(self, store, make_event):
        event = make_event()
        event.player_cap = 0
        with pytest.raises(ValidationError):
            store.create_event(event)
        assert store.list_events() == []

    def test_update_patch(self, store, make_event):
        created = store.create_event(make_event())
        store.register('evt_test', 'Ana', 'Babić', 'N1')
        updated = store.update_event('evt_test', {'title': ' Winter Cup ', 'playerCap': '64'})
        assert updated.title == 'Winter Cup'
        assert updated.player_cap == 64
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at
        assert len(store.list_registrations('evt_test')) == 1

    def test_update_invalid_patch_keeps_event(self, store, make_event):
        store.create_event(make_event())
        with pytest.raises(ValidationError):
            store.update_event('evt_test', {'date': '31/02/26'})
        assert store.get_event('evt_test').date == '01/03/26'

    def test_update_unknown(self, store):
        with pytest.raises(NotFound):
            store.update_event('missing', {'title': 'x'})

    def test_delete(self, store, make_event):
        store.create_event(make_event())
        store.delete_event('evt_test')
        assert store.list_events() == []
        with pytest.raises(NotFound):
            store.delete_event('evt_test')


class TestRegistrations:
    """Tests for register/unregister through the store."""

    def test_capacity_enforced(self, store, make_event):
        store.create_event(make_event(playerCap='2'))
        store.register('evt_test', 'Ana', 'Babić', 'N1')
        store.register('evt_test', 'Ivo', 'Horvat', 'N2')
        with pytest.raises(CapacityReached):
            store.register('evt_test', 'Eva', 'Kovač', 'N3')
        assert len(store.list_registrations('evt_test')) == 2

    def test_duplicate_enforced(self, store, make_event):
        store.create_event(make_event())
        store.register('evt_test', 'Ana', 'Babić', 'ABC123')
        with pytest.raises(DuplicateRegistrant):
            store.register('evt_test', 'Ana', 'Babić', 'abc 123')
        assert len(store.list_registrations('evt_test')) == 1

    def test_unregister(self, store, make_event):
        store.create_event(make_event())
        store.register('evt_test', 'Ana', 'Babić', 'ABC123')
        assert store.unregister('evt_test', 'abc 123') is True
        assert store.unregister('evt_test', 'abc 123') is False
        assert store.list_registrations('evt_test') == []

    def test_register_unknown_event(self, store):
        with pytest.raises(NotFound):
            store.register('missing', 'Ana', 'Babić', 'N1')

    def test_concurrent_stores_respect_cap(self, tmp_path, make_event):
        data_dir = str(tmp_path / 'shared')
        LocalEventStore(data_dir).create_event(make_event(playerCap='3'))
        outcomes = []

        def attempt(i):
            try:
                LocalEventStore(data_dir).register('evt_test', 'P', str(i), f'N{i}')
                outcomes.append('ok')
            except CapacityReached:
                outcomes.append('full')

        threads = [threading.Thread(target=attempt, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count('ok') == 3
        assert len(LocalEventStore(data_dir).list_registrations('evt_test')) == 3


class TestSubscribers:
    """Tests for the newsletter set."""

    def test_subscribe_dedupes(self, store):
        assert store.subscribe('Ana@Example.com') == 'ok'
        assert store.subscribe('ana@example.com') == 'exists'
        assert store.subscriber_count() == 1
        assert store.list_subscribers() == ['ana@example.com']


class TestLegacyData:
    """Tests for migration on load."""

    def test_legacy_file_migrated_once(self, tmp_path):
        data_dir = tmp_path / 'legacy'
        data_dir.mkdir()
        path = data_dir / f'{EVENTS_KEY}.yaml'
        path.write_text(yaml.dump([{
            'id': 'evt_old', 'title': 'Old Cup', 'date': '01/03/26', 'location': 'Split',
            'price': 5, 'nonRegFee': 8, 'cap': 0, 'swiss': 4, 'topcut': 'Top 4',
            'registrationStartTime': '09:00', 'startTime': '10:00',
            'preRegStartDate': '01/02/26', 'preRegEndDate': '20/02/26',
            'imageDataUrl': PNG_DATA_URL,
            'registrations': [{'id': 'reg_1', 'firstName': 'Ana', 'lastName': 'B', 'neuronId': 'N1'}],
        }]))

        store = LocalEventStore(str(data_dir))
        event = store.get_event('evt_old')
        assert event.prereg_fee == 5
        assert event.swiss_rounds == 4
        assert event.prereg_end_date == '20/02/26'
        assert event.capacity_text() == '1/∞'

        stored = yaml.safe_load(path.read_text())
        assert stored['schema_version'] == SCHEMA_VERSION
        assert 'price' not in stored['events'][0]

        # Cap 0 from old data means unlimited
        store.register('evt_old', 'Ivo', 'Horvat', 'N2')
        assert len(store.list_registrations('evt_old')) == 2

    def test_unreadable_file_is_empty(self, tmp_path):
        data_dir = tmp_path / 'broken'
        data_dir.mkdir()
        (data_dir / f'{EVENTS_KEY}.yaml').write_text('events: [unclosed')
        assert LocalEventStore(str(data_dir)).list_events() == []

    def test_writes_refuse_unreadable_events_file(self, store, make_event):
        store.create_event(make_event('evt_a'))
        store.create_event(make_event('evt_b'))
        path = os.path.join(store.data_dir, f'{EVENTS_KEY}.yaml')
        with open(path, 'a', encoding='utf-8') as f:
            f.write('bad: [unclosed\n')
        with open(path, 'rb') as f:
            before = f.read()

        with pytest.raises(TransportError):
            store.create_event(make_event('evt_c'))
        with pytest.raises(TransportError):
            store.register('evt_a', 'Ana', 'Babić', 'N1')
        with pytest.raises(TransportError):
            store.delete_event('evt_a')

        with open(path, 'rb') as f:
            assert f.read() == before

    def test_scalar_events_file_is_not_overwritten(self, store, make_event):
        path = os.path.join(store.data_dir, f'{EVENTS_KEY}.yaml')
        with open(path, 'w', encoding='utf-8') as f:
            f.write('just some text\n')
        assert store.list_events() == []
        with pytest.raises(TransportError):
            store.create_event(make_event())
        with open(path, encoding='utf-8') as f:
            assert f.read() == 'just some text\n'

    def test_subscribe_refuses_unreadable_file(self, store):
        store.subscribe('a@x.hr')
        path = os.path.join(store.data_dir, f'{SUBSCRIBERS_KEY}.yaml')
        with open(path, 'a', encoding='utf-8') as f:
            f.write('oops: [\n')
        with pytest.raises(TransportError):
            store.subscribe('b@x.hr')
        with open(path, encoding='utf-8') as f:
            assert 'a@x.hr' in f.read()

    def test_non_integer_schema_version(self, tmp_path):
        data_dir = tmp_path / 'odd'
        data_dir.mkdir()
        path = data_dir / f'{EVENTS_KEY}.yaml'
        path.write_text(yaml.dump({
            'schema_version': 'two',
            'events': [{'id': 'evt_1', 'title': 'Cup', 'swiss': 4, 'registrations': []}],
        }))

        events = LocalEventStore(str(data_dir)).list_events()
        assert [e.id for e in events] == ['evt_1']
        assert events[0].swiss_rounds == 4
        assert yaml.safe_load(path.read_text())['schema_version'] == SCHEMA_VERSION
