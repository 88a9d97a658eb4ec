"""
Unit tests for the YAML data store.
"""
import pytest
import sys
import os
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from atsume.exceptions import StoreError
from atsume.store import YamlStore


class TestRecords:
    """Tests for insert/select/get/update/delete."""

    def test_insert_assigns_ids(self, store):
        rows = store.insert('teams', [{'event_id': 'e1', 'name': 'Team A'}])
        assert rows[0]['id']
        assert rows[0]['created_at']
        assert store.get('teams', rows[0]['id'])['name'] == 'Team A'

    def test_insert_keeps_given_id(self, store):
        store.insert('teams', [{'id': 'x', 'event_id': 'e1'}])
        assert store.get('teams', 'x') is not None

    def test_duplicate_id_rejected(self, store):
        store.insert('teams', [{'id': 'x'}])
        with pytest.raises(StoreError):
            store.insert('teams', [{'id': 'x'}])

    def test_select_filters(self, store):
        store.insert('teams', [
            {'id': 'a', 'event_id': 'e1', 'order': 2},
            {'id': 'b', 'event_id': 'e1', 'order': 1},
            {'id': 'c', 'event_id': 'e2', 'order': 0},
        ])
        assert [r['id'] for r in store.select('teams', event_id='e1')] == ['a', 'b']
        assert [r['id'] for r in store.select('teams', order_by=['order'], event_id='e1')] == ['b', 'a']
        assert [r['id'] for r in store.select('teams', id=['a', 'c'])] == ['a', 'c']

    def test_select_returns_copies(self, store):
        store.insert('teams', [{'id': 'a', 'name': 'A'}])
        store.select('teams')[0]['name'] = 'changed'
        assert store.get('teams', 'a')['name'] == 'A'

    def test_order_by_puts_none_last(self, store):
        store.insert('matches', [{'id': 'a', 'court': None}, {'id': 'b', 'court': 2}])
        assert [r['id'] for r in store.select('matches', order_by=['court'])] == ['b', 'a']

    def test_update(self, store):
        store.insert('matches', [{'id': 'm', 'court': 1}])
        row = store.update('matches', 'm', {'court': 3})
        assert row['court'] == 3
        assert 'updated_at' in row
        assert store.update('matches', 'missing', {'court': 3}) is None

    def test_delete(self, store):
        store.insert('standings', [{'tournament_id': 't1'}, {'tournament_id': 't1'}, {'tournament_id': 't2'}])
        assert store.delete('standings', tournament_id='t1') == 2
        assert len(store.select('standings')) == 1

    def test_delete_requires_filter(self, store):
        with pytest.raises(ValueError):
            store.delete('standings')

    def test_unknown_collection(self, store):
        with pytest.raises(StoreError):
            store.select('players')


class TestPersistence:
    """Tests for the on-disk format."""

    def test_rows_written_as_yaml_list(self, store):
        store.insert('teams', [{'id': 'a', 'name': 'Team A'}])
        with open(os.path.join(store.data_dir, 'teams.yaml'), encoding='utf-8') as f:
            data = yaml.safe_load(f)
        assert data[0]['name'] == 'Team A'

    def test_new_store_reads_existing_files(self, store):
        store.insert('teams', [{'id': 'a'}])
        assert YamlStore(store.data_dir).get('teams', 'a') is not None

    def test_corrupt_file(self, store):
        with open(os.path.join(store.data_dir, 'teams.yaml'), 'w', encoding='utf-8') as f:
            f.write("key: [unclosed")
        with pytest.raises(StoreError):
            store.select('teams')

    def test_non_list_file(self, store):
        with open(os.path.join(store.data_dir, 'teams.yaml'), 'w', encoding='utf-8') as f:
            f.write("name: not a list\n")
        with pytest.raises(StoreError):
            store.select('teams')


class TestTransactions:
    """Tests for transaction commit and rollback."""

    def test_commit_on_success(self, store):
        with store.transaction():
            store.insert('teams', [{'id': 'a'}])
            store.insert('team_members', [{'team_id': 'a', 'participant_id': 'p'}])
            assert store.in_transaction
        assert not store.in_transaction
        assert YamlStore(store.data_dir).get('teams', 'a') is not None

    def test_nothing_written_before_outermost_exit(self, store):
        with store.transaction():
            store.insert('teams', [{'id': 'a'}])
            assert not os.path.exists(os.path.join(store.data_dir, 'teams.yaml'))

    def test_rollback_on_error(self, store):
        store.insert('teams', [{'id': 'keep'}])
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.delete('teams', id='keep')
                store.insert('team_members', [{'team_id': 'keep'}])
                raise RuntimeError("boom")
        assert store.get('teams', 'keep') is not None
        assert store.select('team_members') == []

    def test_nested_transactions_commit_once(self, store):
        with store.transaction():
            with store.transaction():
                store.insert('teams', [{'id': 'a'}])
            assert not os.path.exists(os.path.join(store.data_dir, 'teams.yaml'))
        assert store.get('teams', 'a') is not None

    def test_event_locks_are_independent(self, store):
        with store.event_lock('e1'):
            with store.event_lock('e2'):
                store.insert('tournaments', [{'id': 't', 'event_id': 'e1'}])
        assert store.get('tournaments', 't') is not None

    def test_same_event_lock_times_out(self, store):
        """A second store on the same directory cannot take an event lock that is held."""
        other = YamlStore(store.data_dir, lock_timeout=0.1)
        with store.event_lock('e1'):
            with pytest.raises(StoreError):
                with other.event_lock('e1'):
                    pass
        with other.event_lock('e1'):
            pass
