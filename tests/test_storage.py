"""Tests for the autosave key/value store and state file helpers."""

import pytest

from copysmith.models import ChatMessage, ContentPreferences
from copysmith.storage import KeyValueStore
from copysmith.utils.file_ops import read_state_file, write_state_file


class TestKeyValueStore:
    def test_missing_key_returns_default(self, kv_store):
        assert kv_store.get("autosave_activeTab") is None
        assert kv_store.get("autosave_activeTab", "content") == "content"

    def test_set_and_get(self, kv_store):
        kv_store.set("autosave_activeTab", "topic")
        assert kv_store.get("autosave_activeTab") == "topic"

    def test_values_survive_new_instance(self, kv_store):
        kv_store.set("autosave_topicIdeas", [{"headline": "H", "description": "D"}])
        reopened = KeyValueStore(kv_store.path)
        assert reopened.get("autosave_topicIdeas") == [{"headline": "H", "description": "D"}]

    def test_delete(self, kv_store):
        kv_store.set("a", 1)
        kv_store.set("b", 2)
        kv_store.delete("a")
        assert kv_store.get("a") is None
        assert kv_store.get("b") == 2

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "ui_state.json"
        path.write_text("{truncated")
        store = KeyValueStore(path)
        assert store.get("anything") is None
        store.set("anything", "ok")
        assert store.get("anything") == "ok"

    def test_non_mapping_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "ui_state.json"
        path.write_text("[1, 2, 3]")
        assert KeyValueStore(path).get("x") is None

    def test_preferences_and_conversation_roundtrip(self, kv_store):
        prefs = ContentPreferences(topic="SaaS pricing", generate_hashtags=True)
        messages = [ChatMessage(role="user", content="brief"),
                    ChatMessage(role="model", content="body", hashtags="#a", word_count=1)]
        kv_store.set("autosave_contentPreferences", prefs.model_dump(mode="json"))
        kv_store.set("autosave_chatHistory", [m.model_dump(mode="json") for m in messages])

        restored_prefs = ContentPreferences.model_validate(kv_store.get("autosave_contentPreferences"))
        restored = [ChatMessage.model_validate(m) for m in kv_store.get("autosave_chatHistory")]
        assert restored_prefs == prefs
        assert restored == messages

    def test_creates_parent_directory(self, tmp_path):
        store = KeyValueStore(tmp_path / "nested" / "state" / "ui_state.json")
        store.set("k", "v")
        assert store.path.exists()


class TestStateFiles:
    def test_missing_file_is_empty(self, tmp_path):
        assert read_state_file(tmp_path / "absent.json") == {}

    def test_write_then_read(self, tmp_path):
        path = tmp_path / "state.json"
        write_state_file(path, {"topic": "Café pricing"})
        assert read_state_file(path) == {"topic": "Café pricing"}
        assert "Café" in path.read_text(encoding="utf-8")

    def test_no_temp_files_left_behind(self, tmp_path):
        write_state_file(tmp_path / "state.json", {"a": 1})
        write_state_file(tmp_path / "state.json", {"a": 2})
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_failed_write_keeps_previous_version(self, tmp_path):
        path = tmp_path / "state.json"
        write_state_file(path, {"a": 1})
        with pytest.raises(TypeError):
            write_state_file(path, {object(): "bad key"})
        assert read_state_file(path) == {"a": 1}
