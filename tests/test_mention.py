"""Unit tests for mention matching."""

from agentbridge import AgentRegistry, default_entry, matches, mentioned_agents


def _registry() -> AgentRegistry:
    return AgentRegistry(
        [
            default_entry("choa", is_primary=True),
            default_entry("sera"),
            default_entry("sori", patterns=["소리", r"re:\bsori\b"]),
        ]
    )


class TestMatches:
    def test_native_script_alias(self):
        assert matches("초아야 밥 먹었어?", default_entry("choa"))

    def test_romanized_alias_any_case(self):
        entry = default_entry("choa")
        assert matches("hey ChoA", entry)
        assert matches("HEY CHOA", entry)

    def test_no_mention(self):
        assert not matches("오늘 날씨 좋다", default_entry("choa"))

    def test_empty_text(self):
        assert not matches("", default_entry("choa"))

    def test_regex_alias(self):
        entry = default_entry("sori", patterns=[r"re:\bsori\b"])
        assert matches("ask sori", entry)
        assert not matches("sorina", entry)

    def test_entry_without_aliases_never_matches(self):
        entry = default_entry("choa", patterns=[])
        assert not matches("choa choa", entry)

    def test_is_pure(self):
        entry = default_entry("sera")
        results = [matches("세라 어디야", entry) for _ in range(3)]
        matches("nothing here", entry)
        assert results == [True, True, True]
        assert matches("세라 어디야", entry)


class TestMentionedAgents:
    def test_none(self):
        assert mentioned_agents("hello world", _registry()) == []

    def test_one(self):
        assert [e.id for e in mentioned_agents("세라 안녕", _registry())] == ["sera"]

    def test_many_in_registry_order(self):
        found = mentioned_agents("sori, 초아, and sera", _registry())
        assert [e.id for e in found] == ["choa", "sera", "sori"]
