"""Tests for forge_cli.completion.

Covers:
- Subcommand, flag, value, and blank contexts
- Replacement spans
- The prefix law over many partial lines
- Deduplication and the no-grammar case
- The prompt_toolkit adapter
"""

from __future__ import annotations

import pytest
from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document

from forge_cli.completion import GrammarCompleter, Suggestion, complete
from forge_cli.models import CommandNode, FlagSpec


def _values(suggestions: list[Suggestion]) -> list[str]:
    return [s.value for s in suggestions]


def _complete_end(root, line: str) -> list[Suggestion]:
    return complete(root, line, len(line))


class TestSubcommandContext:
    def test_prefix_selects_matching_commands(self, product_root) -> None:
        suggestions = complete(product_root, "v1.a", 4)
        assert _values(suggestions) == ["v1.add.post"]
        assert "v1.hello.get" not in _values(suggestions)

    def test_description_is_help(self, product_root) -> None:
        (suggestion,) = _complete_end(product_root, "v1.add")
        assert suggestion.description == "Add two numbers"

    def test_span_covers_current_word(self, product_root) -> None:
        (suggestion,) = complete(product_root, "v1.a", 4)
        assert (suggestion.span_start, suggestion.span_end) == (0, 4)

    def test_several_matches_in_grammar_order(self, product_root) -> None:
        assert _values(_complete_end(product_root, "v1.products.")) == [
            "v1.products.id.get",
            "v1.products.id.delete",
            "v1.products.get",
        ]

    def test_empty_line_lists_all_commands(self, product_root) -> None:
        assert len(complete(product_root, "", 0)) == len(product_root.children)

    def test_no_match(self, product_root) -> None:
        assert _complete_end(product_root, "zzz") == []

    def test_cursor_truncates_line(self, product_root) -> None:
        # Everything after the cursor is ignored.
        assert _values(complete(product_root, "v1.h --id 1", 4)) == ["v1.hello.get"]


class TestFlagContext:
    def test_long_flags(self, product_root) -> None:
        suggestions = _complete_end(product_root, "v1.products.get --")
        assert _values(suggestions) == ["--status", "--limit"]
        assert suggestions[0].description == "Filter by status"

    def test_flag_prefix(self, product_root) -> None:
        assert _values(_complete_end(product_root, "v1.products.get --st")) == ["--status"]

    def test_span_for_flag(self, product_root) -> None:
        line = "v1.products.get --li"
        (suggestion,) = _complete_end(product_root, line)
        assert suggestion.span_start == len("v1.products.get ")
        assert suggestion.span_end == len(line)

    def test_short_dash_prefers_long_form(self, product_root) -> None:
        assert _values(_complete_end(product_root, "v1.add.post -")) == ["--body"]

    def test_short_form_when_long_does_not_match(self, product_root) -> None:
        assert _values(_complete_end(product_root, "v1.add.post -b")) == ["-b"]

    def test_flags_without_command(self, product_root) -> None:
        assert _complete_end(product_root, "--") == []

    def test_value_flags_may_repeat(self, product_root) -> None:
        assert "--limit" in _values(_complete_end(product_root, "v1.products.get --limit 1 --"))

    def test_seen_no_value_flag_excluded(self) -> None:
        root = CommandNode(
            name="root",
            children=[
                CommandNode(
                    name="x.get",
                    flags=[
                        FlagSpec(name="all", takes_value=False),
                        FlagSpec(name="limit"),
                    ],
                )
            ],
        )
        assert _values(_complete_end(root, "x.get --all --")) == ["--limit"]


class TestValueContext:
    def test_enum_values(self, product_root) -> None:
        assert _values(_complete_end(product_root, "v1.products.get --status ")) == [
            "active",
            "archived",
        ]

    def test_enum_prefix(self, product_root) -> None:
        suggestions = _complete_end(product_root, "v1.products.get --status ar")
        assert _values(suggestions) == ["archived"]
        assert suggestions[0].span_start == len("v1.products.get --status ")

    def test_free_text_value_gives_nothing(self, product_root) -> None:
        # No enum: must not fall through to flags or commands.
        assert _complete_end(product_root, "v1.products.get --limit ") == []
        assert _complete_end(product_root, "v1.products.get --limit v1") == []

    def test_boolean_property_values(self, product_root) -> None:
        assert _values(_complete_end(product_root, "v1.search.get --in_stock t")) == ["true"]

    def test_consumed_value_is_not_a_command(self, product_root) -> None:
        # 'active' is the value of --status, so the next blank offers flags.
        values = _values(_complete_end(product_root, "v1.products.get --status active "))
        assert values == ["--status", "--limit"]

    def test_inline_value_does_not_wait(self, product_root) -> None:
        values = _values(_complete_end(product_root, "v1.products.get --status=active "))
        assert values == ["--status", "--limit"]


class TestBlankContext:
    def test_flags_of_active_command(self, product_root) -> None:
        assert _values(_complete_end(product_root, "v1.search.get ")) == ["--q", "--in_stock"]

    def test_span_is_empty_at_cursor(self, product_root) -> None:
        line = "v1.search.get "
        for suggestion in _complete_end(product_root, line):
            assert suggestion.span_start == suggestion.span_end == len(line)

    def test_unknown_command_falls_back_to_root(self, product_root) -> None:
        assert len(_complete_end(product_root, "bogus ")) == len(product_root.children)

    def test_only_first_word_selects_command(self, product_root) -> None:
        line = "bogus v1.add.post "
        assert len(_complete_end(product_root, line)) == len(product_root.children)
        assert "--body" not in _values(_complete_end(product_root, line))
        assert _complete_end(product_root, "bogus v1.add.post -") == []

    def test_whitespace_only(self, product_root) -> None:
        assert len(_complete_end(product_root, "   ")) == len(product_root.children)


class TestGuarantees:
    def test_no_grammar(self) -> None:
        assert complete(None, "v1.a", 4) == []

    def test_cursor_out_of_range(self, product_root) -> None:
        assert _values(complete(product_root, "v1.a", 99)) == ["v1.add.post"]
        assert len(complete(product_root, "v1.a", -3)) == len(product_root.children)

    def test_unbalanced_quote_does_not_raise(self, product_root) -> None:
        assert isinstance(_complete_end(product_root, "v1.add.post --body '{\"a"), list)

    def test_deduplicates_by_value(self) -> None:
        root = CommandNode(
            name="root",
            children=[
                CommandNode(
                    name="x.get",
                    flags=[FlagSpec(name="mode", choices=["a", "a", "b"])],
                )
            ],
        )
        assert _values(_complete_end(root, "x.get --mode ")) == ["a", "b"]

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "v",
            "v1.",
            "v1.products.id.get",
            "v1.products.id.get ",
            "v1.products.id.get --",
            "v1.products.id.get --i",
            "v1.products.get --status a",
            "v1.products.get --status archived --l",
            "v1.search.get -",
            "v1.search.get --in_stock f",
            "v1.add.post -b",
        ],
    )
    def test_prefix_law(self, product_root, line: str) -> None:
        for cursor in range(len(line) + 1):
            for suggestion in complete(product_root, line, cursor):
                word = line[suggestion.span_start : suggestion.span_end]
                assert suggestion.value.startswith(word)


class TestGrammarCompleter:
    def test_yields_prompt_toolkit_completions(self, product_root) -> None:
        completer = GrammarCompleter(product_root)
        document = Document("v1.products.get --st", cursor_position=20)
        completions = list(completer.get_completions(document, CompleteEvent()))
        assert [c.text for c in completions] == ["--status"]
        assert completions[0].start_position == -4
        assert completions[0].display_meta_text == "Filter by status"

    def test_accepts_root_factory(self, product_root) -> None:
        completer = GrammarCompleter(lambda: product_root)
        document = Document("v1.a", cursor_position=4)
        assert [c.text for c in completer.get_completions(document, CompleteEvent())] == [
            "v1.add.post"
        ]

    def test_no_grammar(self) -> None:
        completer = GrammarCompleter(None)
        document = Document("v1", cursor_position=2)
        assert list(completer.get_completions(document, CompleteEvent())) == []
