"""Markdown to HTML for question text and chat turns.

Questions are authored by course staff. Chat turns are either typed by a
student or written by the completion model, which uses single newlines as line
breaks, so turns are parsed with ``breaks`` enabled. Raw HTML is never passed
through, and links open outside the study page.
"""

from __future__ import annotations

from markdown_it import MarkdownIt

from coursemate.core.models import ChatTurn

EMPTY_CONTENT_HTML = "<p><em>No content provided.</em></p>"


def _render_external_link(self, tokens, idx, options, env):
    tokens[idx].attrSet("target", "_blank")
    tokens[idx].attrSet("rel", "noopener noreferrer")
    return self.renderToken(tokens, idx, options, env)


def _build_parser(*, breaks: bool) -> MarkdownIt:
    parser = MarkdownIt("commonmark", {"html": False, "breaks": breaks}).enable(["table", "strikethrough"])
    parser.add_render_rule("link_open", _render_external_link)
    return parser


class MarkdownRenderer:
    """Holds one parser per kind of text the API renders."""

    def __init__(self) -> None:
        self._question_parser = _build_parser(breaks=False)
        self._chat_parser = _build_parser(breaks=True)

    def render_question(self, text: str) -> str:
        return self._render(self._question_parser, text)

    def render_chat_turn(self, turn: ChatTurn) -> str:
        return self._render(self._chat_parser, turn.content)

    @staticmethod
    def _render(parser: MarkdownIt, text: str) -> str:
        text = text.strip()
        if not text:
            return EMPTY_CONTENT_HTML
        return parser.render(text)


# Parsers are only read after construction, so request threads share them.
renderer = MarkdownRenderer()
