"""Tests for the markdown linter."""

from __future__ import annotations

from docforge.postproc.lint import MarkdownLinter


def test_linter_normalises_whitespace_and_headings() -> None:
    raw = "\n\n# Title\r\nIntro  \n\n\n\n## Usage\nText\n\n\n"

    assert MarkdownLinter().lint(raw) == "# Title\nIntro\n\n## Usage\nText\n"


def test_linter_leaves_code_blocks_alone() -> None:
    raw = "# Example\n\n```python\ndef f():\n\n\n    return 1\n```\n"

    assert MarkdownLinter().lint(raw) == raw


def test_linter_closes_unterminated_fence() -> None:
    assert MarkdownLinter().lint("# Doc\n\n```js\nrun();\n") == "# Doc\n\n```js\nrun();\n```\n"


def test_linter_drops_emitted_front_matter() -> None:
    raw = '---\nid: "x"\ntitle: "X"\n---\n# X\n\nBody\n'

    assert MarkdownLinter().lint(raw) == "# X\n\nBody\n"


def test_linter_is_idempotent() -> None:
    linter = MarkdownLinter()
    once = linter.lint("# A\ntext\n#B\n```\ncode")

    assert linter.lint(once) == once


def test_linter_keeps_shorter_fences_inside_longer_ones() -> None:
    raw = "# Doc\n\n````ts\nconst md = `\n```ts\n\n\nrun();\n`;\n````\n\n\nAfter\n"

    assert MarkdownLinter().lint(raw) == (
        "# Doc\n\n````ts\nconst md = `\n```ts\n\n\nrun();\n`;\n````\n\nAfter\n"
    )
