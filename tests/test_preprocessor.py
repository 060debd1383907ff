"""Tests for the preprocessor module."""

import pytest

# Path is setup in conftest.py

from preprocessor.line_classifier import (
    LineKind,
    classify_line,
    is_short_form_file,
    is_stave_options_line,
    is_vextab_document,
    leading_whitespace,
)
from preprocessor.rewriter import (
    CursorLocation,
    preprocess_source,
    should_open_stave_for_blank_line,
    split_source_lines,
)


class TestLineClassifier:
    """Tests for line classification."""

    @pytest.mark.parametrize(
        "line,kind",
        [
            ("", LineKind.BLANK),
            ("   \t", LineKind.BLANK),
            ("// a comment", LineKind.COMMENT),
            ("  # another comment", LineKind.COMMENT),
            ("title My Title", LineKind.DOCUMENT_HEADER),
            ("subtitle My Subtitle", LineKind.DOCUMENT_HEADER),
            ("  sidenote Left note", LineKind.DOCUMENT_HEADER),
            ("options space=20", LineKind.GLOBAL_OPTIONS),
            ("tabstave", LineKind.STAVE_OPEN),
            ("tabstave notation=true", LineKind.STAVE_OPEN),
            ("notation=true tablature=true time=12/8", LineKind.STAVE_OPTIONS),
            ("key = C", LineKind.STAVE_OPTIONS),
            ("tuning=E/5,C/5", LineKind.CONTENT),
            ("notes :8 5/6", LineKind.CONTENT),
            ("text :w, Hello", LineKind.CONTENT),
        ],
    )
    def test_classify_line(self, line, kind):
        """Test each line kind is recognized."""
        assert classify_line(line) == kind

    def test_keywords_need_word_boundary(self):
        """Test that keyword prefixes of longer words are ordinary content."""
        assert classify_line("titles are nice") == LineKind.CONTENT
        assert classify_line("tabstaves") == LineKind.CONTENT
        assert classify_line("optionsfoo") == LineKind.CONTENT

    def test_keyword_boundary_is_ascii(self):
        """Test a non-ASCII letter after a keyword still ends the keyword."""
        assert classify_line("titleé x") == LineKind.DOCUMENT_HEADER
        assert classify_line("optionsü") == LineKind.GLOBAL_OPTIONS
        assert classify_line("tabstaveß") == LineKind.STAVE_OPEN

    def test_byte_order_mark_is_whitespace(self):
        """Test a leading byte order mark does not hide the line kind."""
        assert classify_line("\ufefftitle Blackbird") == LineKind.DOCUMENT_HEADER
        assert classify_line("\ufeff") == LineKind.BLANK
        assert leading_whitespace("\ufeff  notes") == "\ufeff  "

    def test_comment_wins_over_keywords(self):
        """Test that comments are checked before directives."""
        assert classify_line("# title not really") == LineKind.COMMENT
        assert classify_line("//notation=true") == LineKind.COMMENT

    def test_tuning_is_not_stave_options(self):
        """Test that tuning= is never treated as a stave option sequence."""
        assert not is_stave_options_line("tuning=E/5,C/5")
        assert is_stave_options_line("notation=true tuning=standard")

    def test_key_must_start_with_letter(self):
        """Test key-value detection requires an identifier key."""
        assert not is_stave_options_line("5=6")
        assert not is_stave_options_line("=true")
        assert is_stave_options_line("clef-type=treble")

    def test_leading_whitespace(self):
        """Test leading whitespace extraction."""
        assert leading_whitespace("  \tnotes") == "  \t"
        assert leading_whitespace("notes") == ""


class TestFileRecognition:
    """Tests for short-form and VexTab file detection."""

    def test_short_form_extension(self):
        """Test .tab files are short-form, case-insensitively."""
        assert is_short_form_file("song.tab")
        assert is_short_form_file("/music/SONG.TAB")
        assert not is_short_form_file("song.vt")
        assert not is_short_form_file("song.tab.bak")

    def test_short_form_without_name(self):
        """Test unsaved buffers are never short-form."""
        assert not is_short_form_file(None)
        assert not is_short_form_file("")

    def test_custom_short_form_extensions(self):
        """Test the short-form extension list can be overridden."""
        assert is_short_form_file("riff.stab", extensions=(".stab",))
        assert not is_short_form_file("riff.tab", extensions=(".stab",))

    def test_vextab_documents(self):
        """Test recognized VexTab document extensions."""
        assert is_vextab_document("song.vt")
        assert is_vextab_document("song.VexTab")
        assert is_vextab_document("song.tab")
        assert not is_vextab_document("song.txt")
        assert not is_vextab_document(None)


class TestSplitSourceLines:
    """Tests for source line splitting."""

    def test_crlf_and_lf(self):
        """Test both line ending styles are split."""
        assert split_source_lines("a\r\nb\nc") == ["a", "b", "c"]

    def test_trailing_newline_gives_empty_line(self):
        """Test a trailing line ending produces a final empty line."""
        assert split_source_lines("a\n") == ["a", ""]

    def test_empty_text(self):
        """Test empty text is a single empty line."""
        assert split_source_lines("") == [""]

    def test_lone_carriage_return_is_content(self):
        """Test a bare carriage return does not split lines."""
        assert split_source_lines("a\rb") == ["a\rb"]


class TestBlankLineLookahead:
    """Tests for the blank line stave-opening decision."""

    def test_content_ahead_opens(self):
        """Test a blank line before content opens a stave."""
        assert should_open_stave_for_blank_line(["", "notes :8 5/6"], 0)

    def test_preamble_ahead_does_not_open(self):
        """Test a blank line before a header stays blank."""
        assert not should_open_stave_for_blank_line(["", "", "title My Title"], 0)
        assert not should_open_stave_for_blank_line(["", "options space=20"], 0)

    def test_skips_blank_and_comment_lines(self):
        """Test further blanks and comments are looked past."""
        lines = ["", "  ", "// comment", "# other", "title My Title"]
        assert not should_open_stave_for_blank_line(lines, 0)
        lines[-1] = "notes :8 5/6"
        assert should_open_stave_for_blank_line(lines, 0)

    def test_end_of_input_opens(self):
        """Test a trailing blank line opens a stave."""
        assert should_open_stave_for_blank_line(["notes", "", "// done"], 1)


class TestPreprocessSource:
    """Tests for the short-form rewrite."""

    def test_leaves_non_short_form_input_unchanged(self):
        """Test .vt input passes through with identity cursor mapping."""
        source = "tabstave\nnotes :8 5/6"
        result = preprocess_source(source, "song.vt")

        assert result.text == source
        assert not result.short_form
        assert result.map_cursor(CursorLocation(2, 3)) == CursorLocation(2, 3)

    def test_no_file_name_is_identity(self):
        """Test buffers without a file name are not rewritten."""
        source = "notation=true\nnotes :8 5/6"
        result = preprocess_source(source, None)

        assert result.text == source
        assert result.map_cursor(CursorLocation(1, 0)) == CursorLocation(1, 0)
        assert result.map_cursor(CursorLocation(99, 7)) == CursorLocation(99, 7)

    def test_non_short_form_is_idempotent(self):
        """Test preprocessing pass-through output again changes nothing."""
        source = "\ntuning=E/5\r\nnotes :8 5/6\n"
        once = preprocess_source(source, "song.vextab").text
        twice = preprocess_source(once, "song.vextab").text
        assert once == source
        assert twice == source

    def test_short_form_override(self):
        """Test the rewrite can be forced on or off regardless of file name."""
        forced = preprocess_source("notes :8 5/6", None, short_form=True)
        assert forced.short_form
        assert forced.text == "tabstave\nnotes :8 5/6"

        forced = preprocess_source("notes :8 5/6", "riff.txt", short_form=True)
        assert forced.text == "tabstave\nnotes :8 5/6"

        skipped = preprocess_source("notes :8 5/6", "song.tab", short_form=False)
        assert not skipped.short_form
        assert skipped.text == "notes :8 5/6"

    def test_byte_order_mark_keeps_preamble_first(self):
        """Test a BOM-prefixed header stays ahead of the implicit stave."""
        result = preprocess_source("\ufefftitle Blackbird\nnotes :8 5/6", "song.tab")

        assert result.text == "\ufefftitle Blackbird\ntabstave\nnotes :8 5/6"
        assert result.map_cursor(CursorLocation(2, 0)) == CursorLocation(3, 0)

    def test_prefixes_stave_options_line(self):
        """Test a bare option line gets the stave keyword prepended."""
        source = "notation=true tablature=true time=12/8\nnotes :8 5/6"
        result = preprocess_source(source, "song.tab")

        assert result.text == "tabstave notation=true tablature=true time=12/8\nnotes :8 5/6"
        assert result.map_cursor(CursorLocation(1, 0)) == CursorLocation(1, 9)
        assert result.map_cursor(CursorLocation(2, 4)) == CursorLocation(2, 4)

    def test_indented_stave_options_keep_indentation(self):
        """Test the stave keyword goes after the original indentation."""
        result = preprocess_source("  notation=true\nnotes :8 5/6", "song.tab")

        assert result.text == "  tabstave notation=true\nnotes :8 5/6"
        assert result.line_mapping[0].column_offset == 9
        assert result.map_cursor(CursorLocation(1, 3)) == CursorLocation(1, 12)

    def test_empty_line_opens_stave(self):
        """Test a leading empty line is replaced by a stave opener."""
        result = preprocess_source("\nnotes :8 5/6", "song.tab")

        assert result.text == "tabstave\nnotes :8 5/6"
        assert result.map_cursor(CursorLocation(2, 2)) == CursorLocation(2, 2)

    def test_inserts_implicit_stave_before_tuning(self):
        """Test an implicit tabstave is inserted when none is open."""
        result = preprocess_source("tuning=E/5,C/5\nnotes :8 5/6", "song.tab")

        assert result.text == "tabstave\ntuning=E/5,C/5\nnotes :8 5/6"
        assert result.map_cursor(CursorLocation(1, 0)) == CursorLocation(2, 0)
        assert result.map_cursor(CursorLocation(2, 1)) == CursorLocation(3, 1)

    def test_preserves_document_header_before_implicit_stave(self):
        """Test header lines stay in place ahead of the implicit stave."""
        source = "title My Title\nsubtitle My Subtitle\nsidenote Left note\nnotes :8 5/6"
        result = preprocess_source(source, "song.tab")

        assert result.text == (
            "title My Title\nsubtitle My Subtitle\nsidenote Left note\ntabstave\nnotes :8 5/6"
        )
        assert result.map_cursor(CursorLocation(1, 2)) == CursorLocation(1, 2)
        assert result.map_cursor(CursorLocation(3, 0)) == CursorLocation(3, 0)
        assert result.map_cursor(CursorLocation(4, 0)) == CursorLocation(5, 0)

    def test_leading_empty_lines_before_header_stay_blank(self):
        """Test blank lines ahead of a header do not open a stave."""
        result = preprocess_source("\n\ntitle My Title\nnotes :8 5/6", "song.tab")

        assert result.text == "\n\ntitle My Title\ntabstave\nnotes :8 5/6"
        assert result.map_cursor(CursorLocation(3, 0)) == CursorLocation(3, 0)
        assert result.map_cursor(CursorLocation(4, 0)) == CursorLocation(5, 0)

    def test_global_options_stay_before_stave(self):
        """Test options directives pass through without opening a stave."""
        result = preprocess_source("options space=20\nnotes :8 5/6", "song.tab")
        assert result.text == "options space=20\ntabstave\nnotes :8 5/6"

    def test_explicit_stave_is_not_duplicated(self):
        """Test an explicit tabstave suppresses the implicit one."""
        source = "tabstave notation=true\nnotes :8 5/6"
        result = preprocess_source(source, "song.tab")

        assert result.text == source
        assert result.map_cursor(CursorLocation(2, 0)) == CursorLocation(2, 0)

    def test_comments_do_not_open_stave(self):
        """Test comments pass through and the stave opens before content."""
        result = preprocess_source("// intro\nnotes :8 5/6", "song.tab")
        assert result.text == "// intro\ntabstave\nnotes :8 5/6"

    def test_blank_lines_after_stave_become_openers(self):
        """Test blank separators open a new stave once one is open."""
        source = "notes :8 5/6\n\nnotes :8 7/5"
        result = preprocess_source(source, "song.tab")

        assert result.text == "tabstave\nnotes :8 5/6\ntabstave\nnotes :8 7/5"
        assert result.map_cursor(CursorLocation(3, 1)) == CursorLocation(4, 1)

    def test_crlf_input(self):
        """Test carriage-return line endings are split and normalized."""
        result = preprocess_source("notation=true\r\nnotes :8 5/6", "song.tab")
        assert result.text == "tabstave notation=true\nnotes :8 5/6"

    def test_empty_input(self):
        """Test empty short-form input yields a single stave opener."""
        result = preprocess_source("", "song.tab")

        assert result.text == "tabstave"
        assert len(result.line_mapping) == 1

    def test_full_document(self, fixtures_path):
        """Test a realistic short-form file."""
        source = (fixtures_path / "blackbird.tab").read_text(encoding="utf-8")
        result = preprocess_source(source, "blackbird.tab")

        assert result.text.split("\n") == [
            "title Blackbird",
            "subtitle Fingerpicking exercise",
            "tabstave",
            "// first phrase",
            "tabstave notation=true tablature=true time=3/4",
            "notes :8 3/2 0/3 2/2",
            "tabstave",
            "  notes :q 5/6 7/5",
            "tabstave",
        ]
        kinds = [m.kind for m in result.line_mapping]
        assert kinds[:5] == [
            LineKind.DOCUMENT_HEADER,
            LineKind.DOCUMENT_HEADER,
            LineKind.BLANK,
            LineKind.COMMENT,
            LineKind.STAVE_OPTIONS,
        ]

    def test_out_of_range_cursor_is_unchanged(self):
        """Test cursors outside the source fall back to identity."""
        result = preprocess_source("tuning=E/5\nnotes :8 5/6", "song.tab")

        assert result.map_cursor(CursorLocation(0, 3)) == CursorLocation(0, 3)
        assert result.map_cursor(CursorLocation(-1, 0)) == CursorLocation(-1, 0)
        assert result.map_cursor(CursorLocation(3, 0)) == CursorLocation(3, 0)

    def test_every_source_line_is_mapped_once(self):
        """Test the line map has one entry per source line, in order."""
        source = "\n\ntitle T\n// c\nnotes\n\nkey=C\nnotes\n"
        result = preprocess_source(source, "song.tab")

        originals = [m.original_line for m in result.line_mapping]
        assert originals == list(range(1, len(split_source_lines(source)) + 1))

    def test_mapping_is_monotonic(self):
        """Test mapped output lines never decrease."""
        source = "\n// c\n\ntitle T\noptions space=5\nnotes\n\n\nkey=C\n# x\ntuning=E/5\nnotes\n"
        result = preprocess_source(source, "song.tab")

        processed = [m.processed_line for m in result.line_mapping]
        assert processed == sorted(processed)
        assert processed[-1] == len(result.text.split("\n"))

    def test_mapped_content_matches(self):
        """Test each mapped line carries the source content at the offset."""
        source = "title T\n  key=C time=4/4\nnotes :8 5/6\n# done"
        result = preprocess_source(source, "song.tab")
        output_lines = result.text.split("\n")

        for mapping, line in zip(result.line_mapping, source.split("\n")):
            indent = leading_whitespace(line)
            target = output_lines[mapping.processed_line - 1]
            body = line[len(indent):]
            assert target[len(indent) + mapping.column_offset:] == body
