"""Tests for core/report.py."""

from mindgrowth.content.templates import SECTION_BEHAVIOUR, SECTION_EMOTIONS, SECTION_GROWTH
from mindgrowth.core.report import parse_report, report_sections

from fakes import SAMPLE_REPORT


class TestParseReport:
    def test_sections_and_preamble(self):
        parsed = parse_report(SAMPLE_REPORT)
        assert list(parsed) == [SECTION_EMOTIONS, SECTION_BEHAVIOUR, SECTION_GROWTH]
        assert parsed[SECTION_EMOTIONS] == "여러 감정을 솔직하게 골랐어요."
        assert "처음 문단은 버려져요." not in "".join(parsed.values())

    def test_empty_input(self):
        assert parse_report("") == {}
        assert parse_report(None) == {}

    def test_no_headings(self):
        assert parse_report("그냥 문단만 있어요.\n두 번째 줄") == {}

    def test_multiline_body_kept(self):
        parsed = parse_report("## 제목\n첫 줄\n\n- 항목\n")
        assert parsed["제목"] == "첫 줄\n\n- 항목"

    def test_other_heading_levels_stay_in_body(self):
        parsed = parse_report("## 제목\n### 작은 제목\n#큰제목\n본문")
        assert list(parsed) == ["제목"]
        assert parsed["제목"] == "### 작은 제목\n#큰제목\n본문"

    def test_heading_needs_space(self):
        assert parse_report("##붙은제목\n본문") == {}

    def test_later_duplicate_wins(self):
        parsed = parse_report("## 같은 제목\n처음\n## 같은 제목\n나중")
        assert parsed == {"같은 제목": "나중"}

    def test_indented_heading_and_trailing_space(self):
        parsed = parse_report("   ## 제목   \n본문")
        assert parsed == {"제목": "본문"}


class TestReportSections:
    def test_display_order(self):
        text = f"## {SECTION_GROWTH}\nc\n## {SECTION_EMOTIONS}\na\n## {SECTION_BEHAVIOUR}\nb"
        assert report_sections(parse_report(text)) == [
            (SECTION_EMOTIONS, "a"),
            (SECTION_BEHAVIOUR, "b"),
            (SECTION_GROWTH, "c"),
        ]

    def test_missing_and_empty_sections_skipped(self):
        text = f"## {SECTION_EMOTIONS}\n\n## {SECTION_GROWTH}\n제안\n## 다른 섹션\n무시"
        assert report_sections(parse_report(text)) == [(SECTION_GROWTH, "제안")]

    def test_apology_text_has_no_sections(self):
        assert report_sections(parse_report("리포트를 생성하는 중 오류가 발생했어요.")) == []
