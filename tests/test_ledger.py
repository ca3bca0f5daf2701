"""Tests for ledger parsing."""

import tempfile
from pathlib import Path

import pytest

from task_board.core.ledger import (
    extract_agent,
    extract_blocked_by,
    parse_ledger,
    parse_phase_header,
    parse_status_tag,
    read_ledger,
    resolve_ledger_path,
)
from task_board.models import TaskStatus

FIXTURES = Path(__file__).parent / "fixtures"


class TestStatusTag:
    @pytest.mark.parametrize("tag,expected", [
        ("x", TaskStatus.COMPLETED),
        ("InProgress", TaskStatus.IN_PROGRESS),
        ("/", TaskStatus.IN_PROGRESS),
        ("Failed", TaskStatus.FAILED),
        ("Blocked", TaskStatus.BLOCKED),
        (" ", TaskStatus.PENDING),
        ("", TaskStatus.PENDING),
        ("   ", TaskStatus.PENDING),
    ])
    def test_known_tags(self, tag, expected):
        assert parse_status_tag(tag) == expected

    def test_unknown_tag(self):
        assert parse_status_tag("Done") is None
        assert parse_status_tag("X") is None


class TestPhaseHeader:
    def test_basic(self):
        phase = parse_phase_header("Phase 0: Setup")
        assert phase.id == "P0"
        assert phase.name == "Setup"
        assert phase.tasks == ()

    def test_surrounding_whitespace(self):
        phase = parse_phase_header("  Phase 12 :  Data layer  ")
        assert phase.id == "P12"
        assert phase.name == "Data layer"

    def test_without_colon(self):
        assert parse_phase_header("Phase 1 Setup") is None

    def test_not_a_phase(self):
        assert parse_phase_header("Overview: notes") is None


class TestBodyExtraction:
    def test_agent_first_mention(self):
        body = "- some text\n- **owner**: @backend, @frontend\n- @later"
        assert extract_agent(body) == "backend"

    def test_agent_stops_at_whitespace(self):
        assert extract_agent("assigned to @db-team today") == "db-team"

    def test_agent_missing(self):
        assert extract_agent("- no owner here") is None

    def test_lone_at_sign_is_skipped(self):
        assert extract_agent("email me @ home\n- @ops") == "ops"

    def test_blocked_by_bold(self):
        body = "- **blocked_by**: P0-T1, P0-T2"
        assert extract_blocked_by(body) == ["P0-T1", "P0-T2"]

    def test_blocked_by_plain_and_multiple_lines(self):
        body = "- blocked_by: A\n- note\n- blocked_by: B, , C"
        assert extract_blocked_by(body) == ["A", "B", "C"]

    def test_blocked_by_missing(self):
        assert extract_blocked_by("- owner: @x") == []


class TestParseLedger:
    def test_single_phase_example(self):
        text = (
            "# Phase 0: Setup\n"
            "### [x] P0-T1: Init project\n"
            "- @backend-specialist\n"
            "### [ ] P0-T2: Configure\n"
        )
        phases = parse_ledger(text)
        assert len(phases) == 1
        phase = phases[0]
        assert phase.id == "P0"
        assert phase.name == "Setup"
        assert len(phase.tasks) == 2

        first, second = phase.tasks
        assert first.id == "P0-T1"
        assert first.name == "Init project"
        assert first.status == TaskStatus.COMPLETED
        assert first.agent == "backend-specialist"
        assert second.id == "P0-T2"
        assert second.status == TaskStatus.PENDING
        assert second.agent is None
        assert phase.progress() == 0.5

    def test_fixture_document(self):
        phases = read_ledger(FIXTURES / "sample_tasks.md")
        assert [p.id for p in phases] == ["P0", "P1", "P2"]
        assert [len(p.tasks) for p in phases] == [2, 3, 3]

        auth = phases[1].tasks[1]
        assert auth.id == "P1-T2"
        assert auth.status == TaskStatus.FAILED
        assert auth.agent == "backend-specialist"
        assert auth.blocked_by == ("P1-T1", "P0-T2")

        login = phases[2].tasks[0]
        assert login.status == TaskStatus.BLOCKED
        assert login.blocked_by == ("P1-T2",)

        dashboard = phases[2].tasks[1]
        assert dashboard.agent is None
        assert dashboard.blocked_by == ()

    def test_empty_and_garbage_input(self):
        assert parse_ledger("") == []
        assert parse_ledger("just some text\n\n- a list\n") == []

    def test_task_before_any_phase_is_discarded(self):
        text = "### [x] T0: Orphan\n# Phase 1: Real\n### [ ] T1: Kept\n"
        phases = parse_ledger(text)
        assert len(phases) == 1
        assert [t.id for t in phases[0].tasks] == ["T1"]

    def test_unknown_status_tag_drops_task(self):
        text = "# Phase 1: A\n### [Done] T1: Dropped\n- @agent\n### [x] T2: Kept\n"
        phases = parse_ledger(text)
        assert [t.id for t in phases[0].tasks] == ["T2"]

    def test_header_without_colon_uses_text_for_id_and_name(self):
        phases = parse_ledger("# Phase 1: A\n### [ ] Write docs\n")
        task = phases[0].tasks[0]
        assert task.id == "Write docs"
        assert task.name == "Write docs"

    def test_header_without_bracket_is_ignored(self):
        phases = parse_ledger("# Phase 1: A\n### Notes\n- @ghost\n### [ ] T1: Real\n")
        assert [t.id for t in phases[0].tasks] == ["T1"]
        assert phases[0].tasks[0].agent is None

    def test_phase_with_no_tasks(self):
        phases = parse_ledger("## Phase 3: Empty\n\nSome prose.\n")
        assert len(phases) == 1
        assert phases[0].tasks == ()
        assert phases[0].progress() == 0.0

    def test_other_heading_ends_task_body(self):
        text = (
            "# Phase 1: A\n"
            "### [ ] T1: First\n"
            "#### Notes\n"
            "- @not-the-owner\n"
        )
        task = parse_ledger(text)[0].tasks[0]
        assert task.agent is None

    def test_non_phase_top_heading_does_not_close_phase(self):
        text = "# Phase 1: A\n### [ ] T1: One\n## Appendix\n### [x] T2: Two\n"
        phases = parse_ledger(text)
        assert len(phases) == 1
        assert [t.id for t in phases[0].tasks] == ["T1", "T2"]

    def test_duplicate_phase_ids_are_kept(self):
        text = "# Phase 1: A\n### [ ] T1: One\n# Phase 1: Again\n### [ ] T2: Two\n"
        phases = parse_ledger(text)
        assert [p.id for p in phases] == ["P1", "P1"]
        assert [p.name for p in phases] == ["A", "Again"]

    def test_indented_headers(self):
        text = "  # Phase 1: A\n   ### [/] T1: Indented\n"
        task = parse_ledger(text)[0].tasks[0]
        assert task.status == TaskStatus.IN_PROGRESS

    def test_crlf_line_endings(self):
        text = "# Phase 1: A\r\n### [Failed] T1: One\r\n- @ops\r\n"
        task = parse_ledger(text)[0].tasks[0]
        assert task.status == TaskStatus.FAILED
        assert task.agent == "ops"

    def test_parse_is_deterministic(self):
        text = (FIXTURES / "sample_tasks.md").read_text()
        assert parse_ledger(text) == parse_ledger(text)


class TestLedgerFile:
    def test_read_missing_file_raises(self):
        with tempfile.TemporaryDirectory() as tmp:
            with pytest.raises(OSError):
                read_ledger(Path(tmp) / "missing.md")

    def test_resolve_explicit(self):
        assert resolve_ledger_path("custom.md") == Path("custom.md")

    def test_resolve_prefers_tasks_md(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            (base / "TASKS.md").write_text("")
            (base / "docs" / "planning").mkdir(parents=True)
            (base / "docs" / "planning" / "06-tasks.md").write_text("")
            assert resolve_ledger_path(cwd=base) == base / "TASKS.md"

    def test_resolve_fallback(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            (base / "docs" / "planning").mkdir(parents=True)
            (base / "docs" / "planning" / "06-tasks.md").write_text("")
            assert resolve_ledger_path(cwd=base) == base / "docs" / "planning" / "06-tasks.md"

    def test_resolve_default_when_nothing_exists(self):
        with tempfile.TemporaryDirectory() as tmp:
            assert resolve_ledger_path(cwd=Path(tmp)) == Path(tmp) / "TASKS.md"
