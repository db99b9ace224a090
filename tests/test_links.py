"""
Tests for the link validator.
"""

from backend.skillcheck.discovery import load_skill
from backend.skillcheck.validator import LinkValidator


def rules(result):
    return [issue.rule for issue in result.issues]


SECTIONS = "# Skill\n\n## Overview\n\nChecks the skill's cross-references.\n\n"


class TestLinkValidator:
    """Tests for LinkValidator."""

    def test_valid(self, skill_dir):
        """Test a skill whose links all resolve."""
        result = LinkValidator().validate(load_skill(skill_dir, tree="skills"))
        assert result.valid
        assert result.issues == []
        assert result.orphans == []
        assert result.files_scanned == [
            "skills/sqlserver-blocking/SKILL.md",
            "skills/sqlserver-blocking/references/lock-types.md",
        ]

    def test_broken_link(self, tmp_path, make_skill):
        """Test a relative link to a missing file."""
        body = "# Skill\n\nSee [waits](references/wait-types.md).\n"
        result = LinkValidator().validate(load_skill(make_skill(tmp_path, "pg-tuning", body=body)))
        assert not result.valid
        assert rules(result) == ["BROKEN_LINK"]
        assert result.issues[0].path == "pg-tuning/SKILL.md"
        assert result.issues[0].line == 7

    def test_broken_code_span_reference(self, tmp_path, make_skill):
        """Test resource paths written as inline code must exist."""
        body = SECTIONS + "Details live in `references/autovacuum.md`.\n"
        result = LinkValidator().validate(load_skill(make_skill(tmp_path, "pg-tuning", body=body)))
        assert rules(result) == ["BROKEN_REFERENCE"]

    def test_linked_image(self, tmp_path, make_skill):
        """Test the link around an image is resolved and reaches its file."""
        body = SECTIONS + "[![plan](examples/plan.png)](references/plans.md)\n"
        skill_dir = make_skill(
            tmp_path, "pg-tuning", body=body, resources={"references/plans.md": "# Plans\n"}
        )
        (skill_dir / "examples").mkdir()
        (skill_dir / "examples" / "plan.png").write_bytes(b"\x89PNG")
        assert LinkValidator().validate(load_skill(skill_dir)).issues == []

        (skill_dir / "references" / "plans.md").unlink()
        assert rules(LinkValidator().validate(load_skill(skill_dir))) == ["BROKEN_LINK"]

    def test_code_span_reference_reaches_file(self, tmp_path, make_skill):
        """Test a code-span mention keeps its file from being an orphan."""
        body = SECTIONS + "Details live in `references/autovacuum.md`.\n"
        skill_dir = make_skill(
            tmp_path, "pg-tuning", body=body, resources={"references/autovacuum.md": "# Autovacuum\n"}
        )
        result = LinkValidator().validate(load_skill(skill_dir))
        assert result.issues == []

    def test_orphan_file(self, tmp_path, make_skill):
        """Test resource files nothing links to."""
        skill_dir = make_skill(tmp_path, "pg-tuning", body=SECTIONS, resources={"examples/bloat.md": "# Bloat\n"})
        result = LinkValidator().validate(load_skill(skill_dir))
        assert result.valid
        assert rules(result) == ["ORPHAN_FILE"]
        assert result.orphans == ["pg-tuning/examples/bloat.md"]

    def test_transitive_reachability(self, tmp_path, make_skill):
        """Test files linked from a reference file are reachable."""
        body = SECTIONS + "Start with [memory](references/memory.md).\n"
        skill_dir = make_skill(tmp_path, "pg-tuning", body=body, resources={
            "references/memory.md": "# Memory\n\nThen read [planner](planner.md#cost-constants).\n",
            "references/planner.md": "# Planner\n\n## Cost Constants\n\nrandom_page_cost.\n",
        })
        result = LinkValidator().validate(load_skill(skill_dir))
        assert result.issues == []

    def test_orphan_still_checked(self, tmp_path, make_skill):
        """Test broken links inside an orphan file are reported."""
        skill_dir = make_skill(tmp_path, "pg-tuning", body=SECTIONS, resources={
            "references/stale.md": "# Stale\n\nSee [gone](gone.md).\n",
        })
        result = LinkValidator().validate(load_skill(skill_dir))
        assert sorted(rules(result)) == ["BROKEN_LINK", "ORPHAN_FILE"]
        broken = next(i for i in result.issues if i.rule == "BROKEN_LINK")
        assert broken.path == "pg-tuning/references/stale.md"
        assert broken.line == 3

    def test_broken_anchor(self, tmp_path, make_skill):
        """Test fragments must match a heading in the target."""
        body = SECTIONS + "See [shared](references/locks.md#exclusive-locks) and [top](#overview) and [x](#nowhere).\n"
        skill_dir = make_skill(tmp_path, "pg-tuning", body=body, resources={
            "references/locks.md": "# Locks\n\n## Shared Locks\n\nRead locks.\n",
        })
        result = LinkValidator().validate(load_skill(skill_dir))
        assert result.valid
        assert rules(result) == ["BROKEN_ANCHOR", "BROKEN_ANCHOR"]
        assert "exclusive-locks" in result.issues[0].message
        assert "nowhere" in result.issues[1].message

    def test_link_outside_skill(self, tmp_path, make_skill):
        """Test links escaping the skill directory."""
        make_skill(tmp_path, "pg-backup")
        body = SECTIONS + "See [backup](../pg-backup/SKILL.md).\n"
        result = LinkValidator().validate(load_skill(make_skill(tmp_path, "pg-tuning", body=body)))
        assert rules(result) == ["LINK_OUTSIDE_SKILL"]
        assert result.valid

    def test_absolute_path(self, tmp_path, make_skill):
        """Test absolute filesystem paths."""
        body = SECTIONS + "See [conf](/etc/postgresql/postgresql.conf).\n"
        result = LinkValidator().validate(load_skill(make_skill(tmp_path, "pg-tuning", body=body)))
        assert rules(result) == ["ABSOLUTE_PATH_LINK"]

    def test_external_links_ignored(self, tmp_path, make_skill):
        """Test URLs are not checked."""
        body = SECTIONS + "See [docs](https://www.postgresql.org/docs/current/) or [mail](mailto:dba@example.com).\n"
        result = LinkValidator().validate(load_skill(make_skill(tmp_path, "pg-tuning", body=body)))
        assert result.issues == []
        assert result.links_checked == 2

    def test_links_in_code_ignored(self, tmp_path, make_skill):
        """Test link syntax inside code is not a link."""
        body = SECTIONS + "```markdown\n[x](references/missing.md)\n```\n"
        result = LinkValidator().validate(load_skill(make_skill(tmp_path, "pg-tuning", body=body)))
        assert result.issues == []

    def test_unreadable_resource(self, tmp_path, make_skill):
        """Test a linked file that is not UTF-8."""
        body = SECTIONS + "See [bad](references/bad.md).\n"
        skill_dir = make_skill(tmp_path, "pg-tuning", body=body)
        (skill_dir / "references").mkdir()
        (skill_dir / "references" / "bad.md").write_bytes(b"\xff\xfe\x00")
        result = LinkValidator().validate(load_skill(skill_dir))
        assert rules(result) == ["UNREADABLE_FILE"]
        assert not result.valid

    def test_url_encoded_target(self, tmp_path, make_skill):
        """Test percent-encoded file names."""
        body = SECTIONS + "See [plan](references/query%20plans.md).\n"
        skill_dir = make_skill(tmp_path, "pg-tuning", body=body, resources={"references/query plans.md": "# Plans\n"})
        result = LinkValidator().validate(load_skill(skill_dir))
        assert result.issues == []

    def test_skill_without_skill_md(self, tmp_path):
        """Test nothing is checked without SKILL.md."""
        (tmp_path / "lost" / "references").mkdir(parents=True)
        result = LinkValidator().validate(load_skill(tmp_path / "lost"))
        assert result.valid
        assert result.issues == []
