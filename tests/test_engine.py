"""
Tests for the validation engine.
"""

import json

from backend.skillcheck.config import LintConfig
from backend.skillcheck.discovery import discover_corpus, load_skill
from backend.skillcheck.validator import ValidationEngine, validate_corpus


class TestValidateSkill:
    """Tests for ValidationEngine.validate_skill."""

    def test_valid_skill(self, skill_dir):
        """Test every layer runs and passes."""
        result = ValidationEngine().validate_skill(load_skill(skill_dir, tree="skills"))
        assert result.valid
        assert result.skill == "skills/sqlserver-blocking"
        assert result.path == "skills/sqlserver-blocking/SKILL.md"
        assert result.total_errors == 0
        assert result.total_warnings == 0
        assert len(result.layer_results) == 4
        assert result.compliance_score == 1.0

    def test_missing_skill_md_runs_frontmatter_only(self, tmp_path):
        """Test later layers are skipped without SKILL.md."""
        (tmp_path / "lost" / "references").mkdir(parents=True)
        result = ValidationEngine().validate_skill(load_skill(tmp_path / "lost"))
        assert not result.valid
        assert result.structure_result is None
        assert result.link_result is None
        assert result.sql_result is None
        assert [i.rule for i in result.issues] == ["MISSING_SKILL_MD"]
        assert result.compliance_score == 0.0

    def test_errors_across_layers(self, tmp_path, make_skill):
        """Test issues from several layers are combined."""
        body = "# Skill\n\n## Overview\n\nSee [gone](references/gone.md).\n"
        skill = load_skill(make_skill(tmp_path, "pg-tuning", name="pg-tune", body=body))
        result = ValidationEngine().validate_skill(skill)
        assert not result.valid
        layers = {i.layer for i in result.issues}
        assert {"frontmatter", "structure", "links"} <= layers
        assert result.compliance_score < 1.0

    def test_strict_fails_on_warnings(self, tmp_path, make_skill):
        """Test strict mode."""
        skill = load_skill(make_skill(tmp_path, "pg-tuning", description="Tune pg."))
        engine = ValidationEngine()
        assert engine.validate_skill(skill).valid
        assert not engine.validate_skill(skill, strict=True).valid
        assert not ValidationEngine(LintConfig(strict=True)).validate_skill(skill).valid

    def test_rule_overrides(self, tmp_path, make_skill):
        """Test configured rule levels."""
        skill = load_skill(make_skill(tmp_path, "database-tuning", name="database-tune"))
        assert not ValidationEngine().validate_skill(skill).valid

        downgraded = ValidationEngine(LintConfig(rules={"NAME_DIR_MISMATCH": "warning"})).validate_skill(skill)
        assert downgraded.valid
        assert downgraded.total_warnings == 1

        disabled = ValidationEngine(LintConfig(rules={"NAME_DIR_MISMATCH": "off"})).validate_skill(skill)
        assert disabled.issues == []

    def test_summary_and_to_dict(self, skill_dir):
        """Test reporting helpers."""
        result = ValidationEngine().validate_skill(load_skill(skill_dir))
        assert "PASSED" in result.summary()
        data = result.to_dict()
        assert set(data["layers"]) == {"frontmatter", "structure", "links", "sql"}
        assert data["compliance_score"] == 1.0


class TestValidateCorpus:
    """Tests for corpus validation."""

    def test_corpus(self, corpus_root):
        """Test a corpus with one parity warning."""
        result = ValidationEngine().validate_path(corpus_root)
        assert result.valid
        assert result.exit_code == 0
        assert len(result.skills) == 8
        assert result.total_errors == 0
        assert result.total_warnings == 1
        assert result.parity_result.parity_score == 66.7
        summary = result.summary()
        assert "Validation PASSED" in summary
        assert "Tree Parity: 66.7%" in summary

    def test_strict_exit_code(self, corpus_root):
        """Test warnings fail a strict run with exit code 2."""
        result = ValidationEngine().validate_path(corpus_root, strict=True)
        assert not result.valid
        assert result.exit_code == 2

    def test_override_parity_rule(self, corpus_root):
        """Test turning a corpus rule off."""
        config = LintConfig(rules={"MISSING_IN_TREE": "off"})
        result = ValidationEngine(config).validate_path(corpus_root, strict=True)
        assert result.valid

    def test_errors_exit_code(self, corpus_root):
        """Test errors give exit code 1."""
        config = LintConfig(rules={"MISSING_IN_TREE": "error"})
        result = ValidationEngine(config).validate_path(corpus_root)
        assert not result.valid
        assert result.exit_code == 1

    def test_parity_disabled(self, corpus_root):
        """Test the parity layer can be turned off."""
        result = ValidationEngine(LintConfig(check_tree_parity=False)).validate_path(corpus_root)
        assert result.parity_result is None
        assert result.total_warnings == 0

    def test_only_selected_skills(self, corpus_root):
        """Test restricting validation to named skills skips parity."""
        result = ValidationEngine().validate_path(corpus_root, only=["sqlserver-blocking"])
        assert [s.skill for s in result.skills] == [
            "skills/sqlserver-blocking",
            "skills-codex/sqlserver-blocking",
            "skills-gemini/sqlserver-blocking",
        ]
        assert result.parity_result is None

    def test_unknown_selected_skill(self, corpus_root):
        """Test selecting a skill that does not exist."""
        result = ValidationEngine().validate_path(corpus_root, only=["nope"])
        assert not result.valid
        assert result.errors == ["Skill not found: nope"]
        assert result.exit_code == 1

    def test_missing_directory(self, tmp_path):
        """Test a path that does not exist."""
        result = ValidationEngine().validate_path(tmp_path / "missing")
        assert not result.valid
        assert result.errors[0].startswith("Directory not found")
        assert result.exit_code == 1

    def test_no_skills(self, tmp_path):
        """Test an empty directory."""
        result = ValidationEngine().validate_path(tmp_path)
        assert not result.valid
        assert result.errors[0].startswith("No skills found")

    def test_single_skill_path(self, skill_dir):
        """Test validating one skill directory."""
        result = validate_corpus(skill_dir)
        assert result.valid
        assert [s.skill for s in result.skills] == ["sqlserver-blocking"]

    def test_failed_skill(self, corpus_root, make_skill):
        """Test one bad skill fails the corpus."""
        make_skill(corpus_root / "skills-gemini", "sqlserver-backup", name="SQLServer Backup")
        result = ValidationEngine().validate_path(corpus_root)
        assert not result.valid
        assert result.exit_code == 1
        failed = result.get("skills-gemini/sqlserver-backup")
        assert failed is not None and not failed.valid
        assert "Failed Skills: 1" in result.summary()

    def test_validate_corpus_object(self, corpus_root):
        """Test validating an already discovered corpus."""
        corpus = discover_corpus(corpus_root, ["skills"])
        result = ValidationEngine().validate_corpus(corpus)
        assert result.trees == ["skills"]
        assert result.valid

    def test_to_dict_is_json_serializable(self, corpus_root):
        """Test the corpus result serializes."""
        data = json.loads(json.dumps(ValidationEngine().validate_path(corpus_root).to_dict()))
        assert data["valid"]
        assert len(data["skills"]) == 8
        assert data["parity"]["missing"]["skills-gemini"] == ["sqlserver-backup"]
