"""
Tests for skill and corpus discovery.
"""

from backend.skillcheck.discovery import (
    discover_corpus,
    discover_skills,
    find_skill_md,
    load_skill,
)


TREES = ["skills", "skills-codex", "skills-gemini"]


class TestFindSkillMd:
    """Tests for find_skill_md."""

    def test_uppercase(self, tmp_path, make_skill):
        """Test SKILL.md is found."""
        skill_dir = make_skill(tmp_path, "pg-tuning")
        assert find_skill_md(skill_dir) == skill_dir / "SKILL.md"

    def test_lowercase(self, tmp_path, make_skill):
        """Test skill.md is accepted."""
        skill_dir = make_skill(tmp_path, "pg-tuning", skill_md_name="skill.md")
        assert find_skill_md(skill_dir).name.lower() == "skill.md"

    def test_missing(self, tmp_path):
        """Test directories without a skill file."""
        assert find_skill_md(tmp_path) is None


class TestLoadSkill:
    """Tests for load_skill."""

    def test_load(self, skill_dir):
        """Test a skill with a reference file."""
        skill = load_skill(skill_dir, tree="skills")
        assert skill.name == "sqlserver-blocking"
        assert skill.tree == "skills"
        assert skill.document is not None
        assert [p.name for p in skill.references] == ["lock-types.md"]
        assert skill.examples == []

    def test_without_skill_md(self, tmp_path):
        """Test a directory that lost its SKILL.md."""
        (tmp_path / "orphaned" / "references").mkdir(parents=True)
        skill = load_skill(tmp_path / "orphaned")
        assert skill.document is None

    def test_unreadable_skill_md(self, tmp_path):
        """Test a SKILL.md that is not UTF-8 is marked unreadable."""
        skill_dir = tmp_path / "broken"
        skill_dir.mkdir()
        (skill_dir / "SKILL.md").write_bytes(b"\xff\xfe\x00binary")

        skill = load_skill(skill_dir)
        assert skill.document is not None
        assert not skill.document.readable
        assert "Cannot read" in skill.document.parse_error


class TestDiscoverSkills:
    """Tests for discover_skills."""

    def test_sorted_and_filtered(self, tmp_path, make_skill):
        """Test hidden and non-skill directories are skipped."""
        make_skill(tmp_path, "b-skill")
        make_skill(tmp_path, "a-skill")
        (tmp_path / ".git").mkdir()
        (tmp_path / "notes").mkdir()
        (tmp_path / "README.md").write_text("# Corpus\n", encoding="utf-8")

        skills = discover_skills(tmp_path)
        assert [s.dir_name for s in skills] == ["a-skill", "b-skill"]

    def test_keeps_directory_with_resources_only(self, tmp_path):
        """Test a skill missing SKILL.md but holding references/ is kept."""
        (tmp_path / "lost-skill" / "references").mkdir(parents=True)
        skills = discover_skills(tmp_path)
        assert [s.dir_name for s in skills] == ["lost-skill"]
        assert skills[0].document is None

    def test_missing_directory(self, tmp_path):
        """Test a nonexistent tree yields nothing."""
        assert discover_skills(tmp_path / "nope") == []


class TestDiscoverCorpus:
    """Tests for discover_corpus."""

    def test_named_trees(self, corpus_root):
        """Test all three trees are found."""
        corpus = discover_corpus(corpus_root, TREES)
        assert corpus.tree_names == TREES
        assert corpus.skill_names("skills-gemini") == ["postgresql-vacuum", "sqlserver-blocking"]
        assert len(corpus.all_skills()) == 8

    def test_missing_tree_skipped(self, tmp_path, make_skill):
        """Test trees that do not exist are ignored."""
        make_skill(tmp_path / "skills", "pg-tuning")
        corpus = discover_corpus(tmp_path, TREES)
        assert corpus.tree_names == ["skills"]

    def test_root_as_single_tree(self, tmp_path, make_skill):
        """Test a directory of skills without named trees."""
        make_skill(tmp_path, "pg-tuning")
        corpus = discover_corpus(tmp_path, TREES)
        assert corpus.tree_names == ["."]
        assert corpus.all_skills()[0].tree is None

    def test_single_skill(self, skill_dir):
        """Test pointing at one skill directory."""
        corpus = discover_corpus(skill_dir, TREES)
        skills = corpus.all_skills()
        assert len(skills) == 1
        assert skills[0].dir == skill_dir

    def test_empty(self, tmp_path):
        """Test an empty directory."""
        assert discover_corpus(tmp_path, TREES).all_skills() == []
