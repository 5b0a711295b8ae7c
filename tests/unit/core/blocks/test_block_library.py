"""Unit tests for the narrative block loader, library and variant selection."""

from __future__ import annotations

import random
from pathlib import Path

import pytest

from cogreport.core.blocks.loader import (
    load_block_directory,
    load_block_file,
    load_manifest,
)
from cogreport.core.blocks.models import BlockFile, freeze, thaw
from cogreport.core.blocks.registry import BlockLibrary
from cogreport.core.blocks.selection import VariantPicker, select_variant


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def _block_file(name: str = "greetings", **topics) -> BlockFile:
    return BlockFile(
        name=name,
        version="1.0.0",
        topics=freeze(topics or {"greeting": {"high": ["Hello.", "Hi there."]}}),
    )


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

class TestLoader:
    def test_loads_topics_and_manifest(self, tmp_path: Path):
        _write(tmp_path / "_manifest.yaml", 'library: "demo"\nversion: "2.0.1"\n')
        _write(
            tmp_path / "phrases.yaml",
            'version: "1.2.0"\ntopics:\n  greeting:\n    high: ["Hello.", "Hi."]\n',
        )
        library = load_block_directory(tmp_path)
        assert library.manifest.library == "demo"
        assert library.version == "2.0.1"
        assert library.topics() == ["greeting"]
        assert library.variants("greeting", "high") == ("Hello.", "Hi.")
        assert library.sealed

    def test_bad_file_is_skipped(self, tmp_path: Path, caplog):
        _write(tmp_path / "good.yaml", 'topics:\n  ok:\n    text: "fine"\n')
        _write(tmp_path / "bad.yaml", "topics: [unclosed\n")
        library = load_block_directory(tmp_path)
        assert library.topics() == ["ok"]
        assert "Failed to load block file" in caplog.text

    def test_file_without_topics_mapping_rejected(self, tmp_path: Path):
        path = _write(tmp_path / "empty.yaml", 'version: "1.0.0"\n')
        with pytest.raises(ValueError, match="no 'topics' mapping"):
            load_block_file(path)

    def test_missing_directory_yields_empty_sealed_library(self, tmp_path: Path):
        library = load_block_directory(tmp_path / "nope")
        assert library.topics() == []
        assert library.sealed

    def test_missing_manifest_uses_defaults(self, tmp_path: Path):
        manifest = load_manifest(tmp_path / "_manifest.yaml")
        assert manifest.library == "default"
        assert manifest.version == "0.0.0"

    def test_duplicate_topic_across_files_skips_second(self, tmp_path: Path):
        _write(tmp_path / "a.yaml", 'topics:\n  shared:\n    text: "from a"\n')
        _write(tmp_path / "b.yaml", 'topics:\n  shared:\n    text: "from b"\n')
        library = load_block_directory(tmp_path)
        assert library.entry("shared", "text") == "from a"
        assert library.topic_source("shared") == "a"


class TestPackagedLibrary:
    def test_version_and_name(self, library: BlockLibrary):
        assert library.manifest.library == "attention"
        assert library.version == "3.1.0"

    def test_every_file_registered(self, library: BlockLibrary):
        names = {f.name for f in library.files()}
        assert {"report", "terminology", "indices", "life_predictions", "clinical_analysis"} <= names
        assert len(names) == 11

    def test_patient_terms_present(self, library: BlockLibrary):
        terms = library.terms()
        assert terms["MC Index"] == "Focus Consistency Score"
        assert terms["inhibition"] == "impulse control"

    def test_insufficient_data_phrases(self, library: BlockLibrary):
        for reason in ("default", "reaction_times", "biomarkers"):
            assert library.entry("insufficient_data", reason)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestBlockLibrary:
    def test_register_and_lookup(self):
        library = BlockLibrary()
        library.register(_block_file())
        assert library.has("greeting", "high")
        assert not library.has("greeting", "low")
        assert library.topic_source("greeting") == "greetings"

    def test_duplicate_topic_raises(self):
        library = BlockLibrary()
        library.register(_block_file())
        with pytest.raises(ValueError, match="Duplicate block topic"):
            library.register(_block_file(name="other"))

    def test_sealed_library_refuses_registration(self):
        library = BlockLibrary()
        library.seal()
        with pytest.raises(RuntimeError):
            library.register(_block_file())

    def test_unknown_topic_raises_key_error(self):
        library = BlockLibrary()
        with pytest.raises(KeyError, match="Unknown block topic"):
            library.entry("missing")

    def test_unknown_path_names_the_walked_path(self):
        library = BlockLibrary()
        library.register(_block_file())
        with pytest.raises(KeyError, match="greeting/medium"):
            library.entry("greeting", "medium")

    def test_index_into_tuple(self):
        library = BlockLibrary()
        library.register(_block_file())
        assert library.entry("greeting", "high", 1) == "Hi there."

    def test_variants_of_single_string(self):
        library = BlockLibrary()
        library.register(_block_file(note={"text": "Only one."}))
        assert library.variants("note", "text") == ("Only one.",)

    def test_variants_rejects_structured_node(self):
        library = BlockLibrary()
        library.register(_block_file())
        with pytest.raises(TypeError):
            library.variants("greeting")

    def test_entries_are_read_only(self):
        library = BlockLibrary()
        library.register(_block_file())
        node = library.entry("greeting")
        with pytest.raises(TypeError):
            node["high"] = ("Changed.",)

    def test_thaw_gives_plain_containers(self):
        library = BlockLibrary()
        library.register(_block_file())
        assert thaw(library.entry("greeting")) == {"high": ["Hello.", "Hi there."]}


# ---------------------------------------------------------------------------
# Variant selection
# ---------------------------------------------------------------------------

class TestSelectVariant:
    OPTIONS = ("a", "b", "c")

    def test_seeded_choice_is_modulo(self):
        assert select_variant(self.OPTIONS, seed=0) == "a"
        assert select_variant(self.OPTIONS, seed=4) == "b"
        assert select_variant(self.OPTIONS, seed=-5) == "c"

    def test_seeded_choice_is_stable(self):
        picks = {select_variant(self.OPTIONS, seed=17) for _ in range(20)}
        assert picks == {"c"}

    def test_empty_options_give_empty_string(self):
        assert select_variant((), seed=3) == ""
        assert select_variant(()) == ""

    def test_unseeded_uses_supplied_rng(self):
        expected = random.Random(7).randrange(3)
        assert select_variant(self.OPTIONS, rng=random.Random(7)) == self.OPTIONS[expected]

    def test_unseeded_leaves_global_random_untouched(self):
        random.seed(1234)
        before = random.getstate()
        select_variant(self.OPTIONS)
        assert random.getstate() == before

    def test_picker_with_seed(self):
        picker = VariantPicker(seed=2)
        assert [picker.pick(self.OPTIONS) for _ in range(3)] == ["c", "c", "c"]

    def test_picker_without_seed_returns_an_option(self):
        picker = VariantPicker()
        assert picker.pick(self.OPTIONS) in self.OPTIONS
