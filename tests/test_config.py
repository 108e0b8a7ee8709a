"""Tests for PipelineConfig, JSON loading and the command line."""

import json

import pytest

from twofactor_de.config import PipelineConfig, load_config, load_json_config
from twofactor_de.cli import build_parser, config_from_args
from twofactor_de.design import SAMPLE_LABELS


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "counts_path": "counts.txt",
        "min_cpm": 1.0,
        "contrasts": {"maternal": ["maternalT", "maternalC"]},
    }))
    return path


class TestPipelineConfig:
    """Test defaults and validation."""

    def test_defaults(self):
        config = PipelineConfig(counts_path="counts.txt").validate()
        assert config.sample_labels == SAMPLE_LABELS
        assert config.min_cpm == 0.5
        assert config.min_samples == 9
        assert config.fdr_threshold == 0.05
        assert config.min_fold_change == 2.0
        assert config.contrasts["developmental"] == ("developmentalT", None)

    def test_missing_counts_path(self):
        with pytest.raises(ValueError, match="counts_path"):
            PipelineConfig().validate()

    @pytest.mark.parametrize("field, value", [
        ("min_samples", 0),
        ("min_samples", 13),
        ("min_cpm", -1.0),
        ("fdr_threshold", 0.0),
        ("min_fold_change", 0.5),
        ("mds_top", 1),
        ("contrasts", {}),
    ])
    def test_out_of_range(self, field, value):
        config = PipelineConfig(counts_path="counts.txt", **{field: value})
        with pytest.raises(ValueError):
            config.validate()

    @pytest.mark.parametrize("pair", [["developmentalT"], "developmentalT", ["developmentalT", None]])
    def test_contrast_without_minus(self, pair):
        config = PipelineConfig(counts_path="counts.txt", contrasts={"developmental": pair})
        assert config.contrasts == {"developmental": ("developmentalT", None)}

    @pytest.mark.parametrize("pair", [[], ["maternalT", "maternalC", "developmentalT"]])
    def test_malformed_contrast(self, pair):
        with pytest.raises(ValueError, match="maternal"):
            PipelineConfig(counts_path="counts.txt", contrasts={"maternal": pair})

    def test_to_dict_is_json_serializable(self):
        data = PipelineConfig(counts_path="counts.txt").to_dict()
        assert json.loads(json.dumps(data))["contrasts"]["maternal"] == ["maternalT", "maternalC"]


class TestLoadConfig:
    """Test JSON config files."""

    def test_load(self, config_file):
        config = load_config(config_file)
        assert config.min_cpm == 1.0
        assert config.contrasts == {"maternal": ("maternalT", "maternalC")}

    def test_overrides_win(self, config_file):
        config = load_config(config_file, min_cpm=2.0, outdir=None)
        assert config.min_cpm == 2.0
        assert config.outdir == "results"

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"min_cmp": 1.0}))
        with pytest.raises(ValueError, match="min_cmp"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_json_config(tmp_path / "missing.json")

    def test_wrong_suffix(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("min_cpm: 1")
        with pytest.raises(ValueError, match="json"):
            load_json_config(path)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"min_cpm": }')
        with pytest.raises(ValueError, match="line 1"):
            load_json_config(path)

    def test_non_object_root(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError, match="expected JSON object"):
            load_json_config(path)


class TestCommandLine:
    """Test argument parsing into a PipelineConfig."""

    def test_defaults_untouched(self):
        args = build_parser().parse_args(["--counts", "counts.txt"])
        config = config_from_args(args)
        assert config.counts_path == "counts.txt"
        assert config.make_plots is True
        assert config.min_samples == 9

    def test_thresholds(self):
        args = build_parser().parse_args([
            "--counts", "counts.txt", "--min-cpm", "1", "--min-samples", "6",
            "--fdr", "0.1", "--min-fold-change", "1.5", "--no-plots",
        ])
        config = config_from_args(args)
        assert config.min_cpm == 1.0
        assert config.min_samples == 6
        assert config.fdr_threshold == 0.1
        assert config.min_fold_change == 1.5
        assert config.make_plots is False

    def test_config_file_with_override(self, config_file):
        args = build_parser().parse_args(["--config", str(config_file), "--outdir", "out"])
        config = config_from_args(args)
        assert config.min_cpm == 1.0
        assert config.outdir == "out"
