from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError


class TestJobConfig:

    def test_inline_job_validates(self, inline_job_dict):
        from latticecut.config import JobConfig

        cfg = JobConfig.model_validate(inline_job_dict)
        assert cfg.structure.geometry is None
        assert cfg.structure.cell == [3.61, 3.61, 3.61, 90.0, 90.0, 90.0]
        assert [t.type for t in cfg.transforms] == ["slab", "supercell"]
        assert cfg.transforms[0].miller == [1, 1, 1]
        assert cfg.search.max_search_limit == 8

    def test_defaults(self):
        from latticecut.config import JobConfig
        from latticecut.constants import DEFAULT_MAX_SEARCH_LIMIT, DEFAULT_SEARCH_LIMIT

        cfg = JobConfig.model_validate({"structure": {"geometry": "bulk.cif"}})
        assert cfg.transforms == []
        assert cfg.output is None
        assert cfg.search.search_limit == DEFAULT_SEARCH_LIMIT
        assert cfg.search.max_search_limit == DEFAULT_MAX_SEARCH_LIMIT

    def test_geometry_and_inline_rejected(self):
        from latticecut.config import JobConfig

        with pytest.raises(ValidationError):
            JobConfig.model_validate(
                {"structure": {"geometry": "bulk.cif", "cell": [1, 1, 1, 90, 90, 90]}}
            )

    def test_neither_geometry_nor_cell_rejected(self):
        from latticecut.config import JobConfig

        with pytest.raises(ValidationError):
            JobConfig.model_validate({"structure": {}})

    def test_cell_needs_six_values(self):
        from latticecut.config import StructureConfig

        with pytest.raises(ValidationError):
            StructureConfig(cell=[3.0, 3.0, 3.0])

    def test_site_needs_three_coordinates(self):
        from latticecut.config import SiteConfig

        with pytest.raises(ValidationError):
            SiteConfig(element="Cu", position=[0.0, 0.0])


class TestTransformConfig:

    @pytest.mark.parametrize("step", [
        {"type": "rotate"},
        {"type": "supercell"},
        {"type": "supercell", "repeat": [2, 2]},
        {"type": "supercell", "repeat": [2, 0, 1]},
        {"type": "slab"},
        {"type": "slab", "miller": [0, 0, 0]},
        {"type": "slab", "miller": [1, 1, 1], "thickness": 0},
        {"type": "slab", "miller": [1, 1, 1], "vacuum": -1.0},
        {"type": "convert"},
        {"type": "convert", "to": "rhombic"},
        {"type": "convert", "to": "primitive", "symprec": 0.0},
    ])
    def test_invalid_steps_rejected(self, step):
        from latticecut.config import TransformConfig

        with pytest.raises(ValidationError):
            TransformConfig.model_validate(step)

    def test_convert_step(self):
        from latticecut.config import TransformConfig
        from latticecut.constants import CONVERSION_SYMPREC

        step = TransformConfig.model_validate({"type": "convert", "to": "conventional"})
        assert step.to == "conventional"
        assert step.symprec == CONVERSION_SYMPREC

    def test_slab_defaults(self):
        from latticecut.config import TransformConfig

        step = TransformConfig.model_validate({"type": "slab", "miller": [1, -1, 0]})
        assert step.thickness == 1
        assert step.vacuum == 0.0


class TestSearchConfig:

    @pytest.mark.parametrize("limits", [
        {"search_limit": 0},
        {"search_limit": 6, "max_search_limit": 5},
    ])
    def test_invalid_limits_rejected(self, limits):
        from latticecut.config import SearchConfig

        with pytest.raises(ValidationError):
            SearchConfig(**limits)


class TestLoadConfig:

    def test_load_resolves_relative_paths(self, tmp_path):
        from latticecut.config import load_config

        job = tmp_path / "job.yaml"
        job.write_text(textwrap.dedent("""\
            structure:
              geometry: bulk.cif
            transforms:
              - type: supercell
                repeat: [2, 2, 2]
            output: out/POSCAR
        """))
        cfg = load_config(job)
        assert Path(cfg.structure.geometry) == tmp_path / "bulk.cif"
        assert Path(cfg.output) == tmp_path / "out" / "POSCAR"

    def test_absolute_paths_untouched(self, tmp_path):
        from latticecut.config import load_config

        geometry = tmp_path / "elsewhere" / "bulk.cif"
        job = tmp_path / "job.yaml"
        job.write_text(yaml.safe_dump({"structure": {"geometry": str(geometry)}}))
        assert load_config(job).structure.geometry == str(geometry)

    def test_missing_file(self, tmp_path):
        from latticecut.config import load_config

        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        from latticecut.config import load_config

        job = tmp_path / "job.yaml"
        job.write_text("")
        with pytest.raises(ValueError, match="empty"):
            load_config(job)

    def test_comments_only(self, tmp_path):
        from latticecut.config import load_config

        job = tmp_path / "job.yaml"
        job.write_text("# nothing here\n")
        with pytest.raises(ValueError, match="no YAML keys"):
            load_config(job)

    def test_top_level_list(self, tmp_path):
        from latticecut.config import load_config

        job = tmp_path / "job.yaml"
        job.write_text("- structure\n- transforms\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(job)

    def test_invalid_content(self, tmp_path):
        from latticecut.config import load_config

        job = tmp_path / "job.yaml"
        job.write_text(yaml.safe_dump({"structure": {"geometry": "a.cif"},
                                       "transforms": [{"type": "slab"}]}))
        with pytest.raises(ValidationError):
            load_config(job)

    def test_template_is_valid(self, tmp_path):
        from latticecut.config import CONFIG_TEMPLATE, load_config

        job = tmp_path / "job.yaml"
        job.write_text(CONFIG_TEMPLATE, encoding="utf-8")
        cfg = load_config(job)
        assert cfg.structure.symmetry_operations[0] == "x,y,z"
        assert [t.type for t in cfg.transforms] == ["slab", "supercell"]
        assert Path(cfg.output).parent == tmp_path
