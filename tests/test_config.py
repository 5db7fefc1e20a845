import pytest

from trackclassify.config import EngineConfig
from trackclassify.errors import ConfigurationError
from trackclassify.utils.config import load_yaml


def _yaml(tmp_path, text: str) -> str:
    p = tmp_path / "engine.yaml"
    p.write_text(text, encoding="utf-8")
    return str(p)


def test_from_dict_reads_nested_sections(tmp_path) -> None:
    path = _yaml(
        tmp_path,
        "\n".join(
            [
                "ingest: {min_detection_score: 0.5}",
                "association: {backend: Hungarian, gate_distance: 120, track_timeout_ms: 1500}",
                "resolution: {normalize: false}",
                "activity: {run_speed: 90}",
                "theft: {valuable_classes: [laptop], suppression_ms: 2000}",
                "density: {low_density_count: 3, high_density_count: 6, hysteresis_frames: 2}",
                "weapons: {enabled: false}",
            ]
        ),
    )
    cfg = EngineConfig.from_dict(load_yaml(path))
    cfg.validate()
    assert cfg.min_detection_score == 0.5
    assert cfg.association_backend == "hungarian"
    assert cfg.association_gate_distance == 120.0
    assert cfg.track_timeout_s == 1.5
    assert cfg.run_speed == 90.0
    assert cfg.walk_speed == 40.0
    assert cfg.valuable_classes == frozenset({"laptop"})
    assert cfg.theft_suppression_s == 2.0
    assert cfg.density_hysteresis_frames == 2
    assert cfg.weapons_enabled is False
    assert cfg.tracked_classes == frozenset({"person", "laptop", "knife", "gun"})
    assert cfg.scale_for(1280, 960) == 1.0


def test_defaults_match_shipped_yaml() -> None:
    from pathlib import Path

    shipped = Path(__file__).resolve().parents[1] / "configs" / "engine.yaml"
    assert EngineConfig.from_dict(load_yaml(str(shipped))) == EngineConfig()


def test_scale_for_uses_frame_diagonal() -> None:
    cfg = EngineConfig()
    assert cfg.scale_for(640, 480) == 1.0
    assert cfg.scale_for(1280, 960) == 2.0
    assert cfg.scale_for(0, 480) == 1.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"min_detection_score": 1.2},
        {"association_backend": "iou"},
        {"association_gate_distance": -1.0},
        {"association_gate_distance": float("nan")},
        {"track_timeout_ms": 0.0},
        {"velocity_window_size": 0},
        {"position_history_size": 1},
        {"walk_speed": 100.0},
        {"low_density_count": 40},
        {"density_hysteresis_frames": 0},
        {"reference_width": 0},
    ],
)
def test_validate_rejects_bad_values(overrides) -> None:
    with pytest.raises(ConfigurationError):
        EngineConfig().with_overrides(**overrides).validate()


def test_from_dict_wraps_type_errors() -> None:
    with pytest.raises(ConfigurationError):
        EngineConfig.from_dict({"association": {"gate_distance": "far"}})
    with pytest.raises(ConfigurationError):
        EngineConfig.from_dict({"theft": {"valuable_classes": "laptop"}})


def test_load_yaml_requires_mapping(tmp_path) -> None:
    with pytest.raises(ValueError):
        load_yaml(_yaml(tmp_path, "- a\n- b\n"))
    assert load_yaml(_yaml(tmp_path, "")) == {}
