import logging

import pytest

from wellsteer.config import (
    DEFAULT_CONFIG,
    DEFAULTS_FILENAME,
    CameraConfig,
    Config,
    get_config,
    get_course_length,
    load_yaml,
)
from wellsteer.logging_config import setup_logging


def test_defaults():
    config = get_config()

    assert config == DEFAULT_CONFIG
    assert config.curve.rotation_rpm_threshold == 5.
    assert config.curve.manual_input_constraints['slide_distance'] == (1., 100.)
    assert config.camera.zoom_max == 3.
    assert config.render.gamma_bands[-1][1] == 'high'


def test_overrides():
    config = get_config(quality={'max_dls': 10.})

    assert config.quality.max_dls == 10.
    assert config.quality.max_inc_jump == DEFAULT_CONFIG.quality.max_inc_jump
    assert DEFAULT_CONFIG.quality.max_dls == 15.


def test_yaml_file(tmp_path):
    filename = tmp_path / "wellsteer.yaml"
    filename.write_text(
        "curve:\n"
        "  rotation_rpm_threshold: 10\n"
        "camera:\n"
        "  zoom_max: 4\n"
    )
    config = get_config(str(filename), camera={'zoom_max': 5})

    assert config.curve.rotation_rpm_threshold == 10.
    assert config.curve.default_build_rate == 2.5
    assert config.camera.zoom_max == 5.


def test_invalid_files(tmp_path):
    filename = tmp_path / "unknown.yaml"
    filename.write_text("pumps:\n  liners: 6\n")
    with pytest.raises(ValueError):
        get_config(str(filename))

    filename = tmp_path / "list.yaml"
    filename.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError):
        get_config(str(filename))


def test_invalid_values():
    with pytest.raises(ValueError):
        get_config(camera={'smoothing_keep': 0.5})
    with pytest.raises(ValueError):
        get_config(curve={'moving_average_count': 1})
    with pytest.raises(ValueError):
        get_config(curve={'manual_input_constraints': {'bend_angle': [5, 1]}})


def test_defaults_only_in_yaml():
    with pytest.raises(ValueError):
        CameraConfig()
    with pytest.raises(ValueError):
        CameraConfig(**{
            k: v for k, v in DEFAULT_CONFIG.camera.model_dump().items()
            if k != 'zoom_max'
        })

    data = load_yaml(DEFAULTS_FILENAME)
    for section, model in Config.model_fields.items():
        assert set(data[section]) == set(model.annotation.model_fields), (
            f"defaults.yaml section {section} does not match its model"
        )


def test_course_length():
    assert get_course_length('feet') == 100.
    assert get_course_length('meters') == 30.
    with pytest.raises(AssertionError):
        get_course_length('yards')


def test_setup_logging(tmp_path):
    log_file = tmp_path / "wellsteer.log"
    logger = setup_logging(logging.DEBUG, str(log_file))

    assert logger.name == "wellsteer"
    assert len(logger.handlers) == 2

    logging.getLogger("wellsteer.survey").debug("survey message")
    for handler in logger.handlers:
        handler.flush()
    assert "survey message" in log_file.read_text()

    logger = setup_logging()
    assert len(logger.handlers) == 1
