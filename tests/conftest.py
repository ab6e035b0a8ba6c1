import pytest
import yaml

from flicker.hardware.mock import MockBoard


@pytest.fixture
def boards():
    """Two mock boards with a few pins each"""
    return {
        "b1": MockBoard("b1", ["p1", "p2"]),
        "b2": MockBoard("b2", ["p3", "p4", "p5"]),
    }


@pytest.fixture
def dependencies(boards):
    return dict(boards)


@pytest.fixture
def flicker_attributes():
    """Multi-board attributes as the host would pass them"""
    return {
        "boards": [
            {"board": "b1", "pins": ["p1", "p2"]},
            {"board": "b2", "pins": ["p3"]},
        ],
        "interval_ms": 5,
    }


@pytest.fixture
def config_file(tmp_path, flicker_attributes):
    """Write the attributes to a temporary YAML file"""
    config_path = tmp_path / "flicker.yaml"
    with open(config_path, "w") as f:
        yaml.dump(flicker_attributes, f)
    return config_path
