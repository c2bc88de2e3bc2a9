"""Scene file loading and saving.

Scene files are YAML documents following the SceneConfig schema. JSON is a
subset of YAML, so JSON scene files load unchanged.

    materials:
      gold: {diffuse: "#d9a640", specular: 1, shininess: 32}
    geometry:
      - {type: julia, c: [-0.2, 0.6, 0.2, 0.2], material: gold}
    lights:
      - {direction: [-1, 1, -1], intensity: {diffuse: 0.9}}
    cameras:
      main: {pos: [0, 0, -3.5], facing: [0, 0, 1], right: [-1, 0, 0],
             width: 3, height: 2, focal_len: 2}
    renders:
      - {camera: main, width: 300}
    background: 0.05

Hex colors must be quoted since ``#`` starts a YAML comment. Write small
floats with a decimal point (``1.0e-4``); YAML reads ``1e-4`` as a string.
"""

import json
import logging
from pathlib import Path

import yaml

from src.marcher.scene.errors import SchemaError
from src.marcher.scene.manager import SceneManager

logger = logging.getLogger(__name__)

JSON_SUFFIXES = (".json",)


def load_scene(path: str | Path) -> SceneManager:
    """Load a YAML or JSON scene file.

    Args:
        path: Path to the scene file.

    Returns:
        A populated SceneManager.

    Raises:
        OSError: If the file cannot be read.
        SceneError: If the file cannot be parsed or does not describe a
            valid scene.
    """
    path = Path(path)
    logger.debug("Loading scene from %s", path)
    text = path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" at line {mark.line + 1}, column {mark.column + 1}" if mark is not None else ""
        problem = getattr(e, "problem", None) or str(e)
        raise SchemaError(f"{path}: invalid scene file{where}: {problem}") from e

    scene = SceneManager()
    scene.from_dict(data)
    return scene


def save_scene(scene: SceneManager, path: str | Path) -> None:
    """Write a scene file that load_scene() accepts.

    ``.json`` paths are written as JSON, anything else as YAML.
    """
    path = Path(path)
    data = scene.to_dict()
    if path.suffix.lower() in JSON_SUFFIXES:
        text = json.dumps(data, indent=2) + "\n"
    else:
        text = yaml.safe_dump(data, sort_keys=False)
    path.write_text(text, encoding="utf-8")
    logger.info("Saved scene to %s", path)
