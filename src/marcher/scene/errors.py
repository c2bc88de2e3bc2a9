"""Scene construction errors.

All errors derive from SceneError, itself a ValueError, so callers that only
care about "the scene is invalid" can catch one type.
"""


class SceneError(ValueError):
    """Base class for errors raised while building a scene."""


class UnknownCameraError(SceneError):
    """A render target references a camera name that was never defined."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown camera: {name!r}")
        self.name = name


class UnknownMaterialError(SceneError):
    """A geometry references a material name that was never defined."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown material: {name!r}")
        self.name = name


class LiteralError(SceneError):
    """A color, vector or numeric literal could not be parsed."""

    def __init__(self, key: str, value: object, expected: str) -> None:
        super().__init__(f"Malformed literal for {key!r}: expected {expected}, got {value!r}")
        self.key = key
        self.value = value


class SchemaError(SceneError):
    """The scene description has a missing key or an unknown variant."""
