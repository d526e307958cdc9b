"""API revision type and the list of revisions this SDK understands."""

from typing import NamedTuple


class Version(NamedTuple):
    """Three-component API revision, ordered as a tuple."""

    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, value: "str | Version") -> "Version":
        """Parse a dotted ``major.minor.patch`` string.

        Raises:
            ValueError: If the string is not three dot-separated integers.
        """
        if isinstance(value, Version):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Invalid version: {value!r}")
        parts = value.strip().split(".")
        if len(parts) != 3 or not all(part.isdigit() for part in parts):
            raise ValueError(f"Invalid version: {value!r}")
        return cls(*(int(part) for part in parts))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def try_parse(value) -> Version | None:
    """Parse a version, returning None instead of raising."""
    try:
        return Version.parse(value)
    except ValueError:
        return None


V1_1_1 = Version(1, 1, 1)
V1_2_0 = Version(1, 2, 0)
V1_3_0 = Version(1, 3, 0)

SUPPORTED_VERSIONS: tuple[Version, ...] = (V1_1_1, V1_2_0, V1_3_0)
DEFAULT_VERSION = V1_1_1
LATEST_VERSION = SUPPORTED_VERSIONS[-1]


def is_supported(version) -> bool:
    """Whether a version is one of SUPPORTED_VERSIONS exactly."""
    return try_parse(version) in SUPPORTED_VERSIONS


def closest_supported(version: Version) -> Version:
    """Snap a version to the nearest supported one.

    Distance weights major over minor over patch; ties go to the lower
    supported version.
    """

    def distance(candidate: Version) -> int:
        return (
            abs(version.major - candidate.major) * 10_000
            + abs(version.minor - candidate.minor) * 100
            + abs(version.patch - candidate.patch)
        )

    return min(SUPPORTED_VERSIONS, key=distance)
