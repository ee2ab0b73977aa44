from enum import Enum
from pathlib import Path, PurePosixPath

from app.storage.exceptions import UnsupportedStorageTierError

UPLOADS_DIRNAME = "uploads"
THUMBNAILS_DIRNAME = "thumbnails"


class StorageTier(str, Enum):
    STORAGE1 = "DAM_STORAGE1"
    STORAGE2 = "DAM_STORAGE2"


def parse_tier(name: str | StorageTier | None) -> StorageTier | None:
    """Resolve a tier name; None passes through.

    Raises:
        UnsupportedStorageTierError: if ``name`` is not a known tier.
    """
    if name is None or isinstance(name, StorageTier):
        return name
    try:
        return StorageTier(name)
    except ValueError as exc:
        raise UnsupportedStorageTierError(
            f"storage tier '{name}' is not supported. "
            f"Choose from: {[t.value for t in StorageTier]}"
        ) from exc


class StorageLocator:
    """Maps storage tiers to directories under a common storage root.

    Layout per tier::

        <storage_root>/<tier>/uploads/              originals
        <storage_root>/<tier>/uploads/thumbnails/   previews

    Paths persisted in the database are relative to the tier directory, so
    the storage root can move without invalidating rows.
    """

    def __init__(
        self,
        storage_root: Path,
        default_tier: StorageTier | str = StorageTier.STORAGE1,
    ) -> None:
        self._storage_root = storage_root
        tier = parse_tier(default_tier)
        if tier is None:
            raise UnsupportedStorageTierError("a default storage tier is required")
        self._default_tier = tier

    def tier_dir(self, tier: StorageTier) -> Path:
        return self._storage_root / tier.value

    def uploads_dir(self, tier: StorageTier) -> Path:
        return self.tier_dir(tier) / UPLOADS_DIRNAME

    def thumbnails_dir(self, tier: StorageTier) -> Path:
        return self.uploads_dir(tier) / THUMBNAILS_DIRNAME

    def ensure_directories(self, tier: StorageTier) -> None:
        """Create the tier's directory tree. Safe to call from many workers at once."""
        for directory in (self.tier_dir(tier), self.uploads_dir(tier), self.thumbnails_dir(tier)):
            directory.mkdir(parents=True, exist_ok=True)

    def select_tier(self, preferred: StorageTier | str | None = None) -> StorageTier:
        """Return the preferred tier, or the static default, with directories in place.

        No capacity or usage accounting takes part in the choice.
        """
        tier = parse_tier(preferred) or self._default_tier
        self.ensure_directories(tier)
        return tier

    def relative_path(self, tier: StorageTier, full_path: Path) -> str:
        """Strip the tier directory from ``full_path``; result uses forward slashes.

        Raises:
            ValueError: if ``full_path`` is not inside the tier directory.
        """
        base = self.tier_dir(tier).resolve()
        relative = full_path.resolve().relative_to(base)
        return PurePosixPath(*relative.parts).as_posix()

    def full_path(self, tier: StorageTier, relative_path: str) -> Path:
        """Inverse of ``relative_path``. Rejects paths that escape the tier directory."""
        base = self.tier_dir(tier).resolve()
        candidate = (base / relative_path).resolve()
        if candidate != base and base not in candidate.parents:
            raise ValueError(f"path '{relative_path}' escapes storage tier {tier.value}")
        return candidate
