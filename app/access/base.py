from abc import ABC, abstractmethod


class AccessChecker(ABC):
    """Contract for asset permission checks."""

    @abstractmethod
    def can_access(self, asset_id: int, user_id: int) -> bool:
        """True if the user created the asset or belongs to the asset's group."""

    @abstractmethod
    def can_upload_to_group(self, group_id: int, user_id: int) -> bool:
        """True if the user holds member or admin standing in the group."""

    @abstractmethod
    def group_ids_for(self, user_id: int) -> list[int]:
        """Groups whose assets the user may see."""
