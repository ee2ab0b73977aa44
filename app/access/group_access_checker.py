from app.access.base import AccessChecker
from app.database.repositories.asset_repository import AssetRepository
from app.database.repositories.group_membership_repository import GroupMembershipRepository

UPLOAD_PERMISSIONS = frozenset({"admin", "member"})


class GroupAccessChecker(AccessChecker):
    """Owner-or-group-member access rules over the assets and group_members tables.

    A personal asset (no group) is visible to its creator only. A group asset
    is visible to its creator and to every member of the group, viewers
    included. Uploading into a group needs admin or member standing.
    """

    def __init__(
        self,
        asset_repo: AssetRepository,
        membership_repo: GroupMembershipRepository,
    ) -> None:
        self._asset_repo = asset_repo
        self._membership_repo = membership_repo

    def can_access(self, asset_id: int, user_id: int) -> bool:
        asset = self._asset_repo.find_by_id(asset_id)
        if asset is None:
            return False
        if asset.create_by == user_id:
            return True
        if asset.group_id is None:
            return False
        return self._membership_repo.permission_of(asset.group_id, user_id) is not None

    def can_upload_to_group(self, group_id: int, user_id: int) -> bool:
        return self._membership_repo.permission_of(group_id, user_id) in UPLOAD_PERMISSIONS

    def group_ids_for(self, user_id: int) -> list[int]:
        return self._membership_repo.group_ids_for(user_id)
