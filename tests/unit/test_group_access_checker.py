from unittest.mock import MagicMock

from app.access.group_access_checker import GroupAccessChecker
from app.database.models import AssetRecord


def _make_asset(create_by: int = 1, group_id: int | None = None) -> AssetRecord:
    return AssetRecord(
        id=11,
        filename="a.png",
        stored_filename="a-1-2.png",
        file_type="image/png",
        file_size=1,
        path="uploads/a-1-2.png",
        storage_tier="DAM_STORAGE1",
        create_by=create_by,
        group_id=group_id,
    )


def _make_checker(
    asset: AssetRecord | None, permission: str | None = None
) -> tuple[GroupAccessChecker, MagicMock]:
    asset_repo = MagicMock()
    asset_repo.find_by_id.return_value = asset
    membership_repo = MagicMock()
    membership_repo.permission_of.return_value = permission
    return GroupAccessChecker(asset_repo, membership_repo), membership_repo


class TestCanAccess:
    def test_creator_always_has_access(self) -> None:
        checker, membership_repo = _make_checker(_make_asset(create_by=1, group_id=3))

        assert checker.can_access(11, 1) is True
        membership_repo.permission_of.assert_not_called()

    def test_personal_asset_is_creator_only(self) -> None:
        checker, _membership = _make_checker(_make_asset(create_by=1), permission="admin")
        assert checker.can_access(11, 2) is False

    def test_group_member_has_access(self) -> None:
        checker, membership_repo = _make_checker(_make_asset(group_id=3), permission="viewer")

        assert checker.can_access(11, 2) is True
        membership_repo.permission_of.assert_called_once_with(3, 2)

    def test_non_member_is_denied(self) -> None:
        checker, _membership = _make_checker(_make_asset(group_id=3), permission=None)
        assert checker.can_access(11, 2) is False

    def test_missing_asset_is_denied(self) -> None:
        checker, _membership = _make_checker(None)
        assert checker.can_access(11, 1) is False


class TestCanUploadToGroup:
    def test_admin_and_member_may_upload(self) -> None:
        for permission in ("admin", "member"):
            checker, _membership = _make_checker(None, permission=permission)
            assert checker.can_upload_to_group(3, 2) is True

    def test_viewer_may_not_upload(self) -> None:
        checker, _membership = _make_checker(None, permission="viewer")
        assert checker.can_upload_to_group(3, 2) is False

    def test_outsider_may_not_upload(self) -> None:
        checker, _membership = _make_checker(None)
        assert checker.can_upload_to_group(3, 2) is False
