from app.database.connection import get_connection


class GroupMembershipRepository:
    """Read-only queries against the group_members table."""

    def permission_of(self, group_id: int, user_id: int) -> str | None:
        """The user's standing in the group (admin/member/viewer), or None."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT permission FROM group_members WHERE group_id = %s AND user_id = %s",
                    (group_id, user_id),
                )
                row = cur.fetchone()
        if row is None:
            return None
        return str(row[0])

    def group_ids_for(self, user_id: int) -> list[int]:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT group_id FROM group_members WHERE user_id = %s ORDER BY group_id",
                    (user_id,),
                )
                rows = cur.fetchall()
        return [int(row[0]) for row in rows]
