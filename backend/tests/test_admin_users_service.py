import unittest
from unittest.mock import MagicMock, patch

from services import admin_users_service


class ListUsersTests(unittest.IsolatedAsyncioTestCase):
    async def test_profiles_are_joined_with_emails_and_roles(self):
        profiles = [
            {"user_id": "u2", "full_name": "Second", "balance": 3},
            {"user_id": "u1", "full_name": "First", "balance": 0},
        ]
        with patch.object(admin_users_service, "fetch_profiles", MagicMock(return_value=profiles)), \
                patch.object(admin_users_service, "fetch_user_emails", MagicMock(return_value={"u1": "a@example.com"})), \
                patch.object(admin_users_service, "fetch_user_roles", MagicMock(return_value={"u2": "admin"})):
            users = await admin_users_service.list_users()

        dumped = [user.model_dump() for user in users]
        self.assertEqual(
            dumped,
            [
                {"user_id": "u2", "email": None, "role": "admin", "full_name": "Second", "balance": 3},
                {"user_id": "u1", "email": "a@example.com", "role": "user", "full_name": "First", "balance": 0},
            ],
        )
