"""
User Repository
"""
from typing import List, Optional, Tuple

from luster.domain.user import User
from luster.core.database import get_db_connection_dict

USER_COLUMNS = "id, username, email, role, created_at"


class UserRepository:

    def find_by_login(self, login: str) -> Optional[Tuple[User, str]]:
        """
        Find a user by username or email.

        Returns:
            (User, password_hash) or None
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {USER_COLUMNS}, password_hash
                FROM users
                WHERE LOWER(username) = LOWER(%s) OR LOWER(email) = LOWER(%s)
                ORDER BY id
                LIMIT 1
            """, (login, login))
            row = cursor.fetchone()
            if not row:
                return None
            data = dict(row)
            password_hash = data.pop("password_hash")
            return User(**data), password_hash

        finally:
            cursor.close()
            conn.close()

    def exists(self, username: str, email: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id FROM users
                WHERE LOWER(username) = LOWER(%s) OR LOWER(email) = LOWER(%s)
            """, (username, email))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def create(self, username: str, email: str, password_hash: str, role: str = "customer") -> User:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO users (username, email, password_hash, role, created_at)
                VALUES (%s, %s, %s, %s, NOW())
                RETURNING {USER_COLUMNS}
            """, (username, email, password_hash, role))
            row = cursor.fetchone()
            conn.commit()
            return User(**row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, user_id: int) -> Optional[User]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = %s", (user_id,))
            row = cursor.fetchone()
            return User(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_all(self) -> List[User]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at DESC, id DESC")
            return [User(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()
