"""
Design Repository - custom design requests and their comments
"""
from typing import List, Optional
from psycopg2.extras import Json

from luster.domain.design import (
    CustomDesignRequest,
    DesignComment,
    DesignRequestCreate,
    DesignStatus,
)
from luster.core.database import get_db_connection_dict

DESIGN_COLUMNS = """
    id, user_id, full_name, email, phone, country, metal_type, primary_stones,
    notes, image_url, image_urls, status, consultation_fee_paid,
    initial_estimate, final_estimate, iterations_count, created_at
"""

COMMENT_COLUMNS = "id, design_request_id, content, created_by, is_admin, created_at"

# Fields an update may touch
_UPDATABLE = {
    "status", "initial_estimate", "final_estimate", "iterations_count",
    "notes", "consultation_fee_paid",
}


class DesignRepository:

    @staticmethod
    def _map_row(row: dict) -> CustomDesignRequest:
        data = dict(row)
        data["primary_stones"] = data.get("primary_stones") or []
        data["image_urls"] = data.get("image_urls") or []
        return CustomDesignRequest(**data)

    def create(self, user_id: Optional[int], data: DesignRequestCreate) -> CustomDesignRequest:
        """The first image URL becomes the main image_url"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO design_requests (
                    user_id, full_name, email, phone, country, metal_type,
                    primary_stones, notes, image_url, image_urls, status,
                    consultation_fee_paid, iterations_count, created_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, FALSE, 0, NOW())
                RETURNING {DESIGN_COLUMNS}
            """, (
                user_id, data.full_name, data.email, data.phone, data.country,
                data.metal_type, Json(data.primary_stones), data.notes,
                data.image_urls[0], Json(data.image_urls),
                DesignStatus.PENDING_ACCEPTANCE.value,
            ))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_all(self, user_id: Optional[int] = None, status: Optional[str] = None) -> List[CustomDesignRequest]:
        """Newest first, optionally for one user or one status"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []
            if user_id is not None:
                conditions.append("user_id = %s")
                params.append(user_id)
            if status:
                conditions.append("status = %s")
                params.append(status)
            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT {DESIGN_COLUMNS}
                FROM design_requests
                WHERE {where_clause}
                ORDER BY created_at DESC, id DESC
            """, params)
            return [self._map_row(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, design_id: int, with_comments: bool = False) -> Optional[CustomDesignRequest]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {DESIGN_COLUMNS}
                FROM design_requests
                WHERE id = %s
            """, (design_id,))
            row = cursor.fetchone()
            if not row:
                return None

            design = self._map_row(row)

            if with_comments:
                cursor.execute(f"""
                    SELECT {COMMENT_COLUMNS}
                    FROM design_request_comments
                    WHERE design_request_id = %s
                    ORDER BY created_at, id
                """, (design_id,))
                design.comments = [DesignComment(**c) for c in cursor.fetchall()]

            return design

        finally:
            cursor.close()
            conn.close()

    def update(self, design_id: int, values: dict) -> Optional[CustomDesignRequest]:
        values = {k: v for k, v in values.items() if k in _UPDATABLE}
        if not values:
            return self.find_by_id(design_id)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE design_requests
                SET {", ".join(f"{field} = %s" for field in values)}
                WHERE id = %s
                RETURNING {DESIGN_COLUMNS}
            """, list(values.values()) + [design_id])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row(row) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def add_comment(self, design_id: int, content: str, created_by: str, is_admin: bool) -> DesignComment:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO design_request_comments (design_request_id, content, created_by, is_admin, created_at)
                VALUES (%s, %s, %s, %s, NOW())
                RETURNING {COMMENT_COLUMNS}
            """, (design_id, content, created_by, is_admin))
            row = cursor.fetchone()
            conn.commit()
            return DesignComment(**row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
