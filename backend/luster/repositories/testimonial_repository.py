"""
Testimonial Repository
"""
from typing import List, Optional

from luster.domain.testimonial import Testimonial, TestimonialCreate, initials_from_name
from luster.core.database import get_db_connection_dict

TESTIMONIAL_COLUMNS = "id, name, product_type, rating, text, initials, story, is_approved"


class TestimonialRepository:

    def find_all(self, approved_only: bool = True) -> List[Testimonial]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            where_clause = "WHERE is_approved = TRUE" if approved_only else ""
            cursor.execute(f"""
                SELECT {TESTIMONIAL_COLUMNS}
                FROM testimonials
                {where_clause}
                ORDER BY id DESC
            """)
            return [Testimonial(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def create(self, data: TestimonialCreate) -> Testimonial:
        """New testimonials wait for admin approval"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO testimonials (name, product_type, rating, text, initials, story, is_approved)
                VALUES (%s, %s, %s, %s, %s, %s, FALSE)
                RETURNING {TESTIMONIAL_COLUMNS}
            """, (
                data.name, data.product_type, data.rating, data.text,
                initials_from_name(data.name), data.story,
            ))
            row = cursor.fetchone()
            conn.commit()
            return Testimonial(**row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def set_approved(self, testimonial_id: int, approved: bool) -> Optional[Testimonial]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE testimonials
                SET is_approved = %s
                WHERE id = %s
                RETURNING {TESTIMONIAL_COLUMNS}
            """, (approved, testimonial_id))
            row = cursor.fetchone()
            conn.commit()
            return Testimonial(**row) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
