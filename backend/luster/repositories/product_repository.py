"""
Product Repository - Data Access Layer for Products

Handles all database queries for products and returns Product domain models.
"""
from typing import List, Optional, Tuple
from psycopg2.extras import Json

from luster.domain.product import Product, ProductCreate, ProductUpdate
from luster.core.database import get_db_connection_dict

PRODUCT_COLUMNS = """
    id, name, description, base_price, image_url, additional_images,
    details, dimensions, is_new, is_bestseller, is_featured, category,
    ai_inputs, created_at
"""

# Columns stored as JSON
_JSON_FIELDS = {"additional_images", "ai_inputs"}


class ProductRepository:
    """
    Repository for Product data access

    All SQL queries for products are centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        return Product(
            id=row['id'],
            name=row['name'],
            description=row.get('description') or "",
            base_price=row['base_price'],
            image_url=row.get('image_url'),
            additional_images=row.get('additional_images') or [],
            details=row.get('details'),
            dimensions=row.get('dimensions'),
            is_new=bool(row.get('is_new')),
            is_bestseller=bool(row.get('is_bestseller')),
            is_featured=bool(row.get('is_featured')),
            category=row.get('category'),
            ai_inputs=row.get('ai_inputs'),
            created_at=row.get('created_at')
        )

    @staticmethod
    def _db_value(field: str, value):
        if field in _JSON_FIELDS and value is not None:
            return Json(value)
        return value

    def find_by_id(self, product_id: int) -> Optional[Product]:
        """
        Find product by ID

        Returns:
            Product or None if not found
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                WHERE id = %s
            """, (product_id,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_product(row)

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        category: Optional[str] = None,
        featured: Optional[bool] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        """
        Find products with filters

        Args:
            category: Filter by category (case-insensitive)
            featured: Filter by the featured flag
            search: Search in name or description
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            Tuple of (list of products, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if category:
                conditions.append("LOWER(category) = LOWER(%s)")
                params.append(category)

            if featured is not None:
                conditions.append("is_featured = %s")
                params.append(featured)

            if search:
                conditions.append("(name ILIKE %s OR description ILIKE %s)")
                search_term = f"%{search}%"
                params.extend([search_term, search_term])

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM products
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                WHERE {where_clause}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            rows = cursor.fetchall()
            products = [self._map_row_to_product(row) for row in rows]

            return products, total

        finally:
            cursor.close()
            conn.close()

    def find_featured(self, limit: int = 8) -> List[Product]:
        products, _ = self.find_all(featured=True, limit=limit)
        return products

    def create(self, data: ProductCreate) -> Product:
        values = data.model_dump(mode="json")
        fields = list(values.keys())
        placeholders = ", ".join(["%s"] * len(fields))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO products ({", ".join(fields)}, created_at)
                VALUES ({placeholders}, NOW())
                RETURNING {PRODUCT_COLUMNS}
            """, [self._db_value(f, values[f]) for f in fields])

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_product(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, product_id: int, data: ProductUpdate) -> Optional[Product]:
        """
        Update the fields set on `data`

        Returns:
            Updated Product, or None if the product doesn't exist
        """
        values = data.model_dump(mode="json", exclude_unset=True)
        if not values:
            return self.find_by_id(product_id)

        assignments = ", ".join(f"{field} = %s" for field in values)
        params = [self._db_value(f, v) for f, v in values.items()]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE products
                SET {assignments}
                WHERE id = %s
                RETURNING {PRODUCT_COLUMNS}
            """, params + [product_id])

            row = cursor.fetchone()
            conn.commit()
            if not row:
                return None
            return self._map_row_to_product(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, product_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM products WHERE id = %s RETURNING id", (product_id,))
            deleted = cursor.fetchone() is not None
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
