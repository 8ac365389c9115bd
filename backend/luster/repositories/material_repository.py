"""
Material Repository - metal_types and stone_types

Both tables share the same shape (stones add image_url), so one repository
class serves both, selected by `kind`.
"""
from typing import List, Optional, Union

from luster.domain.material import MetalType, StoneType, MaterialCreate, MaterialUpdate
from luster.core.database import get_db_connection_dict

_TABLES = {
    "metal": ("metal_types", MetalType,
              "id, name, description, price_modifier, display_order, is_active, color, created_at"),
    "stone": ("stone_types", StoneType,
              "id, name, description, price_modifier, display_order, is_active, color, image_url, created_at"),
}

Material = Union[MetalType, StoneType]


class MaterialRepository:
    """
    Repository for MetalType / StoneType data access

    Usage:
        metals = MaterialRepository("metal")
        metals.find_all(active_only=True)
    """

    def __init__(self, kind: str):
        if kind not in _TABLES:
            raise ValueError(f"Unknown material kind '{kind}'")
        self.kind = kind
        self.table, self.model, self.columns = _TABLES[kind]

    def _map_row(self, row: dict) -> Material:
        data = dict(row)
        data["price_modifier"] = float(data.get("price_modifier") or 0)
        return self.model(**data)

    def _fetch_one(self, query: str, params) -> Optional[Material]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(query, params)
            row = cursor.fetchone()
            return self._map_row(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_all(self, active_only: bool = False) -> List[Material]:
        """All types ordered by display_order, then name"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            where_clause = "WHERE is_active = TRUE" if active_only else ""
            cursor.execute(f"""
                SELECT {self.columns}
                FROM {self.table}
                {where_clause}
                ORDER BY display_order, name
            """)
            return [self._map_row(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, material_id: int) -> Optional[Material]:
        return self._fetch_one(
            f"SELECT {self.columns} FROM {self.table} WHERE id = %s",
            (material_id,)
        )

    def find_by_name(self, name: str) -> Optional[Material]:
        """Case-insensitive exact name match"""
        return self._fetch_one(
            f"SELECT {self.columns} FROM {self.table} WHERE LOWER(name) = LOWER(%s)",
            (name.strip(),)
        )

    def find_contained_in(self, text: str) -> Optional[Material]:
        """
        First type whose name appears inside `text`.

        'Natural Diamond (center)' matches a type named 'Natural Diamond'.
        Longer names win so 'Lab Diamond' beats 'Diamond'.
        """
        return self._fetch_one(f"""
            SELECT {self.columns}
            FROM {self.table}
            WHERE POSITION(LOWER(name) IN LOWER(%s)) > 0
            ORDER BY LENGTH(name) DESC
            LIMIT 1
        """, (text,))

    def create(self, data: MaterialCreate) -> Material:
        values = data.model_dump()
        if self.kind == "metal":
            values.pop("image_url", None)
        fields = list(values.keys())

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO {self.table} ({", ".join(fields)}, created_at)
                VALUES ({", ".join(["%s"] * len(fields))}, NOW())
                RETURNING {self.columns}
            """, [values[f] for f in fields])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, material_id: int, data: MaterialUpdate) -> Optional[Material]:
        values = data.model_dump(exclude_unset=True)
        if self.kind == "metal":
            values.pop("image_url", None)
        if not values:
            return self.find_by_id(material_id)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE {self.table}
                SET {", ".join(f"{field} = %s" for field in values)}
                WHERE id = %s
                RETURNING {self.columns}
            """, list(values.values()) + [material_id])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row(row) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, material_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"DELETE FROM {self.table} WHERE id = %s RETURNING id", (material_id,))
            deleted = cursor.fetchone() is not None
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
