"""
Order Repository - Data Access Layer for Orders

Returns Order domain models with their items.
"""
from typing import Dict, List, Optional, Tuple
from psycopg2.extras import Json

from luster.domain.order import Order, OrderItem, PaymentStatus, OrderStatus
from luster.core.database import get_db_connection_dict

ORDER_COLUMNS = """
    id, user_id, customer_name, customer_email, customer_phone,
    shipping_address, special_instructions, currency, total_amount,
    advance_amount, balance_amount, payment_status, order_status,
    payment_method, payment_id, created_at
"""

ITEM_COLUMNS = """
    id, order_id, product_id, metal_type_id, stone_type_id, price, currency,
    is_custom_design, is_consultation_fee, design_request_id
"""

_UPDATABLE = {"payment_status", "order_status", "payment_method", "payment_id"}


class OrderRepository:
    """
    Repository for Order data access

    Orders and items are written in one transaction.
    """

    @staticmethod
    def _map_row(row: dict, items: List[OrderItem]) -> Order:
        data = dict(row)
        data["shipping_address"] = data.get("shipping_address") or {}
        data["items"] = items
        return Order(**data)

    def create(self, order: dict, items: List[dict]) -> Order:
        """
        Insert an order and its items.

        Args:
            order: Column values for the orders row (without id)
            items: Column values for each order_items row (without id/order_id)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO orders (
                    user_id, customer_name, customer_email, customer_phone,
                    shipping_address, special_instructions, currency,
                    total_amount, advance_amount, balance_amount,
                    payment_status, order_status, payment_method, created_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, NOW())
                RETURNING {ORDER_COLUMNS}
            """, (
                order.get("user_id"), order["customer_name"], order["customer_email"],
                order.get("customer_phone"), Json(order["shipping_address"]),
                order.get("special_instructions"), order["currency"],
                order["total_amount"], order["advance_amount"], order["balance_amount"],
                order.get("payment_status", PaymentStatus.PENDING.value),
                order.get("order_status", OrderStatus.PENDING.value),
                order.get("payment_method"),
            ))
            order_row = cursor.fetchone()

            saved_items = []
            for item in items:
                cursor.execute(f"""
                    INSERT INTO order_items (
                        order_id, product_id, metal_type_id, stone_type_id, price,
                        currency, is_custom_design, is_consultation_fee, design_request_id
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING {ITEM_COLUMNS}
                """, (
                    order_row["id"], item.get("product_id"), item.get("metal_type_id"),
                    item.get("stone_type_id"), item["price"], item["currency"],
                    item.get("is_custom_design", False), item.get("is_consultation_fee", False),
                    item.get("design_request_id"),
                ))
                saved_items.append(OrderItem(**cursor.fetchone()))

            conn.commit()
            return self._map_row(order_row, saved_items)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, order_id: int) -> Optional[Order]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {ORDER_COLUMNS} FROM orders WHERE id = %s", (order_id,))
            row = cursor.fetchone()
            if not row:
                return None

            cursor.execute(f"""
                SELECT {ITEM_COLUMNS}
                FROM order_items
                WHERE order_id = %s
                ORDER BY id
            """, (order_id,))
            items = [OrderItem(**item) for item in cursor.fetchall()]

            return self._map_row(row, items)

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        user_id: Optional[int] = None,
        payment_status: Optional[str] = None,
        order_status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        """
        Find orders with filters, newest first

        Returns:
            Tuple of (list of orders with items, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []
            if user_id is not None:
                conditions.append("user_id = %s")
                params.append(user_id)
            if payment_status:
                conditions.append("payment_status = %s")
                params.append(payment_status)
            if order_status:
                conditions.append("order_status = %s")
                params.append(order_status)
            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"SELECT COUNT(*) as total FROM orders WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders
                WHERE {where_clause}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            rows = cursor.fetchall()

            if not rows:
                return [], total

            # All items for these orders in one query
            order_ids = [row['id'] for row in rows]
            cursor.execute(f"""
                SELECT {ITEM_COLUMNS}
                FROM order_items
                WHERE order_id = ANY(%s)
                ORDER BY id
            """, (order_ids,))

            items_by_order: Dict[int, List[OrderItem]] = {}
            for item in cursor.fetchall():
                items_by_order.setdefault(item['order_id'], []).append(OrderItem(**item))

            orders = [self._map_row(row, items_by_order.get(row['id'], [])) for row in rows]
            return orders, total

        finally:
            cursor.close()
            conn.close()

    def update(self, order_id: int, values: dict) -> Optional[Order]:
        values = {k: v for k, v in values.items() if k in _UPDATABLE and v is not None}
        if not values:
            return self.find_by_id(order_id)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE orders
                SET {", ".join(f"{field} = %s" for field in values)}
                WHERE id = %s
                RETURNING id
            """, list(values.values()) + [order_id])
            row = cursor.fetchone()
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        if not row:
            return None
        return self.find_by_id(order_id)
