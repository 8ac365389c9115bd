"""
Unit tests for OrderRepository, DesignRepository, TestimonialRepository
and UserRepository
"""
from unittest.mock import patch

import pytest

from luster.domain.design import CustomDesignRequest, DesignRequestCreate
from luster.domain.order import Order
from luster.domain.user import User
from luster.repositories import testimonial_repository
from luster.repositories.design_repository import DesignRepository
from luster.repositories.order_repository import OrderRepository
from luster.repositories.user_repository import UserRepository


def _order_row(**overrides):
    row = {
        'id': 21, 'user_id': 7, 'customer_name': 'Asha Rao', 'customer_email': 'asha@example.com',
        'customer_phone': None, 'shipping_address': {'city': 'Hyderabad', 'country': 'IN'},
        'special_instructions': None, 'currency': 'INR', 'total_amount': 121500,
        'advance_amount': 60750, 'balance_amount': 60750, 'payment_status': 'pending',
        'order_status': 'pending', 'payment_method': 'paypal', 'payment_id': None, 'created_at': None,
    }
    row.update(overrides)
    return row


def _item_row(**overrides):
    row = {
        'id': 1, 'order_id': 21, 'product_id': 10, 'metal_type_id': None, 'stone_type_id': None,
        'price': 120000, 'currency': 'INR', 'is_custom_design': False, 'is_consultation_fee': False,
        'design_request_id': None,
    }
    row.update(overrides)
    return row


def _design_row(**overrides):
    row = {
        'id': 3, 'user_id': 7, 'full_name': 'Asha Rao', 'email': 'asha@example.com', 'phone': None,
        'country': 'IN', 'metal_type': '22K Gold', 'primary_stones': ['Emerald'], 'notes': None,
        'image_url': 'https://cdn.example.com/ref1.jpg', 'image_urls': ['https://cdn.example.com/ref1.jpg'],
        'status': 'pending_acceptance', 'consultation_fee_paid': False, 'initial_estimate': None,
        'final_estimate': None, 'iterations_count': 0, 'created_at': None,
    }
    row.update(overrides)
    return row


class TestOrderRepository:

    @patch('luster.repositories.order_repository.get_db_connection_dict')
    def test_create_inserts_order_and_items_in_one_transaction(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.side_effect = [_order_row(), _item_row()]

        order = OrderRepository().create(
            order={k: v for k, v in _order_row().items() if k not in ('id', 'created_at', 'payment_id')},
            items=[{'product_id': 10, 'price': 120000, 'currency': 'INR'}],
        )

        assert isinstance(order, Order)
        assert order.items[0].order_id == 21
        assert mock_cursor.execute.call_count == 2
        mock_conn.commit.assert_called_once()

    @patch('luster.repositories.order_repository.get_db_connection_dict')
    def test_create_stores_consultation_fee_flag(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.side_effect = [
            _order_row(),
            _item_row(product_id=None, price=12000, is_consultation_fee=True, design_request_id=3),
        ]

        order = OrderRepository().create(
            order={k: v for k, v in _order_row().items() if k not in ('id', 'created_at', 'payment_id')},
            items=[{'price': 12000, 'currency': 'INR', 'is_consultation_fee': True, 'design_request_id': 3}],
        )

        item_params = mock_cursor.execute.call_args_list[1][0][1]
        assert item_params[-2:] == (True, 3)
        assert order.items[0].is_consultation_fee

    @patch('luster.repositories.order_repository.get_db_connection_dict')
    def test_create_rolls_back_when_item_fails(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _order_row()
        mock_cursor.execute.side_effect = [None, RuntimeError("bad item")]

        with pytest.raises(RuntimeError):
            OrderRepository().create(order=_order_row(), items=[{'price': 1, 'currency': 'INR'}])

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()

    @patch('luster.repositories.order_repository.get_db_connection_dict')
    def test_find_by_id_with_items(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _order_row()
        mock_cursor.fetchall.return_value = [_item_row(), _item_row(id=2, price=0)]

        order = OrderRepository().find_by_id(21)

        assert len(order.items) == 2
        assert order.amount_due == 60750

    @patch('luster.repositories.order_repository.get_db_connection_dict')
    def test_find_all_groups_items_by_order(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'total': 2}
        mock_cursor.fetchall.side_effect = [
            [_order_row(id=21), _order_row(id=22)],
            [_item_row(order_id=22)],
        ]

        orders, total = OrderRepository().find_all(user_id=7, payment_status='pending')

        assert total == 2
        assert [len(o.items) for o in orders] == [0, 1]
        count_sql, count_params = mock_cursor.execute.call_args_list[0].args
        assert count_params == [7, 'pending']
        assert mock_cursor.execute.call_args_list[2].args[1] == ([21, 22],)

    @patch('luster.repositories.order_repository.get_db_connection_dict')
    def test_update_ignores_unknown_fields(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _order_row(order_status='shipped')
        mock_cursor.fetchall.return_value = []

        order = OrderRepository().update(21, {'order_status': 'shipped', 'total_amount': 1})

        assert order.order_status == 'shipped'
        update_sql, update_params = mock_cursor.execute.call_args_list[0].args
        assert "total_amount" not in update_sql
        assert update_params == ['shipped', 21]


class TestDesignRepository:

    @patch('luster.repositories.design_repository.get_db_connection_dict')
    def test_create_uses_first_image(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _design_row()

        design = DesignRepository().create(7, DesignRequestCreate(
            full_name='Asha Rao', email='asha@example.com', metal_type='22K Gold',
            primary_stones=['Emerald'],
            image_urls=['https://cdn.example.com/ref1.jpg', 'https://cdn.example.com/ref2.jpg'],
        ))

        assert isinstance(design, CustomDesignRequest)
        params = mock_cursor.execute.call_args.args[1]
        assert params[8] == 'https://cdn.example.com/ref1.jpg'
        assert params[10] == 'pending_acceptance'

    @patch('luster.repositories.design_repository.get_db_connection_dict')
    def test_find_by_id_with_comments(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _design_row()
        mock_cursor.fetchall.return_value = [
            {'id': 1, 'design_request_id': 3, 'content': 'Can we try a pear cut?',
             'created_by': 'Asha Rao', 'is_admin': False, 'created_at': None},
        ]

        design = DesignRepository().find_by_id(3, with_comments=True)

        assert design.comments[0].content == 'Can we try a pear cut?'

    @patch('luster.repositories.design_repository.get_db_connection_dict')
    def test_update_filters_fields(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = _design_row(status='design_started')

        DesignRepository().update(3, {'status': 'design_started', 'email': 'x@y.com'})

        sql, params = mock_cursor.execute.call_args.args
        assert "email" not in sql.split("RETURNING")[0]
        assert params == ['design_started', 3]


class TestTestimonialRepository:

    @patch('luster.repositories.testimonial_repository.get_db_connection_dict')
    def test_create_computes_initials(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {
            'id': 1, 'name': 'Asha Rao', 'product_type': 'Necklace', 'rating': 5,
            'text': 'Beautiful', 'initials': 'AR', 'story': None, 'is_approved': False,
        }

        repo = testimonial_repository.TestimonialRepository()
        testimonial = repo.create(testimonial_repository.TestimonialCreate(
            name='Asha Rao', product_type='Necklace', rating=5, text='Beautiful'
        ))

        assert not testimonial.is_approved
        params = mock_cursor.execute.call_args.args[1]
        assert params[4] == 'AR'

    @patch('luster.repositories.testimonial_repository.get_db_connection_dict')
    def test_find_all_approved_only(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchall.return_value = []

        testimonial_repository.TestimonialRepository().find_all()
        assert "is_approved = TRUE" in mock_cursor.execute.call_args.args[0]

        testimonial_repository.TestimonialRepository().find_all(approved_only=False)
        assert "is_approved" not in mock_cursor.execute.call_args.args[0].split("FROM")[1]


class TestUserRepository:

    @patch('luster.repositories.user_repository.get_db_connection_dict')
    def test_find_by_login_splits_hash(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {
            'id': 7, 'username': 'asha', 'email': 'asha@example.com', 'role': 'customer',
            'created_at': None, 'password_hash': '$2b$12$hash',
        }

        user, password_hash = UserRepository().find_by_login('ASHA@example.com')

        assert isinstance(user, User)
        assert password_hash == '$2b$12$hash'
        assert mock_cursor.execute.call_args.args[1] == ('ASHA@example.com', 'ASHA@example.com')

    @patch('luster.repositories.user_repository.get_db_connection_dict')
    def test_exists(self, mock_get_conn, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_get_conn.return_value = mock_conn
        mock_cursor.fetchone.return_value = {'id': 7}

        assert UserRepository().exists('asha', 'asha@example.com')
