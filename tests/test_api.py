"""
HTTP surface: request translation, permission classes and the error envelope.
"""
import pytest

from authentication.models import OwnerPermission, PermissionTemplate
from orders.models import Order, OrderStatus, OwnerNotification, Table, TableSession
from orders.services import MAX_QUANTITY


pytestmark = pytest.mark.django_db


def _cart(table, *lines, **extra):
    payload = {
        'table_id': str(table.pk),
        'items': [{'menu_item_id': str(item.pk), 'quantity': quantity} for item, quantity in lines],
    }
    payload.update(extra)
    return payload


# ============================================================================
# Public ordering
# ============================================================================

class TestPublicOrdering:

    def test_place_order(self, api_client, admin_user, table, burger, fries, noodles):
        response = api_client.post(
            '/api/orders/public/', _cart(table, (burger, 2), (fries, 1), (noodles, 1)), format='json'
        )

        assert response.status_code == 201
        assert response.data['total_amount'] == '34.25'
        assert response.data['customer_name'] == 'Table #1'
        assert response.data['status'] == OrderStatus.PENDING
        assert len(response.data['items']) == 3

    def test_unavailable_item_is_a_conflict(self, api_client, admin_user, table, burger, noodles):
        noodles.is_available = False
        noodles.save()

        response = api_client.post('/api/orders/public/', _cart(table, (burger, 1), (noodles, 1)), format='json')

        assert response.status_code == 409
        assert response.data['code'] == 'invalid_state'
        assert response.data['details']['menu_item_ids'] == [str(noodles.pk)]
        assert Order.objects.count() == 0

    def test_zero_quantity_is_rejected(self, api_client, admin_user, table, burger):
        response = api_client.post('/api/orders/public/', _cart(table, (burger, 0)), format='json')

        assert response.status_code == 400
        assert response.data['error'] is True
        assert Order.objects.count() == 0

    def test_oversized_quantity_is_rejected(self, api_client, admin_user, table, burger):
        response = api_client.post('/api/orders/public/', _cart(table, (burger, 10 ** 11)), format='json')

        assert response.status_code == 400
        assert response.data['message'] == 'Validation error'
        assert Order.objects.count() == 0

        response = api_client.post('/api/orders/public/', _cart(table, (burger, MAX_QUANTITY)), format='json')
        assert response.status_code == 201

    def test_table_history_and_notifications(self, api_client, multi_stall_order, table):
        response = api_client.get(f'/api/orders/public/tables/{table.pk}/')
        assert response.status_code == 200
        assert [order['id'] for order in response.data] == [str(multi_stall_order.pk)]

        response = api_client.get(f'/api/orders/public/{multi_stall_order.pk}/notifications/')
        assert response.status_code == 200
        assert len(response.data) == 1

        response = api_client.get(f'/api/orders/public/{multi_stall_order.pk}/notifications/?unseen=true')
        assert response.data == []

    def test_public_menu(self, api_client, foodcourt_a, burger, fries):
        fries.is_available = False
        fries.save()

        response = api_client.get(f'/api/menu/public/foodcourt/{foodcourt_a.pk}/?available=true')

        assert response.status_code == 200
        assert [item['name'] for item in response.data['menu_items']] == ['Burger']


# ============================================================================
# Foodcourt staff
# ============================================================================

class TestFoodcourtOrders:

    def test_owner_sees_only_their_items(self, api_client, multi_stall_order, owner_b, foodcourt_b):
        api_client.force_authenticate(user=owner_b)

        response = api_client.get(f'/api/orders/foodcourt/{foodcourt_b.pk}/')

        assert response.status_code == 200
        assert len(response.data) == 1
        assert [item['menu_item_name'] for item in response.data[0]['items']] == ['Noodles']

    def test_stranger_cannot_view_orders(self, api_client, multi_stall_order, owner_c, foodcourt_b):
        api_client.force_authenticate(user=owner_c)

        response = api_client.get(f'/api/orders/foodcourt/{foodcourt_b.pk}/')

        assert response.status_code == 403
        assert response.data['message'] == 'Permission denied'

    def test_menu_rights_do_not_include_orders(self, api_client, owner_c, foodcourt_a, burger):
        OwnerPermission.objects.create(
            owner=owner_c, foodcourt=foodcourt_a,
            can_edit_menu=True, can_view_orders=False, can_update_orders=False,
        )
        api_client.force_authenticate(user=owner_c)

        response = api_client.patch(
            f'/api/menu/foodcourt/{foodcourt_a.pk}/items/{burger.pk}/availability/',
            {'is_available': False}, format='json'
        )
        assert response.status_code == 200
        assert response.data['is_available'] is False

        response = api_client.get(f'/api/orders/foodcourt/{foodcourt_a.pk}/')
        assert response.status_code == 403

    def test_update_item_status(self, api_client, multi_stall_order, owner_b, foodcourt_b, noodles):
        item = multi_stall_order.items.get(menu_item=noodles)
        api_client.force_authenticate(user=owner_b)

        response = api_client.patch(
            f'/api/orders/foodcourt/{foodcourt_b.pk}/items/{item.pk}/status/',
            {'status': 'PREPARING'}, format='json'
        )

        assert response.status_code == 200
        assert response.data['status'] == 'PREPARING'

    def test_item_of_another_stall_is_not_found(self, api_client, multi_stall_order, owner_a, foodcourt_a, noodles):
        item = multi_stall_order.items.get(menu_item=noodles)
        api_client.force_authenticate(user=owner_a)

        response = api_client.patch(
            f'/api/orders/foodcourt/{foodcourt_a.pk}/items/{item.pk}/status/',
            {'status': 'PREPARING'}, format='json'
        )

        assert response.status_code == 404
        assert response.data['code'] == 'not_found'

    def test_backward_move_is_a_conflict(self, api_client, multi_stall_order, owner_b, foodcourt_b, noodles):
        item = multi_stall_order.items.get(menu_item=noodles)
        api_client.force_authenticate(user=owner_b)
        url = f'/api/orders/foodcourt/{foodcourt_b.pk}/items/{item.pk}/status/'

        assert api_client.patch(url, {'status': 'READY'}, format='json').status_code == 200
        response = api_client.patch(url, {'status': 'PENDING'}, format='json')

        assert response.status_code == 409
        assert response.data['code'] == 'invalid_transition'

    def test_owner_notifications(self, api_client, multi_stall_order, owner_a, foodcourt_a):
        api_client.force_authenticate(user=owner_a)

        response = api_client.get(f'/api/orders/foodcourt/{foodcourt_a.pk}/notifications/?unread=true')
        assert response.status_code == 200
        assert len(response.data) == 1

        response = api_client.post(f'/api/orders/foodcourt/{foodcourt_a.pk}/notifications/read/', {}, format='json')
        assert response.data == {'marked': 1}
        assert not OwnerNotification.objects.filter(foodcourt=foodcourt_a, is_read=False).exists()


# ============================================================================
# Administration
# ============================================================================

class TestAdministration:

    def test_admin_only(self, api_client, owner_a):
        api_client.force_authenticate(user=owner_a)
        assert api_client.get('/api/foodcourts/').status_code == 403

    def test_create_and_assign(self, api_client, admin_user, owner_c):
        api_client.force_authenticate(user=admin_user)

        response = api_client.post('/api/foodcourts/', {'name': 'Dumpling Den'}, format='json')
        assert response.status_code == 201
        foodcourt_id = response.data['id']

        response = api_client.post(
            f'/api/foodcourts/{foodcourt_id}/assign-owner/', {'owner_id': str(owner_c.pk)}, format='json'
        )
        assert response.status_code == 200
        assert response.data['can_edit_menu'] is True

    def test_assign_customer_is_a_conflict(self, api_client, admin_user, customer, foodcourt_a):
        api_client.force_authenticate(user=admin_user)
        response = api_client.post(
            f'/api/foodcourts/{foodcourt_a.pk}/assign-owner/', {'owner_id': str(customer.pk)}, format='json'
        )
        assert response.status_code == 409

    def test_apply_template(self, api_client, admin_user, owner_a, owner_b, foodcourt_a, foodcourt_b):
        template = PermissionTemplate.objects.create(name='Viewer', can_edit_menu=False, can_update_orders=False)
        api_client.force_authenticate(user=admin_user)

        response = api_client.post(
            f'/api/permissions/templates/{template.pk}/apply/',
            {'owner_ids': [str(owner_a.pk), str(owner_b.pk)]}, format='json'
        )

        assert response.status_code == 200
        assert response.data['summary'] == {'total': 2, 'successful': 2, 'failed': 0}

        response = api_client.get(f'/api/owners/{owner_a.pk}/permission-history/')
        assert response.status_code == 200
        assert len(response.data) == 1

    def test_duplicate_template_name(self, api_client, admin_user):
        PermissionTemplate.objects.create(name='Viewer')
        api_client.force_authenticate(user=admin_user)

        response = api_client.post('/api/permissions/templates/', {'name': 'viewer'}, format='json')
        assert response.status_code == 400

    def test_owner_sets_operating_status(self, api_client, owner_a, owner_b, foodcourt_a):
        url = f'/api/foodcourts/{foodcourt_a.pk}/operating-status/'

        api_client.force_authenticate(user=owner_b)
        assert api_client.patch(url, {'operating_status': 'CLOSED'}, format='json').status_code == 403

        api_client.force_authenticate(user=owner_a)
        response = api_client.patch(url, {'operating_status': 'CLOSED'}, format='json')
        assert response.status_code == 200
        assert response.data['is_open'] is False

    def test_default_permissions(self, api_client, admin_user):
        api_client.force_authenticate(user=admin_user)

        response = api_client.put('/api/permissions/defaults/', {'can_update_orders': False}, format='json')

        assert response.status_code == 200
        assert response.data['can_update_orders'] is False
        assert response.data['can_edit_menu'] is True


# ============================================================================
# Table administration
# ============================================================================

class TestTableAdministration:
    url = '/api/orders/admin/tables/'

    def test_admin_only(self, api_client, owner_a):
        api_client.force_authenticate(user=owner_a)
        assert api_client.get(self.url).status_code == 403
        assert api_client.post(self.url, {'table_number': 7}, format='json').status_code == 403

    def test_create_and_update(self, api_client, admin_user):
        api_client.force_authenticate(user=admin_user)

        response = api_client.post(self.url, {'table_number': 7, 'capacity': 2}, format='json')
        assert response.status_code == 201
        assert response.data['label'] == 'Table #7'
        assert response.data['active_session'] is None

        response = api_client.patch(f"{self.url}{response.data['id']}/", {'capacity': 6}, format='json')
        assert response.status_code == 200
        assert response.data['capacity'] == 6

    def test_duplicate_number_and_empty_table_rejected(self, api_client, admin_user, table):
        api_client.force_authenticate(user=admin_user)

        assert api_client.post(self.url, {'table_number': 1}, format='json').status_code == 400
        assert api_client.post(self.url, {'table_number': 2, 'capacity': 0}, format='json').status_code == 400

    def test_list_shows_active_session(self, api_client, admin_user, multi_stall_order, table):
        Table.objects.create(table_number=2, is_available=False)
        api_client.force_authenticate(user=admin_user)

        response = api_client.get(self.url)
        assert response.status_code == 200
        sessions = {row['table_number']: row['active_session'] for row in response.data}
        assert sessions[1]['id'] == str(multi_stall_order.table_session_id)
        assert sessions[2] is None

        response = api_client.get(f'{self.url}?is_available=false')
        assert [row['table_number'] for row in response.data] == [2]

    def test_delete_refused_while_orders_are_open(self, api_client, admin_user, multi_stall_order, table):
        api_client.force_authenticate(user=admin_user)

        response = api_client.delete(f'{self.url}{table.pk}/')

        assert response.status_code == 409
        assert response.data['message'] == 'Cannot delete table with active orders'
        assert response.data['details']['active_orders'] == '1'
        assert TableSession.objects.get(table=table).is_active

    def test_delete_with_history_retires_the_table(self, api_client, admin_user, multi_stall_order, table):
        Order.objects.filter(pk=multi_stall_order.pk).update(status=OrderStatus.DELIVERED)
        api_client.force_authenticate(user=admin_user)

        response = api_client.delete(f'{self.url}{table.pk}/')

        assert response.status_code == 200
        assert response.data['deleted'] is False
        table.refresh_from_db()
        assert table.is_available is False
        assert not TableSession.objects.filter(table=table, is_active=True).exists()

    def test_delete_unused_table(self, api_client, admin_user, table):
        api_client.force_authenticate(user=admin_user)

        response = api_client.delete(f'{self.url}{table.pk}/')

        assert response.status_code == 200
        assert response.data['deleted'] is True
        assert not Table.objects.filter(pk=table.pk).exists()

    def test_close_session_narrows_table_history(self, api_client, admin_user, multi_stall_order, table):
        api_client.force_authenticate(user=admin_user)

        response = api_client.post(f'{self.url}{table.pk}/close-session/', {}, format='json')
        assert response.data == {'closed': 1}

        assert api_client.get(f'/api/orders/public/tables/{table.pk}/').data == []
        response = api_client.get(f'/api/orders/public/tables/{table.pk}/?all=true')
        assert [order['id'] for order in response.data] == [str(multi_stall_order.pk)]


class TestSystem:

    def test_health_check(self, api_client):
        response = api_client.get('/api/health/')
        assert response.status_code == 200
        assert response.data['status'] == 'healthy'

    def test_login_returns_role(self, api_client, owner_a, foodcourt_a):
        response = api_client.post(
            '/api/auth/login/', {'email': owner_a.email, 'password': 'Str0ng-pass!'}, format='json'
        )
        assert response.status_code == 200
        assert response.data['role'] == 'OWNER'
        assert response.data['foodcourt_ids'] == [str(foodcourt_a.pk)]
        assert 'access' in response.data
