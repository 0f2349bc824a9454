"""
Integration tests for dispatches, delivery propagation and support requests.
"""

import pytest

from fieldsales.models import Dispatch, Order, SupportRequest


KINDER_BOX = 'Kinder Box 1.0'
LKG_PACK = 'LKG - Pack of 9 Books'
NURSERY_PACK = 'Nursery Pack of 5 books'


@pytest.fixture
def two_orders(authenticated_client, order_payload):
    """Two orders of the executive created through the API."""
    first = authenticated_client.post('/api/orders', json=order_payload).get_json()['id']
    second = authenticated_client.post('/api/orders', json=dict(order_payload, items={
        f'{KINDER_BOX}-{NURSERY_PACK}': {'qty': 3},
        'General Books-Hindi Varnamala': {'qty': 5},
    })).get_json()['id']
    return first, second


def _dispatch_payload(executive_id, order_ids, **extra):
    payload = {
        'executiveId': executive_id,
        'dispatchDate': '2026-03-01',
        'bookType': 'Sales',
        'modeOfParcel': 'Courier',
        'courierMode': 'Surface',
        'dispatchLocation': 'Hyderabad',
        'lrNo': 'LR-2026-001',
        'noOfBox': 3,
        'orderIds': order_ids,
    }
    payload.update(extra)
    return payload


class TestCreateDispatch:
    """POST /api/dispatches"""

    def test_create_dispatch_moves_orders(self, admin_client, session, executive, two_orders):
        response = admin_client.post('/api/dispatches', json=_dispatch_payload(executive.id, list(two_orders)))
        data = response.get_json()

        assert response.status_code == 201
        assert data['status'] == 'dispatched'
        assert data['lrNo'] == 'LR-2026-001'
        assert sorted(data['orderIds']) == sorted(two_orders)

        for order_id in two_orders:
            order = session.get(Order, order_id)
            assert order.status == 'dispatched'
            assert order.dispatch_id == data['id']

    def test_orders_of_other_executive_rejected(self, admin_client, session, other_executive, two_orders):
        other_id = other_executive.id
        response = admin_client.post('/api/dispatches', json=_dispatch_payload(other_id, list(two_orders)))

        assert response.status_code == 400
        assert response.get_json()['field'] == 'orderIds'
        assert session.query(Dispatch).count() == 0
        assert {order.status for order in session.query(Order).all()} == {'pending'}

    @pytest.mark.parametrize('field,value', [
        ('dispatchDate', ''),
        ('dispatchDate', '01-03-2026'),
        ('bookType', 'Gift'),
        ('noOfBox', 0),
        ('orderIds', 'not-a-list'),
        ('executiveId', None),
    ])
    def test_invalid_fields(self, admin_client, executive, field, value):
        payload = _dispatch_payload(executive.id, [])
        payload[field] = value

        response = admin_client.post('/api/dispatches', json=payload)
        assert response.status_code == 400
        assert response.get_json()['field'] == field

    def test_unknown_order(self, admin_client, executive):
        response = admin_client.post('/api/dispatches', json=_dispatch_payload(executive.id, [987654]))
        assert response.status_code == 400


class TestDeliverDispatch:
    """PATCH /api/dispatches/<id>/status"""

    def _create(self, admin_client, executive_id, order_ids, **extra):
        response = admin_client.post('/api/dispatches', json=_dispatch_payload(executive_id, order_ids, **extra))
        assert response.status_code == 201
        return response.get_json()['id']

    def test_delivery_propagates_to_orders(self, admin_client, authenticated_client, session,
                                           executive, two_orders):
        dispatch_id = self._create(admin_client, executive.id, list(two_orders))

        response = authenticated_client.patch(f'/api/dispatches/{dispatch_id}/status', json={'status': 'delivered'})
        assert response.status_code == 200
        assert response.get_json()['status'] == 'delivered'

        for order_id in two_orders:
            order = session.get(Order, order_id)
            assert order.status == 'delivered'
            assert order.delivered_at is not None

    def test_delivery_propagates_to_support_requests(self, admin_client, authenticated_client, session,
                                                     executive, two_orders):
        order_id = two_orders[0]
        request_id = authenticated_client.post(f'/api/orders/{order_id}/support', json={
            'categories': [KINDER_BOX],
            'remarks': 'Need sample books',
        }).get_json()['id']

        dispatch_id = self._create(admin_client, executive.id, [], supportRequestIds=[request_id])
        assert session.get(SupportRequest, request_id).status == 'dispatched'
        session.remove()

        authenticated_client.patch(f'/api/dispatches/{dispatch_id}/status', json={'status': 'delivered'})

        support_request = session.get(SupportRequest, request_id)
        assert support_request.status == 'delivered'
        assert support_request.dispatch_id == dispatch_id

    def test_delivering_twice_is_noop(self, admin_client, executive, two_orders):
        dispatch_id = self._create(admin_client, executive.id, list(two_orders))
        admin_client.patch(f'/api/dispatches/{dispatch_id}/status', json={'status': 'delivered'})

        response = admin_client.patch(f'/api/dispatches/{dispatch_id}/status', json={'status': 'delivered'})
        assert response.status_code == 200

    def test_cannot_reopen_delivered_dispatch(self, admin_client, executive, two_orders):
        dispatch_id = self._create(admin_client, executive.id, list(two_orders))
        admin_client.patch(f'/api/dispatches/{dispatch_id}/status', json={'status': 'delivered'})

        response = admin_client.patch(f'/api/dispatches/{dispatch_id}/status', json={'status': 'pending'})
        assert response.status_code == 409

    def test_other_executive_cannot_confirm(self, admin_client, other_client, executive, two_orders):
        dispatch_id = self._create(admin_client, executive.id, list(two_orders))

        response = other_client.patch(f'/api/dispatches/{dispatch_id}/status', json={'status': 'delivered'})
        assert response.status_code == 403

    def test_order_cannot_join_second_dispatch(self, admin_client, executive, two_orders):
        self._create(admin_client, executive.id, [two_orders[0]])

        response = admin_client.post('/api/dispatches',
                                     json=_dispatch_payload(executive.id, [two_orders[0]], lrNo='LR-2'))
        assert response.status_code == 400


class TestListAndPackingList:

    def test_executive_sees_own_dispatches(self, admin_client, authenticated_client, other_client,
                                           executive, two_orders):
        admin_client.post('/api/dispatches', json=_dispatch_payload(executive.id, list(two_orders)))

        assert len(authenticated_client.get('/api/dispatches').get_json()) == 1
        assert other_client.get('/api/dispatches').get_json() == []
        assert len(admin_client.get('/api/dispatches').get_json()) == 1

    def test_packing_list(self, admin_client, authenticated_client, executive, two_orders):
        dispatch_id = admin_client.post(
            '/api/dispatches', json=_dispatch_payload(executive.id, list(two_orders))
        ).get_json()['id']

        response = authenticated_client.get(f'/api/dispatches/{dispatch_id}/packing-list')
        data = response.get_json()

        assert response.status_code == 200
        # 2 LKG + 1 Nursery in the first order, 3 Nursery in the second
        assert data['items'] == [
            {'category': KINDER_BOX, 'qty': 6},
            {'category': 'General Books', 'qty': 5},
        ]
        assert data['totalQty'] == 11
        assert data['noOfBox'] == 3


class TestSupportRequests:
    """POST /api/orders/<id>/support and GET /api/support"""

    def test_create_and_list(self, authenticated_client, pending_order):
        order_id = pending_order.id
        response = authenticated_client.post(f'/api/orders/{order_id}/support', json={
            'categories': [KINDER_BOX, 'General Books'],
            'remarks': 'Posters for the front office',
        })
        data = response.get_json()

        assert response.status_code == 201
        assert data['status'] == 'pending'
        assert data['categories'] == [KINDER_BOX, 'General Books']

        listed = authenticated_client.get(f'/api/support?orderId={order_id}').get_json()
        assert [item['id'] for item in listed] == [data['id']]

    def test_unknown_category(self, authenticated_client, pending_order):
        response = authenticated_client.post(f'/api/orders/{pending_order.id}/support',
                                             json={'categories': ['Comics']})
        assert response.status_code == 400
        assert response.get_json()['field'] == 'categories'

    def test_remarks_limit(self, authenticated_client, pending_order):
        response = authenticated_client.post(f'/api/orders/{pending_order.id}/support', json={
            'categories': [KINDER_BOX],
            'remarks': 'x' * 1501,
        })
        assert response.status_code == 400
        assert response.get_json()['field'] == 'remarks'

    def test_only_owner_can_request(self, other_client, pending_order):
        response = other_client.post(f'/api/orders/{pending_order.id}/support',
                                     json={'categories': [KINDER_BOX]})
        assert response.status_code == 403

    def test_pending_request_travels_with_order(self, authenticated_client, admin_client, session,
                                                executive, pending_order):
        order_id = pending_order.id
        executive_id = executive.id
        request_id = authenticated_client.post(f'/api/orders/{order_id}/support',
                                               json={'categories': [KINDER_BOX]}).get_json()['id']

        dispatch_id = admin_client.post(
            '/api/dispatches', json=_dispatch_payload(executive_id, [order_id])
        ).get_json()['id']

        support_request = session.get(SupportRequest, request_id)
        assert support_request.status == 'dispatched'
        assert support_request.dispatch_id == dispatch_id
