"""
Integration tests for the orders API.
"""

from datetime import date
from decimal import Decimal

from fieldsales.models import AuditLog, AuditAction, Dispatch, Order


KINDER_BOX = 'Kinder Box 1.0'
LKG_PACK = 'LKG - Pack of 9 Books'
NURSERY_PACK = 'Nursery Pack of 5 books'


def _create_dispatch(session, executive_id, admin_id):
    dispatch = Dispatch(executive_id=executive_id, created_by=admin_id,
                        dispatch_date=date(2026, 3, 1), lr_no='LR-100')
    session.add(dispatch)
    session.commit()
    return dispatch.id


class TestCreateOrder:
    """POST /api/orders"""

    def test_create_order_computes_totals(self, authenticated_client, executive, order_payload):
        response = authenticated_client.post('/api/orders', json=order_payload)
        data = response.get_json()

        assert response.status_code == 201
        assert data['status'] == 'pending'
        assert data['userId'] == executive.id
        assert data['totalAmount'] == '5300.00'
        assert data['totalDiscount'] == '300.00'
        assert data['netAmount'] == '5000.00'
        assert data['items'][f'{KINDER_BOX}-{LKG_PACK}'] == {'qty': 2, 'price': '2175.00'}

    def test_client_totals_do_not_override_server(self, authenticated_client, session, order_payload):
        order_payload['totalAmount'] = '1.00'
        order_payload['netAmount'] = '1.00'

        response = authenticated_client.post('/api/orders', json=order_payload)
        order_id = response.get_json()['id']

        assert response.status_code == 201
        order = session.get(Order, order_id)
        assert Decimal(order.net_amount) == Decimal('5000.00')

    def test_client_totals_rejected_when_configured(self, app, authenticated_client, order_payload):
        order_payload['netAmount'] = '1.00'
        app.config['ORDER_REJECT_TOTALS_MISMATCH'] = True
        try:
            response = authenticated_client.post('/api/orders', json=order_payload)
        finally:
            app.config['ORDER_REJECT_TOTALS_MISMATCH'] = False

        assert response.status_code == 400
        assert response.get_json()['field'] == 'netAmount'

    def test_status_in_payload_is_ignored(self, authenticated_client, order_payload):
        order_payload['status'] = 'delivered'
        response = authenticated_client.post('/api/orders', json=order_payload)
        assert response.get_json()['status'] == 'pending'

    def test_zero_quantities_are_dropped(self, authenticated_client, order_payload):
        order_payload['items'][f'{KINDER_BOX}-UKG - Pack of 9 Books'] = {'qty': 0, 'price': '2175'}
        response = authenticated_client.post('/api/orders', json=order_payload)

        assert f'{KINDER_BOX}-UKG - Pack of 9 Books' not in response.get_json()['items']

    def test_school_name_required(self, authenticated_client, order_payload):
        del order_payload['schoolName']
        response = authenticated_client.post('/api/orders', json=order_payload)

        assert response.status_code == 400
        assert response.get_json() == {'message': 'schoolName is required', 'field': 'schoolName'}

    def test_negative_quantity_rejected(self, authenticated_client, session, order_payload):
        order_payload['items'][f'{KINDER_BOX}-{LKG_PACK}'] = {'qty': -1}
        response = authenticated_client.post('/api/orders', json=order_payload)

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Quantity cannot be negative'
        assert session.query(Order).count() == 0

    def test_unknown_product_rejected(self, authenticated_client, order_payload):
        order_payload['items'][f'{KINDER_BOX}-Mystery Pack'] = {'qty': 1, 'price': '1'}
        response = authenticated_client.post('/api/orders', json=order_payload)
        assert response.status_code == 400

    def test_creation_is_audited(self, authenticated_client, session, order_payload):
        response = authenticated_client.post('/api/orders', json=order_payload)
        order_id = response.get_json()['id']

        entry = session.query(AuditLog).filter_by(action=AuditAction.ORDER_CREATED).one()
        assert entry.resource_id == order_id


class TestReadOrders:
    """GET /api/orders and /api/orders/<id>"""

    def test_executive_sees_only_own_orders(self, authenticated_client, other_client, order_payload):
        authenticated_client.post('/api/orders', json=order_payload)
        other_client.post('/api/orders', json=dict(order_payload, schoolName='Other School'))

        orders = authenticated_client.get('/api/orders').get_json()
        assert [order['schoolName'] for order in orders] == ['Sunrise Public School']

    def test_admin_sees_all_and_filters(self, authenticated_client, other_client, admin_client,
                                        other_executive, order_payload):
        other_id = other_executive.id
        authenticated_client.post('/api/orders', json=order_payload)
        other_client.post('/api/orders', json=dict(order_payload, schoolName='Other School'))

        assert len(admin_client.get('/api/orders').get_json()) == 2

        filtered = admin_client.get(f'/api/orders?userId={other_id}').get_json()
        assert [order['schoolName'] for order in filtered] == ['Other School']

        assert admin_client.get('/api/orders?status=dispatched').get_json() == []

    def test_invalid_filters(self, admin_client):
        assert admin_client.get('/api/orders?status=lost').status_code == 400
        assert admin_client.get('/api/orders?userId=abc').status_code == 400

    def test_get_order(self, authenticated_client, pending_order):
        order_id = pending_order.id
        response = authenticated_client.get(f'/api/orders/{order_id}')

        assert response.status_code == 200
        assert response.get_json()['schoolName'] == 'Green Valley School'

    def test_other_executive_cannot_read(self, other_client, pending_order):
        response = other_client.get(f'/api/orders/{pending_order.id}')
        assert response.status_code == 403

    def test_missing_order(self, authenticated_client):
        response = authenticated_client.get('/api/orders/999999')
        assert response.status_code == 404
        assert response.get_json() == {'message': 'Order 999999 not found.'}


class TestUpdateOrder:
    """PUT /api/orders/<id>"""

    def test_update_recomputes_totals(self, authenticated_client, pending_order):
        order_id = pending_order.id
        response = authenticated_client.put(f'/api/orders/{order_id}', json={
            'items': {f'{KINDER_BOX}-{NURSERY_PACK}': {'qty': 1}},
            'flatDiscount': '350',
        })
        data = response.get_json()

        assert response.status_code == 200
        assert data['totalAmount'] == '5300.00'
        assert data['totalDiscount'] == '350.00'
        assert data['netAmount'] == '4950.00'
        assert data['schoolName'] == 'Green Valley School'

    def test_update_removes_line(self, authenticated_client, pending_order):
        response = authenticated_client.put(f'/api/orders/{pending_order.id}', json={
            'items': {f'{KINDER_BOX}-{LKG_PACK}': {'qty': ''}},
        })
        data = response.get_json()

        assert data['items'] == {}
        assert data['totalAmount'] == '0.00'

    def test_discount_mode_cannot_change(self, authenticated_client, session, order_payload):
        order_id = authenticated_client.post('/api/orders', json=order_payload).get_json()['id']

        response = authenticated_client.put(f'/api/orders/{order_id}', json={'discountMode': 'PERCENT'})
        assert response.status_code == 400
        assert response.get_json()['field'] == 'discountMode'

        order = session.get(Order, order_id)
        assert order.discount_mode == 'FLAT'
        assert Decimal(order.flat_discount) == Decimal('300')
        assert Decimal(order.net_amount) == Decimal('5000.00')

    def test_same_discount_mode_is_accepted(self, authenticated_client, order_payload):
        order_id = authenticated_client.post('/api/orders', json=order_payload).get_json()['id']

        response = authenticated_client.put(f'/api/orders/{order_id}',
                                            json={'discountMode': 'flat', 'schoolName': 'Renamed School'})
        assert response.status_code == 200
        assert response.get_json()['netAmount'] == '5000.00'

    def test_edit_keeps_flat_discount(self, authenticated_client, order_payload):
        order_id = authenticated_client.post('/api/orders', json=order_payload).get_json()['id']

        response = authenticated_client.put(f'/api/orders/{order_id}', json={
            'items': {f'{KINDER_BOX}-{NURSERY_PACK}': {'qty': 2}},
        })
        data = response.get_json()

        assert data['totalAmount'] == '6250.00'
        assert data['totalDiscount'] == '300.00'
        assert data['netAmount'] == '5950.00'

    def test_other_executive_cannot_update(self, other_client, pending_order):
        response = other_client.put(f'/api/orders/{pending_order.id}', json={'schoolName': 'Hijack'})
        assert response.status_code == 403

    def test_only_pending_orders_can_be_edited(self, admin_client, session, pending_order, executive, admin):
        order_id = pending_order.id
        dispatch_id = _create_dispatch(session, executive.id, admin.id)
        admin_client.patch(f'/api/orders/{order_id}/status',
                           json={'status': 'dispatched', 'dispatchId': dispatch_id})

        response = admin_client.put(f'/api/orders/{order_id}', json={'schoolName': 'Late Edit'})
        assert response.status_code == 400


class TestOrderStatus:
    """PATCH /api/orders/<id>/status and POST /api/orders/<id>/received"""

    def test_admin_dispatches_then_executive_receives(self, admin_client, authenticated_client, session,
                                                      pending_order, executive, admin):
        order_id = pending_order.id
        dispatch_id = _create_dispatch(session, executive.id, admin.id)

        response = admin_client.patch(f'/api/orders/{order_id}/status',
                                      json={'status': 'dispatched', 'dispatchId': dispatch_id})
        assert response.status_code == 200
        assert response.get_json()['status'] == 'dispatched'
        assert response.get_json()['dispatchId'] == dispatch_id

        response = authenticated_client.post(f'/api/orders/{order_id}/received')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'delivered'

        dispatch = session.get(Dispatch, dispatch_id)
        assert dispatch.status == 'delivered'

    def test_dispatch_requires_dispatch_id(self, admin_client, pending_order):
        response = admin_client.patch(f'/api/orders/{pending_order.id}/status', json={'status': 'dispatched'})

        assert response.status_code == 400
        assert response.get_json()['field'] == 'dispatchId'

    def test_dispatch_must_exist(self, admin_client, pending_order):
        response = admin_client.patch(f'/api/orders/{pending_order.id}/status',
                                      json={'status': 'dispatched', 'dispatchId': 424242})
        assert response.status_code == 404

    def test_executive_cannot_dispatch(self, authenticated_client, session, pending_order, executive, admin):
        dispatch_id = _create_dispatch(session, executive.id, admin.id)
        response = authenticated_client.patch(f'/api/orders/{pending_order.id}/status',
                                              json={'status': 'dispatched', 'dispatchId': dispatch_id})
        assert response.status_code == 403

    def test_pending_cannot_skip_to_delivered(self, authenticated_client, pending_order):
        response = authenticated_client.post(f'/api/orders/{pending_order.id}/received')

        assert response.status_code == 409
        assert response.get_json()['currentStatus'] == 'pending'

    def test_delivered_cannot_go_back(self, admin_client, session, pending_order, executive, admin):
        order_id = pending_order.id
        dispatch_id = _create_dispatch(session, executive.id, admin.id)
        admin_client.patch(f'/api/orders/{order_id}/status', json={'status': 'dispatched', 'dispatchId': dispatch_id})
        admin_client.patch(f'/api/orders/{order_id}/status', json={'status': 'delivered'})

        response = admin_client.patch(f'/api/orders/{order_id}/status', json={'status': 'pending'})
        assert response.status_code == 409

        order = session.get(Order, order_id)
        assert order.status == 'delivered'

    def test_same_status_is_noop(self, admin_client, pending_order):
        response = admin_client.patch(f'/api/orders/{pending_order.id}/status', json={'status': 'pending'})
        assert response.status_code == 200
        assert response.get_json()['status'] == 'pending'

    def test_status_required(self, admin_client, pending_order):
        response = admin_client.patch(f'/api/orders/{pending_order.id}/status', json={})
        assert response.status_code == 400


class TestInvoicePdf:
    """GET /api/orders/<id>/pdf"""

    def test_pdf_download(self, authenticated_client, pending_order):
        response = authenticated_client.get(f'/api/orders/{pending_order.id}/pdf')

        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF')
        assert f'order_{pending_order.id}.pdf' in response.headers['Content-Disposition']

    def test_pdf_requires_access(self, other_client, pending_order):
        assert other_client.get(f'/api/orders/{pending_order.id}/pdf').status_code == 403
