"""
HTTP tests for /sales.
"""

from sqlalchemy.exc import OperationalError

from pdv.services import sale_recorder


class TestCreateSaleEndpoint:

    def test_create_sale_returns_sale_with_items(self, client, api_product, build_sale):
        product = api_product(stock_quantity=5)

        response = client.post('/sales', json=build_sale((product['id'], 2, 10.0)))

        assert response.status_code == 201, response.text
        sale = response.json()
        assert sale['status'] == 'completed'
        assert sale['total_amount'] == 20.0
        assert sale['payment_installments'] == 1
        assert sale['items'][0]['product'] == {'id': product['id'], 'name': 'Vestido'}
        assert client.get(f"/products/{product['id']}").json()['stock_quantity'] == 3

    def test_insufficient_stock_is_a_conflict(self, client, api_product, build_sale):
        product = api_product(stock_quantity=1)

        response = client.post('/sales', json=build_sale((product['id'], 2, 10.0)))

        assert response.status_code == 409
        body = response.json()
        assert body['status'] == 'error'
        assert body['product_id'] == product['id']
        assert body['requested'] == 2
        assert body['available'] == 1

    def test_unknown_product_is_not_found(self, client, api_product, build_sale):
        product = api_product(stock_quantity=10)

        response = client.post('/sales', json=build_sale((product['id'], 3, 10.0), (987654, 1, 5.0)))

        assert response.status_code == 404
        assert response.json()['product_id'] == 987654
        assert client.get(f"/products/{product['id']}").json()['stock_quantity'] == 10
        assert client.get('/sales').json()['sales'] == []

    def test_storage_error_is_service_unavailable(self, client, api_product, build_sale, monkeypatch):
        first = api_product(name='Blusa', stock_quantity=5)
        second = api_product(name='Saia', stock_quantity=5)
        real_decrement = sale_recorder.decrement_stock

        def decrement(db, product_id, quantity):
            if product_id == second['id']:
                raise OperationalError('UPDATE products', {}, Exception('disk I/O error'))
            return real_decrement(db, product_id, quantity)

        monkeypatch.setattr(sale_recorder, 'decrement_stock', decrement)

        response = client.post('/sales', json=build_sale((first['id'], 2, 10.0), (second['id'], 1, 10.0)))

        assert response.status_code == 503
        assert response.json()['status'] == 'error'
        assert client.get(f"/products/{first['id']}").json()['stock_quantity'] == 5
        assert client.get('/sales').json()['sales'] == []

    def test_empty_cart_is_rejected(self, client):
        response = client.post('/sales', json={
            'total_amount': 0,
            'payment_method': 'cash',
            'items': [],
        })

        assert response.status_code == 422

    def test_non_positive_quantity_is_rejected(self, client, api_product, build_sale):
        product = api_product()
        body = build_sale((product['id'], 1, 10.0))
        body['items'][0]['quantity'] = 0

        assert client.post('/sales', json=body).status_code == 422

    def test_unknown_payment_method_is_rejected(self, client, api_product, build_sale):
        product = api_product()
        body = build_sale((product['id'], 1, 10.0), payment_method='boleto')

        assert client.post('/sales', json=body).status_code == 422

    def test_mismatched_header_total_is_rejected(self, client, api_product, build_sale):
        product = api_product(stock_quantity=5)
        body = build_sale((product['id'], 1, 10.0))
        body['total_amount'] = 9.0

        response = client.post('/sales', json=body)

        assert response.status_code == 400
        assert response.json()['expected'] == '10.00'
        assert client.get(f"/products/{product['id']}").json()['stock_quantity'] == 5


class TestReadSales:

    def test_get_sale_matches_created_sale(self, client, api_product, build_sale):
        first = api_product(name='Blusa', stock_quantity=10)
        second = api_product(name='Saia', stock_quantity=10)
        created = client.post(
            '/sales',
            json=build_sale((second['id'], 1, 30.0), (first['id'], 2, 15.0)),
        ).json()

        response = client.get(f"/sales/{created['id']}")

        assert response.status_code == 200
        fetched = response.json()
        assert [
            (i['product_id'], i['quantity'], i['unit_price'], i['total_price']) for i in fetched['items']
        ] == [(second['id'], 1, 30.0, 30.0), (first['id'], 2, 15.0, 30.0)]

    def test_missing_sale_is_not_found(self, client):
        response = client.get('/sales/12345')

        assert response.status_code == 404
        assert response.json()['sale_id'] == 12345

    def test_list_sales_filters_by_client(self, client, api_product, build_sale):
        product = api_product(stock_quantity=10)
        ana = client.post('/clients', json={'name': 'Ana'}).json()
        client.post('/sales', json=build_sale((product['id'], 1, 10.0), client_id=ana['id']))
        client.post('/sales', json=build_sale((product['id'], 1, 10.0)))

        all_sales = client.get('/sales').json()['sales']
        ana_sales = client.get('/sales', params={'client_id': ana['id']}).json()['sales']

        assert len(all_sales) == 2
        assert len(ana_sales) == 1
        assert ana_sales[0]['client'] == {'id': ana['id'], 'name': 'Ana'}

    def test_list_sales_outside_date_range_is_empty(self, client, api_product, build_sale):
        product = api_product(stock_quantity=10)
        client.post('/sales', json=build_sale((product['id'], 1, 10.0)))

        response = client.get('/sales', params={'start_date': '2000-01-01', 'end_date': '2000-01-31'})

        assert response.status_code == 200
        assert response.json()['sales'] == []

    def test_stats(self, client, api_product, build_sale):
        product = api_product(stock_quantity=10)
        client.post('/sales', json=build_sale((product['id'], 1, 10.0)))
        client.post('/sales', json=build_sale((product['id'], 3, 10.0)))

        stats = client.get('/sales/stats').json()

        assert stats['total_sales'] == 2
        assert stats['total_revenue'] == 40.0
        assert stats['average_ticket'] == 20.0
        assert stats['sales_this_month'] == 2
        assert stats['revenue_this_month'] == 40.0

    def test_stats_without_sales(self, client):
        stats = client.get('/sales/stats').json()

        assert stats == {
            'total_sales': 0,
            'total_revenue': 0.0,
            'average_ticket': 0.0,
            'sales_this_month': 0,
            'revenue_this_month': 0.0,
        }
