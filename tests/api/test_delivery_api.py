from tests.helpers import auth_headers


async def test_accept_and_deliver(client, ready_order, partner):
    headers = auth_headers(partner)

    response = await client.put("/delivery/orders", json={"orderId": ready_order.id, "action": "accept"},
                                headers=headers)
    assert response.status_code == 200
    assert response.json()["deliveryPartnerId"] == partner.id
    assert response.json()["deliveryEarnings"] == 30

    for action, status in (("pickup", "picked_up"), ("on_the_way", "on_the_way"), ("delivered", "delivered")):
        response = await client.put("/delivery/orders", json={"orderId": ready_order.id, "action": action},
                                    headers=headers)
        assert response.status_code == 200
        assert response.json()["status"] == status

    assert response.json()["paymentStatus"] == "completed"


async def test_accept_taken_order_conflicts(client, ready_order, partner, other_partner):
    await client.put("/delivery/orders", json={"orderId": ready_order.id, "action": "accept"},
                     headers=auth_headers(partner))

    response = await client.put("/delivery/orders", json={"orderId": ready_order.id, "action": "accept"},
                                headers=auth_headers(other_partner))

    assert response.status_code == 409
    assert response.json() == {"detail": "Order already assigned", "code": "CONFLICT"}


async def test_unknown_action_rejected(client, ready_order, partner):
    response = await client.put("/delivery/orders", json={"orderId": ready_order.id, "action": "teleport"},
                                headers=auth_headers(partner))

    assert response.status_code == 422


async def test_customers_cannot_use_delivery_endpoints(client, ready_order, customer):
    response = await client.put("/delivery/orders", json={"orderId": ready_order.id, "action": "accept"},
                                headers=auth_headers(customer))

    assert response.status_code == 403


async def test_nearby(client, place_order, partner):
    order = place_order()

    response = await client.get("/delivery/nearby", params={"lat": 12.972, "lng": 77.595},
                                headers=auth_headers(partner))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["radius"] == 10
    nearby = body["orders"][0]
    assert nearby["id"] == order.id
    assert nearby["vendor"]["storeName"] == "Fresh Mart"
    assert nearby["pickupDistance"] is not None
    assert nearby["deliveryEarnings"] == 30


async def test_nearby_requires_coordinates(client, partner):
    response = await client.get("/delivery/nearby", headers=auth_headers(partner))

    assert response.status_code == 422


async def test_partner_orders_and_earnings(client, delivered_order, partner):
    headers = auth_headers(partner)

    response = await client.get("/delivery/orders", params={"type": "history"}, headers=headers)
    assert response.status_code == 200
    assert [o["id"] for o in response.json()] == [delivered_order.id]

    response = await client.get("/delivery/orders", params={"type": "active"}, headers=headers)
    assert response.json() == []

    response = await client.get("/delivery/earnings", params={"period": "today"}, headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["todayEarnings"] == 30
    assert body["summary"]["todayDeliveries"] == 1
    assert body["summary"]["period"] == "today"
    assert len(body["weeklyChart"]) == 7
    assert body["recentEarnings"][0]["orderNumber"] == delivered_order.order_number
    assert body["rating"] is None


async def test_earnings_rejects_unknown_period(client, partner):
    response = await client.get("/delivery/earnings", params={"period": "year"}, headers=auth_headers(partner))

    assert response.status_code == 422
