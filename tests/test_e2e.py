"""
End-to-end flow: a nurse orders, a pharmacist reviews, the nurse is told.
"""
from conftest import PASSWORD, order_form
from chemo_order.core.security import create_user_token


def _login(client, username):
    response = client.post("/api/auth/login", json={"username": username, "password": PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


def test_order_review_flow(client, nurse, pharmacist, drug_catalog):
    nurse_headers = _login(client, "nurse_a")
    pharmacist_headers = _login(client, "pharm")

    with client.websocket_connect(f"/ws?token={create_user_token(pharmacist)}") as pharmacist_ws:
        pharmacist_ws.receive_json()
        response = client.post("/api/orders", data=order_form(hn="12345"), headers=nurse_headers)
        assert response.status_code == 201
        order = response.json()
        assert pharmacist_ws.receive_json()["event"] == "notification:new"
        assert pharmacist_ws.receive_json()["event"] == "order:created"

    pending = client.get(f"/api/orders?patientId={order['patientId']}&latest=true", headers=nurse_headers).json()
    assert pending["id"] == order["id"]
    assert pending["status"] == "PENDING"

    [inbox_item] = client.get("/api/notifications", headers=pharmacist_headers).json()
    assert inbox_item["relatedId"] == order["id"]
    client.patch(f"/api/notifications/{inbox_item['id']}/read", headers=pharmacist_headers)

    with client.websocket_connect(f"/ws?token={create_user_token(nurse)}") as nurse_ws:
        nurse_ws.receive_json()
        response = client.patch(
            f"/api/orders/{order['id']}/status", json={"status": "COMPLETED"}, headers=pharmacist_headers
        )
        assert response.status_code == 200
        pushed = nurse_ws.receive_json()
        assert pushed["event"] == "notification:new"
        assert pushed["data"]["message"] == f"Order {order['id']} has been approved by Pharmacist Paula"

    latest = client.get(f"/api/orders?patientId={order['patientId']}&latest=true", headers=nurse_headers).json()
    assert latest["status"] == "COMPLETED"
    assert latest["drugs"][0]["name"] == "Oxaliplatin"
    [nurse_inbox] = client.get("/api/notifications", headers=nurse_headers).json()
    assert nurse_inbox["isRead"] is False
