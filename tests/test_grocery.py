import pytest

from recipebox.models import GroceryItem


def _add(client, name):
    response = client.post("/api/grocery", json={"name": name})
    assert response.status_code == 201, response.text
    return response.json()["item"]


def test_grocery_needs_no_auth(client):
    response = client.get("/api/grocery")
    assert response.status_code == 200
    assert response.json() == {"items": []}


def test_create_and_list(client):
    milk = _add(client, "Milk")
    eggs = _add(client, "Eggs")
    assert milk["name"] == "Milk"
    assert milk["created_at"]

    items = client.get("/api/grocery").json()["items"]
    assert [i["id"] for i in items] == [milk["id"], eggs["id"]]


def test_get_item(client):
    item = _add(client, "Bread")
    response = client.get(f"/api/grocery/{item['id']}")
    assert response.status_code == 200
    assert response.json()["item"] == item


def test_get_missing_and_bad_id(client):
    assert client.get("/api/grocery/123").status_code == 404
    response = client.get("/api/grocery/abc")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid ID format"}


@pytest.mark.parametrize("item_id", ["99999999999999999999", "2147483648", "0"])
def test_out_of_range_id_is_400(client, item_id):
    path = f"/api/grocery/{item_id}"
    for response in (
        client.get(path),
        client.put(path, json={"name": "Milk"}),
        client.delete(path),
    ):
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid ID format"}


def test_create_requires_string_name(client, db_session):
    for payload in ({}, {"name": 3}, {"name": ""}, {"name": None}):
        response = client.post("/api/grocery", json=payload)
        assert response.status_code == 400
        assert "name" in response.json()["error"]
    assert db_session.query(GroceryItem).count() == 0


def test_update_item(client):
    item = _add(client, "Chese")
    response = client.put(f"/api/grocery/{item['id']}", json={"name": "Cheese"})
    assert response.status_code == 200
    assert response.json()["item"]["name"] == "Cheese"
    assert response.json()["item"]["id"] == item["id"]


def test_update_missing_item_is_404(client):
    response = client.put("/api/grocery/77", json={"name": "Cheese"})
    assert response.status_code == 404
    assert response.json() == {"error": "Grocery item not found"}


def test_update_requires_name(client):
    item = _add(client, "Rice")
    assert client.put(f"/api/grocery/{item['id']}", json={}).status_code == 400


def test_delete_item(client, db_session):
    item = _add(client, "Apples")
    response = client.delete(f"/api/grocery/{item['id']}")
    assert response.status_code == 200
    assert response.json() == {"success": True, "item": item}
    assert db_session.query(GroceryItem).count() == 0

    assert client.delete(f"/api/grocery/{item['id']}").status_code == 404
