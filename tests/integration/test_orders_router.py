# tests/integration/test_orders_router.py

from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from shop_pricing import crud
from shop_pricing.schemas import OrderCreate
from tests.utils.catalog import create_price, create_price_type, create_product, create_user
from tests.utils.discount import create_discount, create_discount_group

def _retail_product(db: Session, retail=None, price: float = 1000.0):
    retail = retail or create_price_type(db, name="Retail", is_default=True)
    product = create_product(db)
    create_price(db, product_id=product.id, price_type_id=retail.id, price=price)
    return retail, product

def _order(db: Session, user_id: str = None):
    return crud.order.create(db, obj_in=OrderCreate(user_id=user_id))

def test_add_item_freezes_discounted_price_and_audit_record(client: TestClient, db_session: Session):
    """
    Testa a funcionalidade mais crítica: o item da encomenda guarda o preço
    com desconto e o registo dos descontos aplicados.
    """
    # --- Arrange ---
    retail, product = _retail_product(db_session)
    group = create_discount_group(db_session)
    discount = create_discount(db_session, group_id=group.id, price_type_id=retail.id, discount_value=10)
    order = _order(db_session)

    # --- Act ---
    response = client.post(f"/orders/{order.id}/items", json={"product_id": product.id, "quantity": 1})

    # --- Assert ---
    assert response.status_code == 201
    item = response.json()
    assert Decimal(str(item["base_price"])) == Decimal("1000")
    assert Decimal(str(item["price"])) == Decimal("900")
    audit = item["discount_data"]
    assert Decimal(str(audit["total_discount"])) == Decimal("100")
    assert audit["applied_discounts"][0]["id"] == discount.id
    assert Decimal(str(audit["applied_discounts"][0]["calculated_amount"])) == Decimal("100")

def test_item_without_discounts_keeps_base_price(client: TestClient, db_session: Session):
    _, product = _retail_product(db_session, price=250.0)
    order = _order(db_session)

    response = client.post(f"/orders/{order.id}/items", json={"product_id": product.id, "quantity": 2})

    assert response.status_code == 201
    item = response.json()
    assert Decimal(str(item["price"])) == Decimal("250")
    assert item["discount_data"]["applied_discounts"] == []

def test_changing_quantity_reprices_the_item(client: TestClient, db_session: Session):
    """
    Um desconto a partir de 3 unidades não se aplica a 1 unidade,
    mas passa a aplicar-se quando a quantidade é alterada.
    """
    # --- Arrange ---
    retail, product = _retail_product(db_session)
    group = create_discount_group(db_session)
    create_discount(
        db_session, group_id=group.id, price_type_id=retail.id,
        discount_type="fixed_amount", discount_value=100,
        conditions=[{"condition_type": "min_quantity", "operator": ">=", "value": 3}],
    )
    order = _order(db_session)
    created = client.post(f"/orders/{order.id}/items", json={"product_id": product.id, "quantity": 1}).json()
    assert Decimal(str(created["price"])) == Decimal("1000")

    # --- Act ---
    response = client.patch(f"/orders/{order.id}/items/{created['id']}", json={"quantity": 3})

    # --- Assert ---
    assert response.status_code == 200
    item = response.json()
    assert item["quantity"] == 3
    assert Decimal(str(item["price"])) == Decimal("900")
    assert Decimal(str(item["discount_data"]["total_discount"])) == Decimal("100")

def test_existing_items_count_towards_order_amount(client: TestClient, db_session: Session):
    # --- Arrange ---
    retail, first_product = _retail_product(db_session)
    _, second_product = _retail_product(db_session, retail=retail)
    group = create_discount_group(db_session)
    create_discount(
        db_session, group_id=group.id, price_type_id=retail.id,
        discount_type="percent", discount_value=5,
        conditions=[{"condition_type": "min_order_amount", "operator": ">=", "value": 1500}],
    )
    order = _order(db_session)

    # --- Act ---
    first = client.post(f"/orders/{order.id}/items", json={"product_id": first_product.id, "quantity": 1})
    second = client.post(f"/orders/{order.id}/items", json={"product_id": second_product.id, "quantity": 1})

    # --- Assert ---
    assert Decimal(str(first.json()["price"])) == Decimal("1000")
    assert Decimal(str(second.json()["price"])) == Decimal("950")

def test_logged_in_customer_discount(client: TestClient, db_session: Session):
    retail, product = _retail_product(db_session)
    group = create_discount_group(db_session)
    create_discount(
        db_session, group_id=group.id, price_type_id=retail.id, discount_value=20,
        conditions=[{"condition_type": "user_logged_in", "operator": "=", "value": True}],
    )
    guest_order = _order(db_session)
    customer_order = _order(db_session, user_id=create_user(db_session).id)

    guest_item = client.post(f"/orders/{guest_order.id}/items", json={"product_id": product.id, "quantity": 1})
    customer_item = client.post(f"/orders/{customer_order.id}/items", json={"product_id": product.id, "quantity": 1})

    assert Decimal(str(guest_item.json()["price"])) == Decimal("1000")
    assert Decimal(str(customer_item.json()["price"])) == Decimal("800")

def test_read_order_returns_items(client: TestClient, db_session: Session):
    _, product = _retail_product(db_session)
    order = _order(db_session)
    client.post(f"/orders/{order.id}/items", json={"product_id": product.id, "quantity": 2})

    response = client.get(f"/orders/{order.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "pending"
    assert len(data["items"]) == 1
    assert data["items"][0]["quantity"] == 2

def test_add_item_without_price_is_unprocessable(client: TestClient, db_session: Session):
    create_price_type(db_session, name="Retail", is_default=True)
    product = create_product(db_session)
    order = _order(db_session)

    response = client.post(f"/orders/{order.id}/items", json={"product_id": product.id, "quantity": 1})

    assert response.status_code == 422
    assert client.get(f"/orders/{order.id}").json()["items"] == []

def test_missing_order_and_item_return_404(client: TestClient, db_session: Session):
    _, product = _retail_product(db_session)
    order = _order(db_session)

    assert client.get("/orders/missing").status_code == 404
    assert client.post("/orders/missing/items", json={"product_id": product.id, "quantity": 1}).status_code == 404
    assert client.patch(f"/orders/{order.id}/items/missing", json={"quantity": 2}).status_code == 404
