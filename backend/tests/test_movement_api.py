# tests/test_movement_api.py
from datetime import datetime

from main import app
from services.movement import SP_MOVEMENT_CREATE, SP_MOVEMENT_GET, SP_MOVEMENT_LIST
from utils.errors import BusinessRuleViolation, DatabaseError
from utils.security import StaticPermissionChecker


def _movement_row(id_movement, **overrides):
    row = {
        "idMovement": id_movement,
        "idProduct": 10,
        "productName": "Cement 25kg",
        "movementType": "ENTRADA",
        "quantity": 5,
        "dateTime": datetime(2024, 5, 1, 10, 30),
        "idUser": 1,
        "userName": "Admin",
        "observation": None,
        "reason": None,
        "total": 2,
    }
    row.update(overrides)
    return row


# ---- POST /movement ----

def test_create_movement_returns_new_id(client, fake_db):
    fake_db.results[SP_MOVEMENT_CREATE] = {"idMovement": 42}

    r = client.post("/movement", json={"movementType": "ENTRADA", "idProduct": 10, "quantity": 10.5})

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"] == {"idMovement": 42}
    assert body["metadata"]["timestamp"].endswith("Z")

    routine, params, _ = fake_db.calls[0]
    assert routine == SP_MOVEMENT_CREATE
    assert params == {
        "idAccount": 1,
        "idUser": 1,
        "movementType": "ENTRADA",
        "idProduct": 10,
        "quantity": 10.5,
        "observation": None,
        "productName": None,
        "productDescription": None,
        "reason": None,
    }


def test_create_movement_coerces_numeric_strings(client, fake_db):
    fake_db.results[SP_MOVEMENT_CREATE] = {"idMovement": 7}

    r = client.post("/movement", json={"movementType": "SAIDA", "idProduct": "3", "quantity": "2.25"})

    assert r.status_code == 200
    assert fake_db.last_params()["idProduct"] == 3
    assert fake_db.last_params()["quantity"] == 2.25


def test_create_movement_rejects_unknown_type(client, fake_db):
    r = client.post("/movement", json={"movementType": "TRANSFER", "idProduct": 1, "quantity": 1})

    assert r.status_code == 400
    error = r.json()["error"]
    assert r.json()["success"] is False
    assert error["code"] == "VALIDATION_ERROR"
    assert error["message"] == "Validation failed"
    assert [d["field"] for d in error["details"]] == ["movementType"]
    assert fake_db.calls == []


def test_create_movement_rejects_long_observation(client, fake_db):
    r = client.post(
        "/movement",
        json={"movementType": "ENTRADA", "idProduct": 1, "quantity": 1, "observation": "x" * 501},
    )

    assert r.status_code == 400
    assert r.json()["error"]["details"][0]["field"] == "observation"


def test_create_movement_rejects_non_positive_product(client, fake_db):
    r = client.post("/movement", json={"movementType": "ENTRADA", "idProduct": 0, "quantity": 1})

    assert r.status_code == 400
    assert r.json()["error"]["details"][0]["field"] == "idProduct"


def test_create_movement_rejects_non_object_body(client, fake_db):
    r = client.post("/movement", content=b"[1, 2]", headers={"content-type": "application/json"})

    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


def test_create_movement_body_wins_over_query(client, fake_db):
    fake_db.results[SP_MOVEMENT_CREATE] = {"idMovement": 1}

    r = client.post(
        "/movement?movementType=SAIDA&quantity=99",
        json={"movementType": "ENTRADA", "idProduct": 1, "quantity": 3},
    )

    assert r.status_code == 200
    assert fake_db.last_params()["movementType"] == "ENTRADA"
    assert fake_db.last_params()["quantity"] == 3


def test_add_product_without_name_reaches_database_by_default(client, fake_db):
    # The form rules are a UI concern unless ENFORCE_MOVEMENT_RULES is on
    fake_db.results[SP_MOVEMENT_CREATE] = {"idMovement": 5}

    r = client.post("/movement", json={"movementType": "ADICAO_PRODUTO", "quantity": 1})

    assert r.status_code == 200
    assert fake_db.last_params()["productName"] is None


def test_add_product_without_name_rejected_when_rules_enforced(client, fake_db, enforce_movement_rules):
    r = client.post("/movement", json={"movementType": "ADICAO_PRODUTO", "quantity": 1})

    assert r.status_code == 400
    assert "productName" in r.json()["error"]["details"][0]["message"]
    assert fake_db.calls == []


def test_exit_without_product_rejected_when_rules_enforced(client, fake_db, enforce_movement_rules):
    r = client.post("/movement", json={"movementType": "SAIDA", "quantity": 1})

    assert r.status_code == 400
    assert "idProduct" in r.json()["error"]["details"][0]["message"]


def test_delete_without_reason_rejected_when_rules_enforced(client, fake_db, enforce_movement_rules):
    r = client.post("/movement", json={"movementType": "EXCLUSAO", "idProduct": 4, "quantity": 0})

    assert r.status_code == 400
    assert "reason" in r.json()["error"]["details"][0]["message"]


def test_delete_with_reason_accepted_when_rules_enforced(client, fake_db, enforce_movement_rules):
    fake_db.results[SP_MOVEMENT_CREATE] = {"idMovement": 9}

    r = client.post(
        "/movement",
        json={"movementType": "EXCLUSAO", "idProduct": 4, "quantity": 0, "reason": "Discontinued"},
    )

    assert r.status_code == 200
    assert fake_db.last_params()["reason"] == "Discontinued"


def test_business_rule_violation_is_400_with_procedure_message(client, fake_db):
    fake_db.results[SP_MOVEMENT_CREATE] = BusinessRuleViolation("Insufficient stock for product 10")

    r = client.post("/movement", json={"movementType": "SAIDA", "idProduct": 10, "quantity": 500})

    assert r.status_code == 400
    assert r.json() == {"success": False, "error": {"message": "Insufficient stock for product 10"}}


def test_database_error_is_generic_500(client, fake_db):
    fake_db.results[SP_MOVEMENT_CREATE] = DatabaseError("Login failed for user 'sa'", number=18456)

    r = client.post("/movement", json={"movementType": "SAIDA", "idProduct": 10, "quantity": 1})

    assert r.status_code == 500
    assert r.json() == {"success": False, "error": {"message": "An unexpected error occurred"}}


def test_unexpected_exception_is_generic_500(client, fake_db):
    fake_db.results[SP_MOVEMENT_CREATE] = RuntimeError("boom")

    r = client.post("/movement", json={"movementType": "SAIDA", "idProduct": 10, "quantity": 1})

    assert r.status_code == 500
    assert r.json()["error"]["message"] == "An unexpected error occurred"
    assert "boom" not in r.text


def test_create_movement_zero_id_is_server_error(client, fake_db):
    fake_db.results[SP_MOVEMENT_CREATE] = {"idMovement": 0}

    r = client.post("/movement", json={"movementType": "ENTRADA", "idProduct": 1, "quantity": 1})

    assert r.status_code == 500


def test_create_movement_forbidden_without_create_permission(client, fake_db):
    app.state.permission_checker = StaticPermissionChecker({"MOVEMENT": ["READ"]})

    r = client.post("/movement", json={"movementType": "ENTRADA", "idProduct": 1, "quantity": 1})

    assert r.status_code == 403
    assert r.json()["success"] is False
    assert fake_db.calls == []


# ---- GET /movement ----

def test_list_movements_applies_defaults(client, fake_db):
    fake_db.results[SP_MOVEMENT_LIST] = [[]]

    r = client.get("/movement")

    assert r.status_code == 200
    assert r.json()["data"] == {"movements": [], "total": 0}
    params = fake_db.last_params()
    assert params["orderBy"] == "DATA_HORA_DESC"
    assert params["pageSize"] == 50
    assert params["page"] == 1
    assert params["idAccount"] == 1
    assert params["dateStart"] is None
    assert params["movementType"] is None


def test_list_movements_passes_filters(client, fake_db):
    fake_db.results[SP_MOVEMENT_LIST] = [[]]

    r = client.get(
        "/movement",
        params={
            "dateStart": "2024-01-01",
            "dateEnd": "2024-01-31",
            "idProduct": "10",
            "movementType": "SAIDA",
            "idUser": "2",
            "orderBy": "DATA_HORA_ASC",
            "pageSize": "100",
            "page": "3",
        },
    )

    assert r.status_code == 200
    params = fake_db.last_params()
    assert params["dateStart"] == "2024-01-01"
    assert params["dateEnd"] == "2024-01-31"
    assert params["idProduct"] == 10
    assert params["movementType"] == "SAIDA"
    assert params["idUser"] == 2
    assert params["orderBy"] == "DATA_HORA_ASC"
    assert params["pageSize"] == 100
    assert params["page"] == 3


def test_list_movements_total_from_first_row(client, fake_db):
    fake_db.results[SP_MOVEMENT_LIST] = [[
        _movement_row(2, dateTime=datetime(2024, 5, 2, 8, 0), total=37),
        _movement_row(1, total=37),
    ]]

    r = client.get("/movement", params={"pageSize": 2})

    data = r.json()["data"]
    assert data["total"] == 37
    assert [m["idMovement"] for m in data["movements"]] == [2, 1]
    first = data["movements"][0]
    assert first["dateTime"] == "2024-05-02T08:00:00"
    assert first["productName"] == "Cement 25kg"
    assert "total" not in first


def test_list_movements_rejects_page_size_out_of_range(client, fake_db):
    for size in ("0", "101"):
        r = client.get("/movement", params={"pageSize": size})
        assert r.status_code == 400
        assert r.json()["error"]["details"][0]["field"] == "pageSize"
    assert fake_db.calls == []


def test_list_movements_rejects_page_zero(client, fake_db):
    r = client.get("/movement", params={"page": "0"})

    assert r.status_code == 400


def test_list_movements_rejects_unknown_order(client, fake_db):
    r = client.get("/movement", params={"orderBy": "QUANTITY"})

    assert r.status_code == 400
    assert r.json()["error"]["details"][0]["field"] == "orderBy"


def test_list_movements_drifted_row_shape_is_500(client, fake_db):
    fake_db.results[SP_MOVEMENT_LIST] = [[{"idMovement": 1, "total": 1}]]

    r = client.get("/movement")

    assert r.status_code == 500
    assert r.json()["error"]["message"] == "An unexpected error occurred"


# ---- GET /movement/{id} ----

def test_get_movement_detail(client, fake_db):
    fake_db.results[SP_MOVEMENT_GET] = _movement_row(
        12, movementType="EXCLUSAO", reason="Damaged", productDescription="Grey cement"
    )

    r = client.get("/movement/12")

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["idMovement"] == 12
    assert data["reason"] == "Damaged"
    assert data["productDescription"] == "Grey cement"
    assert fake_db.last_params() == {"idAccount": 1, "idMovement": 12}


def test_get_movement_not_found(client, fake_db):
    fake_db.results[SP_MOVEMENT_GET] = None

    r = client.get("/movement/999")

    assert r.status_code == 404
    assert r.json() == {"success": False, "error": {"message": "Movement not found"}}


def test_get_movement_rejects_bad_id(client, fake_db):
    for raw in ("0", "abc"):
        r = client.get(f"/movement/{raw}")
        assert r.status_code == 400
        assert r.json()["error"]["details"][0]["field"] == "id"
    assert fake_db.calls == []


def test_create_movement_rejects_non_finite_quantity(client, fake_db):
    for raw in ("NaN", "Infinity", "-inf"):
        r = client.post("/movement", json={"movementType": "ENTRADA", "idProduct": 1, "quantity": raw})
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "VALIDATION_ERROR"
        assert r.json()["error"]["details"][0]["field"] == "quantity"
    assert fake_db.calls == []
