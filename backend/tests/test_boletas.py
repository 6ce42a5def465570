"""
Tienda Services: Boletas & Detalle Service Tests
==================================================

What:  Receipt creation and lookups through the boletas app, and the
       read-only detalle app over the same table.
"""

import json

import pytest

COMPRADOR = {"nombre": "Ana Pérez", "correo": "ana@correo.cl", "direccion": "Av. Siempre Viva 123"}
PRODUCTOS = [
    {"id": 1, "nombre": "Mouse Gamer", "precio": 19990, "cantidad": 1},
    {"id": 2, "nombre": "Teclado", "precio": 29990, "cantidad": 2},
]


def _receipt(**overrides):
    return {
        "comprador": COMPRADOR,
        "productos": PRODUCTOS,
        "total": 79970,
        "user_id": 7,
        **overrides,
    }


async def _create(client, **overrides):
    response = await client.post("/boletas", json=_receipt(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateReceipt:

    @pytest.mark.asyncio
    async def test_create_assigns_sequential_purchase_numbers(self, boletas_client):
        first = await _create(boletas_client)
        second = await _create(boletas_client)

        assert first["numero_compra"] >= 1
        assert second["numero_compra"] == first["numero_compra"] + 1
        assert first["comprador"] == COMPRADOR
        assert first["productos"] == PRODUCTOS
        assert first["total"] == 79970
        assert first["user_id"] == 7
        assert first["fecha"] is not None

    @pytest.mark.asyncio
    async def test_explicit_date_is_stored_as_utc(self, boletas_client):
        boleta = await _create(boletas_client, fecha="2024-06-10T09:00:00-03:00")
        assert boleta["fecha"].startswith("2024-06-10T12:00:00")

    @pytest.mark.asyncio
    async def test_embedded_json_text_from_a_form(self, boletas_client):
        response = await boletas_client.post(
            "/boletas",
            data={
                "comprador": json.dumps(COMPRADOR),
                "productos": json.dumps(PRODUCTOS),
                "total": "79970",
                "user_id": "7",
            },
        )

        assert response.status_code == 201
        boleta = response.json()
        assert boleta["comprador"]["correo"] == "ana@correo.cl"
        assert len(boleta["productos"]) == 2
        assert boleta["user_id"] == 7

    @pytest.mark.asyncio
    async def test_defaults_for_total_and_user(self, boletas_client):
        response = await boletas_client.post(
            "/boletas",
            json={"comprador": COMPRADOR, "productos": PRODUCTOS},
        )

        assert response.status_code == 201
        assert response.json()["total"] == 0
        assert response.json()["user_id"] is None

    @pytest.mark.asyncio
    async def test_non_numeric_user_id_is_stored_as_null(self, boletas_client):
        boleta = await _create(boletas_client, user_id="invitado")
        assert boleta["user_id"] is None

    @pytest.mark.asyncio
    async def test_user_id_outside_integer_column_rejected(self, boletas_client):
        response = await boletas_client.post("/boletas", json=_receipt(user_id="99999999999"))

        assert response.status_code == 400
        assert response.json()["message"] == "user_id está fuera de rango"
        assert (await boletas_client.get("/boletas")).json() == []

    @pytest.mark.asyncio
    async def test_empty_products_rejected(self, boletas_client):
        response = await boletas_client.post("/boletas", json=_receipt(productos=[]))

        assert response.status_code == 400
        assert response.json()["message"] == "Productos requeridos (array no vacío)"

    @pytest.mark.asyncio
    async def test_buyer_without_email_rejected(self, boletas_client):
        response = await boletas_client.post("/boletas", json=_receipt(comprador={"nombre": "Ana"}))

        assert response.status_code == 400
        assert response.json()["message"] == "Datos del comprador requeridos (nombre y correo)"

    @pytest.mark.asyncio
    async def test_malformed_embedded_json_rejected(self, boletas_client):
        response = await boletas_client.post("/boletas", json=_receipt(comprador="{nombre:"))

        assert response.status_code == 400
        assert response.json()["message"] == "comprador debe ser JSON válido"

    @pytest.mark.asyncio
    async def test_body_must_be_an_object(self, boletas_client):
        response = await boletas_client.post("/boletas", json=[1, 2])

        assert response.status_code == 400
        assert response.json()["message"] == "El cuerpo debe ser un objeto JSON"

    @pytest.mark.asyncio
    async def test_rejected_receipt_consumes_no_number(self, boletas_client):
        first = await _create(boletas_client)
        await boletas_client.post("/boletas", json=_receipt(productos=[]))
        second = await _create(boletas_client)

        assert second["numero_compra"] == first["numero_compra"] + 1


class TestReceiptLookups:

    @pytest.mark.asyncio
    async def test_get_by_purchase_number(self, boletas_client):
        boleta = await _create(boletas_client)

        response = await boletas_client.get(f"/boletas/numero/{boleta['numero_compra']}")

        assert response.status_code == 200
        assert response.json()["id"] == boleta["id"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("numero", ["9999", "abc", "1.5", "1e1000000", "99999999999999999999"])
    async def test_unknown_purchase_number(self, boletas_client, numero):
        await _create(boletas_client)

        response = await boletas_client.get(f"/boletas/numero/{numero}")

        assert response.status_code == 404
        assert response.json()["message"] == "Boleta no encontrada"

    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, boletas_client):
        old = await _create(boletas_client, fecha="2024-01-01T10:00:00Z")
        new = await _create(boletas_client, fecha="2024-06-01T10:00:00Z")

        response = await boletas_client.get("/boletas")

        assert [b["id"] for b in response.json()] == [new["id"], old["id"]]

    @pytest.mark.asyncio
    async def test_list_by_user(self, boletas_client):
        mine = await _create(boletas_client, user_id=7)
        await _create(boletas_client, user_id=8)
        await _create(boletas_client, user_id=None)

        response = await boletas_client.get("/boletas/7")
        nobody = await boletas_client.get("/boletas/abc")

        assert [b["id"] for b in response.json()] == [mine["id"]]
        assert nobody.status_code == 200
        assert nobody.json() == []

    @pytest.mark.asyncio
    async def test_delete_by_user(self, boletas_client):
        await _create(boletas_client, user_id=7)
        await _create(boletas_client, user_id=7)
        other = await _create(boletas_client, user_id=8)

        response = await boletas_client.delete("/boletas/7")

        assert response.json() == {"ok": True}
        assert (await boletas_client.get("/boletas/7")).json() == []
        assert [b["id"] for b in (await boletas_client.get("/boletas")).json()] == [other["id"]]

    @pytest.mark.asyncio
    async def test_delete_for_user_without_receipts_is_ok(self, boletas_client):
        response = await boletas_client.delete("/boletas/42")

        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", ["99999999999", "1e1000000"])
    async def test_user_key_outside_integer_column_matches_nothing(self, boletas_client, user_id):
        kept = await _create(boletas_client, user_id=7)

        listed = await boletas_client.get(f"/boletas/{user_id}")
        deleted = await boletas_client.delete(f"/boletas/{user_id}")

        assert listed.status_code == 200
        assert listed.json() == []
        assert deleted.json() == {"ok": True}
        assert [b["id"] for b in (await boletas_client.get("/boletas")).json()] == [kept["id"]]


class TestDetalle:

    @pytest.mark.asyncio
    async def test_detail_reads_receipts_written_by_boletas(self, boletas_client, detalle_client):
        boleta = await _create(boletas_client)

        listed = await detalle_client.get("/detalle")
        one = await detalle_client.get(f"/detalle/{boleta['numero_compra']}")

        assert [b["numero_compra"] for b in listed.json()] == [boleta["numero_compra"]]
        assert one.status_code == 200
        assert one.json()["comprador"] == COMPRADOR

    @pytest.mark.asyncio
    async def test_detail_unknown_number(self, detalle_client):
        missing = await detalle_client.get("/detalle/9999")
        garbage = await detalle_client.get("/detalle/abc")
        huge = await detalle_client.get("/detalle/1e1000000")

        assert missing.status_code == garbage.status_code == huge.status_code == 404

    @pytest.mark.asyncio
    async def test_detail_is_read_only(self, detalle_client):
        response = await detalle_client.post("/detalle", json=_receipt())

        assert response.status_code == 405
