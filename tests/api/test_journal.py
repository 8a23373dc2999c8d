"""
Tests for the journal entry endpoints.
"""


def setup_accounts(client):
    cash = client.post("/accounts", json={
        "code": "1000", "name": "Cash", "account_type": "ASSET",
    }).json()
    sales = client.post("/accounts", json={
        "code": "4000", "name": "Sales", "account_type": "REVENUE",
    }).json()
    return cash["id"], sales["id"]


def sale(cash_id, sales_id, debit="150.00", credit="150.00"):
    return {
        "entry_date": "2024-05-01",
        "description": "Cash sale",
        "lines": [
            {"account_id": cash_id, "debit_amount": debit},
            {"account_id": sales_id, "credit_amount": credit},
        ],
    }


class TestDrafts:

    def test_create_draft_returns_201(self, client):
        cash_id, sales_id = setup_accounts(client)
        response = client.post("/journal-entries", json=sale(cash_id, sales_id))

        assert response.status_code == 201
        data = response.json()
        assert data["journal_number"] == "JE-2024-00001"
        assert data["status"] == "DRAFT"
        assert data["version"] == 1
        assert len(data["lines"]) == 2

    def test_unbalanced_draft_returns_field_errors(self, client):
        cash_id, sales_id = setup_accounts(client)
        response = client.post(
            "/journal-entries", json=sale(cash_id, sales_id, credit="100")
        )

        assert response.status_code == 422
        assert response.json()["detail"][0]["field"] == "lines"

    def test_negative_amount_rejected_by_schema(self, client):
        cash_id, sales_id = setup_accounts(client)
        response = client.post(
            "/journal-entries", json=sale(cash_id, sales_id, debit="-5")
        )
        assert response.status_code == 422

    def test_update_with_stale_version_returns_409(self, client):
        cash_id, sales_id = setup_accounts(client)
        entry_id = client.post(
            "/journal-entries", json=sale(cash_id, sales_id)
        ).json()["id"]

        body = {**sale(cash_id, sales_id, "175", "175"), "expected_version": 1}
        first = client.put(f"/journal-entries/{entry_id}", json=body)
        second = client.put(f"/journal-entries/{entry_id}", json=body)

        assert first.status_code == 200
        assert first.json()["version"] == 2
        assert second.status_code == 409

    def test_delete_draft(self, client):
        cash_id, sales_id = setup_accounts(client)
        entry_id = client.post(
            "/journal-entries", json=sale(cash_id, sales_id)
        ).json()["id"]

        assert client.delete(f"/journal-entries/{entry_id}").status_code == 204
        assert client.get(f"/journal-entries/{entry_id}").status_code == 404


class TestPostAndReverse:

    def test_post_returns_ledger_rows(self, client):
        cash_id, sales_id = setup_accounts(client)
        entry_id = client.post(
            "/journal-entries", json=sale(cash_id, sales_id)
        ).json()["id"]

        response = client.post(f"/journal-entries/{entry_id}/post")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "POSTED"
        assert len(data["ledger_entries"]) == 2

        balance = client.get(f"/accounts/{cash_id}/balance").json()
        assert float(balance["balance"]) == 150.0

    def test_post_twice_returns_409(self, client):
        cash_id, sales_id = setup_accounts(client)
        entry_id = client.post(
            "/journal-entries", json=sale(cash_id, sales_id)
        ).json()["id"]
        client.post(f"/journal-entries/{entry_id}/post")

        assert client.post(f"/journal-entries/{entry_id}/post").status_code == 409

    def test_post_missing_entry_returns_404(self, client):
        assert client.post("/journal-entries/999/post").status_code == 404

    def test_posted_entry_cannot_be_deleted(self, client):
        cash_id, sales_id = setup_accounts(client)
        entry_id = client.post(
            "/journal-entries", json=sale(cash_id, sales_id)
        ).json()["id"]
        client.post(f"/journal-entries/{entry_id}/post")

        assert client.delete(f"/journal-entries/{entry_id}").status_code == 409

    def test_reverse(self, client):
        cash_id, sales_id = setup_accounts(client)
        entry_id = client.post(
            "/journal-entries", json=sale(cash_id, sales_id)
        ).json()["id"]
        client.post(f"/journal-entries/{entry_id}/post")

        response = client.post(
            f"/journal-entries/{entry_id}/reverse",
            json={"entry_date": "2024-05-02"},
        )

        assert response.status_code == 201
        assert response.json()["kind"] == "REVERSAL"
        balance = client.get(f"/accounts/{cash_id}/balance").json()
        assert float(balance["balance"]) == 0.0

        listed = client.get(
            "/journal-entries", params={"kind": "REVERSAL"}
        ).json()
        assert listed["total"] == 1
        assert listed["entries"][0]["reverses_entry_id"] == entry_id


class TestListing:

    def test_filters_and_pagination(self, client):
        cash_id, sales_id = setup_accounts(client)
        for day, reference in [("03", "POS-1"), ("10", "POS-2"), ("20", "WEB-1")]:
            client.post("/journal-entries", json={
                **sale(cash_id, sales_id),
                "entry_date": f"2024-05-{day}",
                "reference": reference,
            })

        data = client.get("/journal-entries", params={
            "start_date": "2024-05-05", "end_date": "2024-05-31",
        }).json()
        assert data["total"] == 2
        assert [e["reference"] for e in data["entries"]] == ["WEB-1", "POS-2"]

        data = client.get("/journal-entries", params={"reference": "pos"}).json()
        assert data["total"] == 2

        data = client.get(
            "/journal-entries", params={"limit": 1, "offset": 1}
        ).json()
        assert data["total"] == 3
        assert data["limit"] == 1
        assert [e["reference"] for e in data["entries"]] == ["POS-2"]

    def test_limit_out_of_range_returns_422(self, client):
        response = client.get("/journal-entries", params={"limit": 0})
        assert response.status_code == 422


class TestOpeningBalances:

    def test_opening_balances_posted(self, client):
        cash_id, _ = setup_accounts(client)

        response = client.post("/journal-entries/opening-balances", json={
            "entry_date": "2024-01-01",
            "balances": [{"account_id": cash_id, "amount": "2500"}],
        })

        assert response.status_code == 201
        data = response.json()
        assert data["kind"] == "OPENING_BALANCE"
        assert data["status"] == "POSTED"
        assert len(data["ledger_entries"]) == 2

        listed = client.get(
            "/journal-entries", params={"kind": "OPENING_BALANCE"}
        ).json()
        assert listed["total"] == 1

    def test_empty_opening_balances_return_422(self, client):
        response = client.post(
            "/journal-entries/opening-balances", json={"balances": []}
        )
        assert response.status_code == 422
        assert response.json()["detail"][0]["field"] == "balances"
