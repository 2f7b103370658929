import unittest
from decimal import Decimal

from fastapi.testclient import TestClient

from ledger_analytics.api import app


def record_json(
    record_id: str,
    day: str,
    amount: str,
    kind: str = "expense",
    category: str = "Food",
    **extra,
) -> dict:
    payload = {
        "id": record_id,
        "date": day,
        "amount": amount,
        "kind": kind,
        "category": category,
        "payment_method": "card",
        "created_at": f"{day}T12:00:00",
    }
    payload.update(extra)
    return payload


class AnalyticsApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)

    def test_health(self) -> None:
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_history_groups_with_running_balances(self) -> None:
        response = self.client.post(
            "/history",
            json={
                "records": [
                    record_json("a", "2025-01-05", "40"),
                    record_json("b", "2025-01-20", "60"),
                    record_json("c", "2025-02-02", "10"),
                    record_json("d", "2025-01-21", "99", deleted=True),
                ],
                "granularity": "month",
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([group["id"] for group in body["groups"]], ["2025-01", "2025-02"])
        self.assertEqual(
            [Decimal(str(group["running_balance"])) for group in body["groups"]],
            [Decimal("100"), Decimal("110")],
        )
        self.assertEqual(body["groups"][0]["transaction_ids"], ["a", "b"])
        self.assertEqual(body["groups"][0]["start_date"], "2025-01-05")
        self.assertEqual(body["groups"][0]["end_date"], "2025-01-20")
        self.assertEqual(Decimal(str(body["record_balances"]["c"])), Decimal("110"))
        self.assertEqual(body["item_count"], 3)

    def test_history_accepts_mixed_timestamp_forms(self) -> None:
        response = self.client.post(
            "/history",
            json={
                "records": [
                    record_json("utc", "2025-01-05", "10", created_at="2025-01-05T10:00:00Z"),
                    record_json("local", "2025-01-05", "20", created_at="2025-01-05T09:00:00"),
                ],
                "granularity": "month",
            },
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["groups"][0]["transaction_ids"], ["local", "utc"])

    def test_history_rejects_inverted_range(self) -> None:
        response = self.client.post(
            "/history",
            json={
                "records": [],
                "start_date": "2025-02-01",
                "end_date": "2025-01-01",
            },
        )

        self.assertEqual(response.status_code, 400)

    def test_history_rejects_unknown_granularity(self) -> None:
        response = self.client.post(
            "/history",
            json={"records": [], "granularity": "quarter"},
        )

        self.assertEqual(response.status_code, 400)

    def test_malformed_record_date_is_a_validation_error(self) -> None:
        response = self.client.post(
            "/history",
            json={"records": [record_json("a", "2025-13-45", "1")]},
        )

        self.assertEqual(response.status_code, 422)

    def test_negative_amount_is_rejected(self) -> None:
        response = self.client.post(
            "/reports/top-categories",
            json={"records": [record_json("a", "2025-01-05", "-1")]},
        )

        self.assertEqual(response.status_code, 400)

    def test_top_categories(self) -> None:
        response = self.client.post(
            "/reports/top-categories",
            json={
                "records": [
                    record_json("a", "2025-01-05", "30", category="Food"),
                    record_json("b", "2025-01-06", "20", category="Food"),
                    record_json("c", "2025-01-07", "50", category="Transport"),
                    record_json("d", "2025-01-07", "500", kind="income", category="Salary"),
                ],
                "limit": 2,
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([row["category"] for row in body], ["Food", "Transport"])
        self.assertEqual([Decimal(str(row["percentage"])) for row in body], [Decimal("50")] * 2)

    def test_top_days_uses_configured_default_limit(self) -> None:
        records = [record_json(f"t{day}", f"2025-01-{day:02d}", str(day)) for day in range(1, 6)]

        response = self.client.post("/reports/top-days", json={"records": records})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [row["date"] for row in response.json()],
            ["2025-01-05", "2025-01-04", "2025-01-03"],
        )

    def test_category_breakdown_lists_every_category(self) -> None:
        response = self.client.post(
            "/reports/category-breakdown",
            json={
                "records": [
                    record_json("a", "2025-01-05", "10", category="Food"),
                    record_json("b", "2025-01-05", "30", category="Rent"),
                    record_json("c", "2025-01-05", "60", category="Travel"),
                ]
            },
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [row["category"] for row in response.json()], ["Travel", "Rent", "Food"]
        )

    def test_period_comparison_flags_missing_baseline(self) -> None:
        response = self.client.post(
            "/reports/period-comparison",
            json={
                "records": [record_json("a", "2025-01-10", "25")],
                "start_date": "2025-01-01",
                "end_date": "2025-01-31",
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["previous_start"], "2024-12-01")
        self.assertEqual(body["previous_end"], "2024-12-31")
        self.assertIsNone(body["change"]["percent"])
        self.assertTrue(body["change"]["no_baseline"])
        self.assertEqual(body["change"]["trend"], "increased")

    def test_report_metrics(self) -> None:
        response = self.client.post(
            "/reports/metrics",
            json={
                "records": [
                    record_json("i", "2025-01-05", "1000", kind="income", category="Salary"),
                    record_json("e", "2025-01-06", "200"),
                    record_json("p", "2024-12-28", "100"),
                ],
                "start_date": "2025-01-01",
                "end_date": "2025-01-10",
            },
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(Decimal(str(body["net_balance"])), Decimal("800"))
        self.assertEqual(body["transaction_count"], 2)
        self.assertEqual(Decimal(str(body["expense_change"]["percent"])), Decimal("100"))
        self.assertTrue(body["income_change"]["no_baseline"])

    def test_export_csv(self) -> None:
        response = self.client.post(
            "/export/csv",
            json={"records": [record_json("a", "2025-01-05", "12.50", tags=["b", "a"])]},
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/csv"))
        lines = response.text.splitlines()
        self.assertEqual(lines[0].split(",")[0], "id")
        self.assertIn("a|b", lines[1])

    def test_export_rejects_tag_containing_delimiter(self) -> None:
        response = self.client.post(
            "/export/csv",
            json={"records": [record_json("a", "2025-01-05", "1", tags=["work|travel"])]},
        )

        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
